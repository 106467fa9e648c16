import tempfile
import unittest
from pathlib import Path

from techposter.config import Config
from techposter.orchestration.orchestrator import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_SKIPPED,
    RunOutcome,
    validate_max_posts,
)
from web_app import create_app


class FakeOrchestrator:
    default_template = "midnight"

    def __init__(self, status=STATUS_COMPLETED):
        self.status = status
        self.calls = []

    def snapshot(self):
        return {"running": False, "last_run_at": None, "last_results": [], "history": []}

    def trigger_run(self, *, max_posts=None, templates=None, source="manual"):
        validate_max_posts(max_posts, 2)
        self.calls.append({"max_posts": max_posts, "templates": templates, "source": source})
        error = "boom" if self.status == STATUS_FAILED else None
        return RunOutcome(status=self.status, source=source, run_id="run_1", error=error)


class TestWebApp(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config = Config(output_dir=Path(self.tmp.name))
        self.orchestrator = FakeOrchestrator()
        self.client = create_app(self.orchestrator, self.config).test_client()

    def tearDown(self):
        self.tmp.cleanup()

    def test_health_and_status(self):
        self.assertEqual(self.client.get("/api/health").get_json()["status"], "healthy")
        body = self.client.get("/api/status").get_json()
        self.assertTrue(body["success"])
        self.assertFalse(body["data"]["running"])

    def test_templates(self):
        body = self.client.get("/api/templates").get_json()
        self.assertEqual(body["default"], "midnight")
        self.assertEqual(len(body["data"]), 6)

    def test_run_passes_options(self):
        resp = self.client.post("/api/run", json={"max_posts": "3", "templates": "aurora, slate"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            self.orchestrator.calls,
            [{"max_posts": 3, "templates": ["aurora", "slate"], "source": "api"}],
        )
        self.assertEqual(resp.get_json()["data"]["status"], STATUS_COMPLETED)

    def test_run_rejects_bad_max_posts(self):
        self.assertEqual(self.client.post("/api/run", json={"max_posts": "many"}).status_code, 400)
        self.assertEqual(self.client.post("/api/run", json={"max_posts": True}).status_code, 400)
        self.assertEqual(self.orchestrator.calls, [])

    def test_run_conflict_and_failure(self):
        self.orchestrator.status = STATUS_SKIPPED
        self.assertEqual(self.client.post("/api/run", json={}).status_code, 409)
        self.orchestrator.status = STATUS_FAILED
        resp = self.client.post("/api/run")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.get_json()["error"], "boom")

    def test_generated_files(self):
        (Path(self.tmp.name) / "poster.png").write_bytes(b"\x89PNG\r\n")
        resp = self.client.get("/generated/poster.png")
        self.assertEqual(resp.status_code, 200)
        resp.close()
        self.assertEqual(self.client.get("/generated/missing.png").status_code, 404)


if __name__ == "__main__":
    unittest.main()
