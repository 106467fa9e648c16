#!/usr/bin/env python3
"""
Flask JSON surface for the poster pipeline: run status, template catalog,
manual run trigger and generated poster files.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify, request, send_from_directory

from techposter.config import Config
from techposter.orchestration.orchestrator import (
    STATUS_COMPLETED,
    STATUS_SKIPPED,
    RunOrchestrator,
)
from techposter.rendering.templates import list_template_options

logger = logging.getLogger(__name__)


def create_app(orchestrator: Optional[RunOrchestrator] = None, config: Optional[Config] = None) -> Flask:
    config = config or Config.from_env()
    orchestrator = orchestrator or RunOrchestrator.from_config(config)

    app = Flask(__name__)
    app.config["ORCHESTRATOR"] = orchestrator
    app.config["POSTER_CONFIG"] = config

    @app.route("/api/health")
    def health():
        return jsonify({"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()})

    @app.route("/api/status")
    def status():
        return jsonify({"success": True, "data": orchestrator.snapshot()})

    @app.route("/api/templates")
    def templates():
        return jsonify(
            {"success": True, "default": orchestrator.default_template, "data": list_template_options()}
        )

    @app.route("/api/run", methods=["POST"])
    def run():
        payload = request.get_json(silent=True) or {}
        max_posts = payload.get("max_posts")
        requested = payload.get("templates")
        if isinstance(requested, str):
            requested = [t.strip() for t in requested.split(",") if t.strip()]
        try:
            if max_posts is not None and not isinstance(max_posts, bool):
                max_posts = int(max_posts)
            outcome = orchestrator.trigger_run(max_posts=max_posts, templates=requested, source="api")
        except (TypeError, ValueError) as e:
            return jsonify({"success": False, "error": str(e)}), 400

        if outcome.status == STATUS_SKIPPED:
            return jsonify({"success": False, "error": "run already in progress", "data": outcome.to_dict()}), 409
        if outcome.status != STATUS_COMPLETED:
            return jsonify({"success": False, "error": outcome.error, "data": outcome.to_dict()}), 500
        return jsonify({"success": True, "data": outcome.to_dict()})

    @app.route("/generated/<path:filename>")
    def generated(filename: str):
        return send_from_directory(str(config.output_dir), filename)

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    cfg = Config.from_env()
    application = create_app(config=cfg)
    logger.info(f"Poster server running at http://localhost:{cfg.port}")
    application.run(host="0.0.0.0", port=cfg.port)
