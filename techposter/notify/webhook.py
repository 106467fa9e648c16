"""Best-effort run notifications (Slack incoming webhook and/or a generic JSON webhook)."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


def build_summary_payload(summary: Dict[str, Any]) -> Dict[str, Any]:
    avg_quality = summary.get("average_quality")
    top = summary.get("top_headlines") or []
    templates = summary.get("templates") or []
    lines = [
        "✅ Poster batch completed",
        f"• Posters: {summary.get('total_posters', 0)}",
        f"• Templates: {', '.join(templates)}",
        f"• Avg quality: {avg_quality if avg_quality is not None else 'n/a'}",
    ]
    if top:
        heads = " | ".join(
            f"{h.get('title')} ({h.get('source')})" if h.get("source") else str(h.get("title"))
            for h in top
        )
        lines.append(f"• Top headlines: {heads}")
    return {
        "text": "\n".join(lines),
        "data": {
            "templates": templates,
            "max_posts": summary.get("max_posts"),
            "total_posters": summary.get("total_posters", 0),
            "summary": summary,
        },
    }


class RunNotifier:
    def __init__(self, *, slack_webhook_url: str = "", webhook_url: str = "", timeout: int = 15):
        self.slack_webhook_url = slack_webhook_url
        self.webhook_url = webhook_url
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.slack_webhook_url or self.webhook_url)

    def _post_json(self, url: str, body: Dict[str, Any]) -> None:
        response = requests.post(url, json=body, timeout=self.timeout)
        response.raise_for_status()

    def send_slack(self, message: Dict[str, Any]) -> bool:
        if not self.slack_webhook_url:
            return False
        body = {
            "text": message["text"],
            "blocks": [{"type": "section", "text": {"type": "mrkdwn", "text": message["text"]}}],
        }
        try:
            self._post_json(self.slack_webhook_url, body)
            logger.info("Slack run summary sent")
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"Slack webhook error: {e}")
            return False

    def send_generic(self, message: Dict[str, Any]) -> bool:
        if not self.webhook_url:
            return False
        try:
            self._post_json(self.webhook_url, message)
            logger.info("Webhook run summary sent")
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"Webhook error: {e}")
            return False

    def notify_run(self, summary: Optional[Dict[str, Any]]) -> None:
        if not summary or not self.enabled:
            return
        message = build_summary_payload(summary)
        self.send_slack(message)
        self.send_generic(message)

    def notify_async(self, summary: Optional[Dict[str, Any]]) -> Optional[threading.Thread]:
        """Deliver on a daemon thread so the caller never waits on webhooks."""
        if not summary or not self.enabled:
            return None
        thread = threading.Thread(target=self._notify_safely, args=(summary,), name="run-notifier", daemon=True)
        thread.start()
        return thread

    def _notify_safely(self, summary: Dict[str, Any]) -> None:
        try:
            self.notify_run(summary)
        except Exception as e:
            logger.error(f"Run notification failed: {e}")
