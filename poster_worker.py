#!/usr/bin/env python3
"""Poster worker.

Runs one poster cycle (or scheduled daily):
- fetch configured RSS feeds, select fresh unseen stories
- render one poster per article per configured template
- post a run summary to the configured webhooks
"""

from __future__ import annotations

import logging
import os
import sys
import time
from typing import Optional

import schedule

from techposter.config import Config
from techposter.orchestration.orchestrator import RunOrchestrator, RunOutcome

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def run_once(orchestrator: Optional[RunOrchestrator] = None, source: str = "manual") -> RunOutcome:
    orchestrator = orchestrator or RunOrchestrator.from_config(Config.from_env())
    outcome = orchestrator.trigger_run(source=source)
    if outcome.summary:
        print(
            f"[poster] run={outcome.run_id} posters={outcome.summary.total_posters} "
            f"avg_quality={outcome.summary.average_quality}"
        )
    else:
        print(f"[poster] status={outcome.status}")
    return outcome


def schedule_job(orchestrator: RunOrchestrator, config: Config) -> Optional[schedule.Job]:
    if not config.enable_scheduler:
        logger.info("Scheduler disabled via configuration.")
        return None
    try:
        job = schedule.every().day.at(config.schedule_time, config.timezone).do(
            orchestrator.trigger_run, source="scheduler"
        )
    except Exception as e:
        logger.error(f"Failed to start scheduler: {e}")
        return None
    logger.info(f"Scheduler started: daily at {config.schedule_time} ({config.timezone})")
    return job


def run_scheduled() -> None:
    config = Config.from_env()
    orchestrator = RunOrchestrator.from_config(config)
    if schedule_job(orchestrator, config) is None:
        return
    while True:
        schedule.run_pending()
        time.sleep(5)


if __name__ == "__main__":
    configure_logging()
    mode = (os.environ.get("POSTER_MODE") or "once").lower().strip()
    if mode in ("scheduled", "daemon"):
        run_scheduled()
    else:
        result = run_once()
        raise SystemExit(0 if result.status != "failed" else 1)
