#!/usr/bin/env python3
"""
Run one lifecycle tick now (promote due schedules, complete due ones) and print the report.
Uses the same settings as the service (.env at the repo root).

Run: python scripts/run_tick.py
Or with the service running: curl -s -X POST http://127.0.0.1:8000/tick | jq
"""
import json
import logging
import sys
from pathlib import Path

repo_dir = Path(__file__).resolve().parent.parent
if str(repo_dir) not in sys.path:
    sys.path.insert(0, str(repo_dir))

from botsync.config import get_settings
from botsync.scheduler.lifecycle_job import build_control_loop


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = get_settings()
    if not settings.is_configured():
        print("Firebase settings incomplete. Set FIREBASE_PROJECT_ID, FIREBASE_DATABASE_URL, "
              "SA_CLIENT_EMAIL and SA_PRIVATE_KEY in .env.")
        return 1
    report = build_control_loop(settings).tick()
    if report is None:
        print("Another run is active; skipped.")
        return 1
    print(json.dumps(report.as_dict(), indent=2))
    return 1 if report.error else 0


if __name__ == "__main__":
    sys.exit(main())
