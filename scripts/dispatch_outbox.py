"""Deliver queued notification events (emails) with retry.

Run once from cron, or with ``--loop`` as a long-lived worker.
"""

from __future__ import annotations

import argparse
import importlib
import sys
import time
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.workforce_hub.workforce_hub.common.logging import configure_logging
from src.workforce_hub.workforce_hub.container import build_container


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--loop", action="store_true", help="keep polling instead of a single pass")
    parser.add_argument("--interval", type=float, default=5.0, help="seconds between passes with --loop")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)
    dispatcher = container.outbox_dispatcher

    while True:
        result = dispatcher.run_once()
        print(f"OK: delivered={result.delivered} retried={result.retried} failed={result.failed}")
        if not args.loop:
            break
        time.sleep(args.interval)


if __name__ == "__main__":
    main()
