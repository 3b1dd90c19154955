"""Scan open resolution requests and queue SLA warning/breach alerts.

Meant to run every few minutes from cron; each request is alerted at most
once per kind, so overlapping runs are harmless.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.workforce_hub.workforce_hub.common.logging import configure_logging
from src.workforce_hub.workforce_hub.container import build_container


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)
    result = container.sla_monitor.scan()
    print(f"OK: SLA scan queued breaches={result.breaches} warnings={result.warnings}")


if __name__ == "__main__":
    main()
