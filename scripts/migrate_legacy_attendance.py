"""Convert legacy ``attendance.is_present`` rows to ``status`` once.

Run after deploying onto a database created by the old schema:

    APP_ENV=production python scripts/migrate_legacy_attendance.py
"""

from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from club_attendance.config import get_settings_module
from club_attendance.database.bootstrap import migrate_legacy_attendance_status
from club_attendance.database.connection import DBConfig


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    updated = migrate_legacy_attendance_status(db_config)
    print(f"OK: {updated} legacy rows migrated -> {DBConfig.from_mapping(db_config).describe()}")


if __name__ == "__main__":
    main()
