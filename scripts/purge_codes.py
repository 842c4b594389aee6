"""Delete attendance codes whose validity window has ended.

Codes expired less than PURGE_GRACE_HOURS ago (default 24) are kept so recent
"expired" answers stay explainable.
"""

from __future__ import annotations

import importlib
import os
import sys
from datetime import datetime, timedelta
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.qr_attendance.qr_attendance.container import build_container
from src.qr_attendance.qr_attendance.database.connection import DatabaseConnection, DBConfig


def main() -> None:
    grace = timedelta(hours=int(os.getenv("PURGE_GRACE_HOURS", "24")))

    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection(DBConfig.from_mapping(settings.DB_CONFIG)).open()
    try:
        container = build_container(conn=conn)
        removed = container.code_issuer.purge_expired(before=datetime.now() - grace)
    finally:
        conn.close()
    print(f"OK: Purged {removed} expired attendance codes")


if __name__ == "__main__":
    main()
