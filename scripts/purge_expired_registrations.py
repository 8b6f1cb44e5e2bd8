"""
Delete pending registrations whose verification link has expired.

Usage:
  DATABASE_URL=... JWT_SECRET=... python scripts/purge_expired_registrations.py
"""
from __future__ import annotations

import logging

from app.api import build_credentials
from core.config import Settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("purge")


def main() -> None:
    manager, _ = build_credentials(Settings.from_env())
    removed = manager.purge_expired_registrations()
    log.info("Removed %d expired pending registration(s)", removed)


if __name__ == "__main__":
    main()
