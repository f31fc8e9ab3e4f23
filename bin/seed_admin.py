# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first admin user.

Run once after the initial migration:
    python bin/seed_admin.py

The script reads FIRST_ADMIN_USERNAME, FIRST_ADMIN_EMAIL and
FIRST_ADMIN_PASSWORD from etc/app.conf.  After the row is inserted those
values are no longer used by the application.  An existing account with the
same username is promoted to admin instead of being recreated.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed_admin.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from core.config import settings          # noqa: E402
from core.logger import logger            # noqa: E402
from core.security import hash_password   # noqa: E402
from database import SessionLocal         # noqa: E402
from models.user import User              # noqa: E402


def seed():
    if not (settings.first_admin_username and settings.first_admin_email
            and settings.first_admin_password):
        logger.warning("[seed_admin] FIRST_ADMIN_USERNAME / EMAIL / PASSWORD not set in etc/app.conf – nothing to do.")
        return

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.username == settings.first_admin_username).first()
        if existing:
            if existing.role != "admin":
                existing.role = "admin"
                db.commit()
                logger.info("[seed_admin] Promoted existing user '%s' to admin.", existing.username)
            else:
                logger.info("[seed_admin] Admin '%s' already exists – skipping.", existing.username)
            return

        admin = User(
            username=settings.first_admin_username,
            email=settings.first_admin_email.strip().lower(),
            full_name="Administrator",
            password_hash=hash_password(settings.first_admin_password),
            role="admin",
        )
        db.add(admin)
        db.commit()
        logger.info("[seed_admin] Admin '%s' created successfully.", admin.username)
    finally:
        db.close()


if __name__ == "__main__":
    seed()
