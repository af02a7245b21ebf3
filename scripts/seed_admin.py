#!/usr/bin/env python
"""Seed (or promote) the ClipShare admin account.

Creates a real ADMIN user from ADMIN_BOOTSTRAP_EMAIL / ADMIN_BOOTSTRAP_PASSWORD.
An existing account with that email is promoted; its password is untouched.

Constraints:
- Idempotent (safe to re-run)
- Never runs automatically; the API performs the same step at startup
  when the variables are set

Usage:
    DATABASE_URL=... ADMIN_BOOTSTRAP_EMAIL=... ADMIN_BOOTSTRAP_PASSWORD=... \\
        python scripts/seed_admin.py
"""

import sys


def main() -> int:
    from clipshare.config import get_settings
    from clipshare.db.session import get_session_factory
    from clipshare.services.bootstrap import ensure_bootstrap_admin

    settings = get_settings()
    if not settings.admin_bootstrap_enabled:
        print("ERROR: ADMIN_BOOTSTRAP_EMAIL and ADMIN_BOOTSTRAP_PASSWORD must be set")
        return 1

    db = get_session_factory()()
    try:
        user = ensure_bootstrap_admin(
            db,
            settings.admin_bootstrap_email,
            settings.admin_bootstrap_password,
            settings.admin_bootstrap_name,
        )
        print(f"Admin ready: {user.email} ({user.id})")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
