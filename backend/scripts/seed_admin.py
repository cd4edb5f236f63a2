#!/usr/bin/env python
"""Idempotent bootstrap of the default admin account.

Usage:
    python backend/scripts/seed_admin.py                  # create admin if missing
    python backend/scripts/seed_admin.py --dry-run        # run logic then rollback (no DB changes)
    python backend/scripts/seed_admin.py --show-roles     # print role -> permission presets
    python backend/scripts/seed_admin.py --email ops@farm.local --name "Ops"

Credentials default to SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD from the environment (.env honoured).
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import inspect

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from livestock import create_app, get_db  # type: ignore
from livestock.constants.permissions import ROLE_PRESETS, permissions_for_role
from livestock.models.base import Base
import livestock.models.accounts  # noqa: F401
import livestock.models.order  # noqa: F401
import livestock.models.subscription  # noqa: F401
import livestock.models.token_transaction  # noqa: F401
import livestock.models.audit  # noqa: F401
from livestock.services.accounts import ensure_default_admin


def ensure_schema(session):
    """Create missing tables when migrations have not been run yet."""
    engine = session.get_bind()
    if not inspect(engine).has_table('admins'):
        # Bootstrap fallback; in real env prefer alembic upgrade
        Base.metadata.create_all(engine)
        return True
    return False


def print_role_summary():
    name_w = max(len(r) for r in ROLE_PRESETS)
    print(f"{'Role'.ljust(name_w)} | Count | Permissions")
    print('-' * (name_w + 40))
    for role in ROLE_PRESETS:
        codes = sorted(permissions_for_role(role))
        print(f"{role.ljust(name_w)} | {str(len(codes)).rjust(5)} | {', '.join(codes)}")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed the default admin account",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_admin.py\n  dry run: seed_admin.py --dry-run\n  show roles: seed_admin.py --show-roles\n""")
    )
    p.add_argument('--email', help='Admin email (default: SEED_ADMIN_EMAIL)')
    p.add_argument('--password', help='Admin password (default: SEED_ADMIN_PASSWORD)')
    p.add_argument('--name', default='Administrator', help='Admin display name')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--show-roles', action='store_true', help='Print role permission presets')
    return p.parse_args(argv)


def main(argv=None, app=None):
    args = parse_args(argv)
    app = app or create_app()
    with app.app_context():
        session = get_db()
        email = args.email or app.config['SEED_ADMIN_EMAIL']
        password = args.password or app.config['SEED_ADMIN_PASSWORD']
        try:
            if ensure_schema(session):
                print('[INFO] Schema created (no migrations found).')
            admin = ensure_default_admin(email, password, name=args.name)
            if args.dry_run:
                session.rollback()
                state = 'would be created' if admin else 'already exists'
                print(f"[DRY-RUN] (rolled back) Admin {email} {state}")
            else:
                session.commit()
                if admin:
                    print(f"[DONE] Created admin {email} with temporary password.")
                else:
                    print(f"[DONE] Admin {email} already exists; nothing to do.")
            if args.show_roles:
                print('\nRole Permission Summary:')
                print_role_summary()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
