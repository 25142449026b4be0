"""CLI for database setup and maintenance."""
import argparse
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def cmd_init_db(args):
    """Create all tables from the SQLAlchemy models."""
    from sqlalchemy import inspect

    from finai.core.database import get_engine, init_db

    init_db()
    tables = sorted(t for t in inspect(get_engine()).get_table_names() if t != "alembic_version")
    print(f"Database ready, {len(tables)} tables: {', '.join(tables)}")
    return 0


def cmd_seed(args):
    """Insert the sample transactions into an empty ledger."""
    from finai.core.database import get_session_local, init_db
    from finai.services.transaction_service import TransactionService

    init_db()
    db = get_session_local()()
    try:
        inserted = TransactionService(db).seed_demo_transactions()
    finally:
        db.close()

    if inserted:
        print(f"Inserted {inserted} demo transactions")
    else:
        print("Ledger is not empty; nothing inserted")
    return 0


def cmd_migrate(args):
    """Run alembic upgrade head."""
    return subprocess.call([sys.executable, "-m", "alembic", "upgrade", args.revision], cwd=str(ROOT))


def cmd_stamp(args):
    """Stamp alembic revision (pass-through to alembic stamp)."""
    return subprocess.call([sys.executable, "-m", "alembic", "stamp", args.revision], cwd=str(ROOT))


def build_parser():
    p = argparse.ArgumentParser(prog="finai-manage")
    sub = p.add_subparsers(dest="cmd")
    s = sub.add_parser("init-db", help="Create database tables")
    s.set_defaults(func=cmd_init_db)
    s = sub.add_parser("seed", help="Insert demo transactions into an empty ledger")
    s.set_defaults(func=cmd_seed)
    s = sub.add_parser("migrate", help="Run migrations (upgrade head)")
    s.add_argument("--revision", "-r", help="Target revision", default="head")
    s.set_defaults(func=cmd_migrate)
    s = sub.add_parser("stamp", help="Stamp alembic to a revision")
    s.add_argument("--revision", "-r", help="Revision to stamp", default="head")
    s.set_defaults(func=cmd_stamp)
    return p


def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    if not hasattr(args, "func"):
        p.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
