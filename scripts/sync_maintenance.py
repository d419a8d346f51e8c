import argparse
import sys

from app.database import SessionLocal
from app.middleware.maintenance import cli_page_context
from app.tasks.maintenance_sync import sync_all_instances, sync_instance


def main(argv=None):
    parser = argparse.ArgumentParser(description="Sync the maintenance mode from Opencast")
    parser.add_argument("--ocinstanceid", type=int, default=None, help="instance to sync, default instance if omitted")
    parser.add_argument("--all", action="store_true", help="sync every configured instance")
    args = parser.parse_args(argv)

    page = cli_page_context()
    db = SessionLocal()
    try:
        if args.all:
            results = sync_all_instances(db, page)
        else:
            results = {args.ocinstanceid or "default": sync_instance(db, args.ocinstanceid, page)}
    finally:
        db.close()

    for ocinstanceid, result in results.items():
        print(f"Instance {ocinstanceid}: {'synced' if result else 'not synced'}")
    return 0 if all(results.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
