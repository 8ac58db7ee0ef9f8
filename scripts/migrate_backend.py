#!/usr/bin/env python3
"""Copy the C-Store dataset between storage backends.

Usage: python3 scripts/migrate_backend.py --from document --to indexed [--data-dir data] [--dry-run]

Both backends resolve their files under `--data-dir` (`data.json` and
`data.db`). Entries already present in the target are overwritten.
"""
import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from cstore_lib.storage import BACKENDS, StorageError, create_storage  # noqa: E402
from cstore_lib.storage.migrate import copy_dataset  # noqa: E402


def main(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument('--from', dest='source', choices=BACKENDS, required=True)
    p.add_argument('--to', dest='target', choices=BACKENDS, required=True)
    p.add_argument('--data-dir', default='data')
    p.add_argument('--dry-run', action='store_true', help='report what would be copied')
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(message)s')
    if args.source == args.target:
        print("Source and target backends are the same; nothing to do")
        return 1

    try:
        with create_storage(args.source, data_dir=args.data_dir) as source, \
                create_storage(args.target, data_dir=args.data_dir) as target:
            copied = copy_dataset(source, target, dry_run=args.dry_run)
    except StorageError as e:
        print(f"Migration failed: {e}")
        return 2

    verb = "Would copy" if args.dry_run else "Copied"
    print(f"{verb} {copied} entries from {args.source} to {args.target}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
