"""Copy a dataset from one storage backend to another.

Used when switching a deployment between the document and indexed
backends. Both backends must already be open.
"""
from __future__ import annotations
import logging

from .base import StorageBackend

logger = logging.getLogger(__name__)


def copy_dataset(source: StorageBackend, target: StorageBackend, dry_run: bool = False) -> int:
    """Copy every entry of `source` into `target` and return the entry count.

    Existing entries in `target` with the same (namespace, key) are
    overwritten; other entries in `target` are left alone. With
    `dry_run=True` nothing is written.
    """
    copied = 0
    for namespace in source.list_namespaces():
        entries = source.get_namespace(namespace)
        logger.info("Copying namespace %s (%d keys)%s", namespace, len(entries), " [dry-run]" if dry_run else "")
        for key, value in entries.items():
            if not dry_run:
                target.set(namespace, key, value)
            copied += 1
    return copied
