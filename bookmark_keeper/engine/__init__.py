"""Engine components orchestrating dedup → probe → partition rewrite."""

from .dedup import dedupe, find_duplicates
from .importer import BookmarkImporter, ImportSummary
from .partitions import (
    BookmarkNotFoundError,
    DeadLinkManager,
    PartitionReconciler,
    ReconcileResult,
    ReconciliationError,
)
from .prober import UrlHealthProber
from .records import Bookmark, BookmarkStatus, DuplicateReport, fingerprint
from .search import filter_bookmarks
from .thread_pool import BoundedProber

__all__ = [
    "Bookmark",
    "BookmarkImporter",
    "BookmarkNotFoundError",
    "BookmarkStatus",
    "BoundedProber",
    "DeadLinkManager",
    "DuplicateReport",
    "ImportSummary",
    "PartitionReconciler",
    "ReconcileResult",
    "ReconciliationError",
    "UrlHealthProber",
    "dedupe",
    "filter_bookmarks",
    "find_duplicates",
    "fingerprint",
]
