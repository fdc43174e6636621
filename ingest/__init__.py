"""
Ingest package exports.
"""

from .context import LoadContext, setup_logging
from .batch_load import LoadReport, load_files_with_progress, run_load
from .parser import AppsInstalled, parse_appsinstalled
from .encoder import UserApps, decode_user_apps, encode_user_apps
from .writer import CacheWriter
from .file_processor import ErrorRateCounter, FileProcessor, FileResult
from .worker_pool import CompletionSlot, FileOutcome, FileTask, WorkerPool
from .marker import CompletionCoordinator, dot_rename
from .utils import list_log_files

__all__ = [
    "LoadContext",
    "setup_logging",
    "LoadReport",
    "load_files_with_progress",
    "run_load",
    "AppsInstalled",
    "parse_appsinstalled",
    "UserApps",
    "decode_user_apps",
    "encode_user_apps",
    "CacheWriter",
    "ErrorRateCounter",
    "FileProcessor",
    "FileResult",
    "CompletionSlot",
    "FileOutcome",
    "FileTask",
    "WorkerPool",
    "CompletionCoordinator",
    "dot_rename",
    "list_log_files",
]
