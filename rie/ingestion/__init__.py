"""
Public import API surface.

External callers (CLI, services, tests) should import from here rather than
reaching into submodules directly.

The import subsystem includes:
    • ImportEngine: resolves, writes, and commits one group at a time
    • ImportResult: outcome of one group import
    • RetryPolicy / CommitConflictError: commit retry configuration
    • infer / wrap_resolvable_link: raw value grammar
    • import_file / scan / summarize: file-level helpers
"""

from .commit import CommitConflictError, CommitState, RetryPolicy
from .file_import import expand_path, import_file, scan
from .orchestrator import ImportEngine
from .result import ImportResult, summarize
from .value_inference import infer, wrap_resolvable_link

__all__ = [
    "CommitConflictError",
    "CommitState",
    "ImportEngine",
    "ImportResult",
    "RetryPolicy",
    "expand_path",
    "import_file",
    "infer",
    "scan",
    "summarize",
    "wrap_resolvable_link",
]
