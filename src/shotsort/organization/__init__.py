"""Category tree, folder shaping, conflict detection, and move execution."""

from .conflicts import ConflictDetector
from .errors import (
    ConflictsPendingError,
    ExecutionInProgressError,
    ExecutorBusyError,
    MoveError,
    OptimizerStateError,
    OrganizationError,
    UndoInProgressError,
)
from .executor import ExecutionReport, MoveExecutor, UndoReport
from .filesystem import FileMover, LocalFileSystem, PathExistenceChecker
from .models import (
    ALREADY_EXISTS,
    DUPLICATE_DESTINATION,
    ConflictEntry,
    MoveBatch,
    MoveRecord,
    MoveResult,
)
from .optimizer import (
    OptimizerPhase,
    categories_changed,
    flatten_small_subfolders,
    merge_small_categories,
    optimize_folder_structure,
)
from .paths import PlannedDestination, compute_destination, sanitize_category, sanitize_filename
from .tree import (
    CategoryNode,
    build_category_tree,
    build_tree_from_proposals,
    count_categories,
    find_node,
)

__all__ = [
    "ALREADY_EXISTS",
    "DUPLICATE_DESTINATION",
    "CategoryNode",
    "ConflictDetector",
    "ConflictEntry",
    "ConflictsPendingError",
    "ExecutionInProgressError",
    "ExecutionReport",
    "ExecutorBusyError",
    "FileMover",
    "LocalFileSystem",
    "MoveBatch",
    "MoveError",
    "MoveExecutor",
    "MoveRecord",
    "MoveResult",
    "OptimizerPhase",
    "OptimizerStateError",
    "OrganizationError",
    "PathExistenceChecker",
    "PlannedDestination",
    "UndoInProgressError",
    "UndoReport",
    "build_category_tree",
    "build_tree_from_proposals",
    "categories_changed",
    "compute_destination",
    "count_categories",
    "find_node",
    "flatten_small_subfolders",
    "merge_small_categories",
    "optimize_folder_structure",
    "sanitize_category",
    "sanitize_filename",
]
