"""Shell-backed file-system operations for functional tests."""

__version__ = "0.1.0"

from fsrunners.errors import (
    CapabilityError,
    DirectoryDeletionError,
    FsRunnersError,
    OperationFailedError,
    ProcessLaunchError,
)
from fsrunners.operations import FileSystemOperations
from fsrunners.protocols import Invoker, Runner
from fsrunners.types import (
    ClassifiedOutcome,
    InvocationResult,
    Operation,
    OperationKind,
    OutcomeCategory,
    RetryPolicy,
)

__all__ = [
    "__version__",
    "CapabilityError",
    "ClassifiedOutcome",
    "DirectoryDeletionError",
    "FileSystemOperations",
    "FsRunnersError",
    "InvocationResult",
    "Invoker",
    "Operation",
    "OperationFailedError",
    "OperationKind",
    "OutcomeCategory",
    "ProcessLaunchError",
    "RetryPolicy",
    "Runner",
]
