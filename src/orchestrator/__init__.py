"""Concurrent conversion of workspace projects through a translation port."""

from .executor import Executor, PooledExecutor, SequentialExecutor, create_executor
from .orchestrator import ConversionOrchestrator
from .progress import ProgressReporter, ProgressSink
from .scheduler import build_units

__all__ = [
    "ConversionOrchestrator",
    "Executor",
    "PooledExecutor",
    "ProgressReporter",
    "ProgressSink",
    "SequentialExecutor",
    "build_units",
    "create_executor",
]
