"""Golden-master characterization of workspace conversions.

The end-to-end entry point lives in :mod:`characterization.harness`.
"""

from .aggregator import ResultTable, aggregate
from .discovery import DEFAULT_EXCLUDED_DIRS, discover_expected_files
from .paths import map_to_source, map_to_target, path_key
from .validator import validate
from .writer import write_outcomes

__all__ = [
    "DEFAULT_EXCLUDED_DIRS",
    "ResultTable",
    "aggregate",
    "discover_expected_files",
    "map_to_source",
    "map_to_target",
    "path_key",
    "validate",
    "write_outcomes",
]
