"""autocrud -- generated CRUD and bulk load for record types over relational backends."""

from autocrud.core import (
    CHAR,
    Repository,
    TableMetadataCache,
    describe_record,
)
from autocrud.core.adapters import get_adapter
from autocrud.core.registration import CrudRegistry

__version__ = "0.1.0"

__all__ = [
    "CHAR",
    "CrudRegistry",
    "Repository",
    "TableMetadataCache",
    "__version__",
    "describe_record",
    "get_adapter",
]
