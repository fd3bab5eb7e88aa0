"""autocrud core -- generic repository layer.

Modules
-------
schema          Record type reflection into SchemaDescriptor
values          Text-array and driver value conversion
dialect         Dialect protocol: PostgreSQL, SQL Server, SQLite
sql             Pure SQL synthesis (projection, select, search, upsert)
metadata        TableMetadataCache / TableMetadataEntry
repository      Repository: count, find, search, insert, delete, bulk
bulk            Bulk loaders, encoders, background runner
adapters        DatabaseAdapter per backend + registry
validation      CrudValidation hooks
registration    CrudRegistry wiring
settings        AutoCrudSettings (pydantic-settings)
errors          CrudError hierarchy
logging         structlog configuration
"""

from autocrud.core.errors import (
    BackendExecutionFailure,
    ColumnCountMismatch,
    ConfigError,
    CrudError,
    DuplicateBinding,
    InvalidArgument,
    InvalidIdentifier,
    UnknownColumn,
    UnsupportedColumnType,
)
from autocrud.core.metadata import TableMetadataCache, TableMetadataEntry
from autocrud.core.repository import Repository
from autocrud.core.schema import CHAR, FieldDescriptor, FieldType, SchemaDescriptor, describe_record

__all__ = [
    "CHAR",
    "BackendExecutionFailure",
    "ColumnCountMismatch",
    "ConfigError",
    "CrudError",
    "DuplicateBinding",
    "FieldDescriptor",
    "FieldType",
    "InvalidArgument",
    "InvalidIdentifier",
    "Repository",
    "SchemaDescriptor",
    "TableMetadataCache",
    "TableMetadataEntry",
    "UnknownColumn",
    "UnsupportedColumnType",
    "describe_record",
]
