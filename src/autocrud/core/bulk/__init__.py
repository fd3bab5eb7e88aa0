"""Bulk load -- stream a batch of records through a backend's fastest channel.

Modules
-------
encoders        ColumnType variant, LiveColumn, per-type value encoders
loader          BulkLoader base (live-schema probe + load/commit) and BulkPlan
postgresql      BinaryCopyLoader (psycopg binary COPY)
tabular         TabularBulkLoader, SqlServerBulkLoader, SQLiteBulkLoader
runner          BulkLoadRunner background thread pool

Tags:
    autocrud, bulk, copy, fast-executemany
"""

from autocrud.core.bulk.encoders import ENCODERS, ColumnType, LiveColumn, encode
from autocrud.core.bulk.loader import BulkLoader, BulkPlan
from autocrud.core.bulk.postgresql import BinaryCopyLoader
from autocrud.core.bulk.runner import BulkLoadRunner
from autocrud.core.bulk.tabular import (
    SQLiteBulkLoader,
    SqlServerBulkLoader,
    TabularBulkLoader,
)

__all__ = [
    "ENCODERS",
    "BinaryCopyLoader",
    "BulkLoadRunner",
    "BulkLoader",
    "BulkPlan",
    "ColumnType",
    "LiveColumn",
    "SQLiteBulkLoader",
    "SqlServerBulkLoader",
    "TabularBulkLoader",
    "encode",
]
