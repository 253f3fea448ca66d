"""Data models."""

from .content import ContentMetadata, ContentStats, ContentType, SeriesEpisode
from .inventory import Product, StockOperation, UpdateStockRequest
from .records import (
    Episode,
    HistoryEntry,
    Languages,
    Metadata,
    Profile,
    Record,
    Stats,
    StoredRecord,
    parse_record,
)

__all__ = [
    "ContentMetadata",
    "ContentStats",
    "ContentType",
    "SeriesEpisode",
    "Product",
    "StockOperation",
    "UpdateStockRequest",
    "Episode",
    "HistoryEntry",
    "Languages",
    "Metadata",
    "Profile",
    "Record",
    "Stats",
    "StoredRecord",
    "parse_record",
]
