"""Core components."""

from .enums import ConditionalStatus, EntityType, TerminalReason, WriteAction
from .exceptions import (
    BatchError,
    BatchValidationError,
    StoreError,
    StoreRejectedError,
    StoreTimeoutError,
    ThrottledError,
)
from .keys import PARTITION_ATTR, SORT_ATTR, CompositeKey, KeyPart

__all__ = [
    "ConditionalStatus",
    "EntityType",
    "TerminalReason",
    "WriteAction",
    "BatchError",
    "BatchValidationError",
    "StoreError",
    "StoreRejectedError",
    "StoreTimeoutError",
    "ThrottledError",
    "CompositeKey",
    "KeyPart",
    "PARTITION_ATTR",
    "SORT_ATTR",
]
