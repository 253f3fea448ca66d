"""Batched analytics fetch: user profiles joined with viewing history.

For every user id two keys are read, ``USER#id / PROFILE#id`` and
``USER#id / VIEWING#``. Both keys of a user are planned into the same chunk.
Records are resolved into typed models once, as they come back from the
store, and joined by the user id carried in the request key.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, ValidationError

from ..config import BatchConfig
from ..core.enums import EntityType
from ..core.exceptions import BatchValidationError
from ..core.keys import CompositeKey
from ..models.records import HistoryEntry, Profile, parse_record
from ..runtime.batching import AggregateResult, BatchRunner, OperationRequest, ReadKey
from ..stores.base import KeyValueStore

logger = logging.getLogger(__name__)

MAX_USER_IDS = 100
PROFILE_CATEGORY = "profile"
HISTORY_CATEGORY = "history-entry"

_USER_ID_PATTERN = re.compile(r"^\d+$")


class ViewingRecord(BaseModel):
    movie_id: str
    watch_duration: int
    completed: bool
    watch_date: str | None = None

    model_config = ConfigDict(frozen=True)


class UserAnalytics(BaseModel):
    """Profile and viewing history of one user."""

    user_id: str
    name: str
    subscription_tier: str
    viewing_history: list[ViewingRecord]

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class AnalyticsResponse:
    """Caller-facing result of ``get_user_analytics``."""

    success: bool
    data: list[UserAnalytics] = field(default_factory=list)
    message: str | None = None
    error: str | None = None
    result: AggregateResult | None = None


def validate_user_ids(user_ids: Sequence[str]) -> list[str]:
    """Check user ids and return them deduplicated, in first-seen order.

    Raises:
        BatchValidationError: If the list is empty, too long, or malformed
    """
    if not user_ids:
        raise BatchValidationError("User IDs array cannot be empty", field="user_ids")
    if len(user_ids) > MAX_USER_IDS:
        raise BatchValidationError(
            f"Cannot process more than {MAX_USER_IDS} items in a batch", field="user_ids"
        )
    if not all(isinstance(uid, str) and _USER_ID_PATTERN.match(uid) for uid in user_ids):
        raise BatchValidationError("Invalid user ID format detected", field="user_ids")
    return list(dict.fromkeys(user_ids))


def build_analytics_keys(user_ids: Sequence[str]) -> list[ReadKey]:
    keys: list[ReadKey] = []
    for uid in user_ids:
        keys.append(
            ReadKey(
                key=CompositeKey.of("USER", uid, EntityType.PROFILE.value, uid),
                category=PROFILE_CATEGORY,
            )
        )
        keys.append(
            ReadKey(
                key=CompositeKey.of("USER", uid, EntityType.VIEWING.value, ""),
                category=HISTORY_CATEGORY,
            )
        )
    return keys


def _by_user(request: OperationRequest) -> str:
    return request.key.partition.render()


async def get_user_analytics(
    store: KeyValueStore,
    user_ids: Sequence[str],
    config: BatchConfig | None = None,
) -> AnalyticsResponse:
    """Fetch profiles and viewing histories for many users.

    Users without a stored profile are left out of ``data``. Keys that could
    not be read are listed in ``result.unprocessed``.

    Args:
        store: Store to read from
        user_ids: Numeric user ids (at most 100)
        config: Engine configuration

    Returns:
        AnalyticsResponse; never raises for validation or store failures
    """
    try:
        unique_ids = validate_user_ids(user_ids)
        keys = build_analytics_keys(unique_ids)
        result = await BatchRunner(store, config).get(keys, group_key=_by_user)
    except BatchValidationError as e:
        return AnalyticsResponse(success=False, error=str(e))

    profiles: dict[str, Profile] = {}
    histories: dict[str, list[HistoryEntry]] = {}
    for entry in result.completed:
        if entry.data is None:
            continue
        user_id = entry.request.key.partition.identifier or ""
        try:
            record = parse_record(entry.data)
        except ValidationError as e:
            logger.warning(f"Skipping malformed record {entry.request.key}: {e}")
            continue
        if isinstance(record, Profile):
            profiles[user_id] = record
        elif isinstance(record, HistoryEntry):
            histories.setdefault(user_id, []).append(record)

    data = [
        UserAnalytics(
            user_id=uid,
            name=profiles[uid].name,
            subscription_tier=profiles[uid].subscription_tier,
            viewing_history=[
                ViewingRecord(
                    movie_id=h.movie_id,
                    watch_duration=h.watch_duration,
                    completed=h.completed,
                    watch_date=h.watch_date,
                )
                for h in histories.get(uid, [])
            ],
        )
        for uid in unique_ids
        if uid in profiles
    ]

    if result.success:
        message = "All items retrieved successfully"
    else:
        message = "Some items could not be retrieved after maximum retries"
    return AnalyticsResponse(
        success=result.success,
        data=data,
        message=message,
        error=result.error,
        result=result,
    )
