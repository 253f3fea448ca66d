"""Batched content ingestion: metadata, stats and series episodes.

Each content item produces a metadata write, a stats write and, for series,
one write per episode. All writes of one content item share a partition key
and are planned into the same chunk.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from ..config import BatchConfig
from ..core.enums import EntityType
from ..core.exceptions import BatchValidationError
from ..core.keys import CompositeKey, KeyPart
from ..models.content import ContentMetadata, ContentStats, SeriesEpisode
from ..runtime.batching import AggregateResult, BatchRunner, OperationRequest, WriteItem
from ..stores.base import KeyValueStore

MAX_CONTENT_ITEMS = 25
METADATA_CATEGORY = "metadata"
STATS_CATEGORY = "stats"
EPISODE_CATEGORY = "episode"

ItemType = Literal["metadata", "episode", "stats"]

METADATA_TYPES = {"MOVIE": EntityType.MOVIE, "SERIES": EntityType.SERIES}
STATS_TYPES = {"MOVIE": EntityType.MOVIE_STATS, "SERIES": EntityType.SERIES_STATS}


@dataclass(frozen=True)
class ProcessedCounts:
    metadata: int = 0
    episodes: int = 0
    stats: int = 0


@dataclass(frozen=True)
class UnprocessedContentItem:
    """A write that did not complete, as reported to callers.

    Attributes:
        item_id: Content id the write belongs to (the series id for episodes)
        type: Which kind of write it was
        reason: Terminal reason message
        partition_key: Rendered partition key, e.g. "SERIES#s1"
        sort_key: Rendered sort key, e.g. "EPISODE#S01E02"
    """

    item_id: str
    type: ItemType
    reason: str
    partition_key: str = ""
    sort_key: str = ""


@dataclass(frozen=True)
class ContentWriteResponse:
    """Caller-facing result of ``batch_add_content``."""

    success: bool
    processed_items: ProcessedCounts = field(default_factory=ProcessedCounts)
    unprocessed_items: list[UnprocessedContentItem] = field(default_factory=list)
    message: str | None = None
    error: str | None = None
    result: AggregateResult | None = None


def validate_content(
    content: Sequence[ContentMetadata],
    episodes: Sequence[SeriesEpisode],
    stats: Sequence[ContentStats],
) -> None:
    """Check cross-item consistency of a content batch.

    Raises:
        BatchValidationError: On the first inconsistency found
    """
    if not content:
        raise BatchValidationError("No content items provided", field="content")
    if len(content) > MAX_CONTENT_ITEMS:
        raise BatchValidationError(
            f"Batch size exceeds maximum limit of {MAX_CONTENT_ITEMS} items", field="content"
        )

    types: dict[str, str] = {}
    for item in content:
        if item.id in types:
            raise BatchValidationError(f"Duplicate content item {item.id}", field="content")
        types[item.id] = item.type

    stats_ids = {s.content_id for s in stats}
    series_with_episodes = {ep.series_id for ep in episodes}
    for item in content:
        if item.type == "SERIES" and item.id not in series_with_episodes:
            raise BatchValidationError(
                f"No episodes provided for series {item.id}", field="episodes"
            )
        if item.id not in stats_ids:
            raise BatchValidationError(f"Missing stats for content {item.id}", field="stats")

    for ep in episodes:
        if types.get(ep.series_id) != "SERIES":
            raise BatchValidationError(
                f"Episode {ep.episode_code} references unknown series {ep.series_id}",
                field="episodes",
            )


def build_content_writes(
    content: Sequence[ContentMetadata],
    episodes: Sequence[SeriesEpisode],
    stats: Sequence[ContentStats],
) -> list[WriteItem]:
    """Build the metadata, stats and episode writes for a content batch."""
    stats_by_id = {s.content_id: s for s in stats}
    writes: list[WriteItem] = []

    for item in content:
        entity = METADATA_TYPES[item.type]
        partition = KeyPart(entity.value, item.id)

        payload: dict[str, Any] = {
            "entity_type": entity.value,
            "title": item.title,
            "genre": list(item.genre),
            "release_year": item.release_year,
            "rating": item.rating,
            "languages": item.languages.model_dump(),
            "duration": item.duration,
            "cast": list(item.cast),
        }
        if item.director:
            payload["director"] = item.director
        if item.creator:
            payload["creator"] = item.creator
        writes.append(
            WriteItem(
                key=CompositeKey(partition, KeyPart("METADATA")),
                payload=payload,
                category=METADATA_CATEGORY,
            )
        )

        item_stats = stats_by_id.get(item.id)
        if item_stats is not None:
            writes.append(
                WriteItem(
                    key=CompositeKey(partition, KeyPart("STATS")),
                    payload={
                        "entity_type": STATS_TYPES[item.type].value,
                        "initial_trending": item_stats.initial_trending,
                        "release_popularity": item_stats.release_popularity,
                        "target_demographic": list(item_stats.target_demographic),
                        "language_availability": item_stats.language_availability,
                        "total_views": 0,
                        "average_rating": 0,
                        "completion_rate": 0,
                    },
                    category=STATS_CATEGORY,
                )
            )

        if entity is EntityType.SERIES:
            for ep in episodes:
                if ep.series_id != item.id:
                    continue
                sort = KeyPart(EntityType.EPISODE.value, ep.episode_code)
                writes.append(
                    WriteItem(
                        key=CompositeKey(partition, sort),
                        payload={
                            "entity_type": EntityType.EPISODE.value,
                            "title": ep.title,
                            "duration": ep.duration,
                            "synopsis": ep.synopsis,
                            "season_number": ep.season_number,
                            "episode_number": ep.episode_number,
                        },
                        category=EPISODE_CATEGORY,
                    )
                )

    return writes


def _by_content(request: OperationRequest) -> str:
    return request.key.partition.render()


async def batch_add_content(
    store: KeyValueStore,
    content: Sequence[ContentMetadata],
    episodes: Sequence[SeriesEpisode],
    stats: Sequence[ContentStats],
    config: BatchConfig | None = None,
) -> ContentWriteResponse:
    """Add content, stats and episodes to the library in batches.

    Each completed write is counted exactly once, when the store first
    accepts it.

    Args:
        store: Store to write to
        content: Movies and series (at most 25)
        episodes: Episodes of the series in ``content``
        stats: One stats entry per content item
        config: Engine configuration

    Returns:
        ContentWriteResponse; never raises for validation or store failures
    """
    try:
        validate_content(content, episodes, stats)
        writes = build_content_writes(content, episodes, stats)
        result = await BatchRunner(store, config).write(writes, group_key=_by_content)
    except BatchValidationError as e:
        return ContentWriteResponse(success=False, error=str(e))

    processed = ProcessedCounts(
        metadata=result.count(METADATA_CATEGORY),
        episodes=result.count(EPISODE_CATEGORY),
        stats=result.count(STATS_CATEGORY),
    )
    unprocessed = [
        UnprocessedContentItem(
            item_id=entry.request.key.partition.identifier or "",
            type=entry.request.category,  # type: ignore[arg-type]
            reason=entry.message,
            partition_key=entry.request.key.partition.render(),
            sort_key=entry.request.key.sort.render(),
        )
        for entry in result.unprocessed
    ]

    return ContentWriteResponse(
        success=result.success,
        processed_items=processed,
        unprocessed_items=unprocessed,
        message=(
            "All items processed successfully"
            if result.success
            else "Some items were not processed"
        ),
        error=result.error,
        result=result,
    )
