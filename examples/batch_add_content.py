#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging

from kvlab.batch import BatchConfig, DynamoDBStore, InMemoryStore, StoreSettings
from kvlab.batch.models import ContentMetadata, ContentStats, SeriesEpisode
from kvlab.batch.operations import batch_add_content


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Add a movie and a series with episodes in batches")
    p.add_argument("--table", help="DynamoDB table (in-memory store when omitted)")
    p.add_argument("--endpoint-url", help="DynamoDB endpoint, e.g. http://localhost:8000")
    p.add_argument(
        "--unprocessed",
        type=int,
        default=2,
        help="In-memory only: entries held back on the first call",
    )
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args()


def sample_library() -> tuple[list[ContentMetadata], list[SeriesEpisode], list[ContentStats]]:
    content = [
        ContentMetadata(
            id="m100",
            title="Quiet Harbor",
            type="MOVIE",
            genre=["drama"],
            release_year=2023,
            rating="PG-13",
            duration=112,
            director="A. Lind",
        ),
        ContentMetadata(
            id="s200",
            title="Northern Lines",
            type="SERIES",
            genre=["thriller"],
            release_year=2024,
            rating="TV-MA",
            duration=50,
            creator="K. Osei",
        ),
    ]
    episodes = [
        SeriesEpisode(
            series_id="s200",
            season_number=1,
            episode_number=n,
            title=f"Chapter {n}",
            duration=48,
        )
        for n in range(1, 4)
    ]
    stats = [
        ContentStats(
            content_id=c.id,
            initial_trending=1.0,
            release_popularity=0.8,
            target_demographic=["18-34"],
            language_availability=3,
        )
        for c in content
    ]
    return content, episodes, stats


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.table:
        store = DynamoDBStore(
            StoreSettings(table_name=args.table, endpoint_url=args.endpoint_url)
        )
    else:
        store = InMemoryStore()
        store.schedule_unprocessed(args.unprocessed)

    content, episodes, stats = sample_library()
    response = await batch_add_content(store, content, episodes, stats, BatchConfig.from_env())

    counts = response.processed_items
    print(response.message or response.error)
    print(f"{'Metadata':10} | {'Episodes':>8} | {'Stats':>5}")
    print("-" * 30)
    print(f"{counts.metadata:10} | {counts.episodes:>8} | {counts.stats:>5}")
    for item in response.unprocessed_items:
        print(f"unprocessed {item.type} {item.partition_key}/{item.sort_key}: {item.reason}")


if __name__ == "__main__":
    asyncio.run(main())
