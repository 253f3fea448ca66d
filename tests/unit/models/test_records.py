"""Unit tests for stored record models."""

import pytest
from pydantic import ValidationError

from kvlab.batch.models import (
    Episode,
    HistoryEntry,
    Metadata,
    Profile,
    SeriesEpisode,
    Stats,
    UpdateStockRequest,
    parse_record,
)


class TestParseRecord:
    """Test resolution of raw items into typed records."""

    def test_profile(self):
        """Test a profile item resolves to Profile with key aliases."""
        record = parse_record(
            {
                "PK": "USER#1",
                "SK": "PROFILE#1",
                "entity_type": "PROFILE",
                "name": "Ann",
                "subscription_tier": "premium",
            }
        )
        assert isinstance(record, Profile)
        assert record.pk == "USER#1"
        assert record.name == "Ann"

    def test_history_entry(self):
        """Test a viewing item resolves to HistoryEntry."""
        record = parse_record(
            {
                "PK": "USER#1",
                "SK": "VIEWING#",
                "entity_type": "VIEWING",
                "movie_id": "m1",
                "watch_duration": 95,
                "completed": True,
            }
        )
        assert isinstance(record, HistoryEntry)
        assert record.completed is True

    def test_metadata_and_stats_share_models(self):
        """Test movie and series variants select the same models."""
        meta = parse_record(
            {
                "PK": "SERIES#s1",
                "SK": "METADATA",
                "entity_type": "SERIES",
                "title": "Show",
                "release_year": 2020,
                "rating": "TV-14",
                "duration": 45,
            }
        )
        stats = parse_record(
            {
                "PK": "MOVIE#m1",
                "SK": "STATS",
                "entity_type": "MOVIE_STATS",
                "initial_trending": 1.5,
                "release_popularity": 2,
                "language_availability": 3,
            }
        )
        assert isinstance(meta, Metadata)
        assert isinstance(stats, Stats)
        assert stats.total_views == 0

    def test_episode(self):
        """Test an episode item resolves to Episode."""
        record = parse_record(
            {
                "PK": "SERIES#s1",
                "SK": "EPISODE#S01E02",
                "entity_type": "EPISODE",
                "title": "Two",
                "duration": 40,
                "season_number": 1,
                "episode_number": 2,
            }
        )
        assert isinstance(record, Episode)

    def test_unknown_entity_type(self):
        """Test unknown discriminants are rejected."""
        with pytest.raises(ValidationError):
            parse_record({"PK": "X#1", "SK": "Y", "entity_type": "PRODUCT"})

    def test_missing_entity_type(self):
        """Test items without a discriminant are rejected."""
        with pytest.raises(ValidationError):
            parse_record({"PK": "USER#1", "SK": "PROFILE#1", "name": "Ann"})

    def test_records_frozen(self):
        """Test parsed records are immutable."""
        record = parse_record(
            {
                "PK": "USER#1",
                "SK": "PROFILE#1",
                "entity_type": "PROFILE",
                "name": "Ann",
                "subscription_tier": "basic",
            }
        )
        with pytest.raises(ValidationError):
            record.name = "Bob"


class TestInputModels:
    """Test operation input models."""

    def test_episode_code(self):
        """Test zero-padded season/episode code."""
        episode = SeriesEpisode(
            series_id="s1", season_number=1, episode_number=3, title="Three", duration=30
        )
        assert episode.episode_code == "S01E03"

    def test_stock_delta(self):
        """Test add and subtract map to signed deltas."""
        add = UpdateStockRequest(product_id="1", quantity=4, operation="add")
        sub = UpdateStockRequest(product_id="1", quantity=4, operation="subtract")
        assert add.delta == 4
        assert sub.delta == -4
        assert add.updated_by == "system"

    def test_stock_operation_validated(self):
        """Test unknown operations are rejected by the model."""
        with pytest.raises(ValidationError):
            UpdateStockRequest(product_id="1", quantity=1, operation="multiply")
