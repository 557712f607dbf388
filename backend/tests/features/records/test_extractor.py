"""
Tests for PREventExtractor.
"""

from datetime import datetime

import pytest

from pbdash.features.concept2 import WorkoutResult, WorkoutResultRepository, parse_result
from pbdash.features.records import PREventExtractor, parse_definition
from pbdash.features.records.extractor import matches, build_event
from pbdash.features.records.repository import PREventRepository

USER = "athlete-1"

TWO_K = parse_definition(dict(
    activity_key="2k_row", activity_name="2000m row", sport="rower",
    metric_type="time", target_distance=2000,
))
HOUR = parse_definition(dict(
    activity_key="60min_row", activity_name="60 minute row", sport="rower",
    metric_type="distance", target_time=36000,
))


def _result(**kwargs) -> WorkoutResult:
    values = dict(result_id=1, sport="rower", distance=2000, time=4800,
                  achieved_at=datetime(2024, 3, 1, 10, 0))
    values.update(kwargs)
    return WorkoutResult(user_id=USER, **values)


async def _store(db, raws) -> list[WorkoutResult]:
    await WorkoutResultRepository(db).add_results(USER, [parse_result(r) for r in raws])
    await db.commit()
    return await WorkoutResultRepository(db).get_for_user(USER)


# =============================================================================
# Test Matching
# =============================================================================

class TestMatches:

    def test_time_record_matches_on_distance(self):
        assert matches(TWO_K, _result(distance=2000, time=4800))
        assert not matches(TWO_K, _result(distance=2001))

    def test_distance_record_matches_on_time(self):
        assert matches(HOUR, _result(distance=15000, time=36000))
        assert not matches(HOUR, _result(distance=15000, time=35999))

    def test_sport_must_match(self):
        assert not matches(TWO_K, _result(sport="skierg"))

    def test_time_record_ignores_time(self):
        """A 2000m piece qualifies whatever its time."""
        assert matches(TWO_K, _result(distance=2000, time=36000))


class TestBuildEvent:

    def test_time_event(self):
        event = build_event(USER, TWO_K, _result(result_id=5, distance=2000, time=12000,
                                                  achieved_at=datetime(2024, 5, 1)))

        assert event.results_id == 5
        assert event.activity_key == "2k_row"
        assert event.metric_type == "time"
        assert event.metric_value == 12000
        assert event.pace_per_500m == 300
        assert event.season_identifier == "2025"
        assert event.pr_scope == []

    def test_distance_event(self):
        event = build_event(USER, HOUR, _result(distance=15000, time=36000))

        assert event.metric_type == "distance"
        assert event.metric_value == 15000
        assert event.pace_per_500m == 120


# =============================================================================
# Test Extraction
# =============================================================================

class TestExtract:

    @pytest.mark.asyncio
    async def test_two_results_make_two_events(self, db, templates, make_result):
        results = await _store(db, [
            make_result(result_id=1, time=4800, date="2024-02-01 09:00:00"),
            make_result(result_id=2, time=4750, date="2024-03-01 09:00:00"),
        ])

        extraction = await PREventExtractor(db).extract(USER, results)

        assert extraction.events_created == 2
        assert extraction.affected_keys == {"2k_row"}

    @pytest.mark.asyncio
    async def test_rerun_creates_nothing(self, db, templates, make_result):
        results = await _store(db, [make_result(result_id=1), make_result(result_id=2, distance=5000)])
        extractor = PREventExtractor(db)
        await extractor.extract(USER, results)
        await db.commit()

        again = await extractor.extract(USER, results)

        assert again.events_created == 0
        assert again.affected_keys == set()
        assert await PREventRepository(db).count_for_user(USER) == 2

    @pytest.mark.asyncio
    async def test_inactive_definitions_ignored(self, db, templates, make_result):
        results = await _store(db, [make_result(result_id=1)])
        extractor = PREventExtractor(db)
        await extractor.catalog.seed_from_template(USER)
        row = await extractor.catalog.types.get_by_key(USER, "2k_row")
        row.is_active = False

        extraction = await extractor.extract(USER, results)

        assert extraction.events_created == 0

    @pytest.mark.asyncio
    async def test_one_result_many_definitions(self, db, make_result):
        results = await _store(db, [make_result(result_id=1, distance=2000, time=36000)])

        extraction = await PREventExtractor(db).extract(USER, results, definitions=[TWO_K, HOUR])

        assert extraction.events_created == 2
        assert extraction.affected_keys == {"2k_row", "60min_row"}

    @pytest.mark.asyncio
    async def test_unusable_result_skipped(self, db):
        extraction = await PREventExtractor(db).extract(
            USER, [_result(result_id=1, time=0), _result(result_id=2)], definitions=[TWO_K]
        )

        assert extraction.skipped_invalid == 1
        assert extraction.events_created == 1

    @pytest.mark.asyncio
    async def test_no_results(self, db, templates):
        extraction = await PREventExtractor(db).extract(USER, [])

        assert extraction.events_created == 0
