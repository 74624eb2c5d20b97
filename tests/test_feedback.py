"""
Tests for community feedback capture and the location fallback

Run with: python -m pytest tests/test_feedback.py -v
"""

import logging
import sqlite3
from datetime import datetime, timezone

import pytest

from conftest import PARIS, FakeClock
from sunset_score.errors import PermissionDenied, SubmitError
from sunset_score.feedback import FeedbackService, FeedbackStore, SqliteFeedbackStore, haversine_km
from sunset_score.location import FallbackLocationProvider, StaticLocationProvider
from sunset_score.models import DEFAULT_COORDINATE, Coordinate

logger = logging.getLogger(__name__)

SUBMITTED = datetime(2026, 10, 19, 19, 30, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    """Create a fresh feedback database for each test."""
    store = SqliteFeedbackStore(db_path=tmp_path / "data" / "feedback.db")
    yield store
    store.close()


@pytest.fixture
def service(store):
    return FeedbackService(store, clock=FakeClock(SUBMITTED))


class BrokenStore(FeedbackStore):

    def save(self, record):
        raise sqlite3.OperationalError("database is locked")


class TestFeedbackService:

    def test_coordinate_is_blurred(self, service):
        record = service.submit(PARIS, predicted_score=72, user_label="dull", reason="Haze_Issue")

        assert record.coordinate == Coordinate(48.9, 2.4)
        assert record.submitted_at == SUBMITTED

    def test_row_written(self, service, store):
        service.submit(PARIS, predicted_score=72, user_label="dull", reason="LowCloud_Block")

        rows = store.conn.execute(
            "SELECT latitude, longitude, predicted_score, user_label, flip_reason FROM feedback"
        ).fetchall()
        logger.info(f"[TEST] Feedback rows: {rows}")
        assert rows == [(48.9, 2.4, 72, "dull", "LowCloud_Block")]

    def test_reason_is_optional(self, service, store):
        record = service.submit(PARIS, predicted_score=30, user_label="great")
        assert record.reason is None

    def test_unknown_reason_rejected(self, service, store):
        with pytest.raises(ValueError):
            service.submit(PARIS, predicted_score=72, user_label="dull", reason="Aliens")

        assert store.conn.execute("SELECT COUNT(*) FROM feedback").fetchone()[0] == 0

    def test_store_failure_becomes_submit_error(self):
        service = FeedbackService(BrokenStore(), clock=FakeClock(SUBMITTED))

        with pytest.raises(SubmitError) as exc_info:
            service.submit(PARIS, predicted_score=72, user_label="dull")
        assert "database is locked" in str(exc_info.value)


class TestRecordsNear:

    def test_radius(self, service, store):
        service.submit(PARIS, predicted_score=72, user_label="dull")
        service.submit(Coordinate(48.80, 2.13), predicted_score=55, user_label="great")  # Versailles
        service.submit(Coordinate(45.76, 4.83), predicted_score=60, user_label="great")  # Lyon

        nearby = store.records_near(PARIS, radius_km=50)

        assert [r.predicted_score for r in nearby] == [72, 55]
        assert nearby[0].submitted_at == SUBMITTED

    def test_haversine(self):
        lyon = Coordinate(45.7640, 4.8357)
        assert haversine_km(PARIS, lyon) == pytest.approx(392, abs=5)
        assert haversine_km(PARIS, PARIS) == 0


class TestLocation:

    def test_static_provider(self):
        assert StaticLocationProvider().current_coordinate() == DEFAULT_COORDINATE
        tokyo = Coordinate(35.6762, 139.6503)
        assert StaticLocationProvider(tokyo).current_coordinate() == tokyo

    def test_permission_denied_falls_back_to_paris(self):
        def resolver():
            raise PermissionDenied("location")

        provider = FallbackLocationProvider(resolver)

        assert provider.current_coordinate() == DEFAULT_COORDINATE
        assert "Paris" in provider.last_error

    def test_no_fix_falls_back(self):
        provider = FallbackLocationProvider(lambda: None)
        assert provider.current_coordinate() == DEFAULT_COORDINATE
        assert provider.last_error is None

    def test_resolved_coordinate_used(self):
        tokyo = Coordinate(35.6762, 139.6503)
        provider = FallbackLocationProvider(lambda: tokyo)
        assert provider.current_coordinate() == tokyo
