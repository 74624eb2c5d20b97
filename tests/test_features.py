"""
Tests for the Feature Aggregator (samples -> WeatherData)

Run with: python -m pytest tests/test_features.py -v
"""

import logging
from datetime import date, datetime, time, timezone

import pytest

from conftest import PARIS_TZ, day_samples, make_sample
from sunset_score.errors import InsufficientData
from sunset_score.features import aggregate, select_window

logger = logging.getLogger(__name__)

DAY = date(2026, 10, 19)


def at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=PARIS_TZ)


@pytest.fixture
def evening():
    """17:00-20:00 with distinct values per hour."""
    return [
        make_sample(at(17), cloud=0.1, humidity=0.3, visibility=10),
        make_sample(at(18), cloud=0.6, humidity=0.4, visibility=30),
        make_sample(at(19), cloud=0.2, humidity=0.8, visibility=50),
        make_sample(at(20), cloud=0.9, humidity=0.9, visibility=5),
    ]


class TestSelectWindow:

    def test_sunset_hour_and_next(self, evening):
        window = select_window(evening, at(18))
        assert window["hour"].tolist() == [18, 19]

    def test_same_day_filter(self):
        samples = day_samples(DAY) + day_samples(date(2026, 10, 20))
        window = select_window(samples, at(18), same_day=True)

        assert len(window) == 2
        assert set(window["day"]) == {DAY}

    def test_hour_only_filter_spans_days(self):
        samples = day_samples(DAY) + day_samples(date(2026, 10, 20))
        window = select_window(samples, at(18), same_day=False)
        assert len(window) == 4

    def test_utc_samples_are_localized(self):
        # 16:00 UTC is 18:00 in Paris on 19 Oct (CEST)
        samples = [
            make_sample(datetime(2026, 10, 19, 16, 0, tzinfo=timezone.utc)),
            make_sample(datetime(2026, 10, 19, 17, 0, tzinfo=timezone.utc)),
        ]
        window = select_window(samples, at(18))
        assert window["hour"].tolist() == [18, 19]

    def test_empty_input(self):
        assert select_window([], at(18)).empty


class TestAggregate:

    def test_on_the_hour_uses_sunset_hour_values(self, evening):
        weather = aggregate(evening, at(18))
        logger.info(f"[TEST] WeatherData: {weather}")

        assert weather.high_cloud == pytest.approx(0.6)
        assert weather.mid_cloud == pytest.approx(0.3)
        assert weather.low_cloud == pytest.approx(0.18)
        assert weather.humidity == pytest.approx(0.4)
        assert weather.visibility_km == pytest.approx(30)

    def test_blends_by_minute(self, evening):
        weather = aggregate(evening, at(18, 45))

        assert weather.high_cloud == pytest.approx(0.6 * 0.25 + 0.2 * 0.75)
        assert weather.mid_cloud == pytest.approx((0.6 * 0.25 + 0.2 * 0.75) * 0.5)
        assert weather.low_cloud == pytest.approx((0.6 * 0.25 + 0.2 * 0.75) * 0.3)
        assert weather.humidity == pytest.approx(0.4 * 0.25 + 0.8 * 0.75)
        assert weather.visibility_km == pytest.approx(30 * 0.25 + 50 * 0.75)

    def test_only_first_two_qualifying_samples_used(self):
        samples = (
            day_samples(DAY, hours=(18, 19), cloud=0.2)
            + day_samples(date(2026, 10, 20), hours=(18, 19), cloud=0.9)
        )
        weather = aggregate(samples, at(18, 30), same_day=False)
        assert weather.high_cloud == pytest.approx(0.2)

    def test_single_sample_is_insufficient(self, evening):
        with pytest.raises(InsufficientData) as exc_info:
            aggregate(evening[:2], at(18))
        assert exc_info.value.found == 1

    def test_no_samples_is_insufficient(self):
        with pytest.raises(InsufficientData) as exc_info:
            aggregate([], at(18))
        assert exc_info.value.found == 0

    def test_late_sunset_hour_has_no_next_hour(self):
        samples = day_samples(DAY, hours=(22, 23)) + day_samples(date(2026, 10, 20), hours=(0,))
        with pytest.raises(InsufficientData):
            aggregate(samples, at(23, 10))

    def test_other_day_rejected_with_same_day(self):
        samples = day_samples(date(2026, 10, 20), hours=(18, 19))

        with pytest.raises(InsufficientData):
            aggregate(samples, at(18), same_day=True)

        weather = aggregate(samples, at(18), same_day=False)
        assert weather.high_cloud == pytest.approx(0.5)
