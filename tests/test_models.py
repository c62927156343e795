# ABOUTME: Contract tests for the canonical Pydantic models.
# ABOUTME: Validates defaults and bounds on snapshots, forecasts and location candidates.

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from src.models import Condition, GpsFix, HourlyForecast, LocationCandidate

CLEAR = Condition(description="Clear sky", icon="01d")


class TestWeatherSnapshot:
    def test_empty_lists_by_default(self, snapshot_factory):
        """WeatherSnapshot defaults to empty hourly and daily lists.

        Implementation: Builds a snapshot with only current readings.
        Passing implies: Lists default to empty, not None, and units default to metric.
        """
        snap = snapshot_factory()
        assert snap.hourly == []
        assert snap.daily == []
        assert snap.units == "metric"
        assert snap.timezone_offset_seconds == 0

    def test_rejects_unknown_unit_system(self, snapshot_factory):
        """Only metric and imperial are accepted.

        Implementation: Passes units="kelvin".
        Passing implies: The unit system is validated at construction.
        """
        with pytest.raises(ValidationError):
            snapshot_factory(units="kelvin")


class TestHourlyForecast:
    def test_precipitation_probability_is_bounded(self):
        """Precipitation probability must lie within [0, 1].

        Implementation: Constructs an hourly entry with probability 1.5.
        Passing implies: Percent values cannot leak in unscaled.
        """
        with pytest.raises(ValidationError):
            HourlyForecast(
                timestamp=datetime(2025, 1, 15, tzinfo=timezone.utc),
                temperature=20.0,
                conditions=CLEAR,
                precipitation_probability=1.5,
            )


class TestLocationCandidate:
    def test_optional_fields_default_to_empty(self):
        """LocationCandidate only needs coordinates and a source.

        Implementation: Constructs a candidate with the minimum fields.
        Passing implies: Address parts default to None or empty strings.
        """
        c = LocationCandidate(latitude=1.0, longitude=2.0, source="Test")
        assert c.postcode is None
        assert c.village is None
        assert c.city == ""
        assert c.confidence == 0

    def test_confidence_cannot_be_negative(self):
        """Confidence is bounded to 0..100.

        Implementation: Constructs candidates with -1 and 101.
        Passing implies: Out-of-range scores are rejected.
        """
        with pytest.raises(ValidationError):
            LocationCandidate(latitude=0, longitude=0, source="Test", confidence=-1)
        with pytest.raises(ValidationError):
            LocationCandidate(latitude=0, longitude=0, source="Test", confidence=101)


class TestGpsFix:
    def test_accuracy_defaults_to_unknown(self):
        """A fix without accuracy is treated as very coarse.

        Implementation: Constructs a GpsFix without accuracy.
        Passing implies: Missing accuracy defaults to 999 meters.
        """
        assert GpsFix(latitude=1.0, longitude=2.0).accuracy == 999.0
