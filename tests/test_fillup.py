#!/usr/bin/env python3
"""Tests for Fillup records, inputs and patches."""

from datetime import date, datetime

import pytest

from fuellog import Fillup, FillupInput, FillupPatch, FillupUpdate, parse_timestamp
from fuellog.fillup import chain_key


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_date_string(self):
        assert parse_timestamp("2024-12-01") == datetime(2024, 12, 1)

    def test_datetime_string(self):
        assert parse_timestamp("2024-12-01T08:30:00") == datetime(2024, 12, 1, 8, 30)

    def test_offset_converted_to_utc(self):
        assert parse_timestamp("2024-12-01T08:30:00+02:00") == datetime(
            2024, 12, 1, 6, 30
        )
        assert parse_timestamp("2024-12-01T08:30:00Z") == datetime(2024, 12, 1, 8, 30)

    def test_date_object(self):
        assert parse_timestamp(date(2024, 12, 1)) == datetime(2024, 12, 1)

    @pytest.mark.parametrize("value", ["not a date", "2024-02-30", None, 20241201])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)


class TestFillup:
    """Tests for the Fillup class."""

    def test_price_per_unit(self):
        fillup = Fillup("car", "2024-12-01", 40, 260)
        assert fillup.price_per_unit == pytest.approx(6.5)

    def test_apply(self):
        fillup = Fillup("car", "2024-12-01", 40, 260, odometer=500)
        fillup.apply({"distance_traveled": 500, "fuel_consumption": 8.0})
        assert fillup.distance_traveled == 500
        assert fillup.fuel_consumption == 8.0

    def test_chain_key_orders_by_date_then_id(self):
        a = Fillup("car", "2024-12-02", 40, 260, id=1)
        b = Fillup("car", "2024-12-01", 40, 260, id=5)
        c = Fillup("car", "2024-12-01", 40, 260, id=2)
        unsaved = Fillup("car", "2024-12-01", 40, 260)

        ordered = sorted([a, b, unsaved, c], key=chain_key)

        assert ordered == [c, b, unsaved, a]


class TestInputs:
    """Tests for FillupInput and FillupUpdate."""

    def test_input_dict_omits_missing(self):
        fillup_input = FillupInput("2024-12-01", 40, 260, odometer=500)
        assert fillup_input.to_dict() == {
            "date": "2024-12-01",
            "fuel_amount": 40,
            "total_price": 260,
            "odometer": 500,
        }

    def test_update_fields_rename_distance(self):
        update = FillupUpdate(distance=300, total_price=100)
        assert update.to_fields() == {"distance_traveled": 300, "total_price": 100}

    def test_empty_update(self):
        assert FillupUpdate().to_fields() == {}


class TestFillupPatch:
    """Tests for FillupPatch.as_fields."""

    def test_derived_distance_written(self):
        patch = FillupPatch(1, 500, 8.0)
        assert patch.as_fields() == {"distance_traveled": 500, "fuel_consumption": 8.0}

    def test_entered_distance_not_written(self):
        patch = FillupPatch(1, 500, 8.0, derived_distance=False)
        assert patch.as_fields() == {"fuel_consumption": 8.0}

    def test_null_consumption_written(self):
        patch = FillupPatch(1, 0, None)
        assert patch.as_fields() == {"distance_traveled": 0, "fuel_consumption": None}
