#!/usr/bin/env python3
"""
Tests for the chain recalculator.

Covers the chain properties:
1. Anchoring - the first fillup is measured from the baseline odometer
2. Idempotence - a second pass over unchanged data finds nothing to update
3. Ordering - date order (then id) decides neighbours, not list order
4. Warnings - backwards and repeated odometer readings are flagged, not blocked
5. Mode isolation - distance-mode fillups keep their entered distance
"""

import pytest
from fuellog import (
    Fillup,
    MileageMode,
    Vehicle,
    WarningKind,
    chain_reference,
    recalculate,
    sort_chain,
)


def make_fillup(id, date, odometer=None, fuel=50.0, distance=None, cons=None):
    return Fillup(
        vehicle_id="car",
        date=date,
        fuel_amount=fuel,
        total_price=fuel * 6,
        odometer=odometer,
        distance_traveled=distance,
        fuel_consumption=cons,
        id=id,
    )


def apply_patches(fillups, result):
    by_id = {f.id: f for f in fillups}
    for patch in result.updated:
        by_id[patch.fillup_id].apply(patch.as_fields())


@pytest.fixture
def odometer_car():
    return Vehicle("car", "Test car", 0, MileageMode.ODOMETER)


@pytest.fixture
def distance_car():
    return Vehicle("car", "Test car", 0, MileageMode.DISTANCE)


class TestAnchoring:
    """Tests for baseline anchoring of the first fillup."""

    def test_first_fillup_measured_from_baseline(self):
        vehicle = Vehicle("car", "Test car", 10000, MileageMode.ODOMETER)
        fillup = make_fillup(1, "2024-12-01", odometer=10500, fuel=50)

        result = recalculate(vehicle, [fillup])

        assert len(result.updated) == 1
        patch = result.updated[0]
        assert patch.fillup_id == 1
        assert patch.distance_traveled == 500
        assert patch.fuel_consumption == pytest.approx(10.0)
        assert result.warnings == []

    def test_baseline_change_moves_first_distance(self):
        """Same fillup, higher baseline: 300 distance, ~16.67 consumption."""
        fillup = make_fillup(1, "2024-12-01", odometer=10500, distance=500, cons=10.0)
        vehicle = Vehicle("car", "Test car", 10200, MileageMode.ODOMETER)

        result = recalculate(vehicle, [fillup])

        assert len(result.updated) == 1
        assert result.updated[0].distance_traveled == 300
        assert result.updated[0].fuel_consumption == pytest.approx(16.67, abs=0.01)


class TestIdempotence:
    """Tests for repeated recalculation."""

    def test_second_pass_is_empty(self, odometer_car):
        fillups = [
            make_fillup(1, "2024-12-01", odometer=500),
            make_fillup(2, "2024-12-04", odometer=950),
            make_fillup(3, "2024-12-10", odometer=1500),
        ]
        first = recalculate(odometer_car, fillups)
        assert len(first.updated) == 3

        apply_patches(fillups, first)
        second = recalculate(odometer_car, fillups)
        assert second.updated == []
        assert second.is_consistent

    def test_differences_within_tolerance_are_ignored(self, odometer_car):
        """Rounded stored values do not cause rewrites."""
        fillups = [
            make_fillup(1, "2024-12-01", odometer=300, fuel=20, distance=300.05,
                        cons=6.672),
        ]
        result = recalculate(odometer_car, fillups)
        assert result.updated == []

    def test_stored_null_consumption_is_consistent_with_zero_distance(
        self, odometer_car
    ):
        fillups = [
            make_fillup(1, "2024-12-01", odometer=0, distance=0, cons=None),
        ]
        result = recalculate(odometer_car, fillups)
        assert result.updated == []

    def test_stale_consumption_is_patched(self, odometer_car):
        fillups = [
            make_fillup(1, "2024-12-01", odometer=500, fuel=50, distance=500, cons=0),
        ]
        result = recalculate(odometer_car, fillups)
        assert len(result.updated) == 1
        assert result.updated[0].fuel_consumption == pytest.approx(10.0)


class TestOrdering:
    """Tests for chain order."""

    def test_input_order_does_not_matter(self, odometer_car):
        a = make_fillup(1, "2024-12-10", odometer=1500, distance=1500, cons=3.33)
        b = make_fillup(2, "2024-12-07", odometer=950)

        result = recalculate(odometer_car, [a, b])

        patches = {p.fillup_id: p for p in result.updated}
        assert patches[2].distance_traveled == 950
        assert patches[1].distance_traveled == 550
        assert patches[1].fuel_consumption == pytest.approx(50 / 550 * 100)

    def test_same_date_ordered_by_id(self, odometer_car):
        later = make_fillup(7, "2024-12-01", odometer=600)
        earlier = make_fillup(3, "2024-12-01", odometer=400)

        assert [f.id for f in sort_chain([later, earlier])] == [3, 7]

        result = recalculate(odometer_car, [later, earlier])
        patches = {p.fillup_id: p for p in result.updated}
        assert patches[3].distance_traveled == 400
        assert patches[7].distance_traveled == 200

    def test_datetime_and_date_values_interleave(self, odometer_car):
        fillups = [
            make_fillup(1, "2024-12-01T18:30:00", odometer=700),
            make_fillup(2, "2024-12-01T08:00:00+01:00", odometer=500),
            make_fillup(3, "2024-11-30", odometer=300),
        ]
        assert [f.id for f in sort_chain(fillups)] == [3, 2, 1]

    def test_date_edit_reorders_neighbours(self, odometer_car):
        """C moved between A and B: B now follows a higher reading."""
        a = make_fillup(1, "2024-12-01", odometer=500)
        b = make_fillup(2, "2024-12-04", odometer=950)
        c = make_fillup(3, "2024-12-10", odometer=1500)
        fillups = [a, b, c]
        apply_patches(fillups, recalculate(odometer_car, fillups))

        c.date = "2024-12-02"
        result = recalculate(odometer_car, fillups)

        regressions = [
            w for w in result.warnings if w.kind is WarningKind.ODOMETER_REGRESSION
        ]
        assert [w.fillup_id for w in regressions] == [2]
        assert regressions[0].reference_odometer == 1500
        patches = {p.fillup_id: p for p in result.updated}
        assert patches[3].distance_traveled == 1000
        assert patches[2].distance_traveled == 0
        assert patches[2].fuel_consumption is None


class TestWarnings:
    """Tests for odometer regression and stagnation warnings."""

    def test_regression_is_clamped_and_warned(self, odometer_car):
        fillups = [
            make_fillup(1, "2024-12-01", odometer=1000),
            make_fillup(2, "2024-12-02", odometer=900),
            make_fillup(3, "2024-12-03", odometer=1100),
        ]
        result = recalculate(odometer_car, fillups)

        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.kind is WarningKind.ODOMETER_REGRESSION
        assert warning.fillup_id == 2
        assert "lower" in warning.message

        patches = {p.fillup_id: p for p in result.updated}
        assert patches[2].distance_traveled == 0
        assert patches[2].fuel_consumption is None
        # Chain advances to the regressed reading
        assert patches[3].distance_traveled == 200

    def test_regression_below_baseline(self):
        vehicle = Vehicle("car", "Test car", 10000, MileageMode.ODOMETER)
        result = recalculate(vehicle, [make_fillup(1, "2024-12-01", odometer=9000)])
        assert result.warnings[0].kind is WarningKind.ODOMETER_REGRESSION
        assert result.warnings[0].reference_odometer == 10000

    def test_stagnant_reading(self, odometer_car):
        fillups = [
            make_fillup(1, "2024-12-01", odometer=1000),
            make_fillup(2, "2024-12-02", odometer=1000),
        ]
        result = recalculate(odometer_car, fillups)

        assert [w.kind for w in result.warnings] == [WarningKind.ODOMETER_STAGNANT]
        assert result.warnings[0].fillup_id == 2
        assert result.warnings[0].to_dict()["kind"] == "odometer_stagnant"


class TestModes:
    """Tests for odometer vs distance mode handling."""

    def test_distance_mode_keeps_entered_distance(self, distance_car):
        fillups = [
            make_fillup(1, "2024-12-10", distance=400, fuel=30),
            make_fillup(2, "2024-12-01", distance=250, fuel=20),
        ]
        result = recalculate(distance_car, fillups)

        patches = {p.fillup_id: p for p in result.updated}
        assert patches[1].distance_traveled == 400
        assert patches[1].fuel_consumption == pytest.approx(7.5)
        assert patches[2].fuel_consumption == pytest.approx(8.0)
        for patch in result.updated:
            assert "distance_traveled" not in patch.as_fields()
            assert "odometer" not in patch.as_fields()
        assert result.warnings == []

    def test_distance_mode_zero_distance(self, distance_car):
        result = recalculate(
            distance_car, [make_fillup(1, "2024-12-01", distance=0, cons=5.0)]
        )
        assert result.updated[0].fuel_consumption is None

    def test_odometer_mode_null_odometer_advances_reference(self, odometer_car):
        """A record without a reading contributes its stored distance."""
        fillups = [
            make_fillup(1, "2024-12-01", odometer=1000, distance=1000, cons=5.0),
            make_fillup(2, "2024-12-02", distance=300, fuel=30, cons=10.0),
            make_fillup(3, "2024-12-03", odometer=1500, fuel=20),
        ]
        result = recalculate(odometer_car, fillups)

        patches = {p.fillup_id: p for p in result.updated}
        assert set(patches) == {3}
        assert patches[3].distance_traveled == 200
        assert patches[3].fuel_consumption == pytest.approx(10.0)

    def test_unknown_mode_rejected(self):
        vehicle = Vehicle("car", "Test car", 0, "odometer")
        with pytest.raises(ValueError):
            recalculate(vehicle, [])


class TestChainReference:
    """Tests for chain_reference lookup used by new records."""

    def test_no_fillups_uses_baseline(self):
        vehicle = Vehicle("car", "Test car", 10000, MileageMode.ODOMETER)
        assert chain_reference(vehicle, [], "2024-12-01") == 10000

    def test_uses_latest_reading_on_or_before_date(self, odometer_car):
        fillups = [
            make_fillup(1, "2024-12-01", odometer=500),
            make_fillup(2, "2024-12-05", odometer=900),
            make_fillup(3, "2024-12-10", odometer=1500),
        ]
        assert chain_reference(odometer_car, fillups, "2024-12-07") == 900
        assert chain_reference(odometer_car, fillups, "2024-12-05") == 900
        assert chain_reference(odometer_car, fillups, "2024-11-30") == 0

    def test_distance_mode_accumulates(self, distance_car):
        fillups = [
            make_fillup(1, "2024-12-01", distance=100),
            make_fillup(2, "2024-12-02", distance=150),
        ]
        assert chain_reference(distance_car, fillups, "2024-12-03") == 250
