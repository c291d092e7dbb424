#!/usr/bin/env python3
"""Tests for validate_yaml schema validation."""

from validate_yaml import load_schema, main, validate_data_file

VALID_FILE = """
nextFillupId: 2
vehicles:
  - id: civic
    name: Honda Civic
    baselineOdometer: 10000
    mileageMode: odometer
fillups:
  - id: 1
    vehicleId: civic
    date: '2024-12-01'
    fuelAmount: 40.5
    totalPrice: 260.1
    odometer: 10500
    distanceTraveled: 500
    fuelConsumption: 8.1
"""


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_returns_dict(self):
        schema = load_schema()
        assert isinstance(schema, dict)

    def test_has_expected_structure(self):
        properties = load_schema()["properties"]
        assert "vehicles" in properties
        assert "fillups" in properties


class TestValidateDataFile:
    """Tests for validate_data_file function."""

    def test_valid_file_returns_no_errors(self, tmp_path):
        path = tmp_path / "valid.yaml"
        path.write_text(VALID_FILE)
        assert validate_data_file(path, load_schema()) == []

    def test_missing_required_field_returns_errors(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text(VALID_FILE.replace("    fuelAmount: 40.5\n", ""))

        errors = validate_data_file(path, load_schema())

        assert len(errors) == 1
        assert errors[0].startswith("Schema validation error:")
        assert "fuelAmount" in errors[0]

    def test_unknown_key_returns_errors(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text(VALID_FILE.replace("odometer: 10500", "odo: 10500"))

        errors = validate_data_file(path, load_schema())

        assert any("odo" in e for e in errors)

    def test_unknown_mode_returns_errors(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text(VALID_FILE.replace("mileageMode: odometer", "mileageMode: km"))
        assert validate_data_file(path, load_schema()) != []

    def test_yaml_parse_error(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("vehicles: [unclosed\n")

        errors = validate_data_file(path, load_schema())

        assert len(errors) == 1
        assert errors[0].startswith("YAML parse error:")

    def test_missing_file(self, tmp_path):
        errors = validate_data_file(tmp_path / "nope.yaml", load_schema())
        assert len(errors) == 1
        assert errors[0].startswith("Error:")


class TestMain:
    """Tests for the validate_yaml entry point."""

    def test_reports_each_file(self, tmp_path, capsys):
        good = tmp_path / "good.yaml"
        good.write_text(VALID_FILE)
        bad = tmp_path / "bad.yaml"
        bad.write_text("vehicles: 5\n")

        assert main([str(good), str(bad)]) == 1

        out = capsys.readouterr().out
        assert "OK: good.yaml" in out
        assert "FAIL: bad.yaml" in out

    def test_all_valid(self, tmp_path):
        good = tmp_path / "good.yaml"
        good.write_text(VALID_FILE)
        assert main([str(good)]) == 0

    def test_no_arguments(self, capsys):
        assert main([]) == 1
        assert "Usage" in capsys.readouterr().out
