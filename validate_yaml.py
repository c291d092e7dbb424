#!/usr/bin/env python3
"""Validate fuel log data files against the schema."""
import sys
from pathlib import Path

import yaml

from fuellog.schema import load_schema, schema_errors


def validate_data_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single data file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        for message in schema_errors(data, schema):
            errors.append(f"Schema validation error: {message}")
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the data files given on the command line."""
    paths = [Path(p) for p in (sys.argv[1:] if argv is None else argv)]
    if not paths:
        print("Usage: validate_yaml.py FILE [FILE ...]")
        return 1

    schema = load_schema()
    all_valid = True
    for filepath in paths:
        errors = validate_data_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
