"""JSON schema for fuel log data files."""

from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional

import yaml
from jsonschema import Draft7Validator

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"


def load_schema() -> dict:
    """Load the data file schema from schema.yaml."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


@lru_cache(maxsize=1)
def _data_file_validator() -> Draft7Validator:
    return Draft7Validator(load_schema())


def schema_errors(data: Any, schema: Optional[dict] = None) -> List[str]:
    """Return readable schema violations for loaded data (empty when valid)."""
    validator = Draft7Validator(schema) if schema else _data_file_validator()
    errors = []
    found = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    for error in found:
        location = ".".join(str(p) for p in error.path)
        if location:
            errors.append(f"{error.message} (at {location})")
        else:
            errors.append(error.message)
    return errors
