"""
Schema validation for specledger.

Serialized documents, diffs and config files are checked against the JSON
Schemas in specledger/schemas/ before they leave (or enter) the process.
"""

import json
from pathlib import Path

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from specledger.lib.errors import SpecLedgerError

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"


class ValidationError(SpecLedgerError):
    """Data does not match one of the bundled schemas.

    `path` is the dotted location of the offending value ("(root)" for the
    top level), or None when the schema itself could not be used.
    """

    def __init__(self, schema_name: str, message: str, path: str = None):
        self.schema_name = schema_name
        self.path = path
        location = f" at {path}" if path else ""
        super().__init__(f"[{schema_name}] {message}{location}")


_validators: dict[str, Draft202012Validator] = {}


def _validator_for(schema_name: str) -> Draft202012Validator:
    validator = _validators.get(schema_name)
    if validator is None:
        schema_path = SCHEMAS_DIR / f"{schema_name}.schema.json"
        if not schema_path.exists():
            raise ValidationError(schema_name, f"Schema file not found: {schema_path}")
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
        Draft202012Validator.check_schema(schema)
        validator = _validators[schema_name] = Draft202012Validator(schema)
    return validator


def validate(data: dict, schema_name: str) -> None:
    """
    Check `data` against the named schema.

    Args:
        data: Plain JSON data (dicts, lists, scalars)
        schema_name: "spec_document", "spec_diff" or "config"

    Raises:
        ValidationError: for the most relevant violation when several apply
    """
    error = best_match(_validator_for(schema_name).iter_errors(data))
    if error is None:
        return
    path = ".".join(str(part) for part in error.absolute_path) or "(root)"
    raise ValidationError(schema_name, error.message, path)


def validate_before_write(data: dict, schema_name: str, filepath: Path) -> None:
    """Raise instead of emitting `data` to `filepath` if it does not validate."""
    try:
        validate(data, schema_name)
    except ValidationError as e:
        raise ValidationError(schema_name, f"Refusing to write invalid data to {filepath}: {e}") from None


def dump_json(data: dict, schema_name: str, destination: str = "<stdout>") -> str:
    """Validate and serialize to indented JSON, keeping non-ASCII text readable."""
    validate_before_write(data, schema_name, Path(destination))
    return json.dumps(data, indent=2, ensure_ascii=False)
