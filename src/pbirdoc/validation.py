"""Top-level structural checks for report documents.

The normalizer takes any callable `(data, schema_name) -> ValidationResult`.
The built-in RequiredKeysValidator only checks that declared-required
top-level keys are present; full JSON-Schema validation belongs to whatever
validator the caller injects.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Outcome of validating one document."""

    valid: bool
    errors: list[str] = field(default_factory=list)


Validator = Callable[[Any, str], ValidationResult]


# Required top-level keys of the published PBIR schemas
DEFAULT_REQUIRED_KEYS: dict[str, tuple[str, ...]] = {
    "report": ("themeCollection",),
    "versionMetadata": ("version",),
    "reportExtension": ("name",),
    "pagesMetadata": (),
    "page": ("name", "displayName", "displayOption"),
    "visualContainer": ("name", "position"),
    "visualContainerMobileState": ("position",),
    "bookmarksMetadata": ("items",),
    "bookmark": ("name", "displayName"),
}


class RequiredKeysValidator:
    """Checks that every declared-required top-level key is present."""

    def __init__(self, required_keys: Optional[dict[str, tuple[str, ...]]] = None):
        """Initialize the validator.

        Args:
            required_keys: Schema name -> required keys. Defaults to
                DEFAULT_REQUIRED_KEYS.
        """
        self.required_keys = dict(DEFAULT_REQUIRED_KEYS if required_keys is None else required_keys)

    @classmethod
    def from_schema_dir(cls, schema_dir: Path) -> "RequiredKeysValidator":
        """Load the `required` arrays of every JSON schema in a directory.

        Files are named `<schemaName>.json` or `<schemaName>_schema.json`.
        Unreadable schema files are skipped with a warning.
        """
        schema_dir = Path(schema_dir)
        if not schema_dir.is_dir():
            raise NotADirectoryError(f"Schema directory not found: {schema_dir}")

        required_keys: dict[str, tuple[str, ...]] = {}
        for schema_path in sorted(schema_dir.glob("*.json")):
            schema_name = schema_path.name.replace("_schema.json", "").replace(".json", "")
            try:
                schema = json.loads(schema_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("Failed to load schema %s: %s", schema_path.name, e)
                continue
            required = schema.get("required", []) if isinstance(schema, dict) else []
            required_keys[schema_name] = tuple(k for k in required if isinstance(k, str))

        logger.debug("Loaded %d schemas from %s", len(required_keys), schema_dir)
        return cls(required_keys)

    def __call__(self, data: Any, schema_name: str) -> ValidationResult:
        if schema_name not in self.required_keys:
            return ValidationResult(valid=False, errors=[f"Schema {schema_name} not found"])
        if not isinstance(data, dict):
            return ValidationResult(valid=False, errors=["Document root is not an object"])

        errors = [
            f"Missing required field: {key}"
            for key in self.required_keys[schema_name]
            if key not in data
        ]
        return ValidationResult(valid=not errors, errors=errors)
