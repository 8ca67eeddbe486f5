#!/usr/bin/env python3
"""
JSON Schema Validation for EOL Feed Data

Validates endoflife.date product responses before an OS lookup table is
built from them.

Architecture:
- Transport (HTTP status, JSON decoding): os_lookup.fetch_eol_cycles()
- Schema validation: This module
"""
from typing import Any, Dict

import jsonschema

from ..logging.workflow_logger import get_logger

logger = get_logger()


class EOLFeedSchemaError(Exception):
    """Raised when EOL feed data fails schema validation"""
    pass


# Minimal shape the lookup table depends on; extra fields are allowed
EOL_CYCLES_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["cycle"],
        "properties": {
            "cycle": {"type": ["string", "number"]},
            "releaseLabel": {"type": ["string", "null"]},
            "latest": {"type": ["string", "null"]},
            "releaseDate": {"type": ["string", "null"]},
            "support": {"type": ["string", "boolean", "null"]},
            "eol": {"type": ["string", "boolean", "null"]}
        }
    }
}


def validate_against_schema(data: Any, schema: Dict[str, Any], context: str) -> None:
    """
    Validate data against JSON schema.

    Args:
        data: Parsed API response data
        schema: JSON schema
        context: Description for error messages

    Raises:
        EOLFeedSchemaError: If data fails schema validation
    """
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        error_path = ' -> '.join(str(p) for p in e.path) if e.path else 'root'
        logger.debug(f"EOL feed rejected at {error_path}", group="RESOLVE")
        raise EOLFeedSchemaError(f"Schema validation failed at {error_path}: {e.message} - {context}")


def validate_eol_cycles(data: Any, context: str = "EOL feed") -> None:
    """Validate an endoflife.date cycle list"""
    validate_against_schema(data, EOL_CYCLES_SCHEMA, context)
