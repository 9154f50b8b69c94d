"""JSON schema for encoded DataDog log records."""

import jsonschema

from justlog_datadog.models import LogStatus

RECORD_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": [
        "date",
        "status",
        "message",
        "service",
        "logger.name",
        "logger.version",
        "logger.thread_name",
        "version",
    ],
    "properties": {
        "date": {
            "type": "string",
            "pattern": r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$",
        },
        "status": {"type": "string", "enum": [s.value for s in LogStatus]},
        "message": {"type": "string"},
        "service": {"type": "string", "minLength": 1},
        "version": {"type": "string", "minLength": 1},
        "ddtags": {"type": "string"},
    },
    # user attributes and usr.* keys are always stringified
    "additionalProperties": {"type": "string"},
}

_VALIDATOR = jsonschema.Draft202012Validator(RECORD_SCHEMA)


def record_errors(record) -> list[str]:
    """Schema violations for one encoded record; empty when it is valid."""
    return [error.message for error in _VALIDATOR.iter_errors(record)]


def batch_errors(records) -> list[str]:
    """Violations across an upload body, each prefixed with the record index."""
    if not isinstance(records, list):
        return ["body must be a JSON array of records"]
    if not records:
        return ["body must contain at least one record"]
    return [
        f"[{index}] {message}"
        for index, record in enumerate(records)
        for message in record_errors(record)
    ]
