"""Log record model, severity tables, and DataDog wire encoding."""

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any

# DataDog mobile SDK logger version reported in every record
DATADOG_LOGGER_VERSION = "1.4.1"


class LogLevel(IntEnum):
    """Log levels ordered by severity, debug being the least severe."""

    DEBUG = 0
    INFO = 1
    NOTICE = 2
    WARN = 3
    ERROR = 4
    CRITICAL = 5


class LogStatus(str, Enum):
    """Status values understood by the DataDog log intake."""

    DEBUG = "debug"
    INFO = "info"
    NOTICE = "notice"
    WARN = "warn"
    ERROR = "error"
    CRITICAL = "critical"


_LEVEL_TO_STATUS = {
    LogLevel.DEBUG: LogStatus.DEBUG,
    LogLevel.INFO: LogStatus.INFO,
    LogLevel.NOTICE: LogStatus.NOTICE,
    LogLevel.WARN: LogStatus.WARN,
    LogLevel.ERROR: LogStatus.ERROR,
    LogLevel.CRITICAL: LogStatus.CRITICAL,
}

_STATUS_TO_LEVEL = {status: level for level, status in _LEVEL_TO_STATUS.items()}


def level_to_status(level: LogLevel) -> LogStatus:
    return _LEVEL_TO_STATUS[level]


def status_to_level(status: LogStatus) -> LogLevel:
    return _STATUS_TO_LEVEL[status]


@dataclass(frozen=True)
class UserInfo:
    id: str | None = None
    name: str | None = None
    email: str | None = None
    extra_info: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LogRecord:
    """One structured log record produced from one raw JustLog line."""

    timestamp: datetime
    severity: LogStatus = LogStatus.DEBUG
    service_name: str = "unknown"
    environment: str = "unknown"
    application_version: str = "unknown"
    user_attributes: dict[str, str] = field(default_factory=dict)
    message: str = ""
    tags: tuple[str, ...] = ()

    @property
    def level(self) -> LogLevel:
        return status_to_level(self.severity)

    def with_tags(self, tags) -> "LogRecord":
        """Return a copy of this record with *tags* appended."""
        return replace(self, tags=self.tags + tuple(tags))


def format_date(timestamp: datetime) -> str:
    """Format as ISO 8601 UTC with millisecond precision: 2021-03-03T18:25:34.246Z"""
    if timestamp.tzinfo is None:
        timestamp = timestamp.astimezone()
    utc = timestamp.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def record_to_dict(
    record: LogRecord,
    logger_name: str,
    logger_version: str = DATADOG_LOGGER_VERSION,
    thread_name: str = "main",
    user_info: UserInfo | None = None,
) -> dict[str, Any]:
    """Encode a LogRecord as a DataDog mobile log JSON object.

    User attributes are flattened to top-level keys but never overwrite
    the reserved keys set here.
    """
    encoded: dict[str, Any] = {
        "date": format_date(record.timestamp),
        "status": record.severity.value,
        "message": record.message,
        "service": record.service_name,
        "logger.name": logger_name,
        "logger.version": logger_version,
        "logger.thread_name": thread_name,
        "version": record.application_version,
    }

    if user_info is not None:
        if user_info.id is not None:
            encoded["usr.id"] = user_info.id
        if user_info.name is not None:
            encoded["usr.name"] = user_info.name
        if user_info.email is not None:
            encoded["usr.email"] = user_info.email
        for key, value in user_info.extra_info.items():
            encoded[f"usr.{key}"] = value

    for key, value in record.user_attributes.items():
        encoded.setdefault(key, value)

    tags = [f"env:{record.environment}", f"version:{record.application_version}"]
    tags.extend(record.tags)
    encoded["ddtags"] = ",".join(tags)
    return encoded


def encode_batch(entries: list[dict]) -> bytes:
    """Serialize encoded records to a UTF-8 JSON array."""
    return json.dumps(entries, ensure_ascii=False).encode("utf-8")
