"""JustLog log line parser.

A JustLog line looks like:

    2021-03-03 18:25:34.246 - {"log_type": "warn", "message": "low memory", ...}

Parsing happens in three steps:
  1. Timestamp prefix: "yyyy-MM-dd H:mm:s.SSS" (two tokens), else
     "H:mm:s.SSS" (one token, dated today). Lenient mode falls back to now.
  2. Payload: everything after the first '-' following the timestamp prefix
     (or, without a prefix, the first '-' that starts a token)
     plus one separator character, trimmed. Must decode to a JSON object.
  3. Field derivation: severity, service, environment, app version, user
     attributes and message, each with its own ordered fallbacks. Never fails.
"""

import itertools
import json
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable

from justlog_datadog.models import LogRecord, LogStatus

DATE_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
TIME_FORMAT = "%H:%M:%S.%f"

UNKNOWN = "unknown"

_TOKEN_RE = re.compile(r"\S+")

# a dash that opens the line or follows whitespace
_DELIMITER_RE = re.compile(r"(?:^|\s)-")

# JustLog log_type → record status; matching is case-sensitive
_LOG_TYPE_TO_STATUS = {
    "info": LogStatus.INFO,
    "debug": LogStatus.DEBUG,
    "warn": LogStatus.WARN,
    "error": LogStatus.ERROR,
    "notice": LogStatus.NOTICE,
}

_BASE_VERSION_KEYS = ("app_version", "version")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ParseError(ValueError):
    """A line that cannot be turned into a LogRecord. Carries the offending text."""

    reason = "unparseable log line"

    def __init__(self, text: str):
        super().__init__(f"{self.reason}: {text[:200]!r}")
        self.text = text


class MissingDate(ParseError):
    reason = "no parseable timestamp prefix"


class MissingJSON(ParseError):
    reason = "no JSON payload delimiter"


class CorruptData(ParseError):
    reason = "payload is not valid UTF-8 text"


class MalformedJSON(ParseError):
    reason = "payload is not a JSON object"


# ---------------------------------------------------------------------------
# Typed accessors
# ---------------------------------------------------------------------------


def _string(mapping: dict, key: str) -> str | None:
    value = mapping.get(key)
    return value if isinstance(value, str) else None


def _mapping(mapping: dict, key: str) -> dict:
    value = mapping.get(key)
    return value if isinstance(value, dict) else {}


def _first(candidates: Iterable[str | None], default: str) -> str:
    """Return the first candidate that is not None, else *default*."""
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return default


def stringify(value: Any) -> str:
    """Deterministic text form of a JSON value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
    return str(value)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParserOptions:
    app_version_key: str | None = None
    strict_dates: bool = False
    default_app_version: str = UNKNOWN


class LogLineParser:
    """Parses JustLog lines into LogRecords. Stateless apart from its options."""

    def __init__(self, options: ParserOptions | None = None):
        self._options = options or ParserOptions()

    @property
    def options(self) -> ParserOptions:
        return self._options

    def parse(self, line: str) -> LogRecord:
        """Parse one line. Raises a ParseError subclass if it cannot be parsed."""
        if not line.strip():
            raise MissingDate(line)

        parsed = _parse_timestamp(line)
        if parsed is None:
            if self._options.strict_dates:
                raise MissingDate(line)
            timestamp, prefix_end = datetime.now().astimezone(), None
        else:
            timestamp, prefix_end = parsed

        payload = _extract_payload(line, prefix_end)
        log_obj = _decode_payload(payload)

        user_info = _mapping(log_obj, "user_info")
        metadata = _mapping(log_obj, "metadata")

        return LogRecord(
            timestamp=timestamp,
            severity=_status_for(_string(log_obj, "log_type")),
            service_name=_first(
                (_string(user_info, "service"), _string(user_info, "app")), UNKNOWN
            ),
            environment=_first(
                (_string(user_info, "env"), _string(user_info, "environment")), UNKNOWN
            ),
            application_version=self._app_version(metadata, user_info),
            user_attributes={key: stringify(value) for key, value in user_info.items()},
            message=_first((_string(log_obj, "message"),), line),
        )

    def version_keys(self) -> list[str]:
        """Candidate app version keys, deduplicated, in lookup order."""
        keys = list(_BASE_VERSION_KEYS)
        preferred = self._options.app_version_key
        if preferred and preferred not in keys:
            keys.append(preferred)
        return keys

    def _app_version(self, metadata: dict, user_info: dict) -> str:
        # metadata is searched across every key before user_info
        keys = self.version_keys()
        candidates = itertools.chain(
            (_string(metadata, key) for key in keys),
            (_string(user_info, key) for key in keys),
        )
        return _first(candidates, self._options.default_app_version)


def parse(line: str, options: ParserOptions | None = None) -> LogRecord:
    """Create a parser and parse the given line."""
    return LogLineParser(options).parse(line)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _leading_tokens(line: str, count: int) -> tuple[str, int] | None:
    """Join the first *count* whitespace-separated tokens; also return where they end."""
    tokens = list(itertools.islice(_TOKEN_RE.finditer(line), count))
    if len(tokens) < count:
        return None
    return " ".join(t.group() for t in tokens), tokens[-1].end()


def _parse_timestamp(line: str) -> tuple[datetime, int] | None:
    """Return (local aware timestamp, end offset of the prefix) or None."""
    prefix = _leading_tokens(line, 2)
    if prefix is not None:
        try:
            return datetime.strptime(prefix[0], DATE_FORMAT).astimezone(), prefix[1]
        except ValueError:
            pass

    prefix = _leading_tokens(line, 1)
    if prefix is not None:
        try:
            parsed = datetime.strptime(prefix[0], TIME_FORMAT)
        except ValueError:
            return None
        return datetime.combine(date.today(), parsed.time()).astimezone(), prefix[1]

    return None


def _extract_payload(line: str, start: int | None) -> str:
    """Cut the payload out of *line*. *start* is None when no timestamp prefix parsed."""
    if start is not None:
        dash = line.find("-", start)
    else:
        # the unparsed prefix may itself contain dashes (e.g. "2021-13-45")
        match = _DELIMITER_RE.search(line)
        dash = match.end() - 1 if match else line.find("-")
    if dash == -1:
        raise MissingJSON(line)
    return line[dash + 2:].strip()


def _decode_payload(payload: str) -> dict:
    try:
        data = payload.encode("utf-8")
    except UnicodeEncodeError:
        raise CorruptData(payload) from None

    try:
        decoded = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise MalformedJSON(payload) from None

    if not isinstance(decoded, dict):
        raise MalformedJSON(payload)
    return decoded


def _status_for(log_type: str | None) -> LogStatus:
    """Map a JustLog log_type to a status. Defaults to debug."""
    return _LOG_TYPE_TO_STATUS.get(log_type, LogStatus.DEBUG)
