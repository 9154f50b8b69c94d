"""Configuration: frozen dataclasses loaded from YAML, env vars and CLI args."""

import argparse
import logging
import os
from dataclasses import dataclass, fields

import yaml

from justlog_datadog.parser import ParserOptions

logger = logging.getLogger(__name__)


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_tags(value) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    return tuple(str(item).strip() for item in items if str(item).strip())


@dataclass(frozen=True)
class Config:
    client_token: str = ""
    endpoint: str = "us"
    logger_name: str = "justlog"
    source: str = "ios"
    app_version_key: str | None = None
    default_app_version: str = "unknown"
    strict_dates: bool = False
    tags: tuple[str, ...] = ()
    timeout: float = 5.0
    log_file: str | None = None
    dry_run: bool = False
    user_id: str | None = None
    user_name: str | None = None
    user_email: str | None = None

    def parser_options(self) -> ParserOptions:
        return ParserOptions(
            app_version_key=self.app_version_key,
            strict_dates=self.strict_dates,
            default_app_version=self.default_app_version,
        )


_ENV_VARS = {
    "client_token": "DD_CLIENT_TOKEN",
    "endpoint": "DD_ENDPOINT",
    "logger_name": "LOGGER_NAME",
    "source": "DD_SOURCE",
    "app_version_key": "APP_VERSION_KEY",
    "default_app_version": "DEFAULT_APP_VERSION",
    "strict_dates": "STRICT_DATES",
    "tags": "DD_TAGS",
    "timeout": "UPLOAD_TIMEOUT",
    "log_file": "LOG_FILE",
    "dry_run": "DRY_RUN",
    "user_id": "DD_USER_ID",
    "user_name": "DD_USER_NAME",
    "user_email": "DD_USER_EMAIL",
}

_CONVERTERS = {
    "strict_dates": _parse_bool,
    "dry_run": _parse_bool,
    "timeout": float,
    "tags": _parse_tags,
}


def load_yaml(path: str) -> dict:
    """Load a flat YAML mapping of Config fields. Missing or invalid files give {}."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as e:
        logger.warning("Invalid YAML in %s, using defaults: %s", path, e)
        return {}

    if not isinstance(data, dict):
        return {}

    known = {f.name for f in fields(Config)}
    unknown = set(data) - known
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))
    return {k: v for k, v in data.items() if k in known}


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ship JustLog log lines to DataDog")
    parser.add_argument("--config", type=str, default=None)
    parser.add_argument("--client-token", type=str, default=None)
    parser.add_argument("--endpoint", type=str, default=None)
    parser.add_argument("--logger-name", type=str, default=None)
    parser.add_argument("--source", type=str, default=None)
    parser.add_argument("--app-version-key", type=str, default=None)
    parser.add_argument("--default-app-version", type=str, default=None)
    parser.add_argument("--strict-dates", action="store_true", default=None)
    parser.add_argument("--tags", type=str, default=None)
    parser.add_argument("--timeout", type=float, default=None)
    parser.add_argument("--log-file", type=str, default=None)
    parser.add_argument("--dry-run", action="store_true", default=None)
    parser.add_argument("--user-id", type=str, default=None)
    parser.add_argument("--user-name", type=str, default=None)
    parser.add_argument("--user-email", type=str, default=None)
    return parser


def load_config(argv=None) -> Config:
    """Build Config from defaults <- YAML file <- env vars <- CLI args (highest priority).

    Pass argv for testability; when None, argparse reads sys.argv.
    """
    args = _build_arg_parser().parse_args(argv)

    values: dict = {}

    config_path = args.config or os.environ.get("CONFIG_PATH")
    if config_path:
        values.update(load_yaml(config_path))

    for name, env_var in _ENV_VARS.items():
        if env_var in os.environ:
            values[name] = os.environ[env_var]

    for name in _ENV_VARS:
        cli_value = getattr(args, name)
        if cli_value is not None:
            values[name] = cli_value

    for name, convert in _CONVERTERS.items():
        if name in values:
            values[name] = convert(values[name])

    return Config(**values)


@dataclass(frozen=True)
class IntakeConfig:
    host: str = "127.0.0.1"
    port: int = 8080
    max_logs: int = 1000


def load_intake_config() -> IntakeConfig:
    """Build IntakeConfig from environment variables with sensible defaults."""
    return IntakeConfig(
        host=os.environ.get("INTAKE_HOST", IntakeConfig.host),
        port=int(os.environ.get("INTAKE_PORT", IntakeConfig.port)),
        max_logs=int(os.environ.get("INTAKE_MAX_LOGS", IntakeConfig.max_logs)),
    )
