"""Glue between the JustLog line parser and the DataDog sender."""

import json
import logging
import sys

from justlog_datadog.config import Config
from justlog_datadog.models import DATADOG_LOGGER_VERSION, UserInfo, record_to_dict
from justlog_datadog.parser import LogLineParser, ParseError
from justlog_datadog.sender import DataDogSender
from justlog_datadog.user_info import UserInfoProvider

logger = logging.getLogger(__name__)


class JustLogDataDogDestination:
    """Parses each JustLog line and uploads the resulting record.

    Lines that fail to parse are dropped and counted; upload failures are
    counted but never retried.
    """

    def __init__(
        self,
        config: Config,
        sender: DataDogSender | None = None,
        user_info_provider: UserInfoProvider | None = None,
        output=None,
    ):
        self._config = config
        self._parser = LogLineParser(config.parser_options())
        if sender is None and not config.dry_run:
            sender = DataDogSender(
                config.endpoint, config.client_token, config.source, config.timeout
            )
        self._sender = sender
        self._output = output or sys.stdout
        self.user_info = user_info_provider or UserInfoProvider(
            UserInfo(id=config.user_id, name=config.user_name, email=config.user_email)
        )
        self._sent = 0
        self._failed = 0
        self._dropped = 0

    @property
    def sent(self) -> int:
        return self._sent

    @property
    def failed(self) -> int:
        return self._failed

    @property
    def dropped(self) -> int:
        return self._dropped

    def encode(self, line: str) -> dict | None:
        """Parse and encode a line. Returns None if it could not be parsed."""
        try:
            record = self._parser.parse(line)
        except ParseError as e:
            logger.warning("Could not decode log: %s", e)
            self._dropped += 1
            return None

        if self._config.tags:
            record = record.with_tags(self._config.tags)

        return record_to_dict(
            record,
            logger_name=self._config.logger_name,
            logger_version=DATADOG_LOGGER_VERSION,
            thread_name="main",
            user_info=self.user_info.value,
        )

    def log(self, line: str) -> bool:
        """Parse and ship a single line. Returns True if the record was delivered."""
        entry = self.encode(line)
        if entry is None:
            return False

        if self._sender is None:
            self._output.write(json.dumps(entry, ensure_ascii=False) + "\n")
            self._output.flush()
            self._sent += 1
            return True

        if self._sender.send(entry):
            self._sent += 1
            return True
        self._failed += 1
        return False

    def log_all(self, lines, shutdown_event=None) -> int:
        """Ship every line in *lines*, stopping early once *shutdown_event* is set.

        Returns the number delivered.
        """
        delivered = 0
        for line in lines:
            if shutdown_event is not None and shutdown_event.is_set():
                logger.info("Shutdown requested, %d line(s) delivered", delivered)
                break
            if self.log(line):
                delivered += 1
        return delivered
