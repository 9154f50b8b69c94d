"""Local stand-in for the DataDog mobile log intake.

Point the shipper at it with a custom endpoint, e.g.
``--endpoint http://127.0.0.1:8080/v1/input/``, to inspect uploads.
"""

import collections
import logging
import threading
from dataclasses import asdict, dataclass

from flask import Flask, jsonify, request

from justlog_datadog.validator import batch_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceivedRecord:
    client_token: str
    ddsource: str | None
    batch_time: int | None
    record: dict


class UploadLog:
    """Records accepted by the intake, newest last, plus accept/reject counters."""

    def __init__(self, max_records: int = 1000):
        self._records: collections.deque[ReceivedRecord] = collections.deque(maxlen=max_records)
        self._lock = threading.Lock()
        self._accepted = 0
        self._rejected_uploads = 0

    def accept(self, client_token: str, ddsource, batch_time, records: list[dict]):
        with self._lock:
            for record in records:
                self._records.append(ReceivedRecord(client_token, ddsource, batch_time, record))
            self._accepted += len(records)

    def reject(self):
        with self._lock:
            self._rejected_uploads += 1

    def recent(self, count: int = 50) -> list[ReceivedRecord]:
        """Most recent records first."""
        with self._lock:
            return list(self._records)[::-1][:count]

    def counts(self) -> dict:
        with self._lock:
            return {
                "accepted": self._accepted,
                "rejected_uploads": self._rejected_uploads,
                "stored": len(self._records),
            }


def create_app(upload_log: UploadLog | None = None, max_records: int = 1000):
    """Flask application factory."""
    app = Flask(__name__)
    upload_log = upload_log if upload_log is not None else UploadLog(max_records)
    app.config["upload_log"] = upload_log

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy", **upload_log.counts()})

    @app.route("/v1/input/<client_token>", methods=["POST"])
    def intake(client_token):
        records = request.get_json(force=True, silent=True)
        errors = batch_errors(records)
        if errors:
            upload_log.reject()
            logger.warning("Rejected upload for %s: %s", client_token, errors[:5])
            return jsonify({"status": "invalid", "errors": errors}), 400

        upload_log.accept(
            client_token,
            request.args.get("ddsource"),
            request.args.get("batch_time", type=int),
            records,
        )
        logger.info("Accepted %d record(s) for %s", len(records), client_token)
        return jsonify({}), 202

    @app.route("/api/logs")
    def recent_logs():
        count = request.args.get("count", 50, type=int)
        return jsonify({"logs": [asdict(r) for r in upload_log.recent(count)]})

    return app
