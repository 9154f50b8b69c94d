"""Tests for justlog_datadog/intake_server.py and validator.py"""

import pytest

from justlog_datadog.intake_server import UploadLog
from justlog_datadog.validator import batch_errors, record_errors


@pytest.fixture
def valid_record():
    return {
        "date": "2021-03-03T18:25:34.246Z",
        "status": "warn",
        "message": "low memory",
        "service": "cart",
        "logger.name": "com.example.app",
        "logger.version": "1.4.1",
        "logger.thread_name": "main",
        "version": "2.0",
        "ddtags": "env:prod,version:2.0",
        "retries": "3",
    }


class TestRecordErrors:
    def test_valid(self, valid_record):
        assert record_errors(valid_record) == []

    def test_missing_required(self, valid_record):
        del valid_record["service"]
        assert any("service" in e for e in record_errors(valid_record))

    def test_bad_status(self, valid_record):
        valid_record["status"] = "loud"
        assert record_errors(valid_record)

    def test_bad_date(self, valid_record):
        valid_record["date"] = "2021-03-03 18:25:34"
        assert record_errors(valid_record)

    def test_non_string_attribute(self, valid_record):
        valid_record["retries"] = 3
        assert record_errors(valid_record)


class TestBatchErrors:
    def test_valid_batch(self, valid_record):
        assert batch_errors([valid_record, valid_record]) == []

    def test_prefixes_record_index(self, valid_record):
        bad = dict(valid_record, status="loud")
        errors = batch_errors([valid_record, bad])
        assert errors and all(e.startswith("[1] ") for e in errors)

    @pytest.mark.parametrize("body", [None, {}, "text", []])
    def test_rejects_non_array_or_empty(self, body):
        assert len(batch_errors(body)) == 1


class TestUploadLog:
    def test_bounded(self):
        upload_log = UploadLog(max_records=2)
        upload_log.accept("pub123", "ios", None, [{"n": 0}, {"n": 1}, {"n": 2}])
        assert [r.record for r in upload_log.recent(5)] == [{"n": 2}, {"n": 1}]
        assert upload_log.counts() == {"accepted": 3, "rejected_uploads": 0, "stored": 2}

    def test_reject(self):
        upload_log = UploadLog()
        upload_log.reject()
        assert upload_log.counts()["rejected_uploads"] == 1
        assert upload_log.recent() == []


class TestIntakeEndpoint:
    def test_accepts_records(self, client, valid_record):
        resp = client.post("/v1/input/pub123?ddsource=ios&batch_time=1", json=[valid_record])
        assert resp.status_code == 202

        logs = client.get("/api/logs").get_json()["logs"]
        assert logs[0]["client_token"] == "pub123"
        assert logs[0]["ddsource"] == "ios"
        assert logs[0]["record"] == valid_record

    def test_rejects_invalid_record(self, client, valid_record):
        valid_record["status"] = "loud"
        resp = client.post("/v1/input/pub123", json=[valid_record])
        assert resp.status_code == 400
        data = resp.get_json()
        assert data["status"] == "invalid"
        assert data["errors"][0].startswith("[0]")
        assert client.get("/health").get_json()["rejected_uploads"] == 1

    def test_rejects_non_array(self, client, valid_record):
        resp = client.post("/v1/input/pub123", json=valid_record)
        assert resp.status_code == 400

    def test_rejects_non_json(self, client):
        resp = client.post("/v1/input/pub123", data="not json", content_type="application/json")
        assert resp.status_code == 400

    def test_health(self, client, valid_record):
        client.post("/v1/input/pub123", json=[valid_record, valid_record])
        data = client.get("/health").get_json()
        assert data["status"] == "healthy"
        assert data["accepted"] == 2
        assert data["stored"] == 2

    def test_recent_count(self, client, valid_record):
        client.post("/v1/input/pub123", json=[valid_record] * 3)
        assert len(client.get("/api/logs?count=2").get_json()["logs"]) == 2
