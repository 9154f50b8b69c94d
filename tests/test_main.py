"""Tests for the main.py entry point."""

import json

from main import main


class TestMain:
    def test_dry_run_file(self, tmp_path, capsys, scenario_line):
        log_file = tmp_path / "app.log"
        log_file.write_text(f"{scenario_line}\nno dash here at all\n")
        code = main(["--dry-run", "--log-file", str(log_file)])
        assert code == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["message"] == "low memory"

    def test_requires_client_token(self, tmp_path):
        log_file = tmp_path / "app.log"
        log_file.write_text("")
        assert main(["--log-file", str(log_file)]) == 2

    def test_rejects_unknown_endpoint(self, tmp_path):
        assert main(["--client-token", "pub123", "--endpoint", "mars"]) == 2

    def test_bad_numeric_env_exits_cleanly(self, monkeypatch):
        monkeypatch.setenv("UPLOAD_TIMEOUT", "soon")
        assert main(["--dry-run"]) == 2

    def test_missing_log_file(self, tmp_path):
        assert main(["--dry-run", "--log-file", str(tmp_path / "missing.log")]) == 2

    def test_uploads_file(self, tmp_path, intake, scenario_line):
        endpoint, upload_log = intake
        log_file = tmp_path / "app.log"
        log_file.write_text(f"{scenario_line}\n{scenario_line}\n")
        code = main(["--client-token", "pub123", "--endpoint", endpoint, "--log-file", str(log_file)])
        assert code == 0
        assert upload_log.counts()["accepted"] == 2
