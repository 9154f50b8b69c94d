import threading

import pytest
from werkzeug.serving import make_server

from justlog_datadog.config import _ENV_VARS
from justlog_datadog.intake_server import create_app

SCENARIO_LINE = (
    '2021-03-03 18:25:34.246 - {"log_type":"warn","message":"low memory",'
    '"user_info":{"service":"cart","app_version":"1.0"},"metadata":{"version":"2.0"}}'
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the host environment from leaking into config loading."""
    for env_var in list(_ENV_VARS.values()) + ["CONFIG_PATH"]:
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def scenario_line():
    return SCENARIO_LINE


@pytest.fixture
def app():
    application = create_app()
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def intake():
    """Run the intake app on an ephemeral port. Yields (endpoint_url, upload_log)."""
    application = create_app()
    server = make_server("127.0.0.1", 0, application, threaded=True)
    t = threading.Thread(target=server.serve_forever, daemon=True)
    t.start()
    try:
        endpoint = f"http://127.0.0.1:{server.server_port}/v1/input/"
        yield endpoint, application.config["upload_log"]
    finally:
        server.shutdown()
