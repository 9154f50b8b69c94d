"""Entry point for the local DataDog intake stand-in."""

import logging

from justlog_datadog.config import load_intake_config
from justlog_datadog.intake_server import create_app


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    config = load_intake_config()
    app = create_app(max_records=config.max_logs)
    logging.getLogger(__name__).info(
        "Starting intake on http://%s:%d/v1/input/", config.host, config.port
    )
    app.run(host=config.host, port=config.port)


if __name__ == "__main__":
    main()
