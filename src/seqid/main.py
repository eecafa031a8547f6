"""Entry point for the seqid identifier allocation service."""

import structlog

from seqid.app import App
from seqid.config import Config
from seqid.logging import setup_logging
from seqid.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    structlog.get_logger(__name__).info(
        "seqid_starting",
        host=config.host,
        port=config.port,
        namespaces=[namespace.name for namespace in config.namespaces],
        degraded_fallback=config.degraded_fallback,
    )
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
