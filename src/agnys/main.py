"""Application entry point for the Agnys backend server."""

from agnys.app import App
from agnys.config import Config
from agnys.logging import setup_logging
from agnys.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
