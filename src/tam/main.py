from __future__ import annotations

import logging

from tam.application.container import build_container
from tam.config import get_app_paths
from tam.logging_config import setup_logging
from tam.ui.app import App

log = logging.getLogger(__name__)


def main() -> None:
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)
    log.info("startup db=%s", paths.db_path)

    container = build_container(paths.db_path)
    App(
        container=container,
        exports_dir=str(paths.exports_dir),
        logs_dir=str(paths.logs_dir),
    ).mainloop()


if __name__ == "__main__":
    main()
