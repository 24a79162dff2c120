from __future__ import annotations

import logging

from instabill.application.container import build_container
from instabill.config import get_app_paths, load_settings
from instabill.logging_config import setup_logging
from instabill.ui.app import App


def main() -> None:
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)

    container = build_container(paths.db_path, settings=load_settings())

    app = App(
        container,
        exports_dir=str(paths.exports_dir),
        logs_dir=str(paths.logs_dir),
    )
    app.mainloop()


if __name__ == "__main__":
    main()
