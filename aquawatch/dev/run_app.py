from __future__ import annotations

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from aquawatch.api.notifications_api import create_app
from aquawatch.bootstrap import build_app_system

logger = logging.getLogger(__name__)


def _exe_dir() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path.cwd()


def main() -> None:
    """
    Start the runtime threads and serve the notifications HTTP API.

    Notes
    -----
    - Loads configuration from `config.yaml` by default.
    - A `.env` file next to the executable (or in the working directory) is
      loaded first so `AQUAWATCH_*` overrides apply.
    - Optional CLI usage:
        python -m aquawatch.dev.run_app --config path/to/config.yaml
    """
    load_dotenv(_exe_dir() / ".env")

    config_path = None
    if "--config" in sys.argv:
        i = sys.argv.index("--config")
        if i + 1 < len(sys.argv):
            config_path = sys.argv[i + 1]

    wiring = build_app_system(config_path=config_path)

    if wiring.notifier is not None:
        wiring.notifier.start()
    wiring.runtime.start()

    api = wiring.config.api
    app = create_app(store=wiring.store, controller=wiring.controller, token=api.token)
    logger.info("Serving notifications API on %s:%d", api.host, api.port)

    try:
        app.run(host=api.host, port=api.port, debug=False)
    finally:
        wiring.runtime.stop()
        if wiring.notifier is not None:
            wiring.notifier.stop()
        wiring.store.close()


if __name__ == "__main__":
    main()
