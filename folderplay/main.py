"""Entrypoint for the folderplay control service."""

from __future__ import annotations

import uvicorn

from .api import create_app
from .core import ApplicationCore
from .logging_setup import setup_logging
from .preferences import PreferencesStore
from .settings import load_config
from .vlc_controller import VLCController


CONFIG = load_config()
setup_logging(CONFIG.log_directory)
CORE = ApplicationCore(CONFIG, PreferencesStore(CONFIG.preferences_path), VLCController(CONFIG))
app = create_app(CORE)


def main() -> None:
    """Launch the uvicorn server."""
    uvicorn.run(
        "folderplay.main:app",
        host=CONFIG.api_host,
        port=CONFIG.api_port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
