from __future__ import annotations

import logging
import os


def setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    # Allow env override for e.g. systemd service runs
    level_name = os.getenv("LYRICBAR_LOG_LEVEL")
    if level_name:
        level = getattr(logging, level_name.upper(), level)

    # The watch screen owns the terminal; a log file keeps it readable.
    logging.basicConfig(
        level=level,
        filename=os.getenv("LYRICBAR_LOG_FILE") or None,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
