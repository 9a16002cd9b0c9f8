from __future__ import annotations

import logging
from typing import Callable

from lyricbar.host.base import Host, TrackRef

from .providers import LyricsProvider
from .runner import CommandResult, run_command_line

logger = logging.getLogger(__name__)

CONFIG_KEY = "lyricbar.customcmd"

Runner = Callable[..., CommandResult]


class ScriptProvider(LyricsProvider):
    """
    Runs the user's command template (e.g. `my-lyrics "%artist%" "%title%"`)
    and takes whatever it prints as the lyrics.
    """

    name = "script"

    def __init__(self, host: Host, *, timeout_s: float | None = None, runner: Runner = run_command_line):
        self.host = host
        self.timeout_s = timeout_s
        self._run = runner

    def fetch(self, track: TrackRef) -> str | None:
        template = self.host.get_config_string(CONFIG_KEY)
        if not template:
            return None

        compiled = self.host.compile_template(template)
        if compiled is None:
            logger.error("Invalid script command: %r", template)
            return None

        command = self.host.evaluate_template(compiled, track)
        if command is None:
            logger.error("Invalid script command: %r could not be expanded", template)
            return None

        result = self._run(command, timeout_s=self.timeout_s)
        if result.output is None:
            logger.error("Could not run script %r: %s", command, result.error)
            return None

        out = result.output
        if out.exit_status != 0:
            logger.info("Script %r exited with status %d", command, out.exit_status)
            return None
        if not out.stdout:
            logger.debug("Script %r printed nothing", command)
            return None

        try:
            return out.stdout.decode("utf-8")
        except UnicodeDecodeError:
            logger.error("Script output is not a valid UTF-8 string: %r", command)
            return None
