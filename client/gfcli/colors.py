"""ANSI terminal color support for gfcli shell output."""

import os
import sys


def _supports_color(stream=None):
    """Detect whether *stream* (default stdout) supports ANSI color."""
    stream = stream if stream is not None else sys.stdout
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("GFCLI_COLOR", "").lower() == "never":
        return False
    if os.environ.get("GFCLI_COLOR", "").lower() == "always":
        return True
    if not hasattr(stream, "isatty"):
        return False
    return stream.isatty()


# ANSI escape sequences
RESET = "\033[0m"
RED = "\033[31m"


class ColorWriter:
    """Colorize text, falling back to plain text if unsupported.

    Usage:
        cw = ColorWriter()
        cw.error("Unknown command")   # red
    """

    def __init__(self, force_color=None):
        if force_color is not None:
            self.enabled = force_color
        else:
            self.enabled = _supports_color(sys.stderr)

    def _wrap(self, code, text):
        if self.enabled:
            return "{}{}{}".format(code, text, RESET)
        return text

    def error(self, text):
        return self._wrap(RED, text)
