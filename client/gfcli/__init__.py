"""gfcli -- command shell for remote Gluster volumes.

The package can be used two ways.  Installed under a command name such as
``gfcat`` or ``gfls`` it runs that one command against its arguments::

    gfls glfs://localhost/groot/logs

Under any other name it starts an interactive shell holding a single
connection::

    gfcli -o '*replicate*.data-self-heal=on' glfs://localhost/groot
"""

__version__ = "0.3.0"

PACKAGE_NAME = "glusterfs-coreutils"
LICENSE = ("License GPLv3+: GNU GPL version 3 or later "
           "<http://gnu.org/licenses/gpl.html>.")

__all__ = [
    "GfcliError",
    "InvalidOption",
    "ParserExit",
    "UnknownCommand",
    "UsageError",
    "VolumeConnectionError",
]


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------

class GfcliError(Exception):
    """Base exception for errors raised by the shell and its commands."""


class UsageError(GfcliError):
    """Bad flags or arguments.

    Attributes:
        message: What was wrong with the arguments.
        usage: The usage line of the parser that rejected them (may be
            empty).
    """

    def __init__(self, message: str, usage: str = "") -> None:
        self.message = message
        self.usage = usage
        super().__init__(message)


class ParserExit(GfcliError):
    """An argument parser finished early (--help, --version).

    Attributes:
        status: Exit status the parser asked for.
    """

    def __init__(self, status: int = 0) -> None:
        self.status = status
        super().__init__("parser exited with status {}".format(status))


class InvalidOption(GfcliError):
    """A translator option is not of the form ``namespace.key=value``.

    Attributes:
        text: The offending argument, as given.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__("invalid translator option: {!r}".format(text))


class VolumeConnectionError(GfcliError):
    """Connecting to a volume, or applying options to it, failed."""


class UnknownCommand(GfcliError):
    """No registered command matches the given name.

    Attributes:
        name: The command name that failed to match.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("Unknown command {!r}".format(name))
