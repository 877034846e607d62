"""Option parsing for the shell and its commands.

Translator options are given as ``-o namespace.key=value`` and kept in the
order they were given; when applied, later duplicates win.  The shell's
startup flags may come from a config file as well as the command line:

    [gfcli]
    debug = yes
    url = glfs://localhost/groot

    [xlator-options]
    *replicate*.data-self-heal = on
"""

import argparse
import configparser
import logging
import os
import sys
from collections import namedtuple

from . import (
    InvalidOption, LICENSE, PACKAGE_NAME, ParserExit, UsageError,
    __version__,
)

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join("~", ".config", "gfcli", "gfcli.conf")


XlatorOption = namedtuple("XlatorOption", ["key", "value"])


class Config:
    """Settings threaded through every command.

    Attributes:
        debug: Verbose logging for the shell and the volume library.
        xlator_options: XlatorOption list, in the order given.
    """

    def __init__(self):
        self.debug = False
        self.xlator_options = []

    def __repr__(self):
        return "Config(debug={}, xlator_options={!r})".format(
            self.debug, self.xlator_options)


def parse_xlator_option(text):
    """Parse ``namespace.key=value`` into an XlatorOption.

    Raises InvalidOption if there is no ``=`` or the key is empty.  The
    value may be empty and may itself contain ``=``.
    """
    key, sep, value = text.partition("=")
    if not sep or not key:
        raise InvalidOption(text)
    return XlatorOption(key, value)


def set_debug(enabled):
    """Switch the package loggers between debug and warning level."""
    logging.getLogger("gfcli").setLevel(
        logging.DEBUG if enabled else logging.WARNING)


def add_xlator_options(config, texts):
    """Parse each of *texts* and append it to *config* in order."""
    for text in texts or ():
        config.xlator_options.append(parse_xlator_option(text))


# ---------------------------------------------------------------------------
# Argument parsers
# ---------------------------------------------------------------------------

class ArgumentParser(argparse.ArgumentParser):
    """An ArgumentParser that raises instead of exiting the process.

    Commands typed at the shell prompt are parsed with this too, and a typo
    there must not end the session.  Callers at the top level turn
    UsageError and ParserExit into exit statuses.
    """

    def error(self, message):
        raise UsageError(message, self.format_usage())

    def exit(self, status=0, message=None):
        if message:
            self._print_message(message, sys.stderr)
        raise ParserExit(status)


def common_options():
    """Return a parent parser holding the flags every command accepts."""
    parser = ArgumentParser(add_help=False)
    parser.add_argument(
        "-d", "--debug", action="store_true",
        help="enable debug logging")
    parser.add_argument(
        "-o", "--xlator-option", dest="xlator_options", action="append",
        default=[], metavar="OPTION",
        help="specify a translator option for the connection; may be "
             "repeated, each of the form xlator.key=value")
    return parser


def version_string(prog):
    return "{} ({}) {}\n{}\n".format(prog, PACKAGE_NAME, __version__, LICENSE)


def build_shell_parser(prog="gfcli"):
    """Build the parser for the shell's startup arguments."""
    parser = ArgumentParser(
        prog=prog,
        parents=[common_options()],
        description="Start a Gluster shell to execute commands on a remote "
                    "Gluster volume.",
        epilog="Examples:\n"
               "  {0} glfs://localhost/groot\n"
               "        Start a shell with a connection to localhost opened.\n"
               "  {0} -o *replicate*.data-self-heal=on glfs://localhost/groot\n"
               "        Start a shell with a connection to localhost open, "
               "with the\n"
               "        translator option data-self-heal set to on.".format(
                   prog),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=version_string(prog))
    parser.add_argument(
        "--config", default=None, metavar="PATH",
        help="path to config file (default: {})".format(DEFAULT_CONFIG_PATH))
    parser.add_argument(
        "url", nargs="?", default=None, metavar="URL",
        help="volume to connect to, as glfs://host/volume")
    return parser


# ---------------------------------------------------------------------------
# Config file
# ---------------------------------------------------------------------------

def load_config(path, explicit):
    """Load settings from a config file.

    Args:
        path: File path to read (``~`` is expanded).
        explicit: True if the user passed --config (errors are fatal).

    Returns a dict with keys 'debug', 'url' and 'xlator_options' (the
    latter a list of XlatorOption).  Missing or unreadable files give an
    empty dict unless *explicit*, in which case UsageError is raised.
    """
    path = os.path.expanduser(path)
    if not os.path.exists(path):
        if explicit:
            raise UsageError("config file not found: {}".format(path))
        return {}

    # Option names are translator keys and must keep their case
    config = configparser.ConfigParser(interpolation=None)
    config.optionxform = str
    try:
        config.read(path)
        debug = config.getboolean("gfcli", "debug", fallback=False)
    except (configparser.Error, ValueError) as e:
        if explicit:
            raise UsageError("failed to parse config file: {}".format(e))
        log.warning("failed to parse config file %s: %s", path, e)
        return {}

    url = config.get("gfcli", "url", fallback=None)
    if url is not None:
        url = url.strip() or None

    options = []
    if config.has_section("xlator-options"):
        for key, value in config.items("xlator-options"):
            options.append(parse_xlator_option("{}={}".format(key, value)))

    log.debug("loaded config file %s", path)
    return {"debug": debug, "url": url, "xlator_options": options}


# ---------------------------------------------------------------------------
# Shell startup
# ---------------------------------------------------------------------------

def parse_options(ctx, argv, prog="gfcli"):
    """Parse the shell's startup arguments into *ctx*.

    Config-file options are added before the command line's, so ``-o``
    overrides the file.  If a URL is given (or configured) the connection
    is opened here and all translator options are applied to it.

    Raises UsageError, ParserExit or InvalidOption for bad arguments and
    VolumeConnectionError if the eager connection fails; all are fatal at
    startup.
    """
    args = build_shell_parser(prog).parse_args(argv)

    cfg = load_config(args.config or DEFAULT_CONFIG_PATH,
                      explicit=args.config is not None)

    ctx.config.debug = args.debug or cfg.get("debug", False)
    set_debug(ctx.config.debug)
    ctx.config.xlator_options.extend(cfg.get("xlator_options", []))
    add_xlator_options(ctx.config, args.xlator_options)

    url = args.url or cfg.get("url")
    if url:
        ctx.connect(url)
    return ctx.config
