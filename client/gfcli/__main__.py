"""CLI entry point for gfcli.

The program name selects the mode.  Installed as one of the command names
(``gfcat``, ``gfls``, ...) it runs that command and exits::

    gfls -l glfs://localhost/groot/logs

Under any other name it starts the interactive shell::

    gfcli -o '*replicate*.data-self-heal=on' glfs://localhost/groot
"""

import logging
import os
import sys

from . import GfcliError, ParserExit, UsageError
from .commands import get_command
from .context import CliContext
from .options import parse_options
from .shell import GlusterShell

log = logging.getLogger("gfcli")


def _setup_logging():
    """Send package log records to stderr, warnings and above by default."""
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("gfcli: %(levelname)s: %(message)s"))
        log.addHandler(handler)
    log.setLevel(logging.WARNING)


def run(argv=None, volume_factory=None, stdin=None):
    """Run gfcli with *argv* and return the exit status.

    The context is cleaned up exactly once on every path out of here,
    including Ctrl-C.
    """
    if argv is None:
        argv = sys.argv
    prog = os.path.basename(argv[0]) if argv else "gfcli"
    if prog == "__main__.py":
        prog = "gfcli"
    _setup_logging()

    ctx = CliContext(argv, volume_factory=volume_factory)
    try:
        cmd = get_command(prog)
        if cmd is not None:
            ctx.in_shell = False
            status = cmd.handler(ctx)
            return 1 if status < 0 else status

        # Only parse options if we are being invoked as a shell
        ctx.in_shell = True
        parse_options(ctx, argv[1:], prog=prog)
        ctx.argv = []
        status = GlusterShell(ctx, stdin=stdin).run()
        for option in ctx.config.xlator_options:
            log.debug("translator option %s=%s", option.key, option.value)
        return status
    except ParserExit as e:
        return e.status
    except UsageError as e:
        sys.stderr.write(e.usage)
        print("{}: error: {}".format(prog, e.message), file=sys.stderr)
        return 2
    except GfcliError as e:
        print("{}: {}".format(prog, e), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print()
        return 0
    finally:
        ctx.cleanup()


def main() -> None:
    """Console script entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
