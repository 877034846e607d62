"""Command registry and dispatcher.

Every command is a function taking the CliContext and returning an integer
status; its arguments are in ``ctx.argv`` with the name it was invoked by
first.  The first line of a handler's docstring is its summary in 'help'.
"""

import logging
import sys
from collections import namedtuple

from . import GfcliError, UnknownCommand, UsageError
from . import fileops
from .options import ArgumentParser, parse_xlator_option

log = logging.getLogger(__name__)


Command = namedtuple("Command", ["name", "alias", "handler"])


def _summary(handler):
    doc = handler.__doc__ or ""
    return doc.strip().split("\n", 1)[0]


# ---------------------------------------------------------------------------
# Session commands
# ---------------------------------------------------------------------------

def cli_connect(ctx):
    """Connect to a volume, replacing any current connection.

    Usage: connect [-o OPTION]... URL

    The translator options given here are applied to the new connection
    after those from startup.  They are not kept for later connections.

    Examples:
        connect glfs://localhost/groot
        connect -o *replicate*.data-self-heal=on glfs://10.0.0.1/groot"""
    parser = ArgumentParser(prog=ctx.argv[0], add_help=False)
    parser.add_argument("-o", "--xlator-option", dest="xlator_options",
                        action="append", default=[])
    parser.add_argument("url")
    try:
        args = parser.parse_args(ctx.argv[1:])
        options = [parse_xlator_option(o) for o in args.xlator_options]
        ctx.connect(args.url, options)
    except UsageError:
        print("Usage: connect [-o OPTION]... URL", file=sys.stderr)
        return 1
    except GfcliError as e:
        print("{}: {}".format(ctx.argv[0], e), file=sys.stderr)
        return 1
    return 0


def cli_disconnect(ctx):
    """Close the current connection."""
    ctx.disconnect()
    return 0


def shell_usage(ctx):
    """List the commands, or show help for one.

    Usage: help [COMMAND]"""
    if ctx.argc > 1 and ctx.argv[1]:
        cmd = get_command(ctx.argv[1])
        if cmd is None:
            print("No help for '{}'.".format(ctx.argv[1]), file=sys.stderr)
            return 1
        print(cmd.handler.__doc__)
        return 0

    print("The following commands are supported:")
    for cmd in sorted(COMMANDS, key=lambda c: c.name):
        print("* {:<11}{}".format(cmd.name, _summary(cmd.handler)))
    return 0


def handle_quit(ctx):
    """Close the connection and leave the shell."""
    ctx.quit_requested = True
    return 0


def not_implemented(ctx):
    """Not implemented yet."""
    print("{}: not implemented".format(ctx.argv[0]), file=sys.stderr)
    return 1


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

COMMANDS = (
    Command("connect", None, cli_connect),
    Command("disconnect", None, cli_disconnect),
    Command("cat", "gfcat", fileops.do_cat),
    Command("cp", "gfcp", fileops.do_cp),
    Command("help", None, shell_usage),
    Command("ls", "gfls", fileops.do_ls),
    Command("mkdir", "gfmkdir", fileops.do_mkdir),
    Command("mv", "gfmv", not_implemented),
    Command("quit", "exit", handle_quit),
    Command("rm", "gfrm", fileops.do_rm),
    Command("stat", "gfstat", fileops.do_stat),
    Command("tail", "gftail", fileops.do_tail),
)


def get_command(name):
    """Return the Command whose name or alias is exactly *name*, or None."""
    for cmd in COMMANDS:
        if name == cmd.name or (cmd.alias is not None and name == cmd.alias):
            return cmd
    return None


def command_names():
    """All names and aliases, for completion."""
    names = []
    for cmd in COMMANDS:
        names.append(cmd.name)
        if cmd.alias is not None:
            names.append(cmd.alias)
    return names


def dispatch(name, ctx):
    """Run the command called *name* with *ctx* and return its status.

    Raises UnknownCommand if nothing is registered under that name.  A
    handler's own failures come back as its status.
    """
    cmd = get_command(name)
    if cmd is None:
        raise UnknownCommand(name)
    log.debug("Dispatching %s %r", cmd.name, ctx.argv[1:])
    return cmd.handler(ctx)
