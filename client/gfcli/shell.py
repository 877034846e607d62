"""Interactive shell for gfcli."""

import cmd
import logging
import os
import sys

from . import UnknownCommand
from .colors import ColorWriter
from .commands import command_names, dispatch

log = logging.getLogger(__name__)

HISTORY_FILE = os.path.join("~", ".gfcli_history")


def split_line(line):
    """Split one line of input into an argument vector.

    Words are separated by single spaces; there is no quoting.  Consecutive
    spaces give empty words, so N spaces always give N+1 words.  A blank
    line gives an empty list.

    Examples:
        "ls -a /vol\\n"  -> ["ls", "-a", "/vol"]
        "ls  /vol"       -> ["ls", "", "/vol"]
        "   "            -> []
    """
    line = line.rstrip("\r\n")
    if not line.strip():
        return []
    return line.split(" ")


class GlusterShell(cmd.Cmd):
    """Read-dispatch loop over the command registry.

    Every line is split into a fresh argument vector, stored in the
    context, and handed to the command named by its first word.  A failing
    command never ends the loop; only end of input or 'quit'/'exit' does.
    KeyboardInterrupt is left to the caller.
    """

    prompt = "gfcli> "

    def __init__(self, ctx, stdin=None, stdout=None):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.ctx = ctx
        self.cw = ColorWriter()
        self.last_status = 0

    def run(self):
        """Run the loop once, until end of input or 'quit'.  Returns 0."""
        self.cmdloop()
        return 0

    def cmdloop(self, intro=None):
        """Read and dispatch lines until end of input or 'quit'.

        Unlike cmd.Cmd's loop, end of input is not turned into the line
        "EOF", so a typed "EOF" is dispatched like any other word.
        """
        self.preloop()
        old_completer = None
        if self.use_rawinput and self.completekey:
            try:
                import readline
                old_completer = readline.get_completer()
                readline.set_completer(self.complete)
                readline.parse_and_bind(self.completekey + ": complete")
            except ImportError:
                pass
        try:
            stop = False
            while not stop:
                line = self._read_line()
                if line is None:
                    if self.use_rawinput:
                        print()  # newline after ^D
                    break
                line = self.precmd(line)
                stop = self.onecmd(line)
                stop = self.postcmd(stop, line)
            self.postloop()
        finally:
            if old_completer is not None:
                import readline
                readline.set_completer(old_completer)

    def _read_line(self):
        """Return the next line without its newline, or None at end of input."""
        if self.use_rawinput:
            try:
                return input(self.prompt)
            except EOFError:
                return None
        self.stdout.write(self.prompt)
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            return None
        return line.rstrip("\r\n")

    # -- Lifecycle ---------------------------------------------------------

    def preloop(self):
        """Set the prompt and, on a terminal, load readline history."""
        self._update_prompt()
        if not self.use_rawinput:
            return
        try:
            import readline
            readline.set_completer_delims(" \t\n")
            histfile = os.path.expanduser(HISTORY_FILE)
            try:
                readline.read_history_file(histfile)
            except (FileNotFoundError, OSError):
                pass
            import atexit
            atexit.register(readline.write_history_file, histfile)
        except ImportError:
            pass
        print('Type "help" for a list of commands, "quit" to exit.')

    def _update_prompt(self):
        """Show the connection in the prompt when there is one."""
        if self.ctx.conn_str:
            self.prompt = "gfcli {}> ".format(self.ctx.conn_str)
        else:
            self.prompt = "gfcli> "

    def postcmd(self, stop, line):
        self._update_prompt()
        return stop

    # -- Dispatch ----------------------------------------------------------

    def onecmd(self, line):
        """Dispatch one line.  Returns True when the loop should stop."""
        argv = split_line(line)
        if not argv:
            return self.emptyline()

        name = argv[0].rstrip()
        self.ctx.argv = argv
        try:
            self.last_status = dispatch(name, self.ctx)
        except UnknownCommand as e:
            print(self.cw.error(
                "Unknown command '{}'. Type 'help' for more.".format(e.name)),
                file=sys.stderr)
        except Exception as e:
            log.debug("%s failed", name, exc_info=True)
            print(self.cw.error("{}: {}".format(name, e)), file=sys.stderr)
            self.last_status = 1
        finally:
            self.ctx.argv = []
        return self.ctx.quit_requested

    def emptyline(self):
        """Do nothing on empty input (override cmd.Cmd's default repeat)."""
        return False

    def completenames(self, text, *ignored):
        return sorted(n for n in command_names() if n.startswith(text))

    def completedefault(self, *ignored):
        return []
