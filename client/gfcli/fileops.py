"""File commands: cat, cp, ls, mkdir, rm, stat, tail.

Each command works in both modes.  Typed at the shell prompt, its path
arguments are paths on the connected volume::

    gfcli glfs://localhost/groot> ls -l /logs

Run directly (as ``gfls`` and friends), its arguments are full URLs and the
connection is opened for the command::

    gfls -l glfs://localhost/groot/logs
"""

import functools
import logging
import os
import posixpath
import stat
import sys
import time

from . import GfcliError, ParserExit, UsageError, VolumeConnectionError
from .options import (
    ArgumentParser, add_xlator_options, common_options, set_debug,
)
from .volume import SCHEME, parse_url

log = logging.getLogger(__name__)

CHUNK_SIZE = 128 * 1024


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _command(func):
    """Report a command's errors on stderr and return them as its status."""
    @functools.wraps(func)
    def wrapper(ctx):
        prog = os.path.basename(ctx.argv[0]) if ctx.argv else "gfcli"
        try:
            return func(ctx)
        except ParserExit as e:
            return e.status
        except UsageError as e:
            sys.stderr.write(e.usage)
            print("{}: {}".format(prog, e.message), file=sys.stderr)
            return 2
        except GfcliError as e:
            print("{}: {}".format(prog, e), file=sys.stderr)
            return 1
        except OSError as e:
            _report(prog, e)
            return 1
    return wrapper


def _report(prog, err, path=None):
    """Print an OSError the way coreutils does: ``prog: path: reason``."""
    reason = err.strerror or str(err)
    path = path or err.filename
    if path:
        print("{}: {}: {}".format(prog, path, reason), file=sys.stderr)
    else:
        print("{}: {}".format(prog, reason), file=sys.stderr)


def _parser(ctx, description):
    """Build a parser for a file command.

    Run directly, the command also takes the connection flags (-o, -d).  A
    command may claim one of their short forms for itself, as rm does -d.
    """
    parents = [] if ctx.in_shell else [common_options()]
    return ArgumentParser(prog=os.path.basename(ctx.argv[0]),
                          description=description, parents=parents,
                          conflict_handler="resolve")


def _parse(ctx, parser):
    """Parse the command's arguments, skipping empty words.

    Direct invocations fold their connection flags into ctx.config.
    """
    args = parser.parse_args([a for a in ctx.argv[1:] if a])
    if not ctx.in_shell:
        if args.debug:
            ctx.config.debug = True
            set_debug(True)
        add_xlator_options(ctx.config, args.xlator_options)
    return args


def _same_volume(a, b):
    return (a.host, a.port, a.volume) == (b.host, b.port, b.volume)


def _volume_for(ctx, target):
    """Return (volume, path) for a path argument.

    In the shell, *target* is a path on the connected volume.  Otherwise it
    is a URL; a connection to its volume is opened unless one is already
    held.
    """
    if ctx.in_shell:
        if ctx.volume is None:
            raise VolumeConnectionError(
                "Not connected. Use 'connect URL' first.")
        return ctx.volume, target
    url = parse_url(target)
    if ctx.volume is None or not _same_volume(ctx.url, url):
        ctx.connect(target)
    return ctx.volume, url.path


def _is_remote(ctx, target):
    return ctx.in_shell or target.startswith(SCHEME + "://")


def _read_chunks(f):
    while True:
        chunk = f.read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


def _write_out(data):
    sys.stdout.flush()
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@_command
def do_cat(ctx):
    """Print files from the volume.

    Usage: cat PATH...

    Examples:
        cat /etc/motd
        gfcat glfs://localhost/groot/etc/motd"""
    parser = _parser(ctx, "Print files from a Gluster volume.")
    parser.add_argument("paths", nargs="+", metavar="PATH")
    args = _parse(ctx, parser)

    status = 0
    for target in args.paths:
        volume, path = _volume_for(ctx, target)
        try:
            with volume.fopen(path, "r") as f:
                for chunk in _read_chunks(f):
                    _write_out(chunk)
        except OSError as e:
            _report(parser.prog, e, target)
            status = 1
    return status


@_command
def do_cp(ctx):
    """Copy a file to, from, or within the volume.

    Usage: cp SOURCE DEST

    At the shell prompt both paths are on the connected volume.  Run
    directly, either side may be a local file; two URLs must name the same
    volume.

    Examples:
        cp /data/a.txt /backup/a.txt
        gfcp notes.txt glfs://localhost/groot/notes.txt
        gfcp glfs://localhost/groot/notes.txt ./notes.txt"""
    parser = _parser(ctx, "Copy a file to, from, or within a Gluster volume.")
    parser.add_argument("source", metavar="SOURCE")
    parser.add_argument("dest", metavar="DEST")
    args = _parse(ctx, parser)

    remote_src = _is_remote(ctx, args.source)
    remote_dst = _is_remote(ctx, args.dest)
    if (not ctx.in_shell and remote_src and remote_dst
            and not _same_volume(parse_url(args.source),
                                 parse_url(args.dest))):
        raise UsageError("source and destination must be on the same volume")

    if remote_src:
        volume, path = _volume_for(ctx, args.source)
        src = volume.fopen(path, "r")
    else:
        src = open(args.source, "rb")
    with src:
        if remote_dst:
            volume, path = _volume_for(ctx, args.dest)
            dst = volume.fopen(path, "w")
        else:
            dst = open(args.dest, "wb")
        with dst:
            for chunk in _read_chunks(src):
                dst.write(chunk)
    return 0


def _format_long(st, name):
    mtime = time.strftime("%Y-%m-%d %H:%M", time.localtime(st.st_mtime))
    return "{} {:>3} {:>5} {:>5} {:>10} {} {}".format(
        stat.filemode(st.st_mode), st.st_nlink, st.st_uid, st.st_gid,
        st.st_size, mtime, name)


@_command
def do_ls(ctx):
    """List directory contents.

    Usage: ls [-a] [-l] [PATH]...

    -a  Include entries starting with '.'.
    -l  Long listing: mode, links, owner, group, size, date.

    Examples:
        ls
        ls -l /logs
        gfls glfs://localhost/groot/logs"""
    parser = _parser(ctx, "List directory contents on a Gluster volume.")
    parser.add_argument("-a", "--all", action="store_true",
                        help="do not ignore entries starting with .")
    parser.add_argument("-l", dest="long", action="store_true",
                        help="use a long listing format")
    parser.add_argument("paths", nargs="*" if ctx.in_shell else "+",
                        metavar="PATH")
    args = _parse(ctx, parser)

    targets = args.paths or ["/"]
    status = 0
    for i, target in enumerate(targets):
        volume, path = _volume_for(ctx, target)
        try:
            if not volume.isdir(path):
                st = volume.stat(path)
                print(_format_long(st, target) if args.long else target)
                continue
            names = sorted(volume.listdir(path))
            if not args.all:
                names = [n for n in names if not n.startswith(".")]
            if len(targets) > 1:
                if i:
                    print()
                print("{}:".format(target))
            for name in names:
                if args.long:
                    st = volume.stat(posixpath.join(path, name))
                    print(_format_long(st, name))
                else:
                    print(name)
        except OSError as e:
            _report(parser.prog, e, target)
            status = 1
    return status


@_command
def do_mkdir(ctx):
    """Create directories.

    Usage: mkdir [-p] [-m MODE] PATH...

    -p       Create parent directories as needed; no error if existing.
    -m MODE  Octal permission bits (default 0777, before umask)."""
    parser = _parser(ctx, "Create directories on a Gluster volume.")
    parser.add_argument("-p", "--parents", action="store_true",
                        help="make parent directories as needed")
    parser.add_argument("-m", "--mode", type=lambda s: int(s, 8),
                        default=0o777, help="set file mode (octal)")
    parser.add_argument("paths", nargs="+", metavar="PATH")
    args = _parse(ctx, parser)

    status = 0
    for target in args.paths:
        volume, path = _volume_for(ctx, target)
        try:
            if args.parents:
                if not volume.isdir(path):
                    volume.makedirs(path, args.mode)
            else:
                volume.mkdir(path, args.mode)
        except OSError as e:
            _report(parser.prog, e, target)
            status = 1
    return status


@_command
def do_rm(ctx):
    """Remove files or directories.

    Usage: rm [-r] [-d] PATH...

    -r  Remove directories and their contents recursively.
    -d  Remove empty directories."""
    parser = _parser(ctx, "Remove files or directories on a Gluster volume.")
    parser.add_argument("-r", "-R", "--recursive", action="store_true",
                        help="remove directories and their contents")
    parser.add_argument("-d", "--dir", action="store_true",
                        help="remove empty directories")
    parser.add_argument("paths", nargs="+", metavar="PATH")
    args = _parse(ctx, parser)

    status = 0
    for target in args.paths:
        volume, path = _volume_for(ctx, target)
        try:
            if args.recursive:
                volume.rmtree(path)
            elif args.dir and volume.isdir(path):
                volume.rmdir(path)
            else:
                volume.unlink(path)
        except OSError as e:
            _report(parser.prog, e, target)
            status = 1
    return status


def _file_type(mode):
    if stat.S_ISDIR(mode):
        return "directory"
    if stat.S_ISREG(mode):
        return "regular file"
    if stat.S_ISLNK(mode):
        return "symbolic link"
    return "special file"


def _format_time(seconds):
    return time.strftime("%Y-%m-%d %H:%M:%S %z", time.localtime(seconds))


@_command
def do_stat(ctx):
    """Show file status.

    Usage: stat PATH..."""
    parser = _parser(ctx, "Display file status on a Gluster volume.")
    parser.add_argument("paths", nargs="+", metavar="PATH")
    args = _parse(ctx, parser)

    status = 0
    for target in args.paths:
        volume, path = _volume_for(ctx, target)
        try:
            st = volume.stat(path)
        except OSError as e:
            _report(parser.prog, e, target)
            status = 1
            continue
        print("  File: {}".format(target))
        print("  Size: {:<15} Links: {:<6} {}".format(
            st.st_size, st.st_nlink, _file_type(st.st_mode)))
        print("Access: ({:04o}/{})  Uid: ({:>5})   Gid: ({:>5})".format(
            stat.S_IMODE(st.st_mode), stat.filemode(st.st_mode),
            st.st_uid, st.st_gid))
        print("Access: {}".format(_format_time(st.st_atime)))
        print("Modify: {}".format(_format_time(st.st_mtime)))
        print("Change: {}".format(_format_time(st.st_ctime)))
    return status


@_command
def do_tail(ctx):
    """Print the end of a file, optionally following appends.

    Usage: tail [-n LINES] [-f] [-s SECONDS] PATH

    -n LINES    Number of lines to print (default 10).
    -f          Keep printing data appended to the file. Press Ctrl-C
                to stop.
    -s SECONDS  With -f, seconds between checks (default 1).

    Examples:
        tail /logs/brick.log
        tail -f -n 0 /logs/brick.log"""
    parser = _parser(ctx, "Print the end of a file on a Gluster volume.")
    parser.add_argument("-n", "--lines", type=int, default=10,
                        help="output the last LINES lines")
    parser.add_argument("-f", "--follow", action="store_true",
                        help="output appended data as the file grows")
    parser.add_argument("-s", "--sleep-interval", type=float, default=1.0,
                        metavar="SECONDS", help="seconds between checks")
    parser.add_argument("path", metavar="PATH")
    args = _parse(ctx, parser)
    if args.lines < 0:
        raise UsageError("invalid number of lines: {}".format(args.lines))
    if args.sleep_interval < 0:
        raise UsageError("invalid number of seconds: {}".format(
            args.sleep_interval))

    volume, path = _volume_for(ctx, args.path)
    with volume.fopen(path, "r") as f:
        data = b"".join(_read_chunks(f))
        lines = data.splitlines(True)
        if args.lines:
            _write_out(b"".join(lines[-args.lines:]))
        offset = len(data)

        if not args.follow:
            return 0
        try:
            while True:
                time.sleep(args.sleep_interval)
                size = volume.stat(path).st_size
                if size < offset:
                    print("{}: {}: file truncated".format(
                        parser.prog, args.path), file=sys.stderr)
                    offset = 0
                if size > offset:
                    f.lseek(offset, os.SEEK_SET)
                    for chunk in _read_chunks(f):
                        _write_out(chunk)
                        offset += len(chunk)
        except KeyboardInterrupt:
            log.debug("tail of %s stopped", args.path)
    return 0
