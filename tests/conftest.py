"""Shared fixtures for gfcli tests.

No Gluster server is needed: volumes are replaced by an in-memory fake
with the same interface as gfcli.volume.GlusterVolume.

Usage:
    pytest tests/ -v
"""

import errno
import io
import os
import posixpath
import stat
import sys

import pytest

# Add the client package to the path so tests can import gfcli
_client_dir = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "client",
)
if _client_dir not in sys.path:
    sys.path.insert(0, _client_dir)

from gfcli import VolumeConnectionError
from gfcli import options
from gfcli.context import CliContext


# ---------------------------------------------------------------------------
# In-memory volume
# ---------------------------------------------------------------------------

def _enoent(path):
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)


class FakeFile(io.BytesIO):
    """A file on a FakeVolume; writes are stored on close."""

    def __init__(self, backend, path, mode):
        initial = backend.files[path] if "r" in mode else b""
        super().__init__(initial)
        self._backend = backend
        self._path = path
        self._mode = mode

    def lseek(self, pos, how=os.SEEK_SET):
        if "r" in self._mode:
            # Pick up data appended since the file was opened
            self.seek(0)
            self.truncate()
            self.write(self._backend.files.get(self._path, b""))
        return self.seek(pos, how)

    def close(self):
        if not self.closed and "w" in self._mode:
            self._backend.files[self._path] = self.getvalue()
        super().close()


class FakeVolume:
    """Stands in for GlusterVolume; storage lives on the FakeBackend."""

    def __init__(self, backend, url, debug=False):
        self.backend = backend
        self.url = url
        self.debug = debug
        self.mounted = False
        self.mount_count = 0
        self.umount_count = 0
        self.options = []

    def mount(self):
        if self.backend.fail_mount:
            raise VolumeConnectionError(
                "Failed to connect to {}".format(self.url.host))
        self.mounted = True
        self.mount_count += 1

    def set_xlator_option(self, key, value):
        if key in self.backend.reject_options:
            raise VolumeConnectionError(
                "Failed to set translator option {}={}".format(key, value))
        self.options.append((key, value))

    def umount(self):
        self.umount_count += 1
        self.mounted = False

    # -- File calls ----------------------------------------------------------

    def _norm(self, path):
        return posixpath.normpath(posixpath.join("/", path))

    def _children(self, path):
        names = set()
        for entry in list(self.backend.files) + list(self.backend.dirs):
            if entry != path and posixpath.dirname(entry) == path:
                names.add(posixpath.basename(entry))
        return names

    def listdir(self, path):
        path = self._norm(path)
        if path not in self.backend.dirs:
            raise _enoent(path)
        return list(self._children(path))

    def stat(self, path):
        path = self._norm(path)
        if path in self.backend.dirs:
            return os.stat_result(
                (stat.S_IFDIR | 0o755, 1, 1, 2, 0, 0, 4096, 0, 0, 0))
        if path in self.backend.files:
            size = len(self.backend.files[path])
            return os.stat_result(
                (stat.S_IFREG | 0o644, 2, 1, 1, 0, 0, size, 0, 0, 0))
        raise _enoent(path)

    def isdir(self, path):
        return self._norm(path) in self.backend.dirs

    def fopen(self, path, mode="r"):
        path = self._norm(path)
        if "r" in mode and path not in self.backend.files:
            raise _enoent(path)
        if posixpath.dirname(path) not in self.backend.dirs:
            raise _enoent(path)
        return FakeFile(self.backend, path, mode)

    def mkdir(self, path, mode=0o777):
        path = self._norm(path)
        if path in self.backend.dirs or path in self.backend.files:
            raise FileExistsError(
                errno.EEXIST, os.strerror(errno.EEXIST), path)
        if posixpath.dirname(path) not in self.backend.dirs:
            raise _enoent(path)
        self.backend.dirs.add(path)

    def makedirs(self, path, mode=0o777):
        path = self._norm(path)
        while path not in self.backend.dirs:
            self.backend.dirs.add(path)
            path = posixpath.dirname(path)

    def unlink(self, path):
        path = self._norm(path)
        if path in self.backend.dirs:
            raise IsADirectoryError(
                errno.EISDIR, os.strerror(errno.EISDIR), path)
        if path not in self.backend.files:
            raise _enoent(path)
        del self.backend.files[path]

    def rmdir(self, path):
        path = self._norm(path)
        if path not in self.backend.dirs:
            raise _enoent(path)
        if self._children(path):
            raise OSError(errno.ENOTEMPTY, os.strerror(errno.ENOTEMPTY), path)
        self.backend.dirs.discard(path)

    def rmtree(self, path):
        path = self._norm(path)
        if path not in self.backend.dirs:
            raise _enoent(path)
        prefix = path + "/"
        for name in [f for f in self.backend.files if f.startswith(prefix)]:
            del self.backend.files[name]
        self.backend.dirs = {d for d in self.backend.dirs
                             if d != path and not d.startswith(prefix)}


class FakeBackend:
    """Volume factory handing out FakeVolumes over one shared tree.

    Attributes:
        volumes: Every volume created, oldest first.
        fail_mount: Make mount() raise VolumeConnectionError.
        reject_options: Option keys set_xlator_option() refuses.
    """

    def __init__(self):
        self.volumes = []
        self.fail_mount = False
        self.reject_options = set()
        self.dirs = {"/"}
        self.files = {}

    def __call__(self, url, debug=False):
        volume = FakeVolume(self, url, debug)
        self.volumes.append(volume)
        return volume

    def add_file(self, path, data):
        """Create a file and its parent directories."""
        parent = posixpath.dirname(path)
        while parent not in self.dirs:
            self.dirs.add(parent)
            parent = posixpath.dirname(parent)
        self.files[path] = data


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def no_default_config(tmp_path, monkeypatch):
    """Keep a config file in the user's home out of the tests."""
    monkeypatch.setattr(options, "DEFAULT_CONFIG_PATH",
                        str(tmp_path / "missing.conf"))


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def ctx(backend):
    """A shell-mode context using the fake backend, not connected."""
    c = CliContext(["gfcli"], volume_factory=backend)
    c.in_shell = True
    yield c
    c.cleanup()


@pytest.fixture
def connected(ctx):
    """The ctx fixture, connected to glfs://localhost/groot."""
    ctx.connect("glfs://localhost/groot")
    return ctx
