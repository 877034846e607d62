"""Gluster volume URLs and the adapter around the libgfapi bindings.

The storage client itself is ``gluster.gfapi`` (libgfapi-python), shipped
with GlusterFS.  It is imported on first mount so that the shell can start,
print help and parse options on machines without the Gluster libraries.
"""

import logging
from collections import namedtuple
from typing import List, Optional
from urllib.parse import urlsplit

from . import VolumeConnectionError

log = logging.getLogger(__name__)

SCHEME = "glfs"
DEFAULT_PORT = 24007

# libgfapi log levels (GF_LOG_ERROR, GF_LOG_DEBUG)
_LOG_LEVEL_QUIET = 4
_LOG_LEVEL_DEBUG = 8


GlusterURL = namedtuple("GlusterURL", ["host", "port", "volume", "path"])
GlusterURL.__doc__ = """A parsed ``glfs://host[:port]/volume[/path]`` URL."""


def parse_url(text: str) -> GlusterURL:
    """Parse a Gluster URL.

    The path defaults to ``/`` and the port to 24007.  Raises
    VolumeConnectionError if the scheme is not ``glfs`` or the host or
    volume name is missing.

    Examples:
        glfs://localhost/groot          -> ("localhost", 24007, "groot", "/")
        glfs://10.0.0.1:24008/vol/a/b   -> ("10.0.0.1", 24008, "vol", "/a/b")
    """
    parts = urlsplit(text)
    if parts.scheme != SCHEME:
        raise VolumeConnectionError(
            "Invalid Gluster URL {!r}: expected {}://host/volume".format(
                text, SCHEME))
    try:
        port = parts.port
    except ValueError:
        raise VolumeConnectionError(
            "Invalid port in Gluster URL {!r}".format(text))
    host = parts.hostname
    if not host:
        raise VolumeConnectionError(
            "Invalid Gluster URL {!r}: missing host".format(text))

    volume, _, path = parts.path.lstrip("/").partition("/")
    if not volume:
        raise VolumeConnectionError(
            "Invalid Gluster URL {!r}: missing volume name".format(text))

    return GlusterURL(host, port if port is not None else DEFAULT_PORT,
                      volume, "/" + path)


def split_option_key(key: str):
    """Split ``xlator.option`` into its translator and option parts.

    The translator part may be a glob (``*replicate*``).  A key without a
    dot has no translator and is returned as ("", key).
    """
    xlator, dot, name = key.partition(".")
    if not dot:
        return "", key
    return xlator, name


class GlusterVolume:
    """A mounted Gluster volume, backed by ``gluster.gfapi.Volume``.

    Created unmounted; ``mount()`` opens the connection and ``umount()``
    releases it.  File calls are passed straight through to the bindings,
    which raise OSError on failure.
    """

    def __init__(self, url: GlusterURL, debug: bool = False) -> None:
        self.url = url
        self.debug = debug
        self._vol = None

    def __repr__(self) -> str:
        state = "mounted" if self._vol is not None else "unmounted"
        return "GlusterVolume({}:{}/{}, {})".format(
            self.url.host, self.url.port, self.url.volume, state)

    @property
    def mounted(self) -> bool:
        return self._vol is not None

    # -- Connection lifecycle ----------------------------------------------

    def mount(self) -> None:
        """Connect to the volume server and initialize the volume."""
        try:
            from gluster import gfapi
        except (ImportError, OSError) as e:
            raise VolumeConnectionError(
                "libgfapi Python bindings are not available: {}".format(e))

        if self.debug:
            log_file, log_level = "/dev/stderr", _LOG_LEVEL_DEBUG
        else:
            log_file, log_level = "/dev/null", _LOG_LEVEL_QUIET

        try:
            vol = gfapi.Volume(self.url.host, self.url.volume,
                               port=self.url.port, log_file=log_file,
                               log_level=log_level)
            vol.mount()
        except Exception as e:
            raise VolumeConnectionError(
                "Failed to connect to {}:{}/{}: {}".format(
                    self.url.host, self.url.port, self.url.volume, e))
        self._vol = vol

    def set_xlator_option(self, key: str, value: str) -> None:
        """Set one translator option on the mounted volume."""
        if self._vol is None:
            raise VolumeConnectionError("Volume is not mounted")
        xlator, name = split_option_key(key)
        if not xlator:
            raise VolumeConnectionError(
                "Translator option {!r} has no translator name".format(key))

        from gluster.gfapi import api
        ret = api.client.glfs_set_xlator_option(
            self._vol.fs, xlator.encode(), name.encode(), value.encode())
        if ret != 0:
            raise VolumeConnectionError(
                "Failed to set translator option {}={}".format(key, value))

    def umount(self) -> None:
        """Release the volume (best-effort; never raises)."""
        if self._vol is None:
            return
        vol, self._vol = self._vol, None
        try:
            vol.umount()
        except Exception as e:
            log.warning("Error unmounting %s: %s", self.url.volume, e)

    # -- File calls ----------------------------------------------------------

    def listdir(self, path: str) -> List[str]:
        return self._vol.listdir(path)

    def stat(self, path: str):
        return self._vol.stat(path)

    def isdir(self, path: str) -> bool:
        return self._vol.isdir(path)

    def fopen(self, path: str, mode: str = "r"):
        return self._vol.fopen(path, mode)

    def mkdir(self, path: str, mode: int = 0o777) -> None:
        self._vol.mkdir(path, mode)

    def makedirs(self, path: str, mode: int = 0o777) -> None:
        self._vol.makedirs(path, mode)

    def unlink(self, path: str) -> None:
        self._vol.unlink(path)

    def rmdir(self, path: str) -> None:
        self._vol.rmdir(path)

    def rmtree(self, path: str) -> None:
        self._vol.rmtree(path)


def open_volume(url: GlusterURL, debug: bool = False,
                factory: Optional[type] = None):
    """Create and mount a volume for *url* using *factory*.

    *factory* defaults to GlusterVolume; tests pass an in-memory
    replacement with the same interface.
    """
    volume = (factory or GlusterVolume)(url, debug=debug)
    volume.mount()
    return volume
