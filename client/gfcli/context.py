"""The connection context shared by the shell and every command."""

import logging

from . import VolumeConnectionError
from .options import Config
from .volume import open_volume, parse_url

log = logging.getLogger(__name__)


class CliContext:
    """State held for the lifetime of the process.

    Holds at most one mounted volume.  ``argv`` is the argument vector of
    the command being run: the process arguments in direct mode, and a
    fresh list per input line in the shell.

    Can be used as a context manager, which guarantees ``cleanup()``::

        with CliContext(sys.argv) as ctx:
            ctx.connect("glfs://localhost/groot")
            ...
    """

    def __init__(self, argv, volume_factory=None):
        self.argv = list(argv)
        self.conn_str = None
        self.url = None
        self.volume = None
        self.config = Config()
        self.in_shell = False
        self.quit_requested = False
        self._volume_factory = volume_factory
        self._cleaned_up = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return None

    def __repr__(self):
        state = self.conn_str if self.volume is not None else "disconnected"
        return "CliContext({}, shell={})".format(state, self.in_shell)

    @property
    def argc(self):
        return len(self.argv)

    @property
    def connected(self):
        return self.volume is not None

    # -- Connection lifecycle ----------------------------------------------

    def connect(self, url_text, xlator_options=()):
        """Mount the volume at *url_text* and apply the translator options.

        The configured options are applied first, then *xlator_options*,
        which are used for this connection only and not kept in the config.

        Any volume already mounted is released first, so there is never
        more than one.  If applying an option fails, the new volume is
        released again before the error propagates.  Raises
        VolumeConnectionError on a malformed URL, an unreachable server,
        or a rejected option.
        """
        url = parse_url(url_text)
        if self.volume is not None:
            log.info("Replacing connection to %s", self.conn_str)
            self.disconnect()

        log.debug("Connecting to %s:%d volume %s",
                  url.host, url.port, url.volume)
        volume = open_volume(url, debug=self.config.debug,
                             factory=self._volume_factory)
        try:
            self.apply_xlator_options(volume, xlator_options)
        except Exception:
            volume.umount()
            raise

        self.volume = volume
        self.url = url
        self.conn_str = url_text
        log.info("Connected to %s", url_text)
        return volume

    def apply_xlator_options(self, volume, extra=()):
        """Apply the configured translator options, then *extra*, in order."""
        for option in list(self.config.xlator_options) + list(extra):
            log.debug("Setting translator option %s=%s",
                      option.key, option.value)
            try:
                volume.set_xlator_option(option.key, option.value)
            except VolumeConnectionError:
                raise
            except Exception as e:
                raise VolumeConnectionError(
                    "Failed to set translator option {}={}: {}".format(
                        option.key, option.value, e))

    def disconnect(self):
        """Release the mounted volume.  Does nothing when not connected."""
        volume = self.volume
        if volume is None:
            return
        try:
            volume.umount()
        finally:
            self.volume = None
            self.url = None
            self.conn_str = None
        log.info("Disconnected")

    def cleanup(self):
        """Release everything the context holds.

        Runs once: the connection is closed, then the option list and
        argument vector are dropped.  Later calls, from whichever exit path,
        do nothing.
        """
        if self._cleaned_up:
            return
        self._cleaned_up = True
        try:
            self.disconnect()
        finally:
            del self.config.xlator_options[:]
            self.argv = []
