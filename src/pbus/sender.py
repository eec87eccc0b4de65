"""
The single writer for a bus connection.

Frames are queued by any thread and written in submission order by one background thread,
which keeps at least MIN_FRAME_SPACING seconds between the start of consecutive writes so
the modules on the bus are not flooded.
"""
import logging
import time
from queue import Queue

from pbus.connector.base import ConnectionNotConnectedError
from pbus.support.async_loop import AsyncLoop

logger = logging.getLogger(__name__)

MIN_FRAME_SPACING = 0.060

_STOP = object()


class FrameSender(AsyncLoop):
    """
    Writes queued frames to the current conduit.

    :param conduit_provider: a callable returning the conduit to write to, or None when disconnected.
    :param on_error: called with (conduit, exception) when a frame cannot be written. The conduit is
        None when there was no connection. The frame is dropped.
    :param spacing: the minimum time in seconds between the start of two writes.
    :param clock: monotonic time source, in seconds.
    """

    def __init__(self, conduit_provider, on_error, spacing=MIN_FRAME_SPACING, clock=time.monotonic, log=logger):
        super().__init__(log=log, name='pbus-sender')
        self._conduit_provider = conduit_provider
        self._on_error = on_error
        self._queue = Queue()
        self.spacing = spacing
        self.clock = clock
        self.last_write = None

    def send(self, frame):
        """ queues the frame for writing. Returns immediately. """
        self._queue.put(frame)

    @property
    def pending(self):
        return self._queue.qsize()

    def stop(self):
        self.stop_event.set()
        self._queue.put(_STOP)
        self.join()

    def loop(self):
        frame = self._queue.get()
        if frame is _STOP:
            return
        self._wait_for_spacing()
        if self.running():
            self.write(frame)

    def _wait_for_spacing(self):
        if self.last_write is None:
            return
        while self.running():
            delay = self.spacing - (self.clock() - self.last_write)
            if delay <= 0:
                break
            self.stop_event.wait(delay)

    def write(self, frame):
        """ writes the frame immediately. Only called from the sender thread. """
        conduit = self._conduit_provider()
        if conduit is None:
            self.logger.debug("not connected, dropping %r" % frame)
            self._on_error(None, ConnectionNotConnectedError("not connected"))
            return
        self.last_write = self.clock()
        try:
            output = conduit.output
            output.write(bytes(frame))
            output.flush()
            self.logger.debug("sent %r" % frame)
        except (IOError, ValueError) as e:
            self.logger.debug("error writing %r: %s" % (frame, e))
            self._on_error(conduit, e)
