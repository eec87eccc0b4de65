"""
Recovers frames from a continuous byte stream.

The reader is a state machine fed one byte at a time. Malformed input never raises: the
violation is logged, partial state is discarded and the reader looks for the next STX.
Only the end of the underlying stream is reported to the caller, as ReaderClosedError.
"""
import logging
from enum import Enum

from pbus.protocol.frame import STX, ETX, MAX_DATA_LENGTH, Frame, checksum, to_hex

logger = logging.getLogger(__name__)


class ReaderClosedError(IOError):
    """ The stream the reader consumes has ended or was closed. """


class ReaderState(Enum):
    AWAIT_STX = 1
    AWAIT_ADDRESS = 2
    AWAIT_LENGTH = 3
    READING_DATA = 4
    AWAIT_CHECKSUM = 5
    AWAIT_ETX = 6


class FrameReader:
    """
    Assembles checksum-valid frames from bytes.

    Bytes can be pushed with feed(), or pulled from a file-like stream with read_frame(), which
    blocks on the stream's read(1).

    :param stream: the file-like input to read from. Optional when only feed() is used.
    :param available: a callable returning the number of bytes that can be read from the stream
        without blocking. After a checksum or end byte violation these bytes are discarded.
    """

    def __init__(self, stream=None, available=None, log=logger):
        self.stream = stream
        self._available = available
        self.logger = log
        self.violations = 0
        self._reset()

    def _reset(self):
        self.state = ReaderState.AWAIT_STX
        self._address = None
        self._length = None
        self._data = bytearray()
        self._checksum = None

    @property
    def pending(self):
        """ the number of data bytes still expected for the current frame """
        return 0 if self._length is None else self._length - len(self._data)

    def read_frame(self) -> Frame:
        """
        Reads from the stream until a complete frame has been assembled.
        :raises ReaderClosedError: if the stream ends.
        """
        while True:
            b = self.stream.read(1)
            if not b:
                raise ReaderClosedError("end of stream")
            frame = self.feed(b[0])
            if frame is not None:
                return frame

    def feed_all(self, data):
        """
        Feeds every byte in data.
        :return: the list of frames completed, in order.
        """
        frames = []
        for b in data:
            frame = self.feed(b)
            if frame is not None:
                frames.append(frame)
        return frames

    def feed(self, b):
        """
        Advances the state machine by one byte.
        :return: the completed frame when b is the end byte of a valid frame, otherwise None.
        """
        state = self.state
        if state is ReaderState.AWAIT_STX:
            if b == STX:
                self.state = ReaderState.AWAIT_ADDRESS
            else:
                self.violations += 1
                self.logger.debug("discarding byte %02X while waiting for start byte" % b)
        elif state is ReaderState.AWAIT_ADDRESS:
            self._address = b
            self.state = ReaderState.AWAIT_LENGTH
        elif state is ReaderState.AWAIT_LENGTH:
            if b <= MAX_DATA_LENGTH:
                self._length = b
                self.state = ReaderState.READING_DATA if b else ReaderState.AWAIT_CHECKSUM
            else:
                # no length byte: the byte is the only data byte
                self._length = 1
                self._data.append(b)
                self.state = ReaderState.AWAIT_CHECKSUM
        elif state is ReaderState.READING_DATA:
            self._data.append(b)
            if len(self._data) == self._length:
                self.state = ReaderState.AWAIT_CHECKSUM
        elif state is ReaderState.AWAIT_CHECKSUM:
            expected = checksum(self._header_and_data())
            if b == expected:
                self._checksum = b
                self.state = ReaderState.AWAIT_ETX
            else:
                self._violation("Packet with invalid checksum received: %02X instead of %02X" % (b, expected))
        elif state is ReaderState.AWAIT_ETX:
            if b == ETX:
                frame = Frame(self._header_and_data() + bytes([self._checksum, ETX]))
                self._reset()
                self.logger.debug("received %r" % frame)
                return frame
            self._violation("Packet with invalid ETX received: %02X" % b)
        return None

    def _header_and_data(self):
        return bytes([STX, self._address, self._length]) + bytes(self._data)

    def _violation(self, message):
        self.violations += 1
        self.logger.error("%s (discarded %s)" % (message, to_hex(self._header_and_data())))
        self._reset()
        self._drain()

    def _drain(self):
        """ discards the bytes that can be read without blocking. """
        if self.stream is None or self._available is None:
            return
        discarded = 0
        while self._available() > 0:
            if not self.stream.read(1):
                break
            discarded += 1
        if discarded:
            self.logger.debug("discarded %d pending bytes after a framing error" % discarded)

    def close(self):
        if self.stream is not None:
            self.stream.close()
