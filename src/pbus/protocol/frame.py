"""
Building and checking Pbus frames.

A frame on the wire is::

    STX ADDRESS LENGTH DATA[0..8] CHECKSUM ETX

where LENGTH is the number of data bytes and CHECKSUM brings the byte sum of
STX..DATA to zero modulo 256.
"""

STX = 0x0F
ETX = 0x04

MAX_DATA_LENGTH = 8

ADDRESS_INDEX = 1
LENGTH_INDEX = 2
DATA_INDEX = 3

# STX, ADDRESS, LENGTH, CHECKSUM and ETX
FRAME_OVERHEAD = 5


class FrameError(ValueError):
    """ The bytes given do not form a valid frame. """


class InvalidPayloadLength(FrameError):
    """ The payload does not fit in a single frame. """


def checksum(data, upto=None):
    """
    Computes the checksum byte over the first upto bytes of data.
    :param data: the frame bytes
    :param upto: the index (exclusive) of the last byte included. Defaults to all of data.
    :return: (0x100 - sum) & 0xFF

    >>> checksum(bytes([0x0F, 0x05, 0x01, 0x12]))
    217
    >>> checksum(bytes([0x0F, 0x05, 0x01, 0x12, 0xD9, 0x04]), 4)
    217
    """
    if upto is None:
        upto = len(data)
    total = 0
    for b in data[:upto]:
        total = (total + (b & 0xFF)) & 0xFF
    return (0x100 - total) & 0xFF


def to_hex(data):
    """
    >>> to_hex(bytes([0x0F, 0xA0, 4]))
    '0F A0 04'
    """
    return ' '.join('%02X' % b for b in data)


class Frame:
    """
    An immutable, complete frame including STX, length, checksum and ETX.
    Frames behave as a read-only byte sequence so consumers can index into them (frame[3] is the
    command byte) or convert them with bytes(frame).
    """

    def __init__(self, raw):
        self._raw = bytes(raw)

    @property
    def address(self):
        return self._raw[ADDRESS_INDEX]

    @property
    def length(self):
        """ the number of data bytes """
        return self._raw[LENGTH_INDEX]

    @property
    def data(self) -> bytes:
        return self._raw[DATA_INDEX:DATA_INDEX + self.length]

    @property
    def command(self):
        """ the first data byte, or None when the frame has no data. """
        return self._raw[DATA_INDEX] if self.length else None

    @property
    def checksum(self):
        return self._raw[-2]

    def __bytes__(self):
        return self._raw

    def __len__(self):
        return len(self._raw)

    def __getitem__(self, item):
        return self._raw[item]

    def __iter__(self):
        return iter(self._raw)

    def __eq__(self, other):
        return isinstance(other, Frame) and self._raw == other._raw

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(self._raw)

    def __repr__(self):
        return 'Frame(%s)' % to_hex(self._raw)


def _payload_bytes(payload):
    if payload is None:
        return bytes()
    if isinstance(payload, int):
        payload = (payload,)
    return bytes(payload)


def build_frame(address, payload=b'') -> Frame:
    """
    Builds the frame that carries the payload to the given address.
    :param address: the module address (a single byte)
    :param payload: up to 8 data bytes. A single int is taken as a one-byte payload.
    :raises InvalidPayloadLength: when there are more than 8 data bytes.

    >>> build_frame(5, [0x12])
    Frame(0F 05 01 12 D9 04)
    """
    if not 0 <= address <= 0xFF:
        raise ValueError("address %s does not fit in a byte" % address)
    data = _payload_bytes(payload)
    if len(data) > MAX_DATA_LENGTH:
        raise InvalidPayloadLength("payload of %d bytes exceeds the maximum of %d" % (len(data), MAX_DATA_LENGTH))
    packet = bytearray([STX, address, len(data)])
    packet += data
    packet.append(checksum(packet))
    packet.append(ETX)
    return Frame(packet)


def decode_frame(raw) -> Frame:
    """
    Validates a complete frame received as bytes.
    :raises FrameError: if the bytes are not a single well-formed frame.
    """
    raw = bytes(raw)
    if len(raw) < FRAME_OVERHEAD:
        raise FrameError("frame too short: %s" % to_hex(raw))
    if raw[0] != STX:
        raise FrameError("invalid start byte %02X" % raw[0])
    length = raw[LENGTH_INDEX]
    if length > MAX_DATA_LENGTH:
        raise InvalidPayloadLength("declared length %d exceeds the maximum of %d" % (length, MAX_DATA_LENGTH))
    if len(raw) != length + FRAME_OVERHEAD:
        raise FrameError("frame length %d does not match declared data length %d" % (len(raw), length))
    expected = checksum(raw, DATA_INDEX + length)
    if raw[-2] != expected:
        raise FrameError("invalid checksum %02X, expected %02X" % (raw[-2], expected))
    if raw[-1] != ETX:
        raise FrameError("invalid end byte %02X" % raw[-1])
    return Frame(raw)
