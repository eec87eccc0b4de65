import unittest

from hamcrest import assert_that, is_, calling, raises, equal_to, is_not, none

from pbus.protocol.frame import build_frame, decode_frame, checksum, Frame, FrameError, InvalidPayloadLength, \
    STX, ETX, to_hex


class ChecksumTest(unittest.TestCase):

    def test_checksum_of_empty_is_zero(self):
        assert_that(checksum(b''), is_(0))

    def test_checksum_wraps_sum(self):
        # 0x0F + 0xFF + 0x02 = 0x110 -> 0x10 -> 0xF0
        assert_that(checksum(bytes([0x0F, 0xFF, 0x02])), is_(0xF0))

    def test_checksum_of_multiple_of_256_is_zero(self):
        assert_that(checksum(bytes([0x80, 0x80])), is_(0))

    def test_checksum_upto(self):
        data = bytes([0x0F, 0x01, 0x00, 0xAA, 0xBB])
        assert_that(checksum(data, 3), is_(checksum(data[:3])))


class BuildFrameTest(unittest.TestCase):

    def test_layout(self):
        frame = build_frame(5, [0x12, 0x34])
        raw = bytes(frame)
        assert_that(raw[0], is_(STX))
        assert_that(raw[1], is_(5))
        assert_that(raw[2], is_(2))
        assert_that(raw[3:5], is_(bytes([0x12, 0x34])))
        assert_that(raw[5], is_(checksum(raw, 5)))
        assert_that(raw[6], is_(ETX))
        assert_that(len(frame), is_(7))

    def test_empty_payload(self):
        frame = build_frame(64)
        assert_that(bytes(frame), is_(bytes([0x0F, 64, 0, (0x100 - 0x0F - 64) & 0xFF, 0x04])))
        assert_that(frame.data, is_(b''))
        assert_that(frame.command, is_(none()))

    def test_single_int_payload(self):
        assert_that(build_frame(1, 0x11), is_(equal_to(build_frame(1, [0x11]))))

    def test_payload_too_long(self):
        assert_that(calling(build_frame).with_args(1, bytes(9)), raises(InvalidPayloadLength))

    def test_max_payload(self):
        frame = build_frame(1, bytes(range(8)))
        assert_that(frame.length, is_(8))

    def test_address_must_be_byte(self):
        assert_that(calling(build_frame).with_args(256, b''), raises(ValueError))

    def test_checksum_invariant(self):
        for address in (1, 17, 64, 255):
            for length in range(9):
                frame = build_frame(address, bytes(range(0xF0, 0xF0 + length)))
                raw = bytes(frame)
                assert_that(checksum(raw, len(raw) - 2), is_(raw[len(raw) - 2]))

    def test_round_trip(self):
        for address, payload in ((1, b''), (5, b'\x22\x01'), (64, bytes(range(8))), (33, b'\xff' * 8)):
            frame = decode_frame(bytes(build_frame(address, payload)))
            assert_that((frame.address, frame.data), is_((address, payload)))


class FrameTest(unittest.TestCase):

    def test_accessors(self):
        frame = build_frame(9, [0x21, 0x11])
        assert_that(frame.address, is_(9))
        assert_that(frame.length, is_(2))
        assert_that(frame.command, is_(0x21))
        assert_that(frame[4], is_(0x11))
        assert_that(frame.checksum, is_(bytes(frame)[-2]))
        assert_that(list(frame)[0], is_(STX))

    def test_equality(self):
        assert_that(build_frame(1, b'\x01'), is_(equal_to(build_frame(1, b'\x01'))))
        assert_that(build_frame(1, b'\x01'), is_not(equal_to(build_frame(2, b'\x01'))))
        assert_that(hash(build_frame(1, b'\x01')), is_(hash(build_frame(1, b'\x01'))))

    def test_repr(self):
        assert_that(repr(build_frame(5, [0x12])), is_('Frame(0F 05 01 12 D9 04)'))
        assert_that(to_hex(b'\x01\xab'), is_('01 AB'))

    def test_frame_copies_bytes(self):
        raw = bytearray(bytes(build_frame(1)))
        frame = Frame(raw)
        raw[1] = 7
        assert_that(frame.address, is_(1))


class DecodeFrameTest(unittest.TestCase):

    def test_too_short(self):
        assert_that(calling(decode_frame).with_args(b'\x0f\x01\x00'), raises(FrameError))

    def test_bad_start(self):
        raw = bytearray(bytes(build_frame(1)))
        raw[0] = 0x0E
        assert_that(calling(decode_frame).with_args(raw), raises(FrameError, 'start'))

    def test_bad_checksum(self):
        raw = bytearray(bytes(build_frame(1, b'\x12')))
        raw[-2] ^= 0xFF
        assert_that(calling(decode_frame).with_args(raw), raises(FrameError, 'checksum'))

    def test_bad_end(self):
        raw = bytearray(bytes(build_frame(1, b'\x12')))
        raw[-1] = 0x05
        assert_that(calling(decode_frame).with_args(raw), raises(FrameError, 'end'))

    def test_length_mismatch(self):
        raw = bytes(build_frame(1, b'\x12')) + b'\x00'
        assert_that(calling(decode_frame).with_args(raw), raises(FrameError))

    def test_declared_length_too_long(self):
        raw = bytes([0x0F, 1, 9]) + bytes(9) + bytes([0, 4])
        assert_that(calling(decode_frame).with_args(raw), raises(InvalidPayloadLength))
