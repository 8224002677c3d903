import struct

import pytest

from airmirror import byteutils


SAMPLE = bytes(range(1, 17))


def test_short_be_matches_reversed_little_endian():
    reversed_pair = SAMPLE[2:4][::-1]
    assert byteutils.get_short_be(SAMPLE, 2) == byteutils.get_short(reversed_pair, 0)


def test_int_be_matches_reversed_little_endian():
    reversed_quad = SAMPLE[4:8][::-1]
    assert byteutils.get_int_be(SAMPLE, 4) == byteutils.get_int(reversed_quad, 0)


def test_long_be_matches_reversed_little_endian():
    reversed_oct = SAMPLE[8:16][::-1]
    assert byteutils.get_long_be(SAMPLE, 8) == byteutils.get_long(reversed_oct, 0)


def test_long_combines_two_ints():
    low = byteutils.get_int(SAMPLE, 0)
    high = byteutils.get_int(SAMPLE, 4)
    assert byteutils.get_long(SAMPLE, 0) == (high << 32) | low


def test_int_combines_two_shorts():
    low = byteutils.get_short(SAMPLE, 4)
    high = byteutils.get_short(SAMPLE, 6)
    assert byteutils.get_int(SAMPLE, 4) == (high << 16) | low


@pytest.mark.parametrize("value", [0, 1, 0xDEADBEEF, 0xFFFFFFFF])
def test_put_int_round_trip(value):
    buf = bytearray(12)
    byteutils.put_int(buf, 4, value)
    assert byteutils.get_int(buf, 4) == value
    assert buf[:4] == bytearray(4)
    assert buf[8:] == bytearray(4)


def test_get_float_reads_ieee_bits():
    buf = bytearray(4)
    byteutils.put_int(buf, 0, 0x3F800000)
    assert byteutils.get_float(buf, 0) == 1.0


def test_ntp_epoch_maps_to_1900_offset():
    buf = bytearray(8)
    byteutils.put_ntp_timestamp(buf, 0, 0)
    assert byteutils.get_int_be(buf, 0) == byteutils.SECONDS_FROM_1900_TO_1970
    assert byteutils.get_int_be(buf, 4) == 0
    assert byteutils.get_ntp_timestamp(buf, 0) == 0


def test_ntp_whole_seconds_round_trip_exactly():
    us = 1_600_000_000 * 1_000_000
    buf = bytearray(10)
    byteutils.put_ntp_timestamp(buf, 2, us)
    assert byteutils.get_ntp_timestamp(buf, 2) == us


@pytest.mark.parametrize("us", [1, 999_999, 1_600_000_000_123_456, 1_234_567_890_654_321])
def test_ntp_round_trip_within_one_microsecond(us):
    buf = bytearray(8)
    byteutils.put_ntp_timestamp(buf, 0, us)
    result = byteutils.get_ntp_timestamp(buf, 0)
    assert us - 1 <= result <= us


def test_ntp_seconds_are_big_endian():
    buf = bytearray(8)
    byteutils.put_ntp_timestamp(buf, 0, 5_000_000)
    assert byteutils.get_int_be(buf, 0) == byteutils.SECONDS_FROM_1900_TO_1970 + 5


def test_read_past_end_raises():
    with pytest.raises(struct.error):
        byteutils.get_int(b"\x00\x01", 0)