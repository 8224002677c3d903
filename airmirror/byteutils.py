"""Reading and writing fixed-width integers, floats and NTP timestamps in byte buffers."""

import struct

SECONDS_FROM_1900_TO_1970 = 2208988800

_U32_MASK = 0xFFFFFFFF
_U64_MASK = 0xFFFFFFFFFFFFFFFF
_MICROS_PER_SECOND = 1_000_000

_SHORT_LE = struct.Struct("<H")
_INT_LE = struct.Struct("<I")
_LONG_LE = struct.Struct("<Q")
_SHORT_BE = struct.Struct(">H")
_INT_BE = struct.Struct(">I")
_LONG_BE = struct.Struct(">Q")
_FLOAT_LE = struct.Struct("<f")


def get_short(b, offset):
    """Read a little endian unsigned 16 bit integer at ``offset``."""
    return _SHORT_LE.unpack_from(b, offset)[0]


def get_int(b, offset):
    """Read a little endian unsigned 32 bit integer at ``offset``."""
    return _INT_LE.unpack_from(b, offset)[0]


def get_long(b, offset):
    """Read a little endian unsigned 64 bit integer at ``offset``."""
    return _LONG_LE.unpack_from(b, offset)[0]


def get_short_be(b, offset):
    """Read a big endian unsigned 16 bit integer at ``offset``."""
    return _SHORT_BE.unpack_from(b, offset)[0]


def get_int_be(b, offset):
    """Read a big endian unsigned 32 bit integer at ``offset``."""
    return _INT_BE.unpack_from(b, offset)[0]


def get_long_be(b, offset):
    """Read a big endian unsigned 64 bit integer at ``offset``."""
    return _LONG_BE.unpack_from(b, offset)[0]


def get_float(b, offset):
    """Read a little endian 32 bit float at ``offset``."""
    return _FLOAT_LE.unpack_from(b, offset)[0]


def put_int(b, offset, value):
    """Write ``value`` as a little endian unsigned 32 bit integer into ``b``."""
    _INT_LE.pack_into(b, offset, value & _U32_MASK)


def get_ntp_timestamp(b, offset):
    """Read an NTP timestamp and return it as microseconds since the Unix epoch."""
    seconds = (get_int_be(b, offset) - SECONDS_FROM_1900_TO_1970) & _U64_MASK
    fraction = get_int_be(b, offset + 4)
    micros = seconds * _MICROS_PER_SECOND + ((fraction * _MICROS_PER_SECOND) >> 32)
    return micros & _U64_MASK


def put_ntp_timestamp(b, offset, us_since_1970):
    """Write microseconds since the Unix epoch into ``b`` as a big endian NTP timestamp."""
    seconds, microseconds = divmod(us_since_1970, _MICROS_PER_SECOND)
    seconds += SECONDS_FROM_1900_TO_1970
    fraction = (microseconds << 32) // _MICROS_PER_SECOND
    _INT_BE.pack_into(b, offset, seconds & _U32_MASK)
    _INT_BE.pack_into(b, offset + 4, fraction & _U32_MASK)