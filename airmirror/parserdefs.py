"""HTTP parser definitions: error codes, flags, methods and message framing rules."""

from dataclasses import dataclass
from enum import IntEnum, IntFlag


class HttpErrno(IntEnum):
    """Parser error codes."""

    OK = 0
    INTERNAL = 1
    STRICT = 2
    LF_EXPECTED = 3
    UNEXPECTED_CONTENT_LENGTH = 4
    CLOSED_CONNECTION = 5
    INVALID_METHOD = 6
    INVALID_URL = 7
    INVALID_CONSTANT = 8
    INVALID_VERSION = 9
    INVALID_HEADER_TOKEN = 10
    INVALID_CONTENT_LENGTH = 11
    INVALID_CHUNK_SIZE = 12
    INVALID_STATUS = 13
    INVALID_EOF_STATE = 14
    INVALID_TRANSFER_ENCODING = 15
    CB_MESSAGE_BEGIN = 16
    CB_HEADERS_COMPLETE = 17
    CB_MESSAGE_COMPLETE = 18
    CB_CHUNK_HEADER = 19
    CB_CHUNK_COMPLETE = 20
    PAUSED = 21
    PAUSED_UPGRADE = 22
    PAUSED_H2_UPGRADE = 23
    USER = 24


class ParserFlags(IntFlag):
    """Facts about the message collected while parsing its headers."""

    NONE = 0
    CONNECTION_KEEP_ALIVE = 0x1
    CONNECTION_CLOSE = 0x2
    CONNECTION_UPGRADE = 0x4
    CHUNKED = 0x8
    UPGRADE = 0x10
    CONTENT_LENGTH = 0x20
    SKIPBODY = 0x40
    TRAILING = 0x80
    TRANSFER_ENCODING = 0x200


class LenientFlags(IntFlag):
    """Relaxations of strict protocol checks."""

    NONE = 0
    HEADERS = 0x1
    CHUNKED_LENGTH = 0x2
    KEEP_ALIVE = 0x4


class ParserType(IntEnum):
    """Kind of message the parser expects."""

    BOTH = 0
    REQUEST = 1
    RESPONSE = 2


class FinishState(IntEnum):
    """What happens when the input ends."""

    SAFE = 0
    SAFE_WITH_CB = 1
    UNSAFE = 2


class HttpMethod(IntEnum):
    """HTTP and RTSP request methods."""

    DELETE = 0
    GET = 1
    HEAD = 2
    POST = 3
    PUT = 4
    CONNECT = 5
    OPTIONS = 6
    TRACE = 7
    COPY = 8
    LOCK = 9
    MKCOL = 10
    MOVE = 11
    PROPFIND = 12
    PROPPATCH = 13
    SEARCH = 14
    UNLOCK = 15
    BIND = 16
    REBIND = 17
    UNBIND = 18
    ACL = 19
    REPORT = 20
    MKACTIVITY = 21
    CHECKOUT = 22
    MERGE = 23
    MSEARCH = 24
    NOTIFY = 25
    SUBSCRIBE = 26
    UNSUBSCRIBE = 27
    PATCH = 28
    PURGE = 29
    MKCALENDAR = 30
    LINK = 31
    UNLINK = 32
    SOURCE = 33
    PRI = 34
    DESCRIBE = 35
    ANNOUNCE = 36
    SETUP = 37
    PLAY = 38
    PAUSE = 39
    TEARDOWN = 40
    GET_PARAMETER = 41
    SET_PARAMETER = 42
    REDIRECT = 43
    RECORD = 44
    FLUSH = 45


_METHOD_STRINGS = {HttpMethod.MSEARCH: "M-SEARCH"}


@dataclass
class ParserState:
    """Mutable state of one parser, shared by the framing rules below."""

    type: ParserType = ParserType.BOTH
    method: HttpMethod = HttpMethod.DELETE
    http_major: int = 0
    http_minor: int = 0
    status_code: int = 0
    content_length: int = 0
    flags: ParserFlags = ParserFlags.NONE
    lenient_flags: LenientFlags = LenientFlags.NONE
    header_state: int = 0
    upgrade: bool = False
    finish: FinishState = FinishState.SAFE
    error: HttpErrno = HttpErrno.OK
    reason: str | None = None
    error_pos: int | None = None
    data: object = None


def errno_name(err):
    """Return the symbolic name of an error code, such as ``HPE_OK``."""
    try:
        return "HPE_" + HttpErrno(err).name
    except ValueError:
        raise ValueError(f"unknown parser error code: {err!r}") from None


def method_name(method):
    """Return the wire spelling of a method, such as ``M-SEARCH``."""
    try:
        method = HttpMethod(method)
    except ValueError:
        raise ValueError(f"unknown method: {method!r}") from None
    return _METHOD_STRINGS.get(method, method.name)


def before_headers_complete(state):
    """Decide whether the message is an upgrade; always returns 0."""
    if (state.flags & ParserFlags.UPGRADE) and (state.flags & ParserFlags.CONNECTION_UPGRADE):
        # For responses the upgrade only takes effect on 101 Switching Protocols.
        state.upgrade = state.type == ParserType.REQUEST or state.status_code == 101
    else:
        state.upgrade = state.method == HttpMethod.CONNECT
    return 0


def after_headers_complete(state):
    """Choose how the body is read once headers are parsed.

    0: no body; 1: upgrade, stop and pause; 2: chunked; 3: by Content-Length;
    4: until end of input; 5: invalid transfer-encoding for a request.
    """
    has_body = bool(state.flags & ParserFlags.CHUNKED) or state.content_length > 0
    if state.upgrade and (
        state.method == HttpMethod.CONNECT
        or state.flags & ParserFlags.SKIPBODY
        or not has_body
    ):
        return 1

    if state.flags & ParserFlags.SKIPBODY:
        return 0
    if state.flags & ParserFlags.CHUNKED:
        return 2
    if state.flags & ParserFlags.TRANSFER_ENCODING:
        if state.type == ParserType.REQUEST and not (
            state.lenient_flags & LenientFlags.CHUNKED_LENGTH
        ):
            return 5
        return 4
    if not state.flags & ParserFlags.CONTENT_LENGTH:
        return 4 if message_needs_eof(state) else 0
    if state.content_length == 0:
        return 0
    return 3


def after_message_complete(state):
    """Reset per-message state and return whether the connection stays open."""
    keep_alive = should_keep_alive(state)
    state.finish = FinishState.SAFE
    state.flags = ParserFlags.NONE
    return keep_alive


def message_needs_eof(state):
    """Return whether the message body runs until the end of input."""
    if state.type == ParserType.REQUEST:
        return False
    if (
        state.status_code // 100 == 1
        or state.status_code in (204, 304)
        or state.flags & ParserFlags.SKIPBODY
    ):
        return False
    if state.flags & ParserFlags.TRANSFER_ENCODING and not state.flags & ParserFlags.CHUNKED:
        return True
    if state.flags & (ParserFlags.CHUNKED | ParserFlags.CONTENT_LENGTH):
        return False
    return True


def should_keep_alive(state):
    """Return whether further messages may follow on the same connection."""
    if state.http_major > 0 and state.http_minor > 0:
        if state.flags & ParserFlags.CONNECTION_CLOSE:
            return False
    elif not state.flags & ParserFlags.CONNECTION_KEEP_ALIVE:
        return False
    return not message_needs_eof(state)