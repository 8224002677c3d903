"""Incremental HTTP/RTSP message parser driven by user callbacks."""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from .parserdefs import (
    FinishState,
    HttpErrno,
    HttpMethod,
    LenientFlags,
    ParserFlags,
    ParserState,
    ParserType,
    after_headers_complete,
    after_message_complete,
    before_headers_complete,
    method_name,
)

_METHODS = {method_name(m).encode("ascii"): m for m in HttpMethod}
_VERSION = re.compile(rb"(HTTP|RTSP)/(\d)\.(\d)")
_HEX = re.compile(rb"[0-9A-Fa-f]+")

_START = "start"
_FIRST_LINE = "first_line"
_HEADERS = "headers"
_BODY_IDENTITY = "body_identity"
_BODY_EOF = "body_eof"
_CHUNK_SIZE = "chunk_size"
_CHUNK_DATA = "chunk_data"
_CHUNK_DATA_END = "chunk_data_end"
_CHUNK_TRAILERS = "chunk_trailers"


class _Stop(Exception):
    def __init__(self, errno, reason):
        super().__init__(reason)
        self.errno = errno
        self.reason = reason


@dataclass
class ParserSettings:
    """Callbacks invoked while parsing.

    Span callbacks take ``(parser, data)``, the others ``(parser)``. A return
    value of ``None`` or 0 continues, -1 signals an error and
    ``HttpErrno.PAUSED`` pauses the parser.
    """

    on_message_begin: Optional[Callable] = None
    on_url: Optional[Callable] = None
    on_status: Optional[Callable] = None
    on_header_field: Optional[Callable] = None
    on_header_value: Optional[Callable] = None
    on_headers_complete: Optional[Callable] = None
    on_body: Optional[Callable] = None
    on_message_complete: Optional[Callable] = None
    on_chunk_header: Optional[Callable] = None
    on_chunk_complete: Optional[Callable] = None
    on_url_complete: Optional[Callable] = None
    on_status_complete: Optional[Callable] = None
    on_header_field_complete: Optional[Callable] = None
    on_header_value_complete: Optional[Callable] = None


class HttpParser:
    """Parses a stream of HTTP or RTSP messages fed in arbitrary pieces."""

    def __init__(self, parser_type=ParserType.REQUEST, settings=None):
        self.settings = settings if settings is not None else ParserSettings()
        self.state = ParserState(type=ParserType(parser_type))
        self._init_run_state()

    def _init_run_state(self):
        self._configured_type = self.state.type
        self._buffer = bytearray()
        self._phase = _START
        self._remaining = 0
        self._closed = False
        self._consumed = 0

    @property
    def error(self):
        return self.state.error

    @property
    def reason(self):
        return self.state.reason

    @property
    def error_pos(self):
        return self.state.error_pos

    @property
    def method(self):
        return self.state.method

    @property
    def data(self):
        return self.state.data

    @data.setter
    def data(self, value):
        self.state.data = value

    def execute(self, data):
        """Parse ``data`` and return the resulting error code."""
        st = self.state
        if st.error != HttpErrno.OK:
            return st.error
        self._buffer += bytes(data)
        try:
            self._run()
        except _Stop as stop:
            st.error = HttpErrno(stop.errno)
            st.reason = stop.reason
            st.error_pos = self._consumed
        return st.error

    def finish(self):
        """Signal end of input; completes messages whose body runs until EOF."""
        st = self.state
        if st.error != HttpErrno.OK:
            return HttpErrno.OK
        if st.finish == FinishState.SAFE_WITH_CB:
            cb = self.settings.on_message_complete
            if cb is not None:
                err = cb(self) or 0
                if err != HttpErrno.OK:
                    return HttpErrno(err) if err != -1 else HttpErrno.CB_MESSAGE_COMPLETE
            return HttpErrno.OK
        if st.finish == FinishState.SAFE:
            return HttpErrno.OK
        st.reason = "Invalid EOF state"
        return HttpErrno.INVALID_EOF_STATE

    def reset(self):
        """Return to the start state, keeping type, settings, user data and lenient flags."""
        old = self.state
        self.state = ParserState(
            type=self._configured_type, data=old.data, lenient_flags=old.lenient_flags
        )
        self._init_run_state()

    def pause(self):
        """Make further calls of :meth:`execute` return ``PAUSED``."""
        if self.state.error != HttpErrno.OK:
            return
        self.state.error = HttpErrno.PAUSED
        self.state.reason = "Paused"

    def resume(self):
        """Continue after a pause."""
        if self.state.error == HttpErrno.PAUSED:
            self.state.error = HttpErrno.OK

    def resume_after_upgrade(self):
        """Continue after an upgrade pause."""
        if self.state.error == HttpErrno.PAUSED_UPGRADE:
            self.state.error = HttpErrno.OK

    def _set_lenient(self, flag, enabled):
        if enabled:
            self.state.lenient_flags |= flag
        else:
            self.state.lenient_flags &= ~flag

    def set_lenient_headers(self, enabled):
        """Toggle lenient header value checks."""
        self._set_lenient(LenientFlags.HEADERS, enabled)

    def set_lenient_chunked_length(self, enabled):
        """Toggle tolerance of Transfer-Encoding together with Content-Length."""
        self._set_lenient(LenientFlags.CHUNKED_LENGTH, enabled)

    def set_lenient_keep_alive(self, enabled):
        """Toggle parsing of further messages after ``Connection: close``."""
        self._set_lenient(LenientFlags.KEEP_ALIVE, enabled)

    # Callback helpers

    def _span(self, name, data):
        cb = getattr(self.settings, name)
        if cb is None:
            return
        err = cb(self, bytes(data)) or 0
        if err == -1:
            raise _Stop(HttpErrno.USER, f"Span callback error in {name}")
        if err == HttpErrno.PAUSED:
            raise _Stop(HttpErrno.PAUSED, "Paused")
        if err:
            raise _Stop(HttpErrno(err), f"Span callback error in {name}")

    def _notify(self, name, errno):
        cb = getattr(self.settings, name)
        if cb is None:
            return
        err = cb(self) or 0
        if err == -1:
            raise _Stop(errno, f"`{name}` callback error")
        if err == HttpErrno.PAUSED:
            raise _Stop(HttpErrno.PAUSED, "Paused")
        if err:
            raise _Stop(HttpErrno(err), f"`{name}` callback error")

    def _inform(self, name):
        cb = getattr(self.settings, name)
        if cb is not None:
            cb(self)

    # Parsing

    def _take_line(self):
        idx = self._buffer.find(b"\n")
        if idx < 0:
            return None
        line = bytes(self._buffer[:idx])
        del self._buffer[:idx + 1]
        self._consumed += idx + 1
        return line[:-1] if line.endswith(b"\r") else line

    def _take(self, count):
        chunk = bytes(self._buffer[:count])
        del self._buffer[:count]
        self._consumed += len(chunk)
        return chunk

    def _run(self):
        st = self.state
        while True:
            phase = self._phase
            if phase == _START:
                while self._buffer[:1] in (b"\r", b"\n"):
                    self._take(1)
                if not self._buffer:
                    return
                if self._closed:
                    raise _Stop(HttpErrno.CLOSED_CONNECTION, "Data after `Connection: close`")
                st.type = self._configured_type
                st.finish = FinishState.UNSAFE
                self._phase = _FIRST_LINE
                self._notify("on_message_begin", HttpErrno.CB_MESSAGE_BEGIN)
            elif phase == _FIRST_LINE:
                line = self._take_line()
                if line is None:
                    return
                self._phase = _HEADERS
                self._first_line(line)
            elif phase == _HEADERS:
                line = self._take_line()
                if line is None:
                    return
                if line:
                    self._header_line(line, trailer=False)
                else:
                    self._headers_done()
            elif phase in (_BODY_IDENTITY, _CHUNK_DATA):
                if not self._buffer:
                    return
                chunk = self._take(min(self._remaining, len(self._buffer)))
                self._remaining -= len(chunk)
                st.content_length = self._remaining
                done = self._remaining == 0
                if done:
                    self._phase = _START if phase == _BODY_IDENTITY else _CHUNK_DATA_END
                self._span("on_body", chunk)
                if done and phase == _BODY_IDENTITY:
                    self._message_complete()
            elif phase == _BODY_EOF:
                if not self._buffer:
                    return
                self._span("on_body", self._take(len(self._buffer)))
            elif phase == _CHUNK_SIZE:
                line = self._take_line()
                if line is None:
                    return
                size_text = line.split(b";", 1)[0].strip(b" \t")
                if not _HEX.fullmatch(size_text):
                    raise _Stop(HttpErrno.INVALID_CHUNK_SIZE, "Invalid character in chunk size")
                size = int(size_text, 16)
                st.content_length = size
                self._remaining = size
                self._phase = _CHUNK_DATA if size else _CHUNK_TRAILERS
                self._notify("on_chunk_header", HttpErrno.CB_CHUNK_HEADER)
            elif phase == _CHUNK_DATA_END:
                line = self._take_line()
                if line is None:
                    return
                if line:
                    raise _Stop(HttpErrno.STRICT, "Expected LF after chunk data")
                self._phase = _CHUNK_SIZE
                self._notify("on_chunk_complete", HttpErrno.CB_CHUNK_COMPLETE)
            elif phase == _CHUNK_TRAILERS:
                line = self._take_line()
                if line is None:
                    return
                if line:
                    self._header_line(line, trailer=True)
                else:
                    self._phase = _START
                    self._notify("on_chunk_complete", HttpErrno.CB_CHUNK_COMPLETE)
                    self._message_complete()

    def _first_line(self, line):
        st = self.state
        is_response = st.type == ParserType.RESPONSE or (
            st.type == ParserType.BOTH and line.startswith(b"HTTP/")
        )
        if is_response:
            st.type = ParserType.RESPONSE
            version, _, rest = line.partition(b" ")
            self._parse_version(version)
            code, _, reason = rest.partition(b" ")
            if len(code) != 3 or not code.isdigit():
                raise _Stop(HttpErrno.INVALID_STATUS, "Invalid status code")
            st.status_code = int(code)
            self._span("on_status", reason)
            self._inform("on_status_complete")
            return
        st.type = ParserType.REQUEST
        method, _, rest = line.partition(b" ")
        if method not in _METHODS:
            raise _Stop(HttpErrno.INVALID_METHOD, "Invalid method encountered")
        st.method = _METHODS[method]
        url, _, version = rest.rpartition(b" ")
        url = url.strip(b" ")
        if not url:
            raise _Stop(HttpErrno.INVALID_URL, "Invalid URL")
        self._parse_version(version)
        self._span("on_url", url)
        self._inform("on_url_complete")

    def _parse_version(self, version):
        match = _VERSION.fullmatch(version)
        if not match:
            raise _Stop(HttpErrno.INVALID_VERSION, "Invalid HTTP version")
        self.state.http_major = int(match.group(2))
        self.state.http_minor = int(match.group(3))

    def _header_line(self, line, trailer):
        name, colon, value = line.partition(b":")
        if not colon or not name or any(c in b" \t" for c in name):
            raise _Stop(HttpErrno.INVALID_HEADER_TOKEN, "Invalid header token")
        value = value.strip(b" \t")
        if not trailer:
            self._apply_header(name.lower(), value)
        self._span("on_header_field", name)
        self._inform("on_header_field_complete")
        self._span("on_header_value", value)
        self._inform("on_header_value_complete")

    def _apply_header(self, name, value):
        st = self.state
        if name == b"content-length":
            if not value.isdigit():
                raise _Stop(HttpErrno.INVALID_CONTENT_LENGTH, "Invalid character in Content-Length")
            if st.flags & ParserFlags.CONTENT_LENGTH:
                raise _Stop(HttpErrno.UNEXPECTED_CONTENT_LENGTH, "Duplicate Content-Length")
            st.flags |= ParserFlags.CONTENT_LENGTH
            st.content_length = int(value)
        elif name == b"transfer-encoding":
            st.flags |= ParserFlags.TRANSFER_ENCODING
            if value.split(b",")[-1].strip().lower() == b"chunked":
                st.flags |= ParserFlags.CHUNKED
            else:
                st.flags &= ~ParserFlags.CHUNKED
        elif name == b"connection":
            for token in value.lower().split(b","):
                token = token.strip()
                if token == b"keep-alive":
                    st.flags |= ParserFlags.CONNECTION_KEEP_ALIVE
                elif token == b"close":
                    st.flags |= ParserFlags.CONNECTION_CLOSE
                elif token == b"upgrade":
                    st.flags |= ParserFlags.CONNECTION_UPGRADE
        elif name == b"upgrade":
            st.flags |= ParserFlags.UPGRADE

    def _headers_done(self):
        st = self.state
        if (
            st.flags & ParserFlags.CONTENT_LENGTH
            and st.flags & ParserFlags.TRANSFER_ENCODING
            and not st.lenient_flags & LenientFlags.CHUNKED_LENGTH
        ):
            raise _Stop(
                HttpErrno.UNEXPECTED_CONTENT_LENGTH,
                "Content-Length can't be present with Transfer-Encoding",
            )
        before_headers_complete(st)
        paused = False
        cb = self.settings.on_headers_complete
        if cb is not None:
            ret = cb(self) or 0
            if ret == 1:
                st.flags |= ParserFlags.SKIPBODY
            elif ret == 2:
                st.flags |= ParserFlags.SKIPBODY
                st.upgrade = True
            elif ret == HttpErrno.PAUSED:
                paused = True
            elif ret == -1:
                raise _Stop(HttpErrno.CB_HEADERS_COMPLETE, "User callback error")
            elif ret:
                raise _Stop(HttpErrno(ret), "User callback error")

        code = after_headers_complete(st)
        if code == 5:
            raise _Stop(
                HttpErrno.INVALID_TRANSFER_ENCODING, "Request has invalid `Transfer-Encoding`"
            )
        if code == 2:
            self._phase = _CHUNK_SIZE
        elif code == 3:
            self._remaining = st.content_length
            self._phase = _BODY_IDENTITY
        elif code == 4:
            st.finish = FinishState.SAFE_WITH_CB
            self._phase = _BODY_EOF
        else:
            self._phase = _START
        if paused:
            raise _Stop(HttpErrno.PAUSED, "Paused")
        if code in (0, 1):
            self._message_complete()
            if code == 1:
                raise _Stop(HttpErrno.PAUSED_UPGRADE, "Pause on CONNECT/Upgrade")

    def _message_complete(self):
        st = self.state
        self._phase = _START
        pending = None
        try:
            self._notify("on_message_complete", HttpErrno.CB_MESSAGE_COMPLETE)
        except _Stop as stop:
            pending = stop
        keep_alive = after_message_complete(st)
        st.content_length = 0
        st.upgrade = False
        if not keep_alive and not st.lenient_flags & LenientFlags.KEEP_ALIVE:
            self._closed = True
        if pending is not None:
            raise pending