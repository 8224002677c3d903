"""Building serialized HTTP/RTSP responses."""


def _as_bytes(value):
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


class HttpResponse:
    """A response assembled line by line: status line, headers, then an optional body."""

    def __init__(self, protocol, code, message):
        if not 100 <= code < 1000:
            raise ValueError(f"status code must have three digits: {code!r}")
        self.disconnect = False
        self.complete = False
        self._data = bytearray()
        self._data += _as_bytes(protocol) + b" " + str(code).encode("ascii")
        self._data += b" " + _as_bytes(message) + b"\r\n"

    def add_header(self, name, value):
        """Append a ``name: value`` header line."""
        self._data += _as_bytes(name) + b": " + _as_bytes(value) + b"\r\n"

    def finish(self, data=b""):
        """End the headers and append ``data`` with a Content-Length header if non-empty."""
        body = _as_bytes(data)
        if body:
            self._data += b"Content-Length: " + str(len(body)).encode("ascii") + b"\r\n\r\n"
            self._data += body
        else:
            self._data += b"\r\n"
        self.complete = True

    def serialize(self):
        """Return the complete response bytes."""
        if not self.complete:
            raise RuntimeError("response has not been finished")
        return bytes(self._data)