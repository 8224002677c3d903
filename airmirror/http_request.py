"""Accumulating one HTTP/RTSP request from incoming data."""

from .httpparser import HttpParser, ParserSettings
from .parserdefs import HttpErrno, ParserType, errno_name, method_name


def _text(data):
    return data.decode("utf-8", "surrogateescape")


class HttpRequest:
    """Collects the method, URL, headers and body of a single request."""

    def __init__(self):
        self.method = None
        self.url = None
        self.headers = []
        self.data = b""
        self.complete = False
        self._in_value = False
        settings = ParserSettings(
            on_url=self._on_url,
            on_header_field=self._on_header_field,
            on_header_value=self._on_header_value,
            on_body=self._on_body,
            on_message_complete=self._on_message_complete,
        )
        self._parser = HttpParser(ParserType.REQUEST, settings)

    def _on_url(self, parser, at):
        self.url = (self.url or "") + _text(at)

    def _on_header_field(self, parser, at):
        if self._in_value or not self.headers:
            self.headers.append(["", ""])
            self._in_value = False
        self.headers[-1][0] += _text(at)

    def _on_header_value(self, parser, at):
        if not self.headers:
            self.headers.append(["", ""])
        self._in_value = True
        self.headers[-1][1] += _text(at)

    def _on_body(self, parser, at):
        self.data += at

    def _on_message_complete(self, parser):
        self.method = method_name(parser.method)
        self.complete = True

    def add_data(self, data):
        """Feed received bytes; returns the parser's error code."""
        return self._parser.execute(data)

    @property
    def has_error(self):
        return self._parser.error != HttpErrno.OK

    @property
    def error_name(self):
        return errno_name(self._parser.error)

    @property
    def error_description(self):
        return self._parser.reason

    def get_header(self, name):
        """Return the value of the header spelled exactly ``name``, or ``None``."""
        for field, value in self.headers:
            if field == name:
                return value
        return None

    def header_string(self):
        """Return all headers as ``name: value`` lines, each ending in a newline."""
        return "".join(f"{field}: {value}\n" for field, value in self.headers)