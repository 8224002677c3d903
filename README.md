# airmirror

Building blocks for a screen-mirroring receiver, written in plain Python.

The package provides the pieces a receiver needs to accept connections from a
sender, speak its HTTP/RTSP-style control protocol and decrypt the incoming
video stream.

## Modules

- `airmirror.byteutils` – little and big endian integer access on byte
  buffers (`get_short`, `get_int`, `get_long`, their `_be` variants,
  `get_float`, `put_int`) and NTP timestamp conversion to and from
  microseconds since the Unix epoch (`get_ntp_timestamp`,
  `put_ntp_timestamp`).
- `airmirror.logger` – `Logger`, which filters messages by syslog-style
  `LogLevel` (default `WARNING`) and passes them to a callback set with
  `set_callback(callback)` as `callback(level, message)`, or prints them to
  stderr; `console_log` prints a formatted message to stdout.
- `airmirror.netutils` – `init_socket(port, use_ipv6, use_udp)` returns a bound
  socket and its port, `get_address` returns the raw address bytes of a socket
  address (IPv4-mapped IPv6 addresses come back as four bytes), and
  `parse_address` parses a numeric host address, raising `ValueError` when it
  cannot.
- `airmirror.parserdefs` – the parser's error codes (`HttpErrno`), methods
  (`HttpMethod`, including the RTSP ones), flags, `errno_name`,
  `method_name` and the message framing rules (`should_keep_alive`,
  `message_needs_eof` and friends) over a `ParserState`.
- `airmirror.httpparser` – `HttpParser`, an incremental HTTP/RTSP message
  parser fed with `execute(data)` in arbitrary pieces, reporting through the
  callbacks of a `ParserSettings`. It handles Content-Length and chunked
  bodies, bodies that run until `finish()`, pausing and resuming, and the
  lenient modes.
- `airmirror.http_request` – `HttpRequest`, which collects the method, URL,
  headers and body of one request; `get_header(name)` matches the name
  exactly, `header_string()` returns all headers as `name: value` lines.
- `airmirror.http_response` – `HttpResponse`, which builds a status line,
  headers and an optional body with a Content-Length header; `serialize()`
  returns the bytes once `finish()` has been called. Setting `disconnect`
  tells the server to close the connection after sending it.
- `airmirror.httpd` – `HttpServer`, which serves up to `max_connections`
  clients on one background thread and hands each complete request to the
  `conn_request` callback of an `HttpCallbacks`. It is also a context manager
  that stops the server on exit.
- `airmirror.crypto` – `AesCtr`, `AesCbc` (with `AesDirection`),
  `X25519Key`, `Ed25519Key` and `Sha512`.
- `airmirror.mirror_buffer` – `MirrorBuffer`, which derives the video key and
  IV from a 16 byte session key and a stream connection id and decrypts
  payloads that do not line up with cipher blocks, continuing the keystream
  from one call to the next.
- `airmirror.fairplay` – `FairPlay`, which answers the setup and handshake
  messages and keeps the handshake's key message; bad requests raise
  `FairPlayError`.

## Installing

```
pip install .
```

Tests run with pytest:

```
pip install ".[test]"
pytest
```

## Examples

Building a response:

```python
from airmirror.http_response import HttpResponse

response = HttpResponse("RTSP/1.0", 200, "OK")
response.add_header("CSeq", "1")
response.finish(b"hello")
wire_bytes = response.serialize()
```

Parsing a request that arrives in pieces:

```python
from airmirror.http_request import HttpRequest

request = HttpRequest()
request.add_data(b"OPTIONS * RTSP/1.0\r\nCSeq: 1\r\n")
request.add_data(b"\r\n")
print(request.complete)             # True
print(request.method, request.url)  # OPTIONS *
print(request.get_header("CSeq"))   # 1
```

Serving requests:

```python
from airmirror.http_response import HttpResponse
from airmirror.httpd import HttpCallbacks, HttpServer
from airmirror.logger import Logger, LogLevel


def on_request(user_data, request):
    response = HttpResponse("RTSP/1.0", 200, "OK")
    response.add_header("CSeq", request.get_header("CSeq") or "0")
    response.finish()
    return response


callbacks = HttpCallbacks(
    conn_init=lambda local, remote: {"remote": remote},
    conn_request=on_request,
    conn_destroy=lambda user_data: None,
)
with HttpServer(Logger(LogLevel.INFO), callbacks, 10) as server:
    port = server.start(0)
    ...
```

Decrypting a mirrored stream:

```python
from airmirror.logger import Logger, LogLevel
from airmirror.mirror_buffer import MirrorBuffer

session_key = bytes(16)  # made up; in practice the key agreed during pairing
buffer = MirrorBuffer(Logger(LogLevel.WARNING), session_key)
buffer.init_aes(1234567890)
plain = buffer.decrypt(b"\x00" * 40)
```

## What the package does not do

- There is no command to run: the package is a library of parts, not a
  ready-made receiver.
- It does not advertise the receiver on the network; service discovery is
  left to the application.
- `FairPlay` answers the setup and handshake messages but does not decrypt
  the key that the sender protects with them.
- It does not decode or display video or play audio; `MirrorBuffer` returns
  the decrypted payload bytes and stops there.