from airmirror.http_request import HttpRequest
from airmirror.parserdefs import HttpErrno

RAW = (
    b"POST /fp-setup RTSP/1.0\r\n"
    b"CSeq: 5\r\n"
    b"Content-Length: 4\r\n"
    b"\r\n"
    b"body"
)


def test_full_request():
    req = HttpRequest()
    assert req.add_data(RAW) == HttpErrno.OK
    assert req.complete
    assert req.method == "POST"
    assert req.url == "/fp-setup"
    assert req.get_header("CSeq") == "5"
    assert req.data == b"body"
    assert not req.has_error


def test_header_lookup_is_case_sensitive():
    req = HttpRequest()
    req.add_data(RAW)
    assert req.get_header("cseq") is None


def test_byte_by_byte():
    req = HttpRequest()
    for i in range(len(RAW)):
        assert not req.complete
        req.add_data(RAW[i:i + 1])
    assert req.complete
    assert req.headers == [["CSeq", "5"], ["Content-Length", "4"]]


def test_incomplete_request():
    req = HttpRequest()
    req.add_data(RAW[:-2])
    assert not req.complete
    assert req.method is None


def test_header_string():
    req = HttpRequest()
    req.add_data(RAW)
    assert req.header_string() == "CSeq: 5\nContent-Length: 4\n"


def test_header_string_empty():
    req = HttpRequest()
    assert req.header_string() == ""


def test_parse_error():
    req = HttpRequest()
    req.add_data(b"BOGUS / HTTP/1.1\r\n\r\n")
    assert req.has_error
    assert req.error_name == "HPE_INVALID_METHOD"
    assert not req.complete


def test_span_split_url_concatenated():
    req = HttpRequest()
    req.add_data(b"GET /in")
    req.add_data(b"fo RTSP/1.0\r\n\r\n")
    assert req.url == "/info"
    assert req.method == "GET"