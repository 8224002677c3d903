import pytest

from airmirror.http_response import HttpResponse


def test_headers_without_body():
    response = HttpResponse("RTSP/1.0", 200, "OK")
    response.add_header("CSeq", "1")
    response.finish()
    assert response.serialize() == b"RTSP/1.0 200 OK\r\nCSeq: 1\r\n\r\n"


def test_body_gets_content_length_header():
    response = HttpResponse("HTTP/1.1", 200, "OK")
    response.add_header("Server", "test")
    response.finish(b"hello")
    data = response.serialize()
    assert data.startswith(b"HTTP/1.1 200 OK\r\nServer: test\r\n")
    assert b"Content-Length: 5\r\n\r\nhello" in data
    assert data.endswith(b"hello")


def test_string_body_is_encoded():
    response = HttpResponse("HTTP/1.1", 404, "Not Found")
    response.finish("missing")
    head, body = response.serialize().split(b"\r\n\r\n", 1)
    assert body == b"missing"
    assert head.split(b"\r\n")[0] == b"HTTP/1.1 404 Not Found"


def test_empty_body_ends_headers_only():
    response = HttpResponse("RTSP/1.0", 200, "OK")
    response.finish(b"")
    data = response.serialize()
    assert b"Content-Length" not in data
    assert data.endswith(b"\r\n\r\n")


def test_serialize_before_finish_raises():
    response = HttpResponse("RTSP/1.0", 200, "OK")
    with pytest.raises(RuntimeError):
        response.serialize()


@pytest.mark.parametrize("code", [99, 1000, 0])
def test_invalid_status_code_raises(code):
    with pytest.raises(ValueError):
        HttpResponse("HTTP/1.1", code, "Bad")


def test_disconnect_flag():
    response = HttpResponse("RTSP/1.0", 200, "OK")
    assert response.disconnect is False
    response.disconnect = True
    assert response.disconnect is True


def test_complete_flag_set_by_finish():
    response = HttpResponse("RTSP/1.0", 200, "OK")
    assert response.complete is False
    response.finish()
    assert response.complete is True