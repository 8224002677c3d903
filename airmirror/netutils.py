"""Socket helpers: listening sockets, raw address bytes and numeric address parsing."""

import socket

_IPV4_MAPPED_PREFIX = bytes(10) + b"\xff\xff"


def init_socket(port, use_ipv6, use_udp):
    """Create a socket bound to ``port`` on all interfaces.

    Returns ``(sock, bound_port)``; with ``port`` 0 the system picks the port.
    """
    family = socket.AF_INET6 if use_ipv6 else socket.AF_INET
    sock_type = socket.SOCK_DGRAM if use_udp else socket.SOCK_STREAM
    proto = socket.IPPROTO_UDP if use_udp else socket.IPPROTO_TCP

    sock = socket.socket(family, sock_type, proto)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if use_ipv6:
            try:
                sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
            except OSError:
                pass
            sock.bind(("::", port))
        else:
            sock.bind(("0.0.0.0", port))
        bound_port = sock.getsockname()[1]
    except OSError:
        sock.close()
        raise
    return sock, bound_port


def get_address(sockaddr, family):
    """Return the raw address bytes of a socket address tuple.

    IPv4 addresses embedded in IPv6 are returned as their four IPv4 bytes.
    """
    host = sockaddr[0]
    if family == socket.AF_INET:
        return socket.inet_pton(socket.AF_INET, host)
    if family == socket.AF_INET6:
        raw = socket.inet_pton(socket.AF_INET6, host.split("%", 1)[0])
        if raw.startswith(_IPV4_MAPPED_PREFIX):
            return raw[len(_IPV4_MAPPED_PREFIX):]
        return raw
    raise ValueError(f"unsupported address family: {family!r}")


def parse_address(family, src):
    """Parse a numeric host address into a socket address tuple of ``family``."""
    if family not in (socket.AF_INET, socket.AF_INET6):
        raise ValueError(f"unsupported address family: {family!r}")
    if not src:
        raise ValueError("no address given")
    try:
        results = socket.getaddrinfo(
            src, None, family, 0, 0, socket.AI_PASSIVE | socket.AI_NUMERICHOST
        )
    except socket.gaierror as exc:
        raise ValueError(f"cannot parse address {src!r}: {exc}") from exc
    for ai_family, _, _, _, sockaddr in results:
        if ai_family == family:
            return sockaddr
    raise ValueError(f"no {family!r} address for {src!r}")