"""A small threaded HTTP/RTSP server that hands complete requests to callbacks."""

import select
import socket
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .http_request import HttpRequest
from .logger import LogLevel
from .netutils import get_address, init_socket

_BACKLOG = 5
_RECV_SIZE = 1024
_SELECT_TIMEOUT = 1.005


@dataclass
class HttpCallbacks:
    """Connection callbacks.

    ``conn_init(local, remote)`` receives the raw local and remote address bytes
    and returns per-connection user data, or ``None`` to refuse the connection.
    ``conn_request(user_data, request)`` returns an ``HttpResponse`` or ``None``.
    ``conn_destroy(user_data)`` is called when the connection goes away.
    """

    conn_init: Callable
    conn_request: Callable
    conn_destroy: Callable


@dataclass
class _Connection:
    sock: socket.socket
    user_data: object
    request: Optional[HttpRequest] = None


def _close(sock, how):
    try:
        sock.shutdown(how)
    except OSError:
        pass
    sock.close()


class HttpServer:
    """Accepts up to ``max_connections`` clients and serves them on one thread."""

    def __init__(self, logger, callbacks, max_connections):
        if logger is None:
            raise ValueError("a logger is required")
        if callbacks is None:
            raise ValueError("callbacks are required")
        if max_connections <= 0:
            raise ValueError("max_connections must be positive")
        self._logger = logger
        self._callbacks = callbacks
        self._max_connections = max_connections
        self._connections = [None] * max_connections
        self._lock = threading.Lock()
        self._running = False
        self._joined = True
        self._thread = None
        self._server = None
        self._wake_r = None
        self._wake_w = None
        self.port = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.stop()

    @property
    def open_connections(self):
        return sum(conn is not None for conn in self._connections)

    def start(self, port=0):
        """Bind, listen and start serving; returns the bound port.

        If the server is already running the current port is returned unchanged.
        """
        with self._lock:
            if self._running or not self._joined:
                return self.port
            try:
                server, bound_port = init_socket(port, False, False)
            except OSError as exc:
                self._logger.log(LogLevel.ERR, "Error initialising socket %s", exc.errno)
                raise
            try:
                server.listen(_BACKLOG)
            except OSError:
                self._logger.log(LogLevel.ERR, "Error listening to IPv4 socket")
                server.close()
                raise
            self._logger.log(LogLevel.INFO, "Initialized server socket(s)")

            self._server = server
            self.port = bound_port
            self._wake_r, self._wake_w = socket.socketpair()
            self._running = True
            self._joined = False
            self._thread = threading.Thread(target=self._serve, name="httpd", daemon=True)
            self._thread.start()
            return bound_port

    def is_running(self):
        """Return whether the serving thread is running or not yet joined."""
        with self._lock:
            return self._running or not self._joined

    def stop(self):
        """Stop serving, close every connection and wait for the thread."""
        with self._lock:
            if not self._running or self._joined:
                return
            self._running = False
        try:
            self._wake_w.send(b"\0")
        except OSError:
            pass
        self._thread.join()
        self._wake_w.close()
        with self._lock:
            self._joined = True

    # Serving thread

    def _serve(self):
        server = self._server
        wake = self._wake_r
        while True:
            with self._lock:
                if not self._running:
                    break

            accepting = self.open_connections < self._max_connections
            readers = [wake]
            if accepting:
                readers.append(server)
            readers.extend(conn.sock for conn in self._connections if conn is not None)

            try:
                ready, _, _ = select.select(readers, [], [], _SELECT_TIMEOUT)
            except (OSError, ValueError):
                self._logger.log(LogLevel.ERR, "httpd error in select")
                break
            if not ready:
                continue
            if wake in ready:
                try:
                    wake.recv(64)
                except OSError:
                    pass
                continue

            if accepting and server in ready:
                try:
                    accepted = self._accept(server)
                except OSError:
                    self._logger.log(LogLevel.ERR, "httpd error in accept ipv4")
                    break
                if not accepted:
                    continue

            for slot, conn in enumerate(self._connections):
                if conn is None or conn.sock not in ready:
                    continue
                self._service(slot, conn)

        for slot, conn in enumerate(self._connections):
            if conn is None:
                continue
            self._logger.log(
                LogLevel.INFO, "Removing connection for socket %d", conn.sock.fileno()
            )
            self._remove(slot)

        _close(server, socket.SHUT_RDWR)
        self._server = None
        wake.close()

        with self._lock:
            self._running = False
        self._logger.log(LogLevel.DEBUG, "Exiting HTTP thread")

    def _accept(self, server):
        sock, remote_addr = server.accept()
        try:
            local_addr = sock.getsockname()
        except OSError:
            _close(sock, socket.SHUT_RDWR)
            return False

        self._logger.log(LogLevel.INFO, "Accepted %s client on socket %d", "IPv4", sock.fileno())
        family = sock.family
        local = get_address(local_addr, family)
        remote = get_address(remote_addr, family)

        if not self._add_connection(sock, local, remote):
            _close(sock, socket.SHUT_RDWR)
            return False
        return True

    def _add_connection(self, sock, local, remote):
        try:
            slot = self._connections.index(None)
        except ValueError:
            self._logger.log(LogLevel.INFO, "Max connections reached")
            return False
        user_data = self._callbacks.conn_init(local, remote)
        if user_data is None:
            self._logger.log(LogLevel.ERR, "Error initializing HTTP request handler")
            return False
        self._connections[slot] = _Connection(sock, user_data)
        return True

    def _remove(self, slot):
        conn = self._connections[slot]
        conn.request = None
        self._callbacks.conn_destroy(conn.user_data)
        _close(conn.sock, socket.SHUT_WR)
        self._connections[slot] = None

    def _service(self, slot, conn):
        if conn.request is None:
            conn.request = HttpRequest()

        fd = conn.sock.fileno()
        self._logger.log(LogLevel.DEBUG, "httpd receiving on socket %d", fd)
        try:
            data = conn.sock.recv(_RECV_SIZE)
        except OSError:
            data = b""
        if not data:
            self._logger.log(LogLevel.INFO, "Connection closed for socket %d", fd)
            self._remove(slot)
            return

        conn.request.add_data(data)
        if conn.request.has_error:
            self._logger.log(
                LogLevel.ERR, "httpd error in parsing: %s", conn.request.error_name
            )
            self._remove(slot)
            return

        if not conn.request.complete:
            self._logger.log(LogLevel.DEBUG, "Request not complete, waiting for more data...")
            return

        request = conn.request
        conn.request = None
        response = self._callbacks.conn_request(conn.user_data, request)
        if response is None:
            self._logger.log(LogLevel.WARNING, "httpd didn't get response")
            return
        try:
            conn.sock.sendall(response.serialize())
        except OSError:
            self._logger.log(LogLevel.ERR, "httpd error in sending data")
        if response.disconnect:
            self._logger.log(LogLevel.INFO, "Disconnecting on software request")
            self._remove(slot)