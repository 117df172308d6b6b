"""TCP socket transport.

The sockets here are non-blocking; all blocking happens in a ZeroMQ poller
that watches the socket alongside an internal wakeup socket. Requesting
cancellation writes a byte to the wakeup socket, which is never drained,
so every current and future wait returns immediately from then on.

Public surface area:
    - SocketTransport: the byte-stream transport over a connected socket
    - Listener: bind, listen, and accept with an interruptible accept
    - connect(address, port): open a client connection
"""

from __future__ import annotations

import logging
import math
import socket
import threading
import time
from typing import Optional

import zmq

from ..errors import (
    TransportCancelled,
    TransportConnectionError,
    TransportPortError,
)
from .base import Transport
from .framed import FramedTransport


log = logging.getLogger(__name__)


def _milliseconds(timeout: Optional[float]) -> Optional[int]:
    # Round up: a wait must never expire before the requested timeout.
    if timeout is None:
        return None
    return max(0, int(math.ceil(timeout * 1000)))


class Wakeup:
    """Cancellation flag paired with a socket that becomes readable, and
    stays readable, once the flag is set."""

    def __init__(self):
        self.event = threading.Event()
        self._signal_rx, self._signal_tx = socket.socketpair()
        self._signal_rx.setblocking(False)
        self._signal_tx.setblocking(False)

    def register(self, poller: zmq.Poller) -> None:
        poller.register(self._signal_rx, zmq.POLLIN)

    def fired(self, events: dict) -> bool:
        return self._signal_rx in events

    def is_set(self) -> bool:
        return self.event.is_set()

    def set(self) -> None:
        self.event.set()
        try:
            self._signal_tx.send(b"\0")
        except OSError:
            # The signal socket is already full, or closed; either way the
            # flag is set and any waiter has been or will be released.
            pass

    def close(self) -> None:
        self._signal_tx.close()
        self._signal_rx.close()


class SocketTransport(Transport):
    """Byte-stream transport over a connected stream socket."""

    def __init__(self, sock: socket.socket):
        sock.setblocking(False)
        self.socket = sock

        self._wakeup = Wakeup()
        self._closed = False
        self._lock = threading.Lock()

        # One poller per direction, so that a sending thread and a
        # receiving thread never share one.

        self._readable = zmq.Poller()
        self._readable.register(sock, zmq.POLLIN)
        self._wakeup.register(self._readable)

        self._writable = zmq.Poller()
        self._writable.register(sock, zmq.POLLOUT)
        self._wakeup.register(self._writable)

    def __repr__(self) -> str:
        return f"<SocketTransport fd={self.socket.fileno()}>"

    def send(self, data: bytes) -> int:
        return self.socket.send(data)

    def recv(self, maximum: int) -> bytes:
        return self.socket.recv(maximum)

    def wait_readable(self, timeout: Optional[float] = None) -> bool:
        return self._wait(self._readable, timeout)

    def wait_writable(self, timeout: Optional[float] = None) -> bool:
        return self._wait(self._writable, timeout)

    def _wait(self, poller: zmq.Poller, timeout: Optional[float]) -> bool:
        if self._wakeup.is_set():
            return True
        if self._closed:
            raise TransportConnectionError("transport is closed")

        try:
            events = dict(poller.poll(_milliseconds(timeout)))
        except zmq.ZMQError as exc:
            raise TransportConnectionError(f"poll failed: {exc}") from exc

        if self._wakeup.fired(events):
            return True
        return self.socket in events

    def cancel(self) -> None:
        self._wakeup.set()

    @property
    def cancelled(self) -> bool:
        return self._wakeup.is_set()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True

        # Release anything blocked in a wait before the descriptors go away.
        self._wakeup.set()

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Not connected, or already shut down by the peer.
            pass

        self.socket.close()
        self._wakeup.close()

    def peer_address(self) -> str:
        try:
            address = self.socket.getpeername()
        except OSError:
            return "[error retrieving address]"

        if isinstance(address, tuple):
            return address[0]
        return "[unknown]"


def connect(address: str, port: int, timeout: Optional[float] = None, maximum_payload: Optional[int] = None) -> FramedTransport:
    """Connect to *address*:*port*, trying each resolved address in turn,
    and return a :class:`FramedTransport` that owns the connection. The
    *timeout* applies to establishing the connection only."""

    try:
        sock = socket.create_connection((address, int(port)), timeout=timeout or None)
    except OSError as exc:
        raise TransportConnectionError(f"unable to connect to {address}:{port}: {exc}") from exc

    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    log.debug("connected to %s:%s", address, port)
    return FramedTransport(SocketTransport(sock), maximum_payload)


class Listener:
    """Listen for TCP connections.

    If *port* is None the operating system picks one; the port actually
    bound is available as :attr:`port`. :func:`shutdown` interrupts a blocked
    :func:`accept` from another thread.
    """

    backlog = socket.SOMAXCONN

    def __init__(self, address: str = "", port: Optional[int] = None, maximum_payload: Optional[int] = None):
        self.address = address
        self.maximum_payload = maximum_payload

        requested = 0 if port is None else int(port)

        self.socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        try:
            self.socket.bind((address, requested))
            self.socket.listen(self.backlog)
        except OSError as exc:
            self.socket.close()
            raise TransportPortError(f"unable to listen on {address or '*'}:{requested}: {exc}") from exc

        self.socket.setblocking(False)
        self.port = self.socket.getsockname()[1]

        self._wakeup = Wakeup()
        self._closed = False
        self._lock = threading.Lock()

        self._poller = zmq.Poller()
        self._poller.register(self.socket, zmq.POLLIN)
        self._wakeup.register(self._poller)

    def __enter__(self) -> "Listener":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def accept(self, timeout: Optional[float] = None) -> Optional[FramedTransport]:
        """Wait for a connection and return a :class:`FramedTransport` for
        it, or None if *timeout* seconds pass first."""

        if timeout:
            deadline = time.monotonic() + timeout
        else:
            deadline = None

        while True:
            if self._wakeup.is_set():
                raise TransportCancelled(f"listener on port {self.port} was shut down")

            if deadline is None:
                wait = None
            else:
                wait = max(deadline - time.monotonic(), 0.0)

            try:
                events = dict(self._poller.poll(_milliseconds(wait)))
            except zmq.ZMQError as exc:
                raise TransportConnectionError(f"poll failed: {exc}") from exc

            if self._wakeup.fired(events) or self._wakeup.is_set():
                raise TransportCancelled(f"listener on port {self.port} was shut down")

            if self.socket not in events:
                if deadline is not None and time.monotonic() >= deadline:
                    return None
                continue

            try:
                sock, address = self.socket.accept()
            except BlockingIOError:
                continue
            except OSError as exc:
                raise TransportConnectionError(f"accept failed: {exc}") from exc

            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            log.debug("accepted connection from %s on port %d", address[0], self.port)
            return FramedTransport(SocketTransport(sock), self.maximum_payload)

    def shutdown(self) -> None:
        self._wakeup.set()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self._wakeup.set()
        self.socket.close()
        self._wakeup.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
