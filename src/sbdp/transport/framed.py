"""Message framing over a byte-stream transport.

A frame is the 4-byte big-endian payload length followed by the payload
(see :mod:`sbdp.protocol.codec`). Sending writes the whole frame, looping
on partial writes. Receiving reads the header, checks the declared length
against ``maximum_payload``, then reads exactly that many payload bytes.

Receive timeouts use one absolute deadline per :func:`FramedTransport.recv_message`
call: the header and the payload share the budget, and every wait is for
the time remaining. A peer that trickles a byte at a time cannot stretch a
receive past its timeout.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Mapping, Optional

from .. import config
from ..errors import (
    HeaderReceptionFailed,
    PayloadReceptionFailed,
    PayloadTooLarge,
    TransportCancelled,
    TransportConnectionError,
    TransportTimeout,
)
from ..protocol import codec
from ..protocol.message import Message
from .base import Transport


log = logging.getLogger(__name__)


class FramedTransport:
    """Send and receive whole messages over one :class:`Transport`.

    The framed transport owns its byte stream: :func:`close` closes it, once,
    no matter how many times it is called. One thread may send while another
    receives; concurrent senders (or concurrent receivers) on the same
    instance are not supported. :func:`shutdown` may be called from any
    thread to make blocked and future operations raise
    :class:`sbdp.errors.TransportCancelled`.

    :ivar transport: The underlying byte stream, or None once detached.
    :ivar maximum_payload: Largest payload, in bytes, that will be received.
    """

    def __init__(self, transport: Transport, maximum_payload: Optional[int] = None):

        if maximum_payload is None:
            maximum_payload = config.maximum_payload

        maximum_payload = int(maximum_payload)
        if maximum_payload < 0 or maximum_payload > codec.MAXIMUM_PAYLOAD_LENGTH:
            raise ValueError(f"maximum_payload out of range: {maximum_payload}")

        self.transport: Optional[Transport] = transport
        self.maximum_payload = maximum_payload
        self.chunk_size = config.chunk_size

        self._closed = False
        self._close_lock = threading.Lock()

    def __enter__(self) -> "FramedTransport":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<FramedTransport {state} {self.transport!r}>"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def peer_address(self) -> str:
        return self._transport().peer_address()

    def _transport(self) -> Transport:
        transport = self.transport
        if self._closed or transport is None:
            raise TransportConnectionError("transport is closed")
        return transport

    # --- sending ---

    def send_message(self, message: Mapping) -> None:
        """Encode *message* and write the whole frame.

        Returns once every byte has been accepted by the local stack; that
        says nothing about whether the peer has read it.
        """

        frame = codec.encode(message)
        self._send_all(frame)
        log.debug("sent %d byte frame", len(frame))

    def _send_all(self, data: bytes) -> None:
        transport = self._transport()
        view = memoryview(data)
        sent = 0

        while sent < len(view):
            _check_cancelled(transport)
            transport.wait_writable(None)
            _check_cancelled(transport)

            try:
                count = transport.send(view[sent:])
            except BlockingIOError:
                continue
            except OSError as exc:
                raise TransportConnectionError(f"send failed after {sent} of {len(view)} bytes: {exc}") from exc

            if count <= 0:
                raise TransportConnectionError(f"send failed after {sent} of {len(view)} bytes: connection closed")

            sent += count

    # --- receiving ---

    def recv_message(self, timeout: Optional[float] = None) -> Message:
        """Read exactly one frame and return the decoded :class:`Message`.

        *timeout* is in seconds; None or 0 waits indefinitely. Raises
        :class:`sbdp.errors.TransportTimeout` if the whole frame does not
        arrive in time, :class:`sbdp.errors.HeaderReceptionFailed` or
        :class:`sbdp.errors.PayloadReceptionFailed` if the connection fails,
        and :class:`sbdp.errors.PayloadTooLarge` if the peer declares a
        payload above ``maximum_payload``. Decoding errors propagate as-is.
        """

        transport = self._transport()

        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout must not be negative: {timeout}")

        if timeout:
            deadline = time.monotonic() + timeout
        else:
            deadline = None

        frame = self._read_exact(transport, codec.HEADER_SIZE, deadline, timeout, HeaderReceptionFailed)
        length = codec.header(frame)

        if length > self.maximum_payload:
            log.warning("rejecting %d byte payload, maximum is %d", length, self.maximum_payload)
            raise PayloadTooLarge(length, self.maximum_payload)

        if length:
            frame += self._read_exact(transport, length, deadline, timeout, PayloadReceptionFailed)

        log.debug("received %d byte frame", len(frame))
        return codec.decode(frame)

    def _read_exact(self, transport, count, deadline, timeout, failure) -> bytearray:
        """Bounded read: exactly *count* bytes, or an exception. Bytes read
        before a failure are discarded along with the buffer."""

        buffer = bytearray()

        while len(buffer) < count:
            _check_cancelled(transport)

            if deadline is None:
                ready = transport.wait_readable(None)
            else:
                remaining = max(deadline - time.monotonic(), 0.0)
                ready = transport.wait_readable(remaining)

            _check_cancelled(transport)

            if not ready:
                if deadline is not None and time.monotonic() >= deadline:
                    raise TransportTimeout(
                        f"received {len(buffer)} of {count} bytes in {timeout:.3f} sec"
                    )
                continue

            try:
                chunk = transport.recv(min(count - len(buffer), self.chunk_size))
            except BlockingIOError:
                continue
            except OSError as exc:
                raise failure(f"recv failed after {len(buffer)} of {count} bytes: {exc}") from exc

            if not chunk:
                raise failure(f"connection closed after {len(buffer)} of {count} bytes")

            buffer += chunk
            _check_cancelled(transport)

        return buffer

    # --- lifecycle ---

    def shutdown(self) -> None:
        """Cancel blocked and future operations on this transport."""
        transport = self.transport
        if transport is not None:
            transport.cancel()

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
            transport = self.transport

        if transport is not None:
            transport.close()

    def detach(self) -> Transport:
        """Give up ownership of the byte stream and return it. This
        framed transport is unusable afterwards."""

        with self._close_lock:
            transport = self._transport()
            self._closed = True
            self.transport = None

        return transport


def _check_cancelled(transport: Transport) -> None:
    if transport.cancelled:
        raise TransportCancelled("transport was shut down")


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
