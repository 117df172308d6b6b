"""Transport interface.

This is the (small) contract that a byte-stream transport must follow for
:class:`sbdp.transport.framed.FramedTransport` to drive it. It lives apart
from the framing so that the framing logic can be exercised against any
stream, not just a TCP socket.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class Transport(ABC):
    """Minimal contract for a reliable, ordered byte stream.

    ``send`` and ``recv`` never block: when the stream is not ready they
    raise :class:`BlockingIOError`, and the caller is expected to use
    ``wait_writable`` or ``wait_readable`` first. The waits are the only
    blocking operations, and ``cancel`` must interrupt them.
    """

    @abstractmethod
    def send(self, data: bytes) -> int:
        """Write a prefix of *data*; return how many bytes were accepted."""

    @abstractmethod
    def recv(self, maximum: int) -> bytes:
        """Read up to *maximum* bytes. An empty result means the peer closed."""

    @abstractmethod
    def wait_readable(self, timeout: Optional[float] = None) -> bool:
        """Block until readable or cancelled (True), or *timeout* seconds
        pass (False). A *timeout* of None waits forever."""

    @abstractmethod
    def wait_writable(self, timeout: Optional[float] = None) -> bool:
        """Block until writable or cancelled (True), or *timeout* seconds
        pass (False). A *timeout* of None waits forever."""

    @abstractmethod
    def cancel(self) -> None:
        """Request cancellation, waking any blocked wait. Idempotent, and
        safe to call from any thread."""

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the underlying stream. Idempotent."""

    def peer_address(self) -> str:
        """A printable address for the remote end."""
        return '[unknown]'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
