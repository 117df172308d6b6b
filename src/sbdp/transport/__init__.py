"""Transport layer implementations."""

from ..errors import (
    TransportError,
    TransportTimeout,
    TransportCancelled,
    TransportConnectionError,
    TransportPortError,
    ReceptionFailed,
    HeaderReceptionFailed,
    PayloadReceptionFailed,
    PayloadTooLarge,
)

from .base import Transport
from .framed import FramedTransport
from .tcp import SocketTransport, Listener, connect
