""" Python implementation of the Simple Binary Dictionary Protocol (SBDP):
    typed key/value dictionaries sent as length-prefixed binary frames over
    a TCP connection. This includes the codec, which translates between a
    :class:`Message` and its frame, and the framed transport, which sends
    and receives whole frames with timeouts and cooperative cancellation.
"""

# Utility components.

from . import config
from . import errors
from . import json

from .errors import *

# The wire format, independent of any transport.

from . import protocol
from .protocol import Message, Value, ValueType, encode, decode

# Moving frames over a connection.

from . import transport
from .transport import FramedTransport, Listener, connect

from . import server
from .server import Server

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
