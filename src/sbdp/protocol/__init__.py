from . import value
from . import message
from . import codec

from .value import Value, ValueType
from .message import Message
from .codec import encode, decode


"""
SBDP Protocol Layer
===================

This package defines the wire representation of an SBDP message. It is
pure computation: no sockets, no threads, no shared state.

The protocol layer MUST NOT depend on any transport implementation.

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

User Code
    │
    ▼
Message Model (message.py)
    Dictionary of str -> Value
    - Message

    │
    ▼
Value Model (value.py)
    The five wire variants
    - ValueType (wire tags 1-5)
    - Value

    │
    ▼
Codec (codec.py)
    Maps Message <-> frame bytes
    - encode()
    - decode()
    - header()

---------------------------------------------------------------------

Below the Protocol Layer (for context)
--------------------------------------

Framed Transport (sbdp.transport.framed)
    Delimits frames on a byte stream
    - send_message()
    - recv_message()

Byte-stream Transport (sbdp.transport.tcp)
    Moves bytes
    - TCP sockets

---------------------------------------------------------------------

Design Principles
-----------------

1. Exact Frames
   A frame is accepted only if every length field agrees with the bytes
   actually present. Lengths read from the wire are checked before use.

2. No Coercion
   A value keeps the variant it was created with; int64 and uint64 are
   distinct even when the number would fit either.

3. Deterministic Output
   Entries are encoded in ascending key order.

4. Layer Isolation
   Dependencies only flow downward:
       Transport -> Protocol
   Never upward.

---------------------------------------------------------------------
"""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
