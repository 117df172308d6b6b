""" Exceptions raised by the sbdp package. Every exception raised on purpose
    by this package is a subclass of :class:`SBDPError`; codec failures are
    additionally :class:`ValueError` subclasses, so that callers treating a
    malformed frame like any other bad value can continue to do so.

    None of these conditions are retried internally. The caller decides
    whether a whole send or receive should be attempted again.
"""


class SBDPError(Exception):
    """ Base class for all sbdp errors. """


# Codec exceptions.

class ProtocolError(SBDPError, ValueError):
    """ Base class for errors in the binary representation of a message. """


class EncodeError(ProtocolError):
    """ A message could not be represented on the wire. """


class EncodingRangeError(EncodeError):
    """ A key, value, or payload is too large for its length field, or
        an integer does not fit in its 64-bit variant, or text cannot be
        represented as UTF-8.
    """


class DecodeError(ProtocolError):
    """ A frame could not be turned back into a message. """


class FrameTooShort(DecodeError):
    """ The input is shorter than the 4-byte frame header. """


class FrameIncomplete(DecodeError):
    """ The input is shorter than the length declared in the frame header. """


class FrameOversized(DecodeError):
    """ The input is longer than the length declared in the frame header. """


class EntryTruncated(DecodeError):
    """ A field of an entry runs past the end of the payload. """


class UnknownValueType(DecodeError):
    """ An entry carries a type tag outside the known set.

        :ivar tag: The offending type tag, as an integer.
        :ivar key: The key of the entry, if it could be decoded.
    """

    def __init__(self, tag, key=None):

        self.tag = tag
        self.key = key

        text = 'unknown value type %d' % (tag)
        if key is not None:
            text += ' for key ' + repr(key)

        DecodeError.__init__(self, text)


class InvalidText(DecodeError):
    """ A key or string value is not valid UTF-8. """


# Transport exceptions.

class TransportError(SBDPError):
    """ Base class for all transport-layer errors. """


class TransportTimeout(TransportError):
    """ A bounded read did not complete before its deadline. """


class TransportCancelled(TransportError):
    """ The operation was abandoned because shutdown was requested. """


class TransportConnectionError(TransportError):
    """ The transport could not establish or maintain a connection. """


class ReceptionFailed(TransportConnectionError):
    """ The connection failed, or was closed by the peer, while a message
        was being received.
    """


class HeaderReceptionFailed(ReceptionFailed):
    """ Reception failed while reading the 4-byte frame header. """


class PayloadReceptionFailed(ReceptionFailed):
    """ Reception failed while reading the frame payload. """


class PayloadTooLarge(TransportError):
    """ A peer declared a payload larger than the configured maximum.

        :ivar length: The declared payload length, in bytes.
        :ivar maximum: The configured maximum, in bytes.
    """

    def __init__(self, length, maximum):

        self.length = length
        self.maximum = maximum

        text = 'declared payload of %d bytes exceeds the maximum of %d' % (length, maximum)
        TransportError.__init__(self, text)


class TransportPortError(TransportError):
    """ No suitable port could be bound. """


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
