""" Translation between a :class:`Message` and its binary frame. Everything
    on the wire is big-endian::

        Frame   := PayloadLen(4) Payload
        Payload := Entry*
        Entry   := KeyLen(2) Key(KeyLen) TypeTag(1) Value

        Value(int64|uint64|float64) := 8 bytes
        Value(string|binary)        := Len(4) Bytes(Len)

    Keys and string values are UTF-8. A float64 is sent as its IEEE-754 bit
    pattern. Entries are written in ascending key order, so a given message
    always produces the same frame.

    Both functions here are pure: no I/O, no shared state.
"""

import struct

from ..errors import (
    EncodingRangeError,
    EntryTruncated,
    FrameIncomplete,
    FrameOversized,
    FrameTooShort,
    InvalidText,
    UnknownValueType,
)
from .message import Message
from .value import Value, ValueType


HEADER_SIZE = 4
MAXIMUM_KEY_LENGTH = 0xFFFF
MAXIMUM_VALUE_LENGTH = 0xFFFFFFFF
MAXIMUM_PAYLOAD_LENGTH = 0xFFFFFFFF

_uint16 = struct.Struct('>H')
_uint32 = struct.Struct('>I')

_fixed = {
    ValueType.INT64: struct.Struct('>q'),
    ValueType.UINT64: struct.Struct('>Q'),
    ValueType.FLOAT64: struct.Struct('>d'),
}

_tags = dict()
for _type in ValueType:
    _tags[_type] = bytes((_type,))
del _type


def encode(message):
    """ Return the complete frame, header included, for the provided
        *message*. The *message* may be a :class:`Message` or any other
        mapping whose values :func:`Value.infer` accepts.
    """

    if not isinstance(message, Message):
        message = Message(message)

    # The first chunk is a placeholder for the header, filled in once the
    # payload length is known.

    chunks = [b'']
    length = 0

    for key in sorted(message):
        value = message[key]

        key_bytes = _encode_text(key, 'key')
        if len(key_bytes) > MAXIMUM_KEY_LENGTH:
            raise EncodingRangeError('key is %d bytes long, the maximum is %d' % (len(key_bytes), MAXIMUM_KEY_LENGTH))

        chunks.append(_uint16.pack(len(key_bytes)))
        chunks.append(key_bytes)
        chunks.append(_tags[value.type])
        length += _uint16.size + len(key_bytes) + 1

        try:
            packer = _fixed[value.type]
        except KeyError:
            pass
        else:
            chunks.append(packer.pack(value.data))
            length += packer.size
            continue

        if value.type == ValueType.STRING:
            data = _encode_text(value.data, 'string value for key ' + repr(key))
        else:
            data = value.data

        if len(data) > MAXIMUM_VALUE_LENGTH:
            raise EncodingRangeError('value for key %r is %d bytes long, the maximum is %d' % (key, len(data), MAXIMUM_VALUE_LENGTH))

        chunks.append(_uint32.pack(len(data)))
        chunks.append(data)
        length += _uint32.size + len(data)

    if length > MAXIMUM_PAYLOAD_LENGTH:
        raise EncodingRangeError('payload is %d bytes long, the maximum is %d' % (length, MAXIMUM_PAYLOAD_LENGTH))

    chunks[0] = _uint32.pack(length)
    return b''.join(chunks)


def header(data):
    """ Return the payload length declared by the frame header at the start
        of *data*.
    """

    if len(data) < HEADER_SIZE:
        raise FrameTooShort('frame header requires %d bytes, got %d' % (HEADER_SIZE, len(data)))

    length, = _uint32.unpack_from(data, 0)
    return length


def decode(data):
    """ Return the :class:`Message` represented by the frame in *data*. The
        frame must be complete and exact: a buffer shorter or longer than
        the header declares is rejected, as is any entry that would run past
        the end of the payload. Nothing is returned unless the whole frame
        is valid.
    """

    data = memoryview(data).cast('B')

    declared = header(data)
    end = HEADER_SIZE + declared

    if len(data) < end:
        raise FrameIncomplete('frame declares %d payload bytes, only %d present' % (declared, len(data) - HEADER_SIZE))
    if len(data) > end:
        raise FrameOversized('frame declares %d payload bytes, %d present' % (declared, len(data) - HEADER_SIZE))

    message = Message()
    offset = HEADER_SIZE

    while offset < end:
        key_length, offset = _unpack(_uint16, data, offset, end, 'key length')
        key, offset = _slice(data, offset, key_length, end, 'key')
        key = _decode_text(key, 'key')

        if offset >= end:
            raise EntryTruncated('type tag missing for key ' + repr(key))

        tag = data[offset]
        offset += 1

        try:
            type = ValueType(tag)
        except ValueError:
            raise UnknownValueType(tag, key) from None

        what = '%s value for key %r' % (type.name.lower(), key)

        try:
            unpacker = _fixed[type]
        except KeyError:
            length, offset = _unpack(_uint32, data, offset, end, what + ' length')
            value, offset = _slice(data, offset, length, end, what)
            if type == ValueType.STRING:
                value = _decode_text(value, what)
            else:
                value = bytes(value)
        else:
            value, offset = _unpack(unpacker, data, offset, end, what)

        message[key] = Value(type, value)

    return message


def _unpack(unpacker, data, offset, end, what):

    if offset + unpacker.size > end:
        raise EntryTruncated('%s requires %d bytes, %d remain' % (what, unpacker.size, end - offset))

    value, = unpacker.unpack_from(data, offset)
    return value, offset + unpacker.size


def _slice(data, offset, length, end, what):

    if offset + length > end:
        raise EntryTruncated('%s requires %d bytes, %d remain' % (what, length, end - offset))

    return data[offset:offset + length], offset + length


def _encode_text(text, what):

    try:
        return text.encode('utf-8')
    except UnicodeEncodeError as e:
        raise EncodingRangeError('%s is not representable as UTF-8: %s' % (what, e)) from e


def _decode_text(view, what):

    try:
        return bytes(view).decode('utf-8')
    except UnicodeDecodeError as e:
        raise InvalidText('%s is not valid UTF-8: %s' % (what, e)) from e


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
