""" A class representation of a single typed value in an SBDP message. The
    wire format knows exactly five kinds of value, enumerated by
    :class:`ValueType`; a :class:`Value` is always exactly one of them.
"""

import enum
import struct

import numpy

from ..errors import EncodingRangeError


class ValueType(enum.IntEnum):
    """ The type tag carried on the wire ahead of every value.
    """

    INT64 = 1
    UINT64 = 2
    FLOAT64 = 3
    STRING = 4
    BINARY = 5


INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
UINT64_MAX = 2 ** 64 - 1

_float_bits = struct.Struct('>d')


def _integer(data, type):

    if isinstance(data, (bool, numpy.bool_)):
        raise TypeError(type.name.lower() + ' value cannot be a boolean')

    if isinstance(data, (int, numpy.integer)):
        return int(data)

    raise TypeError('%s value must be an integer, not %s' % (type.name.lower(), _typename(data)))


def _int64(data):

    data = _integer(data, ValueType.INT64)

    if data < INT64_MIN or data > INT64_MAX:
        raise EncodingRangeError('int64 value out of range: %d' % (data))

    return data


def _uint64(data):

    data = _integer(data, ValueType.UINT64)

    if data < 0 or data > UINT64_MAX:
        raise EncodingRangeError('uint64 value out of range: %d' % (data))

    return data


def _float64(data):

    # No integers; the caller has to say which numeric variant they want.

    if isinstance(data, (float, numpy.floating)):
        return float(data)

    raise TypeError('float64 value must be a float, not ' + _typename(data))


def _string(data):

    if isinstance(data, str):
        return str(data)

    raise TypeError('string value must be a str, not ' + _typename(data))


def _binary(data):

    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)

    raise TypeError('binary value must be bytes-like, not ' + _typename(data))


def _typename(thing):
    return type(thing).__name__


_validators = {
    ValueType.INT64: _int64,
    ValueType.UINT64: _uint64,
    ValueType.FLOAT64: _float64,
    ValueType.STRING: _string,
    ValueType.BINARY: _binary,
}



class Value:
    """ An immutable tagged value: the *type* is a :class:`ValueType`, and
        *data* is the Python-native representation of the value (an int for
        both integer variants, a float, a str, or bytes). The *data* is
        checked against the *type* when the instance is created; integers
        outside the 64-bit range of their variant raise
        :class:`sbdp.errors.EncodingRangeError`, any other mismatch raises
        :class:`TypeError`.

        Two instances are equal if they have the same type and the same data.
        Floating point data is compared by its IEEE-754 bit pattern, so a NaN
        is equal to itself and -0.0 is not equal to 0.0; this is the notion
        of equality that matters when checking what went over the wire.

        :ivar type: The :class:`ValueType` of this value.
        :ivar data: The Python-native value.
    """

    __slots__ = ('type', 'data')

    def __init__(self, type, data):

        type = ValueType(type)
        data = _validators[type](data)

        object.__setattr__(self, 'type', type)
        object.__setattr__(self, 'data', data)


    def __setattr__(self, name, value):
        raise AttributeError('Value instances are immutable')


    def __delattr__(self, name):
        raise AttributeError('Value instances are immutable')


    def __eq__(self, other):

        if not isinstance(other, Value):
            return NotImplemented

        if self.type != other.type:
            return False

        if self.type == ValueType.FLOAT64:
            return _float_bits.pack(self.data) == _float_bits.pack(other.data)

        return self.data == other.data


    def __hash__(self):

        if self.type == ValueType.FLOAT64:
            return hash((self.type, _float_bits.pack(self.data)))

        return hash((self.type, self.data))


    def __repr__(self):
        return 'Value.%s(%r)' % (self.type.name.lower(), self.data)


    @classmethod
    def int64(cls, data):
        return cls(ValueType.INT64, data)


    @classmethod
    def uint64(cls, data):
        return cls(ValueType.UINT64, data)


    @classmethod
    def float64(cls, data):
        return cls(ValueType.FLOAT64, data)


    @classmethod
    def string(cls, data):
        return cls(ValueType.STRING, data)


    @classmethod
    def binary(cls, data):
        return cls(ValueType.BINARY, data)


    @classmethod
    def infer(cls, thing):
        """ Return a :class:`Value` for the Python-native *thing*. A Python
            int is always treated as int64, even if it would only fit as a
            uint64; to send an unsigned value, use :func:`Value.uint64` or
            a numpy unsigned integer scalar. Booleans and None have no
            representation on the wire and raise :class:`TypeError`.
        """

        if isinstance(thing, Value):
            return thing

        if isinstance(thing, (bool, numpy.bool_)) or thing is None:
            raise TypeError('no wire representation for ' + repr(thing))

        if isinstance(thing, numpy.unsignedinteger):
            return cls(ValueType.UINT64, thing)

        if isinstance(thing, (int, numpy.signedinteger)):
            return cls(ValueType.INT64, thing)

        if isinstance(thing, (float, numpy.floating)):
            return cls(ValueType.FLOAT64, thing)

        if isinstance(thing, str):
            return cls(ValueType.STRING, thing)

        if isinstance(thing, (bytes, bytearray, memoryview)):
            return cls(ValueType.BINARY, thing)

        raise TypeError('no wire representation for ' + _typename(thing))


# end of class Value


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
