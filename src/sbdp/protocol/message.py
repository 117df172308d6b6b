""" A class representation of an SBDP message: a dictionary of string keys
    and typed values.
"""

import collections.abc

from ..errors import ProtocolError
from .value import Value


class Message(collections.abc.MutableMapping):
    """ The :class:`Message` acts like a dictionary whose keys are strings
        and whose values are :class:`Value` instances. Assigning a plain
        Python object runs it through :func:`Value.infer`, so the following
        are equivalent::

            message['count'] = 5
            message['count'] = Value.int64(5)

        Inserting a key that is already present replaces the earlier value.
        The constructor accepts anything :class:`dict` does.

        A :class:`Message` compares equal to another mapping if the other
        mapping, converted to a :class:`Message`, holds the same keys and
        equal values.
    """

    def __init__(self, *args, **kwargs):

        self._entries = dict()
        self.update(*args, **kwargs)


    def __getitem__(self, key):
        return self._entries[key]


    def __setitem__(self, key, value):

        if not isinstance(key, str):
            raise TypeError('message keys must be str, not ' + type(key).__name__)

        self._entries[key] = Value.infer(value)


    def __delitem__(self, key):
        del self._entries[key]


    def __iter__(self):
        return iter(self._entries)


    def __len__(self):
        return len(self._entries)


    def __repr__(self):
        return 'Message(' + repr(self._entries) + ')'


    def __eq__(self, other):

        if isinstance(other, Message):
            return self._entries == other._entries

        if isinstance(other, collections.abc.Mapping):
            try:
                other = Message(other)
            except (TypeError, ProtocolError):
                return False
            return self._entries == other._entries

        return NotImplemented


    __hash__ = None


    def copy(self):
        return Message(self._entries)


    def native(self):
        """ Return a plain dictionary of the Python-native data for each
            value, discarding the type tags.
        """

        native = dict()
        for key,value in self._entries.items():
            native[key] = value.data

        return native


# end of class Message


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
