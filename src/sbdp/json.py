''' Wrapper module to provide the equivalent of :func:`json.loads` and
    :func:`json.dumps`, backed by msgspec. This is only used to present
    messages to people (the command line tool); it has nothing to do with
    the binary wire format.
'''

import msgspec


# The msgspec 'encode' operation returns bytes. Binary values are rendered
# as base64 strings, and NaN or infinite floats as null.

encoder = msgspec.json.Encoder()
decoder = msgspec.json.Decoder()

dumps = encoder.encode
loads = decoder.decode

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
