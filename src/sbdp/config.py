""" Default settings for sbdp. Each setting is a plain module attribute with
    a built-in default; an environment variable, read once at import time,
    overrides the default. Instances that accept the same setting as an
    argument read the module attribute when they are created, so changing
    an attribute at runtime affects instances created afterwards.

    ======================== ======================== ====================
    Attribute                Environment variable     Default
    ======================== ======================== ====================
    ``maximum_payload``      ``SBDP_MAXIMUM_PAYLOAD`` 16 MiB
    ``timeout``              ``SBDP_TIMEOUT``         None (wait forever)
    ``chunk_size``           ``SBDP_CHUNK_SIZE``      65536
    ``workers``              ``SBDP_WORKERS``         8
    ======================== ======================== ====================
"""

import os


# The outer length field is 32 bits wide; no configured maximum can exceed it.

_payload_limit = 0xFFFFFFFF


def _integer(name, default, minimum=1, maximum=None):

    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default

    try:
        value = int(raw.strip(), 0)
    except ValueError:
        raise ValueError('%s must be an integer, not %r' % (name, raw))

    if value < minimum:
        raise ValueError('%s must be at least %d, not %d' % (name, minimum, value))
    if maximum is not None and value > maximum:
        raise ValueError('%s must be at most %d, not %d' % (name, maximum, value))

    return value


def _seconds(name, default):
    """ Timeouts are in seconds. Zero means no timeout, the same as None.
    """

    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default

    try:
        value = float(raw.strip())
    except ValueError:
        raise ValueError('%s must be a number of seconds, not %r' % (name, raw))

    if value < 0:
        raise ValueError('%s must not be negative, not %r' % (name, raw))
    if value == 0:
        return None

    return value


maximum_payload = _integer('SBDP_MAXIMUM_PAYLOAD', 16 * 1024 * 1024, minimum=0, maximum=_payload_limit)
timeout = _seconds('SBDP_TIMEOUT', None)
chunk_size = _integer('SBDP_CHUNK_SIZE', 65536)
workers = _integer('SBDP_WORKERS', 8)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
