""" Command line interface for sending and receiving SBDP messages, largely
    for testing and debugging. Received messages are printed as one JSON
    object per line; binary values appear as base64 strings.

    Examples::

        sbdp listen --port 9000
        sbdp send localhost 9000 name:string=widget count:uint64=12 blob:binary=00ff
"""

import argparse
import logging
import sys
import threading

from . import config
from . import json
from .errors import SBDPError
from .protocol import Message, Value, ValueType
from .server import Server
from .transport.tcp import connect


_parsers = {
    ValueType.INT64: lambda text: int(text, 0),
    ValueType.UINT64: lambda text: int(text, 0),
    ValueType.FLOAT64: float,
    ValueType.STRING: str,
    ValueType.BINARY: bytes.fromhex,
}


def entry(argument):
    """ Parse a KEY:TYPE=VALUE argument into a (key, :class:`Value`) pair.
        The key may itself contain colons; the last one before the equals
        sign separates the type.
    """

    try:
        left, text = argument.split('=', 1)
        key, type = left.rsplit(':', 1)
    except ValueError:
        raise argparse.ArgumentTypeError('expected KEY:TYPE=VALUE, got %r' % (argument))

    try:
        type = ValueType[type.upper()]
    except KeyError:
        choices = ', '.join(member.name.lower() for member in ValueType)
        raise argparse.ArgumentTypeError('unknown type %r, expected one of: %s' % (type, choices))

    try:
        value = Value(type, _parsers[type](text))
    except (TypeError, ValueError) as e:
        raise argparse.ArgumentTypeError('bad %s value %r: %s' % (type.name.lower(), text, e))

    return key, value


def render(message, peer=None):
    """ Return the JSON bytes used to print a received *message*.
    """

    if peer is None:
        return json.dumps(message.native())

    return json.dumps({'peer': peer, 'message': message.native()})


def printer(stream, reply=False):
    """ Return a :class:`sbdp.Server` handler that writes each message to
        *stream*, and echoes it back if *reply* is True.
    """

    lock = threading.Lock()

    def handler(message, peer):
        line = render(message, peer).decode() + '\n'
        with lock:
            stream.write(line)
            stream.flush()

        if reply:
            return message

    return handler


def listen(arguments):

    handler = printer(sys.stdout, arguments.reply)
    server = Server(handler, arguments.address, arguments.port, timeout=arguments.timeout)
    sys.stderr.write('listening on port %d\n' % (server.port))

    try:
        while server.thread.is_alive():
            server.thread.join(1)
    except KeyboardInterrupt:
        pass
    finally:
        server.shutdown()

    return 0


def send(arguments):

    message = Message(arguments.entries)

    with connect(arguments.host, arguments.port, timeout=arguments.timeout) as connection:
        connection.send_message(message)

        if arguments.wait:
            response = connection.recv_message(arguments.timeout)
            sys.stdout.write(render(response).decode() + '\n')

    return 0


def parser():

    parser = argparse.ArgumentParser(prog='sbdp', description='Send and receive SBDP messages.')
    parser.add_argument('-v', '--verbose', action='store_true', help='log debug messages to stderr')

    subparsers = parser.add_subparsers(dest='command', required=True)

    listener = subparsers.add_parser('listen', help='print every message received')
    listener.add_argument('--address', default='', help='interface to listen on (default: all)')
    listener.add_argument('--port', type=int, default=None, help='port to listen on (default: any)')
    listener.add_argument('--reply', action='store_true', help='echo each message back to its sender')
    listener.add_argument('--timeout', type=float, default=config.timeout, help='close idle connections after this many seconds')
    listener.set_defaults(function=listen)

    sender = subparsers.add_parser('send', help='send one message')
    sender.add_argument('host')
    sender.add_argument('port', type=int)
    sender.add_argument('entries', metavar='KEY:TYPE=VALUE', type=entry, nargs='*',
                        help='TYPE is one of int64, uint64, float64, string, binary (hex)')
    sender.add_argument('--timeout', type=float, default=config.timeout, help='seconds to wait when connecting and for a reply')
    sender.add_argument('--wait', action='store_true', help='wait for a reply and print it')
    sender.set_defaults(function=send)

    return parser


def main(argv=None):

    arguments = parser().parse_args(argv)

    if arguments.verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    try:
        return arguments.function(arguments)
    except SBDPError as e:
        sys.stderr.write('sbdp: %s\n' % (e))
        return 1


if __name__ == '__main__':
    sys.exit(main())


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
