import pytest
import sbdp
import socket

from sbdp.transport.tcp import SocketTransport


@pytest.fixture
def pair():
    """ Two framed transports connected to each other.
    """

    left, right = socket.socketpair()

    sender = sbdp.FramedTransport(SocketTransport(left))
    receiver = sbdp.FramedTransport(SocketTransport(right))

    yield sender, receiver

    sender.close()
    receiver.close()


@pytest.fixture
def raw_pair():
    """ A framed transport, and a plain socket connected to it; the plain
        socket is used to put arbitrary bytes on the wire.
    """

    left, right = socket.socketpair()
    framed = sbdp.FramedTransport(SocketTransport(left))

    yield framed, right

    framed.close()
    right.close()


@pytest.fixture
def echo_server():
    """ A :class:`sbdp.Server` on the loopback interface that sends every
        message straight back.
    """

    def echo(message, peer):
        return message

    server = sbdp.Server(echo, address='127.0.0.1')

    yield server

    server.shutdown()

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
