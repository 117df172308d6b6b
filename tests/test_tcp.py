""" Exercise the framed transport over real sockets: socket pairs for most
    of the timing and cancellation behavior, and loopback TCP for the
    listener and connect() paths.
"""

import pytest
import sbdp
import socket
import struct
import threading
import time

from sbdp.transport.tcp import Listener, SocketTransport, connect


def later(delay, function, *args):
    """ Call *function* from another thread after *delay* seconds.
    """

    timer = threading.Timer(delay, function, args)
    timer.daemon = True
    timer.start()
    return timer


def test_round_trip(pair):

    sender, receiver = pair

    first = sbdp.Message({'sequence': 1, 'text': 'first'})
    second = sbdp.Message({'sequence': 2, 'blob': b'\x00\x01\x02'})
    third = sbdp.Message()

    sender.send_message(first)
    sender.send_message(second)
    sender.send_message(third)

    assert receiver.recv_message(5) == first
    assert receiver.recv_message(5) == second
    assert receiver.recv_message(5) == third


def test_both_directions(pair):

    left, right = pair

    left.send_message({'from': 'left'})
    right.send_message({'from': 'right'})

    assert right.recv_message(5) == {'from': 'left'}
    assert left.recv_message(5) == {'from': 'right'}


def test_large_message(pair):

    sender, receiver = pair
    message = sbdp.Message({'blob': bytes(range(256)) * 4096, 'tail': 'end'})

    # A megabyte will not fit in the socket buffers; the send has to run
    # concurrently with the receive.

    thread = threading.Thread(target=sender.send_message, args=(message,))
    thread.daemon = True
    thread.start()

    received = receiver.recv_message(10)
    thread.join(10)

    assert received == message


def test_split_frame(raw_pair):

    framed, raw = raw_pair
    encoded = sbdp.encode({'key': 'value'})

    raw.sendall(encoded[:3])
    later(0.1, raw.sendall, encoded[3:])

    assert framed.recv_message(5) == {'key': 'value'}


def test_timeout(pair):

    sender, receiver = pair

    before = time.monotonic()

    with pytest.raises(sbdp.TransportTimeout):
        receiver.recv_message(0.2)

    elapsed = time.monotonic() - before
    assert elapsed >= 0.19
    assert elapsed < 2

    # The transport is still usable after a timeout with nothing read.

    sender.send_message({'a': 1})
    assert receiver.recv_message(5) == {'a': 1}


def test_timeout_covers_whole_frame(raw_pair):

    framed, raw = raw_pair
    stop = threading.Event()

    def trickle():
        try:
            raw.sendall(struct.pack('>I', 100))
            while not stop.is_set():
                raw.sendall(b'\x00')
                time.sleep(0.05)
        except OSError:
            pass

    thread = threading.Thread(target=trickle)
    thread.daemon = True
    thread.start()

    # Every byte arrives well within the timeout of the one before it, but
    # the frame as a whole does not.

    before = time.monotonic()

    try:
        with pytest.raises(sbdp.TransportTimeout):
            framed.recv_message(0.3)
    finally:
        stop.set()
        thread.join(5)

    elapsed = time.monotonic() - before
    assert elapsed >= 0.29
    assert elapsed < 2


def test_no_timeout(pair):

    sender, receiver = pair

    later(0.1, sender.send_message, {'late': 'arrival'})
    assert receiver.recv_message(0) == {'late': 'arrival'}

    later(0.1, sender.send_message, {'later': 'arrival'})
    assert receiver.recv_message(None) == {'later': 'arrival'}


def test_cancel_blocked_receive(pair):

    sender, receiver = pair

    later(0.1, receiver.shutdown)

    with pytest.raises(sbdp.TransportCancelled):
        receiver.recv_message()

    # Cancellation is permanent.

    sender.send_message({'a': 1})

    with pytest.raises(sbdp.TransportCancelled):
        receiver.recv_message(5)

    with pytest.raises(sbdp.TransportCancelled):
        receiver.send_message({'b': 2})


def test_cancel_partial_header(raw_pair):

    framed, raw = raw_pair

    raw.sendall(b'\x00\x00')
    later(0.1, framed.shutdown)

    with pytest.raises(sbdp.TransportCancelled):
        framed.recv_message(5)


def test_cancel_blocked_send(pair):

    sender, receiver = pair
    message = sbdp.Message({'blob': b'\x00' * (16 * 1024 * 1024)})
    outcome = list()

    # Nobody reads on the other end, so the send fills the socket buffers
    # and blocks waiting for them to drain.

    def send():
        try:
            sender.send_message(message)
        except sbdp.SBDPError as e:
            outcome.append(e)
        else:
            outcome.append(None)

    thread = threading.Thread(target=send)
    thread.daemon = True
    thread.start()

    time.sleep(0.3)
    assert thread.is_alive()

    before = time.monotonic()
    sender.shutdown()
    thread.join(5)

    assert thread.is_alive() == False
    assert time.monotonic() - before < 2
    assert len(outcome) == 1
    assert isinstance(outcome[0], sbdp.TransportCancelled)


def test_cancel_before_send(pair):

    sender, receiver = pair
    sender.shutdown()
    sender.shutdown()

    with pytest.raises(sbdp.TransportCancelled):
        sender.send_message({'a': 1})

    with pytest.raises(sbdp.TransportTimeout):
        receiver.recv_message(0.1)


def test_peer_closed(raw_pair):

    framed, raw = raw_pair
    raw.close()

    with pytest.raises(sbdp.HeaderReceptionFailed):
        framed.recv_message(5)


def test_peer_closed_mid_payload(raw_pair):

    framed, raw = raw_pair
    raw.sendall(struct.pack('>I', 10) + b'abc')
    raw.close()

    with pytest.raises(sbdp.PayloadReceptionFailed):
        framed.recv_message(5)


def test_payload_too_large(raw_pair):

    framed, raw = raw_pair
    raw.sendall(b'\xff\xff\xff\xff')

    with pytest.raises(sbdp.PayloadTooLarge) as caught:
        framed.recv_message(5)

    assert caught.value.length == 0xFFFFFFFF
    assert caught.value.maximum == framed.maximum_payload


def test_decode_error(raw_pair):

    framed, raw = raw_pair
    raw.sendall(struct.pack('>I', 4) + b'\x00\x01a\x09')

    with pytest.raises(sbdp.UnknownValueType):
        framed.recv_message(5)


def test_socket_close():

    left, right = socket.socketpair()
    transport = SocketTransport(left)

    transport.close()
    transport.close()

    assert transport.cancelled
    assert left.fileno() == -1

    right.close()


def test_closed_transport(pair):

    sender, receiver = pair
    sender.close()

    with pytest.raises(sbdp.TransportConnectionError):
        sender.send_message({'a': 1})

    with pytest.raises(sbdp.HeaderReceptionFailed):
        receiver.recv_message(5)


def test_loopback():

    with Listener('127.0.0.1') as listener:
        assert listener.port > 0

        client = connect('127.0.0.1', listener.port, timeout=5)
        server = listener.accept(5)

        assert server is not None
        assert server.peer_address == '127.0.0.1'
        assert client.peer_address == '127.0.0.1'

        with client, server:
            client.send_message({'question': 'ping'})
            assert server.recv_message(5) == {'question': 'ping'}

            server.send_message({'answer': 'pong'})
            assert client.recv_message(5) == {'answer': 'pong'}


def test_listener_maximum_payload():

    with Listener('127.0.0.1', maximum_payload=8) as listener:
        with connect('127.0.0.1', listener.port, timeout=5) as client:
            server = listener.accept(5)

            with server:
                assert server.maximum_payload == 8

                client.send_message({'blob': b'x' * 100})

                with pytest.raises(sbdp.PayloadTooLarge):
                    server.recv_message(5)


def test_accept_timeout():

    with Listener('127.0.0.1') as listener:
        before = time.monotonic()
        assert listener.accept(0.1) is None
        assert time.monotonic() - before >= 0.09


def test_accept_cancelled():

    listener = Listener('127.0.0.1')
    later(0.1, listener.shutdown)

    with pytest.raises(sbdp.TransportCancelled):
        listener.accept()

    with pytest.raises(sbdp.TransportCancelled):
        listener.accept(5)

    listener.close()
    listener.close()


def test_connect_refused():

    listener = Listener('127.0.0.1')
    port = listener.port
    listener.close()

    with pytest.raises(sbdp.TransportConnectionError):
        connect('127.0.0.1', port, timeout=5)


def test_port_in_use():

    with Listener('127.0.0.1') as listener:
        with pytest.raises(sbdp.TransportPortError):
            Listener('127.0.0.1', listener.port)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
