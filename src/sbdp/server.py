""" A threaded server that receives SBDP messages on every accepted
    connection and hands them to a caller-supplied handler.
"""

import concurrent.futures
import logging
import threading

from . import config
from .errors import (
    HeaderReceptionFailed,
    SBDPError,
    TransportCancelled,
)
from .transport.tcp import Listener


log = logging.getLogger(__name__)


class Server:
    """ Listen for connections, and serve each one on a pool of worker
        threads. The default behavior is to listen on every interface, on a
        port chosen by the operating system; the port actually bound is
        available as :attr:`port`.

        The *handler* is called as ``handler(message, peer)`` for every
        message received, where *message* is a :class:`sbdp.Message` and
        *peer* is the remote address as a string. If the handler returns a
        mapping it is sent back on the same connection as the reply; if it
        returns None, nothing is sent. The handler is invoked from worker
        threads, one connection per worker at a time; a long-lived connection
        occupies its worker until it closes.

        A connection is closed when the peer disconnects, when a receive
        fails or exceeds *timeout* seconds, or when the handler raises an
        exception; the exception is logged, not propagated.

        :ivar port: The port on which this server is listening.
        :ivar listener: The :class:`sbdp.transport.tcp.Listener` instance.
    """

    def __init__(self, handler, address='', port=None, workers=None, timeout=None, maximum_payload=None):

        if workers is None:
            workers = config.workers

        self.handler = handler
        self.timeout = timeout

        self.listener = Listener(address, port, maximum_payload)
        self.address = address
        self.port = self.listener.port

        self.connections = set()
        self.connections_lock = threading.Lock()
        self.stopping = False

        self.workers = concurrent.futures.ThreadPoolExecutor(max_workers=workers)
        self.thread = threading.Thread(target=self.run)
        self.thread.daemon = True
        self.thread.start()


    def __enter__(self):
        return self


    def __exit__(self, *exc):
        self.shutdown()


    def run(self):
        """ Accept connections until :func:`shutdown` is called.
        """

        while True:
            try:
                connection = self.listener.accept()
            except TransportCancelled:
                break
            except SBDPError as e:
                log.error('port %d: no longer accepting connections: %s', self.port, e)
                break

            with self.connections_lock:
                if self.stopping:
                    connection.close()
                    break
                self.connections.add(connection)

            self.workers.submit(self._serve, connection)


    def _serve(self, connection):

        try:
            peer = connection.peer_address
        except SBDPError:
            peer = '[unknown]'

        log.debug('port %d: serving connection from %s', self.port, peer)

        try:
            while True:
                try:
                    message = connection.recv_message(self.timeout)
                    reply = self.handler(message, peer)
                    if reply is not None:
                        connection.send_message(reply)

                except (HeaderReceptionFailed, TransportCancelled):
                    # Either the peer hung up between messages, or we are
                    # shutting down.
                    break

                except SBDPError as e:
                    log.warning('port %d: closing connection from %s: %s', self.port, peer, e)
                    break

                except Exception:
                    log.exception('port %d: handler failed for message from %s', self.port, peer)
                    break

        finally:
            with self.connections_lock:
                self.connections.discard(connection)

            connection.close()
            log.debug('port %d: closed connection from %s', self.port, peer)


    def shutdown(self):
        """ Stop accepting connections, cancel every open connection, and
            wait for the worker threads to finish.
        """

        with self.connections_lock:
            self.stopping = True
            connections = list(self.connections)

        self.listener.shutdown()

        for connection in connections:
            connection.shutdown()

        self.thread.join()
        self.workers.shutdown(wait=True)
        self.listener.close()


# end of class Server


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
