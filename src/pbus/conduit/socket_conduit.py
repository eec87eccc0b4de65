import select
import socket

from pbus.conduit import base


class SocketConduit(base.Conduit):
    """
    A conduit that provides communication via a socket.
    :param sock The open, connected socket
    """
    def __init__(self, sock: socket.socket):
        """
        :param sock: the client socket that represents the connection
        :type sock: socket
        """
        self.sock = sock
        # unbuffered: unread bytes stay in the socket, where available() sees them
        self.read = sock.makefile('rb', buffering=0)
        self.write = sock.makefile('wb')

    @property
    def open(self) -> bool:
        return self.sock.fileno() >= 0

    @property
    def target(self):
        return self.sock

    @property
    def output(self):
        return self.write

    @property
    def input(self):
        return self.read

    def available(self):
        """ 1 when the socket has data waiting or has reached end of stream, 0 otherwise. """
        if not self.open:
            return 0
        readable, _, _ = select.select([self.sock], [], [], 0)
        return 1 if readable else 0

    def close(self):
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # the peer may have closed the socket
            pass
        finally:
            self.read.close()
            self.write.close()
            self.sock.close()
