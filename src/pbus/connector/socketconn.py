import logging
import socket

from pbus.conduit.base import Conduit
from pbus.conduit.socket_conduit import SocketConduit
from pbus.connector.base import AbstractConnector, ConnectorError

logger = logging.getLogger(__name__)


class SocketConnector(AbstractConnector):
    """
    A connector that communicates data via a TCP socket
    """
    def __init__(self, host, port, sock_args=(socket.AF_INET, socket.SOCK_STREAM), connect_timeout=10):
        """
        Creates a new socket connector.
        :param host: the host name or ip address of the bus interface
        :param port: the TCP port
        :param sock_args: arguments used to construct the socket
        :param connect_timeout: seconds to wait for the connection. Reads block without timeout once connected.
        """
        super().__init__()
        self._sock_args = sock_args
        self._address = (host, port)
        self._connect_timeout = connect_timeout

    @property
    def endpoint(self):
        return self._address

    def _connect(self) -> Conduit:
        sock = socket.socket(*self._sock_args)
        try:
            sock.settimeout(self._connect_timeout)
            sock.connect(self._address)
            sock.settimeout(None)
            logger.info("opened socket to %s:%s" % self._address)
            return SocketConduit(sock)
        except OSError as e:
            sock.close()
            logger.warning("error opening socket to %s:%s: %s" % (self._address + (e,)))
            raise ConnectorError("unable to connect to %s:%s" % self._address) from e

    def _disconnect(self):
        pass

    def _try_available(self):
        # could try pinging the host?
        return True
