"""
The connector interfaces with an endpoint that carries the bus over a conduit.
It owns the connect/disconnect cycle and the conduit while connected.
"""
import logging
from abc import abstractmethod

from pbus.conduit.base import Conduit

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    """ Indicates an error condition with a connection. """


class ConnectionNotConnectedError(ConnectorError):
    """ Indicates a connection is in the disconnected state when a connection is required. """


class ConnectorConfigurationError(ConnectorError):
    """ The endpoint is misconfigured. Retrying will not help until the configuration is changed. """


class ConnectionNotAvailableError(ConnectorConfigurationError):
    """ Indicates the connection is not available. """


class Connector:
    """ A connector describes an endpoint to which a conduit can be established. """

    @property
    @abstractmethod
    def endpoint(self):
        """ the endpoint that this connector reaches out to """
        raise NotImplementedError

    @property
    @abstractmethod
    def connected(self) -> bool:
        """
        Determines if this connector is connected to its underlying resource.
        :return: True if this connector is connected to it's underlying resource. False otherwise.
        :rtype: bool
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def conduit(self) -> Conduit:
        """
        Retrieves the conduit for this connection.
        If the connection is not connected, raises NotConnectedError
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def available(self) -> bool:
        """ Determines if the underlying resource for this connector is available.
        :return: True if the resource is available and can be connected to.
        :rtype: bool
        """
        raise NotImplementedError

    @abstractmethod
    def connect(self):
        """
        Connects this connector to the underlying resource.
        If the connection is already connected, this method returns silently.
        Raises ConnectorError if the connection cannot be established.
        """
        raise NotImplementedError

    @abstractmethod
    def disconnect(self):
        raise NotImplementedError


class AbstractConnector(Connector):
    """ Manages the connection cycle to an endpoint."""

    def __init__(self):
        super().__init__()
        self._conduit = None

    @property
    def available(self):
        return False if self.connected else self._try_available()

    @property
    def connected(self):
        return self._conduit is not None and self._connected()

    def connect(self):
        if self.connected:
            return

        if not self.available:
            raise ConnectionNotAvailableError("%s is not available" % (self.endpoint,))

        try:
            self._conduit = self._connect()
        finally:
            if not self._conduit:
                self.disconnect()

    def disconnect(self):
        """ Closes the conduit. Calling this when already disconnected has no effect. """
        conduit = self._conduit
        if conduit is None:
            return
        self._conduit = None
        self._disconnect()
        try:
            conduit.close()
        except (IOError, ValueError) as e:
            logger.debug("error while closing %s: %s" % (self.endpoint, e))

    @abstractmethod
    def _connect(self) -> Conduit:
        """ Template method for subclasses to perform the connection.
            If connection is not possible, an exception should be thrown
        """
        raise NotImplementedError

    @abstractmethod
    def _try_available(self):
        """ Determine if this connection is available. This method is only called when
            the connection is disconnected.
        :return: True if the connection is available or False otherwise.
        :rtype: bool
        """
        raise NotImplementedError

    @abstractmethod
    def _disconnect(self):
        """ perform any actions needed on disconnection.
        The base class takes care of closing the conduit, which happens
        after this method has been called.
        """
        raise NotImplementedError

    def _connected(self):
        return self._conduit is not None and self._conduit.open

    @property
    def conduit(self) -> Conduit:
        """
        Retrieves the conduit for this connection.
        raises ConnectionNotConnectedError if not connected
        """
        self.check_connected()
        return self._conduit

    def check_connected(self):
        if not self.connected:
            raise ConnectionNotConnectedError
