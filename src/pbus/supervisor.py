"""
Keeps a bus connection alive.

The supervisor opens the connector, runs a read loop that dispatches received frames to the
listener registry, and owns the sender that writes outgoing frames. When reading or writing
fails, the connection is closed and reconnection is attempted every reconnection_interval
seconds until it succeeds. An interval of 0 disables reconnection.

State changes are published as ConnectionStateEvent on `events`.
"""
import logging
import threading
import time
from enum import Enum

from pbus.connector.base import ConnectorError, ConnectorConfigurationError
from pbus.protocol.frame import build_frame
from pbus.protocol.reader import FrameReader
from pbus.registry import ListenerRegistry
from pbus.sender import FrameSender, MIN_FRAME_SPACING
from pbus.support.async_loop import AsyncLoop
from pbus.support.events import EventSource
from pbus.support.mixins import CommonEqualityMixin
from pbus.support.retry_strategy import PeriodRetryStrategy

logger = logging.getLogger(__name__)

DEFAULT_RECONNECTION_INTERVAL = 15

COMMUNICATION_ERROR_MESSAGE = "A network communication error occurred."


class ConnectionState(Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    ONLINE = 'online'
    RECONNECTING = 'reconnecting'


class StatusDetail(Enum):
    NONE = 'none'
    COMMUNICATION_ERROR = 'communication-error'
    CONFIGURATION_ERROR = 'configuration-error'


class ConnectionStateEvent(CommonEqualityMixin):
    """ The connection state of a supervisor changed. """

    def __init__(self, supervisor, state, detail=StatusDetail.NONE, message=None):
        self.supervisor = supervisor
        self.state = state
        self.detail = detail
        self.message = message

    def __repr__(self):
        return 'ConnectionStateEvent(%s, %s, %r)' % (self.state.value, self.detail.value, self.message)


class ReadLoop(AsyncLoop):
    """
    Reads frames from one connection and dispatches them to the registry.
    Once stopped, frames still being read are discarded.
    :param on_closed: called with (loop, exception) when the stream fails or ends while running.
    """

    def __init__(self, reader: FrameReader, registry: ListenerRegistry, on_closed, log=logger):
        super().__init__(log=log, name='pbus-reader')
        self.reader = reader
        self.registry = registry
        self.on_closed = on_closed

    def loop(self):
        try:
            frame = self.reader.read_frame()
        except (IOError, ValueError) as e:
            if self.running():
                self.stop_event.set()
                self.on_closed(self, e)
            return
        if self.running():
            self.registry.dispatch(frame)


class ReconnectionLoop(AsyncLoop):
    """
    Calls connect with the loop every interval seconds, starting one interval from now, until it
    returns True or the loop is stopped.
    """

    def __init__(self, connect, interval, clock=time.monotonic, log=logger):
        super().__init__(log=log, name='pbus-reconnect')
        self.connect = connect
        self.retry_strategy = PeriodRetryStrategy(interval, last_tried=clock(), clock=clock)
        self.attempts = 0

    def loop(self):
        delay = self.retry_strategy()
        if delay > 0:
            self.stop_event.wait(delay)
            return
        self.attempts += 1
        self.logger.debug("reconnection attempt %d" % self.attempts)
        if self.connect(self):
            self.stop_event.set()


class ConnectionSupervisor:
    """
    Owns the connection to the bus through a connector.

    :param connector: the connector to the serial port or network interface
    :param reconnection_interval: seconds between reconnection attempts, 0 to disable
    :param registry: the registry frames are dispatched to
    :param spacing: the minimum time between the start of two frame writes
    """

    def __init__(self, connector, reconnection_interval=DEFAULT_RECONNECTION_INTERVAL, registry=None,
                 spacing=MIN_FRAME_SPACING, log=logger):
        self.connector = connector
        self.reconnection_interval = reconnection_interval
        self.registry = registry if registry is not None else ListenerRegistry()
        self.events = EventSource()
        self.logger = log
        self.sender = FrameSender(self._current_conduit, self._on_write_failure, spacing)
        self.state = ConnectionState.DISCONNECTED
        self.detail = StatusDetail.NONE
        self.message = None
        self._lock = threading.RLock()
        self._conduit = None
        self._read_loop = None
        self._reconnection = None
        self._disposed = False

    @property
    def online(self):
        return self.state is ConnectionState.ONLINE

    @property
    def reconnecting(self):
        reconnection = self._reconnection
        return reconnection is not None and reconnection.running()

    def start(self):
        """
        Starts the sender and makes the first connection attempt.
        :return: True if the connection was established.
        """
        self.sender.start()
        return self.connect()

    def connect(self):
        """
        Connects to the bus and starts reading frames.
        On failure the state becomes DISCONNECTED and reconnection starts, unless the failure
        is a configuration error.
        :return: True if the supervisor is online.
        """
        with self._lock:
            if self._disposed:
                return False
            if self._read_loop is not None:
                return True
            self._set_state(ConnectionState.CONNECTING)
            try:
                self.connector.connect()
                conduit = self.connector.conduit
            except ConnectorConfigurationError as e:
                self.logger.warning("cannot connect to %s: %s" % (self.connector.endpoint, e))
                self._set_state(ConnectionState.DISCONNECTED, StatusDetail.CONFIGURATION_ERROR,
                                str(e) or "Port is not known!")
                if self.reconnecting:
                    self._set_state(ConnectionState.RECONNECTING, self.detail, self.message)
                return False
            except (ConnectorError, IOError) as e:
                self.logger.warning("failed to connect to %s: %s" % (self.connector.endpoint, e))
                self._connection_failed(str(e) or COMMUNICATION_ERROR_MESSAGE)
                return False

            reader = FrameReader(conduit.input, conduit.available, log=self.logger)
            loop = ReadLoop(reader, self.registry, self._on_read_failure, log=self.logger)
            self._conduit = conduit
            self._read_loop = loop
            loop.start()
            self.logger.info("Bridge online on %s" % (self.connector.endpoint,))
            self._set_state(ConnectionState.ONLINE)
            reconnection = self._reconnection
            self._reconnection = None
        if reconnection is not None:
            reconnection.stop()
        return True

    def disconnect(self):
        """ Closes the connection and stops any reconnection. The supervisor stays disconnected until connect(). """
        with self._lock:
            reconnection = self._reconnection
            self._reconnection = None
            loop = self._detach()
            self._set_state(ConnectionState.DISCONNECTED)
        if reconnection is not None:
            reconnection.stop()
        if loop is not None:
            loop.join(5)

    def dispose(self):
        """ Stops reconnection, closes the connection and stops the sender. """
        with self._lock:
            self._disposed = True
        self.disconnect()
        self.sender.stop()

    def send(self, frame):
        """ Queues a frame for sending. Frames sent while disconnected are dropped. """
        self.sender.send(frame)

    def send_command(self, address, command, *data):
        """ Builds and queues a frame with the command byte followed by the data bytes. """
        frame = build_frame(address, (command,) + data)
        self.send(frame)
        return frame

    def register(self, address, consumer):
        self.registry.register(address, consumer)

    def unregister(self, address):
        return self.registry.unregister(address)

    def set_fallback(self, consumer):
        self.registry.set_fallback(consumer)

    def clear_fallback(self):
        self.registry.clear_fallback()

    def _reconnect(self, reconnection):
        """ a reconnection attempt. A loop that is no longer current is ended without connecting. """
        with self._lock:
            if reconnection is not self._reconnection:
                return True
            return self.connect()

    def _current_conduit(self):
        return self._conduit

    def _detach(self):
        """ stops reading and closes the connector. Called with the lock held. """
        loop = self._read_loop
        self._read_loop = None
        self._conduit = None
        if loop is not None:
            loop.stop_event.set()
        self.connector.disconnect()
        return loop

    def _on_read_failure(self, loop, error):
        with self._lock:
            if loop is not self._read_loop:
                return
            self.logger.warning("connection to %s lost: %s" % (self.connector.endpoint, error or 'end of stream'))
            self._detach()
            self._connection_failed(COMMUNICATION_ERROR_MESSAGE)

    def _on_write_failure(self, conduit, error):
        with self._lock:
            if self._disposed:
                return
            if conduit is None:
                self.logger.debug("frame dropped while %s" % self.state.value)
                return
            if conduit is not self._conduit:
                return
            self.logger.warning("write to %s failed: %s" % (self.connector.endpoint, error))
            self._detach()
            self._connection_failed(COMMUNICATION_ERROR_MESSAGE)

    def _connection_failed(self, message):
        """ reports the communication error and starts reconnection. Called with the lock held. """
        self._set_state(ConnectionState.DISCONNECTED, StatusDetail.COMMUNICATION_ERROR, message)
        self._start_reconnection()

    def _start_reconnection(self):
        if self._disposed or self.reconnection_interval <= 0:
            return
        if not self.reconnecting:
            self.logger.info("reconnecting to %s every %ss" % (self.connector.endpoint, self.reconnection_interval))
            self._reconnection = ReconnectionLoop(self._reconnect, self.reconnection_interval, log=self.logger)
            self._reconnection.start()
        self._set_state(ConnectionState.RECONNECTING, self.detail, self.message)

    def _set_state(self, state, detail=StatusDetail.NONE, message=None):
        if (state, detail, message) == (self.state, self.detail, self.message):
            return
        self.state = state
        self.detail = detail
        self.message = message
        self.events.fire(ConnectionStateEvent(self, state, detail, message))
