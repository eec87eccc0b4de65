"""
Routes received frames to the consumer registered for the frame's address.
"""
import logging
import threading
from abc import abstractmethod

from pbus.protocol.frame import Frame

logger = logging.getLogger(__name__)


class FrameConsumer:
    """ Receives the frames addressed to a module. """

    @abstractmethod
    def on_frame(self, frame: Frame):
        """
        Called on the read thread for each frame received for the consumer's address.
        :param frame: The complete frame, including STX, length, checksum and ETX.
        """
        raise NotImplementedError


class ListenerRegistry:
    """
    Maps module addresses to frame consumers. One consumer is registered per address.
    A single fallback consumer receives frames for addresses that no consumer has claimed,
    such as modules that have not been discovered yet.

    Registration may happen on any thread while frames are dispatched from the read thread.
    """

    def __init__(self, log=logger):
        self._consumers = {}
        self._fallback = None
        self._lock = threading.RLock()
        self.logger = log

    def register(self, address, consumer: FrameConsumer):
        """ registers the consumer for the given address, replacing any previous consumer. """
        with self._lock:
            previous = self._consumers.get(address)
            self._consumers[address] = consumer
        if previous is not None and previous is not consumer:
            self.logger.debug("consumer for address %d replaced" % address)

    def unregister(self, address):
        """ removes the consumer for the address. Has no effect when none is registered. """
        with self._lock:
            return self._consumers.pop(address, None)

    def set_fallback(self, consumer: FrameConsumer):
        with self._lock:
            self._fallback = consumer

    def clear_fallback(self):
        with self._lock:
            self._fallback = None

    @property
    def fallback(self):
        return self._fallback

    def consumer_for(self, address):
        """ the consumer registered for the address, or None """
        with self._lock:
            return self._consumers.get(address)

    def addresses(self):
        with self._lock:
            return tuple(sorted(self._consumers))

    def dispatch(self, frame: Frame):
        """
        Delivers the frame to the consumer registered for its address, or to the fallback consumer.
        Frames with no consumer are dropped.
        Exceptions raised by the consumer are logged and not propagated.
        :return: the consumer that received the frame, or None if it was dropped.
        """
        address = frame.address
        with self._lock:
            consumer = self._consumers.get(address)
            fallback = self._fallback
        if consumer is not None:
            self.logger.debug("Packet with existing address '%d' handled by %s" % (address, consumer))
        elif fallback is not None:
            self.logger.debug("Packet with unregistered address '%d' passed to fallback" % address)
            consumer = fallback
        else:
            self.logger.debug("Packet with unregistered address '%d' dropped" % address)
            return None
        try:
            consumer.on_frame(frame)
        except Exception as e:
            self.logger.exception("consumer %s failed handling %r: %s" % (consumer, frame, e))
        return consumer
