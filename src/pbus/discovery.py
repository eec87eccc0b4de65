"""
Finds the modules on the bus.

A scan sends a module type request to every address. Modules answer with their type, and
since no consumer is registered for an unknown module, the answers arrive at the fallback
consumer, which is where discovery listens.
"""
import logging
import threading

from pbus.module_address import MIN_ADDRESS, MAX_ADDRESS, ModuleAddress
from pbus.protocol.commands import MODULE_TYPE_ANSWER, MODULE_TYPE_REQUEST, module_type_name
from pbus.protocol.frame import Frame
from pbus.registry import FrameConsumer
from pbus.support.events import EventSource
from pbus.support.mixins import CommonEqualityMixin

logger = logging.getLogger(__name__)

MODULE_TYPE_ANSWER_LENGTH = 7


class DiscoveredModule(CommonEqualityMixin):
    def __init__(self, address, module_type, type_name):
        self.address = address
        self.module_type = module_type
        self.type_name = type_name

    def module_address(self):
        return ModuleAddress(self.address)

    def __repr__(self):
        return 'DiscoveredModule(%d, 0x%02X, %s)' % (self.address, self.module_type, self.type_name)


class ModuleDiscoveredEvent(CommonEqualityMixin):
    def __init__(self, discovery, module: DiscoveredModule):
        self.discovery = discovery
        self.module = module


class ModuleDiscovery(FrameConsumer):
    """
    Collects the modules that answer a scan.
    :param supervisor: the connection supervisor used to send requests and receive answers
    """

    def __init__(self, supervisor, log=logger):
        self.supervisor = supervisor
        self.events = EventSource()
        self.logger = log
        self._modules = {}
        self._lock = threading.Lock()

    def attach(self):
        """ Receives frames from addresses with no registered consumer. """
        self.supervisor.set_fallback(self)
        return self

    def detach(self):
        self.supervisor.clear_fallback()

    def scan(self):
        """ Requests the module type from every address. """
        for address in range(MIN_ADDRESS, MAX_ADDRESS + 1):
            self.supervisor.send_command(address, MODULE_TYPE_REQUEST)

    @property
    def modules(self):
        """ the discovered modules by address """
        with self._lock:
            return dict(self._modules)

    def on_frame(self, frame: Frame):
        if len(frame) != MODULE_TYPE_ANSWER_LENGTH:
            self.logger.debug("ignoring %r, not a module type answer" % frame)
            return
        if frame.command != MODULE_TYPE_ANSWER:
            self.logger.error("Packet has wrong command '%02X' instead of %02X" % (frame.command, MODULE_TYPE_ANSWER))
            return
        module_type = frame.data[1]
        type_name = module_type_name(module_type)
        if type_name is None:
            self.logger.error("Packet has wrong module type '%02X'" % module_type)
            return
        module = DiscoveredModule(frame.address, module_type, type_name)
        with self._lock:
            self._modules[module.address] = module
        self.logger.info("discovered %s module at address %d" % (type_name, module.address))
        self.events.fire(ModuleDiscoveredEvent(self, module))
