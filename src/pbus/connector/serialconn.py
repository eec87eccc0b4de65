import logging

from serial import Serial, SerialException

from pbus.conduit.base import Conduit
from pbus.conduit.serial_conduit import SerialConduit, serial_ports
from pbus.connector.base import ConnectorError, AbstractConnector

logger = logging.getLogger(__name__)


class SerialConnector(AbstractConnector):
    """
    Implements a connector that communicates data via a Serial link.
    """
    def __init__(self, serial: Serial):
        """
        Creates a new serial connector.
        :param serial - the serial object defining the serial port to connect to.
                The serial instance should not be open.
        """
        super().__init__()
        self._serial = serial
        if serial.is_open:
            raise ValueError("serial object should be initially closed")

    @property
    def endpoint(self):
        return self._serial.port

    def _connected(self):
        return self._serial.is_open

    def _try_open(self):
        s = self._serial
        if not s.is_open:
            try:
                s.open()
                logger.info("opened serial port %s" % s.port)
            except SerialException as e:
                logger.warning("error opening serial port %s: %s" % (s.port, e))
                raise ConnectorError("unable to open %s" % s.port) from e

    def _connect(self) -> Conduit:
        self._try_open()
        conduit = SerialConduit(self._serial)
        return conduit

    def _disconnect(self):
        """ No special actions needed """

    def _try_available(self):
        try:
            return self._serial.port in serial_ports()
        except SerialException:
            return False
