"""
Implements a conduit over a serial port.
"""

import logging

import serial
from serial.tools import list_ports

from pbus.conduit.base import Conduit

logger = logging.getLogger(__name__)


class SerialConduit(Conduit):
    """
    A conduit that provides comms via a serial port.
    """

    def __init__(self, ser: serial.Serial):
        self.ser = ser
        # patch flushing since this causes a lockup if the serial is disconnected during
        # the flush.
        ser.flush = self._no_flush

    def _no_flush(self, *args, **kwargs):
        pass

    @property
    def target(self):
        return self.ser

    @property
    def input(self):
        return self.ser

    @property
    def output(self):
        return self.ser

    @property
    def open(self) -> bool:
        return self.ser.is_open

    def available(self):
        return self.ser.in_waiting

    def close(self):
        # unblock a pending read before the port goes away
        if hasattr(self.ser, 'cancel_read'):
            self.ser.cancel_read()
        self.ser.close()


def serial_ports():
    """
    Returns a generator for all available serial port device names.
    """
    for port in serial_port_info():
        yield port[0]


def serial_port_info():
    """
    :return: a tuple of serial port info tuples,
    :rtype:
    """
    return tuple(list_ports.comports())


def new_serial(port, baudrate):
    """
    Creates a closed serial instance for the bus: 8 data bits, 1 stop bit, no parity, and reads
    that block until at least one byte is received.
    """
    ser = serial.Serial()
    ser.port = port
    ser.baudrate = baudrate
    ser.bytesize = serial.EIGHTBITS
    ser.stopbits = serial.STOPBITS_ONE
    ser.parity = serial.PARITY_NONE
    ser.timeout = None
    return ser
