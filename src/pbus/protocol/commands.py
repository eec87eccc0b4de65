"""
Command bytes (the first data byte of a frame) and module type codes used on the bus.
The protocol layer treats these as opaque; they are collected here for the consumers
that interpret frames and for diagnostics.
"""

MODULE_TYPE_REQUEST = 0x11
MODULE_TYPE_ANSWER = 0x21
MODULE_REMOVED = 0x31

DIGITAL_STATUS_REQUEST = 0x12
DIGITAL_STATUS_ANSWER = 0x22

ANALOG_STATUS_REQUEST = 0x13
ANALOG_STATUS_ANSWER = 0x23

FEEDBACK_REQUEST = 0x14
FEEDBACK_ANSWER = 0x24

SWITCH_RELAY = 0x41

SET_VALUE = 0x42

commands = {
    MODULE_TYPE_REQUEST: 'module-type-request',
    MODULE_TYPE_ANSWER: 'module-type-answer',
    MODULE_REMOVED: 'module-removed',
    DIGITAL_STATUS_REQUEST: 'digital-status-request',
    DIGITAL_STATUS_ANSWER: 'digital-status-answer',
    ANALOG_STATUS_REQUEST: 'analog-status-request',
    ANALOG_STATUS_ANSWER: 'analog-status-answer',
    FEEDBACK_REQUEST: 'feedback-request',
    FEEDBACK_ANSWER: 'feedback-answer',
    SWITCH_RELAY: 'switch-relay',
    SET_VALUE: 'set-value',
}

# module type byte (data byte 2 of a module type answer) to the module type name
module_types = {
    0x00: '2c',
    0x01: '2d20',
    0x02: '2r1k',
    0x03: '2y10',
    0x06: '2u10',
    0x07: '2y10m',
    0x0A: '2p100',
    0x0B: '2y420',
    0x0E: '2i25',
    0x11: '4d20',
    0x16: '2p1k',
    0x1A: '2i420',
    0x1D: '2q250',
    0x20: '2q250m',
    0x21: '2d42',
    0x28: '3qm3',
    0x31: '2d250',
}


def command_name(code):
    """
    >>> command_name(0x22)
    'digital-status-answer'
    >>> command_name(0x99)
    'unknown-0x99'
    """
    return commands.get(code, 'unknown-0x%02X' % code)


def module_type_name(code):
    """
    :return: the module type name for the given type code, or None if the code is not known.
    >>> module_type_name(0x11)
    '4d20'
    >>> module_type_name(0x05) is None
    True
    """
    return module_types.get(code)
