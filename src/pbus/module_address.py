"""
Mapping between a module's linear channel numbers and the (address, bit mask) pairs used on the wire.

Each address carries 8 channels, one per bit. A module with more than 8 channels occupies several
addresses; channel numbers continue across them in the order the addresses are listed.
"""
import math

MIN_ADDRESS = 1
MAX_ADDRESS = 64

CHANNELS_PER_ADDRESS = 8


class UnknownAddressError(ValueError):
    """ The address is not one of the module's active addresses. """


class ChannelIdentifier:
    """
    Identifies one channel: the module address and a mask with exactly one bit set.
    """

    def __init__(self, address, mask):
        if mask <= 0 or mask > 0x80 or mask & (mask - 1):
            raise ValueError("channel mask %s must have exactly one bit set" % mask)
        self.address = address
        self.mask = mask

    @property
    def bit_number(self):
        """ the position of the set bit, 0-7 """
        return int(math.log2(self.mask))

    def channel_number_from_bit_number(self):
        """ the channel number within the address, 1-8 """
        return self.bit_number + 1

    def __eq__(self, other):
        return isinstance(other, ChannelIdentifier) and (self.address, self.mask) == (other.address, other.mask)

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash((self.address, self.mask))

    def __repr__(self):
        return 'ChannelIdentifier(%d, 0x%02X)' % (self.address, self.mask)


def channel_index_to_identifier(address, channel_index) -> ChannelIdentifier:
    """
    >>> channel_index_to_identifier(5, 3)
    ChannelIdentifier(5, 0x08)
    >>> channel_index_to_identifier(5, 9)
    ChannelIdentifier(5, 0x02)
    """
    return ChannelIdentifier(address, 1 << (channel_index % CHANNELS_PER_ADDRESS))


def identifier_to_channel_number(identifier: ChannelIdentifier, active_addresses):
    """
    Computes the 1-based channel number of the identifier within a module.
    :param active_addresses: the module's addresses, in channel order
    :raises UnknownAddressError: if the identifier's address is not an active address.

    >>> identifier_to_channel_number(ChannelIdentifier(7, 0x01), [6, 7])
    9
    """
    for position, address in enumerate(active_addresses):
        if address == identifier.address:
            return position * CHANNELS_PER_ADDRESS + identifier.channel_number_from_bit_number()
    raise UnknownAddressError("The mask '%d' does not represent a valid channel on the address '%d'."
                              % (identifier.mask, identifier.address))


def validate_address(address):
    if not MIN_ADDRESS <= address <= MAX_ADDRESS:
        raise ValueError("module address %s is outside %d-%d" % (address, MIN_ADDRESS, MAX_ADDRESS))
    return address


class ModuleAddress:
    """
    The address, or addresses, occupied by one module.
    :param address: the primary address
    :param sub_addresses: further addresses when the module has more than 8 channels
    """

    def __init__(self, address, *sub_addresses):
        self.address = validate_address(address)
        self.sub_addresses = tuple(validate_address(a) for a in sub_addresses)

    @property
    def active_addresses(self):
        return (self.address,) + self.sub_addresses

    @property
    def channel_count(self):
        return CHANNELS_PER_ADDRESS * len(self.active_addresses)

    def channel_identifier(self, channel_index) -> ChannelIdentifier:
        """ the identifier for a 0-based channel index """
        if not 0 <= channel_index < self.channel_count:
            raise IndexError("channel index %d is outside 0-%d" % (channel_index, self.channel_count - 1))
        address = self.active_addresses[channel_index // CHANNELS_PER_ADDRESS]
        return channel_index_to_identifier(address, channel_index)

    def channel_number(self, identifier: ChannelIdentifier):
        """ the 1-based channel number """
        return identifier_to_channel_number(identifier, self.active_addresses)

    def channel_index(self, identifier: ChannelIdentifier):
        return self.channel_number(identifier) - 1

    def channel_id(self, identifier: ChannelIdentifier):
        """ the channel name used by consumers, e.g. 'port3' """
        return 'port%d' % self.channel_number(identifier)

    def __eq__(self, other):
        return isinstance(other, ModuleAddress) and self.active_addresses == other.active_addresses

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(self.active_addresses)

    def __repr__(self):
        return 'ModuleAddress(%s)' % ', '.join(str(a) for a in self.active_addresses)
