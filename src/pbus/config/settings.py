"""
Typed views of a loaded configuration.
"""
from configobj import Section

from pbus.config.config import apply_conf, apply_conf_path
from pbus.module_address import MIN_ADDRESS, MAX_ADDRESS, ModuleAddress

SERIAL = 'serial'
NETWORK = 'network'


class ConfigurationError(ValueError):
    """ A configured value cannot be used. """


class BridgeConfig:
    reconnection_interval = 15

    def __init__(self):
        self.reconnection_interval = BridgeConfig.reconnection_interval

    def check(self):
        """ :raises ConfigurationError: when a required value is missing """
        raise NotImplementedError


class SerialBridgeConfig(BridgeConfig):
    def __init__(self):
        super().__init__()
        self.port = None
        self.baudrate = 9600

    def check(self):
        if not self.port:
            raise ConfigurationError("the serial port is not configured")
        return self


class NetworkBridgeConfig(BridgeConfig):
    def __init__(self):
        super().__init__()
        self.address = None
        self.port = None

    def check(self):
        if not self.address:
            raise ConfigurationError("the network address is not configured")
        if self.port is None:
            raise ConfigurationError("the network port is not configured")
        return self


bridge_types = {
    SERIAL: SerialBridgeConfig,
    NETWORK: NetworkBridgeConfig,
}


class ModuleConfig:
    """ the configuration of one module on the bus """

    def __init__(self, name=None):
        self.name = name
        self.address = None
        self.refresh = 0

    def module_address(self) -> ModuleAddress:
        """
        Parses the configured address.
        :raises ConfigurationError: when the address is not a decimal number from 1 to 64.

        >>> config = ModuleConfig('inputs')
        >>> config.address = '12'
        >>> config.module_address()
        ModuleAddress(12)
        """
        address = str(self.address).strip() if self.address is not None else ''
        if not address.isdecimal():
            raise ConfigurationError("module %s has an invalid address '%s'" % (self.name, self.address))
        value = int(address)
        if not MIN_ADDRESS <= value <= MAX_ADDRESS:
            raise ConfigurationError("module %s address %d is outside %d-%d"
                                     % (self.name, value, MIN_ADDRESS, MAX_ADDRESS))
        return ModuleAddress(value)

    def __repr__(self):
        return 'ModuleConfig(%s, address=%s, refresh=%s)' % (self.name, self.address, self.refresh)


def bridge_config(config: Section) -> BridgeConfig:
    """
    Builds the settings for the configured bridge type from the [bridge] section and the section
    named after the type.
    """
    kind = config['bridge']['type']
    settings = bridge_types.get(kind)
    if settings is None:
        raise ConfigurationError("unknown bridge type '%s'" % kind)
    target = settings()
    apply_conf(config['bridge'], target)
    apply_conf_path(config, [kind], target)
    return target.check()


def module_configs(config: Section):
    """ the module settings in the order they are configured """
    result = []
    modules = config.get('modules')
    if modules is None:
        return result
    for name in modules.sections:
        target = ModuleConfig(name)
        apply_conf(modules[name], target)
        result.append(target)
    return result
