import unittest

from configobj import ConfigObj
from hamcrest import assert_that, is_, instance_of, calling, raises, contains_exactly, empty

from pbus.config.settings import ModuleConfig, ConfigurationError, bridge_config, module_configs, \
    SerialBridgeConfig, NetworkBridgeConfig
from pbus.module_address import ModuleAddress


def config(bridge_type='serial', **sections):
    conf = ConfigObj({'bridge': {'type': bridge_type, 'reconnection_interval': 15}})
    for name, values in sections.items():
        conf[name] = values
    return conf


class ModuleConfigTest(unittest.TestCase):

    def module(self, address):
        sut = ModuleConfig('inputs')
        sut.address = address
        return sut

    def test_module_address(self):
        assert_that(self.module('12').module_address(), is_(ModuleAddress(12)))
        assert_that(self.module(' 64 ').module_address(), is_(ModuleAddress(64)))
        assert_that(self.module(1).module_address(), is_(ModuleAddress(1)))

    def test_malformed_address(self):
        for address in ('', 'x1', '0x10', '-3', '1.5', None):
            assert_that(calling(self.module(address).module_address), raises(ConfigurationError, 'invalid address'))

    def test_address_out_of_range(self):
        for address in ('0', '65', '255'):
            assert_that(calling(self.module(address).module_address), raises(ConfigurationError, 'outside 1-64'))

    def test_configuration_error_is_value_error(self):
        assert_that(calling(self.module('0').module_address), raises(ValueError))


class BridgeConfigTest(unittest.TestCase):

    def test_serial(self):
        sut = bridge_config(config(serial={'port': '/dev/ttyUSB0', 'baudrate': 19200}))
        assert_that(sut, is_(instance_of(SerialBridgeConfig)))
        assert_that(sut.port, is_('/dev/ttyUSB0'))
        assert_that(sut.baudrate, is_(19200))
        assert_that(sut.reconnection_interval, is_(15))

    def test_serial_requires_port(self):
        assert_that(calling(bridge_config).with_args(config(serial={'port': None})),
                    raises(ConfigurationError, 'serial port'))

    def test_network(self):
        conf = config('network', network={'address': '192.168.1.20', 'port': 8899})
        conf['bridge']['reconnection_interval'] = 0
        sut = bridge_config(conf)
        assert_that(sut, is_(instance_of(NetworkBridgeConfig)))
        assert_that((sut.address, sut.port), is_(('192.168.1.20', 8899)))
        assert_that(sut.reconnection_interval, is_(0))

    def test_network_requires_address_and_port(self):
        assert_that(calling(bridge_config).with_args(config('network', network={'port': 8899})),
                    raises(ConfigurationError, 'network address'))
        assert_that(calling(bridge_config).with_args(config('network', network={'address': 'bridge'})),
                    raises(ConfigurationError, 'network port'))

    def test_unknown_type(self):
        assert_that(calling(bridge_config).with_args(config('usb')), raises(ConfigurationError, 'usb'))


class ModuleConfigsTest(unittest.TestCase):

    def test_modules_in_order(self):
        conf = config(modules={'relays': {'address': '13', 'refresh': 0},
                               'inputs': {'address': '12', 'refresh': 30}})
        modules = module_configs(conf)
        assert_that([m.name for m in modules], contains_exactly('relays', 'inputs'))
        assert_that(modules[1].refresh, is_(30))
        assert_that(modules[1].module_address(), is_(ModuleAddress(12)))

    def test_no_modules(self):
        assert_that(module_configs(config()), is_(empty()))
