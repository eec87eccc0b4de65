import os
import tempfile
import textwrap
import unittest
from unittest.mock import Mock

from configobj import ConfigObjError, ConfigObj
from hamcrest import assert_that, is_, none, calling, raises, equal_to

from pbus.config.config import config_filename, config_flavor, load_config_file_base, load_config, \
    map_os_name, os_name, fetch_conf_path, apply_conf_path, apply_conf, schema_file, default_schema


def write_config(directory, name, text):
    with open(os.path.join(directory, name), 'w') as f:
        f.write(textwrap.dedent(text))


class ConfigTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.directory = self.tmp.name
        self.user_directory = os.path.join(self.directory, 'home')
        os.mkdir(self.user_directory)

    def tearDown(self):
        self.tmp.cleanup()

    def load(self, **kwargs):
        return load_config('pbus', self.directory, user_directory=self.user_directory, **kwargs)

    def test_config_file_not_found(self):
        assert_that(calling(load_config_file_base).with_args('blah'), raises(IOError))

    def test_config_file_invalid_syntax(self):
        write_config(self.directory, 'broken.cfg', "[[[nested]]]\n")
        assert_that(calling(load_config_file_base).with_args(os.path.join(self.directory, 'broken.cfg')),
                    raises(ConfigObjError, "at .*broken.cfg"))

    def test_config_flavor(self):
        assert_that(config_flavor('pbus'), is_('pbus'))
        assert_that(config_flavor('pbus', 'default'), is_('pbus.default'))
        assert_that(config_filename('pbus.default', 'conf'), is_(os.path.join('conf', 'pbus.default.cfg')))

    def test_packaged_schema_exists(self):
        assert_that(os.path.exists(default_schema), is_(True))
        assert_that(schema_file('pbus', self.directory), is_(default_schema))

    def test_defaults_from_schema(self):
        config = self.load()
        assert_that(config['bridge']['type'], is_('serial'))
        assert_that(config['bridge']['reconnection_interval'], is_(15))
        assert_that(config['serial']['baudrate'], is_(9600))
        assert_that(config['serial']['port'], is_(none()))
        assert_that(config['network']['port'], is_(none()))

    def test_later_files_override_earlier(self):
        write_config(self.directory, 'pbus.default.cfg', """
            [serial]
            port = /dev/ttyS0
            baudrate = 19200
            """)
        write_config(self.directory, 'pbus.%s.cfg' % os_name(), """
            [serial]
            port = /dev/ttyUSB0
            """)
        write_config(self.directory, 'pbus.cfg', """
            [bridge]
            reconnection_interval = 0
            """)
        config = self.load()
        assert_that(config['serial']['port'], is_('/dev/ttyUSB0'))
        assert_that(config['serial']['baudrate'], is_(19200))
        assert_that(config['bridge']['reconnection_interval'], is_(0))

    def test_user_file_overrides_defaults(self):
        write_config(self.directory, 'pbus.default.cfg', "[serial]\nbaudrate = 19200\n")
        write_config(self.user_directory, 'pbus.cfg', "[serial]\nbaudrate = 4800\n")
        assert_that(self.load()['serial']['baudrate'], is_(4800))

    def test_modules(self):
        write_config(self.directory, 'pbus.cfg', """
            [modules]
                [[inputs]]
                address = 12
                refresh = 30
                [[relays]]
                address = 13
            """)
        modules = self.load()['modules']
        assert_that(modules['inputs']['address'], is_('12'))
        assert_that(modules['inputs']['refresh'], is_(30))
        assert_that(modules['relays']['refresh'], is_(0))

    def test_invalid_value_fails_validation(self):
        write_config(self.directory, 'pbus.cfg', "[bridge]\nreconnection_interval = -1\n")
        assert_that(calling(self.load), raises(ConfigObjError, "bridge/reconnection_interval"))

    def test_unknown_bridge_type_fails_validation(self):
        write_config(self.directory, 'pbus.cfg', "[bridge]\ntype = usb\n")
        assert_that(calling(self.load), raises(ConfigObjError, "failed validation"))

    def test_missing_module_address_fails_validation(self):
        write_config(self.directory, 'pbus.cfg', "[modules]\n[[inputs]]\nrefresh = 5\n")
        assert_that(calling(self.load), raises(ConfigObjError, "modules/inputs/address: missing"))

    def test_schema_beside_config(self):
        write_config(self.directory, 'pbus.schema.cfg', "[extra]\nvalue = integer(default=3)\n")
        assert_that(schema_file('pbus', self.directory), is_(os.path.join(self.directory, 'pbus.schema.cfg')))
        assert_that(self.load()['extra']['value'], is_(3))

    def test_explicit_configspec(self):
        spec = os.path.join(self.directory, 'other.cfg')
        write_config(self.directory, 'other.cfg', "[extra]\nvalue = string(default='x')\n")
        assert_that(self.load(configspec=spec)['extra']['value'], is_('x'))

    def test_map_os_name(self):
        assert_that(map_os_name('Windows'), is_('windows'))
        assert_that(map_os_name('Darwin'), is_('osx'))
        assert_that(map_os_name('Linux'), is_('linux'))

    def test_non_existent_config_path(self):
        sut = ConfigObj()
        assert_that(fetch_conf_path(sut, ['abcd']), is_(None))

    def test_non_existent_apply_config_path(self):
        target = Mock(spec=[])
        assert_that(apply_conf_path(ConfigObj(), ['abcd'], target), is_(False))

    def test_apply_conf_sets_existing_attributes(self):
        class Target:
            port = None
        target = Target()
        apply_conf(ConfigObj({'port': 'COM3', 'speed': '1'}), target)
        assert_that(target.port, is_(equal_to('COM3')))
        assert_that(hasattr(target, 'speed'), is_(False))

    def test_apply_conf_path_nested(self):
        class Target:
            value = None
        target = Target()
        conf = ConfigObj({'a': {'b': {'value': 'v'}}})
        assert_that(apply_conf_path(conf, ['a', 'b'], target), is_(True))
        assert_that(target.value, is_('v'))


if __name__ == '__main__':  # pragma no cover
    unittest.main()
