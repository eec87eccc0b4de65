import os
import threading
import time
import unittest

from hamcrest import assert_that, is_, greater_than

from pbus.bridge import build_supervisor
from pbus.config.config import load_config
from pbus.discovery import ModuleDiscovery
from pbus.supervisor import ConnectionState

# a directory holding a pbus.cfg that describes a bridge with modules attached
config_directory = os.environ.get('PBUS_CONFIG_DIR')

scan_time = 10


@unittest.skipUnless(config_directory, "PBUS_CONFIG_DIR not defined")
class BridgeIntegrationTest(unittest.TestCase):

    def setUp(self):
        self.supervisor = build_supervisor(load_config('pbus', config_directory))

    def tearDown(self):
        self.supervisor.dispose()

    def test_goes_online(self):
        assert_that(self.supervisor.start(), is_(True))
        assert_that(self.supervisor.state, is_(ConnectionState.ONLINE))

    def test_scan_finds_modules(self):
        found = threading.Event()
        discovery = ModuleDiscovery(self.supervisor).attach()
        discovery.events += lambda event: found.set()
        self.supervisor.start()
        discovery.scan()
        # 64 requests at 60 ms spacing take about 4 s
        found.wait(scan_time)
        time.sleep(1)
        discovery.detach()
        assert_that(len(discovery.modules), is_(greater_than(0)))
