"""
Builds a supervised bus connection from configuration files.
"""
import logging
import sys
import time

from configobj import Section

from pbus.config.config import load_config
from pbus.config.settings import BridgeConfig, SerialBridgeConfig, NetworkBridgeConfig, ConfigurationError, \
    bridge_config, module_configs
from pbus.conduit.serial_conduit import new_serial, serial_port_info
from pbus.connector.serialconn import SerialConnector
from pbus.connector.socketconn import SocketConnector
from pbus.protocol.commands import command_name
from pbus.protocol.frame import Frame
from pbus.refresh import status_request_job
from pbus.registry import FrameConsumer
from pbus.supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)


def build_connector(settings: BridgeConfig):
    if isinstance(settings, SerialBridgeConfig):
        return SerialConnector(new_serial(settings.port, settings.baudrate))
    if isinstance(settings, NetworkBridgeConfig):
        return SocketConnector(settings.address, settings.port)
    raise ConfigurationError("no connector for %s" % type(settings).__name__)


def build_supervisor(config: Section, **kwargs) -> ConnectionSupervisor:
    """
    Creates the supervisor for the bridge described by the configuration.
    The supervisor is not started.
    """
    settings = bridge_config(config)
    return ConnectionSupervisor(build_connector(settings), settings.reconnection_interval, **kwargs)


def build_refresh_jobs(supervisor, config: Section):
    """ a status request job for each configured module with a refresh interval """
    return [status_request_job(supervisor, module.module_address().address, module.refresh)
            for module in module_configs(config) if module.refresh > 0]


class FrameLogger(FrameConsumer):
    """ logs each frame it receives """

    def __init__(self, log=logger):
        self.logger = log

    def on_frame(self, frame: Frame):
        name = command_name(frame.command) if frame.command is not None else 'empty'
        self.logger.info("%d %s %r" % (frame.address, name, frame))


def log_state_events(event):
    if event.message:
        logger.info("bridge %s (%s)" % (event.state.value, event.message))
    else:
        logger.info("bridge %s" % event.state.value)


def monitor(directory, name='pbus'):
    """ A helper function to log bus traffic for manual testing. """
    logging.getLogger('pbus').setLevel(logging.INFO)
    logging.getLogger('pbus').addHandler(logging.StreamHandler())
    logger.info(serial_port_info())

    config = load_config(name, directory)
    supervisor = build_supervisor(config)
    supervisor.events += log_state_events
    frame_logger = FrameLogger()
    supervisor.set_fallback(frame_logger)
    for module in module_configs(config):
        supervisor.register(module.module_address().address, frame_logger)
    jobs = build_refresh_jobs(supervisor, config)
    supervisor.start()
    for job in jobs:
        job.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        for job in jobs:
            job.stop()
        supervisor.dispose()


if __name__ == '__main__':
    if len(sys.argv) < 2:
        print("usage: python -m pbus.bridge <config-directory> [config-name]")
        sys.exit(2)
    monitor(*sys.argv[1:3])
