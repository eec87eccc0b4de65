"""
Periodic refresh of module state.
"""
import logging

from pbus.protocol.commands import DIGITAL_STATUS_REQUEST
from pbus.support.async_loop import AsyncLoop

logger = logging.getLogger(__name__)


class RefreshJob(AsyncLoop):
    """
    Calls tick on a background thread, then again every interval seconds after the previous tick
    finished. An interval of 0 disables the job and an interval of 1 runs a single tick.
    Exceptions raised by tick are logged and the job continues.
    """

    def __init__(self, tick, interval, name='pbus-refresh', log=logger):
        super().__init__(log=log, name=name)
        self.tick = tick
        self.interval = max(0, interval)
        self.ticks = 0

    @property
    def enabled(self):
        return self.interval > 0

    def start(self):
        if not self.enabled:
            self.logger.debug("refresh disabled (interval = 0) for %s" % self.name)
            return
        super().start()

    def loop(self):
        try:
            self.tick()
        except Exception as e:
            self.logger.warning("exception during refresh for %s: %s" % (self.name, e))
        self.ticks += 1
        if self.interval == 1:
            self.logger.debug("initial refresh sent (interval = 1) for %s" % self.name)
            self.stop_event.set()
        else:
            self.stop_event.wait(self.interval)


def status_request_job(supervisor, address, interval, command=DIGITAL_STATUS_REQUEST):
    """ a refresh job that sends a status request to the module at the given address """
    return RefreshJob(lambda: supervisor.send_command(address, command), interval,
                      name='pbus-refresh-%d' % address)
