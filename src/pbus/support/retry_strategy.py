import time

from pbus.support.mixins import CommonEqualityMixin


class RetryStrategy:
    def __call__(self, current_time=None, dry_run=False):
        return 0


class PeriodRetryStrategy(RetryStrategy, CommonEqualityMixin):

    def __init__(self, retry_period, last_tried=None, clock=time.monotonic):
        """
        :param retry_period: The retry period in seconds.
        :param last_tried: The time of the last attempt. When None, the first call allows an immediate try.
        :param clock: the time source used when no current time is given.
        """
        self.last_tried = last_tried         # the time last tried
        self.retry_period = retry_period
        self.clock = clock

    def __call__(self, current_time=None, dry_run=False):
        """return the length of time until an operation should be retried
            :param dry_run: when True, the last tried time is not updated
        """
        if current_time is None:
            current_time = self.clock()
        result = self._time_to_retry(current_time)
        if not dry_run and result <= 0:
            self.last_tried = current_time
        return result

    def _time_to_retry(self, current_time):
        """
        Determines how long until the next try
        :param current_time: The current time.
        :return: the seconds remaining until the next try. Zero or less means try now.
        """
        return 0 if self.last_tried is None else self.retry_period - (current_time - self.last_tried)
