import threading
from typing import Dict, Tuple

from checkout_race.classify import CHECK_DURATION, CHECK_MESSAGE, CHECK_STATUS, Outcome


RACE_CONDITION_FAILURES = "race_condition_failures"
STOCK_EXHAUSTED_RATE = "stock_exhausted_rate"
SUCCESSFUL_CHECKOUTS = "successful_checkouts"

BUCKETS = {
    Outcome.UNEXPECTED_FAILURE: RACE_CONDITION_FAILURES,
    Outcome.STOCK_EXHAUSTED: STOCK_EXHAUSTED_RATE,
    Outcome.SUCCESS: SUCCESSFUL_CHECKOUTS,
}


class Rate:
    """
    Boolean-rate metric

    Counts how many samples were True out of all samples added.
    Safe to share between users (locust patches threading for gevent).
    """

    def __init__(self, name: str):
        self.name = name
        self.lock = threading.Lock()
        self.trues = 0
        self.total = 0

    def add(self, value: bool):
        with self.lock:
            self.total += 1
            if value:
                self.trues += 1

    @property
    def rate(self) -> float:
        with self.lock:
            if self.total == 0:
                return 0.0
            return self.trues / self.total

    def reset(self):
        with self.lock:
            self.trues = 0
            self.total = 0


class CheckoutMetrics:
    """
    The three outcome rates tracked for every checkout

    Each outcome adds a single True sample to its own bucket and leaves
    the other two untouched. A 400 that is not stock exhaustion records
    nothing. Any race condition failure therefore puts
    race_condition_failures at 100%.
    """

    def __init__(self):
        self.rates: Dict[str, Rate] = {
            name: Rate(name)
            for name in (RACE_CONDITION_FAILURES, STOCK_EXHAUSTED_RATE, SUCCESSFUL_CHECKOUTS)
        }
        # report-only assertions, kept apart from the outcome buckets
        self.checks: Dict[str, Rate] = {
            name: Rate(name) for name in (CHECK_STATUS, CHECK_DURATION, CHECK_MESSAGE)
        }

    def __getitem__(self, name: str) -> Rate:
        return self.rates[name]

    def record(self, outcome: Outcome):
        bucket = BUCKETS.get(outcome)
        if bucket is not None:
            self.rates[bucket].add(True)

    def record_checks(self, checks: Dict[str, bool]):
        for name, passed in checks.items():
            self.checks[name].add(passed)

    def reset(self):
        for rate in list(self.rates.values()) + list(self.checks.values()):
            rate.reset()

    def summary(self) -> Dict[str, Tuple[int, int, float]]:
        """name -> (true samples, total samples, rate)"""
        return {
            name: (rate.trues, rate.total, rate.rate)
            for name, rate in self.rates.items()
        }

    def check_summary(self) -> Dict[str, Tuple[int, int, float]]:
        return {
            name: (rate.trues, rate.total, rate.rate)
            for name, rate in self.checks.items()
        }
