import threading

from checkout_race.classify import CHECK_MESSAGE, CHECK_STATUS, Outcome
from checkout_race.metrics import (
    RACE_CONDITION_FAILURES,
    STOCK_EXHAUSTED_RATE,
    SUCCESSFUL_CHECKOUTS,
    CheckoutMetrics,
    Rate,
)


def test_rate_counts_true_samples():
    rate = Rate("r")
    assert rate.rate == 0.0

    rate.add(True)
    rate.add(False)
    rate.add(False)
    rate.add(True)

    assert rate.trues == 2
    assert rate.total == 4
    assert rate.rate == 0.5


def test_rate_is_safe_across_threads():
    rate = Rate("r")

    def worker():
        for i in range(1000):
            rate.add(i % 2 == 0)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert rate.total == 8000
    assert rate.trues == 4000


def trues(metrics):
    return {name: t for name, (t, _, _) in metrics.summary().items()}


def test_success_only_counts_successful_checkouts(metrics):
    metrics.record(Outcome.SUCCESS)
    assert trues(metrics) == {
        RACE_CONDITION_FAILURES: 0,
        STOCK_EXHAUSTED_RATE: 0,
        SUCCESSFUL_CHECKOUTS: 1,
    }


def test_stock_exhausted_only_counts_stock_rate(metrics):
    metrics.record(Outcome.STOCK_EXHAUSTED)
    assert trues(metrics) == {
        RACE_CONDITION_FAILURES: 0,
        STOCK_EXHAUSTED_RATE: 1,
        SUCCESSFUL_CHECKOUTS: 0,
    }


def test_unexpected_failure_only_counts_race_failures(metrics):
    metrics.record(Outcome.UNEXPECTED_FAILURE)
    assert trues(metrics) == {
        RACE_CONDITION_FAILURES: 1,
        STOCK_EXHAUSTED_RATE: 0,
        SUCCESSFUL_CHECKOUTS: 0,
    }


def test_bad_request_counts_nothing(metrics):
    metrics.record(Outcome.BAD_REQUEST)
    assert set(trues(metrics).values()) == {0}


def test_other_buckets_get_no_samples(metrics):
    metrics.record(Outcome.STOCK_EXHAUSTED)

    assert metrics.summary() == {
        RACE_CONDITION_FAILURES: (0, 0, 0.0),
        STOCK_EXHAUSTED_RATE: (1, 1, 1.0),
        SUCCESSFUL_CHECKOUTS: (0, 0, 0.0),
    }


def test_single_race_failure_saturates_its_rate(metrics):
    for outcome in [Outcome.SUCCESS] * 99 + [Outcome.UNEXPECTED_FAILURE] + [Outcome.BAD_REQUEST]:
        metrics.record(outcome)

    assert metrics[RACE_CONDITION_FAILURES].total == 1
    assert metrics[RACE_CONDITION_FAILURES].rate == 1.0
    assert metrics.summary()[SUCCESSFUL_CHECKOUTS] == (99, 99, 1.0)


def test_checks_tracked_apart_from_buckets(metrics):
    metrics.record_checks({CHECK_STATUS: False, CHECK_MESSAGE: True})

    summary = metrics.check_summary()
    assert summary[CHECK_STATUS] == (0, 1, 0.0)
    assert summary[CHECK_MESSAGE] == (1, 1, 1.0)
    assert metrics[SUCCESSFUL_CHECKOUTS].total == 0


def test_reset_clears_everything(metrics):
    metrics.record(Outcome.SUCCESS)
    metrics.record_checks({CHECK_STATUS: True})
    metrics.reset()

    assert all(total == 0 for _, total, _ in metrics.summary().values())
    assert all(total == 0 for _, total, _ in metrics.check_summary().values())
