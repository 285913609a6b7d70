"""
Locust entry point for the checkout race condition test

Run:
    locust -f checkout_race/locustfile.py --headless --host http://localhost:8080

The load shape drives both scenarios (see scenarios.py), so no
--users/--spawn-rate/--run-time flags are needed. The process exits
with code 1 when a threshold is breached.
"""

import requests
from locust import HttpUser, LoadTestShape, constant_throughput, events, task

from checkout_race.config import BASE_URL
from checkout_race.driver import execute_checkout, setup, teardown
from checkout_race.metrics import RACE_CONDITION_FAILURES, CheckoutMetrics
from checkout_race.scenarios import ITERATIONS_PER_USER, evaluate_thresholds, plan_at


METRICS = CheckoutMetrics()
RUN_CONTEXT = {}


class CheckoutUser(HttpUser):
    """
    One virtual user buying the test product over and over

    Paced at one checkout per second, so the shape can turn a target
    arrival rate straight into a user count.
    """

    host = BASE_URL
    wait_time = constant_throughput(ITERATIONS_PER_USER)

    @task
    def checkout(self):
        execute_checkout(self.client, METRICS, base_url=self.host.rstrip("/"))


class ArrivalRateShape(LoadTestShape):
    """race_condition_test for 30s, pause, then burst_test from 35s to 65s"""

    def tick(self):
        return plan_at(self.get_run_time())


# Event listeners
@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Called when test starts - banner and health check"""
    METRICS.reset()
    host = (environment.host or BASE_URL).rstrip("/")

    with requests.Session() as session:
        RUN_CONTEXT.update(setup(session, host))


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Called when test stops - print summary"""
    if "start_time" in RUN_CONTEXT:
        teardown(RUN_CONTEXT)

    print("\n" + "=" * 60)
    print("CHECKOUT METRICS")
    print("=" * 60)

    for name, (trues, total, rate) in METRICS.summary().items():
        print(f"{name}: {rate * 100:.2f}% ({trues}/{total})")

    print("")
    print("Checks:")
    for name, (passed, total, rate) in METRICS.check_summary().items():
        print(f"   {name}: {rate * 100:.2f}% ({passed}/{total})")

    stats = environment.stats.total

    print("")
    print(f"Total Requests: {stats.num_requests}")
    print(f"Total Failures: {stats.num_failures}")
    print(f"Failure Rate: {stats.fail_ratio * 100:.2f}%")
    print(f"RPS (Requests/sec): {stats.total_rps:.2f}")
    print(f"Average Response Time: {stats.avg_response_time:.2f}ms")
    if stats.num_requests:
        print(f"95th Percentile: {stats.get_response_time_percentile(0.95):.2f}ms")

    print("=" * 60 + "\n")


@events.quitting.add_listener
def on_quitting(environment, **kwargs):
    """Apply the thresholds and fail the process if any is breached"""
    stats = environment.stats.total
    p95 = stats.get_response_time_percentile(0.95) if stats.num_requests else None

    breaches = evaluate_thresholds(p95, stats.fail_ratio, METRICS[RACE_CONDITION_FAILURES].rate)

    if breaches:
        print("THRESHOLDS FAILED:")
        for breach in breaches:
            print(f"   ✗ {breach}")
        environment.process_exit_code = 1
    else:
        print("All thresholds passed")
