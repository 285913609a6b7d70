"""
Traffic scenarios and pass/fail thresholds

Scenarios are plain data. The load shape in locustfile.py asks this module
how many users should be running at a given moment; each user is paced
at one checkout per second, so users == iterations per second.

Timeline:
    0-30s    race_condition_test   constant 50 req/s
    30-35s   idle
    35-65s   burst_test            10 -> 10 -> 100 -> 100 -> 10 req/s
    65s+     stop
"""

import math
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


ITERATIONS_PER_USER = 1.0  # per second, see CheckoutUser.wait_time


class Stage(BaseModel):
    model_config = ConfigDict(frozen=True)

    duration: float = Field(..., gt=0, description="Seconds")
    target: float = Field(..., ge=0, description="Rate reached at the end of the stage")


class ConstantArrivalRate(BaseModel):
    """Fixed number of iterations per time unit, whatever the response times"""
    model_config = ConfigDict(frozen=True)

    name: str
    rate: float = Field(..., gt=0)
    time_unit: float = 1.0
    duration: float = Field(..., gt=0)
    pre_allocated_vus: int = Field(..., gt=0)
    max_vus: int = Field(..., gt=0)
    start_time: float = 0.0

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def rate_at(self, elapsed: float) -> float:
        if not self.start_time <= elapsed < self.end_time:
            return 0.0
        return self.rate / self.time_unit


class RampingArrivalRate(BaseModel):
    """Arrival rate interpolated linearly between stage targets"""
    model_config = ConfigDict(frozen=True)

    name: str
    start_rate: float = Field(..., ge=0)
    time_unit: float = 1.0
    stages: Tuple[Stage, ...]
    pre_allocated_vus: int = Field(..., gt=0)
    max_vus: int = Field(..., gt=0)
    start_time: float = 0.0

    @property
    def duration(self) -> float:
        return sum(stage.duration for stage in self.stages)

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def rate_at(self, elapsed: float) -> float:
        if not self.start_time <= elapsed < self.end_time:
            return 0.0

        offset = elapsed - self.start_time
        previous = self.start_rate
        for stage in self.stages:
            if offset < stage.duration:
                progress = offset / stage.duration
                return (previous + (stage.target - previous) * progress) / self.time_unit
            offset -= stage.duration
            previous = stage.target

        return 0.0


Scenario = Union[ConstantArrivalRate, RampingArrivalRate]


class Thresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    p95_duration_ms: float = 500
    http_failure_rate: float = 0.10
    race_failure_rate: float = 0.05


# SCENARIO CONFIGURATION

SCENARIOS: Tuple[Scenario, ...] = (
    # High concurrency race condition test
    ConstantArrivalRate(
        name="race_condition_test",
        rate=50,
        duration=30,
        pre_allocated_vus=100,
        max_vus=200,
    ),
    # Burst to simulate a real traffic spike, after the first scenario ends
    RampingArrivalRate(
        name="burst_test",
        start_rate=10,
        stages=(
            Stage(duration=10, target=10),
            Stage(duration=5, target=100),
            Stage(duration=10, target=100),
            Stage(duration=5, target=10),
        ),
        pre_allocated_vus=50,
        max_vus=100,
        start_time=35,
    ),
)

THRESHOLDS = Thresholds()


def users_for(scenario: Scenario, rate: float) -> int:
    """Users needed to sustain `rate` iterations/sec, capped at max_vus"""
    if rate <= 0:
        return 0
    return min(scenario.max_vus, math.ceil(rate / ITERATIONS_PER_USER))


def plan_at(elapsed: float, scenarios=SCENARIOS) -> Optional[Tuple[int, float]]:
    """
    Users and spawn rate for the moment `elapsed` seconds into the run

    Returns:
        (user_count, spawn_rate), or None once every scenario has ended
    """
    if all(elapsed >= scenario.end_time for scenario in scenarios):
        return None

    users = 0
    spawn_rate = 0
    for scenario in scenarios:
        rate = scenario.rate_at(elapsed)
        if rate > 0:
            users += users_for(scenario, rate)
            spawn_rate += scenario.pre_allocated_vus

    # between scenarios: drop to zero users quickly
    if spawn_rate == 0:
        spawn_rate = max(scenario.pre_allocated_vus for scenario in scenarios)

    return users, spawn_rate


def evaluate_thresholds(p95_ms: Optional[float], failure_ratio: float, race_rate: float,
                        thresholds: Thresholds = THRESHOLDS) -> List[str]:
    """
    Compare run statistics against the thresholds

    Returns:
        One message per breached threshold, empty if the run passed
    """
    breaches = []

    if p95_ms is not None and not p95_ms < thresholds.p95_duration_ms:
        breaches.append(f"p(95) request duration {p95_ms:.0f}ms >= {thresholds.p95_duration_ms:.0f}ms")

    if not failure_ratio < thresholds.http_failure_rate:
        breaches.append(f"HTTP failure rate {failure_ratio:.2%} >= {thresholds.http_failure_rate:.0%}")

    if not race_rate < thresholds.race_failure_rate:
        breaches.append(f"race_condition_failures rate {race_rate:.2%} >= {thresholds.race_failure_rate:.0%}")

    return breaches
