"""
Checkout load driver

One function per lifecycle step of a run:
- setup()             once before any traffic, pre-flight health check
- execute_checkout()  once per scheduled iteration
- teardown()          once after all traffic, summary and SQL to verify
- idempotency_test()  standalone, same payload sent several times in a row

All of them take a requests-compatible session, so the same code runs under
locust (HttpSession) and from the command line (requests.Session).
"""

import sys
import time
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple, Optional

import requests

from checkout_race.classify import Outcome, classify, run_checks
from checkout_race.config import (
    BASE_URL,
    CHECKOUT_PAYLOAD,
    EXPECTED_INITIAL_STOCK,
    HEADERS,
    IDEMPOTENCY_ATTEMPTS,
    IDEMPOTENCY_PAYLOAD,
    PACING_DELAY,
    REQUEST_TIMEOUT,
    TEST_PRODUCT_ID,
    TEST_USER_ID,
)
from checkout_race.metrics import CheckoutMetrics
from checkout_race.models import CheckoutReply, parse_reply


class CheckoutResult(NamedTuple):
    status: int
    body: str
    reply: Optional[CheckoutReply]
    elapsed_ms: float
    outcome: Outcome
    checks: Dict[str, bool]


def post_checkout(session, base_url: str, payload: str):
    """
    POST one checkout

    Returns:
        Tuple of (status: int, body: str, elapsed_ms: float)
        Connection errors and timeouts come back as status 0.
        elapsed_ms is the response's own send-to-headers time when
        the client reports one, wall-clock time otherwise.
    """
    start_time = time.time()
    elapsed = None

    try:
        response = session.post(
            f"{base_url}/checkout",
            data=payload,
            headers=HEADERS,
            timeout=REQUEST_TIMEOUT,
        )
        status, body = response.status_code, response.text or ""
        elapsed = getattr(response, "elapsed", None)
        # locust's HttpSession reports connection errors as status 0 with the exception attached
        if status == 0 and getattr(response, "error", None) is not None:
            body = str(response.error)
    except requests.RequestException as e:
        status, body = 0, str(e)

    if status and elapsed is not None:
        elapsed_ms = elapsed.total_seconds() * 1000
    else:
        elapsed_ms = (time.time() - start_time) * 1000
    return status, body, elapsed_ms


def execute_checkout(session, metrics: CheckoutMetrics, base_url: str = BASE_URL,
                     sleep: Callable[[float], None] = time.sleep) -> CheckoutResult:
    """
    Send one checkout for the test product and record what happened

    Process:
    1. POST the fixed 1-unit payload (10s timeout)
    2. Run the report-only checks (they never change the bucket)
    3. Classify and record exactly one outcome rate
    4. Sleep 100ms before handing control back to the scheduler
    """
    status, body, elapsed_ms = post_checkout(session, base_url, CHECKOUT_PAYLOAD)
    reply = parse_reply(body)

    checks = run_checks(status, elapsed_ms, reply)
    metrics.record_checks(checks)

    outcome = classify(status, reply)
    metrics.record(outcome)

    if outcome is Outcome.SUCCESS:
        if reply is not None and reply.duplicate is True:
            print(f"Duplicate order detected: {reply.order_id}")
    elif outcome is Outcome.STOCK_EXHAUSTED:
        print("Stock exhausted - this is expected")
    elif outcome is Outcome.BAD_REQUEST:
        if reply is not None:
            print(f"Bad request: {reply.error}")
        else:
            print(f"Bad request with unparseable body: {body}")
    else:
        print(f"Potential race condition failure - Status: {status}, Body: {body}")

    # Small delay to avoid hammering the server from a single user
    sleep(PACING_DELAY)

    return CheckoutResult(status, body, reply, elapsed_ms, outcome, checks)


def check_health(session, base_url: str = BASE_URL) -> int:
    """GET /health, returns the status code (0 if unreachable)"""
    try:
        response = session.get(f"{base_url}/health", timeout=REQUEST_TIMEOUT)
        return response.status_code
    except requests.RequestException:
        return 0


def setup(session, base_url: str = BASE_URL) -> dict:
    """
    Print the test banner and verify the target is reachable

    A failing health check is only a warning; the run goes ahead.

    Returns:
        Context dict handed to teardown()
    """
    print("=" * 60)
    print("CHECKOUT RACE CONDITION TEST")
    print("=" * 60)
    print(f"Testing endpoint: {base_url}/checkout")
    print(f"Product ID: {TEST_PRODUCT_ID}")
    print(f"User ID: {TEST_USER_ID}")
    print(f"Expected initial stock: {EXPECTED_INITIAL_STOCK}")
    print("")
    print("This test will:")
    print("1. Send concurrent checkout requests")
    print("2. Try to expose race conditions in stock checking")
    print("3. Measure how many requests succeed vs fail")
    print("4. Show duplicate order handling")
    print("")
    print("Expected behavior with race conditions:")
    print("- More orders created than available stock")
    print("- Database constraint violations")
    print("- Inconsistent stock levels")
    print("=" * 60)

    status = check_health(session, base_url)
    if status != 200:
        print(f"Warning: Health check failed. Status: {status}", file=sys.stderr)

    return {"start_time": datetime.now()}


def verification_queries(product_id: str = TEST_PRODUCT_ID) -> List[str]:
    """SQL to run by hand against the target database, never executed here"""
    return [
        f"SELECT COUNT(*) as total_orders FROM orders WHERE product_id = '{product_id}';",
        f"SELECT stock FROM products WHERE id = '{product_id}';",
    ]


def teardown(context: dict):
    """Print run duration, analysis tips and the verification SQL"""
    duration = (datetime.now() - context["start_time"]).total_seconds()

    print("")
    print("=" * 60)
    print("TEST COMPLETED")
    print("=" * 60)
    print(f"Test duration: {duration}s")
    print("")
    print("ANALYSIS TIPS:")
    print("1. Check your database - count actual orders created")
    print("2. Verify final stock level vs expected")
    print("3. Look for database errors in server logs")
    print("4. Race conditions will show as:")
    print("   - More orders than initial stock")
    print("   - Negative stock values")
    print("   - Database constraint violations")
    print("")
    print("SQL to check results:")
    for query in verification_queries():
        print(query)
    print("=" * 60)


def idempotency_test(session, base_url: str = BASE_URL,
                     attempts: int = IDEMPOTENCY_ATTEMPTS) -> List[int]:
    """
    Send the same 5-unit checkout several times back to back

    A target that deduplicates should answer the repeats with
    "Order already processed" instead of creating new orders.

    Returns:
        Status code of every attempt, in order
    """
    statuses = []

    for i in range(attempts):
        status, _, _ = post_checkout(session, base_url, IDEMPOTENCY_PAYLOAD)
        print(f"Idempotency test {i + 1}: Status {status}")
        statuses.append(status)

    return statuses
