"""
Response classification

Pure mapping from (status code, body) to an outcome bucket, plus the
report-only check assertions. Nothing here touches the network.
"""

from enum import Enum
from typing import Dict, Optional

from checkout_race.config import SLOW_RESPONSE_MS, STOCK_EXHAUSTED_ERROR, SUCCESS_MESSAGES
from checkout_race.models import CheckoutReply, parse_reply


class Outcome(str, Enum):
    SUCCESS = "success"
    STOCK_EXHAUSTED = "stock_exhausted"
    BAD_REQUEST = "bad_request"  # 400 for any other reason, not counted
    UNEXPECTED_FAILURE = "unexpected_failure"


CHECK_STATUS = "status is 200"
CHECK_DURATION = "response time < 2000ms"
CHECK_MESSAGE = "has success message"


def classify(status: int, reply: Optional[CheckoutReply]) -> Outcome:
    """
    Classify one checkout response

    - 200 is always a success, whatever the body says
    - 400 is stock exhaustion only for the exact "Not enough stock" error
    - everything else (5xx, 404, timeouts reported as 0) is treated as a
      possible race condition
    """
    if status == 200:
        return Outcome.SUCCESS

    if status == 400:
        if reply is not None and reply.error == STOCK_EXHAUSTED_ERROR:
            return Outcome.STOCK_EXHAUSTED
        return Outcome.BAD_REQUEST

    return Outcome.UNEXPECTED_FAILURE


def classify_body(status: int, text: Optional[str]) -> Outcome:
    """Classify straight from the raw body text, for callers without a parsed reply"""
    return classify(status, parse_reply(text))


def run_checks(status: int, elapsed_ms: float, reply: Optional[CheckoutReply]) -> Dict[str, bool]:
    """Evaluate the three report-only assertions for a response"""
    return {
        CHECK_STATUS: status == 200,
        CHECK_DURATION: elapsed_ms < SLOW_RESPONSE_MS,
        CHECK_MESSAGE: reply is not None and reply.message in SUCCESS_MESSAGES,
    }
