import os

from checkout_race.models import CheckoutRequest


# TARGET CONFIGURATION - override through the environment

BASE_URL = os.environ.get("CHECKOUT_BASE_URL", "http://localhost:8080").rstrip("/")
TEST_PRODUCT_ID = os.environ.get("CHECKOUT_PRODUCT_ID", "8a6624d3-916a-480c-94ab-21b2dc9925d7")
TEST_USER_ID = os.environ.get("CHECKOUT_USER_ID", "38fca0ee-e9d4-4ace-8a0d-e0a966813b74")
EXPECTED_INITIAL_STOCK = int(os.environ.get("CHECKOUT_EXPECTED_STOCK", "100"))  # banner only


# REQUEST BEHAVIOUR

REQUEST_TIMEOUT = 10  # seconds
PACING_DELAY = 0.1  # sleep after every checkout iteration
SLOW_RESPONSE_MS = 2000  # "response time" check
IDEMPOTENCY_ATTEMPTS = 5
IDEMPOTENCY_QUANTITY = 5

HEADERS = {"Content-Type": "application/json"}

STOCK_EXHAUSTED_ERROR = "Not enough stock"
SUCCESS_MESSAGES = ("Checkout successful", "Order already processed")


# PAYLOADS - built once, so malformed ids or quantities fail at import

CHECKOUT_PAYLOAD = CheckoutRequest(userId=TEST_USER_ID, productId=TEST_PRODUCT_ID, quantity=1).to_json()
IDEMPOTENCY_PAYLOAD = CheckoutRequest(
    userId=TEST_USER_ID,
    productId=TEST_PRODUCT_ID,
    quantity=IDEMPOTENCY_QUANTITY,
).to_json()
