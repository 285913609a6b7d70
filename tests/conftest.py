import os
import socket
import subprocess
import sys
import time

# locust gevent-patches the standard library on import; do it before requests and ssl load
import locust  # noqa: F401
import pytest
import requests

from checkout_race.config import TEST_PRODUCT_ID
from checkout_race.metrics import CheckoutMetrics

TESTS_DIR = os.path.dirname(os.path.abspath(__file__))


@pytest.fixture
def metrics():
    return CheckoutMetrics()


@pytest.fixture
def delays():
    """Pass `sleep=delays.append` to record pacing instead of waiting"""
    return []


def _free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class StubControl:
    """Drives the stub's test-only /reset and /inventory endpoints"""

    def __init__(self, url):
        self.url = url

    def reset(self, stock=None, force_status=None, health_status=200):
        response = requests.post(
            f"{self.url}/reset",
            json={"stock": stock or {}, "force_status": force_status, "health_status": health_status},
            timeout=5,
        )
        response.raise_for_status()

    def inventory(self):
        response = requests.get(f"{self.url}/inventory", timeout=5)
        response.raise_for_status()
        return response.json()


@pytest.fixture(scope="session")
def stub_server():
    """Serve the stub checkout API from a separate uvicorn process for the whole session"""
    port = _free_port()
    url = f"http://127.0.0.1:{port}"
    process = subprocess.Popen([
        sys.executable, "-m", "uvicorn", "stub_service:app",
        "--app-dir", TESTS_DIR,
        "--host", "127.0.0.1",
        "--port", str(port),
        "--log-level", "warning",
    ])

    deadline = time.time() + 15
    while True:
        if process.poll() is not None:
            raise RuntimeError(f"stub server exited with code {process.returncode}")
        try:
            if requests.get(f"{url}/health", timeout=1).status_code == 200:
                break
        except requests.RequestException:
            pass
        if time.time() > deadline:
            process.kill()
            raise RuntimeError("stub server did not start")
        time.sleep(0.1)

    yield url

    process.terminate()
    try:
        process.wait(timeout=5)
    except subprocess.TimeoutExpired:
        process.kill()


@pytest.fixture
def stub(stub_server):
    """Fresh stub with 3 units of the test product"""
    control = StubControl(stub_server)
    control.reset(stock={TEST_PRODUCT_ID: 3})
    return control


@pytest.fixture
def target(stub):
    return stub.url


@pytest.fixture
def http():
    with requests.Session() as session:
        yield session
