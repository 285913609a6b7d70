"""
Command line entry points

    python -m checkout_race run          headless locust run of both scenarios
    python -m checkout_race idempotency  same payload sent 5 times in a row
    python -m checkout_race health       banner and pre-flight health check only
"""

import argparse
import os
import subprocess
import sys

import requests

from checkout_race.config import BASE_URL, IDEMPOTENCY_ATTEMPTS
from checkout_race.driver import idempotency_test, setup


LOCUSTFILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "locustfile.py")


def locust_command(host, html=None, csv=None):
    """Headless locust invocation; the load shape sets users and duration"""
    command = [
        sys.executable, "-m", "locust",
        "-f", LOCUSTFILE,
        "--headless",
        "--host", host,
    ]
    if html:
        command += ["--html", html]
    if csv:
        command += ["--csv", csv]
    return command


def cmd_run(args):
    return subprocess.call(locust_command(args.host, html=args.html, csv=args.csv))


def cmd_idempotency(args):
    with requests.Session() as session:
        idempotency_test(session, base_url=args.host, attempts=args.attempts)
    return 0


def cmd_health(args):
    with requests.Session() as session:
        setup(session, base_url=args.host)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="checkout_race",
        description="Concurrent checkout load test for race conditions and idempotency",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run both traffic scenarios with locust")
    run.add_argument("--html", help="Write locust's HTML report to this path")
    run.add_argument("--csv", help="Prefix for locust's CSV stats files")
    run.set_defaults(func=cmd_run)

    idem = sub.add_parser("idempotency", help="Send the same checkout several times")
    idem.add_argument("--attempts", type=int, default=IDEMPOTENCY_ATTEMPTS)
    idem.set_defaults(func=cmd_idempotency)

    health = sub.add_parser("health", help="Print the banner and check /health")
    health.set_defaults(func=cmd_health)

    for command in (run, idem, health):
        command.add_argument("--host", default=BASE_URL, type=lambda url: url.rstrip("/"),
                             help=f"Target base URL (default: {BASE_URL})")

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    return args.func(args)
