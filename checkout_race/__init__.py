"""
Checkout race-condition load harness

Drives concurrent POST /checkout requests against an order/inventory API
to expose overselling and to observe duplicate-order handling.
"""

__version__ = "1.0.0"
