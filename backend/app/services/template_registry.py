"""
Template registry for strongly-typed access to Jinja templates.

Use with TemplateService to avoid stringly-typed paths.
"""

from enum import Enum


class TemplateRegistry(str, Enum):
    # Auth / Account
    AUTH_MAGIC_LINK = "email/auth/magic_link.html"
    AUTH_VERIFY_EMAIL = "email/auth/verify_email.html"

    # Booking notifications
    BOOKING_RECEIVED_CUSTOMER = "email/booking/received_customer.html"
    BOOKING_RECEIVED_STUDIO = "email/booking/received_studio.html"
    BOOKING_CONFIRMED_CUSTOMER = "email/booking/confirmed_customer.html"
    BOOKING_DECLINED_CUSTOMER = "email/booking/declined_customer.html"
    BOOKING_CANCELLED_STUDIO = "email/booking/cancelled_studio.html"
