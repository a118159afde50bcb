"""
Centralized email subject builders.

Keep subjects in code (not templates) for versioning and logging.
Bodies remain in Jinja templates.
"""

from app.core.constants import BRAND_NAME


class EmailSubject:
    """Utility class with static builders for email subjects."""

    @staticmethod
    def magic_link() -> str:
        return f"Ihr Anmeldelink - {BRAND_NAME}"

    @staticmethod
    def email_verification() -> str:
        return f"Verifizieren Sie Ihre E-Mail-Adresse - {BRAND_NAME}"

    @staticmethod
    def booking_received(studio_name: str) -> str:
        return f"Ihre Buchungsanfrage bei {studio_name} - {BRAND_NAME}"

    @staticmethod
    def booking_request_for_studio(customer_name: str) -> str:
        return f"Neue Buchungsanfrage von {customer_name} - {BRAND_NAME}"

    @staticmethod
    def booking_confirmed(studio_name: str) -> str:
        return f"Termin bestätigt: {studio_name} - {BRAND_NAME}"

    @staticmethod
    def booking_declined(studio_name: str) -> str:
        return f"Terminanfrage abgelehnt: {studio_name} - {BRAND_NAME}"

    @staticmethod
    def booking_cancelled(customer_name: str) -> str:
        return f"Buchung storniert von {customer_name} - {BRAND_NAME}"
