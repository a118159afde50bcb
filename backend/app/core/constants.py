"""Application-wide constants for the Massava platform."""

from __future__ import annotations

BRAND_NAME = "Massava"

API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = "Booking platform for massage studios: search, booking, studio management and GDPR workflows."
API_VERSION = "1.0.0"

# Studio constraints
MIN_STUDIO_CAPACITY = 1
MAX_STUDIO_CAPACITY = 10
DEFAULT_STUDIO_CAPACITY = 2

# Service constraints
MIN_SERVICE_DURATION = 15  # minutes
MAX_SERVICE_DURATION = 240  # minutes
MIN_SERVICE_PRICE = 5
MAX_SERVICE_PRICE = 500

# Search
MIN_SEARCH_RADIUS_KM = 1
MAX_SEARCH_RADIUS_KM = 100
DEFAULT_SEARCH_RADIUS_KM = 25
EARTH_RADIUS_KM = 6371.0

# Audit
DEFAULT_AUDIT_QUERY_LIMIT = 50

# Placeholder for bookings whose service was deleted
DELETED_SERVICE_NAME = "Service gelöscht"

# Role assignment provenance
GRANTED_BY_SELF_REGISTRATION = "SELF_REGISTRATION"
GRANTED_BY_GUEST_BOOKING = "GUEST_BOOKING"
GRANTED_BY_STUDIO_REGISTRATION = "STUDIO_REGISTRATION"
GRANTED_BY_MIGRATION = "MIGRATION"
GRANTED_BY_OAUTH = "OAUTH_SIGN_IN"

# Phone-only walk-in bookings get a synthetic address on this domain
PHONE_BOOKING_EMAIL_DOMAIN = "massava.local"

HEALTH_CONSENT_TEXT_DE = (
    "Ich willige ausdrücklich ein, dass meine in der Nachricht angegebenen Gesundheitsdaten "
    "(z.B. Beschwerden, Verletzungen, Schwangerschaft) gemäß Art. 9 Abs. 2 lit. a DSGVO "
    "zum Zweck der Terminvorbereitung durch das Studio verarbeitet werden. Ich kann diese "
    "Einwilligung jederzeit mit Wirkung für die Zukunft widerrufen (datenschutz@massava.com)."
)

GDPR_EXPORT_ARTICLE = "Art. 15 GDPR - Right to Access"
GDPR_EXPORT_FORMAT = "JSON"
EXPORT_FILENAME_PREFIX = "massava-datenexport"

# Frontend redirect targets for magic-link verification
MAGIC_LINK_PATH = "/auth/magic-link"
MAGIC_LINK_EXPIRED_PATH = "/auth/magic-link-expired"
AUTH_ERROR_PATH = "/auth/error"
SIGN_IN_PATH = "/auth/signin"
VERIFY_EMAIL_PATH = "/auth/verify-email"
DEFAULT_CALLBACK_PATH = "/dashboard"
