"""Application-wide constants for the barbershop booking engine."""

from __future__ import annotations

BRAND_NAME = "Barbershop Booking"

# One slot is one hour; every service occupies a whole number of slots.
SLOT_MINUTES = 60

# Hour labels are always normalized to the top of the hour.
HOUR_LABEL_FORMAT = "{hour:02d}:00"

# Client directory lookups
PHONE_MIN_DIGITS = 8
PHONE_MAX_DIGITS = 15
FUZZY_PHONE_MIN_DIGITS = 4
FUZZY_PHONE_SUFFIX_DIGITS = 7
CLIENT_SEARCH_LIMIT = 10

# Cache key prefixes
CATALOG_CACHE_PREFIX = "catalog"
TAKEN_SLOTS_CACHE_PREFIX = "slots"
