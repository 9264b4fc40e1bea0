"""
Stricker (Spot Gifts) catalog API configuration.

Endpoint names, response keys, timeouts and the batching/transform constants
used by the catalog sync.
"""

# =============================================================================
# API Endpoints
# =============================================================================

AUTH_ENDPOINT = "authenticateclient"

# endpoint -> key holding the collection in the JSON response
COLLECTION_ENDPOINTS = {
    "colors": "Colors",
    "products": "Products",
    "optionals": "Optionals",
}

AUTH_TIMEOUT = 30
FETCH_TIMEOUT = 120


# =============================================================================
# Sync Settings
# =============================================================================

COLOR_BATCH_SIZE = 50
PRODUCT_BATCH_SIZE = 50
PRICE_BATCH_SIZE = 100

# Storage limit for short text columns
MAX_TEXT_LENGTH = 255

# Vendor encodes price tiers as Price1..Price10 / MinQt1..MinQt10
MAX_PRICE_TIERS = 10

# Upper bound used for the last (open-ended) price tier
OPEN_ENDED_MAX_QTY = 999999

DEFAULT_SUPPLIER = "SPOT"
