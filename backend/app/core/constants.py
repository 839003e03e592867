"""Application-wide constants for the Turfbook platform."""

BRAND_NAME = "Turfbook"

# API metadata
API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = "Venue slot reservations with Stripe Checkout payments"
API_VERSION = "1.0.0"

# Slot generation
SLOT_DURATION_MINUTES = 60
LAST_SLOT_END = (23, 59, 59)

# Redirect paths appended to FRONTEND_URL
PAYMENT_SUCCESS_PATH = "/payment-success"
PAYMENT_CANCEL_PATH = "/payment-cancel"

# Checkout line item labels
DIRECT_BOOKING_LINE_ITEM = "Direct Venue Booking - {sport}"
GAME_BOOKING_LINE_ITEM = "Game Booking ({sport})"

# Metadata keys carried on every checkout session
BOOKING_TYPE_DIRECT = "direct"
BOOKING_TYPE_GAME = "game"

GOOGLE_CALENDAR_RENDER_URL = "https://calendar.google.com/calendar/render"
