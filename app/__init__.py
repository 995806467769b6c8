"""Event Check-in API Application."""
