"""
Configuration
=============

All settings come from environment variables so the same image runs locally,
under docker-compose and in tests.
"""

import os

# ============================================================================
# STORAGE
# ============================================================================
# STORAGE_BACKEND picks the repository implementation once at startup:
# - "memory":   dictionaries in the process (demos, tests)
# - "database": SQLAlchemy against DATABASE_URL

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///./storefront.db"  # Fallback for local dev
)

# ============================================================================
# SESSIONS
# ============================================================================

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "storefront.sid")
SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "24"))
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

# Seeded on startup when ADMIN_PASSWORD is set and the user does not exist yet
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

# ============================================================================
# UPLOADS
# ============================================================================

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

# ============================================================================
# PAYMENTS
# ============================================================================

PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "GHS")
PAYMENT_CHECKOUT_URL = os.getenv("PAYMENT_CHECKOUT_URL", "https://checkout.mock-payments.local/pay")

# ============================================================================
# HTTP / LOGGING
# ============================================================================

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
