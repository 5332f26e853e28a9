"""
Adyen Checkout Provider API -- Configuration

All configuration values with sensible defaults.
Override via environment variables or the systemd unit / .env file.
"""

import os


def _env_flag(name, default):
  value = os.environ.get(name)
  if value is None:
    return default
  return value.strip().lower() in ("1", "true", "yes", "on")


# --- API Settings ---
API_VERSION = "0.1.0"
API_HOST = os.environ.get("ADYENPAY_API_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("ADYENPAY_API_PORT", "8190"))

# --- Adyen account ---
# SECURITY: No hardcoded defaults -- must be set via environment variable or systemd unit
ADYEN_MERCHANT_ACCOUNT = os.environ.get("ADYENPAY_MERCHANT_ACCOUNT", "")
ADYEN_API_KEY = os.environ.get("ADYENPAY_API_KEY", "")
ADYEN_HMAC_KEY = os.environ.get("ADYENPAY_HMAC_KEY", "")

# Sandbox until explicitly switched. Live needs the account-specific URL prefix
# from the Customer Area (Developers > API URLs).
ADYEN_TEST_MODE = _env_flag("ADYENPAY_TEST_MODE", True)
ADYEN_LIVE_ENDPOINT_URL_PREFIX = os.environ.get("ADYENPAY_LIVE_URL_PREFIX", "")

ADYEN_CHECKOUT_API_VERSION = 68
ADYEN_PAYMENT_API_VERSION = 68

# --- Checkout behaviour ---
ADYEN_CONTINUE_URL = os.environ.get("ADYENPAY_CONTINUE_URL", "/checkout/continue/")
# Comma-separated allow-list, e.g. "scheme, ideal, paypal". Empty = all enabled methods.
ADYEN_PAYMENT_METHODS = os.environ.get("ADYENPAY_PAYMENT_METHODS", "")

# --- Outbound HTTP ---
ADYEN_HTTP_TIMEOUT_SECONDS = float(os.environ.get("ADYENPAY_HTTP_TIMEOUT", "30"))
