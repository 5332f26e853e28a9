"""
Adyen Checkout Provider -- Settings and endpoint selection

Per-provider settings are supplied by the host for each invocation and are
never modified. The test/live flag decides which Adyen hosts every outbound
call goes to:

  test:  https://checkout-test.adyen.com/v{N}
         https://pal-test.adyen.com/pal/servlet/Payment/v{N}
  live:  https://{prefix}-checkout-live.adyenpayments.com/checkout/v{N}
         https://{prefix}-pal-live.adyenpayments.com/pal/servlet/Payment/v{N}
"""

from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict

import config


class AdyenConfigurationError(Exception):
  """Settings are incomplete for the requested operation."""


class AdyenEndpoints(NamedTuple):
  checkout_base_url: str
  payment_base_url: str
  is_live: bool


class AdyenSettings(BaseModel):
  """Settings shared by every Adyen provider variant."""

  model_config = ConfigDict(frozen=True)

  continue_url: str = ""
  merchant_account: str = ""
  api_key: str = ""
  hmac_key: str = ""
  test_mode: bool = True
  live_endpoint_url_prefix: str = ""


class AdyenCheckoutSettings(AdyenSettings):
  """Settings for one-time Checkout payments via payment links."""

  payment_methods: Optional[str] = None

  @classmethod
  def from_config(cls):
    return cls(
      continue_url=config.ADYEN_CONTINUE_URL,
      merchant_account=config.ADYEN_MERCHANT_ACCOUNT,
      api_key=config.ADYEN_API_KEY,
      hmac_key=config.ADYEN_HMAC_KEY,
      test_mode=config.ADYEN_TEST_MODE,
      live_endpoint_url_prefix=config.ADYEN_LIVE_ENDPOINT_URL_PREFIX,
      payment_methods=config.ADYEN_PAYMENT_METHODS or None,
    )


def parse_payment_methods(payment_methods):
  """
  "visa, mc ,, amex" -> ["visa", "mc", "amex"]

  Entries are trimmed and blanks dropped. None or an all-blank string gives
  an empty list (no restriction).
  """
  if not payment_methods:
    return []
  return [method.strip() for method in payment_methods.split(",") if method.strip()]


def get_adyen_endpoints(settings):
  """Pick sandbox or production hosts for the given settings."""
  checkout_version = config.ADYEN_CHECKOUT_API_VERSION
  payment_version = config.ADYEN_PAYMENT_API_VERSION

  if settings.test_mode:
    return AdyenEndpoints(
      checkout_base_url=f"https://checkout-test.adyen.com/v{checkout_version}",
      payment_base_url=f"https://pal-test.adyen.com/pal/servlet/Payment/v{payment_version}",
      is_live=False,
    )

  prefix = (settings.live_endpoint_url_prefix or "").strip()
  if not prefix:
    raise AdyenConfigurationError(
      "Live mode requires the live endpoint URL prefix from the Adyen Customer Area"
    )

  return AdyenEndpoints(
    checkout_base_url=f"https://{prefix}-checkout-live.adyenpayments.com/checkout/v{checkout_version}",
    payment_base_url=f"https://{prefix}-pal-live.adyenpayments.com/pal/servlet/Payment/v{payment_version}",
    is_live=True,
  )
