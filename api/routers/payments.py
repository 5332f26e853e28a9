"""
Adyen Checkout Provider -- Payments Router

Host-facing endpoints. The host platform posts its read-only order view
and gets back proposed changes to apply to the order itself.

  GET  /api/v1/payments/providers/{alias}   -- capabilities + metadata fields
  POST /api/v1/payments/{alias}/form        -- start checkout (payment link)
  POST /api/v1/payments/{alias}/cancel      -- cancel authorisation
  POST /api/v1/payments/{alias}/capture     -- capture authorisation
  POST /api/v1/payments/{alias}/refund      -- refund capture
  POST /api/v1/payments/{alias}/status      -- fetch gateway-side status

Provider settings come from config, not from the request.
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from services.adyen_checkout_payment_provider import get_payment_provider
from services.adyen_settings import AdyenCheckoutSettings, AdyenConfigurationError
from services.currency_service import InvalidCurrencyError
from services.payment_models import OrderReadOnly

logger = logging.getLogger("adyenpay.payments")

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


class PaymentFormRequest(BaseModel):
  order: OrderReadOnly
  callback_url: str
  continue_url: Optional[str] = None
  cancel_url: Optional[str] = None


class OrderActionRequest(BaseModel):
  order: OrderReadOnly


def _error_response(status_code, code, message):
  return JSONResponse(
    status_code=status_code,
    content={
      "ok": False,
      "data": None,
      "error": {"code": code, "message": message},
    },
  )


def _provider_not_found(alias):
  return _error_response(404, "PROVIDER_NOT_FOUND", f"No payment provider with alias '{alias}'")


@router.get("/providers/{alias}")
async def get_payment_provider_capabilities(alias: str):
  """What the provider can do and which order properties it writes."""
  provider = get_payment_provider(alias)
  if provider is None:
    return _provider_not_found(alias)

  return JSONResponse(
    status_code=200,
    content={"ok": True, "data": provider.describe_capabilities(), "error": None},
  )


@router.post("/{alias}/form")
async def generate_payment_form(alias: str, body: PaymentFormRequest):
  """
  Create the redirect form for checkout.

  Failures here abort checkout, so they are reported as errors rather
  than as an empty result.
  """
  provider = get_payment_provider(alias)
  if provider is None:
    return _provider_not_found(alias)

  settings = AdyenCheckoutSettings.from_config()
  continue_url = body.continue_url or provider.get_continue_url(body.order, settings)

  try:
    form_result = await provider.generate_form(
      body.order, continue_url, body.cancel_url, body.callback_url, settings,
    )
  except InvalidCurrencyError as currency_error:
    return _error_response(400, "CURRENCY_INVALID", str(currency_error))
  except AdyenConfigurationError as configuration_error:
    logger.error("Payment form for %s failed: %s", body.order.order_number, configuration_error)
    return _error_response(500, "PROVIDER_MISCONFIGURED", str(configuration_error))
  except httpx.HTTPError as gateway_error:
    return _error_response(502, "GATEWAY_ERROR", f"Payment gateway request failed: {gateway_error}")

  return JSONResponse(
    status_code=200,
    content={"ok": True, "data": form_result.model_dump(mode="json"), "error": None},
  )


_ORDER_ACTIONS = {
  "cancel": ("can_cancel_payments", "cancel_payment"),
  "capture": ("can_capture_payments", "capture_payment"),
  "refund": ("can_refund_payments", "refund_payment"),
  "status": ("can_fetch_payment_status", "fetch_payment_status"),
}


@router.post("/{alias}/{action}")
async def run_order_action(alias: str, action: str, body: OrderActionRequest):
  """
  Administrator actions. Always 200: an empty result (ok=false) means the
  order's payment status must stay unchanged.
  """
  provider = get_payment_provider(alias)
  if provider is None:
    return _provider_not_found(alias)

  if action not in _ORDER_ACTIONS:
    return _error_response(404, "ACTION_NOT_FOUND", f"Unknown payment action '{action}'")

  capability_flag, method_name = _ORDER_ACTIONS[action]
  if not getattr(provider, capability_flag):
    return _error_response(400, "ACTION_NOT_SUPPORTED", f"Provider '{alias}' cannot {action} payments")

  settings = AdyenCheckoutSettings.from_config()
  api_result = await getattr(provider, method_name)(body.order, settings)

  return JSONResponse(
    status_code=200,
    content={
      "ok": not api_result.is_empty,
      "data": api_result.model_dump(mode="json"),
      "error": None,
    },
  )
