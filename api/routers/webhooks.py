"""
Adyen Checkout Provider -- Webhook Router

Receives standard notifications from Adyen.

Adyen webhook: POST /api/v1/webhooks/adyen
  Configured in the Customer Area with HMAC signing enabled.

Security:
  - Every notification item is HMAC-verified before any field is used
  - Only successful AUTHORISATION events are accepted

Responses:
  200 + [accepted]  -- authorisation accepted, result attached for the host
  400               -- rejected; Adyen keeps the notification queued and
                       redelivers it
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from services.adyen_checkout_payment_provider import get_adyen_checkout_payment_provider
from services.adyen_settings import AdyenCheckoutSettings

logger = logging.getLogger("adyenpay.webhooks")

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


@router.post("/adyen")
async def receive_adyen_webhook(request: Request):
  """Verify and translate an Adyen notification into a callback result."""
  raw_body = await request.body()

  adyen = get_adyen_checkout_payment_provider()
  settings = AdyenCheckoutSettings.from_config()

  callback_result = await adyen.process_callback(None, raw_body, settings)

  if not callback_result.is_ok:
    logger.warning(
      "Adyen webhook rejected: error_kind=%s",
      callback_result.error_kind.value if callback_result.error_kind else None,
    )
    return JSONResponse(
      status_code=400,
      content={
        "ok": False,
        "data": None,
        "error": {
          "code": "NOTIFICATION_REJECTED",
          "message": callback_result.error_kind.value if callback_result.error_kind else "bad request",
        },
      },
    )

  logger.info(
    "Adyen webhook accepted: psp_reference=%s",
    callback_result.transaction_info.transaction_id,
  )

  return JSONResponse(
    status_code=200,
    content={
      "notificationResponse": "[accepted]",
      "ok": True,
      "data": callback_result.model_dump(mode="json"),
      "error": None,
    },
  )
