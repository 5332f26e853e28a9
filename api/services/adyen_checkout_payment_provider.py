"""
Adyen Checkout Payment Provider

Adyen integration using direct HTTP calls via httpx against the Checkout
and classic Payment (modification) APIs. No Adyen SDK dependency.

Payments are started with a hosted payment link and finalized by the
AUTHORISATION webhook, not at the continue URL.

Endpoints used (base URL depends on test/live, see adyen_settings):
  POST {checkout}/paymentLinks       -- create payment link (checkout form)
  GET  {checkout}/paymentLinks/{id}  -- payment link status
  POST {payment}/cancel              -- cancel an authorisation
  POST {payment}/capture             -- capture an authorisation
  POST {payment}/refund              -- refund a capture
"""

import logging

import httpx

import config
from services import adyen_webhook_service, currency_service
from services.adyen_settings import get_adyen_endpoints, parse_payment_methods
from services.payment_models import (
  ApiResult,
  CallbackResult,
  ErrorKind,
  PaymentForm,
  PaymentFormResult,
  PaymentStatus,
  TransactionInfo,
  TransactionInfoUpdate,
  TransactionMetaDataDefinition,
)
from services.payment_provider_interface import PaymentProviderInterface

logger = logging.getLogger("adyenpay.checkout")

META_PAYMENT_LINK_ID = "adyenPaymentLinkId"
META_PAYMENT_LINK_REFERENCE = "adyenPaymentLinkReference"
META_PSP_REFERENCE = "adyenPspReference"
META_PAYMENT_METHOD = "adyenPaymentMethod"

# Modification API acknowledgements -> resulting payment status
MODIFICATION_RESPONSE_STATUSES = {
  "[cancel-received]": PaymentStatus.CANCELLED,
  "[capture-received]": PaymentStatus.CAPTURED,
  "[refund-received]": PaymentStatus.REFUNDED,
}

PAYMENT_LINK_STATUSES = {
  "active": PaymentStatus.INITIALIZED,
  "paymentPending": PaymentStatus.PENDING_EXTERNAL_SYSTEM,
  "completed": PaymentStatus.AUTHORIZED,
  "expired": PaymentStatus.CANCELLED,
}

SETTLED_PAYMENT_STATUSES = frozenset([
  PaymentStatus.CAPTURED,
  PaymentStatus.REFUNDED,
  PaymentStatus.CANCELLED,
])


class AdyenCheckoutPaymentProvider(PaymentProviderInterface):
  """Adyen payment provider for one time payments."""

  alias = "adyen-checkout"
  name = "Adyen Checkout"
  description = "Adyen payment provider for one time payments"

  can_cancel_payments = True
  can_capture_payments = True
  can_refund_payments = True
  can_fetch_payment_status = True

  # Finalized via webhook callback
  finalize_at_continue_url = False

  transaction_meta_data_definitions = (
    TransactionMetaDataDefinition(alias=META_PAYMENT_LINK_ID, name="Adyen Payment Link ID"),
    TransactionMetaDataDefinition(alias=META_PAYMENT_LINK_REFERENCE, name="Adyen Payment Link reference"),
    TransactionMetaDataDefinition(alias=META_PSP_REFERENCE, name="Adyen PSP reference"),
    TransactionMetaDataDefinition(alias=META_PAYMENT_METHOD, name="Adyen Payment Method"),
  )

  def __init__(self, operation_logger=None):
    self.logger = operation_logger or logger
    self.timeout_seconds = config.ADYEN_HTTP_TIMEOUT_SECONDS

  # -----------------------------------------------------------------------
  # HTTP
  # -----------------------------------------------------------------------

  def _headers(self, settings):
    return {
      "X-API-Key": settings.api_key,
      "Content-Type": "application/json",
      "Accept": "application/json",
    }

  async def _post_json(self, url, payload, settings):
    async with httpx.AsyncClient(timeout=self.timeout_seconds) as http_client:
      response = await http_client.post(url, json=payload, headers=self._headers(settings))
      response.raise_for_status()
      return response.json()

  async def _get_json(self, url, settings):
    async with httpx.AsyncClient(timeout=self.timeout_seconds) as http_client:
      response = await http_client.get(url, headers=self._headers(settings))
      response.raise_for_status()
      return response.json()

  # -----------------------------------------------------------------------
  # Checkout form (payment link)
  # -----------------------------------------------------------------------

  def build_payment_link_request(self, order, callback_url, settings):
    """
    Build the /paymentLinks payload. Validates the currency first so an
    invalid store currency never reaches Adyen.
    """
    currency_code = currency_service.validate_currency_code(
      order.currency.code, order.currency.name,
    )
    order_amount = currency_service.amount_to_minor_units(order.transaction_amount, currency_code)

    customer_info = order.customer_info
    payment_link_request = {
      "merchantAccount": settings.merchant_account,
      "reference": order.order_number,
      "amount": {
        "currency": currency_code,
        "value": order_amount,
      },
      "returnUrl": callback_url,
      "shopperEmail": customer_info.email,
      "shopperReference": customer_info.customer_reference,
      "shopperName": {
        "firstName": customer_info.first_name,
        "lastName": customer_info.last_name,
      },
      "metadata": {
        "orderReference": order.generate_order_reference(),
        "orderId": order.id,
        "orderNumber": order.order_number,
      },
    }

    payment_methods = parse_payment_methods(settings.payment_methods)
    if payment_methods:
      payment_link_request["allowedPaymentMethods"] = payment_methods

    return payment_link_request

  async def generate_form(self, order, continue_url, cancel_url, callback_url, settings):
    """
    Create a payment link and redirect the shopper to it.

    Invalid currency and gateway errors propagate: checkout cannot go on
    without a link.
    """
    payment_link_request = self.build_payment_link_request(order, callback_url, settings)
    endpoints = get_adyen_endpoints(settings)

    try:
      payment_link = await self._post_json(
        f"{endpoints.checkout_base_url}/paymentLinks",
        payment_link_request,
        settings,
      )
    except httpx.HTTPStatusError as http_error:
      self.logger.error(
        "Adyen payment link request failed: order_number=%s, status=%s, body=%s",
        order.order_number, http_error.response.status_code, http_error.response.text,
      )
      raise
    except Exception as request_error:
      self.logger.error(
        "Adyen payment link request failed: order_number=%s, error=%s",
        order.order_number, request_error,
      )
      raise

    self.logger.info(
      "Adyen payment link created: order_number=%s, link_id=%s, amount=%s %s",
      order.order_number, payment_link.get("id"),
      payment_link_request["amount"]["value"], payment_link_request["amount"]["currency"],
    )

    return PaymentFormResult(
      form=PaymentForm(action_url=payment_link["url"], method="GET"),
      meta_data={
        META_PAYMENT_LINK_ID: payment_link.get("id") or "",
        META_PAYMENT_LINK_REFERENCE: payment_link.get("reference") or "",
      },
    )

  # -----------------------------------------------------------------------
  # Webhook callback
  # -----------------------------------------------------------------------

  async def process_callback(self, order, raw_body, settings):
    """
    Accept an AUTHORISATION notification and turn it into an authorized
    transaction. Anything else is a bad request.
    """
    # https://docs.adyen.com/online-payments/pay-by-link#how-it-works
    try:
      adyen_events = adyen_webhook_service.get_verified_notification_events(
        raw_body, settings.hmac_key,
      )
    except adyen_webhook_service.AdyenSignatureError as signature_error:
      self.logger.warning("Adyen callback rejected: %s", signature_error)
      return CallbackResult.bad_request(ErrorKind.SIGNATURE_INVALID)
    except adyen_webhook_service.AdyenNotificationError as notification_error:
      self.logger.warning("Adyen callback rejected: %s", notification_error)
      return CallbackResult.bad_request(ErrorKind.MALFORMED_NOTIFICATION)
    except Exception:
      self.logger.exception("Adyen - ProcessCallback")
      return CallbackResult.bad_request(ErrorKind.MALFORMED_NOTIFICATION)

    adyen_event = adyen_webhook_service.find_authorisation_event(adyen_events)
    if adyen_event is None:
      for ignored_event in adyen_events:
        self.logger.info(
          "Adyen callback ignored: event_code=%s, success=%s, psp_reference=%s",
          ignored_event.event_code, ignored_event.success, ignored_event.psp_reference,
        )
      return CallbackResult.bad_request(ErrorKind.NOT_AUTHORISATION)

    authorisation_count = sum(
      1 for candidate in adyen_events if candidate.success and candidate.is_authorisation
    )
    if authorisation_count > 1:
      self.logger.warning(
        "Adyen batch holds %d authorisations; only psp_reference=%s is applied",
        authorisation_count, adyen_event.psp_reference,
      )

    try:
      currency_code = adyen_event.amount_currency or (order.currency.code if order else "")
      amount_authorized = currency_service.amount_from_minor_units(
        adyen_event.amount_value or 0, currency_code,
      )
    except Exception:
      self.logger.exception("Adyen - ProcessCallback")
      return CallbackResult.bad_request(ErrorKind.INVALID_CURRENCY)

    # PspReference = unique identifier for the payment
    psp_reference = adyen_event.psp_reference

    self.logger.info(
      "Adyen payment authorised: psp_reference=%s, merchant_reference=%s, amount=%s %s",
      psp_reference, adyen_event.merchant_reference, amount_authorized, currency_code,
    )

    return CallbackResult.ok(
      TransactionInfo(
        transaction_id=psp_reference,
        amount_authorized=amount_authorized,
        payment_status=PaymentStatus.AUTHORIZED,
      ),
      {
        META_PSP_REFERENCE: psp_reference,
        META_PAYMENT_METHOD: adyen_event.payment_method or "",
      },
    )

  # -----------------------------------------------------------------------
  # Modifications
  # -----------------------------------------------------------------------

  def resolve_psp_reference(self, order):
    """PSP reference of the authorisation, or None if the order has none yet."""
    transaction_id = order.transaction_info.transaction_id
    if transaction_id:
      return transaction_id
    return order.properties.get(META_PSP_REFERENCE) or None

  def _modification_result(self, operation, modification_response):
    status = MODIFICATION_RESPONSE_STATUSES.get(modification_response.get("response"))
    if status is None:
      self.logger.warning(
        "Adyen %s returned an unexpected response: %s", operation, modification_response,
      )
      return ApiResult.empty(ErrorKind.UNEXPECTED_RESPONSE)

    return ApiResult(
      transaction_info=TransactionInfoUpdate(
        transaction_id=modification_response.get("pspReference"),
        payment_status=status,
      )
    )

  async def _modify_payment(self, operation, order, settings, with_amount):
    original_reference = self.resolve_psp_reference(order)
    if not original_reference:
      self.logger.warning(
        "Adyen %s skipped: no PSP reference stored for order_number=%s",
        operation, order.order_number,
      )
      return ApiResult.empty(ErrorKind.MISSING_REFERENCE)

    try:
      modification_request = {
        "merchantAccount": settings.merchant_account,
        "originalReference": original_reference,
      }

      if with_amount:
        currency_code = currency_service.validate_currency_code(
          order.currency.code, order.currency.name,
        )
        modification_request["modificationAmount"] = {
          "currency": currency_code,
          "value": currency_service.amount_to_minor_units(order.transaction_amount, currency_code),
        }

      endpoints = get_adyen_endpoints(settings)
      modification_response = await self._post_json(
        f"{endpoints.payment_base_url}/{operation}",
        modification_request,
        settings,
      )

    except currency_service.InvalidCurrencyError as currency_error:
      self.logger.error("Adyen - %s: %s", operation, currency_error)
      return ApiResult.empty(ErrorKind.INVALID_CURRENCY)
    except Exception:
      self.logger.exception("Adyen - %s", operation)
      return ApiResult.empty(ErrorKind.GATEWAY_ERROR)

    if not isinstance(modification_response, dict):
      self.logger.warning(
        "Adyen %s returned a non-object body: %r", operation, modification_response,
      )
      return ApiResult.empty(ErrorKind.UNEXPECTED_RESPONSE)

    self.logger.info(
      "Adyen %s requested: order_number=%s, original_reference=%s, response=%s",
      operation, order.order_number, original_reference, modification_response.get("response"),
    )
    return self._modification_result(operation, modification_response)

  async def cancel_payment(self, order, settings):
    # https://docs.adyen.com/online-payments/cancel
    return await self._modify_payment("cancel", order, settings, with_amount=False)

  async def capture_payment(self, order, settings):
    # https://docs.adyen.com/online-payments/capture#capture-a-payment
    return await self._modify_payment("capture", order, settings, with_amount=True)

  async def refund_payment(self, order, settings):
    # https://docs.adyen.com/online-payments/refund
    return await self._modify_payment("refund", order, settings, with_amount=True)

  # -----------------------------------------------------------------------
  # Status
  # -----------------------------------------------------------------------

  async def fetch_payment_status(self, order, settings):
    """
    Report the payment link's status as Adyen sees it.

    Only the link lifecycle is visible here; capture/refund progress is
    reported through the modification results instead.
    """
    payment_link_id = order.properties.get(META_PAYMENT_LINK_ID)
    if not payment_link_id:
      self.logger.warning(
        "Adyen status fetch skipped: no payment link stored for order_number=%s",
        order.order_number,
      )
      return ApiResult.empty(ErrorKind.MISSING_REFERENCE)

    try:
      endpoints = get_adyen_endpoints(settings)
      payment_link = await self._get_json(
        f"{endpoints.checkout_base_url}/paymentLinks/{payment_link_id}", settings,
      )
    except Exception:
      self.logger.exception("Adyen - FetchPaymentStatus")
      return ApiResult.empty(ErrorKind.GATEWAY_ERROR)

    link_status = payment_link.get("status") if isinstance(payment_link, dict) else None
    payment_status = PAYMENT_LINK_STATUSES.get(link_status)
    if payment_status is None:
      self.logger.warning(
        "Adyen payment link %s has unknown status %r", payment_link_id, link_status,
      )
      return ApiResult.empty(ErrorKind.UNEXPECTED_RESPONSE)

    # The link never reports past authorisation, so it cannot move a
    # captured, refunded or cancelled order anywhere else.
    current_status = order.transaction_info.payment_status
    if current_status in SETTLED_PAYMENT_STATUSES and payment_status != current_status:
      self.logger.info(
        "Adyen payment link %s is %s but order_number=%s is already %s",
        payment_link_id, link_status, order.order_number, current_status.value,
      )
      return ApiResult.empty(ErrorKind.UNEXPECTED_RESPONSE)

    return ApiResult(
      transaction_info=TransactionInfoUpdate(
        transaction_id=self.resolve_psp_reference(order) or payment_link_id,
        payment_status=payment_status,
      )
    )


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_adyen_checkout_provider_singleton = None


def get_adyen_checkout_payment_provider():
  """Get the Adyen Checkout payment provider singleton."""
  global _adyen_checkout_provider_singleton
  if _adyen_checkout_provider_singleton is None:
    _adyen_checkout_provider_singleton = AdyenCheckoutPaymentProvider()
  return _adyen_checkout_provider_singleton


PAYMENT_PROVIDERS = {
  AdyenCheckoutPaymentProvider.alias: get_adyen_checkout_payment_provider,
}


def get_payment_provider(alias):
  """Provider for the alias, or None if no such provider is registered."""
  provider_getter = PAYMENT_PROVIDERS.get(alias)
  return provider_getter() if provider_getter else None
