"""
Adyen Checkout Provider -- Webhook notification parsing and HMAC verification

Adyen posts standard notifications as JSON:

  {
    "live": "false",
    "notificationItems": [
      {"NotificationRequestItem": {
        "additionalData": {"hmacSignature": "..."},
        "amount": {"currency": "EUR", "value": 1000},
        "eventCode": "AUTHORISATION",
        "merchantAccountCode": "...",
        "merchantReference": "...",
        "originalReference": "",
        "paymentMethod": "visa",
        "pspReference": "...",
        "success": "true"
      }}
    ]
  }

Every item carries its own HMAC-SHA256 signature over

  pspReference:originalReference:merchantAccountCode:merchantReference:
  value:currency:eventCode:success

keyed with the hex-decoded HMAC key from the Customer Area, base64
encoded. Nothing in an item may be trusted before that check passes.
"""

import base64
import binascii
import hashlib
import hmac
import json
from typing import Optional

from pydantic import BaseModel

EVENT_CODE_AUTHORISATION = "AUTHORISATION"


class AdyenNotificationError(Exception):
  """Body is not a usable Adyen notification."""


class AdyenSignatureError(Exception):
  """HMAC signature missing or does not match."""


class AdyenNotificationEvent(BaseModel):
  psp_reference: str = ""
  original_reference: str = ""
  merchant_account_code: str = ""
  merchant_reference: str = ""
  event_code: str = ""
  success: bool = False
  amount_value: Optional[int] = None
  amount_currency: str = ""
  payment_method: Optional[str] = None
  payment_link_id: Optional[str] = None

  @property
  def is_authorisation(self):
    return self.event_code.upper() == EVENT_CODE_AUTHORISATION


def parse_notification_items(raw_body):
  """Return the list of NotificationRequestItem dicts from a raw body."""
  try:
    payload = json.loads(raw_body)
  except (TypeError, ValueError) as parse_error:
    raise AdyenNotificationError(f"Notification body is not JSON: {parse_error}") from parse_error

  if not isinstance(payload, dict):
    raise AdyenNotificationError("Notification body must be a JSON object")

  notification_items = []
  for wrapper in payload.get("notificationItems") or []:
    item = wrapper.get("NotificationRequestItem") if isinstance(wrapper, dict) else None
    if not isinstance(item, dict):
      raise AdyenNotificationError("notificationItems entry without NotificationRequestItem")
    notification_items.append(item)

  if not notification_items:
    raise AdyenNotificationError("Notification contains no items")

  return notification_items


def _field_as_text(value):
  if value is None:
    return ""
  if isinstance(value, bool):
    return "true" if value else "false"
  return str(value)


def build_hmac_signing_string(notification_item):
  amount = notification_item.get("amount") or {}
  return ":".join(
    _field_as_text(value) for value in (
      notification_item.get("pspReference"),
      notification_item.get("originalReference"),
      notification_item.get("merchantAccountCode"),
      notification_item.get("merchantReference"),
      amount.get("value"),
      amount.get("currency"),
      notification_item.get("eventCode"),
      notification_item.get("success"),
    )
  )


def calculate_hmac_signature(notification_item, hmac_key):
  try:
    key_bytes = binascii.unhexlify(hmac_key)
  except (binascii.Error, TypeError, ValueError) as key_error:
    raise AdyenSignatureError("HMAC key is not a hex string") from key_error

  digest = hmac.new(
    key_bytes,
    build_hmac_signing_string(notification_item).encode("utf-8"),
    hashlib.sha256,
  ).digest()
  return base64.b64encode(digest).decode("ascii")


def is_valid_hmac_signature(notification_item, hmac_key):
  if not hmac_key:
    return False

  additional_data = notification_item.get("additionalData") or {}
  received_signature = additional_data.get("hmacSignature") or ""
  if not received_signature:
    return False

  try:
    expected_signature = calculate_hmac_signature(notification_item, hmac_key)
  except AdyenSignatureError:
    return False

  return hmac.compare_digest(expected_signature, received_signature)


def notification_event_from_item(notification_item):
  amount = notification_item.get("amount") or {}
  additional_data = notification_item.get("additionalData") or {}

  amount_value = amount.get("value")
  if amount_value is not None:
    try:
      amount_value = int(amount_value)
    except (TypeError, ValueError) as amount_error:
      raise AdyenNotificationError(f"Invalid amount value: {amount_value!r}") from amount_error

  return AdyenNotificationEvent(
    psp_reference=_field_as_text(notification_item.get("pspReference")),
    original_reference=_field_as_text(notification_item.get("originalReference")),
    merchant_account_code=_field_as_text(notification_item.get("merchantAccountCode")),
    merchant_reference=_field_as_text(notification_item.get("merchantReference")),
    event_code=_field_as_text(notification_item.get("eventCode")),
    success=_field_as_text(notification_item.get("success")).lower() == "true",
    amount_value=amount_value,
    amount_currency=_field_as_text(amount.get("currency")).upper(),
    payment_method=notification_item.get("paymentMethod"),
    payment_link_id=additional_data.get("paymentLinkId"),
  )


def get_verified_notification_events(raw_body, hmac_key):
  """
  Parse a notification body and return one event per item, in batch order,
  after every item in the batch has passed HMAC verification.

  Raises AdyenNotificationError or AdyenSignatureError.
  """
  notification_items = parse_notification_items(raw_body)

  for notification_item in notification_items:
    if not is_valid_hmac_signature(notification_item, hmac_key):
      raise AdyenSignatureError(
        "HMAC signature verification failed for pspReference=%s"
        % notification_item.get("pspReference")
      )

  return [notification_event_from_item(notification_item) for notification_item in notification_items]


def find_authorisation_event(notification_events):
  """First successful AUTHORISATION in the batch, or None."""
  for notification_event in notification_events:
    if notification_event.success and notification_event.is_authorisation:
      return notification_event
  return None
