"""
Adyen Checkout Provider -- Tests for the HTTP surface

Uses FastAPI's TestClient. Adyen calls are mocked on the provider class so
the module-level singleton picks them up.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

HMAC_KEY = "44782DEF547AAA06C910C43932B1EB0C71FC68D9D0C057550C48EC2ACF6BA056"

ORDER_JSON = {
  "id": "5f3a0a52-4f09-4f5e-9c58-3c1b1f0d2a11",
  "order_number": "ORDER-01012-42",
  "currency": {"id": "cur-eur", "code": "EUR", "name": "Euro"},
  "transaction_amount": "25.50",
  "customer_info": {"email": "jane@example.com", "first_name": "Jane", "last_name": "Doe"},
}


@pytest.fixture
def client():
  from fastapi.testclient import TestClient
  from app import app
  with patch("config.ADYEN_MERCHANT_ACCOUNT", "ShopECOM"), \
       patch("config.ADYEN_API_KEY", "AQE-test-key"), \
       patch("config.ADYEN_HMAC_KEY", HMAC_KEY), \
       patch("config.ADYEN_TEST_MODE", True):
    yield TestClient(app)


def _make_item(sign=True, **overrides):
  from services.adyen_webhook_service import calculate_hmac_signature
  item = {
    "additionalData": {},
    "amount": {"currency": "EUR", "value": 1000},
    "eventCode": "AUTHORISATION",
    "merchantAccountCode": "ShopECOM",
    "merchantReference": "ORDER-01012-42",
    "paymentMethod": "mc",
    "pspReference": "7914073381342284",
    "success": "true",
  }
  item.update(overrides)
  if sign:
    item["additionalData"] = {"hmacSignature": calculate_hmac_signature(item, HMAC_KEY)}
  return item


def _make_body(*items):
  return json.dumps({"notificationItems": [{"NotificationRequestItem": item} for item in items]})


def _provider_class():
  from services.adyen_checkout_payment_provider import AdyenCheckoutPaymentProvider
  return AdyenCheckoutPaymentProvider


# ===========================================================================
# Test: Health and status
# ===========================================================================

class TestHealthAndStatus:

  def test_health(self, client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["environment"] == "test"

  def test_status_lists_webhook(self, client):
    body = client.get("/api/v1/status").json()
    assert body["ok"] is True
    assert body["data"]["endpoints"]["adyen_webhook"] == "/api/v1/webhooks/adyen"


# ===========================================================================
# Test: Payments router
# ===========================================================================

class TestPaymentsRouter:

  def test_provider_capabilities(self, client):
    response = client.get("/api/v1/payments/providers/adyen-checkout")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["can_capture_payments"] is True
    assert data["finalize_at_continue_url"] is False

  def test_unknown_provider(self, client):
    response = client.get("/api/v1/payments/providers/nope")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "PROVIDER_NOT_FOUND"

  def test_form(self, client):
    link = {"id": "PL1", "url": "https://test.adyen.link/PL1", "reference": "ORDER-01012-42"}
    with patch.object(_provider_class(), "_post_json", new=AsyncMock(return_value=link)) as post_json:
      response = client.post(
        "/api/v1/payments/adyen-checkout/form",
        json={"order": ORDER_JSON, "callback_url": "https://shop.example/callback"},
      )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["form"] == {"action_url": "https://test.adyen.link/PL1", "method": "GET"}
    assert data["meta_data"]["adyenPaymentLinkId"] == "PL1"
    assert post_json.call_args.args[1]["merchantAccount"] == "ShopECOM"

  def test_form_with_invalid_currency(self, client):
    order = dict(ORDER_JSON, currency={"code": "QQQ", "name": "Quatloos"})
    post_json = AsyncMock()
    with patch.object(_provider_class(), "_post_json", new=post_json):
      response = client.post(
        "/api/v1/payments/adyen-checkout/form",
        json={"order": order, "callback_url": "https://shop.example/callback"},
      )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "CURRENCY_INVALID"
    post_json.assert_not_awaited()

  def test_form_in_live_mode_without_prefix(self, client):
    with patch("config.ADYEN_TEST_MODE", False), patch("config.ADYEN_LIVE_ENDPOINT_URL_PREFIX", ""):
      response = client.post(
        "/api/v1/payments/adyen-checkout/form",
        json={"order": ORDER_JSON, "callback_url": "https://shop.example/callback"},
      )
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "PROVIDER_MISCONFIGURED"

  def test_capture(self, client):
    order = dict(ORDER_JSON, transaction_info={"transaction_id": "8815658961765250"})
    reply = {"pspReference": "8825658961765260", "response": "[capture-received]"}
    with patch.object(_provider_class(), "_post_json", new=AsyncMock(return_value=reply)):
      response = client.post("/api/v1/payments/adyen-checkout/capture", json={"order": order})
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["data"]["transaction_info"] == {
      "transaction_id": "8825658961765260",
      "payment_status": "Captured",
    }

  def test_refund_without_reference_is_empty(self, client):
    response = client.post("/api/v1/payments/adyen-checkout/refund", json={"order": ORDER_JSON})
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is False
    assert body["data"]["transaction_info"] is None
    assert body["data"]["error_kind"] == "missing_reference"

  def test_unknown_action(self, client):
    response = client.post("/api/v1/payments/adyen-checkout/void", json={"order": ORDER_JSON})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "ACTION_NOT_FOUND"


# ===========================================================================
# Test: Webhook router
# ===========================================================================

class TestWebhookRouter:

  def test_accepted_authorisation(self, client):
    response = client.post("/api/v1/webhooks/adyen", content=_make_body(_make_item()))
    assert response.status_code == 200
    body = response.json()
    assert body["notificationResponse"] == "[accepted]"
    assert body["data"]["transaction_info"]["transaction_id"] == "7914073381342284"
    assert body["data"]["transaction_info"]["amount_authorized"] == "10.00"

  def test_forged_notification_is_rejected(self, client):
    item = _make_item(sign=False)
    item["additionalData"]["hmacSignature"] = "Zm9yZ2Vk"
    response = client.post("/api/v1/webhooks/adyen", content=_make_body(item))
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "signature_invalid"

  def test_garbage_body_is_rejected(self, client):
    response = client.post("/api/v1/webhooks/adyen", content=b"hello")
    assert response.status_code == 400

  def test_non_authorisation_is_rejected(self, client):
    response = client.post("/api/v1/webhooks/adyen", content=_make_body(_make_item(eventCode="REFUND")))
    assert response.status_code == 400
