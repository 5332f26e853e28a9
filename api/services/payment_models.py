"""
Adyen Checkout Provider -- Payment Models

The host platform owns the order. It hands us a read-only view and gets
back *proposed* changes: metadata to merge, a transaction id, a payment
status, or a redirect form. Nothing here is persisted by this service.
"""

import enum
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentStatus(str, enum.Enum):
  INITIALIZED = "Initialized"
  AUTHORIZED = "Authorized"
  CAPTURED = "Captured"
  CANCELLED = "Cancelled"
  REFUNDED = "Refunded"
  PENDING_EXTERNAL_SYSTEM = "PendingExternalSystem"
  ERROR = "Error"


class ErrorKind(str, enum.Enum):
  """Why an operation had no effect. Carried on empty/bad-request results."""
  MISSING_REFERENCE = "missing_reference"
  INVALID_CURRENCY = "invalid_currency"
  GATEWAY_ERROR = "gateway_error"
  UNEXPECTED_RESPONSE = "unexpected_response"
  SIGNATURE_INVALID = "signature_invalid"
  NOT_AUTHORISATION = "not_authorisation"
  MALFORMED_NOTIFICATION = "malformed_notification"


# ---------------------------------------------------------------------------
# Order view (read-only, owned by the host platform)
# ---------------------------------------------------------------------------

class CurrencyInfo(BaseModel):
  model_config = ConfigDict(frozen=True)

  id: str = ""
  code: str
  name: str = ""


class CustomerInfo(BaseModel):
  model_config = ConfigDict(frozen=True)

  email: Optional[str] = None
  first_name: Optional[str] = None
  last_name: Optional[str] = None
  customer_reference: Optional[str] = None


class TransactionInfo(BaseModel):
  model_config = ConfigDict(frozen=True)

  transaction_id: Optional[str] = None
  payment_status: Optional[PaymentStatus] = None
  amount_authorized: Optional[Decimal] = None


class OrderReadOnly(BaseModel):
  model_config = ConfigDict(frozen=True)

  id: str
  order_number: str
  currency: CurrencyInfo
  transaction_amount: Decimal
  customer_info: CustomerInfo = Field(default_factory=CustomerInfo)
  properties: Dict[str, str] = Field(default_factory=dict)
  transaction_info: TransactionInfo = Field(default_factory=TransactionInfo)

  def generate_order_reference(self):
    """Reference the host uses to find this order again from gateway metadata."""
    return f"{self.id}|{self.order_number}"


# ---------------------------------------------------------------------------
# Provider descriptors
# ---------------------------------------------------------------------------

class TransactionMetaDataDefinition(BaseModel):
  model_config = ConfigDict(frozen=True)

  alias: str
  name: str
  description: Optional[str] = None


# ---------------------------------------------------------------------------
# Proposed results
# ---------------------------------------------------------------------------

class PaymentForm(BaseModel):
  action_url: str
  method: str = "GET"


class PaymentFormResult(BaseModel):
  form: PaymentForm
  meta_data: Dict[str, str] = Field(default_factory=dict)


class TransactionInfoUpdate(BaseModel):
  transaction_id: Optional[str] = None
  payment_status: PaymentStatus


class ApiResult(BaseModel):
  """
  Result of an administrator action (cancel/capture/refund/status).

  An empty result means "nothing happened": the order's payment status must
  stay as it is and the administrator retries by hand.
  """

  transaction_info: Optional[TransactionInfoUpdate] = None
  meta_data: Dict[str, str] = Field(default_factory=dict)
  error_kind: Optional[ErrorKind] = None

  @property
  def is_empty(self):
    return self.transaction_info is None

  @classmethod
  def empty(cls, error_kind=None):
    return cls(error_kind=error_kind)


class CallbackResult(BaseModel):
  status_code: int = 200
  transaction_info: Optional[TransactionInfo] = None
  meta_data: Dict[str, str] = Field(default_factory=dict)
  error_kind: Optional[ErrorKind] = None

  @property
  def is_ok(self):
    return self.status_code == 200 and self.transaction_info is not None

  @classmethod
  def ok(cls, transaction_info, meta_data=None):
    return cls(status_code=200, transaction_info=transaction_info, meta_data=meta_data or {})

  @classmethod
  def bad_request(cls, error_kind=None):
    return cls(status_code=400, error_kind=error_kind)
