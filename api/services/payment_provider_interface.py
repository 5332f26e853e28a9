"""
Adyen Checkout Provider -- Payment Provider Interface

Abstract base class for the host platform's payment provider plugin
contract. The host only talks to this interface: it hands over a read-only
order plus the provider's settings and receives proposed changes back.

Only the form and the callback are mandatory. Administrator actions a
provider does not support answer with an empty result, and their
can_* flag stays False.
"""

from abc import ABC, abstractmethod

from services.payment_models import ApiResult


class PaymentProviderInterface(ABC):
  """Abstract base for payment providers."""

  alias = None
  name = None
  description = None

  can_cancel_payments = False
  can_capture_payments = False
  can_refund_payments = False
  can_fetch_payment_status = False

  # True: the order is finalized when the shopper lands on the continue URL.
  # False: the provider's callback/webhook finalizes it.
  finalize_at_continue_url = True

  transaction_meta_data_definitions = ()

  def get_continue_url(self, order, settings):
    return settings.continue_url

  @abstractmethod
  async def generate_form(self, order, continue_url, cancel_url, callback_url, settings):
    """
    Start a payment for the order.

    Returns: PaymentFormResult with the redirect form and the metadata the
    host should merge into the order's properties.

    Raises on invalid currency or gateway failure -- checkout must abort.
    """
    ...

  @abstractmethod
  async def process_callback(self, order, raw_body, settings):
    """
    Handle an asynchronous notification from the provider.

    Args:
      order: The order the notification is for (may be None when the
             provider posts to a shared webhook URL).
      raw_body: Raw request body bytes, needed for signature checks.
      settings: Provider settings.

    Returns: CallbackResult (ok or bad request). Never raises.
    """
    ...

  async def cancel_payment(self, order, settings):
    """Returns: ApiResult. Empty when nothing was applied."""
    return ApiResult.empty()

  async def capture_payment(self, order, settings):
    """Returns: ApiResult. Empty when nothing was applied."""
    return ApiResult.empty()

  async def refund_payment(self, order, settings):
    """Returns: ApiResult. Empty when nothing was applied."""
    return ApiResult.empty()

  async def fetch_payment_status(self, order, settings):
    """Returns: ApiResult. Empty when the status could not be determined."""
    return ApiResult.empty()

  def describe_capabilities(self):
    return {
      "alias": self.alias,
      "name": self.name,
      "description": self.description,
      "can_cancel_payments": self.can_cancel_payments,
      "can_capture_payments": self.can_capture_payments,
      "can_refund_payments": self.can_refund_payments,
      "can_fetch_payment_status": self.can_fetch_payment_status,
      "finalize_at_continue_url": self.finalize_at_continue_url,
      "transaction_meta_data_definitions": [
        definition.model_dump() for definition in self.transaction_meta_data_definitions
      ],
    }
