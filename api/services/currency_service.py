"""
Adyen Checkout Provider -- Currency Service

ISO 4217 lookup plus the two conversions every gateway call needs:
  - decimal amount -> integer minor units (what Adyen expects on the wire)
  - integer minor units -> decimal amount (what the order stores)

The exponent is the number of decimal places of the currency's minor unit
(EUR 2, JPY 0, KWD 3). Codes not in the table are rejected before any
request leaves the process.
"""

from decimal import ROUND_HALF_UP, Decimal


class InvalidCurrencyError(ValueError):
  """Raised when an order's currency is not an active ISO 4217 code."""


# code -> minor unit exponent
ISO_4217_CURRENCY_EXPONENTS = {
  "AED": 2, "AFN": 2, "ALL": 2, "AMD": 2, "ANG": 2, "AOA": 2, "ARS": 2,
  "AUD": 2, "AWG": 2, "AZN": 2, "BAM": 2, "BBD": 2, "BDT": 2, "BGN": 2,
  "BHD": 3, "BIF": 0, "BMD": 2, "BND": 2, "BOB": 2, "BRL": 2, "BSD": 2,
  "BTN": 2, "BWP": 2, "BYN": 2, "BZD": 2, "CAD": 2, "CDF": 2, "CHF": 2,
  "CLP": 0, "CNY": 2, "COP": 2, "CRC": 2, "CUP": 2, "CVE": 2, "CZK": 2,
  "DJF": 0, "DKK": 2, "DOP": 2, "DZD": 2, "EGP": 2, "ERN": 2, "ETB": 2,
  "EUR": 2, "FJD": 2, "FKP": 2, "GBP": 2, "GEL": 2, "GHS": 2, "GIP": 2,
  "GMD": 2, "GNF": 0, "GTQ": 2, "GYD": 2, "HKD": 2, "HNL": 2, "HTG": 2,
  "HUF": 2, "IDR": 2, "ILS": 2, "INR": 2, "IQD": 3, "IRR": 2, "ISK": 0,
  "JMD": 2, "JOD": 3, "JPY": 0, "KES": 2, "KGS": 2, "KHR": 2, "KMF": 0,
  "KPW": 2, "KRW": 0, "KWD": 3, "KYD": 2, "KZT": 2, "LAK": 2, "LBP": 2,
  "LKR": 2, "LRD": 2, "LSL": 2, "LYD": 3, "MAD": 2, "MDL": 2, "MGA": 2,
  "MKD": 2, "MMK": 2, "MNT": 2, "MOP": 2, "MRU": 2, "MUR": 2, "MVR": 2,
  "MWK": 2, "MXN": 2, "MYR": 2, "MZN": 2, "NAD": 2, "NGN": 2, "NIO": 2,
  "NOK": 2, "NPR": 2, "NZD": 2, "OMR": 3, "PAB": 2, "PEN": 2, "PGK": 2,
  "PHP": 2, "PKR": 2, "PLN": 2, "PYG": 0, "QAR": 2, "RON": 2, "RSD": 2,
  "RUB": 2, "RWF": 0, "SAR": 2, "SBD": 2, "SCR": 2, "SDG": 2, "SEK": 2,
  "SGD": 2, "SHP": 2, "SLE": 2, "SOS": 2, "SRD": 2, "SSP": 2, "STN": 2,
  "SVC": 2, "SYP": 2, "SZL": 2, "THB": 2, "TJS": 2, "TMT": 2, "TND": 3,
  "TOP": 2, "TRY": 2, "TTD": 2, "TWD": 2, "TZS": 2, "UAH": 2, "UGX": 0,
  "USD": 2, "UYU": 2, "UZS": 2, "VES": 2, "VND": 0, "VUV": 0, "WST": 2,
  "XAF": 0, "XCD": 2, "XOF": 0, "XPF": 0, "YER": 2, "ZAR": 2, "ZMW": 2,
  "ZWL": 2,
}


def normalize_currency_code(currency_code):
  return (currency_code or "").strip().upper()


def is_valid_currency_code(currency_code):
  return normalize_currency_code(currency_code) in ISO_4217_CURRENCY_EXPONENTS


def validate_currency_code(currency_code, currency_name=None):
  """
  Return the upper-cased ISO 4217 code, or raise InvalidCurrencyError.

  currency_name is only used to make the error readable for whoever
  configured the store currency.
  """
  normalized_code = normalize_currency_code(currency_code)
  if normalized_code not in ISO_4217_CURRENCY_EXPONENTS:
    raise InvalidCurrencyError(
      "Currency must be a valid ISO 4217 currency code: %s"
      % (currency_name or currency_code or "<empty>")
    )
  return normalized_code


def get_currency_exponent(currency_code):
  return ISO_4217_CURRENCY_EXPONENTS[validate_currency_code(currency_code)]


def amount_to_minor_units(amount, currency_code):
  """
  Convert a decimal amount to integer minor units.

  minor_units = round(amount * 10^exponent), halves rounded away from zero.
  Floats are converted through str() so 19.99 stays 19.99.
  """
  exponent = get_currency_exponent(currency_code)
  decimal_amount = amount if isinstance(amount, Decimal) else Decimal(str(amount))
  scaled_amount = decimal_amount.scaleb(exponent)
  return int(scaled_amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def amount_from_minor_units(minor_units, currency_code):
  """Inverse of amount_to_minor_units, quantized to the currency's precision."""
  exponent = get_currency_exponent(currency_code)
  return Decimal(int(minor_units)).scaleb(-exponent).quantize(Decimal(1).scaleb(-exponent))
