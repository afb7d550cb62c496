# components/utils.py

import logging
from typing import Dict, Optional

import requests
import streamlit as st

from components.boq_models import REFERENCE_CURRENCY

logger = logging.getLogger(__name__)

# code -> (label, symbol)
CURRENCIES = {
    'USD': ('USD ($)', '$'),
    'EUR': ('EUR (€)', '€'),
    'GBP': ('GBP (£)', '£'),
    'INR': ('INR (₹)', '₹'),
    'AED': ('AED (د.إ)', 'AED '),
    'SGD': ('SGD (S$)', 'S$'),
}

# Example rates relative to USD, used when no live source is configured
DEFAULT_EXCHANGE_RATES = {
    'USD': 1.0,
    'EUR': 0.93,
    'GBP': 0.79,
    'INR': 83.45,
    'AED': 3.67,
    'SGD': 1.35,
}

RATE_REQUEST_TIMEOUT = 10


def identity_rates() -> Dict[str, float]:
    """1:1 mapping for every supported currency. Used until rates load and on any failure."""
    return {code: 1.0 for code in CURRENCIES}


def _normalize_rates(raw: Dict) -> Dict[str, float]:
    rates = identity_rates()
    for code in CURRENCIES:
        value = raw.get(code)
        if value is None:
            logger.warning(f"No exchange rate for {code}; using 1.0")
            continue
        value = float(value)
        if value <= 0:
            raise ValueError(f"Exchange rate for {code} must be positive, got {value}")
        rates[code] = value
    rates[REFERENCE_CURRENCY] = 1.0
    return rates


def fetch_exchange_rates(url: Optional[str] = None) -> Dict[str, float]:
    """
    Get USD-based exchange rates. Best effort: any failure is logged and
    replaced by the identity mapping so the UI is never blocked.
    """
    try:
        if url:
            response = requests.get(url, params={'base': REFERENCE_CURRENCY}, timeout=RATE_REQUEST_TIMEOUT)
            response.raise_for_status()
            payload = response.json()
            raw = payload.get('rates', payload) if isinstance(payload, dict) else {}
        else:
            raw = DEFAULT_EXCHANGE_RATES
        return _normalize_rates(raw)
    except (requests.RequestException, ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Exchange rate fetch failed, falling back to identity rates: {e}")
        return identity_rates()


@st.cache_data(ttl=3600)  # Cache for 1 hour
def get_exchange_rates() -> Dict[str, float]:
    """Session-start rate load, optionally from the URL in EXCHANGE_RATE_API_URL."""
    try:
        url = st.secrets.get("EXCHANGE_RATE_API_URL")
    except FileNotFoundError:
        url = None
    return fetch_exchange_rates(url)


def _rate_for(currency: str, rates: Dict[str, float]) -> float:
    if currency not in CURRENCIES:
        raise ValueError(f"Unsupported currency: {currency}")
    rate = float(rates.get(currency, 1.0))
    if rate <= 0:
        raise ValueError(f"Exchange rate for {currency} must be positive, got {rate}")
    return rate


def convert_currency(amount_usd, currency: str, rates: Dict[str, float]) -> float:
    """Convert a stored USD amount to the display currency."""
    return amount_usd * _rate_for(currency, rates)


def to_reference(amount, currency: str, rates: Dict[str, float]) -> float:
    """Convert a display-currency amount back to USD for storage."""
    return amount / _rate_for(currency, rates)


def format_currency(amount, currency: str = "USD") -> str:
    """Format currency with proper symbols and formatting."""
    symbol = CURRENCIES.get(currency, (currency, f"{currency} "))[1]
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"
