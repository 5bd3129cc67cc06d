"""
Payment gateway.

Routes depend on the PaymentGateway interface only, so a live provider can
replace MockPaymentGateway without touching them. Response shapes are the ones
the storefront UI consumes:

    initialize_payment -> {"success", "authorizationUrl", "reference"}
    verify_payment     -> {"success", "data": {"status", "reference", "amount", "metadata"}}

Amounts sent to the gateway are in minor currency units (amount * 100).
"""

import logging
import math
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from storefront import config

logger = logging.getLogger(__name__)


def to_minor_units(amount: float) -> int:
    # Round first so float noise (99.99 * 100 == 9998.999...) does not lose a unit
    return int(math.floor(round(amount * 100, 2)))


def build_metadata(payment_method: str, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Checkout metadata: payment method plus a display field for the gateway dashboard."""
    return {
        "paymentMethod": payment_method,
        "custom_fields": [
            {
                "display_name": "Payment Method",
                "variable_name": "payment_method",
                "value": payment_method,
            },
        ],
        **(metadata or {}),
    }


class PaymentGateway(ABC):
    @abstractmethod
    def initialize_payment(
        self,
        email: str,
        amount: float,
        payment_method: str = "card",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        ...

    @abstractmethod
    def verify_payment(self, reference: str) -> Dict[str, Any]:
        ...


class MockPaymentGateway(PaymentGateway):
    """
    Accepts every payment it initialized; anything else fails verification.
    """

    def __init__(self, checkout_url: Optional[str] = None, currency: Optional[str] = None):
        self.checkout_url = checkout_url or config.PAYMENT_CHECKOUT_URL
        self.currency = currency or config.PAYMENT_CURRENCY
        self._transactions: Dict[str, Dict[str, Any]] = {}

    def initialize_payment(self, email, amount, payment_method="card", metadata=None):
        reference = f"mock_{uuid.uuid4().hex}"
        self._transactions[reference] = {
            "email": email,
            "amount": to_minor_units(amount),
            "currency": self.currency,
            "metadata": build_metadata(payment_method, metadata),
        }
        logger.info("Initialized mock payment %s for %s (%s %s)", reference, email, amount, self.currency)
        return {
            "success": True,
            "authorizationUrl": f"{self.checkout_url}/{reference}",
            "reference": reference,
        }

    def verify_payment(self, reference):
        transaction = self._transactions.get(reference)
        if transaction is None:
            logger.warning("Verification requested for unknown payment %s", reference)
            return {
                "success": False,
                "data": {"status": "failed", "reference": reference, "amount": 0, "metadata": {}},
            }
        return {
            "success": True,
            "data": {
                "status": "success",
                "reference": reference,
                "amount": transaction["amount"],
                "metadata": dict(transaction["metadata"]),
            },
        }
