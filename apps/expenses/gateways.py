"""
Payment gateways used when a debtor settles a transaction.

The backend is chosen with the ``PAYMENT_GATEWAY_BACKEND`` setting.
"""

import logging
import uuid
from dataclasses import dataclass

from django.conf import settings
from django.utils.module_loading import import_string


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayResult:
    approved: bool
    reference: str = ''
    message: str = ''


class PaymentGateway:
    """Base class for payment gateways."""

    name = 'base'

    def charge(self, *, transaction, mode) -> GatewayResult:
        raise NotImplementedError


class SimulatedPaymentGateway(PaymentGateway):
    """Approves every payment without contacting a provider."""

    name = 'simulated'

    def __init__(self, approve=True, message=''):
        self.approve = approve
        self.message = message

    def charge(self, *, transaction, mode):
        reference = f"SIM-{uuid.uuid4().hex[:12].upper()}"
        logger.debug(
            "Simulated %s charge of %s %s for transaction %s",
            mode, transaction.amount, transaction.currency, transaction.id,
        )
        if not self.approve:
            return GatewayResult(approved=False, reference=reference, message=self.message or 'Payment declined')
        return GatewayResult(approved=True, reference=reference)


def get_payment_gateway() -> PaymentGateway:
    return import_string(settings.PAYMENT_GATEWAY_BACKEND)()
