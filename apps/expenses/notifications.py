"""
Notification publishing for ledger events.

Receivers translate ledger signals into messages for the configured
publisher (``NOTIFICATION_PUBLISHER``). Publishing is best effort: a
failing publisher is logged at WARNING and never affects the ledger
operation that emitted the event.
"""

import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.dispatch import receiver
from django.utils.module_loading import import_string

from .signals import expense_created, expense_settled, transaction_settled


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    recipient_id: str
    event: str
    message: str
    data: dict = field(default_factory=dict)


class NotificationPublisher:
    """Base class for notification sinks."""

    def publish(self, notification: Notification) -> None:
        raise NotImplementedError


class LoggingNotificationPublisher(NotificationPublisher):
    """Writes notifications to the log; the default sink."""

    def publish(self, notification):
        logger.info(
            "Notify %s [%s]: %s",
            notification.recipient_id, notification.event, notification.message,
        )


def get_notification_publisher() -> NotificationPublisher:
    return import_string(settings.NOTIFICATION_PUBLISHER)()


def publish(notifications):
    """Send notifications, swallowing publisher failures."""
    try:
        publisher = get_notification_publisher()
    except ImportError:
        logger.warning("Notification publisher %s cannot be loaded", settings.NOTIFICATION_PUBLISHER)
        return 0

    sent = 0
    for notification in notifications:
        try:
            publisher.publish(notification)
        except Exception:
            logger.warning(
                "Dropping %s notification for %s",
                notification.event, notification.recipient_id, exc_info=True,
            )
            continue
        sent += 1
    return sent


@receiver(expense_created, dispatch_uid='notify_expense_created')
def notify_expense_created(sender, expense, transactions, **kwargs):
    payer_name = expense.payer.get_display_name()
    publish(
        Notification(
            recipient_id=str(txn.sender_id),
            event='expense_created',
            message=f"You owe {txn.amount} {txn.currency} to {payer_name} for {expense.description}",
            data={
                'expense_id': str(expense.id),
                'settlement_token': txn.settlement_token,
            },
        )
        for txn in transactions
    )


@receiver(transaction_settled, dispatch_uid='notify_transaction_settled')
def notify_transaction_settled(sender, transaction, expense, **kwargs):
    publish([
        Notification(
            recipient_id=str(transaction.receiver_id),
            event='transaction_settled',
            message=(
                f"{transaction.sender.get_display_name()} paid you "
                f"{transaction.amount} {transaction.currency} for {expense.description}"
            ),
            data={'expense_id': str(expense.id), 'mode': transaction.mode},
        )
    ])


@receiver(expense_settled, dispatch_uid='notify_expense_settled')
def notify_expense_settled(sender, expense, **kwargs):
    publish([
        Notification(
            recipient_id=str(expense.payer_id),
            event='expense_settled',
            message=f"Everyone has paid you back for {expense.description}",
            data={'expense_id': str(expense.id)},
        )
    ])
