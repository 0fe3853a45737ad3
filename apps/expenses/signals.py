"""
Outbound ledger events.

Sent by the services after the database transaction commits. Receivers
must not raise into the sender; see ``apps.expenses.notifications``.

    expense_created      kwargs: expense, transactions
    transaction_settled  kwargs: transaction, expense
    expense_settled      kwargs: expense
"""

from django.dispatch import Signal


expense_created = Signal()
transaction_settled = Signal()
expense_settled = Signal()
