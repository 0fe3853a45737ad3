"""
Expenses app services layer.

Split computation, the expense ledger and transaction settlement. All
state-changing operations run inside database transactions.
"""

from .exceptions import (
    InvalidSplitError,
    InvalidExpenseError,
    DuplicateExpenseError,
    ExpenseNotFoundError,
    NotExpensePayerError,
    ExpenseHasSettlementsError,
    TransactionNotFoundError,
    NotTransactionSenderError,
    TransactionAlreadySettledError,
    InvalidSettlementError,
)

from .split_calculator import (
    SplitShare,
    compute_split,
    PERCENTAGE_TOLERANCE,
    AMOUNT_TOLERANCE,
)

from .expense_ledger import (
    create_expense,
    delete_expense,
    get_expense_by_id,
    get_user_expenses,
    get_group_expenses,
    get_recent_expenses,
)

from .settlement import (
    SettlementResult,
    settle_transaction,
    get_transaction_by_token,
    get_user_transactions,
    get_recent_transactions,
)


__all__ = [
    # Exceptions
    'InvalidSplitError',
    'InvalidExpenseError',
    'DuplicateExpenseError',
    'ExpenseNotFoundError',
    'NotExpensePayerError',
    'ExpenseHasSettlementsError',
    'TransactionNotFoundError',
    'NotTransactionSenderError',
    'TransactionAlreadySettledError',
    'InvalidSettlementError',

    # Split Calculator
    'SplitShare',
    'compute_split',
    'PERCENTAGE_TOLERANCE',
    'AMOUNT_TOLERANCE',

    # Expense Ledger
    'create_expense',
    'delete_expense',
    'get_expense_by_id',
    'get_user_expenses',
    'get_group_expenses',
    'get_recent_expenses',

    # Settlement
    'SettlementResult',
    'settle_transaction',
    'get_transaction_by_token',
    'get_user_transactions',
    'get_recent_transactions',
]
