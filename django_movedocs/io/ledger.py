"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Payment ledger computations. The ledger of a receipt is the append-only list of its payment events; everything in
this module derives amounts and status from it without touching the database.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from django_movedocs.exceptions import AmountNotPositive, ExceedsBalance
from django_movedocs.io.money import to_decimal

PAYMENT_STATUS_PENDING = 'pending'
PAYMENT_STATUS_PARTIAL = 'partial'
PAYMENT_STATUS_PAID = 'paid'
PAYMENT_STATUS_OVERDUE = 'overdue'
PAYMENT_STATUS_REFUNDED = 'refunded'
PAYMENT_STATUS_CANCELLED = 'cancelled'

PAYMENT_STATUS_CHOICES = [
    (PAYMENT_STATUS_PENDING, 'Pending'),
    (PAYMENT_STATUS_PARTIAL, 'Partially Paid'),
    (PAYMENT_STATUS_PAID, 'Paid'),
    (PAYMENT_STATUS_OVERDUE, 'Overdue'),
    (PAYMENT_STATUS_REFUNDED, 'Refunded'),
    (PAYMENT_STATUS_CANCELLED, 'Cancelled'),
]

OVERRIDE_STATUSES = (PAYMENT_STATUS_REFUNDED, PAYMENT_STATUS_CANCELLED)

PAYMENT_METHOD_CASH = 'cash'
PAYMENT_METHOD_BANK_TRANSFER = 'bank_transfer'
PAYMENT_METHOD_MOBILE_MONEY = 'mobile_money'

PAYMENT_METHOD_CHOICES = [
    (PAYMENT_METHOD_CASH, 'Cash'),
    (PAYMENT_METHOD_BANK_TRANSFER, 'Bank Transfer'),
    (PAYMENT_METHOD_MOBILE_MONEY, 'Mobile Money'),
]

VALID_PAYMENT_METHODS = tuple(c[0] for c in PAYMENT_METHOD_CHOICES)


@dataclass(frozen=True)
class LedgerState:
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: str


def compute_balance(total_amount, amount_paid) -> Decimal:
    return max(Decimal('0'), to_decimal(total_amount) - to_decimal(amount_paid))


def sum_payments(amounts: Iterable) -> Decimal:
    return sum((to_decimal(a) for a in amounts), Decimal('0'))


def derive_status(total_amount,
                  amount_paid,
                  date_due: Optional[date] = None,
                  admin_override: Optional[str] = None,
                  as_of: Optional[date] = None) -> str:
    """
    Derives the payment status of a receipt.

    Parameters
    ----------
    total_amount: Decimal
        The headline total of the receipt.
    amount_paid: Decimal
        The sum of all payment events.
    date_due: date
        Optional due date. A pending or partial receipt past this date is overdue.
    admin_override: str
        Optional administrative status. Refunded or cancelled short-circuit the derivation.
    as_of: date
        The date overdue is evaluated against. Required when date_due is given.

    Returns
    -------
    str
        One of the PAYMENT_STATUS values.
    """
    if admin_override:
        if admin_override not in OVERRIDE_STATUSES:
            raise ValueError(f'Invalid status override {admin_override}. Choices are {OVERRIDE_STATUSES}.')
        return admin_override

    total_amount = to_decimal(total_amount)
    amount_paid = to_decimal(amount_paid)

    if amount_paid >= total_amount and amount_paid > 0:
        return PAYMENT_STATUS_PAID

    status = PAYMENT_STATUS_PENDING if amount_paid <= 0 else PAYMENT_STATUS_PARTIAL

    if date_due and as_of and date_due < as_of:
        return PAYMENT_STATUS_OVERDUE
    return status


def validate_payment_amount(amount, balance) -> Decimal:
    """
    Validates a payment against the current balance.

    Raises
    ------
    AmountNotPositive
        If amount is zero or negative.
    ExceedsBalance
        If amount is larger than the current balance.
    """
    amount = to_decimal(amount)
    balance = to_decimal(balance)
    if amount <= 0:
        raise AmountNotPositive(f'Payment amount must be greater than 0, got {amount}.')
    if amount > balance:
        raise ExceedsBalance(f'Payment amount {amount} exceeds balance of {balance}.')
    return amount


def apply_payment(total_amount, amount_paid, amount, date_due: Optional[date] = None,
                  as_of: Optional[date] = None) -> LedgerState:
    """Returns the ledger state after a validated payment of amount. Nothing is mutated."""
    balance = compute_balance(total_amount, amount_paid)
    amount = validate_payment_amount(amount, balance)
    new_paid = to_decimal(amount_paid) + amount
    return LedgerState(
        total_amount=to_decimal(total_amount),
        amount_paid=new_paid,
        balance=compute_balance(total_amount, new_paid),
        status=derive_status(total_amount, new_paid, date_due=date_due, as_of=as_of)
    )
