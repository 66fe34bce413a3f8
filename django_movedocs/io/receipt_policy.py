"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
    * Miguel Sanda <msanda@arrobalytics.com>

Receipt type policy.

A receipt is one of four mutually exclusive kinds. Each kind owns its own set of financial fields, represented here
by one terms class per kind:

    * item       -> :class:`ItemTerms` (a non-empty list of :class:`ServiceLine`)
    * commitment -> :class:`CommitmentTerms` (commitment fee paid and total moving amount)
    * final      -> :class:`FinalTerms` (commitment fee paid previously and final payment received)
    * one_time   -> :class:`OneTimeTerms` (total moving amount)

:func:`validate_terms` is the single validator deciding which variant a set of raw fields produces. Fields that
belong to a different kind are rejected instead of being silently ignored.

Examples
________
>>> terms = validate_terms('commitment', {'commitment_fee_paid': 300000, 'total_moving_amount': 1000000})
>>> terms.balance_due
Decimal('700000')
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

from django.core.exceptions import ValidationError

from django_movedocs.exceptions import InvalidFieldsForType
from django_movedocs.io.money import VALID_CURRENCIES, quantize_money, to_decimal

RECEIPT_TYPE_ITEM = 'item'
RECEIPT_TYPE_COMMITMENT = 'commitment'
RECEIPT_TYPE_FINAL = 'final'
RECEIPT_TYPE_ONE_TIME = 'one_time'

RECEIPT_TYPE_CHOICES = [
    (RECEIPT_TYPE_ITEM, 'Item Receipt'),
    (RECEIPT_TYPE_COMMITMENT, 'Commitment Receipt'),
    (RECEIPT_TYPE_FINAL, 'Final Receipt'),
    (RECEIPT_TYPE_ONE_TIME, 'One Time Payment Receipt'),
]

VALID_RECEIPT_TYPES = tuple(c[0] for c in RECEIPT_TYPE_CHOICES)

FIELD_SERVICES = 'services'
FIELD_COMMITMENT_FEE_PAID = 'commitment_fee_paid'
FIELD_TOTAL_MOVING_AMOUNT = 'total_moving_amount'
FIELD_FINAL_PAYMENT_RECEIVED = 'final_payment_received'

TYPE_FIELDS = (
    FIELD_SERVICES,
    FIELD_COMMITMENT_FEE_PAID,
    FIELD_TOTAL_MOVING_AMOUNT,
    FIELD_FINAL_PAYMENT_RECEIVED,
)


@dataclass(frozen=True)
class ServiceLine:
    description: str
    quantity: int
    unit_amount: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_amount

    def to_dict(self) -> Dict:
        return {
            'description': self.description,
            'quantity': self.quantity,
            'unit_amount': self.unit_amount,
            'line_total': self.line_total,
        }


@dataclass(frozen=True)
class ItemTerms:
    services: Tuple[ServiceLine, ...] = field(default_factory=tuple)

    receipt_type = RECEIPT_TYPE_ITEM

    def headline_total(self) -> Decimal:
        _, total = recompute_service_totals(self.services)
        return total

    def to_dict(self) -> Dict:
        return {
            FIELD_SERVICES: [s.to_dict() for s in self.services]
        }


@dataclass(frozen=True)
class CommitmentTerms:
    commitment_fee_paid: Decimal
    total_moving_amount: Decimal

    receipt_type = RECEIPT_TYPE_COMMITMENT

    @property
    def balance_due(self) -> Decimal:
        # may be negative when the fee exceeds the moving amount.
        return self.total_moving_amount - self.commitment_fee_paid

    def headline_total(self) -> Decimal:
        return self.total_moving_amount

    def to_dict(self) -> Dict:
        return {
            FIELD_COMMITMENT_FEE_PAID: self.commitment_fee_paid,
            FIELD_TOTAL_MOVING_AMOUNT: self.total_moving_amount,
        }


@dataclass(frozen=True)
class FinalTerms:
    commitment_fee_paid: Decimal
    final_payment_received: Decimal

    receipt_type = RECEIPT_TYPE_FINAL

    @property
    def grand_total(self) -> Decimal:
        return self.commitment_fee_paid + self.final_payment_received

    def headline_total(self) -> Decimal:
        return self.grand_total

    def to_dict(self) -> Dict:
        return {
            FIELD_COMMITMENT_FEE_PAID: self.commitment_fee_paid,
            FIELD_FINAL_PAYMENT_RECEIVED: self.final_payment_received,
        }


@dataclass(frozen=True)
class OneTimeTerms:
    total_moving_amount: Decimal

    receipt_type = RECEIPT_TYPE_ONE_TIME

    def headline_total(self) -> Decimal:
        return self.total_moving_amount

    def to_dict(self) -> Dict:
        return {
            FIELD_TOTAL_MOVING_AMOUNT: self.total_moving_amount,
        }


ReceiptTerms = Union[ItemTerms, CommitmentTerms, FinalTerms, OneTimeTerms]


@dataclass(frozen=True)
class ReceiptTypeRule:
    receipt_type: str
    required_fields: Tuple[str, ...]
    uses_locations: bool
    uses_services: bool


RECEIPT_TYPE_RULES: Dict[str, ReceiptTypeRule] = {
    RECEIPT_TYPE_ITEM: ReceiptTypeRule(
        receipt_type=RECEIPT_TYPE_ITEM,
        required_fields=(FIELD_SERVICES,),
        uses_locations=False,
        uses_services=True,
    ),
    RECEIPT_TYPE_COMMITMENT: ReceiptTypeRule(
        receipt_type=RECEIPT_TYPE_COMMITMENT,
        required_fields=(FIELD_COMMITMENT_FEE_PAID, FIELD_TOTAL_MOVING_AMOUNT),
        uses_locations=True,
        uses_services=False,
    ),
    RECEIPT_TYPE_FINAL: ReceiptTypeRule(
        receipt_type=RECEIPT_TYPE_FINAL,
        required_fields=(FIELD_COMMITMENT_FEE_PAID, FIELD_FINAL_PAYMENT_RECEIVED),
        uses_locations=True,
        uses_services=False,
    ),
    RECEIPT_TYPE_ONE_TIME: ReceiptTypeRule(
        receipt_type=RECEIPT_TYPE_ONE_TIME,
        required_fields=(FIELD_TOTAL_MOVING_AMOUNT,),
        uses_locations=True,
        uses_services=False,
    ),
}


def get_type_rule(receipt_type: str) -> ReceiptTypeRule:
    try:
        return RECEIPT_TYPE_RULES[receipt_type]
    except KeyError:
        raise InvalidFieldsForType({
            'receipt_type': [f'{receipt_type} is not a valid receipt type. Choices are {VALID_RECEIPT_TYPES}.']
        })


def recompute_service_totals(services, currency: Optional[str] = None) -> Tuple[List[ServiceLine], Decimal]:
    """
    Recomputes every service line total and the overall total of a set of service lines.

    Parameters
    ----------
    services: iterable
        ServiceLine instances or mappings with description, quantity and unit_amount (``amount`` is accepted as an
        alias of unit_amount). Any line_total present in a mapping is ignored and recomputed.
    currency: str
        Optional. Unit amounts of mappings are rounded to the precision of this currency.

    Returns
    -------
    tuple
        A list of ServiceLine instances and the sum of their line totals.
    """
    lines = list()
    errors = dict()
    for idx, s in enumerate(services):
        if isinstance(s, ServiceLine):
            lines.append(s)
            continue
        line, line_errors = _parse_service_line(s, idx, currency)
        errors.update(line_errors)
        lines.append(line)
    if errors:
        raise InvalidFieldsForType(errors)
    total = sum((line.line_total for line in lines), Decimal('0'))
    return lines, total


def _parse_amount(value,
                  field_name: str,
                  errors: Dict[str, List[str]],
                  strictly_positive: bool,
                  currency: Optional[str] = None) -> Optional[Decimal]:
    if value is None or value == '':
        errors.setdefault(field_name, []).append(f'{field_name} is required.')
        return None
    try:
        amount = to_decimal(value)
    except (ValidationError, TypeError, ValueError):
        errors.setdefault(field_name, []).append(f'{field_name} must be a number.')
        return None
    if not amount.is_finite():
        errors.setdefault(field_name, []).append(f'{field_name} must be a number.')
        return None
    if currency:
        amount = quantize_money(amount, currency)
    if strictly_positive and amount <= 0:
        errors.setdefault(field_name, []).append(f'{field_name} must be greater than zero.')
        return None
    if not strictly_positive and amount < 0:
        errors.setdefault(field_name, []).append(f'{field_name} must be zero or greater.')
        return None
    return amount


def _parse_service_line(raw, idx: int, currency: Optional[str] = None) -> Tuple[Optional[ServiceLine],
                                                                              Dict[str, List[str]]]:
    errors = dict()
    prefix = f'{FIELD_SERVICES}[{idx}]'

    if not isinstance(raw, dict):
        errors[prefix] = ['Service line must be a mapping.']
        return None, errors

    description = (raw.get('description') or '').strip()
    if not description:
        errors[f'{prefix}.description'] = ['Description is required.']

    quantity = raw.get('quantity')
    try:
        quantity = int(quantity)
        if quantity < 1:
            errors[f'{prefix}.quantity'] = ['Quantity must be at least 1.']
    except (TypeError, ValueError):
        errors[f'{prefix}.quantity'] = ['Quantity must be a whole number.']

    unit_amount = raw.get('unit_amount', raw.get('amount'))
    unit_amount = _parse_amount(unit_amount, f'{prefix}.unit_amount', errors, strictly_positive=False,
                                currency=currency)

    if errors:
        return None, errors
    return ServiceLine(description=description, quantity=quantity, unit_amount=unit_amount), errors


def validate_terms(receipt_type: str, fields: Dict, currency: Optional[str] = None) -> ReceiptTerms:
    """
    Validates the type specific fields of a receipt and builds its terms.

    Parameters
    ----------
    receipt_type: str
        One of VALID_RECEIPT_TYPES.
    fields: dict
        Raw type specific fields. Keys outside TYPE_FIELDS are not inspected. Keys inside TYPE_FIELDS with a None
        value are treated as not supplied.
    currency: str
        Optional receipt currency. When given, every amount is rounded half up to its precision so the headline
        total can always be settled by payments in that currency.

    Returns
    -------
    ItemTerms or CommitmentTerms or FinalTerms or OneTimeTerms
        The terms variant matching receipt_type.

    Raises
    ------
    InvalidFieldsForType
        If a field belonging to a different receipt type is supplied, or a required field is missing or violates its
        numeric constraint. All field errors are reported together.
    """
    rule = get_type_rule(receipt_type)
    if currency not in VALID_CURRENCIES:
        currency = None
    supplied = {k: v for k, v in fields.items() if k in TYPE_FIELDS and v is not None}
    errors: Dict[str, List[str]] = dict()

    for k in supplied:
        if k not in rule.required_fields:
            errors.setdefault(k, []).append(f'{k} does not apply to {receipt_type} receipts.')

    if receipt_type == RECEIPT_TYPE_ITEM:
        services = supplied.get(FIELD_SERVICES)
        lines = list()
        if not services:
            errors.setdefault(FIELD_SERVICES, []).append('At least one service line is required.')
        else:
            for idx, raw in enumerate(services):
                if isinstance(raw, ServiceLine):
                    lines.append(raw)
                    continue
                line, line_errors = _parse_service_line(raw, idx, currency)
                errors.update(line_errors)
                if line:
                    lines.append(line)
        if errors:
            raise InvalidFieldsForType(errors)
        return ItemTerms(services=tuple(lines))

    if receipt_type == RECEIPT_TYPE_COMMITMENT:
        fee = _parse_amount(supplied.get(FIELD_COMMITMENT_FEE_PAID), FIELD_COMMITMENT_FEE_PAID, errors, False,
                            currency)
        total = _parse_amount(supplied.get(FIELD_TOTAL_MOVING_AMOUNT), FIELD_TOTAL_MOVING_AMOUNT, errors, True,
                              currency)
        if errors:
            raise InvalidFieldsForType(errors)
        return CommitmentTerms(commitment_fee_paid=fee, total_moving_amount=total)

    if receipt_type == RECEIPT_TYPE_FINAL:
        fee = _parse_amount(supplied.get(FIELD_COMMITMENT_FEE_PAID), FIELD_COMMITMENT_FEE_PAID, errors, False,
                            currency)
        final = _parse_amount(supplied.get(FIELD_FINAL_PAYMENT_RECEIVED), FIELD_FINAL_PAYMENT_RECEIVED, errors, False,
                              currency)
        if errors:
            raise InvalidFieldsForType(errors)
        return FinalTerms(commitment_fee_paid=fee, final_payment_received=final)

    total = _parse_amount(supplied.get(FIELD_TOTAL_MOVING_AMOUNT), FIELD_TOTAL_MOVING_AMOUNT, errors, True, currency)
    if errors:
        raise InvalidFieldsForType(errors)
    return OneTimeTerms(total_moving_amount=total)


def validate_locations(receipt_type: str, locations: Optional[Dict]) -> Optional[Dict]:
    """
    Locations only apply to moving receipts. Item receipts reject any non-empty location data.
    Returns the normalized locations or None when no location data was supplied.
    """
    rule = get_type_rule(receipt_type)
    if not locations or not any(locations.get(k) for k in ('from', 'to', 'moving_date')):
        return None
    if not rule.uses_locations:
        raise InvalidFieldsForType({
            'locations': [f'locations do not apply to {receipt_type} receipts.']
        })
    return {
        'from': locations.get('from') or None,
        'to': locations.get('to') or None,
        'moving_date': locations.get('moving_date') or None,
    }


def terms_from_dict(receipt_type: str, data: Dict, currency: Optional[str] = None) -> ReceiptTerms:
    """Rebuilds stored terms. Stored terms were validated on write, so they go through the same validator."""
    return validate_terms(receipt_type, data or dict(), currency=currency)
