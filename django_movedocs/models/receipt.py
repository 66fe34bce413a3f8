"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
    * Miguel Sanda <msanda@arrobalytics.com>

This module implements the ReceiptModel, the payment document a moving company issues to its clients. A receipt is
one of four kinds (item, commitment, final, one time), each with its own financial fields, validated by the receipt
type policy in :mod:`django_movedocs.io.receipt_policy`. On top of the type specific fields every receipt carries:

    1. A payment ledger. Payments are appended through add_payment() as PaymentEventModel records. The amount paid,
       balance and payment status are always derived from the ledger.
    2. A version history. Every edit through update() that changes at least one field appends a
       ReceiptVersionModel with the field level diff and increments the receipt version.

Receipt mutations are guarded by an optimistic concurrency token (revision). A committed mutation only succeeds if
the receipt was not modified since it was loaded, otherwise ConcurrentModification is raised and nothing changes.

Examples
________
>>> user_model = request.user  # django UserModel
>>> receipt_model = ReceiptModel()
>>> receipt_model.configure(receipt_type='one_time',
...                         client={'name': 'Jane Doe', 'phone': '+256700000000'},
...                         type_fields={'total_moving_amount': 500000},
...                         user_model=user_model,
...                         commit=True)
>>> receipt_model.add_payment(amount=200000, method='cash', user_model=user_model, commit=True)
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Optional, Union
from uuid import uuid4

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator, validate_email
from django.db import models, transaction
from django.db.models import Count, F, Q, Sum
from django.utils.dateparse import parse_date
from django.utils.timezone import localdate, now
from django.utils.translation import gettext_lazy as _

from django_movedocs.exceptions import (
    ConcurrentModification, InvalidFieldsForType, ValidationFailed,
)
from django_movedocs.io.ledger import (
    PAYMENT_METHOD_CHOICES, VALID_PAYMENT_METHODS, PAYMENT_STATUS_PENDING, PAYMENT_STATUS_PARTIAL, PAYMENT_STATUS_PAID,
    PAYMENT_STATUS_OVERDUE,
    PAYMENT_STATUS_REFUNDED, PAYMENT_STATUS_CANCELLED,
    OVERRIDE_STATUSES, apply_payment, compute_balance, derive_status,
)
from django_movedocs.io.money import CURRENCY_CHOICES, VALID_CURRENCIES, format_currency, quantize_money
from django_movedocs.io.receipt_policy import (
    RECEIPT_TYPE_CHOICES, RECEIPT_TYPE_ITEM, RECEIPT_TYPE_COMMITMENT, RECEIPT_TYPE_FINAL, RECEIPT_TYPE_ONE_TIME,
    VALID_RECEIPT_TYPES, TYPE_FIELDS, ReceiptTerms, get_type_rule, terms_from_dict, validate_locations,
    validate_terms,
)
from django_movedocs.io.versioning import diff_snapshots, normalize_value
from django_movedocs.models.mixins import CreateUpdateMixIn, ClientInfoMixIn, MarkdownNotesMixIn, LoggingMixIn
from django_movedocs.models.utils import lazy_loader
from django_movedocs.settings import (
    DJANGO_MOVEDOCS_RECEIPT_NUMBER_PREFIX, DJANGO_MOVEDOCS_DOCUMENT_NUMBER_PADDING, DJANGO_MOVEDOCS_DEFAULT_CURRENCY,
)


STATS_PERIOD_WEEK = 'week'
STATS_PERIOD_MONTH = 'month'
STATS_PERIOD_YEAR = 'year'
STATS_PERIODS = (STATS_PERIOD_WEEK, STATS_PERIOD_MONTH, STATS_PERIOD_YEAR)


class ReceiptModelValidationError(ValidationError):
    pass


class ReceiptModelQuerySet(models.QuerySet):
    """
    A custom defined QuerySet for the ReceiptModel. Status filters mirror the ledger derived payment status, so
    pending(), partial() and paid() never include receipts with an administrative override.
    """

    def for_user(self, user_model):
        if user_model.is_superuser or user_model.is_staff:
            return self
        return self.filter(created_by=user_model)

    def of_type(self, receipt_type: str):
        return self.filter(receipt_type__exact=receipt_type)

    def not_overridden(self):
        return self.filter(status_override__isnull=True)

    def pending(self):
        return self.not_overridden().filter(amount_paid__lte=0)

    def partial(self):
        return self.not_overridden().filter(amount_paid__gt=0, amount_paid__lt=F('total_amount'))

    def paid(self):
        return self.not_overridden().filter(amount_paid__gt=0, amount_paid__gte=F('total_amount'))

    def unpaid(self):
        return self.not_overridden().filter(
            Q(amount_paid__lte=0) | Q(amount_paid__lt=F('total_amount'))
        )

    def overdue(self, as_of: Optional[date] = None):
        """
        Overdue receipts are pending or partially paid receipts which due date is in the past.
        """
        return self.unpaid().filter(date_due__lt=as_of or localdate())

    def refunded(self):
        return self.filter(status_override__exact=PAYMENT_STATUS_REFUNDED)

    def cancelled(self):
        return self.filter(status_override__exact=PAYMENT_STATUS_CANCELLED)

    def created_since(self, period: Optional[str] = None, as_of: Optional[date] = None):
        """
        Receipts created in the current calendar week, month or year.

        Parameters
        ----------
        period: str
            One of STATS_PERIODS. None means all receipts.
        as_of: date
            Reference date. Defaults to the local date.

        Returns
        -------
        tuple
            The filtered ReceiptModelQuerySet and the first date of the period, or None.
        """
        if period is None:
            return self, None
        as_of = as_of or localdate()
        if period == STATS_PERIOD_WEEK:
            date_from = as_of - timedelta(days=as_of.weekday())
        elif period == STATS_PERIOD_MONTH:
            date_from = as_of.replace(day=1)
        elif period == STATS_PERIOD_YEAR:
            date_from = as_of.replace(month=1, day=1)
        else:
            raise ValidationFailed({'period': [f'{period} is not a valid period. Choices are {STATS_PERIODS}.']})
        return self.filter(created__date__gte=date_from), date_from

    def get_stats(self, period: Optional[str] = None, as_of: Optional[date] = None) -> Dict:
        """
        Receipt statistics for the requested period. Amounts are never added across currencies.

        Returns
        -------
        dict
            Receipt count, counts per receipt type and payment status, and per currency totals (total amount,
            amount paid and outstanding balance).
        """
        as_of = as_of or localdate()
        receipt_qs, date_from = self.created_since(period=period, as_of=as_of)

        by_currency = {
            row['currency']: {
                'count': row['count'],
                'total_amount': row['total_amount'] or Decimal('0'),
                'amount_paid': row['amount_paid'] or Decimal('0'),
                'outstanding': Decimal('0'),
            } for row in receipt_qs.not_overridden().values('currency').annotate(
                count=Count('uuid'),
                total_amount=Sum('total_amount'),
                amount_paid=Sum('amount_paid')
            ).order_by('currency')
        }
        for row in receipt_qs.unpaid().values('currency').annotate(
                outstanding=Sum(F('total_amount') - F('amount_paid'))
        ).order_by('currency'):
            by_currency[row['currency']]['outstanding'] = row['outstanding'] or Decimal('0')

        by_type = {receipt_type: 0 for receipt_type in VALID_RECEIPT_TYPES}
        for row in receipt_qs.values('receipt_type').annotate(count=Count('uuid')).order_by('receipt_type'):
            by_type[row['receipt_type']] = row['count']

        return {
            'period': period,
            'date_from': date_from,
            'date_to': as_of,
            'count': receipt_qs.count(),
            'by_type': by_type,
            'by_status': {
                PAYMENT_STATUS_PENDING: receipt_qs.pending().count(),
                PAYMENT_STATUS_PARTIAL: receipt_qs.partial().count(),
                PAYMENT_STATUS_PAID: receipt_qs.paid().count(),
                PAYMENT_STATUS_OVERDUE: receipt_qs.overdue(as_of=as_of).count(),
                PAYMENT_STATUS_REFUNDED: receipt_qs.refunded().count(),
                PAYMENT_STATUS_CANCELLED: receipt_qs.cancelled().count(),
            },
            'by_currency': by_currency,
        }


class ReceiptModelManager(models.Manager):

    def for_user(self, user_model):
        return self.get_queryset().for_user(user_model=user_model)


class ReceiptModelAbstract(ClientInfoMixIn,
                           MarkdownNotesMixIn,
                           CreateUpdateMixIn,
                           LoggingMixIn):
    """
    This is the main abstract class which the ReceiptModel database will inherit from.
    The ReceiptModel inherits functionality from the following MixIns:

        1. :func:`ClientInfoMixIn <django_movedocs.models.mixins.ClientInfoMixIn>`
        2. :func:`MarkdownNotesMixIn <django_movedocs.models.mixins.MarkdownNotesMixIn>`
        3. :func:`CreateUpdateMixIn <django_movedocs.models.mixins.CreateUpdateMixIn>`

    Attributes
    __________

    uuid: UUID
        This is a unique primary key generated for the table. The default value of this field is uuid4().

    receipt_number: str
        Auto assigned number at creation by generate_receipt_number() function.
        Prefix be customized with DJANGO_MOVEDOCS_RECEIPT_NUMBER_PREFIX setting.
        Includes a reference to the year and a sequence number. Unique.

    receipt_type: str
        One of RECEIPT_TYPE_CHOICES. Determines which type specific fields are held in terms.

    terms: dict
        The type specific fields, as validated by the receipt type policy. Serialized as a JSON document.

    total_amount: Decimal
        The headline total of the receipt terms. The ledger is settled when amount_paid reaches this amount.

    amount_paid: Decimal
        Sum of all payment events. Only add_payment() changes this value.

    status_override: str
        Administrative terminal status (refunded or cancelled). Null while the status is ledger derived.

    version: int
        Starts at 1 and increments with every edit that appends a ReceiptVersionModel.

    revision: int
        Optimistic concurrency token. Incremented by every committed mutation.
    """

    RECEIPT_TYPE_ITEM = RECEIPT_TYPE_ITEM
    RECEIPT_TYPE_COMMITMENT = RECEIPT_TYPE_COMMITMENT
    RECEIPT_TYPE_FINAL = RECEIPT_TYPE_FINAL
    RECEIPT_TYPE_ONE_TIME = RECEIPT_TYPE_ONE_TIME

    MOVE_TYPE_INTERNATIONAL = 'international'
    MOVE_TYPE_RESIDENTIAL = 'residential'
    MOVE_TYPE_OFFICE = 'office'

    MOVE_TYPE_CHOICES = [
        (MOVE_TYPE_INTERNATIONAL, _('International')),
        (MOVE_TYPE_RESIDENTIAL, _('Residential')),
        (MOVE_TYPE_OFFICE, _('Office')),
    ]

    STATUS_OVERRIDE_CHOICES = [
        (PAYMENT_STATUS_REFUNDED, _('Refunded')),
        (PAYMENT_STATUS_CANCELLED, _('Cancelled')),
    ]

    SIGNATURE_FIELDS = ('received_by', 'received_by_title', 'client_name', 'signature_date')

    EDITABLE_FIELDS = (
        'receipt_type',
        'move_type',
        'client',
        'locations',
        'currency',
        'payment_method',
        'date_due',
        'signatures',
        'notes',
    ) + TYPE_FIELDS

    # model attribute -> key used in snapshots and version diffs.
    SNAPSHOT_LABELS = {
        'receipt_type': 'receipt_type',
        'move_type': 'move_type',
        'client_name': 'client.name',
        'client_phone': 'client.phone',
        'client_email': 'client.email',
        'client_address': 'client.address',
        'client_gender': 'client.gender',
        'location_from': 'locations.from',
        'location_to': 'locations.to',
        'moving_date': 'locations.moving_date',
        'total_amount': 'total_amount',
        'currency': 'currency',
        'payment_method': 'payment_method',
        'date_due': 'date_due',
        'signed_received_by': 'signatures.received_by',
        'signed_received_by_title': 'signatures.received_by_title',
        'signed_client_name': 'signatures.client_name',
        'signature_date': 'signatures.signature_date',
        'markdown_notes': 'notes',
    }

    LOGGER_NAME_ATTRIBUTE = 'LOGGER_NAME'
    LOGGER_NAME = 'django_movedocs.receipts'

    uuid = models.UUIDField(default=uuid4, editable=False, primary_key=True)
    receipt_number = models.CharField(max_length=30,
                                      unique=True,
                                      null=True,
                                      blank=True,
                                      editable=False,
                                      verbose_name=_('Receipt Number'))
    receipt_type = models.CharField(max_length=10, choices=RECEIPT_TYPE_CHOICES, verbose_name=_('Receipt Type'))
    move_type = models.CharField(max_length=15,
                                 choices=MOVE_TYPE_CHOICES,
                                 null=True,
                                 blank=True,
                                 verbose_name=_('Move Type'))

    location_from = models.CharField(max_length=255, null=True, blank=True, verbose_name=_('Moving From'))
    location_to = models.CharField(max_length=255, null=True, blank=True, verbose_name=_('Moving To'))
    moving_date = models.DateField(null=True, blank=True, verbose_name=_('Moving Date'))

    terms = models.JSONField(encoder=DjangoJSONEncoder, default=dict, verbose_name=_('Receipt Terms'))

    currency = models.CharField(max_length=3,
                                choices=CURRENCY_CHOICES,
                                default=DJANGO_MOVEDOCS_DEFAULT_CURRENCY,
                                verbose_name=_('Currency'))
    payment_method = models.CharField(max_length=20,
                                      choices=PAYMENT_METHOD_CHOICES,
                                      null=True,
                                      blank=True,
                                      verbose_name=_('Payment Method'))
    date_due = models.DateField(null=True, blank=True, verbose_name=_('Due Date'))
    total_amount = models.DecimalField(default=0,
                                       max_digits=20,
                                       decimal_places=2,
                                       validators=[MinValueValidator(limit_value=0)],
                                       verbose_name=_('Total Amount'))
    amount_paid = models.DecimalField(default=0,
                                      max_digits=20,
                                      decimal_places=2,
                                      editable=False,
                                      validators=[MinValueValidator(limit_value=0)],
                                      verbose_name=_('Amount Paid'))
    status_override = models.CharField(max_length=10,
                                       choices=STATUS_OVERRIDE_CHOICES,
                                       null=True,
                                       blank=True,
                                       editable=False,
                                       verbose_name=_('Status Override'))
    date_status_override = models.DateField(null=True, blank=True, editable=False,
                                            verbose_name=_('Status Override Date'))

    signed_received_by = models.CharField(max_length=150, null=True, blank=True, verbose_name=_('Received By'))
    signed_received_by_title = models.CharField(max_length=150, null=True, blank=True,
                                                verbose_name=_('Received By Title'))
    signed_client_name = models.CharField(max_length=150, null=True, blank=True,
                                          verbose_name=_('Client Signature Name'))
    signature_date = models.DateField(default=localdate, verbose_name=_('Signature Date'))

    version = models.PositiveIntegerField(default=1, editable=False, verbose_name=_('Version'))
    revision = models.PositiveIntegerField(default=0, editable=False, verbose_name=_('Revision'))

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL,
                                   on_delete=models.PROTECT,
                                   related_name='receipts_created',
                                   verbose_name=_('Created By'))

    objects = ReceiptModelManager.from_queryset(queryset_class=ReceiptModelQuerySet)()

    class Meta:
        abstract = True
        ordering = ['-created']
        verbose_name = _('Receipt')
        verbose_name_plural = _('Receipts')
        indexes = [
            models.Index(fields=['receipt_type'], name='dmd_receipt_type_idx'),
            models.Index(fields=['date_due'], name='dmd_receipt_date_due_idx'),
            models.Index(fields=['status_override'], name='dmd_receipt_override_idx'),
            models.Index(fields=['created_by'], name='dmd_receipt_created_by_idx'),
        ]

    def __str__(self):
        return f'Receipt: {self.receipt_number or self.uuid} | {self.get_receipt_type_display()}'

    # TERMS...
    def get_terms(self) -> ReceiptTerms:
        """
        The receipt type specific fields as a terms variant.

        Returns
        -------
        ItemTerms or CommitmentTerms or FinalTerms or OneTimeTerms
            Terms variant matching receipt_type.
        """
        return terms_from_dict(self.receipt_type, self.terms, currency=self.currency)

    def get_services(self):
        if self.receipt_type != RECEIPT_TYPE_ITEM:
            return list()
        return list(self.get_terms().services)

    def get_balance_due(self) -> Optional[Decimal]:
        if self.receipt_type != RECEIPT_TYPE_COMMITMENT:
            return None
        return self.get_terms().balance_due

    def get_grand_total(self) -> Optional[Decimal]:
        if self.receipt_type != RECEIPT_TYPE_FINAL:
            return None
        return self.get_terms().grand_total

    def uses_locations(self) -> bool:
        return get_type_rule(self.receipt_type).uses_locations

    def get_locations_dict(self) -> Optional[Dict]:
        if not any([self.location_from, self.location_to, self.moving_date]):
            return None
        return {
            'from': self.location_from,
            'to': self.location_to,
            'moving_date': self.moving_date,
        }

    def get_signatures_dict(self) -> Dict:
        return {
            'received_by': self.signed_received_by,
            'received_by_title': self.signed_received_by_title,
            'client_name': self.signed_client_name,
            'signature_date': self.signature_date,
        }

    # LEDGER...
    @property
    def balance(self) -> Decimal:
        return compute_balance(self.total_amount, self.amount_paid)

    def get_payment_status(self, as_of: Optional[date] = None) -> str:
        return derive_status(
            total_amount=self.total_amount,
            amount_paid=self.amount_paid,
            date_due=self.date_due,
            admin_override=self.status_override,
            as_of=as_of or localdate()
        )

    def get_ledger_status(self) -> str:
        """
        The payment status without the overdue projection: pending, partial, paid or the administrative override.
        """
        return derive_status(
            total_amount=self.total_amount,
            amount_paid=self.amount_paid,
            admin_override=self.status_override
        )

    def is_pending(self) -> bool:
        return self.get_ledger_status() == PAYMENT_STATUS_PENDING

    def is_partial(self) -> bool:
        return self.get_ledger_status() == PAYMENT_STATUS_PARTIAL

    def is_paid(self) -> bool:
        return self.get_payment_status() == PAYMENT_STATUS_PAID

    def is_overdue(self, as_of: Optional[date] = None) -> bool:
        return self.get_payment_status(as_of=as_of) == PAYMENT_STATUS_OVERDUE

    def is_refunded(self) -> bool:
        return self.status_override == PAYMENT_STATUS_REFUNDED

    def is_cancelled(self) -> bool:
        return self.status_override == PAYMENT_STATUS_CANCELLED

    def is_terminal(self) -> bool:
        return self.status_override in OVERRIDE_STATUSES

    def days_overdue(self, as_of: Optional[date] = None) -> int:
        as_of = as_of or localdate()
        if not self.is_overdue(as_of=as_of):
            return 0
        return (as_of - self.date_due).days

    def payment_progress(self) -> float:
        """
        Percentage of the total amount received so far, between 0 and 100.
        """
        if self.total_amount <= 0:
            return 100.0 if self.is_paid() else 0.0
        return float(min(Decimal('100'), round(self.amount_paid / self.total_amount * 100, 2)))

    def get_ledger_amount_paid(self) -> Decimal:
        agg = self.payment_history.aggregate(amount_paid=Sum('amount'))
        return agg['amount_paid'] or Decimal('0')

    def validate_ledger(self, raise_exception: bool = True) -> bool:
        """
        Verifies that amount_paid matches the sum of the payment history. Results in one DB query.

        Raises
        ------
        ReceiptModelValidationError
            If amount_paid and the ledger disagree and raise_exception is True.
        """
        ledger_paid = self.get_ledger_amount_paid()
        is_valid = ledger_paid == self.amount_paid
        if not is_valid and raise_exception:
            raise ReceiptModelValidationError(
                message=f'Receipt {self.receipt_number} amount paid {self.amount_paid} '
                        f'does not match ledger total {ledger_paid}.'
            )
        return is_valid

    # PERMISSIONS...
    def is_configured(self) -> bool:
        return all([
            self.receipt_type in VALID_RECEIPT_TYPES,
            self.created_by_id is not None,
        ])

    def can_pay(self) -> bool:
        return all([
            not self._state.adding,
            not self.is_terminal(),
            self.balance > 0
        ])

    def can_edit(self) -> bool:
        return not self.is_terminal()

    def can_refund(self) -> bool:
        return not self.is_terminal()

    def can_cancel(self) -> bool:
        return not self.is_terminal()

    def can_delete(self) -> bool:
        """
        A receipt can only be deleted while its payment ledger is empty. Receipts with payments must be refunded or
        cancelled instead. Results in one DB query.
        """
        return all([
            not self._state.adding,
            not self.payment_history.exists()
        ])

    def can_generate_receipt_number(self) -> bool:
        return all([
            self.is_configured(),
            not self.receipt_number
        ])

    # RECEIPT NUMBER...
    def generate_receipt_number(self, commit: bool = False) -> str:
        """
        Atomic Transaction. Generates the next ReceiptModel document number available.

        Parameters
        __________
        commit: bool
            Commits the generated number into the ReceiptModel.

        Returns
        _______
        str
            A String, representing the generated ReceiptModel instance Document Number.
        """
        if self.can_generate_receipt_number():
            DocumentSequenceModel = lazy_loader.get_document_sequence_model()
            year = localdate().year
            with transaction.atomic():
                state_model = None
                while not state_model:
                    state_model = DocumentSequenceModel.next_sequence(
                        key=DocumentSequenceModel.KEY_RECEIPT,
                        year=year,
                        raise_exception=False
                    )
                seq = str(state_model.sequence).zfill(DJANGO_MOVEDOCS_DOCUMENT_NUMBER_PADDING)
                self.receipt_number = f'{DJANGO_MOVEDOCS_RECEIPT_NUMBER_PREFIX}-{year}-{seq}'

                if commit:
                    self.save(update_fields=['receipt_number'])
        return self.receipt_number

    # VALUES & SNAPSHOTS...
    def get_values(self) -> Dict:
        values = {attr: getattr(self, attr) for attr in self.SNAPSHOT_LABELS}
        values['terms'] = self.terms
        return values

    @classmethod
    def build_snapshot(cls, values: Dict) -> Dict:
        snapshot = {label: values.get(attr) for attr, label in cls.SNAPSHOT_LABELS.items()}
        snapshot.update(values.get('terms') or dict())
        return normalize_value(snapshot)

    def get_snapshot(self) -> Dict:
        return self.build_snapshot(self.get_values())

    def _resolve_values(self, changes: Dict, base: Dict) -> Dict:
        """
        Merges a create or update command over base values and validates the result. Nothing is mutated.

        Parameters
        ----------
        changes: dict
            The command fields. Keys must be among EDITABLE_FIELDS.
        base: dict
            The values the command applies to, as returned by get_values().

        Returns
        -------
        dict
            The resulting model attribute values.

        Raises
        ------
        ValidationFailed
            With every field level error found.
        """
        errors = dict()
        values = dict(base)

        for k in sorted(set(changes) - set(self.EDITABLE_FIELDS)):
            errors[k] = [_('This field cannot be set.')]

        currency = changes.get('currency', base.get('currency'))
        if currency not in VALID_CURRENCIES:
            errors['currency'] = [f'Currency must be one of {VALID_CURRENCIES}.']
        values['currency'] = currency

        receipt_type = changes.get('receipt_type', base.get('receipt_type'))
        if receipt_type not in VALID_RECEIPT_TYPES:
            errors['receipt_type'] = [f'{receipt_type} is not a valid receipt type. Choices are {VALID_RECEIPT_TYPES}.']
        else:
            values['receipt_type'] = receipt_type
            supplied = {k: changes[k] for k in TYPE_FIELDS if k in changes}
            if receipt_type == base.get('receipt_type') and base.get('terms'):
                type_fields = {**base['terms'], **supplied}
            else:
                type_fields = supplied

            # amounts are rounded to the currency, a currency change re-rounds the stored terms.
            try:
                terms = validate_terms(receipt_type, type_fields, currency=currency)
                values['terms'] = normalize_value(terms.to_dict())
                values['total_amount'] = terms.headline_total()
            except InvalidFieldsForType as e:
                errors.update(e.message_dict)

            if 'locations' in changes:
                locations = changes['locations']
            elif get_type_rule(receipt_type).uses_locations:
                locations = {
                    'from': base.get('location_from'),
                    'to': base.get('location_to'),
                    'moving_date': base.get('moving_date'),
                }
            else:
                locations = None

            if locations is not None and not isinstance(locations, dict):
                errors['locations'] = ['Locations must be a mapping.']
            else:
                try:
                    locations = validate_locations(receipt_type, locations) or dict()
                    moving_date = self._parse_date(locations.get('moving_date'), 'locations.moving_date', errors)
                    values.update({
                        'location_from': locations.get('from'),
                        'location_to': locations.get('to'),
                        'moving_date': moving_date,
                    })
                except InvalidFieldsForType as e:
                    errors.update(e.message_dict)

        if 'client' in changes:
            base_client = {f: base.get(f'client_{f}') for f in self.CLIENT_FIELDS}
            client_values, client_errors = self.clean_client(changes['client'], base=base_client)
            errors.update(client_errors)
            if client_values.get('client_email'):
                try:
                    validate_email(client_values['client_email'])
                except ValidationError:
                    errors['client.email'] = ['Enter a valid email address.']
            values.update(client_values)

        if 'payment_method' in changes:
            if changes['payment_method'] and changes['payment_method'] not in VALID_PAYMENT_METHODS:
                errors['payment_method'] = [f'Payment method must be one of {VALID_PAYMENT_METHODS}.']
            values['payment_method'] = changes['payment_method'] or None

        if 'date_due' in changes:
            values['date_due'] = self._parse_date(changes['date_due'], 'date_due', errors)

        if 'move_type' in changes:
            valid_move_types = [c[0] for c in self.MOVE_TYPE_CHOICES]
            if changes['move_type'] and changes['move_type'] not in valid_move_types:
                errors['move_type'] = [f'Move type must be one of {valid_move_types}.']
            values['move_type'] = changes['move_type'] or None

        if 'signatures' in changes:
            signatures = changes['signatures'] or dict()
            if not isinstance(signatures, dict):
                errors['signatures'] = ['Signatures must be a mapping.']
            else:
                for k in sorted(set(signatures) - set(self.SIGNATURE_FIELDS)):
                    errors[f'signatures.{k}'] = ['Unknown signature field.']
                for k in ('received_by', 'received_by_title', 'client_name'):
                    if k in signatures:
                        values[f'signed_{k}'] = signatures[k] or None
                if signatures.get('signature_date'):
                    values['signature_date'] = self._parse_date(
                        signatures['signature_date'], 'signatures.signature_date', errors)

        if 'notes' in changes:
            values['markdown_notes'] = changes['notes'] or None

        if errors:
            raise ValidationFailed(errors)
        return values

    @staticmethod
    def _parse_date(value, field_name: str, errors: Dict) -> Optional[date]:
        if value in (None, ''):
            return None
        if isinstance(value, date):
            return value
        try:
            parsed = parse_date(value)
        except (TypeError, ValueError):
            parsed = None
        if not parsed:
            errors[field_name] = [f'{value} is not a valid date.']
        return parsed

    def _apply_values(self, values: Dict):
        for attr, value in values.items():
            setattr(self, attr, value)

    def _claim_revision(self, **updates):
        """
        Conditionally increments the receipt revision in the DB. The update only matches if nobody else committed a
        mutation since this instance was loaded. Must run inside an atomic block.

        Raises
        ------
        ConcurrentModification
            If the receipt was modified concurrently. The caller must reload the receipt and retry.
        """
        rows = self.__class__.objects.filter(
            uuid__exact=self.uuid,
            revision=self.revision
        ).update(revision=F('revision') + 1, updated=now(), **updates)
        if not rows:
            raise ConcurrentModification(
                message=_('Receipt %s was modified concurrently. Reload and try again.') % self.receipt_number
            )
        self.revision += 1

    # COMMANDS...
    def configure(self,
                  receipt_type: str,
                  client: Dict,
                  user_model,
                  type_fields: Optional[Dict] = None,
                  currency: Optional[str] = None,
                  payment_method: Optional[str] = None,
                  date_due: Optional[Union[date, str]] = None,
                  locations: Optional[Dict] = None,
                  signatures: Optional[Dict] = None,
                  notes: Optional[str] = None,
                  move_type: Optional[str] = None,
                  commit: bool = False):
        """
        Configures a new ReceiptModel instance. The ledger starts empty and the receipt at version 1.

        Parameters
        __________
        receipt_type: str
            One of RECEIPT_TYPE_CHOICES.
        client: dict
            Client data: name and phone are mandatory, email, address and gender optional.
        user_model
            The UserModel creating the receipt.
        type_fields: dict
            The receipt type specific fields. See :func:`validate_terms
            <django_movedocs.io.receipt_policy.validate_terms>`.
        currency: str
            UGX or USD. Defaults to DJANGO_MOVEDOCS_DEFAULT_CURRENCY.
        payment_method: str
            Optional preferred payment method.
        date_due: date or str
            Optional due date, a date or ISO formatted string.
        locations: dict
            Optional from, to and moving_date. Not allowed on item receipts.
        signatures: dict
            Optional received_by, received_by_title, client_name and signature_date.
        notes: str
            Optional markdown notes.
        move_type: str
            Optional. One of MOVE_TYPE_CHOICES.
        commit: bool
            Saves the receipt, which assigns its receipt number.

        Returns
        _______
        ReceiptModel
            The configured ReceiptModel instance.

        Raises
        ______
        ValidationFailed
            With field level errors if any field violates the receipt type policy.
        """
        if not self._state.adding:
            raise ReceiptModelValidationError(message=_('Receipt is already configured.'))

        changes = {
            'receipt_type': receipt_type,
            'client': client,
            'currency': currency or DJANGO_MOVEDOCS_DEFAULT_CURRENCY,
            'payment_method': payment_method,
            'date_due': date_due,
            'locations': locations,
            'signatures': signatures or dict(),
            'notes': notes,
            'move_type': move_type,
        }
        changes.update(type_fields or dict())

        base = self.get_values()
        base['receipt_type'] = None
        base['terms'] = dict()
        values = self._resolve_values(changes, base=base)

        self._apply_values(values)
        self.amount_paid = Decimal('0')
        self.status_override = None
        self.version = 1
        self.revision = 0
        self.created_by = user_model

        if commit:
            self.save()
            self.send_log(msg=f'Receipt {self.receipt_number} created by {user_model}.', level=logging.INFO)
        return self

    def update(self, changes: Dict, user_model, reason: Optional[str] = None, commit: bool = False):
        """
        Edits the receipt. The merged result is validated against the policy of the (possibly new) receipt type.
        An edit that changes at least one field appends a ReceiptVersionModel with the field level diff and
        increments version by exactly 1. An edit that changes nothing is a no-op.

        Changing receipt_type discards the type specific fields of the previous type: the fields of the new type
        must be supplied with the change.

        Parameters
        __________
        changes: dict
            Fields to edit. Keys must be among EDITABLE_FIELDS. Client and signatures are merged, type specific
            fields are merged while the receipt type is unchanged.
        user_model
            The UserModel editing the receipt.
        reason: str
            Optional reason recorded on the version.
        commit: bool
            Commits the edit and its version into the DB. Defaults to False, in which case the returned version
            is unsaved.

        Returns
        _______
        ReceiptVersionModel or None
            The appended version, or None when the edit changes nothing.

        Raises
        ______
        ValidationFailed
            With field level errors if the merged receipt violates the receipt type policy.
        ConcurrentModification
            If commit is True and the receipt changed since it was loaded.
        """
        if not self.can_edit():
            raise ReceiptModelValidationError(
                message=_('Receipt %s is %s and cannot be edited.') % (self.receipt_number, self.status_override)
            )

        current = self.get_values()
        values = self._resolve_values(changes, base=current)
        diff = diff_snapshots(self.build_snapshot(current), self.build_snapshot(values))
        if not diff:
            return None

        ReceiptVersionModel = lazy_loader.get_receipt_version_model()
        version_model = ReceiptVersionModel(
            receipt_model=self,
            version_number=self.version + 1,
            edited_by=user_model,
            changes=diff,
            reason=reason
        )

        if not commit:
            self._apply_values(values)
            self.version += 1
            return version_model

        previous_revision = self.revision
        try:
            with transaction.atomic():
                self._claim_revision()
                self._apply_values(values)
                self.version += 1
                # ledger columns are owned by add_payment() and the status overrides.
                self.save(update_fields=list(values) + ['version', 'updated'])
                version_model.save()
        except Exception:
            self._apply_values(current)
            self.version = version_model.version_number - 1
            self.revision = previous_revision
            raise

        self.send_log(
            msg=f'Receipt {self.receipt_number} edited by {user_model} to version {self.version}: '
                f'{", ".join(diff.keys())}.',
            level=logging.INFO)
        return version_model

    def add_payment(self,
                    amount: Union[Decimal, int, float, str],
                    method: str,
                    user_model,
                    reference: Optional[str] = None,
                    notes: Optional[str] = None,
                    commit: bool = False):
        """
        Appends a payment event to the receipt ledger and recomputes amount paid, balance and status.
        This is the only way amount_paid changes.

        Parameters
        __________
        amount: Decimal
            The amount received. Must be greater than zero and not greater than the current balance.
        method: str
            One of PAYMENT_METHOD_CHOICES.
        user_model
            The UserModel recording the payment.
        reference: str
            Optional external payment reference.
        notes: str
            Optional notes.
        commit: bool
            Commits the payment event and the new amount paid into the DB. Defaults to False, in which case the
            payment is only validated: the returned payment event is unsaved and amount_paid is left untouched.

        Returns
        _______
        PaymentEventModel
            The appended payment event.

        Raises
        ______
        AmountNotPositive
            If amount is zero or negative.
        ExceedsBalance
            If amount is greater than the current balance.
        ConcurrentModification
            If commit is True and another mutation was committed since the receipt was loaded. The ledger is not
            changed and the caller should retry against the refreshed balance.
        """
        if self.is_terminal():
            raise ReceiptModelValidationError(
                message=_('Receipt %s is %s and cannot receive payments.') % (self.receipt_number,
                                                                              self.status_override)
            )
        if method not in VALID_PAYMENT_METHODS:
            raise ValidationFailed({'method': [f'Payment method must be one of {VALID_PAYMENT_METHODS}.']})

        amount = quantize_money(amount, self.currency)

        ledger_state = apply_payment(
            total_amount=self.total_amount,
            amount_paid=self.amount_paid,
            amount=amount,
            date_due=self.date_due,
            as_of=localdate()
        )

        PaymentEventModel = lazy_loader.get_payment_event_model()
        payment_model = PaymentEventModel(
            receipt_model=self,
            amount=ledger_state.amount_paid - self.amount_paid,
            method=method,
            reference=reference,
            received_by=user_model,
            notes=notes
        )

        if commit:
            previous_revision = self.revision
            try:
                with transaction.atomic():
                    self._claim_revision(amount_paid=ledger_state.amount_paid)
                    payment_model.save()
            except Exception:
                self.revision = previous_revision
                raise

            self.amount_paid = ledger_state.amount_paid
            self.send_log(
                msg=f'Receipt {self.receipt_number} received {format_currency(payment_model.amount, self.currency)} '
                    f'via {method}. Status: {ledger_state.status}.',
                level=logging.INFO)
        return payment_model

    def _mark_override(self, status: str, override_date: Optional[date], commit: bool):
        override_date = override_date or localdate()
        if commit:
            with transaction.atomic():
                self._claim_revision(status_override=status, date_status_override=override_date)
        self.status_override = status
        self.date_status_override = override_date
        if commit:
            self.send_log(msg=f'Receipt {self.receipt_number} marked as {status}.', level=logging.WARNING)

    def mark_as_refunded(self, date_refunded: Optional[date] = None, commit: bool = False):
        """
        Marks the receipt as refunded. Refunded is terminal: the receipt accepts no further payments or edits.
        """
        if not self.can_refund():
            raise ReceiptModelValidationError(
                message=_('Receipt %s cannot be marked as refunded.') % self.receipt_number
            )
        self._mark_override(PAYMENT_STATUS_REFUNDED, date_refunded, commit)

    def mark_as_cancelled(self, date_cancelled: Optional[date] = None, commit: bool = False):
        """
        Marks the receipt as cancelled. Cancelled is terminal: the receipt accepts no further payments or edits.
        """
        if not self.can_cancel():
            raise ReceiptModelValidationError(
                message=_('Receipt %s cannot be marked as cancelled.') % self.receipt_number
            )
        self._mark_override(PAYMENT_STATUS_CANCELLED, date_cancelled, commit)

    def mark_as_delete(self, user_model=None, **kwargs):
        """
        Deletes the ReceiptModel and its version history from DB if possible. Raises exception if can_delete() is
        False.
        """
        receipt_number = self.receipt_number
        previous_revision = self.revision
        try:
            with transaction.atomic():
                # locks the row, a payment can no longer be appended concurrently.
                self._claim_revision()
                if not self.can_delete():
                    raise ReceiptModelValidationError(
                        message=_('Receipt %s has recorded payments and cannot be deleted. '
                                  'Refund or cancel it instead.') % receipt_number
                    )
                self.delete(**kwargs)
        except Exception:
            self.revision = previous_revision
            raise
        self.send_log(msg=f'Receipt {receipt_number} deleted by {user_model}.', level=logging.WARNING)

    # SERIALIZATION...
    def get_payment_dict(self, include_history: bool = True) -> Dict:
        payment = {
            'total_amount': self.total_amount,
            'amount_paid': self.amount_paid,
            'balance': self.balance,
            'currency': self.currency,
            'status': self.get_payment_status(),
            'method': self.payment_method,
            'date_due': self.date_due,
        }
        if include_history:
            payment['payment_history'] = [p.to_dict() for p in self.payment_history.select_related('received_by')]
        return payment

    def to_dict(self) -> Dict:
        data = {
            'uuid': str(self.uuid),
            'receipt_number': self.receipt_number,
            'receipt_type': self.receipt_type,
            'move_type': self.move_type,
            'client': self.get_client_dict(),
            'locations': self.get_locations_dict(),
            'payment': self.get_payment_dict(),
            'signatures': self.get_signatures_dict(),
            'notes': self.markdown_notes,
            'version': self.version,
            'versions': [v.to_dict() for v in self.versions.select_related('edited_by')],
            'created_by': {
                'id': self.created_by_id,
                'username': self.created_by.get_username() if self.created_by_id else None,
            },
            'created': self.created,
            'updated': self.updated,
            'is_overdue': self.is_overdue(),
            'days_overdue': self.days_overdue(),
        }
        data.update(self.get_terms().to_dict())
        if self.receipt_type == RECEIPT_TYPE_COMMITMENT:
            data['balance_due'] = self.get_balance_due()
        elif self.receipt_type == RECEIPT_TYPE_FINAL:
            data['grand_total'] = self.get_grand_total()
        return data

    def clean(self):
        if self.receipt_type not in VALID_RECEIPT_TYPES:
            raise ReceiptModelValidationError(message=_('Invalid receipt type %s.') % self.receipt_type)
        try:
            terms = self.get_terms()
        except InvalidFieldsForType as e:
            raise ValidationFailed(e.message_dict)
        if self.total_amount != terms.headline_total():
            self.total_amount = terms.headline_total()
        if self.amount_paid < 0:
            raise ReceiptModelValidationError(message=_('Amount paid cannot be negative.'))

    def save(self, **kwargs):
        """
        Save method for ReceiptModel. Results in a DB query if the receipt number has not been generated and the
        ReceiptModel is eligible to generate a receipt_number.
        """
        if self.can_generate_receipt_number():
            self.generate_receipt_number(commit=False)
        super(ReceiptModelAbstract, self).save(**kwargs)


class ReceiptModel(ReceiptModelAbstract):
    """
    Base ReceiptModel from Abstract.
    """
