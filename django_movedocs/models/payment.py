"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
    * Miguel Sanda <msanda@arrobalytics.com>

The PaymentEventModel records a single payment received against a receipt. Payment events make up the receipt
payment ledger: they are appended through :func:`ReceiptModel.add_payment
<django_movedocs.models.receipt.ReceiptModelAbstract.add_payment>` and are never changed or removed afterwards.
"""

from decimal import Decimal
from uuid import uuid4

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.timezone import now
from django.utils.translation import gettext_lazy as _

from django_movedocs.io.ledger import PAYMENT_METHOD_CHOICES


class PaymentEventModelValidationError(ValidationError):
    pass


class PaymentEventModelQuerySet(models.QuerySet):

    def for_receipt(self, receipt_model):
        return self.filter(receipt_model=receipt_model)

    def received_by(self, user_model):
        return self.filter(received_by=user_model)


class PaymentEventModelAbstract(models.Model):
    """
    Attributes
    ----------
    uuid: UUID
        Primary key. Defaults to uuid4().
    receipt_model: ReceiptModel
        The receipt this payment was received against.
    amount: Decimal
        The amount received. Always greater than zero.
    date_paid: datetime
        When the payment was received. Defaults to now().
    method: str
        How the payment was made. One of PAYMENT_METHOD_CHOICES.
    reference: str
        Optional external reference, e.g. a bank or mobile money transaction id.
    received_by: UserModel
        The user that recorded the payment.
    notes: str
        Optional free form notes.
    """
    uuid = models.UUIDField(default=uuid4, editable=False, primary_key=True)
    receipt_model = models.ForeignKey('django_movedocs.ReceiptModel',
                                      on_delete=models.CASCADE,
                                      editable=False,
                                      related_name='payment_history',
                                      verbose_name=_('Receipt'))
    amount = models.DecimalField(decimal_places=2,
                                 max_digits=20,
                                 validators=[MinValueValidator(limit_value=Decimal('0.01'))],
                                 verbose_name=_('Amount'))
    date_paid = models.DateTimeField(default=now, verbose_name=_('Date Paid'))
    method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, verbose_name=_('Payment Method'))
    reference = models.CharField(max_length=100, null=True, blank=True, verbose_name=_('Reference'))
    received_by = models.ForeignKey(settings.AUTH_USER_MODEL,
                                    on_delete=models.PROTECT,
                                    related_name='payments_received',
                                    verbose_name=_('Received By'))
    notes = models.TextField(null=True, blank=True, verbose_name=_('Notes'))
    created = models.DateTimeField(auto_now_add=True)

    objects = PaymentEventModelQuerySet.as_manager()

    class Meta:
        abstract = True
        ordering = ['date_paid', 'created']
        verbose_name = _('Payment Event')
        verbose_name_plural = _('Payment Events')
        indexes = [
            models.Index(fields=['receipt_model', 'date_paid'], name='dmd_payment_receipt_date_idx'),
            models.Index(fields=['received_by'], name='dmd_payment_received_by_idx'),
        ]

    def __str__(self):
        return f'{self.__class__.__name__}: {self.amount} ({self.get_method_display()})'

    def save(self, **kwargs):
        if not self._state.adding:
            raise PaymentEventModelValidationError(
                message=_('Payment events are immutable once recorded.')
            )
        super().save(**kwargs)

    def delete(self, using=None, keep_parents=False):
        raise PaymentEventModelValidationError(
            message=_('Payment events cannot be deleted.')
        )

    def to_dict(self) -> dict:
        return {
            'uuid': str(self.uuid),
            'amount': self.amount,
            'date_paid': self.date_paid,
            'method': self.method,
            'reference': self.reference,
            'received_by': {
                'id': self.received_by_id,
                'username': self.received_by.get_username() if self.received_by_id else None,
            },
            'notes': self.notes,
        }


class PaymentEventModel(PaymentEventModelAbstract):
    """
    Base PaymentEventModel from Abstract.
    """
