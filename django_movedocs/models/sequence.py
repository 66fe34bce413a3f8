"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
    * Miguel Sanda <msanda@arrobalytics.com>

The DocumentSequenceModel keeps one counter per document kind and year. Document numbers are generated by locking the
counter row, so two documents never share a number.
"""

from uuid import uuid4

from django.core.exceptions import ObjectDoesNotExist
from django.core.validators import MinValueValidator
from django.db import models, transaction, IntegrityError
from django.db.models import F
from django.utils.translation import gettext_lazy as _


class DocumentSequenceModelAbstract(models.Model):
    KEY_RECEIPT = 'receipt'

    KEY_CHOICES = [
        (KEY_RECEIPT, _('Receipt')),
    ]

    uuid = models.UUIDField(default=uuid4, editable=False, primary_key=True)
    year = models.SmallIntegerField(
        verbose_name=_('Year'),
        validators=[MinValueValidator(limit_value=1900)]
    )
    key = models.CharField(choices=KEY_CHOICES, max_length=10)
    sequence = models.BigIntegerField(default=0, validators=[MinValueValidator(limit_value=0)])

    class Meta:
        abstract = True
        indexes = [
            models.Index(fields=['key'], name='dmd_sequence_key_idx'),
        ]
        unique_together = [
            ('year', 'key')
        ]

    def __str__(self):
        return f'{self.__class__.__name__}: YEAR: {self.year}, KEY: {self.get_key_display()}, SEQ: {self.sequence}'

    @classmethod
    def next_sequence(cls, key: str, year: int, raise_exception: bool = True):
        """
        Fetches and increments the counter for a key and year, creating it when missing.
        Must run inside an atomic block.

        Parameters
        ----------
        key: str
            One of the KEY_CHOICES.
        year: int
            The year the document number belongs to.
        raise_exception: bool
            Raises IntegrityError if the counter row could not be created because of a concurrent insert. Returns
            None otherwise, so the caller may retry.

        Returns
        -------
        DocumentSequenceModel
            The locked counter holding the newly assigned sequence.
        """
        try:
            state_model = cls.objects.select_for_update().get(key__exact=key, year=year)
            state_model.sequence = F('sequence') + 1
            state_model.save(update_fields=['sequence'])
            state_model.refresh_from_db()
            return state_model
        except ObjectDoesNotExist:
            try:
                with transaction.atomic():
                    return cls.objects.create(key=key, year=year, sequence=1)
            except IntegrityError as e:
                if raise_exception:
                    raise e


class DocumentSequenceModel(DocumentSequenceModelAbstract):
    """
    Document Sequence Model Base Class from Abstract.
    """
