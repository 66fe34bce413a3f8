"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

The ReceiptVersionModel is the audit trail of a receipt. One record is appended by every edit that changes at least
one field, holding the field level diff of the edit.
"""

from uuid import uuid4

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils.translation import gettext_lazy as _


class ReceiptVersionModelValidationError(ValidationError):
    pass


class ReceiptVersionModelAbstract(models.Model):
    uuid = models.UUIDField(default=uuid4, editable=False, primary_key=True)
    receipt_model = models.ForeignKey('django_movedocs.ReceiptModel',
                                      on_delete=models.CASCADE,
                                      editable=False,
                                      related_name='versions',
                                      verbose_name=_('Receipt'))
    version_number = models.PositiveIntegerField(verbose_name=_('Version Number'))
    edited_by = models.ForeignKey(settings.AUTH_USER_MODEL,
                                  on_delete=models.PROTECT,
                                  related_name='receipt_versions',
                                  verbose_name=_('Edited By'))
    edited_at = models.DateTimeField(auto_now_add=True, verbose_name=_('Edited At'))
    changes = models.JSONField(encoder=DjangoJSONEncoder, default=dict, verbose_name=_('Changes'))
    reason = models.TextField(null=True, blank=True, verbose_name=_('Reason'))

    class Meta:
        abstract = True
        ordering = ['version_number']
        verbose_name = _('Receipt Version')
        verbose_name_plural = _('Receipt Versions')
        unique_together = [
            ('receipt_model', 'version_number')
        ]

    def __str__(self):
        return f'{self.__class__.__name__}: v{self.version_number}'

    def save(self, **kwargs):
        if not self._state.adding:
            raise ReceiptVersionModelValidationError(
                message=_('Receipt versions are immutable once recorded.')
            )
        super().save(**kwargs)

    def delete(self, using=None, keep_parents=False):
        raise ReceiptVersionModelValidationError(
            message=_('Receipt versions cannot be deleted.')
        )

    def get_changed_fields(self):
        return sorted(self.changes.keys())

    def to_dict(self) -> dict:
        return {
            'version_number': self.version_number,
            'edited_by': {
                'id': self.edited_by_id,
                'username': self.edited_by.get_username() if self.edited_by_id else None,
            },
            'edited_at': self.edited_at,
            'changes': self.changes,
            'reason': self.reason,
        }


class ReceiptVersionModel(ReceiptVersionModelAbstract):
    """
    Base ReceiptVersionModel from Abstract.
    """
