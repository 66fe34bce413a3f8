"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
Miguel Sanda <msanda@arrobalytics.com>

Every failure surfaced by the receipt and notification commands derives from Django's ValidationError, so
forms, the admin and the JSON views can report them with the same machinery.
"""

from django.core.exceptions import ValidationError


class ValidationFailed(ValidationError):
    """
    Field level validation failure. Always constructed with a dictionary mapping field names to error messages,
    available afterwards as ``message_dict``.
    """


class InvalidFieldsForType(ValidationFailed):
    pass


class AmountNotPositive(ValidationError):
    pass


class ExceedsBalance(ValidationError):
    pass


class InvalidDuration(ValidationError):
    pass


class ConcurrentModification(ValidationError):
    pass


class ConfirmationRequired(ValidationError):
    pass
