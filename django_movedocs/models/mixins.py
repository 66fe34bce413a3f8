"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
    * Miguel Sanda <msanda@arrobalytics.com>

This module implements the different model MixIns used on different Django MoveDocs Models to implement common
functionality.
"""
import logging

from django.conf import settings
from django.db import models
from django.utils.encoding import force_str
from django.utils.translation import gettext_lazy as _
from markdown import markdown

logging.basicConfig(format='%(asctime)s %(message)s', datefmt='%m/%d/%Y %I:%M:%S %p')


class CreateUpdateMixIn(models.Model):
    """
    Implements a created and an updated field to a base Django Model.

    Attributes
    ----------
    created: datetime
        A created timestamp. Defaults to now().
    updated: str
        An updated timestamp used to identify when models are updated.
    """
    created = models.DateTimeField(auto_now_add=True)
    updated = models.DateTimeField(auto_now=True, null=True, blank=True)

    class Meta:
        abstract = True


class ClientInfoMixIn(models.Model):
    """
    Implements the set of fields used to document the client a document is issued to.

    Attributes
    ----------
    client_name: str
        The client full name. Mandatory. Max length is 150.
    client_phone: str
        The client phone number. Mandatory.
    client_email: str
        The client email. Uses django's EmailField for validation. Optional.
    client_address: str
        The client address. Optional.
    client_gender: str
        The client gender, if disclosed. Optional.
    """
    CLIENT_FIELDS = ('name', 'phone', 'email', 'address', 'gender')

    client_name = models.CharField(max_length=150, verbose_name=_('Client Name'))
    client_phone = models.CharField(max_length=30, verbose_name=_('Client Phone Number'))
    client_email = models.EmailField(null=True, blank=True, verbose_name=_('Client Email'))
    client_address = models.CharField(max_length=255, null=True, blank=True, verbose_name=_('Client Address'))
    client_gender = models.CharField(max_length=20, null=True, blank=True, verbose_name=_('Client Gender'))

    class Meta:
        abstract = True

    def get_client_dict(self) -> dict:
        return {f: getattr(self, f'client_{f}') for f in self.CLIENT_FIELDS}

    @classmethod
    def clean_client(cls, client, base: dict = None):
        """
        Merges client data over an existing client and validates the result. Nothing is mutated.

        Parameters
        ----------
        client: dict
            Client fields to set. Keys must be among CLIENT_FIELDS.
        base: dict
            Current client fields, as returned by get_client_dict().

        Returns
        -------
        tuple
            The merged client values keyed by model attribute name, and a dict of field errors.
        """
        if not isinstance(client, dict):
            return dict(), {'client': ['Client must be a mapping.']}
        errors = {f'client.{k}': ['Unknown client field.'] for k in sorted(set(client) - set(cls.CLIENT_FIELDS))}
        merged = dict(base or dict())
        for f in cls.CLIENT_FIELDS:
            if f in client:
                value = client[f]
                merged[f] = (value.strip() or None) if isinstance(value, str) else value
        if not merged.get('name'):
            errors['client.name'] = ['Client name is required.']
        if not merged.get('phone'):
            errors['client.phone'] = ['Client phone is required.']
        return {f'client_{f}': merged.get(f) for f in cls.CLIENT_FIELDS}, errors


class MarkdownNotesMixIn(models.Model):
    """
    Implements functionality used to add a Mark-Down notes to a base Django Model.

    Attributes
    ----------
    markdown_notes: str
        A string of text representing the mark-down document.
    """
    markdown_notes = models.TextField(blank=True, null=True, verbose_name=_('Markdown Notes'))

    class Meta:
        abstract = True

    def notes_html(self):
        """
        Compiles the markdown_notes field into html.

        Returns
        -------
        str
            Compiled HTML document as a string.
        """
        if not self.markdown_notes:
            return ''
        return markdown(force_str(self.markdown_notes))


class LoggingMixIn:
    """
    Implements functionality used to add logging capabilities to any python class.
    Useful for production and or testing environments.
    """
    LOGGER_NAME_ATTRIBUTE = None
    LOGGER_BYPASS_DEBUG = False

    def get_logger_name(self):
        if self.LOGGER_NAME_ATTRIBUTE is None:
            raise NotImplementedError(f'{self.__class__.__name__} must define LOGGER_NAME_ATTRIBUTE of implement '
                                      'get_logger_name() function.')
        return getattr(self, self.LOGGER_NAME_ATTRIBUTE)

    def get_logger(self) -> logging.Logger:
        name = self.get_logger_name()
        return logging.getLogger(name)

    def send_log(self, msg, level, force=False):
        if self.LOGGER_BYPASS_DEBUG or settings.DEBUG or force:
            logger = self.get_logger()
            logger.log(msg=msg, level=level)
