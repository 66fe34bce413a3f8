"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
Miguel Sanda <msanda@arrobalytics.com>
"""

from django import template

from django_movedocs import __version__
from django_movedocs.io.money import format_currency
from django_movedocs.settings import DJANGO_MOVEDOCS_DEFAULT_CURRENCY

register = template.Library()


@register.simple_tag(name='current_version')
def current_version():
    return __version__


@register.filter(name='currency_format')
def currency_format(value, currency: str = None):
    if value is None or value == '':
        return ''
    return format_currency(value, currency or DJANGO_MOVEDOCS_DEFAULT_CURRENCY)


@register.filter(name='percentage')
def percentage(value):
    if value is not None:
        return '{0:,.2f}%'.format(value)

