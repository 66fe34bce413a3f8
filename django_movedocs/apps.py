"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.
"""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class DjangoMoveDocsConfig(AppConfig):
    name = 'django_movedocs'
    label = 'django_movedocs'
    verbose_name = _('Django MoveDocs')
    default_auto_field = 'django.db.models.BigAutoField'
