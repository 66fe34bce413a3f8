"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
Miguel Sanda <msanda@arrobalytics.com>
"""

from django_movedocs.models.mixins import *
from django_movedocs.models.sequence import *
from django_movedocs.models.payment import *
from django_movedocs.models.version import *
from django_movedocs.models.receipt import *
from django_movedocs.models.notification import *
