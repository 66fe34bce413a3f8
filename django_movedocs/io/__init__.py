"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
Miguel Sanda <msanda@arrobalytics.com>
"""

from django_movedocs.io.money import *
from django_movedocs.io.receipt_policy import *
from django_movedocs.io.ledger import *
from django_movedocs.io.versioning import *
from django_movedocs.io.notifications import *
