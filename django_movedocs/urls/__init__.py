"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
Miguel Sanda <msanda@arrobalytics.com>
"""

from django.urls import path, include

app_name = 'django_movedocs'

urlpatterns = [
    path('receipt/', include('django_movedocs.urls.receipt')),
    path('notification/', include('django_movedocs.urls.notification')),
]
