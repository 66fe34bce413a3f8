"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.
"""
import logging

from django.conf import settings

logger = logging.getLogger('Django MoveDocs Logger')
logger.setLevel(logging.INFO)

try:
    from faker import __version__

    DJANGO_MOVEDOCS_SAMPLE_DATA_ENABLED = True
except ImportError:
    DJANGO_MOVEDOCS_SAMPLE_DATA_ENABLED = False

logger.info(f'Django MoveDocs Sample Data Enabled: {DJANGO_MOVEDOCS_SAMPLE_DATA_ENABLED}')

## DOCUMENT NUMBERS ##
DJANGO_MOVEDOCS_RECEIPT_NUMBER_PREFIX = getattr(settings, 'DJANGO_MOVEDOCS_RECEIPT_NUMBER_PREFIX', 'RCT')
DJANGO_MOVEDOCS_DOCUMENT_NUMBER_PADDING = getattr(settings, 'DJANGO_MOVEDOCS_DOCUMENT_NUMBER_PADDING', 6)

## MONEY ##
DJANGO_MOVEDOCS_DEFAULT_CURRENCY = getattr(settings, 'DJANGO_MOVEDOCS_DEFAULT_CURRENCY', 'UGX')

## NOTIFICATIONS ##
DJANGO_MOVEDOCS_NOTIFICATION_REVIEW_DAYS = getattr(settings, 'DJANGO_MOVEDOCS_NOTIFICATION_REVIEW_DAYS', 30)
DJANGO_MOVEDOCS_NOTIFICATION_MAX_EXTEND_DAYS = getattr(settings, 'DJANGO_MOVEDOCS_NOTIFICATION_MAX_EXTEND_DAYS', 365)
DJANGO_MOVEDOCS_NOTIFICATION_CLEANUP_DAYS = getattr(settings, 'DJANGO_MOVEDOCS_NOTIFICATION_CLEANUP_DAYS', 90)
DJANGO_MOVEDOCS_GROUP_SAMPLE_SIZE = getattr(settings, 'DJANGO_MOVEDOCS_GROUP_SAMPLE_SIZE', 3)
DJANGO_MOVEDOCS_HEALTH_LEVELS = getattr(settings, 'DJANGO_MOVEDOCS_HEALTH_LEVELS', {
    'excellent': 90,
    'good': 75,
    'warning': 50,
})
