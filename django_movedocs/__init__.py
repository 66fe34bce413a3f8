"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.
"""

"""Django MoveDocs"""
__version__ = '0.1.0'
__license__ = 'GPLv3 License'

__author__ = 'Miguel Sanda'
__email__ = 'msanda@arrobalytics.com'
