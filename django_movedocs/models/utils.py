"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
    * Miguel Sanda <msanda@arrobalytics.com>
"""

from django.apps import apps


class LazyLoader:
    """
    A class that provides lazy-loading functionality for the models in the django_movedocs app, so that model
    modules can reference each other without circular imports.

    Attributes:
        app_config (AppConfig): The AppConfig object for the django_movedocs app.

        RECEIPT_MODEL (str): The name of the receipt model.
        PAYMENT_EVENT_MODEL (str): The name of the payment event model.
        RECEIPT_VERSION_MODEL (str): The name of the receipt version model.
        DOCUMENT_SEQUENCE_MODEL (str): The name of the document sequence model.
        NOTIFICATION_MODEL (str): The name of the notification model.
        NOTIFICATION_READ_MODEL (str): The name of the notification read model.

        DATA_GENERATOR (MoveDocsDataGenerator): The class used for generating sample data.
    """

    app_config = apps.get_app_config(app_label='django_movedocs')

    RECEIPT_MODEL = 'receiptmodel'
    PAYMENT_EVENT_MODEL = 'paymenteventmodel'
    RECEIPT_VERSION_MODEL = 'receiptversionmodel'
    DOCUMENT_SEQUENCE_MODEL = 'documentsequencemodel'
    NOTIFICATION_MODEL = 'notificationmodel'
    NOTIFICATION_READ_MODEL = 'notificationreadmodel'

    DATA_GENERATOR = None

    def get_receipt_model(self):
        return self.app_config.get_model(self.RECEIPT_MODEL)

    def get_payment_event_model(self):
        return self.app_config.get_model(self.PAYMENT_EVENT_MODEL)

    def get_receipt_version_model(self):
        return self.app_config.get_model(self.RECEIPT_VERSION_MODEL)

    def get_document_sequence_model(self):
        return self.app_config.get_model(self.DOCUMENT_SEQUENCE_MODEL)

    def get_notification_model(self):
        return self.app_config.get_model(self.NOTIFICATION_MODEL)

    def get_notification_read_model(self):
        return self.app_config.get_model(self.NOTIFICATION_READ_MODEL)

    def get_data_generator(self):
        if not self.DATA_GENERATOR:
            from django_movedocs.io.data_generator import MoveDocsDataGenerator
            self.DATA_GENERATOR = MoveDocsDataGenerator
        return self.DATA_GENERATOR


lazy_loader = LazyLoader()
