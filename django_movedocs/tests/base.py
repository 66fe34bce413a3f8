from datetime import timedelta
from decimal import Decimal
from logging import getLogger, DEBUG
from random import randint

from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.test import TestCase
from django.test.client import Client
from django.utils.timezone import localdate, now

from django_movedocs.models import ReceiptModel, NotificationModel

UserModel = get_user_model()


class MoveDocsBaseTest(TestCase):
    CLIENT = None
    USER_EMAIL = None
    PASSWORD = None
    USERNAME = None
    STAFF_USERNAME = None
    OTHER_USERNAME = None
    user_model = None
    staff_user_model = None
    other_user_model = None
    logger = None

    @classmethod
    def setUpTestData(cls):

        cls.logger = getLogger(__name__)
        cls.logger.setLevel(level=DEBUG)

        cls.USERNAME: str = 'testuser'
        cls.STAFF_USERNAME: str = 'staffuser'
        cls.OTHER_USERNAME: str = 'otheruser'
        cls.PASSWORD: str = 'NeverUseThisPassword12345'
        cls.USER_EMAIL: str = 'testuser@djangomovedocs.com'

        cls.CLIENT = Client(enforce_csrf_checks=False)

        cls.user_model = cls.get_or_create_user(cls.USERNAME)
        cls.staff_user_model = cls.get_or_create_user(cls.STAFF_USERNAME, is_staff=True)
        cls.other_user_model = cls.get_or_create_user(cls.OTHER_USERNAME)

    @classmethod
    def get_or_create_user(cls, username: str, is_staff: bool = False):
        try:
            return UserModel.objects.get(username=username)
        except ObjectDoesNotExist:
            return UserModel.objects.create_user(
                username=username,
                password=cls.PASSWORD,
                email=f'{username}@djangomovedocs.com',
                is_staff=is_staff
            )

    def login_client(self, username: str = None):
        self.CLIENT.login(
            username=username or self.USERNAME,
            password=self.PASSWORD
        )

    def logout_client(self):
        self.CLIENT.logout()

    @staticmethod
    def get_client_data() -> dict:
        return {
            'name': 'Jane Doe',
            'phone': f'+256 700 {randint(100000, 999999)}',
            'email': 'jane.doe@example.com',
        }

    @staticmethod
    def get_type_fields(receipt_type: str) -> dict:
        if receipt_type == ReceiptModel.RECEIPT_TYPE_ITEM:
            return {
                'services': [
                    {'description': 'Packing', 'quantity': 2, 'unit_amount': 50000},
                    {'description': 'Transport', 'quantity': 1, 'unit_amount': 150000},
                ]
            }
        if receipt_type == ReceiptModel.RECEIPT_TYPE_COMMITMENT:
            return {
                'commitment_fee_paid': 300000,
                'total_moving_amount': 1000000
            }
        if receipt_type == ReceiptModel.RECEIPT_TYPE_FINAL:
            return {
                'commitment_fee_paid': 300000,
                'final_payment_received': 700000
            }
        return {
            'total_moving_amount': 500000
        }

    def create_receipt(self,
                       receipt_type: str = ReceiptModel.RECEIPT_TYPE_ONE_TIME,
                       user_model=None,
                       type_fields: dict = None,
                       **kwargs) -> ReceiptModel:
        if receipt_type != ReceiptModel.RECEIPT_TYPE_ITEM and 'locations' not in kwargs:
            kwargs['locations'] = {
                'from': 'Kampala',
                'to': 'Entebbe',
                'moving_date': localdate() + timedelta(days=7)
            }
        receipt_model = ReceiptModel()
        receipt_model.configure(
            receipt_type=receipt_type,
            client=kwargs.pop('client', self.get_client_data()),
            user_model=user_model or self.user_model,
            type_fields=type_fields or self.get_type_fields(receipt_type),
            commit=True,
            **kwargs
        )
        return receipt_model

    def create_notification(self, recipients, notification_type: str = 'document_created', **kwargs):
        return NotificationModel.objects.notify(
            notification_type=notification_type,
            title=kwargs.pop('title', 'Receipt created'),
            message=kwargs.pop('message', 'A new receipt was created.'),
            recipients=recipients,
            **kwargs
        )

    @staticmethod
    def set_created(notification_model, days_ago: int):
        created = now() - timedelta(days=days_ago)
        NotificationModel.objects.filter(uuid=notification_model.uuid).update(created=created)
        notification_model.created = created
        return notification_model

    @staticmethod
    def amount(value) -> Decimal:
        return Decimal(str(value))
