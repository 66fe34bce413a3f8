"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
Miguel Sanda <msanda@arrobalytics.com>
"""

from datetime import timedelta
from decimal import Decimal
from random import randint, random, choice, sample
from typing import List

from django.core.exceptions import ImproperlyConfigured
from django.utils.timezone import localdate

from django_movedocs.io.ledger import VALID_PAYMENT_METHODS
from django_movedocs.io.money import CURRENCY_UGX, CURRENCY_USD, quantize_money
from django_movedocs.io.notifications import NOTIFICATION_TYPE_CHOICES, PRIORITY_CHOICES
from django_movedocs.io.receipt_policy import (
    RECEIPT_TYPE_ITEM, RECEIPT_TYPE_COMMITMENT, RECEIPT_TYPE_FINAL, RECEIPT_TYPE_ONE_TIME,
)
from django_movedocs.models import ReceiptModel, NotificationModel

try:
    from faker import Faker
    from faker.providers import address, person, phone_number, lorem

    FAKER_IMPORTED = True
except ImportError:
    FAKER_IMPORTED = False


class MoveDocsDataGenerator:
    """
    Populates the database with sample receipts and notifications. Receipts of every type are created with partial
    payment histories and some edits. Notifications are addressed to the given users with mixed read state.
    """

    SERVICES = [
        'Packing materials',
        'Packing labour',
        'Crating',
        'Loading',
        'Transport',
        'Unloading',
        'Storage',
        'Furniture assembly',
    ]

    NOTIFICATION_GROUPS = [
        None,
        'daily_digest',
        'receipts',
        'user_admin',
    ]

    def __init__(self,
                 user_model,
                 receipt_quantity: int = 20,
                 notification_quantity: int = 30,
                 recipients: List = None):

        assert receipt_quantity >= 0, 'Receipt quantity must be zero or greater'
        assert notification_quantity >= 0, 'Notification quantity must be zero or greater'

        if not FAKER_IMPORTED:
            raise ImproperlyConfigured('Must install Faker library to generate random data.')

        self.fk = Faker(['en_US'])
        self.fk.add_provider(address)
        self.fk.add_provider(person)
        self.fk.add_provider(phone_number)
        self.fk.add_provider(lorem)

        self.user_model = user_model
        self.recipients = recipients or [user_model]
        self.receipt_quantity = receipt_quantity
        self.notification_quantity = notification_quantity
        self.local_date = localdate()

        self.is_paid_probability = 0.3
        self.is_edited_probability = 0.2
        self.is_read_probability = 0.6

        self.receipt_models = list()
        self.notification_models = list()

    def populate(self):
        for i in range(self.receipt_quantity):
            self.create_receipt()
        for i in range(self.notification_quantity):
            self.create_notification()

    def get_client(self):
        return {
            'name': self.fk.name(),
            'phone': self.fk.phone_number(),
            'email': self.fk.email(),
            'address': self.fk.address().replace('\n', ', '),
            'gender': choice(['female', 'male', None]),
        }

    def get_locations(self):
        return {
            'from': self.fk.city(),
            'to': self.fk.city(),
            'moving_date': self.local_date + timedelta(days=randint(-30, 60)),
        }

    def get_amount(self, currency: str, low: int, high: int) -> Decimal:
        if currency == CURRENCY_USD:
            return quantize_money(Decimal(randint(low, high)), currency)
        return Decimal(randint(low, high) * 1000)

    def get_type_fields(self, receipt_type: str, currency: str):
        if receipt_type == RECEIPT_TYPE_ITEM:
            return {
                'services': [
                    {
                        'description': s,
                        'quantity': randint(1, 5),
                        'unit_amount': self.get_amount(currency, 20, 300)
                    } for s in sample(self.SERVICES, k=randint(1, 4))
                ]
            }
        if receipt_type == RECEIPT_TYPE_COMMITMENT:
            total = self.get_amount(currency, 500, 5000)
            return {
                'total_moving_amount': total,
                'commitment_fee_paid': quantize_money(total * Decimal('0.3'), currency)
            }
        if receipt_type == RECEIPT_TYPE_FINAL:
            return {
                'commitment_fee_paid': self.get_amount(currency, 100, 1500),
                'final_payment_received': self.get_amount(currency, 400, 3500)
            }
        return {
            'total_moving_amount': self.get_amount(currency, 300, 4000)
        }

    def create_receipt(self) -> ReceiptModel:
        receipt_type = choice([RECEIPT_TYPE_ITEM, RECEIPT_TYPE_COMMITMENT, RECEIPT_TYPE_FINAL, RECEIPT_TYPE_ONE_TIME])
        currency = CURRENCY_UGX if random() > 0.2 else CURRENCY_USD

        client = self.get_client()

        receipt_model = ReceiptModel()
        receipt_model.configure(
            receipt_type=receipt_type,
            client=client,
            user_model=self.user_model,
            type_fields=self.get_type_fields(receipt_type, currency),
            currency=currency,
            payment_method=choice(VALID_PAYMENT_METHODS),
            date_due=self.local_date + timedelta(days=randint(-20, 45)),
            locations=None if receipt_type == RECEIPT_TYPE_ITEM else self.get_locations(),
            signatures={
                'received_by': self.fk.name(),
                'received_by_title': 'Accounts',
                'client_name': client['name'],
            },
            notes=self.fk.paragraph() if random() > 0.5 else None,
            move_type=choice([c[0] for c in ReceiptModel.MOVE_TYPE_CHOICES]),
            commit=True
        )
        self.create_payments(receipt_model)

        if random() < self.is_edited_probability:
            receipt_model.update(
                changes={'notes': self.fk.paragraph()},
                user_model=self.user_model,
                reason='Updated notes.',
                commit=True
            )

        self.receipt_models.append(receipt_model)
        return receipt_model

    def create_payments(self, receipt_model: ReceiptModel):
        if random() < self.is_paid_probability:
            installments = 1
        else:
            installments = randint(0, 2)

        for i in range(installments):
            if not receipt_model.can_pay():
                break
            if i == installments - 1 and installments == 1:
                amount = receipt_model.balance
            else:
                amount = quantize_money(receipt_model.balance * Decimal(randint(20, 50)) / 100,
                                        receipt_model.currency)
            if amount <= 0:
                break
            receipt_model.add_payment(
                amount=amount,
                method=choice(VALID_PAYMENT_METHODS),
                user_model=self.user_model,
                reference=self.fk.bothify('TX-########'),
                commit=True
            )

    def create_notification(self) -> NotificationModel:
        notification_type = choice(NOTIFICATION_TYPE_CHOICES)[0]
        recipients = sample(self.recipients, k=randint(1, len(self.recipients)))

        notification_model = NotificationModel.objects.notify(
            notification_type=notification_type,
            title=self.fk.sentence(nb_words=5),
            message=self.fk.paragraph(),
            recipients=recipients,
            priority=choice(PRIORITY_CHOICES)[0],
            actor=self.user_model,
            notification_group=choice(self.NOTIFICATION_GROUPS)
        )

        for recipient in recipients:
            if random() < self.is_read_probability:
                notification_model.mark_read(recipient)

        self.notification_models.append(notification_model)
        return notification_model
