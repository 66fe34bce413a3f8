from django_movedocs.models import ReceiptModel, NotificationModel
from django_movedocs.models.utils import lazy_loader
from django_movedocs.tests.base import MoveDocsBaseTest


class DataGeneratorTest(MoveDocsBaseTest):

    def test_populate(self):
        DataGenerator = lazy_loader.get_data_generator()
        data_generator = DataGenerator(
            user_model=self.staff_user_model,
            receipt_quantity=8,
            notification_quantity=6,
            recipients=[self.user_model, self.other_user_model]
        )
        data_generator.populate()

        self.assertEqual(ReceiptModel.objects.count(), 8)
        self.assertEqual(NotificationModel.objects.count(), 6)

        for receipt_model in ReceiptModel.objects.all():
            self.assertTrue(receipt_model.validate_ledger())
            self.assertLessEqual(receipt_model.amount_paid, receipt_model.total_amount)
            self.assertEqual(receipt_model.version, receipt_model.versions.count() + 1)

        for notification_model in NotificationModel.objects.all():
            self.assertEqual(notification_model.read, notification_model.is_read_by_all())
