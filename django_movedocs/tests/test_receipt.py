import re
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.utils.timezone import localdate

from django_movedocs.exceptions import (
    AmountNotPositive, ConcurrentModification, ExceedsBalance, ValidationFailed,
)
from django_movedocs.models import ReceiptModel, PaymentEventModel, ReceiptVersionModel
from django_movedocs.models.receipt import ReceiptModelValidationError
from django_movedocs.tests.base import MoveDocsBaseTest


class ReceiptModelTest(MoveDocsBaseTest):

    def test_configure(self):
        receipt_model = self.create_receipt()
        self.assertFalse(receipt_model._state.adding)
        self.assertEqual(receipt_model.version, 1)
        self.assertEqual(receipt_model.revision, 0)
        self.assertEqual(receipt_model.amount_paid, Decimal('0'))
        self.assertEqual(receipt_model.total_amount, Decimal('500000'))
        self.assertEqual(receipt_model.get_payment_status(), 'pending')
        self.assertEqual(receipt_model.versions.count(), 0)
        self.assertEqual(receipt_model.payment_history.count(), 0)
        self.assertTrue(
            re.match(rf'^RCT-{localdate().year}-\d{{6}}$', receipt_model.receipt_number),
            msg=f'Unexpected receipt number {receipt_model.receipt_number}'
        )

    def test_receipt_numbers_are_sequential(self):
        first = self.create_receipt()
        second = self.create_receipt(receipt_type=ReceiptModel.RECEIPT_TYPE_ITEM)
        self.assertEqual(int(second.receipt_number.split('-')[-1]), int(first.receipt_number.split('-')[-1]) + 1)

    def test_configure_type_specific_totals(self):
        item = self.create_receipt(receipt_type=ReceiptModel.RECEIPT_TYPE_ITEM)
        self.assertEqual(item.total_amount, Decimal('250000'))
        self.assertEqual(len(item.get_services()), 2)
        self.assertIsNone(item.get_locations_dict())

        commitment = self.create_receipt(receipt_type=ReceiptModel.RECEIPT_TYPE_COMMITMENT)
        self.assertEqual(commitment.total_amount, Decimal('1000000'))
        self.assertEqual(commitment.get_balance_due(), Decimal('700000'))

        final = self.create_receipt(receipt_type=ReceiptModel.RECEIPT_TYPE_FINAL)
        self.assertEqual(final.get_grand_total(), Decimal('1000000'))
        self.assertEqual(final.get_locations_dict()['from'], 'Kampala')

    def test_configure_validation(self):
        with self.assertRaises(ValidationFailed) as ctx:
            self.create_receipt(client={'name': '', 'phone': '0700', 'email': 'not-an-email'})
        errors = ctx.exception.message_dict
        self.assertIn('client.name', errors)
        self.assertIn('client.email', errors)

        with self.assertRaises(ValidationFailed) as ctx:
            self.create_receipt(receipt_type=ReceiptModel.RECEIPT_TYPE_ITEM,
                                locations={'from': 'Kampala', 'to': 'Gulu'})
        self.assertIn('locations', ctx.exception.message_dict)

        with self.assertRaises(ValidationFailed) as ctx:
            self.create_receipt(type_fields={'total_moving_amount': 500000, 'services': [{'description': 'x'}]})
        self.assertIn('services', ctx.exception.message_dict)

        with self.assertRaises(ValidationFailed) as ctx:
            self.create_receipt(currency='EUR', date_due='tomorrow')
        self.assertIn('currency', ctx.exception.message_dict)
        self.assertIn('date_due', ctx.exception.message_dict)

        self.assertFalse(ReceiptModel.objects.exists())

    def test_configure_twice(self):
        receipt_model = self.create_receipt()
        with self.assertRaises(ReceiptModelValidationError):
            receipt_model.configure(receipt_type='one_time',
                                    client=self.get_client_data(),
                                    user_model=self.user_model,
                                    type_fields={'total_moving_amount': 1})

    def test_payments(self):
        receipt_model = self.create_receipt()

        receipt_model.add_payment(amount=200000, method='cash', user_model=self.user_model, commit=True)
        self.assertEqual(receipt_model.get_payment_status(), 'partial')
        self.assertEqual(receipt_model.balance, Decimal('300000'))
        self.assertTrue(receipt_model.is_partial())

        receipt_model.add_payment(amount='300000', method='mobile_money', user_model=self.user_model,
                                  reference='MM-1', commit=True)
        self.assertEqual(receipt_model.get_payment_status(), 'paid')
        self.assertEqual(receipt_model.balance, Decimal('0'))
        self.assertTrue(receipt_model.is_paid())
        self.assertFalse(receipt_model.can_pay())

        with self.assertRaises(ExceedsBalance):
            receipt_model.add_payment(amount=1, method='cash', user_model=self.user_model, commit=True)

        receipt_model = ReceiptModel.objects.get(uuid=receipt_model.uuid)
        self.assertEqual(receipt_model.amount_paid, Decimal('500000'))
        self.assertEqual(receipt_model.revision, 2)
        self.assertEqual(receipt_model.version, 1)
        self.assertEqual(
            list(receipt_model.payment_history.values_list('amount', flat=True)),
            [Decimal('200000'), Decimal('300000')]
        )
        self.assertTrue(receipt_model.validate_ledger())
        self.assertEqual(receipt_model.payment_progress(), 100.0)

    def test_rejected_payment_leaves_ledger_unchanged(self):
        receipt_model = self.create_receipt()
        receipt_model.add_payment(amount=100000, method='cash', user_model=self.user_model, commit=True)

        for amount in (0, -5, 400001):
            with self.assertRaises((AmountNotPositive, ExceedsBalance)):
                receipt_model.add_payment(amount=amount, method='cash', user_model=self.user_model, commit=True)

        with self.assertRaises(ValidationFailed):
            receipt_model.add_payment(amount=10, method='cheque', user_model=self.user_model, commit=True)

        self.assertEqual(receipt_model.amount_paid, Decimal('100000'))
        self.assertEqual(PaymentEventModel.objects.for_receipt(receipt_model).count(), 1)
        self.assertTrue(receipt_model.validate_ledger())

    def test_payment_amount_rounds_to_currency(self):
        receipt_model = self.create_receipt(type_fields={'total_moving_amount': '100.00'}, currency='USD')
        payment_model = receipt_model.add_payment(amount=33.335, method='bank_transfer',
                                                  user_model=self.user_model, commit=True)
        self.assertEqual(payment_model.amount, Decimal('33.34'))
        self.assertEqual(receipt_model.balance, Decimal('66.66'))

    def test_concurrent_payments(self):
        receipt_model = self.create_receipt()
        first = ReceiptModel.objects.get(uuid=receipt_model.uuid)
        second = ReceiptModel.objects.get(uuid=receipt_model.uuid)

        first.add_payment(amount=400000, method='cash', user_model=self.user_model, commit=True)
        with self.assertRaises(ConcurrentModification):
            second.add_payment(amount=400000, method='cash', user_model=self.other_user_model, commit=True)

        self.assertEqual(second.amount_paid, Decimal('0'))
        refreshed = ReceiptModel.objects.get(uuid=receipt_model.uuid)
        self.assertEqual(refreshed.amount_paid, Decimal('400000'))
        self.assertEqual(refreshed.payment_history.count(), 1)

        with self.assertRaises(ExceedsBalance):
            refreshed.add_payment(amount=400000, method='cash', user_model=self.other_user_model, commit=True)

    def test_concurrent_edit_and_payment(self):
        receipt_model = self.create_receipt()
        editor = ReceiptModel.objects.get(uuid=receipt_model.uuid)

        receipt_model.add_payment(amount=1000, method='cash', user_model=self.user_model, commit=True)
        with self.assertRaises(ConcurrentModification):
            editor.update(changes={'notes': 'Changed'}, user_model=self.user_model, commit=True)

        self.assertIsNone(editor.markdown_notes)
        self.assertEqual(editor.version, 1)
        self.assertFalse(ReceiptVersionModel.objects.exists())

    def test_update(self):
        receipt_model = self.create_receipt()

        version_model = receipt_model.update(
            changes={'client': {'phone': '+256 777 000000'}, 'total_moving_amount': 600000},
            user_model=self.staff_user_model,
            reason='Client called.',
            commit=True
        )
        self.assertIsNotNone(version_model)
        self.assertEqual(version_model.version_number, 2)
        self.assertEqual(receipt_model.version, 2)
        self.assertEqual(receipt_model.total_amount, Decimal('600000'))
        self.assertEqual(receipt_model.client_name, 'Jane Doe')
        self.assertEqual(version_model.get_changed_fields(), ['client.phone', 'total_amount', 'total_moving_amount'])
        self.assertEqual(version_model.changes['total_moving_amount'], {'from': '500000', 'to': '600000'})

        stored = ReceiptModel.objects.get(uuid=receipt_model.uuid)
        self.assertEqual(stored.version, 2)
        self.assertEqual(stored.versions.count(), 1)
        self.assertEqual(stored.versions.get().reason, 'Client called.')

    def test_update_without_changes(self):
        receipt_model = self.create_receipt()
        self.assertIsNone(receipt_model.update(changes={}, user_model=self.user_model, commit=True))
        self.assertIsNone(
            receipt_model.update(changes={'total_moving_amount': '500000.00', 'client': {'name': 'Jane Doe'}},
                                 user_model=self.user_model,
                                 commit=True)
        )
        self.assertEqual(receipt_model.version, 1)
        self.assertEqual(receipt_model.revision, 0)
        self.assertFalse(receipt_model.versions.exists())

    def test_update_versions_increment_by_one(self):
        receipt_model = self.create_receipt()
        for i, notes in enumerate(['First', 'Second', 'Third'], start=2):
            receipt_model.update(changes={'notes': notes}, user_model=self.user_model, commit=True)
            self.assertEqual(receipt_model.version, i)
        self.assertEqual(list(receipt_model.versions.values_list('version_number', flat=True)), [2, 3, 4])

    def test_update_receipt_type(self):
        receipt_model = self.create_receipt()

        with self.assertRaises(ValidationFailed) as ctx:
            receipt_model.update(changes={'receipt_type': 'item'}, user_model=self.user_model, commit=True)
        self.assertIn('services', ctx.exception.message_dict)
        self.assertEqual(receipt_model.receipt_type, 'one_time')

        version_model = receipt_model.update(
            changes={
                'receipt_type': 'item',
                'services': [{'description': 'Packing', 'quantity': 4, 'unit_amount': 25000}]
            },
            user_model=self.user_model,
            commit=True
        )
        self.assertEqual(receipt_model.receipt_type, 'item')
        self.assertEqual(receipt_model.total_amount, Decimal('100000'))
        self.assertIsNone(receipt_model.location_from)
        self.assertIn('receipt_type', version_model.changes)
        self.assertIn('locations.from', version_model.changes)

    def test_update_rejects_unknown_fields(self):
        receipt_model = self.create_receipt()
        with self.assertRaises(ValidationFailed) as ctx:
            receipt_model.update(changes={'amount_paid': 500000, 'version': 9}, user_model=self.user_model)
        self.assertEqual(set(ctx.exception.message_dict), {'amount_paid', 'version'})

    def test_update_without_commit(self):
        receipt_model = self.create_receipt()
        version_model = receipt_model.update(changes={'notes': 'Draft'}, user_model=self.user_model)
        self.assertTrue(version_model._state.adding)
        self.assertEqual(receipt_model.version, 2)
        self.assertEqual(ReceiptModel.objects.get(uuid=receipt_model.uuid).version, 1)

    def test_overrides(self):
        refunded = self.create_receipt()
        refunded.add_payment(amount=500000, method='cash', user_model=self.user_model, commit=True)
        refunded.mark_as_refunded(commit=True)
        self.assertEqual(refunded.get_payment_status(), 'refunded')
        self.assertTrue(refunded.is_terminal())

        with self.assertRaises(ReceiptModelValidationError):
            refunded.mark_as_cancelled(commit=True)

        cancelled = self.create_receipt()
        cancelled.mark_as_cancelled(commit=True)
        stored = ReceiptModel.objects.get(uuid=cancelled.uuid)
        self.assertEqual(stored.get_payment_status(), 'cancelled')
        self.assertEqual(stored.date_status_override, localdate())

        with self.assertRaises(ReceiptModelValidationError):
            stored.add_payment(amount=10, method='cash', user_model=self.user_model, commit=True)
        with self.assertRaises(ReceiptModelValidationError):
            stored.update(changes={'notes': 'Too late'}, user_model=self.user_model, commit=True)
        self.assertFalse(stored.payment_history.exists())

    def test_overdue(self):
        receipt_model = self.create_receipt(date_due=localdate() - timedelta(days=5))
        self.assertTrue(receipt_model.is_overdue())
        self.assertEqual(receipt_model.days_overdue(), 5)
        self.assertTrue(receipt_model.is_pending())

        receipt_model.add_payment(amount=500000, method='cash', user_model=self.user_model, commit=True)
        self.assertFalse(receipt_model.is_overdue())
        self.assertEqual(receipt_model.days_overdue(), 0)

    def test_queryset_status_filters(self):
        pending = self.create_receipt()
        partial = self.create_receipt()
        partial.add_payment(amount=1000, method='cash', user_model=self.user_model, commit=True)
        paid = self.create_receipt()
        paid.add_payment(amount=500000, method='cash', user_model=self.user_model, commit=True)
        overdue = self.create_receipt(date_due=localdate() - timedelta(days=1))
        cancelled = self.create_receipt()
        cancelled.mark_as_cancelled(commit=True)

        receipt_qs = ReceiptModel.objects.all()
        self.assertEqual(set(receipt_qs.pending()), {pending, overdue})
        self.assertEqual(set(receipt_qs.partial()), {partial})
        self.assertEqual(set(receipt_qs.paid()), {paid})
        self.assertEqual(set(receipt_qs.overdue()), {overdue})
        self.assertEqual(set(receipt_qs.cancelled()), {cancelled})
        self.assertFalse(receipt_qs.refunded().exists())

    def test_for_user(self):
        own = self.create_receipt()
        other = self.create_receipt(user_model=self.other_user_model)
        self.assertEqual(list(ReceiptModel.objects.for_user(self.user_model)), [own])
        self.assertEqual(set(ReceiptModel.objects.for_user(self.staff_user_model)), {own, other})

    def test_validate_ledger(self):
        receipt_model = self.create_receipt()
        receipt_model.add_payment(amount=1000, method='cash', user_model=self.user_model, commit=True)
        ReceiptModel.objects.filter(uuid=receipt_model.uuid).update(amount_paid=5000)
        receipt_model.refresh_from_db()
        self.assertFalse(receipt_model.validate_ledger(raise_exception=False))
        with self.assertRaises(ReceiptModelValidationError):
            receipt_model.validate_ledger()

    def test_payment_events_are_immutable(self):
        receipt_model = self.create_receipt()
        payment_model = receipt_model.add_payment(amount=1000, method='cash', user_model=self.user_model,
                                                  commit=True)
        with self.assertRaises(ValidationError):
            payment_model.save()
        with self.assertRaises(ValidationError):
            payment_model.delete()

    def test_to_dict(self):
        receipt_model = self.create_receipt(receipt_type=ReceiptModel.RECEIPT_TYPE_COMMITMENT,
                                            notes='**Fragile** items.')
        receipt_model.add_payment(amount=100000, method='cash', user_model=self.user_model, commit=True)
        data = receipt_model.to_dict()
        self.assertEqual(data['receipt_type'], 'commitment')
        self.assertEqual(data['balance_due'], Decimal('700000'))
        self.assertEqual(data['payment']['status'], 'partial')
        self.assertEqual(len(data['payment']['payment_history']), 1)
        self.assertEqual(data['client']['name'], 'Jane Doe')
        self.assertEqual(data['locations']['to'], 'Entebbe')
        self.assertEqual(data['version'], 1)
        self.assertNotIn('services', data)
        self.assertIn('<strong>Fragile</strong>', receipt_model.notes_html())

    def test_amounts_round_to_currency(self):
        receipt_model = self.create_receipt(type_fields={'total_moving_amount': '1000.5'}, currency='UGX')
        self.assertEqual(receipt_model.total_amount, Decimal('1001'))
        self.assertEqual(receipt_model.get_terms().total_moving_amount, Decimal('1001'))

        receipt_model.add_payment(amount=1000, method='cash', user_model=self.user_model, commit=True)
        self.assertEqual(receipt_model.balance, Decimal('1'))
        receipt_model.add_payment(amount=receipt_model.balance, method='cash', user_model=self.user_model,
                                  commit=True)
        self.assertEqual(receipt_model.get_payment_status(), 'paid')

        item = self.create_receipt(receipt_type=ReceiptModel.RECEIPT_TYPE_ITEM,
                                   type_fields={
                                       'services': [{'description': 'Crates', 'quantity': 3, 'unit_amount': '10.005'}]
                                   },
                                   currency='USD')
        self.assertEqual(item.get_services()[0].unit_amount, Decimal('10.01'))
        self.assertEqual(item.total_amount, Decimal('30.03'))

        with self.assertRaises(ValidationFailed) as ctx:
            self.create_receipt(type_fields={'total_moving_amount': '0.4'}, currency='UGX')
        self.assertIn('total_moving_amount', ctx.exception.message_dict)

    def test_update_after_reload_without_changes(self):
        receipt_model = self.create_receipt(type_fields={'total_moving_amount': '100.005'}, currency='USD')
        stored = ReceiptModel.objects.get(uuid=receipt_model.uuid)
        self.assertEqual(stored.total_amount, Decimal('100.01'))
        self.assertEqual(stored.terms['total_moving_amount'], '100.01')

        self.assertIsNone(stored.update(changes={}, user_model=self.user_model, commit=True))
        self.assertEqual(stored.version, 1)
        self.assertFalse(stored.versions.exists())

    def test_currency_change_rounds_terms(self):
        receipt_model = self.create_receipt(type_fields={'total_moving_amount': '100.50'}, currency='USD')
        version_model = receipt_model.update(changes={'currency': 'UGX'}, user_model=self.user_model, commit=True)
        self.assertEqual(receipt_model.total_amount, Decimal('101'))
        self.assertEqual(version_model.changes['total_amount'], {'from': '100.5', 'to': '101'})
        self.assertEqual(version_model.changes['currency'], {'from': 'USD', 'to': 'UGX'})

        stored = ReceiptModel.objects.get(uuid=receipt_model.uuid)
        self.assertEqual(stored.total_amount, Decimal('101'))
        self.assertIsNone(stored.update(changes={}, user_model=self.user_model, commit=True))

    def test_uncommitted_payment_does_not_reach_the_ledger(self):
        receipt_model = self.create_receipt()
        payment_model = receipt_model.add_payment(amount=200000, method='cash', user_model=self.user_model)
        self.assertTrue(payment_model._state.adding)
        self.assertEqual(payment_model.amount, Decimal('200000'))
        self.assertEqual(receipt_model.amount_paid, Decimal('0'))

        # edits never write the ledger columns.
        receipt_model.amount_paid = Decimal('200000')
        receipt_model.update(changes={'notes': 'Call before delivery.'}, user_model=self.user_model, commit=True)

        stored = ReceiptModel.objects.get(uuid=receipt_model.uuid)
        self.assertEqual(stored.amount_paid, Decimal('0'))
        self.assertEqual(stored.markdown_notes, 'Call before delivery.')
        self.assertFalse(stored.payment_history.exists())
        self.assertTrue(stored.validate_ledger())

    def test_failed_payment_keeps_revision(self):
        receipt_model = self.create_receipt()
        with patch.object(PaymentEventModel, 'save', side_effect=IntegrityError('payment insert failed')):
            with self.assertRaises(IntegrityError):
                receipt_model.add_payment(amount=1000, method='cash', user_model=self.user_model, commit=True)

        self.assertEqual(receipt_model.revision, 0)
        self.assertEqual(receipt_model.amount_paid, Decimal('0'))
        stored = ReceiptModel.objects.get(uuid=receipt_model.uuid)
        self.assertEqual(stored.revision, 0)
        self.assertEqual(stored.amount_paid, Decimal('0'))

        receipt_model.add_payment(amount=1000, method='cash', user_model=self.user_model, commit=True)
        self.assertEqual(receipt_model.revision, 1)
        self.assertTrue(receipt_model.validate_ledger())

    def test_due_date_edit_clears_overdue(self):
        past_due = localdate() - timedelta(days=3)
        future_due = localdate() + timedelta(days=10)

        partial = self.create_receipt(date_due=past_due)
        partial.add_payment(amount=1000, method='cash', user_model=self.user_model, commit=True)
        self.assertEqual(partial.get_payment_status(), 'overdue')
        self.assertTrue(partial.is_partial())

        partial.update(changes={'date_due': future_due.isoformat()}, user_model=self.user_model, commit=True)
        self.assertEqual(partial.get_payment_status(), 'partial')
        stored = ReceiptModel.objects.get(uuid=partial.uuid)
        self.assertEqual(stored.date_due, future_due)
        self.assertEqual(stored.get_payment_status(), 'partial')
        self.assertFalse(stored.is_overdue())

        pending = self.create_receipt(date_due=past_due)
        self.assertEqual(pending.get_payment_status(), 'overdue')
        pending.update(changes={'date_due': future_due}, user_model=self.user_model, commit=True)
        self.assertEqual(ReceiptModel.objects.get(uuid=pending.uuid).get_payment_status(), 'pending')

    def test_concurrent_payments_of_full_balance(self):
        receipt_model = self.create_receipt()
        first = ReceiptModel.objects.get(uuid=receipt_model.uuid)
        second = ReceiptModel.objects.get(uuid=receipt_model.uuid)

        first.add_payment(amount=first.balance, method='cash', user_model=self.user_model, commit=True)
        with self.assertRaises(ConcurrentModification):
            second.add_payment(amount=second.balance, method='mobile_money', user_model=self.other_user_model,
                               commit=True)

        self.assertEqual(first.get_payment_status(), 'paid')
        refreshed = ReceiptModel.objects.get(uuid=receipt_model.uuid)
        self.assertEqual(refreshed.get_payment_status(), 'paid')
        self.assertEqual(refreshed.amount_paid, Decimal('500000'))
        self.assertEqual(refreshed.payment_history.count(), 1)
        self.assertFalse(refreshed.can_pay())

    def test_ledger_status_checks(self):
        receipt_model = self.create_receipt(date_due=localdate() - timedelta(days=1))
        self.assertTrue(receipt_model.is_pending())
        self.assertFalse(receipt_model.is_partial())

        receipt_model.add_payment(amount=1000, method='cash', user_model=self.user_model, commit=True)
        self.assertTrue(receipt_model.is_overdue())
        self.assertFalse(receipt_model.is_pending())
        self.assertTrue(receipt_model.is_partial())

        receipt_model.mark_as_refunded(commit=True)
        self.assertFalse(receipt_model.is_pending())
        self.assertFalse(receipt_model.is_partial())
        self.assertEqual(receipt_model.get_ledger_status(), 'refunded')

    def test_mark_as_delete(self):
        receipt_model = self.create_receipt()
        receipt_model.update(changes={'notes': 'Wrong client.'}, user_model=self.user_model, commit=True)
        self.assertTrue(receipt_model.can_delete())
        receipt_model.mark_as_delete(user_model=self.staff_user_model)
        self.assertFalse(ReceiptModel.objects.filter(receipt_number=receipt_model.receipt_number).exists())
        self.assertFalse(ReceiptVersionModel.objects.exists())

        paid = self.create_receipt()
        paid.add_payment(amount=1000, method='cash', user_model=self.user_model, commit=True)
        self.assertFalse(paid.can_delete())
        with self.assertRaises(ReceiptModelValidationError):
            paid.mark_as_delete(user_model=self.staff_user_model)
        self.assertEqual(paid.revision, 1)
        self.assertTrue(ReceiptModel.objects.filter(uuid=paid.uuid).exists())

    def test_mark_as_delete_stale(self):
        receipt_model = self.create_receipt()
        stale = ReceiptModel.objects.get(uuid=receipt_model.uuid)
        receipt_model.add_payment(amount=1000, method='cash', user_model=self.user_model, commit=True)
        with self.assertRaises(ConcurrentModification):
            stale.mark_as_delete(user_model=self.staff_user_model)
        self.assertEqual(PaymentEventModel.objects.for_receipt(receipt_model).count(), 1)

    def test_stats(self):
        pending = self.create_receipt()
        paid = self.create_receipt()
        paid.add_payment(amount=500000, method='cash', user_model=self.user_model, commit=True)
        partial = self.create_receipt(type_fields={'total_moving_amount': '100.00'}, currency='USD')
        partial.add_payment(amount=40, method='bank_transfer', user_model=self.user_model, commit=True)
        cancelled = self.create_receipt()
        cancelled.mark_as_cancelled(commit=True)

        stats = ReceiptModel.objects.all().get_stats(period='month')
        self.assertEqual(stats['count'], 4)
        self.assertEqual(stats['date_from'], localdate().replace(day=1))
        self.assertEqual(stats['by_type'], {'item': 0, 'commitment': 0, 'final': 0, 'one_time': 4})
        self.assertEqual(stats['by_status'], {
            'pending': 1, 'partial': 1, 'paid': 1, 'overdue': 0, 'refunded': 0, 'cancelled': 1
        })
        self.assertEqual(stats['by_currency']['UGX']['count'], 2)
        self.assertEqual(stats['by_currency']['UGX']['total_amount'], Decimal('1000000'))
        self.assertEqual(stats['by_currency']['UGX']['amount_paid'], Decimal('500000'))
        self.assertEqual(stats['by_currency']['UGX']['outstanding'], Decimal('500000'))
        self.assertEqual(stats['by_currency']['USD']['outstanding'], Decimal('60'))

        self.assertEqual(ReceiptModel.objects.all().get_stats()['count'], 4)
        self.assertIsNone(ReceiptModel.objects.all().get_stats()['date_from'])
        with self.assertRaises(ValidationFailed):
            ReceiptModel.objects.all().get_stats(period='decade')
