from decimal import Decimal

from django.test import SimpleTestCase

from django_movedocs.exceptions import InvalidFieldsForType, ValidationFailed
from django_movedocs.io.receipt_policy import (
    CommitmentTerms, FinalTerms, ItemTerms, OneTimeTerms, ServiceLine,
    get_type_rule, recompute_service_totals, terms_from_dict, validate_locations, validate_terms,
)


class ReceiptTypePolicyTest(SimpleTestCase):

    def test_commitment_balance_due(self):
        terms = validate_terms('commitment', {'total_moving_amount': 1000000, 'commitment_fee_paid': 300000})
        self.assertIsInstance(terms, CommitmentTerms)
        self.assertEqual(terms.balance_due, Decimal('700000'))
        self.assertEqual(terms.headline_total(), Decimal('1000000'))

    def test_commitment_balance_due_is_not_clamped(self):
        terms = validate_terms('commitment', {'total_moving_amount': 100, 'commitment_fee_paid': 150})
        self.assertEqual(terms.balance_due, Decimal('-50'))

    def test_final_grand_total(self):
        terms = validate_terms('final', {'commitment_fee_paid': '300000', 'final_payment_received': '700000'})
        self.assertIsInstance(terms, FinalTerms)
        self.assertEqual(terms.grand_total, Decimal('1000000'))
        self.assertEqual(terms.headline_total(), terms.grand_total)

    def test_final_accepts_zero_amounts(self):
        terms = validate_terms('final', {'commitment_fee_paid': 0, 'final_payment_received': 0})
        self.assertEqual(terms.grand_total, Decimal('0'))

    def test_item_totals(self):
        terms = validate_terms('item', {
            'services': [
                {'description': 'Packing', 'quantity': 2, 'amount': 50000},
                {'description': 'Transport', 'quantity': 1, 'unit_amount': 150000},
            ]
        })
        self.assertIsInstance(terms, ItemTerms)
        self.assertEqual([s.line_total for s in terms.services], [Decimal('100000'), Decimal('150000')])
        self.assertEqual(terms.headline_total(), Decimal('250000'))

    def test_one_time_requires_positive_total(self):
        self.assertIsInstance(validate_terms('one_time', {'total_moving_amount': 1}), OneTimeTerms)
        with self.assertRaises(InvalidFieldsForType) as ctx:
            validate_terms('one_time', {'total_moving_amount': 0})
        self.assertIn('total_moving_amount', ctx.exception.message_dict)

    def test_missing_required_fields(self):
        with self.assertRaises(InvalidFieldsForType) as ctx:
            validate_terms('commitment', {})
        self.assertEqual(set(ctx.exception.message_dict), {'commitment_fee_paid', 'total_moving_amount'})

    def test_foreign_fields_rejected(self):
        with self.assertRaises(InvalidFieldsForType) as ctx:
            validate_terms('one_time', {'total_moving_amount': 500000, 'commitment_fee_paid': 100})
        self.assertEqual(set(ctx.exception.message_dict), {'commitment_fee_paid'})

    def test_none_fields_are_not_supplied(self):
        terms = validate_terms('one_time', {'total_moving_amount': 500000, 'services': None})
        self.assertEqual(terms.headline_total(), Decimal('500000'))

    def test_item_requires_services(self):
        with self.assertRaises(InvalidFieldsForType) as ctx:
            validate_terms('item', {'services': []})
        self.assertIn('services', ctx.exception.message_dict)

    def test_item_line_errors_are_reported_per_line(self):
        with self.assertRaises(InvalidFieldsForType) as ctx:
            validate_terms('item', {
                'services': [
                    {'description': 'Packing', 'quantity': 0, 'unit_amount': 10},
                    {'description': '', 'quantity': 1, 'unit_amount': -1},
                ]
            })
        errors = ctx.exception.message_dict
        self.assertIn('services[0].quantity', errors)
        self.assertIn('services[1].description', errors)
        self.assertIn('services[1].unit_amount', errors)

    def test_negative_fee_rejected(self):
        with self.assertRaises(InvalidFieldsForType) as ctx:
            validate_terms('final', {'commitment_fee_paid': -1, 'final_payment_received': 10})
        self.assertIn('commitment_fee_paid', ctx.exception.message_dict)

    def test_non_numeric_amount_rejected(self):
        with self.assertRaises(InvalidFieldsForType) as ctx:
            validate_terms('one_time', {'total_moving_amount': 'a lot'})
        self.assertIn('total_moving_amount', ctx.exception.message_dict)

    def test_unknown_type(self):
        with self.assertRaises(InvalidFieldsForType) as ctx:
            get_type_rule('quotation')
        self.assertIn('receipt_type', ctx.exception.message_dict)

    def test_invalid_fields_is_validation_failed(self):
        self.assertTrue(issubclass(InvalidFieldsForType, ValidationFailed))

    def test_recompute_service_totals(self):
        lines, total = recompute_service_totals([
            ServiceLine(description='Crating', quantity=3, unit_amount=Decimal('20000')),
            {'description': 'Loading', 'quantity': '2', 'unit_amount': '15000', 'line_total': '1'},
        ])
        self.assertEqual(lines[1].line_total, Decimal('30000'))
        self.assertEqual(total, Decimal('90000'))

        lines, total = recompute_service_totals([])
        self.assertEqual(lines, [])
        self.assertEqual(total, Decimal('0'))

    def test_locations(self):
        self.assertIsNone(validate_locations('item', None))
        self.assertIsNone(validate_locations('item', {'from': '', 'to': None}))
        with self.assertRaises(InvalidFieldsForType):
            validate_locations('item', {'from': 'Kampala'})
        self.assertEqual(
            validate_locations('one_time', {'from': 'Kampala', 'to': 'Jinja'}),
            {'from': 'Kampala', 'to': 'Jinja', 'moving_date': None}
        )

    def test_terms_round_trip_through_storage(self):
        terms = validate_terms('item', {'services': [{'description': 'Storage', 'quantity': 1, 'unit_amount': 5}]})
        self.assertEqual(terms_from_dict('item', terms.to_dict()), terms)

    def test_amounts_round_to_currency(self):
        terms = validate_terms('final', {'commitment_fee_paid': '300000.4', 'final_payment_received': '699999.5'},
                               currency='UGX')
        self.assertEqual(terms.commitment_fee_paid, Decimal('300000'))
        self.assertEqual(terms.final_payment_received, Decimal('700000'))
        self.assertEqual(terms.grand_total, Decimal('1000000'))

        terms = validate_terms('item', {
            'services': [{'description': 'Tape', 'quantity': 2, 'unit_amount': '1.245'}]
        }, currency='USD')
        self.assertEqual(terms.headline_total(), Decimal('2.50'))

        unrounded = validate_terms('one_time', {'total_moving_amount': '100.005'})
        self.assertEqual(unrounded.total_moving_amount, Decimal('100.005'))
        with self.assertRaises(InvalidFieldsForType):
            validate_terms('one_time', {'total_moving_amount': '0.004'}, currency='USD')
