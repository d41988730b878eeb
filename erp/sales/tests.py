"""
Comprehensive test suite for Sales module
Tests: document arithmetic, amount in words, invoices, payments, quotes and conversion
"""
from django.test import TestCase, SimpleTestCase
from rest_framework import status
from rest_framework.test import APIClient
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone
from erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from erp.core.exceptions import BusinessRuleError, InvalidStatusTransition
from erp.core.models import CompanySettings, AuditLog
from erp.sales.calculations import compute_totals, line_total, withholding_tax, money
from erp.sales.models import Invoice, Quote
from erp.sales.words import amount_to_french_words, integer_to_french


class CalculationTests(SimpleTestCase):
    """Test document arithmetic"""

    def test_line_total_includes_tva(self):
        self.assertEqual(line_total(Decimal('2'), Decimal('100'), Decimal('19')), Decimal('238.000'))
        self.assertEqual(line_total('3', '0.333', '0'), Decimal('0.999'))

    def test_compute_totals_without_extras(self):
        totals = compute_totals([
            {'quantity': Decimal('2'), 'unit_price': Decimal('100'), 'tva_rate': Decimal('19')},
        ])
        self.assertEqual(totals['subtotal'], Decimal('200.000'))
        self.assertEqual(totals['tva_amount'], Decimal('38.000'))
        self.assertEqual(totals['discount_amount'], Decimal('0.000'))
        self.assertEqual(totals['total'], Decimal('238.000'))

    def test_compute_totals_with_discount_fodec_and_timbre(self):
        """Test discount, FODEC and stamp duty are all applied"""
        totals = compute_totals([
            {'quantity': Decimal('2'), 'unit_price': Decimal('100'), 'tva_rate': Decimal('19')},
            {'quantity': Decimal('1'), 'unit_price': Decimal('50'), 'tva_rate': Decimal('7')},
        ], discount_percent=Decimal('10'), fodec_rate=Decimal('1'), timbre=Decimal('1'))
        self.assertEqual(totals['subtotal'], Decimal('250.000'))
        self.assertEqual(totals['discount_amount'], Decimal('25.000'))
        self.assertEqual(totals['tva_amount'], Decimal('37.350'))
        self.assertEqual(totals['fodec_amount'], Decimal('2.250'))
        self.assertEqual(totals['total'], Decimal('265.600'))

    def test_compute_totals_empty(self):
        self.assertEqual(compute_totals([])['total'], Decimal('0.000'))

    def test_withholding_tax_threshold(self):
        """Test the 1% withholding starts at 1000"""
        self.assertEqual(withholding_tax(Decimal('999.999')), Decimal('0.000'))
        self.assertEqual(withholding_tax(Decimal('1000')), Decimal('10.000'))
        self.assertEqual(withholding_tax(Decimal('2380.500')), Decimal('23.805'))

    def test_money_rounds_half_up(self):
        self.assertEqual(money('1.0005'), Decimal('1.001'))
        self.assertEqual(money(None), Decimal('0.000'))


class AmountInWordsTests(SimpleTestCase):
    """Test French amount spelling"""

    def test_zero_and_one(self):
        self.assertEqual(amount_to_french_words(Decimal('0')), 'Zéro dinar')
        self.assertEqual(amount_to_french_words(Decimal('1')), 'Un dinar')
        self.assertEqual(amount_to_french_words(Decimal('0.001')), 'Un millime')

    def test_dinars_and_millimes(self):
        self.assertEqual(
            amount_to_french_words(Decimal('1250.500')),
            'Mille deux cent cinquante dinars et cinq cents millimes'
        )

    def test_french_number_rules(self):
        self.assertEqual(integer_to_french(21), 'vingt et un')
        self.assertEqual(integer_to_french(71), 'soixante et onze')
        self.assertEqual(integer_to_french(80), 'quatre-vingts')
        self.assertEqual(integer_to_french(97), 'quatre-vingt-dix-sept')
        self.assertEqual(integer_to_french(200), 'deux cents')
        self.assertEqual(integer_to_french(200000), 'deux cent mille')
        self.assertEqual(integer_to_french(2000000), 'deux millions')


class InvoiceModelTests(TestCase):
    """Test Invoice model methods"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_totals_from_items(self):
        invoice = TestDataFactory.create_invoice(user=self.user)
        self.assertEqual(invoice.subtotal, Decimal('200.000'))
        self.assertEqual(invoice.tva_amount, Decimal('38.000'))
        self.assertEqual(invoice.total, Decimal('238.000'))
        self.assertEqual(invoice.items.first().total, Decimal('238.000'))

    def test_transitions(self):
        """Test the allowed status moves"""
        invoice = TestDataFactory.create_invoice(user=self.user)
        with self.assertRaises(InvalidStatusTransition):
            invoice.transition_to('paid')
        invoice.transition_to('validated')
        invoice.transition_to('paid')
        self.assertIsNotNone(invoice.paid_at)
        with self.assertRaises(InvalidStatusTransition):
            invoice.transition_to('cancelled')

    def test_unknown_status(self):
        invoice = TestDataFactory.create_invoice(user=self.user)
        with self.assertRaises(BusinessRuleError):
            invoice.transition_to('archived')

    def test_is_overdue(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        overdue = TestDataFactory.create_invoice(status='validated', due_date=yesterday)
        draft = TestDataFactory.create_invoice(status='draft', due_date=yesterday)
        self.assertTrue(overdue.is_overdue)
        self.assertFalse(draft.is_overdue)

    def test_partial_then_full_payment(self):
        """Test the invoice becomes paid once payments cover the total"""
        invoice = TestDataFactory.create_invoice(user=self.user, status='validated')
        invoice.add_payment(Decimal('100.000'), user=self.user)
        self.assertEqual(invoice.status, 'validated')
        self.assertEqual(invoice.get_balance_due(), Decimal('138.000'))

        invoice.add_payment(Decimal('138.000'), method='bank_transfer', user=self.user)
        self.assertEqual(invoice.status, 'paid')
        self.assertEqual(invoice.get_balance_due(), Decimal('0.000'))

    def test_overpayment_rejected(self):
        invoice = TestDataFactory.create_invoice(status='validated')
        with self.assertRaises(BusinessRuleError):
            invoice.add_payment(Decimal('238.001'))
        self.assertEqual(invoice.payments.count(), 0)

    def test_payment_on_draft_rejected(self):
        invoice = TestDataFactory.create_invoice(status='draft')
        with self.assertRaises(BusinessRuleError):
            invoice.add_payment(Decimal('10'))


class InvoiceAPITests(TestCase):
    """Test Invoice API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_client(name='Atelier Nour')
        self.product = TestDataFactory.create_product(
            name='DTF transfer A3', base_price=Decimal('12.500'), tva_rate=Decimal('19.00')
        )

    def _payload(self, **overrides):
        data = {
            'client': self.customer.id,
            'items': [
                {'description': 'T-shirt print', 'quantity': '2', 'unit_price': '100.000', 'tva_rate': '19.00'}
            ]
        }
        data.update(overrides)
        return data

    def test_create_invoice(self):
        """Test creating an invoice via API"""
        response = self.client.post('/api/v1/invoices/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['number'], 'FAC-00001')
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual(response.data['total'], '238.000')
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(response.data['amount_in_words'], 'Deux cent trente-huit dinars')
        self.assertTrue(AuditLog.objects.filter(model_name='Invoice', action='create').exists())

    def test_create_invoice_requires_items(self):
        """Test creating an invoice without items fails"""
        response = self.client.post('/api/v1/invoices/', {'client': self.customer.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

        response = self.client.post('/api/v1/invoices/', self._payload(items=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_invoice_rejects_invalid_lines(self):
        response = self.client.post('/api/v1/invoices/', self._payload(items=[
            {'description': 'Bad', 'quantity': '0', 'unit_price': '10'}
        ]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_line_defaults_from_product(self):
        """Test a product-only line takes its description, price and TVA"""
        response = self.client.post('/api/v1/invoices/', self._payload(items=[
            {'product': self.product.id, 'quantity': '4'}
        ]), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        item = response.data['items'][0]
        self.assertEqual(item['description'], 'DTF transfer A3')
        self.assertEqual(item['unit_price'], '12.500')
        self.assertEqual(response.data['subtotal'], '50.000')

    def test_company_defaults_applied(self):
        """Test FODEC and stamp duty defaults come from company settings"""
        settings_obj = CompanySettings.load()
        settings_obj.default_timbre = Decimal('1.000')
        settings_obj.save()
        response = self.client.post('/api/v1/invoices/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['timbre_amount'], '1.000')
        self.assertEqual(response.data['total'], '239.000')

    def test_supplied_number_advances_sequence(self):
        """Test a hand-typed number moves the sequence past it"""
        response = self.client.post('/api/v1/invoices/', self._payload(number='FAC-00010'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/invoices/', self._payload(), format='json')
        self.assertEqual(response.data['number'], 'FAC-00011')

    def test_duplicate_number_rejected(self):
        TestDataFactory.create_invoice(number='FAC-00042')
        response = self.client.post('/api/v1/invoices/', self._payload(number='FAC-00042'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('number', response.data)

    def test_due_date_before_issue_date_rejected(self):
        response = self.client.post('/api/v1/invoices/', self._payload(
            issue_date='2024-05-10', due_date='2024-05-01'
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('due_date', response.data)

    def test_update_draft_items(self):
        """Test replacing the items of a draft invoice recomputes totals"""
        invoice = TestDataFactory.create_invoice(user=self.user, client=self.customer)
        response = self.client.patch(f'/api/v1/invoices/{invoice.id}/', {
            'items': [{'description': 'Mug', 'quantity': '1', 'unit_price': '10.000', 'tva_rate': '0'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], '10.000')
        self.assertEqual(len(response.data['items']), 1)
        invoice.refresh_from_db()
        self.assertEqual(invoice.subtotal, Decimal('10.000'))
        self.assertEqual(invoice.tva_amount, Decimal('0.000'))

    def test_validated_invoice_items_locked(self):
        """Test items cannot change once the invoice is validated"""
        invoice = TestDataFactory.create_invoice(user=self.user, client=self.customer, status='validated')
        response = self.client.patch(f'/api/v1/invoices/{invoice.id}/', {
            'items': [{'description': 'Mug', 'quantity': '1', 'unit_price': '10.000'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/invoices/{invoice.id}/', {'notes': 'Delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_status_endpoint(self):
        """Test moving an invoice through its statuses"""
        invoice = TestDataFactory.create_invoice(user=self.user, client=self.customer)
        response = self.client.post(f'/api/v1/invoices/{invoice.id}/status/', {'status': 'validated'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'validated')

        response = self.client.post(f'/api/v1/invoices/{invoice.id}/status/', {'status': 'draft'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'status')

    def test_status_cannot_change_through_update(self):
        invoice = TestDataFactory.create_invoice(user=self.user, client=self.customer)
        response = self.client.patch(f'/api/v1/invoices/{invoice.id}/', {'status': 'validated'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_record_payments(self):
        """Test recording payments until the invoice is paid"""
        invoice = TestDataFactory.create_invoice(user=self.user, client=self.customer, status='validated')
        url = f'/api/v1/invoices/{invoice.id}/payments/'

        response = self.client.post(url, {'amount': '100.000', 'method': 'cash'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['invoice']['balance_due'], '138.000')

        response = self.client.post(url, {'amount': '500.000', 'method': 'cash'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'amount')

        response = self.client.post(url, {'amount': '138.000', 'method': 'check', 'reference': 'CHQ-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['invoice']['status'], 'paid')

        response = self.client.get(url)
        self.assertEqual(len(response.data), 2)

    def test_payment_amount_must_be_positive(self):
        invoice = TestDataFactory.create_invoice(status='validated')
        response = self.client.post(f'/api/v1/invoices/{invoice.id}/payments/', {'amount': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_rules(self):
        """Test only draft and cancelled invoices can be deleted"""
        validated = TestDataFactory.create_invoice(client=self.customer, status='validated')
        response = self.client.delete(f'/api/v1/invoices/{validated.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        draft = TestDataFactory.create_invoice(client=self.customer)
        response = self.client.delete(f'/api/v1/invoices/{draft.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Invoice.objects.filter(id=draft.id).exists())

    def test_list_filters(self):
        """Test filtering invoices by status, tag and overdue"""
        yesterday = timezone.localdate() - timedelta(days=1)
        TestDataFactory.create_invoice(client=self.customer, status='validated', due_date=yesterday, tags=['urgent'])
        TestDataFactory.create_invoice(client=self.customer, status='draft', tags=['vip'])
        TestDataFactory.create_invoice(client=self.customer, status='paid')

        response = self.client.get('/api/v1/invoices/', {'status': 'paid'})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/invoices/', {'tag': 'urgent'})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/invoices/', {'overdue': 'true'})
        self.assertEqual(response.data['count'], 1)
        self.assertTrue(response.data['results'][0]['is_overdue'])

    def test_public_verification(self):
        """Test anonymous verification by public token"""
        invoice = TestDataFactory.create_invoice(client=self.customer, status='validated')
        response = APIClient().get(f'/api/v1/invoices/verify/{invoice.public_token}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['number'], invoice.number)
        self.assertEqual(response.data['client_name'], 'Atelier Nour')
        self.assertNotIn('items', response.data)

    def test_public_verification_unknown_token(self):
        response = APIClient().get('/api/v1/invoices/verify/00000000-0000-0000-0000-000000000000/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class QuoteTests(TestCase):
    """Test Quote model and API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_client()

    def test_create_quote(self):
        """Test creating a quote via API"""
        response = self.client.post('/api/v1/quotes/', {
            'client': self.customer.id,
            'discount_percent': '10',
            'items': [{'description': 'Laser engraving', 'quantity': '5', 'unit_price': '20.000', 'tva_rate': '19'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['number'], 'DEV-00001')
        self.assertEqual(response.data['discount_amount'], '10.000')
        self.assertEqual(response.data['total'], '107.100')

    def test_discount_out_of_range(self):
        response = self.client.post('/api/v1/quotes/', {
            'client': self.customer.id,
            'discount_percent': '120',
            'items': [{'description': 'X', 'quantity': '1', 'unit_price': '1'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_changes(self):
        quote = TestDataFactory.create_quote(client=self.customer)
        response = self.client.post(f'/api/v1/quotes/{quote.id}/status/', {'status': 'sent'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post(f'/api/v1/quotes/{quote.id}/status/', {'status': 'converted'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_convert_quote(self):
        """Test converting a quote copies its lines into a draft invoice"""
        quote = TestDataFactory.create_quote(user=self.user, client=self.customer, status='accepted')
        response = self.client.post(f'/api/v1/quotes/{quote.id}/convert/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        invoice = Invoice.objects.get(id=response.data['invoice']['id'])
        self.assertEqual(invoice.status, 'draft')
        self.assertEqual(invoice.client, self.customer)
        self.assertEqual(invoice.source_quote, quote)
        self.assertEqual(invoice.items.count(), quote.items.count())
        self.assertEqual(invoice.total, quote.total)

        quote.refresh_from_db()
        self.assertEqual(quote.status, 'converted')
        self.assertEqual(quote.converted_invoice, invoice)

    def test_convert_twice_rejected(self):
        quote = TestDataFactory.create_quote(client=self.customer, status='accepted')
        quote.convert_to_invoice(user=self.user)
        response = self.client.post(f'/api/v1/quotes/{quote.id}/convert/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Invoice.objects.count(), 1)

    def test_only_accepted_quotes_convert(self):
        """Test draft and sent quotes cannot become invoices"""
        for quote_status in ('draft', 'sent'):
            quote = TestDataFactory.create_quote(client=self.customer, status=quote_status)
            response = self.client.post(f'/api/v1/quotes/{quote.id}/convert/')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(Quote.objects.get(id=quote.id).status, quote_status)
        self.assertEqual(Invoice.objects.count(), 0)

    def test_convert_rejected_quote(self):
        quote = TestDataFactory.create_quote(client=self.customer, status='rejected')
        with self.assertRaises(BusinessRuleError):
            quote.convert_to_invoice()

    def test_converted_quote_is_read_only(self):
        quote = TestDataFactory.create_quote(client=self.customer, status='accepted')
        quote.convert_to_invoice()
        response = self.client.patch(f'/api/v1/quotes/{quote.id}/', {'notes': 'late edit'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Quote.objects.get(id=quote.id).notes, '')
