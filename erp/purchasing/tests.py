"""
Comprehensive test suite for Purchasing module
Tests: purchase orders, withholding tax, status changes, TEJ declaration exports
"""
import xml.etree.ElementTree as ET
from datetime import date
from decimal import Decimal

from django.test import TestCase, SimpleTestCase
from rest_framework import status
from erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from erp.core.exceptions import InvalidStatusTransition
from erp.core.models import CompanySettings, AuditLog
from erp.purchasing.exports import export_tej_csv, export_tej_xml, validate_company_for_tej
from erp.purchasing.models import PurchaseOrder


def _complete_company():
    company = CompanySettings.load()
    company.company_name = 'Print Atelier SARL'
    company.company_tax_id = '1234567A'
    company.company_email = 'contact@atelier.tn'
    company.company_phone = '71000000'
    company.save()
    return company


class PurchaseOrderModelTests(TestCase):
    """Test PurchaseOrder model methods"""

    def test_totals_and_withholding(self):
        """Test the 1% withholding applies from 1000 TND"""
        purchase_order = TestDataFactory.create_purchase_order()
        self.assertEqual(purchase_order.subtotal, Decimal('1000.000'))
        self.assertEqual(purchase_order.total, Decimal('1190.000'))
        self.assertEqual(purchase_order.retenue_source, Decimal('11.900'))
        self.assertEqual(purchase_order.net_to_pay, Decimal('1178.100'))

    def test_no_withholding_below_threshold(self):
        purchase_order = TestDataFactory.create_purchase_order(
            items=[('Ink cartridge', Decimal('1'), Decimal('500.000'), Decimal('19.00'))]
        )
        self.assertEqual(purchase_order.retenue_source, Decimal('0.000'))
        self.assertEqual(purchase_order.net_to_pay, purchase_order.total)

    def test_transitions(self):
        purchase_order = TestDataFactory.create_purchase_order(status='draft')
        purchase_order.transition_to('ordered')
        purchase_order.transition_to('received')
        self.assertEqual(purchase_order.status, 'received')
        with self.assertRaises(InvalidStatusTransition):
            purchase_order.transition_to('cancelled')


class PurchaseOrderAPITests(TestCase):
    """Test PurchaseOrder API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier(name='Film Distribution')

    def test_create_purchase_order(self):
        """Test creating a purchase order via API"""
        response = self.client.post('/api/v1/purchase-orders/', {
            'supplier': self.supplier.id,
            'order_date': '2024-03-15',
            'tags': 'films, urgent',
            'items': [
                {'description': 'DTF film 60cm', 'quantity': '4', 'unit_price': '300.000', 'tva_rate': '19'}
            ]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['number'], 'BC-00001')
        self.assertEqual(response.data['total'], '1428.000')
        self.assertEqual(response.data['retenue_source'], '14.280')
        self.assertEqual(response.data['net_to_pay'], '1413.720')
        self.assertEqual(response.data['tags'], ['films', 'urgent'])

    def test_create_requires_items(self):
        response = self.client.post('/api/v1/purchase-orders/', {'supplier': self.supplier.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_status_endpoint(self):
        """Test moving a purchase order through its statuses"""
        purchase_order = TestDataFactory.create_purchase_order(supplier=self.supplier, status='draft')
        url = f'/api/v1/purchase-orders/{purchase_order.id}/status/'
        response = self.client.post(url, {'status': 'received'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(url, {'status': 'ordered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(PurchaseOrder.objects.get(id=purchase_order.id).status, 'ordered')

    def test_update_items_recomputes_withholding(self):
        """Test replacing the lines of a draft order refreshes totals and withholding"""
        purchase_order = TestDataFactory.create_purchase_order(
            supplier=self.supplier, status='draft',
            items=[('Vinyl roll', Decimal('10'), Decimal('200.000'), Decimal('19.00'))]
        )
        self.assertEqual(purchase_order.retenue_source, Decimal('23.800'))

        response = self.client.patch(f'/api/v1/purchase-orders/{purchase_order.id}/', {
            'items': [{'description': 'Paper', 'quantity': '1', 'unit_price': '10.000', 'tva_rate': '0'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], '10.000')
        self.assertEqual(response.data['retenue_source'], '0.000')
        self.assertEqual(response.data['net_to_pay'], '10.000')

        purchase_order.refresh_from_db()
        self.assertEqual(purchase_order.subtotal, Decimal('10.000'))
        self.assertEqual(purchase_order.items.count(), 1)

    def test_filter_by_status(self):
        TestDataFactory.create_purchase_order(supplier=self.supplier, status='draft')
        TestDataFactory.create_purchase_order(supplier=self.supplier, status='received')
        response = self.client.get('/api/v1/purchase-orders/', {'status': 'received'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)


class TejExportFormatTests(SimpleTestCase):
    """Test TEJ file rendering"""

    rows = [{
        'number': 'BC-00001',
        'date': '2024-03-15',
        'supplier_name': 'Film & Co',
        'supplier_tax_id': '7654321B',
        'total': Decimal('1190.000'),
        'retenue_source': Decimal('11.900'),
    }]

    def test_csv(self):
        lines = export_tej_csv(self.rows).splitlines()
        self.assertEqual(lines[0], 'Numero,Date,Fournisseur,MF Fournisseur,Montant TTC,Retenue Source')
        self.assertEqual(lines[1], 'BC-00001,2024-03-15,Film & Co,7654321B,1190.000,11.900')

    def test_xml(self):
        content = export_tej_xml(self.rows)
        self.assertTrue(content.startswith('<?xml version="1.0" encoding="UTF-8"?>'))
        root = ET.fromstring(content.split('\n', 1)[1])
        purchase = root.find('Achats/Achat')
        self.assertEqual(purchase.find('Fournisseur').text, 'Film & Co')
        self.assertEqual(purchase.find('RetenueSource').text, '11.900')

    def test_company_validation(self):
        company = CompanySettings(company_name='', company_tax_id='12345', company_email='', company_phone='')
        errors = validate_company_for_tej(company)
        self.assertEqual(set(errors), {'company_name', 'company_tax_id', 'company_email', 'company_phone'})

        company = CompanySettings(company_name='X', company_tax_id='1234567a', company_email='a@b.tn', company_phone='1')
        self.assertEqual(validate_company_for_tej(company), {})


class TejDeclarationAPITests(TestCase):
    """Test the TEJ declaration endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        supplier = TestDataFactory.create_supplier(name='Film Distribution', tax_id='1234567A')
        self.declared = TestDataFactory.create_purchase_order(supplier=supplier, order_date=date(2024, 3, 10))
        # Below threshold, cancelled, and other month: none are declared
        TestDataFactory.create_purchase_order(
            supplier=supplier, order_date=date(2024, 3, 11),
            items=[('Small order', Decimal('1'), Decimal('10.000'), Decimal('19.00'))]
        )
        TestDataFactory.create_purchase_order(supplier=supplier, order_date=date(2024, 3, 12), status='cancelled')
        TestDataFactory.create_purchase_order(supplier=supplier, order_date=date(2024, 4, 1))

    def test_declaration_preview(self):
        """Test previewing the monthly declaration"""
        response = self.client.get('/api/v1/tej/', {'year': 2024, 'month': 3})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['line_count'], 1)
        self.assertEqual(response.data['rows'][0]['number'], self.declared.number)
        self.assertEqual(response.data['total_retenue'], '11.900')
        self.assertIn('company_tax_id', response.data['company_errors'])

    def test_invalid_month(self):
        response = self.client.get('/api/v1/tej/', {'year': 2024, 'month': 13})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_export_refused_when_company_incomplete(self):
        """Test export is blocked until the company identity is complete"""
        response = self.client.get('/api/v1/tej/export/', {'year': 2024, 'month': 3})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('company_tax_id', response.data['fields'])

    def test_export_csv(self):
        """Test downloading the declaration as CSV"""
        _complete_company()
        response = self.client.get('/api/v1/tej/export/', {'year': 2024, 'month': 3})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('TEJ_2024_03.csv', response['Content-Disposition'])
        lines = response.content.decode().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[1].startswith(self.declared.number))
        self.assertTrue(AuditLog.objects.filter(action='export', object_reference='TEJ_2024_03.csv').exists())

    def test_export_xml(self):
        _complete_company()
        response = self.client.get('/api/v1/tej/export/', {'year': 2024, 'month': 3, 'output': 'xml'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('application/xml', response['Content-Type'])
        self.assertIn(f'<Numero>{self.declared.number}</Numero>', response.content.decode())

    def test_export_unknown_output(self):
        _complete_company()
        response = self.client.get('/api/v1/tej/export/', {'year': 2024, 'month': 3, 'output': 'pdf'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
