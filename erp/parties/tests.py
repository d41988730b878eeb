"""
Tests for the parties module
Tests: client and supplier CRUD, filters, protected deletes
"""
from django.test import TestCase
from rest_framework import status
from erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from erp.core.models import AuditLog
from erp.parties.models import Client, Supplier


class ClientAPITests(TestCase):
    """Test Client API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_client(self):
        """Test creating a client via API"""
        response = self.client.post('/api/v1/clients/', {
            'name': 'Atelier Nour',
            'type': 'b2b',
            'email': 'contact@nour.tn',
            'city': 'Tunis'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        client = Client.objects.get(id=response.data['id'])
        self.assertEqual(client.type, 'b2b')
        self.assertEqual(client.created_by, self.user)
        self.assertTrue(AuditLog.objects.filter(model_name='Client', action='create').exists())

    def test_create_client_defaults_to_b2c(self):
        response = self.client.post('/api/v1/clients/', {'name': 'Walk-in'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['type'], 'b2c')

    def test_create_client_requires_name(self):
        """Test creating a client without a name fails"""
        response = self.client.post('/api/v1/clients/', {'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

    def test_list_clients_with_search_and_invoice_count(self):
        """Test listing clients filtered by search"""
        nour = TestDataFactory.create_client(name='Atelier Nour')
        TestDataFactory.create_client(name='Sport Club')
        TestDataFactory.create_invoice(user=self.user, client=nour)

        response = self.client.get('/api/v1/clients/', {'search': 'nour'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['invoice_count'], 1)

    def test_filter_clients_by_type(self):
        TestDataFactory.create_client(client_type='b2b')
        TestDataFactory.create_client(client_type='b2c')
        response = self.client.get('/api/v1/clients/', {'type': 'b2b'})
        self.assertEqual(response.data['count'], 1)

    def test_update_client(self):
        """Test partially updating a client"""
        client = TestDataFactory.create_client()
        response = self.client.patch(f'/api/v1/clients/{client.id}/', {'phone': '98765432'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        client.refresh_from_db()
        self.assertEqual(client.phone, '98765432')

    def test_delete_client_without_invoices(self):
        client = TestDataFactory.create_client()
        response = self.client.delete(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Client.objects.filter(id=client.id).exists())

    def test_delete_client_with_invoices_is_refused(self):
        """Test that a client referenced by invoices cannot be deleted"""
        client = TestDataFactory.create_client()
        TestDataFactory.create_invoice(user=self.user, client=client)
        response = self.client.delete(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertTrue(Client.objects.filter(id=client.id).exists())

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/clients/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class SupplierAPITests(TestCase):
    """Test Supplier API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_supplier(self):
        """Test creating a supplier via API"""
        response = self.client.post('/api/v1/suppliers/', {
            'name': 'Film Distribution',
            'contact_name': 'Sami',
            'tax_id': '1234567A',
            'category': 'Consommables',
            'company_type': 'entreprise'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Supplier.objects.get(id=response.data['id']).created_by, self.user)

    def test_filter_suppliers_by_category(self):
        TestDataFactory.create_supplier(category='Encres')
        TestDataFactory.create_supplier(category='Textile')
        response = self.client.get('/api/v1/suppliers/', {'category': 'encres'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_delete_supplier_with_orders_is_refused(self):
        """Test that a supplier referenced by purchase orders cannot be deleted"""
        supplier = TestDataFactory.create_supplier()
        TestDataFactory.create_purchase_order(user=self.user, supplier=supplier)
        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
