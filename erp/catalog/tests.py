"""
Tests for the catalog module
Tests: product CRUD, margin, SKU handling, filters
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from erp.catalog.models import Product


class ProductModelTests(TestCase):
    """Test Product model methods"""

    def test_margin_percent(self):
        product = TestDataFactory.create_product(base_price=Decimal('50.000'), cost_price=Decimal('30.000'))
        self.assertEqual(product.margin_percent, Decimal('40.00'))

    def test_margin_percent_without_price(self):
        product = TestDataFactory.create_product(base_price=Decimal('0'), cost_price=Decimal('10.000'))
        self.assertEqual(product.margin_percent, Decimal('0.00'))


class ProductAPITests(TestCase):
    """Test Product API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_product(self):
        """Test creating a product via API"""
        response = self.client.post('/api/v1/products/', {
            'name': 'UV mug print',
            'category': 'uv',
            'sku': 'UV-MUG',
            'base_price': '25.000',
            'cost_price': '10.000'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['margin_percent'], '60.00')
        self.assertEqual(response.data['tva_rate'], '19.00')

    def test_blank_skus_do_not_collide(self):
        """Test that several products may have no SKU"""
        for name in ('First', 'Second'):
            response = self.client.post('/api/v1/products/', {
                'name': name,
                'sku': '',
                'base_price': '10.000'
            }, format='json')
            self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Product.objects.filter(sku__isnull=True).count(), 2)

    def test_duplicate_sku_rejected(self):
        TestDataFactory.create_product(sku='DTF-A4')
        response = self.client.post('/api/v1/products/', {'name': 'Copy', 'sku': 'DTF-A4'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sku', response.data)

    def test_negative_price_rejected(self):
        response = self.client.post('/api/v1/products/', {'name': 'Bad', 'base_price': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_products(self):
        """Test filtering products by category and active flag"""
        TestDataFactory.create_product(category='laser')
        inactive = TestDataFactory.create_product(category='laser')
        inactive.is_active = False
        inactive.save()
        TestDataFactory.create_product(category='dtf')

        response = self.client.get('/api/v1/products/', {'category': 'laser', 'active': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_delete_product(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
