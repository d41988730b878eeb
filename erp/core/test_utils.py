"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from erp.catalog.models import Product
from erp.expenses.models import Expense
from erp.parties.models import Client, Supplier
from erp.production.models import ProductionJob
from erp.purchasing.models import PurchaseOrder, PurchaseOrderItem
from erp.sales.models import Invoice, InvoiceItem, Quote, QuoteItem
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='sales', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_client(name=None, client_type='b2c', email=None, city=''):
        """Create a test client"""
        if not name:
            name = f'Client_{TestDataFactory.random_string(6)}'
        return Client.objects.create(
            name=name,
            type=client_type,
            email=email or '',
            phone='20123456',
            city=city
        )

    @staticmethod
    def create_supplier(name=None, tax_id='1234567A', category=''):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        return Supplier.objects.create(
            name=name,
            tax_id=tax_id,
            category=category,
            phone='71123456'
        )

    @staticmethod
    def create_product(name=None, category='dtf', base_price=None, cost_price=None, tva_rate=None, sku=None):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        return Product.objects.create(
            name=name,
            category=category,
            sku=sku,
            base_price=base_price if base_price is not None else Decimal('50.000'),
            cost_price=cost_price if cost_price is not None else Decimal('30.000'),
            tva_rate=tva_rate if tva_rate is not None else Decimal('19.00')
        )

    @staticmethod
    def _number(prefix):
        return f'{prefix}-T{TestDataFactory.random_string(8).upper()}'

    @staticmethod
    def create_invoice(user=None, client=None, status='draft', items=None, number=None, **kwargs):
        """
        Create a test invoice with items and computed totals.
        items: list of (description, quantity, unit_price, tva_rate) tuples
        """
        if not client:
            client = TestDataFactory.create_client()
        if items is None:
            items = [('DTF print A4', Decimal('2'), Decimal('100.000'), Decimal('19.00'))]
        invoice = Invoice.objects.create(
            number=number or TestDataFactory._number('FAC'),
            client=client,
            status=status,
            created_by=user,
            **kwargs
        )
        for description, quantity, unit_price, tva_rate in items:
            InvoiceItem.objects.create(
                invoice=invoice,
                description=description,
                quantity=quantity,
                unit_price=unit_price,
                tva_rate=tva_rate
            )
        invoice.recalculate_totals()
        return invoice

    @staticmethod
    def create_quote(user=None, client=None, status='draft', items=None, number=None, **kwargs):
        """Create a test quote with items and computed totals"""
        if not client:
            client = TestDataFactory.create_client()
        if items is None:
            items = [('Embroidered cap', Decimal('10'), Decimal('15.000'), Decimal('19.00'))]
        quote = Quote.objects.create(
            number=number or TestDataFactory._number('DEV'),
            client=client,
            status=status,
            created_by=user,
            **kwargs
        )
        for description, quantity, unit_price, tva_rate in items:
            QuoteItem.objects.create(
                quote=quote,
                description=description,
                quantity=quantity,
                unit_price=unit_price,
                tva_rate=tva_rate
            )
        quote.recalculate_totals()
        return quote

    @staticmethod
    def create_purchase_order(user=None, supplier=None, status='ordered', items=None, number=None, **kwargs):
        """Create a test purchase order with items, totals and retenue"""
        if not supplier:
            supplier = TestDataFactory.create_supplier()
        if items is None:
            items = [('DTF film roll', Decimal('10'), Decimal('100.000'), Decimal('19.00'))]
        purchase_order = PurchaseOrder.objects.create(
            number=number or TestDataFactory._number('BC'),
            supplier=supplier,
            status=status,
            created_by=user,
            **kwargs
        )
        for description, quantity, unit_price, tva_rate in items:
            PurchaseOrderItem.objects.create(
                purchase_order=purchase_order,
                description=description,
                quantity=quantity,
                unit_price=unit_price,
                tva_rate=tva_rate
            )
        purchase_order.recalculate_totals()
        return purchase_order

    @staticmethod
    def create_expense(user=None, amount=None, category='Autre', expense_date=None, description=None, tags=None):
        """Create a test expense"""
        return Expense.objects.create(
            category=category,
            description=description or f'Expense {TestDataFactory.random_string(6)}',
            amount=amount if amount is not None else Decimal('100.000'),
            expense_date=expense_date or timezone.localdate(),
            tags=tags or [],
            created_by=user
        )

    @staticmethod
    def create_job(user=None, title=None, technique='dtf', status='pending', priority='medium',
                   deadline=None, client=None, invoice=None):
        """Create a test production job"""
        return ProductionJob.objects.create(
            job_number=TestDataFactory._number('JOB'),
            title=title or f'Job {TestDataFactory.random_string(6)}',
            technique=technique,
            status=status,
            priority=priority,
            deadline=deadline,
            client=client,
            invoice=invoice,
            created_by=user
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
