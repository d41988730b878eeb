"""
Tests for the expenses module
Tests: expense CRUD, filters, summary and CSV export
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from datetime import date
from django.utils import timezone
from erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from erp.expenses.exports import export_expenses_csv
from erp.expenses.models import Expense


class ExpenseAPITests(TestCase):
    """Test Expense API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_expense(self):
        """Test creating an expense via API"""
        response = self.client.post('/api/v1/expenses/', {
            'category': 'Loyer',
            'description': 'Workshop rent',
            'amount': '1200.000',
            'expense_date': '2024-03-01',
            'tags': ['atelier', 'fixe']
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        expense = Expense.objects.get(id=response.data['id'])
        self.assertEqual(expense.tags, ['atelier', 'fixe'])
        self.assertEqual(expense.created_by, self.user)

    def test_amount_must_be_positive(self):
        response = self.client.post('/api/v1/expenses/', {
            'category': 'Autre',
            'description': 'Nothing',
            'amount': '0'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data)

    def test_unknown_category_rejected(self):
        response = self.client.post('/api/v1/expenses/', {
            'category': 'Vacances',
            'description': 'Trip',
            'amount': '10'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filters(self):
        """Test filtering by category, tag and date range"""
        TestDataFactory.create_expense(category='Loyer', expense_date=date(2024, 1, 5), tags=['fixe'])
        TestDataFactory.create_expense(category='Transport', expense_date=date(2024, 2, 5))
        TestDataFactory.create_expense(category='Transport', expense_date=date(2024, 3, 5), tags=['client'])

        response = self.client.get('/api/v1/expenses/', {'category': 'Transport'})
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/expenses/', {'tag': 'fixe'})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/expenses/', {'date_from': '2024-02-01', 'date_to': '2024-02-29'})
        self.assertEqual(response.data['count'], 1)

    def test_filter_by_accented_tag(self):
        """Test tags with accents match exactly"""
        summer = TestDataFactory.create_expense(tags=['été', 'promo'])
        TestDataFactory.create_expense(tags=['hiver'])
        TestDataFactory.create_expense(tags=['étété'])

        response = self.client.get('/api/v1/expenses/', {'tag': 'été'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], summer.id)

    def test_summary(self):
        """Test expense totals by category"""
        today = timezone.localdate()
        TestDataFactory.create_expense(category='Loyer', amount=Decimal('1000.000'), expense_date=today)
        TestDataFactory.create_expense(category='Internet', amount=Decimal('80.000'), expense_date=today)
        TestDataFactory.create_expense(category='Internet', amount=Decimal('80.000'), expense_date=date(2020, 1, 1))

        response = self.client.get('/api/v1/expenses/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['total']), Decimal('1160'))
        self.assertEqual(Decimal(response.data['month_total']), Decimal('1080'))
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(response.data['by_category'][0]['category'], 'Loyer')

    def test_export_csv(self):
        """Test exporting expenses as CSV"""
        TestDataFactory.create_expense(
            category='Marketing', description='Flyers', amount=Decimal('45.500'),
            expense_date=date(2024, 3, 2), tags=['print', 'promo']
        )
        response = self.client.get('/api/v1/expenses/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('attachment', response['Content-Disposition'])
        lines = response.content.decode().splitlines()
        self.assertEqual(lines[0], 'Date,Category,Description,Amount,Tags')
        self.assertEqual(lines[1], '2024-03-02,Marketing,Flyers,45.500,print;promo')

    def test_delete_expense(self):
        expense = TestDataFactory.create_expense()
        response = self.client.delete(f'/api/v1/expenses/{expense.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)


class ExpenseExportTests(TestCase):
    def test_description_with_comma_is_quoted(self):
        expense = TestDataFactory.create_expense(description='Paper, A4', amount=Decimal('10'), expense_date=date(2024, 1, 1))
        lines = export_expenses_csv([expense]).splitlines()
        self.assertEqual(lines[1], '2024-01-01,Autre,"Paper, A4",10.000,')
