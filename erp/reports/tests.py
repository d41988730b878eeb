"""
Tests for the reports module
Tests: dashboard aggregations, dashboard endpoint and cache, CSV export, finance summary
"""
from datetime import date, datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.test import TestCase, SimpleTestCase, override_settings
from django.utils import timezone
from rest_framework import status
from erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from erp.reports import aggregations as agg


def invoice(status='validated', total='100', subtotal=None, created_at=None, **extra):
    row = {
        'id': extra.pop('id', 1),
        'number': extra.pop('number', 'FAC-00001'),
        'status': status,
        'total': Decimal(total),
        'subtotal': Decimal(subtotal if subtotal is not None else total),
        'created_at': created_at or datetime(2024, 6, 10, 9, 30),
        'issue_date': extra.pop('issue_date', date(2024, 6, 10)),
        'due_date': extra.pop('due_date', None),
        'paid_at': extra.pop('paid_at', None),
        'updated_at': extra.pop('updated_at', datetime(2024, 6, 10, 9, 30)),
        'client_name': extra.pop('client_name', 'Client A'),
        'items': extra.pop('items', []),
    }
    row.update(extra)
    return row


def expense(amount, expense_date, category='Autre'):
    return {'amount': Decimal(amount), 'expense_date': expense_date, 'category': category}


class GrowthTests(SimpleTestCase):
    def test_growth(self):
        self.assertEqual(agg.growth(Decimal('1500'), Decimal('1000')), 50.0)
        self.assertEqual(agg.growth(Decimal('500'), Decimal('1000')), -50.0)

    def test_growth_without_base(self):
        self.assertEqual(agg.growth(Decimal('1500'), Decimal('0')), 0.0)

    def test_previous_month_of_january(self):
        self.assertEqual(agg.previous_month(date(2024, 1, 15)), (2023, 12))
        self.assertEqual(agg.previous_month(date(2024, 7, 1)), (2024, 6))


class RevenueAggregationTests(SimpleTestCase):
    """Test revenue, unpaid and margin figures"""

    today = date(2024, 6, 20)

    def test_revenue_counts_validated_and_paid_only(self):
        invoices = [
            invoice('validated', '100', subtotal='84'),
            invoice('paid', '200', subtotal='168'),
            invoice('draft', '1000'),
            invoice('cancelled', '1000'),
        ]
        kpis = agg.revenue_kpis(invoices, self.today)
        self.assertEqual(kpis['revenue_ttc'], 300.0)
        self.assertEqual(kpis['revenue_ht'], 252.0)
        self.assertEqual(kpis['unpaid_total'], 100.0)
        self.assertEqual(kpis['unpaid_count'], 1)

    def test_month_over_month(self):
        invoices = [
            invoice('paid', '1500', created_at=datetime(2024, 6, 1)),
            invoice('paid', '1000', created_at=datetime(2024, 5, 31)),
        ]
        kpis = agg.revenue_kpis(invoices, self.today)
        self.assertEqual(kpis['revenue_month'], 1500.0)
        self.assertEqual(kpis['revenue_last_month'], 1000.0)
        self.assertEqual(kpis['revenue_growth'], 50.0)

    def test_january_compares_with_previous_december(self):
        invoices = [
            invoice('paid', '300', created_at=datetime(2024, 1, 5)),
            invoice('paid', '200', created_at=datetime(2023, 12, 28)),
            invoice('paid', '999', created_at=datetime(2024, 12, 28)),
        ]
        kpis = agg.revenue_kpis(invoices, date(2024, 1, 20))
        self.assertEqual(kpis['revenue_last_month'], 200.0)
        self.assertEqual(kpis['revenue_growth'], 50.0)

    def test_margins_and_net_result(self):
        invoices = [invoice('paid', '1000', created_at=datetime(2024, 6, 2))]
        expenses = [expense('250', date(2024, 6, 3)), expense('150', date(2024, 2, 3))]
        revenue = agg.revenue_kpis(invoices, self.today)
        spent = agg.expense_kpis(expenses, self.today)
        margins = agg.margin_kpis(revenue, spent)
        self.assertEqual(spent['expenses_total'], 400.0)
        self.assertEqual(spent['expenses_month'], 250.0)
        self.assertEqual(margins['gross_margin'], 600.0)
        self.assertEqual(margins['gross_margin_percent'], 60.0)
        self.assertEqual(margins['net_result'], 750.0)

    def test_margin_percent_without_revenue(self):
        revenue = agg.revenue_kpis([], self.today)
        spent = agg.expense_kpis([expense('100', date(2024, 6, 1))], self.today)
        margins = agg.margin_kpis(revenue, spent)
        self.assertEqual(margins['gross_margin'], -100.0)
        self.assertEqual(margins['gross_margin_percent'], 0.0)

    def test_average_basket(self):
        self.assertEqual(agg.average_basket([]), 0.0)
        invoices = [invoice('paid', '100'), invoice('validated', '50'), invoice('draft', '1000')]
        self.assertEqual(agg.average_basket(invoices), 75.0)

    def test_conversion_rate(self):
        self.assertEqual(agg.conversion_rate([]), 0.0)
        invoices = [invoice('paid'), invoice('validated'), invoice('draft'), invoice('paid')]
        self.assertEqual(agg.conversion_rate(invoices), 50.0)


class CollectionAggregationTests(SimpleTestCase):
    """Test DSO, overdue, rankings and series"""

    def test_dso_uses_paid_at_then_updated_at(self):
        invoices = [
            invoice('paid', issue_date=date(2024, 6, 1), paid_at=datetime(2024, 6, 11)),
            invoice('paid', issue_date=date(2024, 6, 1), paid_at=None, updated_at=datetime(2024, 6, 21)),
            # Paid before issue date counts as zero
            invoice('paid', issue_date=date(2024, 6, 10), paid_at=datetime(2024, 6, 5)),
            invoice('validated', issue_date=date(2024, 1, 1)),
        ]
        self.assertEqual(agg.dso_days(invoices), 10.0)
        self.assertEqual(agg.dso_days([]), 0.0)

    def test_dso_counts_partial_days(self):
        """Test delays keep the time of day of the payment"""
        invoices = [
            invoice('paid', issue_date=date(2024, 6, 1), paid_at=datetime(2024, 6, 2, 12, 0, tzinfo=dt_timezone.utc)),
            invoice('paid', issue_date='2024-06-01', paid_at='2024-06-01T12:00:00Z'),
        ]
        self.assertEqual(agg.dso_days(invoices), 1.0)
        self.assertEqual(agg.dso_days(invoices[:1]), 1.5)

    def test_overdue(self):
        today = date(2024, 6, 20)
        invoices = [
            invoice('validated', '100', number='A', due_date=date(2024, 6, 10)),
            invoice('validated', '50', number='B', due_date=date(2024, 6, 19)),
            invoice('validated', '70', number='C', due_date=date(2024, 6, 20)),
            invoice('paid', '80', number='D', due_date=date(2024, 1, 1)),
            invoice('validated', '90', number='E'),
        ]
        rows = agg.overdue_invoices(invoices, today)
        self.assertEqual([row['number'] for row in rows], ['A', 'B'])
        self.assertEqual(rows[0]['days_late'], 10)

        dashboard = agg.build_dashboard(invoices, [], [], today)
        self.assertEqual(dashboard['kpis']['overdue_count'], 2)
        self.assertEqual(dashboard['kpis']['overdue_total'], 150.0)

    def test_top_products(self):
        items_a = [
            {'description': 'DTF A4', 'quantity': Decimal('10'), 'unit_price': Decimal('5')},
            {'description': 'Mug', 'quantity': Decimal('2'), 'unit_price': Decimal('40')},
        ]
        items_b = [
            {'description': 'DTF A4', 'quantity': Decimal('4'), 'unit_price': Decimal('5')},
            {'description': '', 'quantity': Decimal('1'), 'unit_price': Decimal('1')},
        ]
        draft_items = [{'description': 'Cap', 'quantity': Decimal('100'), 'unit_price': Decimal('100')}]
        invoices = [
            invoice('paid', items=items_a),
            invoice('validated', items=items_b),
            invoice('draft', items=draft_items),
        ]
        ranked = agg.top_products(invoices)
        self.assertEqual(ranked[0], {'name': 'Mug', 'total': 80.0, 'count': 2})
        self.assertEqual(ranked[1], {'name': 'DTF A4', 'total': 70.0, 'count': 14})
        self.assertEqual(ranked[2]['name'], 'Unknown')
        self.assertNotIn('Cap', [row['name'] for row in ranked])

    def test_top_clients_and_suppliers(self):
        invoices = [
            invoice('paid', '100', client_name='Alpha'),
            invoice('validated', '300', client_name='Beta'),
            invoice('paid', '250', client_name='Alpha'),
            invoice('draft', '999', client_name='Gamma'),
        ]
        clients = agg.top_clients(invoices)
        self.assertEqual(clients[0], {'name': 'Alpha', 'total': 350.0, 'count': 2})
        self.assertEqual(len(clients), 2)

        orders = [{'supplier_name': 'Films', 'total': Decimal('10')} for _ in range(3)]
        orders += [{'supplier_name': None, 'total': Decimal('50')}]
        suppliers = agg.top_suppliers(orders)
        self.assertEqual(suppliers[0], {'name': 'Unknown', 'total': 50.0, 'count': 1})
        self.assertEqual(suppliers[1]['count'], 3)

    def test_top_limit(self):
        invoices = [invoice('paid', str(i + 1), client_name=f'C{i}') for i in range(8)]
        self.assertEqual(len(agg.top_clients(invoices)), 5)

    def test_monthly_series(self):
        invoices = [
            invoice('paid', '1000', created_at=datetime(2024, 3, 5)),
            invoice('validated', '500', created_at=datetime(2024, 3, 25)),
            invoice('draft', '700', created_at=datetime(2024, 3, 25)),
            invoice('paid', '900', created_at=datetime(2023, 3, 5)),
        ]
        expenses = [expense('300', date(2024, 3, 10)), expense('200', date(2024, 4, 1))]
        series = agg.monthly_series(invoices, expenses, 2024)
        self.assertEqual(len(series), 12)
        self.assertEqual(series[0]['month'], 'Jan')
        march = series[2]
        self.assertEqual(march['revenue'], 1500.0)
        self.assertEqual(march['expenses'], 300.0)
        self.assertEqual(march['net'], 1200.0)
        self.assertEqual(march['margin'], 80.0)
        self.assertEqual(march['invoices'], 2)
        april = series[3]
        self.assertEqual(april['net'], -200.0)
        self.assertEqual(april['margin'], 0.0)

    def test_monthly_csv_rows(self):
        series = agg.monthly_series([invoice('paid', '1000.5', created_at=datetime(2024, 1, 2))], [], 2024)
        rows = list(agg.monthly_csv_rows(series))
        self.assertEqual(rows[0], ['Month', 'Revenue', 'Expenses', 'Net', 'Margin %', 'Invoices'])
        self.assertEqual(rows[1], ['Jan', '1000.500', '0.000', '1000.500', '100.00', 1])
        self.assertEqual(len(rows), 13)

    def test_expenses_by_category(self):
        expenses = [
            expense('10', date(2024, 1, 1), 'Internet'),
            expense('100', date(2024, 1, 1), 'Loyer'),
            expense('15', date(2024, 2, 1), 'Internet'),
        ]
        self.assertEqual(agg.expenses_by_category(expenses), [
            {'category': 'Loyer', 'total': 100.0},
            {'category': 'Internet', 'total': 25.0},
        ])

    def test_finance_summary(self):
        today = date(2024, 6, 20)
        invoices = [
            invoice('paid', '500', created_at=datetime(2024, 6, 1)),
            invoice('validated', '300', created_at=datetime(2024, 6, 1)),
            invoice('draft', '200', created_at=datetime(2024, 6, 1)),
            invoice('cancelled', '1000', created_at=datetime(2024, 6, 1)),
        ]
        expenses = [expense('120', date(2024, 6, 5)), expense('80', date(2024, 5, 5))]
        summary = agg.build_finance_summary(invoices, expenses, today)
        self.assertEqual(summary['total_revenue'], 1000.0)
        self.assertEqual(summary['paid_revenue'], 500.0)
        self.assertEqual(summary['total_expenses'], 200.0)
        self.assertEqual(summary['month_expenses'], 120.0)
        self.assertEqual(summary['cash_flow'][5], {'month': 'Jun', 'revenue': 500.0, 'expenses': 120.0, 'net': 380.0})

    def test_accepts_iso_strings(self):
        self.assertEqual(agg.as_date('2024-06-01T10:00:00Z'), date(2024, 6, 1))
        self.assertEqual(agg.as_date('2024-06-01'), date(2024, 6, 1))
        self.assertIsNone(agg.as_date(None))


@override_settings(CACHES={'default': {'BACKEND': 'django.core.cache.backends.locmem.LocMemCache'}})
class DashboardAPITests(TestCase):
    """Test the dashboard and finance endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_client(name='Atelier Nour')
        self.paid = TestDataFactory.create_invoice(client=self.customer, status='paid')
        self.validated = TestDataFactory.create_invoice(
            client=self.customer, status='validated',
            due_date=timezone.localdate() - timedelta(days=3)
        )
        TestDataFactory.create_invoice(client=self.customer, status='draft')
        TestDataFactory.create_expense(amount=Decimal('76.000'), category='Internet')
        TestDataFactory.create_purchase_order()
        TestDataFactory.create_job(title='Polos')

    def test_dashboard(self):
        """Test the dashboard KPIs from live records"""
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['X-Cache'], 'MISS')
        kpis = response.data['kpis']
        self.assertEqual(kpis['revenue_ttc'], 476.0)
        self.assertEqual(kpis['revenue_month'], 476.0)
        self.assertEqual(kpis['unpaid_total'], 238.0)
        self.assertEqual(kpis['expenses_total'], 76.0)
        self.assertEqual(kpis['gross_margin'], 400.0)
        self.assertEqual(kpis['overdue_count'], 1)
        self.assertEqual(kpis['average_basket'], 238.0)
        self.assertEqual(response.data['counts']['clients'], 1)
        self.assertEqual(response.data['top_clients'][0]['name'], 'Atelier Nour')
        self.assertEqual(response.data['top_products'][0]['name'], 'DTF print A4')
        self.assertEqual(len(response.data['top_suppliers']), 1)
        self.assertEqual(len(response.data['monthly']), 12)
        self.assertEqual(len(response.data['recent_invoices']), 3)
        self.assertEqual(response.data['recent_jobs'][0]['title'], 'Polos')

    def test_dashboard_is_cached_until_records_change(self):
        """Test the second call is served from cache and writes invalidate it"""
        self.client.get('/api/v1/reports/dashboard/')
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response['X-Cache'], 'HIT')

        TestDataFactory.create_expense(amount=Decimal('24.000'))
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response['X-Cache'], 'MISS')
        self.assertEqual(response.data['kpis']['expenses_total'], 100.0)

    def test_failed_collection_defaults_to_empty(self):
        """Test a failing read leaves the rest of the dashboard intact"""
        with mock.patch('erp.reports.views.load_expenses', side_effect=RuntimeError('db down')):
            with self.assertLogs('erp.reports', level='ERROR'):
                response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['kpis']['expenses_total'], 0.0)
        self.assertEqual(response.data['kpis']['revenue_ttc'], 476.0)

    def test_dashboard_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_dashboard_export(self):
        """Test the monthly series CSV export"""
        year = timezone.localdate().year
        response = self.client.get('/api/v1/reports/dashboard/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(f'dashboard_{year}.csv', response['Content-Disposition'])
        lines = response.content.decode().splitlines()
        self.assertEqual(lines[0], 'Month,Revenue,Expenses,Net,Margin %,Invoices')
        self.assertEqual(len(lines), 13)
        month_line = lines[timezone.localdate().month]
        self.assertTrue(month_line.endswith(',2'))

    def test_dashboard_export_bad_year(self):
        response = self.client.get('/api/v1/reports/dashboard/export/', {'year': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_finance_summary(self):
        """Test finance totals and cash flow"""
        response = self.client.get('/api/v1/reports/finance/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_revenue'], 714.0)
        self.assertEqual(response.data['paid_revenue'], 238.0)
        self.assertEqual(response.data['total_expenses'], 76.0)
        self.assertEqual(len(response.data['cash_flow']), 12)
