"""
Tests for the production module
Tests: job numbering, kanban moves, timestamps, invoice/client consistency, board
"""
from django.test import TestCase
from rest_framework import status
from datetime import timedelta
from django.utils import timezone
from erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from erp.core.exceptions import InvalidStatusTransition
from erp.production.models import ProductionJob


class ProductionJobModelTests(TestCase):
    """Test ProductionJob model methods"""

    def test_status_timestamps(self):
        """Test started/completed timestamps are stamped on moves"""
        job = TestDataFactory.create_job()
        job.transition_to('in_progress')
        self.assertIsNotNone(job.started_at)
        job.transition_to('completed')
        self.assertIsNotNone(job.completed_at)
        job.transition_to('delivered')
        self.assertEqual(job.status, 'delivered')

    def test_cannot_skip_columns(self):
        job = TestDataFactory.create_job()
        with self.assertRaises(InvalidStatusTransition):
            job.transition_to('delivered')

    def test_is_late(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        self.assertTrue(TestDataFactory.create_job(deadline=yesterday).is_late)
        self.assertFalse(TestDataFactory.create_job(deadline=yesterday, status='completed').is_late)
        self.assertFalse(TestDataFactory.create_job().is_late)


class ProductionJobAPITests(TestCase):
    """Test ProductionJob API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='production')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_job(self):
        """Test creating a production job via API"""
        response = self.client.post('/api/v1/production/jobs/', {
            'title': '50 embroidered polos',
            'technique': 'embroidery',
            'priority': 'high',
            'quantity': 50
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['job_number'], 'JOB-00001')
        self.assertEqual(response.data['status'], 'pending')

    def test_client_taken_from_invoice(self):
        """Test the job client defaults to the linked invoice's client"""
        invoice = TestDataFactory.create_invoice()
        response = self.client.post('/api/v1/production/jobs/', {
            'title': 'Mugs',
            'technique': 'uv',
            'invoice': invoice.id
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['client'], invoice.client_id)

    def test_invoice_of_other_client_rejected(self):
        invoice = TestDataFactory.create_invoice()
        other = TestDataFactory.create_client()
        response = self.client.post('/api/v1/production/jobs/', {
            'title': 'Mugs',
            'client': other.id,
            'invoice': invoice.id
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('invoice', response.data)

    def test_zero_quantity_rejected(self):
        response = self.client.post('/api/v1/production/jobs/', {'title': 'Nothing', 'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_endpoint(self):
        """Test moving a job between columns"""
        job = TestDataFactory.create_job()
        url = f'/api/v1/production/jobs/{job.id}/status/'
        response = self.client.patch(url, {'status': 'in_progress'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['started_at'])

        response = self.client.patch(url, {'status': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_not_editable_through_update(self):
        job = TestDataFactory.create_job()
        response = self.client.patch(f'/api/v1/production/jobs/{job.id}/', {'status': 'completed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(ProductionJob.objects.get(id=job.id).status, 'pending')

    def test_filter_by_technique(self):
        TestDataFactory.create_job(technique='laser')
        TestDataFactory.create_job(technique='dtf')
        response = self.client.get('/api/v1/production/jobs/', {'technique': 'laser'})
        self.assertEqual(response.data['count'], 1)

    def test_board_groups_and_orders(self):
        """Test the board lists every column with urgent jobs first"""
        low = TestDataFactory.create_job(title='Low', priority='low')
        urgent = TestDataFactory.create_job(title='Urgent', priority='urgent')
        TestDataFactory.create_job(title='Done', status='delivered')

        response = self.client.get('/api/v1/production/board/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        columns = {column['status']: column for column in response.data['columns']}
        self.assertEqual(list(columns), ['pending', 'in_progress', 'completed', 'delivered'])
        self.assertEqual(columns['pending']['count'], 2)
        self.assertEqual(
            [job['id'] for job in columns['pending']['jobs']],
            [urgent.id, low.id]
        )
        self.assertEqual(columns['delivered']['count'], 1)
