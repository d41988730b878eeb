"""
Tests for the core module
Tests: authentication, profile, company settings, numbering, audit log, cache invalidation
"""
from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient
from decimal import Decimal
from datetime import date
from erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from erp.core.models import CompanySettings, AuditLog
from erp.core.numbering import (
    format_number, next_document_number, peek_document_number, register_used_number
)
from erp.core.cache_signals import dashboard_cache_key, suspend_cache_signals
from erp.core.exceptions import BusinessRuleError, InvalidStatusTransition
from erp.core.serializers import TagsField
from erp.core.utils import parse_date_param


class AuthAPITests(TestCase):
    """Test login, registration and profile endpoints"""

    def setUp(self):
        self.client = APIClient()
        self.user = TestDataFactory.create_user(username='alice', password='s3cret-pass!')

    def test_login_returns_tokens(self):
        """Test logging in with valid credentials"""
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'alice',
            'password': 's3cret-pass!'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_failure_is_generic_and_audited(self):
        """Test that wrong password and unknown user give the same message"""
        wrong_password = self.client.post('/api/v1/auth/login/', {
            'username': 'alice',
            'password': 'nope'
        }, format='json')
        unknown_user = self.client.post('/api/v1/auth/login/', {
            'username': 'nobody',
            'password': 'nope'
        }, format='json')
        self.assertEqual(wrong_password.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(unknown_user.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(wrong_password.data['detail'], unknown_user.data['detail'])
        self.assertEqual(AuditLog.objects.filter(action='login_failed').count(), 2)

    def test_register_forces_default_role(self):
        """Test registering cannot pick an elevated role"""
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'bob',
            'email': 'bob@test.com',
            'password': 'Another-pass-123',
            'password_confirm': 'Another-pass-123',
            'role': 'admin'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], 'sales')
        self.assertIn('access', response.data)

    def test_register_password_mismatch(self):
        """Test registration rejects mismatched passwords"""
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'carol',
            'password': 'Another-pass-123',
            'password_confirm': 'Different-pass-123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_profile_requires_authentication(self):
        """Test profile endpoint rejects anonymous requests"""
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_profile_update_ignores_role(self):
        """Test a user can edit their profile but not their role"""
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.patch('/api/v1/auth/me/', {
            'full_name': 'Alice Martin',
            'city': 'Sfax',
            'role': 'admin'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.full_name, 'Alice Martin')
        self.assertEqual(self.user.role, 'sales')


class UserAdminAPITests(TestCase):
    """Test user management endpoints"""

    def test_non_staff_cannot_list_users(self):
        """Test that user listing is admin only"""
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_can_list_users(self):
        """Test that staff can list users"""
        admin = TestDataFactory.create_user(is_staff=True, role='admin')
        client = AuthenticatedAPIClient().authenticate_user(admin)
        response = client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_admin_role_can_manage_users(self):
        """Test the admin role grants user management without staff status"""
        admin = TestDataFactory.create_user(role='admin')
        client = AuthenticatedAPIClient().authenticate_user(admin)
        self.assertEqual(client.get('/api/v1/users/').status_code, status.HTTP_200_OK)
        self.assertEqual(client.get('/api/v1/audit-logs/').status_code, status.HTTP_200_OK)

    def test_finance_role_is_refused(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user(role='finance'))
        self.assertEqual(client.get('/api/v1/audit-logs/').status_code, status.HTTP_403_FORBIDDEN)


class CompanySettingsTests(TestCase):
    """Test the company settings singleton and its endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_load_creates_single_row(self):
        """Test load() always returns the same row"""
        first = CompanySettings.load()
        second = CompanySettings.load()
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(CompanySettings.objects.count(), 1)
        self.assertEqual(first.default_tva_rate, Decimal('19.00'))

    def test_update_settings(self):
        """Test updating company settings via API"""
        response = self.client.patch('/api/v1/settings/company/', {
            'company_name': 'Print Atelier',
            'company_tax_id': '1234567A',
            'default_timbre': '1.000'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        settings_obj = CompanySettings.load()
        self.assertEqual(settings_obj.company_name, 'Print Atelier')
        self.assertEqual(settings_obj.default_timbre, Decimal('1.000'))
        self.assertTrue(AuditLog.objects.filter(model_name='CompanySettings', action='update').exists())

    def test_negative_default_rejected(self):
        """Test that negative tax defaults are rejected"""
        response = self.client.patch('/api/v1/settings/company/', {'default_tva_rate': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_next_number_preview(self):
        """Test previewing the next number does not consume it"""
        response = self.client.get('/api/v1/settings/next-number/invoice/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['number'], 'FAC-00001')
        self.assertEqual(CompanySettings.load().next_invoice_seq, 1)

    def test_next_number_unknown_kind(self):
        """Test previewing an unknown document kind"""
        response = self.client.get('/api/v1/settings/next-number/receipt/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class NumberingTests(TestCase):
    """Test document number reservation"""

    def test_format_number(self):
        self.assertEqual(format_number('FAC', 42), 'FAC-00042')
        self.assertEqual(format_number('JOB', 123456), 'JOB-123456')

    def test_sequence_increments(self):
        """Test consecutive reservations are distinct and ordered"""
        self.assertEqual(next_document_number('quote'), 'DEV-00001')
        self.assertEqual(next_document_number('quote'), 'DEV-00002')
        self.assertEqual(peek_document_number('quote'), 'DEV-00003')

    def test_custom_prefix(self):
        """Test the configured prefix is used"""
        settings_obj = CompanySettings.load()
        settings_obj.po_prefix = 'PO'
        settings_obj.save()
        self.assertEqual(next_document_number('purchase_order'), 'PO-00001')

    def test_existing_numbers_are_skipped(self):
        """Test numbers already taken are skipped"""
        taken = {'FAC-00001', 'FAC-00002'}
        number = next_document_number('invoice', exists=lambda n: n in taken)
        self.assertEqual(number, 'FAC-00003')
        self.assertEqual(CompanySettings.load().next_invoice_seq, 4)

    def test_register_used_number_moves_sequence_forward(self):
        """Test a hand-typed number pushes the sequence past it"""
        self.assertEqual(register_used_number('invoice', 'FAC-00010'), 11)
        self.assertEqual(peek_document_number('invoice'), 'FAC-00011')

    def test_register_used_number_never_moves_back(self):
        settings_obj = CompanySettings.load()
        settings_obj.next_invoice_seq = 20
        settings_obj.save()
        self.assertEqual(register_used_number('invoice', 'FAC-00005'), 20)
        self.assertIsNone(register_used_number('invoice', 'CUSTOM'))

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            next_document_number('receipt')


class AuditLogAPITests(TestCase):
    """Test audit log listing"""

    def test_audit_log_list_filters(self):
        """Test filtering audit logs by action"""
        admin = TestDataFactory.create_user(is_staff=True, role='admin')
        AuditLog.objects.create(user=admin, action='create', model_name='Client', object_id='1')
        AuditLog.objects.create(user=admin, action='delete', model_name='Client', object_id='1')
        client = AuthenticatedAPIClient().authenticate_user(admin)

        response = client.get('/api/v1/audit-logs/', {'action': 'delete'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['action'], 'delete')

        AuditLog.objects.create(user=admin, action='create', model_name='Invoice', object_id='9', object_reference='FAC-00009')
        response = client.get('/api/v1/audit-logs/', {'model_name': 'invoice', 'reference': '00009'})
        self.assertEqual(response.data['count'], 1)


class HelperTests(TestCase):
    """Test small helpers shared by the apps"""

    def test_parse_date_param(self):
        self.assertEqual(parse_date_param('2024-03-05'), date(2024, 3, 5))
        self.assertEqual(parse_date_param('05/03/2024', default=date(2020, 1, 1)), date(2020, 1, 1))
        self.assertIsNone(parse_date_param(''))

    def test_tags_field_accepts_comma_string(self):
        field = TagsField()
        self.assertEqual(field.to_internal_value('urgent, vip ,urgent,'), ['urgent', 'vip'])
        self.assertEqual(field.to_internal_value(['a', ' b ']), ['a', 'b'])

    def test_business_rule_error_payload(self):
        error = InvalidStatusTransition('Invoice', 'paid', 'draft')
        self.assertIsInstance(error, BusinessRuleError)
        self.assertEqual(error.as_response_data()['field'], 'status')
        self.assertEqual(BusinessRuleError('nope').as_response_data(), {'error': 'nope'})


@override_settings(CACHES={'default': {'BACKEND': 'django.core.cache.backends.locmem.LocMemCache'}})
class CacheInvalidationTests(TestCase):
    """Test that writes to aggregated records drop the cached dashboard"""

    def setUp(self):
        cache.clear()
        self.key = dashboard_cache_key(date(2024, 6, 1))

    def test_saving_expense_invalidates_dashboard(self):
        cache.set(self.key, {'kpis': {}})
        TestDataFactory.create_expense()
        self.assertIsNone(cache.get(self.key))

    def test_suspended_signals_keep_cache(self):
        cache.set(self.key, {'kpis': {}})
        with suspend_cache_signals():
            TestDataFactory.create_expense()
        self.assertIsNotNone(cache.get(self.key))
