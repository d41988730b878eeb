import csv
import io
import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.conf import settings
from django.core.cache import cache
from django.db.models import F
from django.http import HttpResponse
from django.utils import timezone

from erp.catalog.models import Product
from erp.core.cache_signals import dashboard_cache_key
from erp.core.utils import create_audit_log, parse_date_param
from erp.expenses.models import Expense
from erp.parties.models import Client
from erp.production.models import ProductionJob
from erp.production.serializers import ProductionJobSerializer
from erp.purchasing.models import PurchaseOrder
from erp.sales.models import Invoice, InvoiceItem
from erp.sales.serializers import InvoiceListSerializer
from .aggregations import (
    VALIDATED_STATUSES,
    build_dashboard,
    build_finance_summary,
    monthly_csv_rows,
    monthly_series,
)

logger = logging.getLogger('erp.reports')

RECENT_LIMIT = 5


def _local(value):
    if value is None:
        return None
    return timezone.localtime(value) if timezone.is_aware(value) else value


def safe_fetch(name, loader, default=None):
    """
    Run one collection read for a report.
    A failing read is logged and replaced by an empty result so the rest of the report still renders.
    """
    try:
        return loader()
    except Exception as e:
        logger.error(f"Error loading {name} for report: {str(e)}", exc_info=True)
        return [] if default is None else default


def load_invoices(with_items=True):
    rows = list(
        Invoice.objects.values(
            'id', 'number', 'status', 'subtotal', 'total', 'issue_date', 'due_date',
            'paid_at', 'created_at', 'updated_at', client_name=F('client__name')
        )
    )
    for row in rows:
        row['created_at'] = _local(row['created_at'])
        row['updated_at'] = _local(row['updated_at'])
        row['paid_at'] = _local(row['paid_at'])
        row['items'] = []

    if with_items:
        by_invoice = {row['id']: row for row in rows}
        items = InvoiceItem.objects.filter(invoice__status__in=VALIDATED_STATUSES).values(
            'invoice_id', 'description', 'quantity', 'unit_price'
        )
        for item in items:
            invoice = by_invoice.get(item['invoice_id'])
            if invoice is not None:
                invoice['items'].append(item)
    return rows


def load_expenses():
    return list(Expense.objects.values('id', 'category', 'amount', 'expense_date'))


def load_purchase_orders():
    return list(PurchaseOrder.objects.values('id', 'status', 'total', supplier_name=F('supplier__name')))


def _recent_invoices():
    queryset = Invoice.objects.select_related('client').order_by('-created_at')[:RECENT_LIMIT]
    return list(InvoiceListSerializer(queryset, many=True).data)


def _recent_jobs():
    queryset = ProductionJob.objects.select_related('client', 'invoice').order_by('-created_at')[:RECENT_LIMIT]
    return list(ProductionJobSerializer(queryset, many=True).data)


def _report_date(request):
    return parse_date_param(request.query_params.get('as_of'), timezone.localdate())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Dashboard KPIs, rankings and monthly series"""
    today = _report_date(request)
    cache_key = dashboard_cache_key(today)

    try:
        cached_data = cache.get(cache_key)
        if cached_data:
            logger.info(f"Dashboard cache HIT (user: {request.user.username}, as_of: {today})")
            response = Response(cached_data)
            response['X-Cache'] = 'HIT'
            response['Cache-Control'] = 'private, max-age=60'
            return response
        logger.info(f"Dashboard cache MISS (user: {request.user.username}, as_of: {today})")
    except Exception as e:
        logger.warning(f"Cache unavailable, proceeding without cache: {e}")

    invoices = safe_fetch('invoices', load_invoices)
    expenses = safe_fetch('expenses', load_expenses)
    purchase_orders = safe_fetch('purchase orders', load_purchase_orders)

    response_data = build_dashboard(invoices, expenses, purchase_orders, today)
    response_data['as_of'] = today.isoformat()
    response_data['counts'] = {
        'clients': safe_fetch('clients', lambda: Client.objects.count(), default=0),
        'products': safe_fetch('products', lambda: Product.objects.count(), default=0),
        'invoices': len(invoices),
        'expenses': len(expenses),
    }
    response_data['recent_invoices'] = safe_fetch('recent invoices', _recent_invoices)
    response_data['recent_jobs'] = safe_fetch('recent jobs', _recent_jobs)

    try:
        cache.set(cache_key, response_data, settings.DASHBOARD_CACHE_TTL)
    except Exception as e:
        logger.warning(f"Unable to cache response: {e}")

    response = Response(response_data)
    response['X-Cache'] = 'MISS'
    response['Cache-Control'] = 'private, max-age=60'
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_export(request):
    """Monthly revenue/expenses series of the year as CSV"""
    today = _report_date(request)
    try:
        year = int(request.query_params.get('year', today.year))
    except (TypeError, ValueError):
        return Response({'year': ['A valid year is required.']}, status=400)

    invoices = safe_fetch('invoices', lambda: load_invoices(with_items=False))
    expenses = safe_fetch('expenses', load_expenses)

    output = io.StringIO()
    writer = csv.writer(output, lineterminator='\n')
    writer.writerows(monthly_csv_rows(monthly_series(invoices, expenses, year)))

    create_audit_log(
        request=request,
        action='export',
        model_name='Dashboard',
        object_id=str(year),
        object_reference=f'monthly_{year}',
    )

    response = HttpResponse(output.getvalue(), content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="dashboard_{year}.csv"'
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def finance_summary(request):
    """Revenue, expense totals and the monthly cash flow of the current year"""
    today = _report_date(request)
    invoices = safe_fetch('invoices', lambda: load_invoices(with_items=False))
    expenses = safe_fetch('expenses', load_expenses)

    data = build_finance_summary(invoices, expenses, today)
    data['as_of'] = today.isoformat()
    response = Response(data)
    response['Cache-Control'] = 'private, max-age=60'
    return response
