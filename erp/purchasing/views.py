import calendar
import logging
from datetime import date
from decimal import Decimal

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from .models import PurchaseOrder
from .serializers import PurchaseOrderSerializer, PurchaseOrderListSerializer
from .filters import PurchaseOrderFilter
from .exports import validate_company_for_tej, tej_rows, export_tej_csv, export_tej_xml
from erp.core.models import CompanySettings
from erp.core.exceptions import BusinessRuleError
from erp.core.utils import create_audit_log, paginated_response

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def purchase_order_list_create(request):
    """List all purchase orders or create a new one"""
    if request.method == 'GET':
        queryset = PurchaseOrder.objects.select_related('supplier').order_by('-order_date', '-created_at')
        filterset = PurchaseOrderFilter(request.query_params, queryset=queryset)
        return paginated_response(request, filterset.qs, PurchaseOrderListSerializer)
    else:  # POST
        data = request.data.copy()
        items_data = data.pop('items', None)
        serializer = PurchaseOrderSerializer(data=data, context={'items_data': items_data, 'request': request})
        if serializer.is_valid():
            purchase_order = serializer.save(created_by=request.user)
            create_audit_log(
                request=request,
                action='create',
                model_name='PurchaseOrder',
                object_id=str(purchase_order.id),
                object_name=purchase_order.supplier.name,
                object_reference=purchase_order.number,
                changes={'total': str(purchase_order.total)},
            )
            return Response(PurchaseOrderSerializer(purchase_order).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def purchase_order_detail(request, pk):
    """Retrieve, update or delete a purchase order"""
    purchase_order = get_object_or_404(
        PurchaseOrder.objects.select_related('supplier').prefetch_related('items'), pk=pk
    )

    if request.method == 'GET':
        return Response(PurchaseOrderSerializer(purchase_order).data)
    elif request.method in ('PUT', 'PATCH'):
        data = request.data.copy()
        items_data = data.pop('items', None)
        serializer = PurchaseOrderSerializer(
            purchase_order,
            data=data,
            partial=request.method == 'PATCH',
            context={'items_data': items_data, 'request': request}
        )
        if serializer.is_valid():
            purchase_order = serializer.save()
            return Response(PurchaseOrderSerializer(PurchaseOrder.objects.get(pk=purchase_order.pk)).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        po_id, po_number = purchase_order.id, purchase_order.number
        purchase_order.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='PurchaseOrder',
            object_id=str(po_id),
            object_reference=po_number,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def purchase_order_status(request, pk):
    """Move a purchase order along draft -> ordered -> received | cancelled"""
    purchase_order = get_object_or_404(PurchaseOrder, pk=pk)
    target = request.data.get('status')
    if not target:
        return Response({'status': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)

    old_status = purchase_order.status
    try:
        purchase_order.transition_to(target)
    except BusinessRuleError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request,
        action='status_change',
        model_name='PurchaseOrder',
        object_id=str(purchase_order.id),
        object_reference=purchase_order.number,
        changes={'status': {'from': old_status, 'to': target}},
    )
    return Response(PurchaseOrderSerializer(purchase_order).data)


def _declaration_period(request):
    """(year, month) from query params, defaulting to the current month"""
    today = timezone.localdate()
    try:
        year = int(request.query_params.get('year', today.year))
        month = int(request.query_params.get('month', today.month))
    except ValueError:
        raise BusinessRuleError('month and year must be integers')
    if not 1 <= month <= 12:
        raise BusinessRuleError('month must be between 1 and 12', field='month')
    if not 2000 <= year <= 2100:
        raise BusinessRuleError('year is out of range', field='year')
    return year, month


def _declarable_purchase_orders(year, month):
    """Non-cancelled purchase orders of the month carrying a withholding"""
    first_day = date(year, month, 1)
    last_day = date(year, month, calendar.monthrange(year, month)[1])
    return (
        PurchaseOrder.objects.select_related('supplier')
        .filter(order_date__gte=first_day, order_date__lte=last_day, retenue_source__gt=0)
        .exclude(status='cancelled')
        .order_by('order_date', 'number')
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tej_declaration(request):
    """Preview the monthly TEJ declaration and the company checks"""
    try:
        year, month = _declaration_period(request)
    except BusinessRuleError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    rows = tej_rows(_declarable_purchase_orders(year, month))
    total_retenue = sum((row['retenue_source'] for row in rows), Decimal('0.000'))
    return Response({
        'year': year,
        'month': month,
        'rows': [{**row, 'total': str(row['total']), 'retenue_source': str(row['retenue_source'])} for row in rows],
        'line_count': len(rows),
        'total_retenue': str(total_retenue),
        'company_errors': validate_company_for_tej(CompanySettings.load()),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tej_export(request):
    """Download the monthly TEJ declaration as CSV (default) or XML"""
    try:
        year, month = _declaration_period(request)
    except BusinessRuleError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    output = request.query_params.get('output', 'csv').lower()
    if output not in ('csv', 'xml'):
        return Response({'error': "output must be 'csv' or 'xml'", 'field': 'output'},
                        status=status.HTTP_400_BAD_REQUEST)

    company_errors = validate_company_for_tej(CompanySettings.load())
    if company_errors:
        return Response(
            {'error': 'Company settings are incomplete for a TEJ declaration', 'fields': company_errors},
            status=status.HTTP_400_BAD_REQUEST
        )

    rows = tej_rows(_declarable_purchase_orders(year, month))
    if output == 'csv':
        response = HttpResponse(export_tej_csv(rows), content_type='text/csv; charset=utf-8')
    else:
        response = HttpResponse(export_tej_xml(rows), content_type='application/xml; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="TEJ_{year}_{month:02d}.{output}"'

    total_retenue = sum((row['retenue_source'] for row in rows), Decimal('0.000'))
    logger.info(f"TEJ export {year}-{month:02d} ({output}): {len(rows)} lines, retenue {total_retenue}")
    create_audit_log(
        request=request,
        action='export',
        model_name='PurchaseOrder',
        object_id=f'TEJ-{year}-{month:02d}',
        object_reference=f'TEJ_{year}_{month:02d}.{output}',
        changes={'line_count': len(rows), 'total_retenue': str(total_retenue)},
    )
    return response
