import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404
from .models import Invoice, Quote
from .serializers import (
    InvoiceSerializer, InvoiceListSerializer, PublicInvoiceSerializer,
    PaymentSerializer, QuoteSerializer
)
from .filters import InvoiceFilter, QuoteFilter
from erp.core.exceptions import BusinessRuleError
from erp.core.utils import create_audit_log, paginated_response

logger = logging.getLogger(__name__)


def _split_items(request):
    """Copy of the request body without 'items', plus the items (None when absent)"""
    data = request.data.copy()
    items_data = data.pop('items', None)
    return data, items_data


# Invoice views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def invoice_list_create(request):
    """List all invoices or create a new invoice"""
    if request.method == 'GET':
        queryset = Invoice.objects.select_related('client').order_by('-issue_date', '-created_at')
        filterset = InvoiceFilter(request.query_params, queryset=queryset)
        return paginated_response(request, filterset.qs, InvoiceListSerializer)
    else:  # POST
        data, items_data = _split_items(request)
        serializer = InvoiceSerializer(data=data, context={'items_data': items_data, 'request': request})
        if serializer.is_valid():
            invoice = serializer.save(created_by=request.user)
            create_audit_log(
                request=request,
                action='create',
                model_name='Invoice',
                object_id=str(invoice.id),
                object_name=invoice.client.name,
                object_reference=invoice.number,
                changes={'total': str(invoice.total), 'status': invoice.status},
            )
            return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def invoice_detail(request, pk):
    """Retrieve, update or delete an invoice"""
    invoice = get_object_or_404(
        Invoice.objects.select_related('client').prefetch_related('items', 'items__product', 'payments'),
        pk=pk
    )

    if request.method == 'GET':
        serializer = InvoiceSerializer(invoice)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        data, items_data = _split_items(request)
        serializer = InvoiceSerializer(
            invoice,
            data=data,
            partial=request.method == 'PATCH',
            context={'items_data': items_data, 'request': request}
        )
        if serializer.is_valid():
            old_total = invoice.total
            invoice = serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Invoice',
                object_id=str(invoice.id),
                object_name=invoice.client.name,
                object_reference=invoice.number,
                changes={'total': {'from': str(old_total), 'to': str(invoice.total)}},
            )
            return Response(InvoiceSerializer(Invoice.objects.get(pk=invoice.pk)).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if invoice.status not in ('draft', 'cancelled'):
            return Response(
                {'error': f'A {invoice.status} invoice cannot be deleted; cancel it instead'},
                status=status.HTTP_400_BAD_REQUEST
            )
        invoice_id, invoice_number = invoice.id, invoice.number
        invoice.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Invoice',
            object_id=str(invoice_id),
            object_reference=invoice_number,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def invoice_status(request, pk):
    """Move an invoice along draft -> validated -> paid | cancelled"""
    invoice = get_object_or_404(Invoice, pk=pk)
    target = request.data.get('status')
    if not target:
        return Response({'status': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)

    old_status = invoice.status
    try:
        invoice.transition_to(target)
    except BusinessRuleError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"Invoice {invoice.number} moved from {old_status} to {target}")
    create_audit_log(
        request=request,
        action='status_change',
        model_name='Invoice',
        object_id=str(invoice.id),
        object_reference=invoice.number,
        changes={'status': {'from': old_status, 'to': target}},
    )
    return Response(InvoiceSerializer(invoice).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def invoice_payments(request, pk):
    """List an invoice's payments or record a new one"""
    invoice = get_object_or_404(Invoice, pk=pk)

    if request.method == 'GET':
        serializer = PaymentSerializer(invoice.payments.all(), many=True)
        return Response(serializer.data)

    serializer = PaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        payment = invoice.add_payment(user=request.user, **serializer.validated_data)
    except BusinessRuleError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request,
        action='payment_add',
        model_name='Invoice',
        object_id=str(invoice.id),
        object_reference=invoice.number,
        changes={'amount': str(payment.amount), 'method': payment.method, 'status': invoice.status},
    )
    return Response({
        'payment': PaymentSerializer(payment).data,
        'invoice': InvoiceSerializer(invoice).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def invoice_verify(request, token):
    """Public authenticity check for the QR code printed on invoices"""
    invoice = get_object_or_404(Invoice.objects.select_related('client'), public_token=token)
    return Response(PublicInvoiceSerializer(invoice).data)


# Quote views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def quote_list_create(request):
    """List all quotes or create a new quote"""
    if request.method == 'GET':
        queryset = Quote.objects.select_related('client', 'converted_invoice').prefetch_related('items')
        filterset = QuoteFilter(request.query_params, queryset=queryset.order_by('-issue_date', '-created_at'))
        return paginated_response(request, filterset.qs, QuoteSerializer)
    else:  # POST
        data, items_data = _split_items(request)
        serializer = QuoteSerializer(data=data, context={'items_data': items_data, 'request': request})
        if serializer.is_valid():
            quote = serializer.save(created_by=request.user)
            create_audit_log(
                request=request,
                action='create',
                model_name='Quote',
                object_id=str(quote.id),
                object_name=quote.client.name,
                object_reference=quote.number,
            )
            return Response(QuoteSerializer(quote).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def quote_detail(request, pk):
    """Retrieve, update or delete a quote"""
    quote = get_object_or_404(Quote.objects.select_related('client'), pk=pk)

    if request.method == 'GET':
        return Response(QuoteSerializer(quote).data)
    elif request.method in ('PUT', 'PATCH'):
        data, items_data = _split_items(request)
        serializer = QuoteSerializer(
            quote,
            data=data,
            partial=request.method == 'PATCH',
            context={'items_data': items_data, 'request': request}
        )
        if serializer.is_valid():
            quote = serializer.save()
            return Response(QuoteSerializer(Quote.objects.get(pk=quote.pk)).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        quote_id, quote_number = quote.id, quote.number
        quote.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Quote',
            object_id=str(quote_id),
            object_reference=quote_number,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def quote_status(request, pk):
    """Change a quote's status (sent, accepted, rejected...)"""
    quote = get_object_or_404(Quote, pk=pk)
    target = request.data.get('status')
    if not target:
        return Response({'status': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)

    old_status = quote.status
    try:
        quote.transition_to(target)
    except BusinessRuleError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request,
        action='status_change',
        model_name='Quote',
        object_id=str(quote.id),
        object_reference=quote.number,
        changes={'status': {'from': old_status, 'to': target}},
    )
    return Response(QuoteSerializer(quote).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def quote_convert(request, pk):
    """Convert a quote into a draft invoice"""
    quote = get_object_or_404(Quote, pk=pk)
    try:
        invoice = quote.convert_to_invoice(user=request.user)
    except BusinessRuleError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"Quote {quote.number} converted to invoice {invoice.number}")
    create_audit_log(
        request=request,
        action='quote_convert',
        model_name='Quote',
        object_id=str(quote.id),
        object_reference=quote.number,
        changes={'invoice': invoice.number},
    )
    return Response({
        'quote': QuoteSerializer(quote).data,
        'invoice': InvoiceSerializer(invoice).data,
    }, status=status.HTTP_201_CREATED)
