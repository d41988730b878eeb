from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count, ProtectedError
from django.shortcuts import get_object_or_404
from .models import Client, Supplier
from .serializers import ClientSerializer, SupplierSerializer
from .filters import ClientFilter, SupplierFilter
from erp.core.utils import create_audit_log, paginated_response


# Client views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def client_list_create(request):
    """List all clients or create a new client"""
    if request.method == 'GET':
        queryset = Client.objects.annotate(invoice_count=Count('invoices')).order_by('name')
        filterset = ClientFilter(request.query_params, queryset=queryset)
        return paginated_response(request, filterset.qs, ClientSerializer)
    else:
        serializer = ClientSerializer(data=request.data)
        if serializer.is_valid():
            client = serializer.save(created_by=request.user)
            create_audit_log(
                request=request,
                action='create',
                model_name='Client',
                object_id=str(client.id),
                object_name=client.name,
            )
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def client_detail(request, pk):
    """Retrieve, update or delete a client"""
    client = get_object_or_404(Client, pk=pk)

    if request.method == 'GET':
        serializer = ClientSerializer(client)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ClientSerializer(client, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Client',
                object_id=str(client.id),
                object_name=client.name,
                changes={key: str(value) for key, value in serializer.validated_data.items()},
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        client_id, client_name = client.id, client.name
        try:
            client.delete()
        except ProtectedError:
            return Response(
                {'error': 'Client has invoices and cannot be deleted'},
                status=status.HTTP_400_BAD_REQUEST
            )
        create_audit_log(
            request=request,
            action='delete',
            model_name='Client',
            object_id=str(client_id),
            object_name=client_name,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


# Supplier views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def supplier_list_create(request):
    """List all suppliers or create a new supplier"""
    if request.method == 'GET':
        filterset = SupplierFilter(request.query_params, queryset=Supplier.objects.all().order_by('name'))
        return paginated_response(request, filterset.qs, SupplierSerializer)
    else:
        serializer = SupplierSerializer(data=request.data)
        if serializer.is_valid():
            supplier = serializer.save(created_by=request.user)
            create_audit_log(
                request=request,
                action='create',
                model_name='Supplier',
                object_id=str(supplier.id),
                object_name=supplier.name,
            )
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        serializer = SupplierSerializer(supplier)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        supplier_id, supplier_name = supplier.id, supplier.name
        try:
            supplier.delete()
        except ProtectedError:
            return Response(
                {'error': 'Supplier has purchase orders and cannot be deleted'},
                status=status.HTTP_400_BAD_REQUEST
            )
        create_audit_log(
            request=request,
            action='delete',
            model_name='Supplier',
            object_id=str(supplier_id),
            object_name=supplier_name,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)
