from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Sum, Count
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from .models import Expense
from .serializers import ExpenseSerializer
from .filters import ExpenseFilter
from .exports import export_expenses_csv
from erp.core.utils import create_audit_log, paginated_response


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def expense_list_create(request):
    """List all expenses or record a new one"""
    if request.method == 'GET':
        filterset = ExpenseFilter(request.query_params, queryset=Expense.objects.all().order_by('-expense_date', '-created_at'))
        return paginated_response(request, filterset.qs, ExpenseSerializer)
    else:
        serializer = ExpenseSerializer(data=request.data)
        if serializer.is_valid():
            expense = serializer.save(created_by=request.user)
            create_audit_log(
                request=request,
                action='create',
                model_name='Expense',
                object_id=str(expense.id),
                object_name=expense.description,
                changes={'amount': str(expense.amount), 'category': expense.category},
            )
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def expense_detail(request, pk):
    """Retrieve, update or delete an expense"""
    expense = get_object_or_404(Expense, pk=pk)

    if request.method == 'GET':
        return Response(ExpenseSerializer(expense).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ExpenseSerializer(expense, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        expense_id, description = expense.id, expense.description
        expense.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Expense',
            object_id=str(expense_id),
            object_name=description,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def expense_summary(request):
    """Totals per category for the filtered expenses, plus the current month"""
    filterset = ExpenseFilter(request.query_params, queryset=Expense.objects.all())
    queryset = filterset.qs
    today = timezone.localdate()

    by_category = (
        queryset.values('category')
        .annotate(total=Sum('amount'), count=Count('id'))
        .order_by('-total')
    )
    month_total = queryset.filter(
        expense_date__year=today.year, expense_date__month=today.month
    ).aggregate(total=Sum('amount'))['total']

    return Response({
        'total': str(queryset.aggregate(total=Sum('amount'))['total'] or 0),
        'count': queryset.count(),
        'month_total': str(month_total or 0),
        'by_category': [
            {'category': row['category'], 'total': str(row['total']), 'count': row['count']}
            for row in by_category
        ],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def expense_export(request):
    """Download the filtered expenses as CSV"""
    filterset = ExpenseFilter(request.query_params, queryset=Expense.objects.all().order_by('expense_date', 'id'))
    response = HttpResponse(export_expenses_csv(filterset.qs), content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="expenses_{timezone.localdate().isoformat()}.csv"'
    return response
