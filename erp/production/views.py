from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from .models import ProductionJob
from .serializers import ProductionJobSerializer
from .filters import ProductionJobFilter
from erp.core.exceptions import BusinessRuleError
from erp.core.utils import create_audit_log, paginated_response

PRIORITY_RANK = {'urgent': 0, 'high': 1, 'medium': 2, 'low': 3}


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def job_list_create(request):
    """List all production jobs or create a new one"""
    if request.method == 'GET':
        queryset = ProductionJob.objects.select_related('client', 'invoice').order_by('-created_at')
        filterset = ProductionJobFilter(request.query_params, queryset=queryset)
        return paginated_response(request, filterset.qs, ProductionJobSerializer)
    else:
        serializer = ProductionJobSerializer(data=request.data)
        if serializer.is_valid():
            job = serializer.save(created_by=request.user)
            create_audit_log(
                request=request,
                action='create',
                model_name='ProductionJob',
                object_id=str(job.id),
                object_name=job.title,
                object_reference=job.job_number,
            )
            return Response(ProductionJobSerializer(job).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def job_detail(request, pk):
    """Retrieve, update or delete a production job"""
    job = get_object_or_404(ProductionJob.objects.select_related('client', 'invoice'), pk=pk)

    if request.method == 'GET':
        return Response(ProductionJobSerializer(job).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductionJobSerializer(job, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        job_id, job_number = job.id, job.job_number
        job.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='ProductionJob',
            object_id=str(job_id),
            object_reference=job_number,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def job_status(request, pk):
    """Move a job between kanban columns"""
    job = get_object_or_404(ProductionJob, pk=pk)
    target = request.data.get('status')
    if not target:
        return Response({'status': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)

    old_status = job.status
    try:
        job.transition_to(target)
    except BusinessRuleError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request,
        action='status_change',
        model_name='ProductionJob',
        object_id=str(job.id),
        object_reference=job.job_number,
        changes={'status': {'from': old_status, 'to': target}},
    )
    return Response(ProductionJobSerializer(job).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def job_board(request):
    """Jobs grouped by status column, most urgent first within each column"""
    queryset = ProductionJob.objects.select_related('client', 'invoice')
    filterset = ProductionJobFilter(request.query_params, queryset=queryset)

    columns = {value: [] for value, _ in ProductionJob.STATUS_CHOICES}
    jobs = sorted(
        filterset.qs,
        key=lambda job: (PRIORITY_RANK.get(job.priority, 99), job.deadline is None, job.deadline or job.created_at.date())
    )
    for job in jobs:
        columns[job.status].append(job)

    return Response({
        'columns': [
            {
                'status': value,
                'label': label,
                'count': len(columns[value]),
                'jobs': ProductionJobSerializer(columns[value], many=True).data,
            }
            for value, label in ProductionJob.STATUS_CHOICES
        ]
    })
