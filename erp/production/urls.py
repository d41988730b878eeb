from django.urls import path
from .views import job_list_create, job_detail, job_status, job_board

urlpatterns = [
    path('production/jobs/', job_list_create, name='job-list-create'),
    path('production/jobs/<int:pk>/', job_detail, name='job-detail'),
    path('production/jobs/<int:pk>/status/', job_status, name='job-status'),
    path('production/board/', job_board, name='job-board'),
]
