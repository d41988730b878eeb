from django.urls import path
from .views import dashboard, dashboard_export, finance_summary

urlpatterns = [
    path('reports/dashboard/', dashboard, name='dashboard'),
    path('reports/dashboard/export/', dashboard_export, name='dashboard-export'),
    path('reports/finance/', finance_summary, name='finance-summary'),
]
