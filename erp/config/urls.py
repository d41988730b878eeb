"""
URL configuration for the ERP backend.

Every business app mounts its endpoints under ``/api/v1/``.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Print Shop ERP Admin Panel"
admin.site.site_title = "Print Shop ERP Admin Portal"
admin.site.index_title = "Welcome to the Print Shop ERP Admin Panel"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('erp.core.urls')),
    path('api/v1/', include('erp.parties.urls')),
    path('api/v1/', include('erp.catalog.urls')),
    path('api/v1/', include('erp.sales.urls')),
    path('api/v1/', include('erp.purchasing.urls')),
    path('api/v1/', include('erp.expenses.urls')),
    path('api/v1/', include('erp.production.urls')),
    path('api/v1/', include('erp.reports.urls')),
]
