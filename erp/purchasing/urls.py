from django.urls import path
from .views import (
    purchase_order_list_create, purchase_order_detail, purchase_order_status,
    tej_declaration, tej_export,
)

urlpatterns = [
    path('purchase-orders/', purchase_order_list_create, name='purchase-order-list-create'),
    path('purchase-orders/<int:pk>/', purchase_order_detail, name='purchase-order-detail'),
    path('purchase-orders/<int:pk>/status/', purchase_order_status, name='purchase-order-status'),

    # TEJ withholding declaration
    path('tej/', tej_declaration, name='tej-declaration'),
    path('tej/export/', tej_export, name='tej-export'),
]
