from django.urls import path
from .views import (
    invoice_list_create, invoice_detail, invoice_status, invoice_payments, invoice_verify,
    quote_list_create, quote_detail, quote_status, quote_convert,
)

urlpatterns = [
    # Invoice endpoints
    path('invoices/', invoice_list_create, name='invoice-list-create'),
    path('invoices/verify/<uuid:token>/', invoice_verify, name='invoice-verify'),
    path('invoices/<int:pk>/', invoice_detail, name='invoice-detail'),
    path('invoices/<int:pk>/status/', invoice_status, name='invoice-status'),
    path('invoices/<int:pk>/payments/', invoice_payments, name='invoice-payments'),

    # Quote endpoints
    path('quotes/', quote_list_create, name='quote-list-create'),
    path('quotes/<int:pk>/', quote_detail, name='quote-detail'),
    path('quotes/<int:pk>/status/', quote_status, name='quote-status'),
    path('quotes/<int:pk>/convert/', quote_convert, name='quote-convert'),
]
