from django.urls import path
from .views import dashboard, financial_report, financial_report_export, sales_analytics

urlpatterns = [
    path('dashboard/', dashboard, name='dashboard'),
    path('reports/financial/', financial_report, name='financial-report'),
    path('reports/financial/export/', financial_report_export, name='financial-report-export'),
    path('reports/sales-analytics/', sales_analytics, name='sales-analytics'),
]
