"""
URL configuration for the retail_erp project.

Every application exposes its endpoints under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Retail ERP Administration"
admin.site.site_title = "Retail ERP Admin Portal"
admin.site.index_title = "Branches, inventory and accounting"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('retail_erp.core.urls')),
    path('api/v1/', include('retail_erp.branches.urls')),
    path('api/v1/', include('retail_erp.catalog.urls')),
    path('api/v1/', include('retail_erp.inventory.urls')),
    path('api/v1/', include('retail_erp.accounting.urls')),
    path('api/v1/', include('retail_erp.pos.urls')),
    path('api/v1/', include('retail_erp.notifications.urls')),
    path('api/v1/', include('retail_erp.reports.urls')),
]
