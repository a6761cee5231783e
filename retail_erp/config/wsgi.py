"""
WSGI config for the retail_erp project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'retail_erp.config.settings')

application = get_wsgi_application()
