"""WSGI entry point for the cashiering backend."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "cashiering_backend.settings")

application = get_wsgi_application()
