"""
WSGI config for the SlotBook booking backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'slotbook.settings.production')

application = get_wsgi_application()
