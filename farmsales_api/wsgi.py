"""
WSGI config for the Farm Sales API.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'farmsales_api.settings')

application = get_wsgi_application()
