"""
WSGI config for the Blorb seller dashboard backend.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'BlorbMarketplace.settings')

application = get_wsgi_application()
