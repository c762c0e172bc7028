"""
WSGI config for the MedLipi project.

It exposes the WSGI callable as a module-level variable named ``application``.
See Django documentation for more details.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'medlipi.settings')

application = get_wsgi_application()
