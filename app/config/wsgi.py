"""
WSGI config for the settlement service.

Used by `manage.py runserver` and gunicorn-style deployments; ASGI
deployments use config.asgi instead.

https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
