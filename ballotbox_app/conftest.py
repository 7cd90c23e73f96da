import os

# Mirror `manage.py test`: settings module plus a non-empty SECRET_KEY, which
# settings.py only waives when "test" is in sys.argv.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("SECRET_KEY", "pytest-secret-key-not-for-production")

from django.conf import settings  # noqa: E402

# Load settings now so pytest-django finishes Django setup in pytest_configure.
settings.INSTALLED_APPS  # noqa: B018
