"""
Production settings
Reads configuration from environment variables (.env file)
"""

from .settings import *
import os
from django.core.exceptions import ImproperlyConfigured
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Security settings from environment
DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
PRODUCTION = os.getenv('PRODUCTION', 'True').lower() == 'true'
SECRET_KEY = os.getenv('SECRET_KEY', SECRET_KEY)

# Allowed hosts from environment
ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', '').split(',')

# Database configuration from environment
DB_ENGINE = os.getenv('DB_ENGINE', 'postgres')
if DB_ENGINE == 'postgres':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.getenv('DB_NAME'),
            'USER': os.getenv('DB_USER'),
            'PASSWORD': os.getenv('DB_PASSWORD'),
            'HOST': os.getenv('DB_HOST'),
            'PORT': os.getenv('DB_PORT', '5432'),
            'OPTIONS': {
                'sslmode': os.getenv('DB_SSLMODE', 'require'),
            },
        }
    }

STATIC_ROOT = os.getenv('STATIC_ROOT', str(BASE_DIR / 'staticfiles'))

# CORS configuration from environment
cors_origins = os.getenv('CORS_ALLOWED_ORIGINS', '')
if cors_origins:
    CORS_ALLOWED_ORIGINS = [origin.strip() for origin in cors_origins.split(',')]

# CSRF trusted origins from environment
csrf_origins = os.getenv('CSRF_TRUSTED_ORIGINS', '')
if csrf_origins:
    CSRF_TRUSTED_ORIGINS = [origin.strip() for origin in csrf_origins.split(',')]

# Hosted backend and receipt email function
SUPABASE_URL = os.getenv('SUPABASE_URL', SUPABASE_URL)
SUPABASE_KEY = os.getenv('SUPABASE_KEY', SUPABASE_KEY)
INTERNAL_SEND_TOKEN = os.getenv('INTERNAL_SEND_TOKEN', INTERNAL_SEND_TOKEN)
RECEIPT_EMAIL_FUNCTION_URL = os.getenv(
    'RECEIPT_EMAIL_FUNCTION_URL',
    f"{SUPABASE_URL.rstrip('/')}/functions/v1/send-receipt-email" if SUPABASE_URL else '',
)

missing = [
    name for name in ('SUPABASE_URL', 'SUPABASE_KEY', 'INTERNAL_SEND_TOKEN')
    if not globals().get(name)
]
if PRODUCTION and missing:
    raise ImproperlyConfigured(f"Missing required configuration: {', '.join(missing)}")

# Security settings for production
SECURE_BROWSER_XSS_FILTER = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# Session configuration
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_HTTPONLY = True

LOG_DIR = os.getenv('LOG_DIR', str(BASE_DIR))
LOGGING['handlers']['file']['level'] = 'INFO'
LOGGING['handlers']['file']['filename'] = os.path.join(LOG_DIR, 'django.log')
LOGGING['handlers']['console']['level'] = 'INFO'
