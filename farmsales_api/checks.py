from django.conf import settings
from django.core.checks import Error, Warning, register

REQUIRED_SETTINGS = ('SUPABASE_URL', 'SUPABASE_KEY', 'INTERNAL_SEND_TOKEN')


@register()
def check_hosted_backend_settings(app_configs, **kwargs):
    """Report missing hosted backend configuration.

    Missing values are errors in production and warnings elsewhere.
    """
    missing = [name for name in REQUIRED_SETTINGS if not getattr(settings, name, '')]
    if not missing:
        return []

    message = f"Missing required configuration: {', '.join(missing)}"
    if getattr(settings, 'PRODUCTION', False):
        return [Error(message, hint='Set the values in the environment or .env file.', id='farmsales.E001')]
    return [Warning(message, hint='Receipt emails will fail until these are set.', id='farmsales.W001')]
