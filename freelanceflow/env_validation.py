import os
import logging
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)

# Mandatory environment variables for production
REQUIRED_PRODUCTION_ENV_VARS = [
    "SECRET_KEY",
    "DATABASE_URL",
]

# Invoicing settings that must parse as positive whole numbers when set
NUMERIC_ENV_VARS = {
    "INVOICE_PAYMENT_TERMS_DAYS": "a whole number of days",
    "INVOICE_NUMBER_MAX_ATTEMPTS": "a positive whole number",
}


def _numeric_problems():
    problems = []
    for var, expected in NUMERIC_ENV_VARS.items():
        value = os.getenv(var)
        if value is None:
            continue
        if not value.strip().isdigit() or (var == "INVOICE_NUMBER_MAX_ATTEMPTS" and int(value) < 1):
            problems.append(f"{var} must be {expected}, got {value!r}")
    return problems


def validate_env():
    """
    Validate environment variables before settings are built.

    Production refuses to start without a database URL and a real secret key.
    Malformed invoicing numbers are fatal everywhere, since settings would
    otherwise crash on ``int()`` with a less helpful message.
    """
    is_production = os.getenv("PRODUCTION", "false").lower() == "true"

    problems = _numeric_problems()
    if problems:
        error_msg = "CRITICAL: " + "; ".join(problems)
        logger.critical(error_msg)
        raise ImproperlyConfigured(error_msg)

    secret_key = os.getenv("SECRET_KEY")
    if not secret_key and not is_production:
        logger.warning("SECRET_KEY not set, using insecure default for development.")

    if is_production:
        missing = [var for var in REQUIRED_PRODUCTION_ENV_VARS if not os.getenv(var)]
        if missing:
            error_msg = f"CRITICAL: Missing required environment variables in production: {', '.join(missing)}"
            logger.critical(error_msg)
            raise ImproperlyConfigured(error_msg)

        if secret_key.startswith("django-insecure") or len(secret_key) < 50:
            error_msg = "CRITICAL: SECRET_KEY must be a long, secure string in production"
            logger.critical(error_msg)
            raise ImproperlyConfigured(error_msg)

        if not os.getenv("SENDGRID_API_KEY") and not os.getenv("EMAIL_HOST"):
            logger.warning("Neither SENDGRID_API_KEY nor EMAIL_HOST is set; invoice emails will fail to send.")

    logger.info("Environment validation passed successfully")
