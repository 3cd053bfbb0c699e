import logging

from django.conf import settings
from django.db import DatabaseError, connection

logger = logging.getLogger(__name__)


def check_database_connection():
    if not settings.DATABASES:
        logger.error("DATABASES setting is not configured !!")
        raise ValueError("DATABASES setting is not configured")

    try:
        connection.ensure_connection()
    except DatabaseError as e:
        logger.error(f"Database connection error: {e}")
        return False
    return connection.is_usable()
