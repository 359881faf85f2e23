"""
Database helpers shared by the service layer.
"""
import logging

from django.db import OperationalError, connection

from apps.core.services.base import UpstreamError

logger = logging.getLogger(__name__)


def ensure_storage_available():
    """
    Make sure the database connection is usable before a write.

    Raises:
        UpstreamError: when the database cannot be reached
    """
    try:
        connection.ensure_connection()
    except OperationalError as e:
        logger.error("Database unavailable", exc_info=e)
        raise UpstreamError(
            'Database unavailable. Please try again later.'
        ) from e
