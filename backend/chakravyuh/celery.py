# chakravyuh/celery.py
import os
import logging
from celery import Celery
from celery.signals import worker_process_init, worker_process_shutdown

# Set default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE',
                      'chakravyuh.settings.development')

logger = logging.getLogger(__name__)

# Create Celery application
app = Celery('chakravyuh')

# Load configuration from Django settings with CELERY namespace
app.config_from_object('django.conf:settings', namespace='CELERY')

# ============================================================================
# BROKER CONNECTION SETTINGS
# ============================================================================
app.conf.broker_connection_retry = True
app.conf.broker_connection_retry_on_startup = True

# ============================================================================
# TASK CONFIGURATION
# ============================================================================
app.conf.task_serializer = 'json'
app.conf.result_serializer = 'json'
app.conf.accept_content = ['json']
app.conf.timezone = 'UTC'
app.conf.enable_utc = True

# Task result backend settings
app.conf.result_expires = 3600  # Results expire after 1 hour

# Notification tasks are fire-and-forget: no result tracking
app.conf.task_ignore_result = True
app.conf.task_time_limit = 5 * 60  # 5 minutes hard limit
app.conf.task_soft_time_limit = 4 * 60  # 4 minutes soft limit

# ============================================================================
# AUTODISCOVER TASKS
# ============================================================================
app.autodiscover_tasks()


# ============================================================================
# PROCESS-SCOPED SERVICES
# ============================================================================
@worker_process_init.connect
def start_process_services(**kwargs):
    """Open the pooled mail connection once per worker process."""
    from apps.notifications.services.email_service import get_email_service

    get_email_service().start()
    logger.info("Email service started for worker process")


@worker_process_shutdown.connect
def stop_process_services(**kwargs):
    """Close the pooled mail connection when the worker process exits."""
    from apps.notifications.services.email_service import get_email_service

    get_email_service().stop()
    logger.info("Email service stopped for worker process")
