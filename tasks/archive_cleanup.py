# tasks/archive_cleanup.py
"""
Celery tasks that expire staged download archives

Two mechanisms remove archives:
- ``delete_archive`` is scheduled with a countdown when an archive is built;
  the pending task lives in the broker, so it survives web-process restarts
- ``purge_expired_archives`` runs periodically from celery beat and deletes
  any archive older than the TTL, catching files whose scheduled deletion was
  lost (broker flush, scheduling failure)
"""

import os
import time
from pathlib import Path
from typing import Any, Dict

from celery import Celery
from celery.signals import task_failure
from celery.utils.log import get_task_logger
from kombu import Queue

from config.settings import BaseConfig

# Configure task logger
logger = get_task_logger(__name__)

ARCHIVE_SUFFIX = '.zip'

celery_app = Celery('journals')
celery_app.conf.update({
    # Serialization
    'task_serializer': 'json',
    'result_serializer': 'json',
    'accept_content': ['json'],

    # Timezone
    'timezone': 'UTC',
    'enable_utc': True,

    # Task Execution
    'task_acks_late': True,
    'task_reject_on_worker_lost': True,
    'worker_prefetch_multiplier': 1,

    # Result settings
    'result_expires': 3600,  # 1 hour

    # Routing
    'task_default_queue': 'default',
    'task_queues': (
        Queue('archives', routing_key='archives'),
        Queue('default', routing_key='default'),
    ),
    'task_routes': {
        'tasks.archive_cleanup.*': {'queue': 'archives'},
    },

    # Monitoring
    'worker_hijack_root_logger': False,
    'worker_log_color': False,
})


@celery_app.task(name='tasks.archive_cleanup.delete_archive')
def delete_archive(path: str) -> bool:
    """
    Delete one staged archive

    Returns:
        True if a file was removed, False if it was already gone
    """
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.info(f"Archive {path} already removed")
        return False

    logger.info(f"Archive {path} expired and was deleted")
    return True


@celery_app.task(name='tasks.archive_cleanup.purge_expired_archives')
def purge_expired_archives(folder: str, max_age_seconds: float) -> Dict[str, Any]:
    """Delete every archive in ``folder`` last modified more than ``max_age_seconds`` ago"""
    root = Path(folder)
    if not root.is_dir():
        return {'folder': folder, 'deleted': []}

    cutoff = time.time() - max_age_seconds
    deleted = []
    for archive in root.glob(f'*{ARCHIVE_SUFFIX}'):
        try:
            if archive.stat().st_mtime > cutoff:
                continue
            archive.unlink()
        except FileNotFoundError:
            continue
        deleted.append(archive.name)

    if deleted:
        logger.info(f"Purged {len(deleted)} expired archives from {folder}")
    return {'folder': folder, 'deleted': deleted}


def schedule_purge(folder: str, max_age_seconds: float, interval_seconds: float) -> None:
    """Register the periodic purge with celery beat"""
    celery_app.conf.beat_schedule = {
        'purge-expired-archives': {
            'task': 'tasks.archive_cleanup.purge_expired_archives',
            'schedule': interval_seconds,
            'args': (folder, max_age_seconds),
        },
    }


def configure_worker(broker_url: str, result_backend: str, archive_folder: str,
                     max_age_seconds: float, purge_interval: float) -> None:
    """Point the app at its broker and schedule the purge of ``archive_folder``"""
    celery_app.conf.update({
        'broker_url': broker_url,
        'result_backend': result_backend,
    })
    schedule_purge(os.path.abspath(archive_folder), max_age_seconds, purge_interval)


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, einfo=None, **kwargs):
    """Handle task failure events"""
    logger.error(f"Task {sender.name} [{task_id}] failed: {exception}")


# Workers started with ``celery -A tasks.archive_cleanup`` never build the
# Flask app, so they read the same environment-driven settings here
configure_worker(
    BaseConfig.CELERY_BROKER_URL,
    BaseConfig.CELERY_RESULT_BACKEND,
    BaseConfig.ARCHIVE_FOLDER,
    BaseConfig.ARCHIVE_TTL_SECONDS,
    BaseConfig.ARCHIVE_PURGE_INTERVAL,
)


if __name__ == '__main__':
    celery_app.start()
