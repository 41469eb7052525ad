"""
Background Jobs Service
Periodically sweeps dead entries out of the in-memory read cache

Invalidation only bumps the store sequence; stale and expired entries are dropped
lazily on their next lookup. Entries nobody asks for again would otherwise
sit in the store until LRU eviction, so a scheduled job purges them.
The same sweep forgets tags invalidated longer ago than the retention window.

Features:
- Scheduled jobs using APScheduler
- Configurable timezone
- Job monitoring and statistics
- Pause/resume of individual jobs
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from datetime import datetime
import logging
import os
from typing import Dict
from pytz import timezone

from moviedb.utils.cache import get_cache_store

logger = logging.getLogger(__name__)

PURGE_INTERVAL_MINUTES = 15


class BackgroundJobService:
    """
    Manages scheduled maintenance jobs

    Jobs:
    - Purge expired/invalidated cache entries (every 15 minutes)

    Usage:
        jobs = BackgroundJobService()
        jobs.start()  # Start all scheduled jobs
        jobs.shutdown()  # Stop all jobs gracefully
    """

    def __init__(self):
        """Initialize scheduler with timezone configuration"""
        tz_name = os.getenv("TIMEZONE", "UTC")
        self.timezone = timezone(tz_name)
        self.scheduler = BackgroundScheduler(timezone=self.timezone)

        # Track job execution statistics
        self.job_stats = {
            'purge_cache': {'last_run': None, 'status': 'idle', 'error': None, 'purged': 0},
        }

    @property
    def job_ids(self):
        return list(self.job_stats)

    def start(self):
        """
        Start all scheduled background jobs

        Jobs are only started if ENABLE_BACKGROUND_JOBS=true in environment
        """
        if os.getenv("ENABLE_BACKGROUND_JOBS", "true").lower() != "true":
            logger.info("Background jobs disabled via ENABLE_BACKGROUND_JOBS environment variable")
            return

        self.scheduler.add_job(
            func=self.purge_expired_cache,
            trigger=IntervalTrigger(minutes=PURGE_INTERVAL_MINUTES, timezone=self.timezone),
            id='purge_cache',
            name='Purge expired and invalidated cache entries',
            replace_existing=True,
            max_instances=1  # Prevent concurrent runs
        )
        logger.info(f"Scheduled: Purge cache (every {PURGE_INTERVAL_MINUTES} minutes)")

        self.scheduler.start()
        logger.info(f"Background jobs started (timezone {self.timezone}, {len(self.scheduler.get_jobs())} jobs)")

    def shutdown(self):
        """Shutdown scheduler gracefully"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Background jobs stopped gracefully")

    def get_job_stats(self) -> Dict:
        """
        Get statistics for all jobs including next run times

        Returns:
            Dict with job information and execution history
        """
        jobs_info = []
        for job in self.scheduler.get_jobs():
            stats = self.job_stats.get(job.id, {})
            jobs_info.append({
                'id': job.id,
                'name': job.name,
                'next_run': job.next_run_time.isoformat() if job.next_run_time else None,
                'last_run': stats.get('last_run'),
                'status': stats.get('status', 'idle'),
                'error': stats.get('error'),
                'purged': stats.get('purged', 0)
            })

        return {
            'scheduler_running': self.scheduler.running,
            'timezone': str(self.timezone),
            'jobs': jobs_info
        }

    # ============================================
    # Job Methods
    # ============================================

    def purge_expired_cache(self) -> int:
        """Drop entries whose TTL passed or whose tags were invalidated"""
        job_id = 'purge_cache'
        self.job_stats[job_id]['status'] = 'running'
        self.job_stats[job_id]['error'] = None
        start_time = datetime.now()

        try:
            purged = get_cache_store().purge_expired()
            elapsed = (datetime.now() - start_time).total_seconds()
            logger.info(f"[{job_id}] Completed in {elapsed:.2f}s - Purged {purged} entries")

            self.job_stats[job_id]['status'] = 'success'
            self.job_stats[job_id]['purged'] = purged
            return purged

        except Exception as e:
            error_msg = str(e)
            logger.error(f"[{job_id}] Failed: {error_msg}")
            self.job_stats[job_id]['status'] = 'failed'
            self.job_stats[job_id]['error'] = error_msg
            return 0

        finally:
            self.job_stats[job_id]['last_run'] = datetime.now().isoformat()

    def pause_job(self, job_id: str):
        """Pause a scheduled job"""
        try:
            self.scheduler.pause_job(job_id)
            logger.info(f"Paused job: {job_id}")
        except Exception as e:
            logger.error(f"Failed to pause job {job_id}: {str(e)}")
            raise

    def resume_job(self, job_id: str):
        """Resume a paused job"""
        try:
            self.scheduler.resume_job(job_id)
            logger.info(f"Resumed job: {job_id}")
        except Exception as e:
            logger.error(f"Failed to resume job {job_id}: {str(e)}")
            raise


# Global singleton instance
background_jobs = BackgroundJobService()
