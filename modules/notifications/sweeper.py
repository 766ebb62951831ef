"""
Periodic notification sweep.

Runs the evaluator over the registry's current parts/technicians and publishes
the drafts. There is no background thread: create_app() runs it once at start
and a before_request hook calls maybe_run() on each request, which sweeps when
the interval has elapsed or when the registry reported a change since the last
sweep. The publish cool-down keeps repeated sweeps from duplicating alerts.
"""
import logging
import threading
from datetime import timedelta

from .evaluator import run_all_checks

logger = logging.getLogger(__name__)


class NotificationSweeper:
    def __init__(self, registry, interval=timedelta(minutes=30), cooldown=timedelta(minutes=30)):
        self.registry = registry
        self.interval = interval
        self.cooldown = cooldown
        self.last_run = None
        self.dirty = False
        self._lock = threading.Lock()
        registry.subscribe(self.mark_dirty)

    def mark_dirty(self):
        self.dirty = True

    def run(self):
        now = self.registry.clock()
        self.dirty = False
        drafts = run_all_checks(
            self.registry.list_parts(),
            self.registry.list_technicians(),
            now=now,
            daily_capacity=self.registry.daily_capacity,
        )
        created = self.registry.publish(drafts, cooldown=self.cooldown)
        self.last_run = now
        logger.info("Notification sweep: %d finding(s), %d published", len(drafts), len(created))
        return created

    def due(self) -> bool:
        if self.last_run is None or self.dirty:
            return True
        return self.registry.clock() - self.last_run >= self.interval

    def maybe_run(self):
        if self.interval <= timedelta(0):
            return []
        # one sweep at a time under the threaded dev server
        with self._lock:
            if not self.due():
                return []
            return self.run()
