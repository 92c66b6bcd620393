import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class NotificationScheduler:
    """Runs a job once at start and then every ``interval_seconds``.

    The loop owns its stop event, so ``stop()`` cancels the wait
    immediately instead of sleeping out the interval. One scheduler drives
    the notification cycle per process; ``start()`` on a running scheduler
    does nothing.
    """

    def __init__(
        self,
        job: Callable[[], None],
        interval_seconds: float,
        name: str = "compliance-notifier",
    ):
        self.job = job
        self.interval_seconds = interval_seconds
        self.name = name
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                logger.warning("Scheduler %s already running", self.name)
                return
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._loop, name=self.name, daemon=True
            )
            self._thread.start()
        logger.info(
            "Scheduler %s started - runs every %ss", self.name, self.interval_seconds
        )

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is not None:
            thread.join(timeout)
        logger.info("Scheduler %s stopped", self.name)

    def run_once(self) -> None:
        """Run the job synchronously; failures are logged, never raised."""
        try:
            self.job()
        except Exception as e:
            logger.exception("Scheduled job %s failed: %s", self.name, e)

    def _loop(self) -> None:
        while not self._stop.is_set():
            self.run_once()
            if self._stop.wait(self.interval_seconds):
                break
