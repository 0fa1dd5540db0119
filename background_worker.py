"""Background notification worker for Voice Reminder Service.

Runs one ReminderSession against the reminder store API:
- Loads the reminder list on start and every WORKER_REFRESH_INTERVAL seconds
- Each load hands the newest snapshot to the scheduler (reconcile)
- Due reminders are delivered through the configured notification sink
- On SIGINT/SIGTERM the scheduler is torn down and the store and
  notification clients are closed before the loop exits
"""

import asyncio
import signal
import sys

from config import settings
from logger_config import setup_logger
from notifier import build_notifier
from scheduler import ReminderScheduler
from session import ReminderSession
from store_client import ReminderStoreClient

# Configure logging
logger = setup_logger(__name__, 'worker.log')


async def worker_loop(shutdown: asyncio.Event) -> None:
    """Keep the scheduler reconciled until shutdown is requested."""
    logger.info("Background worker started")
    logger.info(f"Worker enabled: {settings.WORKER_ENABLED}")
    logger.info(f"Refresh interval: {settings.WORKER_REFRESH_INTERVAL} seconds")
    logger.info(f"Reminder store: {settings.STORE_API_URL}")

    if not settings.WORKER_ENABLED:
        logger.warning("Worker is disabled in configuration. Exiting.")
        return

    notifier = build_notifier(settings)
    session = ReminderSession(
        ReminderStoreClient(),
        ReminderScheduler(notifier, loop=asyncio.get_running_loop())
    )

    iteration = 0
    try:
        while not shutdown.is_set():
            iteration += 1
            if await session.load():
                logger.info(
                    f"Iteration {iteration}: {len(session.reminders)} reminder(s), "
                    f"{len(session.scheduler.scheduled_ids)} armed"
                )
            else:
                logger.warning(f"Iteration {iteration}: {session.error}")

            try:
                await asyncio.wait_for(shutdown.wait(), timeout=settings.WORKER_REFRESH_INTERVAL)
            except asyncio.TimeoutError:
                pass
    finally:
        await session.close()
        await notifier.aclose()

    logger.info("Background worker shutting down gracefully")


async def run() -> None:
    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()

    def request_shutdown(signum):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        shutdown.set()

    for signum in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(signum, request_shutdown, signum)
        except NotImplementedError:
            # Windows: fall back to KeyboardInterrupt handling in main()
            pass

    await worker_loop(shutdown)


def main():
    """Main entry point for the background worker."""
    logger.info("=" * 60)
    logger.info("Voice Reminder Service - Notification Worker")
    logger.info("=" * 60)

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except Exception as e:
        logger.error(f"Fatal error in background worker: {str(e)}", exc_info=True)
        sys.exit(1)

    logger.info("Background worker stopped")
    sys.exit(0)


if __name__ == "__main__":
    main()
