"""
Process entry point.

Exit codes:
    0  clean shutdown after SIGINT/SIGTERM
    1  startup failure (bad configuration, Docker unreachable, backup
       directory not writable)
"""

import logging
import signal
import sys
import threading
from pathlib import Path

from docker_backup_tool import configure_logging, create_service
from docker_backup_tool.config import Config
from docker_backup_tool.backup.runtime import RuntimeUnavailableError, create_runtime


logger = logging.getLogger(__name__)


class StartupError(Exception):
    """Raised when the service cannot start serving scheduled runs."""
    pass


def open_runtime(config: Config):
    """
    Connect to Docker and prepare the backup root directory.

    Returns:
        Connected DockerRuntime

    Raises:
        StartupError: If Docker is unreachable or the directory cannot be created
    """
    try:
        runtime = create_runtime(config)
        runtime.ping()
    except RuntimeUnavailableError as e:
        raise StartupError(str(e))

    try:
        Path(config.backup_dir).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        runtime.close()
        raise StartupError(f"Cannot create backup directory {config.backup_dir}: {e}")

    return runtime


def main() -> int:
    try:
        config = Config.from_env()
    except ValueError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Invalid configuration: {e}")
        return 1

    configure_logging(config)
    logger.info(f"Loaded config: {config}")

    try:
        runtime = open_runtime(config)
    except StartupError as e:
        logger.error(f"Failed to start: {e}")
        return 1

    stop_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, shutting down")
        stop_event.set()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    with runtime:
        try:
            service = create_service(config, runtime)
            service.start()
        except (ValueError, LookupError) as e:
            logger.error(f"Failed to start scheduler: {e}")
            return 1

        try:
            while not stop_event.wait(1):
                pass
        finally:
            service.stop()

    logger.info("Backup service stopped.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
