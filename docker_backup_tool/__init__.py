import os
import logging
from logging.handlers import RotatingFileHandler


def configure_logging(config):
    """Configure application logging"""

    log_level = getattr(logging, config.log_level, logging.INFO)
    handlers = []

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    )
    console_handler.setFormatter(console_formatter)
    handlers.append(console_handler)

    # File handler
    if config.log_dir:
        os.makedirs(config.log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(config.log_dir, 'docker-backup-tool.log'),
            maxBytes=10485760,  # 10MB
            backupCount=10
        )
        file_handler.setLevel(log_level)
        file_formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s [%(name)s.%(funcName)s:%(lineno)d] %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    # Configure root logger
    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # APScheduler logs every job execution at INFO
    if not config.debug:
        logging.getLogger('apscheduler').setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured (level: {logging.getLevelName(log_level)})")


def create_service(config, runtime):
    """
    Wire the backup pipeline and its scheduler.

    Args:
        config: Config instance
        runtime: DockerRuntime (or compatible)

    Returns:
        BackupScheduler, not yet started
    """
    from docker_backup_tool.backup import (
        BackupExecutor, BackupRunner, ConfigExtractor, Discovery,
        RetentionManager, create_success_check
    )
    from docker_backup_tool.scheduler import BackupScheduler

    executor = BackupExecutor(
        backup_dir=config.backup_dir,
        runtime=runtime,
        retention_manager=RetentionManager(),
        success_check=create_success_check(config.success_check),
        timeout=config.command_timeout
    )

    runner = BackupRunner(
        discovery=Discovery(runtime, config.label_prefix),
        extractor=ConfigExtractor(config.label_prefix),
        executor=executor,
        default_schedule=config.cron_schedule
    )

    return BackupScheduler(runner, config.cron_schedule, config.timezone)
