"""
Backup module for docker-backup-tool.

This module handles the core backup functionality including:
- Container runtime access (docker SDK)
- Discovery of labelled containers
- Label to configuration mapping
- Execution of the per-container pipeline
- Retention policy enforcement
"""

from .runtime import DockerRuntime, ExecResult, RuntimeUnavailableError, CopyError, create_runtime
from .discovery import Discovery
from .labels import ConfigExtractor
from .checks import CommandError, OutputSuccessCheck, ExitCodeSuccessCheck, create_success_check
from .executor import BackupExecutor, BackupTimeoutError
from .retention import RetentionManager
from .runner import BackupRunner

__all__ = [
    'DockerRuntime',
    'ExecResult',
    'RuntimeUnavailableError',
    'CopyError',
    'create_runtime',
    'Discovery',
    'ConfigExtractor',
    'CommandError',
    'OutputSuccessCheck',
    'ExitCodeSuccessCheck',
    'create_success_check',
    'BackupExecutor',
    'BackupTimeoutError',
    'RetentionManager',
    'BackupRunner'
]
