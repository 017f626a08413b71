"""
Shared pytest fixtures for docker-backup-tool tests.

This module provides fixtures for:
- Configuration pointing at a temporary backup directory
- Container factories
- A fake container runtime that records exec/copy calls
- Mock fixtures for the docker SDK client and APScheduler
"""

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from docker_backup_tool.config import Config
from docker_backup_tool.models import ContainerInfo
from docker_backup_tool.backup.runtime import ExecResult


PREFIX = 'docker-backup-tool'


class FakeRuntime:
    """
    In-memory stand-in for DockerRuntime.

    copy_from_container writes a small file into the host directory and gives
    every copied artifact a strictly increasing modification time.
    """

    def __init__(self, containers=None):
        self.containers = list(containers or [])
        self.exec_results = {}  # command substring -> ExecResult
        self.exec_calls = []
        self.copy_calls = []
        self.list_error = None
        self.copy_error = None
        self._mtime = 1700000000

    def list_containers(self):
        if self.list_error is not None:
            raise self.list_error
        return list(self.containers)

    def exec(self, container_id, command):
        self.exec_calls.append((container_id, command))
        for pattern, result in self.exec_results.items():
            if pattern in command:
                return result
        return ExecResult(exit_code=0, output='')

    def copy_from_container(self, container_id, path, host_dir):
        self.copy_calls.append((container_id, path, host_dir))
        if self.copy_error is not None:
            raise self.copy_error

        dest = Path(host_dir) / os.path.basename(path)
        dest.write_text('backup data')
        self._mtime += 60
        os.utime(dest, (self._mtime, self._mtime))
        return dest


@pytest.fixture
def backup_dir(tmp_path):
    """Host backup root."""
    path = tmp_path / 'backups'
    path.mkdir()
    return path


@pytest.fixture
def config(backup_dir):
    """Config with defaults and a temporary backup directory."""
    return Config(backup_dir=str(backup_dir))


@pytest.fixture
def make_container():
    """
    Factory for ContainerInfo with labels given as suffix -> value.

    make_container('mysql-app', backup='true', command='echo hi')
    """
    def _make(name, container_id=None, state='running', **labels):
        return ContainerInfo(
            id=container_id or f'{name}-id'.ljust(64, '0'),
            names=[f'/{name}'],
            labels={f'{PREFIX}.{key}': value for key, value in labels.items()},
            state=state
        )

    return _make


@pytest.fixture
def fake_runtime():
    """FakeRuntime with no containers."""
    return FakeRuntime()


@pytest.fixture
def mock_docker_client():
    """
    Mock docker.DockerClient.

    Tests configure client.api.* return values as needed.
    """
    client = MagicMock()
    client.ping.return_value = True
    client.api.containers.return_value = []
    return client


@pytest.fixture(scope='function')
def mock_scheduler():
    """
    Mock APScheduler for testing scheduler functionality.
    """
    with patch('docker_backup_tool.scheduler.BackgroundScheduler') as mock_sched:
        scheduler_instance = MagicMock()
        mock_sched.return_value = scheduler_instance

        # Mock scheduler methods
        scheduler_instance.running = False
        scheduler_instance.state = 0
        scheduler_instance.get_jobs.return_value = []

        yield scheduler_instance
