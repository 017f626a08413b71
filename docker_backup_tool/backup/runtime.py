"""
Container runtime boundary.

Wraps the docker SDK behind the four operations the backup pipeline needs:
- list all containers (running and stopped) with their labels
- run a shell command inside a container and collect its output
- copy a path from a container to the host
- health check of the daemon connection
"""

import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import List, NamedTuple, Optional

import docker
from docker.errors import DockerException, NotFound

from docker_backup_tool.models import ContainerInfo


logger = logging.getLogger(__name__)


class RuntimeUnavailableError(Exception):
    """Raised when the container runtime cannot be reached."""
    pass


class CopyError(Exception):
    """Raised when copying a path out of a container fails."""
    pass


class ExecResult(NamedTuple):
    """Result of a command executed inside a container."""
    exit_code: Optional[int]
    output: str


class DockerRuntime:
    """
    Docker daemon client owned by the backup service.

    Create once at startup and close on shutdown, or use as a context manager.
    """

    def __init__(self, base_url: str = 'unix:///var/run/docker.sock', client=None):
        """
        Initialize the runtime.

        Args:
            base_url: Docker daemon URL
            client: Pre-built docker.DockerClient (mainly for tests)

        Raises:
            RuntimeUnavailableError: If the client cannot be created
        """
        self.base_url = base_url

        if client is None:
            try:
                client = docker.DockerClient(base_url=base_url)
            except DockerException as e:
                raise RuntimeUnavailableError(f"Failed to connect to Docker at {base_url}: {e}")

        self.client = client

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        """Release the daemon connection."""
        try:
            self.client.close()
        except DockerException as e:
            logger.warning(f"Failed to close Docker client: {e}")

    def ping(self) -> bool:
        """
        Check that the Docker daemon answers.

        Raises:
            RuntimeUnavailableError: If the daemon is unreachable
        """
        try:
            return self.client.ping()
        except DockerException as e:
            raise RuntimeUnavailableError(f"Docker daemon unreachable at {self.base_url}: {e}")

    def list_containers(self) -> List[ContainerInfo]:
        """
        List all containers, including stopped ones.

        Raises:
            DockerException: If the daemon query fails
        """
        containers = []
        for c in self.client.api.containers(all=True):
            containers.append(ContainerInfo(
                id=c['Id'],
                names=list(c.get('Names') or []),
                labels=dict(c.get('Labels') or {}),
                state=c.get('State')
            ))
        return containers

    def exec(self, container_id: str, command: str) -> ExecResult:
        """
        Run a shell command inside a container.

        Output of stdout and stderr is collected in one stream until the
        command finishes.

        Args:
            container_id: Target container ID
            command: Shell command, run through `sh -c`

        Returns:
            ExecResult with exit code and combined output

        Raises:
            DockerException: If the exec session cannot be created or started
        """
        exec_id = self.client.api.exec_create(
            container_id,
            ['sh', '-c', command],
            stdout=True,
            stderr=True
        )['Id']

        chunks = []
        for chunk in self.client.api.exec_start(exec_id, stream=True):
            chunks.append(chunk)
        output = b''.join(chunks).decode('utf-8', errors='replace')

        exit_code = self.client.api.exec_inspect(exec_id).get('ExitCode')
        return ExecResult(exit_code=exit_code, output=output)

    def copy_from_container(self, container_id: str, path: str, host_dir: str) -> Path:
        """
        Copy a file out of a container into a host directory.

        The path is fetched as a tar stream and its regular files are written
        into host_dir under their base names.

        Args:
            container_id: Source container ID
            path: Path inside the container
            host_dir: Existing host directory

        Returns:
            Host path of the copied file

        Raises:
            CopyError: If the path does not exist or cannot be copied
        """
        try:
            stream, _ = self.client.api.get_archive(container_id, path)
        except NotFound:
            raise CopyError(f"Path not found in container {container_id[:12]}: {path}")
        except DockerException as e:
            raise CopyError(f"Failed to copy {path} from container {container_id[:12]}: {e}")

        copied = []

        try:
            with tempfile.TemporaryFile() as buffer:
                for chunk in stream:
                    buffer.write(chunk)
                buffer.seek(0)

                with tarfile.open(fileobj=buffer, mode='r|*') as tar:
                    for member in tar:
                        if not member.isfile():
                            continue
                        dest_path = Path(host_dir) / os.path.basename(member.name)
                        source = tar.extractfile(member)
                        with open(dest_path, 'wb') as dest:
                            shutil.copyfileobj(source, dest)
                        copied.append(dest_path)
        except (tarfile.TarError, OSError, DockerException) as e:
            raise CopyError(f"Failed to extract {path} from container {container_id[:12]}: {e}")

        if not copied:
            raise CopyError(f"No regular file at {path} in container {container_id[:12]}")

        return copied[0]


def create_runtime(config) -> DockerRuntime:
    """
    Factory function to create the runtime from configuration.

    Args:
        config: Config instance

    Returns:
        DockerRuntime instance
    """
    return DockerRuntime(base_url=config.docker_host)
