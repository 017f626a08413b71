"""
Discovery of containers that opted in to backups.
"""

import logging
from typing import List, Optional

from docker_backup_tool.models import ContainerInfo


logger = logging.getLogger(__name__)


class Discovery:
    """
    Finds containers labelled `{prefix}.backup=true`.

    Stopped containers are included. The label must be exactly the string
    "true"; "True", "1" or "yes" do not enable a container.
    """

    def __init__(self, runtime, label_prefix: str):
        self.runtime = runtime
        self.label_prefix = label_prefix
        self.last_error: Optional[str] = None

    @property
    def enable_label(self) -> str:
        return f'{self.label_prefix}.backup'

    def list_backup_candidates(self) -> List[ContainerInfo]:
        """
        List containers with the backup label enabled.

        Returns:
            Matching containers, or an empty list if the runtime query failed
            (the error is logged and kept in last_error)
        """
        self.last_error = None

        try:
            containers = self.runtime.list_containers()
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Failed to list containers: {e}")
            return []

        return [
            c for c in containers
            if (c.labels or {}).get(self.enable_label) == 'true'
        ]
