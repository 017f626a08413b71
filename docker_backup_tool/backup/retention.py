"""
Retention policy enforcement for backups.

Keeps the newest N artifacts in a container's host backup directory and
deletes the rest. Artifacts are recognised by the `{name}_{timestamp}`
naming convention; entries without an underscore are never touched.
"""

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import List


logger = logging.getLogger(__name__)

ARTIFACT_SEPARATOR = '_'


class RetentionManager:
    """
    Manages count-based retention of backup artifacts.
    """

    def list_artifacts(self, directory) -> List[dict]:
        """
        List backup artifacts in a directory, newest first.

        Args:
            directory: Host backup directory of one container

        Returns:
            List of dicts with 'name', 'path' and 'modified' keys

        Raises:
            OSError: If the directory cannot be read
        """
        artifacts = []

        for entry in Path(directory).iterdir():
            if ARTIFACT_SEPARATOR not in entry.name:
                continue
            try:
                modified = entry.stat().st_mtime
            except FileNotFoundError:
                continue
            artifacts.append({
                'name': entry.name,
                'path': entry,
                'modified': datetime.fromtimestamp(modified)
            })

        artifacts.sort(key=lambda a: a['modified'], reverse=True)
        return artifacts

    def prune(self, directory, retention: int) -> List[str]:
        """
        Delete artifacts beyond the newest `retention` ones.

        Failures on individual entries are logged and do not stop the
        remaining deletions. Running it again without new artifacts is a
        no-op.

        Args:
            directory: Host backup directory of one container
            retention: Number of artifacts to keep (at least 1)

        Returns:
            Names of deleted artifacts

        Raises:
            ValueError: If retention is less than 1
        """
        if retention < 1:
            raise ValueError(f"Retention must be at least 1, got {retention}")

        try:
            artifacts = self.list_artifacts(directory)
        except OSError as e:
            logger.error(f"Failed to cleanup old backups in {directory}: {e}")
            return []

        if len(artifacts) <= retention:
            return []

        deleted = []
        for artifact in artifacts[retention:]:
            try:
                self._delete(artifact['path'])
                deleted.append(artifact['name'])
                logger.debug(f"Deleted old backup: {artifact['name']}")
            except OSError as e:
                logger.error(f"Failed to delete old backup {artifact['path']}: {e}")

        logger.info(f"Retention cleanup in {directory}: kept {retention}, deleted {len(deleted)}")
        return deleted

    def _delete(self, path: Path):
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
