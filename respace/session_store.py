"""Persistence of tracked artifacts for open workspaces.

The engine itself is stateless; this store is how the CLI remembers what a
launch produced between invocations. One JSON document keyed by workspace
id, written atomically (temp file + rename).
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from .constants import ConfigPaths
from .errors import ErrorCode, RespaceError
from .models import TrackedArtifact

logger = logging.getLogger(__name__)


class SessionRecord(BaseModel):
    """Artifacts of one launched workspace."""

    workspace_name: str
    launched_at: datetime = Field(default_factory=datetime.now)
    artifacts: List[TrackedArtifact] = Field(default_factory=list)


class SessionStore:
    """sessions.json reader/writer.

    Example:
        >>> store = SessionStore()
        >>> store.save(workspace.id, workspace.name, artifacts)
        >>> store.load(workspace.id).artifacts
    """

    def __init__(self, sessions_file: Optional[Path] = None):
        self.sessions_file = sessions_file or ConfigPaths.SESSIONS_FILE

    def _read(self) -> Dict[str, SessionRecord]:
        if not self.sessions_file.exists():
            return {}

        try:
            with open(self.sessions_file) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to read sessions from {self.sessions_file}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Ignoring malformed sessions file {self.sessions_file}")
            return {}

        records: Dict[str, SessionRecord] = {}
        for workspace_id, entry in data.items():
            try:
                records[workspace_id] = SessionRecord.model_validate(entry)
            except ValidationError as e:
                logger.error(f"Skipping invalid session for workspace {workspace_id}: {e}")
        return records

    def _write(self, records: Dict[str, SessionRecord]) -> None:
        data = {
            workspace_id: record.model_dump(mode="json")
            for workspace_id, record in records.items()
        }

        try:
            self.sessions_file.parent.mkdir(parents=True, exist_ok=True)

            # Atomic write using temp file + rename
            fd, temp_path = tempfile.mkstemp(
                dir=self.sessions_file.parent, prefix=".sessions-", suffix=".json"
            )
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(data, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())

                os.replace(temp_path, self.sessions_file)
            except Exception:
                if Path(temp_path).exists():
                    os.unlink(temp_path)
                raise

        except OSError as e:
            logger.error(f"Failed to save sessions to {self.sessions_file}: {e}")
            raise RespaceError(
                code=ErrorCode.SESSION_STORE_FAILED,
                message=f"Failed to save sessions: {e}",
                suggestion=f"Check permissions of {self.sessions_file.parent}",
                context={"file_path": str(self.sessions_file)},
            ) from e

    def save(
        self,
        workspace_id: str,
        workspace_name: str,
        artifacts: List[TrackedArtifact],
    ) -> SessionRecord:
        """Store (replace) the artifacts of a workspace."""
        records = self._read()
        record = SessionRecord(workspace_name=workspace_name, artifacts=artifacts)
        records[workspace_id] = record
        self._write(records)
        logger.info(f"Saved {len(artifacts)} artifact(s) for workspace {workspace_name!r}")
        return record

    def load(self, workspace_id: str) -> Optional[SessionRecord]:
        return self._read().get(workspace_id)

    def remove(self, workspace_id: str) -> bool:
        """Forget a workspace's artifacts.

        Returns:
            True if an entry was removed
        """
        records = self._read()
        if workspace_id not in records:
            return False
        del records[workspace_id]
        self._write(records)
        return True

    def list_open(self) -> Dict[str, SessionRecord]:
        """Workspaces that still have stored artifacts."""
        return {
            workspace_id: record
            for workspace_id, record in self._read().items()
            if record.artifacts
        }
