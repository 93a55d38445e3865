"""
Project Files Domain

Read-only resources backed by files in the working directory, plus a
static user list.

This domain provides:
- file://read/pyproject.toml - the project manifest
- file://logs/app.log - the application log
- data://users/list - a fixed list of system users
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import anyio

from ..capabilities import ResourceSpec
from ..errors import ResourceUnavailable

logger = logging.getLogger(__name__)

USERS = [
    {"id": 1, "name": "John Doe", "email": "john@example.com"},
    {"id": 2, "name": "Jane Smith", "email": "jane@example.com"},
]


class ProjectResources:
    """Service backing the file and data resources."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = root if root is not None else Path.cwd()

    async def _read_text(self, path: Path) -> str:
        try:
            return await anyio.Path(path).read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ResourceUnavailable(f"File not found: {path}", cause=e) from e
        except OSError as e:
            raise ResourceUnavailable(f"Failed to read {path.name}: {e.strerror or e}", cause=e) from e

    async def read_manifest(self) -> str:
        path = self.root / "pyproject.toml"
        logger.info(f"Reading project manifest from {path}")
        return await self._read_text(path)

    async def read_log(self) -> str:
        return await self._read_text(self.root / "logs" / "app.log")

    async def read_users(self) -> str:
        return json.dumps(USERS, indent=2)

    def resources(self) -> list[ResourceSpec]:
        """Capability table for this service."""
        return [
            ResourceSpec(
                name="project-manifest",
                uri="file://read/pyproject.toml",
                title="Project Manifest",
                description="The pyproject.toml of the running project",
                mime_type="application/toml",
                reader=self.read_manifest,
            ),
            ResourceSpec(
                name="app-log",
                uri="file://logs/app.log",
                title="Application Log",
                description="Application log file",
                mime_type="text/plain",
                reader=self.read_log,
            ),
            ResourceSpec(
                name="users",
                uri="data://users/list",
                title="Users",
                description="List of system users",
                mime_type="application/json",
                reader=self.read_users,
            ),
        ]
