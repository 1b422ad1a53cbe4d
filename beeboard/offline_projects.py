# offline_projects.py

"""
Project list for the non-authenticated fallback mode.

Summaries live in a local key-value YAML file under the fixed key
``projects``. This list never touches columns or tasks and is not connected
to the BoardStateStore.
"""

import logging
from pathlib import Path
from typing import List

from beeboard.errors import ValidationError
from beeboard.models import ProjectSummary
from beeboard.utils import generate_id, load_yaml, save_yaml

logger = logging.getLogger(__name__)

PROJECTS_KEY = "projects"


class OfflineProjectList:
    def __init__(self, path: str | Path):
        self.path = Path(path).resolve()

    def _load(self) -> dict:
        data = load_yaml(self.path, default={PROJECTS_KEY: []}) or {}
        if PROJECTS_KEY not in data or not isinstance(data[PROJECTS_KEY], list):
            data[PROJECTS_KEY] = []
        return data

    def list(self) -> List[ProjectSummary]:
        return [ProjectSummary(**entry) for entry in self._load()[PROJECTS_KEY]]

    def add(self, title: str, description: str = "") -> ProjectSummary:
        """Append a new summary with zeroed task counts and a single member."""
        if not title or not title.strip():
            raise ValidationError("Project title is required")

        summary = ProjectSummary(
            id=generate_id(),
            title=title.strip(),
            description=(description or "").strip(),
        )
        data = self._load()
        data[PROJECTS_KEY].append(summary.model_dump(mode="json", by_alias=True))
        save_yaml(self.path, data)
        logger.info(f"Saved offline project {summary.id} to {self.path}")
        return summary
