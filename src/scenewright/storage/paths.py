"""Document paths for screenplay records.

Layout::

    projects/{project}
    projects/{project}/characters/{character}
    projects/{project}/screenplays/{screenplay}
    projects/{project}/screenplays/{screenplay}/scenes/{scene}
    projects/{project}/screenplays/{screenplay}/scenes/{scene}/content/main
    projects/{project}/screenplays/{screenplay}/history/{entry}
    projects/{project}/screenplays/{screenplay}/editor/state
    scene_locks/{scene}

Scene locks are keyed by scene id alone, outside any project, so two
screenplays sharing a scene id share its lock.
"""

from __future__ import annotations

from dataclasses import dataclass

LOCKS_COLLECTION = "scene_locks"


def lock_path(subject_id: str) -> str:
    """Path of the lease record for a scene."""
    return f"{LOCKS_COLLECTION}/{subject_id}"


def project_path(project_id: str) -> str:
    return f"projects/{project_id}"


def characters_path(project_id: str) -> str:
    return f"{project_path(project_id)}/characters"


@dataclass(frozen=True)
class ScreenplayPaths:
    """Paths of the records belonging to one screenplay."""

    project_id: str
    screenplay_id: str

    @property
    def screenplay(self) -> str:
        return f"{project_path(self.project_id)}/screenplays/{self.screenplay_id}"

    @property
    def scenes(self) -> str:
        return f"{self.screenplay}/scenes"

    @property
    def history(self) -> str:
        return f"{self.screenplay}/history"

    @property
    def editor_snapshot(self) -> str:
        return f"{self.screenplay}/editor/state"

    def scene(self, scene_id: str) -> str:
        return f"{self.scenes}/{scene_id}"

    def scene_content(self, scene_id: str) -> str:
        return f"{self.scene(scene_id)}/content/main"

    def history_entry(self, entry_id: str) -> str:
        return f"{self.history}/{entry_id}"
