"""Scene decomposition, leases and the save manager."""

from scenewright.persistence.decompose import (
    PRELUDE_SCENE_ID,
    build_scene_content,
    extract_characters,
    reconstruct_blocks,
    split_action_into_chunks,
    split_into_scenes,
)
from scenewright.persistence.locks import LeaseManager
from scenewright.persistence.manager import (
    ConflictResolution,
    SaveManager,
    SaveState,
)

__all__ = [
    "PRELUDE_SCENE_ID",
    "ConflictResolution",
    "LeaseManager",
    "SaveManager",
    "SaveState",
    "build_scene_content",
    "extract_characters",
    "reconstruct_blocks",
    "split_action_into_chunks",
    "split_into_scenes",
]
