"""SceneWright: screenplay block editing with collaborative persistence.

The editing core classifies and numbers screenplay blocks, paginates them
and drives an editing session. The persistence layer splits documents into
scenes and saves them under advisory leases with conflict detection.
"""

from scenewright.models import Block, BlockType, Conflict, SaveResult

__version__ = "0.1.0"

__all__ = [
    "Block",
    "BlockType",
    "Conflict",
    "SaveResult",
    "__version__",
]
