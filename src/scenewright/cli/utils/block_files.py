"""Reading and writing block files.

A block file is a JSON array of ``{"id", "type", "content"}`` objects; ids
are optional and generated when missing.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from scenewright.exceptions import ValidationError
from scenewright.models import Block, blocks_from_data, validate_document


def load_blocks(path: Path) -> list[Block]:
    """Load and validate a block file.

    Raises:
        ValidationError: If the file is missing, unreadable or malformed
    """
    path = path.expanduser()
    if not path.is_file():
        raise ValidationError(
            message=f"Block file not found: {path}",
            hint="Pass a JSON file containing an array of blocks",
        )
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(
            message=f"Cannot read block file: {path}",
            details={"error": str(e)},
        ) from e

    if not isinstance(data, list) or not all(isinstance(i, dict) for i in data):
        raise ValidationError(
            message="Block file must contain a JSON array of objects",
            hint='Each block looks like {"type": "action", "content": "..."}',
            details={"path": str(path)},
        )
    try:
        blocks = blocks_from_data(data)
    except PydanticValidationError as e:
        raise ValidationError(
            message="Block file contains invalid blocks",
            details={"path": str(path), "error": str(e)},
        ) from e
    validate_document(blocks)
    return blocks


def dump_blocks(blocks: list[Block]) -> str:
    """Serialize blocks in block-file form."""
    return json.dumps([block.to_data() for block in blocks], indent=2)
