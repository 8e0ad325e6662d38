"""Output documents written by the batch converter."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Mapping

from docmark.tree import (
    RootNode,
    TreeSerializationError,
    node_from_dict,
    node_to_dict,
)

FORMAT_VERSION = 1


def render_tree_document(
    metadata: Mapping[str, datetime | str],
    root: RootNode,
) -> str:
    """Return the JSON envelope holding ``metadata`` and the tree."""

    envelope = {
        "version": FORMAT_VERSION,
        "metadata": {
            key: _serialize_value(value) for key, value in metadata.items()
        },
        "root": node_to_dict(root),
    }
    return json.dumps(envelope, indent=2, ensure_ascii=False) + "\n"


def read_tree_document(payload: str) -> tuple[dict[str, Any], RootNode]:
    """Parse a tree document; bare root objects without an envelope also load."""

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise TreeSerializationError(f"Invalid tree JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise TreeSerializationError("Tree document must be a JSON object.")

    if "root" in data:
        metadata = data.get("metadata") or {}
        tree = data["root"]
    else:
        metadata, tree = {}, data
    if not isinstance(metadata, dict):
        raise TreeSerializationError("'metadata' must be a JSON object.")

    root = node_from_dict(tree)
    if not isinstance(root, RootNode):
        raise TreeSerializationError(
            f"Expected a 'root' node at the top level, found '{root.kind}'."
        )
    return metadata, root


def render_markdown(body: str) -> str:
    normalized = body.rstrip("\n")
    return normalized + "\n" if normalized else ""


def _serialize_value(value: datetime | str) -> str:
    if isinstance(value, datetime):
        timestamp = value.astimezone(timezone.utc).replace(microsecond=0)
        return timestamp.isoformat().replace("+00:00", "Z")
    return str(value)


__all__ = [
    "FORMAT_VERSION",
    "read_tree_document",
    "render_markdown",
    "render_tree_document",
]
