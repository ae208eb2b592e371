"""
ID Generation Utilities
Generates ids for canvas nodes, executions and name suffixes.
"""
import uuid
from typing import Iterable


def new_id(prefix: str = "") -> str:
    """
    Generate a short random id.

    Args:
        prefix: Optional prefix (e.g. "node-")

    Returns:
        Id string

    Examples:
        >>> new_id("node-")
        "node-7f3b4c2a1d8e"
    """
    return f"{prefix}{uuid.uuid4().hex[:12]}"


def connection_id(source_id: str, target_id: str, slot: int, position: int) -> str:
    """
    Deterministic connection id derived from its place in the engine graph.

    Examples:
        >>> connection_id("a", "b", 0, 1)
        "conn-a-b-0-1"
    """
    return f"conn-{source_id}-{target_id}-{slot}-{position}"


def unique_name(base: str, taken: Iterable[str]) -> str:
    """
    Return ``base`` or the first free ``base1``, ``base2``... not in ``taken``.

    Examples:
        >>> unique_name("Webhook", ["Webhook"])
        "Webhook1"
    """
    taken = set(taken)
    if base not in taken:
        return base
    suffix = 1
    while f"{base}{suffix}" in taken:
        suffix += 1
    return f"{base}{suffix}"
