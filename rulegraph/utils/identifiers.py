"""ID generation, timestamp and filename utilities."""

import random
import re
import time
import uuid


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def generate_project_id() -> str:
    """Generate a unique project ID (UUID4)."""
    return str(uuid.uuid4())


def generate_imported_project_id() -> str:
    """ID for a project built from generated rules, e.g. ``project-1712345678901``."""
    return f"project-{now_ms()}"


def generate_node_id() -> str:
    """Node ID in the ``node-<ms>-<0..999>`` form."""
    return f"node-{now_ms()}-{random.randint(0, 999)}"


def generate_edge_id(source: str, target: str) -> str:
    """Edge ID in the ``edge-<source>-<target>-<ms>`` form."""
    return f"edge-{source}-{target}-{now_ms()}"


def unique_id(candidate: str, taken: set[str] | frozenset[str]) -> str:
    """Return candidate, suffixed with ``-2``, ``-3``, ... until it is not taken."""
    if candidate not in taken:
        return candidate
    n = 2
    while f"{candidate}-{n}" in taken:
        n += 1
    return f"{candidate}-{n}"


def project_export_filename(name: str) -> str:
    """File name for an exported project, e.g. ``my-rules-cursor-rules.json``."""
    slug = re.sub(r"\s+", "-", name).lower()
    return f"{slug}-cursor-rules.json"
