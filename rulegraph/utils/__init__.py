"""Utility functions for rulegraph."""

from rulegraph.utils.identifiers import (
    generate_edge_id,
    generate_imported_project_id,
    generate_node_id,
    generate_project_id,
    now_ms,
    project_export_filename,
    unique_id,
)

__all__ = [
    "generate_edge_id",
    "generate_imported_project_id",
    "generate_node_id",
    "generate_project_id",
    "now_ms",
    "project_export_filename",
    "unique_id",
]
