"""Aggregation pipeline layer."""

from app.pipeline.aggregation import (
    AddFields,
    Group,
    Lookup,
    Match,
    Pipeline,
    Project,
    Sort,
    Stage,
    Unwind,
)

__all__ = [
    "Pipeline",
    "Stage",
    "Match",
    "Lookup",
    "Unwind",
    "Group",
    "AddFields",
    "Sort",
    "Project",
]
