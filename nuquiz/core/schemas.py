"""
Pydantic schemas for content pack files.

A content pack file is JSON shaped like:

    {
        "id": 1,
        "name": "Cardiology",
        "nodes": [
            {"id": 1, "parent_id": null, "name": "cardiology",
             "label": "Cardiology", "type": "topic"},
            ...
        ]
    }
"""
from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from nuquiz.core.types import KnowledgeNode, NodeType


class KnowledgeNodeSchema(BaseModel):
    """One node as written in a content pack file."""

    id: int = Field(..., gt=0)
    parent_id: int | None = None
    name: str
    label: str
    type: NodeType
    order_index: int = 0

    @field_validator("type", mode="before")
    @classmethod
    def _lowercase_type(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def to_node(self, content_pack_id: int) -> KnowledgeNode:
        return KnowledgeNode(
            id=self.id,
            parent_id=self.parent_id,
            name=self.name,
            label=self.label,
            type=self.type,
            content_pack_id=content_pack_id,
            order_index=self.order_index,
        )


class ContentPackFile(BaseModel):
    """A content pack with its full knowledge tree."""

    id: int = Field(default=1, gt=0)
    name: str
    description: str | None = None
    nodes: list[KnowledgeNodeSchema] = Field(default_factory=list)

    def to_nodes(self) -> list[KnowledgeNode]:
        return [n.to_node(self.id) for n in self.nodes]

    @classmethod
    def load(cls, path: Path) -> ContentPackFile:
        return cls.model_validate(json.loads(path.read_text(encoding="utf-8")))
