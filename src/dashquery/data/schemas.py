"""
Data schemas for upstream responses and dashboard artifacts.

Upstream payloads are decoded leniently: absent optional fields fall back to
empty values and unknown fields are ignored.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def null_is_empty(cls, v, info):
        # Upstream sends null for empty collections and strings
        if v is None and info.field_name != "id":
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return v


class CellLinks(_UpstreamModel):
    view: str = ""


class Cell(_UpstreamModel):
    """A dashboard cell reference; only its view link is used."""
    links: CellLinks = Field(default_factory=CellLinks)

    @property
    def view_link(self) -> str:
        return self.links.view


class CellQuery(_UpstreamModel):
    text: str = ""


class CellProperties(_UpstreamModel):
    queries: List[CellQuery] = Field(default_factory=list)


class CellView(_UpstreamModel):
    """Response of the single-cell view endpoint."""
    properties: CellProperties = Field(default_factory=CellProperties)

    def query_texts(self) -> List[str]:
        return [query.text for query in self.properties.queries]


class Dashboard(_UpstreamModel):
    """A dashboard, mutated in place as it moves through the pipeline.

    ``cells`` is filled from the list endpoint; once the cell queries are
    aggregated it is cleared and ``query_texts`` holds the result.
    """
    id: str
    name: str = ""
    cells: List[Cell] = Field(default_factory=list)
    query_texts: List[str] = Field(default_factory=list, alias="queries")

    def complete(self, queries: List[str]) -> None:
        """Swap the cell references for their aggregated query texts."""
        self.query_texts = list(queries)
        self.cells = []

    def to_artifact(self) -> Dict[str, Any]:
        """Serialize for the on-disk artifact; empty ``cells`` is omitted."""
        exclude = None if self.cells else {"cells"}
        return self.model_dump(by_alias=True, exclude=exclude)


class DashboardList(_UpstreamModel):
    """Response of the dashboard list endpoint."""
    dashboards: List[Dashboard] = Field(default_factory=list)
