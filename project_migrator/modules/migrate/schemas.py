"""Pydantic schemas for the migrate module."""
from pydantic import BaseModel


class DiffEntry(BaseModel):
    """A single difference at one path, with both sides rendered as text."""
    key: str
    source_value: str
    dest_value: str


class ConfigDiff(BaseModel):
    """All differences found for one configuration category."""
    name: str
    diffs: list[DiffEntry]


class PreviewResponse(BaseModel):
    """Schema for the migration preview response."""
    configs: list[ConfigDiff]


class ErrorResponse(BaseModel):
    error: str


class ProjectResponse(BaseModel):
    """Schema for a project visible to the current access token."""
    id: str
    name: str
    organization_id: str | None = None
    region: str | None = None
    status: str | None = None
    created_at: str | None = None


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    total: int


class SnapshotListResponse(BaseModel):
    """Categories whose source snapshot is cached for this session."""
    categories: list[str]


class SnapshotResponse(BaseModel):
    category: str
    snapshot: str
