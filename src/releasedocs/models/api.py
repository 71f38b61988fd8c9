from __future__ import annotations

from pydantic import BaseModel, field_validator

from releasedocs.models.documents import Update  # noqa: TCH001 - pydantic needs it at runtime


class ApiOperation(BaseModel):
    """Single operation declared in an API description."""

    method: str
    path: str
    summary: str | None = None
    tags: list[str] = []

    @field_validator("method")
    @classmethod
    def upper_method(cls, v: str) -> str:
        return v.upper()


class EndpointEntry(BaseModel):
    """Resolvable documentation link for one (method, path) pair."""

    method: str
    path: str
    link: str

    @property
    def key(self) -> str:
        return f"{self.method} {self.path}"


class ApiDescriptionParts(BaseModel):
    """An OpenAPI ``info.description`` split into intro and changelog."""

    intro: str
    changelog_preamble: str = ""
    changelog: list[Update] = []
    has_changelog: bool = False
