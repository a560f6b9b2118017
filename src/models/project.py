"""Project domain models: the user-owned product/audience descriptions.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph; no imports from upper layers).
#
# A Project is what a user creates in the dashboard: a product description,
# the cultural domains it touches and the regions it targets.  The deep
# insight pipeline loads one by id; everything that drives generation (and
# the cultural-data cache key) is projected into an ``InsightBrief``.
#
#   - **Immutable identity**: ``id``, ``user_id`` and ``created_at`` never
#     change.  ``ProjectUpdate`` only carries the descriptive fields.
#   - **Frozen models**: updates re-validate the merged fields into a new
#     ``Project`` instead of copying the old one.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ─── InsightBrief ────────────────────────────────────────────────────
# The generation input shared by the deep and live pipelines and the
# fallback synthesizer.  Only the first four fields feed the cache key.
class InsightBrief(BaseModel):
    """The subset of a project that drives insight generation."""

    model_config = ConfigDict(frozen=True)

    description: str
    industry: str | None = None
    cultural_domains: list[str] = Field(default_factory=list)
    geographical_targets: list[str] = Field(default_factory=list)
    title: str | None = None
    age_range: tuple[int, int] | None = None


class Project(BaseModel):
    """A user-owned marketing project."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="UUID identifying this project.")
    user_id: str = Field(description="Id of the owning user.")
    title: str
    description: str
    cultural_domains: list[str] = Field(default_factory=list)
    geographical_targets: list[str] = Field(default_factory=list)
    industry: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    def to_brief(self) -> InsightBrief:
        """Project this project onto the generation input."""
        return InsightBrief(
            title=self.title,
            description=self.description,
            industry=self.industry,
            cultural_domains=list(self.cultural_domains),
            geographical_targets=list(self.geographical_targets),
        )


class ProjectCreate(BaseModel):
    """Body of ``POST /api/v1/projects``."""

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    cultural_domains: list[str] = Field(default_factory=list)
    geographical_targets: list[str] = Field(default_factory=list)
    industry: str | None = None


class ProjectUpdate(BaseModel):
    """Partial patch for a project; unset fields are left untouched.

    ``industry`` may be cleared with an explicit ``null``.  The other
    fields are required on a project, so ``null`` is rejected for them.
    """

    title: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    cultural_domains: list[str] | None = None
    geographical_targets: list[str] | None = None
    industry: str | None = None

    @field_validator("title", "description", "cultural_domains", "geographical_targets")
    @classmethod
    def _reject_null(cls, value: object, info: ValidationInfo) -> object:
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    def changes(self) -> dict:
        """Return only the fields the caller explicitly supplied."""
        return self.model_dump(exclude_unset=True)
