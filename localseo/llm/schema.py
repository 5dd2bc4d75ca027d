"""Pydantic output contract for entity classification answers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from localseo.domain.competitors import EntityType


class EntityClassificationOutput(BaseModel):
    """Structured classification of one competitor website."""

    model_config = ConfigDict(extra="ignore", frozen=True, str_strip_whitespace=True)

    is_company: bool = Field(..., description="Whether the site belongs to a single operating business.")
    entity_type: EntityType = Field(EntityType.UNKNOWN, description="Business model of the site owner.")
    detected_genre: str = Field("", max_length=200, description="Detected industry of the site owner.")
    is_relevant_competitor: bool = Field(..., description="Whether it competes with the customer.")
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    reason: str = Field("", max_length=1000)

    @field_validator("entity_type", mode="before")
    @classmethod
    def _coerce_entity_type(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
            if normalized in {member.value for member in EntityType}:
                return normalized
            return EntityType.UNKNOWN.value
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_percent_confidence(cls, value: object) -> object:
        if isinstance(value, (int, float)) and 1.0 < value <= 100.0:
            return value / 100.0
        return value
