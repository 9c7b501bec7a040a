"""Pydantic schemas for evidence artifact triage."""

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field

from casecast.schemas.common import Severity


class ArtifactType(StrEnum):
    DOCUMENT = "document"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    OTHER = "other"


class EvidenceArtifact(BaseModel):
    id: Optional[str] = None
    title: str
    description: Optional[str] = None
    type: ArtifactType = ArtifactType.OTHER
    keywords: list[str] = Field(default_factory=list)
    has_file: bool = False


class EvidenceSummary(BaseModel):
    id: str
    title: str
    classification: str
    confidence: float = Field(..., ge=0, le=1)
    risk_level: Severity
    key_findings: list[str]
    recommended_actions: list[str]


class EvidenceSummarizeRequest(BaseModel):
    artifacts: list[EvidenceArtifact]
