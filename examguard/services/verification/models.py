"""Verification service models."""

from dataclasses import asdict, dataclass
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of comparing a live capture with the registered avatar."""

    is_match: bool
    confidence: int
    message: str
    skipped: bool = False
    details: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PeriodicCheckResult:
    """Outcome of one in-exam identity and behaviour check."""

    is_same_person: bool
    suspicious_activity: bool
    message: str
    activity_type: str | None = None
    skipped: bool = False

    @property
    def is_violation(self) -> bool:
        return not self.is_same_person or self.suspicious_activity

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LivenessResult:
    """Outcome of a live-person check."""

    is_live: bool
    confidence: int
    message: str
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _coerce_confidence(value: Any) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    return int(round(min(max(float(value), 0.0), 100.0)))


Confidence = Annotated[int, BeforeValidator(_coerce_confidence)]


class _Reply(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class FaceMatchReply(_Reply):
    """JSON reply expected from the face-match prompt."""

    is_match: bool | None = Field(None, alias="isMatch")
    confidence: Confidence = 0
    message: str | None = None
    details: str | None = None

    @model_validator(mode="after")
    def _require_verdict(self) -> "FaceMatchReply":
        if self.is_match is None and "confidence" not in self.model_fields_set:
            raise ValueError("reply carries neither isMatch nor confidence")
        return self


class PeriodicCheckReply(_Reply):
    """JSON reply expected from the periodic-check prompt."""

    is_same_person: bool = Field(..., alias="isSamePerson")
    suspicious_activity: bool = Field(False, alias="suspiciousActivity")
    activity_type: str | None = Field(None, alias="activityType")
    message: str | None = None


class LivenessReply(_Reply):
    """JSON reply expected from the liveness prompt."""

    is_live: bool = Field(..., alias="isLive")
    confidence: Confidence = 0
    message: str | None = None
