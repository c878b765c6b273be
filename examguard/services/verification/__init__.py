"""Identity verification services."""

from examguard.services.verification.exceptions import (
    SessionNotFoundError,
    SessionStateError,
    VerificationError,
    VerificationUnavailableError,
)
from examguard.services.verification.models import (
    LivenessResult,
    PeriodicCheckResult,
    VerificationResult,
)
from examguard.services.verification.verifier import FaceVerifier

__all__ = [
    "FaceVerifier",
    "LivenessResult",
    "PeriodicCheckResult",
    "SessionNotFoundError",
    "SessionStateError",
    "VerificationError",
    "VerificationResult",
    "VerificationUnavailableError",
]
