"""Stateless verification endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from examguard.api.dependencies import get_verifier
from examguard.api.models import (
    FaceVerificationRequest,
    LivenessRequest,
    LivenessResponse,
    PeriodicCheckRequest,
    PeriodicCheckResponse,
    VerificationResponse,
)
from examguard.services.verification.verifier import FaceVerifier

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/face", response_model=VerificationResponse)
async def verify_face(
    request: FaceVerificationRequest,
    verifier: FaceVerifier = Depends(get_verifier),  # noqa: B008
) -> dict[str, Any]:
    """
    Compare a live capture with the registered avatar.

    Model faults never surface as errors under the default fail-open policy:
    the response reports a pass with ``skipped`` set instead.
    """
    result = await verifier.verify_face_with_avatar(request.camera_image, request.avatar_image)
    return result.to_dict()


@router.post("/periodic", response_model=PeriodicCheckResponse)
async def periodic_check(
    request: PeriodicCheckRequest,
    verifier: FaceVerifier = Depends(get_verifier),  # noqa: B008
) -> dict[str, Any]:
    """Same-person and suspicious-activity check for a running exam."""
    result = await verifier.periodic_face_check(
        request.current_image, request.avatar_image, request.previous_image
    )
    return result.to_dict()


@router.post("/liveness", response_model=LivenessResponse)
async def liveness(
    request: LivenessRequest,
    verifier: FaceVerifier = Depends(get_verifier),  # noqa: B008
) -> dict[str, Any]:
    result = await verifier.detect_liveness(request.camera_image)
    return result.to_dict()
