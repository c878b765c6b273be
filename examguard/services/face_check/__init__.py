"""Pre-exam face verification."""

from examguard.services.face_check.flow import FaceVerificationFlow

__all__ = ["FaceVerificationFlow"]
