"""Prompts for verification and examiner agents."""

from examguard.config.prompts.examiner import (
    CONTINUE_INPUT,
    FINISH_INPUT,
    RESULT_MARKER,
    build_examiner_system_prompt,
    build_opening_input,
    build_reply_input,
)
from examguard.config.prompts.verification import (
    build_face_match_prompt,
    build_liveness_prompt,
    build_periodic_check_prompt,
    build_reply_correction_input,
)

__all__ = [
    "CONTINUE_INPUT",
    "FINISH_INPUT",
    "RESULT_MARKER",
    "build_examiner_system_prompt",
    "build_face_match_prompt",
    "build_liveness_prompt",
    "build_opening_input",
    "build_periodic_check_prompt",
    "build_reply_correction_input",
    "build_reply_input",
]
