"""
Examiner prompts for live sessions.
"""

from examguard.config.constants import TOPIC_LABELS, LiveMode, TargetAudience, Topic

RESULT_MARKER = "RESULT:"


def build_examiner_system_prompt(
    mode: LiveMode,
    topic: Topic,
    audience: TargetAudience,
    question_count: int = 3,
) -> str:
    """Build the examiner system prompt for a mode, topic and audience."""
    topic_label = TOPIC_LABELS[topic]

    if audience == TargetAudience.KIDS:
        return (
            "SYSTEM: MODE FOR CHILDREN\n"
            "ROLE: Friendly, cheerful tutor\n"
            f"TOPIC: {topic_label}\n"
            "STYLE: Simple language, emoji, encourage the child\n"
        )

    if mode.is_exam:
        return (
            "SYSTEM: EXAM MODE\n"
            f"ROLE: Professional examiner for {topic_label}\n"
            "INSTRUCTIONS:\n"
            f"- Ask {question_count} questions about {topic_label}, numbered 'QUESTION 1', 'QUESTION 2', ...\n"
            "- Evaluate each answer\n"
            f"- After {question_count} questions, give a summary ending with "
            f"'{RESULT_MARKER} PASS' or '{RESULT_MARKER} FAIL'\n"
        )

    return (
        "SYSTEM: PRACTICE MODE\n"
        f"ROLE: Friendly tutor for {topic_label}\n"
        "INSTRUCTIONS:\n"
        "- Ask questions and explain when needed\n"
        "- Encourage the student\n"
        "- Help the student understand in depth\n"
    )


def build_opening_input() -> str:
    return "Start the session with a short greeting and the first question."


def build_reply_input(history: str, user_input: str) -> str:
    """Build the turn input carrying the conversation so far."""
    return (
        f"Conversation so far:\n{history}\n\n"
        f"USER: {user_input}\n\n"
        "Respond appropriately."
    )


CONTINUE_INPUT = "Continue to the next question."
FINISH_INPUT = "Finish the exam and give the summary."
