"""
Fallback content store — static content used whenever generation fails.

Three hand-authored corporate scenarios, locally synthesized per-answer
feedback, and a templated final summary. Everything here is
deterministic and offline, so a session can always reach COMPLETED
with zero network connectivity.
"""

from __future__ import annotations

from cnv_trainer.models.enums import MAX_POINTS_PER_QUESTION, OPTION_POINTS, OptionKind
from cnv_trainer.models.response import FeedbackResult, Scenario, ScenarioOptions

# ═══════════════════════════════════════════════════════════
#  Scenarios
# ═══════════════════════════════════════════════════════════

_FALLBACK_SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        situation=(
            "During a meeting, a colleague keeps interrupting you while you "
            "present your ideas."
        ),
        options=ScenarioOptions(
            passive="You stop talking and let your colleague take over the presentation.",
            cnv=(
                "You say: I can see you have important points. Can I finish my "
                "idea and then hear yours?"
            ),
            neutral="You keep talking, louder, so that you are heard.",
            problematic="You say: You always interrupt me! Let me speak!",
        ),
    ),
    Scenario(
        situation=(
            "Your manager criticizes your work in front of the whole team, "
            "and you feel humiliated."
        ),
        options=ScenarioOptions(
            passive="You lower your head and say nothing, keeping the anger to yourself.",
            cnv=(
                "You say: I understand your concern. Could we talk in private "
                "about how to improve it?"
            ),
            neutral="You say: Ok, I will review it, and change the subject.",
            problematic="You reply: That is not fair! You never recognize my effort!",
        ),
    ),
    Scenario(
        situation=(
            "A colleague always leaves tasks until the last minute, which "
            "affects the team's schedule."
        ),
        options=ScenarioOptions(
            passive="You do their work yourself so the project does not slip.",
            cnv=(
                "You say: I have noticed some deadlines have been tight. How can "
                "we organize our time better?"
            ),
            neutral="You raise the problem with your manager without talking to the colleague first.",
            problematic="You say: You are always irresponsible and you get in everyone's way!",
        ),
    ),
)


def get_fallback_scenarios() -> list[Scenario]:
    """Return the built-in scenarios, same content and order every call.

    A new list is returned each time; the Scenario objects are frozen.
    """
    return list(_FALLBACK_SCENARIOS)


def points_for(kind: OptionKind) -> int:
    """Fixed points awarded for an option kind."""
    return OPTION_POINTS[kind]


# ═══════════════════════════════════════════════════════════
#  Local feedback
# ═══════════════════════════════════════════════════════════

_APPROACH_LABELS: dict[OptionKind, str] = {
    OptionKind.CNV: "a nonviolent communication",
    OptionKind.NEUTRAL: "a neutral",
    OptionKind.PASSIVE: "a passive",
    OptionKind.PROBLEMATIC: "a problematic",
}

LOCAL_DETAILED_FEEDBACK = (
    "Detailed feedback could not be generated right now, "
    "but your answer has been recorded."
)


def build_local_feedback(user_name: str, kind: OptionKind) -> FeedbackResult:
    """Synthesize feedback without the provider. Points come from the table."""
    return FeedbackResult(
        immediate=(
            f"Thanks for your answer, {user_name}! You chose "
            f"{_APPROACH_LABELS[kind]} approach. Keep practicing!"
        ),
        detailed=LOCAL_DETAILED_FEEDBACK,
        points=points_for(kind),
    )


# ═══════════════════════════════════════════════════════════
#  Final summary
# ═══════════════════════════════════════════════════════════

_SUMMARY_CLOSING = (
    " Keep practicing these skills in your day-to-day work. Nonviolent "
    "Communication is a powerful tool for better relationships and higher "
    "productivity at work. Congratulations on investing in your personal "
    "and professional growth!"
)


def score_percentage(total_score: int, total_questions: int) -> float:
    """Score as a percentage of the maximum achievable (0.0 when no questions)."""
    if total_questions <= 0:
        return 0.0
    return total_score / (total_questions * MAX_POINTS_PER_QUESTION) * 100


def build_fallback_summary(user_name: str, total_score: int, total_questions: int) -> str:
    """Templated final message chosen by score percentage band."""
    percentage = score_percentage(total_score, total_questions)

    if percentage >= 80:
        body = (
            f"You did an excellent job with {total_score} points! "
            "You showed a strong command of CNV principles."
        )
    elif percentage >= 60:
        body = (
            f"You did well with {total_score} points! "
            "You are on the right track to mastering CNV."
        )
    elif percentage >= 40:
        body = (
            f"You made a good effort with {total_score} points! "
            "There is room to grow in applying CNV."
        )
    else:
        body = (
            f"You completed the training with {total_score} points! "
            "This is just the beginning of your CNV learning journey."
        )

    return f"Congratulations, {user_name}! {body}{_SUMMARY_CLOSING}"
