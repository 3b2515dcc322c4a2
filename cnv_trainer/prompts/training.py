"""
Prompt templates for CNV scenario generation, per-answer feedback and the
final summary.

Architecture:
    - STATIC sections: expert persona, output schemas, style rules.
    - DYNAMIC sections: user profile, scenario, chosen option, score.
    - One build_*_prompt() per provider operation. Each returns a single
      free-text prompt; the provider contract has no system/user split.

Prompt versioning:
    PROMPT_VERSION is logged with every provider call so we can correlate
    behavior changes with prompt edits.

Rules:
    - The scenarios and feedback prompts MUST include the JSON schema.
    - Points in the feedback schema are informational; the session
      never reads them back.
"""

from __future__ import annotations

from cnv_trainer.models.enums import MAX_POINTS_PER_QUESTION, OPTION_POINTS, OptionKind
from cnv_trainer.models.request import UserProfile
from cnv_trainer.models.session import AnswerDistribution

# ── Prompt version: bump on every edit, logged with every call ──
PROMPT_VERSION = "1.2.0"

# ═══════════════════════════════════════════════════════════
#  STATIC SECTIONS
# ═══════════════════════════════════════════════════════════

CONNECTION_CHECK_PROMPT = "Reply only with: OK"

STYLE_RULES = (
    "Do NOT use special characters such as asterisks, double quotes or "
    "single quotes. Use natural, human language."
)

SCENARIOS_SCHEMA = """\
Reply with valid JSON in exactly this format:
{
  "scenarios": [
    {
      "situation": "description of the everyday workplace situation",
      "options": {
        "passive": "concise passive reply",
        "cnv": "concise CNV reply",
        "neutral": "concise neutral reply",
        "problematic": "concise problematic reply"
      }
    }
  ]
}"""

OPTION_GUIDE = """\
For each scenario provide:
1. A specific, realistic everyday workplace situation.
2. Exactly 4 reply options of SIMILAR LENGTH (at most 2 lines each):
   - PASSIVE: avoids the conflict, does not solve it
   - CNV: applies Nonviolent Communication CONCISELY
   - NEUTRAL: a common reply that does not solve it
   - PROBLEMATIC: a confrontational reply"""

SUMMARY_INSTRUCTIONS = """\
Instructions for the feedback:
1. Address {name} by name
2. Be motivating and constructive
3. Highlight strengths based on the results
4. Suggest specific areas to improve
5. Relate the results to benefits in the workplace
6. Use a professional but warm tone
7. Do not use asterisks, double quotes or single quotes
8. Use natural, conversational language
9. At most 250 words
10. End with a motivating message

Write only the feedback text, without any special formatting."""


# ═══════════════════════════════════════════════════════════
#  BUILDERS
# ═══════════════════════════════════════════════════════════


def build_scenarios_prompt(profile: UserProfile, count: int) -> str:
    """Assemble the scenario-generation prompt for a user profile.

    Args:
        profile: Name, CNV familiarity and questionnaire answers.
        count: How many scenarios to ask for.

    Returns:
        The full prompt string.
    """
    answers = ", ".join(profile.answers) if profile.answers else "none"
    knows = "Yes" if profile.knows_cnv else "No"

    sections = [
        (
            "As an expert in Nonviolent Communication (CNV), create EXACTLY "
            f"{count} EVERYDAY WORKPLACE scenarios personalized for {profile.name}."
        ),
        (
            "User profile:\n"
            f"- Name: {profile.name}\n"
            f"- Knows CNV: {knows}\n"
            f"- Questionnaire answers: {answers}"
        ),
        (
            "IMPORTANT: create DAY-TO-DAY situations in a CORPORATE setting "
            "(meetings, conversations with colleagues, feedback, conflicts at "
            "work, communication with a manager, etc)."
        ),
        OPTION_GUIDE,
        "All replies must be of similar length and concise. " + STYLE_RULES,
        SCENARIOS_SCHEMA,
    ]
    return "\n\n".join(sections)


def build_feedback_prompt(
    *,
    situation: str,
    chosen_option: str,
    option_kind: OptionKind,
    user_name: str,
) -> str:
    """Assemble the per-answer feedback prompt."""
    schema = (
        "Give feedback as JSON:\n"
        "{\n"
        f'  "immediate": "short personalized feedback using the name {user_name}",\n'
        '  "detailed": "detailed explanation of why the CNV option is ideal, '
        'naming the CNV principles involved",\n'
        f'  "points": {OPTION_POINTS[option_kind]}\n'
        "}"
    )
    sections = [
        f"As a CNV expert, analyse {user_name}'s choice in the following scenario:",
        (
            f"SCENARIO: {situation}\n"
            f"CHOSEN REPLY: {chosen_option}\n"
            f"REPLY TYPE: {option_kind.value}"
        ),
        schema,
        "The feedback must be constructive, educational and motivating. " + STYLE_RULES,
    ]
    return "\n\n".join(sections)


def build_summary_prompt(
    *,
    user_name: str,
    total_score: int,
    total_questions: int,
    distribution: AnswerDistribution,
) -> str:
    """Assemble the end-of-session narrative summary prompt."""
    max_score = total_questions * MAX_POINTS_PER_QUESTION
    percentage = (total_score / max_score * 100) if max_score else 0.0

    sections = [
        (
            f"Write a personalized closing feedback for {user_name} about their "
            "performance in the CNV training."
        ),
        (
            f"SCORE: {total_score} of {max_score} possible points ({percentage:.1f}%)\n"
            "ANSWER DISTRIBUTION:\n"
            f"- CNV answers: {distribution.cnv} of {total_questions}\n"
            f"- Neutral answers: {distribution.neutral} of {total_questions}\n"
            f"- Passive answers: {distribution.passive} of {total_questions}\n"
            f"- Problematic answers: {distribution.problematic} of {total_questions}"
        ),
        SUMMARY_INSTRUCTIONS.format(name=user_name),
    ]
    return "\n\n".join(sections)
