"""Prompt text for card generation and card verification."""

from __future__ import annotations

from devdose.models import ProcessingInput

LONG_SNIPPET_LINES = 15

_OUTPUT_SCHEMA = """{
  "title": string,
  "explanation": string,
  "difficulty": "beginner" | "intermediate" | "advanced",
  "category": "Quick Tips" | "Common Mistakes" | "Did You Know" | "Quick Wins" | "Under the Hood",
  "tags": string[],
  "qualityScore": number
}"""

SYSTEM_PROMPT = f"""You are a senior frontend developer educator creating micro-learning content for the DevDose app.

DevDose presents coding tips, common mistakes and best practices as bite-sized, scrollable cards. Each card pairs a syntax-highlighted code snippet with a short explanation.

CRITICAL: All content MUST be bite-sized and readable on a mobile card in about 30 seconds.

BITE-SIZED CONTENT REQUIREMENTS:
- Code snippets: 3-15 lines maximum (prefer 5-10 lines)
- If the input code is longer, extract ONLY the most important portion
- Focus on ONE concept per card
- Explanations: 2-3 sentences maximum (40-80 words)

Guidelines:
- Title: an attention-grabbing title of at most 60 characters. Patterns like "X vs Y", "Hidden Feature:", "Pro Tip:" work well.
- Explanation: 2-3 clear sentences. First what the code does, then why it is useful, optionally when to use it.
- Difficulty: beginner, intermediate or advanced, based on the concepts used.
- Category: exactly ONE of
  * "Quick Tips" - fast, actionable coding insights and simple patterns
  * "Common Mistakes" - anti-patterns, bugs or pitfalls to avoid
  * "Did You Know" - lesser-known features, hidden APIs, surprising behaviour
  * "Quick Wins" - productivity hacks, shortcuts, time-savers
  * "Under the Hood" - internals and how things work
- Tags: 3-5 relevant tags (framework, concept, category).
- Quality Score: 1-100 for code quality, usefulness and clarity.

CODE EXTRACTION RULES:
1. If the input code is longer than 15 lines, keep ONLY the most relevant portion
2. Drop boilerplate, imports and setup unless they are the point
3. Keep the extracted code self-contained and understandable

CRITICAL JSON FORMATTING RULES:
1. ALL JSON strings MUST use double quotes ("), never single quotes (')
2. Inside strings, refer to code with single quotes or backticks, e.g. "Use the 'useState' hook"
3. Keep explanations on a single line (no literal newlines)
4. Escape special characters properly

Output schema:
{_OUTPUT_SCHEMA}"""

VERIFICATION_SYSTEM_PROMPT = f"""You are a senior frontend developer educator. Verify and, if necessary, correct a micro-learning card for the DevDose app.

A user has reported this card as incorrect. You must:
1. Analyze the code and the explanation.
2. If the explanation is inaccurate, misleading or wrong, CORRECT it.
3. If the code is buggy or does not match the explanation, FIX it within 3-15 lines.
4. Keep the card within the bite-sized requirements: 3-15 lines of code, 2-3 sentence explanation, one concept.

If the card is ALREADY CORRECT, return the original content in the same JSON format.
If you change the code, include it as an extra "code" string field.

CRITICAL JSON FORMATTING RULES:
1. ALL JSON strings MUST use double quotes ("), never single quotes (')
2. Escape special characters properly
3. Keep explanations on a single line

Output schema:
{_OUTPUT_SCHEMA}"""


def build_user_prompt(item: ProcessingInput) -> str:
    """Generation prompt for one snippet, with an extraction hint for long code."""
    extraction_note = ""
    if len(item.code.split("\n")) > LONG_SNIPPET_LINES:
        extraction_note = (
            "\n\nIMPORTANT: This code is longer than ideal for a bite-sized card. "
            "Extract ONLY the most relevant 5-10 lines that demonstrate the core concept. "
            "Remove boilerplate, imports or setup code unless they are essential."
        )

    return (
        f"Analyze this {item.language} code snippet from {item.repository_name}:\n\n"
        f"```{item.language}\n{item.code}\n```\n\n"
        f"Context: {item.source_context}{extraction_note}\n\n"
        "Create a bite-sized micro-learning card for this code. The card must be "
        "consumable in about 30 seconds on a mobile device. Return ONLY valid JSON, "
        "no additional text."
    )


def build_verification_prompt(
    title: str,
    code: str,
    explanation: str,
    language: str,
    difficulty: str,
    category: str,
    tags: list[str],
) -> str:
    return (
        "Please verify this micro-learning card:\n\n"
        f"Title: {title}\n"
        f"Language: {language}\n"
        f"Difficulty: {difficulty}\n"
        f"Category: {category}\n"
        f"Tags: {', '.join(tags)}\n\n"
        f"Code:\n```{language}\n{code}\n```\n\n"
        f"Explanation:\n{explanation}\n\n"
        "If anything is inaccurate or can be improved within the bite-sized constraints, "
        "return the corrected version. Return ONLY valid JSON, no additional text."
    )
