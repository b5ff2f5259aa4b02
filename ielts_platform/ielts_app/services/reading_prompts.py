"""Prompt templates and theme tables for IELTS reading generation."""

from __future__ import annotations

from textwrap import dedent
from typing import Dict, Tuple


LEVELS: Tuple[str, ...] = ("beginner", "intermediate", "advanced")
DIFFICULTIES: Tuple[str, ...] = ("easy", "medium", "hard")
QUESTION_TYPES: Tuple[str, ...] = ("detail", "main_idea", "inference", "vocabulary", "reference")
OPTION_KEYS: Tuple[str, ...] = ("A", "B", "C", "D")

THEME_DESCRIPTIONS: Dict[str, str] = {
    "science": "Scientific discoveries and technological innovations",
    "environment": "Environmental issues and climate change",
    "education": "Educational systems and learning methodologies",
    "culture": "Cultural diversity and social anthropology",
    "business": "Business management and economic development",
    "health": "Healthcare systems and medical research",
    "technology": "Digital technology and artificial intelligence",
    "history": "Historical events and archaeological discoveries",
    "society": "Social issues and community development",
    "arts": "Arts, literature and creative expression",
}
THEMES: Tuple[str, ...] = tuple(THEME_DESCRIPTIONS)

SKILL_TOPICS: Dict[str, str] = {
    "listening": "IELTS Listening comprehension with audio scenarios, conversations, and academic lectures",
    "reading": "IELTS Reading comprehension with academic texts, articles, and passage analysis",
    "writing": "IELTS Writing skills including task response, coherence, lexical resource, and grammatical accuracy",
    "speaking": "IELTS Speaking skills including fluency, pronunciation, vocabulary, and grammar",
}
SKILLS: Tuple[str, ...] = tuple(SKILL_TOPICS)

LEVEL_GUIDANCE: Dict[str, str] = {
    "beginner": "Prefer common academic vocabulary and mostly single-clause sentences; define any technical term in context.",
    "intermediate": "Mix simple and complex sentences; use standard academic vocabulary with occasional field-specific terms.",
    "advanced": "Use dense academic prose with subordinate clauses, hedged claims and field-specific terminology.",
}

IELTS_PASSAGE_GUARDRAILS = dedent(
    """
    IELTS ACADEMIC READING PASSAGE RULES
    • Formal, neutral academic register suitable for an IELTS Academic Reading paper.
    • Organise the text as an introduction, 4–6 body paragraphs and a conclusion, separated by blank lines.
    • Include concrete facts, dates, figures, named studies or examples that questions can be written about.
    • Present at least one contrasting viewpoint or limitation so inference questions are possible.
    • No headings, bullet points, tables or markdown inside the passage content.
    """
).strip()

IELTS_QUESTION_GUARDRAILS = dedent(
    """
    IELTS MULTIPLE-CHOICE QUESTION RULES
    • Every question must be answerable from the passage alone; no outside knowledge.
    • Exactly four options keyed "A", "B", "C" and "D"; exactly one option is correct.
    • Distractors must be plausible misreadings: wrong detail, scope too broad or narrow, reversed relationship, or an idea mentioned but not claimed.
    • Spread questions across the passage: some from the beginning, some from the middle and some from the end, in passage order.
    • Explanations quote or paraphrase the sentence that proves the answer.
    """
).strip()


PASSAGE_PROMPT_TEMPLATE = dedent(
    """
    Generate a comprehensive academic passage about {topic} for IELTS reading practice.

    Requirements:
    - Level: {level}. {level_hint}
    - Word count: approximately {word_count} words (stay within 10% of this target).
    - The passage must be suitable for writing multiple-choice questions afterwards.

    {guardrails}

    Return ONLY a single JSON object, with no markdown fences and no commentary, in exactly this format:
    {{
      "passage": {{
        "title": "Passage title",
        "content": "The full passage text. Separate paragraphs with \\n\\n.",
        "wordCount": {word_count},
        "level": "{level}",
        "topic": "{topic}",
        "summary": "Two-sentence summary of the passage"
      }}
    }}

    Every field is required. Escape any double quotes inside string values.
    """
).strip()

QUESTIONS_PROMPT_TEMPLATE = dedent(
    """
    Based on the following passage, generate exactly {question_count} multiple choice questions for IELTS reading comprehension at {level} level.

    PASSAGE:
    {passage}

    Question type mix:
    {mix}

    {guardrails}
    • Cover the beginning, the middle and the end of the passage; do not cluster questions on one paragraph.

    Return ONLY a single JSON object, with no markdown fences and no commentary, in exactly this format:
    {{
      "questions": [
        {{
          "questionText": "What is the main purpose of the passage?",
          "options": {{
            "A": "Option A text",
            "B": "Option B text",
            "C": "Option C text",
            "D": "Option D text"
          }},
          "correctAnswer": "A",
          "explanation": "Brief explanation of why this is correct",
          "difficulty": "medium",
          "questionType": "main_idea"
        }}
      ]
    }}

    Field rules:
    - "questions" must contain exactly {question_count} objects.
    - "correctAnswer" must be one of: {option_keys}.
    - "difficulty" must be one of: {difficulties}.
    - "questionType" must be one of: {question_types}.
    - Separate every field with a comma and escape double quotes inside strings.
    """
).strip()


TOPIC_QUESTIONS_PROMPT_TEMPLATE = dedent(
    """
    Generate {question_count} standalone multiple choice questions about {topic} for IELTS preparation.

    Requirements:
    - Questions test comprehension, vocabulary or grammar at IELTS level English.
    - All four options are plausible and exactly one is correct.
    - Each question carries a brief explanation of the correct answer.

    Return ONLY a single JSON object, with no markdown fences and no commentary, in exactly this format:
    {{
      "questions": [
        {{
          "questionText": "Question text here?",
          "options": {{
            "A": "Option A text",
            "B": "Option B text",
            "C": "Option C text",
            "D": "Option D text"
          }},
          "correctAnswer": "A",
          "explanation": "Brief explanation of why this is correct"
        }}
      ]
    }}

    Field rules:
    - "questions" must contain exactly {question_count} objects.
    - "correctAnswer" must be one of: {option_keys}.
    - Separate every field with a comma and escape double quotes inside strings.
    """
).strip()


def describe_theme(theme: str) -> str:
    """Return the topic description for a theme key, defaulting to science."""

    return THEME_DESCRIPTIONS.get((theme or "").lower(), THEME_DESCRIPTIONS["science"])


def question_type_mix(question_count: int) -> Dict[str, int]:
    # Roughly 30% detail, 20% main idea, 20% inference, 20% vocabulary, remainder reference.
    mix = {
        "detail": round(question_count * 0.3),
        "main_idea": round(question_count * 0.2),
        "inference": round(question_count * 0.2),
        "vocabulary": round(question_count * 0.2),
    }
    mix["reference"] = max(1, question_count - sum(mix.values()))
    overflow = sum(mix.values()) - question_count
    for key in ("detail", "main_idea", "inference", "vocabulary"):
        if overflow <= 0:
            break
        taken = min(mix[key], overflow)
        mix[key] -= taken
        overflow -= taken
    return mix


def build_passage_prompt(topic: str, level: str, word_count: int) -> str:
    return PASSAGE_PROMPT_TEMPLATE.format(
        topic=topic,
        level=level,
        level_hint=LEVEL_GUIDANCE.get(level, LEVEL_GUIDANCE["intermediate"]),
        word_count=word_count,
        guardrails=IELTS_PASSAGE_GUARDRAILS,
    )


def build_questions_prompt(passage_content: str, level: str, question_count: int) -> str:
    mix = question_type_mix(question_count)
    mix_lines = "\n".join(f"- {count} {qtype} question(s)" for qtype, count in mix.items() if count > 0)
    return QUESTIONS_PROMPT_TEMPLATE.format(
        question_count=question_count,
        level=level,
        passage=(passage_content or "").strip(),
        mix=mix_lines,
        guardrails=IELTS_QUESTION_GUARDRAILS,
        option_keys=", ".join(OPTION_KEYS),
        difficulties=", ".join(DIFFICULTIES),
        question_types=", ".join(QUESTION_TYPES),
    )


def describe_skill(skill: str) -> str:
    return SKILL_TOPICS.get((skill or "").lower(), SKILL_TOPICS["reading"])


def build_topic_questions_prompt(topic: str, question_count: int) -> str:
    return TOPIC_QUESTIONS_PROMPT_TEMPLATE.format(
        topic=topic,
        question_count=question_count,
        option_keys=", ".join(OPTION_KEYS),
    )
