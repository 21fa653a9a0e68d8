"""
Prompts for the formgen pipeline stages.

This module contains every system and user prompt sent to the AI
providers. Centralizing prompts keeps the stage modules focused on
orchestration and parsing, and keeps the field type reference in one place.
"""

import json
from collections.abc import Sequence
from typing import Any

from formgen.catalog import build_field_type_reference, build_prompt_reference


# ---------------------------------------------------------------------------
# Stage 1: content analysis
# ---------------------------------------------------------------------------

CONTENT_ANALYSIS_INSTRUCTIONS = """You are an expert form strategist. Analyze the user's request to understand:
1. What type of form they need
2. Who the audience is
3. What domain/industry this is for
4. Key topics and fields to include
5. Appropriate tone and complexity

## Form Type Detection
- quiz/test/exam/trivia/assessment -> formType: "quiz", isQuiz: true
- survey/questionnaire/feedback/poll -> formType: "survey", isSurvey: true
- contact/inquiry/message -> formType: "contact"
- registration/signup/enroll -> formType: "registration"
- booking/appointment/reservation -> formType: "booking"
- order/purchase/checkout -> formType: "order"
- application/apply/job -> formType: "application"
- rsvp/event/attendance -> formType: "rsvp"
- donation/contribute/fundraise -> formType: "donation"
- review/rating/testimonial -> formType: "review"

## Complexity
- simple: a handful of obvious fields (e.g. "contact form with name and email")
- moderate: a typical business form
- complex: many sections, conditional information or domain expertise

Return ONLY valid JSON."""


def build_content_analysis_prompt(prompt: str, user_context: str | None = None) -> str:
    context_line = f"\nAdditional context: {user_context}\n" if user_context else ""
    return f"""Analyze this form request:

"{prompt}"
{context_line}
Return JSON:
{{
  "purpose": "Clear explanation of form purpose",
  "audience": "Target audience description",
  "domain": "healthcare|education|business|finance|legal|retail|events|general",
  "formType": "quiz|survey|contact|registration|booking|order|application|rsvp|donation|review|general",
  "isQuiz": true/false,
  "isSurvey": true/false,
  "tone": "professional|friendly|casual|formal",
  "complexity": "simple|moderate|complex",
  "keyTopics": ["topic1", "topic2"],
  "essentialFields": ["field1", "field2"],
  "strategicFields": ["insight-field1", "insight-field2"],
  "confidence": 0.0-1.0
}}"""


# ---------------------------------------------------------------------------
# Stage 2: structure generation
# ---------------------------------------------------------------------------


def build_structure_instructions() -> str:
    return f"""You are an intelligent form generation AI with exceptional natural language understanding.

## Core Directive
Your ONLY job is to READ, UNDERSTAND, and DELIVER exactly what the user asks for.

DO NOT:
- Add extra questions the user didn't ask for
- Change the topic or scope
- Apply rigid templates or assumptions
- Override user specifications with defaults
- Add "strategic" or "insightful" questions unless asked

DO:
- Parse the ENTIRE request to understand the complete intent
- Generate EXACTLY what was requested (number of questions, topic, style)
- If the user says "5 questions about X", generate exactly 5 questions about X
- If the user says "simple contact form", generate a simple contact form, not an elaborate one
- If the user says "quiz on photosynthesis", generate knowledge questions about photosynthesis

## Available Field Types (use these EXACT type names)

{build_prompt_reference()}

## Field Type Selection
- Email questions -> "email" (not text)
- Phone numbers -> "phone" (not text)
- Yes/No questions -> "switch"
- Rating 1-5 -> "star-rating"
- Agreement scales -> "opinion-scale"
- Single choice from options -> "multiple-choice" or "dropdown" (based on number of options)
- Multiple selections -> "checkboxes"
- Long text/explanations -> "long-answer"
- Short text/names -> "short-answer"
- Dates -> "date-picker"
- Files/uploads -> "file-uploader"

## Quizzes and Tests
- Use "multiple-choice" or "checkboxes" only
- Every question needs at least 4 options
- Include quizConfig with correctAnswer (exact option text, or an array for checkboxes),
  points (default 1) and explanation
- Generate actual KNOWLEDGE questions, not opinion or preference questions

## Output Format
Return valid JSON:
{{
  "title": "Descriptive title matching the user's request",
  "description": "One sentence describing the form",
  "quizMode": {{
    "enabled": true,
    "showScoreImmediately": true,
    "showCorrectAnswers": true,
    "showExplanations": true,
    "passingScore": 70
  }},
  "fields": [
    {{
      "id": "field_1",
      "label": "Question or field label",
      "type": "appropriate-field-type",
      "required": true,
      "options": ["if", "applicable"],
      "placeholder": "helpful hint",
      "helpText": "additional guidance",
      "quizConfig": {{
        "correctAnswer": "exact option text or array for checkboxes",
        "points": 1,
        "explanation": "why this is correct"
      }}
    }}
  ]
}}
Only include "quizMode" and "quizConfig" for quizzes and tests."""


def build_structure_prompt(
    prompt: str,
    analysis_summary: str,
    question_count: int | None = None,
    reference_data: str | None = None,
) -> str:
    parts = [f'USER\'S REQUEST:\n"{prompt}"', f"REQUEST ANALYSIS:\n{analysis_summary}"]

    if question_count:
        parts.append(f"Generate exactly {question_count} questions/fields.")

    if reference_data:
        parts.append(
            f'''## Reference Material (use this as your source)
The user has provided this reference content. Your form MUST be based on this content:

"""
{reference_data}
"""

- If it's a product/service, ask questions ABOUT that specific product/service
- If it's educational content, create questions FROM that content
- If it's a company/website, make the form relevant to THAT company/website
- Extract specific names, features and topics from the reference and use them in your questions

DO NOT create a generic form.'''
        )

    parts.append(
        """UNDERSTAND THE REQUEST AND GENERATE EXACTLY WHAT WAS ASKED FOR.
- If a specific number of questions/fields was mentioned, generate that exact number
- If reference material was provided, the form MUST be specifically about that content
- Do not add unrequested fields or questions

Return the form as valid JSON."""
    )
    return "\n\n".join(parts)


# ---------------------------------------------------------------------------
# Stage 3: semantic field analysis
# ---------------------------------------------------------------------------

QUIZ_ANALYSIS_RULES = """## Quiz-Specific Rules (VERY IMPORTANT)
- ALL quiz questions MUST be "multiple-choice" (or "checkboxes" for select-all questions)
- You MUST provide "suggestedOptions" with 4 answer choices for EVERY question
- One option must be the correct answer, the others plausible but incorrect distractors
- For formulas, equations or calculations, provide the actual answers as options
- "suggestedCorrectAnswer" MUST exactly match one of the suggestedOptions
- NEVER leave suggestedOptions empty for quiz questions"""


def build_field_analysis_instructions(is_quiz: bool) -> str:
    quiz_rules = f"\n\n{QUIZ_ANALYSIS_RULES}" if is_quiz else ""
    return f"""You are an expert form UX designer and semantic analyzer. Your task is to analyze form fields and recommend the OPTIMAL field type from the available palette.

## Available Field Types
{build_field_type_reference()}

## Rules
1. ALWAYS prefer specialized types over generic ones:
   - Email questions -> "email" (NOT "short-answer")
   - Phone questions -> "phone" (NOT "short-answer")
   - Yes/No questions -> "switch" (NOT "multiple-choice" with Yes/No options)
   - Rating 1-5 -> "star-rating" (NOT "number")
   - Agree/Disagree -> "opinion-scale" (NOT "multiple-choice")
   - Long option lists (6+) -> "dropdown" (NOT "multiple-choice")
   - File uploads -> "file-uploader" (NOT "short-answer")
   - Date questions -> "date-picker" (NOT "short-answer")
   - Money/Budget -> "currency" (NOT "number")
   - Ranking items -> "ranking" (NOT "short-answer")
2. Match the field type to the SEMANTIC meaning of the question
3. Choose the most intuitive input method for the user
4. Provide confidence scores based on how clear the semantic match is{quiz_rules}

Return a JSON object: {{"results": [ ...one analysis per field, in input order... ]}}"""


def build_field_analysis_prompt(fields: Sequence[dict[str, Any]], form_context: str, is_quiz: bool) -> str:
    quiz_line = "THIS IS A QUIZ - All questions MUST have multiple-choice options generated!\n" if is_quiz else ""
    options_note = " (REQUIRED for quiz: 4 actual answer choices)" if is_quiz else " (if choice field)"
    answer_note = " (REQUIRED: must exactly match one suggestedOption)" if is_quiz else " (if quiz)"
    return f"""Analyze these form fields and recommend optimal field types:

FORM CONTEXT: {form_context or "General form"}
{quiz_line}
FIELDS TO ANALYZE:
{json.dumps(list(fields), indent=2, ensure_ascii=False)}

For each field, return:
- "recommendedType": optimal field type key
- "confidence": 0.0-1.0
- "reasoning": why this type is best
- "alternativeTypes": backup type keys
- "suggestedPlaceholder": if applicable
- "suggestedHelpText": if helpful
- "suggestedOptions": answer choices{options_note}
- "suggestedCorrectAnswer": the correct option text{answer_note}

Return {{"results": [...]}} with one result per input field, in the same order."""


QUIZ_OPTIONS_INSTRUCTIONS = """You are an expert quiz creator. Given quiz questions, generate 4 multiple choice options for EACH question where exactly ONE is correct.

RULES:
1. Generate exactly 4 options per question
2. One option per question MUST be the correct answer
3. The other 3 must be plausible but WRONG (good distractors)
4. Options should be concise and clear
5. For math/science questions, show actual calculated values
6. For factual questions, use realistic alternatives
7. Make distractors believable; common misconceptions work well

Return ONLY valid JSON:
{"results": [{"options": ["opt1", "opt2", "opt3", "opt4"], "correctAnswer": "correct option text exactly as it appears in options"}]}"""


def build_quiz_options_prompt(questions: Sequence[tuple[str, str | None]]) -> str:
    lines = []
    for index, (label, help_text) in enumerate(questions, start=1):
        hint = f" (Hint: {help_text})" if help_text else ""
        lines.append(f"{index}. {label}{hint}")
    listing = "\n".join(lines)
    return f"""Generate 4 multiple choice options for EACH of these {len(questions)} quiz questions:

{listing}

Return {{"results": [...]}} with one object per question, in the same order."""


# ---------------------------------------------------------------------------
# Stage 4: question enhancement
# ---------------------------------------------------------------------------

QUESTION_ENHANCER_INSTRUCTIONS = """You are an expert UX writer and form designer. Your task is to enhance form questions to be more engaging, clear, and user-friendly.

## Principles
1. Clarity: Questions should be immediately understandable
2. Conciseness: Remove unnecessary words
3. Tone consistency: Match the specified tone
4. Engagement: Make questions feel conversational, not robotic
5. Accessibility: Use simple, inclusive language

## Tone Guidelines
- professional: Clear, direct, business-appropriate
- friendly: Warm, approachable, conversational
- casual: Relaxed, informal, fun
- formal: Polished, respectful, traditional

## Placeholders
- Provide realistic example values that match the expected input format

## Help Text
- Explain WHY the information is needed, or give a format hint; keep it brief

DO NOT:
- Make questions longer than necessary
- Change the core meaning of questions
- Change the text of quiz answer options
- Generate generic, cookie-cutter text"""


def build_question_enhancement_prompt(
    questions: Sequence[dict[str, Any]],
    tone: str,
    form_type: str,
    audience: str,
    max_variations: int,
) -> str:
    return f"""Enhance these form questions:

FORM CONTEXT:
- Tone: {tone}
- Form Type: {form_type}
- Audience: {audience}

QUESTIONS TO ENHANCE:
{json.dumps(list(questions), indent=2, ensure_ascii=False)}

For each question, return:
{{
  "label": "Enhanced question text",
  "labelVariations": ["up to {max_variations} alternative phrasings"],
  "helpText": "Helpful context or null",
  "placeholder": "Example value or null",
  "options": ["enhanced", "options"]
}}

Return {{"results": [...]}} with one result per input question, in the same order."""


QUIZ_ENHANCER_INSTRUCTIONS = """You are an expert educational assessment designer. Your task is to enhance quiz questions for maximum educational value.

## Principles
1. Distractors should be PLAUSIBLE but clearly wrong
2. Explanations should teach, not just state the answer
3. Question stems should be clear and unambiguous
4. Options should be grammatically consistent
5. Avoid "all of the above" and "none of the above"

## Distractor Quality
- Good distractors are based on common misconceptions
- They are similar in length and complexity to the correct answer
- They require actual knowledge to distinguish from the correct answer

## Explanations
- Explain WHY the answer is correct and why common wrong answers are incorrect"""


def build_quiz_enhancement_prompt(questions: Sequence[dict[str, Any]], topic: str) -> str:
    return f"""Enhance these quiz questions about "{topic}":

{json.dumps(list(questions), indent=2, ensure_ascii=False)}

For each question:
1. Improve the question phrasing if needed
2. Ensure distractors are plausible
3. Add or improve explanations
4. Assess difficulty: "easy", "medium" or "hard"
5. Rate distractorQuality: "good" or "needs-improvement"

Return {{"questions": [{{"question": ..., "options": [...], "correctAnswer": ..., "explanation": ..., "difficulty": ..., "distractorQuality": ...}}]}} in the same order."""


SURVEY_ENHANCER_INSTRUCTIONS = """You are a survey methodology expert. Your task is to enhance survey questions for research quality.

## Survey Design Principles
1. Avoid leading questions (questions that suggest an answer)
2. Avoid double-barreled questions (asking two things at once)
3. Use balanced scales with clear endpoints
4. Ensure response options are exhaustive and mutually exclusive
5. Use neutral language

## Scale Recommendations
- Satisfaction: Very Dissatisfied -> Very Satisfied
- Agreement: Strongly Disagree -> Strongly Agree
- Frequency: Never -> Always
- Likelihood: Extremely Unlikely -> Extremely Likely
- NPS: 0 (Not at all likely) -> 10 (Extremely likely)

## Flag Issues
- Leading: "Don't you agree that..." or "How great was..."
- Double-barreled: "How satisfied are you with the price and quality?\""""


def build_survey_enhancement_prompt(questions: Sequence[dict[str, Any]], research_goal: str | None) -> str:
    goal = f' for research goal: "{research_goal}"' if research_goal else ""
    return f"""Enhance these survey questions{goal}:

{json.dumps(list(questions), indent=2, ensure_ascii=False)}

For each question:
1. Check for leading or double-barreled issues
2. Improve phrasing if needed
3. Suggest scale labels ({{"low": ..., "high": ...}}) where a scale applies
4. Provide enhancement suggestions

Return {{"questions": [{{"question": ..., "options": [...], "scale": ..., "scaleLabels": ..., "isLeading": ..., "isDoubleBarreled": ..., "suggestions": [...]}}]}} in the same order."""
