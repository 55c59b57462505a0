from flask import current_app
from newton.services.openai_service import OpenAIService
from newton.utils.llm_json import parse_model_json


class AIResponseError(Exception):
    """Raised when a model answers with something we cannot use."""


SOURCE_LABELS = {
    "pdf": "PDF document",
    "audio": "audio transcript",
    "youtube": "video transcript",
    "prompt": "lesson text",
}

NOTES_SYSTEM_PROMPT = """You are an expert note-taking assistant that turns a {source} into a comprehensive study guide.

Structure:
- Start with "# <emoji> <Title>" and a 2-3 sentence overview.
- A "Key Points" list with the 4-6 main takeaways.
- Detailed sections ("## <emoji> Section") covering every topic in the source, in order.
- Markdown tables for comparisons, timelines, lists of items with attributes, and pros/cons.
- Definitions written as "Term – *one-sentence definition*" followed by a short explanation.
- Quotes as blockquotes placed right after the point they support, never collected at the end.
- Finish with a "Summary" section.

Content:
- Keep every concrete number, name, date and example from the source.
- Bold key terms on first mention.
- No filler and no repetition.

Return only the markdown."""

TITLE_SYSTEM_PROMPT = (
    "Generate a concise title (max 60 characters) and a brief description (max 160 characters) "
    "for this content. Return ONLY a valid JSON object with 'title' and 'description' fields. "
    "Do not include any markdown formatting or code blocks."
)

PROMPT_CONTENT_SYSTEM_PROMPT = """You are an expert educational content generator. Take the learner's prompt and write the source material they will study.

- 800-1500 words of flowing, textbook-style prose (no markdown).
- Cover definitions, explanations, examples and real-world applications.
- Go from fundamentals to advanced points and call out common misconceptions."""

FLASHCARD_PROMPT = """Given the following note content, generate 10-15 flashcard question-answer pairs.

Guidelines:
- Clear, concise questions mixing definition, concept, application and comparison.
- Answers of 1-3 sentences.
- Test understanding, not memorisation.

Note Title: {title}

Note Content:
{content}

Return ONLY a JSON array of objects with "question" and "answer" fields.
Example: [{{"question": "What is...", "answer": "It is..."}}]"""

QUIZ_PROMPT = """Based on the following note content, generate exactly {count} multiple-choice questions covering its most important concepts.

Note Title: {title}

Note Content:
{content}

Requirements:
- 4 options per question, one correct.
- Progress from basic to more complex concepts.
- A brief explanation for each correct answer.

Return a JSON object:
{{
  "questions": [
    {{
      "id": "q1",
      "prompt": "Question text?",
      "options": [
        {{"id": "a", "label": "..."}},
        {{"id": "b", "label": "..."}},
        {{"id": "c", "label": "..."}},
        {{"id": "d", "label": "..."}}
      ],
      "answerId": "a",
      "explanation": "..."
    }}
  ]
}}"""


def generate_notes_from_content(content, content_type="pdf"):
    """Turn extracted source text into markdown study notes."""
    source = SOURCE_LABELS.get(content_type, "document")
    service = OpenAIService()
    messages = [
        {"role": "system", "content": NOTES_SYSTEM_PROMPT.format(source=source)},
        {"role": "user", "content": f"Generate detailed study notes from this {source}:\n\n{content}"},
    ]
    return service.chat_completion(
        messages,
        model=current_app.config["NOTES_MODEL"],
        temperature=0.6,
        max_tokens=12000,
    )


def generate_title_and_description(content):
    """Return {"title", "description"} for the first 2000 characters of content."""
    preview = (content or "")[:2000]
    service = OpenAIService()
    messages = [
        {"role": "system", "content": TITLE_SYSTEM_PROMPT},
        {"role": "user", "content": f"Content: {preview}"},
    ]
    response = service.chat_completion(messages, temperature=0.7, max_tokens=200)
    try:
        result = parse_model_json(response)
    except ValueError as e:
        raise AIResponseError("Title response was not valid JSON") from e
    if not isinstance(result, dict):
        raise AIResponseError("Title response was not a JSON object")
    return {
        "title": (str(result.get("title") or "").strip() or "Untitled Note")[:200],
        "description": str(result.get("description") or "").strip()[:500],
    }


def generate_content_from_prompt(prompt):
    service = OpenAIService()
    messages = [
        {"role": "system", "content": PROMPT_CONTENT_SYSTEM_PROMPT},
        {"role": "user", "content": f"Generate comprehensive educational content about: {prompt}"},
    ]
    return service.chat_completion(messages, temperature=0.7, max_tokens=3000)


def generate_flashcards(title, content):
    """
    Ask the model for flashcards.
    Returns: list of {"question", "answer"} dicts (never empty)
    """
    service = OpenAIService()
    messages = [
        {
            "role": "system",
            "content": "You are a helpful study assistant that creates educational flashcards. Return only valid JSON arrays.",
        },
        {"role": "user", "content": FLASHCARD_PROMPT.format(title=title, content=content)},
    ]
    response = service.chat_completion(messages, temperature=0.7, max_tokens=2000)
    try:
        cards = parse_model_json(response)
    except ValueError as e:
        current_app.logger.error(f"Failed to parse flashcard response: {response[:500]}")
        raise AIResponseError("Invalid JSON response from AI") from e

    if not isinstance(cards, list):
        raise AIResponseError("Flashcard response was not a JSON array")
    cards = [
        {"question": str(c["question"]).strip(), "answer": str(c["answer"]).strip()}
        for c in cards
        if isinstance(c, dict) and c.get("question") and c.get("answer")
    ]
    if not cards:
        raise AIResponseError("No flashcards generated")
    return cards


def generate_quiz_questions(title, content, count=15):
    """
    Ask the model for multiple-choice questions.
    Accepts either {"questions": [...]} or a bare array from the model.
    """
    service = OpenAIService()
    messages = [
        {"role": "system", "content": "You are an educational quiz generator. Generate quiz questions in valid JSON format only."},
        {"role": "user", "content": QUIZ_PROMPT.format(count=count, title=title, content=content)},
    ]
    response = service.chat_completion(
        messages,
        model=current_app.config["QUIZ_MODEL"],
        temperature=0.7,
        max_tokens=4096,
        response_format="json_object",
    )
    try:
        parsed = parse_model_json(response)
    except ValueError as e:
        current_app.logger.error(f"Failed to parse quiz response: {response[:500]}")
        raise AIResponseError("Failed to parse quiz questions from AI response") from e

    if isinstance(parsed, dict) and isinstance(parsed.get("questions"), list):
        questions = parsed["questions"]
    elif isinstance(parsed, list):
        questions = parsed
    else:
        raise AIResponseError("Response does not contain a questions array")

    questions = [q for q in questions if _is_valid_question(q)]
    if not questions:
        raise AIResponseError("Questions must be a non-empty array")
    return questions


def _is_valid_question(q):
    if not isinstance(q, dict) or not q.get("prompt"):
        return False
    options = q.get("options")
    if not isinstance(options, list) or len(options) < 2:
        return False
    option_ids = {
        o.get("id") for o in options
        if isinstance(o, dict) and isinstance(o.get("id"), (str, int))
    }
    answer_id = q.get("answerId")
    return isinstance(answer_id, (str, int)) and answer_id in option_ids
