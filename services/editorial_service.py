"""
Editorial Service Module

Prompt construction for the writer and SENTINEL editor passes, and parsing
of the editor's JSON reply into an EditorialRecord.

The editor is a generative model, so its reply is treated as untrusted: the
fields that must equal known values (writer, editor, category) are reset
after parsing, and the slug is re-derived to be URL-safe.
"""

import json
from typing import Any, Dict, List, Optional

from config import settings
from data.models import EditorialRecord, Persona
from frontend.alerts import compose_system_alert, parse_system_alert
from utils.exceptions import EditorialParseError
from utils.helpers import slugify, strip_code_fences
from utils.logger import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = ("title", "summary", "content")
NO_HISTORY_MESSAGE = "No previous records found for this identity."


def build_style_memory(history: List[Dict[str, Any]],
                       sample_length: int = settings.STYLE_REFERENCE_LENGTH) -> str:
    """Summarize a writer's previous posts as voice templates."""
    if not history:
        return NO_HISTORY_MESSAGE
    return "\n\n".join(
        f"TITLE: {row.get('title')}\nSTYLE_REF: {(row.get('content') or '')[:sample_length]}..."
        for row in history
    )


def build_topic_instruction(topic: Optional[str], history: List[Dict[str, Any]]) -> str:
    """Either the operator's assignment or an instruction to invent a fresh topic."""
    if topic:
        return f'Your Assignment: Write about "{topic}".'

    recent_titles = ", ".join(row.get("title") for row in history if row.get("title"))
    instruction = ("Investigate and invent a plausible, specific music event or release occurring "
                   "in early 2026 that fits your domain.")
    if recent_titles:
        instruction += f" Avoid repeating: {recent_titles}"
    return instruction


def build_writer_prompt(persona: Persona, history: List[Dict[str, Any]],
                        topic: Optional[str] = None,
                        story_date: str = settings.STORY_DATE) -> str:
    """
    Build the prompt for the drafting pass.

    Args:
        persona: The writing persona.
        history: The persona's recent posts (may be empty).
        topic: Operator-supplied topic, or None to let the writer invent one.
        story_date: The in-fiction current date.

    Returns:
        str: The writer prompt.
    """
    return f"""{persona.instruction}
TONE_PROFILE: {persona.tone}

STYLE_MEMORY (Use these as templates for your voice):
{build_style_memory(history)}

CONTEXT:
- Current Date: {story_date}.
- Location: Global (UK/US/Europe/Japan/Korea/Spain focus).
- Style: Cyberpunk/Industrial music blog "The Feedback Loop".

TASK: Write a new article for "The Feedback Loop".
{build_topic_instruction(topic, history)}

OUTPUT: Raw Markdown only. No titles. No greetings.
"""


def build_editor_prompt(persona: Persona, draft: str,
                        editor_id: str = settings.EDITOR_ID) -> str:
    """
    Build the prompt for the SENTINEL editorial pass.

    Args:
        persona: The persona that wrote the draft.
        draft: Raw markdown from the writer pass.
        editor_id: Editor identity recorded on the post.

    Returns:
        str: The editor prompt demanding strict JSON.
    """
    return f"""You are {editor_id}. You are a clinical, emotionless editorial AI.
Your purpose: Format raw data into system-ready JSON and verify integrity.

INPUT_DATA: "{draft}"
WRITER_ID: "{persona.full_name}"

SENTINEL_PROTOCOL:
- TONE: Clinical, forensic, brief.
- CATEGORY: Must stay '{persona.category}'.
- INTEGRITY_SCAN: Generate a realistic safety/accuracy score (0-100).
- FACT_CHECK: Identify 1-2 'data points' from the text and confirm validity in the 2026 timeline.

OUTPUT_SCHEMA (STRICT JSON ONLY):
{{
  "ai_writer": "{persona.full_name}",
  "ai_editor": "{editor_id}",
  "category": "{persona.category}",
  "title": "String",
  "slug": "String (url-safe)",
  "summary": "String ({settings.SUMMARY_MAX_LENGTH} chars max)",
  "system_alert": "[SYSTEM ALERT // {editor_id}] INTEGRITY SCAN: [Number]% // FACT-CHECK: [Fact check report] // ACTION: [Recommended action]",
  "integrity_scan": Number,
  "fact_check": "String",
  "editorial_action": "String",
  "editorial_note": "A cold, 2-sentence technical critique of the writer's efficiency.",
  "seo_keywords": ["Array"],
  "content": "Full cleaned Markdown"
}}
"""


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_score(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    # Models sometimes answer "87%" or "87"
    return parse_system_alert(f"INTEGRITY SCAN: {value}").integrity


def _coerce_keywords(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return []
    return [str(k).strip() for k in value if str(k).strip()]


def parse_editorial_response(raw: str, persona: Persona,
                             editor_id: str = settings.EDITOR_ID) -> EditorialRecord:
    """
    Parse and normalise the editor's reply.

    Args:
        raw: Raw model output, possibly wrapped in code fences.
        persona: The persona that wrote the draft.
        editor_id: Editor identity recorded on the post.

    Returns:
        EditorialRecord: A record safe to persist.

    Raises:
        EditorialParseError: If the reply is not a JSON object or lacks required fields.
    """
    cleaned = strip_code_fences(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise EditorialParseError(f"Editor returned invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise EditorialParseError(f"Editor returned {type(data).__name__}, expected a JSON object")

    missing = [name for name in REQUIRED_FIELDS if not _optional_text(data.get(name))]
    if missing:
        raise EditorialParseError(f"Editor response missing required fields: {', '.join(missing)}")

    for name, expected in (("category", persona.category),
                           ("ai_writer", persona.full_name),
                           ("ai_editor", editor_id)):
        if data.get(name) not in (None, expected):
            logger.warning(f"Editor changed {name} to '{data.get(name)}'; restoring '{expected}'")

    title = _optional_text(data["title"])
    slug = slugify(data.get("slug") or "") or slugify(title)
    if not slug:
        raise EditorialParseError(f"Could not derive a URL-safe slug from title '{title}'")

    system_alert = _optional_text(data.get("system_alert"))
    integrity = _coerce_score(data.get("integrity_scan"))
    fact_check = _optional_text(data.get("fact_check"))
    action = _optional_text(data.get("editorial_action"))

    if system_alert:
        # Fill whichever typed fields the editor folded into the alert text
        parsed = parse_system_alert(system_alert)
        integrity = integrity if integrity is not None else parsed.integrity
        fact_check = fact_check or parsed.fact_check
        action = action or parsed.action
    elif integrity is not None or fact_check or action:
        system_alert = compose_system_alert(integrity, fact_check, action, editor=editor_id)

    return EditorialRecord(
        ai_writer=persona.full_name,
        ai_editor=editor_id,
        category=persona.category,
        title=title,
        slug=slug,
        summary=_optional_text(data["summary"]),
        content=_optional_text(data["content"]),
        system_alert=system_alert,
        integrity_scan=integrity,
        fact_check=fact_check,
        editorial_action=action,
        editorial_note=_optional_text(data.get("editorial_note")),
        seo_keywords=_coerce_keywords(data.get("seo_keywords")),
    )
