"""
Visual Director Module

Asks the text model (acting as ISO_GHO5T) for a one-sentence image prompt in
the writer's visual style. The director is an enhancement: when it fails a
deterministic prompt is used instead.
"""

from typing import Any, Dict

from config import settings
from config.personas import CORE_VISUAL_STYLE, visual_style_for
from services.ai_service import AIService
from utils.exceptions import GenerationError
from utils.logger import get_logger

logger = get_logger(__name__)

MANDATORY_RULES = [
    CORE_VISUAL_STYLE,
    "CRT monitor scanlines and slight curvature.",
    "Subtle glitch artifacts.",
    "Restricted palette; no more than four dominant colours.",
    "Never show faces clearly; focus on atmosphere, tech, and environment.",
]


def build_director_prompt(post: Dict[str, Any]) -> str:
    """Build the ISO_GHO5T director prompt for a post row."""
    rules = "\n".join(f"- {rule}" for rule in MANDATORY_RULES)
    return f"""Act as ISO_GHO5T, the Visual Director.
Subject: "{post.get('summary') or post.get('title')}"
Writer Style: "{visual_style_for(post.get('ai_writer'))}"

CORE ISO_GHO5T RULES (MANDATORY):
{rules}

OUTPUT: A single 1-sentence prompt for a generative model.
"""


def fallback_visual_prompt(post: Dict[str, Any]) -> str:
    """Deterministic prompt used when the director is unavailable."""
    subject = post.get('summary') or post.get('title') or "Untitled transmission"
    return f"{subject}. STYLE: {CORE_VISUAL_STYLE}, {visual_style_for(post.get('ai_writer'))}"


class VisualDirector:
    """Produces image prompts tailored to each writer's visual style."""

    def __init__(self, ai_service: AIService, model: str = settings.DIRECTOR_MODEL):
        self.ai_service = ai_service
        self.model = model

    def direct(self, post: Dict[str, Any]) -> str:
        """
        Return an image prompt for the post.

        Args:
            post: Row with title, summary and ai_writer.

        Returns:
            str: Director output, or the fallback prompt if the call failed.
        """
        logger.info(f"Consulting visual director for: \"{post.get('title')}\" [writer: {post.get('ai_writer')}]")
        try:
            return self.ai_service.generate_text(build_director_prompt(post), model=self.model)
        except GenerationError as e:
            logger.warning(f"Director failed: {e}. Falling back to default prompt.")
            return fallback_visual_prompt(post)
