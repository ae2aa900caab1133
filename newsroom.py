"""
The Feedback Loop Newsroom

This is the entry point for the Writer + Editor pipeline.
A persona drafts an article in its own voice, the SENTINEL editor turns the
draft into a structured JSON record, and the record is published to the
posts table (or printed, in dry-run mode).
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from config import settings
from config.personas import DEFAULT_WRITER, PERSONAS, get_persona
from config.validators import PIPELINE_REQUIREMENTS, validate_settings
from data.database import PostRepository, create_supabase_client
from data.models import EditorialRecord, Persona, PostStatus
from data.protocols import PostStorage
from services.ai_service import AIService
from services.editorial_service import (
    build_editor_prompt, build_writer_prompt, parse_editorial_response
)
from utils.exceptions import (
    ConfigurationError, DatabaseError, EditorialParseError, FeedbackLoopError,
    GenerationError, HistoryFetchError, UnknownPersonaError
)
from utils.logger import get_logger, setup_file_logging

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class NewsroomResult:
    """Outcome of one newsroom run."""
    persona: Persona
    record: EditorialRecord
    persisted: bool
    published_at: Optional[datetime] = None
    stored_row: Optional[Dict[str, Any]] = None


class Newsroom:
    """
    Orchestrates one article: select persona, fetch history, draft,
    structure and edit, then persist or stop at a dry run.
    """

    def __init__(self, ai_service: AIService, post_repository: PostStorage,
                 history_limit: int = settings.HISTORY_LIMIT,
                 publish_offset_days: int = settings.PUBLISH_OFFSET_DAYS,
                 story_date: str = settings.STORY_DATE,
                 editor_id: str = settings.EDITOR_ID,
                 editor_model: str = settings.EDITOR_MODEL,
                 clock: Callable[[], datetime] = _utcnow):
        """
        Initialize the newsroom.

        Args:
            ai_service: Text-generation service.
            post_repository: Datastore access for the posts table.
            history_limit: Number of previous posts used as style memory.
            publish_offset_days: Days to schedule publication into the future.
            story_date: In-fiction current date given to the writer.
            editor_id: Identity recorded as ai_editor.
            editor_model: Model used by the editorial pass.
            clock: Returns the current time (injected in tests).
        """
        self.ai_service = ai_service
        self.post_repository = post_repository
        self.history_limit = history_limit
        self.publish_offset_days = publish_offset_days
        self.story_date = story_date
        self.editor_id = editor_id
        self.editor_model = editor_model
        self.clock = clock

    def fetch_history(self, persona: Persona) -> List[Dict[str, Any]]:
        """Previous posts by this persona; an empty list if the lookup fails."""
        logger.info(f"Accessing {persona.full_name} archives...")
        try:
            history = self.post_repository.get_writer_history(persona.full_name, self.history_limit)
        except HistoryFetchError as e:
            logger.warning(f"Could not fetch history. Proceeding without context. ({e})")
            return []
        logger.info(f"Retrieved {len(history)} previous posts for {persona.full_name}")
        return history

    def draft_article(self, persona: Persona, history: List[Dict[str, Any]],
                      topic: Optional[str]) -> str:
        """Run the writer pass and return raw markdown."""
        logger.info(f"Writer agent engaged: {persona.full_name}")
        prompt = build_writer_prompt(persona, history, topic, self.story_date)
        draft = self.ai_service.generate_text(prompt, model=persona.model)
        logger.info(f"Draft generated. Length: {len(draft)} chars")
        return draft

    def structure_and_edit(self, persona: Persona, draft: str) -> EditorialRecord:
        """Run the editorial pass and parse its JSON into a record."""
        logger.info(f"Transferring to {self.editor_id}...")
        raw = self.ai_service.generate_text(build_editor_prompt(persona, draft, self.editor_id),
                                            model=self.editor_model)
        record = parse_editorial_response(raw, persona, self.editor_id)
        logger.info(f"SENTINEL approved: {record.title}")
        return record

    def publish_time(self) -> datetime:
        return self.clock() + timedelta(days=self.publish_offset_days)

    def run(self, writer_key: str = DEFAULT_WRITER, topic: Optional[str] = None,
            dry_run: bool = False) -> NewsroomResult:
        """
        Produce one article.

        Args:
            writer_key: Persona key.
            topic: Optional assignment; the writer invents one otherwise.
            dry_run: Stop before persisting.

        Returns:
            NewsroomResult: The record and whether it was stored.

        Raises:
            UnknownPersonaError: Unknown writer key (nothing is called).
            GenerationError: Either generation pass failed.
            EditorialParseError: The editor's JSON was unusable.
            DatabaseError: The insert failed.
        """
        persona = get_persona(writer_key)
        logger.info(f"Booting newsroom. Identity: {persona.full_name}")

        history = self.fetch_history(persona)
        draft = self.draft_article(persona, history, topic)
        record = self.structure_and_edit(persona, draft)

        if dry_run:
            logger.info("Dry run complete. Nothing was written to the database.")
            return NewsroomResult(persona=persona, record=record, persisted=False)

        published_at = self.publish_time()
        payload = record.to_payload(PostStatus.PUBLISHED, published_at)
        logger.info(f"Injecting signal into database (published_at {published_at.isoformat()})...")
        stored_row = self.post_repository.insert_post(payload)
        logger.info(f"Signal injected: /posts/{record.slug}")

        return NewsroomResult(persona=persona, record=record, persisted=True,
                              published_at=published_at, stored_row=stored_row)


def create_newsroom(app_settings: settings.AppSettings,
                    publish_offset_days: int = settings.PUBLISH_OFFSET_DAYS) -> Newsroom:
    """Build a Newsroom with real backend clients."""
    client = create_supabase_client(app_settings)
    return Newsroom(
        ai_service=AIService(api_key=app_settings.google_api_key),
        post_repository=PostRepository(client),
        publish_offset_days=publish_offset_days,
    )


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='The Feedback Loop Newsroom (Writer + Editor)')
    parser.add_argument('--writer', type=str, default=DEFAULT_WRITER,
                        help=f"Persona key ({', '.join(PERSONAS)})")
    parser.add_argument('--topic', type=str, default=None,
                        help='Assignment for the writer; omitted means the writer invents one')
    parser.add_argument('--dry-run', action='store_true',
                        help='Print the structured record instead of saving it')
    parser.add_argument('--schedule-days', type=int, default=settings.PUBLISH_OFFSET_DAYS,
                        help='Publish this many days in the future (0 = now)')
    parser.add_argument('--log-file', type=str, default=None, help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO', help='Logging level')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None,
         newsroom_factory: Callable[..., Newsroom] = create_newsroom) -> int:
    """Main entry point for the newsroom."""
    args = parse_arguments(argv)
    setup_file_logging(args.log_file, getattr(logging, args.log_level))

    try:
        get_persona(args.writer)
    except UnknownPersonaError as e:
        logger.error(f"Unknown writer identity: {e.key}")
        logger.info(f"Valid options: {', '.join(e.valid_keys)}")
        return EXIT_USAGE

    try:
        app_settings = settings.load_settings()
        validate_settings(app_settings, PIPELINE_REQUIREMENTS)
        logger.debug(f"Configuration: {settings.get_config_summary(app_settings)}")
        newsroom = newsroom_factory(app_settings, publish_offset_days=args.schedule_days)
        result = newsroom.run(args.writer, topic=args.topic, dry_run=args.dry_run)
    except ConfigurationError as e:
        logger.critical(f"{e}\nPlease ensure these are set in your environment or .env file.")
        return EXIT_FAILURE
    except EditorialParseError as e:
        logger.error(f"Editorial pass rejected: {e}")
        return EXIT_FAILURE
    except GenerationError as e:
        logger.error(f"Generation failed: {e}")
        return EXIT_FAILURE
    except DatabaseError as e:
        logger.error(f"Database error: {e}")
        return EXIT_FAILURE
    except FeedbackLoopError as e:
        logger.error(f"Newsroom error: {e}", exc_info=True)
        return EXIT_FAILURE
    except Exception as e:
        logger.error(f"Critical system failure: {e}", exc_info=True)
        return EXIT_FAILURE

    if not result.persisted:
        print(json.dumps(result.record.to_dict(), indent=2, ensure_ascii=False))

    logger.info(f"Newsroom finished with exit code {EXIT_OK}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
