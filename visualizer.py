"""
The Feedback Loop Visualizer (ISO_GHO5T)

This is the entry point for the Visualization pipeline.
It finds published posts that have no image yet, asks the visual director
for a prompt in the writer's style, generates an image, uploads it to the
blog-images bucket and links it back to the post.

A post that fails is logged and left with a NULL image_url so the next run
picks it up again; the rest of the batch still runs.
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from config import settings
from config.validators import PIPELINE_REQUIREMENTS, validate_settings
from data.database import PostRepository, create_supabase_client
from data.protocols import ImageStore, PostStorage
from data.storage import ImageStorage
from services.ai_service import AIService
from services.image_service import ImageGenerator, ImageService, InlineImageService
from services.visual_director import VisualDirector
from utils.exceptions import (
    ConfigurationError, DatabaseError, FeedbackLoopError, GenerationError
)
from utils.helpers import truncate_text
from utils.logger import get_logger, setup_file_logging

logger = get_logger(__name__)

LINK_PUBLIC_URL = "public_url"
LINK_FILENAME = "filename"


@dataclass
class VisualizerReport:
    """Post ids handled by one run."""
    processed: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def build_filename(slug: str, timestamp_ms: int) -> str:
    """Object name for a post image; the timestamp keeps uploads from colliding."""
    return f"{slug or 'post'}-{timestamp_ms}.png"


class Visualizer:
    """Generates and links images for posts that are pending visualization."""

    def __init__(self, director: VisualDirector, image_generator: ImageGenerator,
                 post_repository: PostStorage, image_storage: ImageStore,
                 batch_size: int = settings.BATCH_SIZE,
                 cooldown_seconds: float = settings.COOLDOWN_SECONDS,
                 link_mode: str = settings.IMAGE_LINK_MODE,
                 sleep: Callable[[float], None] = time.sleep,
                 clock_ms: Callable[[], int] = lambda: int(time.time() * 1000)):
        """
        Initialize the visualizer.

        Args:
            director: Produces image prompts.
            image_generator: Turns prompts into image bytes.
            post_repository: Datastore access for the posts table.
            image_storage: Bucket the images are uploaded to.
            batch_size: Maximum posts per run.
            cooldown_seconds: Pause between posts.
            link_mode: Store the public URL ("public_url") or the bare filename ("filename").
            sleep: Sleep function (injected in tests).
            clock_ms: Millisecond timestamp used in filenames.
        """
        if link_mode not in (LINK_PUBLIC_URL, LINK_FILENAME):
            raise ConfigurationError(f"Unknown image link mode: {link_mode}")

        self.director = director
        self.image_generator = image_generator
        self.post_repository = post_repository
        self.image_storage = image_storage
        self.batch_size = batch_size
        self.cooldown_seconds = cooldown_seconds
        self.link_mode = link_mode
        self.sleep = sleep
        self.clock_ms = clock_ms

    def visualize(self, post: Dict[str, Any]) -> str:
        """
        Generate, upload and link an image for one post.

        Returns:
            str: The image reference stored on the post.

        Raises:
            GenerationError: If no image could be generated.
            DatabaseError: If the upload or the update failed.
        """
        prompt = self.director.direct(post)
        logger.info(f"ISO_GHO5T director chose: {truncate_text(prompt, 120)}")

        image_bytes = self.image_generator.generate(prompt)

        filename = build_filename(post.get("slug"), self.clock_ms())
        self.image_storage.upload_png(filename, image_bytes)

        if self.link_mode == LINK_PUBLIC_URL:
            image_ref = self.image_storage.public_url(filename)
            logger.info(f"Asset secured at: {image_ref}")
        else:
            image_ref = filename

        logger.info(f"Updating database record [ID: {post['id']}]...")
        self.post_repository.update_image_url(post["id"], image_ref)
        return image_ref

    def run(self) -> VisualizerReport:
        """
        Process up to batch_size posts without images, newest first.

        Returns:
            VisualizerReport: Which posts succeeded and which failed.

        Raises:
            DatabaseError: If the pending posts cannot be queried.
        """
        logger.info("Booting ISO_GHO5T visual protocol...")
        report = VisualizerReport()

        posts = self.post_repository.get_posts_missing_images(self.batch_size)
        if not posts:
            logger.info("System scan complete: no visualizations pending.")
            return report

        logger.info(f"Found {len(posts)} post(s) pending visualization")

        for index, post in enumerate(posts):
            if index > 0 and self.cooldown_seconds:
                logger.info(f"Cooling down for {self.cooldown_seconds}s...")
                self.sleep(self.cooldown_seconds)

            logger.info(f"Target acquired: \"{post.get('title')}\"")
            try:
                self.visualize(post)
                report.processed.append(post["id"])
                logger.info("Protocol complete. Visualization active.")
            except (GenerationError, DatabaseError) as e:
                # image_url stays NULL, so the post is retried on the next run
                report.failed.append(post["id"])
                logger.error(f"Critical failure in ISO_GHO5T for post {post['id']}: {e}")

        logger.info(f"Visualized {len(report.processed)} post(s), {len(report.failed)} failed")
        return report


def create_visualizer(app_settings: settings.AppSettings, batch_size: int = settings.BATCH_SIZE,
                      mode: str = settings.IMAGE_GENERATION_MODE,
                      link_mode: str = settings.IMAGE_LINK_MODE) -> Visualizer:
    """Build a Visualizer with real backend clients."""
    client = create_supabase_client(app_settings)
    ai_service = AIService(api_key=app_settings.google_api_key)
    image_generator = InlineImageService(ai_service) if mode == "inline" else ImageService()
    return Visualizer(
        director=VisualDirector(ai_service),
        image_generator=image_generator,
        post_repository=PostRepository(client),
        image_storage=ImageStorage(client),
        batch_size=batch_size,
        link_mode=link_mode,
    )


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='The Feedback Loop Visualizer (ISO_GHO5T)')
    parser.add_argument('--limit', type=int, default=settings.BATCH_SIZE,
                        help='Maximum number of posts to visualize')
    parser.add_argument('--mode', type=str, choices=['http', 'inline'],
                        default=settings.IMAGE_GENERATION_MODE,
                        help='Image source: retrying HTTP endpoint or inline Gemini image model')
    parser.add_argument('--link', type=str, choices=[LINK_PUBLIC_URL, LINK_FILENAME],
                        default=settings.IMAGE_LINK_MODE,
                        help='Store the public URL or the bare filename on the post')
    parser.add_argument('--log-file', type=str, default=None, help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO', help='Logging level')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None,
         visualizer_factory: Callable[..., Visualizer] = create_visualizer) -> int:
    """Main entry point for the visualizer."""
    args = parse_arguments(argv)
    setup_file_logging(args.log_file, getattr(logging, args.log_level))

    try:
        app_settings = settings.load_settings()
        validate_settings(app_settings, PIPELINE_REQUIREMENTS)
        logger.debug(f"Configuration: {settings.get_config_summary(app_settings)}")
        visualizer = visualizer_factory(app_settings, batch_size=args.limit,
                                        mode=args.mode, link_mode=args.link)
        report = visualizer.run()
    except ConfigurationError as e:
        logger.critical(str(e))
        return 1
    except DatabaseError as e:
        logger.error(f"Database error: {e}")
        return 1
    except FeedbackLoopError as e:
        logger.error(f"Visualizer error: {e}", exc_info=True)
        return 1
    except Exception as e:
        logger.error(f"Unhandled exception in visualizer: {e}", exc_info=True)
        return 1

    exit_code = 0 if report.ok else 1
    logger.info(f"Visualizer finished with exit code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
