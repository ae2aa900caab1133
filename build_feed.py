"""
The Feedback Loop Feed Builder

Reads published posts from the datastore and writes the site's RSS feed.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from config import settings
from config.validators import FEED_REQUIREMENTS, validate_settings
from data.database import PostRepository, create_supabase_client
from data.protocols import PostStorage
from frontend.feed import build_rss
from utils.exceptions import ConfigurationError, DatabaseError
from utils.logger import get_logger, setup_file_logging

logger = get_logger(__name__)


def write_feed(post_repository: PostStorage, app_settings: settings.AppSettings,
               output: Path) -> int:
    """
    Build the feed from published posts and write it to disk.

    Returns:
        int: Number of posts in the feed.

    Raises:
        DatabaseError: If the posts cannot be fetched.
    """
    posts = post_repository.get_published_posts()
    logger.info(f"Building feed from {len(posts)} published posts")

    document = build_rss(
        posts,
        site_url=app_settings.site_url,
        base_path=app_settings.base_path,
        storage_base_url=app_settings.storage_base_url,
    )
    output.write_text(document, encoding="utf-8")
    logger.info(f"Feed written to {output}")
    return len(posts)


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='The Feedback Loop RSS feed builder')
    parser.add_argument('--output', type=str, default=settings.FEED_OUTPUT_FILE,
                        help='Where to write the feed')
    parser.add_argument('--log-file', type=str, default=None, help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO', help='Logging level')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the feed builder."""
    args = parse_arguments(argv)
    setup_file_logging(args.log_file, getattr(logging, args.log_level))

    try:
        app_settings = settings.load_settings()
        validate_settings(app_settings, FEED_REQUIREMENTS)
        repository = PostRepository(create_supabase_client(app_settings))
        write_feed(repository, app_settings, Path(args.output))
    except ConfigurationError as e:
        logger.critical(str(e))
        return 1
    except DatabaseError as e:
        logger.error(f"Database error: {e}")
        return 1
    except OSError as e:
        logger.error(f"Could not write feed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
