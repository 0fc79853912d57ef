"""
Command line entry point: run the API server or seed sample posts.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timedelta, timezone

from airfryhub.config import get_settings
from airfryhub.dependencies import get_db_client
from airfryhub.logging_utils import configure_logging
from airfryhub.validation import validate_post

logger = logging.getLogger(__name__)

SAMPLE_POSTS = (
    {
        "title": "Crispy chickpeas in 15 minutes",
        "content": "Pat them dry, a little oil, 200C, shake halfway.",
        "flags": ["recipe", "beginner"],
    },
    {
        "title": "Preheat or not?",
        "content": "Does preheating actually change anything for frozen fries?",
        "flags": ["question"],
    },
    {
        "title": "Parchment liners are worth it",
        "content": "Cleanup went from ten minutes to one.",
        "flags": ["tip", "review"],
    },
)


def seed(count: int) -> int:
    db = get_db_client()
    now = datetime.now(timezone.utc)
    created = 0
    for i, sample in enumerate(SAMPLE_POSTS[:count]):
        data = validate_post(sample)
        post = db.create_post(data.as_record(), created_at=now - timedelta(hours=i))
        logger.info("Seeded post %s: %s", post.id, post.title)
        created += 1
    return created


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="AirFryHub forum service")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true")

    seed_parser = subparsers.add_parser("seed", help="Insert sample posts")
    seed_parser.add_argument(
        "-n",
        "--num",
        type=int,
        default=len(SAMPLE_POSTS),
        help="How many sample posts to insert",
    )

    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "airfryhub.app:app", host=args.host, port=args.port, reload=args.reload
        )
        return 0

    created = seed(args.num)
    print(f"Seeded {created} posts")
    return 0


if __name__ == "__main__":
    sys.exit(main())
