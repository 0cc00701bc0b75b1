"""Application entry point for the quiz engine API server."""

from __future__ import annotations

import argparse
from pathlib import Path

from quiz_engine.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_engine.core.errors import QuizEngineError
from quiz_engine.core.quiz_manager import QuizManager
from quiz_engine.server.api_server import start_api_server
from quiz_engine.utils.logging_config import configure_logging


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the quiz engine over HTTP.")
    parser.add_argument("quiz_files", nargs="*", type=Path, help="JSON quiz documents to load and publish")
    parser.add_argument("--owner", default="local-author", help="owner id for the loaded quizzes")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Initialize logging, load quiz files and run the API server until interrupted."""
    args = _parse_args(argv)
    logger = configure_logging()
    logger.info("Starting quiz engine…")

    quiz_manager = QuizManager()
    for quiz_file in args.quiz_files:
        try:
            stored = quiz_manager.import_quiz_file(args.owner, quiz_file, publish=True)
        except QuizEngineError as exc:
            logger.error("Skipping %s: %s", quiz_file, exc.message)
            for detail in exc.details:
                logger.error("  %s", detail)
            continue
        logger.info("Published quiz %s from %s", stored.quiz.id, quiz_file)

    server_thread = start_api_server(quiz_manager=quiz_manager, host=args.host, port=args.port)
    logger.info("API available at http://%s:%d/docs", args.host, args.port)
    try:
        server_thread.join()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        quiz_manager.shutdown()


if __name__ == "__main__":
    main()
