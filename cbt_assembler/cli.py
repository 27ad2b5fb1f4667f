"""Command-line entry point for assembling one assessment.

Prints the assembled payload as JSON on stdout. Logs go to stderr.

Exit Codes:
    0 - Success (every subject fully supplied)
    1 - Partial failure (at least one subject is short)
    2 - Complete failure (no questions assembled)
    3 - Configuration or input error
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from cbt_assembler.config import Settings
from cbt_assembler.engine import AssessmentEngine, InvalidAssessmentRequest
from cbt_assembler.logging_config import setup_logging
from cbt_assembler.models import DifficultyTier, QuestionRequest

# Exit codes
EXIT_SUCCESS = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_COMPLETE_FAILURE = 2
EXIT_CONFIG_ERROR = 3


def parse_subject(value: str) -> QuestionRequest:
    """Parse a ``NAME:COUNT`` argument into a QuestionRequest."""
    name, sep, count = value.rpartition(":")
    if not sep:
        raise argparse.ArgumentTypeError(
            f"expected NAME:COUNT, got '{value}'"
        )
    try:
        return QuestionRequest(subject_name=name, count=int(count))
    except (ValueError, ValidationError) as e:
        raise argparse.ArgumentTypeError(f"invalid subject '{value}': {e}") from e


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Assemble a CBT question set from the bank and AI providers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Five Mathematics and four Biology questions
  cbt-assemble --subject Mathematics:5 --subject Biology:4

  # Hard questions with a 60 minute budget
  cbt-assemble --subject Physics:10 --difficulty Hard --total-time 60

  # Verbose logging
  cbt-assemble --subject Chemistry:3 --verbose
        """,
    )

    parser.add_argument(
        "--subject",
        dest="subjects",
        action="append",
        type=parse_subject,
        required=True,
        metavar="NAME:COUNT",
        help="Subject and number of questions (repeatable, kept in order)",
    )

    parser.add_argument(
        "--difficulty",
        choices=[d.value for d in DifficultyTier],
        default=DifficultyTier.MEDIUM.value,
        help="Difficulty for generated questions (default: Medium)",
    )

    parser.add_argument(
        "--total-time",
        type=int,
        default=None,
        help="Assessment time budget in minutes, echoed in the payload",
    )

    parser.add_argument(
        "--caller",
        default=None,
        help="Caller identity recorded in logs",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the assemble command.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = parse_arguments(argv)

    try:
        config = Settings()
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(log_level="DEBUG" if args.verbose else None, config=config)
    logger = logging.getLogger(__name__)

    try:
        engine = AssessmentEngine.from_settings(config)
        payload = asyncio.run(
            engine.assemble(
                args.subjects,
                difficulty=DifficultyTier(args.difficulty),
                total_time=args.total_time,
                caller_id=args.caller,
            )
        )
    except InvalidAssessmentRequest as e:
        logger.error(f"Invalid request: {e}")
        return EXIT_CONFIG_ERROR

    print(payload.model_dump_json(indent=2))

    if not payload.questions:
        return EXIT_COMPLETE_FAILURE
    if any(s.shortfall for s in payload.subjects):
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
