"""Review a file or directory from the command line."""
import argparse
import asyncio
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
env_path = Path(__file__).parent.parent / ".env.local"
load_dotenv(env_path)

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.api.handlers.review_handler import ApplyPolicy, ReviewRunner
from src.models.errors import ReviewerError
from src.models.review import BatchReport, FixDecision, Review
from src.utils.logging import setup_observability

CHOICES = {
    "a": FixDecision.APPLY,
    "s": FixDecision.SKIP,
    "A": FixDecision.APPLY_ALL,
}


def print_review(file_path: str, review: Review) -> None:
    print("=" * 70)
    print(f"Review: {Path(file_path).name}")
    print("=" * 70)
    print(review.summary)
    if review.issues:
        print("\nIssues:")
        for issue in review.issues:
            print(f"  - {issue}")
    if review.suggestions:
        print("\nSuggestions:")
        for index, suggestion in enumerate(review.suggestions, 1):
            print(f"  {index}. {suggestion}")
    print()


def make_decider(shown: set[str]):
    """Build a decide callback that shows each fixable review and asks."""

    async def ask_decision(file_path: str, review: Review) -> FixDecision:
        print_review(file_path, review)
        shown.add(file_path)
        while True:
            answer = await asyncio.to_thread(
                input, "Apply fixes? [a]pply / [s]kip / apply [A]ll: "
            )
            answer = answer.strip()
            decision = CHOICES.get(answer) or CHOICES.get(answer.lower())
            if decision is not None:
                return decision
            print("Please answer a, s or A.")

    return ask_decision


def print_report(report: BatchReport) -> None:
    if report.total == 0:
        print("No files found to review.")
        return

    print("=" * 70)
    print(report.format_summary())
    print("=" * 70)
    for file_path in report.fixed:
        print(f"  fixed:   {file_path}")
    for skipped in report.skipped:
        print(f"  skipped: {skipped.file_path} ({skipped.reason})")


async def main(target: str, policy: ApplyPolicy) -> int:
    """Run one review; Ctrl-C cancels it at the next checkpoint."""
    runner = ReviewRunner()
    shown: set[str] = set()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, runner.cancel)

    try:
        report = await runner.review_path(
            target,
            policy,
            decide=make_decider(shown) if policy == ApplyPolicy.ASK else None,
        )
    except (ReviewerError, OSError) as e:
        print(f"Review failed: {e}", file=sys.stderr)
        return 1
    finally:
        loop.remove_signal_handler(signal.SIGINT)

    for file_path, review in report.reviews.items():
        if file_path not in shown:
            print_review(file_path, review)
    print_report(report)
    return 130 if report.cancelled else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Review source files with an AI model and optionally apply fixes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Review one file and decide per file whether to apply fixes
  python scripts/review_path.py src/app.js

  # Review a whole project without touching any file
  python scripts/review_path.py ./my-project --apply never
        """,
    )
    parser.add_argument("path", help="File or directory to review")
    parser.add_argument(
        "--apply",
        choices=[policy.value for policy in ApplyPolicy],
        default=ApplyPolicy.ASK.value,
        help="How to handle generated fixes (default: ask for each fixable file)",
    )

    args = parser.parse_args()
    setup_observability()
    sys.exit(asyncio.run(main(args.path, ApplyPolicy(args.apply))))
