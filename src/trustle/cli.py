"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import sys

from trustle.config import Settings
from trustle.media import load_media
from trustle.models import AnalysisResults, PipelineState, Submission
from trustle.risk import assess_risk, evidence_tally
from trustle.workspace import Workspace

logger = logging.getLogger(__name__)


def _write(chunk: str) -> None:
    sys.stdout.write(chunk)
    sys.stdout.flush()


def _print_state(state: PipelineState, results: AnalysisResults) -> None:
    for stage, stage_state in state.stages.items():
        if stage_state.status.value in ("running", "error"):
            logger.info("[%s] %s: %s", stage_state.status.value, stage.value, stage_state.detail)


def _analyze(workspace: Workspace, args: argparse.Namespace) -> int:
    submission = Submission(
        url=args.url or "",
        text=args.text or "",
        image=load_media(args.image) if args.image else None,
        video=load_media(args.video) if args.video else None,
    )
    if submission.is_empty:
        raise SystemExit("Provide --url, --text, --image or --video")

    if submission.url:
        record = workspace.check_source(submission.url)
        if record is not None:
            print(
                f"Warning: {record.domain} was found unreliable on "
                f"{record.timestamp.date().isoformat()} (trust score {record.trust_score:.0f}/100)",
                file=sys.stderr,
            )

    run = workspace.analyze(submission, observer=_print_state, on_report_chunk=_write)
    print()
    if run is None or run.error:
        print(run.error if run else "Nothing to analyze", file=sys.stderr)
        return 1

    risk = assess_risk(run.results)
    print(f"\nRisk score: {risk.score}/100")
    for line in risk.breakdown:
        print(f"  - {line}")
    tally = evidence_tally(run.results)
    if tally:
        print("Evidence: " + ", ".join(f"{finding} {count}" for finding, count in tally.items()))
    print(f"\nSaved as {run.history_item.id}")
    return 0


def _history(workspace: Workspace, args: argparse.Namespace) -> int:
    if args.action == "clear":
        workspace.clear_history()
        print("History cleared")
        return 0
    for item in workspace.history.all():
        print(f"{item.id}  {item.url}")
    return 0


def _flagged(workspace: Workspace, args: argparse.Namespace) -> int:
    records = workspace.memory.all()
    if not records:
        print("No domains flagged yet")
    for record in records:
        print(
            f"{record.domain}  trust {record.trust_score:.0f}/100  "
            f"{record.timestamp.date().isoformat()}  {record.url}"
        )
    return 0


def _compare(workspace: Workspace, args: argparse.Namespace) -> int:
    workspace.toggle_compare_mode()
    for item_id in args.ids:
        workspace.toggle_compare_selection(item_id)
    brief = workspace.run_comparison(on_chunk=_write)
    print()
    if workspace.error:
        print(workspace.error, file=sys.stderr)
        return 1
    if brief is None:
        print("Select at least two analyses to compare", file=sys.stderr)
        return 1
    return 0


def _ask(workspace: Workspace, args: argparse.Namespace) -> int:
    if workspace.select_history(args.id) is None:
        print(f"No analysis with id {args.id}", file=sys.stderr)
        return 1
    if workspace.chat is None:
        print("That analysis has no report to ask about", file=sys.stderr)
        return 1
    workspace.send_chat(args.question, on_chunk=_write)
    print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trustle", description="Multi-agent content verification")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="verify a URL, text, image or video")
    analyze.add_argument("--url")
    analyze.add_argument("--text")
    analyze.add_argument("--image")
    analyze.add_argument("--video")
    analyze.set_defaults(handler=_analyze)

    history = sub.add_parser("history", help="list or clear past analyses")
    history.add_argument("action", choices=["list", "clear"], nargs="?", default="list")
    history.set_defaults(handler=_history)

    flagged = sub.add_parser("flagged", help="list domains remembered as unreliable")
    flagged.set_defaults(handler=_flagged)

    compare = sub.add_parser("compare", help="compare two or more past analyses")
    compare.add_argument("ids", nargs="+")
    compare.set_defaults(handler=_compare)

    ask = sub.add_parser("ask", help="ask a follow-up question about a past analysis")
    ask.add_argument("id")
    ask.add_argument("question")
    ask.set_defaults(handler=_ask)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    if not settings.gemini_api_key:
        raise SystemExit("GEMINI_API_KEY environment variable is required")
    workspace = Workspace.from_settings(settings)
    return args.handler(workspace, args)


if __name__ == "__main__":
    sys.exit(main())
