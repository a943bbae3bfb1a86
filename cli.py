#!/usr/bin/env python3
import argparse
import sys

from content_agent.models import GenerationOutcome
from content_agent.orchestrator import run_once


def _print_outcome(outcome: GenerationOutcome, label: str = "") -> None:
    prefix = f"[{label}] " if label else ""
    print(f"{prefix}{outcome.message}")
    if outcome.article_url:
        print(f"{prefix}URL: {outcome.article_url}")
    if outcome.preview:
        print()
        print(outcome.preview)


def _add_common(p: argparse.ArgumentParser, dry_run: bool = True) -> None:
    p.add_argument("--config", required=True, help="Path to YAML config")
    if dry_run:
        p.add_argument("--dry-run", dest="dry_run", action="store_true", help="Preview without creating drafts")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Content agent CLI")
    sub = parser.add_subparsers(dest="job", required=True)

    p = sub.add_parser("ask", help="Send one free-form request to the agent")
    _add_common(p, dry_run=False)
    p.add_argument("request", help="Request text, e.g. 'List all interviews'")

    p = sub.add_parser("daily", help="Hand new interviews and ideas to the agent")
    _add_common(p, dry_run=False)

    p = sub.add_parser("weekly", help="SEO topic, theme roundup and newest interview")
    _add_common(p)

    p = sub.add_parser("interview", help="Draft an article from one interview")
    _add_common(p)
    p.add_argument("document_id", help="Google Docs document ID")

    p = sub.add_parser("themes", help="Draft a theme roundup across interviews")
    _add_common(p)
    p.add_argument("--theme", help="Use this theme instead of discovering one")
    p.add_argument("--list", dest="list_only", action="store_true", help="Only list discovered themes")

    p = sub.add_parser("insights", help="Extract insights from an interview")
    _add_common(p)
    p.add_argument("document_id", help="Google Docs document ID")
    p.add_argument("--pick", type=int, help="Draft an article from insight number N (1-based)")

    p = sub.add_parser("seo", help="Draft an SEO article for a topic")
    _add_common(p)
    p.add_argument("topic", help="Article topic")
    p.add_argument("--keywords", help="Comma-separated target keywords")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    options = {k: v for k, v in vars(args).items() if k not in ("job", "config")}
    if args.job == "seo" and args.keywords:
        options["keywords"] = [k.strip() for k in args.keywords.split(",") if k.strip()]

    result = run_once(args.config, args.job, **options)

    if isinstance(result, GenerationOutcome):
        _print_outcome(result)
        return 0 if result.success else 1
    if args.job == "weekly":
        for name, outcome in result.items():
            if outcome is None:
                print(f"[{name}] skipped")
            else:
                _print_outcome(outcome, name)
        return 0
    if args.job == "daily":
        print(f"Processed interviews={result['interviews']} ideas={result['ideas']}")
        return 0
    if isinstance(result, list):
        if not result:
            print("Nothing found.")
        for i, item in enumerate(result, 1):
            print(f"{i}. {item}")
        return 0
    print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
