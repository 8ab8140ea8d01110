"""CLI entrypoint for the content pipeline, source management and cleanup."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional, Sequence

from devdose.config.logging_config import setup_logging
from devdose.config.settings import Settings, get_settings
from devdose.discovery.manual_sources import (
    SOURCE_TYPES,
    add_source,
    import_sources,
    load_source_file,
)
from devdose.pipeline.orchestrator import STAGES, Pipeline, summarize
from devdose.processing.llm_client import create_completion_client
from devdose.processing.reports import handle_report
from devdose.processing.service import ProcessingService
from devdose.storage.checkpoint_store import CheckpointStore
from devdose.storage.connection import close_all_connections
from devdose.storage.post_store import PostStore
from devdose.storage.schema import initialize_database


def build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="devdose",
        description="Turn open-source code snippets into micro-learning cards.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Run the pipeline from a stage to the end.")
    run.add_argument(
        "--from-stage",
        choices=STAGES,
        default="discovery",
        help="Resume from this stage using the previous stage's checkpoint.",
    )
    run.add_argument(
        "--with-docs",
        action="store_true",
        help="Also scrape documentation pages during extraction.",
    )

    for stage in STAGES:
        sub = commands.add_parser(stage, help=f"Run only the {stage} stage.")
        if stage == "extraction":
            sub.add_argument(
                "--with-docs",
                action="store_true",
                help="Also scrape documentation pages.",
            )

    verify = commands.add_parser("verify", help="Re-verify a published post and fix it.")
    verify.add_argument("post_id", type=int, help="Id of the post to verify.")

    run_source = commands.add_parser(
        "run-source", help="Run extraction to publishing for one discovered source."
    )
    run_source.add_argument("url", help="URL of a source in the discovery checkpoint.")
    run_source.add_argument(
        "--with-docs",
        action="store_true",
        help="Also scrape documentation pages.",
    )

    import_file = commands.add_parser(
        "import-sources", help="Add sources from a JSON file to the discovery checkpoint."
    )
    import_file.add_argument("file", type=Path, help="JSON array of source objects.")

    add = commands.add_parser("add-source", help="Add one source to the discovery checkpoint.")
    add.add_argument("--type", required=True, choices=SOURCE_TYPES, dest="source_type")
    add.add_argument("--name", required=True, help="Display name, e.g. facebook/react.")
    add.add_argument("--url", required=True, help="Repository or site URL.")
    add.add_argument("--tags", default="", help="Comma-separated tags.")
    add.add_argument("--priority", type=int, default=5, help="1 to 10.")
    add.add_argument("--stars", type=int, default=None)
    add.add_argument("--language", default=None)
    add.add_argument("--has-examples", action="store_true")

    clean = commands.add_parser("clean", help="Delete all posts and stage checkpoints.")
    clean.add_argument(
        "--keep-checkpoints",
        action="store_true",
        help="Only delete posts.",
    )
    return parser


def _format(values: dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in values.items())


async def _verify(post_id: int) -> dict[str, Any]:
    settings = get_settings()
    processor = ProcessingService(create_completion_client(settings.llm), settings.processing)
    outcome = await handle_report(post_id, PostStore(settings.db_path), processor)
    return {"post_id": post_id, "corrected": outcome.corrected, "title": repr(outcome.post.title)}


def _add_source(args: argparse.Namespace, settings: Settings) -> dict[str, Any]:
    entry = {
        "type": args.source_type,
        "name": args.name,
        "url": args.url,
        "tags": args.tags,
        "priority": args.priority,
        "stars": args.stars,
        "language": args.language,
        "has_examples": args.has_examples,
    }
    source = add_source(CheckpointStore(settings.checkpoints_dir), entry)
    return {"added": repr(source.name), "type": source.type, "priority": source.priority}


def _clean(settings: Settings, keep_checkpoints: bool) -> dict[str, Any]:
    deleted = PostStore(settings.db_path).delete_all()
    removed: list[str] = []
    if not keep_checkpoints:
        for directory in (settings.checkpoints_dir, settings.single_source_checkpoints_dir):
            removed.extend(CheckpointStore(directory).clear())
    return {"posts_deleted": deleted, "checkpoints_deleted": len(removed)}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run a command; pipeline commands print one summary line per stage."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging(log_dir=settings.logs_dir)
    initialize_database(settings.db_path)

    logger = logging.getLogger(__name__)

    try:
        if args.command == "verify":
            print(_format(asyncio.run(_verify(args.post_id))))
            return 0
        if args.command == "import-sources":
            summary = import_sources(
                CheckpointStore(settings.checkpoints_dir), load_source_file(args.file)
            )
            print(_format(asdict(summary)))
            return 0
        if args.command == "add-source":
            print(_format(_add_source(args, settings)))
            return 0
        if args.command == "clean":
            print(_format(_clean(settings, args.keep_checkpoints)))
            return 0

        pipeline = Pipeline(settings)
        include_docs = getattr(args, "with_docs", False)
        if args.command == "run":
            summaries = asyncio.run(pipeline.run(args.from_stage, include_docs=include_docs))
        elif args.command == "run-source":
            summaries = asyncio.run(pipeline.run_source(args.url, include_docs=include_docs))
        else:
            result = asyncio.run(pipeline.run_stage(args.command, include_docs=include_docs))
            summaries = {args.command: summarize(args.command, result)}
    except Exception as exc:
        logger.exception("DevDose command '%s' failed: %s", args.command, exc)
        return 1
    finally:
        close_all_connections()

    for stage, summary in summaries.items():
        print(f"stage={stage} {_format(summary)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
