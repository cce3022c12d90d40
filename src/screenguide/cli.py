"""Command-line access to a file-backed screen guide store."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Mapping, Sequence, TextIO

from .logging_config import setup_logging
from .persistence import FilePersistenceAdapter, PersistenceError
from .serializer import DirectoryExportSink, ExportResult, ImportResult, Serializer
from .sessions import SessionTracker, summarize
from .settings import ScreenGuideSettings
from .store import DocumentStore


def main(
    argv: Sequence[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    output: TextIO | None = None,
) -> int:
    """CLI entry point. Returns the process exit code."""

    parser = _build_parser()
    args = parser.parse_args(argv)
    out = output if output is not None else sys.stdout

    try:
        settings = ScreenGuideSettings.from_env(environ)
        if args.storage_dir is not None:
            settings = ScreenGuideSettings(
                storage_dir=args.storage_dir,
                projects_key=settings.projects_key,
                sessions_key=settings.sessions_key,
                history_limit=settings.history_limit,
                log_level=settings.log_level,
            )
        setup_logging(settings.log_level)
        adapter = FilePersistenceAdapter(settings.storage_dir)
    except (ValueError, PersistenceError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.command in {"sessions", "clear-sessions"}:
        tracker = SessionTracker(adapter, storage_key=settings.sessions_key)
        tracker.load()
        return _run_session_command(args, tracker, out)

    store = DocumentStore(
        adapter,
        storage_key=settings.projects_key,
        history_limit=settings.history_limit,
    )
    store.load()
    with store:
        return _run_project_command(args, store, out)


def _run_project_command(
    args: argparse.Namespace, store: DocumentStore, out: TextIO
) -> int:
    if args.command == "list":
        if not store.projects:
            print("No projects.", file=out)
        for project in store.projects:
            print(
                f"{project.id}\t{project.name}\t{len(project.screens)} screens",
                file=out,
            )
        return 0

    if args.command == "create":
        try:
            project_id = store.create_project(args.name, args.description)
        except ValueError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
        print(project_id, file=out)
        return 0

    if args.command == "export":
        serializer = Serializer(store, DirectoryExportSink(args.output))
        if args.all:
            export_result = serializer.export_all()
        elif args.project_id:
            export_result = serializer.export_project(args.project_id)
        else:
            print("error: provide a project id or --all", file=sys.stderr)
            return 1
        return _report_export(export_result, args.output, out)

    if args.command == "import":
        try:
            document = Path(args.file).read_text(encoding="utf-8")
        except OSError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
        serializer = Serializer(store)
        if _is_collection(document):
            import_result = serializer.import_projects(document)
        else:
            import_result = serializer.import_project(document)
        return _report_import(import_result, out)

    raise AssertionError(f"unhandled command: {args.command}")


def _run_session_command(
    args: argparse.Namespace, tracker: SessionTracker, out: TextIO
) -> int:
    if args.command == "clear-sessions":
        tracker.clear_history()
        print("Session history cleared.", file=out)
        return 0

    records = tracker.get_history(args.project)
    for record in records:
        print(
            f"{record.end_time.isoformat()}\t{record.project_name}\t"
            f"{record.duration / 1000:.1f}s\t"
            f"completion {record.completion_rate:.0f}%\t"
            f"accuracy {record.accuracy:.0f}%",
            file=out,
        )

    summary = summarize(records)
    print(
        f"{summary.session_count} sessions, "
        f"average completion {summary.average_completion_rate:.0f}%, "
        f"average accuracy {summary.average_accuracy:.0f}%",
        file=out,
    )
    return 0


def _report_export(result: ExportResult, directory: Path, out: TextIO) -> int:
    if not result.success:
        print(f"error: {result.error}", file=sys.stderr)
        return 1
    print(f"Wrote {Path(directory) / str(result.filename)}", file=out)
    return 0


def _report_import(result: ImportResult, out: TextIO) -> int:
    if not result.success:
        print(f"error: {result.error}", file=sys.stderr)
        return 1
    for project_id in result.project_ids:
        print(f"Imported {project_id}", file=out)
    return 0


def _is_collection(document: str) -> bool:
    try:
        payload = json.loads(document)
    except ValueError:
        return False
    return isinstance(payload, dict) and "projects" in payload


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="screenguide",
        description="Manage guided screen simulation projects.",
    )
    parser.add_argument(
        "--storage-dir",
        type=Path,
        help="Directory holding the stored documents. Overrides SCREENGUIDE_STORAGE_DIR.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List stored projects.")

    create = subparsers.add_parser("create", help="Create an empty project.")
    create.add_argument("name", help="Project name.")
    create.add_argument("--description", help="Optional project description.")

    export = subparsers.add_parser("export", help="Export projects as JSON.")
    export.add_argument("project_id", nargs="?", help="Project to export.")
    export.add_argument(
        "--all", action="store_true", help="Export every project into one file."
    )
    export.add_argument(
        "--output",
        type=Path,
        default=Path.cwd(),
        help="Directory receiving the exported file. Defaults to the current directory.",
    )

    import_parser = subparsers.add_parser(
        "import", help="Import a project or a project collection."
    )
    import_parser.add_argument("file", type=Path, help="JSON document to import.")

    sessions = subparsers.add_parser("sessions", help="Show playback session history.")
    sessions.add_argument("--project", help="Only show sessions for this project id.")

    subparsers.add_parser("clear-sessions", help="Delete all session history.")
    return parser


if __name__ == "__main__":  # pragma: no cover - module executable
    raise SystemExit(main())
