"""CLI entry point for formschema."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from formschema import __version__, codes, logger
from formschema.dependencies import ensure_cli_dependencies_for_pdf, ensure_package_dependencies
from formschema.exceptions import PackageError
from formschema.extractor import FieldExtractor, descriptors_to_json
from formschema.filler import FormFiller, describe_fill_failure
from formschema.generator import SchemaGenerator
from formschema.logging import configure_logging
from formschema.repository import JsonFormRepository
from formschema.schema_store import SchemaStore
from formschema.settings import get_settings
from formschema.sync import SchemaSynchronizer
from formschema.typing.models import Submission
from formschema.validator import SchemaValidator

if TYPE_CHECKING:
    from collections.abc import Callable

    from formschema.settings import Settings

_PDF_COMMANDS = frozenset({"extract", "generate", "analyze", "fill"})


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="formschema")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    extract_parser = subparsers.add_parser("extract", help="Dump the fillable fields of a PDF as JSON")
    extract_parser.add_argument("--input", required=True, type=Path, dest="input_path")
    extract_parser.add_argument("--output", type=Path, default=None, dest="output_path")

    generate_parser = subparsers.add_parser("generate", help="Generate schema documents from templates")
    generate_parser.add_argument("code", nargs="?", default=None)
    generate_parser.add_argument("--prefix", default=None)
    generate_parser.add_argument("--force", action="store_true")

    analyze_parser = subparsers.add_parser("analyze", help="Report template fillability for a code prefix")
    analyze_parser.add_argument("--prefix", required=True)

    validate_parser = subparsers.add_parser("validate", help="Validate schema documents")
    validate_parser.add_argument("--file", type=Path, default=None, dest="file_path")
    validate_parser.add_argument("--collisions", action="store_true")

    sync_parser = subparsers.add_parser("sync", help="Project schema documents into the form repository")
    sync_parser.add_argument("--file", type=Path, default=None, dest="file_path")

    fill_parser = subparsers.add_parser("fill", help="Fill a form template from submitted values")
    fill_parser.add_argument("--code", required=True)
    fill_parser.add_argument("--values", required=True, type=Path, dest="values_path")
    fill_parser.add_argument("--submission-id", default=None, dest="submission_id")
    fill_parser.add_argument("--flatten", action="store_true")

    return parser


def _emit(payload: Any) -> None:  # noqa: ANN401
    """Write a JSON payload to stdout."""
    sys.stdout.write(json.dumps(payload, indent=2, default=str) + "\n")


def _run_extract(args: argparse.Namespace, settings: Settings) -> int:
    descriptors = FieldExtractor.from_settings(settings).extract(args.input_path)
    rendered = descriptors_to_json(descriptors)
    if args.output_path is None:
        sys.stdout.write(rendered + "\n")
        return 0
    args.output_path.parent.mkdir(parents=True, exist_ok=True)
    args.output_path.write_text(rendered, encoding="utf-8")
    logger.info("Fields written", extra={"output_path": str(args.output_path), "fields": len(descriptors)})
    return 0


def _run_generate(args: argparse.Namespace, settings: Settings) -> int:
    if args.prefix:
        result = SchemaGenerator.generate_batch(args.prefix, force=args.force, settings=settings)
        _emit(result.model_dump(mode="json"))
        return 1 if result.failed else 0

    if not args.code:
        logger.error("Either a form code or --prefix is required")
        return 1

    generator = SchemaGenerator(args.code, settings=settings)
    path = generator.generate_to_file()
    _emit({"code": generator.form_code, "path": path, "errors": generator.errors, "warnings": generator.warnings})
    return 0 if path is not None else 1


def _run_analyze(args: argparse.Namespace, settings: Settings) -> int:
    report = SchemaGenerator.analyze(args.prefix, settings=settings)
    _emit([entry.model_dump(mode="json") for entry in report])
    return 0


def _run_validate(args: argparse.Namespace, settings: Settings) -> int:
    validator = SchemaValidator(settings=settings, categories=JsonFormRepository(settings.store_path).categories())
    if args.file_path is not None:
        result = validator.validate_file(args.file_path)
        _emit(result.model_dump(mode="json"))
        exit_code = 0 if result.valid else 1
    else:
        report = validator.validate_all()
        _emit(report.model_dump(mode="json"))
        exit_code = 1 if report.invalid else 0

    if args.collisions:
        _emit(
            {
                "collisions": [item.model_dump(mode="json") for item in validator.check_shared_key_collisions()],
                "type_conflicts": [
                    item.model_dump(mode="json") for item in validator.check_shared_key_type_conflicts()
                ],
            },
        )
    return exit_code


def _run_sync(args: argparse.Namespace, settings: Settings) -> int:
    synchronizer = SchemaSynchronizer(JsonFormRepository(settings.store_path), settings=settings)
    if args.file_path is not None:
        form = synchronizer.sync_file(args.file_path)
        _emit({"synced": [form.code], "failed": []})
        return 0
    outcome = synchronizer.sync_all()
    _emit(outcome)
    return 1 if outcome["failed"] else 0


def _run_fill(args: argparse.Namespace, settings: Settings) -> int:
    code = codes.normalize(args.code)
    repository = JsonFormRepository(settings.store_path)
    if not repository.list_fields(code):
        SchemaSynchronizer(repository, settings=settings, store=SchemaStore(root=settings.schemas_dir)).sync_code(code)

    form = repository.get_form(code)
    values = json.loads(args.values_path.read_text(encoding="utf-8"))
    submission = Submission(id=args.submission_id or uuid4().hex, form_code=code, data=values)
    filler = FormFiller(
        repository.list_fields(code),
        submission,
        pdf_filename=form.pdf_filename if form else None,
        settings=settings,
    )
    try:
        path = filler.generate_flattened() if args.flatten else filler.generate()
    except PackageError as exc:
        logger.error("Fill failed", extra={"code": code, "error": describe_fill_failure(exc)})
        return 1
    _emit({"code": code, "submission_id": submission.id, "path": path})
    return 0


_HANDLERS: dict[str, Callable[[argparse.Namespace, Settings], int]] = {
    "extract": _run_extract,
    "generate": _run_generate,
    "analyze": _run_analyze,
    "validate": _run_validate,
    "sync": _run_sync,
    "fill": _run_fill,
}


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        argv (list[str] | None): Arguments; defaults to `sys.argv[1:]`.

    Returns:
        int: Exit code (0 for success, 1 for error, 130 when interrupted).
    """
    settings = get_settings()
    configure_logging(settings=settings)

    parser = build_parser()
    args = parser.parse_args(argv)

    handler = _HANDLERS.get(args.command or "")
    if handler is None:
        parser.print_help()
        return 0

    try:
        ensure_package_dependencies()
        if args.command in _PDF_COMMANDS:
            ensure_cli_dependencies_for_pdf()
        return handler(args, settings)
    except PackageError:
        logger.exception("Command failed", extra={"command": args.command})
        return 1
    except KeyboardInterrupt:
        logger.info("Command aborted by user", extra={"command": args.command})
        return 130
    except Exception:
        logger.exception("Unexpected error", extra={"command": args.command})
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
