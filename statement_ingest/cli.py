"""CLI for the ``statement_ingest`` package.

This module exposes callable command handlers (``cmd_parse``, ``cmd_ingest``)
and a Typer-based console interface. Environment variables (passwords, model,
``OPENAI_API_KEY``) are loaded from a local ``.env`` using ``python-dotenv``
before delegating to command logic. Business logic lives in
:mod:`statement_ingest.registry` and :mod:`statement_ingest.ingest`.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from pydantic import ValidationError

from .categories import Owner
from .config import load_settings
from .logging_setup import configure_logging
from .models import ClassificationMode


def _emit(payload: dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def _read(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
    except OSError as e:
        print(f"Error: cannot read {path}: {e}", file=sys.stderr)
    return None


def cmd_parse(path: Path, *, password: str | None = None) -> int:
    """Parse one statement and print the outcome as JSON.

    Exit status is 0 on success and 2 on a typed parse failure.
    """

    from .registry import parse_file

    buffer = _read(path)
    if buffer is None:
        return 1
    settings = load_settings()
    outcome = parse_file(buffer, path.name, password or settings.password_for(path.name))
    _emit(outcome.to_dict())
    return 0 if outcome.ok else 2


def cmd_ingest(
    path: Path,
    *,
    owner: Owner,
    mode: ClassificationMode = ClassificationMode.ALL,
    file_id: str | None = None,
    password: str | None = None,
    classify: bool = True,
    rules_path: Path | None = None,
) -> int:
    """Run the full pipeline on one file and print persistable records."""

    import os

    from .classifier import OpenAIClassifier
    from .ingest import ingest_file
    from .mapping_rules import load_rules

    buffer = _read(path)
    if buffer is None:
        return 1
    settings = load_settings()

    rules = ()
    if rules_path is not None:
        try:
            rules = load_rules(rules_path)
        except (OSError, ValidationError) as e:
            print(f"Error: invalid rules file {rules_path}: {e}", file=sys.stderr)
            return 1

    classifier = None
    if classify:
        if not os.getenv("OPENAI_API_KEY"):
            print("Error: OPENAI_API_KEY is not set in the environment.", file=sys.stderr)
            return 1
        classifier = OpenAIClassifier(
            model=settings.model, batch_size=settings.classify_batch_size
        )

    result = ingest_file(
        buffer,
        path.name,
        owner=owner,
        file_id=file_id,
        password=password or settings.password_for(path.name),
        classifier=classifier,
        rules=rules,
        mode=mode,
    )
    _emit(result.to_dict())
    return 0 if result.ok else 2


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Parse Korean card, bank and voucher statement workbooks into canonical "
        "transactions. Loads passwords and OPENAI_API_KEY from a local .env."
    ),
)


@app.command("parse")
def parse_cmd(
    path: Annotated[Path, typer.Argument(help="Statement workbook (.xls/.xlsx).")],
    password: str | None = typer.Option(
        None, help="Workbook password (falls back to STATEMENT_INGEST_PASSWORD_<PATTERN>)."
    ),
) -> None:
    """Parse a statement and print the ParseOutcome as JSON."""

    raise typer.Exit(cmd_parse(path, password=password))


@app.command("ingest")
def ingest_cmd(
    path: Annotated[Path, typer.Argument(help="Statement workbook (.xls/.xlsx).")],
    owner: Owner = typer.Option(..., help="Whose statement this is."),
    mode: ClassificationMode = typer.Option(
        ClassificationMode.ALL, help="Classify every row, or only rows still at the default."
    ),
    file_id: str | None = typer.Option(None, help="File reference stored as provenance."),
    password: str | None = typer.Option(None, help="Workbook password."),
    classify: bool = typer.Option(True, help="Call the classification model."),
    rules: Path | None = typer.Option(None, help="JSON file of merchant mapping rules."),
) -> None:
    """Parse, classify and print persistable transaction records as JSON."""

    raise typer.Exit(
        cmd_ingest(
            path,
            owner=owner,
            mode=mode,
            file_id=file_id,
            password=password,
            classify=classify,
            rules_path=rules,
        )
    )


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Package log level (default: STATEMENT_INGEST_LOG_LEVEL, then INFO)."
    ),
    debug: list[str] = typer.Option(
        [], "--debug", help="Log area at DEBUG, e.g. --debug parsers. Repeatable."
    ),
) -> None:
    """Load ``.env`` from the current directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level, area_levels={area: "DEBUG" for area in debug})


if __name__ == "__main__":  # pragma: no cover
    app()
