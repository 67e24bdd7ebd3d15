"""Command-line interface for entity extraction and disambiguation."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import typer
from loguru import logger
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.table import Table

from src.extraction.factory import EntityExtractorFactory
from src.extraction.models import AttributeKey, Entity, EntityType
from src.pipeline.recognition_pipeline import build_default_pipeline
from src.utils.config import KNOWN_EXTRACTORS, Config, load_config
from src.utils.logging_setup import setup_logging

app = typer.Typer(help="Extract and disambiguate entities from text.")

console = Console(color_system=None, force_terminal=False, width=120)

_ENTITY_LIST = TypeAdapter(List[Entity])


def _load(config_path: Path, log_level: str) -> Config:
    found = config_path.exists()
    cfg = load_config(config_path) if found else Config()
    cfg.logging.level = log_level
    setup_logging(cfg.logging)
    if not found:
        logger.warning(f"Config file not found, using defaults: {config_path}")
    return cfg


def _read_text(text: Optional[str], file: Optional[Path]) -> str:
    if file is not None:
        if not file.exists():
            console.print(f"[red]Input file not found: {file}[/red]")
            raise typer.Exit(code=1)
        return file.read_text(encoding="utf-8")
    if text:
        return text
    console.print("[red]Provide text as an argument or with --file.[/red]")
    raise typer.Exit(code=1)


def _dump(entities: Sequence[Entity]) -> str:
    return json.dumps([entity.model_dump(mode="json") for entity in entities], indent=2)


def _render_entity_table(entities: Sequence[Entity], *, title: str) -> None:
    table = Table(title=f"{title} ({len(entities)})")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Conf")
    table.add_column("Span", justify="right")
    table.add_column("Source")
    table.add_column("Group", style="magenta")

    for entity in entities:
        span = f"{entity.start_position}-{entity.end_position}" if entity.has_span else "-"
        origin = (
            entity.attribute(AttributeKey.PATTERN_NAME)
            or entity.attribute(AttributeKey.RULE_NAME)
            or entity.attribute(AttributeKey.REFERENCE_TYPE)
            or entity.attribute(AttributeKey.SOURCE)
            or "-"
        )
        table.add_row(
            entity.name,
            entity.type.value,
            f"{entity.confidence_score:.2f}",
            span,
            str(origin),
            entity.disambiguation_id or "-",
        )

    console.print(table)


@app.command("extract")
def extract(
    text: Optional[str] = typer.Argument(None, help="Text to analyse."),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read text from a file."),
    source_id: Optional[str] = typer.Option(None, help="Source identifier for the text."),
    tenant_id: Optional[str] = typer.Option(None, help="Tenant id (default from config)."),
    extractor: List[str] = typer.Option([], help="Restrict to extractor (repeatable)."),
    disambiguate: bool = typer.Option(True, help="Group duplicate mentions."),
    coreference: bool = typer.Option(True, help="Link pronouns and generic references."),
    output: str = typer.Option("table", help="Output format: table|json."),
    log_level: str = typer.Option("WARNING", help="Log level for stderr output."),
    config: Path = typer.Option(Path("config/config.yaml"), help="Path to config file."),
) -> None:
    """Extract entities from text and print them."""
    cfg = _load(config, log_level)
    content = _read_text(text, file)

    unknown = sorted(set(extractor) - set(KNOWN_EXTRACTORS))
    if unknown:
        console.print(f"[red]Unknown extractor(s): {', '.join(unknown)}[/red]")
        raise typer.Exit(code=1)
    if extractor:
        cfg.extraction.extractors = sorted(set(cfg.extraction.extractors) | set(extractor))

    pipeline = build_default_pipeline(cfg)
    entities = pipeline.extract_entities(
        content,
        source_id or (str(file) if file else None),
        tenant_id or cfg.default_tenant_id,
        extractor_names=extractor or None,
        perform_disambiguation=disambiguate,
        resolve_coreferences=coreference,
    )

    if output == "json":
        typer.echo(_dump(entities))
        return
    if not entities:
        console.print("[yellow]No entities found.[/yellow]")
        return
    _render_entity_table(entities, title="Extracted Entities")
    summary = _summary(entities)
    console.print(
        f"{summary['total']} entities in {summary['groups']} group(s); "
        + ", ".join(f"{name}={count}" for name, count in sorted(summary["by_type"].items()))
    )


@app.command("disambiguate")
def disambiguate_file(
    entities_path: Path = typer.Argument(..., help="JSON file holding a list of entities."),
    text_file: Optional[Path] = typer.Option(
        None, help="Source text; enables coreference resolution."
    ),
    tenant_id: Optional[str] = typer.Option(None, help="Tenant id (default from config)."),
    log_level: str = typer.Option("WARNING", help="Log level for stderr output."),
    config: Path = typer.Option(Path("config/config.yaml"), help="Path to config file."),
) -> None:
    """Disambiguate previously extracted entities and print them as JSON."""
    cfg = _load(config, log_level)
    if not entities_path.exists():
        console.print(f"[red]Entities file not found: {entities_path}[/red]")
        raise typer.Exit(code=1)

    try:
        entities = _ENTITY_LIST.validate_json(entities_path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        console.print(f"[red]Invalid entities file: {exc.error_count()} error(s)[/red]")
        raise typer.Exit(code=1) from exc

    pipeline = build_default_pipeline(cfg)
    tenant = tenant_id or cfg.default_tenant_id
    result = pipeline.disambiguate_entities(entities, tenant)
    if text_file is not None and result:
        result = pipeline.resolve_coreferences(
            _read_text(None, text_file), result, tenant
        )

    typer.echo(_dump(result))


@app.command("types")
def types(
    config: Path = typer.Option(Path("config/config.yaml"), help="Path to config file."),
    log_level: str = typer.Option("WARNING", help="Log level for stderr output."),
) -> None:
    """List entity types and the extractors able to produce them."""
    cfg = _load(config, log_level)
    factory = EntityExtractorFactory.from_config(cfg.extraction)

    producers: Dict[EntityType, List[str]] = {entity_type: [] for entity_type in EntityType}
    for name in cfg.extraction.extractors:
        extractor = factory.create_extractor(name)
        for entity_type in extractor.get_supported_entity_types():
            producers[entity_type].append(name)

    table = Table(title="Entity Types")
    table.add_column("Type", style="cyan")
    table.add_column("Extractors")
    for entity_type, names in producers.items():
        table.add_row(entity_type.value, ", ".join(sorted(names)) or "-")
    console.print(table)


def _summary(entities: Sequence[Entity]) -> Dict[str, Any]:
    by_type: Dict[str, int] = {}
    for entity in entities:
        by_type[entity.type.value] = by_type.get(entity.type.value, 0) + 1
    return {
        "total": len(entities),
        "groups": len({e.disambiguation_id for e in entities if e.disambiguation_id}),
        "by_type": by_type,
    }


def run() -> None:
    """Entrypoint for Typer."""
    app()


if __name__ == "__main__":
    run()
