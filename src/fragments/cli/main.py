"""Fragments CLI main entry point."""

import asyncio
import logging
import sys
from pathlib import Path

import click
import structlog

from fragments.config import LOG_LEVELS, settings
from fragments.domain import (
    DEFAULT_REGISTRY,
    ContentType,
    ConversionEngine,
    FragmentError,
    FragmentRepository,
    UnknownExtensionError,
    formats_for,
)
from fragments.infrastructure.storage import MemoryStorage

# Content written by the CLI belongs to this owner in the throwaway store
LOCAL_OWNER = "local"


def configure_logging(level: str, log_format: str) -> None:
    """Configure structlog for the CLI, writing to stderr."""
    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _resolve_type(value: str) -> ContentType:
    """Accept either a media type ("text/html") or an extension ("html")."""
    if "/" in value:
        return DEFAULT_REGISTRY.content_type(value)
    content_type = DEFAULT_REGISTRY.type_for_extension(value)
    if content_type is None:
        raise UnknownExtensionError(value)
    return content_type


def _source_type(path: Path, declared: str | None) -> ContentType:
    if declared:
        return _resolve_type(declared)
    return _resolve_type(path.suffix)


def _repository() -> FragmentRepository:
    return FragmentRepository(
        MemoryStorage(),
        registry=DEFAULT_REGISTRY,
        engine=ConversionEngine(DEFAULT_REGISTRY, image_quality=settings.image_quality),
        max_size=settings.max_fragment_size,
    )


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL",
)
@click.pass_context
def cli(ctx, log_level: str | None):
    """Fragments - typed content with validation and format conversion.

    Local tool for inspecting supported types and validating or converting
    files the same way stored fragments are.
    """
    ctx.ensure_object(dict)
    configure_logging((log_level or settings.log_level).upper(), settings.log_format)


@cli.command(name="types")
def list_types():
    """List supported content types."""
    for content_type in ContentType:
        extension = DEFAULT_REGISTRY.extension_for(content_type)
        targets = ", ".join(t for t in formats_for(content_type) if t != content_type)
        click.echo(f"{content_type:<20} {extension:<7} -> {targets or '(none)'}")


@cli.command(name="formats")
@click.argument("content_type")
def list_formats(content_type: str):
    """List the types CONTENT_TYPE can be exported as."""
    try:
        resolved = _resolve_type(content_type)
    except FragmentError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for target in formats_for(resolved):
        click.echo(target)


@cli.command(name="validate")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--type", "-t", "declared", help="Content type (default: from extension)")
def validate(path: Path, declared: str | None):
    """Check that PATH is well-formed for its content type."""
    try:
        content_type = _source_type(path, declared)
        repository = _repository()
        asyncio.run(
            repository.create(LOCAL_OWNER, content_type, path.read_bytes())
        )
    except FragmentError as e:
        click.echo(f"✗ {path}: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ {path} is valid {content_type}")


@cli.command(name="convert")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--to", "target", required=True, help="Target type or extension")
@click.option("--type", "-t", "declared", help="Source type (default: from extension)")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Write here instead of stdout",
)
def convert(path: Path, target: str, declared: str | None, output: Path | None):
    """Convert PATH to another type, the way a stored fragment is exported."""

    async def _convert() -> bytes:
        repository = _repository()
        fragment = await repository.create(LOCAL_OWNER, source_type, path.read_bytes())
        return await repository.export(fragment, target_type)

    try:
        source_type = _source_type(path, declared)
        target_type = _resolve_type(target)
        converted = asyncio.run(_convert())
    except FragmentError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output is None:
        click.echo(converted, nl=False)
    else:
        output.write_bytes(converted)
        click.echo(f"✓ Wrote {len(converted)} bytes of {target_type} to {output}")


if __name__ == "__main__":
    cli()
