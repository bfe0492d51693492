#!/usr/bin/env python3
"""Common CLI utilities: JSON output, stable exit codes and value resolution."""

import functools
import json
import traceback
import uuid
from enum import IntEnum
from pathlib import Path
from typing import Any

import click

from ..config.settings import OUTPUT_BASES, ConfigError, get_settings
from ..core.permission_set import PermissionRangeError, PermissionSet
from ..observability.loguru_config import configure_logging, get_logger
from ..sdk.permissions import PermissionCatalog, PermissionCatalogError, load_catalog

log = get_logger("cli")


class ExitCode(IntEnum):
    """Stable exit codes for CLI commands."""

    SUCCESS = 0  # Successful execution
    CHECK_FAILED = 1  # `check` evaluated to false
    VALIDATION_ERROR = 2  # Invalid value, expression, catalog or usage
    IO_ERROR = 5  # File could not be read
    CONFIG_ERROR = 6  # Configuration error
    UNKNOWN_ERROR = 7  # Unknown/unexpected error


def format_value(value: int, base: str) -> str:
    """Render ``value`` as hex (64 digits), decimal or binary."""
    if base == "hex":
        return PermissionSet(value).to_hex()
    if base == "bin":
        return PermissionSet(value).to_bin()
    if base == "dec":
        return str(value)
    raise ValueError(f"Unknown output base: {base}")


class CLIContext:
    """Context for CLI execution with JSON output, trace ID and catalog lookup."""

    def __init__(
        self,
        json_output: bool = False,
        trace_id: str | None = None,
        verbose: bool = False,
        base: str | None = None,
        catalog_path: Path | None = None,
    ):
        """Initialize CLI context.

        Args:
            json_output: Enable JSON output mode
            trace_id: Trace ID for correlation
            verbose: Verbose output
            base: Value rendering (hex, dec, bin); settings default when None
            catalog_path: YAML catalog; settings default when None
        """
        self.json_output = json_output
        self.trace_id = trace_id or f"trace-{uuid.uuid4().hex[:12]}"
        self.verbose = verbose
        self.base = base
        self.catalog_path = catalog_path
        self.catalog: PermissionCatalog | None = None

    def prepare(self) -> None:
        """Load settings, configure logging and load the catalog.

        Raises:
            ConfigError: If settings are invalid
            PermissionCatalogError: If the catalog is invalid
            OSError: If the catalog file cannot be read
        """
        settings = get_settings()
        configure_logging(level="DEBUG" if self.verbose else settings.log_level, log_file=settings.log_file)

        if self.base is None:
            self.base = settings.output_base
        if self.catalog_path is None:
            self.catalog_path = settings.catalog_path
        if self.catalog_path is not None:
            self.catalog = load_catalog(self.catalog_path)

    def resolve(self, expression: str) -> int:
        """Resolve a literal or ``name|name`` expression to a value."""
        catalog = self.catalog or PermissionCatalog()
        return catalog.parse(expression)

    def require_catalog(self) -> PermissionCatalog:
        if self.catalog is None:
            raise ConfigError("No permission catalog configured. Pass --catalog or set BITPERM_CATALOG.")
        return self.catalog

    def render(self, value: int) -> str:
        return format_value(value, self.base or "hex")

    def output(
        self, data: Any, status: str = "success", error: str | None = None, meta: dict[str, Any] | None = None
    ) -> None:
        """Output result in appropriate format.

        Args:
            data: Result data
            status: Status ("success", "error")
            error: Error message if status is error
            meta: Additional metadata
        """
        if self.json_output:
            # JSON mode: print only JSON, no logs
            result = {"status": status, "trace_id": self.trace_id}

            if error:
                result["error"] = error
            else:
                result["data"] = data

            if meta:
                result["meta"] = meta

            click.echo(json.dumps(result, ensure_ascii=False, indent=2))
        else:
            if status == "error":
                click.echo(f"error: {error}", err=True)
            elif isinstance(data, dict):
                for key, value in data.items():
                    if isinstance(value, list):
                        value = ", ".join(str(item) for item in value) or "-"
                    elif isinstance(value, bool):
                        value = str(value).lower()
                    click.echo(f"{key}: {value}")
            elif isinstance(data, list):
                for item in data:
                    click.echo(f"  - {item}")
            else:
                click.echo(data)


def cli_command(func):
    """Decorator to add common CLI options to commands.

    Adds:
    - --json: JSON output mode
    - --trace-id: Trace ID for correlation
    - --verbose: Verbose output
    - --base: Output base for values
    - --catalog: YAML permission catalog for names
    """

    @click.option("--json", "json_output", is_flag=True, help="Output as JSON (machine-readable)")
    @click.option("--trace-id", type=str, help="Trace ID for correlation")
    @click.option("--verbose", "-v", is_flag=True, help="Verbose output")
    @click.option("--base", type=click.Choice(OUTPUT_BASES), help="How to print values")
    @click.option(
        "--catalog",
        "catalog_path",
        type=click.Path(dir_okay=False, path_type=Path),
        help="YAML permission catalog used to resolve names",
    )
    @functools.wraps(func)
    def wrapper(
        json_output: bool,
        trace_id: str | None,
        verbose: bool,
        base: str | None,
        catalog_path: Path | None,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        ctx = CLIContext(
            json_output=json_output,
            trace_id=trace_id,
            verbose=verbose,
            base=base,
            catalog_path=catalog_path,
        )

        # Inject context as first argument
        return func(ctx, *args, **kwargs)

    return wrapper


def handle_cli_error(ctx: CLIContext, exc: Exception, cmd: str, args: dict[str, Any]) -> int:
    """Handle CLI error and return appropriate exit code.

    Args:
        ctx: CLI context
        exc: Exception to handle
        cmd: Command name
        args: Command arguments

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, ConfigError):
        exit_code = ExitCode.CONFIG_ERROR
    elif isinstance(exc, PermissionCatalogError | PermissionRangeError | TypeError):
        exit_code = ExitCode.VALIDATION_ERROR
    elif isinstance(exc, OSError):
        exit_code = ExitCode.IO_ERROR
    else:
        exit_code = ExitCode.UNKNOWN_ERROR

    log.warning(
        "Command failed",
        command=cmd,
        args=args,
        error_type=type(exc).__name__,
        exit_code=int(exit_code),
        trace_id=ctx.trace_id,
    )

    ctx.output(None, status="error", error=str(exc), meta={"exit_code": int(exit_code)})

    if ctx.verbose and not ctx.json_output:
        click.echo("\nTraceback:", err=True)
        click.echo(traceback.format_exc(), err=True)

    return int(exit_code)


def handle_cli_success(
    ctx: CLIContext,
    data: Any,
    cmd: str,
    args: dict[str, Any],
    meta: dict[str, Any] | None = None,
    exit_code: ExitCode = ExitCode.SUCCESS,
) -> int:
    """Output a result and return its exit code.

    Args:
        ctx: CLI context
        data: Result data
        cmd: Command name
        args: Command arguments
        meta: Additional metadata
        exit_code: Exit code for a completed command

    Returns:
        Exit code
    """
    log.debug("Command completed", command=cmd, args=args, exit_code=int(exit_code), trace_id=ctx.trace_id)

    ctx.output(data, status="success", meta=meta)

    return int(exit_code)
