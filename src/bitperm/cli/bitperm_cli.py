#!/usr/bin/env python3
"""CLI for inspecting and combining 256-bit permission values."""

import sys

import click

from ..core.permission_set import bit_positions, check, combine, grant, revoke
from .cli_common import CLIContext, ExitCode, cli_command, handle_cli_error, handle_cli_success

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
EPILOG = """
Examples:
  bitperm grant 0 1                 # 0x...01
  bitperm grant 1 2 4 --base dec    # 7
  bitperm revoke 7 4 --base bin     # 0b11
  bitperm check 3 3                 # granted: true (exit 0)
  bitperm check 3 4                 # granted: false (exit 1)
  bitperm show 0x0f --catalog permissions.yaml
""".strip()


@click.group(
    context_settings=CONTEXT_SETTINGS,
    help="Check, grant and revoke permissions packed into a uint256 bitmask",
    epilog=EPILOG,
)
def cli() -> None:
    """Root command for bitperm."""


def _describe(ctx: CLIContext, value: int) -> dict:
    """Summarize ``value`` for output."""
    summary = {
        "value": ctx.render(value),
        "bits": bit_positions(value),
    }
    if ctx.catalog is not None:
        summary["permissions"] = ctx.catalog.names_in(value)
        summary["roles"] = ctx.catalog.roles_in(value)
        unnamed = ctx.catalog.unnamed_bits(value)
        if unnamed:
            summary["unnamed"] = ctx.render(unnamed)
    return summary


@cli.command("check")
@click.argument("permission")
@click.argument("required")
@cli_command
def check_command(ctx: CLIContext, permission: str, required: str) -> int:
    """Check whether PERMISSION holds every bit of REQUIRED."""
    cmd = "check"
    args = {"permission": permission, "required": required}

    try:
        ctx.prepare()
        held = ctx.resolve(permission)
        needed = ctx.resolve(required)

        granted = check(held, needed)
        result = {
            "granted": granted,
            "permission": ctx.render(held),
            "required": ctx.render(needed),
            "missing": ctx.render(revoke(needed, held)),
        }

        exit_code = ExitCode.SUCCESS if granted else ExitCode.CHECK_FAILED
        return handle_cli_success(ctx, result, cmd, args, exit_code=exit_code)

    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


@cli.command("grant")
@click.argument("permission")
@click.argument("to_add", nargs=-1, required=True)
@cli_command
def grant_command(ctx: CLIContext, permission: str, to_add: tuple[str, ...]) -> int:
    """Add every bit of TO_ADD to PERMISSION."""
    cmd = "grant"
    args = {"permission": permission, "to_add": list(to_add)}

    try:
        ctx.prepare()
        value = ctx.resolve(permission)
        added = combine(*(ctx.resolve(item) for item in to_add))

        return handle_cli_success(ctx, _describe(ctx, grant(value, added)), cmd, args)

    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


@cli.command("revoke")
@click.argument("permission")
@click.argument("to_remove", nargs=-1, required=True)
@cli_command
def revoke_command(ctx: CLIContext, permission: str, to_remove: tuple[str, ...]) -> int:
    """Clear every bit of TO_REMOVE from PERMISSION."""
    cmd = "revoke"
    args = {"permission": permission, "to_remove": list(to_remove)}

    try:
        ctx.prepare()
        value = ctx.resolve(permission)
        removed = combine(*(ctx.resolve(item) for item in to_remove))

        return handle_cli_success(ctx, _describe(ctx, revoke(value, removed)), cmd, args)

    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


@cli.command("show")
@click.argument("value")
@cli_command
def show_command(ctx: CLIContext, value: str) -> int:
    """Decode VALUE into bit positions and catalog names."""
    cmd = "show"
    args = {"value": value}

    try:
        ctx.prepare()
        return handle_cli_success(ctx, _describe(ctx, ctx.resolve(value)), cmd, args)

    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


@cli.command("catalog")
@cli_command
def catalog_command(ctx: CLIContext) -> int:
    """List the permissions and roles of the configured catalog."""
    cmd = "catalog"
    args: dict = {}

    try:
        ctx.prepare()
        catalog = ctx.require_catalog()

        if ctx.json_output:
            data = [
                {
                    "name": entry.name,
                    "value": ctx.render(entry.value),
                    "role": entry.is_role,
                    "description": entry.description,
                }
                for entry in catalog
            ]
        else:
            data = []
            for entry in catalog:
                kind = "role" if entry.is_role else f"bit {bit_positions(entry.value)[0]}"
                line = f"{entry.name} ({kind}) = {ctx.render(entry.value)}"
                if entry.description:
                    line += f"  # {entry.description}"
                data.append(line)

        return handle_cli_success(ctx, data, cmd, args, meta={"count": len(catalog)})

    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    if args is None:
        args = sys.argv[1:]

    try:
        return cli.main(args=list(args), standalone_mode=False) or 0
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.exceptions.Abort:
        return int(ExitCode.UNKNOWN_ERROR)
    except SystemExit as exc:
        return int(exc.code) if exc.code is not None else 0


def entrypoint() -> None:
    sys.exit(main())


if __name__ == "__main__":
    entrypoint()
