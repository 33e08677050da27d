"""Command-line interface for Tideways MCP Server."""

import asyncio
import logging
import sys
from typing import Optional, Tuple

import click

from . import __version__
from .config import AppConfig, ConfigurationError, load_config
from .logging_utils import setup_logging
from .utils.request_context import generate_request_id, set_request_id


def async_command(f):
    """Decorator to run async commands in the event loop."""

    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    wrapper.__name__ = f.__name__
    wrapper.__doc__ = f.__doc__
    return wrapper


def parse_arguments(pairs: Tuple[str, ...]) -> dict:
    """Parse ``key=value`` pairs into a tool argument dict.

    Values that look like integers, floats or booleans are converted;
    everything else stays a string.
    """
    arguments = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"Expected key=value, got: {pair}", param_hint="--arg")
        key, value = pair.split("=", 1)
        arguments[key.strip()] = _convert_value(value.strip())
    return arguments


def _convert_value(value: str):
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def _running_in_terminal() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def _load_app_config(ctx: click.Context) -> AppConfig:
    """Load configuration on first use and set up logging from it."""
    if ctx.obj.get("config") is not None:
        return ctx.obj["config"]

    try:
        app_config = load_config(config_file=ctx.obj.get("config_file"))
    except (ConfigurationError, FileNotFoundError) as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    setup_logging(ctx.obj.get("log_level") or app_config.log_level)
    ctx.obj["config"] = app_config
    return app_config


@click.group()
@click.option(
    "--config", "--config-file", "config_file", help="Path to configuration file (YAML, TOML, or JSON)"
)
@click.option(
    "--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR)"
)
@click.version_option(__version__, prog_name="tideways-mcp-server")
@click.pass_context
def cli(ctx, config_file: Optional[str], log_level: Optional[str]):
    """Tideways MCP Server - performance monitoring data for AI assistants."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["log_level"] = log_level
    ctx.obj["config"] = None

    request_id = generate_request_id()
    set_request_id(request_id)
    ctx.obj["request_id"] = request_id


@cli.command()
@click.option(
    "--force-mcp", is_flag=True, help="Force MCP server mode even when run in terminal"
)
@click.pass_context
def serve(ctx, force_mcp: bool):
    """Run the MCP server on stdio."""
    if _running_in_terminal() and not force_mcp:
        click.echo("This is an MCP (Model Context Protocol) server designed to be")
        click.echo("called by AI clients like Claude Desktop, not run manually.")
        click.echo()
        click.echo("To check your setup, try:")
        click.echo("  tideways-mcp-server health")
        click.echo()
        click.echo("To force MCP server mode anyway, use: --force-mcp")
        sys.exit(0)

    app_config = _load_app_config(ctx)
    logger = logging.getLogger(__name__)

    from .mcp_server import TidewaysMCPServer

    server = TidewaysMCPServer(app_config)
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.exception("Server error")
        click.echo(f"❌ Server error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
@async_command
async def health(ctx):
    """Check the connection to the Tideways API."""
    app_config = _load_app_config(ctx)

    from .api_client import TidewaysClient

    client = TidewaysClient(app_config.tideways)
    try:
        status = await client.health_check()
    finally:
        client.close()

    if status.healthy:
        click.echo(f"✅ {status.message}")
        return

    click.echo(f"❌ {status.message}", err=True)
    if status.details:
        click.echo(
            f"   Category: {status.details.get('category')}, "
            f"status code: {status.details.get('status_code')}",
            err=True,
        )
    sys.exit(1)


@cli.command()
def tools():
    """List the available tools."""
    from .mcp_server.config.tool_definitions import ALL_TOOL_SCHEMAS

    for name, schema in ALL_TOOL_SCHEMAS.items():
        click.echo(f"{name}")
        click.echo(f"   {schema['description']}")


@cli.command()
@click.argument("name")
@click.option(
    "--arg", "-a", "args", multiple=True, help="Tool argument as key=value (repeatable)"
)
@click.pass_context
@async_command
async def call(ctx, name: str, args: Tuple[str, ...]):
    """Run one tool and print its output."""
    arguments = parse_arguments(args)
    app_config = _load_app_config(ctx)

    from .api_client import TidewaysClient
    from .mcp_server.handlers.registry import ToolRegistry, UnknownToolError

    registry = ToolRegistry()
    registry.register_default_tools()
    client = TidewaysClient(app_config.tideways)
    try:
        output = await registry.execute_tool(name, arguments, client)
    except UnknownToolError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)
    finally:
        client.close()

    click.echo(output.text)
    if output.is_error:
        sys.exit(1)


def main():
    """Entry point for the tideways-mcp-server console script."""
    cli(obj={})


if __name__ == "__main__":
    main()
