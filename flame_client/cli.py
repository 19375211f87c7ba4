"""Command-line interface for the Flame API client."""

import asyncio
import base64
import dataclasses
import json
from pathlib import Path

import click

from flame_client.api.client import FlameClient
from flame_client.api.config.loader import DEFAULT_CONFIG_NAME, ConfigLoader
from flame_client.api.exceptions import ConfigurationError
from flame_client.api.logging import configure_logging
from flame_client.api.models import ClientConfig
from flame_client.api.transports.fixture import FixtureTransport


def _to_jsonable(value):
  if dataclasses.is_dataclass(value):
    return {
      f.name: _to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)
    }
  if isinstance(value, (list, tuple)):
    return [_to_jsonable(item) for item in value]
  if isinstance(value, bytes):
    return base64.b64encode(value).decode("ascii")
  return value


def _build_client(settings) -> FlameClient:
  if settings["offline"]:
    return FlameClient(FixtureTransport())

  try:
    if settings["base_url"]:
      config = ClientConfig(base_url=settings["base_url"])
    else:
      config = ConfigLoader(settings["config_dir"]).load_config(settings["config_name"])
  except ConfigurationError as e:
    raise click.ClickException(str(e))

  return FlameClient.from_config(config)


def _run(ctx: click.Context, call) -> None:
  """Run one client call and print its payload as JSON."""
  client = _build_client(ctx.obj)

  async def execute():
    async with client:
      return await call(client)

  try:
    result = asyncio.run(execute())
  except ValueError as e:
    raise click.ClickException(str(e))

  if not result.ok:
    message = f"{result.fault.kind.value}: {result.fault.message}"
    if result.fault.retryable:
      message += " (the request may succeed if retried)"
    raise click.ClickException(message)

  click.echo(json.dumps(_to_jsonable(result.value), indent=2))


@click.group()
@click.option(
  "--config-dir",
  type=click.Path(file_okay=False, path_type=Path),
  default="./config",
  help="Directory containing client configuration files (default: ./config)",
)
@click.option(
  "--config",
  "config_name",
  default=DEFAULT_CONFIG_NAME,
  help=f"Configuration to use (filename without .yaml, defaults to '{DEFAULT_CONFIG_NAME}')",
)
@click.option("--base-url", help="Service URL; overrides the configuration file")
@click.option(
  "--offline", is_flag=True, help="Answer from built-in sample data instead of a server"
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
@click.pass_context
def main(ctx, config_dir, config_name, base_url, offline, verbose):
  """Browse and search projects served by a Flame service."""
  configure_logging(log_level="DEBUG" if verbose else "WARNING", structured=False)
  ctx.obj = {
    "config_dir": config_dir,
    "config_name": config_name,
    "base_url": base_url,
    "offline": offline,
  }


@main.command("check-login")
@click.pass_context
def check_login(ctx):
  """Check whether the current session is logged in."""
  _run(ctx, lambda client: client.check_login())


@main.command("projects")
@click.pass_context
def projects(ctx):
  """List available projects."""
  _run(ctx, lambda client: client.get_project_list())


@main.command("ls")
@click.argument("project")
@click.argument("path", default="/")
@click.pass_context
def list_directory(ctx, project, path):
  """List the contents of a project directory."""
  _run(ctx, lambda client: client.get_directory_contents(project, path))


@main.command("cat")
@click.argument("project")
@click.argument("path")
@click.pass_context
def read_file(ctx, project, path):
  """Print the contents of a project file."""
  _run(ctx, lambda client: client.get_file_contents(project, path))


@main.command("search")
@click.argument("query")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=10, show_default=True)
@click.pass_context
def search(ctx, query, limit):
  """Search project files for QUERY."""
  _run(ctx, lambda client: client.search(query, limit))


if __name__ == "__main__":
  main()
