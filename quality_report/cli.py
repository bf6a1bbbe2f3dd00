"""CLI entry point — command definitions using Click.

Commands:
    init          Generate a template config file
    summary       Headline figures of a project
    items         Issues, vulnerabilities, hotspots and duplications of a project
    duplications  Duplication views of a project
    report        Full multi-project report document
"""

import json
import logging
import sys
from typing import Any

import click

from quality_report import __version__


# ---------------------------------------------------------------------------
# Helpers shared by all data commands
# ---------------------------------------------------------------------------

def _make_client(ctx: click.Context):
    """Load config and return a ready SonarClient. Exits on error."""
    from quality_report.client import SonarClient
    from quality_report.config import ConfigError, load

    obj = ctx.obj
    try:
        config = load(obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)

    if obj["verbose"]:
        click.echo(f"[verbose] Connecting to {config.url}", err=True)

    return config, SonarClient(
        url=config.url, token=config.token, extra_params=config.extra_params
    )


def _emit_json(data: Any, ctx: click.Context) -> None:
    """Write JSON to stdout or to the file specified by --output."""
    obj = ctx.obj
    indent = 2 if obj["pretty"] else None
    text = json.dumps(data, indent=indent, ensure_ascii=False)

    output_path: str | None = obj["output_path"]
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Report written to '{output_path}'", err=True)
    else:
        click.echo(text)


def _handle_client_errors(func):
    """Decorator that catches client and sorting errors and exits cleanly."""
    import functools

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from quality_report.aggregate import MissingSortKey
        from quality_report.client import (
            AuthenticationError,
            NetworkError,
            NotFoundError,
            QueryFailure,
        )
        from quality_report.config import ProjectNotFoundError

        try:
            return func(*args, **kwargs)
        except ProjectNotFoundError as exc:
            click.echo(f"Project error: {exc}", err=True)
            sys.exit(1)
        except AuthenticationError as exc:
            click.echo(f"Authentication error: {exc}", err=True)
            sys.exit(1)
        except NotFoundError as exc:
            click.echo(f"Not found: {exc}", err=True)
            sys.exit(1)
        except NetworkError as exc:
            click.echo(f"Network error: {exc}", err=True)
            sys.exit(1)
        except QueryFailure as exc:
            click.echo(f"SonarQube error: {exc}", err=True)
            sys.exit(1)
        except MissingSortKey as exc:
            click.echo(f"Sort error: {exc}", err=True)
            sys.exit(1)

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default="sonar-config.yaml", show_default=True,
              help="Path to the configuration file.")
@click.option("--output", "output_path", default=None,
              help="Write JSON output to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Pretty-print the JSON output.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="quality-report")
@click.pass_context
def cli(ctx: click.Context, config_path: str, output_path: str | None,
        pretty: bool, verbose: bool) -> None:
    """SonarQube quality report: findings grouped by file, exported as JSON."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["output_path"] = output_path
    ctx.obj["pretty"] = pretty
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="sonar-config.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template sonar-config.yaml file."""
    from quality_report.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your server URL, token and project key mappings.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# summary / items / duplications
# ---------------------------------------------------------------------------

@cli.command("summary")
@click.argument("project")
@click.pass_context
@_handle_client_errors
def summary_command(ctx: click.Context, project: str) -> None:
    """Headline measures and severity counts of PROJECT."""
    from quality_report.project import Project

    config, client = _make_client(ctx)
    project_key = config.resolve_project(project)
    _emit_json(Project(client, project_key).get_summary(), ctx)


@cli.command("items")
@click.argument("project")
@click.pass_context
@_handle_client_errors
def items_command(ctx: click.Context, project: str) -> None:
    """Issues, vulnerabilities, hotspots and duplications of PROJECT."""
    from quality_report.project import Project

    config, client = _make_client(ctx)
    project_key = config.resolve_project(project)

    if ctx.obj["verbose"]:
        click.echo(f"[verbose] Collecting findings for {project_key}", err=True)

    _emit_json(Project(client, project_key).get_items(), ctx)


@cli.command("duplications")
@click.argument("project")
@click.pass_context
@_handle_client_errors
def duplications_command(ctx: click.Context, project: str) -> None:
    """Files of PROJECT ranked by duplicated lines, files and blocks."""
    from quality_report.project import Project

    config, client = _make_client(ctx)
    project_key = config.resolve_project(project)
    _emit_json(Project(client, project_key).get_duplications(), ctx)


# ---------------------------------------------------------------------------
# report
# ---------------------------------------------------------------------------

@cli.command("report")
@click.argument("projects", nargs=-1)
@click.option("--file", "file_path", default="quality-report.json", show_default=True,
              help="Path where the report document will be written.")
@click.pass_context
@_handle_client_errors
def report_command(ctx: click.Context, projects: tuple[str, ...], file_path: str) -> None:
    """Report document for PROJECTS (every configured project by default)."""
    from quality_report.render import JsonReportDocument
    from quality_report.runner import ReportRunner

    config, client = _make_client(ctx)
    keys = [config.resolve_project(p) for p in projects] or config.project_keys()

    runner = ReportRunner(
        client,
        JsonReportDocument(pretty=ctx.obj["pretty"]),
        sleep_time=config.queue.sleep_time,
        max_tries=config.queue.max_tries,
    )
    if not runner.create_report(keys, file_path):
        click.echo("Report generation failed, see the log for details.", err=True)
        sys.exit(1)
    click.echo(f"Report written to '{file_path}'", err=True)
