"""
opencode-diag command line interface.

Usage:
    opencode-diag run                 # one pass, report on stdout
    opencode-diag run --json          # machine-readable
    opencode-diag watch --interval 1m
    opencode-diag checks
    opencode-diag enable gpu
    opencode-diag interval 2m

Exit codes for `run`: 0 OK or UNKNOWN, 1 WARNING, 2 CRITICAL, 3 no pass.
"""

import json
import logging
import sys
import threading

import click
from rich.table import Table

from ..__version__ import get_full_version
from ..core.errors import ConfigurationError, SinkUnavailable
from ..core.models import DiagnosticPass, Status
from ..core.scheduler import RefreshInterval
from ..service import DiagnosticsService
from ..sources.clipboard import CommandClipboard
from ..utils import config as env_config
from ..utils.console import get_console, status_style
from ..utils.logging_config import DEBUG_FORMAT, SIMPLE_FORMAT, parse_level, setup_logging
from ..utils.paths import DiagPaths

logger = logging.getLogger(__name__)

EXIT_CODES = {
    Status.OK: 0,
    Status.UNKNOWN: 0,
    Status.WARNING: 1,
    Status.CRITICAL: 2,
}
EXIT_NO_PASS = 3


def exit_code_for(diagnostic_pass: DiagnosticPass) -> int:
    return EXIT_CODES[diagnostic_pass.overall_status]


def _default_service_factory(config_dir, probe_timeout):
    return DiagnosticsService.create(config_dir=config_dir, probe_timeout=probe_timeout)


def _service(obj) -> DiagnosticsService:
    """Build the service once per invocation."""
    if 'service' not in obj:
        factory = obj.get('service_factory', _default_service_factory)
        obj['service'] = factory(obj.get('config_dir'), env_config.probe_timeout())
    return obj['service']


def _console(service: DiagnosticsService):
    return get_console(theme=service.settings.theme)


def print_status_table(service: DiagnosticsService, diagnostic_pass: DiagnosticPass) -> None:
    table = Table(title=f"Pass #{diagnostic_pass.pass_id}", show_header=True, header_style="bold magenta")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Result")
    table.add_column("Latency", justify="right", style="dim")

    for result in diagnostic_pass.results:
        style = status_style(result.status)
        table.add_row(
            result.display_name,
            f"[{style}]{result.status.label}[/{style}]",
            result.headline,
            f"{result.latency_ms:.0f}ms",
        )

    console = _console(service)
    console.print(table)
    console.print()


# === Commands ===

@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--config-dir', type=click.Path(file_okay=False), default=None,
              help='Settings directory (default: ~/.config/opencode-diag)')
@click.version_option(get_full_version(), prog_name='opencode-diag')
@click.pass_context
def main(ctx, debug, config_dir):
    """Diagnose why your AI coding agent is slow or failing."""
    config_dir = config_dir or env_config.config_dir()
    level = logging.DEBUG if debug else parse_level(env_config.log_level(), logging.WARNING)
    log_file = env_config.log_file()
    if debug and not log_file:
        log_file = str(DiagPaths.get_log_file(config_dir))
    setup_logging(
        level=level,
        log_file=log_file,
        log_format=DEBUG_FORMAT if debug else SIMPLE_FORMAT,
    )

    ctx.ensure_object(dict)
    ctx.obj['config_dir'] = config_dir


@main.command()
@click.option('--json', 'as_json', is_flag=True, help='Print the pass as JSON')
@click.option('--no-log', is_flag=True, help='Leave the error log out of the report')
@click.option('--copy', 'copy_report', is_flag=True, help='Copy the report to the clipboard')
@click.pass_obj
def run(obj, as_json, no_log, copy_report):
    """Run every enabled check once."""
    service = _service(obj)
    diagnostic_pass = service.run_now()
    if diagnostic_pass is None:
        click.echo("Pass was cancelled before it completed", err=True)
        sys.exit(EXIT_NO_PASS)

    if as_json:
        data = diagnostic_pass.to_dict()
        if not no_log:
            data['error_log'] = [e.to_dict() for e in service.error_log_entries()]
        click.echo(json.dumps(data, indent=2))
    else:
        print_status_table(service, diagnostic_pass)
        click.echo(service.render_report(diagnostic_pass, include_error_log=not no_log), nl=False)

    if copy_report:
        try:
            service.copy_report(CommandClipboard(), diagnostic_pass)
            click.echo("Report copied to clipboard", err=True)
        except SinkUnavailable as e:
            click.echo(f"Could not copy report: {e}", err=True)

    sys.exit(exit_code_for(diagnostic_pass))


@main.command()
@click.option('--interval', default=None, help='30s, 1m, 2m or 5m (default: saved setting)')
@click.option('--count', type=click.IntRange(min=1), default=None, help='Stop after N passes')
@click.pass_obj
def watch(obj, interval, count):
    """Re-run the checks on an interval until interrupted."""
    service = _service(obj)
    try:
        chosen = RefreshInterval.parse(interval or service.settings.refresh_interval)
    except ConfigurationError as e:
        raise click.BadParameter(str(e), param_hint='--interval')
    if not chosen.enabled:
        raise click.BadParameter("watch needs an interval other than off", param_hint='--interval')

    done = threading.Event()
    seen = [0]

    def show(diagnostic_pass: DiagnosticPass) -> None:
        click.echo(service.render_report(diagnostic_pass), nl=False)
        click.echo(f"-- next pass in {chosen.label} (Ctrl+C to stop) --\n")
        seen[0] += 1
        if count is not None and seen[0] >= count:
            done.set()

    try:
        service.set_refresh_interval(chosen, persist=False)
    except ConfigurationError as e:
        raise click.BadParameter(str(e), param_hint='--interval')

    service.orchestrator.add_listener(show)
    service.run_now(block=False)
    service.start()
    try:
        while not done.wait(0.5):
            pass
    except KeyboardInterrupt:
        click.echo("Stopped", err=True)
    finally:
        service.stop(cancel_running=True)
        service.orchestrator.remove_listener(show)


@main.command()
@click.pass_obj
def checks(obj):
    """List the available checks."""
    service = _service(obj)
    table = Table(title="Checks", show_header=True, header_style="bold magenta")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Category", style="dim")
    table.add_column("Enabled")

    for definition in service.registry.definitions():
        enabled = "[ok]yes[/ok]" if definition.enabled else "[dim]no[/dim]"
        table.add_row(definition.id, definition.display_name, definition.category.value, enabled)

    _console(service).print(table)


def _toggle(obj, check_id: str, enabled: bool) -> None:
    service = _service(obj)
    try:
        service.set_check_enabled(check_id, enabled)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    click.echo(f"{'Enabled' if enabled else 'Disabled'} {check_id}")


@main.command()
@click.argument('check_id')
@click.pass_obj
def enable(obj, check_id):
    """Enable a check."""
    _toggle(obj, check_id, True)


@main.command()
@click.argument('check_id')
@click.pass_obj
def disable(obj, check_id):
    """Disable a check."""
    _toggle(obj, check_id, False)


@main.command()
@click.argument('value')
@click.pass_obj
def interval(obj, value):
    """Set the auto-refresh interval (off, 30s, 1m, 2m, 5m)."""
    service = _service(obj)
    try:
        chosen = service.set_refresh_interval(value)
    except ConfigurationError as e:
        raise click.BadParameter(str(e), param_hint='VALUE')
    if chosen.enabled:
        click.echo(f"Auto-refresh every {chosen.label}")
    else:
        click.echo("Auto-refresh off")


if __name__ == '__main__':
    main()
