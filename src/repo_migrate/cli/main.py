"""Main CLI entry point for the repository migration tool."""

import sys
import asyncio
from typing import Optional
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .. import __version__
from ..config.config import Config, ConfigurationError, create_template
from ..utils.logging import get_logger, setup_logging
from ..migration.engine import MigrationEngine
from ..migration.orchestrator import MigrationSummary, TaskStatus

console = Console()
log = get_logger('cli')

DEFAULT_CONFIG_PATHS = ['config.yaml', 'config.yml', '.repo-migrate.yaml']

STATUS_STYLES = {
    TaskStatus.COMPLETED: '[green]completed[/green]',
    TaskStatus.FAILED: '[red]failed[/red]',
    TaskStatus.SKIPPED: '[yellow]skipped[/yellow]',
}


@click.group()
@click.version_option(version=__version__, prog_name='repo-migrate')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Repository Migration Tool - Mirror git repositories into GitLab groups and projects."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    # Basic logging first; refined once the configuration is loaded
    setup_logging('DEBUG' if verbose else 'INFO')


@cli.command()
@click.option(
    '--output',
    '-o',
    default='config.yaml',
    help='Output configuration file path',
)
def init(output: str) -> None:
    """Initialize a new configuration file."""
    console.print(
        Panel.fit(
            '[bold green]Repository Migration Tool[/bold green]\n'
            'Initializing configuration...',
            border_style='green',
        )
    )

    try:
        create_template(output)
    except OSError as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)

    console.print(f'[green]✓[/green] Configuration template created at: {output}')
    console.print(
        f'[yellow]Please edit {output} with your repositories and credentials[/yellow]'
    )


@cli.command()
@click.option(
    '--dry-run',
    is_flag=True,
    help='Validate and report planned actions without making changes',
)
@click.pass_context
def migrate(ctx: click.Context, dry_run: bool) -> None:
    """Start the migration process."""
    console.print(
        Panel.fit(
            '[bold blue]Repository Migration Tool[/bold blue]\n'
            'Starting migration process...',
            border_style='blue',
        )
    )

    if dry_run:
        console.print(
            '[yellow]Running in dry-run mode - no changes will be made[/yellow]'
        )

    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)
        summary = asyncio.run(_run_migration(config, dry_run))
    except ConfigurationError as e:
        console.print(f'[red]✗[/red] Configuration error: {e}')
        sys.exit(2)
    except ConnectionError as e:
        console.print(f'[red]✗[/red] Migration failed: {e}')
        sys.exit(1)

    _display_migration_summary(summary)

    if summary.failed:
        console.print(f'[red]✗[/red] {summary.failed} of {summary.total} repositories failed')
        sys.exit(1)

    console.print('[green]✓[/green] Migration completed successfully')


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate configuration, destination paths and connectivity."""
    console.print(
        Panel.fit(
            '[bold cyan]Repository Migration Tool[/bold cyan]\nValidating configuration...',
            border_style='cyan',
        )
    )

    try:
        config = _load_config(ctx)
    except ConfigurationError as e:
        console.print(f'[red]✗[/red] Configuration error: {e}')
        sys.exit(2)

    engine = MigrationEngine(config)
    problems = 0
    for task, result in zip(engine.tasks(), engine.validate_paths()):
        if result.success:
            console.print(f'[green]✓[/green] {task.destination_path}')
        else:
            problems += 1
            console.print(f'[red]✗[/red] {task.destination_path}: {result.error.message}')

    try:
        asyncio.run(engine._test_connectivity())
        console.print('[green]✓[/green] Connectivity validation passed')
    except ConnectionError as e:
        problems += 1
        console.print(f'[red]✗[/red] {e}')
    finally:
        engine.client.close()

    if problems:
        sys.exit(1)
    console.print('[green]✓[/green] Configuration validation completed')


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the configuration and the repositories to migrate."""
    console.print(
        Panel.fit(
            '[bold magenta]Repository Migration Tool[/bold magenta]\nMigration Status',
            border_style='magenta',
        )
    )

    try:
        config = _load_config(ctx)
    except ConfigurationError as e:
        console.print(f'[red]✗[/red] Configuration error: {e}')
        sys.exit(2)

    table = Table(title='Migration Configuration')
    table.add_column('Setting', style='cyan')
    table.add_column('Value', style='green')

    table.add_row('Source User', config.source.username)
    table.add_row('Destination URL', config.destination.url)
    table.add_row('Repositories', str(len(config.repositories.source_urls)))
    table.add_row('Max Workers', str(config.migration.max_workers))
    table.add_row('Temp Dir', config.git.temp_dir or '(system default)')
    table.add_row('Verify Refs', '✓' if config.git.verify_refs else '✗')
    console.print(table)

    tasks = Table(title='Repositories')
    tasks.add_column('#', style='blue')
    tasks.add_column('Source', style='cyan')
    tasks.add_column('Destination', style='green')
    for index, task in enumerate(config.tasks(), start=1):
        tasks.add_row(str(index), task.source_url, task.destination_path)
    console.print(tasks)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = (ctx.obj or {}).get('config_path')

    if config_path:
        return Config.from_file(config_path)

    for path in DEFAULT_CONFIG_PATHS:
        if Path(path).exists():
            return Config.from_file(path)

    return Config.from_env()


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = (ctx.obj or {}).get('verbose', False)

    # Use config logging settings, but allow verbose flag to override level
    log_level = 'DEBUG' if verbose else config.logging.level
    setup_logging(
        level=log_level, log_file=config.logging.file, log_format=config.logging.format
    )


async def _run_migration(config: Config, dry_run: bool = False) -> MigrationSummary:
    """Run the migration with a spinner while it is in progress."""
    engine = MigrationEngine(config)
    total = len(config.repositories.source_urls)
    label = 'Dry run' if dry_run else 'Migration'

    with Progress(
        SpinnerColumn(),
        TextColumn('[progress.description]{task.description}'),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f'[blue]{label} of {total} repositories in progress...')
        if dry_run:
            return await engine.dry_run()
        return await engine.migrate()


def _display_migration_summary(summary: MigrationSummary) -> None:
    """Display per-repository results and totals."""
    table = Table(title='Migration Summary')
    table.add_column('Source', style='cyan')
    table.add_column('Destination', style='blue')
    table.add_column('Status')
    table.add_column('Branches', justify='right')
    table.add_column('Tags', justify='right')
    table.add_column('Error', style='red')

    for result in summary.results:
        table.add_row(
            result.task.source_url,
            result.task.destination_path,
            STATUS_STYLES.get(result.status, result.status.value),
            str(result.branches_pushed),
            str(result.tags_pushed),
            str(result.error) if result.error else '',
        )

    console.print(table)
    console.print(
        f'Total: {summary.total}  '
        f'[green]Successful: {summary.successful}[/green]  '
        f'[red]Failed: {summary.failed}[/red]  '
        f'[yellow]Skipped: {summary.skipped}[/yellow]'
    )

    if summary.completed_at:
        duration = summary.completed_at - summary.started_at
        console.print(f'\n[blue]Migration Duration:[/blue] {duration}')

    cleanup_problems = [r for r in summary.results if r.cleanup_error]
    if cleanup_problems:
        console.print(f'\n[yellow]Cleanup warnings ({len(cleanup_problems)}):[/yellow]')
        for result in cleanup_problems:
            console.print(f'  • {result.cleanup_error.message}')


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print('\n[red]Migration interrupted by user[/red]')
        log.warning('Migration interrupted by user')
        sys.exit(130)


if __name__ == '__main__':
    main()
