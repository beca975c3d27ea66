"""
CLI commands for Sevenmote.

Main entry point: `sevenmote serve` for editor integration, or
`sevenmote compose` to try emote completion in the terminal.
"""

import sys

import click
from dotenv import load_dotenv

from sevenmote.autocomplete.cache import CacheStrategy
from sevenmote.autocomplete.editor import TextBuffer
from sevenmote.autocomplete.resolver import EmoteResolver, ResolveStatus
from sevenmote.autocomplete.service import AutocompleteService, EmoteService
from sevenmote.cli import ui
from sevenmote.config import Config
from sevenmote.utils.logger import logger


def _build_service(config: Config, load: bool = True) -> EmoteService:
    """Create the emote service and, optionally, load the active emote set."""
    service = EmoteService(config=config)
    service.image_cache.ensure_initialized()
    if load and service.settings.active_account_id():
        with ui.create_spinner("Loading emotes") as progress:
            progress.add_task("Loading emotes...", total=None)
            service.refresh(wait=True)
        result = service.last_result
        if result is not None and not result.ok:
            ui.print_warning(f"Could not load emotes ({result.error}); only :HUH: is available")
    return service


@click.group(invoke_without_command=True)
@click.option(
    "--log-level",
    default=None,
    help="Minimum level written to the log files (DEBUG, INFO, WARNING, ERROR)",
)
@click.pass_context
def main(ctx, log_level: str):
    """
    Sevenmote - 7TV emote autocomplete for text editors

    Usage:
        sevenmote serve                       # JSON-RPC service for an editor
        sevenmote compose                     # Interactive composer
        sevenmote fetch 71092938              # Show a channel's emotes
        sevenmote config --streamer forsen    # Pick a built-in streamer
    """
    load_dotenv()
    config = Config()
    if log_level:
        config.log_level = log_level
    logger.configure(level=config.log_level, log_dir=config.log_dir)
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.option("--account-id", default=None, help="Account ID to load (overrides saved settings)")
@click.pass_obj
def serve(config: Config, account_id: str):
    """Run the JSON-RPC autocomplete service on stdin/stdout."""
    if account_id:
        config.account_id = account_id
    service = AutocompleteService(EmoteService(config=config))
    service.emotes.start()
    service.run()


@main.command()
@click.argument("account_id")
@click.option("--limit", default=50, type=int, help="Maximum emotes to list")
@click.pass_obj
def fetch(config: Config, account_id: str, limit: int):
    """Resolve ACCOUNT_ID's emote set and list it."""
    resolver = EmoteResolver(
        api_base=config.api_base, provider=config.provider, timeout=config.timeout
    )
    with ui.create_spinner("Fetching") as progress:
        progress.add_task(f"Fetching emotes for {account_id}...", total=None)
        result = resolver.resolve(account_id)

    ui.show_emote_table(result.mapping, title=f"Emotes for {account_id}", limit=limit)

    if result.status == ResolveStatus.FAILED:
        ui.print_error(f"Failed to fetch emotes: {result.error}")
        sys.exit(1)
    ui.print_success(f"Emote set {result.emote_set_id}: {result.remote_count} emotes")


@main.command()
@click.pass_obj
def streamers(config: Config):
    """List the built-in streamers."""
    service = EmoteService(config=config)
    ui.show_streamers(selected=service.settings.settings.selected_streamer)


@main.command(name="config")
@click.option("--account-id", default=None, help="Set the account ID (digits only)")
@click.option("--streamer", default=None, help="Select a built-in streamer by key")
@click.option(
    "--cache-strategy",
    type=click.Choice([s.value for s in CacheStrategy]),
    default=None,
    help="How emote images are stored",
)
@click.option("--clear", is_flag=True, help="Clear account ID and streamer selection")
@click.pass_obj
def configure(config: Config, account_id: str, streamer: str, cache_strategy: str, clear: bool):
    """Show or change saved settings."""
    service = EmoteService(config=config)
    settings = service.settings

    if clear:
        settings.clear()
        ui.print_success("Selection cleared")

    if streamer:
        try:
            settings.select_streamer(streamer)
        except KeyError as e:
            ui.print_error(str(e.args[0]))
            sys.exit(2)
        ui.print_success(f"Selected {settings.source_label()}")

    if account_id is not None:
        _, warning = settings.set_account_id(account_id)
        if warning:
            ui.print_warning(warning)
        ui.print_success(f"Account ID set to {settings.settings.account_id or '(none)'}")

    if cache_strategy:
        service.set_cache_strategy(cache_strategy)
        ui.print_success(f"Cache strategy set to {cache_strategy}")

    ui.show_status({
        'source': settings.source_label(),
        'cache_strategy': settings.settings.cache_strategy,
        'emotes_loaded': service.store.has_loaded_emotes(),
        'settings_file': settings.path,
        'log_dir': logger.get_log_directory(),
    })


@main.command()
@click.argument("text")
@click.option("--load/--no-load", default=True, help="Load the active emote set first")
@click.pass_obj
def expand(config: Config, text: str, load: bool):
    """Expand every :NAME: code in TEXT into its emote fragment."""
    service = _build_service(config, load=load)
    click.echo(service.insertion_engine.expand_codes(text))


@main.command(name="insert-fallback")
@click.pass_obj
def insert_fallback(config: Config):
    """Print the fallback :HUH: fragment."""
    service = EmoteService(config=config)
    buffer = TextBuffer()
    service.insertion_engine.insert_fallback(buffer)
    click.echo(buffer.text)


@main.command()
@click.pass_obj
def compose(config: Config):
    """Interactive prompt with :NAME completion."""
    from prompt_toolkit import PromptSession
    from sevenmote.cli.emote_completer import EmoteCompleter

    service = _build_service(config)
    ui.show_welcome()
    ui.console.print(f"[dim]{len(service.store)} emotes from {service.settings.source_label()}[/dim]")

    session = PromptSession(
        completer=EmoteCompleter(service.suggestion_engine),
        complete_while_typing=True,
    )

    while True:
        try:
            line = session.prompt("> ")
        except KeyboardInterrupt:
            continue
        except EOFError:
            break
        click.echo(service.insertion_engine.expand_codes(line))


if __name__ == "__main__":
    main()
