import click

from config_manager import ConfigManager
from core.errors import InvariantGuard
from core.router import THEMES, AppState, Router
from data import HistoryStore, ProcessBridge, SettingsStore
from panels import default_tabs
from panels.help import help_lines
from utils.logging_utils import LoggingHandler


def build_router(config_manager: ConfigManager, logger: LoggingHandler, *, settings_path=None, history_path=None) -> Router:
    """Wire the stores, the bridge and the panels into a router; nothing is drawn yet."""
    guard = InvariantGuard(strict=bool(config_manager.get_option('TUI', 'strict', False)), logger=logger)

    settings_store = SettingsStore(settings_path, logger=logger)
    history_store = HistoryStore(history_path, logger=logger)
    bridge = ProcessBridge(
        config_manager.get_option('BRIDGE', 'binary', None) or None,
        timeout=float(config_manager.get_option('BRIDGE', 'timeout', 30)),
        download_timeout=float(config_manager.get_option('BRIDGE', 'download_timeout', 1800)),
        logger=logger,
    )

    settings = settings_store.load()
    history = history_store.load()
    ui = settings.get('ui')
    theme = ui.get('theme', 'dark') if isinstance(ui, dict) else 'dark'

    state = AppState(settings=settings, history=history, theme=theme if theme in THEMES else 'dark')
    start_tab = config_manager.get_option('TUI', 'start_tab', 0)
    if isinstance(start_tab, int):
        state.active_tab = start_tab

    router = Router(
        state,
        default_tabs(),
        settings_store=settings_store,
        history_store=history_store,
        bridge=bridge,
        guard=guard,
        logger=logger,
        export_dir=config_manager.get_option('TUI', 'export_dir', None) or None,
        help_lines=help_lines(),
    )

    # Load problems are shown, never fatal
    problem = settings_store.last_error or history_store.last_error
    if problem:
        router.set_status(f'✗ {problem}', 'error')

    logger.settings({
        'settings_path': settings_store.path,
        'history_path': history_store.path,
        'history_entries': len(history),
        'theme': state.theme,
        'strict': guard.strict,
    })
    return router


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.option('-c', '--conf', default=None, help='Path to a custom configuration file')
@click.option('--settings', 'settings_path', default=None, help='Path to the onevox config.toml')
@click.option('--history', 'history_path', default=None, help='Path to the onevox history.json')
@click.option('--strict/--no-strict', default=None, help='Raise on focus/stack invariant violations')
@click.option('--tab', type=click.Choice(['history', 'config']), default=None, help='Tab to open on start')
def cli(conf, settings_path, history_path, strict, tab):
    """
    Settings and history console for the onevox dictation daemon
    """
    config_manager = ConfigManager(conf)
    if strict is not None:
        config_manager.set_option('TUI', 'strict', strict)
    if tab is not None:
        config_manager.set_option('TUI', 'start_tab', 0 if tab == 'history' else 1)

    logger = LoggingHandler(config_manager)
    router = build_router(config_manager, logger, settings_path=settings_path, history_path=history_path)

    from tui.app import OnevoxApp
    app = OnevoxApp(
        router,
        status_clear_seconds=float(config_manager.get_option('TUI', 'status_clear_seconds', 3)),
        logger=logger,
    )
    app.run()


# take care of business
if __name__ == "__main__":
    cli()
