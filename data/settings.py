"""Settings store for the daemon's ``config.toml``.

Paths:
  Windows: %APPDATA%/onevox/onevox/config/config.toml
  macOS:   ~/Library/Application Support/com.onevox.onevox/config.toml
  Linux:   $XDG_CONFIG_HOME/onevox/config.toml (~/.config/onevox)

``ONEVOX_CONFIG_DIR`` overrides the directory on every platform.
"""

from __future__ import annotations

import copy
import os
import sys
import tomllib
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import tomli_w

DEFAULT_SETTINGS: Dict[str, Dict[str, Any]] = {
    'daemon': {'auto_start': True, 'log_level': 'info'},
    'hotkey': {'trigger': 'Cmd+Shift+0', 'toggle': '', 'mode': 'push-to-talk'},
    'audio': {'device': 'default', 'sample_rate': 16000, 'chunk_duration_ms': 200},
    'vad': {
        'enabled': True,
        'backend': 'energy',
        'threshold': 0.02,
        'pre_roll_ms': 300,
        'post_roll_ms': 500,
        'min_speech_chunks': 2,
        'min_silence_chunks': 3,
        'adaptive': True,
    },
    'model': {
        'backend': 'whisper_cpp',
        'model_path': 'ggml-base.en.bin',
        'device': 'auto',
        'language': 'en',
        'task': 'transcribe',
        'preload': True,
    },
    'post_processing': {
        'auto_punctuation': True,
        'auto_capitalize': True,
        'remove_filler_words': False,
    },
    'injection': {'method': 'accessibility', 'paste_delay_ms': 50, 'focus_settle_ms': 80},
    'history': {'enabled': True, 'max_entries': 1000},
    'ui': {'recording_overlay': True, 'theme': 'dark'},
}


@dataclass
class StoreResult:
    ok: bool
    path: Optional[str] = None
    error: Optional[str] = None


def default_settings() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_SETTINGS)


def deep_merge(
    defaults: Dict[str, Any],
    overrides: Dict[str, Any],
    skipped: Optional[List[str]] = None,
    prefix: str = '',
) -> Dict[str, Any]:
    """Merge ``overrides`` over ``defaults`` table by table; neither input is mutated.

    A non-table override for a table default is ignored and its dotted key
    appended to ``skipped`` when given.
    """
    result = copy.deepcopy(defaults)
    for key, value in overrides.items():
        base = result.get(key)
        if isinstance(base, dict):
            if isinstance(value, dict):
                result[key] = deep_merge(base, value, skipped, f'{prefix}{key}.')
            elif skipped is not None:
                skipped.append(f'{prefix}{key}')
        else:
            result[key] = copy.deepcopy(value)
    return result


def config_dir() -> str:
    override = os.environ.get('ONEVOX_CONFIG_DIR')
    if override:
        return override
    home = os.path.expanduser('~')
    if sys.platform == 'win32':
        appdata = os.environ.get('APPDATA') or os.path.join(home, 'AppData', 'Roaming')
        return os.path.join(appdata, 'onevox', 'onevox', 'config')
    if sys.platform == 'darwin':
        return os.path.join(home, 'Library', 'Application Support', 'com.onevox.onevox')
    base = os.environ.get('XDG_CONFIG_HOME') or os.path.join(home, '.config')
    return os.path.join(base, 'onevox')


class SettingsStore:
    """Loads and saves the settings snapshot. The routing core never opens the file itself."""

    def __init__(self, path: Optional[str] = None, logger=None) -> None:
        self._path = path
        self.logger = logger
        self.last_error: Optional[str] = None

    @property
    def path(self) -> str:
        return self._path or os.path.join(config_dir(), 'config.toml')

    def load(self) -> Dict[str, Any]:
        self.last_error = None
        path = self.path
        if not os.path.exists(path):
            return default_settings()
        try:
            with open(path, 'rb') as f:
                raw = tomllib.load(f)
        except (OSError, ValueError) as e:
            # TOMLDecodeError and UnicodeDecodeError are both ValueErrors
            self.last_error = f'Could not read {path}: {e}'
            self._log('settings_load_failed', {'path': path, 'error': str(e)})
            return default_settings()
        skipped: List[str] = []
        merged = deep_merge(DEFAULT_SETTINGS, raw, skipped)
        if skipped:
            self.last_error = f'Ignored malformed tables in {path}: {", ".join(skipped)}'
            self._log('settings_tables_ignored', {'path': path, 'keys': skipped})
        self._log('settings_loaded', {'path': path, 'sections': sorted(raw.keys())})
        return merged

    def save(self, settings: Dict[str, Any]) -> StoreResult:
        path = self.path
        try:
            os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
            data = tomli_w.dumps(_drop_none(settings))
            tmp = path + '.tmp'
            with open(tmp, 'w', encoding='utf-8') as f:
                f.write(data)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            self.last_error = str(e)
            self._log('settings_save_failed', {'path': path, 'error': str(e)})
            return StoreResult(False, path, str(e))
        self._log('settings_saved', {'path': path})
        return StoreResult(True, path)

    def _log(self, kind: str, data: dict) -> None:
        if self.logger is None:
            return
        try:
            self.logger.store_event(kind, data, component='data.settings')
        except Exception:
            pass


def _drop_none(obj: Any) -> Any:
    # TOML has no null
    if isinstance(obj, dict):
        return {k: _drop_none(v) for k, v in obj.items() if v is not None}
    if isinstance(obj, list):
        return [_drop_none(v) for v in obj if v is not None]
    return obj
