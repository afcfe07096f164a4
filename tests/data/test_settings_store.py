from __future__ import annotations

import os
import sys
import tomllib

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from data.settings import DEFAULT_SETTINGS, SettingsStore, config_dir, deep_merge, default_settings


def test_missing_file_loads_defaults(tmp_path):
    store = SettingsStore(str(tmp_path / 'config.toml'))
    settings = store.load()
    assert settings == DEFAULT_SETTINGS
    assert settings is not DEFAULT_SETTINGS
    assert store.last_error is None


def test_partial_file_is_merged_over_defaults(tmp_path):
    path = tmp_path / 'config.toml'
    path.write_text('[hotkey]\ntrigger = "Ctrl+Space"\n\n[vad]\nthreshold = 0.05\n', encoding='utf-8')
    settings = SettingsStore(str(path)).load()
    assert settings['hotkey']['trigger'] == 'Ctrl+Space'
    assert settings['hotkey']['mode'] == 'push-to-talk'
    assert settings['vad']['threshold'] == 0.05
    assert settings['vad']['enabled'] is True


def test_broken_file_falls_back_and_reports(tmp_path):
    path = tmp_path / 'config.toml'
    path.write_text('[hotkey\ntrigger = ', encoding='utf-8')
    store = SettingsStore(str(path))
    assert store.load() == DEFAULT_SETTINGS
    assert store.last_error and 'Could not read' in store.last_error


def test_save_round_trips_and_drops_none(tmp_path):
    path = tmp_path / 'nested' / 'config.toml'
    store = SettingsStore(str(path))
    settings = default_settings()
    settings['audio']['device'] = None
    settings['ui']['theme'] = 'light'
    result = store.save(settings)
    assert result.ok
    assert not (tmp_path / 'nested' / 'config.toml.tmp').exists()
    with open(path, 'rb') as f:
        raw = tomllib.load(f)
    assert raw['ui']['theme'] == 'light'
    assert 'device' not in raw['audio']


def test_deep_merge_does_not_mutate_inputs():
    base = {'a': {'x': 1, 'y': 2}}
    over = {'a': {'y': 3}, 'b': 4}
    merged = deep_merge(base, over)
    assert merged == {'a': {'x': 1, 'y': 3}, 'b': 4}
    assert base == {'a': {'x': 1, 'y': 2}}


def test_config_dir_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv('ONEVOX_CONFIG_DIR', str(tmp_path))
    assert config_dir() == str(tmp_path)
    assert SettingsStore().path == os.path.join(str(tmp_path), 'config.toml')


def test_invalid_utf8_falls_back_and_reports(tmp_path):
    path = tmp_path / 'config.toml'
    path.write_bytes(b'theme = "\xff\xfe"\n')
    store = SettingsStore(str(path))
    assert store.load() == DEFAULT_SETTINGS
    assert 'Could not read' in store.last_error


def test_scalar_in_place_of_table_keeps_defaults(tmp_path):
    path = tmp_path / 'config.toml'
    path.write_text('hotkey = "ctrl"\nui = 3\n\n[vad]\nthreshold = 0.1\n', encoding='utf-8')
    store = SettingsStore(str(path))
    settings = store.load()
    assert settings['hotkey'] == DEFAULT_SETTINGS['hotkey']
    assert settings['ui']['theme'] == 'dark'
    assert settings['vad']['threshold'] == 0.1
    assert 'hotkey' in store.last_error and 'ui' in store.last_error


def test_deep_merge_reports_skipped_tables():
    skipped = []
    merged = deep_merge({'a': {'x': 1}, 'b': {'y': 2}}, {'a': 'oops', 'b': {'y': [1]}}, skipped)
    assert merged == {'a': {'x': 1}, 'b': {'y': [1]}}
    assert skipped == ['a']
