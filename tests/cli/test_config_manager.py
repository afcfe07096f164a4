from __future__ import annotations

import os
import sys
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from config_manager import ConfigManager


def test_packaged_defaults_are_read():
    cfg = ConfigManager()
    assert cfg.get_option('TUI', 'status_clear_seconds') == 3
    assert cfg.get_option('TUI', 'strict') is False
    assert cfg.get_option('BRIDGE', 'timeout') == 30
    assert cfg.get_option('LOG', 'format') == 'json'
    assert cfg.get_option('NOPE', 'missing', 'fallback') == 'fallback'


def test_custom_file_overrides_defaults(tmp_path):
    custom = tmp_path / 'custom.ini'
    custom.write_text('[TUI]\nstatus_clear_seconds = 0\n\n[LOG]\nactive = true\n', encoding='utf-8')
    cfg = ConfigManager(str(custom))
    assert cfg.get_option('TUI', 'status_clear_seconds') == 0
    assert cfg.get_option('LOG', 'active') is True


def test_missing_custom_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigManager(str(tmp_path / 'nope.ini'))


def test_runtime_override_wins():
    cfg = ConfigManager()
    cfg.set_option('TUI', 'strict', True)
    assert cfg.get_option('TUI', 'strict') is True
    assert cfg.get_all_options_from_section('TUI')['strict'] is True


def test_fix_values():
    assert ConfigManager.fix_values(' 42 ') == 42
    assert ConfigManager.fix_values('0.5') == 0.5
    assert ConfigManager.fix_values('yes') is True
    assert ConfigManager.fix_values('off') is False
    assert ConfigManager.fix_values('"quoted"') == 'quoted'
    assert ConfigManager.fix_values('[a, b]') == ['a', 'b']
    assert ConfigManager.fix_values('~/x') == os.path.expanduser('~/x')
