from __future__ import annotations

import os
import sys
import json

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.errors import InvariantGuard, InvariantViolation
from utils.logging_utils import LoggingHandler


class FakeConfig:
    def __init__(self, opts: dict):
        self._opts = opts

    def get_option(self, section: str, key: str, fallback=None):
        if section != 'LOG':
            return fallback
        return self._opts.get(key, fallback)


def _read_payloads(tmp_path):
    files = sorted(p for p in tmp_path.glob('*.log') if not p.is_symlink())
    assert files, 'No log files created'
    with files[0].open('r', encoding='utf-8') as f:
        return [json.loads(l) for l in f if l.strip()]


def test_json_logging_redaction_and_truncation(tmp_path):
    cfg = FakeConfig({
        'active': True,
        'dir': str(tmp_path),
        'per_run': True,
        'format': 'json',
        'redact': True,
        'redact_keys': 'token,password',
        'truncate_chars': 10,
        'log_settings': 'basic',
    })
    logger = LoggingHandler(cfg)

    assert logger.active() is True
    assert os.path.basename(logger.path).startswith('onevox-tui-')
    logger.settings({'token': 'shhhhh', 'note': 'x' * 50})

    payload = _read_payloads(tmp_path)[-1]
    data = payload.get('data') or {}
    assert payload['aspect'] == 'settings'
    assert data.get('token') == '***redacted***'
    assert data.get('note', '').endswith('…')
    assert len(data.get('note')) == 11  # 10 chars + ellipsis


def test_input_and_focus_are_off_by_default(tmp_path):
    cfg = FakeConfig({'active': True, 'dir': str(tmp_path), 'format': 'json'})
    logger = LoggingHandler(cfg)
    logger.input_detail('key', {'key': 'j'})
    logger.focus_event('focus', {'index': 1})
    logger.modal_event('open', {'kind': 'help'})

    events = [p['event'] for p in _read_payloads(tmp_path)]
    assert events == ['open']


def test_global_verbosity_enables_detail_aspects(tmp_path):
    cfg = FakeConfig({'active': True, 'dir': str(tmp_path), 'format': 'json', 'verbosity': 'detail'})
    logger = LoggingHandler(cfg)
    logger.input_detail('key', {'key': 'j', 'mode': 'content'})
    payload = _read_payloads(tmp_path)[-1]
    assert payload['component'] == 'core.router'
    assert payload['data']['key'] == 'j'


def test_text_format_writes_key_value_pairs(tmp_path):
    cfg = FakeConfig({'active': True, 'dir': str(tmp_path), 'format': 'text'})
    logger = LoggingHandler(cfg)
    logger.store_event('settings_saved', {'path': '/x/config.toml'}, component='data.settings')
    files = [p for p in tmp_path.glob('*.log') if not p.is_symlink()]
    text = files[0].read_text(encoding='utf-8')
    assert 'data.settings store:settings_saved path=/x/config.toml' in text


def test_inactive_without_config():
    logger = LoggingHandler(None)
    assert logger.active() is False
    # No file, no error
    logger.settings({'a': 1})
    logger.error('somewhere', RuntimeError('x'))


def test_guard_logs_violations_and_raises_only_when_strict(tmp_path):
    cfg = FakeConfig({'active': True, 'dir': str(tmp_path), 'format': 'json'})
    logger = LoggingHandler(cfg)

    lenient = InvariantGuard(strict=False, logger=logger)
    lenient.fail('core.registry', 'focus index 9 out of range', size=3)
    payload = _read_payloads(tmp_path)[-1]
    assert payload['event'] == 'invariant_violation'
    assert payload['severity'] == 'error'
    assert payload['data']['size'] == 3

    strict = InvariantGuard(strict=True, logger=logger)
    try:
        strict.fail('core.modal', 'double open')
    except InvariantViolation as e:
        assert e.where == 'core.modal'
    else:
        raise AssertionError('strict guard did not raise')
