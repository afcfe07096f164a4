"""Process bridge to the ``onevox`` binary.

Every call is a one-shot snapshot: the binary runs, prints, exits. Blocking
``subprocess.run`` calls are pushed to a worker thread with
``asyncio.to_thread`` so the app loop never stalls.
"""

from __future__ import annotations

import asyncio
import os
import re
import shutil
import subprocess
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, List, Optional, Sequence

from core.errors import CollaboratorError


@dataclass
class BridgeResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> 'BridgeResult':
        return cls(True, value, None)

    @classmethod
    def failure(cls, error: str, value: Any = None) -> 'BridgeResult':
        return cls(False, value, error)


@dataclass(frozen=True)
class AudioDevice:
    index: int
    name: str
    is_default: bool = False
    sample_rate: int = 48000
    channels: int = 1

    @property
    def label(self) -> str:
        return f"{self.name}{' (default)' if self.is_default else ''}"

    @property
    def description(self) -> str:
        return f'{self.sample_rate}Hz, {self.channels}ch'


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str
    size: str
    speed_factor: int
    memory_mb: int
    description: str
    downloaded: bool = False


@dataclass
class DaemonStatus:
    state: str
    model_loaded: bool = False
    is_dictating: bool = False
    raw: str = field(default='', repr=False)


MODEL_REGISTRY: List[ModelInfo] = [
    ModelInfo('ggml-tiny', 'Whisper Tiny Multilingual (GGML)', '~75 MB', 32, 200,
              'Fastest multilingual model. Supports 99 languages. Good for real-time dictation.'),
    ModelInfo('ggml-base', 'Whisper Base Multilingual (GGML)', '~142 MB', 16, 300,
              'Recommended multilingual model. Best balance of speed and accuracy for 99 languages.'),
    ModelInfo('ggml-small', 'Whisper Small Multilingual (GGML)', '~466 MB', 8, 600,
              'Higher accuracy multilingual model. Supports 99 languages.'),
    ModelInfo('ggml-medium', 'Whisper Medium Multilingual (GGML)', '~1.5 GB', 4, 800,
              'High accuracy multilingual model. Supports 99 languages. Slower inference.'),
    ModelInfo('ggml-large-v2', 'Whisper Large v2 (GGML)', '~2.9 GB', 2, 1000,
              'Best accuracy multilingual model. Very slow, recommended for offline processing.'),
    ModelInfo('ggml-large-v3', 'Whisper Large v3 (GGML)', '~2.9 GB', 2, 1000,
              'Latest large model with improved accuracy. Supports 99 languages.'),
    ModelInfo('ggml-large-v3-turbo', 'Whisper Large v3 Turbo (GGML)', '~1.6 GB', 4, 800,
              'Optimized large model with faster inference. Supports 99 languages.'),
    ModelInfo('ggml-tiny.en', 'Whisper Tiny English-only (GGML)', '~75 MB', 32, 200,
              'Fastest English-only model using whisper.cpp'),
    ModelInfo('ggml-base.en', 'Whisper Base English-only (GGML)', '~142 MB', 16, 300,
              'Recommended English-only model. Best balance of speed and accuracy.'),
    ModelInfo('ggml-small.en', 'Whisper Small English-only (GGML)', '~466 MB', 8, 600,
              'Higher accuracy English-only model, still suitable for dictation'),
    ModelInfo('ggml-medium.en', 'Whisper Medium English-only (GGML)', '~1.5 GB', 4, 800,
              'High accuracy English-only model. Slower inference.'),
    ModelInfo('parakeet-ctc-0.6b', 'Parakeet CTC 0.6B (ONNX)', '~653 MB', 20, 250,
              'NVIDIA Parakeet, fast multilingual ONNX model (requires the onnx feature)'),
]

_DEVICE_LINE = re.compile(r'^\s*(\d+)\.\s+(.+)$')
_DOWNLOADED_LINE = re.compile(r'✅\s+([^\s(]+)')


def parse_device_lines(out: str) -> List[AudioDevice]:
    """Parse ``devices list`` output: ``"  1. Name (default) - 48000Hz, 2 ch"``."""
    devices = []
    for line in out.splitlines():
        match = _DEVICE_LINE.match(line)
        if not match:
            continue
        rest = match.group(2)
        name = re.sub(r'\s*-\s*\d+Hz.*$', '', rest.replace('(default)', '')).strip()
        rate = re.search(r'(\d+)Hz', rest)
        channels = re.search(r'(\d+)\s*ch', rest)
        devices.append(AudioDevice(
            index=int(match.group(1)),
            name=name,
            is_default='(default)' in rest,
            sample_rate=int(rate.group(1)) if rate else 48000,
            channels=int(channels.group(1)) if channels else 1,
        ))
    return devices


def parse_downloaded_ids(out: str) -> List[str]:
    """Model ids from ``models downloaded`` lines such as ``✅ ggml-base.en (141.1 MB)``."""
    ids = []
    for line in out.splitlines():
        line = line.strip()
        if not line.startswith('✅'):
            continue
        match = _DOWNLOADED_LINE.search(line)
        if match:
            ids.append(match.group(1))
    return ids


def model_id_for_path(model_path: str) -> Optional[str]:
    """Map a configured ``model_path`` (``ggml-base.en.bin``) back to a registry id."""
    stem = os.path.basename(model_path or '')
    if stem.endswith('.bin'):
        stem = stem[:-4]
    for m in MODEL_REGISTRY:
        if m.id == stem:
            return m.id
    return None


def resolve_binary(override: Optional[str] = None) -> Optional[str]:
    """``ONEVOX_BIN`` (or an explicit override) first, then PATH."""
    explicit = override or os.environ.get('ONEVOX_BIN')
    if explicit:
        return explicit if os.path.exists(explicit) else None
    return shutil.which('onevox') or 'onevox'


Runner = Callable[[Sequence[str], float], subprocess.CompletedProcess]


def _default_runner(argv: Sequence[str], timeout: float) -> subprocess.CompletedProcess:
    return subprocess.run(list(argv), capture_output=True, text=True, timeout=timeout)


class ProcessBridge:
    """Async one-shot calls to the onevox CLI. Failures come back as ``BridgeResult.failure``."""

    def __init__(
        self,
        binary: Optional[str] = None,
        *,
        timeout: float = 30.0,
        download_timeout: float = 1800.0,
        runner: Optional[Runner] = None,
        logger=None,
    ) -> None:
        self.binary = binary
        self.timeout = timeout
        self.download_timeout = download_timeout
        self._runner = runner or _default_runner
        self.logger = logger

    # ----- public API ----------------------------------------------------
    async def list_audio_devices(self) -> BridgeResult:
        try:
            out = await self._call(['devices', 'list'])
        except CollaboratorError as e:
            return BridgeResult.failure(e.message, [])
        return BridgeResult.success(parse_device_lines(out))

    async def list_models(self) -> BridgeResult:
        """Registry models with ``downloaded`` filled in. A failed query still returns the registry."""
        try:
            out = await self._call(['models', 'downloaded'])
        except CollaboratorError as e:
            return BridgeResult.failure(e.message, list(MODEL_REGISTRY))
        ids = set(parse_downloaded_ids(out))
        return BridgeResult.success([replace(m, downloaded=m.id in ids) for m in MODEL_REGISTRY])

    async def download_model(self, model_id: str) -> BridgeResult:
        try:
            out = await self._call(['models', 'download', model_id], timeout=self.download_timeout)
        except CollaboratorError as e:
            return BridgeResult.failure(e.message)
        return BridgeResult.success(out)

    async def daemon_status(self) -> BridgeResult:
        try:
            out = await self._call(['status'])
        except CollaboratorError as e:
            return BridgeResult.failure(e.message)
        lowered = out.lower()
        return BridgeResult.success(DaemonStatus(
            state='Running' if 'running' in lowered and 'not running' not in lowered else 'Stopped',
            model_loaded='model loaded' in lowered,
            is_dictating='dictating' in lowered,
            raw=out,
        ))

    async def reload_config(self) -> BridgeResult:
        try:
            out = await self._call(['reload-config'])
        except CollaboratorError as e:
            if 'not running' in e.message.lower():
                return BridgeResult.failure('Daemon is not running', 'not_running')
            return BridgeResult.failure(e.message, 'failed')
        return BridgeResult.success(out or 'reloaded')

    # ----- internals -----------------------------------------------------
    async def _call(self, args: List[str], timeout: Optional[float] = None) -> str:
        return await asyncio.to_thread(self.run, args, timeout)

    def run(self, args: List[str], timeout: Optional[float] = None) -> str:
        """Run the binary synchronously; raises ``CollaboratorError`` on any failure."""
        binary = resolve_binary(self.binary)
        if not binary:
            raise CollaboratorError('bridge', 'onevox binary not found')
        argv = [binary] + list(args)
        limit = timeout if timeout is not None else self.timeout
        started = time.monotonic()
        try:
            result = self._runner(argv, limit)
        except subprocess.TimeoutExpired:
            self._log_event('bridge_timeout', {'command': argv, 'timeout': limit})
            raise CollaboratorError('bridge', f"onevox {' '.join(args)} timed out after {limit:g}s")
        except FileNotFoundError:
            raise CollaboratorError('bridge', f'onevox binary not found: {binary}')
        except PermissionError:
            raise CollaboratorError('bridge', f'Permission denied: {binary}')
        except OSError as e:
            raise CollaboratorError('bridge', f'Could not run onevox: {e}')
        duration_ms = int((time.monotonic() - started) * 1000)
        self._log_result(argv, result, duration_ms)
        if result.returncode != 0:
            detail = (result.stderr or '').strip() or f'onevox exited with code {result.returncode}'
            raise CollaboratorError('bridge', detail)
        return (result.stdout or '').strip()

    def _log_result(self, argv: List[str], result: subprocess.CompletedProcess, duration_ms: int) -> None:
        if self.logger is None:
            return
        try:
            self.logger.bridge_result(argv, result.returncode, result.stdout, result.stderr, duration_ms)
        except Exception:
            pass

    def _log_event(self, kind: str, data: dict) -> None:
        if self.logger is None:
            return
        try:
            self.logger.bridge_event(kind, data)
        except Exception:
            pass
