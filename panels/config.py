"""Config panel: flat settings sections backed by the daemon's config.toml.

Sections: Model, Key Bindings, Devices, Audio, VAD, Post Processing,
Injection, History. The device list arrives from the process bridge after the
panel is built and is spliced in at ``DEVICE_INDEX``; model download state is
refreshed the same way.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple

from core.events import KeyEvent
from core.fields import FocusableField, ListField, Option, RecorderField, StepperField, ToggleField
from core.inserter import Failed, insert_at
from core.modal import ModalKind
from core.scroll import Row
from data.bridge import MODEL_REGISTRY, ModelInfo, model_id_for_path
from panels.base import Panel

SAMPLE_RATES = ['8000', '11025', '16000', '22050', '44100', '48000', '96000']
CHUNK_DURATIONS = ['50', '100', '150', '200', '300', '400', '500', '1000']
THRESHOLDS = [f'{i / 100:.2f}' for i in range(101)]
PASTE_DELAYS = ['0', '10', '20', '30', '50', '75', '100', '150', '200', '300', '500']
MAX_ENTRIES = ['100', '200', '500', '1000', '2000', '5000', '10000']

MODES = [
    Option('push-to-talk', 'push-to-talk', 'Hold key to dictate'),
    Option('toggle', 'toggle', 'Press to start/stop'),
]
VAD_BACKENDS = [
    Option('energy', 'energy', 'Simple energy-based detection'),
    Option('silero', 'silero', 'Neural network-based (more accurate)'),
    Option('webrtc', 'webrtc', 'WebRTC VAD library'),
]
INJECTION_METHODS = [
    Option('accessibility', 'accessibility', 'OS accessibility API (recommended)'),
    Option('clipboard', 'clipboard', 'Copy to clipboard'),
    Option('paste', 'paste', 'Simulate paste'),
]

# Devices go after the mode list, ahead of the audio steppers
DEVICE_INDEX = 4
DEVICE_FIELD = 'device'

SECTIONS: List[Tuple[str, str, List[str]]] = [
    ('model', 'Model Selection', ['model']),
    ('hotkey', 'Key Bindings', ['trigger', 'toggle_key', 'mode']),
    ('devices', 'Device Selection', [DEVICE_FIELD]),
    ('audio', 'Audio Settings', ['sample_rate', 'chunk']),
    ('vad', 'VAD (Voice Activity Detection)', ['vad_enabled', 'vad_backend', 'vad_threshold', 'vad_adaptive']),
    ('post', 'Post Processing', ['pp_punct', 'pp_caps', 'pp_filler']),
    ('injection', 'Text Injection', ['inj_method', 'inj_delay']),
    ('history', 'History Settings', ['hist_enabled', 'hist_max']),
]


def _as_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _table(settings: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = settings.get(name)
    return value if isinstance(value, dict) else {}


def model_options(models: List[ModelInfo]) -> List[Option]:
    return [
        Option(
            m.id,
            f"{'✓' if m.downloaded else ' '} {m.name}  ({m.size})",
            f'{m.speed_factor}x speed  •  {m.memory_mb}MB RAM  •  {m.description}',
        )
        for m in models
    ]


class ConfigPanel(Panel):
    panel_id = 'config'
    title = 'Configuration'

    def __init__(self, router) -> None:
        super().__init__(router)
        self.devices_state = 'loading'
        self.devices_error: Optional[str] = None
        self.models: List[ModelInfo] = list(MODEL_REGISTRY)
        self.downloading: Optional[str] = None

    # ----- settings access -----------------------------------------------
    def _section(self, name: str) -> Dict[str, Any]:
        section = self.state.settings.get(name)
        if not isinstance(section, dict):
            section = self.state.settings[name] = {}
        return section

    def _setter(self, section: str, key: str, convert: Callable[[Any], Any] = lambda v: v):
        def apply(value: Any) -> None:
            self._section(section)[key] = convert(value)
            self.router.mark_dirty()
        return apply

    def _step_setter(self, section: str, key: str, convert: Callable[[Any], Any]):
        def apply(value: str, index: int) -> None:
            self._section(section)[key] = convert(value)
            self.router.mark_dirty()
        return apply

    def _option_setter(self, section: str, key: str, label: str = ''):
        def apply(index: int, option: Option) -> None:
            self._section(section)[key] = option.value
            self.router.mark_dirty()
            if label:
                self.status(f'{label} → {option.text.strip()}')
        return apply

    # ----- build ---------------------------------------------------------
    def mount(self) -> None:
        self.registry.fields = self.build_fields()
        self.request_devices()
        self.request_models()

    def build_fields(self) -> List[FocusableField]:
        s = self.state.settings
        hotkey = _table(s, 'hotkey')
        audio = _table(s, 'audio')
        vad = _table(s, 'vad')
        post = _table(s, 'post_processing')
        inj = _table(s, 'injection')
        hist = _table(s, 'history')

        model_id = model_id_for_path(str(_table(s, 'model').get('model_path', '')))
        threshold = vad.get('threshold', 0.02)
        try:
            threshold_value = f'{round(float(threshold) * 100) / 100:.2f}'
        except (TypeError, ValueError):
            threshold_value = None

        fields: List[FocusableField] = [
            ListField('model', 'Model', model_options(self.models), selected=model_id,
                      picker=True, open_picker=self.open_picker,
                      on_change=self._on_model_change),
            RecorderField('trigger', 'Push-to-talk trigger:', value=str(hotkey.get('trigger', '') or ''),
                          on_change=self._setter('hotkey', 'trigger')),
            RecorderField('toggle_key', 'Toggle hotkey:', value=str(hotkey.get('toggle', '') or ''),
                          on_change=self._setter('hotkey', 'toggle')),
            ListField('mode', 'Mode:', MODES, selected=_as_str(hotkey.get('mode')),
                      on_change=self._option_setter('hotkey', 'mode')),
            StepperField('sample_rate', 'Sample Rate (Hz):', SAMPLE_RATES, value=_as_str(audio.get('sample_rate')),
                         on_change=self._step_setter('audio', 'sample_rate', int)),
            StepperField('chunk', 'Chunk Duration (ms):', CHUNK_DURATIONS, value=_as_str(audio.get('chunk_duration_ms')),
                         on_change=self._step_setter('audio', 'chunk_duration_ms', int)),
            ToggleField('vad_enabled', 'Enabled', value=vad.get('enabled', True),
                        on_change=self._setter('vad', 'enabled')),
            ListField('vad_backend', 'Backend:', VAD_BACKENDS, selected=_as_str(vad.get('backend')),
                      picker=True, open_picker=self.open_picker,
                      on_change=self._option_setter('vad', 'backend')),
            StepperField('vad_threshold', 'Threshold:', THRESHOLDS, value=threshold_value,
                         on_change=self._step_setter('vad', 'threshold', float)),
            ToggleField('vad_adaptive', 'Adaptive threshold', value=vad.get('adaptive', True),
                        on_change=self._setter('vad', 'adaptive')),
            ToggleField('pp_punct', 'Auto-punctuation', value=post.get('auto_punctuation', True),
                        on_change=self._setter('post_processing', 'auto_punctuation')),
            ToggleField('pp_caps', 'Auto-capitalize', value=post.get('auto_capitalize', True),
                        on_change=self._setter('post_processing', 'auto_capitalize')),
            ToggleField('pp_filler', 'Remove filler words', value=post.get('remove_filler_words', False),
                        on_change=self._setter('post_processing', 'remove_filler_words')),
            ListField('inj_method', 'Method:', INJECTION_METHODS, selected=_as_str(inj.get('method')),
                      picker=True, open_picker=self.open_picker,
                      on_change=self._option_setter('injection', 'method')),
            StepperField('inj_delay', 'Paste Delay (ms):', PASTE_DELAYS, value=_as_str(inj.get('paste_delay_ms')),
                         on_change=self._step_setter('injection', 'paste_delay_ms', int)),
            ToggleField('hist_enabled', 'Record history', value=hist.get('enabled', True),
                        on_change=self._setter('history', 'enabled')),
            StepperField('hist_max', 'Max entries:', MAX_ENTRIES, value=_as_str(hist.get('max_entries')),
                         on_change=self._step_setter('history', 'max_entries', int)),
        ]
        for order, f in enumerate(fields):
            f.order = order
        return fields

    def rows(self) -> List[Row]:
        out: List[Row] = []
        fields = {f.field_id: f for f in self.registry}
        for i, (section, title, ids) in enumerate(SECTIONS):
            if i:
                out.append(Row(f'divider:{section}', 1, False))
            out.append(Row(f'section:{section}', 1, False, title))
            if section == 'devices' and DEVICE_FIELD not in fields:
                out.extend(self._device_placeholder_rows())
            for field_id in ids:
                f = fields.get(field_id)
                if f is not None:
                    out.append(Row(f.field_id, f.height))
            out.append(Row(f'gap:{section}', 1, False))
        return out

    def _device_placeholder_rows(self) -> List[Row]:
        if self.devices_state == 'loading':
            return [Row('devices:loading', 1, False, 'Loading devices...')]
        rows = []
        if self.devices_error:
            rows.append(Row('devices:error', 1, False, f'⚠ {self.devices_error}'))
            rows.append(Row('devices:hint', 1, False, 'Could not list devices. Check that `onevox` is installed'))
        else:
            rows.append(Row('devices:none', 1, False, 'No audio input devices found'))
        return rows

    # ----- async loads ---------------------------------------------------
    def request_devices(self) -> None:
        bridge = self.router.bridge
        if bridge is None:
            self.devices_state = 'failed'
            self.devices_error = 'Process bridge unavailable'
            return
        self.router.schedule(bridge.list_audio_devices(), self.on_devices, self.liveness)

    def on_devices(self, result) -> None:
        if isinstance(result, Failed):
            self.devices_state, self.devices_error = 'failed', str(result.error)
            self.router.changed()
            return
        devices = result.value or []
        self.devices_error = None if result.ok else result.error
        if not devices:
            self.devices_state = 'empty' if result.ok else 'failed'
            self.router.changed()
            return
        self.devices_state = 'ready'
        self.insert_device_field(devices)
        self.router.changed()

    def insert_device_field(self, devices) -> bool:
        current = str(self._section('audio').get('device', 'default'))
        selected = None
        for d in devices:
            if d.name == current or (current == 'default' and d.is_default):
                selected = d.name
                break
        options = [Option(d.name, d.label, d.description) for d in devices]
        f = ListField(DEVICE_FIELD, 'Input device', options, selected=selected,
                      picker=True, open_picker=self.open_picker,
                      on_change=self._option_setter('audio', 'device', 'Device'),
                      order=DEVICE_INDEX)
        inserted = insert_at(self.registry, DEVICE_INDEX, f, self.liveness)
        if inserted:
            self._log('field_inserted', {'field': DEVICE_FIELD, 'index': DEVICE_INDEX,
                                         'current_index': self.registry.current_index})
            current_field = self.registry.current
            if current_field is not None:
                self.scroll.sync(current_field.field_id)
        return inserted

    def request_models(self) -> None:
        bridge = self.router.bridge
        if bridge is None:
            return
        self.router.schedule(bridge.list_models(), self.on_models, self.liveness)

    def on_models(self, result) -> None:
        if isinstance(result, Failed) or not result.value:
            return
        self.models = list(result.value)
        f = self.registry.get('model')
        if isinstance(f, ListField):
            f.set_options(model_options(self.models))
        self.router.changed()

    def download_selected_model(self) -> bool:
        f = self.registry.get('model')
        bridge = self.router.bridge
        if not isinstance(f, ListField) or f.value is None or bridge is None:
            return False
        if self.downloading:
            self.status(f'Already downloading {self.downloading}', 'muted')
            return True
        model_id = f.value
        self.downloading = model_id
        self.status(f'⇣ Downloading {model_id}...')
        self.router.schedule(bridge.download_model(model_id),
                             lambda result: self._on_downloaded(model_id, result),
                             self.liveness)
        return True

    def _on_downloaded(self, model_id: str, result) -> None:
        self.downloading = None
        if isinstance(result, Failed) or not result.ok:
            error = result.error if not isinstance(result, Failed) else str(result.error)
            self.status(f'✗ Download failed: {error}', 'error')
        else:
            self.status(f'✓ Downloaded {model_id}')
            self.request_models()
        self.router.changed()

    def _on_model_change(self, index: int, option: Option) -> None:
        self._section('model')['model_path'] = option.value
        self.router.mark_dirty()
        self.status(f'Model → {option.value}')

    # ----- modals --------------------------------------------------------
    def open_picker(self, f: ListField) -> bool:
        session = self.router.modals.open(
            ModalKind.PICKER,
            title=f.label.rstrip(':'),
            lines=[o.hint for o in f.options],
            options=[o.text for o in f.options],
            draft_index=max(f.selected, 0),
            hint='↑/↓ j/k move  Enter select  Esc close',
            on_commit=lambda s: f.commit(s.draft_index),
        )
        return session is not None

    # ----- input ---------------------------------------------------------
    def handle_panel_key(self, event: KeyEvent, current: Optional[FocusableField]) -> bool:
        if current is not None and current.field_id == 'model' and event.is_('d'):
            return self.download_selected_model()
        return super().handle_panel_key(event, current)

    def save(self) -> bool:
        return self.router.save_settings()
