import copy
import os
import re
from typing import Dict, Optional, Tuple

import toml

from i3companion import history, keybinding
from i3companion import ws_history

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__),
                                   'default_config.toml')
XDG_CONFIG_HOME = os.environ.get('XDG_CONFIG_HOME',
                                 os.path.expandvars('$HOME/.config'))
CONFIG_PATH = os.path.join(XDG_CONFIG_HOME, 'i3-companion', 'config.toml')

EXIT_CONFIG_NOT_FOUND = 3
EXIT_CONFIG_PARSE = 5
EXIT_MISSING_PIPE = 7

SENDER_TYPES = ('pipe', 'shell')

# Tables that are taken as a whole from the user config when present, instead
# of being completed with the default entries.
_REPLACED_TABLES = frozenset(['bindings'])

_DURATION_RE = re.compile(r'^([0-9]+\.?[0-9]*)\s*(ns|us|ms|s|m|h)$')
_DURATION_UNIT_SECS = {
    'ns': 1e-9,
    'us': 1e-6,
    'ms': 1e-3,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}
_DISABLED_VALUES = ('off', 'none', 'disabled')


class ConfigError(Exception):
    status = EXIT_CONFIG_PARSE


class ConfigNotFoundError(ConfigError):
    status = EXIT_CONFIG_NOT_FOUND


class ConfigParseError(ConfigError):
    status = EXIT_CONFIG_PARSE


class MissingPipeError(ConfigError):
    status = EXIT_MISSING_PIPE


def parse_duration(value) -> float:
    """Returns the number of seconds in a duration like "10s" or "1.5ms".

    Plain numbers are interpreted as seconds.
    """
    if isinstance(value, bool):
        raise ConfigParseError(f'Invalid duration: {value!r}')
    if isinstance(value, (int, float)):
        if value < 0:
            raise ConfigParseError(f'Negative duration: {value!r}')
        return float(value)
    if not isinstance(value, str):
        raise ConfigParseError(f'Invalid duration: {value!r}')
    match = _DURATION_RE.match(value.strip())
    if not match:
        raise ConfigParseError(
            f'String "{value}" cannot be parsed to a duration, expected a '
            'duration with units, e.g. 10s, 1.5ms, 0.2 m')
    amount, unit = match.groups()
    return float(amount) * _DURATION_UNIT_SECS[unit]


def parse_optional_duration(value) -> Optional[float]:
    if value is None or value is False:
        return None
    if isinstance(value, str) and value.strip().lower() in _DISABLED_VALUES:
        return None
    return parse_duration(value)


def parse_binding(name: str, spec) -> keybinding.KeyBinding:
    if not isinstance(spec, dict):
        raise ConfigParseError(f'Binding "{name}" must be a table')
    unknown_keys = set(spec) - {'event_state_mask', 'symbol', 'input_type'}
    if unknown_keys:
        raise ConfigParseError(
            f'Unknown keys in binding "{name}": {sorted(unknown_keys)}')
    mask = spec.get('event_state_mask', [])
    if not isinstance(mask, list) or not all(
            isinstance(m, str) for m in mask):
        raise ConfigParseError(
            f'event_state_mask of binding "{name}" must be a list of strings')
    symbol = spec.get('symbol')
    if symbol is not None and not isinstance(symbol, str):
        raise ConfigParseError(f'symbol of binding "{name}" must be a string')
    input_type = spec.get('input_type', 'keyboard')
    if input_type not in keybinding.INPUT_TYPES:
        raise ConfigParseError(
            f'input_type of binding "{name}" must be one of '
            f'{keybinding.INPUT_TYPES}, got "{input_type}"')
    return keybinding.KeyBinding(mask, symbol, input_type)


# pylint: disable=too-few-public-methods
class WorkspaceHistoryConfig:

    # pylint: disable=too-many-arguments
    def __init__(self,
                 size: int = 20,
                 mode: history.HistoryMode = history.HistoryMode.SINGLE,
                 skip_visible: bool = True,
                 idle_timeout: Optional[float] = None,
                 notify_cmd: Optional[str] = 'notify-send',
                 bindings: Optional[Dict[ws_history.Action,
                                         keybinding.KeyBinding]] = None):
        self.size = size
        self.mode = mode
        self.skip_visible = skip_visible
        self.idle_timeout = idle_timeout
        self.notify_cmd = notify_cmd
        self.bindings = bindings or {}

    @classmethod
    def from_dict(cls, section: dict) -> 'WorkspaceHistoryConfig':
        size = section.get('size', 20)
        if isinstance(size, bool) or not isinstance(size, int) or size < 1:
            raise ConfigParseError(
                f'ws_history.size must be a positive integer, got {size!r}')
        try:
            mode = history.HistoryMode(section.get('mode', 'single'))
        except ValueError as e:
            raise ConfigParseError(
                f'ws_history.mode must be one of '
                f'{[m.value for m in history.HistoryMode]}') from e
        raw_bindings = section.get('bindings', {})
        if not isinstance(raw_bindings, dict):
            raise ConfigParseError('ws_history.bindings must be a table')
        skip_visible = section.get('skip_visible', True)
        if not isinstance(skip_visible, bool):
            raise ConfigParseError(
                f'ws_history.skip_visible must be a boolean, got '
                f'{skip_visible!r}')
        bindings = {}
        for name, spec in raw_bindings.items():
            try:
                action = ws_history.Action(name)
            except ValueError as e:
                raise ConfigParseError(
                    f'Unknown binding "{name}", valid bindings: '
                    f'{[a.value for a in ws_history.Action]}') from e
            bindings[action] = parse_binding(name, spec)
        return cls(size=size,
                   mode=mode,
                   skip_visible=skip_visible,
                   idle_timeout=parse_optional_duration(
                       section.get('idle_timeout')),
                   notify_cmd=section.get('notify_cmd', 'notify-send') or None,
                   bindings=bindings)

    def __str__(self):
        return str(self.__dict__)


# pylint: disable=too-few-public-methods
class LayoutTrackerConfig:

    def __init__(self,
                 pipe: str,
                 pipe_echo_fmt: str = 'hook:module/i3_layout{}'):
        self.pipe = pipe
        self.pipe_echo_fmt = pipe_echo_fmt

    def __str__(self):
        return str(self.__dict__)


# pylint: disable=too-few-public-methods
class OutputTrackerConfig:

    def __init__(self, pipe: str, ipc_str: str = 'hook:module/date1'):
        self.pipe = pipe
        self.ipc_str = ipc_str

    def __str__(self):
        return str(self.__dict__)


# pylint: disable=too-few-public-methods
class Config:
    """Fully resolved configuration, built once at startup."""

    # pylint: disable=too-many-arguments
    def __init__(self,
                 connection_timeout: float = 3.0,
                 reconnect_interval: float = 0.003,
                 ws_history_config: Optional[WorkspaceHistoryConfig] = None,
                 layout_tracker: Optional[LayoutTrackerConfig] = None,
                 output_tracker: Optional[OutputTrackerConfig] = None,
                 pipes: Optional[Dict[str, Tuple[str, str]]] = None):
        self.connection_timeout = connection_timeout
        self.reconnect_interval = reconnect_interval
        self.ws_history = ws_history_config
        self.layout_tracker = layout_tracker
        self.output_tracker = output_tracker
        self.pipes = pipes or {}

    @classmethod
    def from_dict(cls, raw: dict) -> 'Config':
        pipes = _parse_pipes(raw.get('pipes', {}))
        ws_history_config = None
        if 'ws_history' in raw:
            ws_history_config = WorkspaceHistoryConfig.from_dict(
                _get_table(raw, 'ws_history'))
        layout_tracker = None
        if 'layout_tracker' in raw:
            section = _get_table(raw, 'layout_tracker')
            layout_tracker = LayoutTrackerConfig(
                _get_pipe_name('Layout tracker', section, pipes),
                section.get('pipe_echo_fmt', 'hook:module/i3_layout{}'))
        output_tracker = None
        if 'output_tracker' in raw:
            section = _get_table(raw, 'output_tracker')
            output_tracker = OutputTrackerConfig(
                _get_pipe_name('Output tracker', section, pipes),
                section.get('ipc_str', 'hook:module/date1'))
        return cls(connection_timeout=parse_duration(
            raw.get('connection_timeout', 3.0)),
                   reconnect_interval=parse_duration(
                       raw.get('reconnect_interval', 0.003)),
                   ws_history_config=ws_history_config,
                   layout_tracker=layout_tracker,
                   output_tracker=output_tracker,
                   pipes=pipes)

    def __str__(self):
        return str({
            k: str(v) if v is not None else None
            for k, v in self.__dict__.items()
        })


def _get_table(raw: dict, key: str) -> dict:
    section = raw[key]
    if not isinstance(section, dict):
        raise ConfigParseError(f'"{key}" must be a table, got {section!r}')
    return section


def _parse_pipes(raw_pipes) -> Dict[str, Tuple[str, str]]:
    if not isinstance(raw_pipes, dict):
        raise ConfigParseError('pipes must be a table')
    pipes = {}
    for name, spec in raw_pipes.items():
        if (not isinstance(spec, list) or len(spec) != 2 or
                spec[0] not in SENDER_TYPES or not isinstance(spec[1], str)):
            raise ConfigParseError(
                f'Pipe "{name}" must be a pair [type, target] with type one '
                f'of {SENDER_TYPES}')
        pipes[name] = (spec[0], spec[1])
    return pipes


def _get_pipe_name(feature: str, section: dict,
                   pipes: Dict[str, Tuple[str, str]]) -> str:
    name = section.get('pipe')
    if name is None or name not in pipes:
        raise MissingPipeError(
            f'{feature} requires a pipe, got {name!r}, defined pipes: '
            f'{sorted(pipes)}')
    return name


def merge_config(merge_from: dict, merge_into: dict) -> None:
    """Fills the keys missing in `merge_into` from `merge_from`, recursively."""
    for key, value in merge_from.items():
        if isinstance(value, dict):
            if key in _REPLACED_TABLES and key in merge_into:
                continue
            merge_into.setdefault(key, {})
            if not isinstance(merge_into[key], dict):
                raise ConfigParseError(
                    f'"{key}" must be a table, got {merge_into[key]!r}')
            merge_config(value, merge_into[key])
        elif key not in merge_into:
            merge_into[key] = copy.deepcopy(value)


def get_config_with_defaults(path=CONFIG_PATH, fail_if_missing=False) -> dict:
    default_config = toml.load(DEFAULT_CONFIG_PATH)
    if not os.path.exists(path):
        if fail_if_missing:
            raise ConfigNotFoundError(f'No config file found in {path}')
        return default_config
    try:
        config = toml.load(path)
    except toml.TomlDecodeError as e:
        raise ConfigParseError(f'Error parsing config file {path}:\n{e}') from e
    except OSError as e:
        raise ConfigNotFoundError(
            f'Error reading config file {path}: {e}') from e
    # Optional sections (workspace history included) are only enabled when
    # they appear in the user config.
    defaults = {
        key: value
        for key, value in default_config.items()
        if not isinstance(value, dict) or key in config
    }
    merge_config(defaults, config)
    return config


def load_config(path=CONFIG_PATH, fail_if_missing=False) -> Config:
    return Config.from_dict(get_config_with_defaults(path, fail_if_missing))
