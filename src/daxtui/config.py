from dataclasses import dataclass
from typing import Mapping, Optional
import logging
import os

ALLOW_PIPE_ENV = 'DAX_TUI_ALLOW_PIPE'
TICK_ENV = 'DAX_TUI_TICK_MS'
LOG_ENV = 'DAX_TUI_LOG'
LOG_LEVEL_ENV = 'DAX_TUI_LOG_LEVEL'

DEFAULT_TICK_MS = 50

_TRUE = {'1', 'true', 'yes', 'on'}


def env_flag(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in _TRUE


@dataclass
class Settings:
    allow_pipe: bool = False
    tick_ms: int = DEFAULT_TICK_MS
    log_file: Optional[str] = None
    log_level: str = 'INFO'

    @property
    def tick(self) -> float:
        return self.tick_ms / 1000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        env = os.environ if environ is None else environ
        tick_ms = DEFAULT_TICK_MS
        raw_tick = env.get(TICK_ENV)
        if raw_tick:
            try:
                tick_ms = max(1, int(raw_tick))
            except ValueError:
                raise ValueError(f"{TICK_ENV} must be an integer (milliseconds), got {raw_tick!r}")
        return cls(
            allow_pipe=env_flag(env.get(ALLOW_PIPE_ENV)),
            tick_ms=tick_ms,
            log_file=env.get(LOG_ENV) or None,
            log_level=(env.get(LOG_LEVEL_ENV) or 'INFO').upper(),
        )


def configure_logging(settings: Settings):
    '''
    The screen owns the terminal while running, so logs only ever go to a
    file. Without one configured, everything is dropped.
    '''
    root = logging.getLogger('daxtui')
    for h in list(root.handlers):
        root.removeHandler(h)
    if settings.log_file:
        handler = logging.FileHandler(settings.log_file, encoding='utf-8')
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
        root.addHandler(handler)
        root.setLevel(getattr(logging, settings.log_level, logging.INFO))
    else:
        root.addHandler(logging.NullHandler())
    root.propagate = False
