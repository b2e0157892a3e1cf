"""Runtime configuration.

Values come from (highest priority first) explicit constructor arguments,
``PYARC_*`` environment variables, then the defaults below.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUE = ('1', 'true', 'yes', 'on')
_FALSE = ('0', 'false', 'no', 'off')


def _parse_bool(name, raw):
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name}: expected a boolean, got {raw!r}")


def _parse_int(name, raw):
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name}: expected an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name}: must be positive, got {value}")
    return value


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Settings for a :class:`pyarc.runtime.Runtime`.

    Args:
        thread_safe: Guard count updates with a re-entrant lock. When False,
            updates are plain increments and the runtime must only be used
            from one thread.
        record_events: Keep the lifecycle event log.
        trace: Also log every retain/release in the event log.
        max_events: Cap on stored events; oldest are discarded first.
    """

    thread_safe: bool = True
    record_events: bool = True
    trace: bool = False
    max_events: Optional[int] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'RuntimeConfig':
        """Build a config from ``PYARC_*`` environment variables."""
        env = os.environ if environ is None else environ
        kwargs = {}

        for field_name, var in (
            ('thread_safe', 'PYARC_THREAD_SAFE'),
            ('record_events', 'PYARC_RECORD_EVENTS'),
            ('trace', 'PYARC_TRACE'),
        ):
            raw = env.get(var)
            if raw is not None and raw.strip():
                kwargs[field_name] = _parse_bool(var, raw)

        raw = env.get('PYARC_MAX_EVENTS')
        if raw is not None and raw.strip():
            kwargs['max_events'] = _parse_int('PYARC_MAX_EVENTS', raw)

        return cls(**kwargs)
