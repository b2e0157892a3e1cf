"""pyarc - a small automatic reference counting runtime for teaching and tests.

The module-level functions operate on a process-wide default runtime built
from ``PYARC_*`` environment variables; create a :class:`Runtime` directly for
isolated object graphs.
"""

import threading

from .block import ControlBlock, State
from .config import RuntimeConfig
from .errors import ARCError, ContractViolation, DoubleReleaseError, UnderflowError
from .events import Event, EventLog
from .fields import strong, unowned, weak
from .refs import StrongRef, UnownedRef, WeakRef, _block_of, extended_lifetime
from .runtime import Runtime

__version__ = "0.1.0"

_default_runtime = None
_default_lock = threading.Lock()


def get_runtime() -> Runtime:
    global _default_runtime
    with _default_lock:
        if _default_runtime is None:
            _default_runtime = Runtime(RuntimeConfig.from_env())
        return _default_runtime


def set_runtime(runtime):
    """Replace the default runtime; returns the previous one (may be None)."""
    global _default_runtime
    with _default_lock:
        previous, _default_runtime = _default_runtime, runtime
    return previous


def allocate(payload, label=None, on_teardown=None):
    return get_runtime().allocate(payload, label, on_teardown)


def new(payload, label=None, on_teardown=None):
    return get_runtime().new(payload, label, on_teardown)


def retain_strong(block):
    block = _block_of(block)
    return block.runtime.retain_strong(block)


def release_strong(block):
    block = _block_of(block)
    block.runtime.release_strong(block)


def retain_weak(block):
    block = _block_of(block)
    return block.runtime.retain_weak(block)


def release_weak(block):
    block = _block_of(block)
    block.runtime.release_weak(block)


def resolve_weak(block):
    block = _block_of(block)
    return block.runtime.resolve_weak(block)


def access_unowned(block):
    block = _block_of(block)
    return block.runtime.access_unowned(block)


def add_teardown_hook(target, hook):
    block = _block_of(target)
    block.runtime.add_teardown_hook(block, hook)


__all__ = [
    'ARCError',
    'ContractViolation',
    'ControlBlock',
    'DoubleReleaseError',
    'Event',
    'EventLog',
    'Runtime',
    'RuntimeConfig',
    'State',
    'StrongRef',
    'UnderflowError',
    'UnownedRef',
    'WeakRef',
    'access_unowned',
    'add_teardown_hook',
    'allocate',
    'extended_lifetime',
    'get_runtime',
    'new',
    'release_strong',
    'release_weak',
    'resolve_weak',
    'retain_strong',
    'retain_weak',
    'set_runtime',
    'strong',
    'unowned',
    'weak',
]
