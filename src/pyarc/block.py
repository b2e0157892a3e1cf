"""Control block: the counters and payload slot behind every managed object."""

from enum import Enum


class State(Enum):
    LIVE = 'live'
    DEINITING = 'deiniting'       # strong count hit zero, teardown hooks running
    DEALLOCATED = 'deallocated'   # payload released, weak refs still pending
    FREED = 'freed'               # both counts zero, dropped from the runtime


class ControlBlock:
    """
    Per-object bookkeeping owned by a :class:`pyarc.runtime.Runtime`.

    Counts and state are only ever mutated by the owning runtime's
    retain/release operations. The block can outlive its payload: after
    teardown ``payload`` is None but the block stays reachable from weak
    references until the weak count also drops to zero.
    """

    __slots__ = ('runtime', 'id', 'label', 'strong_count', 'weak_count',
                 'state', 'payload', 'hooks')

    def __init__(self, runtime, block_id, payload, label=None):
        self.runtime = runtime
        self.id = block_id
        self.label = label or f"{type(payload).__name__}#{block_id}"
        self.strong_count = 1
        self.weak_count = 0
        self.state = State.LIVE
        self.payload = payload
        self.hooks = []

    @property
    def is_live(self):
        return self.state is State.LIVE

    @property
    def is_deallocated(self):
        return self.state in (State.DEALLOCATED, State.FREED)

    @property
    def is_freed(self):
        return self.state is State.FREED

    def __repr__(self):
        return (f"<pyarc.ControlBlock {self.label} id={self.id} "
                f"strong={self.strong_count} weak={self.weak_count} "
                f"state={self.state.value}>")
