"""
Reference-counting runtime.

The runtime owns every control block it allocates. All count updates go
through ``retain_strong``/``release_strong``/``retain_weak``/``release_weak``
and, when the runtime is thread safe, run under a single re-entrant lock.
That makes the weak-resolve check-then-increment atomic with respect to the
last strong release.

Teardown is synchronous: the thread that drops the last strong reference runs
the teardown hooks and then releases the payload's outgoing references, which
may cascade into further teardowns. Hooks and the cascade run with the lock
released, so a graph spanning several runtimes cannot deadlock on lock order;
the DEINITING state keeps other threads from retaining or promoting the
object meanwhile. The cascade recurses, so a chain of
strongly held objects deeper than the interpreter recursion limit cannot be
torn down in one release.
"""

import itertools
import logging
import threading
from contextlib import nullcontext
from typing import Callable, List, Optional

from .block import ControlBlock, State
from .config import RuntimeConfig
from .errors import ContractViolation, UnderflowError
from .events import (ALLOCATED, FREED, RELEASE, RELEASE_WEAK, RETAIN,
                     RETAIN_WEAK, TEARDOWN, WEAK_RESOLVED_ABSENT, EventLog)
from .refs import StrongRef, outgoing_references, release_reference

log = logging.getLogger(__name__)


class Runtime:
    """Allocates control blocks and applies retain/release to them."""

    def __init__(self, config: Optional[RuntimeConfig] = None):
        self.config = config or RuntimeConfig()
        self._lock = threading.RLock() if self.config.thread_safe else nullcontext()
        self.events = EventLog(self.config.max_events)
        self._ids = itertools.count(1)
        self._blocks = {}

    @property
    def lock(self):
        """The lock guarding count updates (a no-op context when single-threaded)."""
        return self._lock

    def __repr__(self):
        mode = 'thread-safe' if self.config.thread_safe else 'single-threaded'
        return f"<pyarc.Runtime {mode} blocks={len(self._blocks)}>"

    # ------------------------------------------------------------------
    # Events

    def _record(self, kind, block):
        if self.config.record_events:
            self.events.record(kind, block)

    def _trace(self, kind, block):
        if self.config.trace:
            self._record(kind, block)

    def _check_owner(self, block):
        if not isinstance(block, ControlBlock):
            raise TypeError(f"expected a ControlBlock, got {type(block).__name__}")
        if block.runtime is not self:
            raise ValueError(f"{block.label} belongs to a different runtime")

    # ------------------------------------------------------------------
    # Allocation

    def allocate(self, payload, label=None,
                 on_teardown: Optional[Callable] = None) -> ControlBlock:
        """
        Allocate a control block for ``payload`` with a strong count of 1.

        The caller owns that first share. Usually you want :meth:`new`,
        which wraps it in a StrongRef.

        Args:
            payload: Any object. Its ``deinit()`` method, if it has one, runs
                at teardown before any registered hook.
            label: Name used in the event log (default ``Type#id``).
            on_teardown: Hook called with the payload at teardown.
        """
        with self._lock:
            block = ControlBlock(self, next(self._ids), payload, label)
            if on_teardown is not None:
                block.hooks.append(on_teardown)
            self._blocks[block.id] = block
            self._record(ALLOCATED, block)
        log.debug("allocated %s", block.label)
        return block

    def new(self, payload, label=None, on_teardown=None) -> StrongRef:
        """Allocate ``payload`` and return its first StrongRef."""
        return StrongRef._adopt(self.allocate(payload, label, on_teardown))

    def add_teardown_hook(self, target, hook: Callable):
        """Register ``hook(payload)`` to run once when the strong count hits zero."""
        block = target.block if isinstance(target, StrongRef) else target
        with self._lock:
            self._check_owner(block)
            if block.state is not State.LIVE:
                raise ContractViolation(f"cannot add a teardown hook to {block.label}: "
                                        f"object is {block.state.value}", block)
            block.hooks.append(hook)

    # ------------------------------------------------------------------
    # Strong counts

    def retain_strong(self, block: ControlBlock) -> ControlBlock:
        with self._lock:
            self._check_owner(block)
            if block.state is not State.LIVE:
                raise ContractViolation(f"cannot retain {block.label}: "
                                        f"object is {block.state.value}", block)
            block.strong_count += 1
            self._trace(RETAIN, block)
        return block

    def release_strong(self, block: ControlBlock):
        with self._lock:
            self._check_owner(block)
            if block.strong_count == 0:
                raise UnderflowError(f"release of {block.label} with strong count 0", block)
            block.strong_count -= 1
            self._trace(RELEASE, block)
            if block.strong_count > 0:
                return
            block.state = State.DEINITING
            payload = block.payload
            hooks = list(block.hooks)
            block.hooks.clear()
            self._record(TEARDOWN, block)
        self._teardown(block, payload, hooks)

    def _teardown(self, block, payload, hooks):
        # Runs without the runtime lock held: hooks and the cascade may call
        # into other runtimes. The DEINITING state already blocks retain and
        # weak promotion.
        log.debug("teardown %s", block.label)
        error = self._run_hooks(block, payload, hooks)

        with self._lock:
            block.payload = None
            block.state = State.DEALLOCATED

        for ref in list(outgoing_references(payload)):
            try:
                release_reference(ref)
            except Exception as exc:
                log.exception("releasing %r held by %s failed", ref, block.label)
                if error is None:
                    error = exc

        with self._lock:
            self._maybe_free(block)
        if error is not None:
            raise error

    def _run_hooks(self, block, payload, hooks):
        """Run every hook; return the first exception raised, if any."""
        deinit = getattr(payload, 'deinit', None)
        if callable(deinit):
            hooks.insert(0, lambda _payload: deinit())

        error = None
        for hook in hooks:
            try:
                hook(payload)
            except Exception as exc:
                log.exception("teardown hook for %s failed", block.label)
                if error is None:
                    error = exc
        return error

    # ------------------------------------------------------------------
    # Weak counts

    def retain_weak(self, block: ControlBlock) -> ControlBlock:
        with self._lock:
            self._check_owner(block)
            if block.state is State.FREED:
                raise ContractViolation(f"cannot retain weak {block.label}: "
                                        f"control block is freed", block)
            block.weak_count += 1
            self._trace(RETAIN_WEAK, block)
        return block

    def release_weak(self, block: ControlBlock):
        with self._lock:
            self._check_owner(block)
            if block.weak_count == 0:
                raise UnderflowError(f"weak release of {block.label} with weak count 0", block)
            block.weak_count -= 1
            self._trace(RELEASE_WEAK, block)
            self._maybe_free(block)

    def resolve_weak(self, block: ControlBlock) -> Optional[StrongRef]:
        """Promote a weak share to a new StrongRef, or return None.

        The liveness check and the increment happen under the same lock
        acquisition, so a concurrent last release can never be resurrected.
        """
        with self._lock:
            self._check_owner(block)
            if block.state is State.LIVE and block.strong_count > 0:
                block.strong_count += 1
                self._trace(RETAIN, block)
                return StrongRef._adopt(block)
            self._record(WEAK_RESOLVED_ABSENT, block)
        return None

    def _maybe_free(self, block):
        if (block.state is State.DEALLOCATED
                and block.strong_count == 0 and block.weak_count == 0):
            block.state = State.FREED
            self._blocks.pop(block.id, None)
            self._record(FREED, block)
            log.debug("freed control block %s", block.label)

    # ------------------------------------------------------------------
    # Unowned access

    def access_unowned(self, block: ControlBlock):
        with self._lock:
            self._check_owner(block)
            if block.state is not State.LIVE:
                raise ContractViolation(f"unowned access to {block.label} "
                                        f"after teardown ({block.state.value})", block)
            return block.payload

    # ------------------------------------------------------------------
    # Introspection

    def get(self, block_id) -> Optional[ControlBlock]:
        with self._lock:
            return self._blocks.get(block_id)

    def blocks(self) -> List[ControlBlock]:
        """Control blocks that have not been freed yet."""
        with self._lock:
            return list(self._blocks.values())

    def live_blocks(self) -> List[ControlBlock]:
        """Blocks whose payload is still alive (strong count above zero)."""
        return [b for b in self.blocks() if b.state is State.LIVE]

    def leaked(self) -> List[ControlBlock]:
        """Blocks still holding strong counts.

        Called once every external root has been dropped, anything listed
        here is kept alive only by references from other objects (a cycle).
        """
        return [b for b in self.blocks() if b.strong_count > 0]
