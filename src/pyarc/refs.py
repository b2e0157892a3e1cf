"""
Reference kinds over a control block.

- StrongRef owns one share of the referent's lifetime.
- WeakRef owns one weak share and must be promoted with ``resolve()``.
- UnownedRef owns nothing and assumes the referent outlives it.

Strong and weak references are released explicitly with ``drop()`` or at the
end of a ``with`` block. Nothing is released at "last use".
"""

from contextlib import contextmanager
from typing import Optional

from .block import ControlBlock, State
from .errors import ContractViolation, DoubleReleaseError


class Reference:
    """Common base for the three reference kinds."""

    __slots__ = ('_block',)

    @property
    def block(self) -> ControlBlock:
        return self._block

    @property
    def label(self):
        return self._block.label

    def __repr__(self):
        b = self._block
        return (f"<pyarc.{type(self).__name__} to {b.label} "
                f"strong={b.strong_count} weak={b.weak_count} "
                f"state={b.state.value}>")


def _block_of(target):
    if isinstance(target, ControlBlock):
        return target
    if isinstance(target, Reference):
        return target.block
    raise TypeError(f"expected a reference or ControlBlock, got {type(target).__name__}")


class StrongRef(Reference):
    """Owning reference. Constructing one retains, dropping one releases."""

    __slots__ = ('_dropped',)

    def __init__(self, target):
        if isinstance(target, StrongRef):
            target._check_live()
        elif not isinstance(target, ControlBlock):
            raise TypeError(f"StrongRef needs a StrongRef or ControlBlock, "
                            f"got {type(target).__name__}; promote weak "
                            f"references with resolve()")
        block = _block_of(target)
        block.runtime.retain_strong(block)
        self._block = block
        self._dropped = False

    @classmethod
    def _adopt(cls, block):
        """Wrap a share that has already been counted (allocate, resolve)."""
        ref = cls.__new__(cls)
        ref._block = block
        ref._dropped = False
        return ref

    def _check_live(self):
        if self._dropped:
            raise ContractViolation(f"use of dropped StrongRef to {self.label}", self._block)

    @property
    def dropped(self):
        return self._dropped

    @property
    def payload(self):
        self._check_live()
        return self._block.payload

    def get(self):
        return self.payload

    def copy(self) -> 'StrongRef':
        return StrongRef(self)

    def assign(self, target) -> 'StrongRef':
        """Point this reference at ``target``, releasing the old referent.

        The new referent is retained before the old one is released, so
        assigning a reference to itself is safe.
        """
        if isinstance(target, StrongRef):
            target._check_live()
        elif not isinstance(target, ControlBlock):
            raise TypeError(f"cannot assign {type(target).__name__} to a StrongRef")
        new_block = _block_of(target)
        new_block.runtime.retain_strong(new_block)

        old_block, was_dropped = self._block, self._dropped
        self._block = new_block
        self._dropped = False
        if not was_dropped:
            old_block.runtime.release_strong(old_block)
        return self

    def drop(self):
        block = self._block
        # check-and-set under the runtime lock so two threads sharing this
        # reference cannot both release it; the release itself runs outside
        with block.runtime.lock:
            if self._dropped:
                raise DoubleReleaseError(f"StrongRef to {self.label} dropped twice", block)
            self._dropped = True
        block.runtime.release_strong(block)

    def __enter__(self):
        self._check_live()
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self._dropped:
            self.drop()
        return False


class WeakRef(Reference):
    """Non-owning reference that resolves to None once the referent is torn down."""

    __slots__ = ('_dropped',)

    def __init__(self, target):
        block = _block_of(target)
        block.runtime.retain_weak(block)
        self._block = block
        self._dropped = False

    @property
    def dropped(self):
        return self._dropped

    @property
    def is_alive(self):
        """Non-promoting liveness check. Racy by nature: use resolve() to act on it."""
        return not self._dropped and self._block.state is State.LIVE

    def resolve(self) -> Optional[StrongRef]:
        """Promote to a new StrongRef, or return None if the referent is gone.

        The caller owns the returned reference and must drop it.
        """
        if self._dropped:
            raise ContractViolation(f"resolve on dropped WeakRef to {self.label}", self._block)
        return self._block.runtime.resolve_weak(self._block)

    def drop(self):
        block = self._block
        with block.runtime.lock:
            if self._dropped:
                raise DoubleReleaseError(f"WeakRef to {self.label} dropped twice", block)
            self._dropped = True
        block.runtime.release_weak(block)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self._dropped:
            self.drop()
        return False


class UnownedRef(Reference):
    """Non-owning reference whose referent must be kept alive elsewhere."""

    __slots__ = ()

    def __init__(self, target):
        block = _block_of(target)
        if block.state is not State.LIVE:
            raise ContractViolation(f"unowned reference to {block.label} "
                                    f"formed after teardown", block)
        self._block = block

    def access(self):
        return self._block.runtime.access_unowned(self._block)


@contextmanager
def extended_lifetime(target):
    """Keep ``target`` alive for the duration of the block.

    Retains an extra strong share on entry and releases it on exit. Yields
    the payload.
    """
    ref = StrongRef(target)
    try:
        yield ref.payload
    finally:
        ref.drop()


def _iter_values(container):
    if isinstance(container, dict):
        return container.values()
    if isinstance(container, (list, tuple, set, frozenset)):
        return container
    return getattr(container, '__dict__', {}).values()


def outgoing_references(payload):
    """Yield the references held by ``payload``.

    Looks at instance attributes (or the items of a container payload) and
    one level of list/tuple/set/dict nesting below them.
    """
    if isinstance(payload, Reference):
        yield payload
        return
    for value in list(_iter_values(payload)):
        if isinstance(value, Reference):
            yield value
        elif isinstance(value, (list, tuple, set, frozenset, dict)):
            for item in list(_iter_values(value)):
                if isinstance(item, Reference):
                    yield item


def release_reference(ref):
    """Drop ``ref`` if it holds a count. Unowned and dropped refs are skipped."""
    if isinstance(ref, (StrongRef, WeakRef)) and not ref.dropped:
        ref.drop()
