"""
Reference-holding attributes for payload classes.

    class Account:
        traveler = weak()

        def __init__(self, traveler, points):
            self.traveler = traveler
            self.points = points

Assigning a StrongRef (or ControlBlock) to a field stores a fresh reference
of the field's kind and drops whatever the field held before. The stored
reference lives in the instance ``__dict__``, which is where the runtime
looks for outgoing references at teardown.
"""

from .refs import StrongRef, UnownedRef, WeakRef, release_reference


class _Field:
    ref_type = None

    def __init__(self):
        self.name = None

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return obj.__dict__.get(self.name)

    def __set__(self, obj, value):
        new = None if value is None else self.ref_type(value)
        old = obj.__dict__.get(self.name)
        obj.__dict__[self.name] = new
        if old is not None:
            release_reference(old)

    def __delete__(self, obj):
        if self.name not in obj.__dict__:
            raise AttributeError(self.name)
        old = obj.__dict__.pop(self.name)
        if old is not None:
            release_reference(old)

    def __repr__(self):
        return f"<pyarc.fields.{type(self).__name__.lstrip('_')} {self.name!r}>"


class _StrongField(_Field):
    ref_type = StrongRef


class _WeakField(_Field):
    ref_type = WeakRef


class _UnownedField(_Field):
    ref_type = UnownedRef


def strong():
    """Field holding an owning reference."""
    return _StrongField()


def weak():
    """Field holding a weak reference; read it with ``.resolve()``."""
    return _WeakField()


def unowned():
    """Field holding an unowned reference; read it with ``.access()``."""
    return _UnownedField()
