"""
Cycle demonstration harness.

Each scenario builds a small object graph in the runtime it is given, drops
the external roots and reports what happened. The leaky strong cycle is a
scenario like the others: it is meant to be reproduced on purpose.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, NamedTuple

from .errors import ContractViolation
from .events import TEARDOWN, Event
from .fields import strong, unowned, weak
from .refs import extended_lifetime
from .runtime import Runtime

log = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Payload types

class Person:
    def __init__(self, name):
        self.name = name
        self.destination = None

    def deinit(self):
        log.info("%s deinit (%s)", type(self).__name__, self.name)


class Traveler(Person):
    account = strong()


class Account:
    """Holds its traveler strongly: together with Traveler this is a cycle."""

    traveler = strong()

    def __init__(self, traveler, points):
        self.traveler = traveler
        self.points = points

    def deinit(self):
        log.info("%s deinit", type(self).__name__)

    def print_summary(self):
        if self.traveler is None:
            return None
        return f"{self.traveler.payload.name} has {self.points} points"


class WeakAccount(Account):
    traveler = weak()

    def print_summary(self):
        ref = self.traveler
        resolved = ref.resolve() if ref is not None else None
        if resolved is None:
            return None
        with resolved:
            return f"{resolved.payload.name} has {self.points} points"


class UnownedAccount(Account):
    traveler = unowned()

    def print_summary(self):
        return f"{self.traveler.access().name} has {self.points} points"


class PersonalInfo:
    def __init__(self, name):
        self.name = name


class InfoTraveler:
    """Traveler that shares a PersonalInfo with its account instead of
    being referenced by it."""

    info = strong()
    account = strong()

    def __init__(self, info, account):
        self.info = info
        self.account = account


class InfoAccount:
    info = strong()

    def __init__(self, info, points):
        self.info = info
        self.points = points

    def print_summary(self):
        return f"{self.info.payload.name} has {self.points} points"


# ----------------------------------------------------------------------
# Results

class BlockSnapshot(NamedTuple):
    label: str
    strong_count: int
    weak_count: int


@dataclass
class ScenarioResult:
    name: str
    events: List[Event] = field(default_factory=list)
    leaked: List[BlockSnapshot] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)

    @property
    def teardown_order(self):
        return [e.label for e in self.events if e.kind == TEARDOWN]

    @property
    def leaks(self):
        return bool(self.leaked)


def _finish(name, runtime, lines):
    leaked = [BlockSnapshot(b.label, b.strong_count, b.weak_count)
              for b in runtime.leaked()]
    for snap in leaked:
        log.warning("%s: %s leaked (strong=%d, weak=%d)", name,
                    snap.label, snap.strong_count, snap.weak_count)
    return ScenarioResult(name, runtime.events.events(), leaked, lines)


# ----------------------------------------------------------------------
# Scenarios

def person_lifetime(runtime):
    """One object, two strong references, released one after the other."""
    lines = []
    person1 = runtime.new(Person("Lily"), label='person')
    person2 = person1.copy()
    lines.append(f"strong count after copy: {person1.block.strong_count}")
    person2.payload.destination = "Valey"
    person2.drop()
    lines.append(f"strong count after first release: {person1.block.strong_count}")
    person1.drop()
    lines.append("Done traveling")
    return _finish('person_lifetime', runtime, lines)


def strong_cycle(runtime):
    """Traveler <-> Account, both strong. Dropping the roots leaks both."""
    lines = []
    traveler = runtime.new(Traveler("Lily"), label='traveler')
    account = runtime.new(Account(traveler, 1000), label='account')
    traveler.payload.account = account
    lines.append(account.payload.print_summary())

    traveler.drop()
    account.drop()
    for block in runtime.live_blocks():
        lines.append(f"{block.label} still alive with strong count {block.strong_count}")
    return _finish('strong_cycle', runtime, lines)


def weak_back_reference(runtime):
    """Account holds its traveler weakly, so the traveler goes first."""
    lines = []
    traveler = runtime.new(Traveler("Lily"), label='traveler')
    account = runtime.new(WeakAccount(traveler, 1000), label='account')
    traveler.payload.account = account
    lines.append(account.payload.print_summary())

    traveler.drop()
    summary = account.payload.print_summary()
    lines.append(f"summary after traveler teardown: {summary}")
    account.drop()
    return _finish('weak_back_reference', runtime, lines)


def unowned_back_reference(runtime):
    """Account holds its traveler unowned; using it after teardown traps."""
    lines = []
    traveler = runtime.new(Traveler("Lily"), label='traveler')
    account = runtime.new(UnownedAccount(traveler, 1000), label='account')
    traveler.payload.account = account
    lines.append(account.payload.print_summary())

    traveler.drop()
    try:
        account.payload.print_summary()
    except ContractViolation as exc:
        lines.append(f"contract violation: {exc}")
    account.drop()
    return _finish('unowned_back_reference', runtime, lines)


def shared_owner(runtime):
    """Traveler and Account both own a PersonalInfo instead of each other."""
    lines = []
    info = runtime.new(PersonalInfo("Lily"), label='info')
    account = runtime.new(InfoAccount(info, 1000), label='account')
    traveler = runtime.new(InfoTraveler(info, account), label='traveler')
    info.drop()
    account.drop()
    lines.append(traveler.payload.account.payload.print_summary())
    traveler.drop()
    return _finish('shared_owner', runtime, lines)


def premature_weak_release(runtime):
    """The traveler's last strong root goes away before the summary is read.

    The weak back reference quietly resolves to nothing and the summary is
    lost without any error.
    """
    lines = []
    traveler = runtime.new(Traveler("Lily"), label='traveler')
    account = runtime.new(WeakAccount(traveler, 1000), label='account')
    traveler.payload.account = account
    # last use of the traveler root
    traveler.drop()
    summary = account.payload.print_summary()
    lines.append(f"summary: {summary}")
    account.drop()
    return _finish('premature_weak_release', runtime, lines)


def extended_lifetime_fix(runtime):
    """Same as premature_weak_release, with the traveler's lifetime extended
    over the summary."""
    lines = []
    traveler = runtime.new(Traveler("Lily"), label='traveler')
    account = runtime.new(WeakAccount(traveler, 1000), label='account')
    traveler.payload.account = account
    with extended_lifetime(traveler):
        traveler.drop()
        summary = account.payload.print_summary()
    lines.append(f"summary: {summary}")
    account.drop()
    return _finish('extended_lifetime_fix', runtime, lines)


SCENARIOS: Dict[str, Callable[[Runtime], ScenarioResult]] = {
    'person_lifetime': person_lifetime,
    'strong_cycle': strong_cycle,
    'weak_back_reference': weak_back_reference,
    'unowned_back_reference': unowned_back_reference,
    'shared_owner': shared_owner,
    'premature_weak_release': premature_weak_release,
    'extended_lifetime_fix': extended_lifetime_fix,
}


def run(name, runtime_factory=Runtime):
    try:
        scenario = SCENARIOS[name]
    except KeyError:
        raise ValueError(f"unknown scenario {name!r}") from None
    return scenario(runtime_factory())


def run_all(runtime_factory=Runtime):
    """Run every scenario, each in a fresh runtime."""
    return [scenario(runtime_factory()) for scenario in SCENARIOS.values()]
