# stache/core/templating/lookup.py
"""
Name resolution against a chain of data contexts.

Values are inspected through a small lookup capability: mappings are searched
by key, records (namedtuples, dataclasses, plain objects) by public attribute.
Anything else cannot answer a name and is skipped while scanning the chain.
Failures raised by a value while it is being inspected are reported as
MALFORMED results instead of exceptions.
"""
import dataclasses
import weakref
from collections.abc import Mapping, Sequence, Set
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

_MISSING = object()


class LookupStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"


@dataclasses.dataclass(frozen=True)
class LookupResult:
    status: LookupStatus
    value: Any = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @classmethod
    def of(cls, value: Any) -> "LookupResult":
        return cls(LookupStatus.FOUND, value)

    @classmethod
    def malformed(cls, error: str) -> "LookupResult":
        return cls(LookupStatus.MALFORMED, error=error)


NOT_FOUND = LookupResult(LookupStatus.NOT_FOUND)


class ContextChain:
    """Immutable, prepend-only list of contexts, nearest first."""
    __slots__ = ("head", "tail", "_size")

    def __init__(self, head: Any = _MISSING, tail: Optional["ContextChain"] = None):
        self.head = head
        self.tail = tail
        self._size = 0 if head is _MISSING else 1 + (len(tail) if tail is not None else 0)

    @classmethod
    def from_values(cls, values: Iterable[Any]) -> "ContextChain":
        """Builds a chain whose first entry is the first of `values`."""
        chain = EMPTY_CHAIN
        for value in reversed(list(values)):
            chain = chain.push(value)
        return chain

    def push(self, value: Any) -> "ContextChain":
        return ContextChain(value, self)

    @property
    def nearest(self) -> Any:
        if self.head is _MISSING:
            raise LookupError("context chain is empty")
        return self.head

    def __iter__(self) -> Iterator[Any]:
        node: Optional[ContextChain] = self
        while node is not None and node.head is not _MISSING:
            yield node.head
            node = node.tail

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"ContextChain({list(self)!r})"


EMPTY_CHAIN = ContextChain()


def unwrap(value: Any) -> Any:
    """Follows reference indirection (weak references) down to the referenced value."""
    while isinstance(value, weakref.ReferenceType):
        value = value()
    return value


def is_namedtuple(value: Any) -> bool:
    return isinstance(value, tuple) and hasattr(type(value), "_fields")


def is_sequence(value: Any) -> bool:
    # lists, tuples, sets and the like; strings and records are not iterated.
    if isinstance(value, (str, bytes, bytearray)) or is_namedtuple(value):
        return False
    return isinstance(value, (Sequence, Set))


class MappingLookup:
    """Looks names up as keys of a mapping."""

    def __init__(self, mapping: Mapping):
        self.mapping = mapping

    def lookup(self, name: str) -> LookupResult:
        try:
            if name not in self.mapping:
                return NOT_FOUND
            return LookupResult.of(self.mapping[name])
        except KeyError:
            return NOT_FOUND
        except Exception as e:
            return LookupResult.malformed(f"{type(e).__name__}: {e}")


class RecordLookup:
    """Looks names up as public, non-callable attributes of a record-like object."""

    def __init__(self, record: Any):
        self.record = record

    def lookup(self, name: str) -> LookupResult:
        if not name or name.startswith("_"):
            return NOT_FOUND
        try:
            value = getattr(self.record, name, _MISSING)
        except Exception as e:
            return LookupResult.malformed(f"{type(e).__name__}: {e}")
        if value is _MISSING or callable(value):
            return NOT_FOUND
        return LookupResult.of(value)


_SCALAR_TYPES = (str, bytes, bytearray, int, float, complex, bool, type(None))


def lookup_for(value: Any):
    """Returns the lookup capability for a context value, or None if it cannot answer names."""
    value = unwrap(value)
    if isinstance(value, Mapping):
        return MappingLookup(value)
    if is_namedtuple(value) or (dataclasses.is_dataclass(value) and not isinstance(value, type)):
        return RecordLookup(value)
    if isinstance(value, _SCALAR_TYPES) or is_sequence(value) or isinstance(value, type):
        return None
    if hasattr(value, "__dict__") or hasattr(type(value), "__slots__"):
        return RecordLookup(value)
    return None


def resolve(chain: ContextChain, name: str) -> LookupResult:
    """Resolves a (possibly dotted) name against the chain, nearest entry first."""
    if name == ".":
        return LookupResult.of(chain.head) if len(chain) else NOT_FOUND

    if "." in name:
        first, rest = name.split(".", 1)
        head = resolve(chain, first)
        if not head.found:
            return head
        return resolve(EMPTY_CHAIN.push(head.value), rest)

    for ctx in chain:
        capability = lookup_for(ctx)
        if capability is None:
            continue
        result = capability.lookup(name)
        if result.status is LookupStatus.NOT_FOUND:
            continue
        return result
    return NOT_FOUND


def is_empty(result: LookupResult) -> bool:
    """Section truthiness: absent, None, False and empty sequences are empty; all else is not."""
    if not result.found:
        return True
    value = unwrap(result.value)
    if value is None or value is False:
        return True
    if is_sequence(value):
        try:
            return len(value) == 0
        except TypeError:
            return False
    return False
