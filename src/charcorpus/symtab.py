from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .errors import FrozenTableError, UnknownSymbolError


class TableState(str, Enum):
    GROWING = "growing"
    FROZEN = "frozen"


class SymbolTable:
    """Bidirectional string <-> id mapping with a one-way freeze.

    Ids are assigned densely in insertion order starting at zero. While the
    table is GROWING new values may be added; once FROZEN the table only
    answers lookups, and ``resolve`` maps unseen values to the unknown id.
    """

    def __init__(self, name: str = "symtab"):
        """Start an empty growing table; ``name`` is only used in error messages."""
        self.name = name
        self._ids: Dict[str, int] = {}
        self._values: List[str] = []
        self._state = TableState.GROWING
        self.unknown_id: Optional[int] = None

    @property
    def state(self) -> TableState:
        return self._state

    @property
    def frozen(self) -> bool:
        return self._state is TableState.FROZEN

    def freeze(self) -> None:
        self._state = TableState.FROZEN

    def set_unknown(self, value: str) -> int:
        """Declare an already registered value as the fallback for unseen lookups."""
        sym = self.lookup(value)
        if sym is None:
            raise UnknownSymbolError(f"{self.name}: unknown sentinel {value!r} is not registered")
        self.unknown_id = sym
        return sym

    def _create(self, value: str) -> int:
        sym = len(self._values)
        self._ids[value] = sym
        self._values.append(value)
        return sym

    def add(self, value: str) -> int:
        """Return the id of ``value``, creating it if the table is still growing."""
        sym = self._ids.get(value)
        if sym is not None:
            return sym
        if self.frozen:
            raise FrozenTableError(f"{self.name}: cannot add {value!r} to a frozen table")
        return self._create(value)

    def get_or_add(self, value: str) -> int:
        """Create-or-lookup; only valid while the table is growing."""
        if self.frozen:
            raise FrozenTableError(f"{self.name}: get_or_add({value!r}) on a frozen table")
        sym = self._ids.get(value)
        if sym is None:
            sym = self._create(value)
        return sym

    def lookup(self, value: str) -> Optional[int]:
        return self._ids.get(value)

    def resolve(self, value: str) -> int:
        """Lookup that falls back to the unknown id instead of failing."""
        sym = self._ids.get(value)
        if sym is not None:
            return sym
        if self.unknown_id is None:
            raise UnknownSymbolError(f"{self.name}: {value!r} not found and no unknown sentinel set")
        return self.unknown_id

    def value_of(self, sym: int) -> str:
        if not 0 <= sym < len(self._values):
            raise UnknownSymbolError(f"{self.name}: no value for id {sym}")
        return self._values[sym]

    def ids(self) -> range:
        return range(len(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, value: object) -> bool:
        return value in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"SymbolTable(name={self.name!r}, size={len(self)}, state={self._state.value})"

    def state_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "values": list(self._values),
            "frozen": self.frozen,
            "unknown_id": self.unknown_id,
        }

    @classmethod
    def from_state_dict(cls, state: Dict[str, Any]) -> "SymbolTable":
        table = cls(name=state["name"])
        for value in state["values"]:
            table._create(value)
        table.unknown_id = state["unknown_id"]
        if state["frozen"]:
            table.freeze()
        return table
