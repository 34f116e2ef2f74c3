"""
Snapshots — per-environment state containers, one per capability category.

A snapshot holds exactly the fields explicitly customized and not since
reset. A missing key means "host default"; defaults are never stored.
"""

from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class RecencyMap:
    """
    Ordered key -> value map.

    With ``ordered=True`` every ``touch`` moves the key to the end, so
    iteration runs from least to most recently touched. With
    ``ordered=False`` a key keeps the position of its first write.
    """

    def __init__(self, ordered: bool = True):
        self.ordered = ordered
        self._items: "OrderedDict[Hashable, Any]" = OrderedDict()

    def touch(self, key: Hashable, value: Any) -> None:
        self._items[key] = value
        if self.ordered:
            self._items.move_to_end(key)

    def replace(self, key: Hashable, value: Any) -> None:
        """Overwrite a value without changing its position."""
        self._items[key] = value

    def discard(self, key: Hashable) -> None:
        self._items.pop(key, None)

    def get(self, key: Hashable, default: Any = None) -> Any:
        return self._items.get(key, default)

    def items(self) -> List[Tuple[Hashable, Any]]:
        return list(self._items.items())

    def keys(self) -> List[Hashable]:
        return list(self._items.keys())

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(list(self._items))

    def __repr__(self) -> str:
        return f"RecencyMap(ordered={self.ordered}, {list(self._items.items())!r})"


class _Snapshot(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    def entry_count(self) -> int:
        raise NotImplementedError


class HandlerEntry(BaseModel):
    """One registration on a callback queue."""
    handler: Callable[..., Any]
    name: Optional[str] = None


class CallbackSnapshot(_Snapshot):
    """Callback bus: queue -> handlers in registration order."""
    queues: Dict[Any, List[HandlerEntry]] = {}

    def entry_count(self) -> int:
        return sum(len(h) for h in self.queues.values())


class HandlerMapSnapshot(_Snapshot):
    """Single-handler map: key -> handler."""
    handlers: Dict[str, Callable[..., Any]] = {}

    def entry_count(self) -> int:
        return len(self.handlers)


class ToggleEntry(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    control: Any
    enabled: bool = True


class ToggleSnapshot(_Snapshot):
    """Toggle controls owned by the environment since their creation."""
    controls: List[ToggleEntry] = []

    def entry_for(self, control: Any) -> Optional[ToggleEntry]:
        for entry in self.controls:
            if entry.control is control:
                return entry
        return None

    def entry_count(self) -> int:
        return len(self.controls)


class FieldOverrideSnapshot(_Snapshot):
    """Field overrides stored as fixed-arity tuples, keyed by field or (object, field)."""
    overrides: RecencyMap = Field(default_factory=RecencyMap)

    @classmethod
    def create(cls, ordered: bool) -> "FieldOverrideSnapshot":
        return cls(overrides=RecencyMap(ordered=ordered))

    def entry_count(self) -> int:
        return len(self.overrides)


class PartOverrideSnapshot(FieldOverrideSnapshot):
    """Per-object field overrides: (part, field) -> values."""


class SlotSnapshot(FieldOverrideSnapshot):
    """Singleton text/customization group: slot -> values."""


class SettingsSnapshot(FieldOverrideSnapshot):
    """Scalar host settings: field -> values."""


class OrderedFieldSnapshot(FieldOverrideSnapshot):
    """Global field overrides replayed in recency order."""


class PageSnapshot(_Snapshot):
    """Current-page pointer."""
    page: Optional[Any] = None

    def entry_count(self) -> int:
        return 0 if self.page is None else 1


class VisibilitySnapshot(_Snapshot):
    """Visibility of the environment's model root."""
    visible: bool = True

    def entry_count(self) -> int:
        return 1


class NamespaceSnapshot(_Snapshot):
    """The entire flat global namespace as it was when the environment left."""
    entries: Dict[str, Any] = {}

    def entry_count(self) -> int:
        return len(self.entries)
