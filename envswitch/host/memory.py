"""
In-memory reference host.

Implements the host surfaces the switcher intercepts: callback queues,
pings, keybinds, the model part tree, nameplate, renderer, vanilla model,
action wheel and avatar store. Every mutating call is appended to a shared
journal so callers can observe exactly what reached the host and in which
order.
"""

from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple


PART_FIELDS: Dict[str, int] = {
    "pos": 3,
    "rot": 3,
    "scale": 3,
    "pivot": 3,
    "color": 3,
    "opacity": 1,
    "light": 2,
    "uv": 2,
    "primary_texture": 2,
    "render_type": 1,
    "visible": 1,
}

NAMEPLATE_FIELDS: Dict[str, int] = {
    "chat_text": 1,
    "entity_text": 1,
    "list_text": 1,
    "entity_visible": 1,
    "entity_pos": 3,
    "entity_background_color": 4,
}

RENDERER_FIELDS: Dict[str, int] = {
    "shadow_radius": 1,
    "fov": 1,
    "camera_pos": 3,
    "camera_rot": 3,
    "render_fire": 1,
    "render_vehicle": 1,
    "outline_color": 3,
}

VANILLA_FIELDS: Dict[str, int] = {
    "head_visible": 1,
    "body_visible": 1,
    "arms_visible": 1,
    "legs_visible": 1,
    "armor_visible": 1,
    "cape_visible": 1,
    "held_items_visible": 1,
    "head_rot": 3,
    "body_pos": 3,
}

EVENT_NAMES = (
    "TICK",
    "RENDER",
    "POST_RENDER",
    "WORLD_TICK",
    "ENTITY_INIT",
    "CHAT_SEND_MESSAGE",
    "CHAT_RECEIVE_MESSAGE",
    "KEY_PRESS",
    "MOUSE_SCROLL",
)


Journal = List[Tuple[str, str, tuple]]


class FieldObject:
    """
    A host object with a closed set of fixed-arity fields.

    ``set_<field>(*values)`` stores a value; calling it with no values
    resets the field to the host default. ``get_<field>()`` returns the
    stored tuple or None.
    """

    FIELDS: Dict[str, int] = {}

    def __init__(self, name: str, journal: Optional[Journal] = None):
        self.name = name
        self._values: Dict[str, tuple] = {}
        self._journal = journal if journal is not None else []

    def arity(self, field: str) -> int:
        if field not in self.FIELDS:
            raise AttributeError(f"{type(self).__name__} has no field {field!r}")
        return self.FIELDS[field]

    def set_field(self, field: str, *values: Any) -> "FieldObject":
        arity = self.arity(field)
        if values and len(values) != arity:
            raise TypeError(
                f"{field} expects {arity} value(s), got {len(values)}"
            )
        self._journal.append((self.name, f"set_{field}", tuple(values)))
        if values:
            self._values[field] = tuple(values)
        else:
            self._values.pop(field, None)
        return self

    def get_field(self, field: str) -> Optional[tuple]:
        self.arity(field)
        return self._values.get(field)

    def reset_field(self, field: str) -> None:
        self.set_field(field)

    def customized_fields(self) -> List[str]:
        return list(self._values)

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        if name.startswith("set_") and name[4:] in self.FIELDS:
            return partial(self.set_field, name[4:])
        if name.startswith("get_") and name[4:] in self.FIELDS:
            return partial(self.get_field, name[4:])
        raise AttributeError(f"{type(self).__name__} has no attribute {name!r}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class ModelPart(FieldObject):
    """A node of the host's model hierarchy."""

    FIELDS = PART_FIELDS

    def __init__(self, name: str, journal: Optional[Journal] = None):
        super().__init__(name, journal)
        self.parent: Optional["ModelPart"] = None
        self._children: Dict[str, "ModelPart"] = {}

    def get_visible(self) -> bool:
        value = self._values.get("visible")
        return True if value is None else bool(value[0])

    def set_visible(self, *values: Any) -> "ModelPart":
        self.set_field("visible", *values)
        return self

    def get_name(self) -> str:
        return self.name

    def get_parent(self) -> Optional["ModelPart"]:
        return self.parent

    def get_children(self) -> List["ModelPart"]:
        return list(self._children.values())

    def child(self, name: str) -> Optional["ModelPart"]:
        return self._children.get(name)

    def new_part(self, name: str) -> "ModelPart":
        part = ModelPart(name, self._journal)
        self.add_child(part)
        return part

    def add_child(self, part: "ModelPart") -> "ModelPart":
        if part.parent is not None:
            part.parent.remove_child(part)
        part.parent = self
        self._children[part.name] = part
        return self

    def remove_child(self, part: "ModelPart") -> "ModelPart":
        if self._children.get(part.name) is part:
            del self._children[part.name]
            part.parent = None
        return self


class Nameplate(FieldObject):
    FIELDS = NAMEPLATE_FIELDS


class Renderer(FieldObject):
    FIELDS = RENDERER_FIELDS


class VanillaModel(FieldObject):
    FIELDS = VANILLA_FIELDS


class EventQueue:
    """A named host callback queue. Handlers run in registration order."""

    def __init__(self, name: str, journal: Optional[Journal] = None):
        self.name = name
        self._handlers: List[Tuple[Callable, Optional[str]]] = []
        self._journal = journal if journal is not None else []

    def register(self, func: Callable, name: Optional[str] = None) -> "EventQueue":
        self._journal.append((self.name, "register", (func, name)))
        self._handlers.append((func, name))
        return self

    def remove(self, name: str) -> int:
        self._journal.append((self.name, "remove", (name,)))
        before = len(self._handlers)
        self._handlers = [h for h in self._handlers if h[1] != name]
        return before - len(self._handlers)

    def clear(self) -> None:
        self._journal.append((self.name, "clear", ()))
        self._handlers = []

    def get_registered_count(self, name: Optional[str] = None) -> int:
        if name is None:
            return len(self._handlers)
        return sum(1 for h in self._handlers if h[1] == name)

    def handlers(self) -> List[Tuple[Callable, Optional[str]]]:
        return list(self._handlers)

    def fire(self, *args: Any) -> List[Any]:
        return [func(*args) for func, _ in list(self._handlers)]

    def __repr__(self) -> str:
        return f"EventQueue({self.name!r})"


class EventsAPI:
    """The set of host event queues, addressed case-insensitively."""

    def __init__(self, journal: Optional[Journal] = None):
        self._queues = {name: EventQueue(name, journal) for name in EVENT_NAMES}

    def get_events(self) -> Dict[str, EventQueue]:
        return dict(self._queues)

    def __getattr__(self, name: str) -> EventQueue:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._queues[name.upper()]
        except KeyError:
            raise AttributeError(f"Unknown event {name!r}") from None


class Pings:
    """Named network handlers, one handler per name."""

    def __init__(self, journal: Optional[Journal] = None):
        self._handlers: Dict[str, Callable] = {}
        self._journal = journal if journal is not None else []

    def register(self, name: str, func: Optional[Callable]) -> None:
        self._journal.append(("pings", "register", (name, func)))
        if func is None:
            self._handlers.pop(name, None)
        else:
            self._handlers[name] = func

    def unregister(self, name: str) -> None:
        self.register(name, None)

    def get(self, name: str) -> Optional[Callable]:
        return self._handlers.get(name)

    def names(self) -> List[str]:
        return list(self._handlers)

    def send(self, name: str, *args: Any) -> Any:
        func = self._handlers.get(name)
        if func is None:
            raise KeyError(f"No ping registered as {name!r}")
        return func(*args)


class Keybind:
    """A host key binding that can be enabled or disabled."""

    def __init__(self, name: str, key: str, journal: Optional[Journal] = None):
        self.name = name
        self.key = key
        self.enabled = True
        self.on_press: Optional[Callable] = None
        self._journal = journal if journal is not None else []

    def set_enabled(self, enabled: bool) -> "Keybind":
        self._journal.append((self.name, "set_enabled", (enabled,)))
        self.enabled = bool(enabled)
        return self

    def is_enabled(self) -> bool:
        return self.enabled

    def get_name(self) -> str:
        return self.name

    def set_on_press(self, func: Optional[Callable]) -> "Keybind":
        self.on_press = func
        return self

    def press(self) -> Any:
        if self.enabled and self.on_press is not None:
            return self.on_press(self)
        return None

    def __repr__(self) -> str:
        return f"Keybind({self.name!r}, {self.key!r})"


class Keybinds:
    """Global keybind listing shared by everything running on the host."""

    def __init__(self, journal: Optional[Journal] = None):
        self._keybinds: List[Keybind] = []
        self._journal = journal if journal is not None else []

    def new_keybind(self, name: str, key: str) -> Keybind:
        keybind = Keybind(name, key, self._journal)
        self._keybinds.append(keybind)
        return keybind

    def all(self) -> List[Keybind]:
        return list(self._keybinds)


class Action:
    def __init__(self):
        self.title = ""
        self.left_click: Optional[Callable] = None

    def set_title(self, title: str) -> "Action":
        self.title = title
        return self

    def get_title(self) -> str:
        return self.title

    def on_left_click(self, func: Callable) -> "Action":
        self.left_click = func
        return self

    def click(self) -> Any:
        if self.left_click is not None:
            return self.left_click(self)
        return None


class Page:
    def __init__(self, title: str):
        self.title = title
        self.actions: List[Action] = []

    def new_action(self) -> Action:
        action = Action()
        self.actions.append(action)
        return action

    def get_title(self) -> str:
        return self.title

    def __repr__(self) -> str:
        return f"Page({self.title!r})"


class ActionWheel:
    def __init__(self, journal: Optional[Journal] = None):
        self._page: Optional[Page] = None
        self._journal = journal if journal is not None else []

    def new_page(self, title: str = "") -> Page:
        return Page(title)

    def set_page(self, page: Optional[Page]) -> None:
        self._journal.append(("action_wheel", "set_page", (page,)))
        self._page = page

    def get_current_page(self) -> Optional[Page]:
        return self._page


class AvatarStore:
    """Flat user-variable namespace with no notion of ownership."""

    def __init__(self, journal: Optional[Journal] = None):
        self._values: Dict[str, Any] = {}
        self._journal = journal if journal is not None else []

    def put(self, key: str, value: Any) -> None:
        self._journal.append(("store", "put", (key, value)))
        if value is None:
            self._values.pop(key, None)
        else:
            self._values[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def items(self) -> Dict[str, Any]:
        return dict(self._values)

    def clear(self) -> None:
        self._journal.append(("store", "clear", ()))
        self._values.clear()


class InMemoryHost:
    """Every host surface, sharing one call journal."""

    def __init__(self):
        self.journal: Journal = []
        self.events = EventsAPI(self.journal)
        self.pings = Pings(self.journal)
        self.keybinds = Keybinds(self.journal)
        self.models = ModelPart("models", self.journal)
        self.nameplate = Nameplate("nameplate", self.journal)
        self.renderer = Renderer("renderer", self.journal)
        self.vanilla_model = VanillaModel("vanilla_model", self.journal)
        self.action_wheel = ActionWheel(self.journal)
        self.store = AvatarStore(self.journal)

    def calls(self, operation: Optional[str] = None) -> Journal:
        """Journal entries, optionally filtered by operation name."""
        if operation is None:
            return list(self.journal)
        return [c for c in self.journal if c[1] == operation]
