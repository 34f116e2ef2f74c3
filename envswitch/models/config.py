"""Switcher configuration — the parsed form of envswitcher.json."""

import json
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


CONFIG_RESOURCE = "envswitcher.json"


class ConfigError(Exception):
    """Raised when the configuration is missing or unreadable."""
    pass


class DescriptorError(ConfigError):
    """One `environments` entry is malformed. Only that entry is skipped."""
    pass


class AddressingMode(str, Enum):
    DOTTED = "dotted"    # "a.b" -> "a/b"
    LITERAL = "literal"  # name used as-is, separators collapsed


class Capability(str, Enum):
    """Independently toggle-able classes of host-visible state."""
    EVENTS = "events"                # callback bus
    PINGS = "pings"                  # single-handler map
    KEYBINDS = "keybinds"            # toggle controls
    PARTS = "parts"                  # per-object field overrides
    NAMEPLATE = "nameplate"          # singleton text group
    RENDERER = "renderer"            # scalar host settings
    VANILLA_MODEL = "vanilla_model"  # ordered global field overrides
    ACTION_WHEEL = "action_wheel"    # current-page pointer
    VISIBILITY = "visibility"        # model root visibility flag
    STORE = "store"                  # flat global namespace


class EnvironmentDescriptor(BaseModel):
    """One entry of the `environments` list."""

    id: Optional[str] = None
    default: bool = False
    script_dirs: List[str] = []
    auto_scripts: List[str] = []
    models: List[str] = []
    addressing_mode: Optional[AddressingMode] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_single_script_dir(cls, data):
        if isinstance(data, dict) and "script_dir" in data and "script_dirs" not in data:
            data = dict(data)
            script_dir = data.pop("script_dir")
            data["script_dirs"] = [script_dir] if script_dir is not None else []
        return data

    def search_dirs(self) -> List[str]:
        """Environment-local search directories, defaulting to the id."""
        if self.script_dirs:
            return list(self.script_dirs)
        return [self.id] if self.id else []


class SwitcherConfig(BaseModel):
    """Top-level configuration document."""

    model_config = ConfigDict(populate_by_name=True)

    debug: bool = Field(default=False, alias="__debug")
    global_script_dirs: List[str] = []
    addressing_mode: AddressingMode = AddressingMode.DOTTED
    scripts_root: str = "scripts"
    script_extension: str = ".py"
    capabilities: Dict[Capability, bool] = {}
    ordered_part_replay: bool = True
    # Raw entries; each is validated on its own by parse_descriptor.
    environments: List[Any] = []

    def is_enabled(self, capability: Capability) -> bool:
        """Absent capability keys are enabled."""
        return self.capabilities.get(capability, True)

    def enabled_capabilities(self) -> List[Capability]:
        return [c for c in Capability if self.is_enabled(c)]


def load_config(
    read_resource: Callable[[str], Optional[str]],
    path: str = CONFIG_RESOURCE,
) -> SwitcherConfig:
    """Read and validate the configuration resource."""
    text = read_resource(path)
    if text is None:
        raise ConfigError(f"Unable to find {path}")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path} is not valid JSON: {e}") from e
    try:
        return SwitcherConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"{path} is invalid: {e}") from e


def parse_descriptor(entry: Any) -> EnvironmentDescriptor:
    """Validate one `environments` entry. Raises DescriptorError."""
    try:
        return EnvironmentDescriptor.model_validate(entry)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'entry'}: {err['msg']}"
            for err in e.errors()
        )
        raise DescriptorError(f"Malformed environment ({problems})") from e
