"""EnvSwitch data models."""

from envswitch.models.config import (
    AddressingMode,
    Capability,
    ConfigError,
    DescriptorError,
    EnvironmentDescriptor,
    SwitcherConfig,
    load_config,
    parse_descriptor,
)
from envswitch.models.environment import ROOT_ID, Environment, Lifecycle
from envswitch.models.snapshot import (
    CallbackSnapshot,
    FieldOverrideSnapshot,
    HandlerEntry,
    HandlerMapSnapshot,
    NamespaceSnapshot,
    OrderedFieldSnapshot,
    PageSnapshot,
    PartOverrideSnapshot,
    RecencyMap,
    SettingsSnapshot,
    SlotSnapshot,
    ToggleEntry,
    ToggleSnapshot,
    VisibilitySnapshot,
)

__all__ = [
    "AddressingMode",
    "CallbackSnapshot",
    "Capability",
    "ConfigError",
    "DescriptorError",
    "Environment",
    "EnvironmentDescriptor",
    "FieldOverrideSnapshot",
    "HandlerEntry",
    "HandlerMapSnapshot",
    "Lifecycle",
    "NamespaceSnapshot",
    "OrderedFieldSnapshot",
    "PageSnapshot",
    "PartOverrideSnapshot",
    "ROOT_ID",
    "RecencyMap",
    "SettingsSnapshot",
    "SlotSnapshot",
    "SwitcherConfig",
    "ToggleEntry",
    "ToggleSnapshot",
    "VisibilitySnapshot",
    "load_config",
    "parse_descriptor",
]
