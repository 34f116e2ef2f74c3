"""
EnvSwitcher — composition root.

Ingests the configuration, builds one interceptor per enabled capability,
wraps the host surfaces handed to script code, populates the environment
menu and exposes the script-facing operations.
"""

import builtins
import logging
from typing import Any, Callable, Dict, List, Optional

from envswitch.interceptors.base import CapabilityInterceptor
from envswitch.interceptors.events import CallbackInterceptor
from envswitch.interceptors.fields import FieldOverrideInterceptor
from envswitch.interceptors.keybinds import ToggleInterceptor
from envswitch.interceptors.pages import PageInterceptor
from envswitch.interceptors.parts import ModelWrapper, PartFieldInterceptor, VisibilityInterceptor
from envswitch.interceptors.pings import HandlerMapInterceptor
from envswitch.interceptors.store import NamespaceInterceptor
from envswitch.loader.modules import ModuleLoader
from envswitch.logs import configure_logging
from envswitch.models.config import (
    CONFIG_RESOURCE,
    Capability,
    ConfigError,
    DescriptorError,
    SwitcherConfig,
    load_config,
    parse_descriptor,
)
from envswitch.models.environment import ROOT_ID, Environment
from envswitch.models.snapshot import OrderedFieldSnapshot, SettingsSnapshot, SlotSnapshot
from envswitch.registry.store import (
    EnvironmentRegistry,
    RegistrationError,
    UnknownEnvironmentError,
)
from envswitch.switch.controller import SwitchController

logger = logging.getLogger(__name__)


MENU_TITLE = "Root Environment"


def build_interceptors(
    config: SwitcherConfig, registry: EnvironmentRegistry, host: Any
) -> Dict[Capability, CapabilityInterceptor]:
    """One interceptor per enabled capability."""
    factories: Dict[Capability, Callable[[], CapabilityInterceptor]] = {
        Capability.EVENTS: lambda: CallbackInterceptor(registry),
        Capability.PINGS: lambda: HandlerMapInterceptor(registry, host.pings),
        Capability.KEYBINDS: lambda: ToggleInterceptor(registry, host.keybinds),
        Capability.PARTS: lambda: PartFieldInterceptor(
            registry, ordered=config.ordered_part_replay
        ),
        Capability.NAMEPLATE: lambda: FieldOverrideInterceptor(
            registry, Capability.NAMEPLATE, host.nameplate, SlotSnapshot
        ),
        Capability.RENDERER: lambda: FieldOverrideInterceptor(
            registry, Capability.RENDERER, host.renderer, SettingsSnapshot
        ),
        Capability.VANILLA_MODEL: lambda: FieldOverrideInterceptor(
            registry, Capability.VANILLA_MODEL, host.vanilla_model,
            OrderedFieldSnapshot, ordered=True,
        ),
        Capability.ACTION_WHEEL: lambda: PageInterceptor(registry, host.action_wheel),
        Capability.VISIBILITY: lambda: VisibilityInterceptor(registry),
        Capability.STORE: lambda: NamespaceInterceptor(registry, host.store),
    }
    return {
        capability: factories[capability]()
        for capability in config.enabled_capabilities()
    }


class EnvSwitcher:
    """A running switcher session over one host."""

    def __init__(
        self,
        host: Any,
        config: SwitcherConfig,
        read_resource: Callable[[str], Optional[str]],
    ):
        self.host = host
        self.config = config
        self.read_resource = read_resource
        self.menu: Any = None

        self.registry = EnvironmentRegistry()
        self.interceptors = build_interceptors(config, self.registry, host)
        self.registry.set_snapshot_factory(self._new_snapshots)

        self.models = self._build_model_wrapper()
        self.script_globals: Dict[str, Any] = dict(vars(builtins))
        self.loader = ModuleLoader(
            registry=self.registry,
            read_resource=read_resource,
            global_dirs=config.global_script_dirs,
            addressing_mode=config.addressing_mode,
            scripts_root=config.scripts_root,
            extension=config.script_extension,
            script_globals=self.script_globals,
        )
        self.controller = SwitchController(self.registry, self.interceptors, self.loader)
        self.script_globals.update(self._script_api())

        self.default_id = self._ingest_environments()
        self.registry.root.namespace["models"] = self._wrap_part(host.models)

    @classmethod
    def from_resources(
        cls,
        host: Any,
        read_resource: Callable[[str], Optional[str]],
        path: str = CONFIG_RESOURCE,
        configure_logs: bool = True,
    ) -> "EnvSwitcher":
        """Load the configuration resource and build a session. Raises ConfigError."""
        if configure_logs:
            configure_logging()
        try:
            config = load_config(read_resource, path)
        except ConfigError as e:
            logger.critical(f"{e}. Terminating the EnvSwitcher.")
            raise
        if configure_logs:
            configure_logging(config.debug)
        logger.debug("Debug mode is active")
        logger.debug(
            f"Global script directories: [ {', '.join(config.global_script_dirs)} ]"
        )
        return cls(host, config, read_resource)

    # --- Set-up ---

    def _new_snapshots(self) -> Dict[Capability, Any]:
        return {c: i.new_snapshot() for c, i in self.interceptors.items()}

    def _build_model_wrapper(self) -> Optional[ModelWrapper]:
        parts = self.interceptors.get(Capability.PARTS)
        visibility = self.interceptors.get(Capability.VISIBILITY)
        if parts is None and visibility is None:
            return None
        return ModelWrapper(self.registry, parts=parts, visibility=visibility)

    def _wrap_part(self, part: Any) -> Any:
        if self.models is None:
            return part
        return self.models.wrap(part)

    def _wrap(self, capability: Capability, host_object: Any) -> Any:
        interceptor = self.interceptors.get(capability)
        if interceptor is None:
            return host_object
        return interceptor.wrap(host_object)

    def _script_api(self) -> Dict[str, Any]:
        return {
            "events": self._wrap(Capability.EVENTS, self.host.events),
            "pings": self._wrap(Capability.PINGS, self.host.pings),
            "keybinds": self._wrap(Capability.KEYBINDS, self.host.keybinds),
            "nameplate": self._wrap(Capability.NAMEPLATE, self.host.nameplate),
            "renderer": self._wrap(Capability.RENDERER, self.host.renderer),
            "vanilla_model": self._wrap(Capability.VANILLA_MODEL, self.host.vanilla_model),
            "action_wheel": self._wrap(Capability.ACTION_WHEEL, self.host.action_wheel),
            "store": self._wrap(Capability.STORE, self.host.store),
            "require": self.require,
            "export": self.loader.export,
            "switch_environment": self.switch_environment,
            "environment_id": self.current_environment_id,
            "list_environments": self.list_environment_ids,
        }

    def _ingest_environments(self) -> str:
        default_id: Optional[str] = None
        for index, entry in enumerate(self.config.environments, start=1):
            try:
                descriptor = parse_descriptor(entry)
                env = self.registry.register(descriptor, self.config)
            except (DescriptorError, RegistrationError) as e:
                logger.error(f"{e}. Skipping environment #{index}")
                continue

            if descriptor.default:
                if default_id is not None:
                    logger.warning(
                        f"Default environment has already been set to {default_id}. "
                        f"Overwriting it to {env.id}."
                    )
                else:
                    logger.debug(f"Setting {env.id} as default environment.")
                default_id = env.id

            self._attach_models(env, descriptor.models)

        if not self.registry.list():
            logger.critical("No environments found. Terminating the EnvSwitcher.")
            raise ConfigError("No environments found")
        return default_id or ROOT_ID

    def _attach_models(self, env: Environment, model_names: List[str]) -> None:
        """Give the environment its own model root holding its listed models."""
        models = self.host.models
        owned = []
        for name in model_names:
            model = models.child(name)
            if model is None:
                logger.debug(f"Model {name} not found", extra={"env": env.id})
                continue
            models.remove_child(model)
            owned.append(model)

        model_root = models.new_part(env.id)
        if Capability.VISIBILITY in self.interceptors:
            model_root.set_visible(False)
        for model in owned:
            model_root.add_child(model)

        env.model_root = model_root
        env.namespace["models"] = self._wrap_part(model_root)

    def build_menu(self) -> Any:
        """Root's action-wheel page: one action per environment id."""
        action_wheel = self.host.action_wheel
        page = action_wheel.new_page(MENU_TITLE)
        for env_id in self.registry.list():
            action = page.new_action()
            action.set_title(env_id)
            action.on_left_click(
                lambda _action, env_id=env_id: self.switch_environment(env_id)
            )
        action_wheel.set_page(page)
        self.menu = page
        return page

    def start(self) -> "EnvSwitcher":
        """Install the menu while on root, then enter the default environment."""
        self.build_menu()
        self.switch_environment(self.default_id)
        return self

    # --- Script surface ---

    def switch_environment(self, env_id: Optional[str] = None) -> bool:
        """
        Switch to `env_id` (root when None). Unknown ids are reported and
        leave everything unchanged.
        """
        try:
            self.controller.switch_to(env_id)
        except UnknownEnvironmentError as e:
            logger.error(str(e), extra={"env": self.registry.active_id})
            return False
        return True

    def current_environment_id(self) -> str:
        return self.registry.active_id

    def list_environment_ids(self) -> List[str]:
        return self.registry.list()

    def require(self, name: str) -> Any:
        return self.loader.require(name)
