"""
Module Loader — environment-scoped `require`.

Resolves a logical script name across the active environment's search
directories followed by the global fallback directories, executes the
first match in that environment's namespace and memoizes the values the
module exported. A module runs at most once per environment.
"""

import builtins
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from envswitch.models.config import AddressingMode
from envswitch.models.environment import Environment
from envswitch.registry.store import EnvironmentRegistry

logger = logging.getLogger(__name__)


class ScriptNotFoundError(ImportError):
    """No search directory yields source text for the requested module."""
    pass


class ModuleLoader:
    """
    Loads script modules into the active environment.

    Module code sees the shared script globals read-only: they are
    installed as the namespace's ``__builtins__``, so top-level bindings
    land in the environment namespace and never in the shared one.
    """

    def __init__(
        self,
        registry: EnvironmentRegistry,
        read_resource: Callable[[str], Optional[str]],
        global_dirs: Sequence[str] = (),
        addressing_mode: AddressingMode = AddressingMode.DOTTED,
        scripts_root: str = "scripts",
        extension: str = ".py",
        script_globals: Optional[Dict[str, Any]] = None,
    ):
        self.registry = registry
        self.read_resource = read_resource
        self.global_dirs = list(global_dirs)
        self.addressing_mode = addressing_mode
        self.scripts_root = scripts_root
        self.extension = extension
        self.script_globals: Dict[str, Any] = (
            script_globals if script_globals is not None else dict(vars(builtins))
        )
        self._frames: List[List[Any]] = []

    # --- Path resolution ---

    def resolve_path(
        self, directory: str, name: str, mode: Optional[AddressingMode] = None
    ) -> str:
        """Resource path for `name` inside `directory`."""
        mode = mode or self.addressing_mode
        if mode == AddressingMode.LITERAL:
            joined = "/".join([self.scripts_root, directory, name])
            components = [c for c in joined.split("/") if c]
            return "/".join(components) + self.extension

        logical = name if not directory else f"{directory}/{name}"
        converted = logical.replace(".", "/")
        return "/".join(c for c in (self.scripts_root, converted) if c) + self.extension

    def search_dirs(self, env: Environment) -> List[str]:
        """Environment directories first, then global fallbacks."""
        return list(env.script_dirs) + self.global_dirs

    def candidate_paths(self, env: Environment, name: str) -> List[Tuple[str, str]]:
        """(label, resource path) pairs in search order."""
        candidates = []
        for directory in self.search_dirs(env):
            label = name if not directory else f"{directory}/{name}"
            candidates.append(
                (label, self.resolve_path(directory, name, env.addressing_mode))
            )
        return candidates

    # --- Loading ---

    def load(self, name: str, env: Optional[Environment] = None) -> Tuple[Any, ...]:
        """
        Load `name` into `env` (the active environment by default) and
        return every exported value.
        """
        if env is None:
            env = self.registry.active
        if name in env.modules:
            return env.modules[name]

        for label, path in self.candidate_paths(env, name):
            source = self.read_resource(path)
            if source is None:
                continue
            logger.debug(f"Loading {label} from {path}", extra={"env": env.id})
            result = self._execute(env, name, label, source)
            env.modules[name] = result
            return result

        raise ScriptNotFoundError(
            f"Unable to find script by path {name} in any directories "
            f"available to environment {env.id}"
        )

    def require(self, name: str) -> Any:
        """
        Script-facing `require`: None for no exported values, the value
        itself for one, a tuple for several.
        """
        values = self.load(name)
        if not values:
            return None
        if len(values) == 1:
            return values[0]
        return values

    def export(self, *values: Any) -> None:
        """Set the values the currently executing module produces."""
        if not self._frames:
            raise RuntimeError("export() can only be called while a module is loading")
        self._frames[-1][:] = values

    def namespace_for(self, env: Environment) -> Dict[str, Any]:
        namespace = env.namespace
        namespace.setdefault("__builtins__", self.script_globals)
        return namespace

    def _execute(self, env: Environment, name: str, label: str, source: str) -> Tuple[Any, ...]:
        code = compile(source, label, "exec")
        namespace = self.namespace_for(env)
        namespace["__name__"] = name
        frame: List[Any] = []
        self._frames.append(frame)
        try:
            exec(code, namespace)
        finally:
            self._frames.pop()
        return tuple(frame)
