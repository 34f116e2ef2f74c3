"""
EnvSwitch API — FastAPI endpoints.

Exposes a running switcher session for:
- Environment listing and inspection
- Switching the active environment
- Capability configuration
"""

from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from envswitch.models.config import Capability
from envswitch.models.environment import Environment
from envswitch.registry.store import UnknownEnvironmentError
from envswitch.runtime import EnvSwitcher


# --- Request/Response Models ---

class SwitchRequest(BaseModel):
    environment_id: Optional[str] = None


class SwitchResponse(BaseModel):
    active: str
    switched: bool


def describe_environment(env: Environment) -> dict:
    """Serializable summary of an environment."""
    return {
        "id": env.id,
        "lifecycle": env.lifecycle.value,
        "script_dirs": list(env.script_dirs),
        "auto_scripts": list(env.auto_scripts),
        "loaded_modules": sorted(env.modules),
        "snapshot": {
            capability.value: snapshot.entry_count()
            for capability, snapshot in env.snapshots.items()
        },
    }


# --- Application Factory ---

def create_app(switcher: EnvSwitcher) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="EnvSwitch API",
        description="Isolated script environments over a single host",
        version="0.1.0",
    )

    app.state.switcher = switcher

    # === ENVIRONMENTS ===

    @app.get("/environments")
    def list_environments():
        """Registered environment ids in menu order."""
        return {
            "active": switcher.current_environment_id(),
            "environments": switcher.list_environment_ids(),
        }

    @app.get("/environments/active")
    def get_active_environment():
        """The environment currently owning host state."""
        return describe_environment(switcher.registry.active)

    @app.get("/environments/{env_id}")
    def get_environment(env_id: str):
        """Lifecycle, search path, loaded modules and snapshot sizes."""
        env = switcher.registry.lookup(env_id)
        if env is None:
            raise HTTPException(404, "Environment not found")
        return describe_environment(env)

    # === SWITCHING ===

    @app.post("/switch", response_model=SwitchResponse)
    def switch_environment(req: SwitchRequest):
        """Switch to an environment; null switches to root."""
        previous = switcher.current_environment_id()
        try:
            active = switcher.controller.switch_to(req.environment_id)
        except UnknownEnvironmentError:
            raise HTTPException(404, "Environment not found")
        return SwitchResponse(active=active.id, switched=active.id != previous)

    # === CAPABILITIES ===

    @app.get("/capabilities")
    def get_capabilities():
        """Enabled capabilities and the part replay mode."""
        config = switcher.config
        return {
            "capabilities": {c.value: c in switcher.interceptors for c in Capability},
            "ordered_part_replay": config.ordered_part_replay,
        }

    return app
