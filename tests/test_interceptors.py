"""Tests for the capability interceptors, driven through the script surface."""

import pytest

from envswitch.host.memory import InMemoryHost
from envswitch.host.resources import MappingResources
from envswitch.interceptors.base import HandlerTypeError
from envswitch.models.config import Capability, SwitcherConfig
from envswitch.runtime import EnvSwitcher


def _make_switcher(**config):
    host = InMemoryHost()
    config = SwitcherConfig(
        environments=[{"id": "alpha"}, {"id": "beta"}],
        **config,
    )
    switcher = EnvSwitcher(host, config, MappingResources()).start()
    return switcher, host, switcher.script_globals


def _models(switcher, env_id):
    return switcher.registry.lookup(env_id).namespace["models"]


class TestCallbackBus:
    def test_handlers_follow_their_environment(self):
        switcher, host, api = _make_switcher()
        handler = lambda: "alpha"
        switcher.switch_environment("alpha")
        api["events"].tick.register(handler, "h")
        assert host.events.tick.handlers() == [(handler, "h")]

        switcher.switch_environment("beta")
        assert host.events.tick.get_registered_count() == 0

        switcher.switch_environment("alpha")
        assert host.events.tick.handlers() == [(handler, "h")]

    def test_insertion_order_restored(self):
        switcher, host, api = _make_switcher()
        first, second, third = (lambda: 1), (lambda: 2), (lambda: 3)
        switcher.switch_environment("alpha")
        api["events"].render.register(first)
        api["events"].render.register(second, "named")
        api["events"].render = third

        switcher.switch_environment("beta")
        switcher.switch_environment("alpha")
        assert host.events.render.fire() == [1, 2, 3]

    def test_remove_and_clear(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        api["events"].tick.register(lambda: 1, "a")
        api["events"].tick.register(lambda: 2, "b")
        assert api["events"].tick.remove("a") == 1
        api["events"].world_tick.register(lambda: 3)
        api["events"].world_tick.clear()

        switcher.switch_environment("beta")
        switcher.switch_environment("alpha")
        assert host.events.tick.fire() == [2]
        assert host.events.world_tick.get_registered_count() == 0

    def test_handler_type_checked(self):
        switcher, host, api = _make_switcher()
        with pytest.raises(HandlerTypeError):
            api["events"].tick.register("not a function")
        with pytest.raises(HandlerTypeError):
            api["events"].tick = 5
        with pytest.raises(HandlerTypeError):
            api["events"].tick.register(lambda: None, 12)
        assert host.events.tick.get_registered_count() == 0

    def test_unknown_event(self):
        switcher, host, api = _make_switcher()
        with pytest.raises(AttributeError):
            api["events"].not_an_event.register(lambda: None)

    def test_capture_reads_host_ground_truth(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        api["events"].tick.register(lambda: "tracked")
        untracked = lambda: "untracked"
        host.events.tick.register(untracked)

        switcher.switch_environment("beta")
        switcher.switch_environment("alpha")
        assert host.events.tick.fire() == ["tracked", "untracked"]


class TestPings:
    def test_pings_follow_their_environment(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        api["pings"].greet = lambda who: f"hello {who}"
        assert api["pings"].greet("bob") == "hello bob"

        switcher.switch_environment("beta")
        assert host.pings.get("greet") is None
        api["pings"].greet = lambda who: f"hi {who}"

        switcher.switch_environment("alpha")
        assert host.pings.send("greet", "amy") == "hello amy"
        switcher.switch_environment("beta")
        assert host.pings.send("greet", "amy") == "hi amy"

    def test_unregister_clears(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        api["pings"].register("wave", lambda: None)
        api["pings"].unregister("wave")
        snapshot = switcher.registry.active.snapshot(Capability.PINGS)
        assert snapshot.handlers == {}

    def test_handler_type_checked(self):
        switcher, host, api = _make_switcher()
        with pytest.raises(HandlerTypeError):
            api["pings"].wave = "nope"
        assert host.pings.names() == []


class TestKeybinds:
    def test_names_are_prefixed_by_owner(self):
        switcher, host, api = _make_switcher()
        api["keybinds"].new_keybind("menu", "key.m")
        switcher.switch_environment("alpha")
        api["keybinds"].new_keybind("jump", "key.space")
        names = [k.get_name() for k in host.keybinds.all()]
        assert names == ["menu", "[alpha] jump"]

    def test_disabled_while_owner_inactive(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        jump = api["keybinds"].new_keybind("jump", "key.space")
        crouch = api["keybinds"].new_keybind("crouch", "key.shift")
        crouch.set_enabled(False)

        switcher.switch_environment("beta")
        assert not jump.is_enabled()
        assert not crouch.is_enabled()

        switcher.switch_environment("alpha")
        assert jump.is_enabled()
        assert not crouch.is_enabled()

    def test_ownership_is_permanent(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        jump = api["keybinds"].new_keybind("jump", "key.space")
        switcher.switch_environment("beta")
        switcher.switch_environment(None)
        interceptor = switcher.interceptors[Capability.KEYBINDS]
        assert interceptor.owner_of(jump._host) == "alpha"
        assert switcher.registry.lookup("beta").snapshot(Capability.KEYBINDS).controls == []


class TestPartFields:
    def test_fields_follow_their_environment(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        arm = _models(switcher, "alpha").new_part("arm")
        arm.set_pos(1, 2, 3)
        arm.set_color(1, 0, 0)

        switcher.switch_environment("beta")
        assert arm.get_pos() is None
        assert arm.get_color() is None

        switcher.switch_environment("alpha")
        assert arm.get_pos() == (1, 2, 3)
        assert arm.get_color() == (1, 0, 0)

    def test_empty_call_clears(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        arm = _models(switcher, "alpha").new_part("arm")
        arm.set_pos(1, 2, 3)
        arm.set_pos()
        snapshot = switcher.registry.active.snapshot(Capability.PARTS)
        assert len(snapshot.overrides) == 0

    def test_wrong_arity_not_recorded(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        arm = _models(switcher, "alpha").new_part("arm")
        with pytest.raises(TypeError):
            arm.set_pos(1, 2)
        assert len(switcher.registry.active.snapshot(Capability.PARTS).overrides) == 0

    def test_ordered_replay_uses_recency(self):
        switcher, host, api = _make_switcher(ordered_part_replay=True)
        switcher.switch_environment("alpha")
        models = _models(switcher, "alpha")
        part_a = models.new_part("part_a")
        part_b = models.new_part("part_b")
        part_a.set_pos(1, 1, 1)
        part_b.set_rot(2, 2, 2)
        part_a.set_pos(3, 3, 3)

        switcher.switch_environment("beta")
        host.journal.clear()
        switcher.switch_environment("alpha")
        replayed = [c for c in host.journal if c[0] in ("part_a", "part_b")]
        assert replayed == [
            ("part_b", "set_rot", (2, 2, 2)),
            ("part_a", "set_pos", (3, 3, 3)),
        ]

    def test_ordered_replay_is_stable_across_cycles(self):
        switcher, host, api = _make_switcher(ordered_part_replay=True)
        switcher.switch_environment("alpha")
        models = _models(switcher, "alpha")
        part_a = models.new_part("part_a")
        part_b = models.new_part("part_b")
        part_a.set_pos(1, 1, 1)
        part_b.set_rot(2, 2, 2)
        part_a.set_pos(3, 3, 3)

        switcher.switch_environment("beta")
        switcher.switch_environment("alpha")
        switcher.switch_environment("beta")
        host.journal.clear()
        switcher.switch_environment("alpha")
        replayed = [c[0] for c in host.journal if c[0] in ("part_a", "part_b")]
        assert replayed == ["part_b", "part_a"]

    def test_unordered_replay_uses_first_write(self):
        switcher, host, api = _make_switcher(ordered_part_replay=False)
        switcher.switch_environment("alpha")
        models = _models(switcher, "alpha")
        part_a = models.new_part("part_a")
        part_b = models.new_part("part_b")
        part_a.set_pos(1, 1, 1)
        part_b.set_rot(2, 2, 2)
        part_a.set_pos(3, 3, 3)

        switcher.switch_environment("beta")
        host.journal.clear()
        switcher.switch_environment("alpha")
        replayed = [c for c in host.journal if c[0] in ("part_a", "part_b")]
        assert replayed == [
            ("part_a", "set_pos", (3, 3, 3)),
            ("part_b", "set_rot", (2, 2, 2)),
        ]

    def test_navigation_returns_wrapped_parts(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        models = _models(switcher, "alpha")
        models.new_part("arm")
        arm = models.child("arm")
        assert arm is models.get_children()[0]
        assert arm.get_parent() is models
        arm.set_scale(2, 2, 2)
        switcher.switch_environment("beta")
        assert arm.get_scale() is None


class TestVisibility:
    def test_model_root_visible_only_while_active(self):
        switcher, host, api = _make_switcher()
        alpha_root = switcher.registry.lookup("alpha").model_root
        beta_root = switcher.registry.lookup("beta").model_root
        assert not alpha_root.get_visible()
        assert not beta_root.get_visible()

        switcher.switch_environment("alpha")
        assert alpha_root.get_visible()
        assert not beta_root.get_visible()

        switcher.switch_environment("beta")
        assert not alpha_root.get_visible()
        assert beta_root.get_visible()

    def test_hidden_state_restored(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        _models(switcher, "alpha").set_visible(False)
        switcher.switch_environment("beta")
        switcher.switch_environment("alpha")
        alpha = switcher.registry.lookup("alpha")
        assert not alpha.model_root.get_visible()
        assert alpha.snapshot(Capability.VISIBILITY).visible is False

    def test_other_model_root_stays_hidden(self):
        switcher, host, api = _make_switcher()
        alpha = switcher.registry.lookup("alpha")
        root_models = switcher.registry.root.namespace["models"]
        root_models.child("alpha").set_visible(True)
        assert not alpha.model_root.get_visible()
        assert len(switcher.registry.root.snapshot(Capability.PARTS).overrides) == 0

        switcher.switch_environment("beta")
        assert not alpha.model_root.get_visible()

    def test_owner_applies_flag_written_elsewhere(self):
        switcher, host, api = _make_switcher()
        alpha = switcher.registry.lookup("alpha")
        switcher.switch_environment("alpha")
        switcher.switch_environment("beta")
        _models(switcher, "beta").get_parent().child("alpha").set_visible(False)
        assert alpha.snapshot(Capability.VISIBILITY).visible is False

        switcher.switch_environment("alpha")
        assert not alpha.model_root.get_visible()

    def test_flag_written_before_first_activation(self):
        switcher, host, api = _make_switcher()
        alpha = switcher.registry.lookup("alpha")
        switcher.registry.root.namespace["models"].child("alpha").set_visible(False)
        switcher.switch_environment("alpha")
        assert not alpha.model_root.get_visible()

    def test_other_model_root_arity_checked(self):
        switcher, host, api = _make_switcher()
        with pytest.raises(TypeError):
            switcher.registry.root.namespace["models"].child("alpha").set_visible(True, False)


class TestGlobalFields:
    def test_nameplate_and_renderer(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        api["nameplate"].set_entity_text("Alpha")
        api["renderer"].set_shadow_radius(0.5)
        api["renderer"].set_field("camera_pos", 0, 1, 0)

        switcher.switch_environment("beta")
        assert host.nameplate.get_field("entity_text") is None
        assert host.renderer.get_field("camera_pos") is None
        api["nameplate"].set_entity_text("Beta")

        switcher.switch_environment("alpha")
        assert host.nameplate.get_field("entity_text") == ("Alpha",)
        assert host.renderer.get_field("shadow_radius") == (0.5,)
        assert host.renderer.get_field("camera_pos") == (0, 1, 0)

    def test_wrong_arity_rejected(self):
        switcher, host, api = _make_switcher()
        with pytest.raises(TypeError):
            api["renderer"].set_fov(1, 2)
        with pytest.raises(AttributeError):
            api["renderer"].set_field("volume", 1)

    def test_vanilla_model_replays_in_recency_order(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        api["vanilla_model"].set_head_visible(False)
        api["vanilla_model"].set_body_pos(0, 1, 0)
        api["vanilla_model"].set_head_visible(True)

        switcher.switch_environment("beta")
        host.journal.clear()
        switcher.switch_environment("alpha")
        replayed = [c for c in host.journal if c[0] == "vanilla_model"]
        assert replayed == [
            ("vanilla_model", "set_body_pos", (0, 1, 0)),
            ("vanilla_model", "set_head_visible", (True,)),
        ]


class TestActionWheel:
    def test_page_follows_environment(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        page = api["action_wheel"].new_page("Alpha")
        api["action_wheel"].set_page(page)

        switcher.switch_environment("beta")
        assert host.action_wheel.get_current_page() is None

        switcher.switch_environment("alpha")
        assert host.action_wheel.get_current_page() is page

    def test_root_menu_restored(self):
        switcher, host, api = _make_switcher()
        assert host.action_wheel.get_current_page() is switcher.menu
        switcher.switch_environment("alpha")
        assert host.action_wheel.get_current_page() is None
        switcher.switch_environment(None)
        assert host.action_wheel.get_current_page() is switcher.menu


class TestStore:
    def test_one_environment_present_at_a_time(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        api["store"].put("mood", "happy")

        switcher.switch_environment("beta")
        assert host.store.items() == {}
        api["store"].put("mood", "sad")

        switcher.switch_environment("alpha")
        assert host.store.items() == {"mood": "happy"}
        switcher.switch_environment("beta")
        assert host.store.items() == {"mood": "sad"}

    def test_entire_namespace_captured(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        host.store.put("raw", 1)
        switcher.switch_environment("beta")
        assert host.store.get("raw") is None
        switcher.switch_environment("alpha")
        assert host.store.get("raw") == 1

    def test_none_removes(self):
        switcher, host, api = _make_switcher()
        switcher.switch_environment("alpha")
        api["store"].put("mood", "happy")
        api["store"].put("mood", None)
        assert switcher.registry.active.snapshot(Capability.STORE).entries == {}


class TestDisabledCapabilities:
    def test_disabled_category_is_not_wrapped(self):
        switcher, host, api = _make_switcher(capabilities={"events": False, "store": False})
        assert api["events"] is host.events
        assert api["store"] is host.store
        assert Capability.EVENTS not in switcher.interceptors
        assert Capability.EVENTS not in switcher.registry.root.snapshots

    def test_disabled_category_is_shared(self):
        switcher, host, api = _make_switcher(capabilities={"events": False})
        switcher.switch_environment("alpha")
        api["events"].tick.register(lambda: "alpha")
        switcher.switch_environment("beta")
        assert host.events.tick.fire() == ["alpha"]

    def test_models_raw_without_parts_or_visibility(self):
        switcher, host, api = _make_switcher(
            capabilities={"parts": False, "visibility": False}
        )
        alpha = switcher.registry.lookup("alpha")
        assert alpha.namespace["models"] is alpha.model_root
        assert alpha.model_root.get_visible()

    def test_visibility_without_parts(self):
        switcher, host, api = _make_switcher(capabilities={"parts": False})
        switcher.switch_environment("alpha")
        models = _models(switcher, "alpha")
        models.set_visible(False)
        arm = models.new_part("arm")
        arm.set_pos(1, 1, 1)
        switcher.switch_environment("beta")
        assert arm.get_pos() == (1, 1, 1)
        switcher.switch_environment("alpha")
        assert not switcher.registry.active.model_root.get_visible()
