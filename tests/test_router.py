from __future__ import annotations

import asyncio

import pytest

from workstate.engine.commands import CommandRegistry
from workstate.engine.errors import CommandNotFoundError
from workstate.engine.models import Location
from workstate.engine.router import Router, parse_location


def test_parse_location_strips_base() -> None:
    location = parse_location("/base/lab/workspaces/foo?reset#top", base="/base/")
    assert location == Location(path="/lab/workspaces/foo", search="?reset", hash="#top")
    assert location.request == "/lab/workspaces/foo?reset#top"
    assert parse_location("").path == "/"


@pytest.mark.asyncio
async def test_rules_run_in_rank_order_until_stop() -> None:
    commands = CommandRegistry()
    calls: list[str] = []

    async def first(location: Location):
        calls.append("first")

    def second(location: Location):
        calls.append("second")
        return Router.stop

    async def third(location: Location):
        calls.append("third")

    commands.add_command("first", first)
    commands.add_command("second", second)
    commands.add_command("third", third)
    router = Router(commands, url="/lab?reset")
    router.register("third", r".?", rank=30)
    router.register("second", r"reset", rank=20)
    router.register("first", r".?", rank=10)

    routed: list[Location] = []
    router.routed.connect(lambda _sender, location: routed.append(location))
    await router.route()

    assert calls == ["first", "second"]
    assert routed == [Location(path="/lab", search="?reset")]


@pytest.mark.asyncio
async def test_failing_rule_does_not_stop_routing() -> None:
    commands = CommandRegistry()
    calls: list[str] = []

    async def broken(location: Location):
        raise RuntimeError("boom")

    async def fine(location: Location):
        calls.append(location.path)

    commands.add_command("broken", broken)
    commands.add_command("fine", fine)
    router = Router(commands, url="/lab")
    router.register("broken", r".?", rank=1)
    router.register("fine", r".?", rank=2)

    await router.route()
    assert calls == ["/lab"]


@pytest.mark.asyncio
async def test_navigate_routes_unless_silent() -> None:
    commands = CommandRegistry()
    seen: list[str] = []

    async def record(location: Location):
        seen.append(location.request)

    commands.add_command("record", record)
    router = Router(commands, url="/lab")
    router.register("record", r".?")

    router.navigate("/lab/tree", silent=True)
    await asyncio.sleep(0.01)
    assert seen == []
    assert router.current.path == "/lab/tree"

    router.navigate("/lab/other")
    await asyncio.sleep(0.01)
    assert seen == ["/lab/other"]
    assert router.history == ["/lab", "/lab/tree", "/lab/other"]


@pytest.mark.asyncio
async def test_hard_navigation_reloads() -> None:
    router = Router(CommandRegistry(), url="/lab")
    reloads: list[str] = []
    router.reloaded.connect(lambda _sender, request: reloads.append(request))

    router.navigate("/lab", hard=True)
    router.navigate("/lab/workspaces/bar", hard=True, silent=True)

    assert reloads == ["/lab", "/lab/workspaces/bar"]


@pytest.mark.asyncio
async def test_unknown_command_raises() -> None:
    commands = CommandRegistry()
    with pytest.raises(CommandNotFoundError):
        await commands.execute("missing")


def test_duplicate_command_rejected() -> None:
    commands = CommandRegistry()
    commands.add_command("a", lambda: None, label="A")
    with pytest.raises(ValueError):
        commands.add_command("a", lambda: None)
    assert commands.label("a") == "A"
    assert commands.list_commands() == ["a"]
