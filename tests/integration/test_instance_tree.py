"""Integration tests building whole instance trees on one engine."""

import asyncio

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from tessera.adapters.id_generators import SimpleIdGenerator
from tessera.bootstrap import bootstrap
from tessera.config import Settings
from tessera.domain.component import ComponentDefinition
from tessera.domain.instance import LifecycleState

from tests.helpers.blueprints import recording_blueprint

# pylint: disable=magic-value-comparison

CDN = "https://cdn.test"

QUIZ = f"""
from tessera.domain.instance import Instance


class Quiz(Instance):
    async def ready(self):
        self.menu_was_ready = self.menu.is_ready

    async def start(self):
        surface = self.engine.surface
        heading = surface.create_element("h1")
        heading.text = self.texts["title"]
        surface.clear(self.element)
        surface.append_child(self.element, heading)


files["tessera.quiz-1.0.0.py"] = {{
    "name": "quiz",
    "version": "1.0.0",
    "blueprint": Quiz,
    "config": {{
        "css": ["load", "{CDN}/quiz.css"],
        "texts": ["load", "{CDN}/texts.html"],
        "menu": ["instance", "{CDN}/tessera.menu.py", {{"entries": ["get", "menus", "main.entries"]}}],
    }},
}}
"""

MENU = """
from tessera.domain.instance import Instance


class Menu(Instance):
    is_ready = False

    def init(self):
        self.entries = [entry.upper() for entry in self.entries]

    def ready(self):
        self.is_ready = True


files["tessera.menu.py"] = {"name": "menu", "blueprint": Menu}
"""


@pytest.fixture(name="app_web")
def fixture_app_web(web):
    web.add(f"{CDN}/tessera.quiz-1.0.0.min.py", QUIZ)
    web.add(f"{CDN}/tessera.menu.py", MENU)
    web.add(f"{CDN}/quiz.css", "h1 { font-weight: bold }")
    web.add(
        f"{CDN}/texts.html",
        '<tessera-template key="title">Capitals</tessera-template>'
        '<tessera-template key="intro">Name the capital.</tessera-template>',
    )
    return web


async def test_application_from_urls(engine, surface, app_web) -> None:
    """A component loaded by URL builds its nested tree, resources and store data."""
    await engine.set("menus", {"key": "main", "entries": ["play", "quit"]})
    app = surface.create_element("main", id="app")
    surface.append_child(surface.body, app)

    quiz = await engine.start(f"{CDN}/tessera.quiz-1.0.0.min.py", {"root": app})

    assert quiz.index == "quiz-1-0-0-1"
    assert quiz.texts == {"title": "Capitals", "intro": "Name the capital."}
    assert quiz.menu.index == "menu-1"
    assert quiz.menu.parent is quiz
    assert quiz.menu.entries == ["PLAY", "QUIT"]
    assert quiz.menu.lifecycle is LifecycleState.DONE
    assert quiz.menu_was_ready

    assert app.children == [quiz.root]
    heading = surface.find(quiz.shadow, "h1")
    assert heading.text == "Capitals"
    assert surface.find(quiz.shadow, "link", href=f"{CDN}/quiz.css") is not None
    assert surface.find(surface.head, "link") is None
    assert len(app_web.requested(f"{CDN}/tessera.quiz-1.0.0.min.py")) == 1
    assert engine.files == {}


async def test_two_engine_versions_are_isolated(engine, app_web) -> None:
    """Two engine versions keep separate registries but never reuse an instance index."""
    url = f"{CDN}/tessera.menu.py"
    first = await engine.instance(url, {"entries": []})
    other = await engine.instance(url, {"entries": [], "engine": "2.0.0"})
    again = await engine.instance(url, {"entries": []})

    assert (first.index, other.index, again.index) == ("menu-1", "menu-2", "menu-3")
    assert other.engine is engine.versions.get("2.0.0")
    assert other.component.blueprint is first.component.blueprint
    assert other.engine.registry.get("menu") is not engine.registry.get("menu")


def tree_config(node: ComponentDefinition, shape: list, label: str) -> dict:
    """Return the configuration of a tree whose children follow `shape`."""
    return {
        "label": label,
        "kids": [
            ["instance", node, tree_config(node, child, f"{label}.{position}")]
            for position, child in enumerate(shape)
        ],
    }


def count_nodes(shape: list) -> int:
    """Return the number of nodes of a tree shape."""
    return 1 + sum(count_nodes(child) for child in shape)


trees = st.recursive(st.just([]), lambda children: st.lists(children, max_size=3), max_leaves=12)


@pytest.mark.property
@settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(shape=trees)
def test_tree_identity_and_order(shape) -> None:
    """Every node gets a unique index; parents init before and get ready after children."""

    async def scenario():
        events: list[tuple[str, str]] = []
        node = ComponentDefinition("node", recording_blueprint(events))
        engine = bootstrap("1.0.0", settings=Settings(), id_generator=SimpleIdGenerator())
        try:
            root = await engine.instance(node, tree_config(node, shape, "r"))
            return events, engine.lifecycle.discover(root)
        finally:
            await engine.aclose()

    events, instances = asyncio.run(scenario())

    total = count_nodes(shape)
    assert len(instances) == total
    assert len({instance.index for instance in instances}) == total
    assert sorted(instance.id for instance in instances) == list(range(1, total + 1))

    inits = [label for phase, label in events if phase == "init"]
    readies = [label for phase, label in events if phase == "ready"]
    assert len(inits) == len(readies) == total
    assert events[:total] == [("init", label) for label in inits]
    for label in inits[1:]:
        parent = label.rsplit(".", 1)[0]
        assert inits.index(parent) < inits.index(label)
        assert readies.index(parent) > readies.index(label)
