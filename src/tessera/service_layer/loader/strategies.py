"""Load strategies, one per resource type.

Every strategy is a coroutine function ``(env, resource, scope) -> value``.
A strategy raises `ResourceFailedError` when its resource cannot be loaded
and may return None, in which case the resource URL becomes the result.
"""

from __future__ import annotations

import asyncio
import importlib
import importlib.abc
import importlib.util
import json
import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any

from tessera.domain.data import parse_json_text
from tessera.domain.errors import ResourceFailedError
from tessera.domain.values import ResourceDescriptor
from tessera.interfaces.id_generator import IdGenerator
from tessera.interfaces.surface import Node, Surface

from .markup import html_to_data
from .transport import HttpTransport, build_url, is_remote, local_path

logger = logging.getLogger(__name__)

CALLBACK_NAMESPACE = "tessera.callbacks"
DATA_METHODS = ("get", "post", "put", "delete", "jsonp", "fetch")

SUFFIX_TYPES = {
    "html": "html",
    "jpg": "image",
    "jpeg": "image",
    "gif": "image",
    "png": "image",
    "svg": "image",
    "bmp": "image",
    "css": "css",
    "py": "script",
    "xml": "xml",
}
DEFAULT_TYPE = "data"


@dataclass
class _SharedScript:
    node: Node
    task: asyncio.Future[Any]
    refs: int = 0


@dataclass
class LoaderEnv:
    """Collaborators shared by every strategy of one loader.

    Attributes:
        surface: Surface receiving link and script nodes.
        transport: Fetches remote and local bytes.
        files: Shared registry scripts publish their payload into.
        ids: Generates JSONP callback names.
    """

    surface: Surface
    transport: HttpTransport
    files: dict[str, Any]
    ids: IdGenerator
    scripts: dict[str, _SharedScript] = field(default_factory=dict)


Strategy = Callable[[LoaderEnv, ResourceDescriptor, Node], Awaitable[Any]]


def type_of(resource: ResourceDescriptor) -> str:
    """Return the strategy type of a resource: its explicit type, else its suffix's."""
    return resource.type or SUFFIX_TYPES.get(resource.suffix, DEFAULT_TYPE)


# ============================================================================
#                              Document resources
# ============================================================================


async def load_css(env: LoaderEnv, resource: ResourceDescriptor, scope: Node) -> Any:
    """Insert a stylesheet link into `scope` once and fetch the stylesheet."""
    if env.surface.find(scope, "link", rel="stylesheet", href=resource.url) is not None:
        logger.debug("Stylesheet %s already present", resource.url)
        return resource.url
    node = env.surface.create_element(
        "link", rel="stylesheet", type="text/css", href=resource.url, **resource.attrs
    )
    env.surface.append_child(scope, node)
    try:
        await env.transport.get_bytes(resource.url, no_cache=resource.no_cache)
    except ResourceFailedError:
        env.surface.remove(node)
        raise
    return None


async def load_image(env: LoaderEnv, resource: ResourceDescriptor, scope: Node) -> Any:
    """Preload the image bytes."""
    del scope
    await env.transport.get_bytes(resource.url, no_cache=resource.no_cache)


class _FetchedSourceLoader(importlib.abc.SourceLoader):
    """Source loader for script text that has been fetched already."""

    def __init__(self, url: str, source: str) -> None:
        self._url = url
        self._source = source

    def get_filename(self, fullname: str) -> str:
        del fullname
        return self._url

    def get_data(self, path: str) -> bytes:
        del path
        return self._source.encode("utf-8")


async def _execute_script(env: LoaderEnv, resource: ResourceDescriptor) -> Any:
    filename = resource.filename
    source = await env.transport.get_text(resource.url, no_cache=resource.no_cache)
    loader = _FetchedSourceLoader(resource.url, source)
    spec = importlib.util.spec_from_loader(
        f"tessera.files.{filename.rsplit('.', 1)[0]}", loader, origin=resource.url
    )
    module = importlib.util.module_from_spec(spec)
    module.__file__ = resource.url
    module.files = env.files
    env.files.pop(filename, None)
    try:
        loader.exec_module(module)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Executing script %s failed", resource.url)
        raise ResourceFailedError(resource.url, exc) from exc
    return env.files.get(filename)


async def load_script(env: LoaderEnv, resource: ResourceDescriptor, scope: Node) -> Any:
    """Fetch and execute a Python script; its result is what it publishes in `files`.

    Concurrent loads of the same file share one script node and one execution.
    The last load to settle removes the published payload and the node.
    """
    filename = resource.filename
    shared = env.scripts.get(filename)
    if shared is None:
        node = env.surface.create_element("script", src=resource.url, **resource.attrs)
        env.surface.append_child(scope, node)
        shared = _SharedScript(node, asyncio.ensure_future(_execute_script(env, resource)))
        env.scripts[filename] = shared
    shared.refs += 1
    try:
        return await asyncio.shield(shared.task)
    finally:
        shared.refs -= 1
        if shared.refs == 0 and env.scripts.get(filename) is shared:
            del env.scripts[filename]
            env.files.pop(filename, None)
            env.surface.remove(shared.node)


def _member(module: ModuleType, url: str, name: str) -> Any:
    value: Any = module
    for part in name.split("."):
        try:
            value = getattr(value, part)
        except AttributeError as exc:
            raise ResourceFailedError(url, exc) from exc
    return value


def _import(url: str, target: str) -> ModuleType:
    if target.endswith(".py") or "/" in target or target.startswith("file:"):
        path = local_path(target)
        spec = importlib.util.spec_from_file_location(f"tessera.modules.{path.stem}", path)
        if spec is None or spec.loader is None:
            raise ResourceFailedError(url, path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module
    return importlib.import_module(target)


async def load_module(env: LoaderEnv, resource: ResourceDescriptor, scope: Node) -> Any:
    """Import a module by dotted name or file path and select members.

    ``url#member`` or ``import_`` select one (dotted) member; a list in
    ``import_`` selects several and yields a mapping of name to member.
    """
    del env, scope
    target, _, fragment = resource.url.partition("#")
    members = resource.import_ or fragment or None
    try:
        module = _import(resource.url, target)
    except ResourceFailedError:
        raise
    except Exception as exc:  # pylint: disable=broad-except
        raise ResourceFailedError(resource.url, exc) from exc
    if members is None:
        return module
    if isinstance(members, list):
        return {name: _member(module, resource.url, name) for name in members}
    return _member(module, resource.url, members)


# ============================================================================
#                               Data exchange
# ============================================================================


def _jsonp_payload(text: str, callback: str) -> Any:
    pattern = re.compile(rf"^\s*{re.escape(callback)}\s*\((.*)\)\s*;?\s*$", re.DOTALL)
    match = pattern.match(text)
    if match is None:
        raise ValueError("response is not a callback invocation")
    return json.loads(match.group(1))


async def _jsonp(env: LoaderEnv, resource: ResourceDescriptor, scope: Node) -> Any:
    callback = f"{CALLBACK_NAMESPACE}.callback{env.ids.new_id()}"
    params = dict(resource.params or {})
    params["callback"] = callback
    url = build_url(resource.url, params)
    node = env.surface.create_element("script", src=url, **resource.attrs)
    env.surface.append_child(scope, node)
    try:
        text = (
            await env.transport.request(
                "get", url, headers=resource.headers, no_cache=resource.no_cache
            )
        ).text
        try:
            return _jsonp_payload(text, callback)
        except ValueError as exc:
            raise ResourceFailedError(resource.url, text) from exc
    finally:
        env.surface.remove(node)


async def _fetch(env: LoaderEnv, resource: ResourceDescriptor) -> str:
    init = dict(resource.init)
    method = str(init.get("method", "get")).lower()
    url = resource.url
    body = init.get("body")
    if resource.params:
        if method == "post":
            body = json.dumps(resource.params)
        else:
            url = build_url(url, resource.params)
    response = await env.transport.request(
        method, url, content=body, headers=init.get("headers"), no_cache=resource.no_cache
    )
    return response.text


async def exchange(env: LoaderEnv, resource: ResourceDescriptor, scope: Node) -> str | Any:
    """Perform a data exchange and return the raw response text (or JSONP payload)."""
    if resource.method not in DATA_METHODS:
        resource.method = "post"
    if not is_remote(resource.url):
        return (await env.transport.read_local(resource.url)).decode("utf-8")
    match resource.method:
        case "jsonp":
            return await _jsonp(env, resource, scope)
        case "fetch":
            return await _fetch(env, resource)
        case "get":
            url = build_url(resource.url, resource.params)
            response = await env.transport.request(
                "get", url, headers=resource.headers, no_cache=resource.no_cache
            )
        case "post" | "put":
            response = await env.transport.request(
                resource.method,
                resource.url,
                json_body=resource.params,
                headers=resource.headers,
                no_cache=resource.no_cache,
            )
        case _:
            response = await env.transport.request(
                resource.method, resource.url, headers=resource.headers, no_cache=resource.no_cache
            )
    return response.text


async def load_data(env: LoaderEnv, resource: ResourceDescriptor, scope: Node) -> Any:
    """Exchange data; JSON-looking text responses are parsed."""
    data = await exchange(env, resource, scope)
    return parse_json_text(data) if isinstance(data, str) else data


async def load_html(env: LoaderEnv, resource: ResourceDescriptor, scope: Node) -> Any:
    """GET markup and convert it into structured data."""
    resource.method = "get"
    return html_to_data(await exchange(env, resource, scope))


async def load_xml(env: LoaderEnv, resource: ResourceDescriptor, scope: Node) -> Any:
    """Retrieve an XML document (POST unless another method is given) as an element tree."""
    if resource.method not in ("get", "post", "put", "delete"):
        resource.method = "post"
    text = await exchange(env, resource, scope)
    try:
        return ET.fromstring(text)
    except ET.ParseError as exc:
        raise ResourceFailedError(resource.url, exc) from exc


STRATEGIES: dict[str, Strategy] = {
    "html": load_html,
    "image": load_image,
    "css": load_css,
    "script": load_script,
    "module": load_module,
    "xml": load_xml,
    "data": load_data,
}
