"""
Shared fixtures: an in-memory stand-in for a Playwright page.
"""
import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

import re
from contextlib import asynccontextmanager

import pytest

from ar_monitor.core.config import RunConfig, Settings

ROOT_URL = "https://example.com/test"

_ATTR_SELECTOR = re.compile(r'^a\[(\w+)([*^$]?)="([^"]*)"\]$')


class FakeElement:
    """Element handle exposing the subset of the Playwright API we use."""

    def __init__(self, href=None, title=None, text=None, markup=None):
        self.attributes = {"href": href, "title": title}
        self.text = text
        if markup is None:
            attrs = "".join(
                f' {name}="{value}"' for name, value in self.attributes.items() if value is not None
            )
            markup = f"<a{attrs}>{text or ''}</a>"
        self.markup = markup

    async def get_attribute(self, name):
        return self.attributes.get(name)

    async def text_content(self):
        return self.text

    async def evaluate(self, expression):
        return self.markup


class FakeResponse:
    def __init__(self, body):
        self.body = body

    async def text(self):
        return self.body


def _select(elements, selector):
    if selector == "a":
        return list(elements)
    match = _ATTR_SELECTOR.match(selector)
    if not match:
        raise ValueError(f"Unsupported selector in fake page: {selector}")
    attr, op, value = match.groups()
    selected = []
    for element in elements:
        actual = element.attributes.get(attr)
        if actual is None:
            continue
        if (op == "" and actual == value) or (op == "*" and value in actual) \
                or (op == "^" and actual.startswith(value)) or (op == "$" and actual.endswith(value)):
            selected.append(element)
    return selected


class FakePage:
    """Serves canned anchors per URL and canned bodies per download URL."""

    def __init__(self, pages=None, bodies=None, navigation_errors=None, query_errors=None):
        self.pages = pages or {}
        self.bodies = bodies or {}
        self.navigation_errors = navigation_errors or {}
        self.query_errors = query_errors or {}
        self.url = None
        self.visited = []
        self.waits = []

    async def goto(self, url, wait_until=None, **kwargs):
        self.visited.append(url)
        if url in self.navigation_errors:
            raise self.navigation_errors[url]
        self.url = url
        if url in self.bodies:
            return FakeResponse(self.bodies[url])
        if url in self.pages:
            return FakeResponse("<html></html>")
        return None

    async def wait_for_timeout(self, timeout):
        self.waits.append(timeout)

    async def query_selector_all(self, selector):
        if self.url in self.query_errors:
            raise self.query_errors[self.url]
        return _select(self.pages.get(self.url, []), selector)

    async def query_selector(self, selector):
        elements = await self.query_selector_all(selector)
        return elements[0] if elements else None


class FakeSession:
    """Session factory yielding one FakePage and tracking release."""

    def __init__(self, page):
        self.page = page
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def __call__(self, config):
        self.opened += 1
        try:
            yield self.page
        finally:
            self.closed += 1


def resource_link(name, text=None):
    href = f"/Cidadania/Paginas/DA{name}.aspx"
    return FakeElement(href=href, title="Recursos", text=text or name)


def legislature_link(code, href=None):
    return FakeElement(href=href or f"/legislatures/{code}", text=f"Pasta {code} Legislatura")


def xml_link(path, title=None, text=None):
    return FakeElement(href=path, title=title, text=text)


@pytest.fixture
def test_settings():
    return Settings(portal_url=ROOT_URL, settle_delay_ms=0)


@pytest.fixture
def run_config(tmp_path):
    return RunConfig(data_dir=tmp_path)
