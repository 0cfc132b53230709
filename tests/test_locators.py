"""
Tests for resource, legislature and document discovery.
"""
import pytest

from ar_monitor.core.models import Legislature, Resource, extract_term_code
from ar_monitor.discovery.links import fingerprint_markup, last_path_segment, resolve_url
from ar_monitor.discovery.locators import DocumentLocator, LegislatureLocator, ResourceLocator

from conftest import FakeElement, FakePage, ROOT_URL, legislature_link, resource_link, xml_link

RESOURCE_URL = "https://example.com/Cidadania/Paginas/DADeputados.aspx"
LEGISLATURE_URL = "https://example.com/legislatures/XVII"


@pytest.fixture
def portal_page():
    return FakePage(pages={ROOT_URL: [
        resource_link("Deputados"),
        resource_link("Sessoes", text="Sessões"),
        resource_link("Iniciativas"),
        FakeElement(href="/Cidadania/Paginas/Outro.aspx", title="Outro", text="Outro"),
    ]})


@pytest.fixture
def resource():
    return Resource(identifier="res1", url=RESOURCE_URL, title="Deputados")


@pytest.fixture
def legislature():
    return Legislature(identifier="leg1", url=LEGISLATURE_URL,
                       name="Pasta XVII Legislatura", resource_identifier="res1")


class TestLinkHelpers:

    def test_fingerprint_deterministic(self):
        markup = '<a href="/x.xml">x</a>'
        assert fingerprint_markup(markup) == fingerprint_markup(markup)
        assert len(fingerprint_markup(markup)) == 16

    def test_fingerprint_changes_with_markup(self):
        assert fingerprint_markup('<a href="/x.xml">x</a>') != fingerprint_markup('<a href="/x.xml" >x</a>')

    def test_resolve_relative_and_absolute(self):
        assert resolve_url("/a/b.xml", ROOT_URL) == "https://example.com/a/b.xml"
        assert resolve_url("https://other.org/c.xml", ROOT_URL) == "https://other.org/c.xml"

    def test_last_path_segment(self):
        assert last_path_segment("https://example.com/dir/document.xml") == "document.xml"
        assert last_path_segment("https://example.com/") is None
        assert last_path_segment("https://example.com") is None


class TestResourceLocator:

    @pytest.mark.asyncio
    async def test_all_resources_without_filter(self, portal_page):
        await portal_page.goto(ROOT_URL)

        resources = await ResourceLocator().locate(portal_page, ROOT_URL)

        assert [r.name for r in resources] == ["Deputados", "Sessoes", "Iniciativas"]
        assert resources[0].url == RESOURCE_URL
        assert resources[1].title == "Sessões"

    @pytest.mark.asyncio
    async def test_empty_filter_keeps_all(self, portal_page):
        await portal_page.goto(ROOT_URL)

        resources = await ResourceLocator([]).locate(portal_page, ROOT_URL)

        assert len(resources) == 3

    @pytest.mark.asyncio
    async def test_filter_by_name(self, portal_page):
        await portal_page.goto(ROOT_URL)

        resources = await ResourceLocator(["Deputados"]).locate(portal_page, ROOT_URL)

        assert [r.name for r in resources] == ["Deputados"]

    @pytest.mark.asyncio
    async def test_identifier_stable_across_runs(self, portal_page):
        await portal_page.goto(ROOT_URL)

        first = await ResourceLocator().locate(portal_page, ROOT_URL)
        second = await ResourceLocator().locate(portal_page, ROOT_URL)

        assert [r.identifier for r in first] == [r.identifier for r in second]
        assert len({r.identifier for r in first}) == 3

    @pytest.mark.asyncio
    async def test_query_failure_propagates(self):
        page = FakePage(pages={ROOT_URL: []}, query_errors={ROOT_URL: RuntimeError("Evaluation failed")})
        await page.goto(ROOT_URL)

        with pytest.raises(RuntimeError, match="Evaluation failed"):
            await ResourceLocator().locate(page, ROOT_URL)


class TestLegislatureLocator:

    @pytest.fixture
    def page(self):
        page = FakePage(pages={RESOURCE_URL: [
            legislature_link("XVII"),
            legislature_link("XVI"),
            FakeElement(href="/legislatures/Legislatura", text="Ver todas"),
            legislature_link("XV"),
        ]})
        page.url = RESOURCE_URL
        return page

    @pytest.mark.asyncio
    async def test_matches_folder_titles_only(self, page, resource):
        legislatures = await LegislatureLocator().locate(page, resource)

        assert [leg.term_code for leg in legislatures] == ["XVII", "XVI", "XV"]
        assert all(leg.resource_identifier == "res1" for leg in legislatures)
        assert legislatures[0].url == LEGISLATURE_URL

    @pytest.mark.asyncio
    async def test_title_attribute_used_when_present(self, resource):
        page = FakePage(pages={RESOURCE_URL: [
            FakeElement(href="/leg/XIV", title="Pasta XIV Legislatura", text="XIV"),
        ]})
        page.url = RESOURCE_URL

        legislatures = await LegislatureLocator().locate(page, resource)

        assert [leg.name for leg in legislatures] == ["Pasta XIV Legislatura"]

    def test_term_code_ignores_lower_case_words(self):
        assert extract_term_code("Pasta vi XVII Legislatura") == "XVII"
        assert extract_term_code("Pasta XIV Legislatura") == "XIV"
        assert extract_term_code("pasta xvii") is None

    @pytest.mark.asyncio
    async def test_current_only_keeps_first(self, page, resource):
        legislatures = await LegislatureLocator(current_only=True).locate(page, resource)

        assert [leg.term_code for leg in legislatures] == ["XVII"]

    @pytest.mark.asyncio
    async def test_current_only_with_no_matches(self, resource):
        page = FakePage(pages={RESOURCE_URL: [FakeElement(href="/x", text="Nada")]})
        page.url = RESOURCE_URL

        assert await LegislatureLocator(current_only=True).locate(page, resource) == []

    @pytest.mark.asyncio
    async def test_term_filter(self, page, resource):
        legislatures = await LegislatureLocator(["xv", "XVII"]).locate(page, resource)

        assert [leg.term_code for leg in legislatures] == ["XVII", "XV"]


class TestDocumentLocator:

    @pytest.mark.asyncio
    async def test_discovers_xml_links(self, resource, legislature):
        page = FakePage(pages={LEGISLATURE_URL: [
            xml_link("/xml/deputados.xml", title="deputados.xml", text="deputados.xml"),
            xml_link("/xml/document.xml"),
            xml_link("/download?id=7", title="Registo.xml"),
            xml_link("/about.html", title="Sobre", text="Sobre"),
            xml_link("/xml/UPPER.XML", text="UPPER"),
        ]})
        page.url = LEGISLATURE_URL

        documents = await DocumentLocator().locate(page, legislature, resource, "Deputados")

        assert [d.filename for d in documents] == ["deputados.xml", "document.xml", "Registo.xml"]
        assert documents[0].url == "https://example.com/xml/deputados.xml"
        assert documents[2].url == "https://example.com/download?id=7"

    @pytest.mark.asyncio
    async def test_documents_carry_snapshots(self, resource, legislature):
        page = FakePage(pages={LEGISLATURE_URL: [xml_link("/xml/a.xml", title="a.xml")]})
        page.url = LEGISLATURE_URL

        [document] = await DocumentLocator().locate(page, legislature, resource, "Deputados")

        assert document.resource_name == "Deputados"
        assert document.resource_identifier == resource.identifier
        assert document.resource_url == resource.url
        assert document.legislature_identifier == legislature.identifier
        assert document.legislature_name == "Pasta XVII Legislatura"
        assert document.legislature_url == LEGISLATURE_URL

    def test_filename_prefers_title_then_text(self):
        assert DocumentLocator.resolve_filename("t.xml", "x.xml", "https://e.com/u.xml") == "t.xml"
        assert DocumentLocator.resolve_filename("", "x.xml", "https://e.com/u.xml") == "x.xml"

    def test_filename_from_url_path(self):
        assert DocumentLocator.resolve_filename("", "", "https://e.com/dir/document.xml") == "document.xml"

    def test_filename_unknown_for_root_path(self):
        assert DocumentLocator.resolve_filename("", "", "https://e.com/") == "unknown.xml"
