"""
Integration Tests for Services
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from notion_export.exceptions import GatewayError, UnauthorizedError
from notion_export.pipeline.run_export import main as cli_main
from notion_export.renderers import BaseDocumentRenderer
from notion_export.schemas.export import ExportConfig, ExportFormat, ExportResult
from notion_export.services import ExportService, SearchService

from conftest import FakeGateway, make_page


class FakeRenderer(BaseDocumentRenderer):
    """Records rendered titles and returns fixed bytes."""

    def __init__(self, export_format: str, fail: bool = False):
        self.extension = export_format
        self.fail = fail
        self.rendered = []

    def render(self, title, blocks, metadata):
        if self.fail:
            raise RuntimeError("renderer exploded")
        self.rendered.append((title, blocks, metadata["id"]))
        return f"{self.extension}:{title}".encode()


def fake_renderers(fail_docx: bool = False):
    return {
        "pdf": FakeRenderer("pdf"),
        "docx": FakeRenderer("docx", fail=fail_docx),
    }


def make_service(settings, gateway, **kwargs):
    kwargs.setdefault("renderers", fake_renderers())
    return ExportService(settings, gateway=gateway, **kwargs)


class TestExportPage:
    """Tests for ExportService.export_page."""

    @pytest.mark.asyncio
    async def test_exports_nested_tree(self, settings, three_level_gateway, tmp_path):
        """Test every page gets a folder with body, metadata and renders."""
        service = make_service(settings, three_level_gateway)
        config = ExportConfig(output_dir=tmp_path)

        result = await service.export_page("root", config)

        assert result.success is True
        assert result.errors == []
        assert result.total_files == 6
        assert [page.page_id for page in result.pages] == ["root", "child", "grandchild"]

        grandchild_dir = tmp_path / "Root Page" / "Child Page" / "Grandchild Page"
        assert (grandchild_dir / "content.md").read_text(encoding="utf-8") == "- one\n- two"
        assert (grandchild_dir / "Grandchild Page.pdf").read_bytes() == b"pdf:Grandchild Page"
        assert (grandchild_dir / "Grandchild Page.docx").is_file()
        metadata = json.loads((tmp_path / "Root Page" / "metadata.json").read_text(encoding="utf-8"))
        assert metadata["id"] == "root"
        assert metadata["url"] == "https://www.notion.so/root"

    @pytest.mark.asyncio
    async def test_body_is_transformed_once_for_all_formats(self, settings, three_level_gateway, tmp_path):
        """Test both renderers receive the same transformed blocks."""
        renderers = fake_renderers()
        service = make_service(settings, three_level_gateway, renderers=renderers)

        await service.export_page("root", ExportConfig(output_dir=tmp_path))

        pdf_blocks = renderers["pdf"].rendered[0][1]
        docx_blocks = renderers["docx"].rendered[0][1]
        assert pdf_blocks is docx_blocks

    @pytest.mark.asyncio
    async def test_without_subpages(self, settings, three_level_gateway, tmp_path):
        """Test only the root is exported and children are never listed."""
        service = make_service(settings, three_level_gateway)
        config = ExportConfig(output_dir=tmp_path, include_subpages=False)

        result = await service.export_page("root", config)

        assert result.success is True
        assert [page.page_id for page in result.pages] == ["root"]
        assert three_level_gateway.listing_calls == []
        assert [path.name for path in tmp_path.iterdir()] == ["Root Page"]
        assert not (tmp_path / "Root Page" / "Child Page").exists()

    @pytest.mark.asyncio
    async def test_single_format(self, settings, three_level_gateway, tmp_path):
        """Test formats restrict the rendered artifacts."""
        service = make_service(settings, three_level_gateway)
        config = ExportConfig(output_dir=tmp_path, formats="docx", include_subpages=False)

        result = await service.export_page("root", config)

        assert config.formats == [ExportFormat.DOCX]
        assert [path.endswith(".docx") for path in result.exported_files] == [True]

    @pytest.mark.asyncio
    async def test_renderer_failure_is_recorded(self, settings, three_level_gateway, tmp_path):
        """Test a failing format does not stop other formats or pages."""
        service = make_service(settings, three_level_gateway, renderers=fake_renderers(fail_docx=True))

        result = await service.export_page("root", ExportConfig(output_dir=tmp_path))

        assert result.success is False
        assert len(result.exported_files) == 3
        assert all(path.endswith(".pdf") for path in result.exported_files)
        assert len(result.errors) == 3
        assert "Failed to export page root to docx" in result.errors[0]
        assert (tmp_path / "Root Page" / "content.md").is_file()

    @pytest.mark.asyncio
    async def test_failed_child_omitted(self, settings, tmp_path):
        """Test an unreachable child leaves the rest of the export intact."""
        gateway = FakeGateway(
            pages={"root": make_page("root", "Root"), "ok": make_page("ok", "Ok")},
            children={"root": ["gone", "ok"]},
            failing={"gone"},
        )
        service = make_service(settings, gateway)

        result = await service.export_page("root", ExportConfig(output_dir=tmp_path))

        assert result.success is True
        assert [page.page_id for page in result.pages] == ["root", "ok"]

    @pytest.mark.asyncio
    async def test_missing_root(self, settings, tmp_path):
        """Test an unreachable root yields an unsuccessful result."""
        service = make_service(settings, FakeGateway(pages={}))

        result = await service.export_page("missing", ExportConfig(output_dir=tmp_path))

        assert result.success is False
        assert result.exported_files == []
        assert "Not found" in result.errors[0]

    @pytest.mark.asyncio
    async def test_name_collision_reported(self, settings, tmp_path):
        """Test siblings sharing a directory name are reported."""
        gateway = FakeGateway(
            pages={
                "root": make_page("root", "Root"),
                "a": make_page("a", "My Page?"),
                "b": make_page("b", "My Page*"),
            },
            children={"root": ["a", "b"]},
        )
        service = make_service(settings, gateway)

        result = await service.export_page("root", ExportConfig(output_dir=tmp_path))

        assert any(error.startswith("Name collision") for error in result.errors)
        assert (tmp_path / "Root" / "My Page_" / "content.md").is_file()

    @pytest.mark.asyncio
    async def test_unwritable_child_is_isolated(self, settings, tmp_path):
        """Test a child whose folder cannot be created fails alone; root and siblings are rendered."""
        gateway = FakeGateway(
            pages={
                "root": make_page("root", "Root"),
                "fine": make_page("fine", "Fine"),
                "wide": make_page("wide", "日" * 100),
                "under": make_page("under", "Under Wide"),
            },
            children={"root": ["fine", "wide"], "wide": ["under"]},
        )
        service = make_service(settings, gateway)
        config = ExportConfig(output_dir=tmp_path, formats="docx")

        result = await service.export_page("root", config)

        assert [(page.page_id, page.success) for page in result.pages] == [
            ("root", True),
            ("fine", True),
            ("wide", False),
        ]
        assert result.success is False
        assert result.pages[2].errors[0].startswith("Failed to write page wide:")
        assert (tmp_path / "Root" / "Root.docx").is_file()
        assert (tmp_path / "Root" / "Fine" / "Fine.docx").is_file()

    @pytest.mark.asyncio
    async def test_blocked_directory_recorded(self, settings, tmp_path):
        """Test a file in place of a page folder is recorded as that page's error."""
        gateway = FakeGateway(
            pages={"root": make_page("root", "Root"), "child": make_page("child", "Child")},
            children={"root": ["child"]},
        )
        (tmp_path / "Root").mkdir()
        (tmp_path / "Root" / "Child").write_text("occupied")
        service = make_service(settings, gateway)

        result = await service.export_page("root", ExportConfig(output_dir=tmp_path))

        assert result.total_files == 2
        assert result.pages[1].page_id == "child"
        assert result.pages[1].success is False
        assert len(result.errors) == 1

    @pytest.mark.asyncio
    async def test_dot_title_written_under_output(self, settings, tmp_path):
        """Test a page titled ".." is written inside the output directory."""
        gateway = FakeGateway(pages={"root": make_page("root", "..")}, bodies={"root": "body"})
        output = tmp_path / "out"
        service = make_service(settings, gateway)

        result = await service.export_page("root", ExportConfig(output_dir=output, include_subpages=False))

        assert result.success is True
        assert (output / "root" / "content.md").read_text(encoding="utf-8") == "body"
        assert not (tmp_path / "content.md").exists()

    @pytest.mark.asyncio
    async def test_real_renderers(self, settings, three_level_gateway, tmp_path):
        """Test the bundled renderers produce DOCX and PDF files."""
        service = ExportService(settings, gateway=three_level_gateway)

        result = await service.export_page("root", ExportConfig(output_dir=tmp_path, include_subpages=False))

        assert result.success is True
        assert (tmp_path / "Root Page" / "Root Page.docx").read_bytes()[:2] == b"PK"
        assert (tmp_path / "Root Page" / "Root Page.pdf").read_bytes()[:4] == b"%PDF"


class TestFatalConditions:
    """Tests for conditions that stop an export before any work."""

    @pytest.mark.asyncio
    async def test_missing_api_key(self, settings_without_key, tmp_path):
        """Test no key means no files and one error."""
        service = ExportService(settings_without_key, renderers=fake_renderers())
        output = tmp_path / "out"

        result = await service.export_page("root", ExportConfig(output_dir=output))

        assert result.success is False
        assert len(result.errors) == 1
        assert "API key" in result.errors[0]
        assert not output.exists()

    @pytest.mark.asyncio
    async def test_missing_api_key_batch(self, settings_without_key, tmp_path):
        """Test batch exports fail the same way and emit no progress."""
        service = ExportService(settings_without_key, renderers=fake_renderers())
        progress = MagicMock()

        result = await service.export_collection("db", ExportConfig(output_dir=tmp_path), progress)

        assert result.success is False
        assert len(result.errors) == 1
        progress.assert_not_called()

    @pytest.mark.asyncio
    async def test_output_root_is_a_file(self, settings, three_level_gateway, tmp_path):
        """Test an unusable output root is fatal."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        service = make_service(settings, three_level_gateway)

        result = await service.export_pages(["root"], ExportConfig(output_dir=blocker))

        assert result.success is False
        assert result.pages == []
        assert "output directory" in result.errors[0]

    @pytest.mark.asyncio
    async def test_output_root_created(self, settings, three_level_gateway, tmp_path):
        """Test a missing output root is created."""
        service = make_service(settings, three_level_gateway)
        output = tmp_path / "a" / "b"

        result = await service.export_page("root", ExportConfig(output_dir=output, include_subpages=False))

        assert result.success is True
        assert (output / "Root Page").is_dir()


class TestBatchExports:
    """Tests for export_pages and export_collection."""

    def collection_gateway(self):
        return FakeGateway(
            pages={
                "m1": make_page("m1", "First"),
                "m2": make_page("m2", "Second", child_page={"title": "ignored"}),
                "m3": make_page("m3", "Third"),
            },
            members={"db": ["m1", "bad", "m2", "m3"]},
            bodies={"m1": "one", "m2": "two", "m3": "three"},
            children={"m1": ["never"]},
            failing={"bad"},
        )

    @pytest.mark.asyncio
    async def test_collection_continues_after_failure(self, settings, tmp_path):
        """Test a failing member is recorded and the rest are exported."""
        service = make_service(settings, self.collection_gateway())

        result = await service.export_collection("db", ExportConfig(output_dir=tmp_path))

        assert result.success is True
        assert [page.page_id for page in result.pages] == ["m1", "bad", "m2", "m3"]
        assert result.pages[1].success is False
        assert result.errors == [result.pages[1].errors[0]]
        assert result.errors[0].startswith("Failed to process page bad:")
        assert result.total_files == 6

    @pytest.mark.asyncio
    async def test_collection_pages_are_flat(self, settings, tmp_path):
        """Test members land directly under the root without sub-pages or metadata."""
        gateway = self.collection_gateway()
        service = make_service(settings, gateway)

        await service.export_collection("db", ExportConfig(output_dir=tmp_path))

        assert sorted(path.name for path in tmp_path.iterdir()) == ["First", "Second", "Third"]
        assert (tmp_path / "First" / "content.md").read_text(encoding="utf-8") == "one"
        assert not (tmp_path / "First" / "metadata.json").exists()
        assert all(call[0] == "members" for call in gateway.listing_calls)

    @pytest.mark.asyncio
    async def test_collection_progress_sync_sink(self, settings, tmp_path):
        """Test one progress event per member, failures included."""
        events = []
        service = make_service(settings, self.collection_gateway())

        await service.export_collection("db", ExportConfig(output_dir=tmp_path), events.append)

        assert [event.completed for event in events] == [1, 2, 3, 4]
        assert {event.total for event in events} == {4}
        assert [event.current_page_id for event in events] == ["m1", "bad", "m2", "m3"]

    @pytest.mark.asyncio
    async def test_collection_progress_async_sink(self, settings, tmp_path):
        """Test awaitable progress sinks are awaited."""
        sink = AsyncMock()
        service = make_service(settings, self.collection_gateway())

        await service.export_collection("db", ExportConfig(output_dir=tmp_path), sink)

        assert sink.await_count == 4
        assert sink.await_args.args[0].completed == 4

    @pytest.mark.asyncio
    async def test_collection_all_failed(self, settings, tmp_path):
        """Test no files means an unsuccessful collection export."""
        gateway = FakeGateway(pages={}, members={"db": ["x", "y"]})
        service = make_service(settings, gateway)

        result = await service.export_collection("db", ExportConfig(output_dir=tmp_path))

        assert result.success is False
        assert len(result.errors) == 2

    @pytest.mark.asyncio
    async def test_unknown_collection(self, settings, tmp_path):
        """Test a collection that cannot be listed fails without progress."""
        events = []
        service = make_service(settings, FakeGateway(pages={}))

        result = await service.export_collection("nope", ExportConfig(output_dir=tmp_path), events.append)

        assert result.success is False
        assert events == []

    @pytest.mark.asyncio
    async def test_export_pages_reports_each_root(self, settings, three_level_gateway, tmp_path):
        """Test one entry and one progress event per requested page."""
        events = []
        service = make_service(settings, three_level_gateway)
        config = ExportConfig(output_dir=tmp_path, include_subpages=False)

        result = await service.export_pages(["root", "missing", "child"], config, events.append)

        assert [page.page_id for page in result.pages] == ["root", "missing", "child"]
        assert [page.success for page in result.pages] == [True, False, True]
        assert result.success is False
        assert [event.completed for event in events] == [1, 2, 3]
        assert result.total_files == 4


class TestSearchService:
    """Tests for SearchService."""

    def gateway(self):
        return FakeGateway(
            pages={
                "root": make_page("root", "Roadmap"),
                "a": make_page("a", "Alpha"),
                "b": make_page("b", "Beta"),
                "leaf": make_page("leaf", "Leaf"),
            },
            children={"root": ["a", "b", "lost"], "a": ["leaf"]},
            failing={"lost"},
        )

    @pytest.mark.asyncio
    async def test_search(self, settings):
        """Test results carry titles from the shared title rule."""
        service = SearchService(settings, gateway=self.gateway())

        results = await service.search("roadmap")

        assert [(page.id, page.title) for page in results] == [("root", "Roadmap")]
        assert results[0].parent == {"type": "workspace", "workspace": True}

    @pytest.mark.asyncio
    async def test_page_children(self, settings):
        """Test children keep order, flag grandchildren and drop failures."""
        service = SearchService(settings, gateway=self.gateway())

        children = await service.get_page_children("root")

        assert [(child.id, child.has_children) for child in children] == [("a", True), ("b", False)]

    @pytest.mark.asyncio
    async def test_page_tree_depth(self, settings):
        """Test the tree stops at the requested depth."""
        service = SearchService(settings, gateway=self.gateway())

        shallow = await service.get_page_tree("root", max_depth=1)
        deep = await service.get_page_tree("root")

        assert [child.children for child in shallow.children] == [[], []]
        assert deep.children[0].children[0].title == "Leaf"

    @pytest.mark.asyncio
    async def test_page_tree_skips_bodies(self, settings):
        """Test browsing the tree never fetches page content."""
        gateway = self.gateway()

        await SearchService(settings, gateway=gateway).get_page_tree("root")

        assert gateway.body_calls == []

    @pytest.mark.asyncio
    async def test_connection_ok(self, settings):
        """Test a successful users/me call."""
        gateway = MagicMock()
        gateway.request = AsyncMock(return_value={"object": "user"})

        assert await SearchService(settings, gateway=gateway).test_connection() == {"success": True}
        gateway.request.assert_awaited_once_with("GET", "users/me")

    @pytest.mark.asyncio
    async def test_connection_unauthorized(self, settings):
        """Test invalid credentials."""
        gateway = MagicMock()
        gateway.request = AsyncMock(side_effect=UnauthorizedError("bad key", status_code=401))

        outcome = await SearchService(settings, gateway=gateway).test_connection()

        assert outcome == {"success": False, "error": "Invalid API key or insufficient permissions"}

    @pytest.mark.asyncio
    async def test_connection_other_error(self, settings):
        """Test other failures report their message."""
        gateway = MagicMock()
        gateway.request = AsyncMock(side_effect=GatewayError("server down", status_code=503))

        outcome = await SearchService(settings, gateway=gateway).test_connection()

        assert outcome == {"success": False, "error": "server down"}

    @pytest.mark.asyncio
    async def test_connection_without_key(self, settings_without_key):
        """Test a missing key is reported without a request."""
        outcome = await SearchService(settings_without_key).test_connection()

        assert outcome == {"success": False, "error": "No API key configured"}


class TestCommandLine:
    """Tests for the export CLI."""

    def patched_service(self, result):
        service = MagicMock()
        service.export_page = AsyncMock(return_value=result)
        service.export_pages = AsyncMock(return_value=result)
        service.export_collection = AsyncMock(return_value=result)
        service.aclose = AsyncMock()
        return service

    def test_single_page(self, tmp_path, capsys):
        """Test one page id runs a page export."""
        service = self.patched_service(ExportResult(success=True, exported_files=["a.pdf"]))

        with patch("notion_export.pipeline.run_export.ExportService", return_value=service):
            code = cli_main(["--page-id", "abc", "--output", str(tmp_path), "--formats", "pdf"])

        assert code == 0
        page_id, config = service.export_page.await_args.args
        assert page_id == "abc"
        assert config.formats == [ExportFormat.PDF]
        assert config.output_dir == tmp_path.resolve()
        service.aclose.assert_awaited_once()
        assert "1 files created" in capsys.readouterr().out

    def test_several_pages_without_subpages(self, tmp_path):
        """Test repeated page ids run a batch export."""
        service = self.patched_service(ExportResult(success=True))

        with patch("notion_export.pipeline.run_export.ExportService", return_value=service):
            cli_main(["--page-id", "a", "--page-id", "b", "--output", str(tmp_path), "--no-subpages"])

        page_ids, config, _ = service.export_pages.await_args.args
        assert page_ids == ["a", "b"]
        assert config.include_subpages is False

    def test_database_failure_exit_code(self, tmp_path, capsys):
        """Test an unsuccessful result exits with status 1."""
        service = self.patched_service(ExportResult(success=False, errors=["boom"]))

        with patch("notion_export.pipeline.run_export.ExportService", return_value=service):
            code = cli_main(["--database-id", "db", "--output", str(tmp_path)])

        assert code == 1
        assert service.export_collection.await_args.args[0] == "db"
        assert "boom" in capsys.readouterr().out

    def test_target_required(self):
        """Test a page or database id is mandatory."""
        with pytest.raises(SystemExit):
            cli_main([])


class TestServer:
    """Tests for the MCP application."""

    @pytest.mark.asyncio
    async def test_tools_registered(self):
        """Test every tool is exposed by the server."""
        from fastmcp import Client
        from notion_export.server import create_app

        async with Client(create_app()) as client:
            tools = await client.list_tools()

        assert {tool.name for tool in tools} == {
            "search_pages",
            "get_page_children",
            "get_page_tree",
            "export_pages",
            "export_collection",
            "test_connection",
        }

    @pytest.mark.asyncio
    async def test_connection_tool(self):
        """Test the connection check is callable through the server and closes its client."""
        from fastmcp import Client
        from notion_export.server import create_app

        service = MagicMock()
        service.test_connection = AsyncMock(return_value={"success": False, "error": "Invalid API key"})
        service.aclose = AsyncMock()

        with patch("notion_export.tools.check_connection.SearchService", return_value=service):
            async with Client(create_app()) as client:
                result = await client.call_tool("test_connection", {})

        assert result.data == {"success": False, "error": "Invalid API key"}
        service.aclose.assert_awaited_once()
