"""
Tests for the MCP tool layer.

Tools run against a real ZoteroAPIClient backed by the in-memory fake API.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from fastmcp import FastMCP
import pytest

from zotero_web_mcp.models.common import ExportFormat
from zotero_web_mcp.models.inputs import (
    AddTagsInput,
    AddToCollectionInput,
    ClearCacheInput,
    CreateCollectionInput,
    CreateItemByIdentifierInput,
    CreateItemInput,
    CreatorInput,
    DeleteItemInput,
    DownloadAttachmentInput,
    ExportInput,
    GetFulltextInput,
    GetItemInput,
    SearchItemsInput,
    UpdateCollectionInput,
    UpdateItemInput,
)
from zotero_web_mcp.tools import register_all_tools
from zotero_web_mcp.tools.items import build_item_data
from zotero_web_mcp.utils.errors import TranslatorNotFoundError

TOOL_MODULES = ["search", "items", "collections", "tags", "export", "attachments"]


@pytest.fixture
def mcp():
    server = FastMCP("test")
    register_all_tools(server)
    return server


@pytest.fixture(autouse=True)
def patched_client(api_client):
    patches = [
        patch(f"zotero_web_mcp.tools.{name}.get_zotero_client", return_value=api_client)
        for name in TOOL_MODULES
    ]
    for p in patches:
        p.start()
    yield api_client
    for p in patches:
        p.stop()


@pytest.fixture
def translation():
    client = MagicMock()
    client.base_url = "http://localhost:1969"
    client.search = AsyncMock()
    client.is_available = AsyncMock(return_value=True)
    with patch("zotero_web_mcp.tools.items.get_translation_client", return_value=client):
        yield client


async def call(mcp, name, ctx, **kwargs):
    tool = await mcp.get_tool(name)
    return await tool.fn(ctx=ctx, **kwargs)


@pytest.mark.asyncio
async def test_all_tools_registered(mcp):
    tools = await mcp.get_tools()

    assert set(tools) == {
        "search_items", "get_item", "get_recent_items", "get_item_children",
        "get_item_fulltext", "get_trash_items", "get_saved_searches",
        "list_collections", "get_collection", "get_collection_items",
        "create_collection", "update_collection", "delete_collection",
        "list_tags", "add_tags_to_item", "create_item", "create_item_by_identifier",
        "update_item", "delete_item", "add_item_to_collection",
        "check_translation_server", "export_bibliography",
        "download_attachment", "clear_attachment_cache",
    }


class TestReadTools:
    @pytest.mark.asyncio
    async def test_search_reports_paging(self, mcp, mock_ctx, fake_api):
        for n in range(30):
            fake_api.add_item(f"ITEM{n:04d}", creators=[{"firstName": "Ada", "lastName": "Lovelace"}])

        result = await call(mcp, "search_items", mock_ctx, params=SearchItemsInput(limit=25))

        assert result.success
        assert result.total == 30
        assert result.count == 25
        assert result.has_more is True
        assert result.next_start == 25
        assert result.items[0].creators == "Lovelace, Ada"

    @pytest.mark.asyncio
    async def test_missing_item_is_structured_failure(self, mcp, mock_ctx):
        result = await call(mcp, "get_item", mock_ctx, params=GetItemInput(item_key="NOPE"))

        assert result.success is False
        assert result.key == "NOPE"
        assert "not found" in result.error.lower()
        mock_ctx.error.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fulltext_absent_is_not_an_error(self, mcp, mock_ctx, fake_api):
        fake_api.add_item("ATT1")

        result = await call(
            mcp, "get_item_fulltext", mock_ctx, params=GetFulltextInput(item_key="ATT1")
        )

        assert result.success is False
        assert result.error is None
        assert "No full-text" in result.message
        mock_ctx.error.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fulltext_page(self, mcp, mock_ctx, fake_api):
        fake_api.add_item("ATT1")
        fake_api.fulltext["ATT1"] = {"content": "y" * 1500, "totalChars": 1500}

        result = await call(
            mcp,
            "get_item_fulltext",
            mock_ctx,
            params=GetFulltextInput(item_key="ATT1", limit=1000),
        )

        assert result.success
        assert len(result.content) == 1000
        assert result.next_offset == 1000
        assert result.total_chars == 1500


class TestWriteTools:
    @pytest.mark.asyncio
    async def test_create_item_from_template(self, mcp, mock_ctx, fake_api):
        params = CreateItemInput(
            item_type="book",
            title="Dune",
            creators=[CreatorInput(first_name="Frank", last_name="Herbert")],
            tags=["scifi"],
        )

        result = await call(mcp, "create_item", mock_ctx, params=params)

        assert result.success, result.error
        data = fake_api.items[result.key]["data"]
        assert data["title"] == "Dune"
        assert data["creators"] == [
            {"creatorType": "author", "firstName": "Frank", "lastName": "Herbert"}
        ]
        assert data["tags"] == [{"tag": "scifi"}]
        assert data["relations"] == {}

    def test_build_item_data_drops_fields_not_given(self):
        template = {"itemType": "book", "title": "", "date": "", "DOI": "", "creators": [{}]}

        data = build_item_data(template, CreateItemInput(item_type="book", title="T", date="1965"))

        assert data == {"itemType": "book", "title": "T", "date": "1965"}

    @pytest.mark.asyncio
    async def test_create_by_identifier_appends_tags(self, mcp, mock_ctx, fake_api, translation):
        translation.search.return_value = [
            {"itemType": "journalArticle", "title": "Found", "tags": [{"tag": "orig"}]}
        ]

        result = await call(
            mcp,
            "create_item_by_identifier",
            mock_ctx,
            params=CreateItemByIdentifierInput(
                identifier="10.1/x", tags=["extra"], collections=["COLL1"]
            ),
        )

        assert result.success, result.error
        assert result.title == "Found"
        data = fake_api.items[result.key]["data"]
        assert data["tags"] == [{"tag": "orig"}, {"tag": "extra"}]
        assert data["collections"] == ["COLL1"]

    @pytest.mark.asyncio
    async def test_create_by_identifier_without_translator(self, mcp, mock_ctx, translation):
        translation.search.side_effect = TranslatorNotFoundError(
            "No translator found for identifier: junk", identifier="junk", status_code=501
        )

        result = await call(
            mcp,
            "create_item_by_identifier",
            mock_ctx,
            params=CreateItemByIdentifierInput(identifier="junk"),
        )

        assert result.success is False
        assert "junk" in result.error
        assert result.identifier == "junk"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, mcp, mock_ctx, fake_api):
        fake_api.add_item("ITEM1")

        updated = await call(
            mcp, "update_item", mock_ctx, params=UpdateItemInput(item_key="ITEM1", title="New")
        )
        deleted = await call(
            mcp, "delete_item", mock_ctx, params=DeleteItemInput(item_key="ITEM1")
        )

        assert updated.success and deleted.success
        assert fake_api.items["ITEM1"]["data"]["title"] == "New"
        assert fake_api.items["ITEM1"]["data"]["deleted"] == 1

    def test_update_requires_a_field(self):
        with pytest.raises(ValueError):
            UpdateItemInput(item_key="ITEM1")

    @pytest.mark.asyncio
    async def test_tags_and_collection_membership(self, mcp, mock_ctx, fake_api):
        fake_api.add_item("ITEM1", tags=[{"tag": "a"}])

        tagged = await call(
            mcp, "add_tags_to_item", mock_ctx, params=AddTagsInput(item_key="ITEM1", tags=["a", "b"])
        )
        filed = await call(
            mcp,
            "add_item_to_collection",
            mock_ctx,
            params=AddToCollectionInput(item_key="ITEM1", collection_key="COLL1"),
        )

        assert tagged.tags == ["a", "b"]
        assert filed.success and filed.added is True

    @pytest.mark.asyncio
    async def test_collection_lifecycle(self, mcp, mock_ctx, fake_api):
        created = await call(
            mcp, "create_collection", mock_ctx, params=CreateCollectionInput(name="Thesis")
        )
        renamed = await call(
            mcp,
            "update_collection",
            mock_ctx,
            params=UpdateCollectionInput(collection_key=created.key, name="PhD"),
        )

        assert created.success and renamed.success
        assert fake_api.collections[created.key]["data"]["name"] == "PhD"

    @pytest.mark.asyncio
    async def test_check_translation_server(self, mcp, mock_ctx, translation):
        result = await call(mcp, "check_translation_server", mock_ctx)

        assert result.available is True
        assert result.url == "http://localhost:1969"


class TestExportTool:
    @pytest.mark.asyncio
    async def test_requires_a_selection(self, mcp, mock_ctx):
        result = await call(
            mcp, "export_bibliography", mock_ctx, params=ExportInput(format=ExportFormat.BIBTEX)
        )

        assert result.success is False
        assert "item_keys" in result.error

    @pytest.mark.asyncio
    async def test_export_by_tag_writes_file(self, mcp, mock_ctx, fake_api, tmp_path):
        fake_api.add_item("T1", tags=[{"tag": "thesis"}])
        fake_api.add_item("T2", tags=[{"tag": "thesis"}])
        fake_api.add_item("OTHER")
        out = tmp_path / "out" / "refs.bib"

        result = await call(
            mcp,
            "export_bibliography",
            mock_ctx,
            params=ExportInput(format=ExportFormat.BIBTEX, tag="thesis", output_path=str(out)),
        )

        assert result.success, result.error
        assert result.item_count == 2
        assert result.file_path == str(out)
        content = out.read_text()
        assert "@article{T1}" in content and "@article{T2}" in content
        assert result.file_size.endswith(" B")

        request = fake_api.requests_to("GET", "/items")[-1]
        assert request.url.params["format"] == "bibtex"

    @pytest.mark.asyncio
    async def test_default_path_uses_format_extension(self, mcp, mock_ctx, fake_api):
        fake_api.add_item("K1")

        result = await call(
            mcp,
            "export_bibliography",
            mock_ctx,
            params=ExportInput(format=ExportFormat.RIS, item_keys=["K1"]),
        )

        path = Path(result.file_path)
        try:
            assert path.name.startswith("zotero-export-")
            assert path.suffix == ".ris"
        finally:
            path.unlink(missing_ok=True)

    @pytest.mark.asyncio
    async def test_no_matches(self, mcp, mock_ctx):
        result = await call(
            mcp,
            "export_bibliography",
            mock_ctx,
            params=ExportInput(format=ExportFormat.BIBTEX, query="nothing"),
        )

        assert result.success is False
        assert "No items found" in result.error


class TestAttachmentTools:
    @pytest.mark.asyncio
    async def test_download_then_cached(self, mcp, mock_ctx, fake_api):
        fake_api.add_attachment("ATT1", b"0123456789")

        first = await call(
            mcp, "download_attachment", mock_ctx, params=DownloadAttachmentInput(item_key="ATT1")
        )
        second = await call(
            mcp, "download_attachment", mock_ctx, params=DownloadAttachmentInput(item_key="ATT1")
        )

        assert first.success and not first.from_cache
        assert second.from_cache
        assert second.path == first.path
        assert first.file_size == "10 B"

    @pytest.mark.asyncio
    async def test_download_failure_names_key(self, mcp, mock_ctx, fake_api):
        fake_api.add_item("BOOK1", itemType="book")

        result = await call(
            mcp, "download_attachment", mock_ctx, params=DownloadAttachmentInput(item_key="BOOK1")
        )

        assert result.success is False
        assert result.item_key == "BOOK1"
        assert "not an attachment" in result.error

    @pytest.mark.asyncio
    async def test_clear_cache(self, mcp, mock_ctx, fake_api, api_client):
        fake_api.add_attachment("ATT1", b"data")
        await api_client.download_attachment("ATT1")

        result = await call(mcp, "clear_attachment_cache", mock_ctx, params=ClearCacheInput())

        assert result.success
        assert not await api_client.cache.is_valid("ATT1", 1)
