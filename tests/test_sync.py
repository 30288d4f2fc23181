import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx

from richtext.converters import extract_plain_text, is_canonical_format
from storage.local_store import LocalDocumentStore
from sync.hydrate_blocks import hydrate_blocks
from sync.main import main as sync_main
from sync.media import MediaHydrator, alt_text_from, filename_from, mime_type_for
from sync.pack import AssetInfo, SyncPackError, load_sync_pack
from sync.syncer import SiteSyncer

IMAGE_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


def write_json(path: Path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def cdn_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("missing.jpg"):
        return httpx.Response(404)
    return httpx.Response(200, content=IMAGE_BYTES)


def mock_client(handler=cdn_handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def write_pack(root: Path, tenant="kallitechnia"):
    pack = root / tenant
    write_json(pack / "site.json", {"tenant": tenant, "projectName": "Kallitechnia Club", "domains": ["kallitechnia.gr"]})
    write_json(pack / "header.json", {"logo": "https://cdn.test/logo.png", "navigationMenu": []})
    write_json(pack / "footer.json", {
        "copyrightText": "© Kallitechnia",
        "socialLinks": [{"platform": "facebook", "url": "https://facebook.com/kallitechnia"}],
    })
    write_json(pack / "menu.json", {"items": [
        {"href": "/", "label": "Home"},
        {"href": "/about", "label": "About"},
        {"href": "https://shop.test", "label": "Shop"},
    ]})
    write_json(pack / "pages" / "home.json", {
        "title": "Home",
        "slug": "home",
        "seo": {"title": "Kallitechnia"},
        "blocks": [
            {"blockType": "kallitechnia.hero", "title": "Welcome", "backgroundImage": "https://cdn.test/hero.jpg"},
            {"blockType": "kallitechnia.cta", "title": "Join", "description": "Hello\nWorld"},
        ],
    })
    write_json(pack / "pages" / "about.json", {
        "title": "About",
        "blocks": [{"blockType": "kallitechnia.richText", "content": "About us"}],
    })
    write_json(pack / "assets-list.json", [{"path": "https://cdn.test/hero.jpg", "type": "external"}])
    return pack


class TestSyncPack(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_load_full_pack(self):
        write_pack(self.root)
        pack = load_sync_pack(str(self.root), "kallitechnia")

        self.assertEqual(pack.site.projectName, "Kallitechnia Club")
        self.assertEqual(pack.menu.menuTitle, "Main Navigation")
        self.assertEqual([link.href for link in pack.menu.items], ["/", "/about", "https://shop.test"])
        self.assertEqual(set(pack.pages), {"home", "about"})
        self.assertEqual(pack.pages["about"].slug, "about")
        self.assertEqual(pack.pages["home"].seo.title, "Kallitechnia")
        self.assertEqual(pack.assets[0].type, "external")

    def test_optional_files_default(self):
        write_json(self.root / "acme" / "site.json", {"tenant": "acme", "projectName": "Acme"})
        with self.assertLogs("sync.pack", level="WARNING"):
            pack = load_sync_pack(str(self.root), "acme")

        self.assertEqual(pack.pages, {})
        self.assertEqual(pack.assets, [])
        self.assertIsNone(pack.header.logo)
        self.assertEqual(pack.footer.socialLinks, [])

    def test_unreadable_page_is_skipped(self):
        pack_dir = write_pack(self.root)
        (pack_dir / "pages" / "broken.json").write_text("{not json", encoding="utf-8")

        with self.assertLogs("sync.pack", level="WARNING"):
            pack = load_sync_pack(str(self.root), "kallitechnia")
        self.assertNotIn("broken", pack.pages)

    def test_missing_site(self):
        with self.assertRaises(SyncPackError):
            load_sync_pack(str(self.root), "nobody")

    def test_invalid_site(self):
        write_json(self.root / "acme" / "site.json", {"tenant": "acme"})
        with self.assertRaises(SyncPackError):
            load_sync_pack(str(self.root), "acme")


class TestMediaHelpers(unittest.TestCase):

    def test_filename_from(self):
        self.assertEqual(filename_from("https://cdn.test/img/team%20photo.png?w=200"), "team photo.png")
        self.assertEqual(filename_from("https://cdn.test/"), "image.jpg")
        self.assertEqual(filename_from("kallitechnia/assets/logo.svg"), "logo.svg")

    def test_alt_text_from(self):
        self.assertEqual(alt_text_from("team-photo_2024.jpg"), "Team photo 2024")
        self.assertEqual(alt_text_from("___.png"), "Image")

    def test_mime_type_for(self):
        self.assertEqual(mime_type_for("a.PNG"), "image/png")
        self.assertEqual(mime_type_for("a.svg"), "image/svg+xml")
        self.assertEqual(mime_type_for("a.bmp"), "image/jpeg")


class TestHydrateBlocks(unittest.TestCase):

    def test_images_mapped_and_rich_text_converted(self):
        blocks = [
            {"blockType": "kallitechnia.hero", "backgroundImage": "https://cdn.test/hero.jpg"},
            {"blockType": "kallitechnia.imageGallery", "images": [
                {"image": "https://cdn.test/a.jpg", "caption": "A"},
                {"image": "https://cdn.test/unknown.jpg"},
            ]},
            {"blockType": "kallitechnia.cta", "description": "Hello\nWorld"},
            "junk",
        ]
        mapping = {"https://cdn.test/hero.jpg": "m1", "https://cdn.test/a.jpg": "m2"}

        with self.assertLogs("sync.hydrate_blocks", level="WARNING") as logs:
            hydrated = hydrate_blocks(blocks, mapping)

        self.assertEqual(hydrated[0]["backgroundImage"], "m1")
        self.assertEqual(hydrated[1]["images"][0]["image"], "m2")
        self.assertEqual(hydrated[1]["images"][1]["image"], "https://cdn.test/unknown.jpg")
        self.assertIn("unknown.jpg", logs.output[0])
        self.assertEqual(extract_plain_text(hydrated[2]["description"]), "Hello\nWorld")
        self.assertEqual(hydrated[3], "junk")

    def test_paragraph_lists(self):
        hydrated = hydrate_blocks([{"blockType": "kallitechnia.welcome", "paragraphs": ["One", "Two"]}], {})
        paragraphs = hydrated[0]["paragraphs"]
        self.assertEqual([extract_plain_text(p["paragraph"]) for p in paragraphs], ["One", "Two"])

    def test_empty(self):
        self.assertEqual(hydrate_blocks(None, {}), [])


class TestMediaHydrator(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.store = LocalDocumentStore(str(self.root / "store"))
        self.tenant = await self.store.create("tenants", {"name": "K", "code": "kallitechnia"}, override_access=True)
        self.pack_path = self.root / "packs" / "kallitechnia"
        (self.pack_path / "assets").mkdir(parents=True)
        (self.pack_path / "assets" / "logo.png").write_bytes(b"\x89PNG")
        self.client = mock_client()

    async def asyncTearDown(self):
        await self.client.aclose()
        self.tmp.cleanup()

    def hydrator(self):
        return MediaHydrator(self.store, self.tenant["id"], self.pack_path, client=self.client)

    async def test_hydrate_mixed_assets(self):
        assets = [
            AssetInfo(path="https://cdn.test/hero.jpg", type="external"),
            AssetInfo(path="https://cdn.test/hero.jpg", type="external"),
            AssetInfo(path="https://cdn.test/missing.jpg", type="external"),
            AssetInfo(path="kallitechnia/assets/logo.png", type="local"),
            AssetInfo(path="kallitechnia/assets/gone.png", type="local"),
            AssetInfo(path="somewhere", type="inline"),
        ]
        hydrator = self.hydrator()
        with self.assertLogs("sync.media", level="INFO"):
            mapping = await hydrator.hydrate(assets)

        self.assertEqual(set(mapping), {"https://cdn.test/hero.jpg", "kallitechnia/assets/logo.png"})
        self.assertEqual(hydrator.stats, {"uploaded": 2, "reused": 1, "failed": 2, "skipped": 1})
        self.assertFalse(hydrator.temp_dir.exists())

        media = await self.store.find_by_id("media", mapping["https://cdn.test/hero.jpg"])
        self.assertEqual(media["filename"], "hero.jpg")
        self.assertEqual(media["alt"], "Hero")
        self.assertEqual(media["mimeType"], "image/jpeg")
        self.assertEqual(media["filesize"], len(IMAGE_BYTES))
        self.assertEqual(media["tenant"], self.tenant["id"])

    async def test_existing_media_is_reused(self):
        existing = await self.store.upload_media(self.tenant["id"], "hero.jpg", b"old", "Hero", "image/jpeg")

        hydrator = self.hydrator()
        mapping = await hydrator.hydrate([AssetInfo(path="https://cdn.test/hero.jpg", type="external")])

        self.assertEqual(mapping, {"https://cdn.test/hero.jpg": existing["id"]})
        self.assertEqual(hydrator.stats["uploaded"], 0)
        self.assertEqual((await self.store.find("media")).total_docs, 1)

    async def test_creates_and_closes_own_client(self):
        hydrator = MediaHydrator(self.store, self.tenant["id"], self.pack_path)
        mapping = await hydrator.hydrate([AssetInfo(path="kallitechnia/assets/logo.png", type="local")])

        self.assertEqual(len(mapping), 1)
        self.assertIsNone(hydrator.client)


class TestSiteSyncer(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        write_pack(self.root / "packs")
        self.store = LocalDocumentStore(str(self.root / "store"))
        self.client = mock_client()
        self.syncer = SiteSyncer(self.store, pack_root=str(self.root / "packs"), http_client=self.client)

    async def asyncTearDown(self):
        await self.client.aclose()
        self.tmp.cleanup()

    async def count(self, collection):
        return (await self.store.find(collection, limit=100, override_access=True)).total_docs

    async def test_sync_imports_site(self):
        result = await self.syncer.sync("kallitechnia")

        tenant = result["tenant"]
        self.assertEqual(tenant["name"], "Kallitechnia Club")
        self.assertEqual(tenant["domains"], [{"domain": "kallitechnia.gr", "status": "active"}])

        self.assertEqual([p["slug"] for p in result["pages"]], ["about"])
        about = result["pages"][0]
        self.assertEqual(about["status"], "published")
        self.assertTrue(is_canonical_format(about["sections"][0]["content"]))

        homepage = result["homepage"]
        media_id = homepage["sections"][0]["backgroundImage"]
        self.assertEqual((await self.store.find_by_id("media", media_id))["filename"], "hero.jpg")
        self.assertEqual(extract_plain_text(homepage["sections"][1]["description"]), "Hello\nWorld")
        self.assertEqual(homepage["seo"], {"title": "Kallitechnia", "description": ""})

        header = (await self.store.find("headers", override_access=True)).docs[0]
        self.assertEqual(header["navigationMenu"], result["menu"]["id"])
        self.assertFalse(header["enableTopBar"])

        footer = (await self.store.find("footers", override_access=True)).docs[0]
        self.assertEqual(footer["socialLinks"], [{"platform": "facebook", "url": "https://facebook.com/kallitechnia"}])

    async def test_menu_links_resolve_once_pages_exist(self):
        first = await self.syncer.sync("kallitechnia")
        items = first["menu"]["items"]
        self.assertEqual(items[0], {"label": "Home", "type": "external", "openInNewTab": False, "url": "/"})
        self.assertEqual(items[1]["url"], "/about")
        self.assertEqual(items[2]["url"], "https://shop.test")

        second = await self.syncer.sync("kallitechnia")
        about_link = second["menu"]["items"][1]
        self.assertEqual(about_link["type"], "internal")
        self.assertEqual(about_link["page"], second["pages"][0]["id"])

    async def test_sync_is_an_upsert(self):
        await self.syncer.sync("kallitechnia")
        await self.syncer.sync("kallitechnia")

        for collection in ("tenants", "pages", "homepages", "navigation-menus", "headers", "footers", "media"):
            self.assertEqual(await self.count(collection), 1, collection)

    async def test_media_failure_does_not_stop_sync(self):
        with patch("sync.syncer.MediaHydrator.hydrate", new=AsyncMock(side_effect=RuntimeError("disk full"))):
            with self.assertLogs("sync.syncer", level="ERROR"):
                result = await self.syncer.sync("kallitechnia")

        self.assertEqual(result["homepage"]["sections"][0]["backgroundImage"], "https://cdn.test/hero.jpg")

    async def test_missing_pack(self):
        with self.assertRaises(SyncPackError):
            await self.syncer.sync("nobody")


class TestSyncMain(unittest.IsolatedAsyncioTestCase):

    async def test_tenant_is_required(self):
        with self.assertRaises(SystemExit) as ctx:
            await sync_main([])
        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
