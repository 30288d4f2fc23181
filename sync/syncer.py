import logging
from typing import Any, Dict, List, Optional

import httpx

from blocks.fields import FieldClassifier
from storage.collections import WriteRejected
from storage.document_store import DocumentStore

from .config import SYNC_PACK_ROOT
from .hydrate_blocks import hydrate_blocks
from .media import MediaHydrator
from .pack import FooterData, HeaderData, MenuData, PageData, SiteInfo, SyncPack, load_sync_pack

logger = logging.getLogger(__name__)

HOME_SLUG = "home"


class SiteSyncer:
    """
    Imports a tenant's sync pack into the store. Everything is upserted, so
    running it twice leaves one tenant, one menu, one header/footer and one
    document per page.
    """
    def __init__(
        self,
        store: DocumentStore,
        pack_root: str = SYNC_PACK_ROOT,
        classifier: Optional[FieldClassifier] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.store = store
        self.pack_root = pack_root
        self.classifier = classifier or FieldClassifier()
        self.http_client = http_client

    async def sync(self, tenant_code: str) -> Dict[str, Any]:
        logger.info(f"Syncing site for tenant: {tenant_code}")
        pack = load_sync_pack(self.pack_root, tenant_code)
        logger.info(f"Sync pack path: {pack.path}")

        tenant = await self.sync_tenant(tenant_code, pack.site)
        menu = await self.sync_navigation_menu(pack.menu, tenant["id"])
        await self.sync_header(pack.header, tenant["id"], menu["id"])
        await self.sync_footer(pack.footer, tenant["id"])

        media_mapping = await self.hydrate_media(pack, tenant["id"])

        pages = await self.sync_pages(pack.pages, tenant["id"], media_mapping)
        homepage = None
        if HOME_SLUG in pack.pages:
            homepage = await self.sync_homepage(pack.pages[HOME_SLUG], tenant["id"], media_mapping)

        logger.info(f"Sync complete. Tenant: {tenant['id']}, Navigation Menu: {menu['id']}, Pages: {len(pages)}")
        return {"tenant": tenant, "menu": menu, "pages": pages, "homepage": homepage}

    async def _find_one(self, collection: str, where: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = await self.store.find(collection, where=where, limit=1, override_access=True)
        return result.docs[0] if result.docs else None

    async def _upsert(self, collection: str, where: Dict[str, Any], data: Dict[str, Any], label: str) -> Dict[str, Any]:
        existing = await self._find_one(collection, where)
        if existing:
            logger.info(f"Updating {label}: {existing['id']}")
            return await self.store.update(collection, existing["id"], data, override_access=True)
        logger.info(f"Creating {label}")
        return await self.store.create(collection, data, override_access=True)

    async def sync_tenant(self, tenant_code: str, site: SiteInfo) -> Dict[str, Any]:
        data = {
            "name": site.projectName,
            "code": site.tenant,
            "domains": [{"domain": domain, "status": "active"} for domain in site.domains],
        }
        return await self._upsert("tenants", {"code": {"equals": tenant_code}}, data, f"tenant {tenant_code}")

    async def _menu_item(self, href: str, label: str, tenant_id: str) -> Dict[str, Any]:
        item = {"label": label, "type": "external", "openInNewTab": False}
        if not href.startswith("/"):
            item["url"] = href
            return item

        slug = HOME_SLUG if href == "/" else href[1:]
        page = await self._find_one(
            "pages", {"and": [{"tenant": {"equals": tenant_id}}, {"slug": {"equals": slug}}]}
        )
        if page:
            item["type"] = "internal"
            item["page"] = page["id"]
        else:
            # The homepage is not a linkable page
            if slug != HOME_SLUG:
                logger.warning(f"Page not found for slug '{slug}', using URL fallback")
            item["url"] = href
        return item

    async def sync_navigation_menu(self, menu: MenuData, tenant_id: str) -> Dict[str, Any]:
        items = [await self._menu_item(link.href, link.label, tenant_id) for link in menu.items]
        data = {"tenant": tenant_id, "title": menu.menuTitle, "items": items}
        where = {"and": [{"tenant": {"equals": tenant_id}}, {"title": {"equals": menu.menuTitle}}]}
        return await self._upsert("navigation-menus", where, data, f"navigation menu {menu.menuTitle}")

    async def sync_header(self, header: HeaderData, tenant_id: str, menu_id: str) -> Dict[str, Any]:
        data = {"tenant": tenant_id, "navigationMenu": menu_id, "enableTopBar": False}
        if header.logo:
            logger.info(f"Logo URL found: {header.logo} (manual upload required)")
        return await self._upsert("headers", {"tenant": {"equals": tenant_id}}, data, "header")

    async def sync_footer(self, footer: FooterData, tenant_id: str) -> Dict[str, Any]:
        data = {
            "tenant": tenant_id,
            "copyrightText": footer.copyrightText or "",
            "socialLinks": [{"platform": link.platform, "url": link.url} for link in footer.socialLinks],
        }
        return await self._upsert("footers", {"tenant": {"equals": tenant_id}}, data, "footer")

    async def hydrate_media(self, pack: SyncPack, tenant_id: str) -> Dict[str, str]:
        hydrator = MediaHydrator(self.store, tenant_id, pack.path, client=self.http_client)
        try:
            return await hydrator.hydrate(pack.assets)
        except Exception as e:
            logger.error(f"Media hydration failed, continuing without media mapping: {e}", exc_info=True)
            return {}

    def _content_payload(self, page: PageData, tenant_id: str, media_mapping: Dict[str, str]) -> Dict[str, Any]:
        data = {
            "tenant": tenant_id,
            "sections": hydrate_blocks(page.blocks, media_mapping, self.classifier),
            "status": "published",
            "schemaVersion": 1,
        }
        if page.seo:
            data["seo"] = {"title": page.seo.title or "", "description": page.seo.description or ""}
        return data

    async def sync_pages(self, pages: Dict[str, PageData], tenant_id: str, media_mapping: Dict[str, str]) -> List[Dict[str, Any]]:
        synced = []
        for key, page in pages.items():
            if key == HOME_SLUG:
                continue

            data = self._content_payload(page, tenant_id, media_mapping)
            data.update({"title": page.title, "slug": page.slug})
            where = {"and": [{"tenant": {"equals": tenant_id}}, {"slug": {"equals": page.slug}}]}
            try:
                synced.append(await self._upsert("pages", where, data, f"page {page.slug} ({len(data['sections'])} sections)"))
            except WriteRejected as e:
                logger.error(f"Failed to sync page {page.slug}: {e.message}")
        return synced

    async def sync_homepage(self, page: PageData, tenant_id: str, media_mapping: Dict[str, str]) -> Dict[str, Any]:
        data = self._content_payload(page, tenant_id, media_mapping)
        return await self._upsert(
            "homepages", {"tenant": {"equals": tenant_id}}, data, f"homepage ({len(data['sections'])} sections)"
        )
