"""
Sync pack: an extracted site on disk, one directory per tenant.

    <root>/<tenant>/site.json          required
    <root>/<tenant>/header.json        optional
    <root>/<tenant>/footer.json        optional
    <root>/<tenant>/menu.json          optional
    <root>/<tenant>/pages/<slug>.json  one file per page, `home` is the homepage
    <root>/<tenant>/assets-list.json   optional, images to hydrate
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class SyncPackError(Exception):
    """The sync pack is missing or unreadable."""


class Link(BaseModel):
    href: str
    label: str = ""


class SocialLink(BaseModel):
    platform: str
    url: str


class Seo(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class SiteInfo(BaseModel):
    tenant: str
    projectName: str
    domains: List[str] = Field(default_factory=list)


class HeaderData(BaseModel):
    logo: Optional[str] = None
    logoAlt: Optional[str] = None
    navigationMenu: List[Link] = Field(default_factory=list)


class FooterData(BaseModel):
    copyrightText: Optional[str] = None
    socialLinks: List[SocialLink] = Field(default_factory=list)
    footerMenus: List[Any] = Field(default_factory=list)


class MenuData(BaseModel):
    menuTitle: str = "Main Navigation"
    items: List[Link] = Field(default_factory=list)


class PageData(BaseModel):
    title: str = ""
    slug: str = ""
    seo: Optional[Seo] = None
    blocks: List[Any] = Field(default_factory=list)


class AssetInfo(BaseModel):
    path: str
    # external | local, anything else is skipped
    type: str = "unknown"


class SyncPack(BaseModel):
    path: Path
    site: SiteInfo
    header: HeaderData = Field(default_factory=HeaderData)
    footer: FooterData = Field(default_factory=FooterData)
    menu: MenuData = Field(default_factory=MenuData)
    pages: Dict[str, PageData] = Field(default_factory=dict)
    assets: List[AssetInfo] = Field(default_factory=list)


def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _read_optional(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return _read_json(path)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read {path.name}, using defaults: {e}")
        return default


def _load_pages(pages_dir: Path) -> Dict[str, PageData]:
    pages = {}
    if not pages_dir.is_dir():
        logger.warning(f"No pages directory in sync pack: {pages_dir}")
        return pages

    for page_file in sorted(pages_dir.glob("*.json")):
        try:
            page = PageData.model_validate(_read_json(page_file))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Could not load page {page_file.name}: {e}")
            continue
        if not page.slug:
            page.slug = page_file.stem
        pages[page_file.stem] = page
    return pages


def load_sync_pack(root: str, tenant_code: str) -> SyncPack:
    pack_path = Path(root) / tenant_code
    site_path = pack_path / "site.json"
    if not site_path.exists():
        raise SyncPackError(f"Sync pack not found: {site_path}")

    try:
        site = SiteInfo.model_validate(_read_json(site_path))
        return SyncPack(
            path=pack_path,
            site=site,
            header=HeaderData.model_validate(_read_optional(pack_path / "header.json", {})),
            footer=FooterData.model_validate(_read_optional(pack_path / "footer.json", {})),
            menu=MenuData.model_validate(_read_optional(pack_path / "menu.json", {})),
            pages=_load_pages(pack_path / "pages"),
            assets=[AssetInfo.model_validate(a) for a in _read_optional(pack_path / "assets-list.json", [])],
        )
    except (OSError, ValueError, ValidationError) as e:
        raise SyncPackError(f"Invalid sync pack for {tenant_code}: {e}") from e
