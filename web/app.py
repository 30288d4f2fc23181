"""
Public site: renders a tenant's published homepage and pages through the
render pipeline, and mounts the form submission API.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from blocks.fields import UNCHANGED, FieldClassifier, walk_fields
from blocks.schema import BlockSchemaRegistry
from forms.api import router as forms_router
from forms.service import FormSubmissionService
from rendering.registry import RenderContext, RendererRegistry
from rendering.sections import render_sections
from rendering.templates import render_template
from storage.document_store import DocumentStore

from .config import CORS_ORIGINS, SITE_LANG, WEB_HOST, WEB_PORT

logger = logging.getLogger(__name__)

NOT_FOUND = "Content not found"


async def expand_media(store: DocumentStore, sections: List[Any], classifier: FieldClassifier) -> List[Any]:
    """Replace media ids in image fields with the media documents they point to."""
    media_ids = set()

    def collect(ctx, value):
        if classifier.is_media_reference(ctx.key, value):
            media_ids.add(value)
        return UNCHANGED

    for section in sections:
        if isinstance(section, dict):
            walk_fields(section, collect, classifier)

    media = {}
    for media_id in media_ids:
        doc = await store.find_by_id("media", media_id)
        if doc is not None:
            media[media_id] = doc

    def substitute(ctx, value):
        if classifier.is_media_reference(ctx.key, value) and value in media:
            return media[value]
        return UNCHANGED

    return [walk_fields(s, substitute, classifier) if isinstance(s, dict) else s for s in sections]


def create_app(
    store: DocumentStore,
    schema_registry: BlockSchemaRegistry,
    renderer_registry: RendererRegistry,
) -> FastAPI:
    classifier = FieldClassifier.from_registry(schema_registry)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting site renderer for tenants: {', '.join(schema_registry.tenant_codes()) or 'none'}")
        await store.ensure_indexes()
        yield
        logger.info("Shutting down site renderer...")
        await store.close()

    app = FastAPI(title="Multi-tenant CMS", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = store
    app.state.schema_registry = schema_registry
    app.state.renderer_registry = renderer_registry
    app.state.form_service = FormSubmissionService(store)

    app.include_router(forms_router)

    async def find_tenant(tenant_code: str) -> Dict[str, Any]:
        result = await store.find("tenants", where={"code": {"equals": tenant_code}}, limit=1, override_access=True)
        if not result.docs:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
        return result.docs[0]

    async def find_published(collection: str, where: Dict[str, Any]) -> Dict[str, Any]:
        result = await store.find(
            collection,
            where={"and": [where, {"status": {"equals": "published"}}]},
            limit=1,
            depth=1,
        )
        if not result.docs:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
        return result.docs[0]

    async def render_page(tenant: Dict[str, Any], doc: Dict[str, Any], context: RenderContext, title: Optional[str]) -> HTMLResponse:
        sections = await expand_media(store, doc.get("sections") or [], classifier)
        rendered = render_sections(sections, context.tenant_code, renderer_registry, context) or []
        seo = doc.get("seo") or {}
        html = render_template(
            "page.html",
            title=seo.get("title") or title or tenant.get("name") or context.tenant_code,
            description=seo.get("description"),
            tenant_code=context.tenant_code,
            sections=rendered,
            lang=SITE_LANG,
        )
        return HTMLResponse(html)

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "healthy", "tenants": schema_registry.tenant_codes()}

    @app.get("/{tenant_code}", response_class=HTMLResponse)
    async def homepage(tenant_code: str):
        tenant = await find_tenant(tenant_code)
        doc = await find_published("homepages", {"tenant": {"equals": tenant["id"]}})
        context = RenderContext(tenant_code=tenant_code, is_homepage=True)
        return await render_page(tenant, doc, context, tenant.get("name"))

    @app.get("/{tenant_code}/{slug}", response_class=HTMLResponse)
    async def page(tenant_code: str, slug: str):
        tenant = await find_tenant(tenant_code)
        doc = await find_published(
            "pages", {"and": [{"tenant": {"equals": tenant["id"]}}, {"slug": {"equals": slug}}]}
        )
        context = RenderContext(tenant_code=tenant_code, page_slug=slug)
        return await render_page(tenant, doc, context, doc.get("title"))

    return app


def build_default_app() -> FastAPI:
    """App wired to MongoDB and the static tenant registries (uvicorn factory)."""
    from storage.config import require_settings, setup_logging
    from storage.mongo_store import MongoDocumentStore
    from tenants.registry import build_registries

    setup_logging()
    require_settings("MONGO_URI")
    schema_registry, renderer_registry = build_registries()
    return create_app(MongoDocumentStore(), schema_registry, renderer_registry)


def serve():
    import uvicorn
    uvicorn.run("web.app:build_default_app", factory=True, host=WEB_HOST, port=WEB_PORT)
