import unittest

from markupsafe import Markup

from blocks.schema import BlockKind, BlockSchemaRegistry
from rendering.fallbacks import missing_image, unknown_section
from rendering.registry import RenderContext, RendererRegistry
from rendering.richtext_html import render_rich_text
from rendering.sanitize import safe_array, safe_media, safe_rich_text, safe_text, safe_url
from rendering.sections import WarningLog, render_sections, warnings
from richtext.converters import convert_plain_text_to_canonical
from richtext.models import empty_document, heading_node, paragraph_node, root_document, text_node
from tenants.kallitechnia.renderers import (
    render_cta,
    render_hero,
    render_image_gallery,
    render_rich_text_block,
)
from tenants.registry import build_registries, discover_tenant_codes


def render_acme_hero(block, context):
    return Markup("<section>{}</section>").format(block.get("title", ""))


def render_acme_cta(block, context):
    return Markup("<aside>{}</aside>").format(block.get("buttonLabel", ""))


def render_broken(block, context):
    raise KeyError("boom")


def acme_registry():
    schema_registry = BlockSchemaRegistry()
    schema_registry.register_tenant("acme", [BlockKind(slug="acme.hero"), BlockKind(slug="acme.quote")])
    schema_registry.register_tenant("other", [BlockKind(slug="other.hero")])

    registry = RendererRegistry(schema_registry)
    registry.register_tenant("acme", {"acme.hero": render_acme_hero, "acme.cta": render_acme_cta, "acme.broken": render_broken})
    registry.register_tenant("other", {"other.hero": render_acme_hero})
    return registry


class TestRenderSections(unittest.TestCase):

    def setUp(self):
        warnings.clear()
        self.registry = acme_registry()

    def test_unknown_kind_dropped_in_production(self):
        sections = [
            {"blockType": "acme.hero", "title": "Welcome"},
            {"blockType": "bogus.x"},
            {"blockType": "acme.cta", "buttonLabel": "Join"},
        ]
        rendered = render_sections(sections, "acme", self.registry, development=False)

        self.assertEqual(rendered, [Markup("<section>Welcome</section>"), Markup("<aside>Join</aside>")])

    def test_renders_in_order_and_skips_what_cannot_render(self):
        sections = [
            {"blockType": "acme.hero", "title": "One"},
            {"blockType": "other.hero", "title": "Foreign"},
            {"blockType": "acme.nope"},
            {"title": "No kind"},
            "garbage",
            {"blockType": "acme.hero", "title": "Two"},
        ]
        rendered = render_sections(sections, "acme", self.registry, development=False)

        self.assertEqual(rendered, [Markup("<section>One</section>"), Markup("<section>Two</section>")])

    def test_development_placeholder_for_unknown_kind(self):
        rendered = render_sections([{"blockType": "acme.nope"}], "acme", self.registry, development=True)

        self.assertEqual(len(rendered), 1)
        self.assertIn("Unknown Block Type:", rendered[0])
        self.assertIn("acme.nope", rendered[0])

    def test_known_kind_without_renderer(self):
        sections = [{"blockType": "acme.quote"}]
        self.assertIsNone(render_sections(sections, "acme", self.registry, development=False))
        self.assertIn("acme.quote", render_sections(sections, "acme", self.registry, development=True)[0])

    def test_tenant_mismatch_is_never_rendered(self):
        sections = [{"blockType": "other.hero", "title": "Foreign"}]
        with self.assertLogs("rendering.sections", level="WARNING") as logs:
            rendered = render_sections(sections, "acme", self.registry, development=True)

        self.assertIsNone(rendered)
        self.assertIn("does not match tenant 'acme'", logs.output[0])

    def test_renderer_error_skips_only_that_block(self):
        self.registry.schema_registry.register_kind("acme", BlockKind(slug="acme.broken"))
        sections = [{"blockType": "acme.broken"}, {"blockType": "acme.hero", "title": "Still here"}]

        with self.assertLogs("rendering.sections", level="ERROR"):
            rendered = render_sections(sections, "acme", self.registry, development=False)

        self.assertEqual(rendered, [Markup("<section>Still here</section>")])

    def test_type_alias_is_accepted(self):
        rendered = render_sections([{"type": "acme.hero", "title": "Alias"}], "acme", self.registry)
        self.assertEqual(rendered, [Markup("<section>Alias</section>")])

    def test_non_list_and_empty_input(self):
        self.assertIsNone(render_sections(None, "acme", self.registry))
        self.assertIsNone(render_sections({"blockType": "acme.hero"}, "acme", self.registry))
        self.assertIsNone(render_sections([], "acme", self.registry))

    def test_renderer_receives_context(self):
        seen = []

        def capture(block, context):
            seen.append(context)
            return Markup("<p>ok</p>")

        self.registry.register("acme", "acme.hero", capture)
        context = RenderContext(tenant_code="acme", page_slug="about")
        render_sections([{"blockType": "acme.hero"}], "acme", self.registry, context)
        self.assertEqual(seen, [context])


class TestWarningLog(unittest.TestCase):

    def test_warns_once_per_key(self):
        log = WarningLog(limit=10)
        with self.assertLogs("rendering.sections", level="WARNING") as logs:
            self.assertTrue(log.warn_once("a", "first"))
            self.assertFalse(log.warn_once("a", "again"))
            self.assertTrue(log.warn_once("b", "second"))
        self.assertEqual(len(logs.output), 2)

    def test_bounded(self):
        log = WarningLog(limit=2)
        with self.assertLogs("rendering.sections", level="WARNING"):
            for key in ("a", "b", "c"):
                log.warn_once(key, key)
        self.assertNotIn("a", log)
        self.assertIn("c", log)


class TestRendererRegistry(unittest.TestCase):

    def test_prefix_mismatch_rejected(self):
        registry = RendererRegistry()
        with self.assertLogs("rendering.registry", level="WARNING"):
            self.assertFalse(registry.register("acme", "other.hero", render_acme_hero))
        self.assertFalse(registry.has_renderer("other.hero"))

    def test_known_is_schema_plus_renderers(self):
        registry = acme_registry()
        self.assertEqual(
            registry.list_known(),
            {"acme.hero", "acme.quote", "acme.cta", "acme.broken", "other.hero"},
        )
        self.assertTrue(registry.is_known("acme.quote"))
        self.assertFalse(registry.has_renderer("acme.quote"))

    def test_kallitechnia_wiring(self):
        self.assertIn("kallitechnia", discover_tenant_codes())
        schema_registry, renderer_registry = build_registries(["kallitechnia"])

        self.assertEqual(len(schema_registry.kinds_for_tenant("kallitechnia")), 18)
        self.assertEqual(
            set(renderer_registry.registered_block_types()),
            {"kallitechnia.hero", "kallitechnia.richText", "kallitechnia.imageGallery", "kallitechnia.cta"},
        )
        self.assertTrue(renderer_registry.is_known("kallitechnia.quote"))


class TestSanitize(unittest.TestCase):

    def test_safe_text(self):
        self.assertEqual(safe_text("  hi  "), "hi")
        self.assertEqual(safe_text(None, "x"), "x")
        self.assertEqual(safe_text(True), "true")
        self.assertEqual(safe_text(3), "3")
        self.assertEqual(safe_text({"a": 1}), "")

    def test_safe_url(self):
        self.assertEqual(safe_url("javascript:alert(1)"), "")
        self.assertEqual(safe_url("DATA:text/html,x"), "")
        self.assertEqual(safe_url("/about"), "/about")
        self.assertEqual(safe_url("#top"), "#top")
        self.assertEqual(safe_url("example.com"), "https://example.com")
        self.assertEqual(safe_url(None, "/"), "/")

    def test_safe_array(self):
        self.assertEqual(safe_array([1]), [1])
        self.assertEqual(safe_array("x"), [])
        self.assertEqual(safe_array(None, [0]), [0])

    def test_safe_media(self):
        self.assertEqual(safe_media("abc").id, "abc")
        self.assertEqual(safe_media(7).id, "7")
        media = safe_media({"_id": "m1", "url": "/media/a.jpg", "alt": "A", "width": 10, "height": True})
        self.assertEqual(media.id, "m1")
        self.assertEqual(media.url, "/media/a.jpg")
        self.assertEqual(media.alt, "A")
        self.assertEqual(media.width, 10)
        self.assertIsNone(media.height)
        self.assertIsNone(safe_media({"url": "/no-id.jpg"}))
        self.assertEqual(safe_media({"id": "m2", "filename": "b.jpg"}).url, "b.jpg")

    def test_safe_media_drops_dangerous_urls(self):
        for url in ("javascript:alert(1)", " data:image/png;base64,AAAA", "VBScript:x"):
            self.assertIsNone(safe_media({"id": "m1", "url": url}).url, url)
        self.assertIsNone(safe_media({"id": "m1", "filename": "javascript:alert(1)"}).url)
        self.assertIsNone(safe_media(None))
        self.assertIsNone(safe_media([1]))

    def test_safe_rich_text(self):
        self.assertEqual(safe_rich_text(None), empty_document())
        self.assertEqual(safe_rich_text("text"), empty_document())
        legacy = [{"type": "paragraph", "children": [{"text": "a"}]}]
        self.assertEqual(safe_rich_text(legacy)["root"]["children"][0]["children"][0]["text"], "a")
        doc = convert_plain_text_to_canonical("b")
        self.assertIs(safe_rich_text(doc), doc)


class TestRichTextHtml(unittest.TestCase):

    def test_formats_and_escaping(self):
        doc = root_document([
            paragraph_node([text_node("Bold", 1), text_node(" <script>")]),
            heading_node([text_node("Title")], 2),
        ])
        html = render_rich_text(doc)

        self.assertEqual(html, "<p><strong>Bold</strong> &lt;script&gt;</p><h2>Title</h2>")

    def test_whitespace_between_runs(self):
        doc = root_document([paragraph_node([text_node("Hello "), text_node("World", 1), text_node("")])])
        self.assertEqual(render_rich_text(doc), "<p>Hello <strong>World</strong></p>")

    def test_links(self):
        def link(url):
            return root_document([
                paragraph_node([{"type": "link", "url": url, "children": [text_node("go")]}]),
            ])

        self.assertEqual(render_rich_text(link("/about")), '<p><a href="/about">go</a></p>')
        self.assertEqual(render_rich_text(link("javascript:x")), "<p>go</p>")

    def test_lists(self):
        doc = root_document([{
            "type": "list",
            "listType": "number",
            "children": [{"type": "listitem", "children": [text_node("one")]}],
        }])
        self.assertEqual(render_rich_text(doc), "<ol><li>one</li></ol>")

    def test_empty_values(self):
        self.assertIsNone(render_rich_text(empty_document()))
        self.assertIsNone(render_rich_text(None))
        self.assertIsNone(render_rich_text({"root": {"type": "root"}}))


class TestFallbacks(unittest.TestCase):

    def test_unknown_section(self):
        self.assertIsNone(unknown_section("acme.x", development=False))
        self.assertIn("acme.x", unknown_section("acme.x", development=True))

    def test_missing_image(self):
        self.assertIn("Image not available", missing_image())
        self.assertIn("Logo", missing_image("Logo"))


class TestKallitechniaRenderers(unittest.TestCase):

    def setUp(self):
        self.context = RenderContext(tenant_code="kallitechnia", is_homepage=True)

    def test_hero(self):
        html = render_hero({"title": "<b>Welcome</b>", "ctaLabel": "Join", "ctaUrl": "/join"}, self.context)

        self.assertIn("<h1>&lt;b&gt;Welcome&lt;/b&gt;</h1>", html)
        self.assertIn('href="/join"', html)
        self.assertIn("kt-hero__background--gradient", html)

    def test_hero_background(self):
        block = {"title": "", "backgroundImage": {"id": "m1", "url": "/media/bg.jpg"}}
        html = render_hero(block, self.context)
        self.assertIn("url('/media/bg.jpg')", html)

    def test_hero_background_with_script_url(self):
        block = {"title": "Hi", "backgroundImage": {"id": "m1", "url": "javascript:alert(1)"}}
        html = render_hero(block, self.context)

        self.assertNotIn("javascript", html)
        self.assertIn("kt-hero__background--gradient", html)

    def test_hero_with_nothing_to_show(self):
        self.assertIsNone(render_hero({"title": "", "ctaLabel": "Orphan"}, self.context))
        self.assertIsNone(render_hero({"ctaLabel": "Bad", "ctaUrl": "javascript:x"}, self.context))

    def test_rich_text(self):
        block = {"title": "About", "content": convert_plain_text_to_canonical("Line")}
        html = render_rich_text_block(block, self.context)
        self.assertIn("<h2>About</h2>", html)
        self.assertIn("<p>Line</p>", html)
        self.assertIsNone(render_rich_text_block({"title": "About"}, self.context))

    def test_gallery(self):
        block = {"images": [
            {"image": {"id": "1", "url": "/a.jpg"}, "caption": "Caption"},
            {"image": "unexpanded"},
            {"image": None},
            "junk",
        ]}
        html = render_image_gallery(block, self.context)

        self.assertIn('src="/a.jpg"', html)
        self.assertIn("<figcaption>Caption</figcaption>", html)
        self.assertIn("cms-missing-image", html)
        self.assertEqual(html.count("<figure"), 3)
        self.assertIsNone(render_image_gallery({"images": []}, self.context))

    def test_cta(self):
        block = {
            "title": "Join us",
            "description": convert_plain_text_to_canonical("Now"),
            "buttonLabel": "Sign up",
            "buttonUrl": "",
        }
        html = render_cta(block, self.context)
        self.assertIn("<p>Now</p>", html)
        self.assertIn("<button class=\"kt-button\" disabled>Sign up</button>", html)

        html = render_cta({"description": "Plain", "buttonLabel": "Go", "buttonUrl": "/go"}, self.context)
        self.assertIn("Plain", html)
        self.assertIn('href="/go"', html)
        self.assertIsNone(render_cta({}, self.context))


if __name__ == "__main__":
    unittest.main()
