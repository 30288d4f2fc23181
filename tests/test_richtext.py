import json
import unittest

from richtext.converters import (
    convert_legacy_to_canonical,
    convert_plain_text_to_canonical,
    extract_plain_text,
    has_empty_root,
    is_canonical_format,
    is_legacy_format,
    is_stringified_canonical,
    is_structurally_valid,
    to_canonical,
)
from richtext.models import (
    TextFormat,
    empty_document,
    heading_node,
    paragraph_node,
    root_document,
    text_node,
)


def texts(doc):
    return [[run["text"] for run in block["children"]] for block in doc["root"]["children"]]


class TestFormatDetection(unittest.TestCase):

    def test_legacy_and_canonical_are_exclusive(self):
        samples = [
            [{"type": "paragraph", "children": [{"text": "a"}]}],
            root_document([paragraph_node([text_node("a")])]),
            empty_document(),
            "plain",
            None,
            [],
            {"root": "nope"},
        ]
        for sample in samples:
            self.assertFalse(is_legacy_format(sample) and is_canonical_format(sample), sample)

    def test_legacy_detection(self):
        self.assertTrue(is_legacy_format([{"type": "paragraph", "children": []}]))
        self.assertFalse(is_legacy_format([]))
        self.assertFalse(is_legacy_format([{"root": {}, "type": "x"}]))
        self.assertFalse(is_legacy_format(["text"]))

    def test_canonical_detection(self):
        self.assertTrue(is_canonical_format(empty_document()))
        self.assertFalse(is_canonical_format({"root": {"type": "paragraph"}}))
        self.assertFalse(is_canonical_format([]))


class TestLegacyConversion(unittest.TestCase):

    def test_bold_paragraph(self):
        legacy = [{"type": "paragraph", "children": [{"text": "Hi", "bold": True}]}]
        doc = convert_legacy_to_canonical(legacy)

        children = doc["root"]["children"]
        self.assertEqual(len(children), 1)
        self.assertEqual(children[0]["type"], "paragraph")
        self.assertEqual(len(children[0]["children"]), 1)
        self.assertEqual(children[0]["children"][0]["text"], "Hi")
        self.assertEqual(children[0]["children"][0]["format"], 1)

    def test_format_flags_are_combined(self):
        legacy = [{
            "type": "paragraph",
            "children": [{"text": "x", "bold": True, "italic": True, "underline": True, "strikethrough": True, "code": True}],
        }]
        run = convert_legacy_to_canonical(legacy)["root"]["children"][0]["children"][0]
        expected = TextFormat.BOLD | TextFormat.ITALIC | TextFormat.UNDERLINE | TextFormat.STRIKETHROUGH | TextFormat.CODE
        self.assertEqual(run["format"], int(expected))
        self.assertEqual(run["format"], 31)

    def test_heading_gets_tag_from_level(self):
        legacy = [
            {"type": "heading", "level": 3, "children": [{"text": "Title"}]},
            {"type": "heading", "children": [{"text": "Default"}]},
        ]
        children = convert_legacy_to_canonical(legacy)["root"]["children"]
        self.assertEqual(children[0]["tag"], "h3")
        self.assertEqual(children[1]["tag"], "h1")

    def test_unknown_nodes_and_empty_paragraphs_are_dropped(self):
        legacy = [
            {"type": "image", "children": [{"text": "ignored"}]},
            {"type": "paragraph", "children": [{"bold": True}]},
            {"type": "paragraph", "children": [{"text": "kept"}]},
        ]
        self.assertEqual(texts(convert_legacy_to_canonical(legacy)), [["kept"]])

    def test_nothing_left_yields_empty_document(self):
        doc = convert_legacy_to_canonical([{"type": "image", "children": []}])
        self.assertEqual(doc, empty_document())

    def test_canonical_input_passes_through(self):
        doc = root_document([paragraph_node([text_node("x")])])
        self.assertIs(convert_legacy_to_canonical(doc), doc)

    def test_non_list_input_yields_empty_document(self):
        self.assertEqual(convert_legacy_to_canonical("oops"), empty_document())
        self.assertEqual(convert_legacy_to_canonical(None), empty_document())

    def test_output_is_structurally_valid(self):
        legacy = [
            {"type": "paragraph", "children": [{"text": "a"}, {"text": "b", "italic": True}]},
            {"type": "heading", "level": 2, "children": [{"text": "c"}]},
        ]
        self.assertTrue(is_structurally_valid(convert_legacy_to_canonical(legacy)))


class TestPlainTextConversion(unittest.TestCase):

    def test_one_paragraph_per_line(self):
        doc = convert_plain_text_to_canonical("Hello\nWorld")
        self.assertEqual(texts(doc), [["Hello"], ["World"]])

    def test_blank_lines_dropped_and_lines_trimmed(self):
        doc = convert_plain_text_to_canonical("  one  \n\n   \ntwo")
        self.assertEqual(texts(doc), [["one"], ["two"]])

    def test_blank_input_is_empty_document(self):
        self.assertEqual(convert_plain_text_to_canonical("   \n  "), empty_document())
        self.assertEqual(convert_plain_text_to_canonical(""), empty_document())

    def test_extract_round_trip(self):
        text = "First line\nSecond line"
        self.assertEqual(extract_plain_text(convert_plain_text_to_canonical(text)), text)


class TestToCanonical(unittest.TestCase):

    def test_dispatch(self):
        doc = empty_document()
        self.assertIs(to_canonical(doc), doc)
        self.assertIsNone(to_canonical(None))
        self.assertEqual(texts(to_canonical("a\nb")), [["a"], ["b"]])
        self.assertEqual(texts(to_canonical([{"type": "paragraph", "children": [{"text": "z"}]}])), [["z"]])
        self.assertEqual(to_canonical(42), empty_document())
        self.assertEqual(to_canonical({"foo": "bar"}), empty_document())


class TestDocumentChecks(unittest.TestCase):

    def test_empty_document_has_one_empty_paragraph(self):
        doc = empty_document()
        self.assertEqual(len(doc["root"]["children"]), 1)
        self.assertEqual(doc["root"]["children"][0]["type"], "paragraph")
        self.assertEqual(doc["root"]["children"][0]["children"], [])
        self.assertFalse(has_empty_root(doc))
        self.assertTrue(is_structurally_valid(doc))

    def test_empty_document_is_fresh_each_call(self):
        first = empty_document()
        first["root"]["children"].append("mutated")
        self.assertEqual(len(empty_document()["root"]["children"]), 1)

    def test_has_empty_root(self):
        self.assertTrue(has_empty_root(root_document([])))
        self.assertFalse(has_empty_root({"root": {"type": "root"}}))
        self.assertFalse(has_empty_root("text"))

    def test_structural_validity(self):
        self.assertFalse(is_structurally_valid({"root": {"type": "root"}}))
        self.assertFalse(is_structurally_valid({"root": {"type": "root", "children": ["x"]}}))
        self.assertFalse(is_structurally_valid({"root": {"type": "root", "children": [{"type": "paragraph"}]}}))
        self.assertFalse(is_structurally_valid(
            root_document([paragraph_node([{"type": "text", "text": 5}])])
        ))
        self.assertFalse(is_structurally_valid(root_document([paragraph_node([{"text": "no type"}])])))
        self.assertTrue(is_structurally_valid(root_document([heading_node([text_node("ok")], 2)])))

    def test_stringified_canonical(self):
        doc = convert_plain_text_to_canonical("hello")
        self.assertTrue(is_stringified_canonical(json.dumps(doc)))
        self.assertFalse(is_stringified_canonical("hello"))
        self.assertFalse(is_stringified_canonical('{"root": "x"}'))
        self.assertFalse(is_stringified_canonical("{not json"))
        self.assertFalse(is_stringified_canonical(doc))


class TestExtractPlainText(unittest.TestCase):

    def test_canonical_dict(self):
        doc = root_document([
            paragraph_node([text_node("Hel"), text_node("lo")]),
            heading_node([text_node("World")], 2),
        ])
        self.assertEqual(extract_plain_text(doc), "Hello\nWorld")

    def test_stringified_document(self):
        doc = convert_plain_text_to_canonical("Address line")
        self.assertEqual(extract_plain_text(json.dumps(doc)), "Address line")

    def test_double_encoded_text_run(self):
        inner = json.dumps(convert_plain_text_to_canonical("Inner text"))
        outer = root_document([paragraph_node([text_node(inner)])])
        self.assertEqual(extract_plain_text(json.dumps(outer)), "Inner text")

    def test_plain_string_returned_as_is(self):
        self.assertEqual(extract_plain_text("just text"), "just text")

    def test_depth_cap(self):
        self.assertEqual(extract_plain_text(empty_document(), depth=6), "")

    def test_non_document_values(self):
        self.assertEqual(extract_plain_text(None), "")
        self.assertEqual(extract_plain_text({"foo": 1}), "")


if __name__ == "__main__":
    unittest.main()
