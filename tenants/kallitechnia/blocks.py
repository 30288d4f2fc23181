"""
Block kinds of the kallitechnia tenant.
"""
from blocks.schema import BlockKind, FieldSchema, FieldType

TENANT_CODE = "kallitechnia"


def _text(name, max_length=None, **kwargs):
    return FieldSchema(name=name, type=FieldType.TEXT, max_length=max_length, default="", **kwargs)


def _textarea(name, max_length=None, **kwargs):
    return FieldSchema(name=name, type=FieldType.TEXTAREA, max_length=max_length, default="", **kwargs)


def _rich_text(name):
    return FieldSchema(name=name, type=FieldType.RICH_TEXT)


def _url(name, **kwargs):
    return FieldSchema(name=name, type=FieldType.URL, default="", **kwargs)


def _upload(name):
    return FieldSchema(name=name, type=FieldType.UPLOAD)


def _checkbox(name, default=False):
    return FieldSchema(name=name, type=FieldType.CHECKBOX, default=default)


def _number(name, default=None):
    return FieldSchema(name=name, type=FieldType.NUMBER, default=default)


def _array(name, fields, min_items=None):
    return FieldSchema(name=name, type=FieldType.ARRAY, fields=fields, default=[], min_items=min_items)


def _image_position():
    return FieldSchema(name="imagePosition", type=FieldType.SELECT, options=["left", "right"], default="left")


def _legacy_meta():
    return [_checkbox("__deprecated"), _number("schemaVersion", default=1)]


def _kind(name, fields, label=None):
    return BlockKind(slug=f"{TENANT_CODE}.{name}", fields=fields, label=label)


hero = _kind("hero", _legacy_meta() + [
    _text("title", 120),
    _textarea("subtitle", 240),
    _upload("backgroundImage"),
    _checkbox("hasCTA"),
    _text("ctaLabel", 50),
    _url("ctaUrl"),
], label="Hero")

rich_text = _kind("richText", _legacy_meta() + [
    _text("title"),
    _textarea("subtitle"),
    _rich_text("content"),
], label="Rich Text")

image_gallery = _kind("imageGallery", _legacy_meta() + [
    _checkbox("enableCaptions"),
    _array("images", [_upload("image"), _text("caption")]),
], label="Image Gallery")

cta = _kind("cta", _legacy_meta() + [
    _text("title", 100),
    _rich_text("description"),
    _text("buttonLabel", 50),
    _url("buttonUrl"),
], label="Call To Action")

welcome = _kind("welcome", [
    _text("title", 120),
    _array("paragraphs", [_rich_text("paragraph")]),
    _upload("image"),
], label="Welcome")

programs_grid = _kind("programsGrid", [
    _text("title", 120),
    _textarea("subtitle", 240),
    _array("programs", [
        _upload("image"),
        _text("title", 100),
        _rich_text("description"),
        _text("buttonLabel", 50),
        _url("buttonUrl"),
    ]),
], label="Programs Grid")

news_grid = _kind("newsGrid", [
    _text("title", 120),
    _textarea("subtitle", 240),
    _text("buttonLabel", 50),
    _url("buttonUrl"),
    _array("newsItems", [
        _upload("image"),
        _text("date", 50),
        _text("title", 200),
        _textarea("excerpt", 300),
        _text("readMoreLabel", 50),
        _url("readMoreUrl"),
    ]),
], label="News Grid")

news_list = _kind("newsList", [
    _text("title"),
    _textarea("subtitle"),
    _number("itemsPerPage", default=6),
    _checkbox("showExcerpt", default=True),
    _checkbox("showImage", default=True),
    _text("buttonLabel"),
    _url("buttonUrl"),
], label="News List")

sponsors = _kind("sponsors", [
    _text("title"),
    _textarea("subtitle"),
    _array("sponsors", [_upload("logo"), _text("name", 100), _url("url")]),
], label="Sponsors")

quote = _kind("quote", [_textarea("text", 500)], label="Quote")

slogan = _kind("slogan", [_text("text", 200)], label="Slogan")

image_text = _kind("imageText", [
    _text("title", 120),
    _rich_text("content"),
    _image_position(),
    _upload("image"),
], label="Image & Text")

program_detail = _kind("programDetail", [
    _text("title", 120),
    _rich_text("description"),
    _image_position(),
    _rich_text("additionalInfo"),
    _upload("image"),
    _array("schedule", [_text("day", 50), _text("time", 50), _text("level", 50)]),
    _text("coachName", 100),
    _upload("coachPhoto"),
    _text("coachStudies", 200),
    _rich_text("coachBio"),
], label="Program Detail")

form = _kind("form", [
    FieldSchema(name="form", type=FieldType.RELATIONSHIP),
    _text("title", 120),
    _rich_text("description"),
], label="Form")

download_button = _kind("downloadButton", [
    _text("title", 120),
    _rich_text("description"),
    _text("buttonLabel", 100),
    _url("fileUrl", required=True),
    _text("fileName", 200),
], label="Download Button")

contact_info = _kind("contactInfo", [
    _text("title", 120),
    _array("items", [
        FieldSchema(name="type", type=FieldType.SELECT, required=True, options=["address", "phone", "email", "hours"]),
        _text("label", 100),
        _textarea("content", 500),
    ]),
], label="Contact Info")

google_map = _kind("googleMap", [
    _text("title", 120),
    _textarea("embedCode", required=True),
    _number("height", default=450),
], label="Google Map")

generic_section = _kind("genericSection", [
    FieldSchema(name="rawData", type=FieldType.JSON),
], label="Generic Section")

BLOCKS = [
    hero,
    welcome,
    programs_grid,
    image_gallery,
    news_grid,
    news_list,
    sponsors,
    cta,
    rich_text,
    quote,
    slogan,
    image_text,
    program_detail,
    form,
    download_button,
    contact_info,
    google_map,
    generic_section,
]
