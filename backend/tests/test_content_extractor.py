from unittest.mock import MagicMock
from backend.app.services.content_extractor import (
    ContentExtractor,
    builder_fingerprint,
    count_words,
    parse_builder_tree,
    strip_markup,
)

def test_count_words_is_unicode_aware():
    assert count_words("héllo wörld 123") == 3
    assert count_words("") == 0
    assert count_words("...") == 0
    assert count_words("snake_case l'été") == 4
    assert count_words("Привет, мир!") == 2

def test_count_words_ignores_markup():
    assert count_words("<p>Hello <strong>world</strong></p><!-- wp:paragraph -->") == 2

def test_strip_markup_drops_scripts_and_decodes_entities():
    raw = "<div>Fish &amp; chips<script>var x = 1;</script>\n\n<style>p{}</style> today</div>"
    assert strip_markup(raw) == "Fish & chips today"

def test_extract_reports_raw_and_stripped_lengths():
    result = ContentExtractor().extract("<p>Hi there</p>")
    assert result.text == "Hi there"
    assert result.length == len("<p>Hi there</p>")
    assert result.stripped_length == 8
    assert result.word_count == 2

def test_recursive_extraction_collects_nested_and_own_settings():
    tree = [{
        "settings": {"heading": "C"},
        "elements": [
            {"settings": {"title": "A"}},
            {"settings": {"caption": "B"}},
        ],
    }]
    text = ContentExtractor().extract("", tree).text
    for expected in ("A", "B", "C"):
        assert expected in text

def test_composite_fields_are_iterated():
    tree = [{
        "elType": "widget",
        "widgetType": "mixed",
        "settings": {
            "slides": [{"heading": "Slide one", "button_text": "Go"}],
            "icon_list": [{"text": "Fast"}, {"text": "Cheap"}],
            "tabs": [{"tab_title": "Tab", "tab_content": "<p>Body</p>"}],
            "form_fields": [{"field_label": "Email", "placeholder": "you@example.com"}],
            "testimonials": [{"content": "Great", "name": "Ana"}],
        },
    }]
    text = ContentExtractor().extract("", tree).text
    for expected in ("Slide one", "Go", "Fast", "Cheap", "Tab", "Body", "Email", "Great", "Ana"):
        assert expected in text

def test_unknown_and_malformed_nodes_are_skipped():
    tree = [
        "garbage",
        17,
        {"settings": [], "elements": "not a list"},
        {"id": {"nested": True}, "settings": {"title": "Lost"}},
        {"settings": {"unknown_field": "Ignored", "title": "Kept", "slides": ["x", 3]}},
    ]
    text = ContentExtractor().extract("", tree).text
    assert text == "Kept"

def test_parse_builder_tree_keeps_siblings_of_bad_nodes():
    nodes = parse_builder_tree([{"settings": "oops"}, {"id": 5, "settings": {"title": "ok"}}])
    assert len(nodes) == 1
    assert nodes[0].id == "5"

def test_template_reference_is_followed():
    templates = {"300": [{"settings": {"title": "From template"}}]}
    extractor = ContentExtractor(template_loader=templates.get)
    tree = [{"elType": "widget", "widgetType": "template", "settings": {"template_id": 300}}]
    assert "From template" in extractor.extract("", tree).text

def test_self_referencing_template_terminates():
    templates = {"1": [{"settings": {"title": "Loop"}, "templateID": "1"}]}
    extractor = ContentExtractor(template_loader=templates.get)
    text = extractor.extract("", [{"templateID": "1"}]).text
    assert text.count("Loop") == 1

def test_template_depth_is_bounded():
    templates = {
        str(i): [{"settings": {"title": f"Level{i}"}, "templateID": str(i + 1)}]
        for i in range(1, 10)
    }
    extractor = ContentExtractor(template_loader=templates.get, max_template_depth=3)
    text = extractor.extract("", [{"templateID": "1"}]).text
    assert "Level3" in text
    assert "Level4" not in text

def test_failing_template_loader_does_not_break_extraction():
    loader = MagicMock(side_effect=RuntimeError("lookup failed"))
    extractor = ContentExtractor(template_loader=loader)
    tree = [{"settings": {"title": "Still here"}, "templateID": "9"}]
    assert extractor.extract("", tree).text == "Still here"

def test_builder_fingerprint():
    assert builder_fingerprint(None) == (None, 0)
    first = builder_fingerprint([{"a": 1, "b": "x"}])
    second = builder_fingerprint([{"b": "x", "a": 1}])
    changed = builder_fingerprint([{"a": 2, "b": "x"}])
    assert first == second
    assert first[0] != changed[0]
    assert first[1] > 0

def test_decoded_entities_are_counted_as_text():
    result = ContentExtractor().extract("<p>a &lt;b&gt; c</p>")
    assert result.text == "a <b> c"
    assert result.stripped_length == 7
    assert result.word_count == 3
