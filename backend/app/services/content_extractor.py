"""
Content Extractor
Turns a document's raw content and optional page builder tree into comparable
plain text, so the size of an edit can be measured without diffing markup.
"""
import hashlib
import html
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Set, Tuple

from pydantic import ValidationError
from backend.app.models.document import BuilderNode

logger = logging.getLogger(__name__)

# Scalar settings that carry user-visible text
TEXT_FIELDS = (
    "title",
    "heading",
    "sub_heading",
    "caption",
    "editor",
    "text",
    "description",
    "title_text",
    "description_text",
    "button_text",
    "link_text",
    "button",
    "inner_text",
    "alert_title",
    "alert_description",
    "testimonial_content",
    "testimonial_name",
    "testimonial_job",
    "blockquote_content",
    "before_text",
    "highlighted_text",
    "after_text",
    "prefix",
    "suffix",
    "html",
)

# Settings that hold arrays of records rather than scalars
COMPOSITE_FIELDS = {
    "slides": ("heading", "description", "button_text", "content", "name", "title"),
    "icon_list": ("text",),
    "tabs": ("tab_title", "tab_content"),
    "testimonials": ("content", "name", "title"),
    "form_fields": ("field_label", "placeholder", "field_options"),
    "price_list": ("title", "item_description", "price"),
}

_SCRIPT_STYLE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")
# \w is Unicode-aware on str patterns; underscore is not a letter or digit
_NON_WORD = re.compile(r"[\W_]+")

TemplateLoader = Callable[[str], Optional[List[Any]]]


@dataclass(frozen=True)
class ExtractedContent:
    text: str
    length: int
    stripped_length: int
    word_count: int


def strip_markup(raw: str) -> str:
    """Removes tags and comments, decodes entities and collapses whitespace."""
    if not raw:
        return ""
    text = _SCRIPT_STYLE.sub(" ", raw)
    text = _TAG.sub(" ", text)
    text = html.unescape(text)
    return _WHITESPACE.sub(" ", text).strip()


def _count_tokens(plain: str) -> int:
    plain = _NON_WORD.sub(" ", plain).strip()
    if not plain:
        return 0
    return len([token for token in plain.split() if token])


def count_words(text: str) -> int:
    if not text:
        return 0
    return _count_tokens(strip_markup(text))


def builder_fingerprint(builder_data: Optional[List[Any]]) -> Tuple[Optional[str], int]:
    """
    md5 and length of the canonical JSON form of a builder tree.
    Returns (None, 0) for documents that do not use the builder.
    """
    if builder_data is None:
        return None, 0
    serialized = json.dumps(builder_data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.md5(serialized.encode("utf-8")).hexdigest(), len(serialized)


def parse_builder_tree(raw_nodes: Any) -> List[BuilderNode]:
    """
    Validates a raw tree node by node.
    A malformed node is dropped together with its subtree; its siblings survive.
    """
    if not isinstance(raw_nodes, list):
        return []

    nodes = []
    for raw in raw_nodes:
        node = _parse_node(raw)
        if node is not None:
            nodes.append(node)
    return nodes


def _parse_node(raw: Any) -> Optional[BuilderNode]:
    if not isinstance(raw, dict):
        logger.debug("Skipping builder node of type %s", type(raw).__name__)
        return None

    fields = {k: v for k, v in raw.items() if k != "elements"}
    try:
        node = BuilderNode.model_validate(fields)
    except ValidationError as e:
        logger.warning("Content extraction failure on node %r: %s", raw.get("id"), e.errors()[0]["msg"])
        return None

    node.children = parse_builder_tree(raw.get("elements"))
    return node


class ContentExtractor:
    def __init__(self, template_loader: Optional[TemplateLoader] = None, max_template_depth: int = 5):
        """
        template_loader: resolves a template id to that template's raw builder tree.
        max_template_depth: how many template hops are followed before giving up.
        """
        self.template_loader = template_loader
        self.max_template_depth = max_template_depth

    def extract(self, raw_content: str, builder_data: Optional[List[Any]] = None) -> ExtractedContent:
        parts = []
        content_text = strip_markup(raw_content or "")
        if content_text:
            parts.append(content_text)

        if builder_data is not None:
            builder_text = self.extract_builder_text(builder_data)
            if builder_text:
                parts.append(builder_text)

        text = "\n".join(parts)
        return ExtractedContent(
            text=text,
            length=len(raw_content or ""),
            stripped_length=len(text),
            word_count=_count_tokens(text),
        )

    def extract_builder_text(self, builder_data: List[Any]) -> str:
        parts: List[str] = []
        for node in parse_builder_tree(builder_data):
            self._walk(node, parts, depth=0, visited=set())
        return "\n".join(parts)

    def _walk(self, node: BuilderNode, parts: List[str], depth: int, visited: Set[str]) -> None:
        for child in node.children:
            self._walk(child, parts, depth, visited)

        try:
            parts.extend(self._node_text(node))
        except (TypeError, AttributeError, ValueError) as e:
            logger.warning("Content extraction failure on node %r: %s", node.id, e)

        template_id = node.referenced_template
        if template_id:
            self._follow_template(template_id, parts, depth, visited)

    def _node_text(self, node: BuilderNode) -> List[str]:
        found = []
        for field in TEXT_FIELDS:
            value = node.settings.get(field)
            if isinstance(value, str):
                text = strip_markup(value)
                if text:
                    found.append(text)

        for composite, item_fields in COMPOSITE_FIELDS.items():
            items = node.settings.get(composite)
            if not isinstance(items, list):
                continue
            for item in items:
                if not isinstance(item, dict):
                    continue
                for field in item_fields:
                    value = item.get(field)
                    if isinstance(value, str):
                        text = strip_markup(value)
                        if text:
                            found.append(text)
        return found

    def _follow_template(self, template_id: str, parts: List[str], depth: int, visited: Set[str]) -> None:
        if self.template_loader is None:
            return
        if template_id in visited:
            logger.warning("Template %s references itself, not following", template_id)
            return
        if depth + 1 > self.max_template_depth:
            logger.warning("Template depth limit %d reached at template %s", self.max_template_depth, template_id)
            return

        try:
            raw_tree = self.template_loader(template_id)
        except Exception as e:
            logger.warning("Template %s could not be loaded: %s", template_id, e)
            return
        if not raw_tree:
            return

        # visited is per branch, so the same template used twice side by side is counted twice
        branch = visited | {template_id}
        for child in parse_builder_tree(raw_tree):
            self._walk(child, parts, depth + 1, branch)
