"""Markdown to HTML conversion."""

from __future__ import annotations

import html
import re
from enum import Enum

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.tasklists import tasklists_plugin


class NodeKind(Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    BULLET_LIST = "bullet_list"
    ORDERED_LIST = "ordered_list"
    LIST_ITEM = "list_item"
    CODE_BLOCK = "code_block"
    BLOCKQUOTE = "blockquote"
    THEMATIC_BREAK = "hr"
    INLINE = "inline"
    TEXT = "text"
    STRONG = "strong"
    EMPHASIS = "em"
    INLINE_CODE = "code_inline"
    LINK = "link"
    IMAGE = "image"
    LINE_BREAK = "hardbreak"
    SOFT_BREAK = "softbreak"
    UNKNOWN = "unknown"


_KINDS_BY_TYPE = {kind.value: kind for kind in NodeKind if kind is not NodeKind.UNKNOWN}
# Fenced and indented code share one representation.
_KINDS_BY_TYPE["fence"] = NodeKind.CODE_BLOCK

# Everything below is rendered by the inline pass when met in block context.
INLINE_KINDS = frozenset({
    NodeKind.INLINE, NodeKind.TEXT, NodeKind.STRONG, NodeKind.EMPHASIS,
    NodeKind.INLINE_CODE, NodeKind.LINK, NodeKind.IMAGE,
    NodeKind.LINE_BREAK, NodeKind.SOFT_BREAK,
})


def node_kind(node: SyntaxTreeNode) -> NodeKind:
    """Map a markdown-it node type onto the closed set of kinds we render."""
    return _KINDS_BY_TYPE.get(node.type, NodeKind.UNKNOWN)


def escape_html(text: str) -> str:
    # html.escape covers & < > " and emits &#x27; for the single quote
    return html.escape(text, quote=True).replace("&#x27;", "&#39;")


class MarkdownParser:
    """Produce a syntax tree from markdown source."""

    def __init__(self):
        self._md = MarkdownIt("gfm-like").enable(['table', 'strikethrough'])

    def parse(self, text: str) -> SyntaxTreeNode:
        return SyntaxTreeNode(self._md.parse(text))


class MarkdownRenderer:
    """Hand-written HTML walk over a markdown-it syntax tree.

    Lists are shallow: each ``<li>`` holds only the inline
    text of its item, so nested paragraphs and sub-lists are flattened
    into the item's line. Raw HTML nodes fall into the unknown arm and,
    having no children, render as nothing.
    """

    def render(self, node: SyntaxTreeNode) -> str:
        return self._render_block(node)

    def _render_block(self, node: SyntaxTreeNode) -> str:
        kind = node_kind(node)

        if kind is NodeKind.HEADING:
            level = int(node.tag[1:])
            return f"<h{level}>{self._render_inline_children(node)}</h{level}>\n"

        elif kind is NodeKind.PARAGRAPH:
            return f"<p>{self._render_inline_children(node)}</p>\n"

        elif kind in (NodeKind.BULLET_LIST, NodeKind.ORDERED_LIST):
            tag = "ul" if kind is NodeKind.BULLET_LIST else "ol"
            items = "".join(
                f"<li>{self._render_inline_children(item)}</li>\n"
                for item in node.children
                if node_kind(item) is NodeKind.LIST_ITEM
            )
            return f"<{tag}>\n{items}</{tag}>\n"

        elif kind is NodeKind.CODE_BLOCK:
            info = (node.info or "").strip()
            language = info.split(maxsplit=1)[0] if info else ""
            code = node.content.strip("\n")
            return (
                f'<pre><code class="language-{escape_html(language)}">'
                f"{escape_html(code)}</code></pre>\n"
            )

        elif kind is NodeKind.BLOCKQUOTE:
            content = "".join(self._render_block(child) for child in node.children)
            return f"<blockquote>\n{content}</blockquote>\n"

        elif kind is NodeKind.THEMATIC_BREAK:
            return "<hr>\n"

        elif kind in INLINE_KINDS:
            return self._render_inline(node)

        return "".join(self._render_block(child) for child in node.children)

    def _render_inline_children(self, node: SyntaxTreeNode) -> str:
        return "".join(self._render_inline(child) for child in node.children)

    def _render_inline(self, node: SyntaxTreeNode) -> str:
        kind = node_kind(node)

        if kind is NodeKind.TEXT:
            return escape_html(node.content)

        elif kind is NodeKind.STRONG:
            return f"<strong>{self._render_inline_children(node)}</strong>"

        elif kind is NodeKind.EMPHASIS:
            return f"<em>{self._render_inline_children(node)}</em>"

        elif kind is NodeKind.INLINE_CODE:
            return f"<code>{escape_html(node.content)}</code>"

        elif kind is NodeKind.LINK:
            href = node.attrs.get("href", "")
            return f'<a href="{escape_html(str(href))}">{self._render_inline_children(node)}</a>'

        elif kind is NodeKind.IMAGE:
            src = node.attrs.get("src", "")
            title = node.attrs.get("title", "")
            return (
                f'<img src="{escape_html(str(src))}" '
                f'alt="{self._render_inline_children(node)}" '
                f'title="{escape_html(str(title))}">'
            )

        elif kind is NodeKind.LINE_BREAK:
            return "<br>"

        elif kind is NodeKind.SOFT_BREAK:
            return " "

        return self._render_inline_children(node)


# GFM "disallowed raw HTML" tags
_TAGFILTER_RE = re.compile(
    r"<(/?(?:title|textarea|style|xmp|iframe|noembed|noframes|script|plaintext)(?=[\s/>]|$))",
    re.IGNORECASE,
)


def filter_raw_tags(raw: str) -> str:
    return _TAGFILTER_RE.sub(r"&lt;\1", raw)


class GfmRenderer:
    """markdown-it's built-in HTML output with the GFM extensions attached."""

    def __init__(self):
        self._md = (
            MarkdownIt("gfm-like", {"html": True, "linkify": True})
            .enable(["table", "strikethrough", "linkify"])
            .use(tasklists_plugin)
        )

        def tag_filtered(tokens, idx, options, env):
            return filter_raw_tags(tokens[idx].content)

        self._md.renderer.rules["html_block"] = tag_filtered
        self._md.renderer.rules["html_inline"] = tag_filtered

    def render(self, text: str) -> str:
        return self._md.render(text)
