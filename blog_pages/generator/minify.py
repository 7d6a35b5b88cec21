r"""Minify rendered HTML pages before they are written.

The minifier mirrors the handful of html-minifier switches the blog used:
remove comments, collapse whitespace, shorten the doctype, and minify inline
scripts. It tokenises the document into tags, text, and raw elements
(``<pre>``, ``<textarea>``, ``<script>``, ``<style>``) so preformatted content
is never touched. Running it on its own output returns that output unchanged.

Example
-------
>>> from blog_pages.config import MinifyOptions
>>> minify_html("<p>\n  Hello   <b>world</b>\n</p>\n", MinifyOptions())
'<p>Hello <b>world</b></p>'
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

import csscompressor
import rjsmin

if typ.TYPE_CHECKING:
    from blog_pages.config import MinifyOptions

TOKEN_PATTERN = re.compile(
    r"""
    (?P<comment><!--.*?-->)
    |(?P<raw><(?P<rawname>pre|textarea|script|style)\b(?:[^>"']|"[^"]*"|'[^']*')*>
        .*?</(?P=rawname)\s*>)
    |(?P<doctype><!doctype[^>]*>)
    |(?P<tag></?[A-Za-z][^\s/>]*(?:[^>"']|"[^"]*"|'[^']*')*>)
    """,
    re.IGNORECASE | re.DOTALL | re.VERBOSE,
)
RAW_SPLIT_PATTERN = re.compile(
    r"""\A(<(?:[^>"']|"[^"]*"|'[^']*')*>)(.*)(</[^>]+>)\Z""", re.DOTALL
)
TAG_NAME_PATTERN = re.compile(r"</?([A-Za-z][^\s/>]*)")
TAG_WHITESPACE_PATTERN = re.compile(r"(\"[^\"]*\"|'[^']*')|[ \t\n\r\f]+")
SCRIPT_TYPE_PATTERN = re.compile(r"\btype\s*=\s*[\"']?([^\"'\s>]+)", re.IGNORECASE)
HTML_SPACE = " \t\n\r\f"
WHITESPACE_PATTERN = re.compile(r"[ \t\n\r\f]+")
CONDITIONAL_COMMENT = re.compile(r"^<!--\[if\b|^<!--<!\[endif\]", re.IGNORECASE)
JS_TYPES = frozenset(
    {"text/javascript", "application/javascript", "module", "text/ecmascript"}
)
BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "base", "blockquote", "body", "br",
        "canvas", "caption", "circle", "col", "colgroup", "dd", "defs", "desc",
        "details", "dialog", "div", "dl", "dt", "fieldset", "figcaption",
        "figure", "footer", "form", "g", "h1", "h2", "h3", "h4", "h5", "h6",
        "head", "header", "hgroup", "hr", "html", "li", "line", "link", "main",
        "meta", "nav", "noscript", "ol", "option", "p", "path", "polyline",
        "pre", "rect", "script", "section", "source", "style", "summary", "svg",
        "table", "tbody", "td", "template", "tfoot", "th", "thead", "title",
        "tr", "ul",
    }
)  # fmt: skip


@dc.dataclass(slots=True)
class _Token:
    kind: str
    text: str
    name: str = ""

    @property
    def is_block(self) -> bool:
        if self.kind == "doctype":
            return True
        return self.name in BLOCK_TAGS


def _tokenize(html: str) -> list[_Token]:
    tokens: list[_Token] = []
    position = 0
    for match in TOKEN_PATTERN.finditer(html):
        if match.start() > position:
            tokens.append(_Token("text", html[position : match.start()]))
        kind = match.lastgroup or "tag"
        if kind == "rawname":
            kind = "raw"
        text = match.group(0)
        name = ""
        if kind in {"tag", "raw"}:
            name_match = TAG_NAME_PATTERN.match(text)
            name = name_match.group(1).lower() if name_match else ""
        tokens.append(_Token(kind, text, name))
        position = match.end()
    if position < len(html):
        tokens.append(_Token("text", html[position:]))
    return tokens


def _merge_text(tokens: list[_Token]) -> list[_Token]:
    merged: list[_Token] = []
    for token in tokens:
        if token.kind == "text" and merged and merged[-1].kind == "text":
            merged[-1].text += token.text
        else:
            merged.append(token)
    return merged


def _normalize_tag(text: str) -> str:
    """Collapse whitespace inside a tag outside of quoted attribute values."""

    def _repl(match: re.Match[str]) -> str:
        return match.group(1) or " "

    collapsed = TAG_WHITESPACE_PATTERN.sub(_repl, text)
    collapsed = collapsed.replace(" >", ">").replace(" />", "/>")
    return collapsed.replace("< ", "<")


def _is_javascript(open_tag: str) -> bool:
    match = SCRIPT_TYPE_PATTERN.search(open_tag)
    return match is None or match.group(1).lower() in JS_TYPES


def _minify_raw(token: _Token, options: MinifyOptions) -> str:
    if token.name not in {"script", "style"}:
        return token.text
    parts = RAW_SPLIT_PATTERN.match(token.text)
    if parts is None:
        return token.text
    open_tag, body, close_tag = parts.groups()
    if token.name == "script" and options.minify_js and _is_javascript(open_tag):
        body = rjsmin.jsmin(body).strip()
    elif token.name == "style" and options.minify_css:
        body = csscompressor.compress(body).strip()
    if options.collapse_whitespace:
        open_tag = _normalize_tag(open_tag)
    return f"{open_tag}{body}{close_tag}"


def _neighbour(tokens: list[_Token], idx: int, step: int) -> _Token | None:
    """Return the nearest token before or after ``idx`` that is not a comment."""
    idx += step
    while 0 <= idx < len(tokens):
        if tokens[idx].kind != "comment":
            return tokens[idx]
        idx += step
    return None


def _collapse_text(tokens: list[_Token]) -> list[str]:
    output: list[str] = []
    for idx, token in enumerate(tokens):
        if token.kind != "text":
            output.append(token.text)
            continue
        text = WHITESPACE_PATTERN.sub(" ", token.text)
        previous = _neighbour(tokens, idx, -1)
        following = _neighbour(tokens, idx, 1)
        if previous is None or previous.is_block:
            text = text.lstrip(HTML_SPACE)
        if following is None or following.is_block:
            text = text.rstrip(HTML_SPACE)
        if text:
            output.append(text)
    return output


def minify_html(html: str, options: MinifyOptions) -> str:
    """Return a smaller but equivalent version of ``html``.

    Parameters
    ----------
    html : str
        Complete rendered document.
    options : MinifyOptions
        Switches selecting which reductions apply.

    Returns
    -------
    str
        The reduced document. Content of ``<pre>`` and ``<textarea>`` is
        preserved byte for byte.
    """
    tokens = _tokenize(html)
    kept: list[_Token] = []
    for token in tokens:
        if (
            token.kind == "comment"
            and options.remove_comments
            and not CONDITIONAL_COMMENT.match(token.text)
        ):
            continue
        if token.kind == "doctype" and options.use_short_doctype:
            token = _Token("doctype", "<!DOCTYPE html>")
        elif token.kind == "raw":
            token = _Token("raw", _minify_raw(token, options), token.name)
        elif token.kind == "tag" and options.collapse_whitespace:
            token = _Token("tag", _normalize_tag(token.text), token.name)
        kept.append(token)
    kept = _merge_text(kept)
    if not options.collapse_whitespace:
        return "".join(token.text for token in kept)
    return "".join(_collapse_text(kept))


def htmlmin_transform(options: MinifyOptions) -> typ.Callable[[str, str], str]:
    """Return a transform that minifies content bound for ``.html`` outputs."""

    def _transform(content: str, output_path: str) -> str:
        if not output_path.endswith(".html"):
            return content
        return minify_html(content, options)

    return _transform


__all__ = ["BLOCK_TAGS", "htmlmin_transform", "minify_html"]
