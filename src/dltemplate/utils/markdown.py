"""Small Markdown renderer used by ``@markdown(...)`` when none is configured.

Covers the block forms views typically embed: ATX headings, paragraphs,
bullet and numbered lists, fenced code, block quotes and horizontal rules,
plus inline code, emphasis and links. Input is HTML-escaped first.

Pass ``markdown=`` to ``Environment`` to plug in a full renderer.
"""

from __future__ import annotations

import re

from dltemplate.utils.html import html_escape

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*#*$")
_BULLET_RE = re.compile(r"^[-*+]\s+(.*)$")
_NUMBERED_RE = re.compile(r"^\d+[.)]\s+(.*)$")
_RULE_RE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})$")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")
_CODE_RE = re.compile(r"`([^`]+)`")


def _render_emphasis(text: str) -> str:
    text = re.sub(r"\*\*([^*]+)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"__([^_]+)__", r"<strong>\1</strong>", text)
    text = re.sub(r"\*([^*]+)\*", r"<em>\1</em>", text)
    return text


def render_inline(text: str) -> str:
    """Render inline Markdown (code spans, emphasis, links) to HTML."""
    escaped = html_escape(text)
    codes: list[str] = []

    def stash(match: re.Match[str]) -> str:
        codes.append(f"<code>{match.group(1)}</code>")
        return f"\x00{len(codes) - 1}\x00"

    escaped = _CODE_RE.sub(stash, escaped)

    parts: list[str] = []
    last = 0
    for match in _LINK_RE.finditer(escaped):
        parts.append(_render_emphasis(escaped[last : match.start()]))
        parts.append(f'<a href="{match.group(2)}">{_render_emphasis(match.group(1))}</a>')
        last = match.end()
    parts.append(_render_emphasis(escaped[last:]))

    return re.sub(r"\x00(\d+)\x00", lambda m: codes[int(m.group(1))], "".join(parts))


def render_markdown(text: str) -> str:
    """Render a Markdown document to HTML."""
    lines = str(text or "").replace("\r\n", "\n").split("\n")
    rendered: list[str] = []
    block: list[str] = []
    mode: str | None = None

    def flush() -> None:
        nonlocal mode
        if not block:
            mode = None
            return
        if mode == "code":
            rendered.append(f"<pre><code>{html_escape(chr(10).join(block))}</code></pre>")
        elif mode in ("ul", "ol"):
            items = "".join(f"<li>{render_inline(item)}</li>" for item in block)
            rendered.append(f"<{mode}>{items}</{mode}>")
        elif mode == "quote":
            rendered.append(f"<blockquote>{render_markdown(chr(10).join(block))}</blockquote>")
        else:
            rendered.append(f"<p>{render_inline(' '.join(block))}</p>")
        block.clear()
        mode = None

    for line in lines:
        stripped = line.strip()

        if stripped.startswith("```"):
            if mode == "code":
                flush()
            else:
                flush()
                mode = "code"
            continue
        if mode == "code":
            block.append(line)
            continue

        if not stripped:
            flush()
            continue

        heading = _HEADING_RE.match(stripped)
        if heading:
            flush()
            level = len(heading.group(1))
            rendered.append(f"<h{level}>{render_inline(heading.group(2))}</h{level}>")
            continue

        if _RULE_RE.match(stripped):
            flush()
            rendered.append("<hr />")
            continue

        for kind, pattern in (("ul", _BULLET_RE), ("ol", _NUMBERED_RE)):
            item = pattern.match(stripped)
            if item:
                if mode != kind:
                    flush()
                    mode = kind
                block.append(item.group(1))
                break
        else:
            if stripped.startswith(">"):
                if mode != "quote":
                    flush()
                    mode = "quote"
                block.append(stripped[1:].lstrip())
            else:
                if mode not in (None, "p"):
                    flush()
                mode = "p"
                block.append(stripped)

    flush()
    return "\n".join(rendered)
