"""index.html compilation — turns a static HTML document into a renderer.

At build time the document is split around two attribute slots: the
first bare ``<html>`` tag and the first bare ``<body>`` tag. At render
time each slot receives ``attrs["html"]`` / ``attrs["body"]`` (or nothing),
and everything else is emitted exactly as written. No code is generated,
so backticks, backslashes and ``${...}`` in the document need no escaping.

Only the literal bare tags are recognised; ``<html lang="en">`` is not a
slot, and later duplicates are left alone.

Key entities:
  - compile_index_html(): source text → IndexHtml.
  - render_index_html(): IndexHtml + request data → HTML string.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Slot name → the bare opening tag it attaches to
_SLOT_TAGS = (("html", "<html>"), ("body", "<body>"))


class TemplateCompileError(ValueError):
    """The HTML source could not be compiled."""


@dataclass(frozen=True)
class RenderContext:
    """Per-request data handed to the renderer.

    Only ``attrs`` is read. ``head``, ``element``, ``hydration`` and
    ``extra`` are accepted so callers can pass the same context they hand
    to other renderers; a static document has nowhere to put them.
    """

    attrs: Mapping[str, Any] = field(default_factory=dict)
    head: Any = None
    element: Any = None
    hydration: Any = None
    extra: Any = None


@dataclass(frozen=True)
class RenderHelpers:
    """Render-time capabilities, accepted but not used.

    ``devalue`` is the hydration serializer other renderers receive. The
    static document embeds no hydration payload, so it is never called.
    """

    devalue: Callable[[Any], str] | None = None


@dataclass(frozen=True)
class IndexHtml:
    """A compiled index.html.

    ``segments`` always has one more entry than ``slots``; rendering
    interleaves them.
    """

    segments: tuple[str, ...]
    slots: tuple[str, ...] = ()

    @property
    def source(self) -> str:
        """Placeholder form of the template, e.g. ``<html${attrs.html}>``."""
        parts = [self.segments[0]]
        for slot, segment in zip(self.slots, self.segments[1:]):
            parts.append(f"${{attrs.{slot}}}")
            parts.append(segment)
        return "".join(parts)

    def __call__(
        self,
        req: Any,
        context: RenderContext | Mapping[str, Any] | None = None,
        helpers: RenderHelpers | Mapping[str, Any] | None = None,
    ) -> str:
        return render_index_html(self, req, context, helpers)


def compile_index_html(source: str | bytes) -> IndexHtml:
    """Compile an HTML document into an IndexHtml.

    Raises:
        TemplateCompileError: If source is not text or not valid UTF-8.
    """
    if isinstance(source, bytes):
        try:
            source = source.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TemplateCompileError(f"HTML source is not valid UTF-8: {e}") from e
    if not isinstance(source, str):
        raise TemplateCompileError(
            f"HTML source must be str or bytes, not {type(source).__name__}"
        )

    # (insert position, slot) — insert right before the tag's closing '>'
    found = []
    for slot, tag in _SLOT_TAGS:
        index = source.find(tag)
        if index != -1:
            found.append((index + len(tag) - 1, slot))
    found.sort()

    segments: list[str] = []
    start = 0
    for position, _ in found:
        segments.append(source[start:position])
        start = position
    segments.append(source[start:])
    return IndexHtml(tuple(segments), tuple(slot for _, slot in found))


def compile_index_html_file(path: Path) -> IndexHtml:
    """Read and compile an index.html from disk."""
    return compile_index_html(Path(path).read_bytes())


def _attrs_of(context: RenderContext | Mapping[str, Any] | None) -> Mapping[str, Any]:
    if context is None:
        return {}
    if isinstance(context, RenderContext):
        return context.attrs or {}
    return context.get("attrs") or {}


def render_index_html(
    template: IndexHtml,
    req: Any,
    context: RenderContext | Mapping[str, Any] | None = None,
    helpers: RenderHelpers | Mapping[str, Any] | None = None,
) -> str:
    """Render a compiled template for one request.

    Each slot gets ``attrs[slot]`` when it is truthy, otherwise nothing.
    ``req`` and ``helpers`` are accepted for signature compatibility with
    renderers that need them; the static document does not.
    """
    attrs = _attrs_of(context)
    parts = [template.segments[0]]
    for slot, segment in zip(template.slots, template.segments[1:]):
        value = attrs.get(slot)
        parts.append(str(value) if value else "")
        parts.append(segment)
    return "".join(parts)
