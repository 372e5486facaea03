"""Query-string and URI-template utilities."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote, unquote_plus


if TYPE_CHECKING:
    from typedhttp.http.args import HttpArg


# Characters left literal when rendering names and values
QUERY_SAFE_CHARS = "$,:"


@dataclass(frozen=True)
class QueryString:
    """Ordered, multi-valued query string.

    Every mutating operation returns a new instance. Parameter order is the
    order of insertion and duplicate names are kept, since both are visible
    on the wire.
    """

    pairs: tuple[tuple[str, str], ...] = ()

    @classmethod
    def parse(cls, text: str | None) -> "QueryString":
        """Parse a raw query string.

        Args:
            text: Query text with or without the leading ``?``.

        Returns:
            Parsed query string; empty when text is empty or None.
        """
        if not text:
            return cls()

        body = text[1:] if text.startswith("?") else text
        pairs: list[tuple[str, str]] = []
        for part in body.split("&"):
            if not part:
                continue
            name, _, value = part.partition("=")
            pairs.append((unquote_plus(name), unquote_plus(value)))
        return cls(tuple(pairs))

    def add(self, name: str, value: str) -> "QueryString":
        """Return a copy with one more parameter appended."""
        return QueryString((*self.pairs, (name, value)))

    def extend(self, other: "QueryString | Iterable[tuple[str, str]]") -> "QueryString":
        """Return a copy with all parameters of ``other`` appended."""
        extra = other.pairs if isinstance(other, QueryString) else tuple(other)
        return QueryString((*self.pairs, *extra))

    def get(self, name: str, *, case_sensitive: bool = True) -> str | None:
        """Get the first value for a name, or None."""
        values = self.get_all(name, case_sensitive=case_sensitive)
        return values[0] if values else None

    def get_all(self, name: str, *, case_sensitive: bool = True) -> list[str]:
        """Get every value for a name in insertion order."""
        if case_sensitive:
            return [v for n, v in self.pairs if n == name]
        lowered = name.lower()
        return [v for n, v in self.pairs if n.lower() == lowered]

    def names(self) -> list[str]:
        """Get parameter names in insertion order (duplicates included)."""
        return [n for n, _ in self.pairs]

    def render(self) -> str:
        """Render as ``?name=value&...``, or an empty string when empty."""
        if not self.pairs:
            return ""
        return "?" + "&".join(
            f"{quote(n, safe=QUERY_SAFE_CHARS)}={quote(v, safe=QUERY_SAFE_CHARS)}"
            for n, v in self.pairs
        )

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    def __bool__(self) -> bool:
        return bool(self.pairs)

    def __str__(self) -> str:
        return self.render()


def split_uri(uri: str) -> tuple[str, str]:
    """Split a URI into the part before ``?`` and the raw query after it.

    Args:
        uri: Absolute or relative URI.

    Returns:
        Tuple of (path, query) where query excludes the ``?``.
    """
    path, _, query = uri.partition("?")
    return path, query


def append_query(path: str, raw_query: str, query: QueryString) -> str:
    """Join a path, its raw query text and further parameters into a URI.

    The raw query is kept byte for byte; the parameters are rendered and
    appended after it with ``&``.

    Args:
        path: URI without its query.
        raw_query: Existing query text, without the ``?``.
        query: Parameters to append.

    Returns:
        The combined URI.
    """
    added = query.render()[1:]
    if not added:
        return f"{path}?{raw_query}" if raw_query else path
    raw_query = raw_query.rstrip("&")
    if not raw_query:
        return f"{path}?{added}"
    return f"{path}?{raw_query}&{added}"


def format_uri_template(template: str, args: "Iterable[HttpArg] | None") -> str:
    """Substitute ``{name}`` placeholders with argument values.

    The template is scanned left to right. ``{{`` and ``}}`` are escapes and
    render as a single literal brace. A ``{...}`` span is replaced only when
    an argument with exactly that name yields an escaped value; otherwise the
    span is copied verbatim. An unterminated ``{`` is copied verbatim.

    Args:
        template: URI template, e.g. ``/orders/{id}``.
        args: Request arguments, searched in order.

    Returns:
        The template with matched placeholders substituted.
    """
    arg_list = list(args or [])
    if "{" not in template and "}" not in template:
        return template

    out: list[str] = []
    i = 0
    length = len(template)
    while i < length:
        ch = template[i]
        if ch == "{":
            if i + 1 < length and template[i + 1] == "{":
                out.append("{")
                i += 2
                continue

            end = template.find("}", i + 1)
            if end < 0:
                out.append(template[i:])
                break

            name = template[i + 1 : end]
            replacement = _resolve_placeholder(name, arg_list)
            out.append(template[i : end + 1] if replacement is None else replacement)
            i = end + 1
            continue

        if ch == "}" and i + 1 < length and template[i + 1] == "}":
            out.append("}")
            i += 2
            continue

        out.append(ch)
        i += 1

    return "".join(out)


def _resolve_placeholder(name: str, args: "list[HttpArg]") -> str | None:
    for arg in args:
        if arg.name == name:
            escaped = arg.to_escaped_string()
            if escaped is not None:
                return escaped
    return None
