"""
CSS selector queries over raw, unrendered markup.

Documents are parsed with selectolax (Lexbor backend); scripts are never executed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List

from selectolax.lexbor import LexborHTMLParser, LexborNode, SelectolaxError

from .errors import AttributeMissingError, InvalidSelectorError, NoMatchError
from .fetcher import FetchedDocument


@dataclass(frozen=True)
class SelectionContext:
    """Elements matched by one selector, in document order."""

    selector: str
    nodes: List[LexborNode] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[LexborNode]:
        return iter(self.nodes)

    @property
    def empty(self) -> bool:
        return not self.nodes

    def require_match(self) -> None:
        if self.empty:
            raise NoMatchError(f"No elements matched selector {self.selector!r}")


class SelectorEngine:
    """Queryable view over a single document's markup."""

    def __init__(self, markup: str):
        self.tree = LexborHTMLParser(markup)

    @classmethod
    def from_document(cls, document: FetchedDocument) -> "SelectorEngine":
        return cls(document.text)

    def select(self, selector: str) -> SelectionContext:
        """Return every element matching ``selector``. No match is not an error here."""
        try:
            nodes = self.tree.css(selector)
        except SelectolaxError as e:
            raise InvalidSelectorError(f"Invalid selector {selector!r}: {e}") from e
        return SelectionContext(selector=selector, nodes=list(nodes))

    @staticmethod
    def get_text(context: SelectionContext, *, spaced: bool = False) -> str:
        """Concatenate the text of all matched elements.

        Without ``spaced`` the text nodes are joined verbatim. With ``spaced``
        each text node is stripped, empty ones are dropped, the rest are joined
        by a single space and inner whitespace runs collapse to one space.
        """
        context.require_match()

        if not spaced:
            return "".join(node.text(deep=True) for node in context)

        pieces = []
        for node in context:
            text = " ".join(node.text(deep=True, separator=" ", strip=True).split())
            if text:
                pieces.append(text)
        return " ".join(pieces)

    @staticmethod
    def get_attribute(context: SelectionContext, name: str) -> str:
        """Return attribute ``name`` of the first matched element."""
        context.require_match()

        first = context.nodes[0]
        attributes = first.attributes
        key = name.lower()
        if key not in attributes:
            raise AttributeMissingError(
                f"Element matched by {context.selector!r} has no attribute {name!r}", attribute=name
            )
        # Valueless attributes such as <input disabled> come back as None.
        return attributes[key] or ""
