"""
Markdown processing module: parsing, serializing and locating images.
"""

import html
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

import mistune
from mistune.core import BlockState
from mistune.renderers.markdown import MarkdownRenderer

Token = Dict[str, Any]


class EscapingMarkdownRenderer(MarkdownRenderer):
    """
    MarkdownRenderer that keeps literal text literal.

    The parser drops the backslash from escapes such as ``\\![x](url)`` or
    ``\\<img ...>``; written back as-is they would turn into live images.
    """

    TEXT_ESCAPE_PATTERN = re.compile(r"\\|<|\[|!(?=\[)")

    def text(self, token: Token, state: BlockState) -> str:
        raw = self.TEXT_ESCAPE_PATTERN.sub(lambda m: "\\" + m.group(0), token["raw"])
        return super().text(dict(token, raw=raw), state)

    def iter_tokens(self, tokens: Iterable[Token], state: BlockState) -> Iterator[str]:
        tokens = list(tokens)
        for index, token in enumerate(tokens):
            out = self.render_token(token, state)
            following = tokens[index + 1] if index + 1 < len(tokens) else None
            # "!" followed by a link would read back as an image.
            if token["type"] == "text" and out.endswith("!") and following and following["type"] == "link":
                out = out[:-1] + "\\!"
            yield out


class MarkdownDocument:
    """
    A parsed markdown document.

    Wraps mistune's token tree together with the block state it was parsed
    with; the state holds the reference definitions the renderer needs to
    write the document back out.
    """

    def __init__(self, tokens: List[Token], state: BlockState):
        self.tokens = tokens
        self.state = state

    @classmethod
    def parse(cls, markdown: str) -> "MarkdownDocument":
        parser = mistune.create_markdown(renderer="ast")
        tokens, state = parser.parse(markdown)
        return cls(tokens, state)

    def serialize(self) -> str:
        return EscapingMarkdownRenderer()(self.tokens, self.state)

    def walk(self) -> Iterator[Token]:
        """Yield every token depth-first, in document order."""
        stack = [iter(self.tokens)]
        while stack:
            token = next(stack[-1], None)
            if token is None:
                stack.pop()
                continue
            yield token
            children = token.get("children")
            if isinstance(children, list):
                stack.append(iter(children))


@dataclass
class StructuredImage:
    """An image token whose URL lives in ``attrs["url"]``."""
    token: Token

    @property
    def url(self) -> str:
        return self.token["attrs"]["url"]

    @property
    def alt_text(self) -> str:
        return "".join(child.get("raw", "") for child in self.token.get("children", []))

    def apply(self, data_uri: str) -> None:
        self.token["attrs"]["url"] = str(data_uri)
        # A reference-style image renders through its shared definition;
        # drop the label so this one is written inline.
        self.token.pop("label", None)
        self.token.pop("ref", None)


@dataclass
class EmbeddedMarkupImage:
    """
    An ``<img>`` tag inside a raw HTML token.

    ``start``/``end`` delimit the ``src`` value in ``token["raw"]`` as it was
    when the document was scanned, and ``raw_url`` is the text found there.
    ``url`` is the same value with HTML entities decoded.
    """
    token: Token
    raw_url: str
    start: int
    end: int

    @property
    def url(self) -> str:
        return html.unescape(self.raw_url)

    def apply(self, data_uri: str) -> None:
        raw = self.token["raw"]
        if raw[self.start:self.end] != self.raw_url:
            raise ValueError(f"Markup no longer holds {self.raw_url!r} at {self.start}:{self.end}")
        self.token["raw"] = raw[:self.start] + str(data_uri) + raw[self.end:]


ImageReference = Union[StructuredImage, EmbeddedMarkupImage]


class ImageReferenceScanner:
    """Collects every image reference of a document, in document order."""

    # Only the first <img> of a raw HTML token is handled.
    IMG_TAG_PATTERN = re.compile(
        r'<img\s[^>]*?(?<![\w-])src\s*=\s*(?:"(?P<dq>[^"]+)"|\'(?P<sq>[^\']+)\')[^>]*>',
        re.IGNORECASE,
    )
    HTML_TOKEN_TYPES = ("block_html", "inline_html")

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def scan(self, document: MarkdownDocument) -> List[ImageReference]:
        references: List[ImageReference] = []
        for token in document.walk():
            token_type = token.get("type")
            if token_type == "image":
                references.append(StructuredImage(token))
            elif token_type in self.HTML_TOKEN_TYPES:
                reference = self.find_markup_image(token)
                if reference is not None:
                    references.append(reference)
        self.logger.debug(f"Found {len(references)} image references in markdown")
        return references

    def find_markup_image(self, token: Token) -> Optional[EmbeddedMarkupImage]:
        match = self.IMG_TAG_PATTERN.search(token.get("raw", ""))
        if not match:
            return None
        group = "dq" if match.group("dq") is not None else "sq"
        return EmbeddedMarkupImage(
            token=token,
            raw_url=match.group(group),
            start=match.start(group),
            end=match.end(group),
        )
