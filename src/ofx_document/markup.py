"""Structural tree for OFX markup and the tolerant SGML tree builder.

Legacy OFX omits the closing tags of data elements (``<TRNAMT>-12.34``
followed directly by the next tag). ``build_tree`` rebuilds the element
hierarchy with an open-element stack, closing a pending leaf whenever the next
tag arrives, and ``serialize`` turns the result into single-line XML so both
transport variants go through ``parse_xml``.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple
from xml.sax.saxutils import unescape

from ofx_document.errors import ErrorKind, OFXParseError

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Iterator

LOGGER = logging.getLogger(__name__)

AGGREGATES: frozenset[str] = frozenset(
    {
        'OFX',
        'SIGNONMSGSRSV1',
        'SONRS',
        'STATUS',
        'FI',
        'BANKMSGSRSV1',
        'STMTTRNRS',
        'STMTRS',
        'BANKACCTFROM',
        'BANKACCTTO',
        'BANKTRANLIST',
        'STMTTRN',
        'PAYEE',
        'LEDGERBAL',
        'AVAILBAL',
        'BALLIST',
        'BAL',
        'CREDITCARDMSGSRSV1',
        'CCSTMTTRNRS',
        'CCSTMTRS',
        'CCACCTFROM',
        'CCACCTTO',
    }
)
"""Elements that always contain other elements and need an explicit closing tag."""

LEAVES: frozenset[str] = frozenset(
    {
        'CODE',
        'SEVERITY',
        'MESSAGE',
        'DTSERVER',
        'LANGUAGE',
        'DTPROFUP',
        'DTACCTUP',
        'ORG',
        'FID',
        'SESSCOOKIE',
        'INTU.BID',
        'INTU.USERID',
        'TRNUID',
        'CLTCOOKIE',
        'CURDEF',
        'BANKID',
        'BRANCHID',
        'ACCTID',
        'ACCTTYPE',
        'ACCTKEY',
        'DTSTART',
        'DTEND',
        'TRNTYPE',
        'DTPOSTED',
        'DTUSER',
        'DTAVAIL',
        'TRNAMT',
        'FITID',
        'CORRECTFITID',
        'CORRECTACTION',
        'SRVRTID',
        'CHECKNUM',
        'REFNUM',
        'SIC',
        'PAYEEID',
        'NAME',
        'EXTDNAME',
        'MEMO',
        'CURRATE',
        'CURSYM',
        'INV401KSOURCE',
        'BALAMT',
        'DTASOF',
        'DESC',
        'BALTYPE',
        'VALUE',
        'MKTGINFO',
    }
)
"""Data elements whose closing tag is optional."""

SNIFFED: frozenset[str] = frozenset({'CURRENCY', 'ORIGCURRENCY'})
"""Elements that are data in some producers and aggregates (with ``CURSYM``) in others."""

_TOKEN = re.compile(r'<(?P<close>/?)(?P<tag>[A-Za-z0-9_.]+)\s*>|(?P<text>[^<]+)|(?P<stray><)')
_LINE_BREAKS = re.compile(r'[\r\n]+')
_XML_ILLEGAL = re.compile('[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]')
_LINE_END = re.compile(r'\r\n|\r|\n')
_TRAILER = ' \t\r\n\x1a'
_ENTITIES = {'&quot;': '"', '&apos;': "'", '&nbsp;': ' '}


@dataclass(slots=True)
class Node:
    """Element of the structural tree: a tag, optional text and ordered children."""

    tag: str
    text: str | None = None
    children: list[Node] = field(default_factory=list)

    def iter(self, tag: str | None = None) -> Iterator[Node]:
        """Yield this node and its descendants in document order."""

        if tag is None or self.tag == tag:
            yield self
        for child in self.children:
            yield from child.iter(tag)

    def find(self, path: str) -> Node | None:
        """Follow ``path`` (``'A/B'``) through direct children."""

        current: Node | None = self
        for part in path.split('/'):
            if current is None:
                return None
            current = next((child for child in current.children if child.tag == part), None)
        return current

    def search(self, path: str) -> Node | None:
        """Return the first descendant matching ``path`` anywhere below this node."""

        first, _sep, rest = path.partition('/')
        for child in self.children:
            for candidate in child.iter(first):
                found = candidate.find(rest) if rest else candidate
                if found is not None:
                    return found
        return None

    def search_all(self, tag: str) -> list[Node]:
        """Return every descendant named ``tag`` in document order."""

        return [node for child in self.children for node in child.iter(tag)]


class _Token(NamedTuple):
    kind: str
    value: str
    position: int


@dataclass(slots=True)
class _OpenElement:
    node: Node
    leaf: bool
    position: int

    @property
    def required_close(self) -> bool:
        return self.node.tag in AGGREGATES


def _markup_error(message: str, tag: str | None, position: int | None) -> OFXParseError:
    return OFXParseError(ErrorKind.MARKUP, message, field=tag, raw=f'<{tag}>' if tag else None, position=position)


def _clean_text(value: str) -> str:
    """Drop surrounding whitespace and join wrapped lines without a separator."""

    return unescape(_LINE_BREAKS.sub('', value.strip()), _ENTITIES)


def _tokenize(text: str) -> Iterator[_Token]:
    for match in _TOKEN.finditer(text):
        if match.group('stray') is not None:
            raise _markup_error(f'Malformed tag at offset {match.start()}', None, match.start())
        if match.group('text') is not None:
            yield _Token('text', match.group('text'), match.start())
            continue
        kind = 'close' if match.group('close') else 'open'
        yield _Token(kind, match.group('tag').upper(), match.start())


def _is_leaf(tag: str, tokens: list[_Token], index: int) -> bool:
    """Classify ``tag`` via the schema, sniffing the next token for unknown names."""

    if tag in AGGREGATES:
        return False
    if tag in LEAVES:
        return True
    following = tokens[index + 1] if index + 1 < len(tokens) else None
    leaf = following is not None and (
        (following.kind == 'text' and bool(following.value.strip()))
        or (following.kind == 'close' and following.value == tag)
    )
    if tag not in SNIFFED:
        LOGGER.warning('Unknown OFX element <%s> treated as %s', tag, 'data' if leaf else 'aggregate')
    return leaf


def _close_pending_leaf(stack: list[_OpenElement]) -> None:
    if stack and stack[-1].leaf:
        stack.pop()


def _close_element(stack: list[_OpenElement], token: _Token) -> None:
    tag = token.value
    if not any(entry.node.tag == tag for entry in stack):
        raise _markup_error(f'Unmatched closing tag </{tag}> at offset {token.position}', tag, token.position)
    while stack:
        entry = stack.pop()
        if entry.node.tag == tag:
            return
        if entry.required_close:
            raise _markup_error(
                f'Closing tag </{tag}> at offset {token.position} while <{entry.node.tag}> is still open',
                entry.node.tag,
                entry.position,
            )


def build_tree(text: str) -> Node:
    """Build the structural tree of legacy (SGML) OFX markup ``text``."""

    # DOS end-of-file markers after the root are trailing padding
    tokens = list(_tokenize(text.rstrip(_TRAILER)))
    stack: list[_OpenElement] = []
    root: Node | None = None

    for index, token in enumerate(tokens):
        if token.kind == 'text':
            content = _clean_text(token.value)
            if not content:
                continue
            top = stack[-1] if stack else None
            if top is None or not top.leaf or top.node.text is not None:
                tag = top.node.tag if top else None
                raise _markup_error(f'Unexpected text {content[:20]!r} at offset {token.position}', tag, token.position)
            illegal = _XML_ILLEGAL.search(content)
            if illegal is not None:
                position = token.position + token.value.find(illegal.group())
                raise _markup_error(
                    f'Character {illegal.group()!r} is not allowed in <{top.node.tag}> at offset {position}',
                    top.node.tag,
                    position,
                )
            top.node.text = content
        elif token.kind == 'open':
            _close_pending_leaf(stack)
            node = Node(token.value)
            if stack:
                stack[-1].node.children.append(node)
            elif root is None:
                root = node
            else:
                raise _markup_error(
                    f'Element <{token.value}> at offset {token.position} follows the root element',
                    token.value,
                    token.position,
                )
            stack.append(_OpenElement(node, _is_leaf(token.value, tokens, index), token.position))
        else:
            _close_element(stack, token)

    _close_pending_leaf(stack)
    if stack:
        entry = stack[-1]
        raise _markup_error(f'Element <{entry.node.tag}> is never closed', entry.node.tag, entry.position)
    if root is None:
        raise _markup_error('No OFX elements found', None, 0)
    return root


def _to_element(node: Node) -> ET.Element:
    element = ET.Element(node.tag)
    element.text = node.text
    element.extend(_to_element(child) for child in node.children)
    return element


def _from_element(element: ET.Element) -> Node:
    text = _LINE_BREAKS.sub('', element.text.strip()) if element.text else ''
    return Node(
        tag=element.tag,
        text=text or None,
        children=[_from_element(child) for child in element],
    )


def serialize(node: Node) -> str:
    """Serialize ``node`` as single-line, well-formed XML."""

    return ET.tostring(_to_element(node), encoding='unicode')


def sgml_to_xml(text: str) -> str:
    """Convert legacy OFX markup (header already removed) into XML text."""

    return serialize(build_tree(text))


def parse_xml(text: str) -> Node:
    """Parse well-formed OFX markup into a ``Node`` tree."""

    source = text.lstrip('\ufeff').strip().rstrip(_TRAILER)
    try:
        element = ET.fromstring(source)
    except ET.ParseError as exc:
        line, column = exc.position
        position = _offset(source, line, column)
        raise OFXParseError(
            ErrorKind.MARKUP,
            f'Malformed OFX markup at line {line}, column {column} (offset {position}): {exc}',
            position=position,
        ) from exc
    return _from_element(element)


def _offset(text: str, line: int, column: int) -> int:
    """Turn expat's 1-based line and 0-based column into an offset into ``text``."""

    starts = [0] + [match.end() for match in _LINE_END.finditer(text)]
    return starts[min(max(line, 1), len(starts)) - 1] + column
