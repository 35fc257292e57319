import pytest

from ofx_document.errors import ErrorKind, OFXParseError
from ofx_document.markup import Node, build_tree, parse_xml, serialize, sgml_to_xml


def test_leaves_close_at_next_tag() -> None:
    root = build_tree('<STATUS>\n<CODE>0\n<SEVERITY>INFO\n</STATUS>')
    assert root.tag == 'STATUS'
    assert [(child.tag, child.text) for child in root.children] == [('CODE', '0'), ('SEVERITY', 'INFO')]


def test_explicit_leaf_closing_tags_are_accepted() -> None:
    root = build_tree('<STATUS><CODE>0</CODE><SEVERITY>INFO</SEVERITY></STATUS>')
    assert [(child.tag, child.text) for child in root.children] == [('CODE', '0'), ('SEVERITY', 'INFO')]


def test_sgml_to_xml_is_single_line() -> None:
    xml = sgml_to_xml('<STATUS>\r\n<CODE>0\r\n<SEVERITY>INFO\r\n</STATUS>\r\n')
    assert xml == '<STATUS><CODE>0</CODE><SEVERITY>INFO</SEVERITY></STATUS>'


def test_wrapped_text_is_joined_without_separator() -> None:
    root = build_tree('<STMTTRN>\n<MEMO>Part one\npart two\n<NAME>Shop\n</STMTTRN>')
    memo = root.find('MEMO')
    assert memo is not None
    assert memo.text == 'Part onepart two'


def test_entities_round_trip_through_serialization() -> None:
    root = build_tree('<STMTTRN><NAME>AT&amp;T<MEMO>A & B</STMTTRN>')
    assert root.find('NAME') == Node('NAME', 'AT&T')
    assert root.find('MEMO') == Node('MEMO', 'A & B')
    xml = serialize(root)
    assert 'AT&amp;T' in xml
    assert parse_xml(xml) == root


def test_lowercase_tags_are_normalized() -> None:
    root = build_tree('<status><code>0</status>')
    assert root.tag == 'STATUS'
    assert root.children[0].tag == 'CODE'


def test_unknown_element_with_text_is_a_leaf() -> None:
    root = build_tree('<STMTTRN><XYZ.TAG>hello<NAME>Shop</STMTTRN>')
    assert [child.tag for child in root.children] == ['XYZ.TAG', 'NAME']
    assert root.children[0].text == 'hello'


def test_unknown_element_without_text_is_an_aggregate() -> None:
    root = build_tree('<STMTTRN><EXTRA><NAME>Shop</EXTRA><MEMO>m</STMTTRN>')
    assert [child.tag for child in root.children] == ['EXTRA', 'MEMO']
    assert root.children[0].children == [Node('NAME', 'Shop')]


def test_currency_may_be_data_or_aggregate() -> None:
    leaf = build_tree('<STMTTRN><CURRENCY>EUR<NAME>a</STMTTRN>')
    assert leaf.find('CURRENCY') == Node('CURRENCY', 'EUR')

    aggregate = build_tree('<STMTTRN><CURRENCY><CURRATE>1.0<CURSYM>EUR</CURRENCY><NAME>a</STMTTRN>')
    assert aggregate.find('CURRENCY/CURSYM') == Node('CURSYM', 'EUR')
    assert aggregate.find('NAME') == Node('NAME', 'a')


def test_unmatched_closing_tag_reports_tag_and_offset() -> None:
    with pytest.raises(OFXParseError, match='BANKTRANLIST') as excinfo:
        build_tree('<OFX></BANKTRANLIST></OFX>')
    assert excinfo.value.kind is ErrorKind.MARKUP
    assert excinfo.value.field == 'BANKTRANLIST'
    assert excinfo.value.position == 5


def test_closing_parent_while_aggregate_is_open_fails() -> None:
    with pytest.raises(OFXParseError) as excinfo:
        build_tree('<OFX><STMTTRN><NAME>x</OFX>')
    assert excinfo.value.field == 'STMTTRN'
    assert excinfo.value.position == 5


def test_unclosed_root_fails() -> None:
    with pytest.raises(OFXParseError, match='never closed'):
        build_tree('<OFX><CODE>0')


@pytest.mark.parametrize(
    'markup',
    [
        '<OFX>junk<CODE>0</OFX>',
        '<OFX></OFX><OFX></OFX>',
        '<OFX><!-- note --></OFX>',
        '   ',
    ],
)
def test_unresolvable_markup_fails(markup: str) -> None:
    with pytest.raises(OFXParseError) as excinfo:
        build_tree(markup)
    assert excinfo.value.kind is ErrorKind.MARKUP


def test_parse_xml_drops_processing_instructions_and_whitespace(bank_xml: str) -> None:
    root = parse_xml(bank_xml)
    assert root.tag == 'OFX'
    assert root.text is None
    assert root.find('SIGNONMSGSRSV1/SONRS/LANGUAGE') == Node('LANGUAGE', 'ENG')


def test_parse_xml_rejects_malformed_markup() -> None:
    with pytest.raises(OFXParseError) as excinfo:
        parse_xml('<OFX><CODE>0</OFX>')
    assert excinfo.value.kind is ErrorKind.MARKUP


def test_node_lookup_helpers() -> None:
    root = build_tree(
        '<OFX><LIST><STMTTRN><FITID>1</STMTTRN><STMTTRN><FITID>2<PAYEE><NAME>p</PAYEE></STMTTRN></LIST></OFX>'
    )
    assert root.find('LIST/STMTTRN/FITID') == Node('FITID', '1')
    assert root.find('LIST/MISSING/FITID') is None
    assert root.search('PAYEE/NAME') == Node('NAME', 'p')
    assert [node.text for node in root.search_all('FITID')] == ['1', '2']
    assert root.search('OFX') is None


@pytest.mark.parametrize('char', ['\x00', '\x08', '\x0b', '\x0c', '\x1a', '\x1f'])
def test_control_characters_in_leaf_text_fail_at_their_offset(char: str) -> None:
    markup = f'<OFX><NAME>COFFEE{char}SHOP</OFX>'
    with pytest.raises(OFXParseError) as excinfo:
        build_tree(markup)
    assert excinfo.value.kind is ErrorKind.MARKUP
    assert excinfo.value.field == 'NAME'
    assert excinfo.value.position == markup.index(char)


def test_trailing_end_of_file_marker_is_ignored() -> None:
    root = build_tree('<OFX><CODE>0</OFX>\r\n\x1a')
    assert root == Node('OFX', children=[Node('CODE', '0')])
    assert parse_xml('<OFX><CODE>0</CODE></OFX>\n\x1a') == root


def test_parse_xml_error_position_is_an_offset() -> None:
    markup = '<OFX>\n  <CODE>0</CODE>\n  <NAME>a</MEMO>\n</OFX>'
    with pytest.raises(OFXParseError) as excinfo:
        parse_xml(markup)
    position = excinfo.value.position
    assert position is not None
    assert markup.index('<NAME>') < position < markup.index('</OFX>')
