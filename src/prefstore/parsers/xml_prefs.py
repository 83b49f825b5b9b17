# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Importer for Java Preferences XML documents.

Reads a document in the format produced by ``java.util.prefs`` exports and
materializes it into a PreferenceNode tree.

Document format:
    <?xml version="1.0" encoding="UTF-8"?>
    <!DOCTYPE preferences SYSTEM "http://java.sun.com/dtd/preferences.dtd">
    <preferences EXTERNAL_XML_VERSION="1.0">
      <root type="user">
        <map>
          <entry key="color" value="red"/>
        </map>
        <node name="com">
          <map/>
        </node>
      </root>
    </preferences>

The parser runs in strict mode: any parser error aborts the import, the
only accepted system identifier is the preferences DTD URI, and nothing is
ever fetched. The whole document is parsed and checked against the
preferences document type before the tree is touched. Import itself is not
atomic: an invalid node name found while importing leaves the entries and
nodes applied so far in place.
"""

from __future__ import annotations

import re
from typing import IO, Any
from xml.etree.ElementTree import Element, TreeBuilder
from xml.parsers import expat

import structlog

from ..exceptions import (
    InvalidFormatError,
    PreferencesIOError,
    UnsupportedFormatVersionError,
)
from ..node import Partition, PreferenceNode

logger = structlog.get_logger(__name__)

# The required DTD URI for exported preferences
PREFS_DTD_URI = 'http://java.sun.com/dtd/preferences.dtd'

# The actual DTD corresponding to the URI
PREFS_DTD = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<!-- DTD for preferences -->'
    '<!ELEMENT preferences (root) >'
    '<!ATTLIST preferences'
    ' EXTERNAL_XML_VERSION CDATA "0.0"  >'
    '<!ELEMENT root (map, node*) >'
    '<!ATTLIST root'
    '          type (system|user) #REQUIRED >'
    '<!ELEMENT node (map, node*) >'
    '<!ATTLIST node'
    '          name CDATA #REQUIRED >'
    '<!ELEMENT map (entry*) >'
    '<!ATTLIST map'
    '  MAP_XML_VERSION CDATA "0.0"  >'
    '<!ELEMENT entry EMPTY >'
    '<!ATTLIST entry'
    '          key CDATA #REQUIRED'
    '          value CDATA #REQUIRED >'
)

# Version number of the document format this importer reads
EXTERNAL_XML_VERSION = '1.0'

# tag -> (declared attributes with their defaults, required attributes)
_ATTLISTS: dict[str, tuple[dict[str, str | None], frozenset[str]]] = {
    'preferences': ({'EXTERNAL_XML_VERSION': '0.0'}, frozenset()),
    'root': ({'type': None}, frozenset({'type'})),
    'node': ({'name': None}, frozenset({'name'})),
    'map': ({'MAP_XML_VERSION': '0.0'}, frozenset()),
    'entry': ({'key': None, 'value': None}, frozenset({'key', 'value'})),
}

_ROOT_TYPES = {
    'user': Partition.USER,
    'system': Partition.SYSTEM,
}

_PREDEFINED_ENTITIES = frozenset({'amp', 'lt', 'gt', 'quot', 'apos'})

# A raw start tag, with '>' allowed inside quoted attribute values
_START_TAG = re.compile(rb'<(?:[^"\'>]|"[^"]*"|\'[^\']*\')*>')
_ENTITY_REF = re.compile(r'&([^#;\s][^;\s]*);')
_RAW_ENTITY_REF = re.compile(rb'&([^#;\s][^;\s]*);')


class _StrictDocumentBuilder:
    """Build an element tree with expat, rejecting anything lenient parsers allow.

    The DOCTYPE external subset must be the preferences DTD, which is read
    from PREFS_DTD. Any other external entity is rejected, as are references
    to undeclared entities and text in element-only content.

    Expat drops undeclared entities in attribute values without reporting
    them once a document has an external subset, so start tags are checked
    against the raw document bytes.
    """

    def __init__(self, encoding: str | None = None) -> None:
        self._builder = TreeBuilder()
        self._doctype: str | None = None
        self._data = b''
        self._entities: set[str] = set()
        self._parser = expat.ParserCreate(encoding)
        self._parser.buffer_text = True
        self._parser.SetParamEntityParsing(expat.XML_PARAM_ENTITY_PARSING_UNLESS_STANDALONE)
        self._parser.StartDoctypeDeclHandler = self._start_doctype
        self._parser.EntityDeclHandler = self._entity_decl
        self._parser.ExternalEntityRefHandler = self._external_entity_ref
        self._parser.SkippedEntityHandler = self._skipped_entity
        self._parser.StartElementHandler = self._start_element
        self._parser.EndElementHandler = self._builder.end
        self._parser.CharacterDataHandler = self._character_data

    def parse(self, data: bytes) -> Element:
        """Parse a whole document and return its document element.

        Args:
            data: The document bytes, in an ASCII-compatible encoding.

        Raises:
            InvalidFormatError: If the document is not well-formed, has no
                preferences DOCTYPE, or references a foreign identifier or
                an undeclared entity.
        """
        self._data = data
        try:
            self._parser.Parse(data, True)
        except expat.ExpatError as e:
            raise InvalidFormatError(f"Malformed preferences document: {e}") from e
        if self._doctype is None:
            raise InvalidFormatError("Document is invalid: no grammar found")
        document = self._builder.close()
        if document.tag != self._doctype:
            raise InvalidFormatError(
                f"Document root element '{document.tag}' must match "
                f"DOCTYPE root '{self._doctype}'"
            )
        return document

    def _fail(self, message: str) -> InvalidFormatError:
        return InvalidFormatError(f"{message} (line {self._parser.CurrentLineNumber})")

    def _check_system_id(self, system_id: str | None) -> None:
        if system_id != PREFS_DTD_URI:
            raise self._fail(f"Invalid system identifier: {system_id}")

    def _check_references(self, names: list[str]) -> None:
        for name in names:
            if name not in _PREDEFINED_ENTITIES and name not in self._entities:
                raise self._fail(f"Entity '{name}' was referenced, but not declared")

    def _start_doctype(
        self, name: str, system_id: str | None, public_id: str | None, has_internal_subset: int
    ) -> None:
        self._check_system_id(system_id)
        self._doctype = name

    def _entity_decl(
        self,
        name: str,
        is_parameter_entity: int,
        value: str | None,
        base: str | None,
        system_id: str | None,
        public_id: str | None,
        notation_name: str | None,
    ) -> None:
        if system_id is not None:
            if is_parameter_entity:
                raise self._fail(f"External parameter entity '{name}' is not allowed")
            self._check_system_id(system_id)
        if is_parameter_entity:
            return
        if value is not None:
            self._check_references(_ENTITY_REF.findall(value))
        self._entities.add(name)

    def _external_entity_ref(
        self, context: str | None, base: str | None, system_id: str | None, public_id: str | None
    ) -> int:
        self._check_system_id(system_id)
        if context is not None:
            raise self._fail(f"External entity reference to '{system_id}' is not allowed")
        dtd_parser = self._parser.ExternalEntityParserCreate(context)
        dtd_parser.Parse(PREFS_DTD.encode('utf-8'), True)
        return 1

    def _skipped_entity(self, name: str, is_parameter_entity: int) -> None:
        raise self._fail(f"Entity '{name}' was referenced, but not declared")

    def _start_element(self, tag: str, attrs: dict[str, str]) -> None:
        # Elements expanded from an internal entity have no raw start tag;
        # their references were checked when the entity was declared.
        offset = self._parser.CurrentByteIndex
        if offset >= 0:
            match = _START_TAG.match(self._data, offset)
            if match is not None:
                raw_names = _RAW_ENTITY_REF.findall(match.group())
                self._check_references([n.decode('utf-8', 'replace') for n in raw_names])
        self._builder.start(tag, attrs)

    def _character_data(self, data: str) -> None:
        if data.strip():
            raise self._fail(f"Text not allowed in element content: {data.strip()[:40]!r}")


# ==================== Document checks ====================


def _check_attributes(element: Element) -> None:
    """Check element attributes against its attribute list and fill in defaults."""
    declared, required = _ATTLISTS[element.tag]
    for attr in element.attrib:
        if attr not in declared:
            raise InvalidFormatError(
                f"Attribute '{attr}' is not declared for element '{element.tag}'"
            )
    for attr in required:
        if attr not in element.attrib:
            raise InvalidFormatError(
                f"Attribute '{attr}' is required for element '{element.tag}'"
            )
    for attr, default in declared.items():
        if default is not None:
            element.attrib.setdefault(attr, default)


def _check_element(element: Element) -> None:
    """Check element and its descendants against the preferences document type.

    Walks the tree with an explicit stack, so nesting depth is not bounded
    by the recursion limit.

    Raises:
        InvalidFormatError: On undeclared elements or attributes, missing
            required attributes, or children in the wrong order.
    """
    stack = [element]
    while stack:
        element = stack.pop()
        if element.tag not in _ATTLISTS:
            raise InvalidFormatError(f"Element type '{element.tag}' is not declared")
        _check_attributes(element)
        kids = list(element)
        kid_tags = [kid.tag for kid in kids]

        if element.tag == 'preferences':
            if kid_tags != ['root']:
                raise InvalidFormatError(
                    f"Element 'preferences' must contain exactly one 'root', found {kid_tags}"
                )
        elif element.tag in ('root', 'node'):
            if not kid_tags or kid_tags[0] != 'map' or any(t != 'node' for t in kid_tags[1:]):
                raise InvalidFormatError(
                    f"Element '{element.tag}' must contain a 'map' followed by "
                    f"'node' elements, found {kid_tags}"
                )
            if element.tag == 'root' and element.get('type') not in _ROOT_TYPES:
                raise InvalidFormatError(
                    f"Attribute 'type' of 'root' must be 'user' or 'system', "
                    f"not {element.get('type')!r}"
                )
        elif element.tag == 'map':
            if any(t != 'entry' for t in kid_tags):
                raise InvalidFormatError(
                    f"Element 'map' may only contain 'entry' elements, found {kid_tags}"
                )
        elif kids:
            raise InvalidFormatError("Element 'entry' must be empty")

        stack.extend(reversed(kids))


# ==================== Loading ====================


def _read_source(source: IO[Any] | str | bytes) -> str | bytes:
    """Read the whole document from a stream, or pass document content through."""
    if isinstance(source, (str, bytes)):
        return source
    try:
        return source.read()
    except OSError as e:
        raise PreferencesIOError(f"Cannot read preferences document: {e}") from e
    except UnicodeDecodeError as e:
        raise InvalidFormatError(f"Cannot decode preferences document: {e}") from e


def _to_parser_input(data: str | bytes) -> tuple[bytes, str | None]:
    """Return ASCII-compatible document bytes and the encoding to force, if any.

    Text and UTF-16 documents are re-encoded as UTF-8; other byte documents
    keep the encoding their XML declaration names.
    """
    if isinstance(data, bytes):
        if not data.startswith((b'\xff\xfe', b'\xfe\xff', b'<\x00', b'\x00<')):
            return data, None
        try:
            data = data.decode('utf-16')
        except UnicodeDecodeError as e:
            raise InvalidFormatError(f"Cannot decode preferences document: {e}") from e
    return data.encode('utf-8'), 'utf-8'


def load_prefs_document(source: IO[Any] | str | bytes) -> Element:
    """Parse and check a preferences document.

    Args:
        source: Binary or text stream, or the document content itself.

    Returns:
        The 'preferences' document element, with attribute defaults applied.

    Raises:
        PreferencesIOError: If reading the stream fails.
        InvalidFormatError: If the document is not a valid preferences
            document.
    """
    data, encoding = _to_parser_input(_read_source(source))
    document = _StrictDocumentBuilder(encoding).parse(data)
    if document.tag != 'preferences':
        raise InvalidFormatError(
            f"Document element must be 'preferences', not '{document.tag}'"
        )
    _check_element(document)
    return document


# ==================== Import ====================


def import_preferences(
    source: IO[Any] | str | bytes,
    user_root: PreferenceNode,
    system_root: PreferenceNode,
) -> PreferenceNode:
    """Import a preferences document into the user or system tree.

    The document's 'root' element selects the target: user_root for
    type="user", system_root for type="system".

    Args:
        source: Binary or text stream, or the document content itself.
        user_root: Root of the USER tree.
        system_root: Root of the SYSTEM tree.

    Returns:
        The root the document was imported into.

    Raises:
        PreferencesIOError: If reading the stream fails.
        InvalidFormatError: If the document is not a valid preferences
            document. Nothing has been imported in that case.
        UnsupportedFormatVersionError: If the document format is newer than
            EXTERNAL_XML_VERSION. Nothing has been imported in that case.
        InvalidNameError: If a node name is not a valid node name. The
            import stops there and keeps what was already applied.

    Example:
        >>> with open('prefs.xml', 'rb') as f:
        ...     import_preferences(f, user_root, system_root)
    """
    document = load_prefs_document(source)
    xml_version = document.get('EXTERNAL_XML_VERSION')
    if xml_version > EXTERNAL_XML_VERSION:
        raise UnsupportedFormatVersionError(
            f"Exported preferences file format version {xml_version} is not "
            f"supported. This importer can read versions {EXTERNAL_XML_VERSION} "
            f"or older."
        )

    xml_root = document[0]
    partition = _ROOT_TYPES[xml_root.get('type')]
    prefs_root = user_root if partition is Partition.USER else system_root

    logger.debug("preferences_import_started", partition=partition.value, version=xml_version)
    stats = {'nodes': 0, 'entries': 0}
    _import_subtree(prefs_root, xml_root, stats)
    logger.debug(
        "preferences_import_finished",
        partition=partition.value,
        nodes=stats['nodes'],
        entries=stats['entries'],
    )
    return prefs_root


def _import_subtree(prefs_node: PreferenceNode, xml_node: Element, stats: dict[str, int]) -> None:
    """Import xml_node and its nested nodes into prefs_node, depth first.

    All children of a node are resolved before any of them is imported. The
    walk uses an explicit stack, so nesting depth is not bounded by the
    recursion limit.
    """
    stack = [(prefs_node, xml_node)]
    while stack:
        prefs_node, xml_node = stack.pop()
        xml_kids = list(xml_node)
        stats['nodes'] += 1
        stats['entries'] += _import_prefs(prefs_node, xml_kids[0])

        prefs_kids = [prefs_node.child(xml_kid.get('name')) for xml_kid in xml_kids[1:]]

        stack.extend(reversed(list(zip(prefs_kids, xml_kids[1:]))))


def _import_prefs(prefs_node: PreferenceNode, xml_map: Element) -> int:
    """Put every entry of xml_map into prefs_node, in document order."""
    count = 0
    for entry in xml_map:
        prefs_node.put(entry.get('key'), entry.get('value'))
        count += 1
    return count
