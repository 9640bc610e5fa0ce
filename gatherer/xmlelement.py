"""An HTML or XML element matched by an XPath query."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from lxml import etree

from .request import Request
from .response import Response

_XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


def _inner_text(node: Any) -> str:
    if isinstance(node, str):
        return str(node)
    return str(node.xpath("string()"))


def _is_element(node: Any) -> bool:
    return isinstance(node, etree._Element) and isinstance(node.tag, str)


def _local_name(key: str) -> str:
    return key.rpartition("}")[2]


def _qualified_name(key: str, nsmap: dict) -> str:
    if not key.startswith("{"):
        return key
    namespace, _, local = key[1:].partition("}")
    if namespace == _XML_NAMESPACE:
        prefix = "xml"
    else:
        prefix = next((p for p, uri in nsmap.items() if uri == namespace and p), None)
    return f"{prefix}:{local}" if prefix else local


@dataclass
class XMLElement:
    """A tag found by XPath, from an HTML or an XML document.

    Absolute XPath queries are evaluated with the element as the root.
    """

    name: str = ""
    text: str = ""
    request: Request | None = None
    response: Response | None = None
    dom: Any = None
    is_html: bool = True
    attributes: dict[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def from_html_node(cls, response: Response | None, node: Any) -> XMLElement:
        """Create an element from a node of a parsed HTML document."""
        return cls(
            name=str(node.tag),
            text=_inner_text(node),
            request=response.request if response is not None else None,
            response=response,
            dom=node,
            is_html=True,
            attributes=dict(node.attrib),
        )

    @classmethod
    def from_xml_node(cls, response: Response | None, node: Any) -> XMLElement:
        """Create an element from a node of a parsed XML document."""
        return cls(
            name=etree.QName(node).localname,
            text=_inner_text(node),
            request=response.request if response is not None else None,
            response=response,
            dom=node,
            is_html=False,
            attributes=dict(node.attrib),
        )

    def _key_matches(self, key: str, wanted: str, node: Any) -> bool:
        if not self.is_html:
            return _local_name(key) == wanted
        nsmap = node.nsmap if _is_element(node) else {}
        return key == wanted or _qualified_name(key, nsmap) == wanted

    def _values(self, attributes: Any, wanted: str, node: Any) -> list[str]:
        return [value for key, value in attributes.items() if self._key_matches(key, wanted, node)]

    def _query(self, xpath_query: str) -> list:
        if self.dom is None:
            return []
        if xpath_query.startswith("/"):
            xpath_query = "." + xpath_query
        result = self.dom.xpath(xpath_query)
        return result if isinstance(result, list) else []

    def attr(self, key: str) -> str:
        """The value of an attribute of the element, or "" if absent."""
        values = self._values(self.attributes, key, self.dom)
        return values[0] if values else ""

    def child_text(self, xpath_query: str) -> str:
        """The stripped text of the first node matching the query."""
        matches = self._query(xpath_query)
        if not matches:
            return ""
        return _inner_text(matches[0]).strip()

    def child_texts(self, xpath_query: str) -> list[str]:
        """The stripped text of every node matching the query."""
        return [_inner_text(match).strip() for match in self._query(xpath_query)]

    def child_attr(self, xpath_query: str, attr_name: str) -> str:
        """The stripped attribute value of the first node matching the query."""
        matches = self._query(xpath_query)
        if not matches or not _is_element(matches[0]):
            return ""
        values = self._values(matches[0].attrib, attr_name, matches[0])
        return values[0].strip() if values else ""

    def child_attrs(self, xpath_query: str, attr_name: str) -> list[str]:
        """The stripped attribute values of all matching nodes that have it."""
        return [
            value.strip()
            for match in self._query(xpath_query)
            if _is_element(match)
            for value in self._values(match.attrib, attr_name, match)
        ]