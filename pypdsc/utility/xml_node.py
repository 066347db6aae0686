# pyPDSC
# Copyright (c) 2023 Chris Reed
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from xml.etree.ElementTree import (ElementTree, Element)
from typing import (Iterator, Optional, Union)
from typing_extensions import Protocol

class XmlNode(Protocol):
    """@brief Minimal read-only navigation interface over a parsed XML element.

    This is everything the PDSC device parser needs from an XML tree: the element's local tag name,
    attribute lookup, and iteration over child elements in document order.
    """

    @property
    def tag(self) -> str:
        ...

    def attribute(self, name: str) -> Optional[str]:
        ...

    def children(self) -> Iterator["XmlNode"]:
        ...

def local_name(tag: str) -> str:
    """@brief Strip an ElementTree '{namespace}' prefix from a tag name."""
    if tag.startswith('{'):
        return tag.rsplit('}', 1)[1]
    return tag

class ElementNode:
    """@brief XmlNode implementation wrapping an `xml.etree.ElementTree.Element`."""

    __slots__ = ('_element',)

    def __init__(self, element: Element) -> None:
        self._element = element

    @property
    def element(self) -> Element:
        """@brief The wrapped Element."""
        return self._element

    @property
    def tag(self) -> str:
        return local_name(self._element.tag)

    def attribute(self, name: str) -> Optional[str]:
        return self._element.attrib.get(name)

    def children(self) -> Iterator["ElementNode"]:
        for child in self._element:
            # Comments and processing instructions have a callable tag.
            if isinstance(child.tag, str):
                yield ElementNode(child)

    def __repr__(self) -> str:
        return "<%s@%x %s>" % (self.__class__.__name__, id(self), self.tag)

def as_node(obj: Union[XmlNode, Element, ElementTree]) -> XmlNode:
    """@brief Return an XmlNode for an Element, an ElementTree, or an object that already is a node."""
    if isinstance(obj, ElementTree):
        root = obj.getroot()
        assert root is not None
        return ElementNode(root)
    elif isinstance(obj, Element):
        return ElementNode(obj)
    return obj
