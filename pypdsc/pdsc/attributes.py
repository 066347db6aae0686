# pyPDSC
# Copyright (c) 2019-2020 Arm Limited
# Copyright (c) 2021-2023 Chris Reed
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

"""@brief Conversion of PDSC XML attribute strings to values.

Every parser takes a node and an attribute name. A missing attribute raises MissingAttributeError and
a value that can't be converted raises MalformedAttributeError, in both cases annotated with the
element's tag and the attribute name. The `optional()` helper turns these into a None result for
attributes that a caller doesn't require.
"""

import logging
import re
from typing import (Callable, Optional, TypeVar)

from ..core.exceptions import (MalformedAttributeError, MissingAttributeError)
from ..utility.xml_node import XmlNode

LOG = logging.getLogger(__name__)

_T = TypeVar('_T')

## Widths in bits of the integer attributes.
U8 = 8
U32 = 32
U64 = 64

_DECIMAL_RE = re.compile(r'^\+?[0-9]+$')
_HEX_RE = re.compile(r'^0[xX][0-9a-fA-F]+$')

def get(node: XmlNode, name: str) -> str:
    """@brief Return the raw string value of a required attribute.
    @exception MissingAttributeError The attribute is not present.
    """
    value = node.attribute(name)
    if value is None:
        raise MissingAttributeError("missing required attribute", tag=node.tag, attribute=name)
    return value

def parse(node: XmlNode, name: str, converter: Callable[[str], _T]) -> _T:
    """@brief Convert a required attribute with the given string-to-value function.

    The converter may be any callable that accepts the attribute string, such as one of the enum
    `from_str()` class methods, `number_bool`, or a `decimal()` parser. A ValueError or
    MalformedAttributeError raised by the converter is reported as a MalformedAttributeError for this
    attribute.
    """
    value = get(node, name)
    try:
        return converter(value)
    except MalformedAttributeError as err:
        raise MalformedAttributeError(str(err), tag=node.tag, attribute=name) from err
    except ValueError as err:
        raise MalformedAttributeError(f"invalid value '{value}' ({err})", tag=node.tag,
                attribute=name) from err

def _check_width(value: int, bits: Optional[int], text: str) -> int:
    if (bits is not None) and (value >= (1 << bits)):
        raise MalformedAttributeError(f"value '{text}' does not fit in {bits} bits")
    return value

def decimal(bits: Optional[int] = None) -> Callable[[str], int]:
    """@brief Return a converter for an unsigned decimal integer of the given width.

    Hexadecimal forms are not accepted. If _bits_ is None, the value is unbounded.
    """
    def convert(text: str) -> int:
        if not _DECIMAL_RE.match(text):
            raise MalformedAttributeError(f"invalid decimal integer '{text}'")
        return _check_width(int(text, base=10), bits, text)
    return convert

def hexadecimal(bits: Optional[int] = U64) -> Callable[[str], int]:
    """@brief Return a converter for an unsigned integer that is hex with a 0x prefix, else decimal."""
    def convert(text: str) -> int:
        if _HEX_RE.match(text):
            return _check_width(int(text[2:], base=16), bits, text)
        elif _DECIMAL_RE.match(text):
            return _check_width(int(text, base=10), bits, text)
        raise MalformedAttributeError(f"invalid integer '{text}'")
    return convert

def number_bool(text: str) -> bool:
    """@brief Convert a PDSC boolean, one of `true`, `false`, `1` or `0`."""
    if text in ("true", "1"):
        return True
    elif text in ("false", "0"):
        return False
    raise MalformedAttributeError(f"Unknown boolean {text}")

def parse_int(node: XmlNode, name: str, bits: Optional[int] = None) -> int:
    """@brief Parse a required unsigned decimal integer attribute."""
    return parse(node, name, decimal(bits))

def parse_hex(node: XmlNode, name: str, bits: Optional[int] = U64) -> int:
    """@brief Parse a required integer attribute.

    Values with a `0x` or `0X` prefix are base 16, otherwise base 10.
    """
    return parse(node, name, hexadecimal(bits))

def parse_bool(node: XmlNode, name: str) -> bool:
    """@brief Parse a required boolean attribute."""
    return parse(node, name, number_bool)

def optional(
            parser: Callable[..., _T],
            node: XmlNode,
            name: str,
            *args,
            log: Optional[logging.Logger] = None,
            strict: bool = False,
        ) -> Optional[_T]:
    """@brief Call an attribute parser for an attribute that is not required.

    @return None if the attribute is absent. If the attribute is present but malformed, a warning is
        logged and None is returned so the attribute is treated as absent.
    @exception MalformedAttributeError The attribute is malformed and `strict` is set.
    """
    if node.attribute(name) is None:
        return None
    try:
        return parser(node, name, *args)
    except MalformedAttributeError as err:
        if strict:
            raise
        (log or LOG).warning("ignoring invalid attribute: %s", err)
        return None
