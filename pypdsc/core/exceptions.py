# pyPDSC
# Copyright (c) 2018-2020 Arm Limited
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

from typing import Optional

class Error(RuntimeError):
    """@brief Parent of all errors pyPDSC can raise"""
    pass

class InternalError(Error):
    """@brief Internal consistency or logic error.

    This error indicates that something has happened that shouldn't be possible.
    """
    pass

class PackError(Error):
    """@brief Error related to the contents of a CMSIS-Pack"""
    pass

class MalformedPackError(PackError):
    """@brief The pack description contains invalid or inconsistent data."""
    pass

class MalformedAttributeError(MalformedPackError):
    """@brief An XML attribute could not be converted to the expected value.

    The tag of the element and the name of the attribute, if known, are recorded in the `tag` and
    `attribute` properties and prefixed to the message when converted to a string.
    """
    def __init__(self, *args, tag: Optional[str] = None, attribute: Optional[str] = None) -> None:
        super().__init__(*args)
        self._tag = tag
        self._attribute = attribute

    @property
    def tag(self) -> Optional[str]:
        return self._tag

    @property
    def attribute(self) -> Optional[str]:
        return self._attribute

    def __str__(self) -> str:
        desc = super().__str__()
        if self._tag is not None and self._attribute is not None:
            desc = f"<{self._tag}> '{self._attribute}': {desc}"
        elif self._attribute is not None:
            desc = f"'{self._attribute}': {desc}"
        return desc

class MissingAttributeError(MalformedAttributeError):
    """@brief A required XML attribute is absent."""
    pass

class AccessPortNotFoundError(MalformedPackError):
    """@brief A `<debug>` element references an `__apid` with no matching access port."""
    def __init__(self, apid: int) -> None:
        super().__init__(f"Unable to find Access Port with id {apid}")
        self._apid = apid

    @property
    def apid(self) -> int:
        return self._apid

class DeviceBuildError(MalformedPackError):
    """@brief A device could not be built from its merged description."""
    pass
