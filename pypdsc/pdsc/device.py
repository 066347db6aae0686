# pyPDSC
# Copyright (c) 2019-2020 Arm Limited
# Copyright (c) 2020 Men Shiyun
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

import collections.abc
import logging
from xml.etree.ElementTree import (ElementTree, Element)
from typing import (Any, Dict, Iterator, List, Mapping, Optional, Union)

from ..core.exceptions import (DeviceBuildError, MalformedPackError)
from ..core.options_manager import OptionsManager
from ..utility.xml_node import (XmlNode, as_node)
from .builders import (
    DebugsBuilder,
    DeviceBuilder,
    ProcessorsBuilder,
    algorithm_from_element,
    memory_from_element,
)
from .types import Device

LOG = logging.getLogger(__name__)

NodeLike = Union[XmlNode, Element, ElementTree]
OptionsLike = Union[OptionsManager, Mapping[str, Any], None]

class PdscDeviceParser:
    """@brief Converts the `<devices>` section of a PDSC into Device records.

    The XML element hierarchy that defines devices is as follows.
    ```
    family [-> subFamily] -> device [-> variant]
    ```

    Each level may define `<memory>`, `<algorithm>`, `<processor>` and `<debug>` elements. A
    DeviceBuilder is created for every level and the builders of the inner levels inherit from the
    outer levels through DeviceBuilder.add_parent(). One Device is produced for each `<device>`
    without variants, and for each `<variant>`.

    An element that can't be parsed is skipped with a warning, leaving its siblings unaffected. A
    device that can't be built, for instance because no core is defined for it, is skipped with a
    warning. If the 'pack.strict' option is set, these errors are raised instead.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, options: OptionsLike = None) -> None:
        """@brief Constructor.

        @param self
        @param logger Logger used for warnings about skipped elements and devices. If not provided,
            the module's logger is used.
        @param options Either an OptionsManager or a dict of option values.
        """
        self._log = logger if logger is not None else LOG
        self._options = OptionsManager.coerce(options)

    @property
    def log(self) -> logging.Logger:
        return self._log

    @property
    def options(self) -> OptionsManager:
        return self._options

    def _add_leaf(self, builder: DeviceBuilder, child: XmlNode, parent: XmlNode) -> None:
        """@brief Parse a memory, algorithm, processor, or debug element and add it to the builder.

        Elements of any other type are ignored.
        """
        strict = self._options.get('pack.strict')
        try:
            if child.tag == 'memory':
                builder.add_memory(*memory_from_element(child, log=self._log, strict=strict))
            elif child.tag == 'algorithm':
                builder.add_algorithm(algorithm_from_element(child, log=self._log, strict=strict))
            elif child.tag == 'processor':
                builder.add_processor(ProcessorsBuilder.from_element(child, log=self._log, strict=strict))
            elif child.tag == 'debug':
                builder.add_debug(DebugsBuilder.from_element_and_parent(child, parent,
                        log=self._log, strict=strict))
        except MalformedPackError as err:
            if strict:
                raise
            self._log.warning("%s: skipping invalid <%s> element: %s",
                    self._describe(parent), child.tag, err)

    def _describe(self, node: XmlNode) -> str:
        """@brief Short description of a hierarchy element for log messages."""
        for attr in ('Dname', 'Dvariant', 'DsubFamily', 'Dfamily'):
            value = node.attribute(attr)
            if value is not None:
                return f"<{node.tag} {attr}=\"{value}\">"
        return f"<{node.tag}>"

    def _check_processors(self, builder: DeviceBuilder, node: XmlNode) -> None:
        if (builder.processor is None) or not self._options.get('pack.warn_duplicate_processors'):
            return
        for name in builder.processor.duplicate_names():
            self._log.warning("%s: multiple <processor> elements with Pname %s",
                    self._describe(node), "'%s'" % name if name is not None else "(none)")

    def parse_device(self, node: XmlNode) -> List[DeviceBuilder]:
        """@brief Process a `<device>` element.

        @return A builder for each `<variant>` of the device, inheriting from the device, or a
            builder for the device itself if it has no variants.
        """
        device = DeviceBuilder.from_element(node)
        variants: List[DeviceBuilder] = []
        for child in node.children():
            if child.tag == 'variant':
                variants.append(DeviceBuilder.from_element(child))
            else:
                self._add_leaf(device, child, node)
        self._check_processors(device, node)

        if not variants:
            return [device]
        return [variant.add_parent(device) for variant in variants]

    def parse_sub_family(self, node: XmlNode) -> List[DeviceBuilder]:
        """@brief Process a `<subFamily>` element.

        @return Builders for all devices and variants within the sub-family.
        """
        sub_family = DeviceBuilder.from_element(node)
        devices: List[DeviceBuilder] = []
        for child in node.children():
            if child.tag == 'device':
                devices.extend(self.parse_device(child))
            else:
                self._add_leaf(sub_family, child, node)
        self._check_processors(sub_family, node)

        return [device.add_parent(sub_family) for device in devices]

    def parse_family(self, node: XmlNode) -> List[Device]:
        """@brief Process a `<family>` element.

        @return The finished Device for each device and variant within the family that could be
            built.
        """
        family = DeviceBuilder.from_element(node)
        builders: List[DeviceBuilder] = []
        for child in node.children():
            if child.tag == 'subFamily':
                builders.extend(self.parse_sub_family(child))
            elif child.tag == 'device':
                builders.extend(self.parse_device(child))
            else:
                self._add_leaf(family, child, node)
        self._check_processors(family, node)

        default_dp = self._options.get('pack.default_dp')
        devices = []
        for builder in builders:
            try:
                devices.append(builder.add_parent(family).build(default_dp))
            except DeviceBuildError as err:
                if self._options.get('pack.strict'):
                    raise
                self._log.warning("%s: skipping device: %s", self._describe(node), err)

        self._log.debug("%s: %d devices", self._describe(node), len(devices))
        return devices

    def parse_devices(self, root: NodeLike) -> "Devices":
        """@brief Process all `<family>` elements of a `<devices>` element.

        A `<package>` root element is also accepted, in which case its `<devices>` child is used.

        @return Devices mapping. If more than one family defines a device with the same name, the
            last one wins.
        """
        node = as_node(root)
        if node.tag == 'package':
            node = next((c for c in node.children() if c.tag == 'devices'), None) # type:ignore
            if node is None:
                return Devices()
        if node.tag != 'devices':
            self._log.warning("expected <devices> element but found <%s>", node.tag)
            return Devices()

        result: Dict[str, Device] = {}
        for child in node.children():
            if child.tag != 'family':
                continue
            for device in self.parse_family(child):
                if device.name in result:
                    self._log.debug("device %s is redefined", device.name)
                result[device.name] = device
        return Devices(result)

class Devices(collections.abc.Mapping):
    """@brief Read-only mapping of part number to Device."""

    def __init__(self, devices: Optional[Mapping[str, Device]] = None) -> None:
        self._devices: Dict[str, Device] = dict(devices) if devices is not None else {}

    @classmethod
    def from_element(
                cls,
                root: NodeLike,
                logger: Optional[logging.Logger] = None,
                options: OptionsLike = None
            ) -> "Devices":
        """@brief Parse a `<devices>` (or `<package>`) element."""
        return PdscDeviceParser(logger, options).parse_devices(root)

    def __getitem__(self, name: str) -> Device:
        return self._devices[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._devices)

    def __len__(self) -> int:
        return len(self._devices)

    def __repr__(self) -> str:
        return "<%s@%x %s>" % (self.__class__.__name__, id(self), sorted(self._devices))

def parse_devices(
            root: NodeLike,
            logger: Optional[logging.Logger] = None,
            options: OptionsLike = None
        ) -> Devices:
    """@brief Parse a `<devices>` element into a Devices mapping."""
    return Devices.from_element(root, logger, options)

def parse_family(node: NodeLike, logger: Optional[logging.Logger] = None,
        options: OptionsLike = None) -> List[Device]:
    return PdscDeviceParser(logger, options).parse_family(as_node(node))

def parse_sub_family(node: NodeLike, logger: Optional[logging.Logger] = None,
        options: OptionsLike = None) -> List[DeviceBuilder]:
    return PdscDeviceParser(logger, options).parse_sub_family(as_node(node))

def parse_device(node: NodeLike, logger: Optional[logging.Logger] = None,
        options: OptionsLike = None) -> List[DeviceBuilder]:
    return PdscDeviceParser(logger, options).parse_device(as_node(node))
