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

from dataclasses import (dataclass, field, replace)
import logging
from typing import (Any, Dict, Iterable, List, Optional, Tuple)
from typing_extensions import Self

from ..core.exceptions import (
    AccessPortNotFoundError,
    DeviceBuildError,
    InternalError,
    MissingAttributeError,
)
from ..utility.xml_node import XmlNode
from .attributes import (
    U8,
    U32,
    U64,
    get,
    number_bool,
    optional,
    parse,
    parse_hex,
    parse_int,
)
from .types import (
    AccessPort,
    AccessPortAddress,
    AccessPortIndex,
    Algorithm,
    AlgorithmStyle,
    Core,
    Debug,
    Device,
    FPU,
    Memories,
    Memory,
    MemoryPermissions,
    MPU,
    Processor,
)

LOG = logging.getLogger(__name__)

ACCESS_PORT_TAGS = ('accessportV1', 'accessportV2')

def _default_access(region_id: Optional[str]) -> str:
    """@brief Permissions for a memory region without an 'access' attribute, guessed from its id."""
    if region_id is None:
        return ""
    elif "ROM" in region_id:
        return "rx"
    elif "RAM" in region_id:
        return "rw"
    return ""

def memory_from_element(node: XmlNode, log: Optional[logging.Logger] = None,
        strict: bool = False) -> Tuple[str, Memory]:
    """@brief Parse a `<memory>` element.

    Attributes:
    - `id`: optional str, deprecated in favour of `name`; used as the key if present
    - `name`: optional str, used as the key if there is no `id`
    - `Pname`: optional str
    - `access`: optional str; if missing, ROM and RAM regions are recognised from `id`
    - `start`: int
    - `size`: int
    - `startup`: optional bool, default false
    - `default`: optional bool, default false

    @return Bi-tuple of the region's name and the Memory record.
    """
    region_id = node.attribute('id')
    name = region_id if region_id is not None else node.attribute('name')
    if name is None:
        raise MissingAttributeError("No name found for memory", tag=node.tag, attribute='id')

    access = node.attribute('access')
    if access is None:
        access = _default_access(region_id)

    memory = Memory(
            access=MemoryPermissions.from_str(access),
            start=parse_hex(node, 'start'),
            size=parse_hex(node, 'size'),
            p_name=node.attribute('Pname'),
            startup=bool(optional(parse, node, 'startup', number_bool, log=log, strict=strict)),
            default=bool(optional(parse, node, 'default', number_bool, log=log, strict=strict)),
            )
    return name, memory

def algorithm_from_element(node: XmlNode, log: Optional[logging.Logger] = None,
        strict: bool = False) -> Algorithm:
    """@brief Parse an `<algorithm>` element.

    Attributes:
    - `name`: str, path of the algorithm within the pack
    - `start`: int
    - `size`: int
    - `RAMstart`: optional int
    - `RAMsize`: optional int
    - `default`: optional bool
    - `style`: optional str, one of `Keil` (the default), `IAR` or `CMSIS`
    """
    file_name = get(node, 'name')
    start = parse_hex(node, 'start')
    size = parse_hex(node, 'size')
    style = optional(parse, node, 'style', AlgorithmStyle.from_str, log=log, strict=strict)
    return Algorithm(
            file_name=file_name.replace('\\', '/'),
            start=start,
            size=size,
            ram_start=optional(parse_hex, node, 'RAMstart', log=log, strict=strict),
            ram_size=optional(parse_hex, node, 'RAMsize', log=log, strict=strict),
            default=bool(optional(parse, node, 'default', number_bool, log=log, strict=strict)),
            style=style if style is not None else AlgorithmStyle.KEIL,
            )

def _first(debugs: List[Debug], attr: str) -> Any:
    """@brief Value of an attribute from the first debug record that has it, or None."""
    return next((getattr(d, attr) for d in debugs if getattr(d, attr) is not None), None)

@dataclass
class ProcessorBuilder:
    """@brief Partial description of a processor from one `<processor>` element.

    Any of the fields may be missing at a given level of the hierarchy. They are filled in from
    the enclosing levels by merge().
    """
    core: Optional[Core] = None
    units: Optional[int] = None
    name: Optional[str] = None
    fpu: Optional[FPU] = None
    mpu: Optional[MPU] = None

    @classmethod
    def from_element(cls, node: XmlNode, log: Optional[logging.Logger] = None,
        strict: bool = False) -> "ProcessorBuilder":
        """@brief Read the `Dcore`, `Punits`, `Dfpu`, `Dmpu` and `Pname` attributes, all optional."""
        return cls(
                core=optional(parse, node, 'Dcore', Core.from_str, log=log, strict=strict),
                units=optional(parse_int, node, 'Punits', log=log, strict=strict),
                name=node.attribute('Pname'),
                fpu=optional(parse, node, 'Dfpu', FPU.from_str, log=log, strict=strict),
                mpu=optional(parse, node, 'Dmpu', MPU.from_str, log=log, strict=strict),
                )

    def merge(self, parent: "ProcessorBuilder") -> None:
        """@brief Fill in fields that are not set from another builder."""
        if self.core is None:
            self.core = parent.core
        if self.units is None:
            self.units = parent.units
        if self.name is None:
            self.name = parent.name
        if self.fpu is None:
            self.fpu = parent.fpu
        if self.mpu is None:
            self.mpu = parent.mpu

    def build(self, debugs: List[Debug], default_dp: int = 0) -> List[Processor]:
        """@brief Create a Processor for each unit.

        The debug attributes of each unit come from the `debugs` records that apply to the
        processor's name and the unit number. For each attribute, the first record in the list
        that provides it is used. Device level records come before those of enclosing levels, so
        the innermost definition wins.

        @exception DeviceBuildError The processor has no core.
        """
        if self.core is None:
            raise DeviceBuildError("No Core found")

        units = self.units if self.units is not None else 1
        processors = []
        for unit in range(units):
            matching = [d for d in debugs if d.applies_to(self.name, unit)]
            dp = _first(matching, 'dp')
            ap = _first(matching, 'ap')
            processors.append(Processor(
                    core=self.core,
                    fpu=self.fpu if self.fpu is not None else FPU.NONE,
                    mpu=self.mpu if self.mpu is not None else MPU.NOT_PRESENT,
                    ap=ap if ap is not None else AccessPort.default(),
                    dp=dp if dp is not None else default_dp,
                    address=_first(matching, 'address'),
                    svd=_first(matching, 'svd'),
                    name=self.name,
                    unit=unit,
                    default_reset_sequence=_first(matching, 'default_reset_sequence'),
                    ))
        return processors

class ProcessorsBuilder:
    """@brief The processor builders defined at one level of the device hierarchy."""

    def __init__(self, processors: Optional[Iterable[ProcessorBuilder]] = None) -> None:
        self._processors: List[ProcessorBuilder] = list(processors) if processors is not None else []

    @classmethod
    def from_element(cls, node: XmlNode, log: Optional[logging.Logger] = None,
        strict: bool = False) -> "ProcessorsBuilder":
        return cls([ProcessorBuilder.from_element(node, log=log, strict=strict)])

    @property
    def processors(self) -> List[ProcessorBuilder]:
        return self._processors

    def copy(self) -> "ProcessorsBuilder":
        return ProcessorsBuilder(replace(p) for p in self._processors)

    def merge_into(self, other: "ProcessorsBuilder") -> None:
        """@brief Append sibling processor builders from the same level."""
        self._processors.extend(other._processors)

    def merge(self, parent: Optional["ProcessorsBuilder"]) -> "ProcessorsBuilder":
        """@brief Return a new builder combining these processors with those of an enclosing level.

        Processors are matched by `Pname`, where a missing name is its own key. A processor defined
        only by the parent is added as is. When both define it, fields of this builder's processor
        take precedence and missing fields are taken from the parent's processor.
        """
        if parent is None:
            return self.copy()

        parent_by_name: Dict[Optional[str], ProcessorBuilder] = {}
        for proc in parent._processors:
            parent_by_name.setdefault(proc.name, proc)

        result = []
        for proc in self._processors:
            merged = replace(proc)
            if proc.name in parent_by_name:
                merged.merge(parent_by_name[proc.name])
            result.append(merged)

        own_names = {p.name for p in self._processors}
        result.extend(replace(p) for p in parent._processors if p.name not in own_names)
        return ProcessorsBuilder(result)

    def duplicate_names(self) -> List[Optional[str]]:
        """@brief Pnames used by more than one processor builder."""
        seen = set()
        dups: List[Optional[str]] = []
        for proc in self._processors:
            if proc.name in seen and proc.name not in dups:
                dups.append(proc.name)
            seen.add(proc.name)
        return dups

    def build(self, debugs: List[Debug], default_dp: int = 0) -> List[Processor]:
        result = []
        for proc in self._processors:
            result.extend(proc.build(debugs, default_dp))
        return result

def resolve_access_port(
            node: XmlNode,
            parent: XmlNode,
            log: Optional[logging.Logger] = None,
            strict: bool = False
        ) -> Tuple[Optional[int], Optional[AccessPort]]:
    """@brief Determine the DP index and AP for a `<debug>` element.

    If the parent of the `<debug>` element defines any `<accessportV1>` or `<accessportV2>`
    elements, the debug element's `__apid` is required and must match the `__apid` of one of those.
    The DP comes from the access port's optional `__dp`, and the AP from its `index` (V1) or
    `address` (V2).

    Otherwise the `__dp` and `__ap` attributes of the debug element are used directly, with `__ap`
    being an AP index.

    @return Bi-tuple of DP index and AP. Either may be None.
    @exception AccessPortNotFoundError No access port has the requested `__apid`.
    """
    if not any(child.tag in ACCESS_PORT_TAGS for child in parent.children()):
        ap_index = optional(parse_int, node, '__ap', U8, log=log, strict=strict)
        return (optional(parse_int, node, '__dp', U8, log=log, strict=strict),
                AccessPortIndex(ap_index) if ap_index is not None else None)

    apid = parse_int(node, '__apid', U32)
    for accessport in parent.children():
        if (accessport.tag in ACCESS_PORT_TAGS
                and optional(parse_int, accessport, '__apid', U32, log=log, strict=strict) == apid):
            break
    else:
        raise AccessPortNotFoundError(apid)

    dp = optional(parse_int, accessport, '__dp', U8, log=log, strict=strict)
    if accessport.tag == 'accessportV1':
        index = optional(parse_int, accessport, 'index', U8, log=log, strict=strict)
        return dp, (AccessPortIndex(index) if index is not None else None)
    elif accessport.tag == 'accessportV2':
        address = optional(parse_hex, accessport, 'address', U64, log=log, strict=strict)
        return dp, (AccessPortAddress(address) if address is not None else None)
    else:
        raise InternalError(f"unexpected element <{accessport.tag}> in access ports list")

@dataclass
class DebugBuilder:
    """@brief Debug access attributes from one `<debug>` element."""
    dp: Optional[int] = None
    ap: Optional[AccessPort] = None
    address: Optional[int] = None
    svd: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[int] = None
    default_reset_sequence: Optional[str] = None

    @classmethod
    def from_element_and_parent(
                cls,
                node: XmlNode,
                parent: XmlNode,
                log: Optional[logging.Logger] = None,
                strict: bool = False
            ) -> "DebugBuilder":
        """@brief Parse a `<debug>` element.

        Attributes:
        - `__dp`: optional int
        - `__ap`: optional int
        - `__apid`: int, required if the parent defines access ports
        - `address`: optional int
        - `svd`: optional str
        - `Pname`: optional str
        - `Punit`: optional int
        - `defaultResetSequence`: optional str
        """
        dp, ap = resolve_access_port(node, parent, log=log, strict=strict)
        return cls(
                dp=dp,
                ap=ap,
                address=optional(parse_hex, node, 'address', U32, log=log, strict=strict),
                svd=node.attribute('svd'),
                name=node.attribute('Pname'),
                unit=optional(parse_int, node, 'Punit', log=log, strict=strict),
                default_reset_sequence=node.attribute('defaultResetSequence'),
                )

    def build(self) -> Debug:
        return Debug(
                dp=self.dp,
                ap=self.ap,
                address=self.address,
                svd=self.svd,
                name=self.name,
                unit=self.unit,
                default_reset_sequence=self.default_reset_sequence,
                )

class DebugsBuilder:
    """@brief Ordered debug builders; earlier entries take precedence."""

    def __init__(self, debugs: Optional[Iterable[DebugBuilder]] = None) -> None:
        self._debugs: List[DebugBuilder] = list(debugs) if debugs is not None else []

    @classmethod
    def from_element_and_parent(
                cls,
                node: XmlNode,
                parent: XmlNode,
                log: Optional[logging.Logger] = None,
                strict: bool = False
            ) -> "DebugsBuilder":
        return cls([DebugBuilder.from_element_and_parent(node, parent, log=log, strict=strict)])

    @property
    def debugs(self) -> List[DebugBuilder]:
        return self._debugs

    def merge_into(self, other: "DebugsBuilder") -> None:
        self._debugs.extend(other._debugs)

    def merge(self, parent: "DebugsBuilder") -> "DebugsBuilder":
        """@brief Return a new builder with this level's debugs followed by the parent's."""
        return DebugsBuilder(self._debugs + parent._debugs)

    def build(self) -> List[Debug]:
        return [d.build() for d in self._debugs]

    def __len__(self) -> int:
        return len(self._debugs)

@dataclass
class DeviceBuilder:
    """@brief Accumulates the description of a device from one level of the hierarchy.

    A DeviceBuilder is created for each `<family>`, `<subFamily>`, `<device>` and `<variant>`
    element. The builder for a leaf is combined with those of its ancestors by add_parent(), then
    converted to a Device by build().
    """
    name: Optional[str] = None
    vendor: Optional[str] = None
    family: Optional[str] = None
    sub_family: Optional[str] = None
    algorithms: List[Algorithm] = field(default_factory=list)
    memories: Memories = field(default_factory=dict)
    processor: Optional[ProcessorsBuilder] = None
    debugs: DebugsBuilder = field(default_factory=DebugsBuilder)

    @classmethod
    def from_element(cls, node: XmlNode) -> "DeviceBuilder":
        """@brief Create a builder with the identifying attributes of a hierarchy element.

        The name comes from `Dname` or, failing that, `Dvariant`. `Dfamily` is only used from a
        `<family>` and `DsubFamily` only from a `<subFamily>`.
        """
        name = node.attribute('Dname')
        if name is None:
            name = node.attribute('Dvariant')
        return cls(
                name=name,
                vendor=node.attribute('Dvendor'),
                family=node.attribute('Dfamily') if node.tag == 'family' else None,
                sub_family=node.attribute('DsubFamily') if node.tag == 'subFamily' else None,
                )

    def add_memory(self, name: str, memory: Memory) -> Self:
        self.memories[name] = memory
        return self

    def add_algorithm(self, algorithm: Algorithm) -> Self:
        self.algorithms.append(algorithm)
        return self

    def add_processor(self, processor: ProcessorsBuilder) -> Self:
        if self.processor is None:
            self.processor = processor
        else:
            self.processor.merge_into(processor)
        return self

    def add_debug(self, debug: DebugsBuilder) -> Self:
        self.debugs.merge_into(debug)
        return self

    def add_parent(self, parent: "DeviceBuilder") -> "DeviceBuilder":
        """@brief Return a new builder that inherits from an enclosing level.

        Identifying attributes of this builder win over the parent's. Algorithms and debugs of this
        builder are placed before the parent's. Memory regions are combined by name, with this
        builder's regions replacing the parent's. Processors are merged by ProcessorsBuilder.merge().
        Neither builder is modified.
        """
        memories = dict(self.memories)
        for name, memory in parent.memories.items():
            memories.setdefault(name, memory)

        if self.processor is not None:
            processor: Optional[ProcessorsBuilder] = self.processor.merge(parent.processor)
        elif parent.processor is not None:
            processor = parent.processor.copy()
        else:
            processor = None

        return DeviceBuilder(
                name=self.name if self.name is not None else parent.name,
                vendor=self.vendor if self.vendor is not None else parent.vendor,
                family=self.family if self.family is not None else parent.family,
                sub_family=self.sub_family if self.sub_family is not None else parent.sub_family,
                algorithms=self.algorithms + parent.algorithms,
                memories=memories,
                processor=processor,
                debugs=self.debugs.merge(parent.debugs),
                )

    def build(self, default_dp: int = 0) -> Device:
        """@brief Produce the final Device.

        @exception DeviceBuildError The device is missing a name, family, or processor, or one of
            its processors has no core.
        """
        if not self.name:
            raise DeviceBuildError("Device found without a name")
        if not self.family:
            raise DeviceBuildError(f"Device found without a family ({self.name})")
        if self.processor is None:
            raise DeviceBuildError(f"Device found without a processor {self.name}")

        try:
            processors = self.processor.build(self.debugs.build(), default_dp)
        except DeviceBuildError as err:
            raise DeviceBuildError(f"{err} for device {self.name}") from err
        if not processors:
            raise DeviceBuildError(f"Device found without a processor {self.name}")

        return Device(
                name=self.name,
                family=self.family,
                sub_family=self.sub_family,
                vendor=self.vendor,
                memories=dict(self.memories),
                algorithms=list(self.algorithms),
                processors=processors,
                )
