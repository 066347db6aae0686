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

from dataclasses import (dataclass, field)
from enum import Enum
from typing import (Dict, List, Mapping, Optional, Type, TypeVar)

from ..core.exceptions import MalformedAttributeError

_E = TypeVar('_E', bound=Enum)

def _decode(enum_class: Type[_E], kind: str, value: str, aliases: Mapping[str, _E]) -> _E:
    """@brief Look up an enum member from its value or one of its alias strings."""
    if value in aliases:
        return aliases[value]
    try:
        return enum_class(value)
    except ValueError:
        raise MalformedAttributeError(f"Unknown {kind} {value}") from None

class Core(Enum):
    """@brief ARM core types.

    The value of each member is the canonical `Dcore` name. `ANY` is the `*` wildcard.
    """
    ANY = "*"
    CORTEX_M0 = "Cortex-M0"
    CORTEX_M0PLUS = "Cortex-M0+"
    CORTEX_M1 = "Cortex-M1"
    CORTEX_M3 = "Cortex-M3"
    CORTEX_M4 = "Cortex-M4"
    CORTEX_M7 = "Cortex-M7"
    CORTEX_M23 = "Cortex-M23"
    CORTEX_M33 = "Cortex-M33"
    CORTEX_M35P = "Cortex-M35P"
    CORTEX_M55 = "Cortex-M55"
    CORTEX_M85 = "Cortex-M85"
    STAR_MC1 = "Star-MC1"
    SC000 = "SC000"
    SC300 = "SC300"
    ARMV8MBL = "ARMV8MBL"
    ARMV8MML = "ARMV8MML"
    ARMV81MML = "ARMV81MML"
    CORTEX_R4 = "Cortex-R4"
    CORTEX_R5 = "Cortex-R5"
    CORTEX_R7 = "Cortex-R7"
    CORTEX_R8 = "Cortex-R8"
    CORTEX_A5 = "Cortex-A5"
    CORTEX_A7 = "Cortex-A7"
    CORTEX_A8 = "Cortex-A8"
    CORTEX_A9 = "Cortex-A9"
    CORTEX_A15 = "Cortex-A15"
    CORTEX_A17 = "Cortex-A17"
    CORTEX_A32 = "Cortex-A32"
    CORTEX_A35 = "Cortex-A35"
    CORTEX_A53 = "Cortex-A53"
    CORTEX_A57 = "Cortex-A57"
    CORTEX_A72 = "Cortex-A72"
    CORTEX_A73 = "Cortex-A73"

    @classmethod
    def from_str(cls, value: str) -> "Core":
        return _decode(cls, "core", value, {})

    def __str__(self) -> str:
        return self.value

class FPU(Enum):
    """@brief Floating point unit presence and precision."""
    NONE = 0
    SINGLE_PRECISION = 1
    DOUBLE_PRECISION = 2

    @classmethod
    def from_str(cls, value: str) -> "FPU":
        """@brief Decode a `Dfpu` attribute.

        Both the symbolic (`FPU`, `SP_FPU`, `DP_FPU`, `None`) and numeric (`0`, `1`, `2`) forms are
        accepted. A plain `FPU` means single precision.
        """
        return _decode(cls, "fpu", value, _FPU_NAMES)

_FPU_NAMES = {
    "None": FPU.NONE,
    "0": FPU.NONE,
    "FPU": FPU.SINGLE_PRECISION,
    "SP_FPU": FPU.SINGLE_PRECISION,
    "1": FPU.SINGLE_PRECISION,
    "DP_FPU": FPU.DOUBLE_PRECISION,
    "2": FPU.DOUBLE_PRECISION,
    }

class MPU(Enum):
    """@brief Memory protection unit presence."""
    NOT_PRESENT = 0
    PRESENT = 1

    @classmethod
    def from_str(cls, value: str) -> "MPU":
        """@brief Decode a `Dmpu` attribute, either `MPU`/`None` or `1`/`0`."""
        return _decode(cls, "mpu", value, _MPU_NAMES)

_MPU_NAMES = {
    "None": MPU.NOT_PRESENT,
    "0": MPU.NOT_PRESENT,
    "MPU": MPU.PRESENT,
    "1": MPU.PRESENT,
    }

class AlgorithmStyle(Enum):
    """@brief Flash algorithm formats."""
    KEIL = "Keil"
    IAR = "IAR"
    CMSIS = "CMSIS"

    @classmethod
    def from_str(cls, value: str) -> "AlgorithmStyle":
        return _decode(cls, "algorithm style", value, {})

class AccessPort:
    """@brief Base class for the address of the AP through which a processor is debugged.

    An access port is identified either by its APSEL index (ADIv5, `AccessPortIndex`) or by the base
    address of the AP on the DP's APB bus (ADIv6, `AccessPortAddress`). Instances are immutable values
    that compare equal when both the class and the nominal address match.
    """

    __slots__ = ('_nominal_address',)

    def __init__(self, nominal_address: int) -> None:
        self._nominal_address = nominal_address

    @staticmethod
    def default() -> "AccessPort":
        """@brief The AP used when a device description doesn't specify one, index 0."""
        return AccessPortIndex(0)

    @property
    def nominal_address(self) -> int:
        return self._nominal_address

    def __eq__(self, other: object) -> bool:
        return (type(other) is type(self)) and (self._nominal_address == other._nominal_address) # type:ignore

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._nominal_address))

class AccessPortIndex(AccessPort):
    """@brief AP identified by an 8-bit APSEL index."""

    __slots__ = ()

    @property
    def index(self) -> int:
        return self._nominal_address

    def __str__(self) -> str:
        return "#%d" % self.index

    def __repr__(self) -> str:
        return "AccessPortIndex(%d)" % self.index

class AccessPortAddress(AccessPort):
    """@brief AP identified by its base address."""

    __slots__ = ()

    @property
    def address(self) -> int:
        return self._nominal_address

    def __str__(self) -> str:
        return "@0x%x" % self.address

    def __repr__(self) -> str:
        return "AccessPortAddress(0x%x)" % self.address

@dataclass(frozen=True)
class MemoryPermissions:
    """@brief Access permissions for a memory region."""
    read: bool = False
    write: bool = False
    execute: bool = False
    peripheral: bool = False
    secure: bool = False
    non_secure: bool = False
    non_secure_callable: bool = False

    @classmethod
    def from_str(cls, access: str) -> "MemoryPermissions":
        """@brief Decode a memory `access` attribute.

        Each of the characters `r`, `w`, `x`, `p`, `s`, `n` and `c` sets the read, write, execute,
        peripheral, secure, non_secure and non_secure_callable flag, respectively. Any other
        character is ignored.
        """
        return cls(**{_PERMISSION_FLAGS[c]: True for c in access if c in _PERMISSION_FLAGS})

    def __str__(self) -> str:
        return "".join(c for c, name in _PERMISSION_FLAGS.items() if getattr(self, name))

_PERMISSION_FLAGS = {
    'r': 'read',
    'w': 'write',
    'x': 'execute',
    'p': 'peripheral',
    's': 'secure',
    'n': 'non_secure',
    'c': 'non_secure_callable',
    }

@dataclass(frozen=True)
class Memory:
    """@brief A `<memory>` region."""
    access: MemoryPermissions
    start: int
    size: int
    p_name: Optional[str] = None
    startup: bool = False
    default: bool = False

    @property
    def end(self) -> int:
        """@brief Address of the last byte of the region."""
        return self.start + self.size - 1

## Memory regions keyed by the `id` or `name` of the region.
Memories = Dict[str, Memory]

@dataclass(frozen=True)
class Algorithm:
    """@brief A flash programming algorithm."""
    ## Path of the algorithm's file within the pack, always with forward slashes.
    file_name: str
    start: int
    size: int
    ram_start: Optional[int] = None
    ram_size: Optional[int] = None
    default: bool = False
    style: AlgorithmStyle = AlgorithmStyle.KEIL

@dataclass(frozen=True)
class Debug:
    """@brief Debug access information from a `<debug>` element.

    Each field is None if the element didn't provide it. If `name` or `unit` is set, the record only
    applies to the processor with that `Pname` or `Punit`.
    """
    dp: Optional[int] = None
    ap: Optional[AccessPort] = None
    address: Optional[int] = None
    svd: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[int] = None
    default_reset_sequence: Optional[str] = None

    def applies_to(self, name: Optional[str], unit: int) -> bool:
        """@brief Whether this record matches the processor with the given Pname and unit."""
        return ((self.name is None or self.name == name)
                and (self.unit is None or self.unit == unit))

@dataclass(frozen=True)
class Processor:
    """@brief One processing element of a device."""
    core: Core
    fpu: FPU = FPU.NONE
    mpu: MPU = MPU.NOT_PRESENT
    ap: AccessPort = field(default_factory=AccessPort.default)
    dp: int = 0
    address: Optional[int] = None
    svd: Optional[str] = None
    ## The Pname attribute. None for single core devices that don't name their processor.
    name: Optional[str] = None
    ## PE unit number within an MPCore. For single cores this will be 0.
    unit: int = 0
    default_reset_sequence: Optional[str] = None

@dataclass(frozen=True)
class Device:
    """@brief A fully resolved device or variant.

    Fields cannot be reassigned, but the memory map and the algorithm and processor lists are
    ordinary mutable containers, so devices compare by value and are not hashable.
    """
    __hash__ = None  # type: ignore[assignment]

    ## Part number from the `Dname` or `Dvariant` attribute.
    name: str
    family: str
    sub_family: Optional[str] = None
    vendor: Optional[str] = None
    memories: Memories = field(default_factory=dict)
    algorithms: List[Algorithm] = field(default_factory=list)
    processors: List[Processor] = field(default_factory=list)

    @property
    def processor_names(self) -> List[Optional[str]]:
        """@brief Pname of each processor, without duplicates for multiple units."""
        names: List[Optional[str]] = []
        for proc in self.processors:
            if proc.name not in names:
                names.append(proc.name)
        return names
