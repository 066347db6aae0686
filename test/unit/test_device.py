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

import logging
import pytest
from pathlib import Path
from xml.etree import ElementTree

from pypdsc import (Devices, PdscDeviceParser, parse_devices)
from pypdsc.core.exceptions import (DeviceBuildError, MalformedAttributeError)
from pypdsc.core.options_manager import OptionsManager
from pypdsc.pdsc import (
    AccessPortAddress,
    AccessPortIndex,
    AlgorithmStyle,
    Core,
    FPU,
    Memory,
    MemoryPermissions,
    MPU,
    parse_device,
    parse_family,
    parse_sub_family,
)

TEST_DATA_DIR = Path(__file__).resolve().parents[1] / "data" / "pdsc"
TEST1_PDSC_PATH = TEST_DATA_DIR / "Test1.pdsc"

def devices_from(xml, **kwargs):
    return parse_devices(ElementTree.fromstring(xml), **kwargs)

def family(body, attrs='Dfamily="F1" Dvendor="V"'):
    return f'<devices><family {attrs}>{body}</family></devices>'

M4 = '<processor Dcore="Cortex-M4"/>'

@pytest.fixture(scope='function')
def test1devs():
    return parse_devices(ElementTree.parse(TEST1_PDSC_PATH))

class TestScenarios:
    def test_minimal(self):
        devs = devices_from(
            '<devices><family Dfamily="F1" Dvendor="V">'
            '  <processor Dcore="Cortex-M4" Dfpu="SP_FPU"/>'
            '  <device Dname="D1"><memory id="IROM1" start="0x0" size="0x1000"/></device>'
            '</family></devices>')
        assert list(devs) == ["D1"]
        d1 = devs["D1"]
        assert d1.name == "D1"
        assert d1.family == "F1"
        assert d1.vendor == "V"
        assert d1.sub_family is None
        assert len(d1.processors) == 1
        p = d1.processors[0]
        assert p.core is Core.CORTEX_M4
        assert p.fpu is FPU.SINGLE_PRECISION
        assert p.mpu is MPU.NOT_PRESENT
        assert p.unit == 0
        assert p.dp == 0
        assert p.ap == AccessPortIndex(0)
        assert d1.memories == {
            "IROM1": Memory(access=MemoryPermissions(read=True, execute=True), start=0, size=0x1000),
            }
        assert d1.algorithms == []

    def test_memory_override(self):
        devs = devices_from(family(M4
            + '<memory id="IRAM1" start="0x1000" size="0x100"/>'
            + '<device Dname="D1"><memory id="IRAM1" start="0x2000" size="0x200"/></device>'))
        mem = devs["D1"].memories["IRAM1"]
        assert (mem.start, mem.size) == (0x2000, 0x200)

    def test_dual_unit_processor(self):
        devs = devices_from(family(
            '<device Dname="D1"><processor Dcore="Cortex-M7" Punits="2" Pname="CM7"/></device>'))
        procs = devs["D1"].processors
        assert [(p.name, p.unit) for p in procs] == [("CM7", 0), ("CM7", 1)]
        assert all(p.core is Core.CORTEX_M7 for p in procs)
        assert devs["D1"].processor_names == ["CM7"]

    def test_debug_cross_reference(self):
        devs = devices_from(family(
            '<device Dname="D1">'
            '<processor Dcore="Cortex-M33" Pname="CM33"/>'
            '<debug __apid="1" svd="x.svd"/>'
            '<accessportV2 __apid="1" __dp="0" address="0xE00FE000"/>'
            '</device>'))
        p, = devs["D1"].processors
        assert p.ap == AccessPortAddress(0xE00FE000)
        assert p.dp == 0
        assert p.svd == "x.svd"
        assert p.name == "CM33"

    def test_variants_inherit(self):
        devs = devices_from(family(
            '<device Dname="D" Dvendor="V">'
            + M4
            + '<memory id="IROM1" start="0" size="0x100"/>'
            + '<variant Dname="D-A"/><variant Dname="D-B"/>'
            + '</device>', attrs='Dfamily="F1"'))
        assert sorted(devs) == ["D-A", "D-B"]
        for name in ("D-A", "D-B"):
            dev = devs[name]
            assert dev.name == name
            assert dev.vendor == "V"
            assert dev.family == "F1"
            assert dev.processors[0].core is Core.CORTEX_M4
            assert "IROM1" in dev.memories

    def test_rom_heuristic(self):
        devs = devices_from(family(M4 + '<device Dname="D1"><memory id="MyROM" start="0" size="0x10"/></device>'))
        assert devs["D1"].memories["MyROM"].access == MemoryPermissions(read=True, execute=True)

class TestInheritance:
    def test_every_processor_has_core(self, test1devs):
        assert len(test1devs) > 0
        for dev in test1devs.values():
            assert dev.name and dev.family
            assert len(dev.processors) > 0
            assert all(isinstance(p.core, Core) for p in dev.processors)

    def test_unit_expansion_unique(self):
        devs = devices_from(family(
            '<processor Pname="A" Dcore="Cortex-A53" Punits="4"/>'
            '<device Dname="D1"><processor Pname="B" Dcore="Cortex-M4"/></device>'))
        units = [p.unit for p in devs["D1"].processors if p.name == "A"]
        assert sorted(units) == [0, 1, 2, 3]
        assert [p.unit for p in devs["D1"].processors if p.name == "B"] == [0]

    def test_punits_inherited(self):
        devs = devices_from(family(
            '<processor Pname="A" Dcore="Cortex-M7" Punits="2" Dmpu="MPU"/>'
            '<device Dname="D1"><processor Pname="A" Dfpu="DP_FPU"/></device>'))
        procs = devs["D1"].processors
        assert len(procs) == 2
        assert all(p.fpu is FPU.DOUBLE_PRECISION and p.mpu is MPU.PRESENT for p in procs)

    def test_processor_override(self):
        devs = devices_from(family(
            '<processor Dcore="Cortex-M4" Dfpu="SP_FPU" Dmpu="MPU"/>'
            '<device Dname="D1"><processor Dfpu="None"/></device>'
            '<device Dname="D2"/>'))
        assert devs["D1"].processors[0].fpu is FPU.NONE
        assert devs["D1"].processors[0].mpu is MPU.PRESENT
        assert devs["D1"].processors[0].core is Core.CORTEX_M4
        assert devs["D2"].processors[0].fpu is FPU.SINGLE_PRECISION

    def test_debug_device_before_family(self):
        devs = devices_from(family(
            '<processor Pname="CM7" Dcore="Cortex-M7"/>'
            '<debug Pname="CM7" Punit="0" svd="family.svd" __ap="1" defaultResetSequence="ResetSystem"/>'
            '<device Dname="D1"><debug Pname="CM7" Punit="0" svd="device.svd" __dp="1"/></device>'))
        p, = devs["D1"].processors
        assert p.svd == "device.svd"
        assert p.dp == 1
        assert p.ap == AccessPortIndex(1)
        assert p.default_reset_sequence == "ResetSystem"

    def test_debug_variant_before_device(self):
        devs = devices_from(family(M4
            + '<device Dname="D"><debug svd="device.svd"/>'
            + '<variant Dvariant="V1"/>'
            + '<variant Dvariant="V2"><debug svd="variant.svd"/></variant>'
            + '</device>'))
        assert devs["V1"].processors[0].svd == "device.svd"
        # Leaf elements of a variant aren't parsed; only its identifying attributes are.
        assert devs["V2"].processors[0].svd == "device.svd"

    def test_sub_family(self, test1devs):
        dev = test1devs["TEST1A-QFN"]
        assert dev.family == "TEST1 Series"
        assert dev.sub_family == "TEST1x"
        assert dev.vendor == "ARM:82"
        assert test1devs["TEST1C"].sub_family is None

    def test_algorithms_child_first(self, test1devs):
        algos = test1devs["TEST1B"].algorithms
        assert [a.file_name for a in algos] == ["Flash/TEST1_2M.FLM", "Flash/TEST1_1M.FLM"]
        assert algos[1].ram_start == 0x20000000
        assert all(a.style is AlgorithmStyle.KEIL for a in algos)

    def test_memories_merged(self, test1devs):
        mems = test1devs["TEST1B"].memories
        assert set(mems) == {"SRAM", "IROM1"}
        assert mems["IROM1"].size == 0x200000
        assert mems["IROM1"].startup
        assert mems["SRAM"].access == MemoryPermissions(read=True, write=True, execute=True)

    def test_apid_in_sub_family(self, test1devs):
        procs = {p.name: p for p in test1devs["TEST1A-QFN"].processors}
        assert set(procs) == {"CM4", "CM0p"}
        assert procs["CM4"].ap == AccessPortIndex(0)
        assert procs["CM4"].svd == "cm4.svd"
        assert procs["CM4"].default_reset_sequence == "ResetSystem"
        assert procs["CM4"].core is Core.CORTEX_M4
        assert procs["CM4"].fpu is FPU.SINGLE_PRECISION
        assert procs["CM0p"].ap == AccessPortIndex(2)
        assert procs["CM0p"].svd == "cm0p.svd"
        assert procs["CM0p"].address == 0xE000E000
        assert procs["CM0p"].core is Core.CORTEX_M0PLUS
        # Dfpu="NO_FPU" is not a valid value so the default is used.
        assert procs["CM0p"].fpu is FPU.NONE

    def test_device_processor_override_in_sub_family(self, test1devs):
        procs = {p.name: p for p in test1devs["TEST1B"].processors}
        assert procs["CM4"].fpu is FPU.DOUBLE_PRECISION
        assert procs["CM4"].mpu is MPU.PRESENT
        assert procs["CM0p"].core is Core.CORTEX_M0PLUS

    def test_variant_memory_not_parsed(self, test1devs):
        assert test1devs["TEST1A-BGA"].memories["IROM1"].size == 0x100000

    def test_unnamed_processor(self, test1devs):
        p, = test1devs["TEST1C"].processors
        assert p.name is None
        assert p.core is Core.CORTEX_M33
        assert p.fpu is FPU.SINGLE_PRECISION
        assert p.mpu is MPU.PRESENT
        # Family <debug> elements have a Pname, so none apply.
        assert p.svd is None

    def test_duplicate_device_last_wins(self):
        devs = devices_from(
            '<devices>'
            '<family Dfamily="F1" Dvendor="V1">' + M4 + '<device Dname="D"/></family>'
            '<family Dfamily="F2" Dvendor="V2">' + M4 + '<device Dname="D"/></family>'
            '</devices>')
        assert len(devs) == 1
        assert devs["D"].family == "F2"

class TestErrors:
    def test_bad_leaf_skipped(self, caplog):
        caplog.set_level(logging.WARNING)
        devs = devices_from(family(M4
            + '<device Dname="D1">'
            + '<memory id="IROM1" start="0xZZ" size="0x100"/>'
            + '<memory id="IRAM1" start="0x20000000" size="0x100"/>'
            + '<algorithm start="0" size="1"/>'
            + '</device>'))
        assert list(devs["D1"].memories) == ["IRAM1"]
        assert devs["D1"].algorithms == []
        assert "skipping invalid <memory> element" in caplog.text
        assert "skipping invalid <algorithm> element" in caplog.text

    def test_missing_access_port(self, caplog):
        caplog.set_level(logging.WARNING)
        devs = devices_from(family(
            '<device Dname="D1">'
            '<processor Dcore="Cortex-M33"/>'
            '<accessportV1 __apid="0" index="1"/>'
            '<debug __apid="5" svd="bad.svd"/>'
            '<debug __apid="0" svd="good.svd"/>'
            '</device>'))
        p, = devs["D1"].processors
        assert p.svd == "good.svd"
        assert p.ap == AccessPortIndex(1)
        assert "Unable to find Access Port with id 5" in caplog.text

    def test_bad_device_dropped(self, caplog):
        caplog.set_level(logging.WARNING)
        devs = devices_from(family(
            '<device Dname="NoCore"><processor Dcore="Cortex-M99"/></device>'
            '<device Dname="NoProc"/>'
            '<device Dname="Good"><processor Dcore="Cortex-M0"/></device>'))
        assert list(devs) == ["Good"]
        assert "Unknown core Cortex-M99" in caplog.text
        assert "No Core found for device NoCore" in caplog.text
        assert "Device found without a processor NoProc" in caplog.text

    def test_missing_family(self, caplog):
        caplog.set_level(logging.WARNING)
        devs = devices_from(family(M4 + '<device Dname="D1"/>', attrs='Dvendor="V"'))
        assert len(devs) == 0
        assert "without a family" in caplog.text

    def test_strict_leaf(self):
        with pytest.raises(MalformedAttributeError):
            devices_from(family(M4 + '<device Dname="D1"><memory id="X" start="0" size="?"/></device>'),
                options={'pack.strict': True})

    def test_strict_device(self):
        with pytest.raises(DeviceBuildError):
            devices_from(family('<device Dname="D1"/>'), options=OptionsManager({'pack.strict': True}))

    def test_empty_name_and_family_dropped(self, caplog):
        caplog.set_level(logging.WARNING)
        devs = devices_from('<devices>'
            '<family Dfamily="F1" Dvendor="V">' + M4 + '<device Dname=""/><device Dname="D1"/></family>'
            '<family Dfamily="" Dvendor="V">' + M4 + '<device Dname="D2"/></family>'
            '</devices>')
        assert list(devs) == ["D1"]
        assert "Device found without a name" in caplog.text
        assert "without a family (D2)" in caplog.text

    def test_strict_optional_attribute(self):
        with pytest.raises(MalformedAttributeError) as excinfo:
            devices_from(family('<device Dname="D1"><processor Dcore="Cortex-M4" Dfpu="BOGUS"/></device>'),
                options={'pack.strict': True})
        assert "Unknown fpu BOGUS" in str(excinfo.value)

    def test_non_strict_optional_attribute(self, caplog):
        caplog.set_level(logging.WARNING)
        devs = devices_from(family('<device Dname="D1"><processor Dcore="Cortex-M4" Dfpu="BOGUS"/></device>'))
        assert devs["D1"].processors[0].fpu == FPU.NONE
        assert "ignoring invalid attribute" in caplog.text

    def test_injected_logger(self, caplog):
        log = logging.getLogger("pdsc.test.injected")
        caplog.set_level(logging.WARNING)
        devices_from(family('<device Dname="D1"/>'), logger=log)
        assert [r.name for r in caplog.records] == ["pdsc.test.injected"]

    def test_duplicate_processor_warning(self, caplog):
        caplog.set_level(logging.WARNING)
        devs = devices_from(family(
            '<device Dname="D1">'
            '<processor Pname="A" Dcore="Cortex-M4"/>'
            '<processor Pname="A" Dcore="Cortex-M0"/>'
            '</device>'))
        assert [p.core for p in devs["D1"].processors] == [Core.CORTEX_M4, Core.CORTEX_M0]
        assert "multiple <processor> elements with Pname 'A'" in caplog.text

    def test_duplicate_processor_warning_disabled(self, caplog):
        caplog.set_level(logging.WARNING)
        devices_from(family(
            '<device Dname="D1">'
            '<processor Pname="A" Dcore="Cortex-M4"/>'
            '<processor Pname="A" Dcore="Cortex-M0"/>'
            '</device>'), options={'pack.warn_duplicate_processors': False})
        assert caplog.text == ""

    def test_default_dp_option(self):
        devs = devices_from(family(M4 + '<device Dname="D1"/>'), options={'pack.default_dp': 2})
        assert devs["D1"].processors[0].dp == 2

class TestRoots:
    def test_package_root(self, test1devs):
        assert "TEST1C" in test1devs
        assert sorted(test1devs) == ["TEST1A-BGA", "TEST1A-QFN", "TEST1B", "TEST1C"]

    def test_package_without_devices(self):
        assert len(devices_from('<package><name>X</name></package>')) == 0

    def test_unexpected_root(self, caplog):
        caplog.set_level(logging.WARNING)
        assert len(devices_from('<family Dfamily="F"/>')) == 0
        assert "expected <devices> element" in caplog.text

    def test_ignores_non_family_children(self):
        devs = devices_from('<devices><device Dname="D"/>' + family(M4 + '<device Dname="D1"/>')[9:])
        assert list(devs) == ["D1"]

    def test_from_element(self):
        devs = Devices.from_element(ElementTree.fromstring(family(M4 + '<device Dname="D1"/>')))
        assert isinstance(devs, Devices)
        assert "D1" in devs

class TestLevels:
    def test_parse_device(self):
        builders = parse_device(ElementTree.fromstring(
            '<device Dname="D"><variant Dvariant="A"/><variant Dvariant="B"/>' + M4 + '</device>'))
        assert [b.name for b in builders] == ["A", "B"]
        assert all(b.processor is not None for b in builders)

    def test_parse_device_without_variants(self):
        builders = parse_device(ElementTree.fromstring('<device Dname="D">' + M4 + '</device>'))
        assert [b.name for b in builders] == ["D"]

    def test_parse_sub_family(self):
        builders = parse_sub_family(ElementTree.fromstring(
            '<subFamily DsubFamily="S">' + M4 + '<device Dname="D1"/><device Dname="D2"/></subFamily>'))
        assert [(b.name, b.sub_family) for b in builders] == [("D1", "S"), ("D2", "S")]
        assert builders[0].family is None

    def test_parse_family(self):
        devs = parse_family(ElementTree.fromstring(
            '<family Dfamily="F">' + M4 + '<device Dname="D1"/><subFamily DsubFamily="S">'
            '<device Dname="D2"/></subFamily></family>'))
        assert [(d.name, d.sub_family) for d in devs] == [("D1", None), ("D2", "S")]

    def test_parser_properties(self):
        log = logging.getLogger("pdsc.test")
        parser = PdscDeviceParser(log, {'pack.strict': True})
        assert parser.log is log
        assert parser.options.get('pack.strict') is True
