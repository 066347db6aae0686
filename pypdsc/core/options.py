# pyPDSC
# Copyright (c) 2018-2020 Arm Limited
# Copyright (c) 2022 Chris Reed
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

from typing import (Any, Dict, List, NamedTuple, Tuple, Union)

class OptionInfo(NamedTuple):
    name: str
    type: Union[type, Tuple[type, ...]]
    default: Any
    help: str

## @brief Definitions of the builtin options.
BUILTIN_OPTIONS = [
    OptionInfo('pack.default_dp', int, 0,
        "Debug port index assigned to a processor when none of its <debug> elements provides '__dp' "
        "or references an access port with '__dp'."),
    OptionInfo('pack.strict', bool, False,
        "Raise an error for malformed <memory>, <algorithm>, <processor> and <debug> elements or "
        "attributes, and for devices that cannot be built, instead of "
        "logging a warning and skipping them."),
    OptionInfo('pack.warn_duplicate_processors', bool, True,
        "Log a warning when more than one <processor> element at the same level of the device "
        "hierarchy has the same 'Pname'. All such processors are kept."),
    ]

## @brief The runtime dictionary of options.
OPTIONS_INFO: Dict[str, OptionInfo] = {}

def add_option_set(options: List[OptionInfo]) -> None:
    """@brief Merge a list of OptionInfo objects into OPTIONS_INFO."""
    OPTIONS_INFO.update({oi.name: oi for oi in options})

# Start with only builtin options.
add_option_set(BUILTIN_OPTIONS)
