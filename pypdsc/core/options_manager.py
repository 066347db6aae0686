# pyPDSC
# Copyright (c) 2019-2020 Arm Limited
# Copyright (c) 2021 Chris Reed
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
from functools import partial
from typing import (Any, Callable, Dict, List, Mapping, Optional, Union)

from .options import OPTIONS_INFO

LOG = logging.getLogger(__name__)

class OptionsManager:
    """@brief Handles option management for a PDSC parser.

    The options manager supports multiple layers of option priority. When an option's value is
    accessed, the highest priority layer that contains a value for the option is used. This design
    makes it easy to load options from multiple sources. The default value specified for an option
    in the OPTIONS_INFO dictionary provides a layer with an infinitely low priority.
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        """@brief Option manager constructor.

        @param self
        @param options Optional dictionary of option values used as the initial layer.
        """
        self._layers: List[Dict[str, Any]] = []
        if options is not None:
            self.add_front(options)

    @classmethod
    def coerce(cls, options: Union["OptionsManager", Mapping[str, Any], None]) -> "OptionsManager":
        """@brief Return an OptionsManager for an existing manager, a dict of options, or None."""
        if isinstance(options, OptionsManager):
            return options
        return cls(options)

    def _update_layers(self, new_options: Optional[Mapping[str, Any]],
            update_operation: Callable[[Dict[str, Any]], None]) -> None:
        """@brief Internal method to add a new layer dictionary.

        @param self
        @param new_options Dictionary of option values.
        @param update_operation Callable to add the layer. Must accept a single parameter, which is
            the filtered _new_options_ dictionary.
        """
        if new_options is None:
            return
        update_operation(self._convert_options(new_options))

    def add_front(self, new_options: Optional[Mapping[str, Any]]) -> None:
        """@brief Add a new highest priority layer of option values.

        @param self
        @param new_options Dictionary of option values.
        """
        self._update_layers(new_options, partial(self._layers.insert, 0))

    def add_back(self, new_options: Optional[Mapping[str, Any]]) -> None:
        """@brief Add a new lowest priority layer of option values.

        @param self
        @param new_options Dictionary of option values.
        """
        self._update_layers(new_options, self._layers.append)

    def _convert_options(self, new_options: Mapping[str, Any]) -> Dict[str, Any]:
        """@brief Prepare a dictionary of options for use by the manager.

        1. Strip dictionary entries with a value of None.
        2. Replace double-underscores ("__") with a dot (".").
        3. Convert option names to all-lowercase.
        4. Warn about option names that are not known.
        """
        output = {}
        for name, value in new_options.items():
            if value is None:
                continue
            name = name.replace("__", ".").lower()
            if name not in OPTIONS_INFO:
                LOG.warning("unknown option '%s'", name)
            output[name] = value
        return output

    def is_set(self, key: str) -> bool:
        """@brief Return whether a value is set for the specified option.

        This method returns True as long as any layer has a value set for the option, even if the
        value is the same as the default value. If the option is not set in any layer, then False is
        returned regardless of whether the default value is None.
        """
        return any(key in layer for layer in self._layers)

    def get_default(self, key: str) -> Any:
        """@brief Return the default value for the specified option."""
        if key in OPTIONS_INFO:
            return OPTIONS_INFO[key].default
        else:
            return None

    def get(self, key: str) -> Any:
        """@brief Return the highest priority value for the option, or its default."""
        for layer in self._layers:
            if key in layer:
                return layer[key]
        return self.get_default(key)

    def set(self, key: str, value: Any) -> None:
        """@brief Set an option in the current highest priority layer."""
        self.update({key: value})

    def update(self, new_options: Mapping[str, Any]) -> None:
        """@brief Set multiple options in the current highest priority layer."""
        if not self._layers:
            self._layers.append({})
        self._layers[0].update(self._convert_options(new_options))

    def __contains__(self, key: str) -> bool:
        """@brief Returns whether the named option has a non-default value."""
        return self.is_set(key)

    def __getitem__(self, key: str) -> Any:
        """@brief Return the highest priority value for the option, or its default."""
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        """@brief Set an option in the current highest priority layer."""
        self.set(key, value)
