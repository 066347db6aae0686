# pyPDSC
# Copyright (c) 2012-2020 Arm Limited
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

import os
from setuptools import (setup, find_packages)
from pathlib import Path

# Get the directory containing this setup.py so it can be run from anywhere.
SCRIPT_DIR = Path(__file__).parent.resolve()
os.chdir(SCRIPT_DIR)

setup(
    name="pypdsc",
    version="0.1.0",
    description="CMSIS-Pack device description (PDSC) parser",
    license="Apache-2.0",
    python_requires=">=3.8",
    packages=find_packages(include=["pypdsc", "pypdsc.*"]),
    install_requires=[
        "typing-extensions>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.2",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Embedded Systems",
    ],
)
