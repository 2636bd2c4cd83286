# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Render firmware inventory and transfer protocol listings as text tables.
"""

import json
import textwrap
from typing import Any, Dict, List

from tabulate import tabulate  # pylint: disable=import-error

INVENTORY_HEADER = ["Id", "Name", "Version", "Updateable", "Status"]


def wrap_text(text, width):
    """
    Wrap the text based on the provided width
    Parameters:
        text String text to wrap
        width Maximum numerical width of wrapped lines
    Returns:
        Wrapped text based on the provided width
    """
    wrapped_line = textwrap.wrap(str(text), width)
    return "\n".join(wrapped_line)


def inventory_rows(members: List[Dict[str, Any]]) -> List[List[str]]:
    """
    Flatten inventory members into table rows.
    Parameter:
        members Expanded FirmwareInventory members
    Returns:
        List of [Id, Name, Version, Updateable, Status] rows
    """
    rows = []
    for member in members:
        status = member.get("Status") or {}
        health = status.get("Health") or status.get("State") or ""
        rows.append(
            [
                wrap_text(member.get("Id", ""), 40),
                wrap_text(member.get("Name", ""), 40),
                str(member.get("Version", "")),
                str(member.get("Updateable", "")),
                str(health),
            ]
        )
    return rows


def format_inventory(members: List[Dict[str, Any]], as_json=False) -> str:
    """
    Format the firmware inventory.
    Parameters:
        members Expanded FirmwareInventory members
        as_json Boolean value, True returns the raw members as indented JSON
    Returns:
        Printable string
    """
    if as_json:
        return json.dumps(members, sort_keys=False, indent=4)
    if not members:
        return "No firmware inventory entries reported"
    return tabulate(inventory_rows(members), headers=INVENTORY_HEADER, tablefmt="grid")


def format_protocols(protocols: List[str], as_json=False) -> str:
    """
    Format the supported transfer protocols.
    Parameters:
        protocols List of TransferProtocol values
        as_json Boolean value, True returns a JSON list
    Returns:
        Printable string
    """
    if as_json:
        return json.dumps(protocols, indent=4)
    if not protocols:
        return "The BMC does not advertise any transfer protocols"
    return tabulate([[protocol] for protocol in protocols], headers=["TransferProtocol"], tablefmt="grid")
