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
Unit tests for inventory and protocol table formatting.
"""

import json
import unittest

import pytest

from idracfwupd.inventory_view import format_inventory, format_protocols, inventory_rows

# Mark all tests in this file as core tests
pytestmark = pytest.mark.core

MEMBERS = [
    {
        "Id": "Installed-159-2.10.2",
        "Name": "BIOS",
        "Version": "2.10.2",
        "Updateable": True,
        "Status": {"Health": "OK", "State": "Enabled"},
    },
    {"Id": "Installed-25227-5.00.00.00", "Name": "Integrated Dell Remote Access Controller", "Version": "5.00.00.00"},
]


class TestInventoryView(unittest.TestCase):
    def test_inventory_rows(self):
        rows = inventory_rows(MEMBERS)
        self.assertEqual(rows[0], ["Installed-159-2.10.2", "BIOS", "2.10.2", "True", "OK"])
        self.assertEqual(rows[1][4], "")
        self.assertEqual(rows[1][3], "")

    def test_format_inventory_table(self):
        table = format_inventory(MEMBERS)
        self.assertIn("Version", table)
        self.assertIn("5.00.00.00", table)
        self.assertIn("+", table)

    def test_format_inventory_json(self):
        self.assertEqual(json.loads(format_inventory(MEMBERS, as_json=True)), MEMBERS)

    def test_empty_inventory(self):
        self.assertEqual(format_inventory([]), "No firmware inventory entries reported")

    def test_format_protocols(self):
        table = format_protocols(["HTTP", "NFS"])
        self.assertIn("TransferProtocol", table)
        self.assertIn("NFS", table)
        self.assertEqual(json.loads(format_protocols(["HTTP"], as_json=True)), ["HTTP"])
        self.assertIn("does not advertise", format_protocols([]))


if __name__ == "__main__":
    unittest.main()
