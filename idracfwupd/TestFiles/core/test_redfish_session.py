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
Unit tests for RedfishSession.
"""

import unittest
from unittest.mock import MagicMock, patch

import pytest
import requests

from idracfwupd.config_utils import SessionConfig
from idracfwupd.errors import InvalidInput, TransportError, UnexpectedStatus
from idracfwupd.flow_types import AuthMode
from idracfwupd.redfish_session import RedfishSession
from idracfwupd.TestFiles.test_mocks import RedfishResponseBuilder, basic_session_config

# Mark all tests in this file as core tests
pytestmark = pytest.mark.core


@patch("requests.Session")
class TestRedfishSession(unittest.TestCase):
    """Test cases for RedfishSession."""

    def setUp(self):
        self.logger = MagicMock()

    def test_basic_auth_session(self, mock_session_class):
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session_class.return_value = mock_session

        session = RedfishSession(basic_session_config(), logger=self.logger)

        self.assertEqual(mock_session.auth, ("root", "calvin"))
        self.assertTrue(mock_session.verify)
        self.assertNotIn("X-Auth-Token", mock_session.headers)
        self.assertEqual(session.base_url, "https://192.168.1.100")

    def test_token_auth_session(self, mock_session_class):
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session.auth = None
        mock_session_class.return_value = mock_session
        config = SessionConfig(base_url="https://192.168.1.100/", auth_mode=AuthMode.TOKEN, token="abc123")

        session = RedfishSession(config, logger=self.logger)

        self.assertEqual(mock_session.headers["X-Auth-Token"], "abc123")
        self.assertIsNone(mock_session.auth)
        self.assertEqual(session.base_url, "https://192.168.1.100")

    def test_insecure_session_disables_verification(self, mock_session_class):
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session_class.return_value = mock_session

        with patch("idracfwupd.redfish_session.urllib3.disable_warnings") as mock_disable:
            RedfishSession(basic_session_config(verify_tls=False), logger=self.logger)

        self.assertFalse(mock_session.verify)
        mock_disable.assert_called_once()
        self.logger.warning.assert_called()

    def test_invalid_config_rejected(self, mock_session_class):
        with self.assertRaises(InvalidInput):
            RedfishSession(basic_session_config(password=None), logger=self.logger)
        mock_session_class.assert_not_called()

    def test_get_json_success(self, mock_session_class):
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session.request.return_value = RedfishResponseBuilder.http_response(200, {"PowerState": "On"})
        mock_session_class.return_value = mock_session
        session = RedfishSession(basic_session_config(request_timeout=30), logger=self.logger)

        data = session.get_json("/redfish/v1/Systems/System.Embedded.1/")

        self.assertEqual(data, {"PowerState": "On"})
        mock_session.request.assert_called_once_with(
            "GET",
            "https://192.168.1.100/redfish/v1/Systems/System.Embedded.1/",
            json=None,
            timeout=30,
        )

    def test_get_json_empty_body(self, mock_session_class):
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session.request.return_value = RedfishResponseBuilder.http_response(200, text="  ")
        mock_session_class.return_value = mock_session
        session = RedfishSession(basic_session_config(), logger=self.logger)

        self.assertEqual(session.get_json("/redfish/v1/"), {})

    def test_unexpected_status(self, mock_session_class):
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session.request.return_value = RedfishResponseBuilder.http_response(401, text="Unauthorized")
        mock_session_class.return_value = mock_session
        session = RedfishSession(basic_session_config(), logger=self.logger)

        with self.assertRaises(UnexpectedStatus) as ctx:
            session.get_json("/redfish/v1/UpdateService")

        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.body, "Unauthorized")
        self.assertIn("401", str(ctx.exception))

    def test_post_expected_status(self, mock_session_class):
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session.request.return_value = RedfishResponseBuilder.http_response(
            202, headers={"Location": "/redfish/v1/TaskService/Tasks/JID_1"}
        )
        mock_session_class.return_value = mock_session
        session = RedfishSession(basic_session_config(), logger=self.logger)

        response = session.post("/redfish/v1/UpdateService/Actions/UpdateService.SimpleUpdate", {"ImageURI": "x"}, (202,))

        self.assertEqual(response.headers["Location"], "/redfish/v1/TaskService/Tasks/JID_1")
        with self.assertRaises(UnexpectedStatus):
            session.post("/redfish/v1/Systems/System.Embedded.1/Actions/ComputerSystem.Reset", {}, (204,))

    def test_connection_error_becomes_transport_error(self, mock_session_class):
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session.request.side_effect = requests.exceptions.ConnectionError("Connection refused")
        mock_session_class.return_value = mock_session
        session = RedfishSession(basic_session_config(), logger=self.logger)

        with self.assertRaises(TransportError) as ctx:
            session.get_json("/redfish/v1/")

        self.assertEqual(ctx.exception.url, "https://192.168.1.100/redfish/v1/")
        self.assertIsInstance(ctx.exception.__cause__, requests.exceptions.ConnectionError)

    def test_timeout_and_tls_errors(self, mock_session_class):
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session_class.return_value = mock_session
        session = RedfishSession(basic_session_config(), logger=self.logger)

        for error in (requests.exceptions.Timeout("slow"), requests.exceptions.SSLError("bad cert")):
            with self.subTest(error=type(error).__name__):
                mock_session.request.side_effect = error
                with self.assertRaises(TransportError):
                    session.get_json("/redfish/v1/")

    def test_context_manager_closes_session(self, mock_session_class):
        mock_session = MagicMock()
        mock_session.headers = {}
        mock_session_class.return_value = mock_session

        with RedfishSession(basic_session_config(), logger=self.logger) as session:
            self.assertIs(session.session, mock_session)

        mock_session.close.assert_called_once()
        self.assertIsNone(session.session)

    def test_url_for(self, mock_session_class):
        mock_session_class.return_value = MagicMock(headers={})
        session = RedfishSession(basic_session_config(), logger=self.logger)

        self.assertEqual(session.url_for("redfish/v1"), "https://192.168.1.100/redfish/v1")
        self.assertEqual(session.url_for("https://10.0.0.1/redfish/v1"), "https://10.0.0.1/redfish/v1")


if __name__ == "__main__":
    unittest.main()
