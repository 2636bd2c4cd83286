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


#!/usr/bin/env python3
"""
Shared mock classes for idracfwupd testing.

Usage:
    from idracfwupd.TestFiles.test_mocks import MockRedfishSession, RedfishResponseBuilder
"""

from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

from idracfwupd.config_utils import SessionConfig
from idracfwupd.errors import UnexpectedStatus


class RedfishResponseBuilder:
    """Builds Redfish resources and HTTP responses used across tests."""

    @staticmethod
    def task_response(message: Optional[str], percent: Optional[int] = None) -> Dict[str, Any]:
        """Task resource carrying a single message."""
        task = {
            "@odata.id": "/redfish/v1/TaskService/Tasks/JID_123456789012",
            "Id": "JID_123456789012",
            "TaskState": "Running",
            "Messages": [] if message is None else [{"Message": message, "MessageId": "IDRAC.2.8.RED000"}],
        }
        if percent is not None:
            task["PercentComplete"] = percent
        return task

    @staticmethod
    def power_state_response(state: str) -> Dict[str, Any]:
        """System resource with the given PowerState."""
        return {"@odata.id": "/redfish/v1/Systems/System.Embedded.1", "PowerState": state}

    @staticmethod
    def http_response(
        status_code: int = 200,
        json_data: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        text: Optional[str] = None,
    ) -> MagicMock:
        """requests.Response stand-in."""
        response = MagicMock()
        response.status_code = status_code
        response.headers = headers or {}
        response.json.return_value = json_data if json_data is not None else {}
        if text is None:
            text = "" if json_data is None else str(json_data)
        response.text = text
        return response


class MockRedfishSession:
    """
    In-memory RedfishSession replacement.

    GET answers are queued per URI; the last queued answer repeats once the
    queue is exhausted. Every call is recorded in ``calls``.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self._get_answers: Dict[str, List[Any]] = {}
        self._post_answers: Dict[str, List[Any]] = {}
        self.base_url = "https://192.168.1.100"

    def queue_get(self, uri: str, *answers: Any) -> None:
        """Queue resources (or exceptions) returned by get_json(uri)."""
        self._get_answers.setdefault(uri, []).extend(answers)

    def queue_post(self, uri: str, *answers: Any) -> None:
        """Queue responses (or exceptions) returned by post(uri, ...)."""
        self._post_answers.setdefault(uri, []).extend(answers)

    @staticmethod
    def _next(queue: List[Any], uri: str) -> Any:
        if not queue:
            raise AssertionError(f"No answer queued for {uri}")
        answer = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def get_json(self, path: str) -> Dict[str, Any]:
        self.calls.append(("GET", path, None))
        return self._next(self._get_answers.get(path, []), path)

    def post(self, path: str, json_data=None, expected_status=(200, 201, 202, 204)):
        self.calls.append(("POST", path, json_data))
        response = self._next(self._post_answers.get(path, []), path)
        if response.status_code not in tuple(expected_status):
            raise UnexpectedStatus(self.url_for(path), response.status_code, response.text, tuple(expected_status))
        return response

    def get_calls(self, method: str, path: Optional[str] = None) -> List[tuple]:
        return [call for call in self.calls if call[0] == method and (path is None or call[1] == path)]

    def close(self):
        pass


def basic_session_config(**overrides) -> SessionConfig:
    """A valid basic-auth SessionConfig."""
    values = {
        "base_url": "https://192.168.1.100",
        "username": "root",
        "password": "calvin",
    }
    values.update(overrides)
    return SessionConfig(**values)
