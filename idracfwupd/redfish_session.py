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
Redfish session module.

This module provides the RedfishSession class which sends GET and POST
requests to a BMC on behalf of the update flow. It is implemented using
the requests library and is the only place where HTTP happens: transport
failures become TransportError, unexpected status codes become
UnexpectedStatus.
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional

import requests
import urllib3

from .config_utils import SessionConfig
from .errors import TransportError, UnexpectedStatus
from .flow_types import AuthMode
from .output_manager import setup_logging


class RedfishSession:
    """
    HTTP client bound to one BMC.

    Authentication is either HTTP Basic or an X-Auth-Token header, never
    both. TLS certificate verification follows SessionConfig.verify_tls.
    """

    def __init__(self, config: SessionConfig, logger: logging.Logger = None):
        """
        Initialize the session.

        Args:
            config (SessionConfig): BMC address, credentials and TLS settings
            logger (logging.Logger): Logger instance
        """
        config.validate()
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.logger = logger or setup_logging("redfish_session")
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.verify = self.config.verify_tls
        session.headers.update({"Accept": "application/json"})
        if self.config.auth_mode is AuthMode.TOKEN:
            session.headers.update({"X-Auth-Token": self.config.token})
        else:
            session.auth = (self.config.username, self.config.password)

        if not self.config.verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            self.logger.warning("TLS certificate verification is disabled")
        return session

    def __enter__(self) -> "RedfishSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def url_for(self, path: str) -> str:
        """Absolute URL for a Redfish path; absolute URLs pass through."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        expected_status: Iterable[int] = (200,),
    ) -> requests.Response:
        """
        Send a request and check its status code.

        Args:
            method (str): HTTP method
            path (str): Redfish path or absolute URL
            json_data (Optional[Dict[str, Any]]): JSON body
            expected_status (Iterable[int]): Status codes counted as success

        Returns:
            requests.Response: The response

        Raises:
            TransportError: If the request could not be completed
            UnexpectedStatus: If the status code is not expected
        """
        url = self.url_for(path)
        expected = tuple(expected_status)

        self.logger.info(f"BMC Redfish {method} Request: {url}")
        if json_data is not None:
            self.logger.info(f"{method} Data: {json.dumps(json_data)}")

        try:
            response = self.session.request(
                method,
                url,
                json=json_data,
                timeout=self.config.request_timeout,
            )
        except requests.exceptions.SSLError as e:
            self.logger.error(f"BMC Redfish {method} TLS error: {e}")
            raise TransportError(url, f"TLS error: {e}") from e
        except requests.exceptions.Timeout as e:
            self.logger.error(f"BMC Redfish {method} Timeout: {e}")
            raise TransportError(url, f"Timeout Error {e}") from e
        except requests.exceptions.RequestException as e:
            self.logger.error(f"BMC Redfish {method} Exception: {e}")
            raise TransportError(url, str(e)) from e

        self.logger.info(f"BMC Redfish {method} Response (Status {response.status_code}): {response.text}")
        if response.status_code not in expected:
            raise UnexpectedStatus(url, response.status_code, response.text, expected)
        return response

    def get_json(self, path: str) -> Dict[str, Any]:
        """
        Send a GET request and decode the JSON body.

        Raises:
            TransportError: If the request fails
            UnexpectedStatus: If the status is not 200 or the body is not JSON
        """
        response = self.request("GET", path)
        if not response.text.strip():
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise UnexpectedStatus(self.url_for(path), response.status_code, f"invalid JSON body: {e}") from e

    def post(
        self,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        expected_status: Iterable[int] = (200, 201, 202, 204),
    ) -> requests.Response:
        """Send a POST request with a JSON body."""
        return self.request("POST", path, json_data=json_data, expected_status=expected_status)

    def close(self):
        """Close the underlying HTTP session."""
        if self.session is not None:
            self.session.close()
            self.session = None
