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
Exceptions raised by the firmware update flow.

Every error is terminal for the current flow: nothing here is retried,
the command line entry point logs the diagnostic and exits.
"""

from typing import Optional


class FirmwareUpdateError(Exception):
    """Base class for all idracfwupd errors."""


class TransportError(FirmwareUpdateError):
    """Connection, TLS or request timeout failure."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to reach {url}: {reason}")


class UnexpectedStatus(FirmwareUpdateError):
    """The BMC answered with an HTTP status outside the expected set."""

    def __init__(self, url: str, status_code: int, body: str = "", expected: tuple = ()):
        self.url = url
        self.status_code = status_code
        self.body = body
        self.expected = expected
        message = f"Unexpected HTTP status {status_code} from {url}"
        if expected:
            message += f" (expected {', '.join(str(code) for code in expected)})"
        if body:
            message += f": {body}"
        super().__init__(message)


class JobFailed(FirmwareUpdateError):
    """The job reported a failure message."""

    def __init__(self, job_id: str, message: str):
        self.job_id = job_id
        self.message = message
        super().__init__(f"Job {job_id} failed: {message}")


class JobTimeout(FirmwareUpdateError):
    """The job did not reach a terminal state before the phase deadline."""

    def __init__(self, job_id: str, timeout: int, message: Optional[str] = None):
        self.job_id = job_id
        self.timeout = timeout
        self.message = message or ""
        text = f"Job {job_id} did not finish within {timeout} seconds"
        if message:
            text += f", last message: {message}"
        super().__init__(text)


class InvalidInput(FirmwareUpdateError):
    """Missing or contradictory arguments or configuration."""
