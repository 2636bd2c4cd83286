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
Type definitions for the firmware update flow.

This module contains the core data structures shared by the job monitor,
the power controller and the update orchestrator: transfer protocols,
power states, reset actions, reboot policies and the results of a
polling phase.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TransferProtocol(Enum):
    """Network protocols the BMC can use to fetch a firmware image."""

    NFS = "NFS"
    CIFS = "CIFS"
    HTTP = "HTTP"
    HTTPS = "HTTPS"
    FTP = "FTP"
    TFTP = "TFTP"
    SCP = "SCP"
    SFTP = "SFTP"

    @classmethod
    def parse(cls, value: str) -> "TransferProtocol":
        """
        Look up a protocol by name, ignoring case.

        Raises:
            ValueError: If the name is not a known transfer protocol
        """
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            raise ValueError(f"Unsupported transfer protocol '{value}', expected one of: {allowed}") from None


class PowerState(Enum):
    """Host power state as reported by the system resource."""

    ON = "On"
    OFF = "Off"
    UNKNOWN = "Unknown"

    @classmethod
    def from_redfish(cls, value: Optional[str]) -> "PowerState":
        """Map a Redfish PowerState value, folding transitional states into UNKNOWN."""
        if value == cls.ON.value:
            return cls.ON
        if value == cls.OFF.value:
            return cls.OFF
        return cls.UNKNOWN


class ResetType(Enum):
    """ComputerSystem.Reset actions used by the power cycle."""

    GRACEFUL_SHUTDOWN = "GracefulShutdown"
    FORCE_OFF = "ForceOff"
    ON = "On"


class RebootPolicy(Enum):
    """
    What to do once the update job is scheduled.

    Modes:
        DEFER_REBOOT: Leave the job scheduled for the next manual reboot
        REBOOT_NOW: Power cycle the host and wait for the job to finish
        INVALID: Unrecognized answer, stop without touching the host
    """

    DEFER_REBOOT = "n"
    REBOOT_NOW = "y"
    INVALID = ""

    @classmethod
    def parse(cls, value: Optional[str]) -> "RebootPolicy":
        """Parse the reboot flag; anything other than y/n is INVALID."""
        answer = (value or "").strip().lower()
        if answer == "y":
            return cls.REBOOT_NOW
        if answer == "n":
            return cls.DEFER_REBOOT
        return cls.INVALID


class AuthMode(Enum):
    """How requests authenticate against the BMC."""

    BASIC = "basic"
    TOKEN = "token"


class PollPhase(Enum):
    """Polling windows of an update flow."""

    PRE_REBOOT = "pre_reboot"
    POST_REBOOT = "post_reboot"


class PollStatus(Enum):
    """Classification of a job message."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    PENDING = "pending"

    @property
    def is_terminal(self) -> bool:
        """Every status except PENDING ends a polling phase."""
        return self is not PollStatus.PENDING


@dataclass(frozen=True)
class UpdateRequest:
    """Location of a firmware image and the protocol used to fetch it."""

    image_uri: str
    transfer_protocol: TransferProtocol

    def to_payload(self) -> dict:
        """Body of the SimpleUpdate action."""
        return {
            "ImageURI": self.image_uri,
            "TransferProtocol": self.transfer_protocol.value,
        }


@dataclass
class JobHandle:
    """A submitted update job, identified by the id taken from the Location header."""

    job_id: str
    location: str = ""
    created_at: float = field(default_factory=time.time)


@dataclass
class PhaseSettings:
    """Polling interval and deadline of one phase, in seconds."""

    interval: int
    timeout: int


DEFAULT_PHASE_SETTINGS = {
    PollPhase.PRE_REBOOT: PhaseSettings(interval=5, timeout=30 * 60),
    PollPhase.POST_REBOOT: PhaseSettings(interval=30, timeout=50 * 60),
}


@dataclass
class PollResult:
    """Outcome of a polling phase."""

    status: PollStatus
    message: str = ""
    elapsed: float = 0.0
    polls: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status in (PollStatus.SCHEDULED, PollStatus.COMPLETED)


@dataclass
class FlowOutcome:
    """Everything the update flow observed, returned to the caller."""

    job: JobHandle
    policy: RebootPolicy
    pre_reboot: PollResult
    power_state: Optional[PowerState] = None
    post_reboot: Optional[PollResult] = None

    @property
    def succeeded(self) -> bool:
        final = self.post_reboot or self.pre_reboot
        return final.succeeded
