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
Host power control module.

Drives the power cycle needed to apply a scheduled firmware update:

    Off --------------------------------------------------------> On
    On --> GracefulShutdown --15s--> check x5 (60s apart) --Off--> On
                                          |
                                          +--still On--> ForceOff --15s--> On

Each reset action is a single POST; none is repeated within a cycle.
"""

import logging
import time
from typing import List

from .errors import InvalidInput
from .flow_types import PowerState, ResetType
from .output_manager import setup_logging
from .redfish_session import RedfishSession

SYSTEM_URI = "/redfish/v1/Systems/System.Embedded.1/"
RESET_URI = "/redfish/v1/Systems/System.Embedded.1/Actions/ComputerSystem.Reset"


class PowerController:
    """Reads the host power state and issues ComputerSystem.Reset actions."""

    def __init__(
        self,
        session: RedfishSession,
        logger: logging.Logger = None,
        *,
        shutdown_wait: int = 15,
        check_interval: int = 60,
        max_checks: int = 5,
    ):
        """
        Args:
            session (RedfishSession): Session used for system requests
            logger (logging.Logger): Logger instance
            shutdown_wait (int): Seconds to wait after a shutdown action
            check_interval (int): Seconds between power state checks after a graceful shutdown
            max_checks (int): Power state checks before falling back to ForceOff
        """
        self.session = session
        self.logger = logger or setup_logging("power_control")
        self.shutdown_wait = shutdown_wait
        self.check_interval = check_interval
        self.max_checks = max_checks
        self.issued_resets: List[ResetType] = []

    def get_power_state(self) -> PowerState:
        """
        Read the current host power state.

        Returns:
            PowerState: ON, OFF, or UNKNOWN for transitional values
        """
        system = self.session.get_json(SYSTEM_URI)
        raw_state = system.get("PowerState")
        state = PowerState.from_redfish(raw_state)
        self.logger.info(f"Current power state: {raw_state}")
        return state

    def reset(self, reset_type: ResetType) -> None:
        """
        Issue a ComputerSystem.Reset action.

        Raises:
            InvalidInput: If the action was already issued in this cycle
            TransportError: If the request fails
            UnexpectedStatus: If the BMC does not answer 204
        """
        if reset_type in self.issued_resets:
            raise InvalidInput(f"{reset_type.value} was already issued in this power cycle")
        self.logger.info(f"Sending reset action {reset_type.value}")
        self.session.post(RESET_URI, {"ResetType": reset_type.value}, expected_status=(204,))
        self.issued_resets.append(reset_type)
        self.logger.info(f"Reset action {reset_type.value} accepted")

    def _shutdown(self) -> None:
        """Graceful shutdown with a single ForceOff fallback."""
        self.reset(ResetType.GRACEFUL_SHUTDOWN)
        self.logger.info(f"Waiting {self.shutdown_wait} seconds for graceful shutdown")
        time.sleep(self.shutdown_wait)

        for attempt in range(1, self.max_checks + 1):
            if self.get_power_state() is PowerState.OFF:
                self.logger.info("Graceful shutdown confirmed, host is Off")
                return
            if attempt < self.max_checks:
                self.logger.info(
                    f"Host still on after check {attempt}/{self.max_checks}, "
                    f"checking again in {self.check_interval} seconds"
                )
                time.sleep(self.check_interval)

        self.logger.warning(f"Host still on after {self.max_checks} checks, forcing power off")
        self.reset(ResetType.FORCE_OFF)
        time.sleep(self.shutdown_wait)

    def power_cycle(self, action: ResetType = ResetType.ON) -> PowerState:
        """
        Bring the host down if needed, then power it on.

        Args:
            action (ResetType): Final action, only ResetType.ON is supported

        Returns:
            PowerState: PowerState.ON once the power-on action is accepted

        Raises:
            InvalidInput: If action is not ResetType.ON
            TransportError: If a request fails
            UnexpectedStatus: If the BMC rejects a request
        """
        if action is not ResetType.ON:
            raise InvalidInput(f"Unsupported power cycle action: {action.value}")

        self.issued_resets = []
        initial_state = self.get_power_state()
        if initial_state is PowerState.OFF:
            self.logger.info("Host is already off, skipping shutdown")
        else:
            self._shutdown()

        self.reset(ResetType.ON)
        return PowerState.ON
