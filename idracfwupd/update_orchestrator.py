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
Firmware update orchestration.

This module provides the UpdateOrchestrator class which submits a
SimpleUpdate request, polls the resulting job, and when asked to reboot
drives the host through a power cycle before waiting for the update to
complete. It also exposes the firmware inventory and the transfer
protocols supported by the BMC.
"""

import logging
from typing import Any, Dict, List, Optional

from .errors import InvalidInput, JobFailed, JobTimeout, UnexpectedStatus
from .flow_types import (
    FlowOutcome,
    JobHandle,
    PhaseSettings,
    PollPhase,
    PollResult,
    PollStatus,
    PowerState,
    RebootPolicy,
    ResetType,
    TransferProtocol,
    UpdateRequest,
)
from .job_monitor import JobMonitor
from .output_manager import setup_logging
from .power_control import PowerController
from .redfish_session import RedfishSession

UPDATE_SERVICE_URI = "/redfish/v1/UpdateService"
SIMPLE_UPDATE_URI = "/redfish/v1/UpdateService/Actions/UpdateService.SimpleUpdate"
FIRMWARE_INVENTORY_URI = "/redfish/v1/UpdateService/FirmwareInventory?$expand=*($levels=1)"


def job_id_from_location(location: str) -> str:
    """
    Extract the job id from a Location header.

    Args:
        location (str): Header value, e.g. /redfish/v1/TaskService/Tasks/JID_123

    Returns:
        str: The final path segment, e.g. JID_123
    """
    return location.rstrip("/").split("/")[-1]


class UpdateOrchestrator:
    """
    Runs one firmware update at a time against a single BMC.
    """

    def __init__(
        self,
        session: RedfishSession,
        *,
        job_monitor: Optional[JobMonitor] = None,
        power_controller: Optional[PowerController] = None,
        phase_settings: Optional[Dict[PollPhase, PhaseSettings]] = None,
        logger: logging.Logger = None,
    ):
        """
        Args:
            session (RedfishSession): Session bound to the target BMC
            job_monitor (Optional[JobMonitor]): Job monitor, created from the session if omitted
            power_controller (Optional[PowerController]): Power controller, created if omitted
            phase_settings (Optional[Dict[PollPhase, PhaseSettings]]): Polling overrides
            logger (logging.Logger): Logger instance
        """
        self.session = session
        self.logger = logger or setup_logging("update_orchestrator")
        self.job_monitor = job_monitor or JobMonitor(session, phase_settings, logger=self.logger)
        self.power_controller = power_controller or PowerController(session, logger=self.logger)
        self.active_job: Optional[JobHandle] = None

    def get_firmware_inventory(self) -> List[Dict[str, Any]]:
        """
        Get the firmware inventory members with their properties expanded.

        Returns:
            List[Dict[str, Any]]: Inventory members
        """
        inventory = self.session.get_json(FIRMWARE_INVENTORY_URI)
        members = inventory.get("Members") if isinstance(inventory, dict) else None
        if not isinstance(members, list):
            members = []
        members = [member for member in members if isinstance(member, dict)]
        self.logger.info(f"Firmware inventory contains {len(members)} entries")
        return members

    def get_transfer_protocols(self) -> List[str]:
        """
        Get the transfer protocols the SimpleUpdate action accepts.

        Returns:
            List[str]: Allowable TransferProtocol values, empty if not advertised
        """
        update_service = self.session.get_json(UPDATE_SERVICE_URI)
        actions = update_service.get("Actions") if isinstance(update_service, dict) else None
        action = actions.get("#UpdateService.SimpleUpdate") if isinstance(actions, dict) else None
        protocols = action.get("TransferProtocol@Redfish.AllowableValues") if isinstance(action, dict) else None
        if not isinstance(protocols, list):
            protocols = []
        self.logger.info(f"Supported transfer protocols: {', '.join(map(str, protocols)) if protocols else 'none advertised'}")
        return list(protocols)

    def submit_update(self, image_uri: str, protocol: TransferProtocol) -> JobHandle:
        """
        Start a SimpleUpdate from a network-hosted image.

        Args:
            image_uri (str): Location of the firmware image
            protocol (TransferProtocol): Protocol the BMC uses to fetch it

        Returns:
            JobHandle: The created job

        Raises:
            InvalidInput: If the image URI is empty or a job is already active
            TransportError: If the request fails
            UnexpectedStatus: If the BMC does not answer 202 with a Location header
        """
        if not image_uri:
            raise InvalidInput("An image URI is required to start a firmware update")
        if self.active_job is not None:
            raise InvalidInput(f"Job {self.active_job.job_id} is still outstanding, refusing to submit another update")

        request = UpdateRequest(image_uri=image_uri, transfer_protocol=protocol)
        self.logger.info(f"Submitting firmware update: {request.image_uri} via {request.transfer_protocol.value}")
        response = self.session.post(SIMPLE_UPDATE_URI, request.to_payload(), expected_status=(202,))

        location = response.headers.get("Location")
        if not location:
            raise UnexpectedStatus(
                self.session.url_for(SIMPLE_UPDATE_URI),
                response.status_code,
                "response carries no Location header",
            )

        job = JobHandle(job_id=job_id_from_location(location), location=location)
        self.active_job = job
        self.logger.info(f"Firmware update job created: {job.job_id}")
        return job

    def poll_job(self, job: JobHandle, phase: PollPhase) -> PollResult:
        """
        Poll a job through one phase and turn failures into exceptions.

        Raises:
            JobFailed: If the job reports a failure message
            JobTimeout: If the phase deadline passes
        """
        result = self.job_monitor.poll_job(job, phase)
        if result.status is PollStatus.FAILED:
            self.active_job = None
            raise JobFailed(job.job_id, result.message)
        if result.status is PollStatus.TIMED_OUT:
            self.active_job = None
            raise JobTimeout(job.job_id, self.job_monitor.settings[phase].timeout, result.message)
        return result

    def power_cycle(self, action: ResetType = ResetType.ON) -> PowerState:
        """Power cycle the host so a scheduled update can apply."""
        return self.power_controller.power_cycle(action)

    def run_update_flow(self, image_uri: str, protocol: TransferProtocol, reboot_policy: RebootPolicy) -> FlowOutcome:
        """
        Submit an update and follow it as far as the reboot policy allows.

        Args:
            image_uri (str): Location of the firmware image
            protocol (TransferProtocol): Transfer protocol for the image
            reboot_policy (RebootPolicy): Whether to reboot now, defer, or stop

        Returns:
            FlowOutcome: The job and every phase result observed

        Raises:
            FirmwareUpdateError: On any failure; nothing is rolled back
        """
        job = self.submit_update(image_uri, protocol)
        pre_reboot = self.poll_job(job, PollPhase.PRE_REBOOT)
        outcome = FlowOutcome(job=job, policy=reboot_policy, pre_reboot=pre_reboot)

        if pre_reboot.status is PollStatus.COMPLETED:
            self.logger.info(f"Job {job.job_id} completed without a host reboot")
            self.active_job = None
            return outcome

        if reboot_policy is RebootPolicy.DEFER_REBOOT:
            self.logger.info(f"Job {job.job_id} is scheduled and will apply on the next server reboot")
            return outcome

        if reboot_policy is RebootPolicy.INVALID:
            self.logger.warning(
                f"Invalid reboot option, job {job.job_id} is left scheduled; reboot the server to apply the update"
            )
            return outcome

        self.logger.info("Rebooting the server to apply the firmware update")
        outcome.power_state = self.power_cycle(ResetType.ON)
        outcome.post_reboot = self.poll_job(job, PollPhase.POST_REBOOT)
        self.active_job = None
        self.logger.info(f"Job {job.job_id} completed in {outcome.post_reboot.elapsed:.0f} seconds after reboot")
        return outcome
