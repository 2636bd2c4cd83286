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
Job monitoring module.

Polls a Redfish task resource at a fixed interval until the job message
classifies as terminal or the phase deadline passes.
"""

import logging
import time
from typing import Any, Dict, Optional

from .flow_types import DEFAULT_PHASE_SETTINGS, JobHandle, PhaseSettings, PollPhase, PollResult, PollStatus
from .output_manager import setup_logging
from .redfish_session import RedfishSession
from .status_rules import classify_message

TASK_URI_TEMPLATE = "/redfish/v1/TaskService/Tasks/{job_id}"


def task_uri(job_id: str) -> str:
    """Redfish URI of the task resource for a job."""
    return TASK_URI_TEMPLATE.format(job_id=job_id)


def extract_job_message(task: Dict[str, Any]) -> str:
    """
    Get the progress message from a task resource.

    Args:
        task (Dict[str, Any]): Decoded task resource

    Returns:
        str: First non-empty Messages[].Message, or an empty string
    """
    messages = task.get("Messages") if isinstance(task, dict) else None
    if not isinstance(messages, list):
        return ""
    for entry in messages:
        if isinstance(entry, dict) and entry.get("Message"):
            return str(entry["Message"])
    return ""


class JobMonitor:
    """Polls a single job through one phase at a time."""

    def __init__(
        self,
        session: RedfishSession,
        settings: Optional[Dict[PollPhase, PhaseSettings]] = None,
        logger: logging.Logger = None,
    ):
        """
        Args:
            session (RedfishSession): Session used for task GET requests
            settings (Optional[Dict[PollPhase, PhaseSettings]]): Interval and timeout per phase
            logger (logging.Logger): Logger instance
        """
        self.session = session
        self.settings = dict(DEFAULT_PHASE_SETTINGS)
        if settings:
            self.settings.update(settings)
        self.logger = logger or setup_logging("job_monitor")

    def poll_job(self, job: JobHandle, phase: PollPhase) -> PollResult:
        """
        Poll the job until a terminal classification.

        One GET is issued per iteration and iterations are separated by a
        sleep of the phase interval. The deadline is fixed when the phase
        starts and does not interrupt an in-flight request.

        Args:
            job (JobHandle): Job to poll
            phase (PollPhase): Phase deciding interval, timeout and rules

        Returns:
            PollResult: SCHEDULED, COMPLETED, FAILED or TIMED_OUT

        Raises:
            TransportError: If a task request fails
            UnexpectedStatus: If the task resource does not answer 200
        """
        phase_settings = self.settings[phase]
        uri = task_uri(job.job_id)
        start_time = time.time()
        polls = 0
        last_message = None

        self.logger.info(
            f"Monitoring job {job.job_id} ({phase.value}): polling every {phase_settings.interval}s, "
            f"timeout {phase_settings.timeout}s"
        )

        while True:
            task = self.session.get_json(uri)
            polls += 1
            message = extract_job_message(task)
            elapsed = time.time() - start_time
            status = classify_message(message, phase, elapsed > phase_settings.timeout)

            if message != last_message:
                percent = task.get("PercentComplete") if isinstance(task, dict) else None
                progress = f" ({percent}% complete)" if percent is not None else ""
                self.logger.info(f"Job {job.job_id} message: {message or '<none>'}{progress}")
                last_message = message

            if status is PollStatus.PENDING:
                self.logger.debug(f"Job {job.job_id} pending after {elapsed:.0f}s, next check in {phase_settings.interval}s")
                time.sleep(phase_settings.interval)
                continue

            if status is PollStatus.FAILED:
                self.logger.error(f"Job {job.job_id} failed: {message}")
            elif status is PollStatus.TIMED_OUT:
                self.logger.error(f"Job {job.job_id} timed out after {elapsed:.0f}s (limit {phase_settings.timeout}s)")
            else:
                self.logger.info(f"Job {job.job_id} {status.value} after {elapsed:.0f}s")
            return PollResult(status=status, message=message, elapsed=elapsed, polls=polls)
