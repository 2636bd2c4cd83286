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
Job message classification table.

The BMC reports update progress only as free-text messages, so the client
keeps its own ordered list of rules mapping message text to a PollStatus.
Rules are evaluated top to bottom and the first match wins; a message no
rule matches is PENDING.

    1. failure substrings                       -> FAILED
    2. phase deadline passed                    -> TIMED_OUT
    3. "Task successfully scheduled." (pre)     -> SCHEDULED
    4. completion phrase or "complete"          -> COMPLETED

Matching is case-insensitive. The pre-reboot failure list also contains
"job for this device is already present"; the post-reboot list does not.
The table must track the message set of the target firmware exactly, do
not add states to it.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from .flow_types import PollPhase, PollStatus

ALL_PHASES = frozenset(PollPhase)

SCHEDULED_MESSAGE = "Task successfully scheduled."

COMPLETION_MESSAGES = (
    "Job completed successfully.",
    "The specified job has completed successfully.",
    "Job successfully Completed",
)

PRE_REBOOT_FAILURE_SUBSTRINGS = (
    "fail",
    "failed",
    "unable",
    "job for this device is already present",
)

POST_REBOOT_FAILURE_SUBSTRINGS = (
    "fail",
    "failed",
    "unable",
)


@dataclass(frozen=True)
class StatusRule:
    """
    One row of the classification table.

    Attributes:
        status: Status produced when the rule matches
        substrings: Case-insensitive substrings, any of which matches
        exact: Whole messages that match, compared case-insensitively
        phases: Phases the rule applies to
        on_deadline: Match when the phase deadline has passed, regardless of text
    """

    status: PollStatus
    substrings: Tuple[str, ...] = ()
    exact: Tuple[str, ...] = ()
    phases: FrozenSet[PollPhase] = ALL_PHASES
    on_deadline: bool = False

    def matches(self, message: str, phase: PollPhase, deadline_passed: bool = False) -> bool:
        if phase not in self.phases:
            return False
        if self.on_deadline:
            return deadline_passed
        lowered = message.strip().lower()
        if any(text.lower() == lowered for text in self.exact):
            return True
        return any(text.lower() in lowered for text in self.substrings)


STATUS_RULES: Tuple[StatusRule, ...] = (
    StatusRule(
        PollStatus.FAILED,
        substrings=PRE_REBOOT_FAILURE_SUBSTRINGS,
        phases=frozenset({PollPhase.PRE_REBOOT}),
    ),
    StatusRule(
        PollStatus.FAILED,
        substrings=POST_REBOOT_FAILURE_SUBSTRINGS,
        phases=frozenset({PollPhase.POST_REBOOT}),
    ),
    StatusRule(PollStatus.TIMED_OUT, on_deadline=True),
    StatusRule(
        PollStatus.SCHEDULED,
        exact=(SCHEDULED_MESSAGE,),
        phases=frozenset({PollPhase.PRE_REBOOT}),
    ),
    StatusRule(PollStatus.COMPLETED, exact=COMPLETION_MESSAGES, substrings=("complete",)),
)


def find_rule(message: Optional[str], phase: PollPhase, deadline_passed: bool = False) -> Optional[StatusRule]:
    """Return the first rule matching the message, or None."""
    text = message or ""
    for rule in STATUS_RULES:
        if rule.matches(text, phase, deadline_passed):
            return rule
    return None


def classify_message(message: Optional[str], phase: PollPhase, deadline_passed: bool = False) -> PollStatus:
    """
    Classify a job message.

    Args:
        message: Free-text job message, may be empty
        phase: Polling phase the message was read in
        deadline_passed: True when the phase deadline has been exceeded

    Returns:
        PollStatus of the first matching rule, PENDING if none matches
    """
    rule = find_rule(message, phase, deadline_passed)
    return rule.status if rule else PollStatus.PENDING
