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
Configuration utilities module.

This module provides the ConfigLoader class which handles YAML
configuration loading and merging, and the SessionConfig dataclass
describing how to reach and authenticate against a BMC.

Configuration layout:

    connection:
      bmc:
        ip: 192.168.1.100
        username: root
        password: calvin        # or token: <X-Auth-Token value>
        protocol: https
        port: 443
        verify_tls: true
        request_timeout: 120
    update:
      pre_reboot:
        interval: 5
        timeout: 1800
      post_reboot:
        interval: 30
        timeout: 3000
"""

import copy
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from .errors import InvalidInput
from .flow_types import DEFAULT_PHASE_SETTINGS, AuthMode, PhaseSettings, PollPhase


class ConfigLoader:
    """
    Utility class for loading and managing YAML configurations.
    """

    @staticmethod
    def load_config(config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Dict containing the loaded configuration

        Raises:
            InvalidInput: If the file doesn't exist or is not valid YAML
        """
        if not os.path.exists(config_path):
            raise InvalidInput(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidInput(f"Invalid YAML in {config_path}: {e}") from e

        # Handle empty files
        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise InvalidInput(f"Configuration file {config_path} must contain a mapping")

        return config

    @staticmethod
    def get_config_section(config: Dict[str, Any], path: str) -> Dict[str, Any]:
        """
        Get a nested configuration section by dot-separated path.

        Args:
            config: The configuration dictionary
            path: Dot-separated path (e.g., "connection.bmc")

        Returns:
            The section, or an empty dictionary if any part of the path is missing
        """
        current = config
        for part in path.split("."):
            if not isinstance(current, dict):
                return {}
            current = current.get(part)
        return current if isinstance(current, dict) else {}

    @staticmethod
    def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two configuration dictionaries.

        The override_config values take precedence over base_config values.
        Nested dictionaries are merged rather than replaced, and None values
        in override_config leave the base value untouched.

        Args:
            base_config: The base configuration
            override_config: The configuration with override values

        Returns:
            A new dictionary with merged configuration
        """

        def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
            """Recursively merge two dictionaries."""
            result = copy.deepcopy(base)

            for key, value in override.items():
                if value is None:
                    continue
                if isinstance(value, dict):
                    nested = result.get(key)
                    result[key] = deep_merge(nested if isinstance(nested, dict) else {}, value)
                else:
                    result[key] = copy.deepcopy(value)

            return result

        return deep_merge(base_config, override_config)

    @staticmethod
    def load_phase_settings(config: Dict[str, Any]) -> Dict[PollPhase, PhaseSettings]:
        """
        Build per-phase polling settings, falling back to the defaults.

        Args:
            config: The configuration dictionary

        Returns:
            Mapping of polling phase to its interval and timeout

        Raises:
            InvalidInput: If a phase section is not a mapping, or an interval or timeout is not a positive integer
        """
        update_section = ConfigLoader.get_config_section(config, "update")
        settings = {}
        for phase, default in DEFAULT_PHASE_SETTINGS.items():
            section = update_section.get(phase.value) or {}
            if not isinstance(section, dict):
                raise InvalidInput(f"update.{phase.value} must be a mapping, got {section!r}")
            interval = section.get("interval", default.interval)
            timeout = section.get("timeout", default.timeout)
            for name, value in (("interval", interval), ("timeout", timeout)):
                if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                    raise InvalidInput(f"update.{phase.value}.{name} must be a positive integer, got {value!r}")
            settings[phase] = PhaseSettings(interval=interval, timeout=timeout)
        return settings


def _parse_bool(name: str, value: Any, default: bool) -> bool:
    """Accept YAML booleans and the usual true/false strings; None means default."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "yes", "on", "1"):
            return True
        if text in ("false", "no", "off", "0"):
            return False
    raise InvalidInput(f"{name} must be true or false, got {value!r}")


def _parse_timeout(value: Any, default: int = 120) -> int:
    """Convert request_timeout to a positive integer number of seconds."""
    if value is None:
        return default
    timeout = int(value) if isinstance(value, str) and value.strip().isdigit() else value
    if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
        raise InvalidInput(f"request_timeout must be a positive integer, got {value!r}")
    return timeout


@dataclass
class SessionConfig:
    """Connection and authentication details of a BMC."""

    base_url: str
    auth_mode: AuthMode = AuthMode.BASIC
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    verify_tls: bool = True
    request_timeout: int = 120

    def validate(self) -> None:
        """
        Check that exactly one authentication method is fully specified.

        Raises:
            InvalidInput: If the base URL or credentials are missing or contradictory
        """
        if not self.base_url:
            raise InvalidInput("BMC address is required")

        has_basic = bool(self.username or self.password)
        if self.auth_mode is AuthMode.TOKEN:
            if not self.token:
                raise InvalidInput("X-Auth-Token authentication selected but no token given")
            if has_basic:
                raise InvalidInput("Use either username/password or an X-Auth-Token, not both")
        else:
            if self.token:
                raise InvalidInput("Use either username/password or an X-Auth-Token, not both")
            missing = [name for name, value in (("username", self.username), ("password", self.password)) if not value]
            if missing:
                raise InvalidInput(f"Missing required BMC connection details: {', '.join(missing)}")

        if self.request_timeout <= 0:
            raise InvalidInput("request_timeout must be a positive number of seconds")

    @classmethod
    def from_dict(cls, bmc_config: Dict[str, Any]) -> "SessionConfig":
        """
        Create a SessionConfig from a connection.bmc section.

        The authentication mode is TOKEN when a token is present, BASIC otherwise.

        Args:
            bmc_config: Dictionary with ip, username, password, token, protocol, port,
                verify_tls and request_timeout keys

        Returns:
            A validated SessionConfig
        """
        ip = str(bmc_config.get("ip") or "").strip()
        base_url = ""
        if ip:
            # ipv6 requires brackets in URLs
            if ":" in ip and not ip.startswith("["):
                ip = f"[{ip}]"
            protocol = str(bmc_config.get("protocol") or "https").lower()
            base_url = f"{protocol}://{ip}"
            port = bmc_config.get("port")
            if port:
                base_url += f":{port}"

        token = bmc_config.get("token")
        session_config = cls(
            base_url=base_url,
            auth_mode=AuthMode.TOKEN if token else AuthMode.BASIC,
            username=bmc_config.get("username"),
            password=bmc_config.get("password"),
            token=token,
            verify_tls=_parse_bool("verify_tls", bmc_config.get("verify_tls"), default=True),
            request_timeout=_parse_timeout(bmc_config.get("request_timeout")),
        )
        session_config.validate()
        return session_config
