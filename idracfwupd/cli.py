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
Command line interface for idracfwupd.

Examples:
    # Show firmware inventory
    idracfwupd --ip 192.168.0.120 -u root -p calvin --get-firmware

    # Show transfer protocols accepted by SimpleUpdate
    idracfwupd --ip 192.168.0.120 -x <token> --get-protocols

    # Update from an HTTP share and reboot now to apply it
    idracfwupd --ip 192.168.0.120 -u root -p calvin \\
        --image-uri http://192.168.0.130/BIOS_W0H22_WN64_2.10.2.EXE --protocol HTTP --reboot y

    # Connection details from a YAML file, command line values win
    idracfwupd --config bmc.yaml --image-uri nfs://... --protocol NFS --reboot n
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from .config_utils import ConfigLoader, SessionConfig
from .errors import FirmwareUpdateError, InvalidInput
from .flow_types import FlowOutcome, PollStatus, RebootPolicy, TransferProtocol
from .inventory_view import format_inventory, format_protocols
from .output_manager import configure_console, get_log_directory, set_log_directory, setup_logging
from .redfish_session import RedfishSession
from .update_orchestrator import UpdateOrchestrator

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="idracfwupd",
        description="Update BMC managed firmware from a network share using the Redfish SimpleUpdate action",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    connection = parser.add_argument_group("connection")
    connection.add_argument("--ip", help="BMC IP address or hostname")
    connection.add_argument("--username", "-u", help="BMC username")
    connection.add_argument("--password", "-p", help="BMC password")
    connection.add_argument("--token", "-x", help="X-Auth-Token session token, instead of username/password")
    connection.add_argument(
        "--insecure",
        "-k",
        action="store_true",
        help="Skip TLS certificate verification",
    )
    connection.add_argument("--config", "-c", help="YAML configuration file with connection and update settings")

    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--get-firmware", action="store_true", help="Show the firmware inventory")
    action.add_argument("--get-protocols", action="store_true", help="Show supported transfer protocols")
    action.add_argument("--image-uri", help="URI of the firmware image to apply")

    update = parser.add_argument_group("update")
    update.add_argument("--protocol", help="Transfer protocol used to fetch the image (HTTP, HTTPS, NFS, CIFS, ...)")
    update.add_argument(
        "--reboot",
        help="'y' to reboot now and wait for the update, 'n' to apply on the next manual reboot",
    )

    parser.add_argument("--json", action="store_true", help="Print listings as JSON")
    parser.add_argument("--log-dir", help="Directory for log files (default: logs/logs_<timestamp>)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Combine the configuration file with command line values.

    Args:
        args (argparse.Namespace): Parsed arguments

    Returns:
        Dict[str, Any]: Merged configuration
    """
    config = ConfigLoader.load_config(args.config) if args.config else {}
    overrides = {
        "connection": {
            "bmc": {
                "ip": args.ip,
                "username": args.username,
                "password": args.password,
                "token": args.token,
                "verify_tls": False if args.insecure else None,
            }
        }
    }
    return ConfigLoader.merge_configs(config, overrides)


def report_outcome(console: Console, outcome: FlowOutcome) -> None:
    """Print a human readable summary of an update flow."""
    job_id = outcome.job.job_id
    if outcome.post_reboot is not None:
        console.print(
            f"[green]PASS:[/green] job {job_id} completed in {outcome.post_reboot.elapsed:.0f} seconds: "
            f"{escape(outcome.post_reboot.message)}"
        )
    elif outcome.pre_reboot.status is PollStatus.COMPLETED:
        console.print(f"[green]PASS:[/green] job {job_id} completed: {escape(outcome.pre_reboot.message)}")
    elif outcome.policy is RebootPolicy.DEFER_REBOOT:
        console.print(f"[green]PASS:[/green] job {job_id} scheduled, it will run on the next server reboot")
    else:
        console.print(
            f"[yellow]WARNING:[/yellow] invalid reboot option, job {job_id} is scheduled but the server was not rebooted"
        )


def run(args: argparse.Namespace, console: Console) -> int:
    """Execute the requested action."""
    config = build_config(args)
    session_config = SessionConfig.from_dict(ConfigLoader.get_config_section(config, "connection.bmc"))
    phase_settings = ConfigLoader.load_phase_settings(config)

    if args.image_uri and not args.protocol:
        raise InvalidInput("--protocol is required with --image-uri")

    with RedfishSession(session_config) as session:
        orchestrator = UpdateOrchestrator(session, phase_settings=phase_settings)

        if args.get_firmware:
            console.print(format_inventory(orchestrator.get_firmware_inventory(), args.json), markup=False)
            return EXIT_OK

        if args.get_protocols:
            console.print(format_protocols(orchestrator.get_transfer_protocols(), args.json), markup=False)
            return EXIT_OK

        try:
            protocol = TransferProtocol.parse(args.protocol)
        except ValueError as e:
            raise InvalidInput(str(e)) from e

        outcome = orchestrator.run_update_flow(args.image_uri, protocol, RebootPolicy.parse(args.reboot))
        report_outcome(console, outcome)
        return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Args:
        argv (Optional[List[str]]): Arguments, defaults to sys.argv[1:]

    Returns:
        int: Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_dir:
        set_log_directory(args.log_dir)
    configure_console(console_output=True, verbose=args.verbose)
    logger = setup_logging("cli")
    console = Console()

    try:
        return run(args, console)
    except FirmwareUpdateError as e:
        logger.error(str(e))
        console.print(f"[red]FAIL:[/red] {escape(str(e))}", highlight=False)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Interrupted, the firmware update job may still be running on the BMC")
        return EXIT_INTERRUPTED
    finally:
        logger.info(f"Logs written to {get_log_directory()}")


if __name__ == "__main__":
    sys.exit(main())
