import argparse
import asyncio
import logging
import os
import sys
from typing import Callable, Optional, Sequence

import daemon

from vpn_bypass_agent import constants
from vpn_bypass_agent.__version__ import __version__
from vpn_bypass_agent.lib.configuration.agent_config_file import load_agent_config
from vpn_bypass_agent.lib.configuration.schemas import AgentConfig
from vpn_bypass_agent.lib.logging_utils import (
    create_console_handler,
    create_rotating_file_handler,
    setup_logging,
)
from vpn_bypass_agent.lib.network_probe import NetworkProbe, create_network_query
from vpn_bypass_agent.lib.split_tunnel_watchdog import SplitTunnelWatchdog
from vpn_bypass_agent.models.exceptions import SplitTunnelError
from vpn_bypass_agent.monitors import (
    build_bypass_monitor,
    build_split_tunnel_monitor,
    build_tunnel_watch_monitor,
    check_intervals,
)
from vpn_bypass_agent.monitors.runner import run_monitor
from vpn_bypass_agent.utils import get_hostname

EXIT_OK = 0
EXIT_FAILURE = 1

logger = logging.getLogger(__name__)


def log_file_path(config: AgentConfig, component: str, log_dir: str, default_dir: str) -> str:
    hostname_lower = config.hostname_lower(get_hostname())
    directory = os.path.expanduser(log_dir or default_dir)
    return os.path.join(directory, f"{hostname_lower}-{component}.log")


def configure_logging(args: argparse.Namespace, config: AgentConfig, log_file: Optional[str], component: str):
    level_name = (args.log_level or config.Logging.level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    handlers = []
    if config.Logging.console and not args.detach:
        handlers.append(create_console_handler(level))
    if log_file:
        try:
            handlers.append(
                create_rotating_file_handler(
                    log_file, component, max_bytes=config.Logging.max_bytes, level=level
                )
            )
        except OSError as e:
            # Keep running with console output only
            print(f"Unable to open log file {log_file}: {e}", file=sys.stderr)
    setup_logging(level=level, handlers=handlers or None)


def _run_bypass(config: AgentConfig) -> int:
    logger.info("Plex VPN bypass starting")
    check_intervals(config)
    monitor = build_bypass_monitor(config)
    return run_monitor(monitor.name, monitor.tick, config.Bypass.poll_interval)


def _run_tunnel_watch(config: AgentConfig) -> int:
    logger.info(f"VPN monitor starting for {config.TunnelWatch.app_name}")
    check_intervals(config)
    monitor = build_tunnel_watch_monitor(config)
    return run_monitor(monitor.name, monitor.tick, config.TunnelWatch.poll_interval)


def _run_split_tunnel_watch(config: AgentConfig) -> int:
    settings = config.SplitTunnel
    reference_path = os.path.expanduser(settings.reference_path)
    if not os.path.isfile(reference_path):
        logger.error(f"Reference file not found at {reference_path}")
        logger.error("Run save-split-tunnel-reference first")
        return EXIT_FAILURE

    monitor = build_split_tunnel_monitor(config)
    logger.info("Split tunnel monitor starting")
    logger.info(f"VPN client settings: {settings.settings_path}")
    logger.info(f"Reference file: {reference_path}")
    if monitor.watchdog.paused:
        logger.warning("Pause file present; auto-restore disabled until the reference is saved again")
    return run_monitor(monitor.name, monitor.tick, settings.poll_interval)


def _save_split_tunnel_reference(config: AgentConfig) -> int:
    watchdog = SplitTunnelWatchdog(config.SplitTunnel)
    try:
        watchdog.save_reference()
    except SplitTunnelError as e:
        logger.error(str(e))
        return EXIT_FAILURE
    return EXIT_OK


def _probe(config: AgentConfig) -> int:
    probe = NetworkProbe(
        create_network_query(timeout=config.Bypass.query_timeout),
        physical_interfaces=config.Bypass.physical_interfaces,
        tunnel_interface_prefixes=config.TunnelWatch.tunnel_interface_prefixes,
        query_timeout=config.Bypass.query_timeout,
    )
    snapshot = asyncio.run(probe.probe())
    print(snapshot.model_dump_json(indent=2))
    return EXIT_OK


# (runner, log file component, config section holding log_dir, default log dir)
COMMANDS: dict[str, tuple[Callable[[AgentConfig], int], Optional[str], Optional[str], str]] = {
    "bypass": (_run_bypass, "plex-vpn-bypass", "Bypass", constants.SYSTEM_LOG_DIR),
    "tunnel-watch": (_run_tunnel_watch, "vpn-monitor", "TunnelWatch", constants.USER_LOG_DIR),
    "split-tunnel-watch": (
        _run_split_tunnel_watch,
        "pia-monitor",
        "SplitTunnel",
        constants.USER_LOG_DIR,
    ),
    "save-split-tunnel-reference": (
        _save_split_tunnel_reference,
        "pia-monitor",
        "SplitTunnel",
        constants.USER_LOG_DIR,
    ),
    "probe": (_probe, None, None, constants.USER_LOG_DIR),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vpn-bypass-agent",
        description="Keep selected services off the VPN and a torrent client on it.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to the TOML config (default: {constants.CONFIG_FILE})",
    )
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    parser.add_argument(
        "--detach", action="store_true", help="Run in the background as a daemon"
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("bypass", help="Route the media server around the VPN (needs root)")
    sub.add_parser("tunnel-watch", help="Kill the torrent client when the VPN drops")
    sub.add_parser("split-tunnel-watch", help="Restore drifted split tunnel settings")
    sub.add_parser(
        "save-split-tunnel-reference",
        help="Save the current split tunnel settings as the reference and resume monitoring",
    )
    sub.add_parser("probe", help="Print the current network snapshot as JSON")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    runner, component, section, default_log_dir = COMMANDS[args.command]
    config = load_agent_config(args.config)
    log_file = None
    if component and section:
        log_dir = getattr(config, section).log_dir
        log_file = log_file_path(config, component, log_dir, default_log_dir)

    if args.detach:
        with daemon.DaemonContext():
            configure_logging(args, config, log_file, component or args.command)
            return runner(config)

    configure_logging(args, config, log_file, component or args.command)
    return runner(config)


if __name__ == "__main__":
    sys.exit(main())
