from __future__ import annotations

import argparse
import json
import logging
import socket
from typing import List

from .chat import PlainText, render_ansi
from .constants import DEFAULT_PORT, DEFAULT_PROTOCOL_VERSION, DEFAULT_PROXY_SOURCE, DEFAULT_TIMEOUT_MS
from .errors import PingError
from .net import TcpConnection, split_host_port
from .ping import PingResult, ping
from .proxy import ProxyHeader, SocketAddress
from .status import PlayerSample, StatusResponse

SEPARATOR = "─" * 54
LABEL = "\033[91m"
RESET = "\033[0m"


def format_samples(players: List[PlayerSample]) -> str:
    lines = []
    for p in players:
        # servers use names with format codes for custom sample lines
        if "§" in p.name:
            lines.append(render_ansi(PlainText(p.name)))
        else:
            lines.append(f"- {render_ansi(PlainText(p.name))} ({p.id})")
    return "\n" + "\n".join(lines)


def format_report(
    result: PingResult,
    host: str,
    ip: str,
    port: int,
    spoof: str = "",
    show_players: bool = False,
) -> str:
    status = result.status
    lines = [SEPARATOR, f"{LABEL}Target: {RESET}{host}"]
    if spoof:
        lines.append(f"{LABEL}Spoof: {RESET}{spoof}")
    lines.append(f"{LABEL}IP-Address: {RESET}{ip}")
    if port != DEFAULT_PORT:
        lines.append(f"{LABEL}Port: {RESET}{port}")
    lines.append(
        f"{LABEL}Version:{RESET} {render_ansi(PlainText(status.version.name))} - {status.version.protocol}"
    )
    lines.append(f"{LABEL}Players: {RESET}{status.players.online} / {status.players.max}")
    lines.append(f"{LABEL}Ping: {RESET}{result.latency_ms} ms")
    lines.append("")
    lines.append(render_ansi(status.description))
    if show_players and status.players.sample:
        lines.append(f"Players: {format_samples(status.players.sample)}")
    lines.append(SEPARATOR)
    return "\n".join(lines)


def save_icon(status: StatusResponse, path: str, host: str) -> str | None:
    png = status.favicon_png()
    if png is None:
        logging.warning("icon not found for %s", host)
        return None
    if not path.endswith(".png"):
        path += ".png"
    with open(path, "wb") as f:
        f.write(png)
    logging.info("icon saved to %s", path)
    return path


def cmd_ping(args: argparse.Namespace) -> int:
    host, port = args.target
    family = socket.AF_UNSPEC
    if args.use_v4:
        family = socket.AF_INET
    elif args.use_v6:
        family = socket.AF_INET6

    try:
        with TcpConnection.connect(host, port, timeout_ms=args.timeout_ms, family=family) as conn:
            ip, peer_port = conn.peer_address()
            header = None
            if args.pp2:
                header = ProxyHeader(
                    source=SocketAddress(*DEFAULT_PROXY_SOURCE),
                    destination=SocketAddress(ip, peer_port),
                )
            result = ping(conn, host, port, args.version, args.spoof or None, header)
    except (PingError, OSError) as e:
        logging.error("ping %s:%d failed: %s", host, port, e)
        return 1

    if args.save_icon:
        try:
            save_icon(result.status, args.save_icon, host)
        except (PingError, OSError) as e:
            logging.error("cannot save icon: %s", e)
            return 1

    if args.json:
        payload = {
            "target": host,
            "ip": ip,
            "port": port,
            **result.status.to_dict(),
            "latency_ms": result.latency_ms,
            "nonce_mismatch": result.nonce_mismatch,
        }
        print(json.dumps(payload, indent=2))
    else:
        print(format_report(result, host, ip, port, args.spoof, args.show))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pingmc", description="Query the status of a Minecraft Java server.")
    p.add_argument("host", help="server address, optionally with :port")
    p.add_argument("--pp2", action="store_true", help="send a PROXY protocol v2 header first")
    p.add_argument("-s", "--spoof", default="", help="hostname to send in the handshake")
    p.add_argument("-v", "--version", type=int, default=DEFAULT_PROTOCOL_VERSION, help="protocol version")
    p.add_argument("-i", "--save-icon", default="", help="write the server icon to this PNG file")
    p.add_argument("--show", action="store_true", help="list the sampled players")
    family = p.add_mutually_exclusive_group()
    family.add_argument("-4", "--use-v4", action="store_true", help="connect over IPv4 only")
    family.add_argument("-6", "--use-v6", action="store_true", help="connect over IPv6 only")
    p.add_argument("--timeout-ms", type=int, default=DEFAULT_TIMEOUT_MS)
    p.add_argument("--json", action="store_true")
    p.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    p.set_defaults(func=cmd_ping)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.target = split_host_port(args.host)
    except ValueError as e:
        parser.error(str(e))
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
