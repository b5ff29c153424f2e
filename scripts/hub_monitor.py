#!/usr/bin/env python3
"""Run a coordination hub against a live MQTT broker and log its events.

Subscribes to the metrics and leave topics from ``HubConfig.from_env()``,
drains the hub on an asyncio tick loop and prints slot joins, leaves and
label changes. With ``EMOCUBE_CHAT_API_KEY`` set (or ``--chat``), the local
client's label changes are also answered by the chat endpoint.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import time
from dataclasses import dataclass
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402

from pyemocube import CoordinationHub, HubConfig, run_ticks  # noqa: E402
from pyemocube._mqtt import HubMqttRuntime, MqttSettings  # noqa: E402
from pyemocube.models.label import DerivedLabel  # noqa: E402
from pyemocube.observers import ChatObserver, ConsoleObserver  # noqa: E402
from pyemocube.state.events import StateChangedEvent  # noqa: E402

_LOG = logging.getLogger("hub_monitor")


@dataclass
class MonitorStats:
    started_at: float
    label_changes: int = 0
    chat_replies: int = 0


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Log slot and label events from a live MQTT feed.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--local-client-id",
        default=None,
        help="Local client identifier (overrides EMOCUBE_LOCAL_CLIENT_ID).",
    )
    parser.add_argument(
        "--capacity",
        type=int,
        default=None,
        help="Number of client slots (overrides EMOCUBE_CAPACITY).",
    )
    parser.add_argument(
        "--chat",
        action="store_true",
        help="Require the chat observer (fails without EMOCUBE_CHAT_API_KEY).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


async def _run(config: HubConfig, args: argparse.Namespace) -> MonitorStats:
    stats = MonitorStats(started_at=time.time())
    hub = CoordinationHub(config)
    console = ConsoleObserver(hub)

    def count_change(_event: StateChangedEvent) -> None:
        stats.label_changes += 1

    hub.on_state_changed(count_change)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)
    if args.duration > 0:
        loop.call_later(args.duration, stop_event.set)

    runtime = HubMqttRuntime(hub=hub, settings=MqttSettings.from_config(config), logger=_LOG)

    async with aiohttp.ClientSession() as http_session:
        chat: ChatObserver | None = None
        if args.chat or config.chat_api_key:

            def print_reply(label: DerivedLabel, reply: str) -> None:
                stats.chat_replies += 1
                print(f"[monitor] {label.value}: {reply}")

            chat = ChatObserver(hub, http_session=http_session, on_reply=print_reply)

        if config.mqtt_enabled:
            print(f"[monitor] Connecting to {config.mqtt_host}:{config.mqtt_port}...")
            await loop.run_in_executor(None, runtime.start)
        try:
            await run_ticks(hub, stop_event=stop_event)
        finally:
            await loop.run_in_executor(None, runtime.stop)
            console.close()
            if chat is not None:
                await chat.wait_idle()
                chat.close()
    return stats


def _print_summary(stats: MonitorStats) -> None:
    runtime = time.time() - stats.started_at
    print("[monitor] Summary")
    print(f"[monitor]   runtime_s     : {runtime:.1f}")
    print(f"[monitor]   label_changes : {stats.label_changes}")
    print(f"[monitor]   chat_replies  : {stats.chat_replies}")


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, object] = {}
    if args.local_client_id:
        overrides["local_client_id"] = args.local_client_id
    if args.capacity is not None:
        overrides["capacity"] = args.capacity

    try:
        config = HubConfig.from_env(**overrides)
        stats = asyncio.run(_run(config, args))
    except Exception as exc:  # pragma: no cover - network/system interaction
        print(f"[monitor] Failed: {exc}", file=sys.stderr)
        return 2

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
