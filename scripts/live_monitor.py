#!/usr/bin/env python3
"""Console operator monitor for the live tracking stream.

Connects to the tracking service, prints the position table whenever it
changes, shows alert banners and the unacknowledged alert count, and keeps
reconnecting until interrupted.

Environment: ``TRIPWATCH_TRACKING_BASE_URL`` (and the other ``TRIPWATCH_*``
variables read by ``TripwatchConfig.from_env``).
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
import time
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from tripwatch import Banner, LinkState, TrackingClient, TripwatchConfig  # noqa: E402

_LOG = logging.getLogger("live_monitor")


class ConsoleBannerPresenter:
    def show(self, banner: Banner) -> None:
        print(f"[alert] {banner.text}")

    def hide(self, banner: Banner) -> None:
        print(f"[alert] banner for {banner.trip_id} closed")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Watch live carrier positions and operator alerts.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Tracking service base URL (overrides TRIPWATCH_TRACKING_BASE_URL).",
    )
    parser.add_argument(
        "--storage",
        default=None,
        help="JSON file for the durable alert counter and sound flag.",
    )
    parser.add_argument(
        "--no-sound",
        action="store_true",
        help="Disable the alert sound (persisted).",
    )
    parser.add_argument(
        "--acknowledge",
        action="store_true",
        help="Reset the unacknowledged alert count before starting.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_table(client: TrackingClient) -> None:
    ts_text = time.strftime("%H:%M:%S")
    state = client.link_state
    status = "online" if state == LinkState.OPEN else f"offline ({state})"
    print(f"[{ts_text}] {status} alerts={client.alert_count} pins={len(client.location_store)}")
    for record in client.locations():
        print(f"    {record.trip_id:<20} {record.lat:>10.5f} {record.lng:>10.5f}  {record.updated_at}")


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, str] = {}
    if args.base_url:
        overrides["tracking_base_url"] = args.base_url
    if args.storage:
        overrides["storage_path"] = args.storage
    config = TripwatchConfig.from_env(**overrides)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    client: TrackingClient | None = None

    def on_update() -> None:
        if client is not None:
            _print_table(client)

    async with TrackingClient(
        config,
        presenter=ConsoleBannerPresenter(),
        navigate=lambda trip_id: print(f"[nav] open trip {trip_id}"),
        on_update=on_update,
    ) as client:
        if args.no_sound:
            client.set_sound_enabled(False)
        if args.acknowledge:
            client.acknowledge_alerts()
        view = client.create_count_view(on_change=lambda count: print(f"[badge] unacknowledged alerts: {count}"))
        print(f"[monitor] stream {config.stream_url}")
        await client.activate()
        try:
            if args.duration > 0:
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(stop.wait(), args.duration)
            else:
                await stop.wait()
        finally:
            view.close()
            client.deactivate()
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except Exception as exc:  # pragma: no cover - network/system interaction
        print(f"[monitor] failed: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(_main())
