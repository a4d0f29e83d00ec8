"""
Session State for Telemetry Time Synchronization

This module holds the currently loaded channels and GPS track for one
vehicle/date selection, publishes rebuilt data atomically, and composes the
per-cursor display snapshot shown by the charts and the map.

Loads are tagged with a generation ticket. A load that was superseded by a
newer one before it finished is discarded on publish, so an out-of-order
response can never overwrite newer data.
"""

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from . import constants
from . import cursor as cursor_resolver
from . import domain
from . import utils
from . import window_stats
from .gps_track import GpsTrack
from .time_series import TimeSeries, coerce_range

logger = logging.getLogger(__name__)

TELEMETRY = "telemetry"
GPS = "gps"
LOAD_KINDS = (TELEMETRY, GPS)


@dataclass(frozen=True)
class LoadTicket:
    kind: str
    generation: int


class SessionStore:
    """
    Current channels and track, replaced wholesale on every load.

    Readers take a reference to the published objects and never see a
    partially built structure. Only ticket issue and the publish check
    are serialized.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._generations = {kind: 0 for kind in LOAD_KINDS}
        self._channels: Mapping[str, TimeSeries] = MappingProxyType({})
        self._track = GpsTrack()

    def begin_load(self, kind: str) -> LoadTicket:
        """
        Start a load, superseding any load of the same kind still in flight.

        Args:
            kind: "telemetry" or "gps".

        Returns:
            The ticket to publish the load's result with.

        Raises:
            ValueError: If kind is unknown.
        """
        if kind not in self._generations:
            raise ValueError(f"Unknown load kind: {kind}")
        with self._lock:
            self._generations[kind] += 1
            return LoadTicket(kind, self._generations[kind])

    def is_current(self, ticket: LoadTicket) -> bool:
        return self._generations.get(ticket.kind) == ticket.generation

    def _publish(self, ticket: LoadTicket, kind: str, attribute: str, value) -> bool:
        if ticket.kind != kind:
            raise ValueError(f"Ticket for {ticket.kind} cannot publish {kind} data")
        with self._lock:
            if not self.is_current(ticket):
                logger.info(
                    "Discarding stale %s load (generation %d, current %d)",
                    kind, ticket.generation, self._generations[kind],
                )
                return False
            setattr(self, attribute, value)
        return True

    def publish_channels(self, ticket: LoadTicket, channels: Mapping[str, TimeSeries]) -> bool:
        """
        Publish rebuilt channels if the ticket is still current.

        Returns:
            True if published, False if the load was stale and discarded.
        """
        frozen = MappingProxyType(dict(channels))
        published = self._publish(ticket, TELEMETRY, "_channels", frozen)
        if published:
            logger.info("Published %d telemetry channels", len(frozen))
        return published

    def publish_track(self, ticket: LoadTicket, track: GpsTrack) -> bool:
        """
        Publish a rebuilt GPS track if the ticket is still current.

        Returns:
            True if published, False if the load was stale and discarded.
        """
        published = self._publish(ticket, GPS, "_track", track)
        if published:
            logger.info("Published GPS track with %d fixes", len(track))
        return published

    @property
    def channels(self) -> Mapping[str, TimeSeries]:
        return self._channels

    @property
    def track(self) -> GpsTrack:
        return self._track

    def get_channel(self, channel_id: str) -> TimeSeries:
        """
        Look up a loaded channel.

        Raises:
            ValueError: If no channel with that id is loaded.
        """
        series = self._channels.get(channel_id)
        if series is None:
            raise ValueError(f"Channel {channel_id} not found")
        return series


def build_channel_view(series: TimeSeries, selected_time: Optional[float] = None,
                       time_range=None, tick_step_ms: int = constants.DEFAULT_TICK_STEP_MS,
                       include_samples: bool = True) -> Dict:
    """
    Build everything one chart panel needs for the current cursor and window.

    The summary shows the cursor's reading when one resolves, otherwise the
    window statistics.

    Args:
        series: Channel series.
        selected_time: Shared cursor instant, or None.
        time_range: Visible (start, end), or None for the full extent.
        tick_step_ms: Tick spacing.
        include_samples: Whether to include the padded samples to plot.

    Returns:
        Dictionary with channel metadata, summary (avg/min/max), summary
        source ("cursor" or "window"), cursor point, domain, ticks and,
        when requested, the padded samples to plot.
    """
    point = cursor_resolver.resolve(series, selected_time)
    stats = window_stats.compute(series, time_range)
    summary = point if point is not None else stats

    view = {
        **series.channel.as_dict(),
        "summary": {"avg": summary.avg, "min": summary.min, "max": summary.max},
        "summary_source": "cursor" if point is not None else "window",
        "cursor_point": point.as_dict() if point is not None else None,
        "window_stats": stats.as_dict(),
        "domain": list(domain.effective_domain(series, time_range)),
        "ticks": domain.ticks(time_range, tick_step_ms),
    }
    if include_samples:
        view["samples"] = [sample.as_dict() for sample in series.filter_to_range(time_range)]
    return view


def build_display_snapshot(store: SessionStore, selected_time: Optional[float] = None,
                           time_range=None, include_samples: bool = False) -> Dict:
    """
    Compose the synchronized view of every channel and the map marker.

    Args:
        store: Session holding the loaded data.
        selected_time: Shared cursor instant, or None.
        time_range: Visible (start, end), or None for the full extent.
        include_samples: Whether to include each channel's plotted samples.

    Returns:
        Dictionary with selected_time, time_range, channels (one view per
        channel) and position (nearest GPS fix, or None).
    """
    channels = store.channels
    track = store.track

    views = [
        build_channel_view(series, selected_time, time_range, include_samples=include_samples)
        for series in channels.values()
    ]
    position = track.nearest_at(selected_time)
    bounds = coerce_range(time_range)

    return {
        "selected_time": selected_time if utils.is_finite(selected_time) else None,
        "time_range": list(bounds) if bounds is not None else None,
        "channels": views,
        "position": position.as_dict() if position is not None else None,
    }
