from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Optional

from aquawatch.core.notify.evaluator import NotificationEvaluator
from aquawatch.domain.models import Notification, SensorReading
from aquawatch.runtime.event_bus import EventBus


@dataclass
class MonitoringController:
    """
    Orchestrate evaluation of incoming sensor readings.

    Responsibilities
    ----------------
    - Accept decoded readings (or raw mappings) from transport/API layers.
    - Run the notification evaluator, which persists breaches to the store.
    - Optionally publish created notifications to an `EventBus`.

    Notes
    -----
    This controller contains orchestration logic only. Classification lives in
    the classifier and persistence in the notification store. Store failures
    propagate to the caller.

    Parameters
    ----------
    evaluator
        Evaluate-and-emit engine.
    bus
        Optional event bus used to forward created notifications to
        subscribers (e.g., webhook delivery). If None, publishing is skipped.
    """

    evaluator: NotificationEvaluator
    bus: Optional[EventBus] = None

    def handle_reading(self, reading: SensorReading, now: Optional[datetime] = None) -> List[Notification]:
        """
        Evaluate one reading and return the notifications it created.

        Parameters
        ----------
        reading
            Decoded sensor reading.
        now
            Optional evaluation timestamp.

        Returns
        -------
        list of Notification
            Stored notifications (possibly empty).
        """
        created = self.evaluator.evaluate(reading, now=now)

        if self.bus is not None:
            for n in created:
                self.bus.publish_notification(n)

        return created

    def handle_raw(self, raw: Mapping[str, Any], now: Optional[datetime] = None) -> List[Notification]:
        """Build a reading from a raw key/value mapping and evaluate it."""
        return self.handle_reading(SensorReading.from_mapping(raw), now=now)

    def handle_snapshot(self, readings: Mapping[str, Mapping[str, Any]], now: Optional[datetime] = None) -> List[Notification]:
        """
        Evaluate the most recent entry of a keyed reading collection.

        The collection is ordered oldest to newest (as delivered by the
        real-time feed). An empty collection means nothing has been observed
        yet and yields no notifications.
        """
        if not readings:
            return []
        latest = list(readings.values())[-1]
        return self.handle_raw(latest, now=now)
