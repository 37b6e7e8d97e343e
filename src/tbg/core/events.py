from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, DefaultDict

from tbg.contracts import BalanceEvent, BalanceEventType
from tbg.core.ids import make_id, now_utc

BalanceHandler = Callable[[BalanceEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: list[BalanceHandler] = []
        self._counter: DefaultDict[str, int] = defaultdict(int)

    def subscribe(self, handler: BalanceHandler) -> None:
        self._handlers.append(handler)

    def publish(self, event: BalanceEvent) -> None:
        self._counter[event.scope] += 1
        for handler in self._handlers:
            handler(event)

    def emitted_count(self, scope: str | None = None) -> int:
        if scope is None:
            return sum(self._counter.values())
        return self._counter[scope]


def publish_event(
    bus: EventBus | None,
    scope: str,
    event_type: BalanceEventType,
    subjects: list[str],
    claims: list[str],
    data: dict[str, Any] | None = None,
) -> None:
    if bus is None:
        return
    bus.publish(
        BalanceEvent(
            event_id=make_id("evt"),
            time=now_utc(),
            scope=scope,
            event_type=event_type,
            subjects=subjects,
            claims=claims,
            data=data or {},
        )
    )
