"""Response ports: the seam between the engine and whatever renders stimuli and collects input.

The engine never talks to a screen or an input device directly. It hands
each ``TrialSpec`` to a port, then pulls timed responses from it until the
trial is resolved.
"""

from __future__ import annotations

import logging
import queue
import time
from dataclasses import dataclass
from typing import Any
from typing import Callable
from typing import Iterable
from typing import Protocol

from cogbattery.instruments.exceptions import SessionCancelled
from cogbattery.instruments.session import TrialSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    value: Any
    timestamp: float


class ResponsePort(Protocol):
    def now(self) -> float:
        """Current time on the port's clock, in seconds."""
        ...

    def present(self, spec: TrialSpec) -> float:
        """Render *spec* and return its onset time on the port's clock."""
        ...

    def await_response(
        self,
        accepted_inputs: Iterable[str],
        deadline: float | None = None,
    ) -> Response | None:
        """Block until the next input event; return None once *deadline* has passed."""
        ...

    def feedback(self, message: str) -> None:
        """Show a non-blocking, human-readable feedback message."""
        ...


# Sentinel a UI layer puts on the queue when the participant navigates away.
CANCEL = object()


class QueueResponsePort:
    """
    Port backed by a blocking ``queue.Queue``.

    A UI layer pushes ``Response`` objects (or bare values, stamped on
    receipt) onto ``events``; stimuli and feedback are published to the
    ``on_present`` / ``on_feedback`` callbacks. Pushing ``CANCEL`` aborts the
    session.
    """

    def __init__(
        self,
        events: queue.Queue | None = None,
        on_present: Callable[[TrialSpec], None] | None = None,
        on_feedback: Callable[[str], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.events = events if events is not None else queue.Queue()
        self.on_present = on_present
        self.on_feedback = on_feedback
        self.clock = clock

    def now(self) -> float:
        return self.clock()

    def present(self, spec: TrialSpec) -> float:
        if self.on_present is not None:
            self.on_present(spec)
        return self.clock()

    def await_response(self, accepted_inputs, deadline=None):
        timeout = None
        if deadline is not None:
            timeout = deadline - self.clock()
            if timeout <= 0:
                return None
        try:
            event = self.events.get(timeout=timeout)
        except queue.Empty:
            return None
        if event is CANCEL:
            raise SessionCancelled("Participant left the instrument")
        if isinstance(event, Response):
            return event
        return Response(value=event, timestamp=self.clock())

    def feedback(self, message: str) -> None:
        if self.on_feedback is not None:
            self.on_feedback(message)
        else:
            logger.debug("Feedback with no listener: %s", message)
