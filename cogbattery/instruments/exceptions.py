"""Error taxonomy for instrument sessions.

Every error is local to one session; none of them is allowed to leak
state into another instrument's controller.
"""


class InstrumentError(Exception):
    """Base class for all instrument session errors."""


class ParticipantRequired(InstrumentError):
    """Raised when a session is started without a participant identifier."""


class StimulusLoadFailure(InstrumentError):
    """Raised when stimulus material cannot be generated under the instrument's constraints."""


class PersistenceFailure(InstrumentError):
    """Raised by a result store when a completed session could not be saved."""


class SessionCancelled(InstrumentError):
    """Raised by a response port when the participant navigates away mid-session."""


class PhaseTransitionError(InstrumentError):
    """Raised when a controller entry point is invoked from the wrong phase."""
