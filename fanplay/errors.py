"""Error types raised by the moment analysis pipeline.

Every error carries a ``user_message`` that is safe to show to a viewer.
Diagnostics (parse errors, HTTP status codes) stay in the exception chain
and the logs.
"""


class FanPlayError(Exception):
    """Base error for a single failed analysis."""

    default_message = "Something went wrong while analyzing this moment."

    def __init__(self, user_message: str = None):
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class InvalidInputError(FanPlayError):
    """Raised when the request has no usable source or an unknown sport/persona."""

    default_message = "Please provide a link or upload a file."


class EngineUnavailableError(FanPlayError):
    """Raised when the analysis engine cannot be reached or answers with an error."""

    default_message = "The analysis engine is unavailable right now. Please try again in a moment."


class MalformedResponseError(FanPlayError):
    """Raised when the engine answers with output that does not fit the guide schema."""

    default_message = "Analysis failed. Try describing the play or link a clearer video."


class AnalysisSupersededError(FanPlayError):
    """Raised when a newer analysis replaced this one before it finished."""

    default_message = "This analysis was replaced by a newer request."
