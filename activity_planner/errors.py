# ABOUTME: Exception taxonomy for the weather activity planner pipeline.
# ABOUTME: Each error can be annotated with the failing stage and the original location query.


class PlannerError(Exception):
    """Base class for every error raised by the planner pipeline.

    The orchestrator annotates errors with the stage that failed and the query that
    started the run, so the top-level caller gets one descriptive message.
    """

    def __init__(self, message: str, *, stage: str | None = None, query: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.query = query

    def describe(self) -> str:
        """Single human-readable message with the query and failing stage when known."""
        context = []
        if self.stage:
            context.append(f"stage={self.stage}")
        if self.query is not None:
            context.append(f"query={self.query!r}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class InvalidInputError(PlannerError):
    """The caller supplied unusable input. Not retried."""


class LocationNotFoundError(PlannerError):
    """The geocoding service returned no candidates for the query."""

    def __init__(self, query: str, *, stage: str | None = None):
        super().__init__(f"Could not find location: {query}", stage=stage, query=query)


class UpstreamServiceError(PlannerError):
    """A remote service failed or timed out. Transient; callers may retry."""


class MalformedResponseError(PlannerError):
    """A remote service answered without the fields we rely on."""


class PlanFormatError(PlannerError):
    """The language model's plan failed schema or policy validation."""


class CanceledError(PlannerError):
    """The pipeline run was cancelled before it completed."""
