"""Error taxonomy shared by the resolution pipeline and its admin surface.

Only ``InputError`` and ``NotFoundError`` are meant to reach callers as
explicit failures. ``UpstreamServiceError`` is absorbed by the router into the
next tier, and ``VectorDimensionError`` is turned into an ``ErrorOutcome``.
"""


class AssistantError(Exception):
    """Base class for all pipeline errors."""


class InputError(AssistantError):
    """Empty or malformed caller input (question, training pair, batch size)."""


class UpstreamServiceError(AssistantError):
    """The embedding or chat-completion service failed, timed out or returned nothing usable."""

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service


class NotFoundError(AssistantError):
    """A FAQ entry addressed by id does not exist."""


class VectorDimensionError(AssistantError):
    """Two embeddings of different length were compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Vectors must have the same length ({left} != {right})")
        self.left = left
        self.right = right
