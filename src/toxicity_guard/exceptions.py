"""Custom exceptions for toxicity detection."""


class ToxicityGuardError(Exception):
    """Base exception for toxicity guard errors."""

    pass


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------


class LoadError(ToxicityGuardError):
    """Raised when a mandatory resource (model or vocabulary) cannot be loaded.

    Attributes:
        resource: Name of the resource that failed to load.
    """

    def __init__(self, resource: str, message: str | None = None) -> None:
        self.resource = resource
        if message is None:
            message = f"Failed to load resource '{resource}'"
        super().__init__(message)


class ResourceNotFoundError(LoadError):
    """Raised when the asset source has no resource with the given name."""

    def __init__(self, resource: str, message: str | None = None) -> None:
        if message is None:
            message = f"Resource '{resource}' not found"
        super().__init__(resource, message)


class UnreadableResourceError(LoadError):
    """Raised when resource bytes cannot be decoded or consumed."""

    pass


class InitError(ToxicityGuardError):
    """Raised when session initialization fails.

    Attributes:
        load_error: The underlying load failure, if any.
    """

    def __init__(self, message: str, load_error: LoadError | None = None) -> None:
        self.load_error = load_error
        super().__init__(message)


# -----------------------------------------------------------------------------
# Inference
# -----------------------------------------------------------------------------


class InferenceError(ToxicityGuardError):
    """Base exception for inference failures."""

    pass


class SessionUnavailableError(InferenceError):
    """Raised when inference is attempted before the session is ready."""

    def __init__(self, message: str | None = None) -> None:
        if message is None:
            message = "Model session is not ready. Call ensure_ready() first."
        super().__init__(message)


class EmptyOutputError(InferenceError):
    """Raised when the engine returns no usable output tensors."""

    pass


class EngineExecutionError(InferenceError):
    """Raised when the inference engine fails while running the model."""

    pass


class InvalidOutputError(InferenceError):
    """Raised when the engine's output cannot be decoded into probabilities."""

    pass
