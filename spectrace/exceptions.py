"""Exceptions raised by the tracer before and during a render."""


class InvalidScene(ValueError):
    """The scene description is malformed or physically invalid."""
    pass


class ConfigurationError(ValueError):
    """Render settings cannot produce an image (zero resolution, etc.)."""
    pass


class RenderCancelled(RuntimeError):
    """The render was cancelled before every pixel was traced."""
    pass
