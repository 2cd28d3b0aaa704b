"""Basic exceptions for the adaptive generation pipeline"""  # noqa: D415


class AdaptiveGenerationError(Exception):
    """Base exception for adaptive generation errors"""  # noqa: D415


class ConfigurationError(AdaptiveGenerationError):
    """Raised when configuration cannot be resolved or is invalid"""  # noqa: D415


class GenerationError(AdaptiveGenerationError):
    """Raised when the external generate collaborator fails"""  # noqa: D415


class PayloadValidationError(AdaptiveGenerationError):
    """Raised when a payload cannot satisfy the storyboard schema.

    Only the strict validator and an exhausted retry loop with fallback
    disabled raise this; lenient validation reports problems as warnings.
    """

    def __init__(self, message: str, errors: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.errors = errors
