"""mcpgen error hierarchy: every application exception is defined here."""


class MCPGenError(Exception):
    """Base error for all mcpgen exceptions."""


class ParseError(MCPGenError):
    """API definition content could not be decoded."""


class DefinitionFetchError(MCPGenError):
    """Failed to read or download an API definition."""


class DefinitionValidationError(MCPGenError):
    """API definition decoded but failed structural validation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class TemplateError(MCPGenError):
    """Template registry failure."""


class TemplateNotFoundError(TemplateError):
    """Requested template name is not registered."""


class TemplateManifestError(TemplateError):
    """Template placeholders disagree with the declared manifest keys."""


class GenerationError(MCPGenError):
    """Server code generation failure."""


class UnsupportedLanguageError(GenerationError):
    """No generator exists for the requested language and mode."""


class UnsupportedModeError(GenerationError):
    """Requested server mode is not known."""


class DeploymentError(MCPGenError):
    """Deployment packaging or simulated rollout failure."""


class StoreError(MCPGenError):
    """Record store read/write failure."""


class RecordNotFoundError(StoreError):
    """Requested record does not exist."""


class ConfigurationError(MCPGenError):
    """Invalid or missing configuration."""
