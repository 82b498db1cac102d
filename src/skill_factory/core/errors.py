"""Exceptions raised by the registry engine."""


class SkillFactoryError(Exception):
    """Base class for all skill factory errors."""


class ManifestValidationError(SkillFactoryError):
    """A manifest violates the mcp-2026 schema.

    All violations found in a single pass are carried in ``errors``.
    """

    def __init__(self, errors: list[str], source: str = "mcp-config.json"):
        self.errors = list(errors)
        self.source = source
        joined = "; ".join(self.errors)
        super().__init__(f"{source} failed schema validation: {joined}")


class NotFoundError(SkillFactoryError):
    """A skill is absent from the registry or from the skills directory."""


class ManifestParseError(SkillFactoryError):
    """A manifest could not be read or cannot produce a valid record."""


class PersistenceError(SkillFactoryError):
    """The registry document could not be written."""


class RegistryFormatError(SkillFactoryError):
    """The registry document is valid JSON but not a valid registry.

    Raised instead of discarding the document, so that a later save cannot
    overwrite records that failed to load.
    """
