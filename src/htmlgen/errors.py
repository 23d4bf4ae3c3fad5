"""Errors raised while rendering templates and writing the site."""

from __future__ import annotations


class TemplateError(Exception):
    """Base class for template failures."""


class TemplateLoadError(TemplateError):
    """The template document is missing, unreadable or malformed."""


class SectionNotFound(TemplateError):
    def __init__(self, name: str):
        super().__init__(f"Template section '{name}' does not exist")
        self.name = name


class TemplateStateError(TemplateError):
    """An engine operation was called in a state that does not allow it."""


class UnknownPlaceholder(TemplateError):
    def __init__(self, section: str, name: str):
        super().__init__(f"Section '{section}' has no placeholder '{name}'")
        self.section = section
        self.name = name


class GenerationError(Exception):
    """Base class for failures while writing the generated site."""


class DirectoryCreationError(GenerationError):
    pass


class OutputWriteError(GenerationError):
    pass


__all__ = [
    "TemplateError",
    "TemplateLoadError",
    "SectionNotFound",
    "TemplateStateError",
    "UnknownPlaceholder",
    "GenerationError",
    "DirectoryCreationError",
    "OutputWriteError",
]
