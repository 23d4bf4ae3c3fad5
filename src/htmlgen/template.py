"""Section based HTML templates.

A template document is a single file holding several named sections::

    <!--[section:graph]-->
    <div id="{{plotId}}"></div>
    <!--[/section:graph]-->

Each section is rendered on its own. Placeholders are written as
``{{name}}`` and are discovered when the document is parsed. Rendered
sections are nested into other sections by the caller (innermost first),
the engine itself knows nothing about how sections relate to each other.

``TemplateEngine`` is a small state machine::

    UNLOADED --load_document--> DOCUMENT_LOADED --load_section--> SECTION_ACTIVE
                                                 SECTION_ACTIVE --load_section--> SECTION_ACTIVE

Every successful ``load_section`` starts with an empty substitution set, so
values tagged for one section never leak into the next one.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional

from .errors import (
    SectionNotFound,
    TemplateLoadError,
    TemplateStateError,
    UnknownPlaceholder,
)

LOGGER = logging.getLogger(__name__)

SECTION_MARKER_RE = re.compile(r"<!--\[(/?)section:([A-Za-z_][A-Za-z0-9_]*)\]-->")
PLACEHOLDER_RE = re.compile(r"\{\{([A-Za-z_][A-Za-z0-9_]*)\}\}")

UNKNOWN_PLACEHOLDER_POLICIES = ("ignore", "reject")


def _strip_marker_newlines(markup: str) -> str:
    # the line breaks right after the opening and right before the closing
    # marker belong to the markers, not to the section
    if markup.startswith("\r\n"):
        markup = markup[2:]
    elif markup.startswith("\n"):
        markup = markup[1:]
    if markup.endswith("\r\n"):
        markup = markup[:-2]
    elif markup.endswith("\n"):
        markup = markup[:-1]
    return markup


class TemplateDocument:
    """Parsed template file: section name -> raw markup, in file order."""

    def __init__(self, sections: Dict[str, str], source: str = "<string>"):
        self.source = source
        self._sections = dict(sections)
        self._placeholders: Dict[str, FrozenSet[str]] = {
            name: frozenset(PLACEHOLDER_RE.findall(markup))
            for name, markup in self._sections.items()
        }

    @classmethod
    def from_string(cls, text: str, source: str = "<string>") -> "TemplateDocument":
        sections: Dict[str, str] = {}
        current: Optional[str] = None
        start = 0
        for match in SECTION_MARKER_RE.finditer(text):
            closing, name = match.group(1) == "/", match.group(2)
            line = text.count("\n", 0, match.start()) + 1
            if not closing:
                if current is not None:
                    raise TemplateLoadError(
                        f"{source}:{line}: section '{name}' opened inside section '{current}'"
                    )
                if name in sections:
                    raise TemplateLoadError(f"{source}:{line}: duplicate section '{name}'")
                current, start = name, match.end()
            else:
                if current != name:
                    raise TemplateLoadError(
                        f"{source}:{line}: end of section '{name}' does not match "
                        f"{repr(current) if current else 'any open section'}"
                    )
                sections[name] = _strip_marker_newlines(text[start : match.start()])
                current = None
        if current is not None:
            raise TemplateLoadError(f"{source}: section '{current}' is never closed")
        if not sections:
            raise TemplateLoadError(f"{source}: document does not contain any section")
        return cls(sections, source)

    @classmethod
    def from_file(cls, path: str | Path) -> "TemplateDocument":
        p = Path(path)
        try:
            text = p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateLoadError(f"Could not read template file {p}: {e}") from e
        return cls.from_string(text, str(p))

    def sections(self) -> List[str]:
        return list(self._sections)

    def has_section(self, name: str) -> bool:
        return name in self._sections

    def section(self, name: str) -> str:
        try:
            return self._sections[name]
        except KeyError:
            raise SectionNotFound(name) from None

    def placeholders(self, name: str) -> FrozenSet[str]:
        """Placeholder names used in section ``name``."""
        if name not in self._placeholders:
            raise SectionNotFound(name)
        return self._placeholders[name]

    def __len__(self) -> int:
        return len(self._sections)

    def __repr__(self) -> str:
        return f"TemplateDocument({self.source!r}, sections={self.sections()})"


class EngineState(Enum):
    UNLOADED = "unloaded"
    DOCUMENT_LOADED = "document_loaded"
    SECTION_ACTIVE = "section_active"


class TemplateEngine:
    """Renders one section of a template document at a time.

    Args:
        unknown_placeholders: ``"ignore"`` stores values for names the active
            section does not use (they have no effect), ``"reject"`` raises
            ``UnknownPlaceholder`` instead.
        warn_unfilled: log a warning when ``generate`` leaves placeholders
            without a value. They are passed through literally either way.
    """

    def __init__(self, unknown_placeholders: str = "ignore", warn_unfilled: bool = False):
        if unknown_placeholders not in UNKNOWN_PLACEHOLDER_POLICIES:
            raise ValueError(
                f"unknown_placeholders must be one of {UNKNOWN_PLACEHOLDER_POLICIES}, "
                f"got {unknown_placeholders!r}"
            )
        self.unknown_placeholders = unknown_placeholders
        self.warn_unfilled = warn_unfilled
        self._document: Optional[TemplateDocument] = None
        self._section_name: Optional[str] = None
        self._markup = ""
        self._values: Dict[str, str] = {}
        self.last_error: Optional[SectionNotFound] = None

    @classmethod
    def from_document(cls, document: TemplateDocument, **kwargs) -> "TemplateEngine":
        """Engine in state DOCUMENT_LOADED sharing an already parsed document."""
        engine = cls(**kwargs)
        engine._document = document
        return engine

    @property
    def state(self) -> EngineState:
        if self._document is None:
            return EngineState.UNLOADED
        if self._section_name is None:
            return EngineState.DOCUMENT_LOADED
        return EngineState.SECTION_ACTIVE

    @property
    def document(self) -> Optional[TemplateDocument]:
        return self._document

    @property
    def active_section(self) -> Optional[str]:
        return self._section_name

    def load_document(self, path: str | Path) -> None:
        """Load and parse a template file.

        On failure ``TemplateLoadError`` is raised and the engine keeps its
        previous document and state.
        """
        document = TemplateDocument.from_file(path)
        self._document = document
        self._section_name = None
        self._markup = ""
        self._values = {}
        LOGGER.debug(f"Loaded template {document.source} with sections {document.sections()}")

    def load_section(self, name: str) -> bool:
        """Activate section ``name`` with an empty substitution set.

        Returns ``False`` if there is no such section; the engine stays in its
        current state and the error is kept in ``last_error``.
        """
        if self._document is None:
            raise TemplateStateError("No template document loaded")
        if not self._document.has_section(name):
            self.last_error = SectionNotFound(name)
            LOGGER.error(f"Template {self._document.source} has no section '{name}'")
            return False
        self.last_error = None
        self._section_name = name
        self._markup = self._document.section(name)
        self._values = {}
        return True

    def _require_section(self) -> str:
        if self._section_name is None:
            raise TemplateStateError("No template section loaded")
        return self._section_name

    def _assign(self, name: str, value) -> None:
        section = self._require_section()
        if name not in self._document.placeholders(section):
            if self.unknown_placeholders == "reject":
                raise UnknownPlaceholder(section, name)
            LOGGER.debug(f"Section '{section}' does not use placeholder '{name}'")
        self._values[name] = str(value)

    def tag(self, name: str, value) -> None:
        """Substitute every ``{{name}}`` of the active section by ``value``."""
        self._assign(name, value)

    def integrate(self, name: str, content: str) -> None:
        """Nest already rendered markup into placeholder ``name``."""
        self._assign(name, content)

    def unfilled(self) -> List[str]:
        """Placeholders of the active section that have no value yet."""
        section = self._require_section()
        return sorted(self._document.placeholders(section) - self._values.keys())

    def generate(self) -> str:
        """Render the active section with the current substitutions.

        Placeholders without a value stay in the output as literal tokens.
        Substituted values are not scanned for placeholders again.
        """
        section = self._require_section()
        if self.warn_unfilled:
            missing = self.unfilled()
            if missing:
                LOGGER.warning(f"Section '{section}' rendered without values for {missing}")
        return PLACEHOLDER_RE.sub(lambda m: self._values.get(m.group(1), m.group(0)), self._markup)


__all__ = [
    "EngineState",
    "TemplateDocument",
    "TemplateEngine",
    "PLACEHOLDER_RE",
]
