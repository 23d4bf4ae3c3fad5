"""HTML generation: section templates, graph fragments and the site builder."""

from .builder import SiteGenerator  # noqa: F401
from .config import SiteConfig  # noqa: F401
from .template import EngineState, TemplateDocument, TemplateEngine  # noqa: F401

__all__ = ["SiteGenerator", "SiteConfig", "EngineState", "TemplateDocument", "TemplateEngine"]
