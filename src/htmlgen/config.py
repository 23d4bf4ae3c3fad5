"""
Site generation settings.
"""

import os
from pathlib import Path
from typing import Optional

from utils import as_bool, read_config_file

from .template import UNKNOWN_PLACEHOLDER_POLICIES

PACKAGE_DIR = Path(__file__).parent
DEFAULT_TEMPLATE_PATH = PACKAGE_DIR / "templates" / "main.tpl"
DEFAULT_ASSETS_PATH = PACKAGE_DIR / "assets"
DEFAULT_PLOTLY_SRC = "https://cdn.plot.ly/plotly-1.58.3.min.js"


class SiteConfig:
    """Configuration for the HTML generator."""

    def __init__(
        self,
        output_directory: str,
        template_path: Optional[str] = None,
        assets_path: Optional[str] = None,
        plotly_src: str = DEFAULT_PLOTLY_SRC,
        warn_unfilled: bool = True,
        unknown_placeholders: str = "ignore",
    ):
        self.output_directory = Path(output_directory)
        self.template_path = Path(template_path) if template_path else DEFAULT_TEMPLATE_PATH
        self.assets_path = Path(assets_path) if assets_path else DEFAULT_ASSETS_PATH
        self.plotly_src = plotly_src
        self.warn_unfilled = warn_unfilled
        if unknown_placeholders not in UNKNOWN_PLACEHOLDER_POLICIES:
            raise ValueError(
                f"unknown_placeholders must be one of {', '.join(UNKNOWN_PLACEHOLDER_POLICIES)}, "
                f"got {unknown_placeholders!r}"
            )
        self.unknown_placeholders = unknown_placeholders

    @classmethod
    def from_env(cls, output_directory: str) -> "SiteConfig":
        """Create config from environment variables."""
        return cls(
            output_directory=output_directory,
            template_path=os.getenv("CORONA_TEMPLATE_PATH"),
            assets_path=os.getenv("CORONA_ASSETS_PATH"),
            plotly_src=os.getenv("CORONA_PLOTLY_SRC", DEFAULT_PLOTLY_SRC),
            warn_unfilled=as_bool(os.getenv("CORONA_WARN_UNFILLED"), default=True),
            unknown_placeholders=os.getenv("CORONA_UNKNOWN_PLACEHOLDERS", "ignore"),
        )

    @classmethod
    def from_config_file(cls, output_directory: str, config_path: str = "generator.conf") -> "SiteConfig":
        """Create config from configuration file."""
        config = read_config_file(config_path)
        return cls(
            output_directory=output_directory,
            template_path=config.get("template_path"),
            assets_path=config.get("assets_path"),
            plotly_src=config.get("plotly_src", DEFAULT_PLOTLY_SRC),
            warn_unfilled=as_bool(config.get("warn_unfilled"), default=True),
            unknown_placeholders=config.get("unknown_placeholders", "ignore"),
        )
