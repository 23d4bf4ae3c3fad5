"""Static site builder: one HTML page per country, world, continent, plus index.

Pages are composed bottom-up from template sections: graph fragments first,
then the page header, then the ``full`` section that wraps both. The run
stops at the first failure; nothing is retried.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List
from urllib.parse import quote

from database import DatabaseConfig, DatabaseManager, Entity, NotConnected, QueryError

from .config import SiteConfig
from .errors import DirectoryCreationError, OutputWriteError
from .graph import (
    render_group_graph,
    render_incidence_graph,
    render_numbers_graph,
    special_chars,
    use_section,
)
from .template import TemplateDocument, TemplateEngine

GRAPH_SEPARATOR = "\n<br />\n"


def entity_filename(entity: Entity) -> str:
    return entity.slug + ".html"


def group_filename(group: str) -> str:
    return "group_" + group.lower() + ".html"


class SiteGenerator:
    """Generates the complete site into ``site_config.output_directory``."""

    def __init__(self, db_config: DatabaseConfig, site_config: SiteConfig):
        self.db_config = db_config
        self.config = site_config
        self.logger = logging.getLogger(__name__)
        self.document: TemplateDocument | None = None
        self.current_step = "startup"
        self.written: List[Path] = []

    # --- helpers --- #
    def _engine(self) -> TemplateEngine:
        return TemplateEngine.from_document(
            self.document,
            unknown_placeholders=self.config.unknown_placeholders,
            warn_unfilled=self.config.warn_unfilled,
        )

    def _header(self, tpl: TemplateEngine, title: str, with_scripts: bool = True) -> str:
        scripts = ""
        if with_scripts:
            use_section(tpl, "script")
            tpl.tag("path", special_chars(self.config.plotly_src))
            scripts = tpl.generate()
        use_section(tpl, "header")
        tpl.integrate("scripts", scripts)
        tpl.tag("title", special_chars(title))
        return tpl.generate()

    def _full(self, tpl: TemplateEngine, header: str, content: str) -> str:
        use_section(tpl, "full")
        tpl.integrate("header", header)
        tpl.integrate("content", content)
        return tpl.generate()

    def _write(self, filename: str, content: str) -> Path:
        path = self.config.output_directory / filename
        try:
            written = path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise OutputWriteError(f"Could not write {path}: {e}") from e
        if written != len(content):
            raise OutputWriteError(f"Incomplete write of {path}: {written} of {len(content)}")
        self.written.append(path)
        return path

    # --- entry point --- #
    def generate(self) -> List[Path]:
        """Generate all files.

        Returns:
            Paths of the written HTML files, in generation order.

        Raises:
            StorageError, TemplateError or GenerationError subclasses on the
            first failure. ``current_step`` names the step that failed.
        """
        self.written = []
        self.current_step = "database check"
        db_path = Path(self.db_config.sqlite_path)
        if not db_path.is_file():
            raise NotConnected(f"Database file {db_path} does not exist or is not readable!")

        self.current_step = "template loading"
        self.document = TemplateDocument.from_file(self.config.template_path)

        self.current_step = "output directory"
        self.create_output_directory()

        with DatabaseManager(self.db_config) as db:
            self.current_step = "accumulated numbers"
            db.ensure_cumulative_columns()

            self.current_step = "country list"
            entities = db.list_entities()
            if not entities:
                raise QueryError(
                    f"Could not find any countries in the database {self.db_config.sqlite_path}!"
                )
            for entity in entities:
                self.current_step = f"page for {entity.label}"
                self.generate_entity(db, entity)

            self.current_step = "page for worldwide numbers"
            self.generate_world(db)

            groups = db.list_groups()
            for group in groups:
                self.current_step = f"page for continent {group}"
                self.generate_group(db, group)

            self.current_step = "assets"
            self.create_assets()

            self.current_step = "index"
            self.create_index(entities, groups)

        self.current_step = "done"
        self.logger.info(f"Generated {len(self.written)} HTML files in {self.config.output_directory}")
        return self.written

    def create_output_directory(self) -> None:
        out = self.config.output_directory
        try:
            out.mkdir(parents=True, exist_ok=False)
        except FileExistsError as e:
            raise DirectoryCreationError(f"Output directory {out} already exists!") from e
        except OSError as e:
            raise DirectoryCreationError(f"Could not create output directory {out}: {e}") from e

    # --- pages --- #
    def generate_entity(self, db: DatabaseManager, entity: Entity) -> Path:
        tpl = self._engine()
        header = self._header(tpl, f"Coronavirus cases in {entity.label}")
        graph = render_numbers_graph(
            tpl,
            "graph",
            f"Coronavirus cases in {entity.label}",
            "graph_" + entity.slug,
            db.daily_series(entity.id),
        )
        accumulated = render_numbers_graph(
            tpl,
            "graphAccumulated",
            f"Accumulated Coronavirus cases in {entity.label}",
            "graph_accu_" + entity.slug,
            db.cumulative_series(entity.id),
        )
        content = graph + GRAPH_SEPARATOR + accumulated
        incidence = render_incidence_graph(
            tpl,
            f"Coronavirus: 14-day incidence in {entity.label}",
            "graph_incidence14_" + entity.slug,
            db.derived_incidence_series(entity.id),
        )
        if incidence:
            content = incidence + GRAPH_SEPARATOR + content
        return self._write(entity_filename(entity), self._full(tpl, header, content))

    def generate_world(self, db: DatabaseManager) -> Path:
        tpl = self._engine()
        header = self._header(tpl, "Coronavirus cases worldwide")
        graph = render_numbers_graph(
            tpl, "graph", "Coronavirus cases worldwide", "graph_world", db.world_daily_series()
        )
        accumulated = render_numbers_graph(
            tpl,
            "graphAccumulated",
            "Accumulated Coronavirus cases worldwide",
            "graph_world_accu",
            db.world_cumulative_series(),
        )
        content = graph + GRAPH_SEPARATOR + accumulated
        return self._write("world.html", self._full(tpl, header, content))

    def generate_group(self, db: DatabaseManager, group: str) -> Path:
        tpl = self._engine()
        header = self._header(tpl, f"Coronavirus incidence in {group}")
        members = [(e, db.derived_incidence_series(e.id)) for e in db.entities_in_group(group)]
        graph = render_group_graph(tpl, group, members)
        return self._write(group_filename(group), self._full(tpl, header, graph))

    def create_assets(self) -> Path:
        """Copy every file of the assets directory into ``<output>/assets``."""
        source = self.config.assets_path
        target = self.config.output_directory / "assets"
        try:
            target.mkdir()
            for item in sorted(source.iterdir()):
                if item.is_file():
                    shutil.copyfile(item, target / item.name)
                    self.logger.debug(f"Copied asset {item.name}")
        except OSError as e:
            raise OutputWriteError(f"Could not copy assets from {source} to {target}: {e}") from e
        return target

    def create_index(self, entities: List[Entity], groups: List[str]) -> Path:
        tpl = self._engine()
        use_section(tpl, "indexLink")
        links = [self._link(tpl, "./world.html", "All countries accumulated")]
        for entity in entities:
            links.append(self._link(tpl, "./" + entity_filename(entity), entity.label))
        group_links = [self._link(tpl, "./" + quote(group_filename(g)), g) for g in groups]

        use_section(tpl, "index")
        tpl.integrate("links", "\n".join(links))
        content = tpl.generate()
        use_section(tpl, "indexContinents")
        tpl.integrate("links", "\n".join(group_links))
        content += "<br />\n" + tpl.generate()

        header = self._header(tpl, "Corona worldwide", with_scripts=False)
        return self._write("index.html", self._full(tpl, header, content))

    @staticmethod
    def _link(tpl: TemplateEngine, url: str, text: str) -> str:
        # expects the indexLink section to be active
        tpl.tag("url", special_chars(url))
        tpl.tag("text", special_chars(text))
        return tpl.generate()
