"""
Rendering of the graph fragments (daily, accumulated, incidence, continent).

Each helper loads one section into the given engine, fills it and returns
the rendered markup. Numbers go into the template as JSON array literals.
"""

import html
import json
from typing import Iterable, List, Sequence, Tuple

from database.models import DailyNumbers, Entity, IncidencePoint

from .errors import GenerationError
from .template import TemplateEngine


def use_section(tpl: TemplateEngine, name: str) -> None:
    """Load section ``name`` or raise the engine's ``SectionNotFound``."""
    if not tpl.load_section(name):
        raise tpl.last_error


def special_chars(value: str) -> str:
    """Escape text for use inside HTML element content or attribute values."""
    return html.escape(value, quote=True)


def script_json(value, what: str = "value") -> str:
    """JSON literal that is safe inside a ``<script>`` element."""
    try:
        encoded = json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise GenerationError(f"JSON encoding of {what} failed: {e}") from e
    # "</" would end the script element early
    return encoded.replace("</", "<\\/")


def json_array(values: Iterable, what: str) -> str:
    """JSON array literal of ``values``; dates are written as ISO strings."""
    items = [v.isoformat() if hasattr(v, "isoformat") else v for v in values]
    return script_json(items, f"{what} array")


def numbers_arrays(numbers: Sequence[DailyNumbers]) -> Tuple[str, str, str]:
    """Dates, infections and deaths of a series as three JSON arrays."""
    return (
        json_array((n.date for n in numbers), "date"),
        json_array((n.cases for n in numbers), "cases"),
        json_array((n.deaths for n in numbers), "deaths"),
    )


def render_numbers_graph(
    tpl: TemplateEngine,
    section: str,
    title: str,
    plot_id: str,
    numbers: Sequence[DailyNumbers],
) -> str:
    use_section(tpl, section)
    tpl.tag("title", special_chars(title))
    tpl.tag("plotId", plot_id)
    dates, infections, deaths = numbers_arrays(numbers)
    tpl.integrate("dates", dates)
    tpl.integrate("infections", infections)
    tpl.integrate("deaths", deaths)
    return tpl.generate()


def render_incidence_graph(
    tpl: TemplateEngine, title: str, plot_id: str, points: Sequence[IncidencePoint]
) -> str:
    """Incidence graph of one country, or an empty string without data."""
    use_section(tpl, "graphIncidence")
    if not points:
        return ""
    tpl.tag("title", special_chars(title))
    tpl.tag("plotId", plot_id)
    tpl.integrate("dates", json_array((p.date for p in points), "date"))
    tpl.integrate("incidence", json_array((p.incidence for p in points), "incidence"))
    return tpl.generate()


def render_group_graph(
    tpl: TemplateEngine,
    group: str,
    members: List[Tuple[Entity, Sequence[IncidencePoint]]],
) -> str:
    """Incidence graph with one trace per member country that has data."""
    use_section(tpl, "trace")
    traces = []
    for entity, points in members:
        if not points:
            continue
        tpl.integrate("dates", json_array((p.date for p in points), "date"))
        tpl.integrate("incidence", json_array((p.incidence for p in points), "incidence"))
        tpl.tag("name", script_json(entity.name, "country name"))
        traces.append(tpl.generate())
    use_section(tpl, "graphContinent")
    tpl.integrate("traces", "\n".join(traces))
    tpl.tag("plotId", "continent_" + group.lower())
    tpl.tag("title", special_chars("Coronavirus: 14-day incidence in " + group))
    return tpl.generate()


__all__ = [
    "use_section",
    "special_chars",
    "script_json",
    "json_array",
    "numbers_arrays",
    "render_numbers_graph",
    "render_incidence_graph",
    "render_group_graph",
]
