r"""Render ``chart`` fenced blocks into inline SVG figures.

Articles can embed small illustrative charts as fenced blocks labelled
``chart``. The block body is a tiny text format: optional ``key: value``
settings (either leading lines or a ``---`` delimited block), then a
comma-separated header row, then one ``label, value`` row per line::

    ```chart
    width: 700, height: 300
    Operator, Emissions
    mergeMap, 12
    switchMap, 4
    ```

Rows that cannot be parsed are skipped with a warning; a broken chart never
aborts the surrounding article.

Example
-------
>>> from blog_pages.config import ChartOptions
>>> spec = parse_chart_spec("width: 700, height: 300\nk, v\na, 1\n", ChartOptions())
>>> (spec.width, spec.height, len(spec.rows))
(700, 300, 1)
"""

from __future__ import annotations

import dataclasses as dc
import logging
import math
import re
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor

from blog_pages._constants import CHART_LANGUAGE

if typ.TYPE_CHECKING:
    from markdown import Markdown

    from blog_pages.config import ChartOptions

logger = logging.getLogger(__name__)

CHART_KINDS = ("bar", "line")
CONFIG_LINE_PATTERN = re.compile(
    r"^\s*[A-Za-z_][\w-]*\s*:[^,]*(?:,\s*[A-Za-z_][\w-]*\s*:[^,]*)*$"
)
CHART_BLOCK_PATTERN = re.compile(
    rf"(?P<fence>^(?:~{{3,}}|`{{3,}}))[ ]*{CHART_LANGUAGE}[ ]*\n"
    r"(?P<body>.*?)(?<=\n)(?P=fence)[ ]*$",
    re.MULTILINE | re.DOTALL,
)
MARGIN_TOP = 24
MARGIN_TITLE = 40
MARGIN_BOTTOM = 36
MARGIN_SIDE = 16


@dc.dataclass(frozen=True, slots=True)
class ChartRow:
    """A single category and its numeric value."""

    label: str
    value: float


@dc.dataclass(slots=True)
class ChartSpec:
    """Parsed contents of one chart block.

    Attributes
    ----------
    width : int
        Width of the rendered figure in pixels.
    height : int
        Height of the rendered figure in pixels.
    kind : str
        ``"bar"`` or ``"line"``.
    title : str | None
        Optional caption drawn above the plot.
    headers : list[str]
        Column labels from the header row.
    rows : list[ChartRow]
        Data rows in declaration order.
    warnings : list[str]
        Problems found while parsing; each one was skipped or defaulted.
    """

    width: int
    height: int
    kind: str = "bar"
    title: str | None = None
    headers: list[str] = dc.field(default_factory=list)
    rows: list[ChartRow] = dc.field(default_factory=list)
    warnings: list[str] = dc.field(default_factory=list)


def _split_row(line: str) -> list[str]:
    return [cell.strip() for cell in line.split(",")]


def _parse_dimension(value: str, fallback: int, key: str, warnings: list[str]) -> int:
    try:
        number = float(value)
    except ValueError:
        number = math.nan
    if not math.isfinite(number) or number <= 0:
        warnings.append(f"invalid {key} {value!r}; using {fallback}")
        return fallback
    return round(number)


def _apply_settings(spec: ChartSpec, lines: list[str], defaults: ChartOptions) -> None:
    """Apply ``key: value`` settings from ``lines`` onto ``spec``."""
    for line in lines:
        for pair in line.split(","):
            if not pair.strip():
                continue
            key, sep, value = pair.partition(":")
            key = key.strip().lower()
            value = value.strip()
            if not sep:
                spec.warnings.append(f"ignoring setting without a value: {pair.strip()!r}")
                continue
            match key:
                case "width":
                    spec.width = _parse_dimension(
                        value, defaults.width, key, spec.warnings
                    )
                case "height":
                    spec.height = _parse_dimension(
                        value, defaults.height, key, spec.warnings
                    )
                case "type" | "kind":
                    if value.lower() in CHART_KINDS:
                        spec.kind = value.lower()
                    else:
                        spec.warnings.append(f"unknown chart type {value!r}; using bar")
                case "title":
                    spec.title = value or None
                case _:
                    spec.warnings.append(f"ignoring unknown setting {key!r}")


def _take_settings(lines: list[str]) -> tuple[list[str], list[str]]:
    """Split ``lines`` into the settings block and the table that follows."""
    if lines and lines[0].strip() == "---":
        for idx, line in enumerate(lines[1:], start=1):
            if line.strip() == "---":
                return lines[1:idx], lines[idx + 1 :]
        return lines[1:], []
    idx = 0
    while idx < len(lines) and CONFIG_LINE_PATTERN.match(lines[idx]):
        idx += 1
    return lines[:idx], lines[idx:]


def parse_chart_spec(source: str, defaults: ChartOptions) -> ChartSpec:
    """Parse the body of a ``chart`` block.

    Parameters
    ----------
    source : str
        Text between the opening and closing fences.
    defaults : ChartOptions
        Dimensions used when the block does not set ``width``/``height``.

    Returns
    -------
    ChartSpec
        The parsed chart. Malformed rows are left out and described in
        ``warnings``; parsing itself never raises.
    """
    spec = ChartSpec(width=defaults.width, height=defaults.height)
    lines = [line for line in source.splitlines() if line.strip()]
    settings, table = _take_settings(lines)
    _apply_settings(spec, settings, defaults)
    if not table:
        spec.warnings.append("chart has no header row")
        return spec

    spec.headers = _split_row(table[0])
    if len(spec.headers) != 2:
        spec.warnings.append(
            f"header row should have 2 columns, found {len(spec.headers)}"
        )
    for number, line in enumerate(table[1:], start=1):
        cells = _split_row(line)
        if len(cells) != 2:
            spec.warnings.append(
                f"row {number} skipped: expected 2 columns, found {len(cells)}"
            )
            continue
        label, raw_value = cells
        if not label:
            spec.warnings.append(f"row {number} skipped: empty label")
            continue
        try:
            value = float(raw_value)
        except ValueError:
            value = math.nan
        if not math.isfinite(value):
            spec.warnings.append(
                f"row {number} skipped: {raw_value!r} is not a number"
            )
            continue
        spec.rows.append(ChartRow(label=label, value=value))
    return spec


def _fmt(number: float) -> str:
    """Format a coordinate with at most two decimals."""
    text = f"{number:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def _chart_geometry(spec: ChartSpec) -> dict[str, typ.Any]:
    """Return the coordinates the SVG template draws."""
    top = MARGIN_TITLE if spec.title else MARGIN_TOP
    plot_width = max(spec.width - 2 * MARGIN_SIDE, 1)
    plot_height = max(spec.height - top - MARGIN_BOTTOM, 1)
    values = [row.value for row in spec.rows]
    low = min([0.0, *values])
    high = max([0.0, *values])
    span = (high - low) or 1.0

    def _y(value: float) -> float:
        return top + (high - value) / span * plot_height

    baseline = _y(0.0)
    slot = plot_width / len(spec.rows) if spec.rows else plot_width
    bars: list[dict[str, str]] = []
    points: list[str] = []
    for idx, row in enumerate(spec.rows):
        centre = MARGIN_SIDE + idx * slot + slot / 2
        bar_width = slot * 0.7
        value_y = _y(row.value)
        bars.append(
            {
                "label": row.label,
                "value": _fmt(row.value),
                "x": _fmt(centre - bar_width / 2),
                "y": _fmt(min(value_y, baseline)),
                "width": _fmt(bar_width),
                "height": _fmt(abs(baseline - value_y)),
                "cx": _fmt(centre),
                "cy": _fmt(value_y),
                "label_y": _fmt(spec.height - MARGIN_BOTTOM + 18),
            }
        )
        points.append(f"{_fmt(centre)},{_fmt(value_y)}")
    return {
        "bars": bars,
        "points": " ".join(points),
        "baseline": _fmt(baseline),
        "axis_start": _fmt(MARGIN_SIDE),
        "axis_end": _fmt(MARGIN_SIDE + plot_width),
        "title_x": _fmt(spec.width / 2),
    }


class ChartRenderer:
    """Render ChartSpec objects through the packaged SVG template."""

    def __init__(self, *, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).resolve().parents[1] / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("chart.svg.jinja")

    def render(self, spec: ChartSpec) -> str:
        """Return the ``<figure>`` markup for ``spec``."""
        return self.template.render(chart=spec, **_chart_geometry(spec)).strip()


class ChartBlockPreprocessor(Preprocessor):
    """Replace ``chart`` fences with stashed SVG before code highlighting runs."""

    def __init__(
        self,
        md: Markdown,
        defaults: ChartOptions,
        renderer: ChartRenderer,
        source: Path | None,
    ) -> None:
        super().__init__(md)
        self.defaults = defaults
        self.renderer = renderer
        self.source = source

    def run(self, lines: list[str]) -> list[str]:
        """Swap every chart block for an HTML placeholder."""
        text = "\n".join(lines)
        while match := CHART_BLOCK_PATTERN.search(text):
            spec = parse_chart_spec(match.group("body"), self.defaults)
            for warning in spec.warnings:
                logger.warning("%s: chart block: %s", self.source or "<string>", warning)
            placeholder = self.md.htmlStash.store(self.renderer.render(spec))
            text = f"{text[: match.start()]}\n\n{placeholder}\n\n{text[match.end() :]}"
        return text.split("\n")


class ChartExtension(Extension):
    """Register the chart preprocessor on a Markdown instance."""

    def __init__(
        self,
        defaults: ChartOptions,
        *,
        renderer: ChartRenderer,
        source: Path | None = None,
    ) -> None:
        super().__init__()
        self.defaults = defaults
        self.renderer = renderer
        self.source = source

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Run before ``fenced_code`` (priority 25) so charts are not highlighted."""
        processor = ChartBlockPreprocessor(md, self.defaults, self.renderer, self.source)
        md.preprocessors.register(processor, "blog_chart_block", 28)


__all__ = [
    "CHART_KINDS",
    "ChartBlockPreprocessor",
    "ChartExtension",
    "ChartRenderer",
    "ChartRow",
    "ChartSpec",
    "parse_chart_spec",
]
