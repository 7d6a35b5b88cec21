"""Common literal values used across blog_pages.

These constants keep filenames, suffixes, and defaults centralized so the
loader, builder, and tests can import the same values without drifting.
Intended for internal use within the blog_pages package.

Examples
--------
>>> from blog_pages import _constants
>>> _constants.MARKDOWN_SUFFIXES
frozenset({'.md'})
>>> _constants.DEFAULT_CHART_SIZE
(600, 400)
"""

from pathlib import Path

DEFAULT_CONFIG = Path("site.yaml")
MARKDOWN_SUFFIXES = frozenset({".md"})
TEMPLATE_SUFFIXES = frozenset({".jinja", ".html"})
DATA_SUFFIXES = frozenset({".yaml", ".yml", ".json"})
FRONT_MATTER_DELIMITER = "---"
CHART_LANGUAGE = "chart"
DEFAULT_CHART_SIZE = (600, 400)
DEFAULT_DATE_FORMAT = "%B %d, %Y"
