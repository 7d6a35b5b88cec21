from __future__ import annotations

import pytest

from blog_pages.config import MinifyOptions
from blog_pages.generator.minify import htmlmin_transform, minify_html

PAGE = """\
<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN"
  "http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">
<html lang="en">
  <head>
    <title>  Flattening   operators </title>
    <!-- analytics go here -->
    <!--[if lt IE 9]><script src="shiv.js"></script><![endif]-->
  </head>
  <body>
    <p class="lead"
       id="intro">
      Pick   <em>one</em>
      operator.
    </p>
    <pre><code>first line
    indented   line
</code></pre>
    <script>
      // cancel the previous request
      var answer = 40 + 2;
      console.log( answer );
    </script>
  </body>
</html>
"""


@pytest.fixture
def options() -> MinifyOptions:
    return MinifyOptions()


def test_minify_applies_the_configured_reductions(options: MinifyOptions) -> None:
    result = minify_html(PAGE, options)

    assert result.startswith("<!DOCTYPE html><html lang=\"en\"><head>")
    assert "analytics" not in result
    assert "<!--[if lt IE 9]>" in result
    assert '<p class="lead" id="intro">Pick <em>one</em> operator.</p>' in result
    assert "<title>Flattening operators</title>" in result
    assert "\n" not in result.replace("<pre><code>first line\n    indented   line\n</code></pre>", "")


def test_minify_preserves_preformatted_text(options: MinifyOptions) -> None:
    result = minify_html(PAGE, options)

    assert "<pre><code>first line\n    indented   line\n</code></pre>" in result


def test_minify_shrinks_inline_scripts(options: MinifyOptions) -> None:
    result = minify_html(PAGE, options)

    assert "cancel the previous request" not in result
    assert "var answer=40+2;console.log(answer);" in result


def test_minify_is_idempotent(options: MinifyOptions) -> None:
    once = minify_html(PAGE, options)

    assert minify_html(once, options) == once


def test_minify_keeps_comments_when_asked() -> None:
    options = MinifyOptions(remove_comments=False, collapse_whitespace=False)

    result = minify_html("<p>a</p>\n<!-- note -->\n", options)

    assert result == "<p>a</p>\n<!-- note -->\n"


def test_minify_keeps_non_javascript_scripts(options: MinifyOptions) -> None:
    html = '<script type="application/ld+json">\n  {"a": 1}\n</script>'

    assert minify_html(html, options) == html


def test_minify_compresses_styles_when_enabled() -> None:
    options = MinifyOptions(minify_css=True)

    result = minify_html("<style>\n  body {\n    color: red;\n  }\n</style>", options)

    assert result == "<style>body{color:red}</style>"


def test_htmlmin_transform_only_touches_html_outputs(options: MinifyOptions) -> None:
    transform = htmlmin_transform(options)
    source = "<p>\n  hello\n</p>\n"

    assert transform(source, "_site/index.html") == "<p>hello</p>"
    assert transform(source, "_site/feed.xml") == source


def test_minify_keeps_non_breaking_spaces(options: MinifyOptions) -> None:
    result = minify_html("<p>\n  10\u00a0km\u00a0\n</p>\n", options)

    assert result == "<p>10\u00a0km\u00a0</p>"


def test_kept_comments_do_not_join_surrounding_words() -> None:
    options = MinifyOptions(remove_comments=False)

    result = minify_html("<p>a <!-- x --> b</p>\n<div>\n  <!-- y -->\n</div>", options)

    assert result == "<p>a <!-- x --> b</p><div><!-- y --></div>"
    assert minify_html(result, options) == result
