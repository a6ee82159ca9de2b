import asyncio

from tinygen.protocols import Highlighter
from tinygen.renderers import (
    PLACEHOLDER_RE,
    PygmentsHighlighter,
    _DeferredHighlightRenderer,
    _generate_heading_id,
    render_markdown,
)


class RecordingHighlighter:
    """Highlighter that finishes blocks in reverse order of submission."""

    def __init__(self):
        self.calls = []

    async def highlight(self, code, lang):
        index = len(self.calls)
        self.calls.append((code, lang))
        await asyncio.sleep(0.01 * (5 - index))
        return f'<pre class="hl" data-lang="{lang}">{code.strip()}</pre>'


def test_markdown_without_code_blocks_skips_highlighter():
    highlighter = RecordingHighlighter()
    html = asyncio.run(render_markdown("# Hello\n\nSome *text*.", highlighter))
    assert html == '<h1 id="hello">Hello</h1>\n<p>Some <em>text</em>.</p>\n'
    assert highlighter.calls == []


def test_every_code_block_is_substituted_in_place():
    source = (
        "Intro\n\n"
        "```python\nfirst = 1\n```\n\n"
        "Middle\n\n"
        "```js\nsecond()\n```\n\n"
        "```\nthird\n```\n\n"
        "Outro\n"
    )
    highlighter = RecordingHighlighter()
    html = asyncio.run(render_markdown(source, highlighter))

    assert not PLACEHOLDER_RE.search(html)
    assert html.count('class="hl"') == 3
    assert highlighter.calls == [
        ("first = 1\n", "python"),
        ("second()\n", "js"),
        ("third\n", None),
    ]
    # substitutions land where their blocks were, despite reversed completion
    first = html.index('data-lang="python">first = 1')
    second = html.index('data-lang="js">second()')
    third = html.index('data-lang="None">third')
    assert html.index("Intro") < first < html.index("Middle") < second < third
    assert third < html.index("Outro")


def test_placeholders_are_scoped_per_call():
    one = _DeferredHighlightRenderer()
    two = _DeferredHighlightRenderer()
    key_one = one.block_code("a", "python").strip()
    key_two = two.block_code("a", "python").strip()
    assert key_one != key_two
    assert PLACEHOLDER_RE.fullmatch(key_one)
    assert list(one.pending) == [key_one]
    assert list(two.pending) == [key_two]


def test_literal_braces_in_text_are_preserved():
    source = "Template syntax like {{1}} stays.\n\n```python\nx = 1\n```\n"
    html = asyncio.run(render_markdown(source, RecordingHighlighter()))
    assert "{{1}}" in html
    assert 'class="hl"' in html


def test_concurrent_renders_do_not_mix_blocks():
    async def both():
        return await asyncio.gather(
            render_markdown("```python\nalpha\n```\n", RecordingHighlighter()),
            render_markdown("```python\nbeta\n```\n", RecordingHighlighter()),
        )

    first, second = asyncio.run(both())
    assert "alpha" in first and "beta" not in first
    assert "beta" in second and "alpha" not in second


def test_pygments_highlighter():
    highlighter = PygmentsHighlighter()
    assert isinstance(highlighter, Highlighter)
    html = asyncio.run(highlighter.highlight("def f():\n    return 1\n", "python"))
    assert 'class="highlight"' in html
    assert "<span" in html

    fallback = highlighter.highlight_sync("<b>&</b>", "not-a-language")
    assert fallback == (
        '<pre><code class="language-not-a-language">&lt;b&gt;&amp;&lt;/b&gt;</code></pre>\n'
    )
    plain = highlighter.highlight_sync("x", None)
    assert plain == "<pre><code>x</code></pre>\n"


def test_default_highlighter_is_pygments():
    html = asyncio.run(render_markdown("```python\nimport os\n```\n"))
    assert 'class="highlight"' in html
    assert not PLACEHOLDER_RE.search(html)


def test_heading_ids_are_unique_per_document():
    html = asyncio.run(render_markdown("# Intro\n\n## Intro\n\n## Other Thing!\n"))
    assert '<h1 id="intro">Intro</h1>' in html
    assert '<h2 id="intro-1">Intro</h2>' in html
    assert '<h2 id="other-thing">Other Thing!</h2>' in html
    assert _generate_heading_id("  Hello,   World ") == "hello-world"


def test_raw_html_passes_through():
    html = asyncio.run(render_markdown('<div class="hero"><span>HTML stays</span></div>\n'))
    assert '<div class="hero"><span>HTML stays</span></div>' in html
