from gemini_export.dom import element, parse_html, from_soup
from gemini_export.render import SemanticTextRenderer, clean_markdown, render
from helpers import node_from_html


def md(html):
    return render(node_from_html(html))


def test_paragraph_with_emphasis():
    assert md("<p>Hello <strong>world</strong> and <em>you</em></p>") == "Hello **world** and *you*"
    assert md("<p><b>B</b> <i>I</i></p>") == "**B** *I*"


def test_skips_accessibility_labels_and_control_ui():
    html = (
        "<div><span class='screen-reader-only'>You said</span><p>Hi</p></div>"
        "<div id='gce-root'><p>Export</p></div><div id='gce-toast'>Done</div>"
        "<script>var x = 1;</script>"
    )
    assert md(html) == "Hi"


def test_code_block_language_from_class():
    out = md("<pre><code class='language-python'>print(1)\n</code></pre>")
    assert out == "```python\nprint(1)\n```"


def test_code_block_language_from_data_attribute():
    out = md("<pre data-language='rust'><code>fn main() {}</code></pre>")
    assert out == "```rust\nfn main() {}\n```"


def test_code_block_language_from_preceding_label():
    out = md("<div><p>Python</p><pre><code>x = 1</code></pre></div>")
    assert "```python\nx = 1\n```" in out


def test_class_and_attribute_languages_are_lowercased():
    assert md("<pre><code class='language-Python'>x = 1</code></pre>") == "```python\nx = 1\n```"
    assert md("<pre data-language='TypeScript'>let a</pre>") == "```typescript\nlet a\n```"


def test_code_block_language_from_preceding_text_line():
    out = md("<div>Here is the script:\nPython<pre><code>x = 1</code></pre></div>")
    assert "```python\nx = 1\n```" in out
    # Only the last line of the text counts as a label
    out = md("<div>Python\nthen some prose<pre><code>x = 1</code></pre></div>")
    assert "```\nx = 1\n```" in out


def test_code_block_label_match_is_case_insensitive():
    out = md("<div><span>PYTHON</span><pre><code>x = 1</code></pre></div>")
    assert "```python\n" in out


def test_code_block_label_not_in_allow_list():
    out = md("<div><p>Output</p><pre>x = 1</pre></div>")
    assert "```\nx = 1\n```" in out


def test_code_block_without_language_keeps_empty_fence():
    assert md("<pre>plain text</pre>") == "```\nplain text\n```"


def test_gemini_code_block_decoration():
    html = (
        "<code-block><div class='code-block-decoration'><span>JavaScript</span>"
        "<button><mat-icon>content_copy</mat-icon></button></div>"
        "<pre><code data-test-id='code-content'>let a = 1;</code></pre></code-block>"
    )
    assert md(html) == "```javascript\nlet a = 1;\n```"


def test_inline_code_is_verbatim():
    assert md("<p>Use <code>x*y_z</code> here</p>") == "Use `x*y_z` here"


def test_image_placeholder():
    assert md("<p>See <img src='chart.png'></p>") == "See [Image attachment]"


def test_unordered_and_ordered_lists():
    assert md("<ul><li>One</li><li>Two</li></ul>") == "- One\n- Two"
    assert md("<ol><li><p>First</p></li><li>Second</li></ol>") == "1. First\n2. Second"


def test_nested_list_is_indented_under_its_item():
    assert md("<ul><li>Parent<ul><li>Child</li></ul></li></ul>") == "- Parent\n  - Child"


def test_table_with_header_row():
    html = "<table><tr><th>A</th><th>B</th></tr><tr><td>1</td><td> 2 </td></tr></table>"
    assert md(html) == "| A | B |\n| --- | --- |\n| 1 | 2 |"


def test_table_without_header_has_no_separator():
    assert md("<table><tr><td>1</td><td>2</td></tr></table>") == "| 1 | 2 |"


def test_empty_table_emits_nothing():
    assert md("<p>x</p><table></table>") == "x"


def test_line_break_and_rule():
    assert md("<p>a<br>b</p><hr><p>c</p>") == "a\nb\n\n---\n\nc"


def test_headings_and_quotes():
    assert md("<h2>Title</h2><p>Body</p>") == "## Title\n\nBody"
    assert md("<h5>Deep</h5>") == "##### Deep"
    assert md("<blockquote>Quoted</blockquote>") == "> Quoted"


def test_blank_lines_collapse_outside_code_only():
    text = "a\n\n\n\nb\n```\nx\n\n\n\ny\n```"
    assert clean_markdown(text) == "a\n\nb\n```\nx\n\n\n\ny\n```"


def test_render_is_deterministic():
    html = (
        "<div><h1>T</h1><ul><li>a</li><li><code>b</code></li></ul>"
        "<p>Python</p><pre><code>print(2)</code></pre>"
        "<table><tr><th>h</th></tr><tr><td>v</td></tr></table></div>"
    )
    first = md(html)
    assert md(html) == first
    # A fresh renderer and a freshly parsed tree give the same text
    assert SemanticTextRenderer().render(from_soup(parse_html(html))) == first


def test_renders_hand_built_nodes():
    tree = element("div", element("p", "Hello ", element("strong", "there")),
                   element("pre", element("code", "x = 1", class_="lang-python")))
    assert render(tree) == "Hello **there**\n\n```python\nx = 1\n```"


def test_custom_hidden_classes():
    renderer = SemanticTextRenderer(hidden_classes=["tooltip"])
    tree = element("p", element("span", "tip", class_="tooltip"), "body")
    assert renderer.render(tree) == "body"
