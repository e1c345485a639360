"""The fixed HTML page every rendered fragment is wrapped in."""

from __future__ import annotations

from string import Template

HIGHLIGHT_JS = "https://cdnjs.cloudflare.com/ajax/libs/highlight.js/11.9.0"
HIGHLIGHT_LANGUAGES = ("clojure", "swift", "rust", "go", "kotlin", "elixir")

ERROR_FRAGMENT = "<h1>Error</h1><p>Could not read file</p>"

GITHUB_CSS = """
body {
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
    font-size: 16px;
    line-height: 1.5;
    color: #24292e;
    background-color: #ffffff;
    margin: 0;
    padding: 0;
}

.markdown-body {
    box-sizing: border-box;
    min-width: 200px;
    max-width: 980px;
    margin: 0 auto;
    padding: 45px;
}

.markdown-body h1, .markdown-body h2, .markdown-body h3,
.markdown-body h4, .markdown-body h5, .markdown-body h6 {
    margin-top: 24px;
    margin-bottom: 16px;
    font-weight: 600;
    line-height: 1.25;
}

.markdown-body h1 { font-size: 2em; border-bottom: 1px solid #eaecef; padding-bottom: .3em; }
.markdown-body h2 { font-size: 1.5em; border-bottom: 1px solid #eaecef; padding-bottom: .3em; }
.markdown-body h3 { font-size: 1.25em; }
.markdown-body h4 { font-size: 1em; }
.markdown-body h5 { font-size: .875em; }
.markdown-body h6 { font-size: .85em; color: #6a737d; }

.markdown-body p { margin-top: 0; margin-bottom: 16px; }

.markdown-body a { color: #0366d6; text-decoration: none; }
.markdown-body a:hover { text-decoration: underline; }

.markdown-body code {
    padding: .2em .4em;
    margin: 0;
    font-size: 85%;
    background-color: rgba(27, 31, 35, 0.05);
    border-radius: 3px;
    font-family: "SFMono-Regular", Consolas, "Liberation Mono", Menlo, monospace;
}

.markdown-body pre {
    padding: 16px;
    overflow: auto;
    font-size: 85%;
    line-height: 1.45;
    background-color: #f6f8fa;
    border-radius: 3px;
    margin-bottom: 16px;
}

.markdown-body pre code {
    display: inline;
    padding: 0;
    margin: 0;
    overflow: visible;
    line-height: inherit;
    background-color: transparent;
    border: 0;
}

.markdown-body ul, .markdown-body ol { padding-left: 2em; margin-top: 0; margin-bottom: 16px; }
.markdown-body li { margin-bottom: 0.25em; }

.markdown-body blockquote {
    padding: 0 1em;
    color: #6a737d;
    border-left: 0.25em solid #dfe2e5;
    margin: 0 0 16px 0;
}

.markdown-body hr {
    height: 0.25em;
    padding: 0;
    margin: 24px 0;
    background-color: #e1e4e8;
    border: 0;
}

.markdown-body table { border-collapse: collapse; margin-bottom: 16px; }
.markdown-body th, .markdown-body td { padding: 6px 13px; border: 1px solid #dfe2e5; }

.markdown-body img { max-width: 100%; box-sizing: content-box; }
.markdown-body strong { font-weight: 600; }
"""

PAGE_TEMPLATE = Template("""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <link rel="stylesheet" href="$highlight/styles/github.min.css">
    <script src="$highlight/highlight.min.js"></script>
$languages
    <style>
$css
    </style>
</head>
<body>
    <article class="markdown-body">
$body
    </article>
    <script>
        document.querySelectorAll('pre code').forEach((block) => {
            hljs.highlightElement(block);
        });
    </script>
</body>
</html>
""")


class PageComposer:
    """Wrap a body fragment in the page template. Pure, never fails."""

    def __init__(self, css: str = GITHUB_CSS):
        self._head = {
            "highlight": HIGHLIGHT_JS,
            "languages": "\n".join(
                f'    <script src="{HIGHLIGHT_JS}/languages/{name}.min.js"></script>'
                for name in HIGHLIGHT_LANGUAGES
            ),
            "css": css,
        }

    def compose(self, fragment: str) -> str:
        return PAGE_TEMPLATE.substitute(self._head, body=fragment)

    def error_page(self) -> str:
        return self.compose(ERROR_FRAGMENT)
