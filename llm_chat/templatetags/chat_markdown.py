import re

import markdown2
from django import template
from django.utils.html import format_html
from django.utils.safestring import mark_safe

from llm_chat import catalog

register = template.Library()

THINK_RE = re.compile(r"<think>([\s\S]*?)</think>")
FENCE_RE = re.compile(r"^```([\w+#.-]*)[ \t]*\n(.*?)^```[ \t]*$", re.MULTILINE | re.DOTALL)

MARKDOWN_EXTRAS = ["tables", "strike", "cuddled-lists", "break-on-newline"]


@register.filter
def split_thinking(text):
    """Return (thinking, remaining, has_thinking) for the first <think>...</think> block."""
    text = text or ""
    match = THINK_RE.search(text)
    if not match:
        return "", text, False
    remaining = THINK_RE.sub("", text, count=1)
    return match.group(1).strip(), remaining.strip(), True


def _code_block(language, code):
    label = language or "text"
    return format_html(
        '<div class="code-block" data-language="{}">'
        '<div class="code-block-header"><span class="code-block-lang">{}</span>'
        '<button type="button" class="code-copy-btn" data-copy-code>Copy</button></div>'
        '<pre><code class="language-{}">{}</code></pre></div>',
        label, label, label, code.rstrip("\n"),
    )


def _markdown(text):
    if not text.strip():
        return ""
    return markdown2.markdown(text, safe_mode="escape", extras=MARKDOWN_EXTRAS)


@register.filter
def render_markdown(text):
    """
    Render chat Markdown to HTML. Raw HTML is escaped.

    Fenced code blocks are rendered separately so each gets a language label
    and a copy button.
    """
    text = text or ""
    html = []
    pos = 0
    for match in FENCE_RE.finditer(text):
        html.append(_markdown(text[pos:match.start()]))
        html.append(_code_block(match.group(1), match.group(2)))
        pos = match.end()
    html.append(_markdown(text[pos:]))
    return mark_safe("".join(html))


@register.filter
def model_badge(model_id):
    return catalog.badge_label(model_id)


@register.filter
def get_item(mapping, key):
    return (mapping or {}).get(str(key))
