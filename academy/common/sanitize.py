"""HTML sanitizing for lesson content and question prompts rendered in pages."""
import bleach
from markupsafe import Markup

ALLOWED_TAGS = [
    'p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'ul', 'ol', 'li', 'a', 'strong', 'em', 'b', 'i', 'u',
    'code', 'pre', 'blockquote', 'img', 'table', 'tr', 'td', 'th', 'thead', 'tbody', 'hr', 'br',
    'div', 'span', 'iframe', 'video', 'source'
]

ALLOWED_ATTRIBUTES = {
    'a': ['href', 'title', 'rel', 'target'],
    'img': ['src', 'alt', 'title', 'width', 'height'],
    'iframe': ['src', 'width', 'height', 'allowfullscreen', 'frameborder'],
    'video': ['src', 'controls', 'width', 'height', 'poster'],
    'source': ['src', 'type'],
    'td': ['colspan', 'rowspan'],
    'th': ['colspan', 'rowspan'],
    'div': ['class'],
    'span': ['class'],
}

ALLOWED_PROTOCOLS = ['http', 'https', 'mailto']


def sanitize_html(content) -> Markup:
    """
    Strip scripts, styles, inline event handlers and javascript: URLs,
    keeping ordinary formatting markup.
    """
    if not content:
        return Markup("")
    cleaned = bleach.clean(
        content,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
    )
    return Markup(cleaned)
