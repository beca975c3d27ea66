"""
Inline fragment formatting for inserted emotes.
"""

from html import escape

from sevenmote.autocomplete.trigger import DELIMITER
from sevenmote.config import DEFAULT_CDN_BASE


FRAGMENT_TEMPLATE = (
    '<span class="seven-tv-emote" title="{title}">'
    '<img src="{src}" alt="{alt}" '
    'style="display:inline-block;height:1.5em;vertical-align:middle;">'
    '</span> '
)


def emote_image_url(identifier: str, cdn_base: str = DEFAULT_CDN_BASE) -> str:
    """CDN URL of the smallest rendition of an emote."""
    return f"{cdn_base.rstrip('/')}/emote/{identifier}/1x.webp"


def delimited(name: str) -> str:
    """Return the name in its typed form, e.g. `:HUH:`."""
    return f"{DELIMITER}{name}{DELIMITER}"


def format_fragment(name: str, src: str) -> str:
    """
    Build the inline HTML inserted for an emote.

    The trailing space keeps the fragment from merging with whatever is
    typed next.
    """
    return FRAGMENT_TEMPLATE.format(
        title=escape(delimited(name), quote=True),
        src=escape(src, quote=True),
        alt=escape(name, quote=True),
    )
