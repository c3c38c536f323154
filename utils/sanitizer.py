"""
Input Sanitization Module

Cleans form input before it is stored. HTML escaping is left to Jinja's
autoescaping at render time, so stored text is never double-escaped.
"""

import re
from urllib.parse import urlparse

from constants.validation import MAX_LIST_LINES

CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]')


def sanitize_text(text, max_length=10000):
    """
    Sanitize free text: strip whitespace and control characters, truncate.

    Newlines and tabs are preserved.

    Args:
        text: The text to sanitize (can be None)
        max_length: Maximum allowed length (default 10000)

    Returns:
        Sanitized string, truncated if necessary
    """
    if text is None:
        return ''

    if not isinstance(text, str):
        text = str(text)

    text = CONTROL_CHARS.sub('', text).strip()

    if len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_name(name, max_length=100):
    """
    Sanitize an entry name for storage and uniqueness checks.

    Returns:
        Cleaned name with whitespace collapsed, '' if nothing remains
    """
    if not name:
        return ''

    if not isinstance(name, str):
        name = str(name)

    # Remove control characters and null bytes
    name = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', name)

    # Collapse multiple spaces
    name = re.sub(r'\s+', ' ', name).strip()

    return name[:max_length]


def sanitize_url(url):
    """
    Sanitize a URL by rejecting dangerous schemes.

    Prevents javascript:, data:, vbscript:, and other dangerous URL schemes
    that could execute code when used in href or src attributes.

    Args:
        url: The URL to validate (can be None)

    Returns:
        The URL if it is an absolute http(s) URL, empty string otherwise
    """
    if not url or not isinstance(url, str):
        return ''

    url = url.strip()

    try:
        parsed = urlparse(url)
    except ValueError:
        return ''

    # Only allow http and https
    if parsed.scheme.lower() not in ('http', 'https') or not parsed.netloc:
        return ''

    return url


def process_text_area(text, max_lines=MAX_LIST_LINES):
    """
    Split a <textarea> list into lines.

    One item per line; a leading dash bullet ("- ") is removed.
    Blank lines are dropped.

    Returns:
        list of str
    """
    text = sanitize_text(text)
    if not text:
        return []

    lines = []
    for line in text.splitlines():
        line = re.sub(r'^\s*-\s?', '', line).strip()
        if line:
            lines.append(line)
    return lines[:max_lines]
