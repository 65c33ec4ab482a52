from __future__ import annotations

from urllib.parse import quote

MASK = "****"


def redact_secret(text: str, secret: str | None) -> str:
    """Mask every raw or percent-encoded occurrence of ``secret`` in ``text``."""
    if not secret:
        return text

    variants = {secret, quote(secret, safe=""), quote(secret)}
    for variant in sorted(variants, key=len, reverse=True):
        text = text.replace(variant, MASK)
    return text
