"""Finder-style file masks compiled to regular expressions.

Supported syntax::

    *       any run of characters inside one path segment
    **      any run of characters, slashes included
    ?       exactly one character other than a slash
    [abc]   character class, ranges like [a-z] allowed
    [!abc]  negated character class

A mask starting with ``/`` is anchored to the root of the listing, every
other mask matches at the end of the key, starting at any segment boundary.
Matching is case-insensitive.
"""

from __future__ import annotations

import re
from typing import Iterable, Pattern, Union

from upload_manager.exceptions import PatternCompileError

Masks = Union[str, Iterable[str]]

# Keys are escaped glob tokens; order is longest match first.
_GLOB_TOKENS = {
    re.escape("**"): ".*",
    re.escape("[!"): "[^",
    re.escape("*"): "[^/]*",
    re.escape("?"): "[^/]",
    re.escape("["): "[",
    re.escape("]"): "]",
    re.escape("-"): "-",
}
_GLOB_RE = re.compile(
    "|".join(re.escape(token) for token in sorted(_GLOB_TOKENS, key=len, reverse=True))
)

_ANCHOR_ROOT = "(?<=^/)"


def translate_mask(mask: str) -> str:
    """Translate a single (already normalized) mask into a regex fragment."""
    return _GLOB_RE.sub(lambda m: _GLOB_TOKENS[m.group(0)], re.escape(mask))


def compile_masks(masks: Masks | None) -> Pattern[str] | None:
    """Compile one mask or a sequence of masks into a single pattern.

    Returns ``None`` when every key should be accepted: either no non-empty
    mask was given or one of the masks is a bare ``*``.

    Raises:
        PatternCompileError: If a mask produces an invalid expression,
            e.g. an unbalanced character class.
    """
    if masks is None:
        return None
    masks = [masks] if isinstance(masks, str) else list(masks)

    fragments: list[str] = []
    for mask in masks:
        mask = mask.replace("\\", "/").rstrip("/")
        prefix = ""
        if mask == "":
            continue
        elif mask == "*":
            return None
        elif mask.startswith("/"):
            mask = mask.lstrip("/")
            prefix = _ANCHOR_ROOT
        fragment = prefix + translate_mask(mask)
        # Each mask on its own, an open class would swallow the "|" joining the next one.
        try:
            re.compile(fragment)
        except re.error as exc:
            raise PatternCompileError(
                f"Invalid file mask {mask!r}: {exc}",
                {"mask": mask, "pattern": fragment},
            ) from exc
        fragments.append(fragment)

    if not fragments:
        return None

    return re.compile("/(" + "|".join(fragments) + r")\Z", re.IGNORECASE)


def mask_matches(pattern: Pattern[str] | None, key: str) -> bool:
    """Whether a listed key passes the compiled masks."""
    if pattern is None:
        return True
    return pattern.search("/" + key.replace("\\", "/")) is not None


__all__ = ["Masks", "compile_masks", "mask_matches", "translate_mask"]
