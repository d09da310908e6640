"""
Source-Set Assembler for the responsive image engine

Groups encoded variants by format and renders the srcset/sizes strings
for each group.
"""

from typing import Dict, List, Optional, Sequence

from .models import DEFAULT_SIZES, ImageSource, Variant

MIME_TYPES = {
    "avif": "image/avif",
    "webp": "image/webp",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "png": "image/png",
}
DEFAULT_MIME_TYPE = "image/jpeg"


def mime_type_for(format: str) -> str:
    """MIME type for a format name; unknown names fall back to image/jpeg"""
    return MIME_TYPES.get(format, DEFAULT_MIME_TYPE)


def render_srcset(variants: Sequence[Variant]) -> str:
    return ", ".join(f"{variant.url} {variant.width}w" for variant in variants)


def assemble_sources(variants: Sequence[Variant], sizes_override: Optional[str] = None) -> List[ImageSource]:
    """One source per format, in the order formats first appear"""
    groups: Dict[str, List[Variant]] = {}
    for variant in variants:
        groups.setdefault(variant.format.value, []).append(variant)

    sizes = sizes_override or DEFAULT_SIZES
    return [
        ImageSource(
            format=format,
            mime_type=mime_type_for(format),
            srcset=render_srcset(group),
            sizes=sizes,
        )
        for format, group in groups.items()
    ]
