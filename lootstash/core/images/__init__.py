"""Icon lookup and runeword composite rendering."""

from .composite import (
    CompositePlan,
    choose_layout,
    compute_slots,
    encode_png,
    load_image,
    render_composite,
)
from .lookup import (
    FALLBACK_ICONS_BY_CODE,
    FALLBACK_ICONS_BY_NAME,
    ICON_VARIANT_FILES,
    content_hash,
    content_type_for,
    extension_for,
    fallback_icon,
    find_image_file,
    find_in_mapping,
    rune_icon_filename,
    storage_key,
)

__all__ = [
    "CompositePlan",
    "choose_layout",
    "compute_slots",
    "encode_png",
    "load_image",
    "render_composite",
    "FALLBACK_ICONS_BY_CODE",
    "FALLBACK_ICONS_BY_NAME",
    "ICON_VARIANT_FILES",
    "content_hash",
    "content_type_for",
    "extension_for",
    "fallback_icon",
    "find_image_file",
    "find_in_mapping",
    "rune_icon_filename",
    "storage_key",
]
