"""Storage path convention for order files.

``orders/{order_number}/{product_slug}/{color_name}/{file_name}``, where the
color segment is present only for color-variant files.
"""

import re

_UNSAFE = re.compile(r"[^\w.\-]+", re.UNICODE)


def _segment(value: str) -> str:
    cleaned = _UNSAFE.sub("-", value.strip()).strip("-.")
    if not cleaned:
        raise ValueError(f"Invalid path segment: {value!r}")
    return cleaned


def build_order_file_path(
    order_number: str,
    product_slug: str,
    file_name: str,
    color_name: str | None = None,
) -> str:
    parts = ["orders", _segment(order_number), _segment(product_slug)]
    if color_name:
        parts.append(_segment(color_name))
    parts.append(_segment(file_name))
    return "/".join(parts)
