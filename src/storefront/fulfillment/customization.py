"""Customization detection for order items.

Decides whether a purchased line carries real end-user customization that
a designer must act on. Color choices alone do not count: a color-only
selection can be delivered from a pre-made color-variant file.

The payload is normalized once at the HTTP boundary into ``Customizations``
and stored on the order item as JSON; nothing downstream re-parses raw cart
data.
"""

import json
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ColorChoice:
    name: str
    hex: str


@dataclass(frozen=True)
class TextChange:
    field: str
    value: str


@dataclass(frozen=True)
class UploadedAsset:
    url: str
    public_id: str = ""


@dataclass(frozen=True)
class Customizations:
    """Canonical customization payload captured from the cart."""

    colors: tuple[ColorChoice, ...] = field(default_factory=tuple)
    text_changes: tuple[TextChange, ...] = field(default_factory=tuple)
    uploaded_images: tuple[UploadedAsset, ...] = field(default_factory=tuple)
    uploaded_logo: UploadedAsset | None = None
    customization_notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "Customizations | None":
        if data is None:
            return None
        logo = data.get("uploaded_logo")
        return cls(
            colors=tuple(ColorChoice(name=c["name"], hex=c["hex"]) for c in data.get("colors") or []),
            text_changes=tuple(
                TextChange(field=t["field"], value=t["value"]) for t in data.get("text_changes") or []
            ),
            uploaded_images=tuple(
                UploadedAsset(url=i["url"], public_id=i.get("public_id", "")) for i in data.get("uploaded_images") or []
            ),
            uploaded_logo=UploadedAsset(url=logo["url"], public_id=logo.get("public_id", "")) if logo else None,
            customization_notes=data.get("customization_notes"),
        )

    @classmethod
    def from_json(cls, raw: str | None) -> "Customizations | None":
        if not raw:
            return None
        return cls.from_dict(json.loads(raw))

    def to_dict(self) -> dict:
        return {
            "colors": [{"name": c.name, "hex": c.hex} for c in self.colors],
            "text_changes": [{"field": t.field, "value": t.value} for t in self.text_changes],
            "uploaded_images": [{"url": i.url, "public_id": i.public_id} for i in self.uploaded_images],
            "uploaded_logo": (
                {"url": self.uploaded_logo.url, "public_id": self.uploaded_logo.public_id}
                if self.uploaded_logo
                else None
            ),
            "customization_notes": self.customization_notes,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


# Fields whose presence means a designer has work to do. ``colors`` is
# deliberately absent.
CUSTOMIZATION_SIGNAL_FIELDS: tuple[str, ...] = (
    "text_changes",
    "uploaded_images",
    "uploaded_logo",
    "customization_notes",
)


def _has_signal(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, tuple | list):
        return len(value) > 0
    if isinstance(value, UploadedAsset):
        return bool(value.url)
    return bool(value)


def requires_custom_work(
    has_customizations: bool,
    customizations: Customizations | None,
    signal_fields: tuple[str, ...] = CUSTOMIZATION_SIGNAL_FIELDS,
) -> bool:
    """Return True when the item needs manual customization work.

    Pure and deterministic. ``has_customizations`` is the flag captured with
    the cart line; when it is already set no payload inspection is needed.
    """
    if has_customizations:
        return True
    if customizations is None:
        return False
    return any(_has_signal(getattr(customizations, name, None)) for name in signal_fields)
