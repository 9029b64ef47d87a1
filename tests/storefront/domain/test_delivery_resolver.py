"""Tests for the delivery resolver — how a single item gets fulfilled."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest
from storefront.fulfillment.customization import ColorChoice, Customizations, TextChange
from storefront.fulfillment.resolver import (
    DeliveryOutcome,
    ItemToResolve,
    ProductNotFound,
    color_variant_files,
    general_files,
    resolve,
)


@dataclass
class StubProduct:
    enable_customizations: bool


@dataclass
class StubFile:
    id: str
    is_color_variant: bool = False
    color_variant_hex: str | None = None
    is_active: bool = True
    expires_at: datetime | None = None
    order_id: str | None = None

    def is_available(self, now=None):
        now = now or datetime.now(UTC)
        return self.is_active and (self.expires_at is None or self.expires_at > now)

    def matches_color(self, hex_value):
        return self.is_color_variant and (self.color_variant_hex or "").upper() == hex_value.upper()


RED = ColorChoice(name="Red", hex="#FF0000")
BLUE = ColorChoice(name="Blue", hex="#0000FF")

GENERAL = StubFile(id="general")
RED_FILE = StubFile(id="red", is_color_variant=True, color_variant_hex="#FF0000")
BLUE_FILE = StubFile(id="blue", is_color_variant=True, color_variant_hex="#0000FF")


def _item(customizations=None, has_customizations=False):
    return ItemToResolve(
        item_id="item-1",
        product_id="prod-1",
        has_customizations=has_customizations,
        customizations=customizations,
    )


class TestProductWithoutCustomization:
    def test_delivers_general_files(self):
        result = resolve(_item(), StubProduct(False), [GENERAL, RED_FILE])
        assert result.outcome == DeliveryOutcome.AUTO_DELIVER
        assert result.file_ids == ["general"]

    def test_customization_payload_is_ignored(self):
        payload = Customizations(text_changes=(TextChange(field="title", value="x"),))
        result = resolve(_item(payload, has_customizations=True), StubProduct(False), [GENERAL])
        assert result.outcome == DeliveryOutcome.AUTO_DELIVER

    def test_no_files_is_a_fulfillment_gap(self):
        result = resolve(_item(), StubProduct(False), [])
        assert result.outcome == DeliveryOutcome.NEEDS_CUSTOM_WORK
        assert result.files == ()
        assert result.note


class TestCustomizableProduct:
    def test_real_customization_needs_custom_work(self):
        payload = Customizations(colors=(RED,), text_changes=(TextChange(field="title", value="Sara"),))
        result = resolve(_item(payload), StubProduct(True), [GENERAL, RED_FILE])
        assert result.outcome == DeliveryOutcome.NEEDS_CUSTOM_WORK
        assert result.files == ()

    def test_flagged_item_needs_custom_work(self):
        result = resolve(_item(has_customizations=True), StubProduct(True), [GENERAL])
        assert result.outcome == DeliveryOutcome.NEEDS_CUSTOM_WORK

    def test_no_colors_delivers_general_files(self):
        result = resolve(_item(Customizations()), StubProduct(True), [GENERAL, RED_FILE])
        assert result.outcome == DeliveryOutcome.AUTO_DELIVER
        assert result.file_ids == ["general"]

    def test_selected_color_delivers_its_variant(self):
        result = resolve(_item(Customizations(colors=(RED,))), StubProduct(True), [GENERAL, RED_FILE, BLUE_FILE])
        assert result.outcome == DeliveryOutcome.AUTO_DELIVER
        assert result.file_ids == ["red"]

    def test_every_selected_color_is_delivered(self):
        result = resolve(_item(Customizations(colors=(RED, BLUE))), StubProduct(True), [RED_FILE, BLUE_FILE])
        assert sorted(result.file_ids) == ["blue", "red"]

    def test_color_match_ignores_hex_case(self):
        lower = StubFile(id="red-lower", is_color_variant=True, color_variant_hex="#ff0000")
        result = resolve(_item(Customizations(colors=(RED,))), StubProduct(True), [lower])
        assert result.file_ids == ["red-lower"]

    def test_missing_color_variant_needs_follow_up(self):
        result = resolve(_item(Customizations(colors=(RED, BLUE))), StubProduct(True), [RED_FILE])
        assert result.outcome == DeliveryOutcome.NEEDS_CUSTOM_WORK
        assert "Blue" in result.note


class TestFileSelection:
    def test_expired_and_inactive_files_are_skipped(self):
        past = datetime.now(UTC) - timedelta(days=1)
        files = [
            StubFile(id="expired", expires_at=past),
            StubFile(id="inactive", is_active=False),
            GENERAL,
        ]
        assert [f.id for f in general_files(files)] == ["general"]

    def test_bespoke_order_files_are_never_offered(self):
        bespoke = StubFile(id="bespoke", order_id="ord-9")
        assert general_files([bespoke]) == []
        tinted = StubFile(id="bespoke-red", is_color_variant=True, color_variant_hex="#FF0000", order_id="ord-9")
        assert color_variant_files([tinted], "#FF0000") == []

    def test_missing_product_raises(self):
        with pytest.raises(ProductNotFound) as exc:
            resolve(_item(), None, [GENERAL])
        assert exc.value.product_id == "prod-1"
