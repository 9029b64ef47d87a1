"""Tests for DesignFile and OrderDesignFile — availability, limits and expiry."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError
from storefront.access.order_design_file import OrderDesignFile
from storefront.catalogue.design_file import DesignFile


def _file(**details):
    return DesignFile.register(
        product_id="prod-1",
        file_name=details.pop("file_name", "overlay.zip"),
        file_url="https://cdn.test/overlay.zip",
        **details,
    )


class TestDesignFile:
    def test_general_file(self):
        design_file = _file(mime_type="application/zip")
        assert not design_file.is_color_variant
        assert design_file.file_type == "archive"
        assert design_file.is_available()

    def test_color_variant_normalizes_hex(self):
        design_file = _file(color_variant_name="Red", color_variant_hex="#ff0000")
        assert design_file.is_color_variant
        assert design_file.color_variant_hex == "#FF0000"
        assert design_file.matches_color("#FF0000")
        assert not design_file.matches_color("#00FF00")

    def test_color_variant_requires_hex(self):
        with pytest.raises(ValidationError):
            _file(color_variant_name="Red")

    def test_expired_file_is_unavailable(self):
        design_file = _file(expires_at=datetime.now(UTC) - timedelta(minutes=1))
        assert design_file.is_expired()
        assert not design_file.is_available()

    def test_download_limit(self):
        design_file = _file(max_downloads=2)
        design_file.record_download()
        assert not design_file.is_limit_reached()
        design_file.record_download()
        assert design_file.is_limit_reached()

    def test_deactivated_file_is_unavailable(self):
        design_file = _file()
        design_file.deactivate()
        assert not design_file.is_available()

    def test_video_detection(self):
        assert _file(mime_type="video/mp4").is_video()
        assert not _file(mime_type="image/png").is_video()


class _Order:
    id = "ord-1"
    order_number = "PD-2026-001"
    customer_id = "cust-1"


class TestOrderDesignFile:
    def test_grant_copies_order_and_file(self):
        grant = OrderDesignFile.grant(_Order(), _file())
        assert grant.order_number == "PD-2026-001"
        assert grant.customer_id == "cust-1"
        assert grant.product_id == "prod-1"
        assert grant.is_active

    def test_record_download_stamps_first_and_last(self):
        grant = OrderDesignFile.grant(_Order(), _file())
        grant.record_download()
        first = grant.first_downloaded_at
        grant.record_download()
        assert grant.download_count == 2
        assert grant.first_downloaded_at == first
        assert grant.last_downloaded_at >= first

    def test_grant_limit_is_independent_of_file(self):
        grant = OrderDesignFile.grant(_Order(), _file(), max_downloads=1)
        grant.record_download()
        assert grant.is_limit_reached()

    def test_extend_never_shortens(self):
        later = datetime.now(UTC) + timedelta(days=30)
        grant = OrderDesignFile.grant(_Order(), _file(), expires_at=later)
        grant.extend_until(later - timedelta(days=10))
        assert grant.expires_at == later
        grant.extend_until(later + timedelta(days=5))
        assert grant.expires_at == later + timedelta(days=5)

    def test_expired_grant(self):
        grant = OrderDesignFile.grant(_Order(), _file(), expires_at=datetime.now(UTC) - timedelta(seconds=1))
        assert grant.is_expired()
