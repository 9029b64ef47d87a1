import json

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _adapters(tmp_path):
    """Fresh fake gateway, channels and a throwaway file store for every test."""
    from storefront.notifications.channel import reset_channels
    from storefront.payments.gateway import reset_gateway
    from storefront.storage import set_storage
    from storefront.storage.local_adapter import LocalFileStorage

    reset_gateway()
    reset_channels()
    set_storage(LocalFileStorage(root=str(tmp_path / "files"), base_url="https://designs.test", signing_key="test-signing-key"))
    yield
    reset_gateway()
    reset_channels()

    from storefront.storage import reset_storage

    reset_storage()


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------
@pytest.fixture()
def gateway():
    from storefront.payments.gateway import get_gateway

    return get_gateway()


@pytest.fixture()
def mailbox():
    from storefront.notifications.channel import get_channel

    return get_channel("email")


@pytest.fixture()
def chat():
    from storefront.notifications.channel import get_channel

    return get_channel("chat")


@pytest.fixture()
def storage():
    from storefront.storage import get_storage

    return get_storage()


# ---------------------------------------------------------------------------
# Catalogue builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_product():
    from protean import current_domain
    from storefront.catalogue.product import Product

    counter = {"n": 0}

    def _make(name=None, price=20.0, enable_customizations=False, colors=None, **details):
        counter["n"] += 1
        name = name or f"Overlay Pack {counter['n']}"
        product = Product.create(
            name=name,
            slug=details.pop("slug", None) or name.lower().replace(" ", "-"),
            price=price,
            enable_customizations=enable_customizations,
            colors=colors,
            **details,
        )
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def make_design_file():
    from protean import current_domain
    from storefront.catalogue.design_file import DesignFile

    def _make(product, file_name="overlay.zip", color_hex=None, color_name=None, **details):
        design_file = DesignFile.register(
            product_id=str(product.id),
            file_name=file_name,
            file_url=details.pop("file_url", f"https://cdn.test/{file_name}"),
            mime_type=details.pop("mime_type", "application/zip"),
            color_variant_name=color_name or (color_hex and f"Color {color_hex}"),
            color_variant_hex=color_hex,
            **details,
        )
        current_domain.repository_for(DesignFile).add(design_file)
        return design_file

    return _make


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
def cart_line(product, quantity=1, unit_price=None, customizations=None, has_customizations=False):
    """A checkout line for ``product`` as the storefront cart submits it."""
    price = product.price if unit_price is None else unit_price
    return {
        "product_id": str(product.id),
        "product_name": product.name,
        "product_slug": product.slug,
        "quantity": quantity,
        "original_price": price,
        "unit_price": price,
        "total_price": round(price * quantity, 2),
        "has_customizations": has_customizations,
        "customizations": customizations,
    }


@pytest.fixture()
def line():
    return cart_line


@pytest.fixture()
def place_order():
    from protean import current_domain
    from storefront.order.creation import PlaceOrder
    from storefront.order.order import Order

    def _place(lines, customer_id="cust-001", discount=0.0, promo_codes=None, email="sara@example.com"):
        subtotal = round(sum(i["total_price"] for i in lines), 2)
        order_id = current_domain.process(
            PlaceOrder(
                customer_id=customer_id,
                customer_name="Sara",
                customer_email=email,
                items=json.dumps(lines),
                subtotal=subtotal,
                total_promo_discount=discount,
                total_price=round(subtotal - discount, 2),
                currency="USD",
                applied_promo_codes=json.dumps(promo_codes) if promo_codes else None,
            ),
            asynchronous=False,
        )
        return current_domain.repository_for(Order).get(order_id)

    return _place


@pytest.fixture()
def pay():
    """Deliver a matching capture-completed webhook for ``order``."""
    from protean import current_domain
    from storefront.order.order import Order
    from storefront.payments.reconciliation import ProcessPaymentEvent

    counter = {"n": 0}

    def _pay(order, amount=None, currency="USD", event_id=None):
        counter["n"] += 1
        outcome = current_domain.process(
            ProcessPaymentEvent(
                event_id=event_id or f"WH-{counter['n']:04d}",
                event_type="PAYMENT.CAPTURE.COMPLETED",
                order_number=order.order_number,
                provider_order_id=f"PP-{order.order_number}",
                capture_id=f"CAP-{counter['n']:04d}",
                amount=order.total_price if amount is None else amount,
                currency=currency,
            ),
            asynchronous=False,
        )
        return outcome, current_domain.repository_for(Order).get(order.id)

    return _pay
