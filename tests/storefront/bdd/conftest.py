"""Shared BDD fixtures and step definitions for order delivery."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when
from storefront.access.order_design_file import grants_for_order
from storefront.order.order import Order


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def cart():
    """Lines the customer is about to check out."""
    return []


# ---------------------------------------------------------------------------
# Given steps: catalogue
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a ready-made product "{name}" priced {price:f}'), target_fixture="product")
def ready_made_product(make_product, make_design_file, name, price):
    product = make_product(name=name, price=price)
    make_design_file(product, file_name=f"{product.slug}.zip")
    return product


@given(parsers.cfparse('a customizable product "{name}" priced {price:f}'), target_fixture="product")
def customizable_product(make_product, make_design_file, name, price):
    product = make_product(name=name, price=price, enable_customizations=True)
    make_design_file(product, file_name=f"{product.slug}.zip")
    return product


@given(parsers.cfparse('the product has a "{color}" variant file with hex "{hex_code}"'))
def color_variant_file(make_design_file, product, color, hex_code):
    make_design_file(product, file_name=f"{color.lower()}.zip", color_hex=hex_code, color_name=color)


# ---------------------------------------------------------------------------
# Given steps: checkout
# ---------------------------------------------------------------------------
@given("the customer adds the product to the cart")
def add_plain_line(cart, line, product):
    cart.append(line(product))


@given(parsers.cfparse('the customer adds the product in "{color}" with hex "{hex_code}"'))
def add_color_line(cart, line, product, color, hex_code):
    cart.append(line(product, customizations={"colors": [{"name": color, "hex": hex_code}]}))


@given(parsers.cfparse('the customer adds the product with the note "{notes}"'))
def add_customized_line(cart, line, product, notes):
    cart.append(line(product, customizations={"customization_notes": notes}))


@given("the customer checks out", target_fixture="order")
def checkout(cart, place_order):
    return place_order(cart)


@given("the provider confirmed the payment", target_fixture="order")
def confirmed_payment(order, pay):
    _, order = pay(order, event_id="WH-BDD-1")
    return order


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse("the provider confirms a payment of {amount:f} {currency}"),
    target_fixture="outcome",
)
def provider_confirms_payment(order, pay, amount, currency):
    outcome, _ = pay(order, amount=amount, currency=currency)
    return outcome


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert _reload(order).order_status == status


@then(parsers.cfparse('the payment status is "{status}"'))
def payment_status_is(order, status):
    assert _reload(order).payment_status == status


@then(parsers.cfparse("the customer can download {count:d} design files"))
def active_grant_count(order, count):
    assert len([g for g in grants_for_order(order.id) if g.is_active]) == count


@then("the customer cannot download anything yet")
def no_grants(order):
    assert grants_for_order(order.id) == []


@then(parsers.cfparse('the event is acknowledged as "{expected}"'))
def event_outcome_is(outcome, expected):
    assert outcome == expected


@then("the order is flagged for review")
def flagged(order):
    assert _reload(order).requires_review is True


@then(parsers.cfparse('the order history mentions "{text}"'))
def history_mentions(order, text):
    assert any(text in (entry.note or "") for entry in _reload(order).timeline())


@then("the action fails with a validation error")
def action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)
