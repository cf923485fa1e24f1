from decimal import Decimal

import pytest

from market.domain.errors import AuthError, ServerRejection, ValidationError
from market.domain.schemas import ReportType


def test_review_delivered_order(market, vendor_market, delivered_order):
    review = market.reviews.submit(delivered_order, 5, "  Fresh and ripe  ")

    assert review.rating == 5
    assert review.comment == "Fresh and ripe"
    assert review.product_name == "Avocado (kg)"
    assert [r.id for r in vendor_market.reviews.list_reviews()] == [review.id]


def test_blank_comment_is_stored_as_null(market, delivered_order):
    assert market.reviews.submit(delivered_order, 4, "   ").comment is None


def test_second_review_is_rejected(market, delivered_order):
    market.reviews.submit(delivered_order, 5)

    with pytest.raises(ServerRejection) as exc:
        market.reviews.submit(delivered_order, 1)
    assert exc.value.status_code == 409


def test_undelivered_order_cannot_be_reviewed(market, paid_order):
    with pytest.raises(ValidationError):
        market.reviews.submit(paid_order, 5)


@pytest.mark.parametrize("rating", [0, 6, 4.5, True, "5"])
def test_rating_must_be_one_to_five(market, delivered_order, rating):
    with pytest.raises(ValidationError):
        market.reviews.submit(delivered_order, rating)


def test_report_vendor(market, vendor_market, paid_order):
    report = market.reports.report_vendor(paid_order, " Never arrived ", ReportType.NON_DELIVERY)

    assert report.vendor_id == paid_order.vendor_id
    assert report.product_id == paid_order.product_id
    assert report.report_type == "non_delivery"
    assert report.description == "Never arrived"
    assert report.status == "pending"
    assert vendor_market.reports.vendor_report_count() == 1


@pytest.mark.parametrize("description, report_type", [("", "other"), ("Bruised", "late")])
def test_report_needs_description_and_known_type(market, paid_order, description, report_type):
    with pytest.raises(ValidationError):
        market.reports.report_vendor(paid_order, description, report_type)


def test_sales_and_purchase_reports(market, vendor_market, delivered_order):
    market.orders.verify_delivery(delivered_order.id, received=True)

    sales = vendor_market.reports.sales_report()
    assert sales["total_orders"] == 1
    assert Decimal(str(sales["total_amount"])) == Decimal("200.00")
    assert Decimal(str(sales["released_amount"])) == Decimal("200.00")
    assert sales["breakdown"][0]["name"] == "Avocado (kg)"
    assert sales["breakdown"][0]["quantity"] == 2

    purchases = market.reports.purchase_report()
    assert purchases["total_orders"] == 1
    assert purchases["breakdown"][0]["name"] == "shamba_fresh"


def test_reports_are_limited_to_their_role(market, vendor_market):
    with pytest.raises(AuthError):
        market.reports.sales_report()
    with pytest.raises(AuthError):
        vendor_market.reports.purchase_report()
    with pytest.raises(AuthError):
        market.reports.vendor_report_count()
