import threading

import pytest

from market.domain.errors import NetworkError, ServerRejection, ValidationError
from market.utils.poller import IntervalPoller


def test_message_thread_and_unread_counts(market, vendor_market, customer_id, vendor_id):
    assert vendor_id in [u.id for u in market.messages.users()]

    sent = market.messages.send(vendor_id, "  Is the avocado ripe?  ")
    market.messages.send(vendor_id, "I need 3 kg")

    assert sent.content == "Is the avocado ripe?"
    assert sent.sender_username == "wanjiku"
    assert vendor_market.messages.unread_count() == 2

    convo = vendor_market.messages.conversations()[0]
    assert convo.id == customer_id
    assert convo.last_message == "I need 3 kg"

    thread = vendor_market.messages.thread(customer_id)
    assert [m.content for m in thread] == ["Is the avocado ripe?", "I need 3 kg"]
    assert vendor_market.messages.unread_count() == 0
    assert market.messages.unread_count() == 0


def test_thread_can_be_read_without_marking(market, vendor_market, customer_id, vendor_id):
    market.messages.send(vendor_id, "Hello")

    vendor_market.messages.thread(customer_id, mark_read=False)

    assert vendor_market.messages.unread_count() == 1


def test_blank_message_is_rejected(market, vendor_id):
    with pytest.raises(ValidationError):
        market.messages.send(vendor_id, "   ")


def test_conversation_poller_tick_delivers_latest(market, vendor_market, customer_id, vendor_id):
    seen = []
    poller = vendor_market.messages.conversation_poller(seen.append, interval=60)

    assert poller.tick()
    market.messages.send(vendor_id, "Karibu")
    assert poller.tick()

    assert seen[0] == []
    assert [c.id for c in seen[1]] == [customer_id]


def test_poller_drops_result_that_arrives_after_stop():
    seen = []
    poller = IntervalPoller(fetch=lambda: poller.token.cancel() or "late", on_result=seen.append, interval=1)

    assert not poller.tick()
    assert seen == []


def test_poller_reports_errors_and_keeps_going():
    errors = []

    def fetch():
        raise NetworkError("offline")

    poller = IntervalPoller(fetch=fetch, on_result=lambda r: None, interval=1, on_error=errors.append)

    assert not poller.tick()
    assert not poller.tick()
    assert [e.message for e in errors] == ["offline", "offline"]


def test_poller_thread_stops_on_teardown():
    ticked = threading.Event()
    poller = IntervalPoller(fetch=lambda: 1, on_result=lambda r: ticked.set(), interval=30, name="test")

    poller.start()
    assert ticked.wait(2)
    assert poller.running

    poller.stop()

    assert not poller.running
    assert poller.token.cancelled


def test_poller_can_restart_after_stop():
    ticks = []
    ticked = threading.Event()

    def on_result(r):
        ticks.append(r)
        ticked.set()

    poller = IntervalPoller(fetch=lambda: 1, on_result=on_result, interval=30, name="test")
    poller.start()
    assert ticked.wait(2)
    poller.stop()
    old_token = poller.token
    ticked.clear()

    poller.start()

    assert ticked.wait(2)
    assert poller.running
    assert not poller.token.cancelled
    assert old_token.cancelled
    poller.stop()
    assert not poller.running
    assert len(ticks) == 2


def test_vendor_profile_counts_followers_products_and_sales(market, vendor_id, paid_order):
    market.follows.follow(vendor_id)

    profile = market.catalog.vendor_profile(vendor_id)

    assert profile.username == "shamba_fresh"
    assert profile.location == "Nakuru"
    assert profile.follower_count == 1
    assert profile.product_count == 2
    assert profile.total_purchases == 1
    assert profile.verified


def test_customers_have_no_vendor_profile(market, customer_id):
    with pytest.raises(ServerRejection, match="Vendor not found") as exc:
        market.catalog.vendor_profile(customer_id)
    assert exc.value.status_code == 404


def test_follow_and_unfollow_vendor(market, vendor_id):
    follow = market.follows.follow(vendor_id)

    assert follow.vendor_username == "shamba_fresh"
    assert market.follows.is_following(vendor_id)

    market.follows.unfollow(vendor_id)
    assert not market.follows.is_following(vendor_id)
    assert market.follows.load() == []


def test_duplicate_follow_is_rejected(market, vendor_id):
    market.follows.follow(vendor_id)

    with pytest.raises(ServerRejection) as exc:
        market.follows.follow(vendor_id)

    assert exc.value.status_code == 409
    assert [f.vendor_id for f in market.follows.load()] == [vendor_id]


def test_only_vendors_can_be_followed(market, customer_id):
    with pytest.raises(ServerRejection, match="Vendor not found"):
        market.follows.follow(customer_id)
