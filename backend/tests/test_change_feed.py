"""Tests for the change feed and the read model it drives."""

import threading
import time

import pytest

from proctrack import models
from proctrack.core.change_feed import COLLECTIONS, ChangeFeed
from proctrack.services.read_model import ReadModel, load_snapshot, publish_all


class TestChangeFeed:

    def test_publish_reaches_subscribers(self, feed):
        received = []
        feed.subscribe("records", received.append)
        feed.publish("records", [1, 2])
        assert received == [[1, 2]]

    def test_collections_are_separate(self, feed):
        received = []
        feed.subscribe("shelves", received.append)
        feed.publish("records", [1])
        assert received == []

    def test_unsubscribe_is_idempotent(self, feed):
        received = []
        unsubscribe = feed.subscribe("records", received.append)
        unsubscribe()
        unsubscribe()
        feed.publish("records", [1])
        assert received == []
        assert feed.subscriber_count("records") == 0

    def test_failing_subscriber_does_not_stop_others(self, feed):
        received = []

        def broken(snapshot):
            raise RuntimeError("boom")

        feed.subscribe("records", broken)
        feed.subscribe("records", received.append)
        feed.publish("records", ["a"])
        assert received == [["a"]]

    def test_unknown_collection(self, feed):
        with pytest.raises(ValueError):
            feed.subscribe("documents", print)
        with pytest.raises(ValueError):
            feed.publish("documents", [])

    def test_older_snapshot_cannot_overtake_newer(self, feed, read_model):
        """A slow writer's stale snapshot must land before a later writer's."""
        stale_loaded = threading.Event()
        release_stale = threading.Event()

        def slow_load():
            snapshot = ["before second write"]
            stale_loaded.set()
            release_stale.wait(timeout=5)
            return snapshot

        first = threading.Thread(target=feed.publish_latest, args=("records", slow_load))
        first.start()
        assert stale_loaded.wait(timeout=5)
        second = threading.Thread(
            target=feed.publish_latest, args=("records", lambda: ["after second write"])
        )
        second.start()
        time.sleep(0.05)
        release_stale.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert read_model.records == ("after second write",)

    def test_publish_latest_returns_size(self, feed):
        received = []
        feed.subscribe("users", received.append)
        assert feed.publish_latest("users", lambda: ["a", "b"]) == 2
        assert received == [["a", "b"]]


class TestReadModel:

    def test_loading_until_every_collection_arrives(self, feed):
        model = ReadModel()
        model.attach(feed)
        assert model.loading
        for collection in COLLECTIONS[:-1]:
            feed.publish(collection, [])
        assert model.loading
        feed.publish(COLLECTIONS[-1], [])
        assert not model.loading

    def test_snapshot_replaces_wholesale(self, read_model, feed):
        feed.publish("records", ["a", "b"])
        feed.publish("records", ["c"])
        assert read_model.records == ("c",)

    def test_detach_stops_updates(self):
        feed = ChangeFeed()
        model = ReadModel()
        detach = model.attach(feed)
        detach()
        feed.publish("records", ["a"])
        assert model.records == ()
        for collection in COLLECTIONS:
            assert feed.subscriber_count(collection) == 0

    def test_publish_all_primes_from_database(self, db, tree, read_model, feed):
        publish_all(db, feed)
        assert not read_model.loading
        assert [s.id for s in read_model.shelves] == ["s1", "s2"]
        assert [f.id for f in read_model.folders] == ["f1", "f2", "f3"]
        assert read_model.records == ()

    def test_load_snapshot_orders_by_code(self, db):
        db.add_all([
            models.Shelf(id="b", code="S2", name="Two"),
            models.Shelf(id="a", code="S1", name="One"),
        ])
        db.commit()
        assert [s.code for s in load_snapshot(db, "shelves")] == ["S1", "S2"]
