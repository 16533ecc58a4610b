"""Tests for the event bus."""

from datetime import datetime

from sitecontent.storage.events import Event, EventBus, EventPublisher, EventType


def make_event(event_type=EventType.RECORD_CREATED, **data):
    return Event(type=event_type, timestamp=datetime.now(), data=data)


class TestEventBus:
    def test_subscriber_receives_matching_events(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventType.RECORD_CREATED, received.append)

        bus.publish(make_event(collection="news", record_id="n1"))
        bus.publish(make_event(EventType.RECORD_DELETED))

        assert len(received) == 1
        assert received[0].collection == "news"
        assert received[0].record_id == "n1"

    def test_failing_subscriber_does_not_stop_delivery(self, caplog):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(EventType.RECORD_CREATED, broken)
        bus.subscribe(EventType.RECORD_CREATED, received.append)

        bus.publish(make_event())

        assert len(received) == 1
        assert "Subscriber failed handling RECORD_CREATED" in caplog.text

    def test_history_filtered_and_limited(self):
        bus = EventBus()
        for _ in range(3):
            bus.publish(make_event())
        bus.publish(make_event(EventType.CACHE_INVALIDATED))

        assert len(bus.get_history()) == 4
        assert len(bus.get_history(EventType.RECORD_CREATED)) == 3
        assert len(bus.get_history(limit=2)) == 2

        bus.clear_history()
        assert bus.get_history() == []

    def test_history_is_bounded(self):
        bus = EventBus()
        for index in range(1005):
            bus.publish(make_event(index=index))

        history = bus.get_history(limit=2000)
        assert len(history) == 1000
        assert history[0].data["index"] == 5


class TestEventPublisher:
    def test_without_bus_is_silent(self):
        EventPublisher()._publish_event(EventType.RECORD_CREATED, collection="news")

    def test_publishes_to_bus(self):
        bus = EventBus()
        publisher = EventPublisher(bus)
        publisher._publish_event(EventType.COLLECTION_SAVED, collection="about")

        (event,) = bus.get_history()
        assert event.type is EventType.COLLECTION_SAVED
        assert event.collection == "about"
        assert event.record_id is None
