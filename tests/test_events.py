from app.services.events import EventBus, FavoriteToggled


def test_publish_reaches_every_subscriber():
    bus = EventBus()
    first, second = [], []
    bus.subscribe(FavoriteToggled, first.append)
    bus.subscribe(FavoriteToggled, second.append)

    event = FavoriteToggled(user_id=1, equipment_id=2, is_favorite=True)
    bus.publish(event)
    assert first == [event]
    assert second == [event]


def test_failing_handler_does_not_stop_others(caplog):
    bus = EventBus()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(FavoriteToggled, broken)
    bus.subscribe(FavoriteToggled, received.append)
    bus.publish(FavoriteToggled(user_id=1, equipment_id=2, is_favorite=False))

    assert len(received) == 1
    assert "Error in handler" in caplog.text


def test_unsubscribe_and_unrelated_events():
    bus = EventBus()
    received = []
    bus.subscribe(FavoriteToggled, received.append)
    bus.unsubscribe(FavoriteToggled, received.append)
    bus.publish(FavoriteToggled(user_id=1, equipment_id=2, is_favorite=True))
    bus.publish(object())
    assert received == []
