from app.core.notifier import Action, ChangeNotifier, Resource


def test_failing_listener_does_not_block_the_others():
    notifier = ChangeNotifier()
    received = []

    def broken(event):
        raise RuntimeError("socket closed")

    notifier.subscribe(broken)
    notifier.subscribe(received.append)

    assert notifier.notify(Resource.payments, Action.delete, "p-1") == 1
    message = received[0].as_message()
    assert message["type"] == "sync"
    assert (message["resource"], message["action"], message["id"]) == ("payments", "delete", "p-1")
    assert message["timestamp"]


def test_unsubscribed_listener_stops_receiving():
    notifier = ChangeNotifier()
    received = []
    notifier.subscribe(received.append)
    notifier.unsubscribe(received.append)
    notifier.unsubscribe(received.append)

    assert notifier.notify("register_sessions", "create") == 0
    assert received == []
