from app.core.notifier import ChangeNotifier, notifier


def get_notifier() -> ChangeNotifier:
    return notifier
