"""Unit tests for the event dispatcher."""

import pytest

from imagekit.events import EventDispatcher, ImageDeleted, ImageSaved, ImageSaving


def test_typed_listeners_receive_only_their_event(dispatcher):
    saved = []
    dispatcher.subscribe(ImageSaved, saved.append)

    dispatcher.dispatch(ImageSaving(image=None, path='uploads'))
    dispatcher.dispatch(ImageSaved('a.jpg', 'uploads/', 'uploads/a.jpg'))

    assert saved == [ImageSaved('a.jpg', 'uploads/', 'uploads/a.jpg')]


def test_catch_all_runs_after_typed_listeners(dispatcher):
    calls = []
    dispatcher.subscribe(None, lambda event: calls.append('any'))
    dispatcher.subscribe(ImageDeleted, lambda event: calls.append('deleted'))

    dispatcher.dispatch(ImageDeleted('a.jpg', 'uploads', True))

    assert calls == ['deleted', 'any']


def test_listeners_run_in_subscription_order(dispatcher):
    calls = []
    for index in range(3):
        dispatcher.subscribe(ImageSaved, lambda event, index=index: calls.append(index))

    dispatcher.dispatch(ImageSaved('a.jpg', 'uploads/', 'uploads/a.jpg'))

    assert calls == [0, 1, 2]


def test_listen_decorator(dispatcher):
    seen = []

    @dispatcher.listen(ImageDeleted)
    def on_deleted(event):
        seen.append(event.image_name)

    dispatcher.dispatch(ImageDeleted('a.jpg', 'uploads', False))

    assert seen == ['a.jpg']
    assert on_deleted is not None


def test_unsubscribe(dispatcher):
    seen = []
    dispatcher.subscribe(ImageSaved, seen.append)
    dispatcher.unsubscribe(ImageSaved, seen.append)
    dispatcher.unsubscribe(ImageDeleted, seen.append)

    dispatcher.dispatch(ImageSaved('a.jpg', 'uploads/', 'uploads/a.jpg'))

    assert seen == []


def test_listener_errors_propagate(dispatcher):
    def boom(event):
        raise RuntimeError('listener failed')

    dispatcher.subscribe(ImageSaving, boom)

    with pytest.raises(RuntimeError, match='listener failed'):
        dispatcher.dispatch(ImageSaving(image=None, path='uploads'))


def test_clear():
    dispatcher = EventDispatcher()
    seen = []
    dispatcher.subscribe(None, seen.append)

    dispatcher.clear()
    dispatcher.dispatch(ImageDeleted('a.jpg', 'uploads', True))

    assert seen == []
