import pytest

from schemas.events import AdminAuth, AdminRefresh, SendMessage, SkipChat, Typing, parse_client_event


@pytest.mark.parametrize(
    "raw, expected_type, expected_data",
    [
        ('{"event": "sendMessage", "data": "hi"}', SendMessage, "hi"),
        ('{"event": "typing", "data": true}', Typing, True),
        ('{"event": "skipChat"}', SkipChat, None),
        ('{"event": "adminAuth", "data": "secret"}', AdminAuth, "secret"),
        ('{"event": "adminRefresh", "data": null}', AdminRefresh, None),
    ],
)
def test_known_events_parse(raw, expected_type, expected_data):
    event = parse_client_event(raw)

    assert isinstance(event, expected_type)
    assert event.data == expected_data


@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        '"sendMessage"',
        "[]",
        '{"data": "hi"}',
        '{"event": "shout", "data": "hi"}',
        '{"event": "sendMessage"}',
        '{"event": "sendMessage", "data": 42}',
        '{"event": "typing", "data": "yes"}',
        '{"event": "adminAuth", "data": {"password": "x"}}',
    ],
)
def test_malformed_frames_are_rejected(raw):
    assert parse_client_event(raw) is None
