"""Model tests: publish targets, option headers, response decoding."""

import pytest
from pydantic import ValidationError

from qstash_client import Event, EventState, Message, PublishOptions, PublishResponse, PublishTopic, PublishUrl


def test_publish_url_requires_absolute_http_url():
    assert PublishUrl(url="https://example.com/hook").destination == "https://example.com/hook"

    with pytest.raises(ValidationError):
        PublishUrl(url="example.com/hook")


def test_publish_topic_requires_name():
    assert PublishTopic(name="orders").destination == "orders"

    with pytest.raises(ValidationError):
        PublishTopic(name="")


def test_default_options_only_set_method():
    assert PublishOptions().to_headers() == {"Upstash-Method": "POST"}


def test_all_options_render_as_headers():
    options = PublishOptions(
        headers={"X-Custom": "1"},
        delay=30,
        not_before=1700000000,
        deduplication_id="dedup-1",
        content_based_deduplication=False,
        retries=0,
        callback="https://example.com/callback",
        method="delete",
    )

    assert options.to_headers() == {
        "X-Custom": "1",
        "Upstash-Method": "DELETE",
        "Upstash-Delay": "30s",
        "Upstash-Not-Before": "1700000000",
        "Upstash-Deduplication-Id": "dedup-1",
        "Upstash-Content-Based-Deduplication": "false",
        "Upstash-Retries": "0",
        "Upstash-Callback": "https://example.com/callback",
    }


def test_option_headers_override_custom_headers():
    options = PublishOptions(headers={"Upstash-Method": "GET"}, method="PATCH")
    assert options.to_headers()["Upstash-Method"] == "PATCH"


@pytest.mark.parametrize("field", ["delay", "not_before", "retries"])
def test_negative_option_values_are_rejected(field):
    with pytest.raises(ValidationError):
        PublishOptions(**{field: -1})


def test_invalid_method_is_rejected():
    with pytest.raises(ValidationError):
        PublishOptions(method="GET\r\nX-Injected: 1")


def test_publish_response_decodes_camel_case():
    response = PublishResponse.model_validate({"messageId": "msg_1", "deduplicated": True})

    assert response.message_id == "msg_1"
    assert response.deduplicated is True
    assert response.error is None


def test_unknown_event_state_decodes_as_error():
    event = Event.model_validate({"time": 1, "state": "SOMETHING_NEW", "messageId": "msg_1"})
    assert event.state is EventState.ERROR

    event = Event.model_validate({"time": 1, "state": "RETRY", "messageId": "msg_1"})
    assert event.state is EventState.RETRY


def test_message_requires_id_and_created_at():
    with pytest.raises(ValidationError):
        Message.model_validate({"url": "https://example.com"})


def test_option_headers_replace_custom_headers_case_insensitively():
    headers = PublishOptions(headers={"upstash-retries": "9", "x-trace": "1"}, retries=2).to_headers()

    assert headers.get_list("Upstash-Retries") == ["2"]
    assert headers["X-Trace"] == "1"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"deduplication_id": "jöb-1"},
        {"callback": "https://example.com/ré"},
        {"headers": {"X-Name": "Zoë"}},
        {"headers": {"X-Näme": "1"}},
        {"headers": {"X-Split": "a\r\nb"}},
        {"method": "PÜT"},
    ],
)
def test_values_not_sendable_as_headers_are_rejected(kwargs):
    with pytest.raises(ValidationError):
        PublishOptions(**kwargs)


def test_assignment_is_validated():
    options = PublishOptions()
    with pytest.raises(ValidationError):
        options.deduplication_id = "jöb-1"
