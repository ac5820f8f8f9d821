from bedrock_relay.models import ANTHROPIC_VERSION, MAX_TOKENS
from bedrock_relay.translator import (
    INVOKE_TARGET,
    PROFILE_ARN_HEADER,
    PROFILE_ID_HEADER,
    build_headers,
    endpoint_url,
    translate,
)

from conftest import make_settings


def test_translate_appends_user_turn():
    history = [
        {"role": "user", "content": "hello"},
        {"role": "assistant", "content": "hi there"},
    ]
    payload = translate("how are you?", history)

    assert payload.anthropic_version == ANTHROPIC_VERSION
    assert payload.max_tokens == MAX_TOKENS
    assert payload.messages == history + [{"role": "user", "content": "how are you?"}]


def test_translate_leaves_history_untouched():
    history = [{"role": "user", "content": "prev"}]
    translate("next", history)
    assert history == [{"role": "user", "content": "prev"}]


def test_translate_does_not_merge_consecutive_user_turns():
    payload = translate("again", [{"role": "user", "content": "first"}])
    assert [m["role"] for m in payload.messages] == ["user", "user"]


def test_translate_with_empty_history():
    payload = translate("hi", ())
    assert payload.messages == [{"role": "user", "content": "hi"}]
    assert payload.model_dump() == {
        "anthropic_version": "bedrock-2023-05-31",
        "max_tokens": 4000,
        "messages": [{"role": "user", "content": "hi"}],
    }


def test_headers_without_inference_profile():
    headers = build_headers(make_settings(bearer_token="tok"))
    assert headers == {
        "Content-Type": "application/json",
        "Authorization": "Bearer tok",
        "X-Amz-Target": INVOKE_TARGET,
    }


def test_headers_with_inference_profile():
    headers = build_headers(make_settings(
        inference_profile_id="ip-123",
        inference_profile_arn="arn:aws:bedrock:ap-southeast-2:1:inference-profile/x",
    ))
    assert headers[PROFILE_ID_HEADER] == "ip-123"
    assert headers[PROFILE_ARN_HEADER] == "arn:aws:bedrock:ap-southeast-2:1:inference-profile/x"


def test_endpoint_url_encodes_model_id():
    url = endpoint_url(make_settings(region="us-east-1", model_id="anthropic.claude-v2:1"))
    assert url == "https://bedrock-runtime.us-east-1.amazonaws.com/model/anthropic.claude-v2%3A1/invoke"
