import asyncio
import json

import httpx
import pytest

from mzansimed.messaging import InstructionDispatcher


def test_send_text(dispatcher, sent_messages):
    """Text messages go to the phone number's messages endpoint."""
    result = asyncio.run(dispatcher.send_text("27821234567", "Paracetamol\nℹ️ Take 1 tablet once daily."))
    assert result["messages"][0]["id"] == "wamid.test"

    request = sent_messages[0]
    assert str(request.url) == "https://graph.example.test/v22.0/1234567890/messages"
    assert request.headers["Authorization"] == "Bearer test-token"
    payload = json.loads(request.content)
    assert payload["type"] == "text"
    assert payload["to"] == "27821234567"
    assert payload["text"]["body"].startswith("Paracetamol")


def test_send_template(dispatcher, sent_messages):
    asyncio.run(dispatcher.send_template("27821234567", "medication_ready", "zu"))
    payload = json.loads(sent_messages[0].content)
    assert payload["template"] == {"name": "medication_ready", "language": {"code": "zu"}}


def test_unconfigured():
    dispatcher = InstructionDispatcher(token="", phone_number_id="")
    assert not dispatcher.configured
    with pytest.raises(RuntimeError):
        asyncio.run(dispatcher.send_text("27821234567", "hello"))


def test_api_error():
    """Error responses from the API are raised."""
    dispatcher = InstructionDispatcher(
        token="test-token",
        phone_number_id="1234567890",
        transport=httpx.MockTransport(lambda request: httpx.Response(400, json={"error": {"message": "bad"}})),
    )
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(dispatcher.send_text("27821234567", "hello"))
