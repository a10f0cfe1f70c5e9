"""Tests del cliente HTTP de reconocimiento (sesión requests mockeada)."""
from unittest import mock

import pytest
import requests

from platelog.domain.errors import ServiceError, TransportError
from platelog.infrastructure.Recognition.dummy_plate_recognizer import DummyPlateRecognizer
from platelog.infrastructure.Recognition.plate_recognizer_client import PlateRecognizerClient

API_URL = "https://api.platerecognizer.com/v1/plate-reader/"


def make_response(status=200, payload=None, text=""):
    response = mock.Mock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def make_client(response=None, error=None, **kwargs):
    session = mock.Mock()
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    return PlateRecognizerClient(API_URL, api_token="secret", session=session, **kwargs), session


def test_request_carries_token_image_and_region(frame):
    client, session = make_client(make_response(payload={"results": []}))

    client.recognize(frame, region="ar")

    args, kwargs = session.post.call_args
    assert args == (API_URL,)
    assert kwargs["headers"] == {"Authorization": "Token secret"}
    assert kwargs["data"]["upload"] == frame.to_base64()
    assert kwargs["data"]["regions"] == "ar"
    assert kwargs["timeout"] == 15.0


def test_default_region_is_used(frame):
    client, session = make_client(make_response(payload={"results": []}))
    client.recognize(frame)
    assert session.post.call_args.kwargs["data"]["regions"] == "br"


def test_parses_results_and_keeps_only_mercosul(frame):
    payload = {
        "results": [
            {"plate": "abc1d23", "score": 0.91, "region": {"code": "br"}},
            {"plate": "abc1234", "score": 0.88, "region": {"code": "br"}},
            {"plate": "", "score": 0.99},
        ]
    }
    client, _ = make_client(make_response(payload=payload))

    plates = client.recognize(frame)

    assert len(plates) == 1
    assert plates[0].text == "ABC1D23"
    assert plates[0].confidence == 0.91
    assert plates[0].region == "br"


def test_mercosul_filter_can_be_disabled(frame):
    payload = {"results": [{"plate": "abc1234", "score": 0.88}]}
    client, _ = make_client(make_response(payload=payload), mercosul_only=False)

    plates = client.recognize(frame)

    assert [p.text for p in plates] == ["ABC1234"]
    assert plates[0].region == "unknown"


def test_parses_proxy_payload(frame):
    payload = {"plates": [{"plate": "XYZ9W87", "confidence": 0.77, "region": "br"}]}
    client, _ = make_client(make_response(payload=payload))

    plates = client.recognize(frame)

    assert [(p.text, p.confidence, p.region) for p in plates] == [("XYZ9W87", 0.77, "br")]


def test_connection_failure_is_transport_error(frame):
    client, _ = make_client(error=requests.ConnectionError("connection refused"))
    with pytest.raises(TransportError):
        client.recognize(frame)


def test_timeout_is_transport_error(frame):
    client, _ = make_client(error=requests.Timeout("read timed out"))
    with pytest.raises(TransportError):
        client.recognize(frame)


def test_http_error_is_service_error_with_status(frame):
    client, _ = make_client(make_response(status=403, text='{"detail":"Invalid token"}'))

    with pytest.raises(ServiceError) as excinfo:
        client.recognize(frame)

    assert excinfo.value.status == 403
    assert "Invalid token" in excinfo.value.details


def test_invalid_json_is_service_error(frame):
    client, _ = make_client(make_response(payload=ValueError("Expecting value")))
    with pytest.raises(ServiceError):
        client.recognize(frame)


def test_error_payload_is_service_error(frame):
    payload = {"error": "Failed to recognize plate", "details": "quota exceeded"}
    client, _ = make_client(make_response(payload=payload))

    with pytest.raises(ServiceError) as excinfo:
        client.recognize(frame)

    assert excinfo.value.details == "quota exceeded"


@pytest.mark.parametrize("payload", [
    {"plates": [{"plate": "ABC1D23", "confidence": "high"}]},
    {"plates": ["ABC1D23"]},
    {"results": [{"plate": "ABC1D23", "score": [0.9]}]},
    {"results": 42},
])
def test_malformed_payload_is_service_error(frame, payload):
    client, _ = make_client(make_response(payload=payload))

    with pytest.raises(ServiceError) as excinfo:
        client.recognize(frame)

    assert excinfo.value.status == 200


def test_empty_url_is_transport_error(frame):
    client = PlateRecognizerClient("", session=mock.Mock())
    with pytest.raises(TransportError):
        client.recognize(frame)


def test_dummy_recognizer(frame):
    plates = DummyPlateRecognizer().recognize(frame, region="br")
    assert [(p.text, p.region) for p in plates] == [("FAK1E23", "br")]
