"""
Unit tests for the remote gateway: base URL policy, auth headers, 401 teardown
with grace period and 403 subscription redirect.
Run: pytest tests/unit/test_gateway.py -v
"""
import json
import time
from unittest.mock import Mock, patch

import pytest
import requests

from app.core.errors import GatewayError, SessionExpiredError, SubscriptionRequiredError
from app.core.session import Session
from app.gateway.client import RemoteGateway, resolve_base_url


def make_response(status_code=200, payload=None, text=None):
    resp = Mock()
    resp.status_code = status_code
    if payload is not None:
        resp.content = json.dumps(payload).encode()
        resp.json.return_value = payload
        resp.text = json.dumps(payload)
    else:
        resp.content = (text or "").encode()
        resp.json.side_effect = ValueError("no json")
        resp.text = text or ""
    return resp


@pytest.fixture
def old_session():
    return Session(token="tok", user_id="7", created_at=time.time() - 60)


@pytest.fixture
def http():
    return Mock(spec=requests.Session)


def make_gateway(session, http, on_expired=None):
    return RemoteGateway(session, on_session_expired=on_expired, base_url="http://api.test", http=http, timeout=5)


@pytest.mark.parametrize(
    "env_url,hostname,expected",
    [
        (None, None, "http://localhost:8000"),
        ("", "app.marketdash.com.br", "http://localhost:8000"),
        ("https://api.hml.marketdash.com.br", "hml.marketdash.com.br", "http://api.hml.marketdash.com.br"),
        ("https://api.hml.marketdash.com.br/", "hml.marketdash.com.br", "http://api.hml.marketdash.com.br"),
        ("https://api.marketdash.com.br", "marketdash.com.br", "https://api.marketdash.com.br"),
        ("https://api.hml.marketdash.com.br", None, "https://api.hml.marketdash.com.br"),
    ],
)
def test_resolve_base_url(env_url, hostname, expected):
    assert resolve_base_url(env_url, hostname) == expected


def test_requests_carry_token_user_header_and_query(old_session, http):
    http.request.return_value = make_response(200, [{"id": 1}])
    gateway = make_gateway(old_session, http)

    rows = gateway.fetch_dataset_rows(start_date="2024-01-01")

    assert rows == [{"id": 1}]
    args, kwargs = http.request.call_args
    assert args == ("GET", "http://api.test/api/v1/datasets/all/rows")
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["headers"]["X-User-Id"] == "7"
    assert kwargs["params"]["user_id"] == "7"
    assert kwargs["params"]["start_date"] == "2024-01-01"
    assert "end_date" not in kwargs["params"]
    assert kwargs["timeout"] == 5


def test_rows_envelope_is_unwrapped(old_session, http):
    http.request.return_value = make_response(200, {"rows": [{"id": 2}]})
    assert make_gateway(old_session, http).fetch_click_rows() == [{"id": 2}]


def test_bulk_create_sends_items(old_session, http):
    http.request.return_value = make_response(201, [{"id": 5}])
    created = make_gateway(old_session, http).bulk_create_ad_spends([{"amount": 1}])
    assert created == [{"id": 5}]
    assert http.request.call_args.kwargs["json"] == {"items": [{"amount": 1}]}


def test_401_tears_down_session(old_session, http):
    http.request.return_value = make_response(401, {"detail": "Token inválido ou expirado"})
    on_expired = Mock()
    gateway = make_gateway(old_session, http, on_expired)

    with pytest.raises(SessionExpiredError) as exc:
        gateway.list_ad_spends()

    assert exc.value.redirect_to == "/login"
    on_expired.assert_called_once_with("7")


def test_401_within_grace_period_keeps_session(http):
    fresh = Session(token="novo", user_id="7", created_at=time.time())
    http.request.return_value = make_response(401, {"detail": "Token inválido"})
    on_expired = Mock()
    gateway = make_gateway(fresh, http, on_expired)

    with pytest.raises(GatewayError) as exc:
        gateway.list_ad_spends()

    assert not isinstance(exc.value, SessionExpiredError)
    assert exc.value.status_code == 401
    on_expired.assert_not_called()


def test_403_subscription_redirects_to_checkout(old_session, http):
    http.request.return_value = make_response(403, {"detail": "Assinatura não está ativa"})
    with patch("app.gateway.client.settings") as mock_settings:
        mock_settings.SESSION_GRACE_SECONDS = 5
        mock_settings.SUBSCRIBE_URL = "https://checkout.test"
        with pytest.raises(SubscriptionRequiredError) as exc:
            make_gateway(old_session, http).fetch_dataset_rows()
    assert exc.value.checkout_url == "https://checkout.test"


def test_other_403_is_generic_error(old_session, http):
    http.request.return_value = make_response(403, {"detail": "Acesso negado"})
    with pytest.raises(GatewayError) as exc:
        make_gateway(old_session, http).delete_all_clicks()
    assert type(exc.value) is GatewayError
    assert exc.value.status_code == 403


def test_server_error_uses_body_text(old_session, http):
    http.request.return_value = make_response(500, text="Internal Server Error")
    with pytest.raises(GatewayError) as exc:
        make_gateway(old_session, http).delete_ad_spend(3)
    assert exc.value.message == "Internal Server Error"
    assert http.request.call_args.args[1] == "http://api.test/api/v1/ad_spends/3"


def test_connection_error_is_not_retried(old_session, http):
    http.request.side_effect = requests.ConnectionError("recusada")
    with pytest.raises(GatewayError):
        make_gateway(old_session, http).subscription_status()
    assert http.request.call_count == 1


def test_empty_body_returns_none(old_session, http):
    http.request.return_value = make_response(204, text="")
    assert make_gateway(old_session, http).delete_all_ad_spends() is None
