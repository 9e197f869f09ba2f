"""
Unit tests for session bookkeeping and the key/value storage.
Run: pytest tests/unit/test_session.py -v
"""
import time
from unittest.mock import Mock

import pytest

from app.core.errors import GatewayError, SessionExpiredError, SubscriptionRequiredError
from app.core.session import Session, SessionStore, hash_token, user_key
from app.core.storage import MemoryStorage


@pytest.fixture
def sessions():
    return SessionStore(MemoryStorage())


def test_user_key():
    assert user_key(7) == "user_7"
    assert user_key("user_7") == "user_7"
    assert user_key(None) == "anon"
    assert user_key(" ") == "anon"


def test_memory_storage_round_trip_and_invalid_values():
    storage = MemoryStorage()
    storage.set("a", {"rows": [1, 2]})
    assert storage.get("a") == {"rows": [1, 2]}
    storage.remove("a")
    assert storage.get("a") is None
    storage.remove("inexistente")


def test_session_freshness():
    session = Session(token="t", user_id="1", created_at=100.0)
    assert session.is_fresh(5, now=104.0)
    assert not session.is_fresh(5, now=106.0)


def test_storage_keeps_only_token_hash(sessions):
    sessions.save(Session(token="segredo", user_id="7"))
    stored = sessions.storage.get("session:user_7")
    assert "token" not in stored
    assert stored["token_hash"] == hash_token("segredo")
    assert sessions.get("7").token == ""


def test_known_token_skips_validation(sessions):
    validate = Mock()
    first = sessions.register(Session(token="tok-1", user_id="7", created_at=time.time() - 60), validate)

    same = sessions.resolve("tok-1", "7", validate)

    assert validate.call_count == 1
    assert same.created_at == first.created_at
    assert same.token == "tok-1"


def test_new_token_is_validated_before_replacing_session(sessions):
    sessions.register(Session(token="tok-1", user_id="7", created_at=time.time() - 60), Mock())
    validate = Mock()

    renewed = sessions.resolve("tok-2", "7", validate)

    validate.assert_called_once()
    assert validate.call_args.args[0].token == "tok-2"
    assert renewed.is_fresh(5)
    assert sessions.get("7").token_hash == hash_token("tok-2")


@pytest.mark.parametrize(
    "error",
    [GatewayError("Token inválido", status_code=401), SessionExpiredError()],
)
def test_rejected_token_keeps_stored_session(sessions, error):
    original = sessions.register(Session(token="tok-1", user_id="7"), Mock())
    validate = Mock(side_effect=error)

    with pytest.raises(SessionExpiredError):
        sessions.resolve("forjado", "7", validate)

    assert sessions.get("7").token_hash == original.token_hash


def test_backend_unavailable_does_not_register(sessions):
    validate = Mock(side_effect=GatewayError("fora do ar", status_code=500))
    with pytest.raises(GatewayError) as exc:
        sessions.resolve("tok", "7", validate)
    assert not isinstance(exc.value, SessionExpiredError)
    assert sessions.get("7") is None


def test_inactive_subscription_still_registers(sessions):
    validate = Mock(side_effect=SubscriptionRequiredError())
    session = sessions.resolve("tok", "7", validate)
    assert sessions.get("7").token_hash == session.token_hash


def test_clear_removes_session(sessions):
    sessions.save(Session(token="t", user_id="9", user={"email": "a@b.com"}))
    assert sessions.get("9").user == {"email": "a@b.com"}
    sessions.clear("9")
    assert sessions.get("9") is None
