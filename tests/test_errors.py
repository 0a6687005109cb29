from __future__ import annotations

from errors import (
    AUTH_FAILED,
    Informational,
    SessionWarning,
    Unauthorized,
    Unavailable,
    classify_recognition_exception,
)


def test_each_error_kind_has_its_own_alert_title() -> None:
    titles = {
        Unauthorized("x").title,
        Unavailable("x").title,
        SessionWarning("x").title,
        Informational("x").title,
    }
    assert titles == {
        "Speech Authorization Error",
        "Speech to Text Error",
        "Speech to Text Warning",
        "Speech to Text",
    }


def test_session_errors_compare_by_kind_and_message() -> None:
    assert Unauthorized("nope") == Unauthorized("nope")
    assert Unauthorized("nope") != Unavailable("nope")
    assert Unavailable("a") != Unavailable("b")
    assert str(Unavailable("Speech Recognition Not Available.")) == "Speech Recognition Not Available."
    assert repr(SessionWarning("w")) == "SessionWarning('w')"


def test_classify_auth_failure() -> None:
    error = classify_recognition_exception(Exception("Invalid API key provided"))
    assert error.code == AUTH_FAILED
    assert error.retryable is False


def test_only_network_failures_are_retryable() -> None:
    assert classify_recognition_exception(Exception("read timeout")).retryable is True
    assert classify_recognition_exception(Exception("unexpected payload")).retryable is False
