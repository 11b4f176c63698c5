import logging

import telnyx

from app.utils import sms


def test_dev_mode_logs_instead_of_sending(monkeypatch, caplog):
    monkeypatch.setattr(sms, "TELNYX_API_KEY", None)

    with caplog.at_level(logging.INFO):
        assert sms.send_sms("+61400000001", "hello") is True

    assert "DEV mode" in caplog.text


def test_transport_failure_is_logged_not_raised(monkeypatch, caplog):
    monkeypatch.setattr(sms, "TELNYX_API_KEY", "key")
    monkeypatch.setattr(sms, "FROM_NUM", "+61400000000")

    def boom(**kwargs):
        raise RuntimeError("carrier rejected")

    monkeypatch.setattr(telnyx.Message, "create", boom)

    with caplog.at_level(logging.ERROR):
        assert sms.send_sms("+61400000001", "hello") is False

    assert "Failed to send SMS to +61400000001" in caplog.text


def test_send_uses_configured_sender(monkeypatch):
    monkeypatch.setattr(sms, "TELNYX_API_KEY", "key")
    monkeypatch.setattr(sms, "FROM_NUM", "+61400000000")
    calls = []
    monkeypatch.setattr(telnyx.Message, "create", lambda **kw: calls.append(kw))

    assert sms.send_sms("+61400000001", "hello") is True
    assert calls == [{"from_": "+61400000000", "to": "+61400000001", "text": "hello"}]
