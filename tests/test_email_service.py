from datetime import date

from app.core.config import Settings
from app.models.appointment import Appointment
from app.services import email_service
from app.services.email_service import Notifier, build_confirmation_html


class FakeSMTP:
    instances: list["FakeSMTP"] = []
    fail_login = False

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.logged_in = None
        self.sent = []
        self.started_tls = False
        self.closed = False
        FakeSMTP.instances.append(self)

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        if FakeSMTP.fail_login:
            raise email_service.smtplib.SMTPAuthenticationError(535, b"bad credentials")
        self.logged_in = (user, password)

    def sendmail(self, from_addr, to_addrs, msg):
        self.sent.append((from_addr, to_addrs, msg))

    def noop(self):
        return (250, b"OK")

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def _settings(**overrides) -> Settings:
    values = {
        "email_user": "desk@example.com",
        "email_pass": "app-password",
        "reply_to": "office@example.com",
        "from_name": "GEICS Consultancy",
    }
    values.update(overrides)
    return Settings(**values)


def _appointment(**overrides) -> Appointment:
    values = {
        "id": "1",
        "name": "Ana <b>",
        "email": "ana@example.com",
        "phone": "123",
        "preferred_country": "Canada",
        "consultation_type": "study visa",
    }
    values.update(overrides)
    return Appointment(**values)


def _reset_fake(monkeypatch) -> None:
    FakeSMTP.instances = []
    FakeSMTP.fail_login = False
    monkeypatch.setattr(email_service.smtplib, "SMTP_SSL", FakeSMTP)
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)


def test_confirmation_html_embeds_details_and_escapes_name() -> None:
    html = build_confirmation_html(
        _settings(),
        recipient_name="Ana <b>",
        appointment_date=date(2025, 1, 1),
        appointment_time="10:00",
        consultation_type="study visa",
        preferred_country="Canada",
    )

    assert "Dear Ana &lt;b&gt;," in html
    assert "Wednesday, January 01, 2025" in html
    assert "<strong>Time:</strong> 10:00" in html
    assert "study visa" in html
    assert "Canada" in html


def test_send_confirmation_over_ssl(monkeypatch) -> None:
    _reset_fake(monkeypatch)
    notifier = Notifier(_settings())

    assert notifier.send_confirmation(_appointment(), date(2025, 1, 1), "10:00") is True

    server = FakeSMTP.instances[0]
    assert (server.host, server.port) == ("smtp.gmail.com", 465)
    assert server.started_tls is False
    assert server.logged_in == ("desk@example.com", "app-password")
    from_addr, to_addrs, msg = server.sent[0]
    assert to_addrs == ["ana@example.com"]
    assert "Reply-To: office@example.com" in msg
    assert '"GEICS Consultancy" <desk@example.com>' in msg
    assert "Subject: Appointment Confirmed - GEICS Consultancy" in msg


def test_send_confirmation_uses_starttls_when_ssl_disabled(monkeypatch) -> None:
    _reset_fake(monkeypatch)
    notifier = Notifier(_settings(smtp_use_ssl=False, smtp_port=587))

    assert notifier.send_confirmation(_appointment(), date(2025, 1, 1), "10:00") is True
    assert FakeSMTP.instances[0].started_tls is True


def test_send_confirmation_reports_failure_instead_of_raising(monkeypatch) -> None:
    _reset_fake(monkeypatch)
    FakeSMTP.fail_login = True
    notifier = Notifier(_settings())

    assert notifier.send_confirmation(_appointment(), date(2025, 1, 1), "10:00") is False
    assert FakeSMTP.instances[0].closed is True


def test_send_confirmation_without_credentials_fails_fast(monkeypatch) -> None:
    _reset_fake(monkeypatch)
    notifier = Notifier(_settings(email_user="", email_pass=""))

    assert notifier.send_confirmation(_appointment(), date(2025, 1, 1), "10:00") is False
    assert FakeSMTP.instances == []
    assert notifier.verify() is False


def test_reply_to_defaults_to_sender(monkeypatch) -> None:
    _reset_fake(monkeypatch)
    notifier = Notifier(_settings(reply_to=""))

    notifier.send_test_email()

    _, to_addrs, msg = FakeSMTP.instances[0].sent[0]
    assert to_addrs == ["desk@example.com"]
    assert "Reply-To: desk@example.com" in msg


def test_verify_reports_smtp_readiness(monkeypatch) -> None:
    _reset_fake(monkeypatch)

    assert Notifier(_settings()).verify() is True

    FakeSMTP.fail_login = True
    assert Notifier(_settings()).verify() is False
