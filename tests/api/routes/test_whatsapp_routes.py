"""
Testes das rotas /api (sessao e envio).

App completo com lifespan, sobre um Gateway montado com driver falso.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.services.gateway import Gateway
from app.services.notifications import EventBroadcaster
from app.services.outbound.pipeline import MISSING_BULK_ARGS, MISSING_SINGLE_ARGS, SendPipeline
from app.services.session.manager import SessionManager
from app.services.whatsapp_driver.base import SessionState


@pytest.fixture
def gateway(fake_driver, credentials):
    notifications = EventBroadcaster()
    return Gateway(
        driver=fake_driver,
        credentials=credentials,
        notifications=notifications,
        session=SessionManager(fake_driver, credentials, notifications),
        sender=SendPipeline(fake_driver, sleep=AsyncMock()),
    )


@pytest.fixture
def client(gateway):
    with TestClient(create_app(gateway), raise_server_exceptions=False) as client:
        yield client


class TestStatus:

    def test_status_do_driver(self, client, fake_driver):
        response = client.get("/api/status")

        assert response.status_code == 200
        assert response.json() == {"status": "connected"}

    def test_status_fallback_local(self, client, fake_driver):
        fake_driver.get_state.side_effect = RuntimeError("browser crashed")

        response = client.get("/api/status")

        assert response.status_code == 200
        assert response.json() == {"status": "disconnected"}

    def test_qr_nulo_fora_de_autenticacao(self, client):
        response = client.get("/api/qr")

        assert response.status_code == 200
        assert response.json() == {"qr": None}

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}


class TestSendMessage:

    def test_envio_ok(self, client, fake_driver):
        fake_driver.send.return_value = "ABC123"

        response = client.post(
            "/api/send-message",
            json={"recipient": "+1 (555) 000-1111", "message": "Olá"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "messageId": "ABC123",
            "recipient": "+1 (555) 000-1111",
        }
        fake_driver.send.assert_awaited_once_with("15550001111@c.us", "Olá")

    def test_recipient_numerico(self, client, fake_driver):
        response = client.post(
            "/api/send-message", json={"recipient": 15550001111, "message": "Olá"}
        )

        assert response.status_code == 200
        assert response.json()["recipient"] == "15550001111"

    @pytest.mark.parametrize(
        "body",
        [{}, {"recipient": "15550001111"}, {"message": "Olá"}, {"recipient": "", "message": "x"}],
    )
    def test_argumentos_faltando(self, client, fake_driver, body):
        response = client.post("/api/send-message", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == MISSING_SINGLE_ARGS
        fake_driver.send.assert_not_awaited()

    def test_numero_invalido(self, client):
        response = client.post("/api/send-message", json={"recipient": "123", "message": "x"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to send message",
            "details": "Invalid phone number: 123",
        }

    def test_cliente_nao_pronto(self, client, fake_driver):
        fake_driver.get_state.return_value = SessionState.AWAITING_AUTHENTICATION

        response = client.post(
            "/api/send-message", json={"recipient": "15550001111", "message": "x"}
        )

        assert response.status_code == 500
        assert "awaiting_authentication" in response.json()["details"]
        fake_driver.send.assert_not_awaited()

    def test_falha_no_envio(self, client, fake_driver):
        fake_driver.send.side_effect = RuntimeError("timeout")

        response = client.post(
            "/api/send-message", json={"recipient": "15550001111", "message": "x"}
        )

        assert response.status_code == 500
        assert response.json()["details"] == "timeout"


class TestSendBulk:

    def test_bulk_ok_com_falha_no_meio(self, client, fake_driver):
        fake_driver.is_registered_recipient.side_effect = [True, False, True]

        response = client.post(
            "/api/send-bulk",
            json={"numbers": ["15550000001", "15550000002", 15550000003], "message": "Oi"},
        )

        assert response.status_code == 200
        results = response.json()["results"]
        assert [r["to"] for r in results] == ["15550000001", "15550000002", "15550000003"]
        assert [r["success"] for r in results] == [True, False, True]
        assert results[0]["messageId"] == "msg-1"
        assert results[1]["errorKind"] == "unregistered_recipient"

    @pytest.mark.parametrize(
        "body",
        [{}, {"numbers": [], "message": "Oi"}, {"numbers": ["15550000001"]}],
    )
    def test_argumentos_faltando(self, client, body):
        response = client.post("/api/send-bulk", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == MISSING_BULK_ARGS


class TestMalformedBodies:
    """Corpos fora do formato retornam 400 com a mensagem fixa da rota."""

    def test_send_message_sem_corpo(self, client, fake_driver):
        response = client.post("/api/send-message")

        assert response.status_code == 400
        assert response.json() == {"error": MISSING_SINGLE_ARGS, "details": None}
        fake_driver.send.assert_not_awaited()

    @pytest.mark.parametrize(
        "body",
        [
            {"recipient": "15550001111", "message": 5},
            {"recipient": ["15550001111"], "message": "Olá"},
            {"recipient": True, "message": "Olá"},
        ],
    )
    def test_send_message_tipos_errados(self, client, fake_driver, body):
        response = client.post("/api/send-message", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == MISSING_SINGLE_ARGS
        fake_driver.send.assert_not_awaited()

    def test_send_bulk_sem_corpo(self, client):
        response = client.post("/api/send-bulk")

        assert response.status_code == 400
        assert response.json()["error"] == MISSING_BULK_ARGS

    @pytest.mark.parametrize(
        "body",
        [
            {"numbers": "15550001111", "message": "Oi"},
            {"numbers": {"a": "15550001111"}, "message": "Oi"},
            {"numbers": ["15550001111"], "message": 5},
        ],
    )
    def test_send_bulk_tipos_errados(self, client, fake_driver, body):
        response = client.post("/api/send-bulk", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == MISSING_BULK_ARGS
        fake_driver.send.assert_not_awaited()

    def test_send_bulk_entrada_nula_vira_numero_invalido(self, client, fake_driver):
        response = client.post(
            "/api/send-bulk", json={"numbers": [None, "15550001111"], "message": "Oi"}
        )

        assert response.status_code == 200
        first, second = response.json()["results"]
        assert first["errorKind"] == "invalid_recipient"
        assert second["success"] is True
        fake_driver.send.assert_awaited_once_with("15550001111@c.us", "Oi")

    def test_corpo_que_nao_e_objeto(self, client):
        response = client.post("/api/send-message", json=["15550001111", "Oi"])

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"


class TestDisconnect:

    def test_disconnect_ok(self, client, gateway, fake_driver):
        response = client.post("/api/disconnect")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Disconnecting..."}
        fake_driver.logout.assert_awaited_once()
        assert gateway.session.state == SessionState.DISCONNECTED

    def test_disconnect_falha(self, client, fake_driver):
        fake_driver.logout.side_effect = RuntimeError("not logged in")

        response = client.post("/api/disconnect")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to disconnect", "details": "not logged in"}


class TestLifespan:

    def test_startup_inicializa_e_shutdown_destroi(self, gateway, fake_driver, credentials):
        credentials.write({"instance": "old"})

        with TestClient(create_app(gateway)):
            assert not credentials.exists()

        fake_driver.destroy.assert_awaited_once()
