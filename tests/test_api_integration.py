"""
Integration tests for the Core Ledger API
Tests end-to-end workflows using FastAPI TestClient
"""

import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient

from core_ledger.api import create_app, LedgerSystem
from core_ledger.clock import DeterministicClock


START = datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return DeterministicClock(START)


@pytest.fixture
def client(clock):
    """Create a test client backed by a fresh ledger"""
    app = create_app(LedgerSystem(clock=clock))
    return TestClient(app)


def post_transaction(client, account_id, valor, tipo, descricao="teste"):
    return client.post(f"/clientes/{account_id}/transacoes", json={
        "valor": valor,
        "tipo": tipo,
        "descricao": descricao
    })


class TestHealthEndpoints:
    """Test basic health endpoint"""

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"


class TestTransactionFlow:
    """End-to-end transaction and statement scenarios"""

    def test_debit_credit_and_statement(self, client, clock):
        """Debit, rejected debit, credit, then statement"""
        r = post_transaction(client, 1, 1000, "d", "aluguel")
        assert r.status_code == 200
        assert r.json() == {"limite": 100000, "saldo": -1000}

        r = post_transaction(client, 1, 200000, "d", "carro")
        assert r.status_code == 422

        clock.advance(60)
        r = post_transaction(client, 1, 5000, "c", "salario")
        assert r.status_code == 200
        assert r.json() == {"limite": 100000, "saldo": 4000}

        r = client.get("/clientes/1/extrato")
        assert r.status_code == 200
        data = r.json()
        assert data["saldo"]["total"] == 4000
        assert data["saldo"]["limite"] == 100000
        assert datetime.fromisoformat(
            data["saldo"]["data_extrato"].replace("Z", "+00:00")
        ) == clock.now()

        transactions = data["ultimas_transacoes"]
        assert len(transactions) == 2
        assert [(t["tipo"], t["valor"], t["descricao"]) for t in transactions] == [
            ("c", 5000, "salario"),
            ("d", 1000, "aluguel"),
        ]
        assert datetime.fromisoformat(
            transactions[1]["realizado_em"].replace("Z", "+00:00")
        ) == START

    def test_unknown_account(self, client):
        assert post_transaction(client, 999, 100, "c").status_code == 404
        assert client.get("/clientes/999/extrato").status_code == 404

    def test_unknown_kind_changes_nothing(self, client):
        r = post_transaction(client, 1, 100, "x")
        assert r.status_code == 422

        data = client.get("/clientes/1/extrato").json()
        assert data["saldo"]["total"] == 0
        assert data["ultimas_transacoes"] == []

    def test_empty_statement(self, client):
        r = client.get("/clientes/4/extrato")
        assert r.status_code == 200
        data = r.json()
        assert data["saldo"]["total"] == 0
        assert data["saldo"]["limite"] == 10000000
        assert data["ultimas_transacoes"] == []

    def test_statement_limited_to_ten(self, client):
        for valor in range(1, 13):
            assert post_transaction(client, 5, valor, "c").status_code == 200

        transactions = client.get("/clientes/5/extrato").json()["ultimas_transacoes"]
        assert len(transactions) == 10
        assert transactions[0]["valor"] == 12


class TestEndpointErrors:
    """Malformed requests are unprocessable"""

    @pytest.mark.parametrize("body", [
        {"valor": 1.5, "tipo": "c", "descricao": "teste"},
        {"valor": "10", "tipo": "c", "descricao": "teste"},
        {"valor": 0, "tipo": "c", "descricao": "teste"},
        {"valor": -5, "tipo": "d", "descricao": "teste"},
        {"valor": 10, "tipo": "c", "descricao": ""},
        {"valor": 10, "tipo": "c", "descricao": "descricao longa"},
        {"valor": 10, "tipo": "c", "descricao": None},
        {"valor": 10, "tipo": "c"},
        {"tipo": "c", "descricao": "teste"},
    ])
    def test_invalid_body(self, client, body):
        r = client.post("/clientes/1/transacoes", json=body)
        assert r.status_code == 422

        data = client.get("/clientes/1/extrato").json()
        assert data["saldo"]["total"] == 0
        assert data["ultimas_transacoes"] == []

    def test_malformed_json(self, client):
        r = client.post(
            "/clientes/1/transacoes",
            content=b"{not json",
            headers={"Content-Type": "application/json"}
        )
        assert r.status_code == 422
