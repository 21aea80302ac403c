"""
Tests for the transfer and deposit endpoints.

These test the HTTP layer: status codes, response format and
the error body. Engine behaviour is tested in
test_transfer_engine.py.
"""

from decimal import Decimal

from aurora_bank.api.transactions import get_transfer_engine
from aurora_bank.errors import StorageError
from aurora_bank.main import app
from aurora_bank.services.transfer_engine import TransferEngine
from aurora_bank.stores.memory import InMemoryAccountStore, InMemoryLedgerStore
from aurora_bank.stores.sql import SqlLedgerStore


RECIPIENT = {
    "name": "Jane Roe",
    "account_number": "998877665544",
    "routing_code": "AURB0001234",
    "transfer_type": "IMPS",
}


class UnwritableLedgerStore(InMemoryLedgerStore):

    def append(self, draft):
        raise StorageError("ledger volume is read-only")


def balance_of(client, account_id):
    return Decimal(client.get(f"/accounts/{account_id}/balance").json()["balance"])


class TestTransfer:

    def test_transfer_returns_201_with_entry(self, client, open_account):
        account = open_account(balance="1000")

        response = client.post("/transactions/transfer", json={
            "account_id": account.id,
            "amount": "1000",
            "counterparty": RECIPIENT,
        })

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["new_balance"]) == Decimal("0")
        entry = data["ledger_entry"]
        assert entry["direction"] == "DEBIT"
        assert Decimal(entry["amount"]) == Decimal("1000")
        assert entry["status"] == "COMPLETED"
        assert entry["counterparty"]["name"] == "Jane Roe"
        assert entry["description"] == "Transfer to Jane Roe (998877665544)"

    def test_insufficient_funds_returns_409(self, client, open_account):
        account = open_account(balance="1000")

        response = client.post("/transactions/transfer", json={
            "account_id": account.id,
            "amount": "1001",
        })

        assert response.status_code == 409
        data = response.json()
        assert data["kind"] == "InsufficientFunds"
        assert data["retryable"] is False
        assert Decimal(data["details"]["available"]) == Decimal("1000")
        assert balance_of(client, account.id) == Decimal("1000")
        assert client.get("/ledger", params={"account_id": account.id}).json() == []

    def test_negative_amount_is_invalid_amount(self, client, open_account):
        account = open_account(balance="100")

        response = client.post("/transactions/transfer", json={
            "account_id": account.id,
            "amount": -5,
        })

        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidAmount"
        assert balance_of(client, account.id) == Decimal("100")

    def test_too_many_decimals_is_invalid_amount(self, client, open_account):
        account = open_account(balance="100")
        response = client.post("/transactions/transfer", json={
            "account_id": account.id,
            "amount": "1.005",
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidAmount"

    def test_over_imps_limit_is_invalid_amount(self, client, open_account):
        account = open_account(balance="1000000")
        response = client.post("/transactions/transfer", json={
            "account_id": account.id,
            "amount": "500001",
            "counterparty": RECIPIENT,
        })
        assert response.status_code == 400
        assert "IMPS" in response.json()["message"]

    def test_unknown_account_returns_404(self, client):
        response = client.post("/transactions/transfer", json={
            "account_id": 999,
            "amount": "10",
        })
        assert response.status_code == 404
        assert response.json()["kind"] == "AccountNotFound"

    def test_malformed_account_id_returns_404(self, client):
        response = client.post("/transactions/transfer", json={
            "account_id": "not-an-id",
            "amount": "10",
        })
        assert response.status_code == 404
        assert response.json()["kind"] == "AccountNotFound"

    def test_missing_amount_is_invalid_amount(self, client, open_account):
        account = open_account(balance="100")
        response = client.post("/transactions/transfer", json={
            "account_id": account.id,
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidAmount"

    def test_storage_failure_returns_503_and_rolls_back(
        self, client, open_account, monkeypatch
    ):
        account = open_account(balance="1000")

        def failing_append(self, draft):
            raise StorageError("ledger table unavailable")

        monkeypatch.setattr(SqlLedgerStore, "append", failing_append)
        response = client.post("/transactions/transfer", json={
            "account_id": account.id,
            "amount": "300",
        })
        monkeypatch.undo()

        assert response.status_code == 503
        assert response.json()["kind"] == "StorageError"
        assert response.json()["retryable"] is True
        assert balance_of(client, account.id) == Decimal("1000")

    def test_partial_failure_returns_500_contact_support(self, client):
        accounts = InMemoryAccountStore({1: Decimal("1000")})
        app.dependency_overrides[get_transfer_engine] = lambda: TransferEngine(
            accounts, UnwritableLedgerStore(), lock_timeout=1,
        )

        response = client.post("/transactions/transfer", json={
            "account_id": 1,
            "amount": "300",
        })

        assert response.status_code == 500
        body = response.json()
        assert body["kind"] == "LedgerWriteFailure"
        assert body["retryable"] is False
        assert "contact support" in body["message"]
        assert body["details"]["operation"] == "transfer"
        assert accounts.get_balance(1) == Decimal("700")

    def test_oversized_amount_is_invalid_amount(self, client, open_account):
        account = open_account(balance="1000")
        response = client.post("/transactions/transfer", json={
            "account_id": account.id,
            "amount": "1e30",
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidAmount"

    def test_idempotent_resubmission(self, client, open_account):
        account = open_account(balance="1000")
        body = {"account_id": account.id, "amount": "600", "idempotency_key": "abc"}

        first = client.post("/transactions/transfer", json=body)
        second = client.post("/transactions/transfer", json=body)

        assert first.status_code == 201
        assert second.status_code == 201
        assert second.json()["ledger_entry"]["id"] == first.json()["ledger_entry"]["id"]
        assert Decimal(second.json()["new_balance"]) == Decimal("400")
        assert balance_of(client, account.id) == Decimal("400")

    def test_idempotency_conflict_returns_409(self, client, open_account):
        account = open_account(balance="1000")
        client.post("/transactions/transfer", json={
            "account_id": account.id, "amount": "600", "idempotency_key": "abc",
        })

        response = client.post("/transactions/transfer", json={
            "account_id": account.id, "amount": "100", "idempotency_key": "abc",
        })

        assert response.status_code == 409
        assert response.json()["kind"] == "IdempotencyConflict"


class TestDeposit:

    def test_deposit_returns_201(self, client, open_account):
        account = open_account(balance="500")

        response = client.post("/transactions/deposit", json={
            "account_id": account.id,
            "amount": 250,
        })

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["new_balance"]) == Decimal("750")
        assert data["ledger_entry"]["direction"] == "CREDIT"
        assert data["ledger_entry"]["counterparty"] is None
        assert data["ledger_entry"]["description"] == "Cash Deposit"
        assert balance_of(client, account.id) == Decimal("750")

    def test_zero_deposit_rejected(self, client, open_account):
        account = open_account()
        response = client.post("/transactions/deposit", json={
            "account_id": account.id,
            "amount": 0,
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidAmount"

    def test_non_numeric_deposit_rejected(self, client, open_account):
        account = open_account()
        response = client.post("/transactions/deposit", json={
            "account_id": account.id,
            "amount": "abc",
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidAmount"

    def test_deposit_past_maximum_balance_rejected(self, client, open_account):
        account = open_account(balance="1")
        response = client.post("/transactions/deposit", json={
            "account_id": account.id,
            "amount": "99999999999999999.99",
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidAmount"
        assert balance_of(client, account.id) == Decimal("1")
