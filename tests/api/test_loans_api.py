"""
Tests for the loan application endpoints.
"""

from decimal import Decimal


def application(account_id, **overrides):
    body = {
        "account_id": account_id,
        "loan_type": "car",
        "amount": "800000",
        "tenure": 60,
        "purpose": "Family car",
        "monthly_income": "90000",
        "employment_type": "self-employed",
    }
    body.update(overrides)
    return body


class TestApply:

    def test_apply_returns_201(self, client, open_account):
        account = open_account(balance="100")

        response = client.post("/loans/apply", json=application(account.id))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PENDING_REVIEW"
        assert data["loan_type"] == "car"
        assert data["employment_type"] == "self-employed"
        assert data["reference_id"].startswith("LN-")

    def test_apply_leaves_balance_alone(self, client, open_account):
        account = open_account(balance="100")
        client.post("/loans/apply", json=application(account.id))

        balance = client.get(f"/accounts/{account.id}/balance").json()["balance"]
        assert Decimal(balance) == Decimal("100")

    def test_unknown_loan_type_returns_422(self, client, open_account):
        account = open_account()
        response = client.post("/loans/apply", json=application(account.id, loan_type="yacht"))
        assert response.status_code == 422

    def test_unknown_account_returns_404(self, client):
        response = client.post("/loans/apply", json=application(999))
        assert response.status_code == 404
        assert response.json()["kind"] == "AccountNotFound"

    def test_non_positive_amount_is_invalid_amount(self, client, open_account):
        account = open_account()
        response = client.post("/loans/apply", json=application(account.id, amount="0"))
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidAmount"


class TestListLoans:

    def test_list_for_account(self, client, open_account):
        account = open_account()
        client.post("/loans/apply", json=application(account.id))
        client.post("/loans/apply", json=application(account.id, loan_type="home"))

        response = client.get(f"/loans/account/{account.id}")

        assert response.status_code == 200
        assert {loan["loan_type"] for loan in response.json()} == {"car", "home"}

    def test_unknown_account_returns_404(self, client):
        response = client.get("/loans/account/999")
        assert response.status_code == 404


class TestEmiQuote:

    def test_quote_with_explicit_rate(self, client):
        response = client.get("/loans/emi-quote", params={
            "loan_type": "personal", "amount": "100000", "tenure": 12, "annual_rate": "12",
        })

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["emi"]) == Decimal("8884.88")
        assert Decimal(data["total_interest"]) == Decimal("6618.56")

    def test_default_rate_for_loan_type(self, client):
        response = client.get("/loans/emi-quote", params={
            "loan_type": "home", "amount": "2500000", "tenure": 240,
        })

        assert response.status_code == 200
        assert Decimal(response.json()["annual_rate"]) == Decimal("8.5")

    def test_quote_stores_nothing(self, client, open_account):
        account = open_account()
        client.get("/loans/emi-quote", params={
            "loan_type": "car", "amount": "500000", "tenure": 60,
        })
        assert client.get(f"/loans/account/{account.id}").json() == []

    def test_non_positive_amount_is_invalid_amount(self, client):
        response = client.get("/loans/emi-quote", params={
            "loan_type": "car", "amount": "0", "tenure": 60,
        })
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidAmount"

    def test_tenure_out_of_range_returns_422(self, client):
        response = client.get("/loans/emi-quote", params={
            "loan_type": "car", "amount": "500000", "tenure": 0,
        })
        assert response.status_code == 422
