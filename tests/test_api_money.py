"""
HTTP tests for budgets, the reconciliation log and the ledger summary.
"""
import pytest
from fastapi.testclient import TestClient

from gifttracker.main import app


@pytest.fixture()
def client():
    return TestClient(app)


def create_profile(client: TestClient, name: str) -> dict:
    res = client.post("/profiles", json={"name": name})
    assert res.status_code == 201, res.text
    return res.json()


def create_gift(client: TestClient, recipient_ids: list[str], **kwargs) -> dict:
    payload = {"name": "Lego Set", "price": 60, "recipient_ids": recipient_ids, **kwargs}
    res = client.post("/gifts", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


class TestBudgets:
    def test_end_to_end_return_excluded_from_spend(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        gift = create_gift(client, [bob["id"]], name="Lego Set", price=60, is_santa=False)
        assert gift["status"] == "available"

        res = client.post(f"/gifts/{gift['id']}/claim", json={"claimer_id": alice["id"]})
        assert res.json()["status"] == "claimed"
        client.put(f"/gifts/{gift['id']}/return-status", json={"return_status": "TO_RETURN"})

        res = client.post(
            "/budgets",
            json={"gifter_id": alice["id"], "recipient_id": bob["id"], "limit_amount": 100},
        )
        assert res.status_code == 201, res.text

        (summary,) = client.get("/budgets").json()
        assert summary["spent"] == 0
        assert summary["percentage"] == 0
        assert summary["is_over_budget"] is False
        assert summary["gifter_name"] == "Alice"
        assert summary["recipient_name"] == "Bob"

    def test_spend_and_over_budget(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        carol = create_profile(client, "Carol")
        create_gift(client, [bob["id"]], name="Bike", price=100, claimed_by_id=alice["id"])
        create_gift(client, [bob["id"], carol["id"]], name="Trip", price=50, claimed_by_id=alice["id"])
        client.post(
            "/budgets",
            json={"gifter_id": alice["id"], "recipient_id": bob["id"], "limit_amount": 120},
        )

        (summary,) = client.get("/budgets").json()
        assert summary["spent"] == 125
        assert summary["percentage"] == 100
        assert summary["is_over_budget"] is True
        assert summary["over_by"] == 5
        assert len(summary["gift_ids"]) == 2

    def test_negative_limit_is_rejected(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        res = client.post(
            "/budgets",
            json={"gifter_id": alice["id"], "recipient_id": bob["id"], "limit_amount": -5},
        )
        assert res.status_code == 422

    def test_delete_budget(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        budget = client.post(
            "/budgets",
            json={"gifter_id": alice["id"], "recipient_id": bob["id"], "limit_amount": 50},
        ).json()
        assert client.delete(f"/budgets/{budget['id']}").status_code == 204
        assert client.get("/budgets").json() == []
        assert client.delete(f"/budgets/{budget['id']}").status_code == 404


class TestReconciliations:
    def test_log_is_append_only_and_filterable(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        carol = create_profile(client, "Carol")
        res = client.post(
            "/reconciliations",
            json={
                "gifter_id": alice["id"],
                "recipient_id": bob["id"],
                "purchaser_id": carol["id"],
                "amount": 30,
                "transaction_type": "cash",
                "notes": "  paid at dinner ",
            },
        )
        assert res.status_code == 201, res.text
        entry = res.json()
        assert entry["notes"] == "paid at dinner"
        assert entry["transaction_type"] == "cash"

        assert len(client.get("/reconciliations").json()) == 1
        assert client.get("/reconciliations", params={"gifter_id": carol["id"]}).json() == []

    def test_unknown_transaction_type(self, client):
        alice = create_profile(client, "Alice")
        res = client.post(
            "/reconciliations",
            json={
                "gifter_id": alice["id"],
                "recipient_id": alice["id"],
                "purchaser_id": alice["id"],
                "amount": 1,
                "transaction_type": "crypto",
            },
        )
        assert res.status_code == 422

    def test_summary(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        carol = create_profile(client, "Carol")
        create_gift(
            client,
            [bob["id"], carol["id"]],
            name="Trip",
            price=90,
            purchaser_id=carol["id"],
            claimed_by_id=alice["id"],
        )
        create_gift(client, [bob["id"]], name="Book", price=20, purchaser_id=alice["id"], claimed_by_id=carol["id"])

        res = client.get(
            "/reconciliations/summary",
            params={"recipient_ids": [bob["id"]]},
            headers={"X-Actor-Id": alice["id"]},
        )
        assert res.status_code == 200, res.text
        ledger = res.json()
        assert ledger["viewer_id"] == alice["id"]
        assert ledger["owed_by_viewer"][0]["name"] == "Carol"
        assert ledger["total_outstanding"] == 45
        assert ledger["total_owed_to_you"] == 20
        assert ledger["net_balance"] == -25
        assert ledger["total_spending"] == 110

        # Recording a payment does not change the computed ledger.
        client.post(
            "/reconciliations",
            json={
                "gifter_id": alice["id"],
                "recipient_id": bob["id"],
                "purchaser_id": carol["id"],
                "amount": 45,
            },
        )
        again = client.get(
            "/reconciliations/summary",
            params={"recipient_ids": [bob["id"]], "viewer_id": alice["id"]},
        ).json()
        assert again["total_outstanding"] == 45

    def test_summary_requires_viewer(self, client):
        res = client.get("/reconciliations/summary", params={"recipient_ids": ["x"]})
        assert res.status_code == 422


class TestTransfer:
    def test_master_import(self, client):
        create_profile(client, "Bob")
        create_gift(client, [client.get("/profiles").json()[0]["id"]], name="Existing")

        res = client.post(
            "/transfer/master-import",
            json=[
                {"name": "Kite", "price": 12, "recipientName": "bob", "isSanta": False},
                {"name": "Scarf", "price": 20, "recipientName": "Dana", "isSanta": True, "imageUrl": "https://x/y.png"},
                {"name": "Existing", "price": 1, "recipientName": "Bob"},
            ],
        )
        assert res.status_code == 200, res.text
        assert res.json() == {"created": 2, "skipped": 1, "profiles_created": 1}

        gifts = {g["name"]: g for g in client.get("/gifts").json()}
        assert gifts["Scarf"]["status"] == "santa"
        assert gifts["Scarf"]["recipients"][0]["name"] == "Dana"
        assert gifts["Kite"]["status"] == "available"

    def test_export(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        create_gift(client, [bob["id"]])
        client.post(
            "/budgets",
            json={"gifter_id": alice["id"], "recipient_id": bob["id"], "limit_amount": 50},
        )
        res = client.get("/transfer/export")
        assert res.status_code == 200
        data = res.json()
        assert len(data["profiles"]) == 2
        assert len(data["gifts"]) == 1
        assert len(data["budgets"]) == 1
        assert data["reconciliations"] == []
        assert "exported_at" in data

    def test_master_import_with_stale_actor(self, client):
        ghost = create_profile(client, "Ghost")
        client.delete(f"/profiles/{ghost['id']}")
        res = client.post(
            "/transfer/master-import",
            json=[{"name": "Kite", "price": 12, "recipientName": "Bob"}],
            headers={"X-Actor-Id": ghost["id"]},
        )
        assert res.status_code == 200, res.text
        assert res.json()["created"] == 1
