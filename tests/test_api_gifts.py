"""
HTTP tests for profiles and gifts: lifecycle, listing views, bulk edits, error mapping.
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


class TestProfiles:
    def test_create_and_list(self, client):
        create_profile(client, "Bob")
        create_profile(client, "  Alice ")
        res = client.get("/profiles")
        assert res.status_code == 200
        assert [p["name"] for p in res.json()] == ["Alice", "Bob"]

    def test_blank_name_is_rejected(self, client):
        res = client.post("/profiles", json={"name": "   "})
        assert res.status_code == 422

    def test_delete_clears_gift_references(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        gift = create_gift(client, [bob["id"]], claimed_by_id=alice["id"])
        assert gift["status"] == "claimed"

        res = client.delete(f"/profiles/{alice['id']}")
        assert res.status_code == 204

        gift = client.get(f"/gifts/{gift['id']}").json()
        assert gift["claimed_by_id"] is None
        assert gift["status"] == "available"

    def test_delete_missing_profile(self, client):
        res = client.delete("/profiles/nope")
        assert res.status_code == 404
        assert res.json()["error_type"] == "NotFoundError"


class TestGiftLifecycle:
    def test_create_gift(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        carol = create_profile(client, "Carol")
        res = client.post(
            "/gifts",
            json={"name": "Board game", "price": 45, "recipient_ids": [bob["id"], carol["id"]], "tags": ["toys"]},
            headers={"X-Actor-Id": alice["id"]},
        )
        assert res.status_code == 201, res.text
        gift = res.json()
        assert gift["status"] == "available"
        assert gift["created_by_id"] == alice["id"]
        assert gift["per_recipient_share"] == 22.5
        assert sorted(r["name"] for r in gift["recipients"]) == ["Bob", "Carol"]
        assert gift["tags"] == ["toys"]

    def test_create_requires_recipient(self, client):
        res = client.post("/gifts", json={"name": "Kite", "price": 10, "recipient_ids": []})
        assert res.status_code == 422
        assert res.json()["error_type"] == "ValidationError"

    def test_negative_price_is_rejected(self, client):
        bob = create_profile(client, "Bob")
        res = client.post("/gifts", json={"name": "Kite", "price": -1, "recipient_ids": [bob["id"]]})
        assert res.status_code == 422

    def test_unknown_recipient_is_rejected(self, client):
        res = client.post("/gifts", json={"name": "Kite", "price": 1, "recipient_ids": ["ghost"]})
        assert res.status_code == 422
        assert res.json()["details"]["missing"] == ["ghost"]

    def test_claim_and_unclaim(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        gift = create_gift(client, [bob["id"]])

        res = client.post(f"/gifts/{gift['id']}/claim", json={"claimer_id": alice["id"]})
        assert res.status_code == 200
        assert res.json()["status"] == "claimed"
        assert res.json()["claimed_by_id"] == alice["id"]

        res = client.post(f"/gifts/{gift['id']}/unclaim")
        assert res.status_code == 200
        assert res.json()["status"] == "available"
        assert res.json()["claimed_by_id"] is None

    def test_sparse_update(self, client):
        bob = create_profile(client, "Bob")
        gift = create_gift(client, [bob["id"]], tags=["a"])
        res = client.put(f"/gifts/{gift['id']}", json={"name": "Lego Castle"})
        assert res.status_code == 200
        data = res.json()
        assert data["name"] == "Lego Castle"
        assert data["price"] == 60
        assert data["tags"] == ["a"]
        assert data["recipient_ids"] == [bob["id"]]

    def test_toggle_recipient(self, client):
        bob = create_profile(client, "Bob")
        carol = create_profile(client, "Carol")
        gift = create_gift(client, [bob["id"]])

        res = client.post(f"/gifts/{gift['id']}/recipients", json={"profile_id": carol["id"], "is_adding": True})
        assert res.status_code == 200
        assert res.json()["per_recipient_share"] == 30

        res = client.post(f"/gifts/{gift['id']}/recipients", json={"profile_id": bob["id"], "is_adding": False})
        assert res.json()["recipient_ids"] == [carol["id"]]

    def test_return_status(self, client):
        bob = create_profile(client, "Bob")
        gift = create_gift(client, [bob["id"]])
        res = client.put(f"/gifts/{gift['id']}/return-status", json={"return_status": "TO_RETURN"})
        assert res.status_code == 200
        assert res.json()["return_status"] == "TO_RETURN"

        res = client.put(f"/gifts/{gift['id']}/return-status", json={"return_status": "LOST"})
        assert res.status_code == 422

    def test_return_status_keeps_the_claim(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        gift = create_gift(client, [bob["id"]], claimed_by_id=alice["id"])
        res = client.put(f"/gifts/{gift['id']}/return-status", json={"return_status": "RETURNED"})
        assert res.status_code == 200
        data = res.json()
        assert data["return_status"] == "RETURNED"
        assert data["status"] == "claimed"
        assert data["claimed_by_id"] == alice["id"]

    def test_delete_gift(self, client):
        bob = create_profile(client, "Bob")
        gift = create_gift(client, [bob["id"]])
        assert client.delete(f"/gifts/{gift['id']}").status_code == 204
        assert client.get(f"/gifts/{gift['id']}").status_code == 404

    def test_stale_actor_header_does_not_block_creation(self, client):
        ghost = create_profile(client, "Ghost")
        bob = create_profile(client, "Bob")
        assert client.delete(f"/profiles/{ghost['id']}").status_code == 204

        res = client.post(
            "/gifts",
            json={"name": "Lego", "price": 60, "recipient_ids": [bob["id"]]},
            headers={"X-Actor-Id": ghost["id"]},
        )
        assert res.status_code == 201, res.text
        assert res.json()["created_by_id"] is None

    def test_unknown_explicit_creator_is_rejected(self, client):
        bob = create_profile(client, "Bob")
        res = client.post(
            "/gifts",
            json={"name": "Lego", "price": 60, "recipient_ids": [bob["id"]], "created_by_id": "ghost"},
        )
        assert res.status_code == 422

    def test_missing_gift(self, client):
        res = client.post("/gifts/nope/unclaim")
        assert res.status_code == 404
        body = res.json()
        assert body["detail"] == "Gift not found"
        assert body["details"] == {"gift_id": "nope"}


class TestGiftListing:
    def _seed(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        create_gift(client, [bob["id"]], name="Train", price=40)
        create_gift(client, [bob["id"]], name="Apron", price=15, is_santa=True)
        create_gift(client, [alice["id"]], name="Mug", price=8, claimed_by_id=bob["id"])
        return alice, bob

    def test_default_sort_is_name(self, client):
        self._seed(client)
        names = [g["name"] for g in client.get("/gifts").json()]
        assert names == ["Apron", "Mug", "Train"]

    def test_price_sort(self, client):
        self._seed(client)
        names = [g["name"] for g in client.get("/gifts", params={"sort": "price-desc"}).json()]
        assert names == ["Train", "Apron", "Mug"]

    def test_unknown_sort(self, client):
        res = client.get("/gifts", params={"sort": "random"})
        assert res.status_code == 422

    def test_filters(self, client):
        alice, bob = self._seed(client)
        assert [g["name"] for g in client.get("/gifts", params={"santa": "true"}).json()] == ["Apron"]
        assert [g["name"] for g in client.get("/gifts", params={"santa": "false"}).json()] == ["Mug", "Train"]
        assert [g["name"] for g in client.get("/gifts", params={"search": "RAI"}).json()] == ["Train"]
        assert [g["name"] for g in client.get("/gifts", params={"status": "claimed"}).json()] == ["Mug"]
        assert [g["name"] for g in client.get("/gifts", params={"recipient_id": alice["id"]}).json()] == ["Mug"]
        assert [g["name"] for g in client.get("/gifts", params={"claimed_by": bob["id"]}).json()] == ["Mug"]
        unclaimed = client.get("/gifts", params={"claimed_by": "unclaimed"}).json()
        assert [g["name"] for g in unclaimed] == ["Apron", "Train"]


class TestBulkUpdate:
    def test_overwrites_recipients(self, client):
        alice = create_profile(client, "Alice")
        bob = create_profile(client, "Bob")
        first = create_gift(client, [alice["id"]], name="One")
        second = create_gift(client, [alice["id"], bob["id"]], name="Two")

        res = client.post(
            "/gifts/bulk-update",
            json={"gift_ids": [first["id"], second["id"]], "recipient_ids": [bob["id"]]},
        )
        assert res.status_code == 200, res.text
        data = res.json()
        assert data["updated_ids"] == [first["id"], second["id"]]
        assert all(g["recipient_ids"] == [bob["id"]] for g in data["gifts"])

    def test_partial_failure_is_reported(self, client):
        bob = create_profile(client, "Bob")
        gift = create_gift(client, [bob["id"]])
        res = client.post(
            "/gifts/bulk-update",
            json={"gift_ids": [gift["id"], "missing"], "return_status": "RETURNED"},
        )
        assert res.status_code == 500
        body = res.json()
        assert body["error_type"] == "PartialBatchError"
        assert body["details"]["completed"] == [gift["id"]]
        assert body["details"]["failures"][0]["gift_id"] == "missing"
        assert client.get(f"/gifts/{gift['id']}").json()["return_status"] == "RETURNED"

    def test_requires_a_field(self, client):
        bob = create_profile(client, "Bob")
        gift = create_gift(client, [bob["id"]])
        res = client.post("/gifts/bulk-update", json={"gift_ids": [gift["id"]]})
        assert res.status_code == 422
