"""Group, membership, class and billing item API tests."""

import uuid

import pytest

from app.models.athlete import Athlete


@pytest.fixture
def academy(make_academy):
    return make_academy()


class TestGroupsAPI:
    def test_create_and_list(self, client, academy):
        response = client.post(
            "/v1/groups/",
            json={
                "academy_id": str(academy.id),
                "name": "Competition",
                "color": "#FF8800",
                "monthly_fee_cents": 5000,
            },
        )
        assert response.status_code == 201
        assert response.json()["monthly_fee_cents"] == 5000

        listed = client.get("/v1/groups/", params={"academy_id": str(academy.id)})
        assert listed.headers["X-Total-Count"] == "1"

    def test_invalid_color(self, client, academy):
        response = client.post(
            "/v1/groups/",
            json={"academy_id": str(academy.id), "name": "Competition", "color": "orange"},
        )

        assert response.status_code == 400

    def test_billing_item_must_belong_to_academy(self, client, academy):
        response = client.post(
            "/v1/groups/",
            json={
                "academy_id": str(academy.id),
                "name": "Competition",
                "billing_item_id": str(uuid.uuid4()),
            },
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Billing item not found"

    def test_update(self, client, academy, make_group, make_billing_item):
        group = make_group(academy)
        item = make_billing_item(academy)

        response = client.patch(
            f"/v1/groups/{group.id}",
            json={"monthly_fee_cents": 6500, "billing_item_id": str(item.id)},
        )

        assert response.status_code == 200
        assert response.json()["monthly_fee_cents"] == 6500
        assert response.json()["billing_item_id"] == str(item.id)

    def test_delete_clears_athlete_group(self, client, db_session, academy, make_group, make_athlete):
        group = make_group(academy)
        athlete = make_athlete(academy, group=group)
        group_id, athlete_id = group.id, athlete.id

        assert client.delete(f"/v1/groups/{group_id}").status_code == 204

        db_session.expire_all()
        assert db_session.get(Athlete, athlete_id).group_id is None
        assert client.get(f"/v1/groups/{group_id}").status_code == 404


class TestGroupMembersAPI:
    def test_add_update_remove(self, client, academy, make_group, make_athlete):
        group = make_group(academy)
        athlete = make_athlete(academy)
        url = f"/v1/groups/{group.id}/members"

        response = client.post(url, json={"athlete_id": str(athlete.id), "custom_fee_cents": 2500})
        assert response.status_code == 201
        assert response.json()["custom_fee_cents"] == 2500

        duplicate = client.post(url, json={"athlete_id": str(athlete.id)})
        assert duplicate.status_code == 409

        response = client.patch(f"{url}/{athlete.id}", json={"custom_fee_cents": None})
        assert response.status_code == 200
        assert response.json()["custom_fee_cents"] is None

        assert [m["athlete_id"] for m in client.get(url).json()] == [str(athlete.id)]
        assert client.delete(f"{url}/{athlete.id}").status_code == 204
        assert client.delete(f"{url}/{athlete.id}").status_code == 404

    def test_athlete_from_other_academy(
        self, client, db_session, default_tenant_id, academy, make_academy, make_group, make_athlete
    ):
        from app.repositories.plan_repository import PlanRepository
        from app.repositories.subscription_repository import SubscriptionRepository

        repo = SubscriptionRepository(db_session)
        subscription = repo.get_or_create_for_tenant(default_tenant_id)
        subscription.plan_id = PlanRepository(db_session).get_by_code("premium").id
        repo.save(subscription)
        group = make_group(academy)
        outsider = make_athlete(make_academy("rings-club"))

        response = client.post(
            f"/v1/groups/{group.id}/members", json={"athlete_id": str(outsider.id)}
        )

        assert response.status_code == 400


class TestClassesAPI:
    def test_create_and_filter(self, client, academy, make_group):
        group = make_group(academy)

        response = client.post(
            "/v1/classes/",
            json={
                "academy_id": str(academy.id),
                "name": "Monday beam",
                "group_id": str(group.id),
                "weekday": 0,
                "start_time": "17:00:00",
                "end_time": "18:30:00",
                "capacity": 12,
            },
        )
        assert response.status_code == 201
        class_id = response.json()["id"]

        listed = client.get("/v1/classes/", params={"group_id": str(group.id)}).json()
        assert [c["id"] for c in listed] == [class_id]

        assert client.delete(f"/v1/classes/{class_id}").status_code == 204
        assert client.get(f"/v1/classes/{class_id}").status_code == 404

    def test_end_before_start(self, client, academy):
        response = client.post(
            "/v1/classes/",
            json={
                "academy_id": str(academy.id),
                "name": "Floor",
                "start_time": "18:00:00",
                "end_time": "17:00:00",
            },
        )

        assert response.status_code == 400

    def test_unknown_group(self, client, academy):
        response = client.post(
            "/v1/classes/",
            json={"academy_id": str(academy.id), "name": "Floor", "group_id": str(uuid.uuid4())},
        )

        assert response.status_code == 404


class TestBillingItemsAPI:
    def test_crud(self, client, academy):
        response = client.post(
            "/v1/billing_items/",
            json={"academy_id": str(academy.id), "name": "Monthly tuition", "amount_cents": 4500},
        )
        assert response.status_code == 201
        item_id = response.json()["id"]
        assert response.json()["periodicity"] == "monthly"
        assert response.json()["is_active"] is True

        response = client.patch(f"/v1/billing_items/{item_id}", json={"amount_cents": 5000})
        assert response.json()["amount_cents"] == 5000

        response = client.delete(f"/v1/billing_items/{item_id}")
        assert response.json() == {"id": item_id, "deleted": True, "deactivated": False}
        assert client.get(f"/v1/billing_items/{item_id}").status_code == 404

    def test_unknown_academy(self, client):
        response = client.post(
            "/v1/billing_items/",
            json={"academy_id": str(uuid.uuid4()), "name": "Kit", "amount_cents": 100},
        )

        assert response.status_code == 404

    def test_referenced_item_is_deactivated(
        self, client, academy, make_billing_item, make_athlete, make_charge
    ):
        item = make_billing_item(academy)
        make_charge(make_athlete(academy), billing_item_id=item.id)

        response = client.delete(f"/v1/billing_items/{item.id}")

        assert response.status_code == 200
        assert response.json()["deactivated"] is True
        assert response.json()["deleted"] is False

        inactive = client.get("/v1/billing_items/", params={"is_active": False}).json()
        assert [i["id"] for i in inactive] == [str(item.id)]
