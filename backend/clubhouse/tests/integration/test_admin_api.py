"""User administration, settings, activity logs and expenses."""

from clubhouse.models.activity_log import ActivityLog
from clubhouse.models.user import User

NEW_USER = {
    "name": "Pat Player",
    "email": "pat@example.com",
    "password": "long-password",
    "password_confirmation": "long-password",
    "type": "student",
}


class TestUsersApi:
    def test_index_for_staff(self, client, staff, member, auth_headers):
        page = client.get("/users", headers=auth_headers(staff)).json()
        assert page["props"]["stats"]["members"] == 1
        assert {"value": "non-member", "label": "Non-Member"} in page["props"]["userTypes"]

    def test_admin_creates_and_deletes(self, client, db, admin, auth_headers):
        created = client.post("/users", json=NEW_USER, headers=auth_headers(admin)).json()
        user_id = created["user_id"]
        assert db.get(User, user_id).role == "student"

        assert client.delete(f"/users/{user_id}", headers=auth_headers(admin)).status_code == 200
        db.expire_all()
        assert db.get(User, user_id) is None

    def test_staff_cannot_create(self, client, staff, auth_headers):
        assert client.post("/users", json=NEW_USER, headers=auth_headers(staff)).status_code == 403

    def test_staff_type_change(self, client, db, staff, non_member, auth_headers):
        ok = client.put(f"/users/{non_member.id}", json={"type": "student"}, headers=auth_headers(staff))
        denied = client.put(f"/users/{non_member.id}", json={"type": "admin"}, headers=auth_headers(staff))

        assert ok.status_code == 200
        assert denied.status_code == 400
        db.refresh(non_member)
        assert non_member.role == "student"

    def test_password_change_lets_user_log_in(self, client, admin, member, auth_headers):
        response = client.put(
            f"/users/{member.id}/password",
            json={"password": "another-password", "password_confirmation": "another-password"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200

        login = client.post("/login", json={"email": "member@example.com", "password": "another-password"})
        assert login.status_code == 200


class TestSettingsApi:
    def test_index_seeds_defaults(self, client, admin, auth_headers):
        page = client.get("/settings", headers=auth_headers(admin)).json()
        keys = {s["key"] for s in page["props"]["settings"]}
        assert "fee_trainer" in keys
        assert page["props"]["qrCode"] is None

    def test_update(self, client, admin, member, auth_headers):
        client.get("/settings", headers=auth_headers(admin))

        response = client.post(
            "/settings",
            json={"settings": [{"key": "fee_membership_monthly", "value": "150"}]},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200

        page = client.get("/memberships", headers=auth_headers(member)).json()
        assert page["props"]["fees"]["fee_membership_monthly"] == "150"

    def test_unknown_key(self, client, admin, auth_headers):
        response = client.post(
            "/settings", json={"settings": [{"key": "nope", "value": "1"}]}, headers=auth_headers(admin)
        )
        assert response.status_code == 400

    def test_activity_logs(self, client, db, admin, auth_headers):
        client.post("/users", json=NEW_USER, headers=auth_headers(admin))

        page = client.get("/settings/activity-logs?action=user_create", headers=auth_headers(admin)).json()

        assert page["props"]["logs"]["total"] == 1
        assert page["props"]["logs"]["data"][0]["user"]["id"] == admin.id
        assert page["props"]["actions"] == ["user_create"]
        assert db.query(ActivityLog).count() == 1


class TestExpensesApi:
    def test_crud_and_views(self, client, staff, auth_headers):
        headers = auth_headers(staff)
        created = client.post(
            "/expenses", json={"date": "2025-02-09", "item": "Balls", "amount": "120.50"}, headers=headers
        ).json()
        expense_id = created["expense"]["id"]

        summary = client.get("/expenses", headers=headers).json()["props"]
        assert summary["mode"] == "summary"
        assert summary["dailyExpenses"]["data"][0]["count"] == 1

        updated = client.put(
            f"/expenses/{expense_id}", json={"date": "2025-02-09", "item": "Nets", "amount": "80"}, headers=headers
        )
        assert updated.json()["expense"]["item"] == "Nets"

        detail = client.get("/expenses?date=2025-02-09", headers=headers).json()["props"]
        assert detail["mode"] == "detail"
        assert [e["item"] for e in detail["expenses"]] == ["Nets"]

        assert client.delete(f"/expenses/{expense_id}", headers=headers).status_code == 200
        assert client.delete(f"/expenses/{expense_id}", headers=headers).status_code == 404

    def test_negative_amount(self, client, staff, auth_headers):
        response = client.post(
            "/expenses", json={"date": "2025-02-09", "item": "Balls", "amount": "-1"}, headers=auth_headers(staff)
        )
        assert response.status_code == 422
