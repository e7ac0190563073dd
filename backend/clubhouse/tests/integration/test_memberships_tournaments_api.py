"""Membership and tournament routes."""

from clubhouse.constants.roles import UserType
from clubhouse.models.tournament import TournamentRegistration

TOURNAMENT = {
    "name": "Club Championship",
    "start_date": "2030-05-01",
    "end_date": "2030-05-03",
    "registration_fee": "500",
    "max_participants": 8,
}


class TestMembershipsApi:
    def test_member_page_shows_fees(self, client, member, auth_headers):
        page = client.get("/memberships", headers=auth_headers(member)).json()
        assert page["props"]["fees"]["fee_membership_annual"] == "1000"
        assert page["props"]["mySubscription"] is None

    def test_staff_are_sent_to_management(self, client, staff, auth_headers):
        response = client.get("/memberships", headers=auth_headers(staff), follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/manage-memberships"

    def test_purchase_upgrades_non_member(self, client, db, non_member, auth_headers):
        response = client.post(
            "/memberships",
            json={"type": "annual", "payment_method": "gcash"},
            headers=auth_headers(non_member),
        )

        assert response.json()["flash"]["success"] == "Membership upgrade successful!"
        db.refresh(non_member)
        assert non_member.user_type is UserType.MEMBER

        page = client.get("/memberships", headers=auth_headers(non_member)).json()
        assert page["props"]["mySubscription"]["type"] == "Annual"

    def test_staff_must_pick_user(self, client, staff, auth_headers):
        response = client.post(
            "/memberships", json={"type": "monthly", "payment_method": "cash"}, headers=auth_headers(staff)
        )
        assert response.status_code == 400

    def test_staff_updates_membership(self, client, staff, member, auth_headers):
        response = client.put(
            f"/memberships/{member.id}",
            json={"type": "monthly", "start_date": "2030-01-01", "end_date": "2029-12-01"},
            headers=auth_headers(staff),
        )
        assert response.status_code == 400

        response = client.put(
            f"/memberships/{member.id}",
            json={"type": "lifetime", "start_date": "2030-01-01"},
            headers=auth_headers(staff),
        )
        assert response.status_code == 200

        manage = client.get("/manage-memberships", headers=auth_headers(staff)).json()
        [row] = [r for r in manage["props"]["users"]["data"] if r["id"] == member.id]
        assert row["expiry_date"] == "Lifetime"

    def test_user_search(self, client, staff, member, student, auth_headers):
        results = client.get("/api/users/search?query=stel", headers=auth_headers(staff)).json()
        assert [r["id"] for r in results] == [student.id]


class TestTournamentsApi:
    def _create(self, client, admin, auth_headers, **overrides):
        response = client.post("/tournaments", json=dict(TOURNAMENT, **overrides), headers=auth_headers(admin))
        assert response.status_code == 200
        return response.json()["tournament_id"]

    def test_only_admin_creates(self, client, staff, auth_headers):
        assert client.post("/tournaments", json=TOURNAMENT, headers=auth_headers(staff)).status_code == 403

    def test_register_flow(self, client, db, admin, member, auth_headers):
        tournament_id = self._create(client, admin, auth_headers)

        listing = client.get("/tournaments", headers=auth_headers(member)).json()
        assert [t["id"] for t in listing["props"]["tournaments"]] == [tournament_id]

        response = client.post(
            f"/tournaments/{tournament_id}/register",
            json={"payment_method": "cash"},
            headers=auth_headers(member),
        )
        assert response.json()["registration"]["payment_status"] == "unpaid"

        again = client.post(
            f"/tournaments/{tournament_id}/register",
            json={"payment_method": "cash"},
            headers=auth_headers(member),
        )
        assert again.status_code == 409

        show = client.get(f"/tournaments/{tournament_id}", headers=auth_headers(member)).json()
        assert show["props"]["myRegistration"]["user_id"] == member.id

    def test_participants_management(self, client, db, admin, member, auth_headers):
        tournament_id = self._create(client, admin, auth_headers)
        client.post(
            f"/tournaments/{tournament_id}/register",
            json={"payment_method": "gcash"},
            headers=auth_headers(member),
        )
        registration = db.query(TournamentRegistration).one()

        paid = client.patch(
            f"/tournaments/{tournament_id}/participants/{registration.id}/pay", headers=auth_headers(admin)
        )
        assert paid.status_code == 200

        page = client.get(f"/tournaments/{tournament_id}/participants", headers=auth_headers(admin)).json()
        assert page["props"]["summary"]["paid"] == 1

        removed = client.delete(
            f"/tournaments/{tournament_id}/participants/{registration.id}", headers=auth_headers(admin)
        )
        assert removed.json()["flash"]["success"] == "Participant removed successfully!"
        assert db.query(TournamentRegistration).count() == 0

    def test_update_and_missing(self, client, admin, auth_headers):
        tournament_id = self._create(client, admin, auth_headers)

        response = client.put(
            f"/tournaments/{tournament_id}",
            json=dict(TOURNAMENT, status="completed"),
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        edit = client.get(f"/tournaments/{tournament_id}/edit", headers=auth_headers(admin)).json()
        assert edit["props"]["tournament"]["status"] == "completed"
        assert edit["props"]["tournament"]["start_date"] == "2030-05-01"

        assert client.get("/tournaments/missing", headers=auth_headers(admin)).status_code == 404
