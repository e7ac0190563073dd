"""Report pages and exports."""

import csv
import io
from datetime import date
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from clubhouse.models.court_booking import CourtBooking


@pytest.fixture
def bookings(db, member):
    for n, (status, day) in enumerate((("paid", date(2025, 2, 9)), ("pending", date(2025, 2, 10)))):
        db.add(CourtBooking(
            user_id=member.id,
            user_type_at_booking="member",
            schedule_type="day",
            booking_date=day,
            games_count=1,
            payment_method="cash",
            payment_reference=f"TC-API{n}",
            payment_status=status,
            total_amount=Decimal("75"),
        ))
    db.commit()


class TestBookingReport:
    def test_page(self, client, staff, auth_headers, bookings):
        page = client.get("/reports/bookings?payment_status=paid", headers=auth_headers(staff)).json()

        assert page["component"] == "Reports/Bookings"
        assert page["props"]["stats"]["total_bookings"] == 1
        assert page["props"]["filters"]["payment_status"] == "paid"

    def test_csv_export(self, client, staff, auth_headers, bookings):
        response = client.get("/reports/bookings/export?format=csv", headers=auth_headers(staff))

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == 'attachment; filename="booking_report.csv"'
        assert response.headers["x-record-count"] == "2"
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert {row["Status"] for row in rows} == {"Paid", "Pending"}

    def test_pdf_is_default(self, client, admin, auth_headers, bookings):
        response = client.get("/reports/bookings/export", headers=auth_headers(admin))
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_unsupported_format(self, client, staff, auth_headers):
        response = client.get("/reports/bookings/export?format=docx", headers=auth_headers(staff))
        assert response.status_code == 400

    def test_members_cannot_export(self, client, member, auth_headers):
        response = client.get("/reports/bookings/export?format=csv", headers=auth_headers(member))
        assert response.status_code == 403


class TestExcelExports:
    @pytest.mark.parametrize(
        "path,filename,heading",
        [
            ("/reports/bookings/export", "booking_report.xlsx", "Date"),
            ("/reports/members/export", "members_report.xlsx", "Name"),
            (
                "/reports/revenue/export?date_from=2025-02-01&date_to=2025-02-28",
                "revenue_report.xlsx",
                "Date",
            ),
            ("/reports/tournaments/export", "tournaments_report.xlsx", "Name"),
        ],
    )
    def test_each_report_exports_xlsx(self, client, staff, auth_headers, bookings, path, filename, heading):
        separator = "&" if "?" in path else "?"
        response = client.get(f"{path}{separator}format=xlsx", headers=auth_headers(staff))

        assert response.status_code == 200
        assert response.headers["content-type"] == (
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert response.headers["content-disposition"] == f'attachment; filename="{filename}"'
        sheet = load_workbook(io.BytesIO(response.content)).active
        assert sheet["A1"].value == heading
        assert sheet.max_row == int(response.headers["x-record-count"]) + 1

    def test_booking_amounts_are_numeric(self, client, staff, auth_headers, bookings):
        response = client.get("/reports/bookings/export?format=xlsx", headers=auth_headers(staff))
        sheet = load_workbook(io.BytesIO(response.content)).active
        headings = [cell.value for cell in sheet[1]]
        amount_column = headings.index("Amount") + 1
        assert [sheet.cell(row=r, column=amount_column).value for r in (2, 3)] == [75, 75]


class TestOtherReports:
    def test_revenue_with_range(self, client, staff, auth_headers, bookings):
        page = client.get(
            "/reports/revenue?date_from=2025-02-01&date_to=2025-02-28", headers=auth_headers(staff)
        ).json()
        assert [row["raw_date"] for row in page["props"]["data"]] == ["2025-02-09"]

        export = client.get(
            "/reports/revenue/export?format=json&date_from=2025-02-01&date_to=2025-02-28",
            headers=auth_headers(staff),
        )
        assert export.json()[0]["date"] == "Feb 09, 2025"

    def test_revenue_defaults_to_current_month(self, client, staff, auth_headers):
        page = client.get("/reports/revenue", headers=auth_headers(staff)).json()
        assert page["props"]["filters"]["date_from"] == date.today().replace(day=1).isoformat()

    def test_members(self, client, staff, member, non_member, auth_headers):
        page = client.get("/reports/members?type=member", headers=auth_headers(staff)).json()
        assert [row["name"] for row in page["props"]["users"]["data"]] == ["Maria Member"]

        export = client.get("/reports/members/export?format=csv", headers=auth_headers(staff))
        assert export.headers["x-record-count"] == "2"

    def test_tournaments_and_participants(self, client, admin, member, auth_headers):
        created = client.post(
            "/tournaments",
            json={
                "name": "Spring Cup",
                "start_date": "2030-04-01",
                "end_date": "2030-04-02",
                "registration_fee": "250",
            },
            headers=auth_headers(admin),
        ).json()
        tournament_id = created["tournament_id"]
        client.post(
            f"/tournaments/{tournament_id}/register", json={"payment_method": "cash"}, headers=auth_headers(member)
        )

        report = client.get("/reports/tournaments", headers=auth_headers(admin)).json()
        assert report["props"]["tournaments"]["data"][0]["participants"] == "1 / "

        participants = client.get(
            f"/reports/tournaments/{tournament_id}/participants", headers=auth_headers(admin)
        ).json()
        assert participants["props"]["participants"]["total"] == 1

        export = client.get(
            f"/reports/tournaments/{tournament_id}/participants/export?format=csv",
            headers=auth_headers(admin),
        )
        assert "Maria Member" in export.text

        workbook = client.get(
            f"/reports/tournaments/{tournament_id}/participants/export?format=xlsx",
            headers=auth_headers(admin),
        )
        sheet = load_workbook(io.BytesIO(workbook.content)).active
        assert sheet.title == "Participants  Spring Cup"
        assert sheet["A2"].value == "Maria Member"

        assert client.get("/reports/tournaments/missing/participants", headers=auth_headers(admin)).status_code == 404
