"""
Tests for the production reports, the dashboard and the admin grid endpoint.
"""
from datetime import date

import pytest

from prodtrack.schemas import MonthlyTargetIn, ProductionRecordCreate, WorkPlanIn
from prodtrack.services import production_records, reports, targets, work_plans

MONDAY = date(2024, 3, 4)
SUNDAY = date(2024, 3, 10)


def _plan(session, ctx, operator, product, stage, planned, target):
    return work_plans.create_work_plan(session, ctx, WorkPlanIn(
        operator_id=operator.id,
        product_id=product.id,
        production_stage_id=stage.id,
        planned_date=planned,
        target_quantity=target,
    ))


def _record(session, ctx, plan, recorded, completed, good, reject=0, reason=None):
    return production_records.create_record(session, ctx, ProductionRecordCreate(
        work_plan_id=plan["id"],
        recorded_date=recorded,
        completed_quantity=completed,
        good_quantity=good,
        reject_quantity=reject,
        reject_reason=reason,
    ))


@pytest.fixture
def week(session, ctx, master):
    """
    Three plans in the week of 2024-03-04 plus one in the next week.

    2024-03-04: budi/plate target 40 -> 36 good, 4 cracked
                sari/bowl  target 20 -> 12 good
    2024-03-05: budi/plate target 50 -> 25 good
    2024-03-11: budi/plate target 100 -> 90 good (outside the range)
    """
    st = master.stages
    p1 = _plan(session, ctx, master.budi, master.plate, st["throwing"], MONDAY, 40)
    p2 = _plan(session, ctx, master.sari, master.bowl, st["trimming"], MONDAY, 20)
    p3 = _plan(session, ctx, master.budi, master.plate, st["glazing"], date(2024, 3, 5), 50)
    p4 = _plan(session, ctx, master.budi, master.plate, st["throwing"], date(2024, 3, 11), 100)
    _record(session, ctx, p1, MONDAY, 40, 36, 4, "Cracked")
    _record(session, ctx, p2, MONDAY, 12, 12)
    _record(session, ctx, p3, date(2024, 3, 5), 25, 25)
    _record(session, ctx, p4, date(2024, 3, 11), 90, 90)
    return master


class TestProductionReport:
    def test_full_week(self, session, ctx, week):
        report = reports.production_report(session, ctx, MONDAY, SUNDAY)

        assert report["summary"] == {
            "total_target": 110,
            "total_actual": 73,
            "total_rejects": 4,
            "average_achievement": 65.0,
        }
        assert report["target_achievement"] == [
            {"date": MONDAY, "target": 60, "actual": 48, "percentage": 80.0},
            {"date": date(2024, 3, 5), "target": 50, "actual": 25, "percentage": 50.0},
        ]
        assert report["reject_analysis"] == [{"reason": "Cracked", "count": 4, "percentage": 100.0}]

    def test_operator_performance_uses_completed_over_target(self, session, ctx, week):
        perf = reports.production_report(session, ctx, MONDAY, SUNDAY)["operator_performance"]
        assert [(p["operator_name"], p["achievement_rate"]) for p in perf] == [
            ("Budi Santoso", 72.2),
            ("Sari Dewi", 60.0),
        ]
        budi = perf[0]
        assert (budi["target_quantity"], budi["completed_quantity"], budi["good_quantity"]) == (90, 65, 61)

    def test_product_performance_sorted_by_code(self, session, ctx, week):
        perf = reports.production_report(session, ctx, MONDAY, SUNDAY)["product_performance"]
        assert [(p["product_code"], p["target_quantity"], p["good_quantity"], p["reject_quantity"]) for p in perf] == [
            ("BW-01", 20, 12, 0),
            ("PL-01", 90, 61, 4),
        ]

    def test_plan_without_records_counts_as_zero(self, session, ctx, master):
        _plan(session, ctx, master.budi, master.plate, master.stages["throwing"], MONDAY, 30)
        report = reports.production_report(session, ctx, MONDAY, SUNDAY)
        assert report["target_achievement"] == [{"date": MONDAY, "target": 30, "actual": 0, "percentage": 0.0}]
        assert report["reject_analysis"] == []

    def test_empty_range(self, session, ctx, master):
        report = reports.production_report(session, ctx, date(2023, 1, 2), date(2023, 1, 8))
        assert report["summary"] == {
            "total_target": 0, "total_actual": 0, "total_rejects": 0, "average_achievement": 0.0,
        }
        assert report["operator_performance"] == []
        assert report["product_performance"] == []

    def test_through_api(self, admin_client, week):
        resp = admin_client.get("/api/reports/production", params={"start": "2024-03-04", "end": "2024-03-10"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["start"] == "2024-03-04"
        assert body["target_achievement"][0]["date"] == "2024-03-04"
        assert body["summary"]["total_actual"] == 73

    def test_start_after_end(self, admin_client):
        resp = admin_client.get("/api/reports/production", params={"start": "2024-03-10", "end": "2024-03-04"})
        assert resp.status_code == 400

    def test_default_range_is_current_week(self):
        assert reports.default_range(date(2024, 3, 6)) == (MONDAY, SUNDAY)

    def test_other_tenant_sees_nothing(self, other_admin_client, week):
        body = other_admin_client.get(
            "/api/reports/production", params={"start": "2024-03-04", "end": "2024-03-10"}
        ).json()
        assert body["summary"]["total_target"] == 0


class TestMonthlyTargetsReport:
    def test_achieved_from_records_in_month(self, session, ctx, admin_client, week):
        targets.create_target(session, ctx, MonthlyTargetIn(product_id=week.plate.id, month="2024-03", target_quantity=500))
        targets.create_target(session, ctx, MonthlyTargetIn(product_id=week.bowl.id, month="2024-03", target_quantity=100))
        targets.create_target(session, ctx, MonthlyTargetIn(product_id=week.plate.id, month="2024-04", target_quantity=10))

        body = admin_client.get("/api/reports/monthly-targets", params={"month": "2024-03"}).json()
        assert body["month"] == "2024-03"
        assert [(r["product_code"], r["target_quantity"], r["achieved_quantity"], r["percentage"])
                for r in body["data"]] == [
            ("BW-01", 100, 12, 12.0),
            ("PL-01", 500, 151, 30.2),
        ]

    def test_month_without_targets(self, admin_client):
        body = admin_client.get("/api/reports/monthly-targets", params={"month": "2024-02"}).json()
        assert body == {"month": "2024-02", "data": []}

    def test_bad_month(self, admin_client):
        assert admin_client.get("/api/reports/monthly-targets", params={"month": "2024-3"}).status_code == 400


class TestDashboard:
    def test_counts(self, session, ctx, week):
        targets.create_target(session, ctx, MonthlyTargetIn(product_id=week.plate.id, month="2024-03", target_quantity=500))
        targets.create_target(session, ctx, MonthlyTargetIn(product_id=week.bowl.id, month="2024-03", target_quantity=100))

        data = reports.dashboard(session, ctx, today=date(2024, 3, 6))
        assert data == {
            "active_operators": 2,
            "work_plans_this_week": 3,
            "unresolved_alerts": 0,
            "month": "2024-03",
            "month_target": 600,
            "month_to_date_good": 73,
            "month_to_date_achievement": 12.2,
        }

    def test_endpoint_open_to_inputdata(self, input_client, tenant):
        resp = input_client.get("/api/reports/dashboard")
        assert resp.status_code == 200
        assert resp.json()["month_target"] == 0


class TestGridEndpoint:
    def test_columns_and_rows(self, admin_client, master):
        body = admin_client.get("/api/grid/products").json()
        assert [c["key"] for c in body["columns"]][:2] == ["code", "name"]
        assert {r["code"] for r in body["data"]} == {"PL-01", "BW-01"}
        assert all(r["is_active"] == "Active" for r in body["data"])
        assert body["summary"] == "Showing 1 to 2 of 2 results"

    def test_filter_search_and_sort(self, admin_client, master):
        blue = admin_client.get("/api/grid/products", params={"filter": "color:blue"}).json()
        assert [r["code"] for r in blue["data"]] == ["BW-01"]

        cleared = admin_client.get("/api/grid/products", params={"filter": "color:all"}).json()
        assert cleared["pagination"]["total"] == 2

        found = admin_client.get("/api/grid/products", params={"search": "plate"}).json()
        assert [r["code"] for r in found["data"]] == ["PL-01"]

        desc = admin_client.get("/api/grid/products", params={"sort": "code", "direction": "desc"}).json()
        assert [r["code"] for r in desc["data"]] == ["PL-01", "BW-01"]

    def test_pagination(self, admin_client, master):
        body = admin_client.get(
            "/api/grid/products", params={"sort": "code", "page_size": 1, "page": 2}
        ).json()
        assert [r["code"] for r in body["data"]] == ["PL-01"]
        assert body["pagination"] == {"page": 2, "limit": 1, "total": 2, "pages": 2}
        assert body["page_window"] == [1, 2]
        assert body["summary"] == "Showing 2 to 2 of 2 results"

    def test_nested_columns(self, admin_client, week):
        body = admin_client.get(
            "/api/grid/production-records", params={"sort": "good_quantity", "direction": "desc"}
        ).json()
        assert body["data"][0]["operator"] == "Budi Santoso"
        assert body["data"][0]["good_quantity"] == 90

    def test_unknown_view(self, admin_client):
        assert admin_client.get("/api/grid/nothing").status_code == 404

    @pytest.mark.parametrize("raw", ["color", "nope:x"])
    def test_bad_filter(self, admin_client, master, raw):
        assert admin_client.get("/api/grid/products", params={"filter": raw}).status_code == 400

    def test_requires_login(self, anon_client):
        assert anon_client.get("/api/grid/products").status_code == 401
