"""
Tests for work plans, production records and the reject limit alert.
"""
from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlmodel import select

from prodtrack.models import Alert
from prodtrack.schemas import ProductionRecordCreate, ProductionRecordUpdate, WorkPlanIn
from prodtrack.services import alerts, production_records, work_plans

WEDNESDAY = date(2024, 3, 6)
MONDAY = date(2024, 3, 4)
SATURDAY = date(2024, 3, 9)


def plan_payload(master, **overrides):
    payload = {
        "operator_id": master.budi.id,
        "product_id": master.plate.id,
        "production_stage_id": master.stages["throwing"].id,
        "planned_date": WEDNESDAY.isoformat(),
        "target_quantity": 40,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def plan(session, ctx, master):
    return work_plans.create_work_plan(session, ctx, WorkPlanIn(**plan_payload(master)))


def record_payload(plan, **overrides):
    payload = {
        "work_plan_id": plan["id"],
        "recorded_date": WEDNESDAY.isoformat(),
        "completed_quantity": 20,
        "good_quantity": 15,
        "reject_quantity": 5,
        "reject_reason": "Cracked during drying",
        "reject_stage": "drying",
    }
    payload.update(overrides)
    return payload


class TestWorkPlans:
    def test_defaults_week_start_and_overtime(self, admin_client, master):
        resp = admin_client.post("/api/work-plans", json=plan_payload(master))
        assert resp.status_code == 201
        body = resp.json()
        assert body["week_start"] == MONDAY.isoformat()
        assert body["is_overtime"] is False
        assert body["operator"]["full_name"] == "Budi Santoso"
        assert body["stage"]["code"] == "throwing"

    def test_weekend_defaults_to_overtime(self, admin_client, master):
        resp = admin_client.post("/api/work-plans", json=plan_payload(master, planned_date=SATURDAY.isoformat()))
        assert resp.json()["is_overtime"] is True

    def test_explicit_overtime_wins(self, admin_client, master):
        resp = admin_client.post(
            "/api/work-plans", json=plan_payload(master, planned_date=SATURDAY.isoformat(), is_overtime=False)
        )
        assert resp.json()["is_overtime"] is False

    def test_week_start_must_contain_planned_date(self):
        with pytest.raises(PydanticValidationError):
            WorkPlanIn(
                operator_id=1, product_id=1, production_stage_id=1, target_quantity=1,
                planned_date=WEDNESDAY, week_start=date(2024, 2, 26),
            )
        with pytest.raises(PydanticValidationError):
            WorkPlanIn(
                operator_id=1, product_id=1, production_stage_id=1, target_quantity=1,
                planned_date=WEDNESDAY, week_start=date(2024, 3, 5),
            )

    def test_target_must_be_positive(self, admin_client, master):
        resp = admin_client.post("/api/work-plans", json=plan_payload(master, target_quantity=0))
        assert resp.status_code == 400

    def test_duplicate_operator_date_stage(self, admin_client, master):
        assert admin_client.post("/api/work-plans", json=plan_payload(master)).status_code == 201
        resp = admin_client.post("/api/work-plans", json=plan_payload(master, product_id=master.bowl.id))
        assert resp.status_code == 409

    def test_same_operator_other_stage_is_fine(self, admin_client, master):
        admin_client.post("/api/work-plans", json=plan_payload(master))
        resp = admin_client.post(
            "/api/work-plans", json=plan_payload(master, production_stage_id=master.stages["glazing"].id)
        )
        assert resp.status_code == 201

    def test_order_item_must_match_order_and_product(self, admin_client, master):
        order = admin_client.post("/api/production-orders", json={
            "client_id": master.client.id,
            "po_no": "PO-9",
            "delivery_date": "2024-04-01",
            "items": [{"product_id": master.bowl.id, "qty_ordered": 10}],
        }).json()
        item_id = order["items"][0]["id"]

        wrong_product = admin_client.post("/api/work-plans", json=plan_payload(
            master, production_order_id=order["id"], production_order_item_id=item_id,
        ))
        assert wrong_product.status_code == 400

        ok = admin_client.post("/api/work-plans", json=plan_payload(
            master, product_id=master.bowl.id, production_order_id=order["id"], production_order_item_id=item_id,
        ))
        assert ok.status_code == 201
        assert ok.json()["production_order"]["po_no"] == "PO-9"

    def test_list_orders_by_date_then_stage(self, admin_client, master):
        admin_client.post("/api/work-plans", json=plan_payload(master, production_stage_id=master.stages["glazing"].id))
        admin_client.post("/api/work-plans", json=plan_payload(master))
        admin_client.post("/api/work-plans", json=plan_payload(master, planned_date=MONDAY.isoformat()))
        plans = admin_client.get("/api/work-plans", params={"week_start": MONDAY.isoformat()}).json()
        assert [(p["planned_date"], p["stage"]["code"]) for p in plans] == [
            ("2024-03-04", "throwing"),
            ("2024-03-06", "throwing"),
            ("2024-03-06", "glazing"),
        ]
        by_day = admin_client.get("/api/work-plans", params={"date": WEDNESDAY.isoformat()}).json()
        assert len(by_day) == 2

    def test_update_and_delete(self, admin_client, master, plan):
        resp = admin_client.put(f"/api/work-plans/{plan['id']}", json=plan_payload(master, target_quantity=55))
        assert resp.status_code == 200
        assert resp.json()["target_quantity"] == 55
        assert admin_client.delete(f"/api/work-plans/{plan['id']}").json() == {"success": True}

    def test_delete_blocked_by_records(self, admin_client, input_client, plan):
        assert input_client.post("/api/production/records", json=record_payload(plan)).status_code == 201
        resp = admin_client.delete(f"/api/work-plans/{plan['id']}")
        assert resp.status_code == 400

    def test_inputdata_cannot_plan(self, input_client, master):
        assert input_client.post("/api/work-plans", json=plan_payload(master)).status_code == 401


class TestRecordInvariant:
    def test_balanced_quantities_accepted(self, input_client, plan, tenant):
        resp = input_client.post("/api/production/records", json=record_payload(plan))
        assert resp.status_code == 201
        body = resp.json()
        assert body["recorded_by"] == tenant.clerk.id
        assert body["work_plan"]["operator"]["full_name"] == "Budi Santoso"

    def test_unbalanced_quantities_rejected(self, input_client, plan, session):
        resp = input_client.post("/api/production/records", json=record_payload(plan, reject_quantity=6))
        assert resp.status_code == 400
        assert resp.json()["details"][0]["message"].endswith(
            "Good quantity plus reject quantity must equal completed quantity"
        )
        assert input_client.get("/api/production/records").json() == []

    def test_negative_quantity_rejected(self, input_client, plan):
        resp = input_client.post(
            "/api/production/records",
            json=record_payload(plan, completed_quantity=-1, good_quantity=-1, reject_quantity=0),
        )
        assert resp.status_code == 400

    def test_reject_fields_cleared_without_rejects(self):
        payload = ProductionRecordCreate(
            work_plan_id=1, completed_quantity=10, good_quantity=10, reject_quantity=0,
            reject_reason="n/a", reject_stage="drying",
        )
        assert payload.reject_reason is None
        assert payload.reject_stage is None

    def test_start_after_end_rejected(self, input_client, plan):
        resp = input_client.post(
            "/api/production/records", json=record_payload(plan, start_time="15:00", end_time="08:00")
        )
        assert resp.status_code == 400

    def test_one_record_per_plan_and_day(self, input_client, plan):
        assert input_client.post("/api/production/records", json=record_payload(plan)).status_code == 201
        resp = input_client.post("/api/production/records", json=record_payload(plan))
        assert resp.status_code == 409

    def test_unknown_work_plan(self, input_client, plan):
        resp = input_client.post("/api/production/records", json=record_payload(plan, work_plan_id=9999))
        assert resp.status_code == 404


class TestRejectAlert:
    def _alerts(self, session):
        return session.exec(select(Alert)).all()

    def test_within_limit_no_alert(self, session, clerk_ctx, plan):
        production_records.create_record(
            session, clerk_ctx, ProductionRecordCreate(**record_payload(plan, good_quantity=10, reject_quantity=10))
        )
        assert self._alerts(session) == []

    def test_above_limit_raises_alert(self, session, clerk_ctx, plan):
        record = production_records.create_record(
            session, clerk_ctx, ProductionRecordCreate(**record_payload(plan, good_quantity=9, reject_quantity=11))
        )
        raised = self._alerts(session)
        assert len(raised) == 1
        alert = raised[0]
        assert alert.alert_type == "reject_limit_exceeded"
        assert alert.severity == "high"
        assert alert.related_record_id == record["id"]
        assert alert.company_id == clerk_ctx.company_id
        assert not alert.is_resolved

    def test_limit_comes_from_company_settings(self, admin_client, input_client, plan, session):
        admin_client.put("/api/companies/current/settings", json={"rejectLimit": 4})
        input_client.post("/api/production/records", json=record_payload(plan))
        assert len(self._alerts(session)) == 1

    def test_update_reruns_rule(self, input_client, plan, session):
        record = input_client.post("/api/production/records", json=record_payload(plan)).json()
        assert self._alerts(session) == []
        resp = input_client.put(f"/api/production/records/{record['id']}", json={
            "completed_quantity": 20, "good_quantity": 5, "reject_quantity": 15, "reject_reason": "Glaze defect",
        })
        assert resp.status_code == 200
        assert resp.json()["recorded_date"] == WEDNESDAY.isoformat()
        assert len(self._alerts(session)) == 1

    def test_editing_notes_does_not_repeat_alert(self, input_client, plan, session):
        over = record_payload(plan, good_quantity=5, reject_quantity=15)
        record = input_client.post("/api/production/records", json=over).json()
        assert len(self._alerts(session)) == 1

        over.pop("work_plan_id")
        over["notes"] = "Kiln door left open"
        resp = input_client.put(f"/api/production/records/{record['id']}", json=over)
        assert resp.status_code == 200
        assert resp.json()["notes"] == "Kiln door left open"
        assert len(self._alerts(session)) == 1

    def test_open_alert_is_not_duplicated(self, session, clerk_ctx, plan):
        record = production_records.create_record(
            session, clerk_ctx, ProductionRecordCreate(**record_payload(plan, good_quantity=5, reject_quantity=15))
        )
        production_records.update_record(session, clerk_ctx, record["id"], ProductionRecordUpdate(
            completed_quantity=20, good_quantity=2, reject_quantity=18, reject_reason="Glaze defect",
        ))
        assert len(self._alerts(session)) == 1

    def test_resolved_alert_fires_again_on_new_rejects(self, session, ctx, clerk_ctx, plan):
        record = production_records.create_record(
            session, clerk_ctx, ProductionRecordCreate(**record_payload(plan, good_quantity=5, reject_quantity=15))
        )
        alerts.resolve_alert(session, ctx, self._alerts(session)[0].id)
        production_records.update_record(session, clerk_ctx, record["id"], ProductionRecordUpdate(
            completed_quantity=20, good_quantity=2, reject_quantity=18, reject_reason="Glaze defect",
        ))
        assert len(self._alerts(session)) == 2


class TestRecordQueries:
    def test_filters(self, session, ctx, master, input_client):
        p1 = work_plans.create_work_plan(session, ctx, WorkPlanIn(**plan_payload(master)))
        p2 = work_plans.create_work_plan(session, ctx, WorkPlanIn(**plan_payload(
            master, operator_id=master.sari.id, production_stage_id=master.stages["trimming"].id,
        )))
        input_client.post("/api/production/records", json=record_payload(p1))
        input_client.post("/api/production/records", json=record_payload(p2, recorded_date="2024-03-07"))

        everything = input_client.get("/api/production/records").json()
        assert [r["recorded_date"] for r in everything] == ["2024-03-07", "2024-03-06"]

        by_operator = input_client.get("/api/production/records", params={"operator_id": master.sari.id}).json()
        assert [r["work_plan_id"] for r in by_operator] == [p2["id"]]

        by_stage = input_client.get(
            "/api/production/records", params={"stage_id": master.stages["throwing"].id}
        ).json()
        assert [r["work_plan_id"] for r in by_stage] == [p1["id"]]

        by_date = input_client.get("/api/production/records", params={"date": "2024-03-06"}).json()
        assert len(by_date) == 1

    def test_other_tenant_cannot_see_records(self, input_client, other_admin_client, plan):
        record = input_client.post("/api/production/records", json=record_payload(plan)).json()
        assert other_admin_client.get(f"/api/production/records/{record['id']}").status_code == 404
        assert other_admin_client.get("/api/production/records").json() == []
