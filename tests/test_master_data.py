"""
Tests for master data endpoints: uniqueness, delete guards, tenant
isolation, pagination and company settings.
"""
import pytest

from prodtrack.errors import ConflictError, ReferentialConflictError
from prodtrack.schemas import MonthlyTargetIn, ProductIn
from prodtrack.services import products, targets


class TestProducts:
    def test_create_and_get(self, admin_client):
        resp = admin_client.post("/api/products", json={"code": "VS-01", "name": "Tall Vase", "standard_time": 12.5})
        assert resp.status_code == 201
        product = resp.json()
        assert product["difficulty_level"] == 3

        got = admin_client.get(f"/api/products/{product['id']}")
        assert got.status_code == 200
        assert got.json()["name"] == "Tall Vase"

    def test_duplicate_code_conflicts(self, admin_client, master):
        resp = admin_client.post("/api/products", json={"code": "PL-01", "name": "Another Plate"})
        assert resp.status_code == 409
        assert resp.json() == {"error": "Product code already exists"}

    def test_update_may_keep_own_code(self, admin_client, master):
        resp = admin_client.put(f"/api/products/{master.plate.id}", json={"code": "PL-01", "name": "Side Plate"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "Side Plate"

    def test_update_to_taken_code_conflicts(self, admin_client, master):
        resp = admin_client.put(f"/api/products/{master.plate.id}", json={"code": "BW-01", "name": "Plate"})
        assert resp.status_code == 409

    def test_invalid_fields(self, admin_client):
        resp = admin_client.post("/api/products", json={"code": "X", "name": "X", "difficulty_level": 9})
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Invalid input data"
        assert body["details"][0]["field"] == "difficulty_level"

    def test_delete_blocked_by_monthly_target(self, session, ctx, master):
        targets.create_target(session, ctx, MonthlyTargetIn(product_id=master.plate.id, month="2024-03", target_quantity=500))
        with pytest.raises(ReferentialConflictError, match="monthly targets"):
            products.delete_product(session, ctx, master.plate.id)

    def test_delete_unreferenced(self, admin_client, master):
        resp = admin_client.delete(f"/api/products/{master.bowl.id}")
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert admin_client.get(f"/api/products/{master.bowl.id}").status_code == 404

    def test_list_orders_active_first_then_code(self, session, ctx, admin_client, master):
        products.create_product(session, ctx, ProductIn(code="AA-01", name="Old Cup", is_active=False))
        codes = [p["code"] for p in admin_client.get("/api/products").json()]
        assert codes == ["BW-01", "PL-01", "AA-01"]

    def test_is_active_filter(self, session, ctx, admin_client, master):
        products.create_product(session, ctx, ProductIn(code="AA-01", name="Old Cup", is_active=False))
        codes = [p["code"] for p in admin_client.get("/api/products", params={"is_active": "false"}).json()]
        assert codes == ["AA-01"]


class TestOperators:
    def test_employee_id_unique_per_company(self, admin_client, other_admin_client, master):
        dup = admin_client.post("/api/operators", json={"employee_id": "OP-001", "full_name": "Someone"})
        assert dup.status_code == 409
        # same employee id in another company is fine
        ok = other_admin_client.post("/api/operators", json={"employee_id": "OP-001", "full_name": "Someone"})
        assert ok.status_code == 201

    def test_skills_must_be_stage_codes(self, admin_client, master):
        resp = admin_client.post("/api/operators", json={
            "employee_id": "OP-009", "full_name": "Rina", "skills": ["glazing", "juggling"],
        })
        assert resp.status_code == 400
        assert "juggling" in resp.json()["error"]

    def test_skills_are_deduplicated(self, admin_client, master):
        resp = admin_client.post("/api/operators", json={
            "employee_id": "OP-010", "full_name": "Tono", "skills": ["glazing", "glazing", " drying "],
        })
        assert resp.status_code == 201
        assert resp.json()["skills"] == ["glazing", "drying"]


class TestClients:
    def test_delete_blocked_by_orders(self, admin_client, master):
        order = admin_client.post("/api/production-orders", json={
            "client_id": master.client.id,
            "po_no": "PO-100",
            "delivery_date": "2024-04-01",
            "items": [{"product_id": master.plate.id, "qty_ordered": 10}],
        })
        assert order.status_code == 201
        resp = admin_client.delete(f"/api/clients/{master.client.id}")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Cannot delete client with existing production orders"}

    @pytest.mark.parametrize("email", ["not-an-email", "a@b..c", "cafe@", "two@@signs.com"])
    def test_invalid_email(self, admin_client, email):
        resp = admin_client.post("/api/clients", json={"name": "Cafe", "email": email})
        assert resp.status_code == 400
        assert resp.json()["details"][0]["field"] == "email"

    def test_valid_email_kept(self, admin_client):
        resp = admin_client.post("/api/clients", json={"name": "Cafe", "email": "orders@kopi-kenangan.co.id"})
        assert resp.status_code == 201
        assert resp.json()["email"] == "orders@kopi-kenangan.co.id"

    def test_blank_email_is_dropped(self, admin_client):
        resp = admin_client.post("/api/clients", json={"name": "Cafe", "email": "  "})
        assert resp.status_code == 201
        assert resp.json()["email"] is None


class TestStagesAndTargets:
    def test_seeded_stages_in_display_order(self, admin_client, tenant):
        stages = admin_client.get("/api/production-stages").json()
        assert len(stages) == 11
        assert stages[0]["code"] == "throwing"
        assert stages[-1]["code"] == "quality_control"

    def test_stage_color_validated(self, admin_client):
        resp = admin_client.post("/api/production-stages", json={
            "code": "packing", "name": "Packing", "background_color": "red",
        })
        assert resp.status_code == 400

    def test_target_unique_per_product_and_month(self, session, ctx, master):
        payload = MonthlyTargetIn(product_id=master.plate.id, month="2024-03", target_quantity=500)
        targets.create_target(session, ctx, payload)
        with pytest.raises(ConflictError):
            targets.create_target(session, ctx, payload)

    def test_target_month_format(self, admin_client, master):
        resp = admin_client.post("/api/monthly-targets", json={
            "product_id": master.plate.id, "month": "2024-13", "target_quantity": 10,
        })
        assert resp.status_code == 400


class TestTenantIsolation:
    def test_other_tenant_rows_are_not_found(self, other_admin_client, master):
        assert other_admin_client.get(f"/api/products/{master.plate.id}").status_code == 404
        assert other_admin_client.get(f"/api/clients/{master.client.id}").status_code == 404
        assert other_admin_client.delete(f"/api/operators/{master.budi.id}").status_code == 404

    def test_lists_are_scoped(self, other_admin_client, master):
        assert other_admin_client.get("/api/products").json() == []
        assert len(other_admin_client.get("/api/production-stages").json()) == 11

    def test_cannot_reference_other_tenant_product(self, other_admin_client, master):
        resp = other_admin_client.post("/api/monthly-targets", json={
            "product_id": master.plate.id, "month": "2024-03", "target_quantity": 10,
        })
        assert resp.status_code == 404


class TestPagination:
    def test_page_shape(self, session, ctx, admin_client):
        for i in range(7):
            products.create_product(session, ctx, ProductIn(code=f"P-{i:02d}", name=f"Product {i}"))
        resp = admin_client.get("/api/products", params={"page": 2, "limit": 3})
        body = resp.json()
        assert [p["code"] for p in body["data"]] == ["P-03", "P-04", "P-05"]
        assert body["pagination"] == {"page": 2, "limit": 3, "total": 7, "pages": 3}

    def test_page_past_end_is_empty(self, session, ctx, admin_client):
        products.create_product(session, ctx, ProductIn(code="P-00", name="Product"))
        body = admin_client.get("/api/products", params={"page": 5, "limit": 10}).json()
        assert body["data"] == []
        assert body["pagination"]["total"] == 1

    def test_page_must_be_positive(self, admin_client):
        assert admin_client.get("/api/products", params={"page": 0}).status_code == 400


class TestCompanySettings:
    def test_defaults(self, input_client):
        resp = input_client.get("/api/companies/current/settings")
        assert resp.status_code == 200
        assert resp.json()["rejectLimit"] == 10

    def test_update(self, admin_client):
        resp = admin_client.put("/api/companies/current/settings", json={
            "workingDays": ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday"],
            "overtimeDays": ["sunday"],
            "rejectLimit": 5,
        })
        assert resp.status_code == 200
        assert resp.json()["overtimeDays"] == ["sunday"]
        assert admin_client.get("/api/companies/current/settings").json()["rejectLimit"] == 5

    def test_day_cannot_be_working_and_overtime(self, admin_client):
        resp = admin_client.put("/api/companies/current/settings", json={
            "workingDays": ["monday", "saturday"],
            "overtimeDays": ["saturday"],
            "rejectLimit": 5,
        })
        assert resp.status_code == 400

    def test_unknown_day_and_negative_limit(self, admin_client):
        resp = admin_client.put("/api/companies/current/settings", json={
            "workingDays": ["funday"], "overtimeDays": [], "rejectLimit": -1,
        })
        assert resp.status_code == 400
        fields = {d["field"] for d in resp.json()["details"]}
        assert "rejectLimit" in fields

    def test_inputdata_cannot_change_settings(self, input_client):
        resp = input_client.put("/api/companies/current/settings", json={"rejectLimit": 3})
        assert resp.status_code == 401


class TestDeleteGuards:
    def _plan(self, admin_client, master, operator, product):
        resp = admin_client.post("/api/work-plans", json={
            "operator_id": operator.id,
            "product_id": product.id,
            "production_stage_id": master.stages["throwing"].id,
            "planned_date": "2024-03-06",
            "target_quantity": 20,
        })
        assert resp.status_code == 201
        return resp.json()

    def test_operator_with_work_plans(self, admin_client, master):
        plan = self._plan(admin_client, master, master.sari, master.plate)
        resp = admin_client.delete(f"/api/operators/{master.sari.id}")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Cannot delete operator with existing work plans"}
        assert admin_client.get(f"/api/operators/{master.sari.id}").status_code == 200
        assert admin_client.get(f"/api/work-plans/{plan['id']}").json()["operator_id"] == master.sari.id

    def test_product_with_order_items(self, admin_client, master):
        order = admin_client.post("/api/production-orders", json={
            "client_id": master.client.id,
            "po_no": "PO-200",
            "delivery_date": "2024-04-01",
            "items": [{"product_id": master.bowl.id, "qty_ordered": 10}],
        }).json()
        resp = admin_client.delete(f"/api/products/{master.bowl.id}")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Cannot delete product with existing order items"}
        assert admin_client.get(f"/api/products/{master.bowl.id}").status_code == 200
        items = admin_client.get(f"/api/production-orders/{order['id']}").json()["items"]
        assert [i["product_id"] for i in items] == [master.bowl.id]

    def test_product_with_work_plans(self, admin_client, master):
        plan = self._plan(admin_client, master, master.budi, master.bowl)
        resp = admin_client.delete(f"/api/products/{master.bowl.id}")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Cannot delete product with existing work plans"}
        assert admin_client.get(f"/api/products/{master.bowl.id}").json()["code"] == "BW-01"
        assert admin_client.get(f"/api/work-plans/{plan['id']}").status_code == 200


class TestTimestamps:
    def test_create_and_update_store_timestamps(self, session, ctx, admin_client, master):
        resp = admin_client.put(f"/api/products/{master.plate.id}", json={"code": "PL-01", "name": "Side Plate"})
        assert resp.status_code == 200
        product = products.get_product(session, ctx, master.plate.id)
        assert product.created_at is not None
        assert product.updated_at is not None
