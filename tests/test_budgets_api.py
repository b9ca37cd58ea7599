from sqlalchemy import func, select

from app.models.budget import Budget
from app.models.budget_item import BudgetItem
from app.services import budget_service


async def _create(client, payload, **overrides):
    body = dict(payload, **overrides)
    response = await client.post("/api/v1/budgets", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _fail_item_insert(monkeypatch):
    """Make the last item of the next write violate NOT NULL on flush"""
    build_items = budget_service._build_items

    def broken(totals):
        items = build_items(totals)
        items[-1].name = None
        return items

    monkeypatch.setattr(budget_service, "_build_items", broken)


async def _row_counts(session):
    budgets = (await session.execute(select(func.count(Budget.id)))).scalar_one()
    items = (await session.execute(select(func.count(BudgetItem.id)))).scalar_one()
    return budgets, items


class TestCreateBudget:
    """Creating budgets with their line items"""

    async def test_create_computes_totals_and_drops_blank_items(self, client, budget_payload):
        budget = await _create(client, budget_payload)

        assert budget["number"] == 1
        assert budget["plate"] == "ABC123"
        assert budget["mileage"] == "85000"
        assert budget["notes"] is None
        assert [p["name"] for p in budget["parts"]] == ["Aceite 20W50", "Filtro de aceite"]
        assert budget["parts"][0]["total"] == 152000
        assert budget["parts_subtotal"] == 177000
        assert budget["labor_subtotal"] == 40000
        assert budget["total"] == 217000
        assert budget["message"] == "Budget #1 saved."

    async def test_numbers_are_sequential(self, client, budget_payload):
        first = await _create(client, budget_payload)
        second = await _create(client, budget_payload, plate="XYZ987")

        assert second["number"] == first["number"] + 1

    async def test_plate_and_owner_are_required(self, client, budget_payload):
        response = await client.post("/api/v1/budgets", json=dict(budget_payload, owner="   "))

        assert response.status_code == 400
        assert response.json()["detail"] == "Plate and owner are required."

        listing = await client.get("/api/v1/budgets")
        assert listing.json()["count"] == 0

    async def test_negative_price_is_rejected(self, client, budget_payload):
        payload = dict(budget_payload, labor=[{"name": "Pintura", "quantity": 1, "unit_price": -5}])
        response = await client.post("/api/v1/budgets", json=payload)

        assert response.status_code == 422

    async def test_blank_quantity_counts_as_zero(self, client, budget_payload):
        payload = dict(budget_payload, parts=[{"name": "Tornillo", "quantity": "", "unit_price": 500}], labor=[])
        budget = await _create(client, payload)

        assert budget["parts"][0]["quantity"] == 0
        assert budget["total"] == 0

    async def test_stored_totals_match_quantity_times_price(self, client, budget_payload):
        payload = dict(
            budget_payload,
            parts=[
                {"name": "Cable", "quantity": "0.125", "unit_price": "10000"},
                {"name": "Arandela", "quantity": 3, "unit_price": "0.333"},
            ],
            labor=[],
        )
        created = await _create(client, payload)

        stored = (await client.get(f"/api/v1/budgets/{created['id']}")).json()

        for line in stored["parts"]:
            assert round(line["quantity"] * line["unit_price"], 2) == line["total"]
        assert [(p["quantity"], p["unit_price"], p["total"]) for p in stored["parts"]] == [
            (0.13, 10000.0, 1300.0),
            (3.0, 0.33, 0.99),
        ]
        assert created["parts"] == stored["parts"]
        assert stored["parts_subtotal"] == 1300.99

    async def test_amount_beyond_column_range_is_rejected(self, client, session, budget_payload):
        payload = dict(budget_payload, parts=[{"name": "Motor", "quantity": 1, "unit_price": "1000000000000"}])

        response = await client.post("/api/v1/budgets", json=payload)

        assert response.status_code == 422
        assert await _row_counts(session) == (0, 0)

    async def test_failed_save_leaves_nothing_behind(self, client, session, budget_payload, monkeypatch):
        _fail_item_insert(monkeypatch)

        response = await client.post("/api/v1/budgets", json=budget_payload)

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to save budget"
        assert (await client.get("/api/v1/budgets")).json()["count"] == 0
        assert await _row_counts(session) == (0, 0)


class TestBudgetHistory:
    """History listing, plate search and pagination"""

    async def test_newest_first_with_pagination(self, client, budget_payload):
        for plate in ("AAA111", "BBB222", "CCC333"):
            await _create(client, budget_payload, plate=plate)

        page = (await client.get("/api/v1/budgets", params={"limit": 2})).json()
        assert page["count"] == 3
        assert page["limit"] == 2
        assert [b["number"] for b in page["items"]] == [3, 2]

        rest = (await client.get("/api/v1/budgets", params={"limit": 2, "offset": 2})).json()
        assert [b["number"] for b in rest["items"]] == [1]

    async def test_plate_search_is_case_insensitive_substring(self, client, budget_payload):
        await _create(client, budget_payload, plate="ABC123")
        await _create(client, budget_payload, plate="XAB999")
        await _create(client, budget_payload, plate="QQQ111")

        result = (await client.get("/api/v1/budgets", params={"plate": "ab"})).json()

        assert result["count"] == 2
        assert sorted(b["plate"] for b in result["items"]) == ["ABC123", "XAB999"]

    async def test_limit_is_bounded(self, client):
        response = await client.get("/api/v1/budgets", params={"limit": 0})
        assert response.status_code == 422

    async def test_summary_fields(self, client, budget_payload):
        await _create(client, budget_payload)

        item = (await client.get("/api/v1/budgets")).json()["items"][0]

        assert set(item) == {"id", "number", "date", "owner", "plate", "total"}
        assert item["total"] == 217000


class TestBudgetDetail:
    """Reading, editing and deleting a single budget"""

    async def test_get_budget_with_items(self, client, budget_payload):
        created = await _create(client, budget_payload)

        response = await client.get(f"/api/v1/budgets/{created['id']}")

        assert response.status_code == 200
        budget = response.json()
        assert budget["number"] == created["number"]
        assert len(budget["parts"]) == 2
        assert len(budget["labor"]) == 1
        assert budget["labor"][0]["kind"] == "labor"

    async def test_unknown_and_malformed_ids_are_not_found(self, client):
        missing = await client.get("/api/v1/budgets/1b4e28ba-2fa1-11d2-883f-0016d3cca427")
        malformed = await client.get("/api/v1/budgets/not-a-uuid")

        assert missing.status_code == 404
        assert malformed.status_code == 404

    async def test_update_replaces_items_and_keeps_number(self, client, budget_payload):
        created = await _create(client, budget_payload)
        changes = dict(
            budget_payload,
            owner="Carlos A. Pérez",
            notes="Cliente espera el vehículo",
            parts=[{"name": "Pastillas de freno", "quantity": 1, "unit_price": 120000}],
            labor=[],
        )

        response = await client.put(f"/api/v1/budgets/{created['id']}", json=changes)

        assert response.status_code == 200
        updated = response.json()
        assert updated["number"] == created["number"]
        assert updated["owner"] == "Carlos A. Pérez"
        assert [p["name"] for p in updated["parts"]] == ["Pastillas de freno"]
        assert updated["labor"] == []
        assert updated["total"] == 120000

        reloaded = (await client.get(f"/api/v1/budgets/{created['id']}")).json()
        assert [p["name"] for p in reloaded["parts"]] == ["Pastillas de freno"]
        assert reloaded["notes"] == "Cliente espera el vehículo"

    async def test_update_missing_budget(self, client, budget_payload):
        response = await client.put(
            "/api/v1/budgets/1b4e28ba-2fa1-11d2-883f-0016d3cca427",
            json=budget_payload,
        )
        assert response.status_code == 404

    async def test_update_requires_owner(self, client, budget_payload):
        created = await _create(client, budget_payload)

        response = await client.put(f"/api/v1/budgets/{created['id']}", json=dict(budget_payload, owner=""))

        assert response.status_code == 400

    async def test_delete_cascades_to_items(self, client, session, budget_payload):
        created = await _create(client, budget_payload)

        response = await client.delete(f"/api/v1/budgets/{created['id']}")
        assert response.status_code == 204

        assert (await client.get(f"/api/v1/budgets/{created['id']}")).status_code == 404
        remaining = (await session.execute(select(func.count(BudgetItem.id)))).scalar_one()
        assert remaining == 0

    async def test_delete_missing_budget(self, client):
        response = await client.delete("/api/v1/budgets/1b4e28ba-2fa1-11d2-883f-0016d3cca427")
        assert response.status_code == 404

    async def test_failed_update_keeps_original_budget(self, client, session, budget_payload, monkeypatch):
        created = await _create(client, budget_payload)
        _fail_item_insert(monkeypatch)
        changes = dict(
            budget_payload,
            owner="Otro dueño",
            parts=[{"name": "Pastillas de freno", "quantity": 1, "unit_price": 120000}],
        )

        response = await client.put(f"/api/v1/budgets/{created['id']}", json=changes)

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to save budget changes"
        reloaded = (await client.get(f"/api/v1/budgets/{created['id']}")).json()
        assert reloaded["owner"] == "Carlos Pérez"
        assert [p["name"] for p in reloaded["parts"]] == ["Aceite 20W50", "Filtro de aceite"]
        assert [line["name"] for line in reloaded["labor"]] == ["Cambio de aceite"]
        assert reloaded["total"] == 217000
        assert await _row_counts(session) == (1, 3)

    async def test_alternate_id_forms_are_found(self, client, budget_payload):
        created = await _create(client, budget_payload)
        budget_id = created["id"]

        for alias in (f"{{{budget_id.upper()}}}", budget_id.replace("-", ""), f"urn:uuid:{budget_id}"):
            response = await client.get(f"/api/v1/budgets/{alias}")
            assert response.status_code == 200, alias
            assert response.json()["number"] == created["number"]


class TestVehicleLookup:
    """Prefilling vehicle data from previous budgets"""

    async def test_latest_budget_wins(self, client, budget_payload):
        await _create(client, budget_payload, owner="Dueño anterior")
        await _create(client, budget_payload, owner="Carlos Pérez", mileage="91.500 km")

        response = await client.get("/api/v1/budgets/vehicles/abc123")

        assert response.status_code == 200
        vehicle = response.json()
        assert vehicle["plate"] == "ABC123"
        assert vehicle["owner"] == "Carlos Pérez"
        assert vehicle["mileage"] == "91500"
        assert vehicle["make"] == "Toyota"

    async def test_unknown_plate(self, client):
        response = await client.get("/api/v1/budgets/vehicles/zzz000")

        assert response.status_code == 404
        assert "ZZZ000" in response.json()["detail"]


class TestBudgetPdf:
    """PDF download"""

    async def test_pdf_download(self, client, budget_payload):
        created = await _create(client, budget_payload)

        response = await client.get(f"/api/v1/budgets/{created['id']}/pdf")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="budget-1.pdf"' in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    async def test_pdf_for_missing_budget(self, client):
        response = await client.get("/api/v1/budgets/1b4e28ba-2fa1-11d2-883f-0016d3cca427/pdf")
        assert response.status_code == 404
