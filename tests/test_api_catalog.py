"""Tests for catalog and supplier endpoints."""


class TestCategoryAPI:
    """Tests for category endpoints."""

    def test_create_category(self, client):
        response = client.post("/api/v1/categories", json={"category_name": "Cardiac", "description": "Heart"})

        assert response.status_code == 201
        data = response.json()
        assert data["category_name"] == "Cardiac"
        assert data["is_active"] is True

    def test_duplicate_category_rejected(self, client, category):
        response = client.post("/api/v1/categories", json={"category_name": category.category_name})
        assert response.status_code == 409

    def test_list_hides_inactive(self, client, category):
        client.delete(f"/api/v1/categories/{category.id}")

        assert client.get("/api/v1/categories").json() == []
        all_categories = client.get("/api/v1/categories", params={"active_only": False}).json()
        assert len(all_categories) == 1
        assert all_categories[0]["is_active"] is False

    def test_update_category(self, client, category):
        response = client.put(f"/api/v1/categories/{category.id}", json={"description": "Updated"})
        assert response.status_code == 200
        assert response.json()["description"] == "Updated"

    def test_missing_category(self, client):
        response = client.get("/api/v1/categories/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404


class TestSubCategoryAPI:
    """Tests for sub-category endpoints."""

    def test_create_and_filter_by_category(self, client, category):
        response = client.post(
            "/api/v1/sub-categories",
            json={"sub_category_name": "Penicillins", "category_id": str(category.id)}
        )
        assert response.status_code == 201

        listed = client.get("/api/v1/sub-categories", params={"category_id": str(category.id)}).json()
        assert [s["sub_category_name"] for s in listed] == ["Penicillins"]

    def test_duplicate_within_category_rejected(self, client, category):
        body = {"sub_category_name": "Penicillins", "category_id": str(category.id)}
        client.post("/api/v1/sub-categories", json=body)
        assert client.post("/api/v1/sub-categories", json=body).status_code == 409

    def test_unknown_category(self, client):
        response = client.post(
            "/api/v1/sub-categories",
            json={"sub_category_name": "Orphan", "category_id": "00000000-0000-0000-0000-000000000000"}
        )
        assert response.status_code == 404


class TestFormulationAPI:
    """Tests for formulation endpoints."""

    def test_create_formulation(self, client):
        response = client.post("/api/v1/formulations", json={"formulation_name": "Syrup"})
        assert response.status_code == 201
        assert response.json()["formulation_name"] == "Syrup"

    def test_duplicate_formulation_rejected(self, client, formulation):
        response = client.post("/api/v1/formulations", json={"formulation_name": formulation.formulation_name})
        assert response.status_code == 409


class TestSupplierAPI:
    """Tests for supplier endpoints."""

    def test_create_supplier(self, client):
        response = client.post(
            "/api/v1/suppliers",
            json={"supplier_name": "MedSource", "supplier_code": "MS01", "phone": "555-0100"}
        )
        assert response.status_code == 201
        assert response.json()["supplier_code"] == "MS01"

    def test_duplicate_code_rejected(self, client, supplier):
        response = client.post(
            "/api/v1/suppliers",
            json={"supplier_name": "Other", "supplier_code": supplier.supplier_code}
        )
        assert response.status_code == 409

    def test_search(self, client, supplier):
        response = client.get("/api/v1/suppliers", params={"search": "acme"})
        assert [s["supplier_name"] for s in response.json()] == [supplier.supplier_name]

    def test_deactivate(self, client, supplier):
        assert client.delete(f"/api/v1/suppliers/{supplier.id}").status_code == 204
        assert client.get(f"/api/v1/suppliers/{supplier.id}").json()["is_active"] is False
