"""Tests for product and batch API endpoints."""


def product_body(category, formulation, **overrides):
    body = {
        "product_code": "CTZ10",
        "product_name": "Cetirizine 10mg",
        "generic_name": "Cetirizine",
        "manufacturer": "Allergy Labs",
        "category_id": str(category.id),
        "formulation_id": str(formulation.id),
        "base_cost_per_strip": "3.20",
        "min_stock_level_godown": 50,
        "min_stock_level_mr": 10
    }
    body.update(overrides)
    return body


class TestProductAPI:
    """Tests for product-related API endpoints."""

    def test_create_product(self, client, category, formulation):
        response = client.post("/api/v1/products", json=product_body(category, formulation))

        assert response.status_code == 201
        data = response.json()
        assert data["product_code"] == "CTZ10"
        assert data["unit_of_measure_smallest"] == "Strip"
        assert data["category_name"] == "Antibiotics"

    def test_create_product_with_template(self, client, category, formulation, templates):
        response = client.post(
            "/api/v1/products",
            json=product_body(category, formulation, packaging_template_name="Standard Pharma")
        )
        assert response.status_code == 201

        units = client.get(f"/api/v1/products/{response.json()['id']}/packaging-units").json()
        assert [(u["unit_name"], u["conversion_factor_to_strips"]) for u in units] == [
            ("Strip", 1), ("Box", 10), ("Carton", 100)
        ]

    def test_duplicate_code_rejected(self, client, product, category, formulation):
        response = client.post(
            "/api/v1/products",
            json=product_body(category, formulation, product_code=product.product_code)
        )
        assert response.status_code == 409

    def test_unknown_category_rejected(self, client, formulation, category):
        body = product_body(category, formulation, category_id="00000000-0000-0000-0000-000000000000")
        assert client.post("/api/v1/products", json=body).status_code == 404

    def test_negative_cost_rejected(self, client, category, formulation):
        body = product_body(category, formulation, base_cost_per_strip="-1")
        assert client.post("/api/v1/products", json=body).status_code == 422

    def test_list_and_search(self, client, product, other_product):
        data = client.get("/api/v1/products").json()
        assert data["total"] == 2
        assert data["pages"] == 1

        found = client.get("/api/v1/products", params={"search": "paracet"}).json()
        assert [p["product_code"] for p in found["items"]] == ["PCM650"]

    def test_pagination(self, client, product, other_product):
        data = client.get("/api/v1/products", params={"page": 2, "page_size": 1}).json()
        assert data["total"] == 2
        assert data["pages"] == 2
        assert len(data["items"]) == 1

    def test_update_product(self, client, product):
        response = client.put(f"/api/v1/products/{product.id}", json={"min_stock_level_godown": 25})
        assert response.status_code == 200
        assert response.json()["min_stock_level_godown"] == 25

    def test_soft_delete(self, client, product):
        assert client.delete(f"/api/v1/products/{product.id}").status_code == 204

        assert client.get("/api/v1/products").json()["total"] == 0
        assert client.get(f"/api/v1/products/{product.id}").json()["is_active"] is False

    def test_missing_product(self, client):
        response = client.get("/api/v1/products/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404


class TestBatchAPI:
    """Tests for batch endpoints."""

    def test_create_batch(self, client, product):
        response = client.post(
            f"/api/v1/products/{product.id}/batches",
            json={
                "batch_number": "LOT-9",
                "manufacturing_date": "2024-01-01",
                "expiry_date": "2030-01-01",
                "batch_cost_per_strip": "4.75"
            }
        )
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "Active"
        assert data["is_active"] is True
        assert data["expiry_status"] == "good"

    def test_expiry_before_manufacturing_rejected(self, client, product):
        response = client.post(
            f"/api/v1/products/{product.id}/batches",
            json={"batch_number": "LOT-X", "manufacturing_date": "2025-01-01", "expiry_date": "2024-01-01"}
        )
        assert response.status_code == 422

    def test_duplicate_batch_rejected(self, client, product, batch):
        response = client.post(
            f"/api/v1/products/{product.id}/batches",
            json={"batch_number": batch.batch_number, "manufacturing_date": "2024-01-01", "expiry_date": "2030-01-01"}
        )
        assert response.status_code == 409

    def test_list_batches_by_expiry(self, client, product, batch, second_batch):
        data = client.get(f"/api/v1/products/{product.id}/batches").json()
        assert [b["batch_number"] for b in data] == ["B-001", "B-002"]

    def test_recall_batch(self, client, batch):
        response = client.put(f"/api/v1/batches/{batch.id}", json={"status": "Recalled"})
        assert response.status_code == 200
        assert response.json()["is_active"] is False

    def test_update_keeps_date_order(self, client, batch):
        response = client.put(f"/api/v1/batches/{batch.id}", json={"expiry_date": "2023-01-01"})
        assert response.status_code == 422
