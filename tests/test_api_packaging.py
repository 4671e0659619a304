"""Tests for packaging unit and template endpoints."""


class TestPackagingUnits:
    """Tests for per-product packaging units."""

    def test_add_units(self, client, product):
        base = client.post(
            f"/api/v1/products/{product.id}/packaging-units",
            json={"unit_name": "Strip", "is_base_unit": True, "order_in_hierarchy": 1}
        )
        assert base.status_code == 201

        box = client.post(
            f"/api/v1/products/{product.id}/packaging-units",
            json={"unit_name": "Box", "conversion_factor_to_strips": 10, "order_in_hierarchy": 2}
        )
        assert box.status_code == 201
        assert box.json()["conversion_factor_to_strips"] == 10

    def test_second_base_unit_rejected(self, client, product, box_unit):
        response = client.post(
            f"/api/v1/products/{product.id}/packaging-units",
            json={"unit_name": "Sachet", "is_base_unit": True, "order_in_hierarchy": 3}
        )
        assert response.status_code == 422

    def test_duplicate_unit_name_rejected(self, client, product, box_unit):
        response = client.post(
            f"/api/v1/products/{product.id}/packaging-units",
            json={"unit_name": "box", "conversion_factor_to_strips": 12, "order_in_hierarchy": 3}
        )
        assert response.status_code == 422

    def test_first_unit_must_be_base(self, client, product):
        response = client.post(
            f"/api/v1/products/{product.id}/packaging-units",
            json={"unit_name": "Box", "conversion_factor_to_strips": 10, "order_in_hierarchy": 2}
        )
        assert response.status_code == 422
        assert client.get(f"/api/v1/products/{product.id}/packaging-units").json() == []

    def test_base_flag_cannot_be_cleared(self, client, product, box_unit):
        strip = next(u for u in product.packaging_units if u.is_base_unit)
        response = client.put(f"/api/v1/packaging-units/{strip.id}", json={"is_base_unit": False})
        assert response.status_code == 422

    def test_zero_factor_rejected(self, client, product):
        response = client.post(
            f"/api/v1/products/{product.id}/packaging-units",
            json={"unit_name": "Box", "conversion_factor_to_strips": 0, "order_in_hierarchy": 2}
        )
        assert response.status_code == 422

    def test_update_unit(self, client, box_unit):
        response = client.put(f"/api/v1/packaging-units/{box_unit.id}", json={"conversion_factor_to_strips": 20})
        assert response.status_code == 200
        assert response.json()["conversion_factor_to_strips"] == 20

    def test_delete_unit(self, client, product, box_unit):
        assert client.delete(f"/api/v1/packaging-units/{box_unit.id}").status_code == 204
        units = client.get(f"/api/v1/products/{product.id}/packaging-units").json()
        assert [u["unit_name"] for u in units] == ["Strip"]

    def test_base_unit_kept_while_others_remain(self, client, product, box_unit):
        strip = next(u for u in product.packaging_units if u.is_base_unit)

        response = client.delete(f"/api/v1/packaging-units/{strip.id}")

        assert response.status_code == 422
        units = client.get(f"/api/v1/products/{product.id}/packaging-units").json()
        assert [u["unit_name"] for u in units] == ["Strip", "Box"]

    def test_last_base_unit_can_be_deleted(self, client, product, box_unit):
        strip = next(u for u in product.packaging_units if u.is_base_unit)
        assert client.delete(f"/api/v1/packaging-units/{box_unit.id}").status_code == 204
        assert client.delete(f"/api/v1/packaging-units/{strip.id}").status_code == 204
        assert client.get(f"/api/v1/products/{product.id}/packaging-units").json() == []

    def test_convert(self, client, product, box_unit):
        response = client.get(
            f"/api/v1/products/{product.id}/convert",
            params={"quantity": 4, "packaging_unit_id": str(box_unit.id)}
        )
        assert response.json()["quantity_strips"] == 40

    def test_convert_without_unit(self, client, product):
        response = client.get(f"/api/v1/products/{product.id}/convert", params={"quantity": 4})
        assert response.json()["quantity_strips"] == 4


class TestPackagingTemplates:
    """Tests for reusable packaging templates."""

    def test_seeded_templates(self, client, templates):
        data = client.get("/api/v1/packaging-templates").json()
        by_name = {t["template_name"]: t["units"] for t in data}

        assert set(by_name) == {"Standard Pharma", "Tablet Packaging", "Liquid Medicine"}
        assert [(u["unit_name"], u["conversion_factor_to_strips"]) for u in by_name["Liquid Medicine"]] == [
            ("Bottle", 1), ("Pack", 6), ("Carton", 24)
        ]

    def test_apply_template_replaces_units(self, client, product, box_unit, templates):
        response = client.post(
            f"/api/v1/products/{product.id}/packaging-units/apply-template",
            json={"template_name": "Tablet Packaging"}
        )
        assert response.status_code == 200
        assert [(u["unit_name"], u["conversion_factor_to_strips"]) for u in response.json()] == [
            ("Strip", 1), ("Box", 10), ("Case", 50)
        ]

    def test_apply_unknown_template(self, client, product, templates):
        response = client.post(
            f"/api/v1/products/{product.id}/packaging-units/apply-template",
            json={"template_name": "Nope"}
        )
        assert response.status_code == 404

    def test_add_template_unit(self, client, templates):
        response = client.post(
            "/api/v1/packaging-templates",
            json={"template_name": "Injectables", "unit_name": "Vial", "is_base_unit": True}
        )
        assert response.status_code == 201

    def test_duplicate_template_unit_rejected(self, client, templates):
        response = client.post(
            "/api/v1/packaging-templates",
            json={"template_name": "Standard Pharma", "unit_name": "Box", "conversion_factor_to_strips": 12, "order_in_hierarchy": 4}
        )
        assert response.status_code == 409
        assert response.json()["details"]["field"] == "unit"

    def test_delete_template_unit_keeps_product_units(self, client, product, templates):
        client.post(
            f"/api/v1/products/{product.id}/packaging-units/apply-template",
            json={"template_name": "Standard Pharma"}
        )
        groups = {t["template_name"]: t["units"] for t in client.get("/api/v1/packaging-templates").json()}
        carton = next(u for u in groups["Standard Pharma"] if u["unit_name"] == "Carton")

        assert client.delete(f"/api/v1/packaging-templates/{carton['id']}").status_code == 204

        groups = {t["template_name"]: t["units"] for t in client.get("/api/v1/packaging-templates").json()}
        assert [u["unit_name"] for u in groups["Standard Pharma"]] == ["Strip", "Box"]
        units = client.get(f"/api/v1/products/{product.id}/packaging-units").json()
        assert [u["unit_name"] for u in units] == ["Strip", "Box", "Carton"]
