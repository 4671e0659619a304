"""Tests for dispatches, direct sales and rep sales."""
from decimal import Decimal


class TestDispatch:
    """Tests for godown to rep transfers."""

    def test_dispatch_moves_stock(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 100)

        response = client.post("/api/v1/sales/dispatch", json={
            "mr_id": "MR001",
            "dispatch_reference": "DSP-1",
            "lines": [make_line(product, batch, 40)]
        })
        assert response.status_code == 201
        line = response.json()["lines"][0]
        assert line["transaction_type"] == "DISPATCH_TO_MR"
        assert (line["location_type_source"], line["location_id_source"]) == ("GODOWN", "MAIN")
        assert (line["location_type_destination"], line["location_id_destination"]) == ("MR", "MR001")

        key = (str(product.id), str(batch.id))
        assert godown_stock()[key]["current_quantity_strips"] == 60
        assert godown_stock("MR_MR001")[key]["current_quantity_strips"] == 40

    def test_dispatch_carries_cost_to_rep(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 100, cost="5.00")
        client.post("/api/v1/sales/dispatch", json={"mr_id": "MR001", "lines": [make_line(product, batch, 10)]})

        rep_row = godown_stock("MR")[(str(product.id), str(batch.id))]
        assert Decimal(rep_row["cost_per_strip"]) == Decimal("5.00")

    def test_dispatch_requires_rep(self, client, product, batch, make_line):
        response = client.post("/api/v1/sales/dispatch", json={"lines": [make_line(product, batch, 10)]})
        assert response.status_code == 422


class TestDirectSale:
    """Tests for sales straight from the godown."""

    def test_direct_sale(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 100)

        response = client.post("/api/v1/sales/direct", json={
            "invoice_number": "INV-9",
            "customer": "City Pharmacy",
            "lines": [make_line(product, batch, 30)]
        })
        assert response.status_code == 201
        line = response.json()["lines"][0]
        assert line["transaction_type"] == "SALE_DIRECT_GODOWN"
        assert line["location_type_destination"] is None
        assert line["counterparty_type"] == "CUSTOMER"
        assert line["counterparty_id"] == "City Pharmacy"

        row = godown_stock()[(str(product.id), str(batch.id))]
        assert row["current_quantity_strips"] == 70
        assert Decimal(row["cost_per_strip"]) == Decimal("5.00")

    def test_oversell_clamps_to_zero(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 20)

        response = client.post("/api/v1/sales/direct", json={"lines": [make_line(product, batch, 50)]})

        assert response.status_code == 201
        assert godown_stock()[(str(product.id), str(batch.id))]["current_quantity_strips"] == 0

    def test_sale_from_empty_batch_opens_zero_row(self, client, product, batch, make_line, godown_stock):
        response = client.post("/api/v1/sales/direct", json={"lines": [make_line(product, batch, 5)]})

        assert response.status_code == 201
        assert godown_stock()[(str(product.id), str(batch.id))]["current_quantity_strips"] == 0

    def test_sale_in_boxes(self, client, product, batch, box_unit, purchase, make_line, godown_stock):
        purchase(product, batch, 100)
        client.post("/api/v1/sales/direct", json={
            "lines": [make_line(product, batch, 2, packaging_unit_id=str(box_unit.id))]
        })
        assert godown_stock()[(str(product.id), str(batch.id))]["current_quantity_strips"] == 80


class TestMRSale:
    """Tests for sales made by reps from their own stock."""

    def test_mr_sale(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 100)
        client.post("/api/v1/sales/dispatch", json={"mr_id": "MR001", "lines": [make_line(product, batch, 40)]})

        response = client.post("/api/v1/sales/mr", json={
            "mr_id": "MR001",
            "customer": "Clinic A",
            "lines": [make_line(product, batch, 15)]
        })
        assert response.status_code == 201
        assert response.json()["lines"][0]["transaction_type"] == "SALE_BY_MR"

        key = (str(product.id), str(batch.id))
        assert godown_stock("MR_MR001")[key]["current_quantity_strips"] == 25
        assert godown_stock()[key]["current_quantity_strips"] == 60

    def test_reps_are_separate(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 100)
        client.post("/api/v1/sales/dispatch", json={"mr_id": "MR001", "lines": [make_line(product, batch, 40)]})
        client.post("/api/v1/sales/dispatch", json={"mr_id": "MR002", "lines": [make_line(product, batch, 10)]})
        client.post("/api/v1/sales/mr", json={"mr_id": "MR002", "lines": [make_line(product, batch, 10)]})

        key = (str(product.id), str(batch.id))
        assert godown_stock("MR_MR001")[key]["current_quantity_strips"] == 40
        assert godown_stock("MR_MR002")[key]["current_quantity_strips"] == 0


class TestEditSale:
    """Tests for replacing, deleting and listing sales."""

    def test_replace_keeps_sale_type_and_rep(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 100)
        group_id = client.post("/api/v1/sales/dispatch", json={
            "mr_id": "MR001", "lines": [make_line(product, batch, 40)]
        }).json()["group_id"]

        response = client.put(f"/api/v1/sales/{group_id}", json={"lines": [make_line(product, batch, 25)]})

        assert response.status_code == 200
        line = response.json()["lines"][0]
        assert line["transaction_type"] == "DISPATCH_TO_MR"
        assert line["location_id_destination"] == "MR001"

        key = (str(product.id), str(batch.id))
        assert godown_stock()[key]["current_quantity_strips"] == 75
        assert godown_stock("MR_MR001")[key]["current_quantity_strips"] == 25

    def test_edit_dispatch_keeps_later_rep_sale(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 100)
        group_id = client.post("/api/v1/sales/dispatch", json={
            "mr_id": "MR001", "lines": [make_line(product, batch, 40)]
        }).json()["group_id"]
        client.post("/api/v1/sales/mr", json={"mr_id": "MR001", "lines": [make_line(product, batch, 10)]})

        response = client.put(f"/api/v1/sales/{group_id}", json={"lines": [make_line(product, batch, 50)]})
        assert response.status_code == 200

        key = (str(product.id), str(batch.id))
        assert godown_stock()[key]["current_quantity_strips"] == 50
        assert godown_stock("MR_MR001")[key]["current_quantity_strips"] == 40
        assert client.get("/api/v1/stock/verify").json()["consistent"] is True

    def test_delete_sale_restores_stock(self,client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 100)
        group_id = client.post("/api/v1/sales/direct", json={
            "lines": [make_line(product, batch, 30)]
        }).json()["group_id"]

        assert client.delete(f"/api/v1/sales/{group_id}").status_code == 204
        assert godown_stock()[(str(product.id), str(batch.id))]["current_quantity_strips"] == 100

    def test_purchase_group_is_not_a_sale(self, client, product, batch, purchase):
        group_id = purchase(product, batch, 10)["group_id"]
        assert client.get(f"/api/v1/sales/{group_id}").status_code == 404

    def test_list_by_type(self, client, product, batch, purchase, make_line):
        purchase(product, batch, 100)
        client.post("/api/v1/sales/dispatch", json={"mr_id": "MR001", "lines": [make_line(product, batch, 10)]})
        client.post("/api/v1/sales/direct", json={"lines": [make_line(product, batch, 10)]})

        assert client.get("/api/v1/sales").json()["total"] == 2
        data = client.get("/api/v1/sales", params={"transaction_type": "DISPATCH_TO_MR"}).json()
        assert data["total"] == 1
        assert data["items"][0]["counterparty_id"] == "MR001"
