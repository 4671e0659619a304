"""Tests for returns, write-offs, replacements and opening stock."""


def key_of(product, batch):
    return str(product.id), str(batch.id)


class TestReturns:
    """Tests for goods coming back."""

    def test_customer_return_to_godown(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 50)

        response = client.post("/api/v1/adjustments/returns", json={
            "customer": "City Pharmacy",
            "lines": [make_line(product, batch, 5)]
        })
        assert response.status_code == 201
        line = response.json()["lines"][0]
        assert line["transaction_type"] == "RETURN_TO_GODOWN"
        assert line["counterparty_type"] == "CUSTOMER"
        assert godown_stock()[key_of(product, batch)]["current_quantity_strips"] == 55

    def test_customer_return_to_rep(self, client, product, batch, make_line, godown_stock):
        response = client.post("/api/v1/adjustments/returns", json={
            "destination": "MR",
            "mr_id": "MR001",
            "lines": [make_line(product, batch, 5)]
        })
        assert response.status_code == 201
        assert response.json()["lines"][0]["transaction_type"] == "RETURN_TO_MR"
        assert godown_stock("MR_MR001")[key_of(product, batch)]["current_quantity_strips"] == 5

    def test_rep_return_to_godown(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 100)
        client.post("/api/v1/sales/dispatch", json={"mr_id": "MR001", "lines": [make_line(product, batch, 40)]})

        response = client.post("/api/v1/adjustments/returns", json={
            "source": "MR",
            "mr_id": "MR001",
            "lines": [make_line(product, batch, 15)]
        })
        assert response.status_code == 201
        assert response.json()["lines"][0]["transaction_type"] == "RETURN_FROM_MR"
        assert godown_stock()[key_of(product, batch)]["current_quantity_strips"] == 75
        assert godown_stock("MR_MR001")[key_of(product, batch)]["current_quantity_strips"] == 25

    def test_rep_to_rep_rejected(self, client, product, batch, make_line):
        response = client.post("/api/v1/adjustments/returns", json={
            "source": "MR",
            "destination": "MR",
            "mr_id": "MR001",
            "lines": [make_line(product, batch, 1)]
        })
        assert response.status_code == 422

    def test_rep_return_requires_rep(self, client, product, batch, make_line):
        response = client.post("/api/v1/adjustments/returns", json={
            "source": "MR",
            "lines": [make_line(product, batch, 1)]
        })
        assert response.status_code == 422


class TestWriteOffs:
    """Tests for damage, loss and expiry write-offs."""

    def test_damage_in_godown(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 50)

        response = client.post("/api/v1/adjustments/write-offs", json={
            "reason": "DAMAGE",
            "lines": [make_line(product, batch, 4)]
        })
        assert response.status_code == 201
        assert response.json()["lines"][0]["transaction_type"] == "ADJUST_DAMAGE_GODOWN"
        assert godown_stock()[key_of(product, batch)]["current_quantity_strips"] == 46

    def test_expired_at_rep(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 50)
        client.post("/api/v1/sales/dispatch", json={"mr_id": "MR001", "lines": [make_line(product, batch, 20)]})

        response = client.post("/api/v1/adjustments/write-offs", json={
            "reason": "EXPIRED",
            "location_type": "MR",
            "mr_id": "MR001",
            "lines": [make_line(product, batch, 20)]
        })
        assert response.json()["lines"][0]["transaction_type"] == "ADJUST_EXPIRED_MR"
        assert godown_stock("MR_MR001")[key_of(product, batch)]["current_quantity_strips"] == 0

    def test_loss_clamps_at_zero(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 3)
        client.post("/api/v1/adjustments/write-offs", json={"reason": "LOSS", "lines": [make_line(product, batch, 10)]})
        assert godown_stock()[key_of(product, batch)]["current_quantity_strips"] == 0

    def test_unknown_reason_rejected(self, client, product, batch, make_line):
        response = client.post("/api/v1/adjustments/write-offs", json={
            "reason": "THEFT",
            "lines": [make_line(product, batch, 1)]
        })
        assert response.status_code == 422

    def test_rep_write_off_requires_rep(self, client, product, batch, make_line):
        response = client.post("/api/v1/adjustments/write-offs", json={
            "reason": "LOSS",
            "location_type": "MR",
            "lines": [make_line(product, batch, 1)]
        })
        assert response.status_code == 422


class TestReplacements:
    """Tests for customer replacements."""

    def test_replacement_from_godown(self, client, product, batch, second_batch, purchase, make_line, godown_stock):
        purchase(product, batch, 50)
        purchase(product, second_batch, 50, cost="6.00")

        response = client.post("/api/v1/adjustments/replacements", json={
            "customer": "City Pharmacy",
            "returned_lines": [make_line(product, batch, 5)],
            "replacement_lines": [make_line(product, second_batch, 5)]
        })
        assert response.status_code == 201
        data = response.json()
        assert data["line_count"] == 2
        assert [l["transaction_type"] for l in data["lines"]] == ["REPLACEMENT_IN_GODOWN", "REPLACEMENT_OUT_GODOWN"]

        stock = godown_stock()
        assert stock[key_of(product, batch)]["current_quantity_strips"] == 55
        assert stock[key_of(product, second_batch)]["current_quantity_strips"] == 45

    def test_replacement_from_rep(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 50)
        client.post("/api/v1/sales/dispatch", json={"mr_id": "MR001", "lines": [make_line(product, batch, 20)]})

        response = client.post("/api/v1/adjustments/replacements", json={
            "replaced_from": "MR",
            "mr_id": "MR001",
            "returned_lines": [make_line(product, batch, 2)],
            "replacement_lines": [make_line(product, batch, 2)]
        })
        assert response.json()["lines"][1]["transaction_type"] == "REPLACEMENT_OUT_MR"

        assert godown_stock()[key_of(product, batch)]["current_quantity_strips"] == 32
        assert godown_stock("MR_MR001")[key_of(product, batch)]["current_quantity_strips"] == 18

    def test_replacement_needs_both_sides(self, client, product, batch, make_line):
        response = client.post("/api/v1/adjustments/replacements", json={
            "returned_lines": [make_line(product, batch, 2)],
            "replacement_lines": []
        })
        assert response.status_code == 422


class TestOpeningStock:
    """Tests for opening stock entries."""

    def test_opening_stock_in_godown(self, client, product, batch, make_line, godown_stock):
        response = client.post("/api/v1/adjustments/opening-stock", json={
            "lines": [make_line(product, batch, 120, cost_per_strip="4.50")]
        })
        assert response.status_code == 201
        assert response.json()["lines"][0]["transaction_type"] == "OPENING_STOCK_GODOWN"
        assert godown_stock()[key_of(product, batch)]["current_quantity_strips"] == 120

    def test_opening_stock_at_rep(self, client, product, batch, make_line, godown_stock):
        response = client.post("/api/v1/adjustments/opening-stock", json={
            "location_type": "MR",
            "mr_id": "MR007",
            "lines": [make_line(product, batch, 12)]
        })
        assert response.json()["lines"][0]["transaction_type"] == "OPENING_STOCK_MR"
        assert godown_stock("MR_MR007")[key_of(product, batch)]["current_quantity_strips"] == 12
        assert key_of(product, batch) not in godown_stock()


class TestAdjustmentGroups:
    """Tests for listing and deleting adjustment groups."""

    def test_list_by_type(self, client, product, batch, make_line):
        client.post("/api/v1/adjustments/opening-stock", json={"lines": [make_line(product, batch, 10)]})
        client.post("/api/v1/adjustments/write-offs", json={"reason": "DAMAGE", "lines": [make_line(product, batch, 1)]})

        assert client.get("/api/v1/adjustments").json()["total"] == 2
        data = client.get("/api/v1/adjustments", params={"transaction_type": "ADJUST_DAMAGE_GODOWN"}).json()
        assert data["total"] == 1

    def test_delete_write_off(self, client, product, batch, purchase, make_line, godown_stock):
        purchase(product, batch, 50)
        group_id = client.post("/api/v1/adjustments/write-offs", json={
            "reason": "DAMAGE", "lines": [make_line(product, batch, 10)]
        }).json()["group_id"]

        assert client.delete(f"/api/v1/adjustments/{group_id}").status_code == 204
        assert godown_stock()[key_of(product, batch)]["current_quantity_strips"] == 50
