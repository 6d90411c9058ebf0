"""End-to-end restock of one barcode in store 7, through the ingress."""

from shared.events.inventory import ADD_ITEM, GET_INVENTORY, GET_ITEM_BY_BARCODE_OR_ID


class TestRestockScenario:
    def test_first_add_then_restock(self, ingress):
        first = ingress.dispatch(
            ADD_ITEM,
            {"store_id": "7", "item": {"barcode": "1001", "name": "Cola", "price": 1.5, "stock": 10}},
        )
        assert first == {"success": True, "message": "Item added successfully"}
        assert len(ingress.dispatch(GET_INVENTORY, {"store_id": "7"})["products"]) == 1

        second = ingress.dispatch(ADD_ITEM, {"store_id": "7", "item": {"barcode": "1001", "stock": 5}})
        assert second == {"success": True, "message": "Item added successfully"}

        products = ingress.dispatch(GET_INVENTORY, {"store_id": "7"})["products"]
        assert len(products) == 1

        reply = ingress.dispatch(GET_ITEM_BY_BARCODE_OR_ID, {"store_id": "7", "barcode_or_id": "1001"})
        assert reply["success"] is True
        assert reply["product"]["stock"] == 15
        assert reply["product"]["name"] == "Cola"
        assert reply["product"]["price"] == 1.5
