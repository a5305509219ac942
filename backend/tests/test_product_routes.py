"""
Product API - HTTP Endpoint Tests
==================================

What:  End-to-end tests through the full application: middleware,
       exception handlers, routes and a real SQLite store.

What we test:
    ✅ Create → get → list → update → delete flow
    ✅ Envelope shape and status codes for every outcome
    ✅ 400 for bad ids and bodies, 404 for missing rows, 409 for duplicates
    ✅ Strict path-id parsing and null body fields
    ✅ Commit completes before the success response; failed commit is 500
    ✅ Pagination defaults and clamping
    ✅ Health check and unmatched routes
"""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession


PRODUCTS = "/api/v1/products"


async def _create(client, sku, name="Widget", **fields):
    response = await client.post(PRODUCTS, json={"sku": sku, "name": name, **fields})
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestProductFlow:

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, test_client, sample_product_data):
        # Create
        response = await test_client.post(PRODUCTS, json=sample_product_data)
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == 201
        assert body["message"] == "Product created successfully"
        assert "pagination" not in body
        created = body["data"]
        assert created["id"] > 0
        assert created["sku"] == "1234567"
        assert created["unit_price"] == 9.99
        assert created["created_at"] == created["updated_at"]
        product_id = created["id"]

        # Get
        response = await test_client.get(f"{PRODUCTS}/{product_id}")
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Product retrieved successfully"
        assert body["data"]["name"] == "Widget"
        assert body["data"]["quantity"] == 10

        # List
        response = await test_client.get(PRODUCTS)
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Products retrieved successfully"
        assert [p["id"] for p in body["data"]] == [product_id]
        assert body["pagination"] == {"limit": 50, "offset": 0, "total": 1}

        # Update
        response = await test_client.put(
            f"{PRODUCTS}/{product_id}",
            json={**sample_product_data, "name": "Widget v2", "quantity": 4},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Product updated successfully"
        assert body["data"]["id"] == product_id
        assert body["data"]["name"] == "Widget v2"
        assert body["data"]["quantity"] == 4

        # Delete
        response = await test_client.delete(f"{PRODUCTS}/{product_id}")
        assert response.status_code == 204
        assert response.content == b""

        response = await test_client.get(f"{PRODUCTS}/{product_id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_optional_fields_default(self, test_client):
        created = await _create(test_client, "MIN-1", "Minimal")

        assert created["description"] == ""
        assert created["quantity"] == 0
        assert created["unit_price"] == 0.0

    @pytest.mark.asyncio
    async def test_body_id_is_ignored(self, test_client):
        created = await _create(test_client, "IDX", id=12345)
        assert created["id"] != 12345

        response = await test_client.put(
            f"{PRODUCTS}/{created['id']}",
            json={"id": 999, "sku": "IDX", "name": "Renamed"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["id"] == created["id"]


    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field, expected",
        [("description", ""), ("quantity", 0), ("unit_price", 0.0)],
    )
    async def test_null_optional_field_uses_default(self, test_client, field, expected):
        response = await test_client.post(
            PRODUCTS, json={"sku": f"NULL-{field}", "name": "Nullable", field: None}
        )

        assert response.status_code == 201
        assert response.json()["data"][field] == expected

    @pytest.mark.asyncio
    async def test_null_fields_on_update(self, test_client):
        created = await _create(test_client, "NULL-PUT", description="old", quantity=5)

        response = await test_client.put(
            f"{PRODUCTS}/{created['id']}",
            json={
                "sku": "NULL-PUT",
                "name": "Nullable",
                "description": None,
                "quantity": None,
                "unit_price": None,
            },
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert (data["description"], data["quantity"], data["unit_price"]) == ("", 0, 0.0)

    @pytest.mark.asyncio
    async def test_null_sku_is_missing(self, test_client):
        response = await test_client.post(PRODUCTS, json={"sku": None, "name": "N"})

        assert response.status_code == 400
        assert response.json()["message"] == "SKU is required"


class TestErrors:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw_id", ["1_0", "1.0", "1e3", "%201", "0x10", "99999999999999999999"]
    )
    async def test_malformed_id(self, test_client, raw_id):
        response = await test_client.get(f"{PRODUCTS}/{raw_id}")

        assert response.status_code == 400
        assert response.json() == {"status": 400, "message": "Invalid product ID"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_id", ["2147483648", "-2147483649", "9223372036854775807"])
    async def test_id_beyond_column_range(self, test_client, raw_id):
        for response in (
            await test_client.get(f"{PRODUCTS}/{raw_id}"),
            await test_client.put(f"{PRODUCTS}/{raw_id}", json={"sku": "S", "name": "N"}),
            await test_client.delete(f"{PRODUCTS}/{raw_id}"),
        ):
            assert response.status_code == 404
            assert response.json()["message"] == "Product not found"

    @pytest.mark.asyncio
    async def test_signed_id_is_numeric(self, test_client):
        created = await _create(test_client, "SIGNED")

        response = await test_client.get(f"{PRODUCTS}/+{created['id']}")
        assert response.status_code == 200

        response = await test_client.get(f"{PRODUCTS}/-1")
        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["get", "delete"])
    async def test_non_numeric_id(self, test_client, method):
        response = await getattr(test_client, method)(f"{PRODUCTS}/abc")

        assert response.status_code == 400
        assert response.json() == {"status": 400, "message": "Invalid product ID"}

    @pytest.mark.asyncio
    async def test_non_numeric_id_on_update(self, test_client, sample_product_data):
        response = await test_client.put(f"{PRODUCTS}/abc", json=sample_product_data)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid product ID"

    @pytest.mark.asyncio
    async def test_missing_product(self, test_client, sample_product_data):
        for response in (
            await test_client.get(f"{PRODUCTS}/999"),
            await test_client.put(f"{PRODUCTS}/999", json=sample_product_data),
            await test_client.delete(f"{PRODUCTS}/999"),
        ):
            assert response.status_code == 404
            assert response.json() == {"status": 404, "message": "Product not found"}

    @pytest.mark.asyncio
    async def test_missing_sku(self, test_client):
        response = await test_client.post(PRODUCTS, json={"name": "No SKU"})

        assert response.status_code == 400
        assert response.json()["message"] == "SKU is required"

    @pytest.mark.asyncio
    async def test_missing_name(self, test_client):
        response = await test_client.post(PRODUCTS, json={"sku": "NONAME"})

        assert response.status_code == 400
        assert response.json()["message"] == "Product name is required"

    @pytest.mark.asyncio
    async def test_update_requires_fields(self, test_client):
        created = await _create(test_client, "REQ")

        response = await test_client.put(f"{PRODUCTS}/{created['id']}", json={"sku": "REQ"})

        assert response.status_code == 400
        assert response.json()["message"] == "Product name is required"

    @pytest.mark.asyncio
    async def test_malformed_json(self, test_client):
        response = await test_client.post(
            PRODUCTS,
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"status": 400, "message": "Invalid request body"}

    @pytest.mark.asyncio
    async def test_wrong_field_type(self, test_client):
        response = await test_client.post(
            PRODUCTS, json={"sku": "T", "name": "T", "quantity": "lots"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request body"

    @pytest.mark.asyncio
    async def test_duplicate_sku(self, test_client, sample_product_data):
        await test_client.post(PRODUCTS, json=sample_product_data)

        response = await test_client.post(PRODUCTS, json=sample_product_data)

        assert response.status_code == 409
        assert response.json() == {
            "status": 409,
            "message": "Product with this SKU already exists",
        }

        listing = await test_client.get(PRODUCTS)
        assert listing.json()["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_duplicate_sku_without_precheck(self, app, test_client, sample_product_data):
        app.state.settings = app.state.settings.model_copy(
            update={"sku_precheck_enabled": False}
        )
        await test_client.post(PRODUCTS, json=sample_product_data)

        response = await test_client.post(PRODUCTS, json=sample_product_data)

        assert response.status_code == 409
        assert response.json()["message"] == "Product with this SKU already exists"

    @pytest.mark.asyncio
    async def test_update_to_taken_sku(self, test_client):
        await _create(test_client, "TAKEN")
        other = await _create(test_client, "FREE")

        response = await test_client.put(
            f"{PRODUCTS}/{other['id']}", json={"sku": "TAKEN", "name": "Other"}
        )

        assert response.status_code == 500
        assert response.json() == {"status": 500, "message": "Failed to update product"}

        # The failed transaction was rolled back
        response = await test_client.get(f"{PRODUCTS}/{other['id']}")
        assert response.json()["data"]["sku"] == "FREE"


class TestPagination:

    @pytest.mark.asyncio
    async def test_windows(self, test_client):
        for sku in ["A", "B", "C", "D", "E"]:
            await _create(test_client, sku)

        response = await test_client.get(PRODUCTS, params={"limit": 2, "offset": 2})

        body = response.json()
        assert [p["sku"] for p in body["data"]] == ["C", "B"]
        assert body["pagination"] == {"limit": 2, "offset": 2, "total": 5}

    @pytest.mark.asyncio
    async def test_offset_past_end(self, test_client):
        await _create(test_client, "ONLY")

        response = await test_client.get(PRODUCTS, params={"offset": 10})

        assert response.status_code == 200
        assert response.json()["data"] == []
        assert response.json()["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_limit_clamped(self, test_client):
        response = await test_client.get(PRODUCTS, params={"limit": 500})
        assert response.json()["pagination"]["limit"] == 100

    @pytest.mark.asyncio
    async def test_malformed_values_fall_back(self, test_client):
        response = await test_client.get(PRODUCTS, params={"limit": "abc", "offset": "-3"})

        assert response.status_code == 200
        assert response.json()["pagination"] == {"limit": 50, "offset": 0, "total": 0}


class TestServiceRoutes:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": 200,
            "message": "Service is healthy",
            "data": {"service": "product-api-test", "version": "1.0.0"},
        }

    @pytest.mark.asyncio
    async def test_unknown_route(self, test_client):
        response = await test_client.get("/api/v2/things")

        assert response.status_code == 404
        assert response.json() == {"status": 404, "message": "Route not found"}

    @pytest.mark.asyncio
    async def test_wrong_method(self, test_client):
        response = await test_client.patch(f"{PRODUCTS}/1", json={})

        assert response.status_code == 405
        assert response.json()["message"] == "Method not allowed"


class TestTransactions:
    """Writes are committed before the success response starts."""

    @staticmethod
    def _recording_client(app, events):
        from httpx import ASGITransport, AsyncClient

        async def recording_app(scope, receive, send):
            async def send_wrapper(message):
                if message["type"] == "http.response.start":
                    events.append(f"response_start_{message['status']}")
                await send(message)

            await app(scope, receive, send_wrapper)

        return AsyncClient(transport=ASGITransport(app=recording_app), base_url="http://test")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["post", "put", "delete"])
    async def test_commit_precedes_response(self, app, monkeypatch, method):
        events = []
        original_commit = AsyncSession.commit

        async def recording_commit(self):
            await original_commit(self)
            events.append("commit")

        monkeypatch.setattr(AsyncSession, "commit", recording_commit)

        async with self._recording_client(app, events) as client:
            created = await _create(client, "TX-1")
            events.clear()

            url = PRODUCTS if method == "post" else f"{PRODUCTS}/{created['id']}"
            kwargs = {} if method == "delete" else {"json": {"sku": "TX-2", "name": "Tx"}}
            response = await getattr(client, method)(url, **kwargs)

        assert response.status_code < 300
        assert events[0] == "commit"
        assert events[1].startswith("response_start_2")

    @pytest.mark.asyncio
    async def test_created_product_visible_immediately(self, test_client):
        created = await _create(test_client, "VISIBLE")

        response = await test_client.get(f"{PRODUCTS}/{created['id']}")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_failed_commit_is_500(self, app, test_client, monkeypatch):
        original_commit = AsyncSession.commit
        failures = []

        async def failing_commit(self):
            if not failures:
                failures.append(True)
                raise OperationalError("COMMIT", {}, Exception("disk I/O error"))
            await original_commit(self)

        monkeypatch.setattr(AsyncSession, "commit", failing_commit)

        response = await test_client.post(PRODUCTS, json={"sku": "LOST", "name": "Lost"})

        assert response.status_code == 500
        assert response.json() == {"status": 500, "message": "Failed to save changes"}
        assert "disk" not in response.text

        listing = await test_client.get(PRODUCTS)
        assert listing.json()["pagination"]["total"] == 0
