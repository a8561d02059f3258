from storefront.auth.security import decode_token


class TestAuth:

    async def test_register_then_login(self, client):
        registered = await client.post(
            "/api/auth/register", json={"name": "Jo", "email": "Jo@Example.com", "password": "hunter22"}
        )
        logged_in = await client.post("/api/auth/login", json={"email": "jo@example.com", "password": "hunter22"})

        assert registered.status_code == 201
        body = await logged_in.get_json()
        assert body["user"] == {"id": body["user"]["id"], "name": "Jo", "email": "jo@example.com", "role": "user"}
        identity = decode_token(body["token"])
        assert identity.id == body["user"]["id"]
        assert identity.is_admin is False

    async def test_duplicate_email(self, client, buyer):
        response = await client.post(
            "/api/auth/register", json={"name": "Again", "email": "buyer@example.com", "password": "hunter22"}
        )
        assert response.status_code == 409
        assert (await response.get_json())["message"] == "Email already in use"

    async def test_wrong_password(self, client, buyer):
        response = await client.post("/api/auth/login", json={"email": "buyer@example.com", "password": "wrong-one"})
        assert response.status_code == 401
        assert (await response.get_json())["message"] == "Invalid credentials"

    async def test_invalid_body(self, client):
        response = await client.post("/api/auth/register", json={"name": "J", "email": "nope", "password": "1"})

        assert response.status_code == 400
        fields = {e["field"] for e in (await response.get_json())["errors"]}
        assert fields == {"name", "email", "password"}


class TestErrors:

    async def test_unknown_route(self, client):
        response = await client.get("/api/nowhere")
        assert response.status_code == 404
        assert await response.get_json() == {"status": 404, "message": "Route not found"}

    async def test_health_and_metrics(self, client):
        assert await (await client.get("/health")).get_json() == {"status": "ok"}
        metrics = await client.get("/metrics")
        assert b"http_requests_total" in await metrics.get_data()
