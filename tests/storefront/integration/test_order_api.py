"""Integration tests for the order endpoints via TestClient."""

CUSTOMER = {"X-User-Id": "cust-001", "X-User-Email": "sara@example.com"}
STRANGER = {"X-User-Id": "cust-999"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Email": "admin@example.com", "X-User-Role": "admin"}

GENERIC_400 = "البيانات المرسلة غير صحيحة"


class TestPlaceOrder:
    def test_place_order(self, client, make_product, order_payload):
        product = make_product(price=20.0)

        response = client.post("/orders", json=order_payload(product), headers=CUSTOMER)

        assert response.status_code == 201
        body = response.json()
        assert body["order_number"].startswith("PD-")
        assert body["order_status"] == "pending"
        assert body["payment_status"] == "pending"

    def test_customizations_may_arrive_as_json_string(self, client, make_product, order_payload):
        product = make_product(enable_customizations=True)
        payload = order_payload(product)
        payload["items"][0]["customizations"] = '{"colors": [{"name": "Red", "hex": "#FF0000"}]}'

        response = client.post("/orders", json=payload, headers=CUSTOMER)

        assert response.status_code == 201

    def test_requires_identity(self, client, make_product, order_payload):
        response = client.post("/orders", json=order_payload(make_product()))
        assert response.status_code == 401
        assert response.json() == {"error": "يجب تسجيل الدخول أولاً"}

    def test_mismatched_totals_get_generic_error(self, client, make_product, order_payload):
        product = make_product(price=20.0)
        response = client.post("/orders", json=order_payload(product, totalPrice=5.0), headers=CUSTOMER)
        assert response.status_code == 400
        assert response.json() == {"error": GENERIC_400}

    def test_empty_cart_rejected(self, client, make_product, order_payload):
        response = client.post("/orders", json=order_payload(make_product(), items=[]), headers=CUSTOMER)
        assert response.status_code == 400

    def test_bad_color_hex_rejected(self, client, make_product, order_payload):
        payload = order_payload(make_product())
        payload["items"][0]["customizations"] = {"colors": [{"name": "Red", "hex": "red"}]}
        response = client.post("/orders", json=payload, headers=CUSTOMER)
        assert response.status_code == 400


class TestGetOrder:
    def test_owner_sees_order_by_number(self, client, make_product, order_payload):
        created = client.post("/orders", json=order_payload(make_product()), headers=CUSTOMER).json()

        response = client.get(f"/orders/{created['order_number']}", headers=CUSTOMER)

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == created["order_id"]
        assert body["history"][0]["status"] == "pending"

    def test_other_customer_is_refused(self, client, make_product, order_payload):
        created = client.post("/orders", json=order_payload(make_product()), headers=CUSTOMER).json()
        response = client.get(f"/orders/{created['order_id']}", headers=STRANGER)
        assert response.status_code == 403

    def test_admin_sees_any_order(self, client, make_product, order_payload):
        created = client.post("/orders", json=order_payload(make_product()), headers=CUSTOMER).json()
        assert client.get(f"/orders/{created['order_id']}", headers=ADMIN).status_code == 200

    def test_unknown_order(self, client):
        response = client.get("/orders/PD-1999-404", headers=CUSTOMER)
        assert response.status_code == 404
        assert response.json() == {"error": "العنصر المطلوب غير موجود"}


class TestCompleteFree:
    def test_free_order(self, client, make_product, make_design_file, order_payload):
        product = make_product(price=0.0)
        make_design_file(product)
        created = client.post("/orders", json=order_payload(product), headers=CUSTOMER).json()

        response = client.post(f"/orders/{created['order_id']}/complete-free", headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json() == {"status": "completed"}

    def test_paid_order_cannot_skip_payment(self, client, make_product, order_payload):
        created = client.post("/orders", json=order_payload(make_product(price=10.0)), headers=CUSTOMER).json()
        response = client.post(f"/orders/{created['order_id']}/complete-free", headers=CUSTOMER)
        assert response.status_code == 400
