import pytest

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _create(client, payload, headers=None):
    response = client.post("/api/pengaduan", json=payload, headers=headers or {})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_full_lifecycle_scenario(client, login):
    response = client.post(
        "/api/users/register", json={"email": "a@x.com", "password": "secret1"}
    )
    assert response.status_code == 201
    assert response.json()["data"]["role"] == "citizen"

    response = client.post("/api/users/login", json={"email": "a@x.com", "password": "wrong!!"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"

    response = client.post("/api/users/login", json={"email": "a@x.com", "password": "secret1"})
    assert response.status_code == 200
    data = response.json()["data"]
    headers = {"Authorization": f"Bearer {data['token']}"}
    user_id = data["user"]["id"]

    response = client.post(
        "/api/pengaduan",
        json={
            "reporterName": "Budi",
            "reporterPhone": "0812345678",
            "category": "infrastruktur",
            "body": "jalan rusak",
        },
        headers=headers,
    )
    assert response.status_code == 201
    complaint = response.json()["data"]
    assert complaint["status"] == "pending"
    assert complaint["ownerUserId"] == user_id

    client.post(
        "/api/users/register",
        json={"email": "admin@x.com", "password": "secret1", "role": "admin"},
    )
    admin_headers = login("admin@x.com", "secret1")
    response = client.put(
        f"/api/pengaduan/{complaint['id']}/status",
        json={"status": "in-progress"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "in-progress"

    response = client.delete(f"/api/pengaduan/{complaint['id']}", headers=headers)
    assert response.status_code == 403
    assert client.get(f"/api/pengaduan/{complaint['id']}", headers=headers).status_code == 200


def test_anonymous_creation(client, complaint_payload):
    complaint = _create(client, complaint_payload)

    assert complaint["ownerUserId"] is None
    assert complaint["owner"] is None
    assert complaint["title"] == "Jalan berlubang"


def test_invalid_token_on_creation_falls_back_to_anonymous(client, complaint_payload):
    complaint = _create(client, complaint_payload, {"Authorization": "Bearer rusak"})

    assert complaint["ownerUserId"] is None


def test_category_is_normalized(client, complaint_payload, citizen):
    _, headers = citizen
    created = _create(client, dict(complaint_payload, category="Infrastruktur"), headers)

    fetched = client.get(f"/api/pengaduan/{created['id']}", headers=headers).json()["data"]

    assert created["category"] == "infrastruktur"
    assert fetched["category"] == "infrastruktur"


@pytest.mark.parametrize(
    "override",
    [
        {"reporterPhone": None},
        {"reporterPhone": "08123"},
        {"reporterName": ""},
        {"category": "olahraga"},
        {"body": None},
    ],
)
def test_creation_validation(client, complaint_payload, admin, override):
    _, admin_headers = admin
    payload = {k: v for k, v in dict(complaint_payload, **override).items() if v is not None}

    response = client.post("/api/pengaduan", json=payload)

    assert response.status_code == 400
    assert response.json()["success"] is False
    listing = client.get("/api/pengaduan", headers=admin_headers).json()
    assert listing["pagination"]["totalItems"] == 0


def test_numeric_phone_is_accepted(client, complaint_payload):
    complaint = _create(client, dict(complaint_payload, reporterPhone=81234567890))

    assert complaint["reporterPhone"] == "81234567890"


def test_multipart_creation_with_photo(client, complaint_payload, citizen, photo_storage):
    _, headers = citizen

    response = client.post(
        "/api/pengaduan",
        data=complaint_payload,
        files={"foto": ("lubang.png", PNG_BYTES, "image/png")},
        headers=headers,
    )

    assert response.status_code == 201, response.text
    complaint = response.json()["data"]
    assert complaint["photoRef"].startswith("pengaduan/")
    assert complaint["photoUrl"] == f"/uploads/{complaint['photoRef']}"
    assert photo_storage.path_for(complaint["photoRef"]).read_bytes() == PNG_BYTES


def test_multipart_rejects_non_image(client, complaint_payload):
    response = client.post(
        "/api/pengaduan",
        data=complaint_payload,
        files={"foto": ("catatan.txt", b"halo", "text/plain")},
    )

    assert response.status_code == 400


def test_malformed_json_body(client):
    response = client.post(
        "/api/pengaduan", content=b"{bukan json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_listing_scopes(client, complaint_payload, citizen, other_citizen, admin):
    user, headers = citizen
    other, other_headers = other_citizen
    _, admin_headers = admin
    _create(client, complaint_payload, headers)
    _create(client, complaint_payload, headers)
    _create(client, complaint_payload, other_headers)
    _create(client, complaint_payload)

    own = client.get("/api/pengaduan", params={"userId": other["id"]}, headers=headers).json()
    assert own["pagination"]["totalItems"] == 2
    assert {c["ownerUserId"] for c in own["data"]} == {user["id"]}

    everything = client.get("/api/pengaduan", headers=admin_headers).json()
    assert everything["pagination"]["totalItems"] == 4

    filtered = client.get(
        "/api/pengaduan", params={"userId": other["id"]}, headers=admin_headers
    ).json()
    assert [c["ownerUserId"] for c in filtered["data"]] == [other["id"]]

    anonymous = client.get("/api/pengaduan").json()
    assert anonymous["pagination"]["totalItems"] == 1


def test_listing_pagination(client, complaint_payload, admin):
    _, admin_headers = admin
    for i in range(3):
        _create(client, dict(complaint_payload, title=f"Laporan {i}"))

    body = client.get(
        "/api/pengaduan", params={"page": 2, "limit": 2}, headers=admin_headers
    ).json()

    assert [c["title"] for c in body["data"]] == ["Laporan 0"]
    assert body["pagination"] == {
        "currentPage": 2,
        "totalPages": 2,
        "totalItems": 3,
        "itemsPerPage": 2,
        "hasNextPage": False,
        "hasPrevPage": True,
    }


def test_listing_rejects_unknown_status_filter(client, admin):
    _, admin_headers = admin

    response = client.get("/api/pengaduan", params={"status": "closed"}, headers=admin_headers)

    assert response.status_code == 400


def test_read_visibility(client, complaint_payload, citizen, other_citizen, admin):
    _, headers = citizen
    _, other_headers = other_citizen
    _, admin_headers = admin
    complaint = _create(client, complaint_payload, headers)
    path = f"/api/pengaduan/{complaint['id']}"

    assert client.get(path, headers=headers).status_code == 200
    assert client.get(path, headers=admin_headers).status_code == 200
    assert client.get(path, headers=other_headers).status_code == 403
    assert client.get(path).status_code == 403
    assert client.get("/api/pengaduan/9999", headers=admin_headers).status_code == 404


def test_owner_embeds_summary(client, complaint_payload, citizen, admin):
    user, headers = citizen
    _, admin_headers = admin
    complaint = _create(client, complaint_payload, headers)

    fetched = client.get(f"/api/pengaduan/{complaint['id']}", headers=admin_headers).json()

    assert fetched["data"]["owner"] == {
        "id": user["id"],
        "email": "warga@example.com",
        "name": "Warga Uji",
        "role": "citizen",
    }


def test_status_update_is_admin_only(client, complaint_payload, citizen, admin):
    _, headers = citizen
    _, admin_headers = admin
    complaint = _create(client, complaint_payload, headers)
    path = f"/api/pengaduan/{complaint['id']}/status"

    response = client.put(path, json={"status": "in-progress"}, headers=headers)
    assert response.status_code == 403
    stored = client.get(f"/api/pengaduan/{complaint['id']}", headers=admin_headers).json()
    assert stored["data"]["status"] == "pending"

    assert client.put(path, json={"status": "in-progress"}).status_code == 401


def test_status_transitions_over_http(client, complaint_payload, admin):
    _, admin_headers = admin
    complaint = _create(client, complaint_payload)
    path = f"/api/pengaduan/{complaint['id']}/status"

    assert client.patch(path, json={"status": "resolved"}, headers=admin_headers).status_code == 400
    assert client.patch(path, json={"status": "in-progress"}, headers=admin_headers).status_code == 200
    assert client.patch(path, json={"status": "resolved"}, headers=admin_headers).status_code == 200

    response = client.patch(path, json={"status": "pending"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Cannot change status from 'resolved' to 'pending'"

    response = client.patch(path, json={"status": "unknown"}, headers=admin_headers)
    assert response.status_code == 400


def test_owner_edit_and_delete_while_pending(client, complaint_payload, citizen):
    _, headers = citizen
    complaint = _create(client, complaint_payload, headers)
    path = f"/api/pengaduan/{complaint['id']}"

    response = client.put(path, json={"body": "Lubangnya makin besar.", "category": "Keamanan"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["body"] == "Lubangnya makin besar."
    assert response.json()["data"]["category"] == "keamanan"

    assert client.delete(path, headers=headers).status_code == 200
    assert client.get(path, headers=headers).status_code == 404


def test_edit_requires_authentication_and_ownership(client, complaint_payload, citizen, other_citizen):
    _, headers = citizen
    _, other_headers = other_citizen
    complaint = _create(client, complaint_payload, headers)
    path = f"/api/pengaduan/{complaint['id']}"

    assert client.put(path, json={"body": "x"}).status_code == 401
    assert client.put(path, json={"body": "x"}, headers=other_headers).status_code == 403
    assert client.delete(path, headers=other_headers).status_code == 403


def test_admin_can_edit_and_delete_triaged_complaint(client, complaint_payload, citizen, admin):
    _, headers = citizen
    _, admin_headers = admin
    complaint = _create(client, complaint_payload, headers)
    path = f"/api/pengaduan/{complaint['id']}"
    client.put(f"{path}/status", json={"status": "rejected"}, headers=admin_headers)

    response = client.put(path, json={"address": "Jl. Sudirman"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["address"] == "Jl. Sudirman"

    assert client.delete(path, headers=admin_headers).status_code == 200


def test_stats(client, complaint_payload, citizen, admin):
    _, headers = citizen
    _, admin_headers = admin
    first = _create(client, complaint_payload, headers)
    _create(client, dict(complaint_payload, category="lingkungan"))
    client.put(
        f"/api/pengaduan/{first['id']}/status", json={"status": "in-progress"}, headers=admin_headers
    )

    assert client.get("/api/pengaduan/stats", headers=headers).status_code == 403

    stats = client.get("/api/pengaduan/stats", headers=admin_headers).json()["data"]
    assert stats["total"] == 2
    assert stats["byStatus"]["pending"] == 1
    assert stats["byStatus"]["in-progress"] == 1
    assert stats["byCategory"] == {"infrastruktur": 1, "lingkungan": 1}
    assert len(stats["recent"]) == 2
    assert stats["recent"][0]["reporterName"] == "Budi"


def test_static_lists(client):
    categories = client.get("/api/pengaduan/kategori/list").json()["data"]
    statuses = client.get("/api/pengaduan/status/list").json()["data"]

    assert {c["value"] for c in categories} == {
        "infrastruktur",
        "kebersihan",
        "keamanan",
        "pelayanan",
        "lingkungan",
        "transportasi",
        "lainnya",
    }
    assert [s["value"] for s in statuses] == ["pending", "in-progress", "resolved", "rejected"]


@pytest.mark.parametrize("page", ["0", "10000000000000000000"])
def test_listing_rejects_out_of_range_page(client, page):
    response = client.get("/api/pengaduan", params={"page": page})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_multipart_rejects_oversized_photo(client, complaint_payload, monkeypatch):
    monkeypatch.setattr("api.forms.MAX_PHOTO_SIZE", 16)

    response = client.post(
        "/api/pengaduan",
        data=complaint_payload,
        files={"foto": ("lubang.png", PNG_BYTES, "image/png")},
    )

    assert response.status_code == 400
    assert "Photo size exceeds" in response.json()["message"]
    assert client.get("/api/pengaduan").json()["pagination"]["totalItems"] == 0


@pytest.mark.parametrize(
    "override",
    [
        {"reporterPhone": "0" * 25},
        {"reporterName": "S" * 150},
        {"title": "T" * 250},
    ],
)
def test_overlong_fields_are_rejected(client, complaint_payload, override):
    response = client.post("/api/pengaduan", json=dict(complaint_payload, **override))

    assert response.status_code == 400
    assert response.json()["success"] is False
