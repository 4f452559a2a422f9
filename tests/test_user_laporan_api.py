BASE = "/api/user/laporan"


def _report(client, payload, headers):
    response = client.post(BASE, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_reports_require_login(client, complaint_payload):
    assert client.post(BASE, json=complaint_payload).status_code == 401
    assert client.get(BASE).status_code == 401
    assert client.get(f"{BASE}/stats").status_code == 401


def test_create_and_list_own_reports(client, complaint_payload, citizen, other_citizen):
    user, headers = citizen
    _, other_headers = other_citizen
    report = _report(client, complaint_payload, headers)
    _report(client, complaint_payload, other_headers)

    assert report["ownerUserId"] == user["id"]
    body = client.get(BASE, headers=headers).json()
    assert [r["id"] for r in body["data"]] == [report["id"]]
    assert body["pagination"]["totalItems"] == 1


def test_admin_listing_is_scoped_to_own_reports(client, complaint_payload, citizen, admin):
    _, headers = citizen
    admin_user, admin_headers = admin
    _report(client, complaint_payload, headers)
    own = _report(client, complaint_payload, admin_headers)

    body = client.get(BASE, headers=admin_headers).json()

    assert [r["id"] for r in body["data"]] == [own["id"]]
    assert body["data"][0]["ownerUserId"] == admin_user["id"]


def test_foreign_reports_look_missing(client, complaint_payload, citizen, other_citizen, admin):
    _, headers = citizen
    _, other_headers = other_citizen
    _, admin_headers = admin
    report = _report(client, complaint_payload, headers)
    path = f"{BASE}/{report['id']}"

    for caller in (other_headers, admin_headers):
        assert client.get(path, headers=caller).status_code == 404
        assert client.put(path, json={"body": "x"}, headers=caller).status_code == 404
        assert client.delete(path, headers=caller).status_code == 404

    assert client.get(path, headers=headers).status_code == 200


def test_edit_and_delete_only_while_pending(client, complaint_payload, citizen, admin):
    _, headers = citizen
    _, admin_headers = admin
    first = _report(client, complaint_payload, headers)
    second = _report(client, complaint_payload, headers)

    response = client.put(
        f"{BASE}/{first['id']}", json={"title": "Judul baru"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["title"] == "Judul baru"

    client.put(
        f"/api/pengaduan/{first['id']}/status", json={"status": "in-progress"}, headers=admin_headers
    )
    assert client.put(f"{BASE}/{first['id']}", json={"title": "Lagi"}, headers=headers).status_code == 403
    assert client.delete(f"{BASE}/{first['id']}", headers=headers).status_code == 403

    assert client.delete(f"{BASE}/{second['id']}", headers=headers).status_code == 200
    assert client.get(f"{BASE}/{second['id']}", headers=headers).status_code == 404


def test_update_validation(client, complaint_payload, citizen):
    _, headers = citizen
    report = _report(client, complaint_payload, headers)

    response = client.put(
        f"{BASE}/{report['id']}", json={"reporterPhone": "12"}, headers=headers
    )

    assert response.status_code == 400


def test_own_stats(client, complaint_payload, citizen, other_citizen, admin):
    _, headers = citizen
    _, other_headers = other_citizen
    _, admin_headers = admin
    first = _report(client, complaint_payload, headers)
    _report(client, complaint_payload, headers)
    _report(client, complaint_payload, other_headers)
    client.put(
        f"/api/pengaduan/{first['id']}/status", json={"status": "rejected"}, headers=admin_headers
    )

    stats = client.get(f"{BASE}/stats", headers=headers).json()["data"]

    assert stats == {
        "total": 2,
        "byStatus": {"pending": 1, "in-progress": 0, "resolved": 0, "rejected": 1},
    }


def test_list_filters_by_status(client, complaint_payload, citizen, admin):
    _, headers = citizen
    _, admin_headers = admin
    first = _report(client, complaint_payload, headers)
    _report(client, complaint_payload, headers)
    client.put(
        f"/api/pengaduan/{first['id']}/status", json={"status": "in-progress"}, headers=admin_headers
    )

    body = client.get(BASE, params={"status": "in-progress"}, headers=headers).json()

    assert [r["id"] for r in body["data"]] == [first["id"]]


def test_listing_rejects_huge_page(client, citizen):
    _, headers = citizen

    response = client.get(BASE, params={"page": "10000000000000000000"}, headers=headers)

    assert response.status_code == 400
