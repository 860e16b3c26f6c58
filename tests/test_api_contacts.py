import uuid


async def _create_contact(client, headers, **fields):
    payload = {"first_name": "John", "last_name": "Doe", **fields}
    response = await client.post("/api/contacts/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_contact_with_new_company(client, auth_headers):
    contact = await _create_contact(client, auth_headers, company_name="Acme Inc", email="john@acme.io")
    assert contact["company_name"] == "Acme Inc"
    assert contact["email"] == "john@acme.io"

    response = await client.get("/api/companies/", headers=auth_headers)
    assert [c["name"] for c in response.json()] == ["Acme Inc"]


async def test_missing_last_name_is_400(client, auth_headers):
    response = await client.post(
        "/api/contacts/",
        json={"first_name": "John", "last_name": "", "company_name": "Acme Inc"},
        headers=auth_headers
    )
    assert response.status_code == 400
    assert "required" in response.json()["detail"]

    response = await client.get("/api/companies/", headers=auth_headers)
    assert response.json() == []


async def test_unknown_company_id_is_400(client, auth_headers):
    response = await client.post(
        "/api/contacts/",
        json={"first_name": "John", "last_name": "Doe", "company_id": str(uuid.uuid4())},
        headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid company_id: company not found"}


async def test_duplicate_contact_is_409(client, auth_headers):
    await _create_contact(client, auth_headers, phone="9876543210")
    response = await client.post(
        "/api/contacts/",
        json={"first_name": "Jane", "last_name": "Roe", "phone": "9876543210"},
        headers=auth_headers
    )
    assert response.status_code == 409
    assert "Phone (9876543210)" in response.json()["detail"]


async def test_update_get_and_delete(client, auth_headers):
    contact = await _create_contact(client, auth_headers, mobile="9000000001", company_name="Acme Inc")

    response = await client.put(
        f"/api/contacts/{contact['id']}",
        json={"first_name": "John", "last_name": "Smith"},
        headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["last_name"] == "Smith"
    assert response.json()["mobile"] is None
    assert response.json()["company_id"] is None

    response = await client.get(f"/api/contacts/{contact['id']}", headers=auth_headers)
    assert response.json()["last_name"] == "Smith"

    response = await client.delete(f"/api/contacts/{contact['id']}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(f"/api/contacts/{contact['id']}", headers=auth_headers)
    assert response.status_code == 404


async def test_list_is_paginated(client, auth_headers):
    for index in range(3):
        await _create_contact(client, auth_headers, first_name=f"Contact{index}")

    response = await client.get("/api/contacts/?limit=2", headers=auth_headers)
    body = response.json()
    assert body["total"] == 3
    assert len(body["items"]) == 2
    assert body["has_next"] is True


async def test_contact_tags(client, auth_headers):
    contact = await _create_contact(client, auth_headers)
    response = await client.post("/api/tags/", json={"name": "VIP", "type": "contact_tag"}, headers=auth_headers)
    assert response.status_code == 201
    tag = response.json()

    response = await client.put(
        f"/api/contacts/{contact['id']}/tags",
        json={"tag_ids": [tag["id"]]},
        headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["tags"] == ["VIP"]

    response = await client.post("/api/tags/", json={"name": "VIP", "type": "contact_tag"}, headers=auth_headers)
    assert response.status_code == 409
