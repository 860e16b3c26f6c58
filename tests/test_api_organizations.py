async def _org_id(client, headers):
    response = await client.get("/api/auth/me", headers=headers)
    return response.json()["org_id"]


async def test_list_my_organizations(client, auth_headers):
    response = await client.get("/api/organizations/", headers=auth_headers)
    body = response.json()
    assert body["count"] == 1
    assert body["organizations"][0]["name"] == "Acme"
    assert body["organizations"][0]["role"] == "owner"
    assert str(body["current_org_id"]) == body["organizations"][0]["id"]


async def test_invited_member_gets_default_grants(client, auth_headers, member_headers):
    headers = await member_headers("member@acme.io")
    org_id = await _org_id(client, auth_headers)

    me = (await client.get("/api/auth/me", headers=headers)).json()
    assert me["org_id"] == org_id
    assert me["role"] == "member"
    assert "view_assigned" in me["permissions"]["leads"]
    assert "delete" not in me["permissions"]["contacts"]

    response = await client.get(f"/api/organizations/{org_id}/members", headers=auth_headers)
    emails = sorted(m["email"] for m in response.json()["members"])
    assert emails == ["member@acme.io", "owner@acme.io"]


async def test_inviting_twice_conflicts(client, auth_headers, member_headers):
    await member_headers("member@acme.io")
    org_id = await _org_id(client, auth_headers)

    response = await client.post(
        f"/api/organizations/{org_id}/invite",
        json={"email": "member@acme.io"},
        headers=auth_headers
    )
    assert response.status_code == 409


async def test_unknown_grant_is_rejected(client, auth_headers):
    await client.post("/api/auth/register", json={
        "email": "member@acme.io",
        "password": "secret-password",
        "org_name": "Side project"
    })
    org_id = await _org_id(client, auth_headers)

    response = await client.post(
        f"/api/organizations/{org_id}/invite",
        json={"email": "member@acme.io", "permissions": {"contacts": ["launch_rockets"]}},
        headers=auth_headers
    )
    assert response.status_code == 400


async def test_member_cannot_invite(client, auth_headers, member_headers):
    headers = await member_headers("member@acme.io")
    org_id = await _org_id(client, auth_headers)

    response = await client.post(
        f"/api/organizations/{org_id}/invite",
        json={"email": "owner@acme.io"},
        headers=headers
    )
    assert response.status_code == 403


async def test_revoked_module_access_is_forbidden(client, auth_headers, member_headers):
    headers = await member_headers("member@acme.io")
    org_id = await _org_id(client, auth_headers)
    member_id = (await client.get("/api/auth/me", headers=headers)).json()["id"]

    response = await client.get("/api/contacts/", headers=headers)
    assert response.status_code == 200

    response = await client.patch(
        f"/api/organizations/{org_id}/members/{member_id}",
        json={"permissions": {"leads": ["enable_disable", "view_all"]}},
        headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["permissions"] == {"leads": ["enable_disable", "view_all"]}

    response = await client.get("/api/contacts/", headers=headers)
    assert response.status_code == 403

    response = await client.get("/api/leads/stats", headers=headers)
    assert response.status_code == 200


async def test_owner_membership_is_immutable(client, auth_headers):
    me = (await client.get("/api/auth/me", headers=auth_headers)).json()
    response = await client.patch(
        f"/api/organizations/{me['org_id']}/members/{me['id']}",
        json={"role": "member"},
        headers=auth_headers
    )
    assert response.status_code == 403


async def test_switch_requires_membership(client, auth_headers):
    other = await client.post("/api/auth/register", json={
        "email": "stranger@other.io",
        "password": "secret-password",
        "org_name": "Other"
    })
    response = await client.post(f"/api/organizations/switch/{other.json()['org_id']}", headers=auth_headers)
    assert response.status_code == 403


async def test_tenants_are_isolated(client, auth_headers):
    await client.post("/api/contacts/", json={"first_name": "John", "last_name": "Doe"}, headers=auth_headers)

    response = await client.post("/api/auth/register", json={
        "email": "stranger@other.io",
        "password": "secret-password",
        "org_name": "Other"
    })
    assert response.status_code == 201
    response = await client.post(
        "/api/auth/login",
        data={"username": "stranger@other.io", "password": "secret-password"}
    )
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    response = await client.get("/api/contacts/", headers=headers)
    assert response.json()["total"] == 0
