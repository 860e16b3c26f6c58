from datetime import datetime, timedelta, timezone


def _iso(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


async def _create_lead(client, headers, **fields):
    payload = {"assignment_name": "Website redesign", "stage": "New", **fields}
    response = await client.post("/api/leads/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_lead_resolves_company(client, auth_headers):
    lead = await _create_lead(client, auth_headers, company_name="Acme Inc", amount="1500.50")
    assert lead["company_name"] == "Acme Inc"
    assert lead["priority"] == "Medium"
    assert lead["tat_status"] == "No Date"

    second = await _create_lead(client, auth_headers, assignment_name="Hosting", company_name="Acme Inc")
    assert second["company_id"] == lead["company_id"]


async def test_lead_requires_stage(client, auth_headers):
    response = await client.post(
        "/api/leads/",
        json={"assignment_name": "Website redesign", "stage": ""},
        headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Stage is required"


async def test_tat_status_in_listing(client, auth_headers):
    now = datetime.now(timezone.utc)
    await _create_lead(client, auth_headers, assignment_name="Fresh", closing_date=_iso(now - timedelta(hours=5)))
    await _create_lead(client, auth_headers, assignment_name="Stale", closing_date=_iso(now - timedelta(hours=100)))
    await _create_lead(client, auth_headers, assignment_name="Closed", stage="WON")

    response = await client.get("/api/leads/", headers=auth_headers)
    statuses = {lead["assignment_name"]: lead["tat_status"] for lead in response.json()["items"]}
    assert statuses == {"Fresh": "In TAT", "Stale": "Lost", "Closed": ""}

    response = await client.get("/api/leads/stats", headers=auth_headers)
    stats = response.json()
    assert stats["total"] == 3
    assert stats["by_stage"]["WON"] == 1
    assert stats["tat"] == {"In TAT": 1, "Lost": 1, "No Date": 0}


async def test_patch_applies_only_given_fields(client, auth_headers):
    lead = await _create_lead(client, auth_headers, service="Design", priority="High")

    response = await client.patch(f"/api/leads/{lead['id']}", json={"stage": "Proposal"}, headers=auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["stage"] == "Proposal"
    assert body["service"] == "Design"
    assert body["priority"] == "High"

    response = await client.patch(f"/api/leads/{lead['id']}", json={}, headers=auth_headers)
    assert response.status_code == 400


async def test_put_is_full_replacement(client, auth_headers):
    lead = await _create_lead(client, auth_headers, service="Design", source="Website")

    response = await client.put(
        f"/api/leads/{lead['id']}",
        json={"assignment_name": "Website rebuild", "stage": "Qualify"},
        headers=auth_headers
    )
    body = response.json()
    assert body["assignment_name"] == "Website rebuild"
    assert body["service"] is None
    assert body["source"] is None


async def test_comments_and_delete(client, auth_headers):
    lead = await _create_lead(client, auth_headers)

    response = await client.post(f"/api/leads/{lead['id']}/comments", json={"content": " "}, headers=auth_headers)
    assert response.status_code == 400

    response = await client.post(
        f"/api/leads/{lead['id']}/comments",
        json={"content": "Called, follow up on Monday"},
        headers=auth_headers
    )
    assert response.status_code == 201

    response = await client.get(f"/api/leads/{lead['id']}/comments", headers=auth_headers)
    assert [c["content"] for c in response.json()] == ["Called, follow up on Monday"]

    response = await client.delete(f"/api/leads/{lead['id']}", headers=auth_headers)
    assert response.status_code == 204
    response = await client.get(f"/api/leads/{lead['id']}", headers=auth_headers)
    assert response.status_code == 404


async def test_assigned_only_member_sees_own_leads(client, auth_headers, member_headers):
    headers = await member_headers("agent@acme.io", {"leads": ["enable_disable", "view_assigned", "edit"]})
    me = (await client.get("/api/auth/me", headers=headers)).json()

    mine = await _create_lead(client, auth_headers, assignment_name="Mine", assigned_to=me["id"])
    other = await _create_lead(client, auth_headers, assignment_name="Other")

    response = await client.get("/api/leads/", headers=headers)
    assert [lead["id"] for lead in response.json()["items"]] == [mine["id"]]
    assert response.json()["items"][0]["assigned_agent_name"] == "Agent"

    response = await client.get(f"/api/leads/{other['id']}", headers=headers)
    assert response.status_code == 403

    response = await client.patch(f"/api/leads/{mine['id']}", json={"assigned_to": None}, headers=headers)
    assert response.status_code == 403

    response = await client.get("/api/leads/stats", headers=headers)
    assert response.status_code == 403


async def test_lead_sources_are_seeded(client, auth_headers):
    response = await client.get("/api/lead-sources/", headers=auth_headers)
    names = [source["name"] for source in response.json()]
    assert "Website" in names
    assert "Referral" in names

    response = await client.post("/api/lead-sources/", json={"name": "Website"}, headers=auth_headers)
    assert response.status_code == 409

    response = await client.post("/api/lead-sources/", json={"name": "Podcast"}, headers=auth_headers)
    assert response.status_code == 201
