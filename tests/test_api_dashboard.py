async def test_dashboard_stats(client, auth_headers):
    await client.post(
        "/api/contacts/",
        json={"first_name": "John", "last_name": "Doe", "company_name": "Acme Inc"},
        headers=auth_headers
    )
    await client.post(
        "/api/leads/",
        json={"assignment_name": "Website redesign", "stage": "New", "company_name": "Acme Inc"},
        headers=auth_headers
    )

    response = await client.get("/api/dashboard/stats", headers=auth_headers)
    assert response.status_code == 200
    stats = response.json()
    assert stats["total_contacts"] == 1
    assert stats["total_companies"] == 1
    assert stats["total_leads"] == 1
    assert stats["leads_by_stage"] == {"New": 1}
    assert stats["tat"]["No Date"] == 1


async def test_recent_activity(client, auth_headers):
    await client.post("/api/companies/", json={"name": "Acme Inc"}, headers=auth_headers)

    response = await client.get("/api/dashboard/activity", headers=auth_headers)
    items = response.json()["items"]
    assert items[0]["description"] == "Company 'Acme Inc' created"


async def test_health(client):
    response = await client.get("/health")
    assert response.json()["status"] == "healthy"


async def test_activity_for_one_record(client, auth_headers):
    response = await client.post("/api/companies/", json={"name": "Acme Inc"}, headers=auth_headers)
    company = response.json()
    await client.put(f"/api/companies/{company['id']}", json={"name": "Acme Ltd"}, headers=auth_headers)
    await client.post("/api/companies/", json={"name": "Globex"}, headers=auth_headers)

    response = await client.get(
        f"/api/dashboard/activity?entity_type=company&entity_id={company['id']}",
        headers=auth_headers
    )
    actions = [item["action"] for item in response.json()["items"]]
    assert sorted(actions) == ["company_created", "company_updated"]


async def test_assigned_only_member_sees_own_lead_figures(client, auth_headers, member_headers):
    headers = await member_headers("agent@acme.io", {"leads": ["enable_disable", "view_assigned"]})
    me = (await client.get("/api/auth/me", headers=headers)).json()

    await client.post(
        "/api/leads/",
        json={"assignment_name": "Mine", "stage": "New", "assigned_to": me["id"]},
        headers=auth_headers
    )
    for name in ("Other", "Another"):
        await client.post(
            "/api/leads/",
            json={"assignment_name": name, "stage": "Proposal"},
            headers=auth_headers
        )

    response = await client.get("/api/dashboard/stats", headers=headers)
    assert response.status_code == 200
    stats = response.json()
    assert stats["total_leads"] == 1
    assert stats["leads_by_stage"] == {"New": 1}
    assert stats["tat"]["No Date"] == 1
    assert stats["total_contacts"] is None
    assert stats["total_companies"] is None

    response = await client.get("/api/dashboard/activity?limit=50", headers=headers)
    descriptions = [item["description"] for item in response.json()["items"]]
    assert not any("Other" in text or "Another" in text for text in descriptions)
    assert any("Mine" in text for text in descriptions)


async def test_member_without_leads_gets_no_lead_figures(client, auth_headers, member_headers):
    headers = await member_headers("viewer@acme.io", {"contacts": ["enable_disable"]})
    response = await client.post(
        "/api/leads/",
        json={"assignment_name": "Website redesign", "stage": "New"},
        headers=auth_headers
    )
    lead = response.json()

    response = await client.get("/api/dashboard/stats", headers=headers)
    stats = response.json()
    assert stats["total_leads"] is None
    assert stats["leads_by_stage"] is None
    assert stats["total_contacts"] == 0

    response = await client.get("/api/dashboard/activity?limit=50", headers=headers)
    assert all(item["entity_type"] != "lead" for item in response.json()["items"])

    response = await client.get(
        f"/api/dashboard/activity?entity_type=lead&entity_id={lead['id']}",
        headers=headers
    )
    assert response.status_code == 403


async def test_lead_history_of_someone_elses_lead_is_forbidden(client, auth_headers, member_headers):
    headers = await member_headers("agent@acme.io", {"leads": ["enable_disable", "view_assigned"]})
    response = await client.post(
        "/api/leads/",
        json={"assignment_name": "Other", "stage": "New"},
        headers=auth_headers
    )
    lead = response.json()

    response = await client.get(
        f"/api/dashboard/activity?entity_type=lead&entity_id={lead['id']}",
        headers=headers
    )
    assert response.status_code == 403

    response = await client.get(
        f"/api/dashboard/activity?entity_type=lead&entity_id={lead['id']}",
        headers=auth_headers
    )
    assert [item["action"] for item in response.json()["items"]] == ["lead_created"]
