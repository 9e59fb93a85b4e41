import io


def contact_payload(**overrides):
    payload = {"first_name": "Ana", "last_name": "Lee", "email": "ana@x.com"}
    payload.update(overrides)
    return payload


def _create(client, headers, **overrides):
    r = client.post("/api/contacts", json=contact_payload(**overrides), headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_create_and_get_contact(client, owner_headers):
    created = _create(client, owner_headers, phone="  ", company=" Acme ")

    assert created["created_by"] == "user-1"
    assert created["phone"] is None
    assert created["company"] == "Acme"

    r = client.get(f"/api/contacts/{created['id']}", headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["email"] == "ana@x.com"


def test_create_with_invalid_fields_returns_field_errors(client, owner_headers):
    r = client.post(
        "/api/contacts",
        json=contact_payload(first_name="", email="not-an-email"),
        headers=owner_headers,
    )
    assert r.status_code == 422
    errors = r.json()["errors"]
    assert "first_name" in errors
    assert "email" in errors


def test_configured_rules_are_enforced(client, fake_sb, owner_headers):
    fake_sb.seed("validation_rules", {
        "field_name": "phone", "rule_type": "regex", "rule_value": r"^\+?[0-9 ]+$",
        "error_message": "Phone may only contain digits",
    })
    r = client.post("/api/contacts", json=contact_payload(phone="call me"), headers=owner_headers)
    assert r.status_code == 422
    assert r.json()["errors"] == {"phone": ["Phone may only contain digits"]}


def test_duplicate_email_is_conflict(client, owner_headers):
    _create(client, owner_headers)
    r = client.post("/api/contacts", json=contact_payload(first_name="Other"), headers=owner_headers)
    assert r.status_code == 409


def test_list_search_and_pagination(client, owner_headers):
    for i in range(11):
        _create(client, owner_headers, first_name=f"P{i}", last_name="Smith", email=f"p{i}@x.com")
    _create(client, owner_headers, first_name="Zoe", last_name="Quinn", email="zoe@x.com")

    r = client.get("/api/contacts", params={"page": 2}, headers=owner_headers)
    body = r.json()
    assert body["total"] == 12
    assert body["page_size"] == 10
    assert body["total_pages"] == 2
    assert len(body["items"]) == 2

    r = client.get("/api/contacts", params={"q": "quinn"}, headers=owner_headers)
    assert [c["first_name"] for c in r.json()["items"]] == ["Zoe"]


def test_other_owner_cannot_see_contact(client, owner_headers):
    created = _create(client, owner_headers)
    r = client.get(f"/api/contacts/{created['id']}", headers={"X-User-Id": "user-2"})
    assert r.status_code == 404


def test_patch_records_history(client, owner_headers):
    created = _create(client, owner_headers)

    r = client.patch(f"/api/contacts/{created['id']}", json={"company": "Initech"}, headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["company"] == "Initech"

    r = client.get(f"/api/contacts/{created['id']}/history", headers=owner_headers)
    history = r.json()
    assert len(history) == 1
    assert history[0]["field_name"] == "company"
    assert history[0]["new_value"] == "Initech"


def test_patch_with_null_favorite_leaves_flag_unchanged(client, owner_headers):
    created = _create(client, owner_headers, is_favorite=True)

    r = client.patch(f"/api/contacts/{created['id']}", json={"is_favorite": None}, headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["is_favorite"] is True

    r = client.patch(
        f"/api/contacts/{created['id']}",
        json={"is_favorite": None, "company": "Acme"},
        headers=owner_headers,
    )
    assert r.status_code == 200
    assert r.json()["is_favorite"] is True
    assert r.json()["company"] == "Acme"


def test_patch_clearing_required_field_is_rejected(client, owner_headers):
    created = _create(client, owner_headers)
    r = client.patch(f"/api/contacts/{created['id']}", json={"last_name": "  "}, headers=owner_headers)
    assert r.status_code == 422
    assert "last_name" in r.json()["errors"]


def test_favorite_toggle_and_delete(client, owner_headers):
    created = _create(client, owner_headers)

    r = client.post(f"/api/contacts/{created['id']}/favorite", json={"is_favorite": True}, headers=owner_headers)
    assert r.json()["is_favorite"] is True
    r = client.get("/api/contacts", params={"favorites_only": True}, headers=owner_headers)
    assert r.json()["total"] == 1

    r = client.delete(f"/api/contacts/{created['id']}", headers=owner_headers)
    assert r.status_code == 204
    r = client.delete(f"/api/contacts/{created['id']}", headers=owner_headers)
    assert r.status_code == 404


def test_export_csv(client, owner_headers):
    r = client.get("/api/contacts/export", headers=owner_headers)
    assert r.status_code == 404

    _create(client, owner_headers, company="Acme, Inc.")
    r = client.get("/api/contacts/export", headers=owner_headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert 'filename="contacts_' in r.headers["content-disposition"]
    lines = r.text.splitlines()
    assert lines[0] == "first_name,last_name,email,phone,company,notes,is_favorite"
    assert lines[1] == 'Ana,Lee,ana@x.com,,"Acme, Inc.",,false'


def test_import_csv_inserts_valid_rows(client, owner_headers):
    data = (
        "first_name,last_name,email,phone,company,notes,is_favorite\n"
        "Ana,Lee,ana@x.com,,,,true\n"
        ",Missing,missing@x.com,,,,false\n"
        "Bo,Kim,bo@x.com,555,,,false\n"
    ).encode("utf-8")
    r = client.post(
        "/api/contacts/import",
        files={"file": ("contacts.csv", io.BytesIO(data), "text/csv")},
        headers=owner_headers,
    )
    assert r.status_code == 201, r.text
    assert r.json() == {"imported": 2, "skipped": 1, "message": "Successfully imported 2 contacts"}

    r = client.get("/api/contacts", headers=owner_headers)
    assert r.json()["total"] == 2


def test_import_with_existing_email_imports_nothing(client, owner_headers):
    _create(client, owner_headers)
    data = (
        "first_name,last_name,email\n"
        "Bo,Kim,bo@x.com\n"
        "Ana,Dup,ana@x.com\n"
    ).encode("utf-8")
    r = client.post(
        "/api/contacts/import",
        files={"file": ("contacts.csv", io.BytesIO(data), "text/csv")},
        headers=owner_headers,
    )
    assert r.status_code == 409
    assert client.get("/api/contacts", headers=owner_headers).json()["total"] == 1


def test_import_without_valid_rows_is_bad_request(client, owner_headers):
    r = client.post(
        "/api/contacts/import",
        files={"file": ("c.csv", io.BytesIO(b"first_name,last_name,email\n,,\n"), "text/csv")},
        headers=owner_headers,
    )
    assert r.status_code == 400
    assert "No valid contacts" in r.json()["detail"]


def test_backend_failure_is_service_unavailable(client, fake_sb, owner_headers):
    from postgrest.exceptions import APIError

    fake_sb.failures[("contacts", "select")] = APIError({"message": "timeout", "code": "57014"})
    r = client.get("/api/contacts", headers=owner_headers)
    assert r.status_code == 503
