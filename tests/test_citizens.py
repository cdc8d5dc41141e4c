"""
Tests for citizen profile, address and Aadhaar records.
"""

AADHAAR = {"aadhaar_number": "123456789012", "date_of_birth": "1990-05-17", "gender": "female"}


def address(**overrides):
    payload = {"address_line1": "House 12, Fontainhas", "city": "Panaji", "pincode": "403001"}
    payload.update(overrides)
    return payload


# ── Profile ──────────────────────────────────────────────────────────

def test_read_and_update_profile(client, citizen):
    profile = client.get("/profile", headers=citizen["headers"]).json()
    assert profile["full_name"] == "Asha Naik"

    updated = client.put("/profile", json={"phone": "9822012345"}, headers=citizen["headers"])
    assert updated.status_code == 200
    assert updated.json()["phone"] == "9822012345"
    assert updated.json()["full_name"] == "Asha Naik"


# ── Addresses ────────────────────────────────────────────────────────

def test_address_defaults_to_goa(client, citizen):
    response = client.post("/addresses", json=address(), headers=citizen["headers"])
    assert response.status_code == 201
    assert response.json()["state"] == "Goa"


def test_bad_pincode_rejected(client, citizen):
    response = client.post("/addresses", json=address(pincode="40300"), headers=citizen["headers"])
    assert response.status_code == 422


def test_single_primary_address(client, citizen):
    first = client.post("/addresses", json=address(is_primary=True), headers=citizen["headers"]).json()
    second = client.post(
        "/addresses", json=address(address_line1="Flat 3, Miramar", is_primary=True), headers=citizen["headers"]
    ).json()

    listed = client.get("/addresses", headers=citizen["headers"]).json()
    primary = [a["id"] for a in listed if a["is_primary"]]
    assert primary == [second["id"]]

    client.put(f"/addresses/{first['id']}", json={"is_primary": True}, headers=citizen["headers"])
    listed = client.get("/addresses", headers=citizen["headers"]).json()
    assert [a["id"] for a in listed if a["is_primary"]] == [first["id"]]


def test_addresses_are_private(client, citizen, other_citizen):
    created = client.post("/addresses", json=address(), headers=citizen["headers"]).json()

    assert client.get("/addresses", headers=other_citizen["headers"]).json() == []
    update = client.put(f"/addresses/{created['id']}", json={"city": "Margao"}, headers=other_citizen["headers"])
    assert update.status_code == 404
    assert client.delete(f"/addresses/{created['id']}", headers=other_citizen["headers"]).status_code == 404


def test_delete_address(client, citizen):
    created = client.post("/addresses", json=address(), headers=citizen["headers"]).json()
    assert client.delete(f"/addresses/{created['id']}", headers=citizen["headers"]).status_code == 200
    assert client.get("/addresses", headers=citizen["headers"]).json() == []


# ── Aadhaar ──────────────────────────────────────────────────────────

def test_register_aadhaar_once(client, citizen):
    first = client.post("/aadhaar", json=AADHAAR, headers=citizen["headers"])
    assert first.status_code == 201
    assert client.get("/aadhaar", headers=citizen["headers"]).json()["aadhaar_number"] == "123456789012"

    again = client.post("/aadhaar", json=AADHAAR, headers=citizen["headers"])
    assert again.status_code == 400


def test_aadhaar_must_be_twelve_digits(client, citizen):
    response = client.post("/aadhaar", json=dict(AADHAAR, aadhaar_number="1234"), headers=citizen["headers"])
    assert response.status_code == 422


def test_officer_reads_citizen_aadhaar(client, citizen, other_citizen, officer):
    client.post("/aadhaar", json=AADHAAR, headers=citizen["headers"])

    assert client.get(f"/aadhaar/{citizen['id']}", headers=officer["headers"]).status_code == 200
    assert client.get(f"/aadhaar/{citizen['id']}", headers=other_citizen["headers"]).status_code == 403
    assert client.get("/aadhaar", headers=other_citizen["headers"]).status_code == 404
