import base64
import io

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x01" * 64


def create_event(client, headers, payload, image=None):
    data = dict(payload)
    if image is not None:
        data["image"] = image
    return client.post("/api/events", data=data, headers=headers, content_type="multipart/form-data")


def test_admin_scenario_create_then_list(client, admin, auth_headers, event_payload):
    response = create_event(client, auth_headers(admin), event_payload)
    assert response.status_code == 200
    created = response.get_json()["event"]
    assert created["admin"]["name"] == "Admin A"

    response = client.get("/api/events")
    assert response.status_code == 200
    events = response.get_json()["events"]
    assert [e["id"] for e in events] == [created["id"]]
    assert events[0]["admin"] == {"id": admin.id, "name": "Admin A", "email": "admin@x.com"}
    assert "password" not in events[0]["admin"]
    assert events[0]["startDate"] == "2024-06-15"
    assert events[0]["endDate"] == "2024-06-17"


def test_create_accepts_json_body(client, admin, auth_headers, event_payload):
    response = client.post("/api/events", json=event_payload, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.get_json()["event"]["adminId"] == admin.id


def test_create_ignores_spoofed_owner(client, admin, other_admin, auth_headers, event_payload):
    event_payload["adminId"] = other_admin.id

    response = create_event(client, auth_headers(admin), event_payload)

    assert response.get_json()["event"]["adminId"] == admin.id


def test_create_with_image_round_trip(client, admin, auth_headers, event_payload):
    image = (io.BytesIO(PNG_BYTES), "banner.png", "image/png")
    created = create_event(client, auth_headers(admin), event_payload, image).get_json()["event"]

    response = client.get(f"/api/events/{created['id']}")
    assert response.status_code == 200
    image_url = response.get_json()["event"]["imageUrl"]
    assert image_url.startswith("data:image/png;base64,")
    assert base64.b64decode(image_url.split(",", 1)[1]) == PNG_BYTES


def test_create_rejects_gif(client, admin, auth_headers, event_payload):
    image = (io.BytesIO(b"GIF89a"), "anim.gif", "image/gif")

    response = create_event(client, auth_headers(admin), event_payload, image)

    assert response.status_code == 400
    assert "image" in response.get_json()["fields"]


def test_create_requires_token(client, event_payload):
    response = client.post("/api/events", json=event_payload)
    assert response.status_code == 401


def test_create_requires_admin(client, make_user, auth_headers, event_payload):
    reader = make_user(email="reader@x.com", role="user", name="Reader")

    response = client.post("/api/events", json=event_payload, headers=auth_headers(reader))

    assert response.status_code == 403
    assert client.get("/api/events").get_json()["events"] == []


def test_create_invalid_input_lists_fields(client, admin, auth_headers):
    response = client.post("/api/events", json={"title": "New Event"}, headers=auth_headers(admin))

    assert response.status_code == 400
    data = response.get_json()
    assert data["category"] == "validation_error"
    assert {"description", "venue", "startDate", "endDate", "cost", "eventType", "location"} <= set(data["fields"])


def test_list_events_with_filters(client, admin, auth_headers, event_payload):
    create_event(client, auth_headers(admin), event_payload)
    workshop = dict(event_payload, title="Web Development Workshop", eventType="workshop",
                    location="Bangalore", startDate="2024-07-20", endDate="2024-07-20")
    create_event(client, auth_headers(admin), workshop)

    def titles(**params):
        response = client.get("/api/events", query_string=params)
        assert response.status_code == 200
        return [e["title"] for e in response.get_json()["events"]]

    assert titles(eventType="workshop") == ["Web Development Workshop"]
    assert titles(eventType="all") == ["Web Development Workshop", "Tech Conference 2024"]
    assert titles(location="mumbai ") == ["Tech Conference 2024"]
    assert titles(search="DEVELOPMENT") == ["Web Development Workshop"]
    assert titles(date="2024-07-20") == ["Web Development Workshop"]
    assert titles(date="2024-06-16") == []


def test_list_events_bad_filter(client):
    response = client.get("/api/events", query_string={"eventType": "party"})
    assert response.status_code == 400


def test_get_event_not_found(client):
    response = client.get("/api/events/unknown")
    assert response.status_code == 404
    assert response.get_json()["error"] == "Event not found"


def test_list_my_events(client, admin, other_admin, auth_headers, event_payload):
    create_event(client, auth_headers(admin), event_payload)
    create_event(client, auth_headers(other_admin), dict(event_payload, title="Admin B Meetup"))

    response = client.get("/api/events/my", headers=auth_headers(admin))

    assert response.status_code == 200
    events = response.get_json()["events"]
    assert [e["title"] for e in events] == ["Tech Conference 2024"]
    assert "admin" not in events[0]


def test_update_event(client, admin, auth_headers, event_payload):
    created = create_event(client, auth_headers(admin), event_payload).get_json()["event"]

    response = client.put(
        f"/api/events/{created['id']}",
        data={"cost": "₹999"},
        headers=auth_headers(admin),
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    event = response.get_json()["event"]
    assert event["cost"] == "₹999"
    assert event["title"] == "Tech Conference 2024"


def test_update_by_other_admin_forbidden(client, admin, other_admin, auth_headers, event_payload):
    created = create_event(client, auth_headers(admin), event_payload).get_json()["event"]

    response = client.put(f"/api/events/{created['id']}", json={"title": "Hijacked"},
                          headers=auth_headers(other_admin))

    assert response.status_code == 403
    assert client.get(f"/api/events/{created['id']}").get_json()["event"]["title"] == "Tech Conference 2024"


def test_update_missing_event(client, admin, auth_headers):
    response = client.put("/api/events/missing", json={"title": "Whatever"}, headers=auth_headers(admin))
    assert response.status_code == 404


def test_delete_scenario_other_admin_cannot_delete(client, admin, other_admin, auth_headers, event_payload):
    created = create_event(client, auth_headers(admin), event_payload).get_json()["event"]

    response = client.delete(f"/api/events/{created['id']}", headers=auth_headers(other_admin))
    assert response.status_code == 404

    # E1 still present
    assert client.get(f"/api/events/{created['id']}").status_code == 200


def test_delete_event(client, admin, auth_headers, event_payload):
    created = create_event(client, auth_headers(admin), event_payload).get_json()["event"]

    response = client.delete(f"/api/events/{created['id']}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.get_json()["message"] == "Event deleted successfully"

    again = client.delete(f"/api/events/{created['id']}", headers=auth_headers(admin))
    assert again.status_code == 404


def test_delete_requires_token(client):
    response = client.delete("/api/events/anything")
    assert response.status_code == 401
