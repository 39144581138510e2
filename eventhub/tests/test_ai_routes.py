from unittest.mock import MagicMock

from eventhub.ai_service.describer import DescriberBusy, DescriberError

PAYLOAD = {"title": "Tech Conference 2024", "venue": "Convention Center", "location": "Mumbai"}


def test_generate_description_success(client, mocker, admin, auth_headers):
    mock_describer = MagicMock()
    mock_describer.describe.return_value = "Join industry leaders in Mumbai."
    mocker.patch("eventhub.ai_service.routes.get_describer", return_value=mock_describer)

    response = client.post("/api/ai/generate-description", json=PAYLOAD, headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.get_json() == {"description": "Join industry leaders in Mumbai.", "isAiGenerated": True}


def test_generate_description_rate_limited(client, mocker, admin, auth_headers):
    mocker.patch("eventhub.ai_service.service.time.sleep")
    mock_describer = MagicMock()
    mock_describer.describe.side_effect = DescriberBusy("busy")
    mocker.patch("eventhub.ai_service.routes.get_describer", return_value=mock_describer)

    response = client.post("/api/ai/generate-description", json=PAYLOAD, headers=auth_headers(admin))

    assert response.status_code == 429
    data = response.get_json()
    assert data["category"] == "rate_limited"
    assert data["retryAfter"] > 0
    assert response.headers["Retry-After"] == str(data["retryAfter"])


def test_generate_description_service_error(client, mocker, admin, auth_headers):
    mock_describer = MagicMock()
    mock_describer.describe.side_effect = DescriberError("AI service timed out")
    mocker.patch("eventhub.ai_service.routes.get_describer", return_value=mock_describer)

    response = client.post("/api/ai/generate-description", json=PAYLOAD, headers=auth_headers(admin))

    assert response.status_code == 503
    assert response.get_json()["category"] == "service_error"


def test_generate_description_no_service_configured(client, mocker, admin, auth_headers):
    mocker.patch("eventhub.ai_service.routes.get_describer", return_value=None)

    response = client.post("/api/ai/generate-description", json=PAYLOAD, headers=auth_headers(admin))

    assert response.status_code == 503
    assert "AI service is not configured" in response.get_json()["error"]


def test_generate_description_missing_venue(client, mocker, admin, auth_headers):
    mocker.patch("eventhub.ai_service.routes.get_describer", return_value=MagicMock())

    response = client.post("/api/ai/generate-description", json={"title": "Only Title"},
                           headers=auth_headers(admin))

    assert response.status_code == 400


def test_generate_description_requires_admin(client, make_user, auth_headers):
    reader = make_user(email="reader@x.com", role="user", name="Reader")

    response = client.post("/api/ai/generate-description", json=PAYLOAD, headers=auth_headers(reader))

    assert response.status_code == 403
