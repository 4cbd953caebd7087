import json

import pytest

from tests.factories import BIG_SQUARE, SQUARE, cadastre_parcel, point, polygon

SAVED_COLLECTION = {
    "type": "FeatureCollection",
    "bbox": [2.38, 48.87, 2.39, 48.88],
    "features": [
        cadastre_parcel(),
        polygon(None, SQUARE, source="selection_utilisateur"),
    ],
}


@pytest.fixture
def editor(client):
    response = client.post("/api/editors", json={"record_id": 42, "feature_collection": SAVED_COLLECTION})
    assert response.status_code == 201
    return response.get_json()


def field_value(client, record_id="42"):
    response = client.get(f"/api/fields/{record_id}")
    assert response.status_code == 200
    return response.get_json()["feature_collection"]


def test_mount_seeds_selection_and_returns_draw_commands(client, editor):
    body = editor["editor"]
    assert body["field_selector"] == '[data-feature-collection-id="42"]'
    assert body["viewport"]["bbox"] == [2.38, 48.87, 2.39, 48.88]
    assert body["viewport"]["style"] == "ortho"
    assert body["viewport"]["style_url"].endswith("ortho.json")

    (command,) = editor["commands"]
    assert command["command"] == "add"
    assert command["feature"]["geometry"] == {"type": "Polygon", "coordinates": [SQUARE]}

    features = field_value(client)["features"]
    assert [f["geometry"]["coordinates"] for f in features] == [[SQUARE]]

    assert client.get(f"/api/editors/{body['id']}/draw/commands").get_json()["commands"] == []


def test_mount_accepts_json_string_and_empty_value(client):
    response = client.post("/api/editors", json={
        "record_id": "7",
        "feature_collection": json.dumps({"type": "FeatureCollection", "features": []}),
    })
    assert response.status_code == 201
    assert field_value(client, "7") == {"type": "FeatureCollection", "features": []}

    assert client.post("/api/editors", json={"record_id": "8"}).status_code == 201


def test_mount_validation_errors(client):
    assert client.post("/api/editors", json={}).status_code == 400
    response = client.post("/api/editors", json={"record_id": 1, "feature_collection": "{oops"})
    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_draw_events_are_synced_into_the_field(client, editor):
    editor_id = editor["editor"]["id"]
    seeded_id = editor["commands"][0]["feature"]["id"]

    response = client.post(f"/api/editors/{editor_id}/draw/create", json={"features": [point("p1", 2.385, 48.873)]})
    assert response.status_code == 200
    assert len(field_value(client)["features"]) == 2

    client.post(f"/api/editors/{editor_id}/draw/update", json={"features": [polygon(seeded_id, BIG_SQUARE)]})
    features = field_value(client)["features"]
    assert features[-1]["id"] == seeded_id
    assert features[-1]["geometry"]["coordinates"] == [BIG_SQUARE]

    client.post(f"/api/editors/{editor_id}/draw/delete", json={"features": [{"id": "p1"}]})
    assert [f["id"] for f in field_value(client)["features"]] == [seeded_id]


def test_draw_event_errors(client, editor):
    editor_id = editor["editor"]["id"]

    assert client.post(f"/api/editors/{editor_id}/draw/explode", json={"features": []}).status_code == 404
    assert client.post(f"/api/editors/{editor_id}/draw/create", json={"features": "x"}).status_code == 400
    bad = client.post(f"/api/editors/{editor_id}/draw/create", json={"features": [{"id": "x"}]})
    assert bad.status_code == 400
    assert client.post("/api/editors/999/draw/create", json={"features": []}).status_code == 404


def test_viewport_search_and_style(client, editor):
    editor_id = editor["editor"]["id"]

    response = client.post(f"/api/editors/{editor_id}/viewport/search", json={"coordinates": [2.3522, 48.8566]})
    assert response.status_code == 200
    assert response.get_json()["viewport"]["center"] == [2.3522, 48.8566]
    assert response.get_json()["viewport"]["zoom"] == 17

    assert client.post(f"/api/editors/{editor_id}/viewport/search", json={}).status_code == 400

    first = client.post(f"/api/editors/{editor_id}/viewport/style").get_json()["viewport"]
    second = client.post(f"/api/editors/{editor_id}/viewport/style").get_json()["viewport"]
    assert first["style"] == "vector"
    assert first["style_url"].endswith("vector.json")
    assert second["style"] == "ortho"


def test_address_search(client, editor, geocoder):
    response = client.get("/api/address-search", query_string={"q": "8 bd du port"})
    assert response.status_code == 200
    assert response.get_json()["results"] == [
        {"label": "8 Boulevard du Port, Amiens", "coordinates": [2.290084, 49.897443]}
    ]

    editor_id = editor["editor"]["id"]
    response = client.get(f"/api/editors/{editor_id}/search", query_string={"q": "8 bd du port"})
    assert response.status_code == 200
    assert geocoder.calls == ["8 bd du port"]


def test_address_search_failure_is_reported(client, geocoder):
    geocoder.failing.add("nowhere")

    response = client.get("/api/address-search", query_string={"q": "nowhere"})

    assert response.status_code == 502
    assert response.get_json()["results"] == []


def test_unmount_discards_editor_but_keeps_field(client, editor):
    editor_id = editor["editor"]["id"]

    assert client.delete(f"/api/editors/{editor_id}").status_code == 200
    assert client.get(f"/api/editors/{editor_id}").status_code == 404
    assert client.delete(f"/api/editors/{editor_id}").status_code == 404
    assert len(field_value(client)["features"]) == 1


def test_editor_page_renders_hidden_input(client, editor):
    editor_id = editor["editor"]["id"]

    response = client.get(f"/editors/{editor_id}")

    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert 'data-feature-collection-id="42"' in html
    assert "FeatureCollection" in html
    assert client.get("/editors/999").status_code == 404


def test_unknown_field_is_404(client):
    assert client.get("/api/fields/nope").status_code == 404


def test_mount_skips_saved_feature_that_cannot_be_drawn(client):
    broken = point(None, 2.35, 48.85, source="selection_utilisateur")
    broken["geometry"]["coordinates"] = [2.35]

    response = client.post("/api/editors", json={
        "record_id": "9",
        "feature_collection": {"type": "FeatureCollection", "features": [broken, SAVED_COLLECTION["features"][1]]},
    })

    assert response.status_code == 201
    assert len(response.get_json()["commands"]) == 1
    assert [f["geometry"]["type"] for f in field_value(client, "9")["features"]] == ["Polygon"]


def test_unexpected_geocoder_error_is_a_json_500(client, geocoder):
    def explode(term):
        raise RuntimeError("geocoder crashed")

    geocoder.on_fetch = explode

    response = client.get("/api/address-search", query_string={"q": "paris"})

    assert response.status_code == 500
    assert response.get_json() == {"success": False, "results": [], "message": "Internal server error"}


def test_draw_event_response_lists_editors_features(client, editor):
    editor_id = editor["editor"]["id"]

    response = client.post(f"/api/editors/{editor_id}/draw/create", json={"features": [point("p1", 2.385, 48.873)]})

    assert len(response.get_json()["feature_collection"]["features"]) == 2
    assert [e["id"] for e in client.get("/api/editors").get_json()["editors"]] == [editor_id]
