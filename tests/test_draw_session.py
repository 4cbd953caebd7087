import pytest

from carte.domain.features import SOURCE_USER_SELECTION, InvalidFeatureError
from carte.services.draw_session import DrawSessionController
from carte.services.draw_surface import CommandQueueDrawSurface
from carte.services.geometry_store import GeometryStore
from tests.factories import BIG_SQUARE, SQUARE, cadastre_parcel, point, polygon


@pytest.fixture
def surface():
    return CommandQueueDrawSurface()


@pytest.fixture
def controller(surface):
    return DrawSessionController(GeometryStore(), surface)


def test_create_then_update_keeps_one_feature_with_new_coordinates(controller):
    controller.on_create([polygon("a", SQUARE)])
    controller.on_update([polygon("a", BIG_SQUARE)])

    features = controller.store.all()
    assert len(features) == 1
    assert features[0].id == "a"
    assert features[0].coordinates == [BIG_SQUARE]


def test_create_tags_features_as_user_selection(controller):
    controller.on_create([point("p", 2.35, 48.85, source="cadastre")])

    assert controller.store.get("p").source == SOURCE_USER_SELECTION


def test_delete_removes_by_id_and_ignores_unknown_ids(controller):
    controller.on_create([polygon("a", SQUARE), point("b", 1, 1)])
    controller.on_delete([{"id": "a"}, {"id": "zzz"}])

    assert [f.id for f in controller.store.all()] == ["b"]


def test_delete_without_id_is_rejected(controller):
    controller.on_create([polygon("a", SQUARE)])

    with pytest.raises(InvalidFeatureError):
        controller.on_delete([{"type": "Feature"}])
    assert "a" in controller.store


def test_malformed_feature_keeps_earlier_features_of_the_event(controller):
    controller.on_create([point("keep", 0, 0)])

    with pytest.raises(InvalidFeatureError):
        controller.on_create([polygon("a", SQUARE), {"id": "broken", "type": "Feature"}])

    assert sorted(f.id for f in controller.store.all()) == ["a", "keep"]


def test_map_ready_draws_only_user_selections(controller, surface):
    seeded = controller.on_map_ready([
        cadastre_parcel(),
        polygon("saved-1", SQUARE, source="selection_utilisateur"),
        point(None, 2.35, 48.85, source="selection_utilisateur"),
        point("untagged", 1, 1),
    ])

    commands = surface.drain()
    assert len(seeded) == 2
    assert [c["command"] for c in commands] == ["add", "add"]
    assert commands[0]["feature"]["geometry"] == {"type": "Polygon", "coordinates": [SQUARE]}
    assert commands[0]["feature"]["properties"] == {}
    assert [f.id for f in controller.store.all()] == [c["feature"]["id"] for c in commands]


def test_map_ready_uses_surface_ids_not_persisted_ids(controller, surface):
    controller.on_map_ready([polygon("saved-1", SQUARE, source="selection_utilisateur")])

    (command,) = surface.drain()
    assert command["feature"]["id"] != "saved-1"
    assert "saved-1" not in controller.store


def test_update_after_reload_does_not_corrupt_unrelated_features(controller, surface):
    controller.on_map_ready([
        polygon("saved-1", SQUARE, source="selection_utilisateur"),
        point("saved-2", 2.35, 48.85, source="selection_utilisateur"),
    ])
    first_id, second_id = (c["feature"]["id"] for c in surface.drain())

    # An update still addressed with a persisted id lands as its own feature.
    controller.on_update([polygon("saved-1", BIG_SQUARE)])
    assert controller.store.get(first_id).coordinates == [SQUARE]
    assert controller.store.get(second_id).coordinates == [2.35, 48.85]

    # An update with the id the surface assigned replaces the seeded feature.
    controller.on_update([polygon(first_id, BIG_SQUARE)])
    assert controller.store.get(first_id).coordinates == [BIG_SQUARE]
    assert controller.store.get(second_id).coordinates == [2.35, 48.85]
    assert len(controller.store) == 3


def test_map_ready_skips_saved_features_that_cannot_be_drawn(controller, surface):
    seeded = controller.on_map_ready([
        {"type": "Feature", "properties": {"source": "selection_utilisateur"},
         "geometry": {"type": "MultiPoint", "coordinates": [[0, 0]]}},
        point(None, 1, 1, source="selection_utilisateur"),
    ])

    assert len(seeded) == 1
    assert len(surface.drain()) == 1


def test_map_ready_skips_saved_feature_with_bad_coordinates(controller, surface):
    broken = point(None, 2.35, 48.85, source="selection_utilisateur")
    broken["geometry"]["coordinates"] = [2.35]

    seeded = controller.on_map_ready([broken, polygon(None, SQUARE, source="selection_utilisateur")])

    (command,) = surface.drain()
    assert command["feature"]["geometry"]["type"] == "Polygon"
    assert [f.id for f in seeded] == [command["feature"]["id"]]
    assert len(controller.store) == 1
