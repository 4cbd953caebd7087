import pytest

from carte.app import create_app
from carte.app.container import register_services
from carte.extensions import db
from carte.services.address_search import AddressSearchService
from tests.factories import FakeGeocoder, MemoryFields


@pytest.fixture
def geocoder():
    return FakeGeocoder({
        "8 bd du port": [("8 Boulevard du Port, Amiens", (2.290084, 49.897443))],
        "paris": [("Paris, Paris", (2.3522, 48.8566)), ("Rue de Paris, Lille", (3.0686, 50.6365))],
    })


@pytest.fixture
def memory_fields():
    return MemoryFields()


@pytest.fixture
def app(geocoder):
    app = create_app("testing")
    register_services(app, search_service=AddressSearchService(geocoder, cache_size=8))
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()
