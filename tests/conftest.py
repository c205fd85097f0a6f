import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from config import TestingConfig
from models import Property, User, db


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(email, role='tenant', name=None, password=None, google_id=None):
        user = User(
            email=email,
            role=role,
            name=name or email.split('@')[0].title(),
            google_id=google_id,
            password_hash=generate_password_hash(password) if password else None,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def tenant(make_user):
    return make_user('tina@example.com', role='tenant', name='Tina Tenant', password='tenant-pass')


@pytest.fixture
def landlord(make_user):
    return make_user('larry@example.com', role='landlord', name='Larry Landlord', password='landlord-pass')


@pytest.fixture
def listing(landlord):
    prop = Property(landlord_id=landlord.id, address='12 Elm Street', price=1450,
                    bedrooms=2, bathrooms=1)
    db.session.add(prop)
    db.session.commit()
    return prop


@pytest.fixture
def login_as(client):
    def _login_as(user):
        with client.session_transaction() as sess:
            sess['user_id'] = user.id
        return client
    return _login_as
