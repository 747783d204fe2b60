from datetime import date
from decimal import Decimal

import pytest

from roomrent import create_app, db
from roomrent.auth import issue_token
from roomrent.models import Customer, Furniture, Room, RoomFurniture, User


@pytest.fixture
def app():
    app = create_app('roomrent.config.TestingConfig')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Application context for calling workflow functions directly."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(username, role):
    user = User(
        username=username,
        password='not-a-real-hash',
        role=role,
        full_name=username.title(),
        email=f'{username}@example.com',
        date_of_birth=date(1990, 1, 1),
    )
    db.session.add(user)
    db.session.flush()
    return user


@pytest.fixture
def seed(app):
    """One customer, one employee, one room at 100/day and one chair."""
    with app.app_context():
        customer_user = make_user('alice', 'customer')
        customer = Customer(user_id=customer_user.id)
        staff_user = make_user('bob', 'employee')
        chair = Furniture(name='Chair', description='Wooden chair')
        room = Room(room_number='101', room_type='study room', rent_price=Decimal('100.00'))
        db.session.add_all([customer, chair, room])
        db.session.flush()
        db.session.add(RoomFurniture(room_id=room.id, furniture_id=chair.id, quantity=2))
        db.session.commit()
        data = {
            'customer_id': customer.id,
            'customer_user_id': customer_user.id,
            'staff_user_id': staff_user.id,
            'room_id': room.id,
            'chair_id': chair.id,
            'customer_token': issue_token(customer_user),
            'staff_token': issue_token(staff_user),
        }
        db.session.remove()
    return data


def bearer(token):
    return {'Authorization': f'Bearer {token}'}
