# roomrent/models.py
from datetime import datetime

from roomrent import db

USER_ROLES = ('customer', 'employee', 'admin')
CONTRACT_STATUSES = ('pending', 'active', 'completed')
PAYMENT_METHODS = ('cash', 'card')
PAYMENT_STATUSES = ('pending', 'completed')


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class User(TimestampMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    password = db.Column(db.String(100), nullable=False)  # bcrypt hash
    role = db.Column(db.Enum(*USER_ROLES, name='user_role'), nullable=False)
    full_name = db.Column(db.String(150), nullable=False)
    email = db.Column(db.String(150), unique=True, nullable=False)
    phone_number = db.Column(db.String(30))
    address = db.Column(db.String(255))
    date_of_birth = db.Column(db.Date)

    customer = db.relationship('Customer', back_populates='user', uselist=False)
    employee = db.relationship('Employee', back_populates='user', uselist=False)
    admin = db.relationship('Admin', back_populates='user', uselist=False)


class Customer(TimestampMixin, db.Model):
    __tablename__ = 'customers'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)

    user = db.relationship('User', back_populates='customer')
    contracts = db.relationship('RentalContract', back_populates='customer', lazy=True)


class Employee(TimestampMixin, db.Model):
    __tablename__ = 'employees'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)

    user = db.relationship('User', back_populates='employee')


class Admin(TimestampMixin, db.Model):
    __tablename__ = 'admins'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)

    user = db.relationship('User', back_populates='admin')


class Room(TimestampMixin, db.Model):
    __tablename__ = 'rooms'

    id = db.Column(db.Integer, primary_key=True)
    room_number = db.Column(db.String(20), unique=True, nullable=False)
    room_type = db.Column(db.String(50), nullable=False)
    size_sqm = db.Column(db.Float)
    description = db.Column(db.Text, default='')
    rent_price = db.Column(db.Numeric(10, 2), nullable=False)
    is_available = db.Column(db.Boolean, nullable=False, default=True)

    furniture_items = db.relationship('RoomFurniture', back_populates='room', cascade='all, delete-orphan')
    contracts = db.relationship('RentalContract', back_populates='room', cascade='all, delete-orphan')


class Furniture(TimestampMixin, db.Model):
    __tablename__ = 'furniture'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text, default='')

    room_items = db.relationship('RoomFurniture', back_populates='furniture')


class RoomFurniture(db.Model):
    __tablename__ = 'room_furniture'

    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id'), primary_key=True)
    furniture_id = db.Column(db.Integer, db.ForeignKey('furniture.id'), primary_key=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_room_furniture_quantity'),
    )

    room = db.relationship('Room', back_populates='furniture_items')
    furniture = db.relationship('Furniture', back_populates='room_items')


class RentalContract(TimestampMixin, db.Model):
    __tablename__ = 'rental_contracts'

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False)
    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id'), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    total_rent = db.Column(db.Numeric(12, 2), nullable=False)
    status = db.Column(db.Enum(*CONTRACT_STATUSES, name='contract_status'), nullable=False, default='pending')

    __table_args__ = (
        db.CheckConstraint('end_date >= start_date', name='ck_contract_dates'),
    )

    customer = db.relationship('Customer', back_populates='contracts')
    room = db.relationship('Room', back_populates='contracts')
    payments = db.relationship('Payment', back_populates='contract', cascade='all, delete-orphan')


class Payment(db.Model):
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    rental_contract_id = db.Column(db.Integer, db.ForeignKey('rental_contracts.id'), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    payment_method = db.Column(db.Enum(*PAYMENT_METHODS, name='payment_method'), nullable=False)
    status = db.Column(db.Enum(*PAYMENT_STATUSES, name='payment_status'), nullable=False, default='pending')
    payment_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    contract = db.relationship('RentalContract', back_populates='payments')
