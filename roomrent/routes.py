from datetime import date

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from roomrent import booking, inventory
from roomrent.auth import (
    current_user_id, customer_id_for, issue_token, require_customer, role_required,
)
from roomrent.errors import ValidationError
from roomrent.registration import authenticate, register_user

api = Blueprint('api', __name__)

STAFF = ('admin', 'employee')


def payload():
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationError('Invalid request body.')
    return data


def ok(message='', data=None, status=200):
    body = {'success': True, 'message': message}
    if data is not None:
        body['data'] = data
    return jsonify(body), status


### HOME & ACCOUNTS ###

@api.route('/', methods=['GET'])
def home():
    return ok(data=inventory.rent_listing())


@api.route('/register', methods=['POST'])
def register():
    user_id = register_user(
        payload(),
        current_app.config['SUBJECT_ROLES'],
        current_app.config['BCRYPT_ROUNDS'],
    )
    return ok('Registration successful', {'user_id': user_id}, 201)


@api.route('/login', methods=['POST'])
def login():
    data = payload()
    user = authenticate(data.get('username'), data.get('password'))
    return ok('Logged in', {'access_token': issue_token(user), 'role': user.role})


### RENTING ###

@api.route('/renting', methods=['GET'])
@jwt_required()
def renting_index():
    return ok(data=inventory.rent_listing())


@api.route('/renting/new', methods=['GET'])
@jwt_required()
def renting_new():
    room_id = request.args.get('room_id')
    if not room_id:
        raise ValidationError('No room selected.')
    return ok(data=inventory.room_with_furniture(room_id))


@api.route('/renting/create', methods=['POST'])
@jwt_required()
def renting_create():
    data = payload()
    customer_id = require_customer(current_user_id())
    contract_id = booking.create_booking(
        customer_id, data.get('room_id'), data.get('start_date'), data.get('end_date')
    )
    return ok('Booking created. Please complete the checkout.', {'contract_id': contract_id}, 201)


@api.route('/renting/checkout/<int:contract_id>', methods=['GET'])
@jwt_required()
def renting_checkout(contract_id):
    customer_id = require_customer(current_user_id())
    return ok(data=booking.checkout_summary(contract_id, customer_id))


@api.route('/renting/pay', methods=['POST'])
@jwt_required()
def renting_pay():
    data = payload()
    if not data.get('contract_id') or not data.get('payment_method'):
        raise ValidationError('Invalid payment submission.')
    customer_id = require_customer(current_user_id())
    result = booking.pay(data['contract_id'], data['payment_method'], customer_id)
    return ok(result.pop('message'), result)


@api.route('/renting/pending', methods=['GET'])
@role_required(*STAFF)
def renting_pending():
    return ok(data=booking.pending_cash_payments())


@api.route('/renting/in-progress', methods=['GET'])
@role_required(*STAFF)
def renting_in_progress():
    return ok(data=booking.in_progress_rentals(date.today()))


@api.route('/renting/my-rentals', methods=['GET'])
@jwt_required()
def renting_my_rentals():
    customer_id = customer_id_for(current_user_id())
    if customer_id is None:
        # Not a customer, so no rentals
        return ok(data=[])
    return ok(data=booking.customer_rentals(customer_id, date.today()))


@api.route('/renting/confirm-payment/<int:payment_id>', methods=['POST'])
@role_required(*STAFF)
def renting_confirm_payment(payment_id):
    confirmed = booking.confirm_cash_payment(payment_id)
    if confirmed:
        return ok('Payment confirmed and contract activated.', {'confirmed': True})
    return ok('Payment was already confirmed.', {'confirmed': False})


@api.route('/renting/cancel-pending', methods=['POST'])
@jwt_required()
def renting_cancel_pending():
    contract_id = payload().get('contract_id')
    if not contract_id:
        raise ValidationError('Contract ID is required.')
    customer_id = require_customer(current_user_id())
    removed = booking.cancel_pending_booking(customer_id, contract_id)
    return ok('Pending contract cancellation processed.', {'removed': removed})


### ROOMS ###

@api.route('/rooms/list', methods=['GET'])
def rooms_list():
    return ok(data=inventory.list_rooms(date.today()))


@api.route('/rooms/get/<int:room_id>', methods=['GET'])
@api.route('/rooms/view/<int:room_id>', methods=['GET'])
def rooms_get(room_id):
    return ok(data=inventory.room_with_furniture(room_id))


@api.route('/rooms/add', methods=['POST'])
@role_required(*STAFF)
def rooms_add():
    data = payload()
    room_id = inventory.create_room(data, data.get('furniture'))
    return ok('Room added successfully', {'id': room_id}, 201)


@api.route('/rooms/edit/<int:room_id>', methods=['GET'])
@role_required(*STAFF)
def rooms_edit_form(room_id):
    return ok(data=inventory.room_with_furniture(room_id))


@api.route('/rooms/edit/<int:room_id>', methods=['POST'])
@role_required(*STAFF)
def rooms_edit(room_id):
    data = payload()
    inventory.update_room(room_id, data, data.get('furniture'))
    return ok('Room updated successfully', {'id': room_id})


@api.route('/rooms/delete/<int:room_id>', methods=['POST'])
@role_required(*STAFF)
def rooms_delete(room_id):
    inventory.delete_room(room_id)
    return ok('Room deleted successfully')


### FURNITURE ###

@api.route('/furniture/list', methods=['GET'])
@role_required(*STAFF)
def furniture_list():
    return ok(data=inventory.list_furniture())


@api.route('/furniture/get/<int:furniture_id>', methods=['GET'])
def furniture_get(furniture_id):
    return ok(data=inventory.furniture_to_dict(inventory.get_furniture(furniture_id)))


@api.route('/furniture/edit/<int:furniture_id>', methods=['GET'])
@role_required(*STAFF)
def furniture_edit_form(furniture_id):
    return ok(data=inventory.furniture_to_dict(inventory.get_furniture(furniture_id)))


@api.route('/furniture/add', methods=['POST'])
@role_required(*STAFF)
def furniture_add():
    data = payload()
    furniture_id = inventory.create_furniture(data.get('name'), data.get('description'))
    return ok('Furniture added successfully', {'id': furniture_id}, 201)


@api.route('/furniture/edit/<int:furniture_id>', methods=['POST'])
@role_required(*STAFF)
def furniture_edit(furniture_id):
    data = payload()
    inventory.update_furniture(furniture_id, data.get('name'), data.get('description'))
    return ok('Furniture updated successfully', {'id': furniture_id})


@api.route('/furniture/delete/<int:furniture_id>', methods=['POST'])
@role_required(*STAFF)
def furniture_delete(furniture_id):
    inventory.delete_furniture(furniture_id)
    return ok('Furniture deleted successfully')
