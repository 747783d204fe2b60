"""Booking and payment workflow.

A contract is created ``pending``. Paying by card activates it at once.
Paying cash leaves both the payment and the contract pending until staff
confirm the cash was received. Active contracts past their end date are
swept to ``completed`` whenever the inventory is read.
"""
import logging
from datetime import datetime
from decimal import Decimal

from roomrent import db
from roomrent.database import atomic, reading
from roomrent.errors import ConflictError, NotFoundError, StateError, ValidationError
from roomrent.models import Customer, Payment, PAYMENT_METHODS, RentalContract, Room, User
from roomrent.utils import iso, money, parse_date, parse_id

logger = logging.getLogger(__name__)

OPEN_STATUSES = ('pending', 'active')


def calculate_rent(rent_price, start_date, end_date):
    """Both boundary days are billed."""
    rental_days = abs((end_date - start_date).days) + 1
    return Decimal(rent_price) * rental_days


def count_conflicts(room_id, start_date, end_date):
    return (
        RentalContract.query
        .filter(
            RentalContract.room_id == room_id,
            RentalContract.status.in_(OPEN_STATUSES),
            RentalContract.start_date <= end_date,
            RentalContract.end_date >= start_date,
        )
        .count()
    )


def create_booking(customer_id, room_id, start_date, end_date):
    room_id = parse_id(room_id, 'room')
    start = parse_date(start_date, 'start date')
    end = parse_date(end_date, 'end date')
    if end < start:
        raise ValidationError('End date must be on or after the start date.')

    with atomic() as session:
        # Lock the room row so concurrent bookings for it run one at a time
        room = Room.query.filter_by(id=room_id).with_for_update().first()
        if room is None:
            raise NotFoundError('The selected room is not available or does not exist.')
        if session.get(Customer, customer_id) is None:
            raise NotFoundError('Customer profile not found.')

        if count_conflicts(room.id, start, end) > 0:
            raise ConflictError(
                'Sorry, this room is already booked for the selected dates. '
                'Please choose a different period.'
            )

        contract = RentalContract(
            customer_id=customer_id,
            room_id=room.id,
            start_date=start,
            end_date=end,
            total_rent=calculate_rent(room.rent_price, start, end),
            status='pending',
        )
        session.add(contract)
        session.flush()
        contract_id = contract.id

    logger.info('Contract %s created for room %s (%s to %s)', contract_id, room_id, start, end)
    return contract_id


def pay(contract_id, payment_method, customer_id=None):
    """Record the payment for a pending contract.

    The payment insert and the contract status change commit together.
    Returns a dict with the payment id, both resulting statuses and the
    message to show the customer.
    """
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError('Invalid payment submission.')
    contract_id = parse_id(contract_id, 'contract')

    with atomic() as session:
        query = RentalContract.query.filter_by(id=contract_id, status='pending')
        if customer_id is not None:
            query = query.filter_by(customer_id=customer_id)
        contract = query.with_for_update().first()
        if contract is None:
            raise StateError('This contract is no longer valid for payment.')
        if contract.payments:
            raise StateError('A payment has already been recorded for this contract.')

        if payment_method == 'card':
            # No card gateway: card payments are treated as settled immediately.
            payment_status, contract_status = 'completed', 'active'
            message = 'Payment successful! Your room booking is now active.'
        else:
            payment_status, contract_status = 'pending', 'pending'
            message = (
                'Your booking is pending. Please complete the payment in cash with our staff '
                f'to activate your rental. Your Contract ID is {contract.id}.'
            )

        payment = Payment(
            rental_contract_id=contract.id,
            amount=contract.total_rent,
            payment_method=payment_method,
            status=payment_status,
        )
        session.add(payment)
        contract.status = contract_status
        session.flush()
        payment_id = payment.id

    logger.info('Payment %s (%s) recorded for contract %s', payment_id, payment_method, contract_id)
    return {
        'payment_id': payment_id,
        'payment_status': payment_status,
        'contract_status': contract_status,
        'message': message,
    }


def confirm_cash_payment(payment_id):
    """Mark a pending cash payment completed and activate its contract.

    Returns False without changing anything when the payment is not pending.
    """
    payment_id = parse_id(payment_id, 'payment')
    with atomic() as session:
        payment = session.get(Payment, payment_id)
        if payment is None:
            raise NotFoundError('Payment not found.')

        updated = (
            Payment.query
            .filter_by(id=payment_id, status='pending', payment_method='cash')
            .update({'status': 'completed'}, synchronize_session=False)
        )
        if updated:
            RentalContract.query.filter_by(id=payment.rental_contract_id).update(
                {'status': 'active', 'updated_at': datetime.utcnow()},
                synchronize_session=False,
            )

    if updated:
        logger.info('Cash payment %s confirmed', payment_id)
    return bool(updated)


def cancel_pending_booking(customer_id, contract_id):
    """Drop an abandoned checkout. Returns how many contracts were removed."""
    contract_id = parse_id(contract_id, 'contract')
    with atomic() as session:
        contract = RentalContract.query.filter_by(
            id=contract_id, customer_id=customer_id, status='pending'
        ).first()
        if contract is None:
            return 0
        session.delete(contract)

    logger.info('Pending contract %s cancelled by customer %s', contract_id, customer_id)
    return 1


def sweep_expired(today):
    """Complete active contracts that ended before ``today``; returns their ids."""
    with atomic():
        expired_ids = [
            row.id for row in
            db.session.query(RentalContract.id)
            .filter(RentalContract.status == 'active', RentalContract.end_date < today)
            .all()
        ]
        if expired_ids:
            RentalContract.query.filter(RentalContract.id.in_(expired_ids)).update(
                {'status': 'completed', 'updated_at': datetime.utcnow()},
                synchronize_session=False,
            )

    if expired_ids:
        logger.info('Swept %d expired contract(s): %s', len(expired_ids), expired_ids)
    return expired_ids


def display_status(contract_status, payment_method, start_date, end_date, today):
    if contract_status == 'pending' and payment_method == 'cash':
        return {'text': 'Awaiting Payment', 'class': 'warning'}
    if contract_status == 'active':
        if start_date <= today <= end_date:
            return {'text': 'In Progress', 'class': 'success'}
        if today < start_date:
            return {'text': 'Pending', 'class': 'info'}
    elif contract_status == 'completed':
        return {'text': 'Completed', 'class': 'secondary'}
    return {'text': 'Unknown', 'class': 'secondary'}


### READ MODELS ###

def contract_to_dict(contract):
    return {
        'id': contract.id,
        'customer_id': contract.customer_id,
        'room_id': contract.room_id,
        'start_date': iso(contract.start_date),
        'end_date': iso(contract.end_date),
        'total_rent': money(contract.total_rent),
        'status': contract.status,
    }


def checkout_summary(contract_id, customer_id):
    contract_id = parse_id(contract_id, 'contract')
    with reading():
        contract = RentalContract.query.filter_by(
            id=contract_id, customer_id=customer_id, status='pending'
        ).first()
        if contract is None or contract.payments:
            raise StateError()
        summary = contract_to_dict(contract)
        summary['room_number'] = contract.room.room_number
        summary['description'] = contract.room.description
    return summary


def pending_cash_payments():
    with reading() as session:
        rows = (
            session.query(
                Payment.id.label('payment_id'),
                Payment.payment_date,
                Payment.amount,
                RentalContract.id.label('contract_id'),
                Room.room_number,
                User.full_name,
            )
            .join(RentalContract, Payment.rental_contract_id == RentalContract.id)
            .join(Room, RentalContract.room_id == Room.id)
            .join(Customer, RentalContract.customer_id == Customer.id)
            .join(User, Customer.user_id == User.id)
            .filter(Payment.status == 'pending', Payment.payment_method == 'cash')
            .order_by(Payment.payment_date.desc())
            .all()
        )
    return [{
        'payment_id': row.payment_id,
        'payment_date': row.payment_date.isoformat(),
        'amount': money(row.amount),
        'contract_id': row.contract_id,
        'room_number': row.room_number,
        'full_name': row.full_name,
    } for row in rows]


def in_progress_rentals(today):
    with reading() as session:
        rows = (
            session.query(
                RentalContract.id.label('contract_id'),
                RentalContract.start_date,
                RentalContract.end_date,
                RentalContract.total_rent,
                Room.room_number,
                User.full_name,
            )
            .join(Room, RentalContract.room_id == Room.id)
            .join(Customer, RentalContract.customer_id == Customer.id)
            .join(User, Customer.user_id == User.id)
            .filter(
                RentalContract.status == 'active',
                RentalContract.start_date <= today,
                RentalContract.end_date >= today,
            )
            .order_by(RentalContract.end_date.asc())
            .all()
        )
    return [{
        'contract_id': row.contract_id,
        'start_date': iso(row.start_date),
        'end_date': iso(row.end_date),
        'total_rent': money(row.total_rent),
        'room_number': row.room_number,
        'full_name': row.full_name,
    } for row in rows]


def customer_rentals(customer_id, today):
    """A customer's open rentals, each tagged with the status shown to them."""
    with reading() as session:
        rows = (
            session.query(
                RentalContract.id,
                RentalContract.start_date,
                RentalContract.end_date,
                RentalContract.total_rent,
                RentalContract.status.label('contract_status'),
                Room.room_number,
                Room.description,
                Payment.payment_method,
                Payment.status.label('payment_status'),
            )
            .join(Room, RentalContract.room_id == Room.id)
            .outerjoin(Payment, Payment.rental_contract_id == RentalContract.id)
            .filter(RentalContract.customer_id == customer_id, RentalContract.status != 'completed')
            .order_by(RentalContract.start_date.asc())
            .all()
        )
    return [{
        'id': row.id,
        'start_date': iso(row.start_date),
        'end_date': iso(row.end_date),
        'total_rent': money(row.total_rent),
        'contract_status': row.contract_status,
        'room_number': row.room_number,
        'description': row.description,
        'payment_method': row.payment_method,
        'payment_status': row.payment_status,
        'display_status': display_status(
            row.contract_status, row.payment_method, row.start_date, row.end_date, today
        ),
    } for row in rows]
