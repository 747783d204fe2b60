import logging

from flask import current_app
from sqlalchemy import func

from roomrent import db
from roomrent.booking import sweep_expired
from roomrent.database import atomic, reading
from roomrent.errors import ConflictError, NotFoundError, ValidationError
from roomrent.models import Furniture, RentalContract, Room, RoomFurniture
from roomrent.utils import blank, clean_text, money, parse_id, parse_price

logger = logging.getLogger(__name__)


def room_to_dict(room):
    return {
        'id': room.id,
        'room_number': room.room_number,
        'room_type': room.room_type,
        'size_sqm': room.size_sqm,
        'description': room.description,
        'rent_price': money(room.rent_price),
        'is_available': room.is_available,
    }


def furniture_to_dict(furniture):
    return {
        'id': furniture.id,
        'name': furniture.name,
        'description': furniture.description,
    }


### ROOMS ###

def refresh_availability(today):
    """A room is unavailable while an active contract covers ``today``."""
    with atomic():
        occupied = db.select(RentalContract.room_id).where(
            RentalContract.status == 'active',
            RentalContract.start_date <= today,
            RentalContract.end_date >= today,
        )
        Room.query.update({'is_available': True}, synchronize_session=False)
        Room.query.filter(Room.id.in_(occupied)).update(
            {'is_available': False}, synchronize_session=False
        )


def list_rooms(today):
    sweep_expired(today)
    refresh_availability(today)
    with reading() as session:
        rows = (
            session.query(Room, func.count(RoomFurniture.furniture_id).label('furniture_count'))
            .outerjoin(RoomFurniture, Room.id == RoomFurniture.room_id)
            .group_by(Room.id)
            .order_by(Room.id.desc())
            .all()
        )
    rooms = []
    for room, furniture_count in rows:
        data = room_to_dict(room)
        data['furniture_count'] = furniture_count
        rooms.append(data)
    return rooms


def rent_listing():
    """Rooms by number, each with a readable ``"Name (qty), ..."`` furniture list."""
    with reading():
        rooms = Room.query.order_by(Room.room_number).all()
        listing = []
        for room in rooms:
            items = sorted(room.furniture_items, key=lambda item: item.furniture.name)
            listing.append({
                'id': room.id,
                'room_number': room.room_number,
                'room_type': room.room_type,
                'description': room.description,
                'rent_price': money(room.rent_price),
                'furniture_list': ', '.join(f'{item.furniture.name} ({item.quantity})' for item in items) or None,
            })
    return listing


def get_room(room_id):
    room = db.session.get(Room, parse_id(room_id, 'room'))
    if room is None:
        raise NotFoundError('Room not found')
    return room


def room_with_furniture(room_id):
    with reading():
        room = get_room(room_id)
        data = room_to_dict(room)
        items = sorted(room.furniture_items, key=lambda item: item.furniture.name)
        data['furniture'] = [
            {
                'id': item.furniture.id,
                'name': item.furniture.name,
                'description': item.furniture.description,
                'quantity': item.quantity,
            }
            for item in items
        ]
    return data


def _clean_room_fields(fields):
    room_number = clean_text(fields.get('room_number'), 'room number')
    if not room_number:
        raise ValidationError('Please enter a room number.')

    room_type = fields.get('room_type')
    if room_type not in current_app.config['ROOM_TYPES']:
        raise ValidationError('Invalid room type.')

    rent_price = parse_price(fields.get('rent_price'))

    size_sqm = fields.get('size_sqm')
    if blank(size_sqm):
        size_sqm = None
    else:
        try:
            size_sqm = float(size_sqm)
        except (TypeError, ValueError):
            raise ValidationError('The room size must be a number.')

    return {
        'room_number': room_number,
        'room_type': room_type,
        'size_sqm': size_sqm,
        'description': clean_text(fields.get('description'), 'description'),
        'rent_price': rent_price,
    }


def _clean_assignments(furniture):
    """Merge ``[{furniture_id, quantity}]`` into ``{furniture_id: quantity}``."""
    assignments = {}
    for entry in furniture or []:
        if not isinstance(entry, dict):
            raise ValidationError('Invalid furniture assignment.')
        furniture_id = parse_id(entry.get('furniture_id'), 'furniture')
        quantity = parse_id(entry.get('quantity', 1), 'quantity')
        if quantity <= 0:
            raise ValidationError('Furniture quantity must be greater than 0.')
        if db.session.get(Furniture, furniture_id) is None:
            raise ValidationError(f'Furniture {furniture_id} does not exist.')
        assignments[furniture_id] = assignments.get(furniture_id, 0) + quantity
    return assignments


def _room_number_taken(room_number, exclude_id=None):
    query = Room.query.filter(Room.room_number == room_number)
    if exclude_id is not None:
        query = query.filter(Room.id != exclude_id)
    return query.first() is not None


def create_room(fields, furniture=None):
    values = _clean_room_fields(fields)
    with atomic('This room number already exists.') as session:
        if _room_number_taken(values['room_number']):
            raise ConflictError('This room number already exists.')
        assignments = _clean_assignments(furniture)

        room = Room(**values)
        room.furniture_items = [
            RoomFurniture(furniture_id=furniture_id, quantity=quantity)
            for furniture_id, quantity in assignments.items()
        ]
        session.add(room)
        session.flush()
        room_id = room.id

    logger.info('Room %s created (%s)', room_id, values['room_number'])
    return room_id


def update_room(room_id, fields, furniture=None):
    """Update a room and replace its whole furniture assignment set."""
    values = _clean_room_fields(fields)
    with atomic('This room number already exists.') as session:
        room = get_room(room_id)
        if _room_number_taken(values['room_number'], exclude_id=room.id):
            raise ConflictError('This room number already exists.')
        assignments = _clean_assignments(furniture)

        for key, value in values.items():
            setattr(room, key, value)
        room.furniture_items.clear()
        session.flush()
        for furniture_id, quantity in assignments.items():
            room.furniture_items.append(RoomFurniture(furniture_id=furniture_id, quantity=quantity))

    logger.info('Room %s updated', room_id)


def delete_room(room_id):
    with atomic() as session:
        room = get_room(room_id)
        active = RentalContract.query.filter_by(room_id=room.id, status='active').count()
        if active > 0:
            raise ConflictError('This room cannot be deleted because it has an active rental contract.')
        # Cascades to furniture assignments, past contracts and their payments
        session.delete(room)

    logger.info('Room %s deleted', room_id)


### FURNITURE ###

def list_furniture():
    with reading():
        return [furniture_to_dict(item) for item in Furniture.query.order_by(Furniture.id.desc()).all()]


def get_furniture(furniture_id):
    furniture = db.session.get(Furniture, parse_id(furniture_id, 'furniture'))
    if furniture is None:
        raise NotFoundError('Furniture not found')
    return furniture


def _furniture_name_taken(name, exclude_id=None):
    query = Furniture.query.filter(Furniture.name == name)
    if exclude_id is not None:
        query = query.filter(Furniture.id != exclude_id)
    return query.first() is not None


def _clean_name(name):
    name = clean_text(name, 'furniture name')
    if not name:
        raise ValidationError('Please enter a furniture name.')
    return name


def create_furniture(name, description=''):
    name = _clean_name(name)
    with atomic('This furniture name already exists.') as session:
        if _furniture_name_taken(name):
            raise ConflictError('This furniture name already exists.')
        furniture = Furniture(name=name, description=clean_text(description, 'description'))
        session.add(furniture)
        session.flush()
        furniture_id = furniture.id

    logger.info('Furniture %s created (%s)', furniture_id, name)
    return furniture_id


def update_furniture(furniture_id, name, description=''):
    name = _clean_name(name)
    with atomic('This furniture name already exists.'):
        furniture = get_furniture(furniture_id)
        if _furniture_name_taken(name, exclude_id=furniture.id):
            raise ConflictError('This furniture name already exists.')
        furniture.name = name
        furniture.description = clean_text(description, 'description')

    logger.info('Furniture %s updated', furniture_id)


def delete_furniture(furniture_id):
    with atomic() as session:
        furniture = get_furniture(furniture_id)
        in_use = RoomFurniture.query.filter_by(furniture_id=furniture.id).count()
        if in_use > 0:
            raise ConflictError('This furniture cannot be deleted because it is used in one or more rooms.')
        session.delete(furniture)

    logger.info('Furniture %s deleted', furniture_id)
