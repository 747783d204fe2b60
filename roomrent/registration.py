import logging

import bcrypt

from roomrent.database import atomic
from roomrent.errors import ConflictError, ValidationError
from roomrent.models import Admin, Customer, Employee, User
from roomrent.utils import blank, clean_text, parse_date

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    'username', 'full_name', 'email', 'date_of_birth', 'phone', 'address', 'subject', 'password',
)

# bcrypt only hashes the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

ROLE_PROFILES = {
    'customer': Customer,
    'employee': Employee,
    'admin': Admin,
}


def hash_password(password, rounds=8):
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds)).decode('utf-8')


def check_password(password, hashed):
    return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))


def valid_password(password):
    return isinstance(password, str) and 0 < len(password.encode('utf-8')) <= MAX_PASSWORD_BYTES


def register_user(form, subject_roles, bcrypt_rounds=8):
    """Create a user and its role profile row in one transaction.

    ``subject_roles`` maps the registration form's subject selector to a
    user role. Returns the new user id.
    """
    missing = [field for field in REQUIRED_FIELDS if blank(form.get(field))]
    if missing:
        logger.info('Registration rejected, missing fields: %s', missing)
        raise ValidationError('All fields are required')

    role = subject_roles.get(clean_text(form['subject'], 'subject'))
    if role not in ROLE_PROFILES:
        raise ValidationError('Invalid subject selection')

    if not valid_password(form['password']):
        raise ValidationError(f'Password must be text of at most {MAX_PASSWORD_BYTES} bytes.')

    username = clean_text(form['username'], 'username')
    email = clean_text(form['email'], 'email')
    date_of_birth = parse_date(form['date_of_birth'], 'date of birth')

    with atomic('Email or username already exists') as session:
        existing = User.query.filter((User.username == username) | (User.email == email)).first()
        if existing:
            raise ConflictError('Email or username already exists')

        user = User(
            username=username,
            password=hash_password(form['password'], bcrypt_rounds),
            role=role,
            full_name=clean_text(form['full_name'], 'full name'),
            email=email,
            phone_number=clean_text(form['phone'], 'phone'),
            address=clean_text(form['address'], 'address'),
            date_of_birth=date_of_birth,
        )
        session.add(user)
        session.flush()
        session.add(ROLE_PROFILES[role](user_id=user.id))
        user_id = user.id

    logger.info('Registered %s %s (user %s)', role, username, user_id)
    return user_id


def authenticate(username, password):
    if blank(username) or blank(password):
        raise ValidationError('Please enter your username and password.')
    if not valid_password(password):
        raise ValidationError('Invalid username or password.')
    user = User.query.filter_by(username=clean_text(username, 'username')).first()
    if user is None or not check_password(password, user.password):
        raise ValidationError('Invalid username or password.')
    return user
