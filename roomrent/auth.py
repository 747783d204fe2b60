from functools import wraps

from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, verify_jwt_in_request

from roomrent.errors import ForbiddenError
from roomrent.models import Customer


def issue_token(user):
    return create_access_token(identity=str(user.id), additional_claims={'role': user.role})


def current_user_id():
    return int(get_jwt_identity())


def current_role():
    return get_jwt().get('role')


def customer_id_for(user_id):
    customer = Customer.query.filter_by(user_id=user_id).first()
    return customer.id if customer else None


def require_customer(user_id):
    customer_id = customer_id_for(user_id)
    if customer_id is None:
        raise ForbiddenError('User is not a customer.')
    return customer_id


def role_required(*roles):
    """Allow the request only when the token's role is one of ``roles``."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if current_role() not in roles:
                raise ForbiddenError('You do not have permission to access this page.')
            return fn(*args, **kwargs)
        return wrapper
    return decorator
