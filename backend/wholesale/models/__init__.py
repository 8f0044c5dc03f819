from .members import Member, Admin, MEMBER_STATUSES
from .auth import SessionToken
from .invites import InviteCode
from .catalog import Product, RestrictedState
from .orders import Order, OrderItem, OrderSequence
from .notifications import Notification

__all__ = [
    'Member', 'Admin', 'MEMBER_STATUSES',
    'SessionToken',
    'InviteCode',
    'Product', 'RestrictedState',
    'Order', 'OrderItem', 'OrderSequence',
    'Notification',
]
