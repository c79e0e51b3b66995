"""Read and write capabilities passed into the services.

A ``ReadCapability`` is bound to the authenticated caller. A
``WriteCapability`` can only be obtained through ``grant_write``, which runs
the ownership check; services that write on a client's behalf take one and
never look at the request themselves.
"""
from collections import namedtuple

from fitcoach.errors import Forbidden

ELEVATED_ROLES = ("admin",)

ReadCapability = namedtuple("ReadCapability", "user_id role")


class WriteCapability:
    __slots__ = ("user_id", "role", "owner_id")

    def __init__(self, user_id, role, owner_id, _token=None):
        if _token is not _GRANT:
            raise TypeError("WriteCapability is issued by grant_write()")
        self.user_id = user_id
        self.role = role
        self.owner_id = owner_id

    def require_owner(self, owner_id):
        if int(owner_id) != int(self.owner_id):
            raise Forbidden("Write capability does not cover this resource")

    def __repr__(self):
        return f"<WriteCapability user={self.user_id} owner={self.owner_id}>"


_GRANT = object()


def is_elevated(cap):
    return cap.role in ELEVATED_ROLES


def grant_write(cap, owner_id, also_allowed=()):
    """Return a write capability for ``owner_id`` or raise Forbidden.

    ``also_allowed`` lists extra user ids (e.g. the program's coach) that may
    act on the owner's behalf.
    """
    if owner_id is None:
        raise Forbidden("Resource has no owner")
    owner_id = int(owner_id)
    if cap.user_id != owner_id and not is_elevated(cap) and cap.user_id not in also_allowed:
        raise Forbidden("You do not have access to this resource")
    return WriteCapability(cap.user_id, cap.role, owner_id, _token=_GRANT)
