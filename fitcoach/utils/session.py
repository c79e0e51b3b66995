import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fitcoach.errors import Conflict, UpstreamUnavailable
from fitcoach.extensions import db


def commit_session(action):
    """Commit the request's unit of work, mapping store failures to service errors."""
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logging.error(f"Constraint violation while {action}: {e.orig}")
        raise Conflict(f"Conflicting change while {action}")
    except SQLAlchemyError as e:
        db.session.rollback()
        logging.error(f"Error while {action}: {e}")
        raise UpstreamUnavailable(f"Could not save changes while {action}")
