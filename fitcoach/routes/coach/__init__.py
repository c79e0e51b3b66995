from flask import Blueprint

from fitcoach.errors import Forbidden
from fitcoach.services.program_schedule import get_program
from fitcoach.services.templates import get_template
from fitcoach.utils.capabilities import is_elevated

coach_bp = Blueprint('coach', __name__)

COACH_ROLES = ("coach", "admin")


def get_owned_program(cap, program_id):
    """Load a program the calling coach may edit."""
    program = get_program(program_id)
    if program.coach_id != cap.user_id and not is_elevated(cap):
        raise Forbidden("You do not own this program")
    return program


def get_owned_template(cap, template_id):
    template = get_template(template_id)
    if template.coach_id != cap.user_id and not is_elevated(cap):
        raise Forbidden("You do not own this template")
    return template


from . import programs, schedule, progression_rules, templates  # noqa: E402,F401
