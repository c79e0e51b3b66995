"""Error taxonomy shared by services and routes.

Every failure carries a machine-readable ``kind`` and a human-readable
message; ``to_dict`` is the JSON body the error handler returns.
"""


class ServiceError(Exception):
    kind = "internal_error"
    status_code = 500

    def __init__(self, message, payload=None, status_code=None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        body = dict(self.payload)
        body["error"] = self.kind
        body["msg"] = self.message
        return body


class Unauthenticated(ServiceError):
    kind = "unauthenticated"
    status_code = 401


class Forbidden(ServiceError):
    kind = "forbidden"
    status_code = 403


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 404


class Conflict(ServiceError):
    kind = "conflict"
    status_code = 409


class InvalidArgument(ServiceError):
    kind = "invalid_argument"
    status_code = 400


class InvalidProgramConfiguration(ServiceError):
    kind = "invalid_program_configuration"
    status_code = 422


class ProgramInactive(ServiceError):
    """The client has no active program day to work on.

    A completed program is a conflict; anything else (no assignment, empty
    schedule, pointer outside the schedule) is reported as not found.
    """

    kind = "program_inactive"
    status_code = 404

    def __init__(self, message, status, payload=None):
        payload = dict(payload or {})
        payload["status"] = status
        super().__init__(message, payload, status_code=409 if status == "completed" else 404)
        self.status = status


class UpstreamUnavailable(ServiceError):
    kind = "upstream_unavailable"
    status_code = 503
