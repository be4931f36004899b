"""
Error taxonomy — every failure a user can see maps to one of these.

Routes let them propagate; the handler registered in create_app() turns them
into a JSON body with the matching status code.
"""


class DashboardError(Exception):
    """Base class for user-facing dashboard errors."""
    status_code = 400
    code = 'dashboard_error'

    def __init__(self, message):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {'error': self.code, 'message': self.message}


class MalformedInput(DashboardError):
    """Upload is too short for the expected layout or cannot be read at all."""
    code = 'malformed_input'


class InvalidUpload(DashboardError):
    """Upload rejected before parsing — wrong extension, too large, bad name."""
    code = 'invalid_upload'


class NoMatchingLeads(DashboardError):
    """File parsed fine but contained no Form leads."""
    status_code = 422
    code = 'no_matching_leads'


class InvalidBenchmark(DashboardError):
    code = 'invalid_benchmark'


class NotFound(DashboardError):
    status_code = 404
    code = 'not_found'


class AlreadyExists(DashboardError):
    status_code = 409
    code = 'already_exists'


class ProtectedResource(DashboardError):
    status_code = 403
    code = 'protected_resource'
