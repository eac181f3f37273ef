"""Error taxonomy shared by the store, the repository and the API handlers"""

INVALID_REQUEST_DATA = "Invalid request data"


class StoreError(Exception):
    """Raised by store adapters when the backend call itself fails"""


class NoticeboardError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailure(NoticeboardError):
    status_code = 400


class AnnouncementNotFound(NoticeboardError):
    status_code = 404

    def __init__(self, message: str = "Announcement not found"):
        super().__init__(message)


class StoreUnavailable(NoticeboardError):
    status_code = 500


class AuthFailure(NoticeboardError):
    """Carries the challenge or denial response produced by the auth guard"""

    status_code = 401

    def __init__(self, response):
        super().__init__("Authentication required")
        self.response = response
