"""Domain errors raised by the insights services and mapped to HTTP in main.py."""


class InsightsError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AccessDeniedError(InsightsError):
    status_code = 403

    def __init__(self, message: str = "You do not have access to this baby"):
        super().__init__(message)


class BabyNotFoundError(InsightsError):
    status_code = 404

    def __init__(self, message: str = "Baby not found"):
        super().__init__(message)


class InvalidWindowError(InsightsError):
    status_code = 422
