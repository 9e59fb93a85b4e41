# contact_manager/core/errors.py

from typing import Dict, List, Optional


class ContactManagerError(Exception):
    """Base de los errores de dominio; main.py los traduce a respuestas HTTP."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(ContactManagerError):
    status_code = 422

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors


class NotFound(ContactManagerError):
    status_code = 404


class Conflict(ContactManagerError):
    status_code = 409


class BackendUnavailable(ContactManagerError):
    """Fallo transitorio del store o de la red. No se reintenta."""

    status_code = 503

    def __init__(self, message: str = "The service is temporarily unavailable, please retry", cause: Optional[str] = None):
        super().__init__(message)
        self.cause = cause


class ConfigurationError(ContactManagerError):
    status_code = 500


class CsvImportError(ContactManagerError):
    status_code = 400
