#!/usr/bin/env python3
"""
Ringbox Exception Hierarchy
Centralized exception handling for module runs and the shell
"""


class RingboxException(Exception):
    """Base exception for all Ringbox errors"""
    def __init__(self, message, code=None, details=None):
        self.message = message
        self.code = code or "UNKNOWN_ERROR"
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        """Convert exception to dict for logging/output"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class ValidationError(RingboxException):
    """Raised when an option answer cannot be coerced to its kind"""
    def __init__(self, message, field=None, value=None):
        details = {}
        if field:
            details["field"] = field
        if value:
            details["value"] = str(value)
        super().__init__(message, "VALIDATION_ERROR", details)


class ConfigurationError(RingboxException):
    """Raised when configuration or a module registration is invalid"""
    def __init__(self, message, config_key=None):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, "CONFIG_ERROR", details)


class UnknownModuleError(RingboxException):
    """Raised when a module name is not in the registry"""
    def __init__(self, module):
        super().__init__(f"Module '{module}' not found", "UNKNOWN_MODULE", {"module": module})


class TransportError(RingboxException):
    """Raised when a protocol collaborator fails (network, protocol, unexpected reply)"""
    def __init__(self, message, target=None, port=None):
        details = {}
        if target:
            details["target"] = target
        if port:
            details["port"] = port
        super().__init__(message, "TRANSPORT_ERROR", details)


class RemoteRejection(RingboxException):
    """Raised by a collaborator when the target explicitly refuses the credentials"""
    def __init__(self, message="Credentials rejected", user=None):
        details = {"user": user} if user is not None else {}
        super().__init__(message, "REMOTE_REJECTION", details)


class BruteForceAborted(RingboxException):
    """Raised when a fatal attempt error stops a brute-force run"""
    def __init__(self, cause, pair=None, partial=None):
        self.cause = cause
        self.pair = pair
        self.partial = partial
        details = {"cause": type(cause).__name__}
        if pair is not None:
            details["user"] = pair[0]
        if partial is not None:
            details["found"] = len(partial.valid)
        super().__init__(f"Brute-force aborted: {cause}", "BRUTEFORCE_ABORTED", details)


class FileOperationError(RingboxException):
    """Raised when file operations fail"""
    def __init__(self, message, filepath=None, operation=None):
        details = {}
        if filepath:
            details["filepath"] = filepath
        if operation:
            details["operation"] = operation
        super().__init__(message, "FILE_ERROR", details)


class UserCancelledError(RingboxException):
    """Raised when user cancels an operation"""
    def __init__(self, message="Operation cancelled by user"):
        super().__init__(message, "USER_CANCELLED", {})
