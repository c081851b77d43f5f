"""Error taxonomy and connection-failure classification for Oracle sessions."""
import re
from enum import Enum
from typing import List, Optional


class ErrorKind(str, Enum):
    UNREACHABLE_HOST = "unreachable_host"
    LISTENER_DOWN = "listener_down"
    SERVICE_NOT_FOUND = "service_not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNKNOWN = "unknown"


class QueryToolError(Exception):
    """Base error rendered as a ``{success: false, message}`` response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {"success": False, "message": self.message}


class InputValidationError(QueryToolError):
    status_code = 400


class NotConnectedError(QueryToolError):
    status_code = 400

    def __init__(self, message: str = "No active database connection"):
        super().__init__(message)


class QueryExecutionError(QueryToolError):
    pass


class MetadataError(QueryToolError):
    pass


class ConnectionFailure(QueryToolError):
    """Raised when every connect string candidate was rejected."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        suggestions: Optional[List[str]] = None,
        original_error: str = "",
    ):
        super().__init__(message)
        self.kind = kind
        self.suggestions = suggestions or []
        self.original_error = original_error

    def to_payload(self) -> dict:
        return {
            "success": False,
            "message": self.message,
            "suggestions": list(self.suggestions),
            "originalError": self.original_error,
        }


class ConnectionErrorClassifier:
    """Maps driver errors to an ErrorKind with a message and remediation hints."""

    # Structured codes reported by python-oracledb (thin mode raises DPY-*
    # equivalents for several ORA-* network errors)
    ERROR_CODES = {
        "ORA-01017": ErrorKind.INVALID_CREDENTIALS,
        "ORA-12541": ErrorKind.LISTENER_DOWN,
        "ORA-12514": ErrorKind.SERVICE_NOT_FOUND,
        "ORA-12505": ErrorKind.SERVICE_NOT_FOUND,
        "DPY-6001": ErrorKind.SERVICE_NOT_FOUND,
        "DPY-6003": ErrorKind.SERVICE_NOT_FOUND,
        "ORA-12170": ErrorKind.UNREACHABLE_HOST,
        "ORA-12543": ErrorKind.UNREACHABLE_HOST,
        "ORA-12545": ErrorKind.UNREACHABLE_HOST,
        "DPY-6005": ErrorKind.UNREACHABLE_HOST,
    }

    REFUSED_PATTERN = r"connection refused|connect call failed|errno 111|winerror 10061"

    # Fallback when the error carries no structured code
    ERROR_PATTERNS = {
        r"ORA-01017|invalid username/password|invalid credential": ErrorKind.INVALID_CREDENTIALS,
        r"ORA-12541|no listener|" + REFUSED_PATTERN: ErrorKind.LISTENER_DOWN,
        r"ORA-12514|ORA-12505|DPY-600[13]|not registered with the listener|does not currently know of": ErrorKind.SERVICE_NOT_FOUND,
        r"NJS-530|DPY-6005|ORA-1217\d|ORA-1254[35]|cannot connect to database|timed out": ErrorKind.UNREACHABLE_HOST,
    }

    MESSAGES = {
        ErrorKind.UNREACHABLE_HOST: "Could not reach the Oracle server",
        ErrorKind.LISTENER_DOWN: "TNS: no listener",
        ErrorKind.SERVICE_NOT_FOUND: "TNS: listener does not recognize the service name",
        ErrorKind.INVALID_CREDENTIALS: "Invalid username or password",
    }

    SUGGESTIONS = {
        ErrorKind.UNREACHABLE_HOST: [
            "Check that the hostname/IP is correct",
            "Confirm the port is correct (default: 1521)",
            "Test connectivity: ping {hostname}",
            "Make sure no firewall is blocking the port",
            "Confirm the Oracle Database is running",
        ],
        ErrorKind.LISTENER_DOWN: [
            "The Oracle Listener is not running",
            "Check that the Oracle Listener service is active",
            "Confirm the listener port (default: 1521)",
        ],
        ErrorKind.SERVICE_NOT_FOUND: [
            "Check that the Service Name is correct",
            "Try using the SID instead of the Service Name",
            "Look up the service in tnsnames.ora or listener.ora",
        ],
        ErrorKind.INVALID_CREDENTIALS: [
            "Check the username",
            "Confirm the password",
            "Make sure the account is not locked",
        ],
    }

    @classmethod
    def error_code(cls, error: BaseException) -> Optional[str]:
        """Return the structured driver code (e.g. ``ORA-01017``) if there is one."""
        for arg in getattr(error, "args", ()):
            full_code = getattr(arg, "full_code", None)
            if full_code:
                return full_code
        return None

    @classmethod
    def connection_refused(cls, error: BaseException) -> bool:
        """True when the host answered but nothing listens on the port."""
        seen = set()
        current = error
        while current is not None and id(current) not in seen:
            if isinstance(current, ConnectionRefusedError):
                return True
            seen.add(id(current))
            current = current.__cause__ or current.__context__
        return bool(re.search(cls.REFUSED_PATTERN, str(error), re.IGNORECASE))

    @classmethod
    def classify(cls, error: BaseException) -> ErrorKind:
        code = cls.error_code(error)
        if code in cls.ERROR_CODES:
            kind = cls.ERROR_CODES[code]
            # Thin mode reports a closed port as DPY-6005 too
            if kind is ErrorKind.UNREACHABLE_HOST and cls.connection_refused(error):
                return ErrorKind.LISTENER_DOWN
            return kind

        text = str(error)
        for pattern, kind in cls.ERROR_PATTERNS.items():
            if re.search(pattern, text, re.IGNORECASE):
                return kind
        return ErrorKind.UNKNOWN

    @classmethod
    def build_failure(cls, error: BaseException, hostname: str = "") -> ConnectionFailure:
        """
        Turn the last driver error of a connect attempt into a ConnectionFailure.

        Unclassified errors keep the raw driver message and carry no suggestions.
        """
        original = str(error).strip()
        kind = cls.classify(error)
        if kind is ErrorKind.UNKNOWN:
            return ConnectionFailure(original, kind, [], original)

        suggestions = [s.format(hostname=hostname) for s in cls.SUGGESTIONS[kind]]
        return ConnectionFailure(cls.MESSAGES[kind], kind, suggestions, original)


def is_credentials_error(error: BaseException) -> bool:
    """True when retrying with a different connect string cannot help."""
    return ConnectionErrorClassifier.classify(error) is ErrorKind.INVALID_CREDENTIALS
