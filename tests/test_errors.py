"""Tests for error taxonomy and connection failure classification."""
import oracledb
import pytest
from oraquery.errors import (
    ConnectionErrorClassifier,
    ConnectionFailure,
    ErrorKind,
    InputValidationError,
    MetadataError,
    NotConnectedError,
    QueryExecutionError,
    is_credentials_error,
)


class DriverErrorInfo:
    """Stands in for the error object python-oracledb puts in ``args[0]``."""

    def __init__(self, full_code, message):
        self.full_code = full_code
        self.message = message

    def __str__(self):
        return self.message


def driver_error(full_code, message="driver error"):
    return oracledb.DatabaseError(DriverErrorInfo(full_code, message))


class TestStructuredCodes:
    """Tests for classification from structured driver codes."""

    def test_invalid_credentials(self):
        error = driver_error("ORA-01017", "ORA-01017: invalid credential or not authorized; logon denied")
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.INVALID_CREDENTIALS

    def test_no_listener(self):
        assert ConnectionErrorClassifier.classify(driver_error("ORA-12541")) is ErrorKind.LISTENER_DOWN

    def test_service_not_registered(self):
        assert ConnectionErrorClassifier.classify(driver_error("DPY-6001")) is ErrorKind.SERVICE_NOT_FOUND
        assert ConnectionErrorClassifier.classify(driver_error("ORA-12514")) is ErrorKind.SERVICE_NOT_FOUND

    def test_sid_not_registered(self):
        assert ConnectionErrorClassifier.classify(driver_error("DPY-6003")) is ErrorKind.SERVICE_NOT_FOUND

    def test_cannot_connect(self):
        assert ConnectionErrorClassifier.classify(driver_error("DPY-6005")) is ErrorKind.UNREACHABLE_HOST

    def test_refused_port_is_listener_down(self):
        """Test that a closed port reported as DPY-6005 points at the listener."""
        error = driver_error(
            "DPY-6005",
            "DPY-6005: cannot connect to database (CONNECTION_ID=abc).\n"
            "[Errno 111] Connect call failed ('127.0.0.1', 1)",
        )
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.LISTENER_DOWN

    def test_refused_cause_is_listener_down(self):
        error = driver_error("DPY-6005", "DPY-6005: cannot connect to database")
        error.__cause__ = ConnectionRefusedError(111, "Connection refused")
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.LISTENER_DOWN

    def test_timeout_stays_unreachable(self):
        error = driver_error("DPY-6005", "DPY-6005: cannot connect to database. timed out")
        error.__cause__ = TimeoutError("timed out")
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.UNREACHABLE_HOST

    def test_name_resolution_stays_unreachable(self):
        error = driver_error(
            "DPY-6005", "DPY-6005: cannot connect to database. [Errno -2] Name or service not known"
        )
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.UNREACHABLE_HOST

    def test_refused_listener_suggestions(self):
        error = driver_error("DPY-6005", "DPY-6005: cannot connect to database. Connection refused")
        failure = ConnectionErrorClassifier.build_failure(error, "db.example.com")

        assert failure.message == "TNS: no listener"
        assert "Check that the Oracle Listener service is active" in failure.suggestions

    def test_code_wins_over_message(self):
        # Message mentions a listener but the code says credentials
        error = driver_error("ORA-01017", "no listener mentioned here")
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.INVALID_CREDENTIALS

    def test_error_code_extracted(self):
        assert ConnectionErrorClassifier.error_code(driver_error("ORA-12541")) == "ORA-12541"

    def test_error_code_missing(self):
        assert ConnectionErrorClassifier.error_code(Exception("plain")) is None


class TestMessageFallback:
    """Tests for classification from message text when no code is available."""

    def test_invalid_username_password(self):
        error = oracledb.DatabaseError("ORA-01017: invalid username/password; logon denied")
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.INVALID_CREDENTIALS

    def test_no_listener_text(self):
        error = oracledb.DatabaseError("ORA-12541: TNS:no listener")
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.LISTENER_DOWN

    def test_service_text(self):
        error = oracledb.DatabaseError(
            "ORA-12514: TNS:listener does not currently know of service requested in connect descriptor"
        )
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.SERVICE_NOT_FOUND

    def test_njs_connect_failure(self):
        error = oracledb.DatabaseError("NJS-530: The host and port are not reachable")
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.UNREACHABLE_HOST

    def test_connection_refused_text(self):
        error = oracledb.OperationalError("cannot connect to database. Connection refused")
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.LISTENER_DOWN

    def test_unknown(self):
        error = oracledb.DatabaseError("ORA-00942: table or view does not exist")
        assert ConnectionErrorClassifier.classify(error) is ErrorKind.UNKNOWN

    def test_case_insensitive(self):
        error = Exception("INVALID USERNAME/PASSWORD")
        assert is_credentials_error(error) is True


class TestBuildFailure:
    """Tests for user-facing failure messages and suggestions."""

    def test_unreachable_host_suggestions(self):
        failure = ConnectionErrorClassifier.build_failure(driver_error("DPY-6005"), "db.example.com")

        assert failure.kind is ErrorKind.UNREACHABLE_HOST
        assert failure.message == "Could not reach the Oracle server"
        assert "Test connectivity: ping db.example.com" in failure.suggestions
        assert any("firewall" in s for s in failure.suggestions)

    def test_listener_suggestions(self):
        failure = ConnectionErrorClassifier.build_failure(driver_error("ORA-12541"))

        assert failure.message == "TNS: no listener"
        assert any("Listener" in s for s in failure.suggestions)

    def test_service_suggestions(self):
        failure = ConnectionErrorClassifier.build_failure(driver_error("ORA-12514"))

        assert any("SID" in s for s in failure.suggestions)
        assert any("Service Name" in s for s in failure.suggestions)

    def test_credentials_suggestions(self):
        failure = ConnectionErrorClassifier.build_failure(driver_error("ORA-01017"))

        assert failure.message == "Invalid username or password"
        assert failure.suggestions == [
            "Check the username",
            "Confirm the password",
            "Make sure the account is not locked",
        ]

    def test_suggestion_lists_are_distinct(self):
        lists = [tuple(s) for s in ConnectionErrorClassifier.SUGGESTIONS.values()]
        assert len(set(lists)) == len(lists)

    def test_unknown_passes_raw_message(self):
        error = oracledb.DatabaseError("ORA-28000: the account is locked")
        failure = ConnectionErrorClassifier.build_failure(error)

        assert failure.kind is ErrorKind.UNKNOWN
        assert failure.message == "ORA-28000: the account is locked"
        assert failure.suggestions == []
        assert failure.original_error == "ORA-28000: the account is locked"

    def test_original_error_kept(self):
        failure = ConnectionErrorClassifier.build_failure(driver_error("ORA-12541", "ORA-12541: TNS:no listener"))
        assert failure.original_error == "ORA-12541: TNS:no listener"


class TestPayloads:
    """Tests for the JSON payloads rendered at the HTTP boundary."""

    def test_connection_failure_payload(self):
        failure = ConnectionFailure("Invalid username or password", ErrorKind.INVALID_CREDENTIALS,
                                    ["Check the username"], "ORA-01017")
        assert failure.to_payload() == {
            "success": False,
            "message": "Invalid username or password",
            "suggestions": ["Check the username"],
            "originalError": "ORA-01017",
        }
        assert failure.status_code == 500

    @pytest.mark.parametrize("error_class,status", [
        (InputValidationError, 400),
        (QueryExecutionError, 500),
        (MetadataError, 500),
    ])
    def test_status_codes(self, error_class, status):
        error = error_class("boom")
        assert error.status_code == status
        assert error.to_payload() == {"success": False, "message": "boom"}

    def test_not_connected_default_message(self):
        error = NotConnectedError()
        assert error.status_code == 400
        assert "connection" in error.message.lower()
