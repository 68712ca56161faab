# tests/test_public_api.py
import scripting

EXPECTED = {
    "__version__",
    "Command", "Failed", "Runnable", "pipe",
    "Executable", "FileIO", "ShellCommand",
    "arun_returning_all_output", "arun_returning_all_output_string",
    "arun_returning_error_output", "arun_returning_error_output_string",
    "arun_returning_output", "arun_returning_standard_output",
    "arun_returning_standard_output_string", "arun_returning_string_output",
    "arun_with_input", "provide_input",
    "redirect_error_to_file", "redirect_input_from_file", "redirect_output_to_file",
    "parse", "resolve_executable", "search",
    "FileMode", "ProcessOutcome", "ProcessState", "Status", "TerminationReason",
    "AlreadyInProgressError", "BadFileModeError", "CommandOSError", "CommandStateError",
    "ConfigurationError", "FileOpenError", "InvalidArgumentError", "NoChildProcessError",
    "OperationCanceledError", "ProcessLaunchError", "ScriptingError", "SignalDeliveryError",
    "StreamIOError", "ValidationError",
    "configure_logging", "get_logger",
}


def test_public_api_matches_dunder_all():
    assert hasattr(scripting, "__all__")
    assert set(scripting.__all__) == EXPECTED


def test_every_export_resolves():
    for name in scripting.__all__:
        assert getattr(scripting, name) is not None
