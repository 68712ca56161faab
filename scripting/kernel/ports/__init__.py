"""Port interfaces implemented by the drivers."""

from scripting.kernel.ports.executable import (
    Executable,
    IOHandle,
    OpenableFile,
    arun_returning_all_output,
    arun_returning_all_output_string,
    arun_returning_error_output,
    arun_returning_error_output_string,
    arun_returning_output,
    arun_returning_standard_output,
    arun_returning_standard_output_string,
    arun_returning_string_output,
    arun_with_input,
    decode_output,
    encode_input,
    provide_input,
    redirect_error_to_file,
    redirect_input_from_file,
    redirect_output_to_file,
)

__all__ = [
    "Executable",
    "IOHandle",
    "OpenableFile",
    "arun_returning_all_output",
    "arun_returning_all_output_string",
    "arun_returning_error_output",
    "arun_returning_error_output_string",
    "arun_returning_output",
    "arun_returning_standard_output",
    "arun_returning_standard_output_string",
    "arun_returning_string_output",
    "arun_with_input",
    "decode_output",
    "encode_input",
    "provide_input",
    "redirect_error_to_file",
    "redirect_input_from_file",
    "redirect_output_to_file",
]
