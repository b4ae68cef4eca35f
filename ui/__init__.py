"""UI layer -- Rich dashboard and output formatters."""

from .dashboard import (
    TransferProgress,
    console,
    err_console,
    print_client_info,
    print_final_results,
    print_header,
    print_latency_details,
    print_server_list,
    print_server_selection,
    print_speed_result,
    sparkline,
)
from .output import (
    create_result_json,
    format_ping_line,
    format_report_line,
    format_server_report,
    format_summary_line,
    format_text_result,
)

__all__ = [
    "TransferProgress",
    "console",
    "create_result_json",
    "err_console",
    "format_ping_line",
    "format_report_line",
    "format_server_report",
    "format_summary_line",
    "format_text_result",
    "print_client_info",
    "print_final_results",
    "print_header",
    "print_latency_details",
    "print_server_list",
    "print_server_selection",
    "print_speed_result",
    "sparkline",
]
