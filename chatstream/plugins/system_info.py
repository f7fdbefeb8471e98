"""System info tool plugin"""
from __future__ import annotations

import os
import platform
import shutil
import sys
from datetime import datetime
from typing import Any, Dict

TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": "get_system_info",
        "description": "Get system information including OS, CPU count, disk usage and Python environment",
        "parameters": {
            "type": "object",
            "properties": {},
            "required": []
        }
    }
}


def get_system_info() -> Dict[str, Any]:
    """Report host facts; returned as a response-like mapping so disk failures surface as errors."""
    info: Dict[str, Any] = {
        "os": platform.system(),
        "os_version": platform.release(),
        "architecture": platform.machine(),
        "python_version": platform.python_version(),
        "python_executable": sys.executable,
        "cpu_count": os.cpu_count(),
        "current_directory": os.getcwd(),
        "timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    }
    try:
        disk = shutil.disk_usage(os.path.abspath(os.sep))
    except OSError as e:
        return {"status": 500, "statusText": f"Unable to read disk usage: {e}"}
    info["disk_total_gb"] = round(disk.total / (1024 ** 3), 1)
    info["disk_free_gb"] = round(disk.free / (1024 ** 3), 1)
    return {"status": 200, "data": info}


TOOL_IMPLEMENTATION = get_system_info
TOOL_AUTHOR = "core"
TOOL_VERSION = "1.0.0"
