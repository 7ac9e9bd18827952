"""Lookup of external native tools on the host."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from .config import ToolsConfig
from .exceptions import ToolUnavailableError

INSTALL_HINTS = {
    "flutter": "Install the Flutter SDK and add its bin/ directory to PATH",
    "xcodebuild": "Install Xcode and run 'xcode-select --install'",
    "pod": "Install CocoaPods with 'sudo gem install cocoapods'",
    "keytool": "Install a JDK and set JAVA_HOME or add keytool to PATH",
}


def find_tool(
    tool_name: str,
    tools: ToolsConfig,
    error_type: type[ToolUnavailableError] = ToolUnavailableError,
) -> Path:
    """Find a tool in the configured location, PATH or JAVA_HOME.

    Args:
        tool_name: Executable name
        tools: Tools configuration with optional explicit paths
        error_type: Exception raised when the tool cannot be found

    Returns:
        Path to the executable

    Raises:
        ToolUnavailableError: If the tool is not resolvable on this host
    """
    configured = tools.configured(tool_name)
    if configured is not None and configured.exists():
        return configured

    tool_path = shutil.which(tool_name)
    if tool_path:
        return Path(tool_path)

    java_home = os.environ.get("JAVA_HOME")
    if tool_name == "keytool" and java_home:
        candidate = Path(java_home) / "bin" / tool_name
        if candidate.exists():
            return candidate

    raise error_type(
        message=f"Tool not found: {tool_name}",
        tool_name=tool_name,
        expected_path=str(configured) if configured else "PATH or configured location",
        install_hint=INSTALL_HINTS.get(tool_name, f"Install {tool_name} and add to PATH"),
    )
