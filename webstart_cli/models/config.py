"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import os
import shutil
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_JAVA_COMMAND = "java"
DEFAULT_JARSIGNER_COMMAND = "jarsigner"


def _resolve_jdk_tool(command: str, default: str) -> str:
    """
    Resolves a JDK tool through JAVA_HOME when the command was left at its default.
    Explicitly configured commands are used as given.
    """
    if command != default:
        return command
    java_home = os.getenv("JAVA_HOME")
    if java_home:
        exe = default + (".exe" if os.name == "nt" else "")
        candidate = Path(java_home) / "bin" / exe
        if candidate.is_file():
            return str(candidate)
    return shutil.which(command) or command


class LauncherConfig(BaseModel):
    """A validated configuration model for the launcher."""

    # Launch Settings
    target_dir: str = "."
    trust: bool = False
    verify: bool = True

    # External Tools
    java_command: str = DEFAULT_JAVA_COMMAND
    jarsigner_command: str = DEFAULT_JARSIGNER_COMMAND

    # Network Settings
    max_attempts: int = 3
    retry_delay: float = 1.5
    connect_timeout: float = 15.0
    read_timeout: float = 90.0

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)
    descriptor_url: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("java_command", "jarsigner_command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        if not v:
            raise ValueError("Tool commands cannot be empty.")
        return v

    @field_validator("target_dir")
    @classmethod
    def validate_target_dir(cls, v: str) -> str:
        """Ensures the target directory is not an existing regular file."""
        if not v:
            return "."
        if Path(v).expanduser().is_file():
            raise ValueError(f"Target directory '{v}' is a file.")
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("Max attempts must be between 1 and 10.")
        return v

    @field_validator("retry_delay", "connect_timeout", "read_timeout")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Delays and timeouts cannot be negative.")
        return v

    @property
    def target_path(self) -> Path:
        return Path(self.target_dir).expanduser().resolve()

    def resolve_java_command(self) -> str:
        return _resolve_jdk_tool(self.java_command, DEFAULT_JAVA_COMMAND)

    def resolve_jarsigner_command(self) -> str:
        return _resolve_jdk_tool(self.jarsigner_command, DEFAULT_JARSIGNER_COMMAND)

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "descriptor_url", "trust"}
        return {key for key in cls.model_fields if key not in internal_fields}
