"""Process utilities."""
import os
import subprocess
from dataclasses import dataclass
from typing import List

from dory.core.logger import logger


@dataclass
class CommandResult:
    """Captured outcome of a finished command."""

    stdout: str
    stderr: str
    exit_code: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class ProcessUtils:
    """Utility class for running shell commands."""

    @staticmethod
    def is_admin() -> bool:
        """
        Check if the current process runs as root.

        Returns:
            True if root, False otherwise
        """
        try:
            return os.geteuid() == 0
        except AttributeError as e:
            logger.debug(f"Error checking admin status: {e}")
            return False

    @staticmethod
    def run_command(cmd: List[str], use_sudo: bool = False) -> CommandResult:
        """
        Run a command synchronously and capture its output.

        Args:
            cmd: Command and arguments as list
            use_sudo: Prepend sudo unless already running as root

        Returns:
            CommandResult. A command that cannot be started reports
            exit code 127 with the OS error as stderr.
        """
        if not cmd or not isinstance(cmd, list):
            logger.error("Invalid command: must be a non-empty list")
            return CommandResult("", "Invalid command", -1)

        if use_sudo and not ProcessUtils.is_admin():
            cmd = ["sudo"] + cmd

        logger.debug(f"Running command: {' '.join(cmd)}")
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as e:
            logger.error(f"Failed to run command {' '.join(cmd)}: {e}")
            return CommandResult("", str(e), 127)

        if proc.returncode != 0:
            logger.debug(f"Command exited with {proc.returncode}: {proc.stderr.strip()}")
        return CommandResult(proc.stdout, proc.stderr, proc.returncode)
