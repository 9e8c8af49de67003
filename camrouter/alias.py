import subprocess
import logging
from typing import List

from .errors import DeviceOpError

logger = logging.getLogger(__name__)


class AliasManager:
    """Maintains stable alias paths that point at capture device nodes"""

    def remove_alias(self, alias_path: str):
        raise NotImplementedError

    def create_alias(self, target_path: str, alias_path: str):
        raise NotImplementedError


class CommandAliasManager(AliasManager):
    """Aliases device nodes with rm/ln, optionally through sudo"""

    def __init__(self, use_sudo: bool = True, timeout: float = 5.0):
        self.use_sudo = use_sudo
        self.timeout = timeout

    def _command(self, *args: str) -> List[str]:
        return (["sudo", "-n"] if self.use_sudo else []) + list(args)

    def _run(self, command: List[str], alias_path: str):
        logger.info(" ".join(command))
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                universal_newlines=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise DeviceOpError(alias_path, f"command not found: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise DeviceOpError(alias_path, f"timed out after {self.timeout}s") from e

        if result.returncode != 0:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise DeviceOpError(alias_path, detail)

    def remove_alias(self, alias_path: str):
        self._run(self._command("rm", "-f", alias_path), alias_path)

    def create_alias(self, target_path: str, alias_path: str):
        self._run(self._command("ln", "-s", target_path, alias_path), alias_path)
