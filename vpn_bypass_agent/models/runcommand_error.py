from typing import Optional


class RunCommandError(Exception):
    """Raised when a command run through run_command_async fails or times out"""

    def __init__(self, error_msg: str, return_code: Optional[int], cmd: Optional[list] = None):
        super().__init__(error_msg)
        self.error_msg = error_msg
        self.return_code = return_code
        self.cmd = cmd

    def __str__(self):
        cmd = " ".join(self.cmd) if self.cmd else "<command>"
        return f"{cmd} failed (code {self.return_code}): {self.error_msg.strip()}"
