class CommandResult:
    """Returned by run_command_async"""

    def __init__(self, stdout: str, stderr: str, return_code: int):
        self.stdout = stdout
        self.stderr = stderr
        self.return_code = return_code
        self.success = self.return_code == 0

    def __repr__(self):
        return f"CommandResult(return_code={self.return_code}, stdout={self.stdout!r}, stderr={self.stderr!r})"
