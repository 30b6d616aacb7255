"""Exceptions raised by prebake."""


class PrebakeError(Exception):
    """Base class for all prebake errors."""


class EmissionError(PrebakeError):
    """A captured value cannot be written back as a safe source literal."""


class DuplicateSourceError(PrebakeError):
    """A generated source was registered twice under the same hint name."""

    def __init__(self, hint_name: str):
        super().__init__(f"Source '{hint_name}' has already been added to this build")
        self.hint_name = hint_name


class HostSyntaxError(PrebakeError):
    """A host module could not be parsed."""

    def __init__(self, path: str, error: SyntaxError):
        super().__init__(f'{path}:{error.lineno}: {error.msg}')
        self.path = path
        self.error = error
