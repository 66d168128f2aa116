"""
errors.py

Failure types shared by the timeline core and its collaborators.
"""


class BootFailure(RuntimeError):
    """Schedule missing, unreadable or empty; no timeline can be built."""


class VideoLoadFailure(RuntimeError):
    """The player could not open a city's recording; the old one stays up."""

    def __init__(self, ref: str, reason: str = "") -> None:
        self.ref = ref
        self.reason = reason
        super().__init__(f"cannot load {ref!r}: {reason}" if reason else f"cannot load {ref!r}")
