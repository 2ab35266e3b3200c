class PreconditionError(ValueError):
    """
    Raised when an input violates the contract of a pipeline stage
    (wrong frame size, wrong tensor shape, empty label set, ...).

    Fatal to the current frame only: callers are expected to log it and move on
    to the next frame.
    """
