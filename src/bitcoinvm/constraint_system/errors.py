"""Errors raised while building and checking a constraint system."""


class SynthesisError(ValueError):
    """The witness handed to a chip is inconsistent with the statement being proven."""


class ConstraintSystemError(ValueError):
    """The circuit does not fit the constraint system, or its assignment does not satisfy it."""
