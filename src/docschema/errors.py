"""Exceptions raised at the docschema pipeline boundary."""


class DocschemaError(ValueError):
    """Base class for docschema errors."""


class InvalidConfiguration(DocschemaError):
    """A setting is out of range or a config file is malformed."""


class InvalidSample(DocschemaError):
    """The realized document stream disagrees with the declared count."""

    def __init__(self, declared: int, realized: int):
        self.declared = declared
        self.realized = realized
        super().__init__(
            f"Declared document count {declared} but the sample yielded {realized}"
        )
