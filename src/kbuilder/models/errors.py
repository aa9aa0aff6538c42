"""Exception hierarchy for kbuilder.

    KBuilderError
    ├── ExtractionError
    │   ├── NotABuildableType
    │   ├── UnresolvableBound
    │   └── DuplicateIdentifier
    ├── DuplicateConfiguration
    │   └── BuilderNameCollision
    ├── InvalidConfiguration
    └── MissingRequiredValue    (raised by generated builders, not the generator)

Generation errors are caught per target by the generators and recorded in
``GenerationResult`` values, so one bad target never aborts a run.
"""

from typing import Any, Optional


class KBuilderError(Exception):
    """Base exception for all kbuilder errors."""

    def __init__(self, message: str, target: Optional[str] = None):
        self.target = target
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class ExtractionError(KBuilderError):
    """The target declaration cannot be turned into a builder model."""


class NotABuildableType(ExtractionError):
    """The target is not a data class with exactly one usable primary constructor."""

    def __init__(self, target: str, reason: str):
        self.reason = reason
        super().__init__(f"Cannot generate a builder for {target}: {reason}", target)


class UnresolvableBound(ExtractionError):
    """A type parameter bound cannot be resolved to a concrete or parameter-relative type."""

    def __init__(self, target: str, parameter: str, bound: Any, reason: str = ""):
        self.parameter = parameter
        self.bound = bound
        message = f"Unresolvable bound '{bound}' for type parameter {parameter} of {target}"
        if reason:
            message += f": {reason}"
        super().__init__(message, target)


class DuplicateIdentifier(ExtractionError):
    """Two members of the generated builder would share one identifier."""

    def __init__(self, target: str, identifier: str, what: str):
        self.identifier = identifier
        self.what = what
        super().__init__(f"Duplicate {what} '{identifier}' in builder for {target}", target)


class DuplicateConfiguration(KBuilderError):
    """Configuration sources disagree irreconcilably for one target."""

    def __init__(self, target: str, option: str, first: Any, second: Any):
        self.option = option
        self.values = (first, second)
        super().__init__(
            f"Conflicting values for '{option}' on {target}: {first!r} vs {second!r}", target
        )


class BuilderNameCollision(DuplicateConfiguration):
    """Two targets of one run resolve to the same builder class."""

    def __init__(self, target: str, builder: str, other_target: str):
        self.builder = builder
        self.other_target = other_target
        self.option = "className"
        self.values = (builder, builder)
        KBuilderError.__init__(
            self, f"Builder {builder} for {target} collides with the builder for {other_target}", target
        )


class InvalidConfiguration(KBuilderError):
    """A configuration source gives an option a value of the wrong type."""

    def __init__(self, target: str, option: str, value: Any, expected: str):
        self.option = option
        self.value = value
        super().__init__(f"Invalid value for '{option}' on {target}: {value!r} (expected {expected})", target)


class MissingRequiredValue(KBuilderError):
    """``build()`` was called before a mandatory property was set."""

    def __init__(self, property_name: str, target: Optional[str] = None):
        self.property_name = property_name
        super().__init__(f"Property {property_name} is mandatory and must be set in builder", target)
