"""Error types raised while resolving, inlining and sampling schemas."""


class SchemaError(Exception):
    """Base class for failures tied to a location inside a schema tree."""

    def __init__(self, message: str, path: str = "#"):
        super().__init__(f"{message} at {path}")
        self.path = path


class UnresolvedReference(SchemaError):
    """A `$ref` has an unsupported shape or names an unknown component."""

    def __init__(self, ref: str, path: str = "#", reason: str = "Unresolved $ref"):
        super().__init__(f"{reason}: {ref}", path)
        self.ref = ref


class MissingStructure(SchemaError):
    """An object schema without properties or an array schema without items."""


class NoExampleAvailable(SchemaError):
    """No example can be produced for a schema node."""


class CyclicSchema(SchemaError):
    """A component refers back to itself, directly or through others."""

    def __init__(self, chain: list[str], path: str = "#"):
        super().__init__(f"Circular $ref detected: {' -> '.join(chain)}", path)
        self.chain = chain


class MalformedOperation(SchemaError):
    """An operation field has the wrong shape, e.g. a response that is not an object."""


class DocumentError(ValueError):
    """The OpenAPI document could not be loaded or lacks a required section."""
