class StructRefineError(Exception):
    pass


class UnsupportedNodeTypeError(StructRefineError, NotImplementedError):
    pass


class UnsupportedExpressionError(StructRefineError, NotImplementedError):
    pass


class ProverInconsistencyError(StructRefineError):
    """
    The solver produced a result that breaks our assumptions about how it applies tactics. This is a bug, not a
    property of the input.
    """


class InvalidOptionError(StructRefineError, ValueError):
    pass
