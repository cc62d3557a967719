"""Errors raised while tracing Dirichlet domains."""


class DomainAnalysisError(Exception):
    """Base class for domain analysis errors."""


class StructuralInconsistency(DomainAnalysisError):
    """The grid or identity field contradicts what an edge walk requires.

    Not retriable: the domain being assembled is abandoned.
    """


class WalkBudgetExceeded(StructuralInconsistency):
    """An edge walk took more steps than allowed."""

    def __init__(self, steps: int, edgedoms):
        self.steps = steps
        self.edgedoms = edgedoms
        super().__init__(
            f"Edge walk between domains {edgedoms[0]} and {edgedoms[1]} "
            f"exceeded {steps} steps"
        )


class UnmatchedVertex(DomainAnalysisError):
    """No candidate vertex matches the end of a walk."""

    def __init__(self, coord, f, neighb):
        self.coord = coord
        self.f = f
        self.neighb = neighb
        super().__init__(
            f"No unclosed vertex at ({coord[0]:.6g}, {coord[1]:.6g}) "
            f"with f={f}, neighb={neighb}"
        )
