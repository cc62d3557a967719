"""
Core domain analysis functionality.
"""

from .hex_grid import GridConfig, HexGrid, generate_hex_grid
from .regions import extract_contours, dominant_identity
from .dirichlet_vertex import DomainVertex, NO_NEIGHBOUR, vertex_test, detect_vertices
from .edge_walker import EdgeWalker, WalkResult
from .shape_analysis import (
    Domain, DomainAnalysis, DomainAnalysisOptions, DomainFailure, FailureReason,
    ShapeAnalysis, analyse_domains, find_domains,
)
from .exceptions import (
    DomainAnalysisError, StructuralInconsistency, UnmatchedVertex, WalkBudgetExceeded,
)

__all__ = ['GridConfig', 'HexGrid', 'generate_hex_grid',
           'extract_contours', 'dominant_identity',
           'DomainVertex', 'NO_NEIGHBOUR', 'vertex_test', 'detect_vertices',
           'EdgeWalker', 'WalkResult',
           'Domain', 'DomainAnalysis', 'DomainAnalysisOptions', 'DomainFailure',
           'FailureReason', 'ShapeAnalysis', 'analyse_domains', 'find_domains',
           'DomainAnalysisError', 'StructuralInconsistency', 'UnmatchedVertex',
           'WalkBudgetExceeded']
