from clarkevans.datatypes import AnalysisResult, Point
from clarkevans.exceptions import (
    NearestNeighborAnalysisError,
    InvalidInputError,
    DegenerateStudyAreaError,
    MultiPartStudyAreaError,
)
from clarkevans.analysis import analyze, nearest_neighbor

__version__ = "0.1.0"
