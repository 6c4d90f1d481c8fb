class NearestNeighborAnalysisError(Exception):
    """
    Base class for failures of a nearest neighbor analysis.
    All of these are raised before any statistic is calculated; no partial results are returned.
    """
    pass


class InvalidInputError(NearestNeighborAnalysisError):
    """
    The dataset or the options cannot be analyzed, e.g. fewer than two features.
    """
    pass


class DegenerateStudyAreaError(NearestNeighborAnalysisError):
    """
    The study area has zero or negative area, so point density is undefined.
    """
    pass


class MultiPartStudyAreaError(NearestNeighborAnalysisError):
    """
    The study area is a multi-polygon. The formula assumes a single polygon.
    """
    pass
