"""Value objects package."""
from .recognition import ClusteringResult, GuestCluster, PhotoMatch, SearchResult

__all__ = ["ClusteringResult", "GuestCluster", "PhotoMatch", "SearchResult"]
