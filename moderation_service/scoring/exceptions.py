class ScoringError(Exception):
    """Raised when a learned scorer cannot produce a score."""
