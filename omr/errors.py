class OMRError(ValueError):
    """Base class for grading engine failures."""


class InvalidImage(OMRError):
    """Raster cannot be graded (undecodable, zero area or unsupported channels)."""


class EmptyExam(OMRError):
    """Exam has no questions, so there is nothing to sample or score."""


class OutOfBounds(OMRError):
    """Sampling rectangle has no pixel inside the binary field."""
