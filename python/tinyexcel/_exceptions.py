"""
Exception classes for tinyexcel.

Bad cell text never raises: parse and evaluation problems are recorded on the
cell as error values. These exceptions signal mistakes by the calling code.
"""


class TinyExcelError(Exception):
    """Base class for all tinyexcel exceptions."""
    pass


class InvalidCoordinatesError(TinyExcelError, ValueError):
    """Raised when coordinate text does not name a cell.

    Examples:
        - Empty text or text with characters other than letters and digits
        - Missing column letters or row digits ("12", "AB")
        - Row 0, leading zeros in the row, or a position past "XFD1048576"
    """

    def __init__(self, coordinates: str) -> None:
        self.coordinates = coordinates
        super().__init__(f"Invalid cell coordinates: {coordinates!r}")


class DirtyCellError(TinyExcelError, RuntimeError):
    """Raised when reading the value of a cell that has not been evaluated.

    Evaluate the cell through its table first (``Table.evaluate_cell``), or
    use ``Table.value`` which evaluates on demand.
    """
    pass
