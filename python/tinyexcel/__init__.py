"""tinyexcel — a minimal spreadsheet calculation engine.

Usage::

    from tinyexcel import Table

    table = Table()
    table.set_cell("A1", "3.5")
    table.set_cell("B1", "=A1*2+1")
    table.set_cell("C1", "=C1")
    report = table.evaluate()
    print(table.get_cell("B1").value)          # 8.0
    print(table.get_cell("C1").error_message)  # Circular reference: C1 -> C1
    print(report.cycles)
"""

from tinyexcel._cell import Cell, CellStatus
from tinyexcel._exceptions import DirtyCellError, InvalidCoordinatesError, TinyExcelError
from tinyexcel._reference import CellReference
from tinyexcel._table import Table
from tinyexcel.calc import CalcError, ErrorKind, EvaluationReport, FormulaParser

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CalcError",
    "Cell",
    "CellReference",
    "CellStatus",
    "DirtyCellError",
    "ErrorKind",
    "EvaluationReport",
    "FormulaParser",
    "InvalidCoordinatesError",
    "Table",
    "TinyExcelError",
]
