from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

import sympy

from formula_coefficients import INTEGER, Coefficient
from formula_errors import NotFoundError, ParserError
from formula_ast import formula_to_atomdict
from preprocess_formula import preprocess_formula

logger = logging.getLogger(__name__)

# "+" separates formulas unless it is the sign inside a <..e+> annotation.
_FORMULA_SEPARATOR = re.compile(r"\+(?![^<]*>)")


@dataclass
class ChemicalEquation:
    """How many formulas sit on each side of an equation."""
    left: int = 0
    right: int = 0
    sum: int = 0


# |           | formula_1 | formula_2 | ... | formula_n |
# | element_1 | ...       | ...       | ... | ...       |
# | element_2 | ...       | ...       | ... | ...       |
# Rows follow discovery order; right hand side formulas are stored negated.
class TableDesc:
    def __init__(self, formula_sum: int, coefficient: Coefficient = INTEGER):
        if formula_sum < 0:
            raise ValueError(f"formula_sum must be non-negative, got {formula_sum}")
        self.elements_table: Dict[str, int] = {}
        self.list: List[list] = []
        self.formula_sum = formula_sum
        self.coefficient = coefficient

    def store_in_table(self, formula: str, location: int, neg: bool = False) -> bool:
        """Add the element counts of ``formula`` into column ``location``.

        The formula is parsed and every new cell value computed before the
        table is touched, so a failing formula leaves the table unchanged.
        """
        if not 0 <= location < self.formula_sum:
            raise IndexError(f"Column {location} outside table of {self.formula_sum} formulas")
        c = self.coefficient
        atoms = formula_to_atomdict(formula, c)

        updates = []
        try:
            for element, count in atoms.items():
                if neg:
                    count = c.neg(count)
                row = self.elements_table.get(element)
                current = self.list[row][location] if row is not None else c.zero()
                updates.append((element, c.add(current, count)))
        except OverflowError as err:
            raise ParserError(f"Coefficient arithmetic failed for '{formula}': {err}") from err

        for element, value in updates:
            if element not in self.elements_table:
                self.elements_table[element] = len(self.list)
                self.update_list_vec()
            row = self.elements_table.get(element)
            if row is None:
                raise NotFoundError(element)
            self.list[row][location] = value
        logger.debug("Stored %r in column %d (neg=%s)", formula, location, neg)
        return True

    def get_list(self) -> List[list]:
        return [list(row) for row in self.list]

    def elements(self) -> List[str]:
        return list(self.elements_table)

    def to_matrix(self) -> sympy.Matrix:
        flat = [value for row in self.list for value in row]
        return sympy.Matrix(len(self.list), self.formula_sum, flat)

    def update_list_vec(self):
        self.list.append(self.generate_vec())

    def generate_vec(self) -> list:
        return [self.coefficient.zero() for _ in range(self.formula_sum)]


def split_equation(text: str) -> Tuple[ChemicalEquation, List[Tuple[str, int, bool]]]:
    """Split ``left=right`` into formulas with their column and sign.

    Returns the :class:`ChemicalEquation` counts and a list of
    ``(formula, column, negate)`` triples, left side first.
    """
    if not isinstance(text, str):
        raise ParserError(f"Equation must be a string, got {type(text).__name__}")
    text = preprocess_formula(text)
    sides = text.split("=")
    if len(sides) != 2:
        raise ParserError(f"Equation must contain exactly one '=': '{text}'")

    left, right = (_FORMULA_SEPARATOR.split(side) for side in sides)
    for formula in left + right:
        if not formula:
            raise ParserError(f"Empty formula in equation '{text}'")

    equation = ChemicalEquation()
    equation.left = len(left)
    equation.right = len(right)
    equation.sum = equation.left + equation.right

    layout = [(formula, i, False) for i, formula in enumerate(left)]
    layout += [(formula, equation.left + i, True) for i, formula in enumerate(right)]
    return equation, layout


def build_table(text: str, coefficient: Coefficient = INTEGER) -> Tuple[ChemicalEquation, TableDesc]:
    equation, layout = split_equation(text)
    table = TableDesc(equation.sum, coefficient)
    for formula, location, neg in layout:
        table.store_in_table(formula, location, neg)
    logger.debug("Built %dx%d table for %r", len(table.list), table.formula_sum, text)
    return equation, table
