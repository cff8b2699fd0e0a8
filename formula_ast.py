from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Tuple

from lark import Lark, Token, Tree
from lark.exceptions import LarkError

from formula_coefficients import INTEGER, Coefficient
from formula_errors import InternalError, ParserError
from preprocess_formula import preprocess_formula

logger = logging.getLogger(__name__)

CHARGE_KEY = "e"


class ASTNode:
    def __repr__(self):
        return self.__str__()

class GroupNode(ASTNode):
    def __str__(self):
        return "Group"

class MoleculeNode(ASTNode):
    def __init__(self, prefix, charge, charged=False):
        self.prefix = prefix
        self.charge = charge
        # True when the text carried a <..e..> suffix, even a zero one
        self.charged = charged
    def __str__(self):
        return f"Molecule(prefix={self.prefix}, charge={self.charge})"

class ParenthesisWrapperNode(ASTNode):
    def __init__(self, suffix):
        self.suffix = suffix
    def __str__(self):
        return f"ParenthesisWrapper(suffix={self.suffix})"

class AtomNode(ASTNode):
    def __init__(self, name, count):
        self.name = name
        self.count = count
    def __str__(self):
        return f"Atom({self.name}, {self.count})"


grammar = r"""
NUM: /\d+/
ELEMENT: /[A-Z][a-z]*/
SIGN: "-" | "+"

molecule_group: molecule ("." molecule)*
molecule: NUM? (atom | parenthesis_wrapper)+ electron?
        | electron
parenthesis_wrapper: "(" molecule_group ")" NUM?
                   | "[" molecule_group "]" NUM?
                   | "{" molecule_group "}" NUM?
atom: ELEMENT NUM?
electron: "<" NUM? "e" SIGN ">"
"""

parser = Lark(grammar, parser='lalr', start='molecule_group', propagate_positions=False, debug=False)


class AtomDict:
    """Signed element totals in discovery order; ``"e"`` holds the net charge."""

    def __init__(self, counts=None):
        self._counts = dict(counts or {})

    def get_dict(self):
        return dict(self._counts)

    def items(self) -> List[Tuple[str, object]]:
        return list(self._counts.items())

    def add(self, coefficient: Coefficient, key: str, value):
        if key in self._counts:
            self._counts[key] = coefficient.add(self._counts[key], value)
        else:
            self._counts[key] = value

    def __getitem__(self, key):
        return self._counts[key]

    def __contains__(self, key):
        return key in self._counts

    def __iter__(self) -> Iterator[str]:
        return iter(self._counts)

    def __len__(self):
        return len(self._counts)

    def __eq__(self, other):
        if isinstance(other, AtomDict):
            return self._counts == other._counts
        if isinstance(other, dict):
            return self._counts == other
        return NotImplemented

    def __repr__(self):
        return f"AtomDict({self._counts!r})"


class _Slot:
    __slots__ = ("node", "parent", "children")

    def __init__(self, node, parent):
        self.node = node
        self.parent = parent
        self.children = []


class ASTTree:
    """Arena of AST nodes with a movable insertion cursor.

    Nodes are addressed by their integer position in the arena. ``new_node``
    always attaches under the node the cursor names; index 0 is the
    :class:`GroupNode` root.
    """

    def __init__(self, coefficient: Coefficient = INTEGER):
        self.coefficient = coefficient
        self._slots: List[_Slot] = [_Slot(GroupNode(), None)]
        self._root = 0
        self._cursor = self._root

    def __len__(self):
        return len(self._slots)

    def _slot(self, index) -> _Slot:
        if not isinstance(index, int) or not 0 <= index < len(self._slots):
            raise InternalError(f"[AST] node index {index!r} does not exist")
        return self._slots[index]

    def new_node(self, node: ASTNode) -> int:
        parent = self._slot(self._cursor)
        index = len(self._slots)
        self._slots.append(_Slot(node, self._cursor))
        parent.children.append(index)
        return index

    def change_index(self, index: int):
        self._slot(index)
        self._cursor = index

    def get_index(self) -> int:
        return self._root

    def current_index(self) -> int:
        return self._cursor

    def node(self, index: int) -> ASTNode:
        return self._slot(index).node

    def parent(self, index: int) -> Optional[int]:
        return self._slot(index).parent

    def children(self, index: int) -> List[int]:
        return list(self._slot(index).children)

    def to_atomdict(self) -> AtomDict:
        totals = AtomDict()
        try:
            self._reduce(self._root, self.coefficient.one(), totals)
        except OverflowError as err:
            raise ParserError(f"Coefficient arithmetic failed: {err}") from err
        return totals

    def _reduce(self, index, multiplier, totals: AtomDict):
        c = self.coefficient
        slot = self._slot(index)
        node = slot.node
        if isinstance(node, AtomNode):
            totals.add(c, node.name, c.mul(multiplier, node.count))
            return
        if isinstance(node, MoleculeNode):
            multiplier = c.mul(multiplier, node.prefix)
            if node.charged:
                totals.add(c, CHARGE_KEY, c.mul(multiplier, node.charge))
        elif isinstance(node, ParenthesisWrapperNode):
            multiplier = c.mul(multiplier, node.suffix)
        for child in slot.children:
            self._reduce(child, multiplier, totals)


class TreeBuilder:
    """Builds an :class:`ASTTree` from a lark parse tree in a single pass."""

    def __init__(self, coefficient: Coefficient = INTEGER):
        self.coefficient = coefficient

    def parse(self, formula: str) -> ASTTree:
        if not isinstance(formula, str):
            raise ParserError(f"Formula must be a string, got {type(formula).__name__}")
        try:
            parse_tree = parser.parse(formula)
        except LarkError as err:
            raise ParserError(str(err)) from err
        tree = ASTTree(self.coefficient)
        self.build_tree(parse_tree, tree)
        logger.debug("Built AST for %r with %d nodes", formula, len(tree))
        return tree

    def build_tree(self, item, tree: ASTTree):
        if not isinstance(item, Tree):
            return
        handler = getattr(self, f"_build_{item.data}", None)
        if handler is not None:
            handler(item.children, tree)

    def _build_atom(self, items, tree):
        name = str(items[0])
        count = self.coefficient.parse(str(items[-1])) if self._is_num(items[-1]) else self.coefficient.one()
        tree.new_node(AtomNode(name, count))

    def _build_molecule(self, items, tree):
        items = list(items)
        prefix = self.coefficient.parse(str(items[0])) if self._is_num(items[0]) else self.coefficient.one()
        charged = isinstance(items[-1], Tree) and items[-1].data == "electron"
        charge = self._charge(items.pop().children) if charged else self.coefficient.zero()
        index = tree.new_node(MoleculeNode(prefix, charge, charged))
        self._build_children(index, items, tree)

    def _build_parenthesis_wrapper(self, items, tree):
        suffix = self.coefficient.parse(str(items[-1])) if self._is_num(items[-1]) else self.coefficient.one()
        index = tree.new_node(ParenthesisWrapperNode(suffix))
        self._build_children(index, items, tree)

    def _build_molecule_group(self, items, tree):
        # Dot-joined molecules are siblings under whatever node opened the group.
        self._build_children(tree.current_index(), items, tree)

    def _build_children(self, index, items, tree):
        for item in items:
            tree.change_index(index)
            self.build_tree(item, tree)

    def _charge(self, items):
        operand = self.coefficient.parse(str(items[0])) if self._is_num(items[0]) else self.coefficient.one()
        sign_text = str(items[-1])
        return self.coefficient.parse(sign_text + self.coefficient.to_text(operand))

    @staticmethod
    def _is_num(item):
        return isinstance(item, Token) and item.type == "NUM"


def parse_formula_ast(formula: str, coefficient: Coefficient = INTEGER) -> ASTTree:
    return TreeBuilder(coefficient).parse(preprocess_formula(formula))

def formula_to_atomdict(formula: str, coefficient: Coefficient = INTEGER) -> AtomDict:
    return parse_formula_ast(formula, coefficient).to_atomdict()

def print_ast(tree: ASTTree, index=None, indent=0):
    if index is None:
        index = tree.get_index()
    prefix = "  " * indent
    print(f"{prefix}{tree.node(index)}")
    for child in tree.children(index):
        print_ast(tree, child, indent + 1)
