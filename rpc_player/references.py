"""Value references used in call parameters of a plan.

Supported tokens::

    @alice            address of wallet "alice"
    @alice.password   any field of wallet "alice" (see :class:`FieldName`)
    @@                address of the wallet the current call is bound to
    $2                result of the second call executed so far

References are parsed when the plan is loaded, so typos surface before any
call is made. Dereferencing happens later, when a call is built, through a
:class:`ReferenceResolver`.

Values may also be arithmetic expressions over references and numbers::

    value: @alice.balance - (40 * 1e9 * 21000)
"""
import ast
import decimal
import operator
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Union

import structlog

from rpc_player.constants import (
    CALLER_WALLET_REFERENCE,
    REFERENCE_DELIMITER,
    RESULT_REFERENCE_SIGIL,
    WALLET_REFERENCE_SIGIL,
)
from rpc_player.exceptions.config import (
    ExpressionError,
    ReferenceParseError,
    ReferenceResolutionError,
    UnknownFieldReference,
    UnknownWalletReference,
)
from rpc_player.wallets.spec import FieldName, WalletSpec

if TYPE_CHECKING:
    from rpc_player.wallets.registry import WalletRegistry

log = structlog.get_logger(__name__)

#: Enough digits for exact arithmetic on 256 bit integers.
DECIMAL_PRECISION = 78

_REFERENCE_TOKEN = re.compile(r"@@|@[A-Za-z_][\w.]*|\$\d+")

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

_UNARY_OPERATORS = {ast.USub: operator.neg, ast.UAdd: operator.pos}


@dataclass(frozen=True)
class WalletFieldReference:
    wallet_name: str
    field_name: FieldName = FieldName.ADDRESS


@dataclass(frozen=True)
class CallerWalletReference:
    """The address of the wallet the current call runs as."""


@dataclass(frozen=True)
class ResultReference:
    #: 1-based position of the call result.
    index: int


Reference = Union[WalletFieldReference, CallerWalletReference, ResultReference]


def parse_wallet_field_reference(wallets: "WalletRegistry", body: str) -> WalletFieldReference:
    """Parse the body of a wallet reference, i.e. the token without its ``@`` sigil.

    :raises ReferenceParseError: if the reference can't be resolved to a wallet field.
    """
    parts = body.split(REFERENCE_DELIMITER)
    if len(parts) == 1:
        if wallets.get_wallet(body) is not None:
            return WalletFieldReference(body, FieldName.ADDRESS)
        raise ReferenceParseError(
            f"ambiguous reference '{body}': not a wallet name, "
            f"use walletName.fieldName to reference a wallet field"
        )
    if len(parts) != 2:
        raise ReferenceParseError(f"reference '{body}' must have two parts: walletName.fieldName")

    wallet_name, field_name = parts
    wallet = wallets.get_wallet(wallet_name)
    if wallet is None:
        raise UnknownWalletReference(f"value reference targets unknown wallet: {wallet_name}")
    if not wallet.has_field(field_name):
        raise UnknownFieldReference(f"value reference targets unknown wallet field: {field_name}")
    return WalletFieldReference(wallet_name, FieldName(field_name))


def parse_reference(wallets: "WalletRegistry", token: str) -> Reference:
    """Parse a complete reference token, including its sigil.

    :raises ReferenceParseError: if `token` is not a valid reference.
    """
    token = token.strip()
    if token == CALLER_WALLET_REFERENCE:
        return CallerWalletReference()
    if token.startswith(WALLET_REFERENCE_SIGIL):
        return parse_wallet_field_reference(wallets, token[len(WALLET_REFERENCE_SIGIL):])
    if token.startswith(RESULT_REFERENCE_SIGIL):
        position = token[len(RESULT_REFERENCE_SIGIL):]
        if not position.isdigit() or int(position) < 1:
            raise ReferenceParseError(f"result reference '{token}' must be $<N> with N >= 1")
        return ResultReference(int(position))
    raise ReferenceParseError(f"'{token}' is not a reference")


def is_reference(value: Any) -> bool:
    return isinstance(value, str) and value.strip().startswith(
        (WALLET_REFERENCE_SIGIL, RESULT_REFERENCE_SIGIL)
    )


class ReferenceResolver:
    """Dereference parsed references against the wallets and prior call results.

    The call executor appends each call's result with :meth:`.record_result`;
    ``$N`` then refers to the N-th recorded result.
    """

    def __init__(self, wallets: "WalletRegistry", results: Optional[Sequence[Any]] = None):
        self.wallets = wallets
        self.results: List[Any] = list(results or [])

    def record_result(self, result: Any) -> int:
        """Store a call result and return the position it can be referenced by."""
        self.results.append(result)
        return len(self.results)

    def resolve(self, reference: Reference, caller: Optional[WalletSpec] = None) -> Any:
        """Return the current value `reference` points at.

        :raises ReferenceResolutionError: if the value isn't available (yet).
        """
        if isinstance(reference, WalletFieldReference):
            wallet = self.wallets.get_wallet(reference.wallet_name)
            if wallet is None:
                raise ReferenceResolutionError(f"unknown wallet: {reference.wallet_name}")
            return wallet.field_value(reference.field_name.value)

        if isinstance(reference, CallerWalletReference):
            if caller is None:
                raise ReferenceResolutionError("@@ used in a call that is not bound to a wallet")
            return caller.address

        if isinstance(reference, ResultReference):
            try:
                return self.results[reference.index - 1]
            except IndexError:
                raise ReferenceResolutionError(
                    f"no result ${reference.index} available, "
                    f"only {len(self.results)} call(s) completed"
                )

        raise ReferenceResolutionError(f"unsupported reference type: {type(reference).__name__}")


def _as_decimal(value: Any, source: str) -> decimal.Decimal:
    if isinstance(value, bool) or value is None:
        raise ExpressionError(f"{source} has no numeric value: {value!r}")
    if isinstance(value, decimal.Decimal):
        return value
    if isinstance(value, int):
        return decimal.Decimal(value)
    if isinstance(value, float):
        return decimal.Decimal(str(value))
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                return decimal.Decimal(int(text, 16))
            return decimal.Decimal(text)
        except (ValueError, decimal.InvalidOperation):
            pass
    raise ExpressionError(f"{source} has no numeric value: {value!r}")


class Expression:
    """A parameter value: a literal, a single reference, or arithmetic over both.

    Use :meth:`.parse` to create instances; it validates every reference
    against the wallet inventory.
    """

    def __init__(
        self,
        text: Any,
        tree: Optional[ast.Expression] = None,
        references: Optional[Dict[str, Reference]] = None,
    ) -> None:
        self.text = text
        self._tree = tree
        self.references = references or {}

    def __repr__(self):
        return f"{self.__class__.__qualname__}({self.text!r})"

    @property
    def is_literal(self) -> bool:
        return self._tree is None and not self.references

    @classmethod
    def parse(cls, text: Any, wallets: "WalletRegistry") -> "Expression":
        """Parse the parameter value `text`.

        Text starting with a reference is a reference or an expression, and
        any error in it is raised. Other text is an expression only if it is
        valid arithmetic over numbers and references, e.g. ``100 - @alice``;
        everything else, like ``user@example.com`` or ``my-token``, is a
        literal and evaluates to itself.

        :raises ReferenceParseError: if a reference is invalid.
        :raises ExpressionError: if the arithmetic is malformed.
        """
        if not isinstance(text, str):
            return cls(text)

        stripped = text.strip()
        leading_reference = is_reference(stripped)
        single_error = None
        if leading_reference and not any(c.isspace() for c in stripped):
            # Wallet names may contain operator characters, e.g. "@worker-0".
            try:
                return cls(text, references={"": parse_reference(wallets, stripped)})
            except ReferenceParseError as e:
                single_error = e

        try:
            tree, references = cls._compile(stripped, wallets)
        except (ReferenceParseError, ExpressionError) as e:
            if not leading_reference:
                return cls(text)
            if single_error is not None and isinstance(e, ReferenceParseError):
                raise single_error
            raise
        if tree is None:
            return cls(text)
        return cls(text, tree=tree, references=references)

    @classmethod
    def _compile(
        cls, text: str, wallets: "WalletRegistry"
    ) -> Tuple[Optional[ast.Expression], Dict[str, Reference]]:
        """Replace references with placeholder names and parse the arithmetic.

        The tree is None if `text` holds neither references nor arithmetic.
        """
        references: Dict[str, Reference] = {}

        def substitute(match) -> str:
            placeholder = f"__ref_{len(references)}"
            references[placeholder] = parse_reference(wallets, match.group(0))
            return placeholder

        source = _REFERENCE_TOKEN.sub(substitute, text)
        try:
            tree = ast.parse(source, mode="eval")
        except SyntaxError as e:
            raise ExpressionError(f"malformed expression '{text}': {e.msg}") from e

        has_arithmetic = any(isinstance(node, (ast.BinOp, ast.UnaryOp)) for node in ast.walk(tree))
        if not references and not has_arithmetic:
            return None, references
        cls._check_nodes(tree, references, text)
        return tree, references

    @staticmethod
    def _check_nodes(tree: ast.Expression, references: Dict[str, Reference], text: str) -> None:
        allowed = (
            ast.Expression,
            ast.BinOp,
            ast.UnaryOp,
            ast.Constant,
            ast.Name,
            ast.Load,
            *_BINARY_OPERATORS,
            *_UNARY_OPERATORS,
        )
        for node in ast.walk(tree):
            if not isinstance(node, allowed):
                raise ExpressionError(
                    f"unsupported syntax in expression '{text}': {type(node).__name__}"
                )
            if isinstance(node, ast.Name) and node.id not in references:
                raise ExpressionError(f"unknown name '{node.id}' in expression '{text}'")
            if isinstance(node, ast.Constant) and (
                isinstance(node.value, bool) or not isinstance(node.value, (int, float))
            ):
                raise ExpressionError(f"only numbers are allowed in expression '{text}'")

    def evaluate(self, resolver: ReferenceResolver, caller: Optional[WalletSpec] = None) -> Any:
        """Compute the value of the expression for a call.

        Arithmetic is carried out with :class:`decimal.Decimal`, so wei amounts
        stay exact. Integral results are returned as :class:`int`.
        """
        if self.is_literal:
            return self.text
        if self._tree is None:
            (reference,) = self.references.values()
            return resolver.resolve(reference, caller)

        values = {
            placeholder: resolver.resolve(reference, caller)
            for placeholder, reference in self.references.items()
        }
        with decimal.localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            try:
                result = self._evaluate_node(self._tree.body, values)
            except ArithmeticError as e:
                raise ExpressionError(f"failed to evaluate '{self.text}': {e!r}") from e

            if result == result.to_integral_value():
                return int(result)
            return result

    def _evaluate_node(self, node: ast.AST, values: Dict[str, Any]) -> decimal.Decimal:
        if isinstance(node, ast.Constant):
            return _as_decimal(node.value, "literal")
        if isinstance(node, ast.Name):
            return _as_decimal(values[node.id], "reference")
        if isinstance(node, ast.UnaryOp):
            return _UNARY_OPERATORS[type(node.op)](self._evaluate_node(node.operand, values))
        if isinstance(node, ast.BinOp):
            left = self._evaluate_node(node.left, values)
            right = self._evaluate_node(node.right, values)
            return _BINARY_OPERATORS[type(node.op)](left, right)
        raise ExpressionError(f"unsupported syntax in expression '{self.text}'")
