"""Domain model entities for b3ledger.

These are pure data classes representing business concepts, independent of
database schema. Associations are held as identifier references only: the
portfolio does not hold its transactions, a transaction names its portfolio.
"""

from dataclasses import dataclass
from datetime import datetime, date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from b3ledger.domain.value_objects import MONEY_PLACES, QUANTITY_PLACES


class Direction(str, Enum):
    """Credit/debit side of a statement row."""

    ENTRADA = "Entrada"
    SAIDA = "Saída"


class MovementType(str, Enum):
    """Movement category resolved from the statement's movement text."""

    CREDITO = "CREDITO"
    DEBITO = "DEBITO"
    TRANSFERENCIA = "TRANSFERENCIA"
    SUBSCRICAO = "SUBSCRICAO"
    ATUALIZACAO = "ATUALIZACAO"
    BONIFICACAO_EM_ATIVOS = "BONIFICACAO_EM_ATIVOS"
    AMORTIZACAO = "AMORTIZACAO"


class TransactionType(str, Enum):
    """Business type of a transaction."""

    ENTRADA = "ENTRADA"
    SAIDA = "SAIDA"
    TAXA = "TAXA"
    VENDA = "VENDA"
    LUCRO_RENDIMENTO = "LUCRO_RENDIMENTO"
    LUCRO_DIVIDENDO = "LUCRO_DIVIDENDO"
    LUCRO_JUROS = "LUCRO_JUROS"
    LUCRO_OUTRA = "LUCRO_OUTRA"
    TRANSFERENCIA = "TRANSFERENCIA"
    OUTRA = "OUTRA"


PROFIT_TRANSACTION_TYPES = frozenset(
    {
        TransactionType.LUCRO_RENDIMENTO,
        TransactionType.LUCRO_DIVIDENDO,
        TransactionType.LUCRO_JUROS,
        TransactionType.LUCRO_OUTRA,
    }
)

# Lot types that add to or take from an asset position
POSITION_INFLOW_TYPES = frozenset({TransactionType.ENTRADA})
POSITION_OUTFLOW_TYPES = frozenset({TransactionType.VENDA, TransactionType.SAIDA})


class FixedIncomeType(str, Enum):
    """Kind of fixed income product, read from the product's leading word."""

    TITULO_PUBLICO = "TITULO_PUBLICO"
    CDB = "CDB"
    LETRA_FINANCEIRA = "LETRA_FINANCEIRA"
    LCI = "LCI"
    LCA = "LCA"
    DEBENTURE = "DEBENTURE"
    ETF = "ETF"
    DESCONHECIDO = "DESCONHECIDO"


class VariableIncomeType(str, Enum):
    """Kind of variable income asset, read from the ticker suffix."""

    ACAO_ON = "ACAO_ON"
    ACAO_PN = "ACAO_PN"
    ACAO_PNA = "ACAO_PNA"
    ACAO_PNB = "ACAO_PNB"
    ACAO_PNC = "ACAO_PNC"
    ACAO_PND = "ACAO_PND"
    ACAO_UNIT = "ACAO_UNIT"
    FII = "FII"
    ETF = "ETF"
    BDR = "BDR"
    DIREITO_SUBSCRICAO_ON = "DIREITO_SUBSCRICAO_ON"
    DIREITO_SUBSCRICAO_PN = "DIREITO_SUBSCRICAO_PN"
    RECIBO_SUBSCRICAO_ON = "RECIBO_SUBSCRICAO_ON"
    RECIBO_SUBSCRICAO_PN = "RECIBO_SUBSCRICAO_PN"
    DESCONHECIDO = "DESCONHECIDO"


@dataclass(frozen=True)
class User:
    """Owner of operations and of exactly one portfolio."""

    id: int
    created_at: datetime


@dataclass(frozen=True)
class Portfolio:
    """Aggregate root holding a user's transactions and assets."""

    id: int
    user_id: int
    created_at: datetime


@dataclass(frozen=True)
class Institution:
    """Brokerage or bank named in a statement."""

    id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class FinancialAsset:
    """A user's holding in one product, identified by ticker within a portfolio."""

    id: int
    portfolio_id: int
    ticker: str
    product_name: Optional[str]
    fixed_income: bool
    deleted: bool
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Classified event derived from a non-duplicate operation.

    The factory builds it without storage references; the consolidator fills
    ``portfolio_id``, ``institution_id`` and ``asset_id`` before it is saved.
    """

    operation_id: Optional[int]
    date: date
    direction: str
    quantity: Decimal
    unit_price: Decimal
    total_value: Decimal
    transaction_type: TransactionType
    movement_type: MovementType
    portfolio_id: Optional[int] = None
    institution_id: Optional[int] = None
    asset_id: Optional[int] = None
    deleted: bool = False
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AssetLot:
    """Quantity and price an asset moved by in one transaction.

    Quantities are always positive; ``transaction_type`` tells whether the lot
    adds to the position or takes from it.
    """

    purchase_date: date
    quantity: Decimal
    unit_price: Decimal
    total: Decimal
    asset_type: str
    transaction_type: TransactionType
    asset_id: Optional[int] = None
    transaction_id: Optional[int] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class HoldingSummary:
    """Query-time view of an asset: its net position and what it cost.

    Purchases add to the position and sales or withdrawals take from it;
    other lot types leave it unchanged. ``invested`` is the remaining
    quantity at the average purchase price.
    """

    asset: FinancialAsset
    transaction_count: int
    quantity: Decimal
    average_price: Decimal
    invested: Decimal
    asset_type: Optional[str] = None

    @classmethod
    def from_lots(
        cls, asset: FinancialAsset, transaction_count: int, lots: list[AssetLot]
    ) -> "HoldingSummary":
        bought = Decimal(0)
        cost = Decimal(0)
        sold = Decimal(0)
        for lot in lots:
            if lot.transaction_type in POSITION_INFLOW_TYPES:
                bought += lot.quantity
                cost += lot.total
            elif lot.transaction_type in POSITION_OUTFLOW_TYPES:
                sold += lot.quantity

        quantity = bought - sold
        average_price = cost / bought if bought else Decimal(0)
        invested = average_price * quantity if quantity > 0 else Decimal(0)
        return cls(
            asset=asset,
            transaction_count=transaction_count,
            quantity=quantity.quantize(QUANTITY_PLACES),
            average_price=average_price.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP),
            invested=invested.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP),
            asset_type=lots[-1].asset_type if lots else None,
        )


class JobStatus(str, Enum):
    """Lifecycle state of a batch job execution."""

    STARTED = "STARTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class JobExecution:
    """One run of a batch job, identified by job name and parameter token."""

    id: int
    job_name: str
    job_key: str
    status: JobStatus
    start_time: datetime
    end_time: Optional[datetime] = None
    read_count: int = 0
    write_count: int = 0
    skip_count: int = 0
    chunk_count: int = 0
    exit_message: Optional[str] = None
