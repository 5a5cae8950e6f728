"""Classification of statement rows: direction, movement type, transaction type, ticker.

Statement text arrives with inconsistent accents and casing ("Saída",
"SAIDA", "Transferência - Liquidação"), so every comparison here goes
through ``normalize_text`` first.
"""

import logging
import re
import unicodedata
from typing import Optional

from b3ledger.domain.entities import (
    Direction,
    FixedIncomeType,
    MovementType,
    TransactionType,
    VariableIncomeType,
)

logger = logging.getLogger(__name__)


def normalize_text(value: Optional[str]) -> str:
    """Strip accents, collapse whitespace and lowercase."""
    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(value))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.split()).lower()


_DIRECTION_ALIASES = {
    "entrada": Direction.ENTRADA,
    "credito": Direction.ENTRADA,
    "saida": Direction.SAIDA,
    "debito": Direction.SAIDA,
}


def parse_direction(value: Optional[str]) -> Optional[Direction]:
    """Map a statement direction label (Entrada/Credito/Saida/Debito) to a Direction."""
    return _DIRECTION_ALIASES.get(normalize_text(value))


def normalize_direction(value: Optional[str]) -> Optional[str]:
    """Return the canonical direction label, or the stripped input if unrecognized."""
    direction = parse_direction(value)
    if direction is not None:
        return direction.value
    if value is None:
        return None
    return value.strip() or None


class MovementTypeResolver:
    """Resolve the movement type of an operation from its direction and movement text."""

    CREDITS_IN = frozenset(
        {
            "rendimento",
            "pagamento juros",
            "pagamento de juros",
            "dividendo",
            "juros sobre capital proprio",
        }
    )
    DEBITS_IN = frozenset(
        {
            "transferencia - liquidacao",
            "compra / venda a termo",
            "compra",
            "compra / venda",
            "compra/venda definitiva a termo",
        }
    )
    SUBSCRIPTIONS = frozenset(
        {
            "direito de subscricao",
            "direitos de subscricao - nao exercido",
            "cessao de direitos - solicitada",
            "cessao de direitos",
            "solicitacao de subscricao",
            "recibo de subscricao",
            "direito sobras de subscricao",
            "direito sobras de subscricao - nao exercido",
        }
    )
    CREDITS_OUT = frozenset(
        {
            "vencimento",
            "transferencia - liquidacao",
            "resgate",
            "antecipacao total/parcial",
            "compra / venda",
        }
    )
    DEBITS_OUT = frozenset(
        {
            "cobranca de taxa semestral",
            "direitos de subscricao exercidos",
            "direitos de subscricao - exercido",
        }
    )
    TRANSFERS = frozenset(
        {
            "transferencia",
            "transferencia sem financeiro",
            "rendimento - transferido",
            "juros sobre capital proprio - transferido",
        }
    )

    def resolve(self, direction: Optional[str], movement: Optional[str]) -> Optional[MovementType]:
        """Return the movement type, or None when the combination is not recognized."""
        side = parse_direction(direction)
        mov = normalize_text(movement)

        if side is Direction.ENTRADA:
            if mov == "atualizacao":
                return MovementType.ATUALIZACAO
            if mov == "bonificacao em ativos":
                return MovementType.BONIFICACAO_EM_ATIVOS
            if mov == "amortizacao":
                return MovementType.AMORTIZACAO
            if mov in self.CREDITS_IN:
                return MovementType.CREDITO
            if mov in self.DEBITS_IN:
                return MovementType.DEBITO
            if mov in self.SUBSCRIPTIONS:
                return MovementType.SUBSCRICAO
            if mov in self.TRANSFERS:
                return MovementType.TRANSFERENCIA
        elif side is Direction.SAIDA:
            if mov in self.CREDITS_OUT:
                return MovementType.CREDITO
            if mov in self.DEBITS_OUT:
                return MovementType.DEBITO
            if mov in self.SUBSCRIPTIONS:
                return MovementType.SUBSCRICAO
            if mov in self.TRANSFERS:
                return MovementType.TRANSFERENCIA

        logger.warning("Unclassified movement: direction=%r movement=%r", direction, movement)
        return None


class TransactionTypeMapper:
    """Map direction and movement text to a TransactionType.

    Unmatched descriptions fall back to OUTRA; rejecting unknown rows is the
    movement resolver's job.
    """

    def map(self, direction: Optional[str], movement: Optional[str]) -> TransactionType:
        side = parse_direction(direction)
        mov = normalize_text(movement)
        if not mov or side is None:
            return TransactionType.OUTRA

        if "transferencia" in mov and "compra / venda" not in mov:
            return TransactionType.TRANSFERENCIA

        if "compra / venda" in mov:
            # A sale credits cash (Entrada); a purchase debits it (Saida)
            return TransactionType.VENDA if side is Direction.ENTRADA else TransactionType.ENTRADA

        if side is Direction.ENTRADA:
            if "rendimento" in mov:
                return TransactionType.LUCRO_RENDIMENTO
            if "dividendo" in mov:
                return TransactionType.LUCRO_DIVIDENDO
            if (
                "juros sobre capital proprio" in mov
                or "pagamento de juros" in mov
                or "pagamento juros" in mov
            ):
                return TransactionType.LUCRO_JUROS
            if "resgate" in mov or "amortizacao" in mov or "bonificacao" in mov:
                return TransactionType.LUCRO_OUTRA

        if "taxa" in mov or "cobranca" in mov:
            return TransactionType.TAXA

        return TransactionType.OUTRA


class ProductParser:
    """Extract the asset ticker from a statement's product description.

    - Fixed income ("CDB - CDBC247FRL8 - BANCO X"): first two tokens, "CDB - CDBC247FRL8".
    - Treasury ("Tesouro Selic 2029"): the full name.
    - Variable income ("BRCO11 - FII BRESCO"): the first token, narrowed to the symbol.
    """

    FIXED_INCOME_PATTERN = re.compile(r"^\s*(CDB|LCI|LCA|TESOURO|DEB)\b", re.IGNORECASE)
    SYMBOL_PATTERN = re.compile(r"([A-Z]{4}\d{1,2})")
    SEPARATOR = " - "

    def extract_ticker(self, product: Optional[str]) -> str:
        if product is None or not product.strip():
            return ""
        trimmed = product.strip()

        if trimmed.upper().startswith("TESOURO"):
            return trimmed

        parts = [part.strip() for part in trimmed.split(self.SEPARATOR)]
        if self.is_fixed_income(trimmed):
            if len(parts) >= 2:
                return f"{parts[0]}{self.SEPARATOR}{parts[1]}"
            return trimmed

        match = self.SYMBOL_PATTERN.search(parts[0])
        return match.group(1) if match else parts[0]

    def is_fixed_income(self, product: Optional[str]) -> bool:
        if product is None or not product.strip():
            return False
        return self.FIXED_INCOME_PATTERN.search(product) is not None


class AssetTypeClassifier:
    """Name the kind of asset a product is.

    Fixed income goes by the product's leading word. Variable income goes by
    the ticker's numeric suffix; suffix 11 is shared by real estate funds,
    ETFs and units, so the product description decides between them.
    """

    FIXED_INCOME_PREFIXES = (
        ("TESOURO", FixedIncomeType.TITULO_PUBLICO),
        ("CDB", FixedIncomeType.CDB),
        ("LCI", FixedIncomeType.LCI),
        ("LCA", FixedIncomeType.LCA),
        ("DEB", FixedIncomeType.DEBENTURE),
    )
    TICKER_SUFFIXES = {
        "1": VariableIncomeType.DIREITO_SUBSCRICAO_ON,
        "2": VariableIncomeType.DIREITO_SUBSCRICAO_PN,
        "3": VariableIncomeType.ACAO_ON,
        "4": VariableIncomeType.ACAO_PN,
        "5": VariableIncomeType.ACAO_PNA,
        "6": VariableIncomeType.ACAO_PNB,
        "7": VariableIncomeType.ACAO_PNC,
        "8": VariableIncomeType.ACAO_PND,
        "9": VariableIncomeType.RECIBO_SUBSCRICAO_ON,
        "10": VariableIncomeType.RECIBO_SUBSCRICAO_PN,
        "32": VariableIncomeType.BDR,
        "33": VariableIncomeType.BDR,
        "34": VariableIncomeType.BDR,
        "35": VariableIncomeType.BDR,
    }
    SUFFIX_PATTERN = re.compile(r"(\d+)$")

    def fixed_income_type(self, product: Optional[str]) -> FixedIncomeType:
        name = (product or "").strip().upper()
        for prefix, kind in self.FIXED_INCOME_PREFIXES:
            if name.startswith(prefix):
                return kind
        return FixedIncomeType.DESCONHECIDO

    def variable_income_type(
        self, ticker: Optional[str], product: Optional[str] = None
    ) -> VariableIncomeType:
        symbol = (ticker or "").strip().upper()
        if symbol.endswith(".SA"):
            symbol = symbol[:-3]
        match = self.SUFFIX_PATTERN.search(symbol)
        if match is None:
            logger.debug("No numeric suffix in ticker %r", ticker)
            return VariableIncomeType.DESCONHECIDO

        suffix = match.group(1)
        if suffix == "11":
            return self._suffix_11_type(product)
        return self.TICKER_SUFFIXES.get(suffix, VariableIncomeType.DESCONHECIDO)

    def _suffix_11_type(self, product: Optional[str]) -> VariableIncomeType:
        text = normalize_text(product)
        words = set(re.findall(r"[a-z0-9]+", text))
        if "fii" in words or "imobiliario" in words:
            return VariableIncomeType.FII
        if "etf" in words or "indice" in words or "ishares" in words:
            return VariableIncomeType.ETF
        if "unit" in words or "units" in words or "unt" in words:
            return VariableIncomeType.ACAO_UNIT
        logger.debug("Could not tell the kind of suffix 11 product %r", text)
        return VariableIncomeType.DESCONHECIDO
