"""Localized rendering of domain errors for the terminal."""

from b3ledger.domain.errors import DomainError

DEFAULT_LANG = "en"

# English output is the error's own message; only other languages need a catalog
CATALOGS: dict[str, dict[str, str]] = {
    "pt_BR": {
        "value.null": "{label} não pode ser nulo",
        "value.not_numeric": "{label} deve ser numérico",
        "money.negative": "Valor monetário não pode ser negativo: {value}",
        "quantity.not_positive": "Quantidade deve ser positiva: {value}",
        "user_id.null": "ID do usuário não pode ser nulo",
        "user_id.not_integer": "ID do usuário deve ser um número inteiro",
        "user_id.not_positive": "ID do usuário deve ser positivo: {value}",
        "operation.required": "Campo obrigatório ausente: {field}",
        "operation.invalid_field": "Campo inválido ({field}): {reason}",
        "operation.value_mismatch": (
            "Valor da operação ({value}) não confere com preço unitário x quantidade "
            "({computed}). Diferença: {difference}"
        ),
        "operation.duplicate_frozen": "Operação {operation_id} é duplicada e não pode ser alterada",
        "operation.not_found": "Operação {operation_id} não encontrada",
        "job_execution.not_found": "Execução {execution_id} não encontrada",
        "operation.duplicate_original_id": (
            "Já existe uma operação com ID original '{original_id}' para o usuário {user_id}"
        ),
        "duplicate.missing_original": "Uma duplicata deve referenciar a operação original",
        "duplicate.unexpected_original": (
            "Uma operação original não pode referenciar outra operação"
        ),
        "transaction.unclassifiable": (
            "Não foi possível classificar a operação: entrada/saída '{direction}', "
            "movimentação '{movement}'"
        ),
        "transaction.missing_institution": "Operação {operation_id} sem instituição",
        "transaction.missing_product": "Operação {operation_id} sem produto",
        "consolidation.unsaved_operation": "A operação deve ser salva antes da consolidação",
        "consolidation.persistence_failed": (
            "Falha ao gravar a operação {operation_id}: {reason}"
        ),
        "upload.empty": "Arquivo não pode estar vazio",
        "upload.missing_name": "Nome do arquivo é obrigatório",
        "upload.too_large": "Arquivo muito grande. Tamanho máximo: {max_mb}MB",
        "upload.unsupported_type": "Tipo de arquivo não suportado: {extension}",
        "upload.unreadable": "Arquivo corrompido ou inválido: {reason}",
        "upload.missing_columns": "Colunas obrigatórias ausentes: {columns}",
        "row.invalid_cell": "{column}: valor inválido ({reason})",
        "report.empty": "Nenhum erro para relatar",
        "report.unsupported_format": "Formato de relatório não suportado: {fmt}",
        "import.timeout": (
            "Importação excedeu {seconds} segundos após {processed} linhas"
        ),
    },
}


def render_error(error: Exception, lang: str = DEFAULT_LANG) -> str:
    """Return the message for an error in the requested language.

    Falls back to the error's own (English) text when the language, key or
    a parameter is unknown.
    """
    if not isinstance(error, DomainError) or error.message_key is None:
        return str(error)
    template = CATALOGS.get(lang, {}).get(error.message_key)
    if template is None:
        return str(error)
    try:
        return template.format(**error.params)
    except (KeyError, IndexError, ValueError):
        return str(error)


def error_label(lang: str = DEFAULT_LANG) -> str:
    return "Erro" if lang == "pt_BR" else "Error"
