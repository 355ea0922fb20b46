"""Erros do ciclo de vida das candidaturas.

Cada erro transporta o código HTTP e um código curto que a interface usa para
mostrar uma mensagem distinta (sem permissão, não encontrado, estado inválido,
falha temporária).
"""
from typing import Optional




class ServiceError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    status_code = 404
    code = "not_found"


class ForbiddenError(ServiceError):
    status_code = 403
    code = "forbidden"


class InvalidStateError(ServiceError):
    status_code = 400
    code = "invalid_state"


class TransitionConflictError(InvalidStateError):
    """Outra transição concorrente foi gravada primeiro."""

    status_code = 409
    code = "conflict"

    def __init__(self, message: str, current_status: Optional[str] = None):
        super().__init__(message)
        self.current_status = current_status


class PersistenceError(ServiceError):
    status_code = 503
    code = "persistence_error"


# Texto devolvido pelo driver/fornecedor quando a política de acesso recusa a escrita.
# Se a redação do fornecedor mudar, é só aqui que se atualiza.
_FORBIDDEN_MARKERS = ("row-level security", "permission denied", "insufficient privilege")


def translate_store_error(error: Exception, message: str) -> ServiceError:
    """Converter um erro do armazenamento num erro do domínio"""
    normalized = str(error).lower()
    if any(marker in normalized for marker in _FORBIDDEN_MARKERS):
        return ForbiddenError("Não tem permissão para gerir esta candidatura.")
    return PersistenceError(message)
