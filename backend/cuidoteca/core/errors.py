"""Workflow error kinds.

Every error carries a machine-readable ``kind`` next to the human-readable
(Portuguese) ``detail``.  They subclass ``HTTPException`` so services can
raise them directly, the same way they raise plain HTTP errors.
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse


class DomainError(HTTPException):
    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Operação inválida"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(kind={self.kind!r}, detail={self.detail!r})>"


class Forbidden(DomainError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Acesso negado"


class NotOwned(DomainError):
    kind = "not_owned"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Este registro não pertence a você"


class NotFound(DomainError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Registro não encontrado"


class AlreadyExists(DomainError):
    kind = "already_exists"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Registro já existe"


class AlreadyConnected(DomainError):
    kind = "already_connected"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Já conectado a esta instituição"


class InvalidPair(DomainError):
    kind = "invalid_pair"
    default_detail = "Conexão não permitida entre estes tipos de usuário"


class InvalidState(DomainError):
    kind = "invalid_state"
    default_detail = "Operação não permitida no estado atual"


class AgeOutOfRange(DomainError):
    kind = "age_out_of_range"
    default_detail = "Idade fora da faixa aceita"


class NoInstitution(DomainError):
    kind = "no_institution"
    default_detail = "Você precisa estar conectado a uma instituição"


class NotConnected(DomainError):
    kind = "not_connected"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Vocês não estão conectados"


class EmptyGroup(DomainError):
    kind = "empty_group"
    default_detail = "Nenhum destinatário encontrado para este grupo"


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render a ``DomainError`` as ``{"detail": ..., "kind": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "kind": exc.kind},
        headers=exc.headers,
    )
