"""
FastAPI REST API Module

HTTP adapter over the transaction service: translates requests into
service calls and tagged results into status codes. Holds no domain logic.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from . import __version__
from .accounts import AccountStore, PROVISIONED_ACCOUNTS
from .clock import Clock, SystemClock
from .config import LedgerConfig, get_config
from .exceptions import LedgerInvariantError
from .ledger import LedgerLog, TransactionRecord
from .logging_config import get_logger, setup_logging
from .transactions import TransactionService, TransactionStatus


logger = get_logger("core_ledger.api")


# Pydantic models for API requests/responses
class TransactionRequest(BaseModel):
    valor: int = Field(..., strict=True, description="Positive integer amount")
    tipo: str = Field(..., description="Transaction kind: c (credit) or d (debit)")
    descricao: str = Field(..., description="Description, 1 to 10 characters")


class TransactionResponse(BaseModel):
    limite: int
    saldo: int


class BalanceModel(BaseModel):
    total: int
    data_extrato: datetime
    limite: int


class TransactionEntryModel(BaseModel):
    valor: int
    tipo: str
    descricao: str
    realizado_em: datetime

    @classmethod
    def from_record(cls, record: TransactionRecord) -> 'TransactionEntryModel':
        return cls(
            valor=record.amount,
            tipo=record.kind.value,
            descricao=record.description,
            realizado_em=record.created_at
        )


class StatementResponse(BaseModel):
    saldo: BalanceModel
    ultimas_transacoes: List[TransactionEntryModel]


# Ledger System Context
class LedgerSystem:
    """Ledger components wired together; owned by the application"""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        config: Optional[LedgerConfig] = None,
        provisioning: Iterable[Tuple[int, int]] = PROVISIONED_ACCOUNTS
    ):
        config = config or get_config()
        self.clock = clock or SystemClock()
        self.accounts = AccountStore.from_provisioning(provisioning)
        self.log = LedgerLog()
        self.service = TransactionService(
            self.accounts, self.log, self.clock,
            history_size=config.history_size,
            description_max_length=config.description_max_length
        )


# Dependency to get ledger system
def get_ledger_system(request: Request) -> LedgerSystem:
    return request.app.state.ledger_system


def create_app(system: Optional[LedgerSystem] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Core Ledger API",
        description="In-memory ledger with per-account overdraft limits",
        version=__version__
    )
    app.state.ledger_system = system or LedgerSystem()

    @app.exception_handler(LedgerInvariantError)
    async def invariant_error_handler(request: Request, exc: LedgerInvariantError):
        logger.error(f"Ledger invariant violated: {exc.message}", exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal ledger error"})

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "core_ledger",
            "version": __version__
        }

    # Plain ``def`` handlers run in the threadpool; the core does its own locking
    @app.post("/clientes/{account_id}/transacoes", response_model=TransactionResponse)
    def create_transaction(
        account_id: int,
        body: TransactionRequest,
        system: LedgerSystem = Depends(get_ledger_system)
    ):
        """Apply a credit or debit to an account"""
        result = system.service.process_transaction(
            account_id, body.valor, body.tipo, body.descricao
        )

        if result.status == TransactionStatus.ACCOUNT_NOT_FOUND:
            raise HTTPException(status_code=404, detail=result.error)
        if not result.accepted:
            raise HTTPException(status_code=422, detail=result.error)

        return TransactionResponse(limite=result.limit, saldo=result.balance)

    @app.get("/clientes/{account_id}/extrato", response_model=StatementResponse)
    def get_statement(
        account_id: int,
        system: LedgerSystem = Depends(get_ledger_system)
    ):
        """Get balance and recent transactions of an account"""
        result = system.service.statement(account_id)
        if not result.found:
            raise HTTPException(status_code=404, detail="Account not found")

        statement = result.statement
        return StatementResponse(
            saldo=BalanceModel(
                total=statement.total,
                data_extrato=statement.taken_at,
                limite=statement.limit
            ),
            ultimas_transacoes=[
                TransactionEntryModel.from_record(record)
                for record in statement.transactions
            ]
        )

    return app


# Create the app instance for uvicorn
app = create_app()


def run_server(host: str = "0.0.0.0", port: int = 3000, log_level: str = "INFO",
               log_format: str = "json"):
    """Run the FastAPI server"""
    setup_logging(log_level, log_format)
    # Single process: ledger state lives in this process's memory
    uvicorn.run(
        "core_ledger.api:app",
        host=host,
        port=port,
        log_level=log_level.lower()
    )
