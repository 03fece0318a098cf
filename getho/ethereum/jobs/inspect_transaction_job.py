from typing import Any, Dict, List, Optional, Tuple

from web3 import AsyncWeb3

from getho.config.configs import configs
from getho.ethereum.exceptions import InputUnavailable, NotFound, TraceMalformedError
from getho.ethereum.jobs.async_base_job import AsyncBaseJob
from getho.ethereum.mappers.block_header_mapper import EthBlockHeaderMapper
from getho.ethereum.mappers.receipt_mapper import EthReceiptMapper
from getho.ethereum.mappers.transaction_mapper import EthTransactionMapper
from getho.ethereum.models.inspection import EthTransactionInspection
from getho.ethereum.models.trace import EthTrace
from getho.ethereum.models.trace_step import EthTraceRoot
from getho.ethereum.models.transaction import EthTransaction
from getho.ethereum.service.fee_ledger_service import FeeLedgerService
from getho.ethereum.service.trace_builder_service import TraceBuilderService
from getho.utils.async_utils import gather_with_concurrency
from getho.utils.logger_utils import get_logger

logger = get_logger("Inspect Transaction Job")

CALL_TRACER = "callTracer"
STRUCT_LOGS_TRACER = "structLogs"


# Fetches one transaction with its receipt, header and trace, and decodes all of it
class InspectTransactionJob(AsyncBaseJob):
    def __init__(
        self,
        transaction_hash: str,
        web3: AsyncWeb3,
        max_concurrent_requests: Optional[int] = None,
        tracer: Optional[str] = None,
        trace_timeout: Optional[str] = None,
        include_trace: bool = True,
        transaction_mapper: Optional[EthTransactionMapper] = None,
        fee_ledger_service: Optional[FeeLedgerService] = None,
        trace_builder_service: Optional[TraceBuilderService] = None,
    ):
        self.transaction_hash = transaction_hash.lower()
        self.web3 = web3
        self.max_concurrent_requests = max_concurrent_requests or configs.ethereum.max_concurrent_requests
        self.tracer = tracer or configs.ethereum.tracer
        if self.tracer not in (CALL_TRACER, STRUCT_LOGS_TRACER):
            raise ValueError(f"Unsupported tracer {self.tracer}. Supported: {STRUCT_LOGS_TRACER}, {CALL_TRACER}")
        self.trace_timeout = trace_timeout or configs.ethereum.trace_timeout
        self.include_trace = include_trace

        self.receipt_mapper = EthReceiptMapper()
        self.block_header_mapper = EthBlockHeaderMapper()
        self.transaction_mapper = transaction_mapper or EthTransactionMapper()
        self.fee_ledger_service = fee_ledger_service or FeeLedgerService()
        self.trace_builder_service = trace_builder_service or TraceBuilderService()

    async def _execute(self) -> EthTransactionInspection:
        tasks = [
            self._fetch("eth_getTransactionByHash", [self.transaction_hash]),
            self._fetch_optional("eth_getTransactionReceipt", [self.transaction_hash]),
        ]
        if self.include_trace:
            tasks.append(self._fetch_trace())

        results = await gather_with_concurrency(self.max_concurrent_requests, *tasks)
        raw_transaction, raw_receipt = results[0], results[1]
        raw_trace, trace_error = results[2] if self.include_trace else (None, None)

        if raw_transaction is None:
            raise NotFound(f"Transaction {self.transaction_hash} not found")

        receipt = self.receipt_mapper.json_dict_to_receipt(raw_receipt)
        if receipt is None:
            logger.info(f"No receipt for {self.transaction_hash}, treating it as pending")

        transaction = self.transaction_mapper.json_dict_to_transaction(raw_transaction, receipt=receipt)

        header = None
        if transaction.block_number is not None:
            raw_header = await self._fetch_optional("eth_getBlockByNumber", [hex(transaction.block_number), False])
            header = self.block_header_mapper.json_dict_to_block_header(raw_header)

        gas_analysis = self.fee_ledger_service.analyze(transaction, receipt=receipt, header=header)

        trace = None
        if raw_trace is not None:
            trace, trace_error = self._build_trace(transaction, raw_trace)

        return EthTransactionInspection(
            transaction=transaction,
            gas_analysis=gas_analysis,
            trace=trace,
            trace_error=trace_error,
        )

    async def _fetch(self, method: str, params: List[Any]) -> Any:
        response = await self.web3.provider.make_request(method, params)
        if "error" in response and response["error"] is not None:
            raise InputUnavailable(f"{method} failed for {self.transaction_hash}: {response['error']}")
        return response.get("result")

    async def _fetch_optional(self, method: str, params: List[Any]) -> Any:
        try:
            return await self._fetch(method, params)
        except InputUnavailable as e:
            logger.warning(str(e))
            return None

    async def _fetch_trace(self) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        try:
            result = await self._fetch("debug_traceTransaction", [self.transaction_hash, self._tracer_config()])
        except InputUnavailable as e:
            logger.warning(str(e))
            return None, str(e)
        if result is None:
            return None, f"debug_traceTransaction returned no result for {self.transaction_hash}"
        return result, None

    def _tracer_config(self) -> Dict[str, Any]:
        if self.tracer == CALL_TRACER:
            return {"tracer": CALL_TRACER, "timeout": self.trace_timeout}
        # Stack is required to read CALL operands
        return {
            "timeout": self.trace_timeout,
            "enableMemory": False,
            "disableStack": False,
            "disableStorage": True,
            "enableReturnData": False,
        }

    def _build_trace(
        self, transaction: EthTransaction, raw_trace: Dict[str, Any]
    ) -> Tuple[Optional[EthTrace], Optional[str]]:
        root = EthTraceRoot(
            from_address=transaction.from_address,
            to_address=transaction.to_address,
            value=transaction.value,
        )
        try:
            return self.trace_builder_service.build_from_debug_trace(transaction.hash, raw_trace, root=root), None
        except TraceMalformedError as e:
            logger.warning(f"Discarding malformed trace of {transaction.hash}: {e}")
            return None, str(e)


async def inspect_transaction(transaction_hash: str, web3: AsyncWeb3, **kwargs: Any) -> EthTransactionInspection:
    return await InspectTransactionJob(transaction_hash, web3, **kwargs).run()
