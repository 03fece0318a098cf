from pydantic import BaseModel, ConfigDict

from getho.ethereum.models.gas_analysis import EthGasAnalysis
from getho.ethereum.models.trace import EthTrace
from getho.ethereum.models.transaction import EthTransaction


class EthTransactionInspection(BaseModel):
    """The three sibling artifacts for one transaction hash."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    transaction: EthTransaction
    gas_analysis: EthGasAnalysis
    trace: EthTrace | None = None
    trace_error: str | None = None
