import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def get_env(key: str, default: any = None, cast_type: type = str):
    value = os.getenv(key)
    if value is None:
        return default

    if cast_type == bool:
        return value.lower() in ("true", "1", "t", "yes", "on")
    try:
        return cast_type(value)
    except (ValueError, TypeError):
        return default


class AppConfigs:
    def __init__(self):
        self.name = get_env("APP_NAME", "getho")
        self.debug = get_env("DEBUG", False, bool)
        self.log_level = get_env("LOG_LEVEL", "INFO")
        self.log_file = get_env("LOG_FILE")


class EthereumConfigs:
    def __init__(self):
        self.rpc_url = get_env("GETHO_RPC_URL", "http://localhost:8545")
        self.rpc_timeout = get_env("GETHO_RPC_TIMEOUT", 30, int)
        self.max_concurrent_requests = get_env("GETHO_MAX_CONCURRENT_REQUESTS", 4, int)
        # Passed through to debug_traceTransaction, Go duration syntax
        self.trace_timeout = get_env("GETHO_TRACE_TIMEOUT", "30s")
        # "structLogs" (default opcode logger) or "callTracer"
        self.tracer = get_env("GETHO_TRACER", "structLogs")


class FeeConfigs:
    def __init__(self):
        # EIP-4844 blob base fee parameters; Prague values by default
        self.blob_base_fee_update_fraction = get_env("GETHO_BLOB_BASE_FEE_UPDATE_FRACTION", 5007716, int)
        self.min_blob_base_fee = get_env("GETHO_MIN_BLOB_BASE_FEE", 1, int)


class SystemConfigs:
    def __init__(self):
        self.app = AppConfigs()
        self.ethereum = EthereumConfigs()
        self.fees = FeeConfigs()


# Singleton instance
configs = SystemConfigs()
